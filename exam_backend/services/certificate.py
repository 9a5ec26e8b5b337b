from datetime import date
from pathlib import Path
from typing import Optional
from jinja2 import Environment, FileSystemLoader, select_autoescape
from exam_backend.config import settings

TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates"
COURSE_NAME = "Basic ChatGPT Training Program"
ISSUER = "Team AI"
CERTIFICATE_SUBJECT = "Certificate of completion: Basic ChatGPT Training Program"

_env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"])
)


def review_url(exam_id: Optional[int]) -> Optional[str]:
    if exam_id is None:
        return None
    return f"{settings.REVIEW_BASE_URL.rstrip('/')}/{exam_id}"


def render_certificate(recipient_name: str, score: float, exam_id: Optional[int] = None, issued_on: Optional[date] = None) -> str:
    """Render the HTML certificate; the review link is included only when the exam id is known."""
    issued_on = issued_on or date.today()
    template = _env.get_template("certificate.html")
    return template.render(
        recipient_name=recipient_name,
        score=float(score),
        review_url=review_url(exam_id),
        course_name=COURSE_NAME,
        issuer=ISSUER,
        issued_on=f"{issued_on:%B} {issued_on.day}, {issued_on.year}"
    )
