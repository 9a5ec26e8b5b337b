"""
Client-side exam session: NOT_STARTED -> IN_PROGRESS -> SUBMITTED.

The session owns the sampled questions, the answers and the countdown. It
talks to the server through an ``ExamApiClient`` (or anything with the same
three methods) and never retries a failed call; the error text is kept in
``message`` for display.
"""
import enum
import random
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

import httpx

from exam_backend.config import settings
from exam_backend.services.question_bank import load_question_bank, sample_questions


class SessionState(str, enum.Enum):
    NOT_STARTED = "NOT_STARTED"
    IN_PROGRESS = "IN_PROGRESS"
    SUBMITTED = "SUBMITTED"


class ExamApiError(Exception):
    pass


class ExamApiClient:
    """Thin wrapper over the exam HTTP endpoints."""

    def __init__(self, client: httpx.Client):
        self.client = client

    def _post(self, path: str, payload: Dict) -> Dict:
        response = self.client.post(path, json=payload)
        try:
            body = response.json()
        except ValueError:
            body = None

        if response.status_code >= 400:
            detail = body.get("detail") if isinstance(body, dict) else None
            raise ExamApiError(detail or f"Request to {path} failed with status {response.status_code}")
        if not isinstance(body, dict):
            raise ExamApiError(f"Unexpected response from {path}")
        return body

    def check_eligibility(self, email: str, full_name: str, department: Optional[str], local_timestamp: datetime) -> Dict:
        return self._post("/check-eligibility", {
            "email": email,
            "hoTen": full_name,
            "phongBan": department,
            "ngayVaoThi": local_timestamp.isoformat(),
        })

    def save_exam(self, payload: Dict) -> Dict:
        return self._post("/save-exam", payload)

    def send_certificate(self, email: str, recipient_name: str, score: float, exam_id: Optional[int]) -> Dict:
        return self._post("/send-certificate", {
            "email": email,
            "recipientName": recipient_name,
            "score": score,
            "examId": exam_id,
        })


def local_now() -> datetime:
    return datetime.now(timezone.utc).astimezone()


class ExamSession:
    def __init__(
        self,
        api,
        email: str,
        full_name: str,
        department: Optional[str] = None,
        question_bank: Optional[List[Dict]] = None,
        question_count: int = settings.EXAM_QUESTION_COUNT,
        duration_seconds: int = settings.EXAM_DURATION_MINUTES * 60,
        rng: Optional[random.Random] = None,
        clock: Callable[[], datetime] = local_now
    ):
        self.api = api
        self.email = email
        self.full_name = full_name
        self.department = department
        self.question_bank = question_bank if question_bank is not None else load_question_bank()
        self.question_count = question_count
        self.duration_seconds = duration_seconds
        self.rng = rng or random.Random()
        self.clock = clock

        self.state = SessionState.NOT_STARTED
        self.questions: List[Dict] = []
        self.answers: List[str] = []
        self.time_left = duration_seconds
        self.reviewing = False
        self.timer_active = False
        self.exam_id: Optional[int] = None
        self.result: Optional[Dict] = None
        self.certificate_sent = False
        self.message = ""

    def start(self) -> bool:
        """Check eligibility and, if allowed, draw the questions and start the countdown."""
        if self.state != SessionState.NOT_STARTED:
            return False
        if not (self.email and self.full_name):
            self.message = "Full name and email are required"
            return False

        try:
            data = self.api.check_eligibility(self.email, self.full_name, self.department, self.clock())
        except (ExamApiError, httpx.HTTPError) as e:
            self.message = f"Error: {e}"
            return False

        if not data.get("eligible"):
            self.message = "You have already taken the exam today. Please try again tomorrow!"
            return False

        self.exam_id = data.get("examId")
        self.questions = sample_questions(self.question_bank, self.question_count, self.rng)
        self.answers = [""] * len(self.questions)
        self.time_left = self.duration_seconds
        self.state = SessionState.IN_PROGRESS
        self.timer_active = True
        self.message = ""
        return True

    def answer(self, index: int, option: str) -> None:
        if self.state != SessionState.IN_PROGRESS:
            raise RuntimeError("Answers can only be changed while the exam is in progress")
        if not 0 <= index < len(self.questions):
            raise IndexError(f"No question at position {index}")
        self.answers[index] = option

    def tick(self, seconds: int = 1) -> None:
        """Advance the countdown; reaching zero submits the exam."""
        if not self.timer_active or self.state != SessionState.IN_PROGRESS:
            return
        self.time_left = max(0, self.time_left - seconds)
        if self.time_left == 0:
            self.submit()

    def calculate_result(self) -> Dict:
        correct_count = sum(
            1 for answer, q in zip(self.answers, self.questions) if answer == q["correct"]
        )
        total = len(self.questions)
        score = (correct_count / total) * 10 if total else 0.0
        return {"correct_count": correct_count, "score": score}

    def submit(self) -> Optional[Dict]:
        """
        Grade and record the exam, then request the certificate.

        Only the first call (timer or button) does anything; later calls
        return the first result.
        """
        if self.state != SessionState.IN_PROGRESS:
            return self.result

        self.state = SessionState.SUBMITTED
        self.timer_active = False
        self.result = self.calculate_result()

        payload = {
            "email": self.email,
            "diem": self.result["score"],
            "soCauDung": self.result["correct_count"],
            "cauHoi": [
                {
                    "id": q["id"],
                    "noiDung": q["question"],
                    "dapAn": self.answers[i] or "",
                    "dapAnDung": q["correct"],
                }
                for i, q in enumerate(self.questions)
            ],
            "ngayNop": self.clock().isoformat(),
        }

        try:
            saved = self.api.save_exam(payload)
        except (ExamApiError, httpx.HTTPError) as e:
            self.message = f"Error: {e}"
            return self.result
        self.exam_id = saved.get("examId", self.exam_id)

        try:
            self.api.send_certificate(self.email, self.full_name, self.result["score"], self.exam_id)
        except (ExamApiError, httpx.HTTPError) as e:
            self.message = f"Error sending certificate: {e}"
            return self.result

        self.certificate_sent = True
        self.message = "Your certificate has been sent to your email!"
        return self.result

    def toggle_review(self) -> bool:
        if self.state != SessionState.SUBMITTED:
            raise RuntimeError("Review is only available after submission")
        self.reviewing = not self.reviewing
        return self.reviewing

    def format_time_left(self) -> str:
        minutes, secs = divmod(self.time_left, 60)
        return f"{minutes}:{secs:02d}"

    def close(self) -> None:
        """Cancel the countdown when the page is left."""
        self.timer_active = False
