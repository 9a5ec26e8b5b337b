from io import BytesIO
from datetime import date
from typing import List
from openpyxl import Workbook
from openpyxl.styles import Alignment, Font
from openpyxl.utils import get_column_letter
from exam_backend.models import Attempt

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

COLUMNS = [
    ("No.", 10),
    ("Full name", 24),
    ("Email", 32),
    ("Department", 20),
    ("Score", 12),
    ("Correct answers", 16),
    ("Exam date", 14),
]


def export_filename(day: date) -> str:
    return f"ExamList_{day.isoformat()}.xlsx"


def build_attempts_workbook(attempts: List[Attempt]) -> bytes:
    wb = Workbook()
    ws = wb.active
    ws.title = "ExamList"

    ws.append([name for name, _ in COLUMNS])

    header_font = Font(bold=True)
    center = Alignment(horizontal="center", vertical="center")
    for col, (_, width) in enumerate(COLUMNS, start=1):
        cell = ws.cell(row=1, column=col)
        cell.font = header_font
        cell.alignment = center
        ws.column_dimensions[get_column_letter(col)].width = width

    ws.freeze_panes = "A2"

    for index, attempt in enumerate(attempts, start=1):
        participant = attempt.participant
        total = len(attempt.questions or [])
        correct = attempt.correct_count if attempt.correct_count is not None else 0
        ws.append([
            index,
            participant.full_name,
            participant.email or "No email",
            participant.department or "",
            attempt.score,
            f"{correct} / {total}",
            attempt.attempt_day.strftime("%d/%m/%Y"),
        ])

    buffer = BytesIO()
    wb.save(buffer)
    return buffer.getvalue()
