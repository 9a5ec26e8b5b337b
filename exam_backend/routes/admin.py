from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session
from pydantic import BaseModel
from typing import List, Optional
from datetime import date, datetime
from exam_backend.database import get_db
from exam_backend.models import User
from exam_backend.auth.dependencies import get_current_user
from exam_backend.routes.exams import QuestionAnswer
from exam_backend.services.attempts import list_attempts
from exam_backend.services.export import build_attempts_workbook, export_filename, XLSX_MEDIA_TYPE

router = APIRouter(tags=["admin"])

NOT_FOUND_PLACEHOLDER = "Not found"


class ExamListItem(BaseModel):
    id: int
    hoTen: str
    email: str
    phongBan: str
    diemSo: Optional[float]
    soCauDung: Optional[int]
    noiDungBaiThi: List[QuestionAnswer]
    ngayThi: datetime
    ngayNop: Optional[datetime]


@router.get("/list-exams", response_model=List[ExamListItem])
async def list_exams(
    day: Optional[date] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """All exams joined with participant name, email and department (staff only)"""
    attempts = list_attempts(db, day)

    return [
        ExamListItem(
            id=attempt.id,
            hoTen=attempt.participant.full_name or NOT_FOUND_PLACEHOLDER,
            email=attempt.participant.email or NOT_FOUND_PLACEHOLDER,
            phongBan=attempt.participant.department or NOT_FOUND_PLACEHOLDER,
            diemSo=attempt.score,
            soCauDung=attempt.correct_count,
            noiDungBaiThi=attempt.questions or [],
            ngayThi=attempt.started_at,
            ngayNop=attempt.submitted_at
        )
        for attempt in attempts
    ]


@router.get("/export-exams")
async def export_exams(
    day: date = Query(..., alias="date"),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Spreadsheet of the exams taken on one day (staff only)"""
    attempts = list_attempts(db, day)
    if not attempts:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="No exams to export for this date"
        )

    print(f"🔵 Exporting {len(attempts)} exams for {day.isoformat()} (requested by {current_user.email})")
    return Response(
        content=build_attempts_workbook(attempts),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{export_filename(day)}"'}
    )
