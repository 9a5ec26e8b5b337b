from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field, validator
from typing import List, Optional, Union
from datetime import datetime, timezone
import re
import traceback
from exam_backend.database import get_db
from exam_backend.errors import ExamError, ConflictError
from exam_backend.models import Attempt
from exam_backend.services.eligibility import ensure_participant, check_eligibility
from exam_backend.services.attempts import start_attempt, create_attempt, update_attempt, get_attempt

router = APIRouter(tags=["exams"])

# Browser Date.toString(): "Mon Oct 19 2026 10:00:00 GMT+0700 (Indochina Time)"
JS_DATE_PATTERN = re.compile(
    r'^\w{3}\s+(\w{3})\s+(\d{1,2})\s+(\d{4})\s+(\d{2}:\d{2}:\d{2})\s+GMT([+-]\d{4})'
)

# Date.toString() always uses English month names, whatever the server locale
MONTHS = {
    name: number for number, name in enumerate(
        ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"], start=1
    )
}


def parse_client_timestamp(value: Union[str, datetime, None]) -> Optional[datetime]:
    """
    Parse a timestamp sent by the browser, keeping its own UTC offset.

    Accepts ISO 8601 (``Z`` or an offset, or naive) and the
    ``Date.toString()`` format.
    """
    if value is None or isinstance(value, datetime):
        return value
    text = str(value).strip()
    if not text:
        return None

    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError:
        pass

    match = JS_DATE_PATTERN.match(text)
    if match and match.group(1) in MONTHS:
        month, day, year, clock, offset = match.groups()
        return datetime.strptime(
            f"{year}-{MONTHS[month]:02d}-{int(day):02d} {clock} {offset}", "%Y-%m-%d %H:%M:%S %z"
        )

    raise ValueError(f"Unrecognised timestamp: {text}")


def _not_blank(v, field_name):
    if v is None or not str(v).strip():
        raise ValueError(f"{field_name} is required")
    return str(v).strip()


class QuestionAnswer(BaseModel):
    id: Union[int, str]
    noiDung: str
    dapAn: str = ""
    dapAnDung: str


class EligibilityRequest(BaseModel):
    email: str
    full_name: str = Field(..., alias="hoTen")
    department: Optional[str] = Field(None, alias="phongBan")
    started_at: Optional[datetime] = Field(None, alias="ngayVaoThi")

    @validator('email')
    def validate_email(cls, v):
        return _not_blank(v, "email")

    @validator('full_name')
    def validate_full_name(cls, v):
        return _not_blank(v, "hoTen")

    @validator('started_at', pre=True)
    def validate_started_at(cls, v):
        return parse_client_timestamp(v)

    class Config:
        populate_by_name = True


class ExamCreateRequest(EligibilityRequest):
    score: float = Field(..., alias="diem")
    correct_count: int = Field(..., alias="soCauDung")
    answers: Optional[List[QuestionAnswer]] = Field(None, alias="cauHoi")
    submitted_at: Optional[datetime] = Field(None, alias="ngayNop")

    @validator('submitted_at', pre=True)
    def validate_submitted_at(cls, v):
        return parse_client_timestamp(v)


class ExamUpdateRequest(BaseModel):
    email: str
    score: float = Field(..., alias="diem")
    correct_count: int = Field(..., alias="soCauDung")
    answers: Optional[List[QuestionAnswer]] = Field(None, alias="cauHoi")
    submitted_at: Optional[datetime] = Field(None, alias="ngayNop")

    @validator('email')
    def validate_email(cls, v):
        return _not_blank(v, "email")

    @validator('submitted_at', pre=True)
    def validate_submitted_at(cls, v):
        return parse_client_timestamp(v)

    class Config:
        populate_by_name = True


class ExamRecord(BaseModel):
    id: int
    participantId: int
    email: str
    hoTen: str
    phongBan: Optional[str]
    diem: Optional[float]
    soCauDung: Optional[int]
    cauHoi: List[QuestionAnswer]
    ngayVaoThi: datetime
    ngayNop: Optional[datetime]


class ExamCreateResponse(BaseModel):
    message: str
    data: ExamRecord


class ExamUpdateResponse(BaseModel):
    message: str
    examId: int


class ExamReviewResponse(BaseModel):
    danhSachCauHoi: List[QuestionAnswer]


def to_record(attempt: Attempt) -> ExamRecord:
    participant = attempt.participant
    return ExamRecord(
        id=attempt.id,
        participantId=participant.id,
        email=participant.email,
        hoTen=participant.full_name,
        phongBan=participant.department,
        diem=attempt.score,
        soCauDung=attempt.correct_count,
        cauHoi=attempt.questions or [],
        ngayVaoThi=attempt.started_at,
        ngayNop=attempt.submitted_at
    )


def _answers_payload(answers: Optional[List[QuestionAnswer]]):
    if answers is None:
        return None
    return [a.model_dump() for a in answers]


def _fail(db: Session, action: str, e: Exception):
    """Roll back and turn an exception into the HTTP error the client sees."""
    db.rollback()
    if isinstance(e, ExamError):
        print(f"⚠️ {action} rejected: {e.message}")
        raise HTTPException(status_code=e.status_code, detail=e.message)
    print(f"❌ {action} failed: {type(e).__name__}: {e}")
    traceback.print_exc()
    raise HTTPException(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=f"An error occurred while trying to {action}"
    )


@router.post("/check-eligibility")
async def check_exam_eligibility(request: EligibilityRequest, db: Session = Depends(get_db)):
    """
    Decide whether the participant may start an exam today.

    Creates the participant on first sight. When eligible, the in-progress
    attempt is created right away (201); otherwise 200 with the date of the
    existing attempt.
    """
    local_timestamp = request.started_at or datetime.now(timezone.utc)
    try:
        participant = ensure_participant(db, request.email, request.full_name, request.department)
        result = check_eligibility(db, participant, local_timestamp)

        if result.eligible:
            try:
                attempt = start_attempt(db, participant, local_timestamp)
            except ConflictError:
                # Another request started today's attempt first
                result = check_eligibility(db, participant, local_timestamp)
            else:
                db.commit()
                return JSONResponse(
                    status_code=status.HTTP_201_CREATED,
                    content={
                        "eligible": True,
                        "message": result.reason,
                        "examId": attempt.id,
                    }
                )

        db.commit()
    except Exception as e:
        _fail(db, "check exam eligibility", e)

    print(f"ℹ️ {request.email} is not eligible: {result.reason}")
    return {
        "eligible": False,
        "message": result.reason,
        "existingExamDate": result.existing_attempt_date,
    }


@router.post("/exams", response_model=ExamCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_exam(request: ExamCreateRequest, db: Session = Depends(get_db)):
    """Record a whole exam in one call (participant created if needed)"""
    try:
        attempt = create_attempt(
            db,
            email=request.email,
            full_name=request.full_name,
            score=request.score,
            correct_count=request.correct_count,
            answers=_answers_payload(request.answers),
            started_at=request.started_at,
            submitted_at=request.submitted_at,
            department=request.department
        )
        db.commit()
        db.refresh(attempt)
    except Exception as e:
        _fail(db, "save the exam", e)

    return ExamCreateResponse(message="Exam saved successfully", data=to_record(attempt))


@router.post("/save-exam", response_model=ExamUpdateResponse)
async def save_exam(request: ExamUpdateRequest, db: Session = Depends(get_db)):
    """Submit the result of the participant's in-progress exam"""
    try:
        attempt = update_attempt(
            db,
            email=request.email,
            score=request.score,
            correct_count=request.correct_count,
            answers=_answers_payload(request.answers),
            submitted_at=request.submitted_at
        )
        db.commit()
    except Exception as e:
        _fail(db, "update the exam", e)

    return ExamUpdateResponse(message="Exam updated successfully", examId=attempt.id)


@router.get("/exam/{exam_id}", response_model=ExamReviewResponse)
async def get_exam_for_review(exam_id: int, db: Session = Depends(get_db)):
    """Question/answer list of one exam, for the review page"""
    try:
        attempt = get_attempt(db, exam_id)
    except Exception as e:
        _fail(db, "load the exam", e)

    return ExamReviewResponse(danhSachCauHoi=attempt.questions or [])
