from datetime import date, datetime, timezone
from typing import Dict, List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
from exam_backend.config import settings
from exam_backend.errors import ExamValidationError, NotFoundError, ConflictError
from exam_backend.models import Participant, Attempt
from exam_backend.services.eligibility import (
    ALREADY_ATTEMPTED_MESSAGE,
    calendar_day,
    ensure_participant,
    find_attempt_on_day,
    find_participant,
)

MAX_SCORE = 10.0


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def validate_result(score: Optional[float], correct_count: Optional[int], answers: Optional[List[Dict]]) -> None:
    """
    Range checks for a submitted result.

    score must lie in [0, 10], correct_count must be non-negative and, when
    the answer list is given, no larger than the number of questions (the
    configured question count otherwise).
    """
    if answers is not None and not isinstance(answers, list):
        raise ExamValidationError("cauHoi must be a list")
    if score is not None and not 0 <= score <= MAX_SCORE:
        raise ExamValidationError("diem must be between 0 and 10")
    if correct_count is not None:
        if correct_count < 0:
            raise ExamValidationError("soCauDung must not be negative")
        limit = len(answers) if answers is not None else settings.EXAM_QUESTION_COUNT
        if correct_count > limit:
            raise ExamValidationError("soCauDung cannot exceed the number of questions")


def _insert_attempt(db: Session, attempt: Attempt) -> Attempt:
    try:
        with db.begin_nested():
            db.add(attempt)
    except IntegrityError:
        # Lost a race against another request for the same participant and day
        raise ConflictError(ALREADY_ATTEMPTED_MESSAGE)
    return attempt


def start_attempt(db: Session, participant: Participant, local_timestamp: datetime) -> Attempt:
    """Create the in-progress attempt for the day of ``local_timestamp``."""
    day = calendar_day(local_timestamp)
    if find_attempt_on_day(db, participant.id, day):
        raise ConflictError(ALREADY_ATTEMPTED_MESSAGE)

    attempt = _insert_attempt(db, Attempt(
        participant_id=participant.id,
        started_at=local_timestamp,
        attempt_day=day,
        questions=[]
    ))
    print(f"✅ Attempt {attempt.id} started for {participant.email} on {day.isoformat()}")
    return attempt


def create_attempt(
    db: Session,
    email: str,
    full_name: str,
    score: Optional[float],
    correct_count: Optional[int],
    answers: Optional[List[Dict]] = None,
    started_at: Optional[datetime] = None,
    submitted_at: Optional[datetime] = None,
    department: Optional[str] = None
) -> Attempt:
    """
    Record an attempt in one call, creating the participant if needed.

    The attempt is completed when a score is given, otherwise in progress.
    Fails with ConflictError if the participant already has an attempt on
    the day of ``started_at``.
    """
    validate_result(score, correct_count, answers)

    participant = ensure_participant(db, email, full_name, department)
    started_at = started_at or utc_now()
    day = calendar_day(started_at)

    if find_attempt_on_day(db, participant.id, day):
        raise ConflictError("An exam has already been recorded for this email today")

    completed = score is not None
    attempt = _insert_attempt(db, Attempt(
        participant_id=participant.id,
        started_at=started_at,
        attempt_day=day,
        submitted_at=(submitted_at or utc_now()) if completed else None,
        score=float(score) if completed else None,
        correct_count=correct_count,
        questions=list(answers or [])
    ))
    print(f"✅ Attempt {attempt.id} recorded for {participant.email} (score: {attempt.score})")
    return attempt


def update_attempt(
    db: Session,
    email: str,
    score: float,
    correct_count: int,
    answers: Optional[List[Dict]] = None,
    submitted_at: Optional[datetime] = None
) -> Attempt:
    """
    Finalize the participant's latest attempt with its result.

    An attempt is finalized exactly once; a second submission raises
    ConflictError and leaves the stored answers untouched.
    """
    validate_result(score, correct_count, answers)

    participant = find_participant(db, email)
    if not participant:
        raise NotFoundError("Participant not found")

    attempt = db.query(Attempt).filter(
        Attempt.participant_id == participant.id
    ).order_by(Attempt.started_at.desc(), Attempt.id.desc()).first()
    if not attempt:
        raise NotFoundError("Exam not found for this participant")

    if attempt.is_completed:
        raise ConflictError("This exam has already been submitted")

    attempt.score = float(score)
    attempt.correct_count = correct_count
    attempt.questions = list(answers or [])
    attempt.submitted_at = submitted_at or utc_now()
    db.flush()
    print(f"✅ Attempt {attempt.id} submitted by {participant.email} (score: {attempt.score})")
    return attempt


def get_attempt(db: Session, attempt_id: int) -> Attempt:
    attempt = db.query(Attempt).filter(Attempt.id == attempt_id).first()
    if not attempt:
        raise NotFoundError("Exam not found")
    return attempt


def list_attempts(db: Session, day: Optional[date] = None) -> List[Attempt]:
    """All attempts with their participant loaded, oldest first; optionally one day only."""
    query = db.query(Attempt).options(joinedload(Attempt.participant))
    if day is not None:
        query = query.filter(Attempt.attempt_day == day)
    return query.order_by(Attempt.started_at, Attempt.id).all()
