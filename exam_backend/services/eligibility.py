from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from exam_backend.errors import ExamValidationError
from exam_backend.models import Participant, Attempt


ALREADY_ATTEMPTED_MESSAGE = "Participant has already taken the exam today"
ELIGIBLE_MESSAGE = "Participant may take the exam"


@dataclass
class EligibilityResult:
    eligible: bool
    reason: str
    existing_attempt_date: Optional[datetime] = None


def calendar_day(local_timestamp: datetime) -> date:
    """Calendar day of the timestamp on its own clock (never the server's)."""
    return local_timestamp.date()


def find_participant(db: Session, email: str) -> Optional[Participant]:
    return db.query(Participant).filter(Participant.email == email).first()


def ensure_participant(
    db: Session,
    email: str,
    full_name: str,
    department: Optional[str] = None
) -> Participant:
    """
    Find the participant by email or create it.

    Creation runs in a savepoint; if a concurrent request inserted the same
    email first, the unique constraint fires and the existing row is returned.
    Existing participants are not renamed.
    """
    if not email or not email.strip():
        raise ExamValidationError("Missing required field: email")
    if not full_name or not full_name.strip():
        raise ExamValidationError("Missing required field: hoTen")

    email = email.strip()
    participant = find_participant(db, email)
    if participant:
        if department and not participant.department:
            participant.department = department
            db.flush()
        return participant

    participant = Participant(
        email=email,
        full_name=full_name.strip(),
        department=department
    )
    try:
        with db.begin_nested():
            db.add(participant)
    except IntegrityError:
        print(f"ℹ️ Participant {email} was created concurrently, reusing it")
        participant = find_participant(db, email)
        if participant is None:
            raise
        return participant

    print(f"✅ Participant created: {email} (id: {participant.id})")
    return participant


def find_attempt_on_day(db: Session, participant_id: int, day: date) -> Optional[Attempt]:
    return db.query(Attempt).filter(
        Attempt.participant_id == participant_id,
        Attempt.attempt_day == day
    ).first()


def check_eligibility(db: Session, participant: Participant, local_timestamp: datetime) -> EligibilityResult:
    """Whether ``participant`` may start an attempt on the day of ``local_timestamp``. Read only."""
    existing = find_attempt_on_day(db, participant.id, calendar_day(local_timestamp))
    if existing:
        return EligibilityResult(
            eligible=False,
            reason=ALREADY_ATTEMPTED_MESSAGE,
            existing_attempt_date=existing.started_at
        )
    return EligibilityResult(eligible=True, reason=ELIGIBLE_MESSAGE)
