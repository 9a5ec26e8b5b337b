from datetime import date, datetime, timedelta, timezone

import pytest

from exam_backend.errors import ConflictError, ExamValidationError, NotFoundError
from exam_backend.models import Attempt, Participant
from exam_backend.services import attempts as attempts_service
from exam_backend.services.attempts import (
    create_attempt,
    get_attempt,
    list_attempts,
    start_attempt,
    update_attempt,
)
from exam_backend.services.eligibility import ensure_participant

ICT = timezone(timedelta(hours=7))

ANSWERS = [
    {"id": 1, "noiDung": "Q1", "dapAn": "A", "dapAnDung": "A"},
    {"id": 2, "noiDung": "Q2", "dapAn": "C", "dapAnDung": "B"},
]


def test_create_attempt_creates_participant_and_completed_attempt(db):
    attempt = create_attempt(
        db, "giang@example.com", "Vo Giang", score=5.0, correct_count=1, answers=ANSWERS,
        started_at=datetime(2026, 10, 19, 9, 0, tzinfo=ICT)
    )
    db.commit()

    assert db.query(Participant).count() == 1
    assert attempt.participant.email == "giang@example.com"
    assert attempt.score == 5.0
    assert attempt.correct_count == 1
    assert attempt.questions == ANSWERS
    assert attempt.submitted_at is not None
    assert attempt.is_completed


def test_create_attempt_without_score_is_in_progress(db):
    attempt = create_attempt(db, "ha@example.com", "Do Ha", score=None, correct_count=None)
    db.commit()

    assert attempt.submitted_at is None
    assert attempt.questions == []
    assert not attempt.is_completed


def test_create_attempt_rejects_second_attempt_same_day(db):
    started = datetime(2026, 10, 19, 9, 0, tzinfo=ICT)
    create_attempt(db, "khanh@example.com", "Bui Khanh", 8.0, 2, ANSWERS, started_at=started)
    db.commit()

    with pytest.raises(ConflictError):
        create_attempt(db, "khanh@example.com", "Bui Khanh", 9.0, 2, ANSWERS, started_at=started + timedelta(hours=3))
    db.rollback()

    assert db.query(Attempt).count() == 1


def test_create_attempt_allows_next_day(db):
    started = datetime(2026, 10, 19, 9, 0, tzinfo=ICT)
    create_attempt(db, "lan@example.com", "Ngo Lan", 8.0, 2, ANSWERS, started_at=started)
    create_attempt(db, "lan@example.com", "Ngo Lan", 10.0, 2, ANSWERS, started_at=started + timedelta(days=1))
    db.commit()

    assert db.query(Attempt).count() == 2


def test_unique_constraint_reports_conflict(db, monkeypatch):
    participant = ensure_participant(db, "minh@example.com", "Dang Minh")
    now = datetime(2026, 10, 19, 9, 0, tzinfo=ICT)
    start_attempt(db, participant, now)
    db.commit()

    # Simulate a concurrent request that passed the existence check
    monkeypatch.setattr(attempts_service, "find_attempt_on_day", lambda *args: None)
    with pytest.raises(ConflictError):
        start_attempt(db, participant, now + timedelta(minutes=1))
    db.commit()

    assert db.query(Attempt).count() == 1


@pytest.mark.parametrize("score,correct_count,answers", [
    (10.5, 1, ANSWERS),
    (-1.0, 1, ANSWERS),
    (5.0, -1, ANSWERS),
    (5.0, 3, ANSWERS),
    (5.0, 21, None),
    (5.0, 1, "not a list"),
    (5.0, 1, {"id": 1}),
])
def test_invalid_results_are_rejected_without_writes(db, score, correct_count, answers):
    with pytest.raises(ExamValidationError):
        create_attempt(db, "nam@example.com", "Ly Nam", score, correct_count, answers)

    assert db.query(Participant).count() == 0
    assert db.query(Attempt).count() == 0


def test_update_attempt_finalizes_in_progress_attempt(db):
    participant = ensure_participant(db, "oanh@example.com", "Mai Oanh")
    start_attempt(db, participant, datetime(2026, 10, 19, 9, 0, tzinfo=ICT))
    db.commit()

    attempt = update_attempt(db, "oanh@example.com", score=5.0, correct_count=1, answers=ANSWERS)
    db.commit()

    assert attempt.score == 5.0
    assert attempt.correct_count == 1
    assert attempt.questions == ANSWERS
    assert attempt.submitted_at is not None
    assert attempt.is_completed


def test_update_attempt_keeps_given_submit_time(db):
    participant = ensure_participant(db, "phuc@example.com", "Truong Phuc")
    start_attempt(db, participant, datetime(2026, 10, 19, 9, 0, tzinfo=ICT))
    submitted = datetime(2026, 10, 19, 9, 14, tzinfo=ICT)

    attempt = update_attempt(db, "phuc@example.com", 0.0, 0, [], submitted_at=submitted)

    assert attempt.submitted_at == submitted


def test_update_attempt_twice_is_rejected(db):
    participant = ensure_participant(db, "quang@example.com", "Ha Quang")
    start_attempt(db, participant, datetime(2026, 10, 19, 9, 0, tzinfo=ICT))
    update_attempt(db, "quang@example.com", 5.0, 1, ANSWERS)
    db.commit()

    with pytest.raises(ConflictError):
        update_attempt(db, "quang@example.com", 10.0, 2, [dict(a, dapAn=a["dapAnDung"]) for a in ANSWERS])
    db.rollback()

    stored = db.query(Attempt).one()
    assert stored.score == 5.0
    assert stored.questions == ANSWERS


def test_update_attempt_unknown_participant(db):
    with pytest.raises(NotFoundError):
        update_attempt(db, "nobody@example.com", 5.0, 1, ANSWERS)


def test_update_attempt_participant_without_attempt(db):
    ensure_participant(db, "son@example.com", "Cao Son")
    db.commit()

    with pytest.raises(NotFoundError):
        update_attempt(db, "son@example.com", 5.0, 1, ANSWERS)


def test_update_attempt_rejects_non_list_answers(db):
    participant = ensure_participant(db, "tam@example.com", "Vu Tam")
    start_attempt(db, participant, datetime(2026, 10, 19, 9, 0, tzinfo=ICT))
    db.commit()

    with pytest.raises(ExamValidationError):
        update_attempt(db, "tam@example.com", 5.0, 1, "A")

    assert not db.query(Attempt).one().is_completed


def test_get_attempt_unknown_id(db):
    with pytest.raises(NotFoundError):
        get_attempt(db, 12345)


def test_list_attempts_filters_by_day(db):
    create_attempt(db, "uyen@example.com", "Kieu Uyen", 7.5, 2, ANSWERS,
                   started_at=datetime(2026, 10, 18, 9, 0, tzinfo=ICT))
    create_attempt(db, "uyen@example.com", "Kieu Uyen", 9.0, 2, ANSWERS,
                   started_at=datetime(2026, 10, 19, 9, 0, tzinfo=ICT))
    create_attempt(db, "vinh@example.com", "La Vinh", 6.0, 1, ANSWERS,
                   started_at=datetime(2026, 10, 19, 10, 0, tzinfo=ICT))
    db.commit()

    assert len(list_attempts(db)) == 3
    on_day = list_attempts(db, date(2026, 10, 19))
    assert [a.participant.email for a in on_day] == ["uyen@example.com", "vinh@example.com"]
