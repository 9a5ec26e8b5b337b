from exam_backend.models.user import User
from exam_backend.models.participant import Participant
from exam_backend.models.attempt import Attempt

__all__ = [
    "User",
    "Participant",
    "Attempt",
]
