"""Error kinds raised by the service layer.

Routes translate these into HTTP responses; each carries the status code
and a message that is safe to show to the user.
"""
from fastapi import status


class ExamError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ExamValidationError(ExamError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundError(ExamError):
    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(ExamError):
    status_code = status.HTTP_409_CONFLICT


class TransportError(ExamError):
    """Email delivery failed; details stay in the server log."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
