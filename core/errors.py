"""
core/errors.py -- Exception hierarchy shared by every Jobly layer.

Each error carries the HTTP status the API layer maps it to, so stores and
auth helpers can raise domain errors without importing FastAPI. api/main.py
registers one exception handler for JoblyError that renders the standard
error envelope.

Layer rule: core/ is the kernel. No imports from api/, auth/ or board/.
"""

from __future__ import annotations


class JoblyError(Exception):
    """Base application exception."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.__class__.default_message())
        self.message = str(self)

    @classmethod
    def default_message(cls) -> str:
        return "An unexpected error occurred."


class BadRequestError(JoblyError):
    """Raised when caller-supplied data is invalid (empty update, duplicate, bad range)."""

    status_code = 400
    code = "bad_request"

    @classmethod
    def default_message(cls) -> str:
        return "Bad Request"


class UnauthorizedError(JoblyError):
    """Raised when an access check fails or credentials are wrong."""

    status_code = 401
    code = "unauthorized"

    @classmethod
    def default_message(cls) -> str:
        return "Unauthorized"


class NotFoundError(JoblyError):
    """Raised when a requested record does not exist."""

    status_code = 404
    code = "not_found"

    @classmethod
    def default_message(cls) -> str:
        return "Not Found"


__all__ = [
    "BadRequestError",
    "JoblyError",
    "NotFoundError",
    "UnauthorizedError",
]
