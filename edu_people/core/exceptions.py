"""Custom exception hierarchy for the directory."""

from __future__ import annotations

from fastapi import status


class ApplicationError(Exception):
    """Base application error with HTTP semantics."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    code: str = "application_error"

    def __init__(self, message: str, *, status_code: int | None = None, code: str | None = None) -> None:
        super().__init__(message)
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.message = message


class NotFoundError(ApplicationError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class ValidationError(ApplicationError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "validation_error"


class DuplicateRecordError(ApplicationError):
    status_code = status.HTTP_409_CONFLICT
    code = "duplicate_record"


class PersonNotFoundError(NotFoundError):
    """Raised when an operation requires a person that does not exist."""

    def __init__(self, ucinetid: str) -> None:
        super().__init__(f"There is no one with ucinetid {ucinetid}")
        self.ucinetid = ucinetid
