"""
Shared exceptions.

``RecordConflictError`` is raised by repositories; the ``AppError`` family
is raised by routers and rendered by the handler registered in ``main``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NoReturn, Optional

from fastapi import status

from contactbook.shared.results import ErrorKind, Failure


class RecordConflictError(Exception):
    """A write violated a uniqueness constraint in the record store."""

    def __init__(self, message: str, constraint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.constraint = constraint


@dataclass(eq=False)
class AppError(Exception):
    message: str = "Application error"
    details: Optional[dict[str, Any]] = None

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "INTERNAL_ERROR"

    def __str__(self) -> str:
        return self.message


class NotFoundError(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"


class ConflictError(AppError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"


class InvalidArgumentError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "INVALID_ARGUMENT"


class ValidationFailedError(AppError):
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    code = "VALIDATION_ERROR"


class ImportFailedError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "IMPORT_FAILED"


_ERRORS_BY_KIND: dict[ErrorKind, type[AppError]] = {
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.CONFLICT: ConflictError,
    ErrorKind.INVALID_ARGUMENT: InvalidArgumentError,
    ErrorKind.VALIDATION_FAILED: ValidationFailedError,
    ErrorKind.IMPORT_FAILED: ImportFailedError,
}


def raise_for_failure(failure: Failure) -> NoReturn:
    """Raise the HTTP-facing error matching a service failure."""
    error_cls = _ERRORS_BY_KIND[failure.kind]
    raise error_cls(message=failure.message, details=failure.details or None)
