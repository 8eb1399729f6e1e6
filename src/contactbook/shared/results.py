"""
Typed outcome values returned by the service layer.

Services return either their success value or a ``Failure``; callers
branch with ``isinstance(result, Failure)``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Category of a failed operation."""

    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_ARGUMENT = "invalid_argument"
    VALIDATION_FAILED = "validation_failed"
    IMPORT_FAILED = "import_failed"


@dataclass(frozen=True)
class Failure:
    """A failed operation: its kind, a human message and optional details."""

    kind: ErrorKind
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def not_found(cls, message: str, **details: Any) -> Failure:
        return cls(ErrorKind.NOT_FOUND, message, details)

    @classmethod
    def conflict(cls, message: str, **details: Any) -> Failure:
        return cls(ErrorKind.CONFLICT, message, details)

    @classmethod
    def invalid_argument(cls, message: str, **details: Any) -> Failure:
        return cls(ErrorKind.INVALID_ARGUMENT, message, details)

    @classmethod
    def validation_failed(cls, message: str, **details: Any) -> Failure:
        return cls(ErrorKind.VALIDATION_FAILED, message, details)

    @classmethod
    def import_failed(cls, message: str, **details: Any) -> Failure:
        return cls(ErrorKind.IMPORT_FAILED, message, details)


Result = Union[T, Failure]

__all__ = ["ErrorKind", "Failure", "Result"]
