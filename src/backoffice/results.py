"""Error kinds and structured results shared by the calculation engines.

Every failure the engines can report is an expected, user-correctable
condition. Validation helpers raise the typed errors below, and the public
engine operations catch them and hand back an :class:`Outcome` so callers can
render a message without unwinding.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from .constants import DEFAULT_FEEDBACK_DURATION_MS, Severity


T = TypeVar("T")


class BackOfficeError(Exception):
    """Base class for every recoverable domain error."""


class ValidationError(BackOfficeError):
    """Raised when a request carries a malformed quantity or no selection."""


class NotFoundError(BackOfficeError):
    """Raised when a product code is unknown to the ledger."""


class InsufficientStockError(BackOfficeError):
    """Raised when an outflow exceeds the available quantity."""

    def __init__(self, message: str, *, available: int, requested: int) -> None:
        super().__init__(message)
        self.available = available
        self.requested = requested


class DuplicateCodeError(BackOfficeError):
    """Raised when an edit would reuse a code held by another product."""


class InvalidCodeError(BackOfficeError):
    """Raised when a product code is not a positive integer."""


class InvalidInputError(BackOfficeError):
    """Raised when the interest calculator receives a bad principal or date."""


@dataclass(frozen=True)
class Feedback:
    """Message value for the presentation layer.

    ``display_ms`` is only a suggestion; whoever renders the message owns the
    auto-dismiss timer.
    """

    severity: Severity
    message: str
    display_ms: int = DEFAULT_FEEDBACK_DURATION_MS

    @classmethod
    def success(cls, message: str, *, display_ms: int = DEFAULT_FEEDBACK_DURATION_MS) -> "Feedback":
        return cls(Severity.SUCCESS, message, display_ms)

    @classmethod
    def danger(cls, message: str, *, display_ms: int = DEFAULT_FEEDBACK_DURATION_MS) -> "Feedback":
        return cls(Severity.DANGER, message, display_ms)

    @classmethod
    def info(cls, message: str, *, display_ms: int = DEFAULT_FEEDBACK_DURATION_MS) -> "Feedback":
        return cls(Severity.INFO, message, display_ms)


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of an engine operation: either a value or a domain error."""

    value: Optional[T] = None
    error: Optional[BackOfficeError] = None
    feedback: Optional[Feedback] = None

    @classmethod
    def success(cls, value: T, feedback: Optional[Feedback] = None) -> "Outcome[T]":
        return cls(value=value, error=None, feedback=feedback)

    @classmethod
    def failure(cls, error: BackOfficeError, feedback: Optional[Feedback] = None) -> "Outcome[T]":
        if feedback is None:
            feedback = Feedback.danger(f"Error: {error}")
        return cls(value=None, error=error, feedback=feedback)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value or re-raise the captured error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


__all__ = [
    "BackOfficeError",
    "ValidationError",
    "NotFoundError",
    "InsufficientStockError",
    "DuplicateCodeError",
    "InvalidCodeError",
    "InvalidInputError",
    "Feedback",
    "Outcome",
]
