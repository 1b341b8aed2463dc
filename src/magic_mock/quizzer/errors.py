"""Error taxonomy for quiz generation and translation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .validator import ValidationIssue

__all__ = [
    "ProviderError",
    "QuizError",
    "QuizGenerationError",
    "QuizValidationError",
    "TranslationMismatch",
]


class QuizError(RuntimeError):
    """Base class for quiz pipeline failures."""


class ProviderError(QuizError):
    """Raised when the provider fails or returns a malformed payload."""


class TranslationMismatch(ProviderError):
    """Raised when a batch translation does not preserve the input length."""

    def __init__(self, expected: int, received: int) -> None:
        super().__init__(
            f"Expected {expected} translated strings, received {received}."
        )
        self.expected = expected
        self.received = received


class QuizValidationError(QuizError):
    """Raised when a candidate quiz violates a structural invariant."""

    def __init__(self, issues: Sequence["ValidationIssue"]) -> None:
        self.issues = tuple(issues)
        detail = "; ".join(issue.describe() for issue in self.issues)
        super().__init__(detail or "Quiz failed validation.")


class QuizGenerationError(QuizError):
    """User-facing generation failure wrapping the underlying cause."""

    def __init__(self, message: str, *, cause: Exception) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
