"""Generation boundary: settings in, a trusted ``Quiz`` or an error out."""

from __future__ import annotations

import json
import logging
from typing import Optional

from openai import AuthenticationError

from ..core.ai import MissingCredentialsError
from .errors import (
    ProviderError,
    QuizGenerationError,
    QuizValidationError,
)
from .models import Quiz, QuizSettings
from .provider import ContentProvider
from .request import build_request
from .validator import IssueCode, validate_quiz

__all__ = ["describe_failure", "generate_quiz"]

_MALFORMED_MESSAGE = (
    "The AI's response was not in the correct format. Please try modifying "
    "your request."
)
_CREDENTIALS_MESSAGE = (
    "The API key is invalid or missing. Please check your configuration."
)


def generate_quiz(
    settings: QuizSettings,
    provider: ContentProvider,
    *,
    logger: Optional[logging.Logger] = None,
) -> Quiz:
    """Build the request, call ``provider`` and validate the candidate.

    Raises :class:`QuizGenerationError` carrying a message suitable for the
    end user; the original failure is kept on ``cause``. No partial quiz is
    ever returned.
    """

    log = logger or logging.getLogger(__name__)
    request = build_request(settings)
    log.info(
        "Quiz generation started",
        extra={
            "topic": settings.topic,
            "num_questions": settings.num_questions,
            "question_type": settings.question_type.value,
            "difficulty": settings.difficulty.value,
            "language": request.language,
            "has_document": settings.has_document,
        },
    )
    try:
        candidate = provider.generate(request)
        quiz = validate_quiz(candidate, fallback_topic=settings.topic).unwrap()
    except QuizValidationError as exc:
        for issue in exc.issues:
            log.warning(
                "Quiz validation issue",
                extra={
                    "code": issue.code.value,
                    "question_index": issue.question_index,
                    "detail": issue.message,
                },
            )
        raise QuizGenerationError(describe_failure(exc), cause=exc) from exc
    except (ProviderError, MissingCredentialsError) as exc:
        log.error(
            "Quiz generation failed",
            extra={"error": str(exc), "error_type": type(exc).__name__},
        )
        raise QuizGenerationError(describe_failure(exc), cause=exc) from exc

    log.info(
        "Quiz generation succeeded",
        extra={"topic": quiz.topic, "questions": len(quiz)},
    )
    return quiz


def describe_failure(exc: BaseException) -> str:
    """Map a generation failure to the message shown to the user."""

    if isinstance(exc, QuizGenerationError):
        return exc.message
    if isinstance(exc, MissingCredentialsError):
        return _CREDENTIALS_MESSAGE
    if isinstance(exc, ProviderError):
        if isinstance(
            exc.__cause__, (AuthenticationError, MissingCredentialsError)
        ):
            return _CREDENTIALS_MESSAGE
        if isinstance(exc.__cause__, json.JSONDecodeError):
            return _MALFORMED_MESSAGE
    if isinstance(exc, QuizValidationError) and exc.issues:
        return _describe_issue(exc)
    return f"Failed to generate quiz: {_detail(exc)}. Please try again."


def _describe_issue(exc: QuizValidationError) -> str:
    issue = exc.issues[0]
    if issue.code is IssueCode.MALFORMED_QUIZ:
        return _MALFORMED_MESSAGE
    if issue.code is IssueCode.INVALID_OPTIONS:
        return (
            "The AI generated a question with invalid options. Please try "
            "again, or adjust your topic to be more specific."
        )
    if issue.code is IssueCode.ANSWER_NOT_IN_OPTIONS:
        return (
            "The AI generated a question where the correct answer was not in "
            "the options list. Please try again."
        )
    if issue.code is IssueCode.UNKNOWN_QUESTION_TYPE:
        return (
            "The AI generated an unknown question type: "
            f"'{issue.value}'. Please try again."
        )
    return f"Failed to generate quiz: {_detail(exc)}. Please try again."


def _detail(exc: BaseException) -> str:
    return (str(exc) or type(exc).__name__).rstrip(". ")
