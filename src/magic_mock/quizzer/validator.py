"""Structural validation of candidate quizzes returned by the provider.

Candidates are untrusted JSON. ``validate_quiz`` checks each question in
order, stops checking a question at its first broken rule, and moves on to the
next one so callers can report every offending question. Two conditions are
fatal for the whole quiz: an unknown question type and an empty question
list. Fill-in-the-blank options are the only field that gets repaired;
malformed multiple-choice data is always rejected.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Sequence

from .errors import QuizValidationError
from .models import Question, QuestionKind, Quiz

__all__ = [
    "MC_OPTION_COUNT",
    "IssueCode",
    "ValidationIssue",
    "ValidationResult",
    "validate_quiz",
]

MC_OPTION_COUNT = 4


class IssueCode(Enum):
    MALFORMED_QUIZ = "malformed_quiz"
    EMPTY_QUIZ = "empty_quiz"
    MISSING_QUESTION_TEXT = "missing_question_text"
    UNKNOWN_QUESTION_TYPE = "unknown_question_type"
    INVALID_OPTIONS = "invalid_options"
    ANSWER_NOT_IN_OPTIONS = "answer_not_in_options"


_FATAL = frozenset(
    {
        IssueCode.MALFORMED_QUIZ,
        IssueCode.EMPTY_QUIZ,
        IssueCode.UNKNOWN_QUESTION_TYPE,
    }
)


@dataclass(frozen=True)
class ValidationIssue:
    code: IssueCode
    message: str
    question_index: int | None = None
    value: str | None = None

    @property
    def is_fatal(self) -> bool:
        return self.code in _FATAL

    def describe(self) -> str:
        if self.question_index is None:
            return self.message
        return f"question {self.question_index + 1}: {self.message}"


@dataclass(frozen=True)
class ValidationResult:
    """Either a trusted ``Quiz`` or the issues that prevented it."""

    quiz: Quiz | None
    issues: tuple[ValidationIssue, ...] = ()

    @property
    def ok(self) -> bool:
        return self.quiz is not None

    def unwrap(self) -> Quiz:
        if self.quiz is None:
            raise QuizValidationError(self.issues)
        return self.quiz


class _Rejected(Exception):
    def __init__(self, issue: ValidationIssue) -> None:
        super().__init__(issue.message)
        self.issue = issue


def validate_quiz(
    candidate: object, *, fallback_topic: str = ""
) -> ValidationResult:
    """Validate ``candidate`` and return a ``ValidationResult``."""

    if not isinstance(candidate, Mapping):
        return _failed(
            ValidationIssue(
                IssueCode.MALFORMED_QUIZ, "quiz payload must be a JSON object"
            )
        )
    raw_questions = candidate.get("questions")
    if not isinstance(raw_questions, list):
        return _failed(
            ValidationIssue(
                IssueCode.MALFORMED_QUIZ,
                "quiz payload is missing the 'questions' array",
            )
        )
    if not raw_questions:
        return _failed(
            ValidationIssue(IssueCode.EMPTY_QUIZ, "quiz contains no questions")
        )

    questions: list[Question] = []
    issues: list[ValidationIssue] = []
    for index, raw in enumerate(raw_questions):
        try:
            questions.append(_validate_question(raw, index))
        except _Rejected as rejected:
            issues.append(rejected.issue)
            if rejected.issue.is_fatal:
                break

    if issues:
        return ValidationResult(quiz=None, issues=tuple(issues))

    topic = candidate.get("topic")
    if not isinstance(topic, str) or not topic.strip():
        topic = fallback_topic
    return ValidationResult(quiz=Quiz(topic=topic, questions=tuple(questions)))


def _failed(issue: ValidationIssue) -> ValidationResult:
    return ValidationResult(quiz=None, issues=(issue,))


def _validate_question(raw: Any, index: int) -> Question:
    if not isinstance(raw, Mapping):
        raise _Rejected(
            ValidationIssue(
                IssueCode.MISSING_QUESTION_TEXT,
                "question entry must be an object",
                index,
            )
        )
    text = raw.get("questionText")
    if not isinstance(text, str) or not text.strip():
        raise _Rejected(
            ValidationIssue(
                IssueCode.MISSING_QUESTION_TEXT,
                "questionText is missing or empty",
                index,
            )
        )

    raw_type = raw.get("questionType")
    try:
        kind = QuestionKind(raw_type)
    except ValueError:
        raise _Rejected(
            ValidationIssue(
                IssueCode.UNKNOWN_QUESTION_TYPE,
                f"unknown question type '{raw_type}'",
                index,
                str(raw_type),
            )
        ) from None

    explanation = raw.get("explanation")
    explanation = explanation if isinstance(explanation, str) else ""

    if kind is QuestionKind.FILL_IN_THE_BLANK:
        answer = raw.get("correctAnswer")
        return Question(
            question_text=text,
            question_type=kind,
            options=(),
            correct_answer="" if answer is None else str(answer),
            explanation=explanation,
        )

    options = _validate_options(raw.get("options"), index)
    answer = raw.get("correctAnswer")
    if not isinstance(answer, str) or answer not in options:
        raise _Rejected(
            ValidationIssue(
                IssueCode.ANSWER_NOT_IN_OPTIONS,
                f"correct answer {answer!r} is not one of the options",
                index,
            )
        )
    return Question(
        question_text=text,
        question_type=kind,
        options=options,
        correct_answer=answer,
        explanation=explanation,
    )


def _validate_options(raw: Any, index: int) -> tuple[str, ...]:
    def reject(message: str) -> _Rejected:
        return _Rejected(
            ValidationIssue(IssueCode.INVALID_OPTIONS, message, index)
        )

    if not isinstance(raw, Sequence) or isinstance(raw, (str, bytes)):
        raise reject("options must be a list")
    if len(raw) != MC_OPTION_COUNT:
        raise reject(
            f"expected exactly {MC_OPTION_COUNT} options, got {len(raw)}"
        )
    if not all(isinstance(opt, str) and opt.strip() for opt in raw):
        raise reject("every option must be a non-empty string")
    # "Paris" and " paris" read as the same choice to a quiz taker.
    if len({opt.strip().casefold() for opt in raw}) != len(raw):
        raise reject("options must be distinct")
    return tuple(raw)
