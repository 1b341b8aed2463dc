"""Quiz data structures shared by the generation pipeline and sessions.

Every type serializes to the camelCase JSON shape kept in the history store
(``to_dict``/``from_dict``), so stored results can be replayed unchanged.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, MutableMapping

__all__ = [
    "UNCATEGORIZED_FOLDER_ID",
    "UNCATEGORIZED_FOLDER_NAME",
    "Difficulty",
    "Folder",
    "Question",
    "QuestionKind",
    "QuestionType",
    "Quiz",
    "QuizResult",
    "QuizSettings",
    "TimestampIdFactory",
    "default_folders",
    "format_clock",
    "next_timestamp_id",
    "parse_tags",
    "score_band",
]

UNCATEGORIZED_FOLDER_ID = "uncategorized"
UNCATEGORIZED_FOLDER_NAME = "Uncategorized"


def _normalize_label(value: str) -> str:
    return "".join(ch for ch in value.lower() if ch.isalnum())


class _LabelledEnum(Enum):
    @classmethod
    def from_value(cls, value: "str | _LabelledEnum"):
        if isinstance(value, cls):
            return value
        wanted = _normalize_label(str(value))
        for member in cls:
            if wanted in (
                _normalize_label(member.value),
                _normalize_label(member.name),
            ):
                return member
        expected = ", ".join(member.value for member in cls)
        raise ValueError(
            f"Unknown {cls.__name__} '{value}'. Expected one of: {expected}."
        )


class QuestionType(_LabelledEnum):
    """Kind of questions requested in the quiz settings."""

    MULTIPLE_CHOICE = "Multiple Choice"
    FILL_IN_BLANK = "Fill in the Blank"
    MIXED = "Mixed"


class Difficulty(_LabelledEnum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class QuestionKind(Enum):
    """Wire tag of an individual generated question."""

    MULTIPLE_CHOICE = "multiple_choice"
    FILL_IN_THE_BLANK = "fill_in_the_blank"


@dataclass(frozen=True)
class QuizSettings:
    """Immutable generation request.

    When a document was uploaded, ``topic`` holds the document's file name
    and ``document_content`` its base64-encoded bytes.
    """

    topic: str
    num_questions: int
    question_type: QuestionType
    difficulty: Difficulty
    duration: int
    language: str = ""
    document_content: str | None = None

    def __post_init__(self) -> None:
        if not self.topic.strip():
            raise ValueError("topic must be a non-empty string")
        if self.num_questions <= 0:
            raise ValueError("num_questions must be a positive integer")
        if self.duration <= 0:
            raise ValueError("duration must be a positive number of minutes")

    @property
    def duration_seconds(self) -> int:
        return self.duration * 60

    @property
    def has_document(self) -> bool:
        return bool(self.document_content)

    def to_dict(self) -> MutableMapping[str, Any]:
        payload: MutableMapping[str, Any] = {
            "topic": self.topic,
            "numQuestions": self.num_questions,
            "questionType": self.question_type.value,
            "difficulty": self.difficulty.value,
            "duration": self.duration,
            "language": self.language,
        }
        if self.document_content:
            payload["documentContent"] = self.document_content
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "QuizSettings":
        return cls(
            topic=str(payload["topic"]),
            num_questions=int(payload["numQuestions"]),
            question_type=QuestionType.from_value(payload["questionType"]),
            difficulty=Difficulty.from_value(payload["difficulty"]),
            duration=int(payload["duration"]),
            language=str(payload.get("language") or ""),
            document_content=payload.get("documentContent") or None,
        )


@dataclass(frozen=True)
class Question:
    question_text: str
    question_type: QuestionKind
    options: tuple[str, ...]
    correct_answer: str
    explanation: str = ""

    @property
    def is_multiple_choice(self) -> bool:
        return self.question_type is QuestionKind.MULTIPLE_CHOICE

    def to_dict(self) -> MutableMapping[str, Any]:
        return {
            "questionText": self.question_text,
            "questionType": self.question_type.value,
            "options": list(self.options),
            "correctAnswer": self.correct_answer,
            "explanation": self.explanation,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Question":
        return cls(
            question_text=str(payload["questionText"]),
            question_type=QuestionKind(payload["questionType"]),
            options=tuple(str(opt) for opt in payload.get("options") or ()),
            correct_answer=str(payload["correctAnswer"]),
            explanation=str(payload.get("explanation") or ""),
        )


@dataclass(frozen=True)
class Quiz:
    topic: str
    questions: tuple[Question, ...]

    def __len__(self) -> int:
        return len(self.questions)

    def to_dict(self) -> MutableMapping[str, Any]:
        return {
            "topic": self.topic,
            "questions": [question.to_dict() for question in self.questions],
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Quiz":
        return cls(
            topic=str(payload.get("topic") or ""),
            questions=tuple(
                Question.from_dict(item) for item in payload["questions"]
            ),
        )


@dataclass(frozen=True)
class Folder:
    id: str
    name: str

    def to_dict(self) -> MutableMapping[str, Any]:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Folder":
        return cls(id=str(payload["id"]), name=str(payload["name"]))


def default_folders() -> list[Folder]:
    return [Folder(UNCATEGORIZED_FOLDER_ID, UNCATEGORIZED_FOLDER_NAME)]


@dataclass(frozen=True)
class QuizResult:
    """Scored outcome of one session, owning its quiz and settings."""

    id: str
    quiz: Quiz
    settings: QuizSettings
    user_answers: tuple[str | None, ...]
    score: int
    time_taken: int
    folder_id: str = UNCATEGORIZED_FOLDER_ID
    tags: tuple[str, ...] = field(default_factory=tuple)
    created_at: str = ""

    @property
    def total_questions(self) -> int:
        return len(self.quiz.questions)

    @property
    def score_ratio(self) -> float:
        if not self.total_questions:
            return 0.0
        return self.score / self.total_questions

    @property
    def percentage(self) -> float:
        return self.score_ratio * 100

    @property
    def answered_count(self) -> int:
        return sum(1 for answer in self.user_answers if answer is not None)

    def is_correct(self, index: int) -> bool:
        answer = self.user_answers[index]
        return (
            answer is not None
            and answer == self.quiz.questions[index].correct_answer
        )

    def with_folder(self, folder_id: str) -> "QuizResult":
        return replace(self, folder_id=folder_id)

    def with_tags(self, tags: Iterable[str]) -> "QuizResult":
        return replace(self, tags=tuple(tags))

    def to_dict(self) -> MutableMapping[str, Any]:
        payload: MutableMapping[str, Any] = {
            "id": self.id,
            "quiz": self.quiz.to_dict(),
            "settings": self.settings.to_dict(),
            "userAnswers": list(self.user_answers),
            "score": self.score,
            "timeTaken": self.time_taken,
            "folderId": self.folder_id,
            "tags": list(self.tags),
        }
        if self.created_at:
            payload["createdAt"] = self.created_at
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "QuizResult":
        answers = payload.get("userAnswers") or []
        quiz = Quiz.from_dict(payload["quiz"])
        if len(answers) != len(quiz.questions):
            raise ValueError(
                f"Result has {len(answers)} answers for "
                f"{len(quiz.questions)} questions"
            )
        return cls(
            id=str(payload["id"]),
            quiz=quiz,
            settings=QuizSettings.from_dict(payload["settings"]),
            user_answers=tuple(
                None if answer is None else str(answer) for answer in answers
            ),
            score=int(payload.get("score", 0)),
            time_taken=int(payload.get("timeTaken", 0)),
            folder_id=str(payload.get("folderId") or UNCATEGORIZED_FOLDER_ID),
            tags=tuple(str(tag) for tag in payload.get("tags") or ()),
            created_at=str(payload.get("createdAt") or ""),
        )


def format_clock(seconds: int) -> str:
    """Render a second count as ``MM:SS``."""

    seconds = max(0, int(seconds))
    minutes, secs = divmod(seconds, 60)
    return f"{minutes:02d}:{secs:02d}"


def parse_tags(raw: str | Iterable[str]) -> tuple[str, ...]:
    """Split comma-separated tag input into trimmed, unique labels."""

    parts = raw.split(",") if isinstance(raw, str) else list(raw)
    tags: list[str] = []
    for part in parts:
        tag = str(part).strip()
        if tag and tag not in tags:
            tags.append(tag)
    return tuple(tags)


def score_band(percentage: float) -> str:
    if percentage >= 80:
        return "high"
    if percentage >= 50:
        return "medium"
    return "low"


class TimestampIdFactory:
    """Mint millisecond timestamp ids that never repeat within a process."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> str:
        with self._lock:
            candidate = int(self._clock() * 1000)
            if candidate <= self._last:
                candidate = self._last + 1
            self._last = candidate
        return str(candidate)


next_timestamp_id = TimestampIdFactory()
