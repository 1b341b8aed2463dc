"""Timed quiz session modelled as an event-driven state machine.

A ``QuizSession`` owns one attempt at a ``Quiz``. Everything that changes it,
including the once-per-second countdown, arrives as an event passed to
``dispatch`` so the session can be driven by synthetic ticks in tests and by a
Textual interval timer in the UI. The session raises no errors for ignored
input: out-of-range navigation and events after submission are no-ops.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from itertools import count
from typing import Callable, Iterable, Optional, Protocol, Sequence, Union

from .errors import ProviderError, TranslationMismatch
from .models import (
    UNCATEGORIZED_FOLDER_ID,
    Question,
    Quiz,
    QuizResult,
    QuizSettings,
    next_timestamp_id,
)

__all__ = [
    "Answer",
    "Goto",
    "Next",
    "Pause",
    "Previous",
    "QuizSession",
    "Resume",
    "SessionEvent",
    "SessionListener",
    "SessionState",
    "Skip",
    "Submit",
    "Tick",
    "TogglePause",
    "TranslationOverlay",
    "TranslationRequest",
    "Translator",
]

logger = logging.getLogger(__name__)


class SessionState(Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    TRANSLATION_PENDING = "translation_pending"
    SUBMITTED = "submitted"


@dataclass(frozen=True)
class Tick:
    """One elapsed second."""


@dataclass(frozen=True)
class TogglePause:
    pass


@dataclass(frozen=True)
class Pause:
    pass


@dataclass(frozen=True)
class Resume:
    pass


@dataclass(frozen=True)
class Answer:
    value: Optional[str]


@dataclass(frozen=True)
class Goto:
    index: int


@dataclass(frozen=True)
class Next:
    pass


@dataclass(frozen=True)
class Previous:
    pass


@dataclass(frozen=True)
class Skip:
    """Move on without answering; identical to ``Next``."""


@dataclass(frozen=True)
class Submit:
    pass


SessionEvent = Union[
    Tick,
    TogglePause,
    Pause,
    Resume,
    Answer,
    Goto,
    Next,
    Previous,
    Skip,
    Submit,
]


@dataclass(frozen=True)
class TranslationRequest:
    """Snapshot of what was sent to the translator for one question."""

    token: int
    question_index: int
    texts: tuple[str, ...]
    language: str


@dataclass(frozen=True)
class TranslationOverlay:
    question_index: int
    language: str
    question_text: str
    options: tuple[str, ...]


class SessionListener(Protocol):
    def on_submit(self, result: QuizResult) -> None:
        """Called exactly once when the session is scored."""


class Translator(Protocol):
    def translate(
        self, texts: Sequence[str], target_language: str
    ) -> list[str]: ...


class QuizSession:
    """State machine for a single timed attempt at ``quiz``."""

    def __init__(
        self,
        quiz: Quiz,
        settings: QuizSettings,
        *,
        id_factory: Optional[Callable[[], str]] = None,
        clock: Optional[Callable[[], datetime]] = None,
        listeners: Iterable[SessionListener] = (),
    ) -> None:
        if not quiz.questions:
            raise ValueError("quiz must contain at least one question")
        self._quiz = quiz
        self._settings = settings
        self._id_factory = id_factory or next_timestamp_id
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._listeners = list(listeners)

        self._index = 0
        self._time_left = settings.duration_seconds
        self._answers: list[Optional[str]] = [None] * len(quiz.questions)
        self._paused = False
        self._pending: Optional[TranslationRequest] = None
        self._overlay: Optional[TranslationOverlay] = None
        self._tokens = count(1)
        self._result: Optional[QuizResult] = None
        self._auto_submitted = False

    # Read-only view -----------------------------------------------------

    @property
    def quiz(self) -> Quiz:
        return self._quiz

    @property
    def settings(self) -> QuizSettings:
        return self._settings

    @property
    def state(self) -> SessionState:
        if self._result is not None:
            return SessionState.SUBMITTED
        if self._paused:
            return SessionState.PAUSED
        if self._pending is not None:
            return SessionState.TRANSLATION_PENDING
        return SessionState.ACTIVE

    @property
    def time_left(self) -> int:
        return self._time_left

    @property
    def elapsed(self) -> int:
        return self._settings.duration_seconds - self._time_left

    @property
    def current_question_index(self) -> int:
        return self._index

    @property
    def current_question(self) -> Question:
        return self._quiz.questions[self._index]

    @property
    def total_questions(self) -> int:
        return len(self._quiz.questions)

    @property
    def is_last_question(self) -> bool:
        return self._index == self.total_questions - 1

    @property
    def user_answers(self) -> tuple[Optional[str], ...]:
        return tuple(self._answers)

    @property
    def current_answer(self) -> Optional[str]:
        return self._answers[self._index]

    @property
    def answered_count(self) -> int:
        return sum(1 for answer in self._answers if answer is not None)

    @property
    def translation(self) -> Optional[TranslationOverlay]:
        return self._overlay

    @property
    def pending_translation(self) -> Optional[TranslationRequest]:
        return self._pending

    @property
    def result(self) -> Optional[QuizResult]:
        return self._result

    @property
    def auto_submitted(self) -> bool:
        return self._auto_submitted

    @property
    def is_submitted(self) -> bool:
        return self._result is not None

    def add_listener(self, listener: SessionListener) -> None:
        self._listeners.append(listener)

    # Transitions --------------------------------------------------------

    def dispatch(self, event: SessionEvent) -> bool:
        """Apply ``event`` and report whether it changed the session."""

        if self._result is not None:
            return False
        if isinstance(event, Tick):
            return self._on_tick()
        if isinstance(event, TogglePause):
            return self._set_paused(not self._paused)
        if isinstance(event, Pause):
            return self._set_paused(True)
        if isinstance(event, Resume):
            return self._set_paused(False)
        if isinstance(event, Answer):
            self._answers[self._index] = event.value
            return True
        if isinstance(event, Goto):
            return self._move_to(event.index)
        if isinstance(event, (Next, Skip)):
            return self._move_to(self._index + 1)
        if isinstance(event, Previous):
            return self._move_to(self._index - 1)
        if isinstance(event, Submit):
            self._submit(auto=False)
            return True
        raise TypeError(f"Unsupported session event: {event!r}")

    def tick(self) -> bool:
        return self.dispatch(Tick())

    def toggle_pause(self) -> bool:
        return self.dispatch(TogglePause())

    def pause(self) -> bool:
        return self.dispatch(Pause())

    def resume(self) -> bool:
        return self.dispatch(Resume())

    def answer(self, value: Optional[str]) -> bool:
        return self.dispatch(Answer(value))

    def goto(self, index: int) -> bool:
        return self.dispatch(Goto(index))

    def next(self) -> bool:
        return self.dispatch(Next())

    def previous(self) -> bool:
        return self.dispatch(Previous())

    def skip(self) -> bool:
        return self.dispatch(Skip())

    def submit(self) -> QuizResult:
        """Score the session; later calls return the same result."""

        self.dispatch(Submit())
        if self._result is None:
            raise RuntimeError("Session did not produce a result")
        return self._result

    # Translation --------------------------------------------------------

    def begin_translation(self, language: str) -> Optional[TranslationRequest]:
        """Start translating the current question.

        Returns ``None`` when the session is paused or submitted. A new
        request supersedes any request still pending.
        """

        if self.state not in (
            SessionState.ACTIVE,
            SessionState.TRANSLATION_PENDING,
        ):
            return None
        question = self.current_question
        request = TranslationRequest(
            token=next(self._tokens),
            question_index=self._index,
            texts=(question.question_text, *question.options),
            language=language,
        )
        self._pending = request
        self._overlay = None
        return request

    def complete_translation(
        self, request: TranslationRequest, translations: Sequence[str]
    ) -> bool:
        """Install the overlay for ``request`` if it is still pending.

        Stale replies are discarded and ``False`` is returned. A reply whose
        length differs from the request raises ``TranslationMismatch`` and
        leaves the overlay empty.
        """

        if self._pending is None or request.token != self._pending.token:
            logger.debug(
                "Discarding stale translation",
                extra={
                    "token": request.token,
                    "question_index": request.question_index,
                },
            )
            return False
        self._pending = None
        if len(translations) != len(request.texts):
            raise TranslationMismatch(len(request.texts), len(translations))
        self._overlay = TranslationOverlay(
            question_index=request.question_index,
            language=request.language,
            question_text=translations[0],
            options=tuple(translations[1:]),
        )
        return True

    def fail_translation(
        self, request: TranslationRequest, error: BaseException
    ) -> bool:
        if self._pending is None or request.token != self._pending.token:
            return False
        self._pending = None
        logger.warning(
            "Translation failed",
            extra={
                "question_index": request.question_index,
                "language": request.language,
                "error": str(error),
            },
        )
        return True

    def translate(
        self, translator: Translator, language: str
    ) -> Optional[TranslationOverlay]:
        """Translate the current question synchronously.

        Provider failures, including length mismatches, are re-raised after
        the pending request is cleared; the session stays usable.
        """

        request = self.begin_translation(language)
        if request is None:
            return None
        try:
            translations = translator.translate(list(request.texts), language)
        except ProviderError as exc:
            self.fail_translation(request, exc)
            raise
        try:
            self.complete_translation(request, translations)
        except TranslationMismatch as exc:
            self.fail_translation(request, exc)
            raise
        return self._overlay

    # Internals ----------------------------------------------------------

    def _on_tick(self) -> bool:
        if self.state not in (
            SessionState.ACTIVE,
            SessionState.TRANSLATION_PENDING,
        ):
            return False
        self._time_left = max(0, self._time_left - 1)
        if self._time_left == 0:
            self._submit(auto=True)
        return True

    def _set_paused(self, paused: bool) -> bool:
        if self._paused == paused:
            return False
        self._paused = paused
        return True

    def _move_to(self, index: int) -> bool:
        if not 0 <= index < self.total_questions or index == self._index:
            return False
        self._index = index
        self._overlay = None
        self._pending = None
        return True

    def _submit(self, *, auto: bool) -> None:
        total = self._settings.duration_seconds
        time_taken = min(max(total - self._time_left, 0), total)
        score = sum(
            1
            for answer, question in zip(self._answers, self._quiz.questions)
            if answer is not None and answer == question.correct_answer
        )
        self._pending = None
        self._paused = False
        self._auto_submitted = auto
        self._result = QuizResult(
            id=self._id_factory(),
            quiz=self._quiz,
            settings=self._settings,
            user_answers=tuple(self._answers),
            score=score,
            time_taken=time_taken,
            folder_id=UNCATEGORIZED_FOLDER_ID,
            tags=(),
            created_at=self._clock().isoformat(),
        )
        logger.info(
            "Quiz session submitted",
            extra={
                "result_id": self._result.id,
                "score": score,
                "total": self.total_questions,
                "time_taken": time_taken,
                "auto_submitted": auto,
            },
        )
        for listener in self._listeners:
            listener.on_submit(self._result)
