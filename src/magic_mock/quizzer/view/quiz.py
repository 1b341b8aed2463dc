"""Textual front end for a timed ``QuizSession``.

The app owns a session and translates key presses, button clicks and a one
second interval timer into session events. Provider translation runs in a
thread worker and its reply is applied back on the UI thread.
"""

from __future__ import annotations

from typing import Optional, Sequence

from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.timer import Timer
from textual.widget import Widget
from textual.widgets import Button, Input, Static

from ..errors import ProviderError, TranslationMismatch
from ..models import Question, QuizResult, format_clock
from ..session import QuizSession, SessionState, TranslationRequest, Translator

__all__ = ["TRANSLATION_LANGUAGES", "QuestionView", "QuizApp"]

TRANSLATION_LANGUAGES: tuple[str, ...] = (
    "Hindi",
    "Spanish",
    "French",
    "German",
    "Japanese",
    "Bengali",
    "Punjabi",
    "Russian",
    "Portuguese",
    "Urdu",
    "Marathi",
    "Telugu",
    "Tamil",
)


class QuizApp(App[Optional[QuizResult]]):
    """Run one session; ``run()`` returns the result or ``None`` on quit."""

    CSS_PATH = None
    CSS = """
#header { height: 1; }
#timer { width: 12; text-style: bold; }
#options Button.selected { background: $accent; color: black; }
#translation { color: $text-muted; }
#status { color: $warning; }
"""
    BINDINGS = [
        ("n", "next", "Next"),
        ("p", "prev", "Prev"),
        ("k", "skip", "Skip"),
        ("space", "toggle_pause", "Pause"),
        ("1", "choose(0)", "Option 1"),
        ("2", "choose(1)", "Option 2"),
        ("3", "choose(2)", "Option 3"),
        ("4", "choose(3)", "Option 4"),
        ("t", "translate", "Translate"),
        ("l", "cycle_language", "Language"),
        ("s", "submit", "Submit"),
        ("escape", "quit_session", "Quit"),
    ]

    def __init__(
        self,
        session: QuizSession,
        *,
        translator: Optional[Translator] = None,
        translation_language: str = TRANSLATION_LANGUAGES[0],
    ) -> None:
        super().__init__()
        self.session = session
        self._quiz_translator = translator
        self._translate_language = translation_language
        self._tick_timer: Optional[Timer] = None
        self._live = False
        self._status_message = ""
        self.result: Optional[QuizResult] = None
        session.add_listener(_SubmitForwarder(self))

    def compose(self) -> ComposeResult:
        with Horizontal(id="header"):
            yield Static(self._timer_text(), id="timer")
            yield Static(self._progress_text(), id="progress")
        with Container(id="stage"):
            yield self._question_view()
        yield Static(self._status_message, id="status")
        with Horizontal(id="footer"):
            yield Button("Prev", id="prev")
            yield Button("Skip", id="skip")
            yield Button("Next", id="next")
            yield Button("Submit", id="submit")

    def on_mount(self) -> None:
        self._live = True
        self._tick_timer = self.set_interval(1, self.handle_tick)

    def on_unmount(self) -> None:
        self._stop_timer()
        self._live = False

    # Session plumbing ---------------------------------------------------

    def handle_tick(self) -> None:
        if self.session.tick():
            self._refresh_header()

    def handle_submit(self, result: QuizResult) -> None:
        self.result = result
        self._stop_timer()
        if self._live:
            self.exit(result)

    @property
    def translation_language(self) -> str:
        return self._translate_language

    @property
    def status_text(self) -> str:
        return self._status_message

    def choose_option(self, index: int) -> bool:
        if self.session.state is SessionState.PAUSED:
            return False
        question = self.session.current_question
        if not question.is_multiple_choice:
            return False
        if not 0 <= index < len(question.options):
            return False
        self.session.answer(question.options[index])
        self._refresh_stage()
        return True

    def answer_blank(self, value: str) -> bool:
        if self.session.state is SessionState.PAUSED:
            return False
        if self.session.current_question.is_multiple_choice:
            return False
        self.session.answer(value if value.strip() else None)
        self._refresh_header()
        return True

    # Actions ------------------------------------------------------------

    def action_next(self) -> None:
        if self.session.next():
            self._refresh_stage()

    def action_prev(self) -> None:
        if self.session.previous():
            self._refresh_stage()

    def action_skip(self) -> None:
        if self.session.skip():
            self._refresh_stage()

    def action_choose(self, index: int) -> None:
        self.choose_option(index)

    def action_toggle_pause(self) -> None:
        if not self.session.toggle_pause():
            return
        paused = self.session.state is SessionState.PAUSED
        if self._tick_timer is not None:
            if paused:
                self._tick_timer.pause()
            else:
                self._tick_timer.resume()
        self._set_status("Paused. Press space to resume." if paused else "")
        self._refresh_stage()

    def action_cycle_language(self) -> None:
        try:
            position = TRANSLATION_LANGUAGES.index(self._translate_language)
        except ValueError:
            position = -1
        self._translate_language = TRANSLATION_LANGUAGES[
            (position + 1) % len(TRANSLATION_LANGUAGES)
        ]
        self._set_status(f"Translation language: {self._translate_language}")

    def action_translate(self) -> None:
        if self._quiz_translator is None:
            self._set_status("Translation is not available.")
            return
        request = self.session.begin_translation(self._translate_language)
        if request is None:
            return
        self._set_status(f"Translating to {self._translate_language}...")
        self.run_worker(
            lambda: self._translate_in_thread(request),
            thread=True,
            group="translation",
        )

    def action_submit(self) -> None:
        self.session.submit()

    def action_quit_session(self) -> None:
        self._stop_timer()
        self.exit(None)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id or ""
        if button_id.startswith("option-"):
            self.choose_option(int(button_id.rsplit("-", 1)[-1]))
        elif button_id == "submit":
            self.action_submit()
        elif button_id == "next":
            self.action_next()
        elif button_id == "prev":
            self.action_prev()
        elif button_id == "skip":
            self.action_skip()

    def on_input_changed(self, event: Input.Changed) -> None:
        if event.input.id == "blank":
            self.answer_blank(event.value)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "blank":
            self.answer_blank(event.value)
            self.set_focus(None)

    # Translation --------------------------------------------------------

    def _translate_in_thread(self, request: TranslationRequest) -> None:
        if self._quiz_translator is None:
            error = ProviderError("No translator is configured")
            self.call_from_thread(self.apply_translation_error, request, error)
            return
        try:
            translations = self._quiz_translator.translate(
                list(request.texts), request.language
            )
        except ProviderError as exc:
            self.call_from_thread(self.apply_translation_error, request, exc)
            return
        self.call_from_thread(self.apply_translation, request, translations)

    def apply_translation(
        self, request: TranslationRequest, translations: Sequence[str]
    ) -> None:
        try:
            applied = self.session.complete_translation(request, translations)
        except TranslationMismatch as exc:
            self.apply_translation_error(request, exc)
            return
        if applied:
            self._set_status("")
            self._refresh_stage()

    def apply_translation_error(
        self, request: TranslationRequest, error: Exception
    ) -> None:
        self.session.fail_translation(request, error)
        if request.question_index == self.session.current_question_index:
            self._set_status(f"Translation failed: {error}")

    # Rendering ----------------------------------------------------------

    def _question_view(self) -> "QuestionView":
        session = self.session
        overlay = session.translation
        return QuestionView(
            session.current_question,
            index=session.current_question_index + 1,
            total=session.total_questions,
            selected=session.current_answer,
            translated_text=overlay.question_text if overlay else None,
            translated_options=overlay.options if overlay else (),
            paused=session.state is SessionState.PAUSED,
        )

    def _timer_text(self) -> str:
        return format_clock(self.session.time_left)

    def _progress_text(self) -> str:
        session = self.session
        return (
            f"Question {session.current_question_index + 1}"
            f"/{session.total_questions} | "
            f"Answered {session.answered_count}/{session.total_questions}"
        )

    def _refresh_header(self) -> None:
        if not self._live:
            return
        self.query_one("#timer", Static).update(self._timer_text())
        self.query_one("#progress", Static).update(self._progress_text())

    def _refresh_stage(self) -> None:
        if not self._live:
            return
        stage = self.query_one("#stage", Container)
        stage.remove_children()
        stage.mount(self._question_view())
        self._refresh_header()

    def _set_status(self, text: str) -> None:
        self._status_message = text
        if self._live:
            self.query_one("#status", Static).update(text)

    def _stop_timer(self) -> None:
        if self._tick_timer is not None:
            self._tick_timer.stop()
            self._tick_timer = None


class _SubmitForwarder:
    def __init__(self, app: QuizApp) -> None:
        self._app = app

    def on_submit(self, result: QuizResult) -> None:
        self._app.handle_submit(result)


class QuestionView(Widget):
    """Render one question with its options or a blank to fill in."""

    DEFAULT_CSS = """
QuestionView { height: auto; }
"""

    def __init__(
        self,
        question: Question,
        index: int,
        total: int,
        *,
        selected: Optional[str] = None,
        translated_text: Optional[str] = None,
        translated_options: Sequence[str] = (),
        paused: bool = False,
    ) -> None:
        super().__init__()
        self.question = question
        self.index = index
        self.total = total
        self.selected = selected
        self.translated_text = translated_text
        self.translated_options = tuple(translated_options)
        self.paused = paused

    def option_labels(self) -> list[str]:
        labels = []
        for position, option in enumerate(self.question.options):
            label = f"{position + 1}) {option}"
            if position < len(self.translated_options):
                label += f"  [{self.translated_options[position]}]"
            labels.append(label)
        return labels

    def compose(self) -> ComposeResult:
        if self.paused:
            yield Static("Quiz paused.", id="paused")
            return
        yield Static(self.question.question_text, id="question")
        if self.translated_text:
            yield Static(self.translated_text, id="translation")
        if self.question.is_multiple_choice:
            with Vertical(id="options"):
                for position, label in enumerate(self.option_labels()):
                    button = Button(label, id=f"option-{position}")
                    if self.question.options[position] == self.selected:
                        button.add_class("selected")
                    yield button
        else:
            yield Input(
                value=self.selected or "",
                placeholder="Type your answer and press Enter",
                id="blank",
            )
