"""Rich renderables for quiz results, history listings and folders."""

from __future__ import annotations

from collections import Counter
from typing import Iterable, Sequence

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..models import Folder, QuizResult, format_clock, score_band

__all__ = [
    "BAND_STYLES",
    "render_folders",
    "render_history",
    "render_result",
]

BAND_STYLES = {"high": "green", "medium": "yellow", "low": "red"}


def render_result(
    console: Console,
    result: QuizResult,
    *,
    show_explanations: bool = True,
) -> None:
    """Print the score overview and a per-question breakdown."""

    band = BAND_STYLES[score_band(result.percentage)]
    console.print()
    console.rule(Text(f"Results: {result.quiz.topic}", style="bold magenta"))

    overview = Table(
        show_header=False,
        box=box.MINIMAL_DOUBLE_HEAD,
        expand=False,
    )
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Result id", result.id)
    overview.add_row(
        "Score",
        Text(f"{result.score}/{result.total_questions}", style=f"bold {band}"),
    )
    overview.add_row(
        "Percentage", Text(f"{result.percentage:.1f}%", style=band)
    )
    overview.add_row("Answered", str(result.answered_count))
    overview.add_row("Time taken", format_clock(result.time_taken))
    overview.add_row("Difficulty", result.settings.difficulty.value)
    if result.tags:
        overview.add_row("Tags", ", ".join(result.tags))
    console.print(overview)

    responses = Table(title="Responses", box=box.SIMPLE, expand=True)
    responses.add_column("#", justify="right")
    responses.add_column("Question", overflow="fold")
    responses.add_column("Your answer", overflow="fold")
    responses.add_column("Correct answer", overflow="fold")
    responses.add_column("Result", justify="center")

    for index, question in enumerate(result.quiz.questions):
        answer = result.user_answers[index]
        correct = result.is_correct(index)
        responses.add_row(
            str(index + 1),
            question.question_text,
            answer if answer is not None else Text("Not answered", "dim"),
            question.correct_answer,
            Text("✔", "green") if correct else Text("✘", "red"),
        )
    console.print(responses)

    if not show_explanations:
        return
    for index, question in enumerate(result.quiz.questions):
        if not question.explanation:
            continue
        border = "green" if result.is_correct(index) else "red"
        console.print(
            Panel(
                question.explanation,
                title=f"Explanation: question {index + 1}",
                border_style=border,
            )
        )


def render_history(
    console: Console,
    results: Sequence[QuizResult],
    folders: Iterable[Folder],
    *,
    title: str = "Quiz history",
) -> None:
    """Print one row per stored result in the order given."""

    if not results:
        console.print(
            Panel(
                "No saved quizzes match.",
                title=title,
                border_style="yellow",
            )
        )
        return

    names = {folder.id: folder.name for folder in folders}
    table = Table(title=title, box=box.SIMPLE, expand=True)
    table.add_column("Id", style="cyan", no_wrap=True)
    table.add_column("Topic", overflow="fold")
    table.add_column("Score", justify="right")
    table.add_column("Time", justify="right")
    table.add_column("Folder")
    table.add_column("Tags", overflow="fold")

    for result in results:
        band = BAND_STYLES[score_band(result.percentage)]
        table.add_row(
            result.id,
            result.quiz.topic or result.settings.topic,
            Text(
                f"{result.score}/{result.total_questions} "
                f"({result.percentage:.0f}%)",
                style=band,
            ),
            format_clock(result.time_taken),
            names.get(result.folder_id, result.folder_id),
            ", ".join(result.tags),
        )
    console.print(table)


def render_folders(
    console: Console,
    folders: Iterable[Folder],
    results: Iterable[QuizResult] = (),
) -> None:
    counts = Counter(result.folder_id for result in results)
    table = Table(title="Folders", box=box.SIMPLE, expand=False)
    table.add_column("Id", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Quizzes", justify="right")
    for folder in folders:
        table.add_row(folder.id, folder.name, str(counts.get(folder.id, 0)))
    console.print(table)
