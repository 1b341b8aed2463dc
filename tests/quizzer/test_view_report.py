from __future__ import annotations

import io

from rich.console import Console

from fixtures import make_result

from magic_mock.quizzer.models import Folder, UNCATEGORIZED_FOLDER_ID
from magic_mock.quizzer.view.report import (
    render_folders,
    render_history,
    render_result,
)


def _console():
    return Console(file=io.StringIO(), width=120, color_system=None)


def test_render_result_shows_score_and_answers():
    console = _console()
    result = make_result("100", score=1, tags=["exam"])

    render_result(console, result)

    out = console.file.getvalue()
    assert "Results: Geography" in out
    assert "1/2" in out
    assert "50.0%" in out
    assert "00:30" in out
    assert "Not answered" in out
    assert "exam" in out
    assert "Explanation: question 1" in out


def test_render_result_can_hide_explanations():
    console = _console()

    render_result(console, make_result("100"), show_explanations=False)

    assert "Explanation" not in console.file.getvalue()


def test_render_history_uses_folder_names():
    console = _console()
    folders = [
        Folder(UNCATEGORIZED_FOLDER_ID, "Uncategorized"),
        Folder("55", "Revision"),
    ]
    results = [
        make_result("1", topic="Rivers", folder_id="55"),
        make_result("2", topic="Algebra", tags=["exam", "math"]),
    ]

    render_history(console, results, folders)

    out = console.file.getvalue()
    assert "Rivers" in out
    assert "Revision" in out
    assert "Uncategorized" in out
    assert "exam, math" in out


def test_render_history_empty():
    console = _console()

    render_history(console, [], [], title="Week 1")

    out = console.file.getvalue()
    assert "No saved quizzes match." in out
    assert "Week 1" in out


def test_render_folders_counts_results():
    console = _console()
    folders = [
        Folder(UNCATEGORIZED_FOLDER_ID, "Uncategorized"),
        Folder("55", "Revision"),
    ]
    results = [
        make_result("1", folder_id="55"),
        make_result("2", folder_id="55"),
    ]

    render_folders(console, folders, results)

    lines = console.file.getvalue().splitlines()
    revision = next(line for line in lines if "Revision" in line)
    assert revision.rstrip().endswith("2")
    uncategorized = next(line for line in lines if "Uncategorized" in line)
    assert uncategorized.rstrip().endswith("0")
