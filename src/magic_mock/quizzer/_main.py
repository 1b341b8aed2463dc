"""CLI entry point for quiz generation, timed sessions and history."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console

from magic_mock.core import config_templates
from magic_mock.core import workspace as workspace_mod
from magic_mock.core.config_templates import ConfigTemplateError
from magic_mock.core.files import load_document
from magic_mock.core.logging import configure_logger
from magic_mock.core.workspace import WorkspaceError

from .config import (
    CONFIG_FILENAME,
    ConfigOverrides,
    LoadResult,
    ProviderSettings,
    QuizzerConfigError,
    load_config,
)
from .errors import QuizGenerationError
from .history import HistoryError, HistoryStore, SortOption, open_history
from .models import Difficulty, QuestionType, QuizResult, QuizSettings
from .pipeline import generate_quiz
from .provider import OpenAIContentProvider
from .session import QuizSession, Translator
from .view.quiz import TRANSLATION_LANGUAGES, QuizApp
from .view.report import render_folders, render_history, render_result

LOGGER_NAME = "magic_mock.quizzer"


def build_arg_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        type=Path,
        help=(
            "Path to a quizzer TOML config (defaults to the workspace config "
            "directory)."
        ),
    )
    common.add_argument(
        "--workspace",
        type=Path,
        help="Override the workspace root used for config, logs and history.",
    )
    common.add_argument("--log-level", help="Logging level for this run.")
    common.add_argument(
        "--verbose",
        action="store_true",
        default=None,
        help="Mirror log output to stderr.",
    )

    parser = argparse.ArgumentParser(
        prog="magic-mock quiz",
        description="Generate timed quizzes and browse saved results.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sp_start = sub.add_parser(
        "start", parents=[common], help="Generate a quiz and take it"
    )
    sp_start.add_argument("topic", nargs="?", help="Quiz topic")
    sp_start.add_argument(
        "--document",
        type=Path,
        help="Build the quiz from a .pdf, .docx or .txt file instead.",
    )
    sp_start.add_argument("--num", type=int, help="Number of questions")
    sp_start.add_argument(
        "--type",
        dest="question_type",
        help="Multiple Choice, Fill in the Blank or Mixed",
    )
    sp_start.add_argument("--difficulty", help="Easy, Medium or Hard")
    sp_start.add_argument(
        "--duration", type=int, help="Time limit in minutes"
    )
    sp_start.add_argument("--language", help="Language of the quiz")
    sp_start.add_argument("--model", help="Override the provider model")
    _add_translate_option(sp_start)

    sp_retake = sub.add_parser(
        "retake", parents=[common], help="Retake a saved quiz"
    )
    sp_retake.add_argument("result_id")
    _add_translate_option(sp_retake)

    sp_history = sub.add_parser(
        "history", parents=[common], help="List saved results"
    )
    sp_history.add_argument("--folder", help="Only show this folder id")
    sp_history.add_argument(
        "--search", default="", help="Match topic or tag text"
    )
    sp_history.add_argument(
        "--sort",
        default=SortOption.NEWEST.value,
        choices=[option.value for option in SortOption],
    )

    sp_show = sub.add_parser(
        "show", parents=[common], help="Show one saved result"
    )
    sp_show.add_argument("result_id")

    sp_tag = sub.add_parser(
        "tag", parents=[common], help="Replace a result's tags"
    )
    sp_tag.add_argument("result_id")
    sp_tag.add_argument("tags", help="Comma-separated tags; empty clears")

    sp_move = sub.add_parser(
        "move", parents=[common], help="Move a result into a folder"
    )
    sp_move.add_argument("result_id")
    sp_move.add_argument("folder_id")

    sp_delete = sub.add_parser(
        "delete", parents=[common], help="Delete a saved result"
    )
    sp_delete.add_argument("result_id")

    sp_clear = sub.add_parser(
        "clear", parents=[common], help="Delete all results and folders"
    )
    sp_clear.add_argument(
        "--yes", action="store_true", help="Confirm deleting everything"
    )

    sp_folders = sub.add_parser("folders", help="Folder commands")
    folders_sub = sp_folders.add_subparsers(dest="action", required=True)
    folders_sub.add_parser("list", parents=[common], help="List folders")
    sp_f_create = folders_sub.add_parser(
        "create", parents=[common], help="Create a folder"
    )
    sp_f_create.add_argument("name")
    sp_f_empty = folders_sub.add_parser(
        "empty",
        parents=[common],
        help="Move a folder's results to Uncategorized",
    )
    sp_f_empty.add_argument("folder_id")

    sp_config = sub.add_parser("config", help="Manage quizzer config")
    config_sub = sp_config.add_subparsers(dest="action", required=True)
    sp_c_init = config_sub.add_parser(
        "init", help="Write the default quizzer.toml template"
    )
    sp_c_init.add_argument(
        "--path",
        type=Path,
        help="Destination (defaults to the workspace config directory).",
    )
    sp_c_init.add_argument(
        "--workspace",
        type=Path,
        help="Workspace root used when resolving the default path.",
    )
    sp_c_init.add_argument(
        "--force",
        action="store_true",
        help="Overwrite an existing config file.",
    )
    return parser


def _add_translate_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--translate-to",
        default=TRANSLATION_LANGUAGES[0],
        help="Language used by the in-quiz translate key",
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_arg_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    console = Console()

    if args.command == "config":
        return _cmd_config_init(args)

    try:
        loaded = load_config(
            config_path=args.config,
            overrides=ConfigOverrides(
                model=getattr(args, "model", None),
                log_level=args.log_level,
                verbose=args.verbose,
            ),
            workspace_path=args.workspace,
        )
    except QuizzerConfigError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 2

    logger, _ = configure_logger(
        LOGGER_NAME,
        log_dir=loaded.layout.path_for("logs"),
        level=loaded.config.logging.level,
        verbose=loaded.config.logging.verbose,
    )
    logger.debug("quiz CLI invoked", extra={"command": args.command})

    try:
        if args.command == "start":
            return _cmd_start(args, loaded, console, logger)
        history = open_history(loaded.layout)
        if args.command == "retake":
            return _cmd_retake(args, loaded, history, console)
        if args.command == "history":
            return _cmd_history(args, history, console)
        if args.command == "show":
            render_result(console, history.get(args.result_id))
            return 0
        if args.command == "tag":
            updated = history.set_tags(args.result_id, args.tags)
            tags = ", ".join(updated.tags) or "(none)"
            console.print(f"Tags for {updated.id}: {tags}")
            return 0
        if args.command == "move":
            updated = history.move_result(args.result_id, args.folder_id)
            folder = history.folder(updated.folder_id)
            name = folder.name if folder else updated.folder_id
            console.print(f"Moved {updated.id} to {name}.")
            return 0
        if args.command == "delete":
            history.delete_result(args.result_id)
            console.print(f"Deleted {args.result_id}.")
            return 0
        if args.command == "clear":
            return _cmd_clear(args, history, console)
        if args.command == "folders":
            return _cmd_folders(args, history, console)
    except HistoryError as exc:
        logger.error("History command failed", extra={"error": str(exc)})
        sys.stderr.write(f"Error: {exc}\n")
        return 1

    parser.print_help()  # pragma: no cover - argparse enforces commands
    return 2


def _cmd_start(
    args: argparse.Namespace,
    loaded: LoadResult,
    console: Console,
    logger: logging.Logger,
) -> int:
    defaults = loaded.config.quiz
    topic = (args.topic or "").strip()
    document_content: Optional[str] = None
    if args.document is not None:
        try:
            document = load_document(args.document)
        except (FileNotFoundError, ValueError) as exc:
            sys.stderr.write(f"Error: {exc}\n")
            return 1
        topic = document.name
        document_content = document.content_base64
    if not topic:
        sys.stderr.write("Error: provide a TOPIC or --document PATH.\n")
        return 2

    try:
        settings = QuizSettings(
            topic=topic,
            num_questions=(
                args.num if args.num is not None else defaults.num_questions
            ),
            question_type=(
                QuestionType.from_value(args.question_type)
                if args.question_type
                else defaults.question_type
            ),
            difficulty=(
                Difficulty.from_value(args.difficulty)
                if args.difficulty
                else defaults.difficulty
            ),
            duration=(
                args.duration
                if args.duration is not None
                else defaults.duration
            ),
            language=(
                args.language
                if args.language is not None
                else defaults.language
            ),
            document_content=document_content,
        )
    except ValueError as exc:
        sys.stderr.write(f"Error: {exc}\n")
        return 2

    history = open_history(loaded.layout)
    provider = _build_provider(loaded.config.provider)
    try:
        with console.status("Generating your quiz..."):
            quiz = generate_quiz(settings, provider, logger=logger)
    except QuizGenerationError as exc:
        console.print(f"[bold red]{exc.message}[/]")
        return 1

    result = _run_session(
        QuizSession(quiz, settings), provider, args.translate_to
    )
    return _finish(result, history, console)


def _cmd_retake(
    args: argparse.Namespace,
    loaded: LoadResult,
    history: HistoryStore,
    console: Console,
) -> int:
    stored = history.get(args.result_id)
    provider = _build_provider(loaded.config.provider)
    result = _run_session(
        QuizSession(stored.quiz, stored.settings),
        provider,
        args.translate_to,
    )
    return _finish(result, history, console)


def _finish(
    result: Optional[QuizResult], history: HistoryStore, console: Console
) -> int:
    if result is None:
        console.print("[bold yellow]Quiz abandoned; nothing was saved.[/]")
        return 0
    render_result(console, result)
    history.add_result(result)
    return 0


def _cmd_history(
    args: argparse.Namespace, history: HistoryStore, console: Console
) -> int:
    results = history.query(
        folder_id=args.folder, search=args.search, sort=args.sort
    )
    title = "Quiz history"
    if args.folder:
        folder = history.folder(args.folder)
        title = f"Quiz history: {folder.name if folder else args.folder}"
    render_history(console, results, history.folders, title=title)
    return 0


def _cmd_clear(
    args: argparse.Namespace, history: HistoryStore, console: Console
) -> int:
    if not args.yes:
        sys.stderr.write(
            "Refusing to delete all history without --yes.\n"
        )
        return 2
    history.clear()
    console.print("All saved quizzes and folders were deleted.")
    return 0


def _cmd_folders(
    args: argparse.Namespace, history: HistoryStore, console: Console
) -> int:
    if args.action == "create":
        folder = history.create_folder(args.name)
        console.print(f"Created folder {folder.name} ({folder.id}).")
        return 0
    if args.action == "empty":
        moved = history.empty_folder(args.folder_id)
        console.print(f"Moved {moved} quiz(zes) to Uncategorized.")
        return 0
    render_folders(console, history.folders, history.results)
    return 0


def _cmd_config_init(args: argparse.Namespace) -> int:
    try:
        target = _resolve_config_target(args)
    except WorkspaceError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    template = config_templates.get_template("quizzer")
    try:
        written = template.write(target, overwrite=args.force)
    except ConfigTemplateError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    sys.stdout.write(f"Wrote quizzer config to {written}\n")
    return 0


def _resolve_config_target(args: argparse.Namespace) -> Path:
    if args.path is not None:
        candidate = args.path.expanduser()
        if not candidate.is_absolute():
            candidate = (Path.cwd() / candidate).resolve()
        return candidate

    layout = workspace_mod.ensure_workspace(path=args.workspace)
    return layout.path_for("config") / CONFIG_FILENAME


def _build_provider(settings: ProviderSettings) -> OpenAIContentProvider:
    return OpenAIContentProvider(
        model=settings.model,
        temperature=settings.temperature,
        max_output_tokens=settings.max_output_tokens,
        request_timeout=settings.request_timeout_seconds,
    )


def _run_session(
    session: QuizSession, translator: Translator, language: str
) -> Optional[QuizResult]:
    app = QuizApp(
        session, translator=translator, translation_language=language
    )
    return app.run()


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
