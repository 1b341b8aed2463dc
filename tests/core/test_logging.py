from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

import pytest

from magic_mock.core import logging as core_logging


@pytest.fixture
def configure(tmp_path):
    names = []

    def _configure(name, **kwargs):
        names.append(name)
        kwargs.setdefault("log_dir", tmp_path / "logs")
        return core_logging.configure_logger(name, **kwargs)

    yield _configure
    for name in names:
        logger = logging.getLogger(name)
        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)


def _console_handlers(logger):
    return [
        handler
        for handler in logger.handlers
        if getattr(handler, "_magic_mock_console", False)
    ]


def _read_lines(logger, path):
    for handler in logger.handlers:
        handler.flush()
    return [
        json.loads(line)
        for line in path.read_text(encoding="utf-8").splitlines()
    ]


def test_records_are_json_lines_with_extras(configure, tmp_path):
    logger, log_path = configure("magic_mock.test_json", filename="t.log")

    logger.info(
        "Quiz generation started",
        extra={"topic": "Biology", "path": tmp_path, "ids": (1, 2)},
    )
    try:
        raise ValueError("boom")
    except ValueError:
        logger.exception("Quiz generation failed", extra={"obj": object})

    first, second = _read_lines(logger, log_path)
    assert log_path == tmp_path / "logs" / "t.log"
    assert first["message"] == "Quiz generation started"
    assert first["level"] == "INFO"
    assert first["logger"] == "magic_mock.test_json"
    assert first["extra"] == {
        "topic": "Biology",
        "path": str(tmp_path),
        "ids": [1, 2],
    }
    assert "ValueError: boom" in second["exception"]
    assert second["extra"]["obj"] == repr(object)


def test_default_filename_uses_last_name_segment(configure, tmp_path):
    _, log_path = configure("magic_mock.quizzer_probe")

    assert log_path.name == "quizzer_probe.log"


def test_child_loggers_reach_the_file(configure):
    logger, log_path = configure("magic_mock.parent_probe")

    logging.getLogger("magic_mock.parent_probe.session").info("child event")

    assert _read_lines(logger, log_path)[0]["message"] == "child event"
    assert logger.propagate is False


def test_level_filters_file_output(configure):
    logger, log_path = configure("magic_mock.test_level", level="WARNING")

    logger.info("hidden")
    logger.warning("shown")

    assert [line["message"] for line in _read_lines(logger, log_path)] == [
        "shown"
    ]


def test_console_handler_follows_verbose_flag(configure):
    logger, _ = configure("magic_mock.test_toggle", verbose=True)
    assert len(_console_handlers(logger)) == 1

    configure("magic_mock.test_toggle", verbose=True)
    assert len(_console_handlers(logger)) == 1
    assert len(logger.handlers) == 2

    configure("magic_mock.test_toggle", verbose=False)
    assert not _console_handlers(logger)


def test_unwritable_log_dir_falls_back(configure, tmp_path, monkeypatch):
    target = tmp_path / "blocked"
    fallback = tmp_path / "fallback"
    original_mkdir = Path.mkdir

    def fake_mkdir(self, *args, **kwargs):
        if self == target:
            raise PermissionError("denied")
        return original_mkdir(self, *args, **kwargs)

    monkeypatch.setattr(Path, "mkdir", fake_mkdir)
    monkeypatch.setattr(core_logging, "_fallback_log_dir", lambda: fallback)

    _, log_path = configure("magic_mock.test_blocked", log_dir=target)

    assert log_path.parent == fallback
    assert log_path.exists()


def test_handler_permission_error_falls_back(configure, tmp_path, monkeypatch):
    calls = []
    fallback = tmp_path / "rotate-fallback"
    original = core_logging.RotatingFileHandler

    def flaky_handler(path, *args, **kwargs):
        calls.append(path)
        if len(calls) == 1:
            raise PermissionError("denied")
        return original(path, *args, **kwargs)

    monkeypatch.setattr(core_logging, "RotatingFileHandler", flaky_handler)
    monkeypatch.setattr(core_logging, "_fallback_log_dir", lambda: fallback)

    _, log_path = configure(
        "magic_mock.test_rotate", log_dir=tmp_path / "primary"
    )

    assert log_path.parent == fallback
    assert len(calls) == 2


def test_fallback_log_dir_uses_tempdir(tmp_path, monkeypatch):
    monkeypatch.setattr(tempfile, "gettempdir", lambda: str(tmp_path))

    assert core_logging._fallback_log_dir() == tmp_path / "magic-mock-logs"


def test_coerce_level_defaults_to_info():
    assert core_logging._coerce_level("bogus") == logging.INFO
    assert core_logging._coerce_level("debug") == logging.DEBUG
