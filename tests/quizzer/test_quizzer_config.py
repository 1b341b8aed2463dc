from __future__ import annotations

import pytest

from magic_mock.quizzer.config import (
    CONFIG_ENV,
    ConfigOverrides,
    QuizzerConfigError,
    load_config,
)
from magic_mock.quizzer.models import Difficulty, QuestionType


def _env(workspace, **values):
    env = {"MAGIC_MOCK_DATA_HOME": str(workspace.home)}
    env.update(values)
    return env


def test_defaults_without_config_file(workspace):
    loaded = load_config(env=_env(workspace))

    config = loaded.config
    assert loaded.config_path is None
    assert loaded.layout.home == workspace.home
    assert config.provider.model == "gpt-4o-mini"
    assert config.provider.temperature == pytest.approx(0.4)
    assert config.quiz.num_questions == 10
    assert config.quiz.question_type is QuestionType.MIXED
    assert config.quiz.difficulty is Difficulty.MEDIUM
    assert config.quiz.duration == 10
    assert config.quiz.language == ""
    assert config.logging.level == "INFO"
    assert config.logging.verbose is False


def test_workspace_config_file_is_merged(workspace):
    workspace.write_config(
        "[provider]\n"
        'model = "gpt-4o"\n'
        "[quiz]\n"
        'question_type = "fill in the blank"\n'
        'difficulty = "hard"\n'
        "duration = 5\n"
        'language = "Spanish"\n'
    )

    loaded = load_config(env=_env(workspace))

    assert loaded.config_path == workspace.config_path
    assert loaded.config.provider.model == "gpt-4o"
    assert loaded.config.provider.max_output_tokens == 4096
    assert loaded.config.quiz.question_type is QuestionType.FILL_IN_BLANK
    assert loaded.config.quiz.difficulty is Difficulty.HARD
    assert loaded.config.quiz.duration == 5
    assert loaded.config.quiz.language == "Spanish"


def test_precedence_cli_then_env_then_file(workspace):
    workspace.write_config(
        '[provider]\nmodel = "file-model"\n[logging]\nlevel = "ERROR"\n'
    )
    env = _env(
        workspace, MAGIC_MOCK_MODEL="env-model", MAGIC_MOCK_LOG_LEVEL="debug"
    )

    from_env = load_config(env=env).config
    from_cli = load_config(
        env=env,
        overrides=ConfigOverrides(
            model="cli-model", log_level="warning", verbose=True
        ),
    ).config

    assert from_env.provider.model == "env-model"
    assert from_env.logging.level == "DEBUG"
    assert from_cli.provider.model == "cli-model"
    assert from_cli.logging.level == "WARNING"
    assert from_cli.logging.verbose is True


def test_blank_env_override_is_ignored(workspace):
    loaded = load_config(env=_env(workspace, MAGIC_MOCK_MODEL="  "))

    assert loaded.config.provider.model == "gpt-4o-mini"


def test_explicit_config_path_must_exist(workspace, tmp_path):
    with pytest.raises(QuizzerConfigError, match="not found"):
        load_config(
            config_path=tmp_path / "missing.toml", env=_env(workspace)
        )


def test_env_config_path_is_used(workspace, tmp_path):
    path = tmp_path / "elsewhere.toml"
    path.write_text("[quiz]\nnum_questions = 3\n", encoding="utf-8")

    loaded = load_config(env=_env(workspace, **{CONFIG_ENV: str(path)}))

    assert loaded.config_path == path
    assert loaded.config.quiz.num_questions == 3


@pytest.mark.parametrize(
    "body, message",
    [
        ("[quiz]\ncolour = 'red'\n", "quiz.colour"),
        ("[quiz]\nnum_questions = 0\n", "quiz.num_questions"),
        ("[quiz]\ndifficulty = 'brutal'\n", "Difficulty"),
        ("[provider]\ntemperature = 3\n", "provider.temperature"),
        ("[logging]\nlevel = 'LOUD'\n", "logging.level"),
        ("[logging]\nverbose = 'yes'\n", "logging.verbose"),
        ("[quiz\n", "parse"),
    ],
)
def test_invalid_config_values(workspace, body, message):
    workspace.write_config(body)

    with pytest.raises(QuizzerConfigError, match=message):
        load_config(env=_env(workspace))


def test_workspace_path_argument_wins(workspace, tmp_path):
    other = tmp_path / "other-home"

    loaded = load_config(env=_env(workspace), workspace_path=other)

    assert loaded.layout.home == other
    assert (other / "history").is_dir()
