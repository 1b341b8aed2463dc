"""Configuration loader for the quizzer workflow."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, MutableMapping, Optional

from magic_mock.core import config as core_config
from magic_mock.core import workspace as workspace_mod

from .models import Difficulty, QuestionType

CONFIG_FILENAME = "quizzer.toml"
CONFIG_ENV = "MAGIC_MOCK_QUIZZER_CONFIG"
ENV_PREFIX = "MAGIC_MOCK_"

_DEFAULT_MODEL = "gpt-4o-mini"
_DEFAULT_LOG_LEVEL = "INFO"
_VALID_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class QuizzerConfigError(RuntimeError):
    """Raised when quizzer configuration parsing or validation fails."""


@dataclass(frozen=True)
class ProviderSettings:
    model: str
    temperature: float
    max_output_tokens: int
    request_timeout_seconds: int


@dataclass(frozen=True)
class QuizDefaults:
    """Fallback values for ``quiz start`` options left unset."""

    num_questions: int
    question_type: QuestionType
    difficulty: Difficulty
    duration: int
    language: str


@dataclass(frozen=True)
class LoggingSettings:
    level: str
    verbose: bool


@dataclass(frozen=True)
class QuizzerConfig:
    """Fully resolved configuration for a quizzer run."""

    provider: ProviderSettings
    quiz: QuizDefaults
    logging: LoggingSettings


@dataclass(frozen=True)
class ConfigOverrides:
    """CLI-sourced overrides applied on top of file/env options."""

    model: Optional[str] = None
    log_level: Optional[str] = None
    verbose: Optional[bool] = None


@dataclass(frozen=True)
class LoadResult:
    """Result of loading configuration, including workspace context."""

    config: QuizzerConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Load configuration applying precedence CLI > env > TOML > defaults."""

    overrides = overrides or ConfigOverrides()
    env_map = os.environ if env is None else env

    try:
        layout = workspace_mod.ensure_workspace(
            env=env_map, path=workspace_path
        )
    except workspace_mod.WorkspaceError as exc:
        raise QuizzerConfigError(str(exc)) from exc
    default_path = layout.path_for("config") / CONFIG_FILENAME

    requested_path = _resolve_config_path(
        config_path=config_path,
        env_map=env_map,
        default_path=default_path,
    )

    table = _default_table()
    loaded_path: Optional[Path] = None
    if requested_path.exists():
        loaded_path = requested_path
        try:
            parsed = core_config.load_toml(requested_path)
            core_config.merge_defaults(table, parsed)
        except core_config.TomlConfigError as exc:
            raise QuizzerConfigError(str(exc)) from exc
    elif config_path is not None or _has_env_config(env_map):
        raise QuizzerConfigError(f"Config file not found: {requested_path}")

    try:
        provider = _build_provider(
            table["provider"],
            model=_pick_first(
                overrides.model, _parse_env_string(env_map, "MODEL")
            ),
        )
        quiz = _build_quiz_defaults(table["quiz"])
        logging_settings = _build_logging(
            table["logging"],
            level=_pick_first(
                overrides.log_level, _parse_env_string(env_map, "LOG_LEVEL")
            ),
            verbose=overrides.verbose,
        )
    except core_config.TomlConfigError as exc:
        raise QuizzerConfigError(str(exc)) from exc

    config = QuizzerConfig(
        provider=provider, quiz=quiz, logging=logging_settings
    )
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def _default_table() -> MutableMapping[str, MutableMapping[str, object]]:
    return {
        "provider": {
            "model": _DEFAULT_MODEL,
            "temperature": 0.4,
            "max_output_tokens": 4096,
            "request_timeout_seconds": 60,
        },
        "quiz": {
            "num_questions": 10,
            "question_type": QuestionType.MIXED.value,
            "difficulty": Difficulty.MEDIUM.value,
            "duration": 10,
            "language": "",
        },
        "logging": {"level": _DEFAULT_LOG_LEVEL, "verbose": False},
    }


def _build_provider(
    table: Mapping[str, object], *, model: Optional[object]
) -> ProviderSettings:
    return ProviderSettings(
        model=core_config.require_string(
            _pick_first(model, table["model"]), field="provider.model"
        ),
        temperature=core_config.require_float_range(
            table["temperature"],
            field="provider.temperature",
            min_value=0.0,
            max_value=2.0,
        ),
        max_output_tokens=core_config.require_positive_int(
            table["max_output_tokens"], field="provider.max_output_tokens"
        ),
        request_timeout_seconds=core_config.require_positive_int(
            table["request_timeout_seconds"],
            field="provider.request_timeout_seconds",
        ),
    )


def _build_quiz_defaults(table: Mapping[str, object]) -> QuizDefaults:
    question_type = core_config.require_string(
        table["question_type"], field="quiz.question_type"
    )
    difficulty = core_config.require_string(
        table["difficulty"], field="quiz.difficulty"
    )
    try:
        parsed_type = QuestionType.from_value(question_type)
        parsed_difficulty = Difficulty.from_value(difficulty)
    except ValueError as exc:
        raise QuizzerConfigError(str(exc)) from exc
    return QuizDefaults(
        num_questions=core_config.require_positive_int(
            table["num_questions"], field="quiz.num_questions"
        ),
        question_type=parsed_type,
        difficulty=parsed_difficulty,
        duration=core_config.require_positive_int(
            table["duration"], field="quiz.duration"
        ),
        language=core_config.require_string(
            table["language"], field="quiz.language", allow_empty=True
        ),
    )


def _build_logging(
    table: Mapping[str, object],
    *,
    level: Optional[object],
    verbose: Optional[bool],
) -> LoggingSettings:
    raw_level = core_config.require_string(
        _pick_first(level, table["level"]), field="logging.level"
    )
    normalized = raw_level.upper()
    if normalized not in _VALID_LOG_LEVELS:
        expected = ", ".join(_VALID_LOG_LEVELS)
        raise QuizzerConfigError(
            f"logging.level must be one of: {expected}."
        )
    return LoggingSettings(
        level=normalized,
        verbose=core_config.require_bool(
            _pick_first(verbose, table["verbose"]), field="logging.verbose"
        ),
    )


def _resolve_config_path(
    *,
    config_path: Optional[Path],
    env_map: Mapping[str, str],
    default_path: Path,
) -> Path:
    if config_path is not None:
        return config_path.expanduser()
    env_candidate = (env_map.get(CONFIG_ENV) or "").strip()
    if env_candidate:
        return Path(env_candidate).expanduser()
    return default_path


def _has_env_config(env_map: Mapping[str, str]) -> bool:
    return bool((env_map.get(CONFIG_ENV) or "").strip())


def _parse_env_string(env_map: Mapping[str, str], key: str) -> Optional[str]:
    raw = env_map.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _pick_first(*candidates: object) -> object:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None
