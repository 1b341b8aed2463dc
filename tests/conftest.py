from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
if str(TESTS_DIR) not in sys.path:
    sys.path.insert(0, str(TESTS_DIR))

from fixtures import (  # noqa: E402
    FakeProvider,
    OpenAIStubFactory,
    WorkspaceBuilder,
)

from magic_mock.core import ai as core_ai  # noqa: E402

_ISOLATED_ENV = (
    "MAGIC_MOCK_MODEL",
    "MAGIC_MOCK_LOG_LEVEL",
    "MAGIC_MOCK_QUIZZER_CONFIG",
    "OPENAI_API_KEY",
)


@pytest.fixture
def workspace(tmp_path: Path) -> WorkspaceBuilder:
    """Provide a helper bound to pytest's per-test tmp directory."""

    return WorkspaceBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _isolated_environment(
    workspace: WorkspaceBuilder, monkeypatch: pytest.MonkeyPatch
) -> Iterator[None]:
    for name in _ISOLATED_ENV:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("MAGIC_MOCK_DATA_HOME", str(workspace.home))
    monkeypatch.setattr(core_ai, "load_dotenv", lambda *a, **k: False)
    yield
    logger = logging.getLogger("magic_mock.quizzer")
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


@pytest.fixture
def openai_factory(monkeypatch: pytest.MonkeyPatch) -> OpenAIStubFactory:
    """Patch the OpenAI constructor and expose the created stub clients."""

    factory = OpenAIStubFactory()
    monkeypatch.setattr(core_ai, "OpenAI", factory)
    return factory


@pytest.fixture
def fake_provider() -> FakeProvider:
    return FakeProvider()
