"""Shared testing fixtures and stubs for the magic_mock test suite."""

from .openai import OpenAIStub, OpenAIStubFactory  # noqa: F401
from .quiz import (  # noqa: F401
    FakeProvider,
    blank_payload,
    make_quiz,
    make_result,
    make_settings,
    mc_payload,
    quiz_payload,
)
from .workspace import WorkspaceBuilder, build_tree  # noqa: F401

__all__ = [
    "FakeProvider",
    "OpenAIStub",
    "OpenAIStubFactory",
    "WorkspaceBuilder",
    "blank_payload",
    "build_tree",
    "make_quiz",
    "make_result",
    "make_settings",
    "mc_payload",
    "quiz_payload",
]
