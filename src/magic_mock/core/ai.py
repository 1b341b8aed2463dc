"""Shared AI helper utilities."""

from __future__ import annotations

import os
from typing import Any, Mapping

from dotenv import load_dotenv
from openai import OpenAI

__all__ = ["API_KEY_ENV", "MissingCredentialsError", "load_client"]

API_KEY_ENV = "OPENAI_API_KEY"


class MissingCredentialsError(RuntimeError):
    """Raised when no API key is available to build a provider client."""


def load_client(
    *,
    env: Mapping[str, str] | None = None,
    base_url: str | None = None,
) -> Any:
    """Initialize an OpenAI client using environment-derived credentials.

    ``.env`` files are honoured through :func:`dotenv.load_dotenv` before the
    environment is consulted. ``env`` replaces ``os.environ`` for tests.
    """

    load_dotenv()
    env_map = env if env is not None else os.environ
    api_key = (env_map.get(API_KEY_ENV) or "").strip()
    if not api_key:
        raise MissingCredentialsError(
            f"{API_KEY_ENV} not found in environment. Set it or add to .env"
        )
    kwargs: dict[str, Any] = {"api_key": api_key}
    if base_url:
        kwargs["base_url"] = base_url
    return OpenAI(**kwargs)
