"""Core shared helpers for magic_mock subcommands."""

from __future__ import annotations

from .ai import MissingCredentialsError, load_client
from .config import (
    TomlConfigError,
    load_toml,
    merge_defaults,
    write_toml_template,
)
from .config_templates import (
    ConfigTemplate,
    ConfigTemplateError,
    get_template,
    iter_templates,
)
from .files import DocumentSource, load_document, parse_extensions
from .logging import JsonLogFormatter, configure_logger
from .store import JsonBlobStore, StoreError
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    describe_layout,
    ensure_workspace,
)

__all__ = [
    "load_client",
    "MissingCredentialsError",
    "TomlConfigError",
    "load_toml",
    "merge_defaults",
    "write_toml_template",
    "ConfigTemplate",
    "ConfigTemplateError",
    "get_template",
    "iter_templates",
    "DocumentSource",
    "load_document",
    "parse_extensions",
    "configure_logger",
    "JsonLogFormatter",
    "JsonBlobStore",
    "StoreError",
    "ensure_workspace",
    "describe_layout",
    "WorkspaceLayout",
    "WorkspaceError",
    "WORKSPACE_ENV",
]
