"""File handling utilities shared across magic_mock modules."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional, Sequence, Set

__all__ = [
    "DOCUMENT_EXTENSIONS",
    "DocumentSource",
    "load_document",
    "parse_extensions",
]

DOCUMENT_EXTENSIONS: frozenset[str] = frozenset({"pdf", "docx", "txt"})


@dataclass(frozen=True)
class DocumentSource:
    """An uploaded source document, base64-encoded for the provider."""

    name: str
    content_base64: str

    @property
    def size(self) -> int:
        return len(base64.b64decode(self.content_base64))


def parse_extensions(
    values: Optional[Sequence[str]],
    *,
    default: Optional[Iterable[str]] = None,
) -> Set[str]:
    """Normalize extension strings to a lowercase set without leading dots.

    ``None`` or an empty sequence returns ``default`` (``DOCUMENT_EXTENSIONS``
    when not given).
    """
    fallback = set(default if default is not None else DOCUMENT_EXTENSIONS)
    if not values:
        return fallback

    normalized: Set[str] = set()
    for item in values:
        if not isinstance(item, str):
            continue
        candidate = item.strip().lower().lstrip(".")
        if candidate:
            normalized.add(candidate)
    return normalized or fallback


def load_document(
    path: Path, *, extensions: Optional[Iterable[str]] = None
) -> DocumentSource:
    """Read ``path`` and return its name with base64-encoded contents.

    Only ``pdf``, ``docx`` and ``txt`` files are accepted by default.
    """
    source = Path(path)
    allowed = parse_extensions(list(extensions) if extensions else None)
    suffix = source.suffix.lower().lstrip(".")
    if suffix not in allowed:
        expected = ", ".join(f".{ext}" for ext in sorted(allowed))
        raise ValueError(
            f"Unsupported document type '{source.name}'. Expected one of: "
            f"{expected}."
        )
    if not source.is_file():
        raise FileNotFoundError(f"Document not found: {source}")
    payload = base64.b64encode(source.read_bytes()).decode("ascii")
    return DocumentSource(name=source.name, content_base64=payload)
