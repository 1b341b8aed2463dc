"""Key-value blob store persisted as a single JSON document."""

from __future__ import annotations

import copy
import json
import os
import tempfile
from pathlib import Path
from typing import Any, Mapping, MutableMapping

__all__ = ["JsonBlobStore", "StoreError"]


class StoreError(RuntimeError):
    """Raised when the blob store cannot be read or written."""


class JsonBlobStore:
    """Persist whole JSON values under string keys.

    Every ``write`` rewrites the full document through an atomic replace, so
    a crash mid-write never leaves a truncated file behind.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def read(self, key: str, default: Any = None) -> Any:
        data = self._load()
        if key not in data:
            return copy.deepcopy(default)
        return data[key]

    def write(self, key: str, value: Any) -> None:
        data = self._load()
        data[key] = value
        _atomic_write_json(self._path, data)

    def write_many(self, values: Mapping[str, Any]) -> None:
        data = self._load()
        data.update(values)
        _atomic_write_json(self._path, data)

    def _load(self) -> MutableMapping[str, Any]:
        if not self._path.is_file():
            return {}
        try:
            text = self._path.read_text(encoding="utf-8")
            data = json.loads(text)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise StoreError(f"Corrupted store file: {self._path}") from exc
        except OSError as exc:
            raise StoreError(
                f"Failed to read store file: {self._path}"
            ) from exc
        if not isinstance(data, dict):
            raise StoreError(
                f"Store file must contain a JSON object: {self._path}"
            )
        return data


def _atomic_write_json(path: Path, payload: Mapping[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    handle = tempfile.NamedTemporaryFile(
        "w",
        delete=False,
        encoding="utf-8",
        dir=str(path.parent),
        suffix=".tmp",
    )
    try:
        with handle:
            json.dump(payload, handle, ensure_ascii=False, indent=2)
        os.replace(handle.name, path)
    except OSError as exc:
        Path(handle.name).unlink(missing_ok=True)
        raise StoreError(f"Failed to write store file: {path}") from exc
    try:
        path.chmod(0o600)
    except PermissionError:  # pragma: no cover - depends on filesystem
        pass
