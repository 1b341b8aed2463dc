"""Persistent history of quiz results and the folders that organise them.

The store keeps two values in a ``JsonBlobStore``: ``quizResults`` in
append order and ``quizFolders``. Both are rewritten in full on every
mutation. The uncategorized folder always exists; folders are never deleted,
only emptied.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional

from ..core.store import JsonBlobStore, StoreError
from ..core.workspace import WorkspaceLayout
from .models import (
    UNCATEGORIZED_FOLDER_ID,
    UNCATEGORIZED_FOLDER_NAME,
    Folder,
    QuizResult,
    default_folders,
    next_timestamp_id,
    parse_tags,
)

__all__ = [
    "FOLDERS_KEY",
    "HISTORY_FILENAME",
    "RESULTS_KEY",
    "HistoryError",
    "HistoryStore",
    "SortOption",
    "open_history",
]

HISTORY_FILENAME = "history.json"
RESULTS_KEY = "quizResults"
FOLDERS_KEY = "quizFolders"

logger = logging.getLogger(__name__)


class HistoryError(RuntimeError):
    """Raised for invalid history operations or unreadable history data."""


class SortOption(Enum):
    NEWEST = "newest"
    OLDEST = "oldest"
    SCORE_HIGH_TO_LOW = "score-desc"
    SCORE_LOW_TO_HIGH = "score-asc"

    @classmethod
    def from_value(cls, value: "str | SortOption") -> "SortOption":
        if isinstance(value, cls):
            return value
        normalized = str(value).strip().lower().replace("_", "-")
        for member in cls:
            alias = member.name.lower().replace("_", "-")
            if normalized in (member.value, alias):
                return member
        expected = ", ".join(member.value for member in cls)
        raise HistoryError(
            f"Unknown sort option '{value}'. Expected one of: {expected}."
        )


class HistoryStore:
    """In-memory view of the history with an explicit load/save lifecycle."""

    def __init__(self, blob_store: JsonBlobStore) -> None:
        self._blob = blob_store
        self._results: list[QuizResult] = []
        self._folders: list[Folder] = default_folders()
        self._loaded = False

    @property
    def results(self) -> tuple[QuizResult, ...]:
        self._require_loaded()
        return tuple(self._results)

    @property
    def folders(self) -> tuple[Folder, ...]:
        self._require_loaded()
        return tuple(self._folders)

    def load(self) -> "HistoryStore":
        try:
            raw_results = self._blob.read(RESULTS_KEY, [])
            raw_folders = self._blob.read(FOLDERS_KEY, None)
        except StoreError as exc:
            raise HistoryError(str(exc)) from exc

        try:
            results = [QuizResult.from_dict(item) for item in raw_results]
            folders = (
                [Folder.from_dict(item) for item in raw_folders]
                if raw_folders
                else default_folders()
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise HistoryError(
                f"History file contains an invalid entry: {exc}"
            ) from exc

        known = {folder.id for folder in folders}
        if UNCATEGORIZED_FOLDER_ID not in known:
            folders.insert(
                0, Folder(UNCATEGORIZED_FOLDER_ID, UNCATEGORIZED_FOLDER_NAME)
            )
        self._results = results
        self._folders = folders
        self._loaded = True
        return self

    def save(self) -> None:
        self._require_loaded()
        self._commit(self._results, self._folders)

    # Results ------------------------------------------------------------

    def add_result(self, result: QuizResult) -> QuizResult:
        self._require_loaded()
        if self._find(result.id) is not None:
            raise HistoryError(f"Result '{result.id}' already exists.")
        self._commit([*self._results, result], self._folders)
        logger.info(
            "History result added",
            extra={"result_id": result.id, "topic": result.quiz.topic},
        )
        return result

    def get(self, result_id: str) -> QuizResult:
        self._require_loaded()
        index = self._find(result_id)
        if index is None:
            raise HistoryError(f"Unknown result '{result_id}'.")
        return self._results[index]

    def delete_result(self, result_id: str) -> None:
        self._require_loaded()
        index = self._find(result_id)
        if index is None:
            raise HistoryError(f"Unknown result '{result_id}'.")
        remaining = self._results[:index] + self._results[index + 1 :]
        self._commit(remaining, self._folders)
        logger.info("History result deleted", extra={"result_id": result_id})

    def clear(self) -> None:
        """Drop every result and reset folders to the default set."""

        self._require_loaded()
        removed = len(self._results)
        self._commit([], default_folders())
        logger.info("History cleared", extra={"removed": removed})

    def move_result(self, result_id: str, folder_id: str) -> QuizResult:
        self._require_loaded()
        if self.folder(folder_id) is None:
            raise HistoryError(f"Unknown folder '{folder_id}'.")
        return self._replace(
            result_id, lambda result: result.with_folder(folder_id)
        )

    def set_tags(
        self, result_id: str, tags: "str | Iterable[str]"
    ) -> QuizResult:
        parsed = parse_tags(tags)
        return self._replace(
            result_id, lambda result: result.with_tags(parsed)
        )

    # Folders ------------------------------------------------------------

    def folder(self, folder_id: str) -> Optional[Folder]:
        self._require_loaded()
        for folder in self._folders:
            if folder.id == folder_id:
                return folder
        return None

    def create_folder(self, name: str) -> Folder:
        self._require_loaded()
        cleaned = (name or "").strip()
        if not cleaned:
            raise HistoryError("Folder name must not be empty.")
        folder_id = next_timestamp_id()
        while self.folder(folder_id) is not None:
            folder_id = next_timestamp_id()
        folder = Folder(folder_id, cleaned)
        self._commit(self._results, [*self._folders, folder])
        logger.info(
            "History folder created",
            extra={"folder_id": folder.id, "folder_name": folder.name},
        )
        return folder

    def empty_folder(self, folder_id: str) -> int:
        """Reassign a folder's results to uncategorized; return the count."""

        self._require_loaded()
        if self.folder(folder_id) is None:
            raise HistoryError(f"Unknown folder '{folder_id}'.")
        if folder_id == UNCATEGORIZED_FOLDER_ID:
            return 0
        moved = 0
        results = []
        for result in self._results:
            if result.folder_id == folder_id:
                result = result.with_folder(UNCATEGORIZED_FOLDER_ID)
                moved += 1
            results.append(result)
        if moved:
            self._commit(results, self._folders)
        logger.info(
            "History folder emptied",
            extra={"folder_id": folder_id, "moved": moved},
        )
        return moved

    def query(
        self,
        *,
        folder_id: Optional[str] = None,
        search: str = "",
        sort: "SortOption | str" = SortOption.NEWEST,
    ) -> list[QuizResult]:
        """Filter by folder and text, then sort for display."""

        self._require_loaded()
        order = SortOption.from_value(sort)
        needle = (search or "").strip().casefold()
        matches = [
            result
            for result in self._results
            if (folder_id is None or result.folder_id == folder_id)
            and (not needle or _matches(result, needle))
        ]
        if order is SortOption.NEWEST:
            matches.sort(key=_id_key, reverse=True)
        elif order is SortOption.OLDEST:
            matches.sort(key=_id_key)
        elif order is SortOption.SCORE_HIGH_TO_LOW:
            matches.sort(key=lambda result: result.score_ratio, reverse=True)
        else:
            matches.sort(key=lambda result: result.score_ratio)
        return matches

    # Internals ----------------------------------------------------------

    def _require_loaded(self) -> None:
        if not self._loaded:
            raise HistoryError("History has not been loaded; call load().")

    def _commit(
        self, results: list[QuizResult], folders: list[Folder]
    ) -> None:
        """Write ``results`` and ``folders``, then adopt them in memory."""

        try:
            self._blob.write_many(
                {
                    RESULTS_KEY: [item.to_dict() for item in results],
                    FOLDERS_KEY: [item.to_dict() for item in folders],
                }
            )
        except StoreError as exc:
            raise HistoryError(str(exc)) from exc
        self._results = list(results)
        self._folders = list(folders)

    def _find(self, result_id: str) -> Optional[int]:
        for index, result in enumerate(self._results):
            if result.id == result_id:
                return index
        return None

    def _replace(self, result_id: str, update) -> QuizResult:
        self._require_loaded()
        index = self._find(result_id)
        if index is None:
            raise HistoryError(f"Unknown result '{result_id}'.")
        updated = update(self._results[index])
        results = list(self._results)
        results[index] = updated
        self._commit(results, self._folders)
        logger.info(
            "History result updated",
            extra={
                "result_id": result_id,
                "folder_id": updated.folder_id,
                "tags": list(updated.tags),
            },
        )
        return updated


def _matches(result: QuizResult, needle: str) -> bool:
    if needle in result.quiz.topic.casefold():
        return True
    if needle in result.settings.topic.casefold():
        return True
    return any(needle in tag.casefold() for tag in result.tags)


def _id_key(result: QuizResult) -> int:
    try:
        return int(result.id)
    except ValueError:
        return 0


def open_history(
    layout: WorkspaceLayout, *, path: Optional[Path] = None
) -> HistoryStore:
    """Return a loaded store backed by the workspace history file."""

    target = path or layout.path_for("history") / HISTORY_FILENAME
    return HistoryStore(JsonBlobStore(target)).load()
