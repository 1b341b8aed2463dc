from __future__ import annotations

import json

import pytest

from magic_mock.core.store import JsonBlobStore, StoreError


def test_missing_file_returns_default_copy(tmp_path):
    store = JsonBlobStore(tmp_path / "blob.json")
    default = {"items": []}

    value = store.read("anything", default)
    value["items"].append(1)

    assert default == {"items": []}
    assert not store.path.exists()


def test_write_preserves_other_keys(tmp_path):
    store = JsonBlobStore(tmp_path / "nested" / "blob.json")
    store.write("a", [1, 2])
    store.write("b", {"x": "é"})

    data = json.loads(store.path.read_text(encoding="utf-8"))
    assert data == {"a": [1, 2], "b": {"x": "é"}}


def test_write_many_updates_in_one_pass(tmp_path):
    store = JsonBlobStore(tmp_path / "blob.json")
    store.write("keep", True)

    store.write_many({"a": 1, "b": 2})

    assert store.read("keep") is True
    assert store.read("a") == 1
    assert store.read("b") == 2
    assert list(tmp_path.glob("*.tmp")) == []


def test_corrupt_file_raises(tmp_path):
    path = tmp_path / "blob.json"
    path.write_text("[oops", encoding="utf-8")

    with pytest.raises(StoreError, match="Corrupted"):
        JsonBlobStore(path).read("a")


def test_non_object_document_raises(tmp_path):
    path = tmp_path / "blob.json"
    path.write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(StoreError, match="JSON object"):
        JsonBlobStore(path).read("a")


def test_invalid_utf8_is_reported_as_corruption(tmp_path):
    path = tmp_path / "blob.json"
    path.write_bytes(b'{"a": "\xff\xfe"}')

    with pytest.raises(StoreError, match="Corrupted"):
        JsonBlobStore(path).read("a")


def test_unreadable_file_raises_store_error(tmp_path, monkeypatch):
    path = tmp_path / "blob.json"
    path.write_text("{}", encoding="utf-8")

    def deny(self, *args, **kwargs):
        raise PermissionError(13, "Permission denied", str(self))

    monkeypatch.setattr(type(path), "read_text", deny)

    with pytest.raises(StoreError, match="Failed to read") as excinfo:
        JsonBlobStore(path).read("a")
    assert isinstance(excinfo.value.__cause__, PermissionError)
