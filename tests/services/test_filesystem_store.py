"""Tests for the filesystem object store."""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path

import pytest

from cachevault.services.filesystem_store import (
    FilesystemObjectStore,
    decode_name,
    encode_name,
)
from cachevault.shared.errors import ObjectNotFoundError, PreconditionFailedError


def _put(store: FilesystemObjectStore, name: str, data: bytes = b"payload") -> None:
    writer = store.open_writer("bucket", name, content_type="application/zstd", cache_control="no-cache")
    writer.write(data)
    writer.close()


class TestNames:
    @pytest.mark.parametrize("name", ["deps-1", "a/b/c", "..", ".meta", "100%", "spaces and ünïcode"])
    def test_names_survive_encoding(self, name: str) -> None:
        encoded = encode_name(name)

        assert "/" not in encoded
        assert not encoded.startswith(".")
        assert decode_name(encoded) == name


class TestWriter:
    def test_commit_makes_object_visible(self, fs_store: FilesystemObjectStore) -> None:
        writer = fs_store.open_writer("bucket", "deps-1", content_type="application/zstd", cache_control="no-cache")
        writer.write(b"abc")
        writer.write(b"def")

        with pytest.raises(ObjectNotFoundError):
            fs_store.get_metadata("bucket", "deps-1")

        writer.close()

        info = fs_store.get_metadata("bucket", "deps-1")
        assert info.name == "deps-1"
        assert info.size == 6
        assert info.content_type == "application/zstd"
        assert info.cache_control == "no-cache"
        assert isinstance(info.updated, datetime)
        assert info.updated.tzinfo is not None

    def test_abort_leaves_nothing(self, fs_store: FilesystemObjectStore, store_root: Path) -> None:
        writer = fs_store.open_writer("bucket", "deps-1", content_type="x", cache_control="y")
        writer.write(b"partial")
        writer.abort()

        assert list(fs_store.list_objects("bucket", "")) == []
        assert os.listdir(store_root / "bucket" / ".meta") == []

    def test_open_on_existing_name_fails(self, fs_store: FilesystemObjectStore) -> None:
        _put(fs_store, "deps-1")

        with pytest.raises(PreconditionFailedError):
            fs_store.open_writer("bucket", "deps-1", content_type="x", cache_control="y")

    def test_losing_writer_fails_at_commit(self, fs_store: FilesystemObjectStore) -> None:
        first = fs_store.open_writer("bucket", "deps-1", content_type="x", cache_control="y")
        second = fs_store.open_writer("bucket", "deps-1", content_type="x", cache_control="y")
        first.write(b"first")
        second.write(b"second")
        first.close()

        with pytest.raises(PreconditionFailedError):
            second.close()

        with fs_store.open_reader("bucket", "deps-1") as reader:
            assert reader.read() == b"first"

    def test_close_twice_is_noop(self, fs_store: FilesystemObjectStore) -> None:
        writer = fs_store.open_writer("bucket", "deps-1", content_type="x", cache_control="y")
        writer.close()
        writer.close()
        writer.abort()

        assert fs_store.get_metadata("bucket", "deps-1").size == 0


class TestListing:
    def test_prefix_filter(self, fs_store: FilesystemObjectStore) -> None:
        for name in ("deps-a", "deps-b", "build-a"):
            _put(fs_store, name)

        names = [info.name for info in fs_store.list_objects("bucket", "deps-")]

        assert names == ["deps-a", "deps-b"]

    def test_empty_prefix_lists_everything(self, fs_store: FilesystemObjectStore) -> None:
        for name in ("a/1", "b"):
            _put(fs_store, name)

        assert {info.name for info in fs_store.list_objects("bucket", "")} == {"a/1", "b"}

    def test_missing_bucket_lists_nothing(self, fs_store: FilesystemObjectStore) -> None:
        assert list(fs_store.list_objects("nope", "")) == []

    def test_updated_reflects_mtime(self, fs_store: FilesystemObjectStore) -> None:
        _put(fs_store, "deps-1")
        os.utime(fs_store.object_path("bucket", "deps-1"), (1_700_000_000, 1_700_000_000))

        (info,) = fs_store.list_objects("bucket", "deps")

        assert int(info.updated.timestamp()) == 1_700_000_000

    def test_missing_sidecar_is_tolerated(self, fs_store: FilesystemObjectStore, store_root: Path) -> None:
        _put(fs_store, "deps-1")
        (store_root / "bucket" / ".meta" / "deps-1.json").write_bytes(b"{not json")

        info = fs_store.get_metadata("bucket", "deps-1")

        assert info.content_type is None


class TestReader:
    def test_missing_object(self, fs_store: FilesystemObjectStore) -> None:
        with pytest.raises(ObjectNotFoundError):
            fs_store.open_reader("bucket", "deps-1")
