"""Local filesystem adapter.

Implements ObjectStoreProtocol over a directory tree so caches can live on a
local disk or a shared volume. Each bucket is a directory below the root;
each object is one file named by the URL-quoted key, with its upload
metadata in a JSON sidecar under ``<bucket>/.meta/``.

Objects are created by writing a temporary file and hard linking it into
place, which fails atomically when the name already exists. That gives the
same create-if-absent guarantee as a conditional write in a cloud store.
"""

from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Iterator
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO
from urllib.parse import quote, unquote

import orjson

from cachevault.shared.constants import StoreBackends
from cachevault.shared.errors import (
    ErrorCode,
    create_io_error,
    create_object_not_found_error,
    create_precondition_failed_error,
)
from cachevault.shared.protocols import ObjectInfo

logger = logging.getLogger(__name__)


def encode_name(name: str) -> str:
    """Map an object name to a file name that cannot clash with ``.meta``."""
    encoded = quote(name, safe="")
    if encoded.startswith("."):
        encoded = "%2E" + encoded[1:]
    return encoded


def decode_name(file_name: str) -> str:
    return unquote(file_name)


class FilesystemObjectWriter:
    """Writes to a temporary file and links it into place on close."""

    def __init__(self, store: FilesystemObjectStore, bucket: str, name: str, metadata: dict[str, str]) -> None:
        self._store = store
        self.bucket = bucket
        self.name = name
        self._metadata = metadata
        meta_dir = store.meta_dir(bucket)
        fd, temp_name = tempfile.mkstemp(prefix=".upload-", dir=meta_dir)
        self._temp_path = Path(temp_name)
        self._handle = os.fdopen(fd, "wb")
        self._finished = False

    def write(self, data: bytes) -> int:
        try:
            return self._handle.write(data)
        except OSError as exc:
            raise create_io_error(
                f"failed to write {self.bucket}/{self.name}",
                self._temp_path,
                operation="write",
                original_error=exc,
                code=ErrorCode.FILE_WRITE_ERROR,
            ) from exc

    def close(self) -> None:
        if self._finished:
            return
        self._finished = True
        target = self._store.object_path(self.bucket, self.name)
        try:
            self._handle.flush()
            os.fsync(self._handle.fileno())
            self._handle.close()
            os.link(self._temp_path, target)
            self._store.write_metadata(self.bucket, self.name, self._metadata)
        except FileExistsError as exc:
            raise create_precondition_failed_error(self.bucket, self.name, "commit", exc) from exc
        except OSError as exc:
            raise create_io_error(
                f"failed to commit {self.bucket}/{self.name}",
                target,
                operation="commit",
                original_error=exc,
                code=ErrorCode.FILE_WRITE_ERROR,
            ) from exc
        finally:
            self._discard_temp()

    def abort(self) -> None:
        if self._finished:
            return
        self._finished = True
        try:
            self._handle.close()
        finally:
            self._discard_temp()

    def _discard_temp(self) -> None:
        self._temp_path.unlink(missing_ok=True)


class FilesystemObjectStore:
    """Object store backed by a local directory.

    Args:
        root: Directory holding one subdirectory per bucket
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def bucket_path(self, bucket: str) -> Path:
        return self.root / encode_name(bucket)

    def object_path(self, bucket: str, name: str) -> Path:
        return self.bucket_path(bucket) / encode_name(name)

    def meta_dir(self, bucket: str) -> Path:
        path = self.bucket_path(bucket) / StoreBackends.METADATA_DIR
        path.mkdir(parents=True, exist_ok=True)
        return path

    def _metadata_path(self, bucket: str, name: str) -> Path:
        return self.bucket_path(bucket) / StoreBackends.METADATA_DIR / f"{encode_name(name)}.json"

    def write_metadata(self, bucket: str, name: str, metadata: dict[str, str]) -> None:
        self._metadata_path(bucket, name).write_bytes(orjson.dumps(metadata))

    def _read_metadata(self, bucket: str, name: str) -> dict[str, str]:
        try:
            return orjson.loads(self._metadata_path(bucket, name).read_bytes())
        except FileNotFoundError:
            return {}
        except orjson.JSONDecodeError:
            logger.warning("Ignoring unreadable metadata for %s/%s", bucket, name)
            return {}

    def _info(self, bucket: str, name: str, path: Path) -> ObjectInfo:
        st = path.stat()
        metadata = self._read_metadata(bucket, name)
        return ObjectInfo(
            name=name,
            updated=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
            content_type=metadata.get("content_type"),
            cache_control=metadata.get("cache_control"),
            size=st.st_size,
        )

    def get_metadata(self, bucket: str, name: str) -> ObjectInfo:
        path = self.object_path(bucket, name)
        try:
            return self._info(bucket, name, path)
        except FileNotFoundError as exc:
            raise create_object_not_found_error(bucket, name, "get_metadata", exc) from exc
        except OSError as exc:
            raise create_io_error(f"failed to stat {bucket}/{name}", path, "get_metadata", exc) from exc

    def list_objects(self, bucket: str, prefix: str) -> Iterator[ObjectInfo]:
        bucket_dir = self.bucket_path(bucket)
        try:
            file_names = sorted(entry.name for entry in os.scandir(bucket_dir) if entry.is_file())
        except FileNotFoundError:
            return
        except OSError as exc:
            raise create_io_error(f"failed to list {bucket}", bucket_dir, "list_objects", exc) from exc

        for file_name in file_names:
            name = decode_name(file_name)
            if not name.startswith(prefix):
                continue
            try:
                yield self._info(bucket, name, bucket_dir / file_name)
            except FileNotFoundError:
                continue

    def open_writer(
        self,
        bucket: str,
        name: str,
        *,
        content_type: str,
        cache_control: str,
    ) -> FilesystemObjectWriter:
        if self.object_path(bucket, name).exists():
            raise create_precondition_failed_error(bucket, name, "open_writer")
        try:
            return FilesystemObjectWriter(
                self,
                bucket,
                name,
                {"content_type": content_type, "cache_control": cache_control},
            )
        except OSError as exc:
            raise create_io_error(
                f"failed to open writer for {bucket}/{name}",
                self.bucket_path(bucket),
                "open_writer",
                exc,
                code=ErrorCode.FILE_WRITE_ERROR,
            ) from exc

    def open_reader(self, bucket: str, name: str) -> BinaryIO:
        path = self.object_path(bucket, name)
        try:
            return open(path, "rb")  # noqa: SIM115
        except FileNotFoundError as exc:
            raise create_object_not_found_error(bucket, name, "open_reader", exc) from exc
        except OSError as exc:
            raise create_io_error(f"failed to open {bucket}/{name}", path, "open_reader", exc) from exc


__all__ = [
    "FilesystemObjectStore",
    "FilesystemObjectWriter",
    "decode_name",
    "encode_name",
]
