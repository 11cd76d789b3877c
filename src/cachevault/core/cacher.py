"""Save and restore orchestration.

The Cacher ties the archive pipeline to an object store. Saves are
idempotent and safe against concurrent writers because they rely only on
the store's create-if-absent precondition; restores pick the newest object
among prefix-matched candidate keys.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Literal

from cachevault.core import hasher
from cachevault.core.archive import collect_entries, extract_archive, write_archive
from cachevault.core.cancellation import raise_if_cancelled
from cachevault.core.resolver import KeyResolver
from cachevault.core.resources import guarded_release
from cachevault.shared.constants import ArchiveDefaults, CacheObject
from cachevault.shared.errors import (
    CacheVaultError,
    ErrorCode,
    ObjectNotFoundError,
    ObjectExistsError,
    PreconditionFailedError,
    create_invalid_argument_error,
    create_io_error,
    create_storage_error,
)
from cachevault.shared.logging import log_operation_start, log_operation_success
from cachevault.shared.protocols import ObjectStoreProtocol, ObjectWriter

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


@dataclass(frozen=True)
class SaveRequest:
    """Save ``dir`` under ``key`` in ``bucket``."""

    bucket: str
    key: str
    dir: str | Path


@dataclass(frozen=True)
class RestoreRequest:
    """Restore the newest object matching any of ``keys`` into ``dir``."""

    bucket: str
    keys: Sequence[str]
    dir: str | Path


@dataclass(frozen=True)
class SaveResult:
    """Outcome of a save.

    Attributes:
        created: True if this call uploaded the object
        reason: Why nothing was uploaded ("exists" or "race")
        bytes_written: Compressed bytes sent to the store
        entries: Number of archived entries
    """

    created: bool
    reason: Literal["exists", "race"] | None = None
    bytes_written: int = 0
    entries: int = 0


@dataclass(frozen=True)
class RestoreResult:
    """Outcome of a restore: the object that was extracted."""

    key: str
    entries: int = 0
    size: int | None = None


class _CountingSink:
    """Forwards writes to an ObjectWriter while counting bytes."""

    def __init__(self, writer: ObjectWriter, progress_callback: ProgressCallback | None) -> None:
        self._writer = writer
        self._progress_callback = progress_callback
        self.count = 0

    def write(self, data: bytes) -> int:
        self._writer.write(data)
        self.count += len(data)
        if self._progress_callback is not None:
            self._progress_callback(self.count)
        return len(data)

    def flush(self) -> None:
        """Nothing buffered locally."""


class Cacher:
    """Saves and restores directory trees in an object store.

    Args:
        store: Object store adapter
        debug: Log every protocol step at debug level
        compression_level: zstd level used for new archives
        buffer_size: Bound on in-memory buffering for archive streams

    Example:
        >>> cacher = Cacher(create_object_store(settings), debug=True)
        >>> cacher.save(SaveRequest("ci-cache", "deps-1f3a", "node_modules"))
    """

    def __init__(
        self,
        store: ObjectStoreProtocol,
        *,
        debug: bool = False,
        compression_level: int = ArchiveDefaults.COMPRESSION_LEVEL,
        buffer_size: int = ArchiveDefaults.BUFFER_SIZE,
    ) -> None:
        self.store = store
        self.debug = debug
        self.compression_level = compression_level
        self.buffer_size = buffer_size
        self.resolver = KeyResolver(store, debug=debug)

    def _log(self, msg: str, *args: object) -> None:
        if self.debug:
            logger.debug(msg, *args)

    # Save

    def save(
        self,
        request: SaveRequest,
        *,
        cancel_event: threading.Event | None = None,
        progress_callback: ProgressCallback | None = None,
    ) -> SaveResult:
        """Archive ``request.dir`` and store it under ``request.key``.

        Saving a key that already exists is a no-op. Losing a race against
        another process creating the same key is also reported as success.

        Raises:
            InvalidArgumentError: If bucket, key or dir is empty
            StorageError: If the store fails
            CacheIOError: If the directory cannot be read
            ResourceCleanupError: If the upload failed and aborting it failed too
            OperationCancelledError: If ``cancel_event`` is set
        """
        operation = "save"
        for field_name in ("bucket", "key", "dir"):
            if not str(getattr(request, field_name) or ""):
                raise create_invalid_argument_error(field_name, operation=operation)

        start = time.perf_counter()
        log_operation_start(logger, operation, {"bucket": request.bucket, "key": request.key})

        if self._exists(request.bucket, request.key):
            self._log("cached object %s already exists, skipping save", request.key)
            return SaveResult(created=False, reason="exists")

        raise_if_cancelled(cancel_event, operation)
        root = Path(request.dir)
        if not root.is_dir():
            raise create_io_error(
                f"{root} is not a directory",
                root,
                operation=operation,
                code=ErrorCode.FILE_NOT_FOUND,
            )
        try:
            entries = collect_entries(root)
        except OSError as exc:
            raise create_io_error(
                f"failed to walk {root}",
                root,
                operation=operation,
                original_error=exc,
            ) from exc

        try:
            self._log("opening gcs writer for %s", request.key)
            writer = self.store.open_writer(
                request.bucket,
                request.key,
                content_type=CacheObject.CONTENT_TYPE,
                cache_control=CacheObject.CACHE_CONTROL,
            )
            sink = _CountingSink(writer, progress_callback)
            with guarded_release(
                writer,
                name="gcs writer",
                operation=operation,
                release=writer.close,
                on_error=writer.abort,
                log=self._log,
            ):
                count = write_archive(
                    sink,
                    root,
                    entries,
                    compression_level=self.compression_level,
                    buffer_size=self.buffer_size,
                    cancel_event=cancel_event,
                    log=self._log if self.debug else None,
                )
        except (PreconditionFailedError, ObjectExistsError):
            self._log("cached object %s was created concurrently", request.key)
            return SaveResult(created=False, reason="race")

        self._log("uploaded %d bytes", sink.count)
        log_operation_success(
            logger,
            operation,
            (time.perf_counter() - start) * 1000,
            {"bytes_written": sink.count, "entries": count},
            {"bucket": request.bucket, "key": request.key},
        )
        return SaveResult(created=True, bytes_written=sink.count, entries=count)

    def _exists(self, bucket: str, key: str) -> bool:
        self._log("checking if %s exists", key)
        try:
            self.store.get_metadata(bucket, key)
        except ObjectNotFoundError:
            return False
        except CacheVaultError as exc:
            raise create_storage_error(
                f"failed to check if cached object exists: {exc.message}",
                bucket=bucket,
                name=key,
                operation="save",
                original_error=exc,
            ) from exc
        return True

    # Restore

    def restore(
        self,
        request: RestoreRequest,
        *,
        cancel_event: threading.Event | None = None,
    ) -> RestoreResult:
        """Extract the newest object matching any of ``request.keys``.

        Raises:
            InvalidArgumentError: If bucket, dir or any key is empty
            CacheNotFoundError: If no object matches any key
            ObjectNotFoundError: If the chosen object vanished before reading
            CacheIOError: If the destination cannot be written
            ArchiveError: If the archive is corrupted or unsafe
            OperationCancelledError: If ``cancel_event`` is set
        """
        operation = "restore"
        if not request.bucket:
            raise create_invalid_argument_error("bucket", operation=operation)
        if not str(request.dir or ""):
            raise create_invalid_argument_error("dir", operation=operation)
        if not request.keys:
            raise create_invalid_argument_error("key", operation=operation)
        for index, key in enumerate(request.keys):
            if not key:
                raise create_invalid_argument_error(f"key[{index}]", operation=operation)

        start = time.perf_counter()
        log_operation_start(logger, operation, {"bucket": request.bucket, "keys": list(request.keys)})

        best = self.resolver.resolve(request.bucket, request.keys, cancel_event=cancel_event)
        self._log("restoring %s", best.name)

        dest = Path(request.dir)
        try:
            dest.mkdir(mode=ArchiveDefaults.DIRECTORY_MODE, parents=True, exist_ok=True)
        except OSError as exc:
            raise create_io_error(
                f"failed to create directory {dest}",
                dest,
                operation=operation,
                original_error=exc,
                code=ErrorCode.DIRECTORY_CREATION_FAILED,
            ) from exc

        raise_if_cancelled(cancel_event, operation)
        self._log("opening gcs reader for %s", best.name)
        reader = self.store.open_reader(request.bucket, best.name)
        with guarded_release(reader, name="gcs reader", operation=operation, log=self._log):
            count = extract_archive(
                reader,
                dest,
                buffer_size=self.buffer_size,
                cancel_event=cancel_event,
                log=self._log,
            )

        log_operation_success(
            logger,
            operation,
            (time.perf_counter() - start) * 1000,
            {"key": best.name, "entries": count},
            {"bucket": request.bucket, "dir": os.fspath(dest)},
        )
        return RestoreResult(key=best.name, entries=count, size=best.size)

    # Hashing

    def hash_files(
        self,
        paths: Sequence[str | os.PathLike[str]],
        *,
        cancel_event: threading.Event | None = None,
    ) -> str:
        """Digest the contents of ``paths`` in order."""
        return hasher.hash_files(paths, cancel_event=cancel_event, log=self._log)

    def hash_glob(self, pattern: str, *, cancel_event: threading.Event | None = None) -> str:
        """Digest the contents of every file matched by ``pattern``."""
        return hasher.hash_glob(pattern, cancel_event=cancel_event, log=self._log)
