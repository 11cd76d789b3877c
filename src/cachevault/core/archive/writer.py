"""Archive writer.

Streams a directory tree as a zstd-compressed tar archive into any writable
sink. Memory use is bounded by the configured buffer size, not by the size
of the tree.
"""

from __future__ import annotations

import tarfile
import threading
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import IO, Any

import zstandard

from cachevault.core.archive.entries import ArchiveEntry, EntryKind, collect_entries
from cachevault.core.cancellation import raise_if_cancelled
from cachevault.core.resources import guarded_release
from cachevault.shared.constants import ArchiveDefaults
from cachevault.shared.errors import (
    CacheVaultError,
    ErrorCode,
    create_archive_error,
    create_io_error,
)

OPERATION = "write_archive"


class _CancellableReader:
    """File wrapper that checks for cancellation on every read."""

    def __init__(self, handle: IO[bytes], cancel_event: threading.Event | None) -> None:
        self._handle = handle
        self._cancel_event = cancel_event

    def read(self, size: int = -1) -> bytes:
        raise_if_cancelled(self._cancel_event, OPERATION)
        return self._handle.read(size)

    def close(self) -> None:
        self._handle.close()


def write_archive(
    sink: Any,
    root: str | Path,
    entries: Sequence[ArchiveEntry] | None = None,
    *,
    compression_level: int = ArchiveDefaults.COMPRESSION_LEVEL,
    buffer_size: int = ArchiveDefaults.BUFFER_SIZE,
    cancel_event: threading.Event | None = None,
    log: Callable[..., None] | None = None,
) -> int:
    """Write ``root`` as a compressed tar stream into ``sink``.

    Args:
        sink: Object with a ``write(bytes)`` method; it is not closed
        root: Directory to archive
        entries: Entries to write, collected from ``root`` when omitted
        compression_level: zstd compression level
        buffer_size: Size of the compressor's output chunks
        cancel_event: Optional cancellation signal
        log: Optional step logger

    Returns:
        Number of entries written

    Raises:
        CacheIOError: If a source file cannot be read
        ArchiveError: If the compressor fails
        OperationCancelledError: If ``cancel_event`` is set
    """
    root_path = Path(root)
    if entries is None:
        entries = collect_entries(root_path)

    compressor = zstandard.ZstdCompressor(level=compression_level)
    written = 0
    try:
        with compressor.stream_writer(sink, write_size=buffer_size, closefd=False) as stream:
            with tarfile.open(fileobj=stream, mode="w|", format=tarfile.PAX_FORMAT) as tar:
                for entry in entries:
                    raise_if_cancelled(cancel_event, OPERATION)
                    if _add_entry(tar, root_path, entry, cancel_event, log):
                        written += 1
    except zstandard.ZstdError as exc:
        raise create_archive_error(
            f"failed to compress archive: {exc}",
            operation=OPERATION,
            original_error=exc,
        ) from exc
    return written


def _add_entry(
    tar: tarfile.TarFile,
    root: Path,
    entry: ArchiveEntry,
    cancel_event: threading.Event | None,
    log: Callable[..., None] | None,
) -> bool:
    source = root / entry.name
    try:
        info = tar.gettarinfo(str(source), arcname=entry.name)
        if info is None:
            return False

        if entry.kind is EntryKind.HARDLINK:
            info.type = tarfile.LNKTYPE
            info.linkname = entry.linkname
            info.size = 0

        if log is not None:
            log("adding %s (%s)", entry.name, entry.kind.value)

        if info.isreg():
            with guarded_release(
                _CancellableReader(open(source, "rb"), cancel_event),  # noqa: SIM115
                name=str(source),
                operation=OPERATION,
            ) as handle:
                tar.addfile(info, handle)  # type: ignore[arg-type]
        else:
            tar.addfile(info)
    except CacheVaultError:
        raise
    except OSError as exc:
        raise create_io_error(
            f"failed to archive {entry.name}",
            source,
            operation=OPERATION,
            original_error=exc,
            code=ErrorCode.FILE_READ_ERROR,
        ) from exc
    return True
