"""Archive extractor.

Reads a zstd-compressed tar stream and materializes each entry below a
destination directory. Entries are dispatched by kind; adding support for
another archive codec only requires producing ArchiveEntry values.
"""

from __future__ import annotations

import os
import posixpath
import tarfile
import threading
from collections.abc import Callable
from pathlib import Path
from typing import IO, Any

import zstandard

from cachevault.core.archive.entries import ArchiveEntry, EntryKind
from cachevault.core.cancellation import raise_if_cancelled
from cachevault.shared.constants import ArchiveDefaults
from cachevault.shared.errors import (
    CacheVaultError,
    ErrorCode,
    create_archive_error,
    create_io_error,
    create_unsupported_entry_error,
)

OPERATION = "extract_archive"

EntryHandler = Callable[[ArchiveEntry, "IO[bytes] | None"], None]


def _silent(msg: str, *args: object) -> None:
    """Step logger used when debugging is off."""


class ArchiveExtractor:
    """Materializes archive entries below ``dest``."""

    def __init__(
        self,
        dest: str | Path,
        *,
        buffer_size: int = ArchiveDefaults.BUFFER_SIZE,
        cancel_event: threading.Event | None = None,
        log: Callable[..., None] = _silent,
    ) -> None:
        self.dest = Path(dest)
        self._dest_real = os.path.realpath(self.dest)
        self.buffer_size = buffer_size
        self.cancel_event = cancel_event
        self._log = log
        self._handlers: dict[EntryKind, EntryHandler] = {
            EntryKind.DIRECTORY: self._extract_directory,
            EntryKind.REGULAR: self._extract_file,
            EntryKind.SPECIAL: self._extract_file,
            EntryKind.SYMLINK: self._extract_symlink,
            EntryKind.HARDLINK: self._extract_hardlink,
            EntryKind.IGNORABLE: self._skip,
            EntryKind.UNSUPPORTED: self._reject,
        }

    def extract(self, source: Any) -> int:
        """Extract the compressed archive read from ``source``.

        Args:
            source: Object with a ``read(size)`` method; it is not closed

        Returns:
            Number of entries processed

        Raises:
            CacheIOError: If an entry cannot be written
            ArchiveError: If the stream is corrupted or holds an unsafe path
            UnsupportedEntryTypeError: If an entry has an unknown type
            OperationCancelledError: If the cancellation event is set
        """
        decompressor = zstandard.ZstdDecompressor()
        count = 0
        try:
            with decompressor.stream_reader(
                source, read_size=self.buffer_size, read_across_frames=True, closefd=False
            ) as stream:
                with tarfile.open(fileobj=stream, mode="r|") as tar:
                    for member in tar:
                        raise_if_cancelled(self.cancel_event, OPERATION)
                        entry = ArchiveEntry.from_tarinfo(member)
                        content = tar.extractfile(member) if entry.kind in _CONTENT_KINDS else None
                        self.dispatch(entry, content)
                        count += 1
        except (tarfile.TarError, zstandard.ZstdError, EOFError) as exc:
            raise create_archive_error(
                f"failed to read archive: {exc}",
                operation=OPERATION,
                original_error=exc,
            ) from exc
        return count

    def dispatch(self, entry: ArchiveEntry, content: IO[bytes] | None = None) -> None:
        """Materialize one entry, wrapping file system failures."""
        try:
            self._handlers[entry.kind](entry, content)
        except CacheVaultError:
            raise
        except OSError as exc:
            raise create_io_error(
                f"failed to extract {entry.name}",
                self.dest / entry.name,
                operation=OPERATION,
                original_error=exc,
                code=ErrorCode.FILE_WRITE_ERROR,
            ) from exc

    # Entry handlers

    def _extract_directory(self, entry: ArchiveEntry, content: IO[bytes] | None) -> None:
        target = self._target(entry.name, entry)
        self._ensure_inside(target, entry)
        self._log("making directory %s", target)
        target.mkdir(mode=ArchiveDefaults.DIRECTORY_MODE, parents=True, exist_ok=True)

    def _extract_file(self, entry: ArchiveEntry, content: IO[bytes] | None) -> None:
        target = self._target(entry.name, entry)
        self._prepare_parent(target, entry)
        self._clear(target)

        self._log("writing %s", target)
        with open(target, "wb") as out:
            if content is not None:
                while chunk := content.read(self.buffer_size):
                    raise_if_cancelled(self.cancel_event, OPERATION)
                    out.write(chunk)

        # Platforms without POSIX permissions keep their defaults
        if os.name != "nt":
            os.chmod(target, entry.mode & ArchiveDefaults.MODE_MASK)

    def _extract_symlink(self, entry: ArchiveEntry, content: IO[bytes] | None) -> None:
        target = self._target(entry.name, entry)
        self._prepare_parent(target, entry)
        self._clear(target)

        self._log("linking %s -> %s", target, entry.linkname)
        os.symlink(entry.linkname, target)

    def _extract_hardlink(self, entry: ArchiveEntry, content: IO[bytes] | None) -> None:
        target = self._target(entry.name, entry)
        source = self._target(entry.linkname, entry)
        self._prepare_parent(target, entry)
        # The link source may sit behind a symlink extracted earlier
        self._ensure_inside(source, entry)
        self._clear(target)

        self._log("hard linking %s -> %s", target, source)
        os.link(source, target)

    def _skip(self, entry: ArchiveEntry, content: IO[bytes] | None) -> None:
        self._log("skipping %s (type %s)", entry.name, entry.type_code)

    def _reject(self, entry: ArchiveEntry, content: IO[bytes] | None) -> None:
        raise create_unsupported_entry_error(entry.name, entry.type_code, operation=OPERATION)

    # Helpers

    def _target(self, name: str, entry: ArchiveEntry) -> Path:
        """Map an archive name below ``dest``, rejecting escapes."""
        normalized = posixpath.normpath(name)
        if posixpath.isabs(normalized) or normalized == ".." or normalized.startswith("../"):
            raise create_archive_error(
                f"{entry.name}: path escapes the destination directory",
                code=ErrorCode.ARCHIVE_UNSAFE_PATH,
                entry_name=entry.name,
                operation=OPERATION,
            )
        return self.dest / normalized

    def _prepare_parent(self, target: Path, entry: ArchiveEntry) -> None:
        parent = target.parent
        # A symlink earlier in the archive must not redirect writes outside dest
        self._ensure_inside(parent, entry)
        parent.mkdir(mode=ArchiveDefaults.DIRECTORY_MODE, parents=True, exist_ok=True)

    def _ensure_inside(self, path: Path, entry: ArchiveEntry) -> None:
        """Reject ``path`` if its resolved location is outside ``dest``."""
        if os.path.commonpath([os.path.realpath(path), self._dest_real]) != self._dest_real:
            raise create_archive_error(
                f"{entry.name}: {path} resolves outside the destination",
                code=ErrorCode.ARCHIVE_UNSAFE_PATH,
                entry_name=entry.name,
                operation=OPERATION,
            )

    @staticmethod
    def _clear(target: Path) -> None:
        """Remove an existing non-directory so the entry can replace it."""
        if target.is_symlink() or target.is_file():
            target.unlink()
        elif target.exists() and not target.is_dir():
            os.remove(target)


_CONTENT_KINDS = frozenset({EntryKind.REGULAR, EntryKind.SPECIAL})


def extract_archive(
    source: Any,
    dest: str | Path,
    *,
    buffer_size: int = ArchiveDefaults.BUFFER_SIZE,
    cancel_event: threading.Event | None = None,
    log: Callable[..., None] = _silent,
) -> int:
    """Extract a compressed archive read from ``source`` into ``dest``.

    Returns:
        Number of entries processed
    """
    extractor = ArchiveExtractor(dest, buffer_size=buffer_size, cancel_event=cancel_event, log=log)
    return extractor.extract(source)

