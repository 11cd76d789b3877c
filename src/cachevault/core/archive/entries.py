"""Archive entry model.

An ArchiveEntry describes one file system object inside a cache archive,
independently of the tar header type that carried it.
"""

from __future__ import annotations

import logging
import os
import stat
import tarfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path, PurePath

logger = logging.getLogger(__name__)


class EntryKind(str, Enum):
    """Kinds of archive entries the pipeline distinguishes."""

    REGULAR = "regular"
    DIRECTORY = "directory"
    SYMLINK = "symlink"
    HARDLINK = "hardlink"
    SPECIAL = "special"
    IGNORABLE = "ignorable"
    UNSUPPORTED = "unsupported"


_KIND_BY_TAR_TYPE: dict[bytes, EntryKind] = {
    tarfile.REGTYPE: EntryKind.REGULAR,
    tarfile.AREGTYPE: EntryKind.REGULAR,
    tarfile.CONTTYPE: EntryKind.REGULAR,
    tarfile.GNUTYPE_SPARSE: EntryKind.REGULAR,
    tarfile.DIRTYPE: EntryKind.DIRECTORY,
    tarfile.SYMTYPE: EntryKind.SYMLINK,
    tarfile.LNKTYPE: EntryKind.HARDLINK,
    tarfile.CHRTYPE: EntryKind.SPECIAL,
    tarfile.BLKTYPE: EntryKind.SPECIAL,
    tarfile.FIFOTYPE: EntryKind.SPECIAL,
    # pax and GNU metadata headers some archivers emit
    tarfile.XGLTYPE: EntryKind.IGNORABLE,
    tarfile.XHDTYPE: EntryKind.IGNORABLE,
    tarfile.SOLARIS_XHDTYPE: EntryKind.IGNORABLE,
    tarfile.GNUTYPE_LONGNAME: EntryKind.IGNORABLE,
    tarfile.GNUTYPE_LONGLINK: EntryKind.IGNORABLE,
}


@dataclass(frozen=True)
class ArchiveEntry:
    """One item of a cache archive.

    Attributes:
        name: Path relative to the archived root, ``/`` separated
        kind: What the entry materializes as
        mode: Permission bits
        size: Content length for regular entries
        linkname: Link target for symlinks and hardlinks
        type_code: Raw tar type flag, kept for error reporting
    """

    name: str
    kind: EntryKind
    mode: int = 0o644
    size: int = 0
    linkname: str = ""
    type_code: str = ""

    @classmethod
    def from_tarinfo(cls, info: tarfile.TarInfo) -> ArchiveEntry:
        """Classify a tar member."""
        return cls(
            name=info.name,
            kind=_KIND_BY_TAR_TYPE.get(info.type, EntryKind.UNSUPPORTED),
            mode=info.mode,
            size=info.size,
            linkname=info.linkname,
            type_code=info.type.decode("ascii", "replace"),
        )


def collect_entries(root: str | Path) -> list[ArchiveEntry]:
    """Walk ``root`` and list the entries to archive.

    Directories come before their contents and names are sorted so archives
    of identical trees list entries in the same order. Symlinks are recorded,
    never followed. A file with several links is archived once and then
    referenced by hardlink entries. Sockets and other unarchivable types are
    skipped.
    """
    root_path = Path(root)
    entries: list[ArchiveEntry] = []
    seen_inodes: dict[tuple[int, int], str] = {}

    for current, dirs, files in os.walk(root_path):
        dirs.sort()
        current_path = Path(current)
        for name in sorted([*dirs, *files]):
            path = current_path / name
            arcname = PurePath(path.relative_to(root_path)).as_posix()
            entry = _entry_for(path, arcname, seen_inodes)
            if entry is None:
                logger.debug("Skipping %s: not an archivable file type", path)
                continue
            entries.append(entry)

    return entries


def _entry_for(
    path: Path,
    arcname: str,
    seen_inodes: dict[tuple[int, int], str],
) -> ArchiveEntry | None:
    st = path.lstat()
    mode = stat.S_IMODE(st.st_mode)

    if stat.S_ISLNK(st.st_mode):
        return ArchiveEntry(arcname, EntryKind.SYMLINK, mode, linkname=os.readlink(path))
    if stat.S_ISDIR(st.st_mode):
        return ArchiveEntry(arcname, EntryKind.DIRECTORY, mode)
    if stat.S_ISREG(st.st_mode):
        inode = (st.st_ino, st.st_dev)
        if st.st_nlink > 1:
            if inode in seen_inodes:
                return ArchiveEntry(arcname, EntryKind.HARDLINK, mode, linkname=seen_inodes[inode])
            seen_inodes[inode] = arcname
        return ArchiveEntry(arcname, EntryKind.REGULAR, mode, size=st.st_size)
    if stat.S_ISCHR(st.st_mode) or stat.S_ISBLK(st.st_mode) or stat.S_ISFIFO(st.st_mode):
        return ArchiveEntry(arcname, EntryKind.SPECIAL, mode)
    return None
