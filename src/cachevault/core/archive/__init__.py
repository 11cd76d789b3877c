"""Streaming archive pipeline (tar + zstd)."""

from cachevault.core.archive.entries import ArchiveEntry, EntryKind, collect_entries
from cachevault.core.archive.extractor import ArchiveExtractor, extract_archive
from cachevault.core.archive.writer import write_archive

__all__ = [
    "ArchiveEntry",
    "ArchiveExtractor",
    "EntryKind",
    "collect_entries",
    "extract_archive",
    "write_archive",
]
