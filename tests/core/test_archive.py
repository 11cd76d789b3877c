"""Tests for the archive pipeline."""

from __future__ import annotations

import io
import os
import stat
import tarfile
import threading
from pathlib import Path

import pytest
import zstandard

from cachevault.core.archive import (
    ArchiveEntry,
    ArchiveExtractor,
    EntryKind,
    collect_entries,
    extract_archive,
    write_archive,
)
from cachevault.shared.errors import (
    ArchiveError,
    CacheIOError,
    ErrorCode,
    OperationCancelledError,
    UnsupportedEntryTypeError,
)


def _round_trip(src: Path, dest: Path) -> int:
    sink = io.BytesIO()
    write_archive(sink, src)
    sink.seek(0)
    return extract_archive(sink, dest)


class TestCollectEntries:
    """Walking a tree into archive entries."""

    def test_entries_are_sorted_with_parents_first(self, sample_tree: Path) -> None:
        names = [entry.name for entry in collect_entries(sample_tree)]

        assert names.index("lib") < names.index("lib/data.bin")
        assert names.index("lib/nested") < names.index("lib/nested/deep.txt")
        assert names[0] == "README.md"

    def test_kinds_are_classified(self, sample_tree: Path) -> None:
        kinds = {entry.name: entry.kind for entry in collect_entries(sample_tree)}

        assert kinds["empty"] is EntryKind.DIRECTORY
        assert kinds["README.md"] is EntryKind.REGULAR
        assert kinds["link-to-readme"] is EntryKind.SYMLINK

    def test_second_hardlink_references_first(self, sample_tree: Path) -> None:
        entries = {entry.name: entry for entry in collect_entries(sample_tree)}

        # "hard.bin" sorts before "lib/", so it is archived as the file
        assert entries["hard.bin"].kind is EntryKind.REGULAR
        assert entries["lib/data.bin"].kind is EntryKind.HARDLINK
        assert entries["lib/data.bin"].linkname == "hard.bin"

    def test_symlink_target_recorded(self, sample_tree: Path) -> None:
        entries = {entry.name: entry for entry in collect_entries(sample_tree)}

        assert entries["link-to-readme"].linkname == "README.md"


class TestArchiveEntry:
    """Classification of tar members."""

    @pytest.mark.parametrize(
        ("type_flag", "kind"),
        [
            (tarfile.REGTYPE, EntryKind.REGULAR),
            (tarfile.AREGTYPE, EntryKind.REGULAR),
            (tarfile.CONTTYPE, EntryKind.REGULAR),
            (tarfile.DIRTYPE, EntryKind.DIRECTORY),
            (tarfile.SYMTYPE, EntryKind.SYMLINK),
            (tarfile.LNKTYPE, EntryKind.HARDLINK),
            (tarfile.FIFOTYPE, EntryKind.SPECIAL),
            (tarfile.XGLTYPE, EntryKind.IGNORABLE),
            (b"Z", EntryKind.UNSUPPORTED),
        ],
    )
    def test_from_tarinfo(self, type_flag: bytes, kind: EntryKind) -> None:
        info = tarfile.TarInfo("x")
        info.type = type_flag

        entry = ArchiveEntry.from_tarinfo(info)

        assert entry.kind is kind
        assert entry.type_code == type_flag.decode()


class TestRoundTrip:
    """write_archive followed by extract_archive."""

    def test_contents_restored(self, sample_tree: Path, temp_dir: Path) -> None:
        dest = temp_dir / "restored"

        _round_trip(sample_tree, dest)

        assert (dest / "README.md").read_text(encoding="utf-8") == "# cached\n"
        assert (dest / "lib" / "data.bin").read_bytes() == (sample_tree / "lib" / "data.bin").read_bytes()
        assert (dest / "lib" / "nested" / "deep.txt").read_text(encoding="utf-8") == "deep\n"
        assert (dest / "empty").is_dir()

    def test_modes_restored(self, sample_tree: Path, temp_dir: Path) -> None:
        dest = temp_dir / "restored"

        _round_trip(sample_tree, dest)

        assert stat.S_IMODE((dest / "bin" / "run.sh").stat().st_mode) == 0o755

    def test_symlink_restored_verbatim(self, sample_tree: Path, temp_dir: Path) -> None:
        dest = temp_dir / "restored"

        _round_trip(sample_tree, dest)

        link = dest / "link-to-readme"
        assert link.is_symlink()
        assert os.readlink(link) == "README.md"

    def test_hardlink_restored_as_same_inode(self, sample_tree: Path, temp_dir: Path) -> None:
        dest = temp_dir / "restored"

        _round_trip(sample_tree, dest)

        assert os.path.samefile(dest / "hard.bin", dest / "lib" / "data.bin")

    def test_entry_count(self, sample_tree: Path, temp_dir: Path) -> None:
        count = _round_trip(sample_tree, temp_dir / "restored")

        assert count == len(collect_entries(sample_tree))

    def test_existing_file_is_replaced(self, sample_tree: Path, temp_dir: Path) -> None:
        dest = temp_dir / "restored"
        dest.mkdir()
        (dest / "README.md").write_text("stale", encoding="utf-8")
        os.symlink("elsewhere", dest / "link-to-readme")

        _round_trip(sample_tree, dest)

        assert (dest / "README.md").read_text(encoding="utf-8") == "# cached\n"
        assert os.readlink(dest / "link-to-readme") == "README.md"

    def test_restore_is_repeatable(self, sample_tree: Path, temp_dir: Path) -> None:
        dest = temp_dir / "restored"

        _round_trip(sample_tree, dest)
        _round_trip(sample_tree, dest)

        assert os.path.samefile(dest / "hard.bin", dest / "lib" / "data.bin")

    def test_empty_directory_round_trips(self, temp_dir: Path) -> None:
        src = temp_dir / "nothing"
        src.mkdir()

        assert _round_trip(src, temp_dir / "restored") == 0

    @pytest.mark.skipif(not hasattr(os, "mkfifo"), reason="named pipes need POSIX")
    def test_fifo_restored_as_regular_file(self, temp_dir: Path) -> None:
        src = temp_dir / "src"
        src.mkdir()
        os.mkfifo(src / "pipe")
        os.chmod(src / "pipe", 0o640)
        dest = temp_dir / "restored"

        _round_trip(src, dest)

        mode = (dest / "pipe").lstat().st_mode
        assert stat.S_ISREG(mode)
        assert stat.S_IMODE(mode) == 0o640
        assert (dest / "pipe").read_bytes() == b""

    @pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
    @pytest.mark.parametrize("type_flag", [tarfile.CHRTYPE, tarfile.BLKTYPE, tarfile.FIFOTYPE])
    def test_special_member_restored_with_recorded_mode(
        self, make_archive, temp_dir: Path, type_flag: bytes
    ) -> None:
        info = tarfile.TarInfo("dev/node")
        info.type = type_flag
        info.mode = 0o604
        archive = make_archive([(info, None)])
        dest = temp_dir / "restored"

        extract_archive(io.BytesIO(archive), dest)

        mode = (dest / "dev" / "node").lstat().st_mode
        assert stat.S_ISREG(mode)
        assert stat.S_IMODE(mode) == 0o604


class TestWriteArchive:
    """Writer failures."""

    def test_cancel_event_stops_writing(self, sample_tree: Path) -> None:
        cancel_event = threading.Event()
        cancel_event.set()

        with pytest.raises(OperationCancelledError):
            write_archive(io.BytesIO(), sample_tree, cancel_event=cancel_event)

    def test_vanished_file_raises_io_error(self, sample_tree: Path) -> None:
        entries = collect_entries(sample_tree)
        (sample_tree / "README.md").unlink()

        with pytest.raises(CacheIOError) as exc_info:
            write_archive(io.BytesIO(), sample_tree, entries)

        assert "README.md" in exc_info.value.message


class TestExtractArchive:
    """Extractor validation of hostile or broken archives."""

    def test_unknown_entry_type_rejected(self, make_archive, temp_dir: Path) -> None:
        info = tarfile.TarInfo("weird")
        info.type = b"Z"
        archive = make_archive([(info, None)])

        with pytest.raises(UnsupportedEntryTypeError) as exc_info:
            extract_archive(io.BytesIO(archive), temp_dir / "out")

        assert exc_info.value.code == ErrorCode.UNSUPPORTED_ENTRY_TYPE
        assert exc_info.value.entry_name == "weird"
        assert exc_info.value.type_code == "Z"

    @pytest.mark.parametrize("name", ["../escape.txt", "/abs/escape.txt", "a/../../escape.txt"])
    def test_escaping_paths_rejected(self, make_archive, temp_dir: Path, name: str) -> None:
        archive = make_archive([(tarfile.TarInfo(name), b"x")])

        with pytest.raises(ArchiveError) as exc_info:
            extract_archive(io.BytesIO(archive), temp_dir / "out")

        assert exc_info.value.code == ErrorCode.ARCHIVE_UNSAFE_PATH
        assert not (temp_dir / "escape.txt").exists()

    def test_write_through_symlink_rejected(self, make_archive, temp_dir: Path) -> None:
        outside = temp_dir / "outside"
        outside.mkdir()
        link = tarfile.TarInfo("sneaky")
        link.type = tarfile.SYMTYPE
        link.linkname = str(outside)
        archive = make_archive([(link, None), (tarfile.TarInfo("sneaky/payload"), b"x")])

        with pytest.raises(ArchiveError) as exc_info:
            extract_archive(io.BytesIO(archive), temp_dir / "out")

        assert exc_info.value.code == ErrorCode.ARCHIVE_UNSAFE_PATH
        assert not (outside / "payload").exists()

    def test_directory_through_symlink_rejected(self, make_archive, temp_dir: Path) -> None:
        outside = temp_dir / "outside"
        outside.mkdir()
        link = tarfile.TarInfo("link")
        link.type = tarfile.SYMTYPE
        link.linkname = str(outside)
        directory = tarfile.TarInfo("link/created-outside")
        directory.type = tarfile.DIRTYPE
        archive = make_archive([(link, None), (directory, None)])

        with pytest.raises(ArchiveError) as exc_info:
            extract_archive(io.BytesIO(archive), temp_dir / "out")

        assert exc_info.value.code == ErrorCode.ARCHIVE_UNSAFE_PATH
        assert exc_info.value.entry_name == "link/created-outside"
        assert not (outside / "created-outside").exists()

    def test_nested_file_through_symlink_creates_nothing_outside(self, make_archive, temp_dir: Path) -> None:
        outside = temp_dir / "outside"
        outside.mkdir()
        link = tarfile.TarInfo("link")
        link.type = tarfile.SYMTYPE
        link.linkname = str(outside)
        archive = make_archive([(link, None), (tarfile.TarInfo("link/a/b/payload"), b"x")])

        with pytest.raises(ArchiveError) as exc_info:
            extract_archive(io.BytesIO(archive), temp_dir / "out")

        assert exc_info.value.code == ErrorCode.ARCHIVE_UNSAFE_PATH
        assert list(outside.iterdir()) == []

    def test_hardlink_source_through_symlink_rejected(self, make_archive, temp_dir: Path) -> None:
        outside = temp_dir / "outside"
        outside.mkdir()
        secret = outside / "secret"
        secret.write_bytes(b"private")
        link = tarfile.TarInfo("link")
        link.type = tarfile.SYMTYPE
        link.linkname = str(outside)
        hard = tarfile.TarInfo("stolen")
        hard.type = tarfile.LNKTYPE
        hard.linkname = "link/secret"
        archive = make_archive([(link, None), (hard, None)])
        out = temp_dir / "out"

        with pytest.raises(ArchiveError) as exc_info:
            extract_archive(io.BytesIO(archive), out)

        assert exc_info.value.code == ErrorCode.ARCHIVE_UNSAFE_PATH
        assert exc_info.value.entry_name == "stolen"
        assert not (out / "stolen").exists()
        assert secret.stat().st_nlink == 1

    def test_multi_frame_stream_fully_extracted(self, temp_dir: Path) -> None:
        raw = io.BytesIO()
        with tarfile.open(fileobj=raw, mode="w|", format=tarfile.PAX_FORMAT) as tar:
            for name, data in [("first.txt", b"one"), ("second.txt", b"two" * 4096)]:
                info = tarfile.TarInfo(name)
                info.size = len(data)
                tar.addfile(info, io.BytesIO(data))
        payload = raw.getvalue()
        half = len(payload) // 2
        compressor = zstandard.ZstdCompressor()
        # Two independent frames, as parallel compressors emit
        archive = compressor.compress(payload[:half]) + compressor.compress(payload[half:])
        dest = temp_dir / "out"

        assert extract_archive(io.BytesIO(archive), dest) == 2
        assert (dest / "first.txt").read_bytes() == b"one"
        assert (dest / "second.txt").read_bytes() == b"two" * 4096

    def test_corrupted_stream(self, temp_dir: Path) -> None:
        with pytest.raises(ArchiveError) as exc_info:
            extract_archive(io.BytesIO(b"definitely not zstd"), temp_dir / "out")

        assert exc_info.value.code == ErrorCode.ARCHIVE_CORRUPTED

    def test_ignorable_entries_skipped(self, temp_dir: Path) -> None:
        out = temp_dir / "out"
        out.mkdir()
        extractor = ArchiveExtractor(out)

        extractor.dispatch(ArchiveEntry("pax_global_header", EntryKind.IGNORABLE, type_code="g"))

        assert list(out.iterdir()) == []

    def test_parents_created_for_files_without_directory_entries(self, make_archive, temp_dir: Path) -> None:
        archive = make_archive([(tarfile.TarInfo("a/b/c.txt"), b"c")])

        extract_archive(io.BytesIO(archive), temp_dir / "out")

        assert (temp_dir / "out" / "a" / "b" / "c.txt").read_bytes() == b"c"

    def test_cancelled_extract(self, make_archive, temp_dir: Path) -> None:
        archive = make_archive([(tarfile.TarInfo("f"), b"x")])
        cancel_event = threading.Event()
        cancel_event.set()

        with pytest.raises(OperationCancelledError):
            extract_archive(io.BytesIO(archive), temp_dir / "out", cancel_event=cancel_event)

    def test_unwritable_destination_raises_io_error(self, make_archive, temp_dir: Path) -> None:
        out = temp_dir / "out"
        out.mkdir()
        # A directory where the archive has a file cannot be replaced
        (out / "f").mkdir()
        (out / "f" / "child").write_bytes(b"")
        archive = make_archive([(tarfile.TarInfo("f"), b"x")])

        with pytest.raises(CacheIOError) as exc_info:
            extract_archive(io.BytesIO(archive), out)

        assert exc_info.value.code == ErrorCode.FILE_WRITE_ERROR
        assert "f" in exc_info.value.message
