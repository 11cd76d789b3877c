"""
Pytest configuration and shared fixtures for CacheVault tests.

This module provides common fixtures and configuration that can be used
across all test modules in the project.
"""

from __future__ import annotations

import io
import logging
import os
import tarfile
import tempfile
from collections.abc import Callable, Generator, Iterable
from datetime import datetime, timezone
from pathlib import Path

import pytest
import zstandard

from cachevault.cli.common.context import clear_cli_context
from cachevault.config import loader as config_loader
from cachevault.services import FilesystemObjectStore
from cachevault.shared.constants import Logging
from cachevault.shared.protocols import ObjectInfo


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files.

    Yields:
        Path to the temporary directory.
    """
    with tempfile.TemporaryDirectory() as temp_path:
        yield Path(temp_path)


@pytest.fixture
def store_root(temp_dir: Path) -> Path:
    """Root directory of a filesystem object store."""
    root = temp_dir / "store"
    root.mkdir()
    return root


@pytest.fixture
def fs_store(store_root: Path) -> FilesystemObjectStore:
    """Filesystem object store with an empty root."""
    return FilesystemObjectStore(store_root)


@pytest.fixture
def sample_tree(temp_dir: Path) -> Path:
    """Create a directory tree with every entry kind the archiver handles.

    Layout::

        src/
          README.md
          bin/run.sh          (mode 0755)
          lib/data.bin
          lib/nested/deep.txt
          empty/
          link-to-readme -> README.md
          hard.bin            (hardlink of lib/data.bin)
    """
    root = temp_dir / "src"
    (root / "bin").mkdir(parents=True)
    (root / "lib" / "nested").mkdir(parents=True)
    (root / "empty").mkdir()

    (root / "README.md").write_text("# cached\n", encoding="utf-8")
    script = root / "bin" / "run.sh"
    script.write_text("#!/bin/sh\necho cached\n", encoding="utf-8")
    script.chmod(0o755)
    (root / "lib" / "data.bin").write_bytes(bytes(range(256)) * 64)
    (root / "lib" / "nested" / "deep.txt").write_text("deep\n", encoding="utf-8")
    os.symlink("README.md", root / "link-to-readme")
    os.link(root / "lib" / "data.bin", root / "hard.bin")
    return root


@pytest.fixture
def make_archive() -> Callable[[Iterable[tuple[tarfile.TarInfo, bytes | None]]], bytes]:
    """Build a compressed archive from hand-made tar members."""

    def _make(members: Iterable[tuple[tarfile.TarInfo, bytes | None]]) -> bytes:
        raw = io.BytesIO()
        with tarfile.open(fileobj=raw, mode="w|", format=tarfile.PAX_FORMAT) as tar:
            for info, data in members:
                if data is not None:
                    info.size = len(data)
                    tar.addfile(info, io.BytesIO(data))
                else:
                    tar.addfile(info)
        return zstandard.ZstdCompressor().compress(raw.getvalue())

    return _make


@pytest.fixture
def object_info() -> Callable[..., ObjectInfo]:
    """Build ObjectInfo values with ``updated`` given in epoch seconds."""

    def _make(name: str, updated: int, size: int = 0) -> ObjectInfo:
        return ObjectInfo(
            name=name,
            updated=datetime.fromtimestamp(updated, tz=timezone.utc),
            size=size,
        )

    return _make


@pytest.fixture(autouse=True)
def _reset_global_state() -> Generator[None, None, None]:
    """Undo CLI context, cached settings and logger configuration."""
    yield
    clear_cli_context()
    config_loader._loader._instance = None
    config_loader._loader._config_path = None
    logger = logging.getLogger(Logging.ROOT_LOGGER)
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, temp_dir: Path) -> None:
    """Keep tests away from real configuration files and variables."""
    for name in list(os.environ):
        if name.startswith("CACHEVAULT_"):
            monkeypatch.delenv(name)
    monkeypatch.setenv("HOME", str(temp_dir / "home"))
    monkeypatch.chdir(temp_dir)
