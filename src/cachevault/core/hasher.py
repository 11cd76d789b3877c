"""Content hashing for cache keys.

Computes a BLAKE2b-128 digest over the contents of a list of files so that
callers can derive cache keys from inputs such as lockfiles.
"""

from __future__ import annotations

import glob
import hashlib
import os
import stat
import threading
from collections.abc import Callable, Sequence
from typing import Any

from cachevault.core.cancellation import raise_if_cancelled
from cachevault.core.resources import guarded_release
from cachevault.shared.constants import HashDefaults
from cachevault.shared.errors import CacheVaultError, create_io_error

StepLogger = Callable[..., None]


def _silent(msg: str, *args: object) -> None:
    """Step logger used when debugging is off."""


def hash_files(
    paths: Sequence[str | os.PathLike[str]],
    *,
    cancel_event: threading.Event | None = None,
    log: StepLogger = _silent,
) -> str:
    """Hash the concatenated contents of ``paths`` in the given order.

    Directories are skipped so that glob results can be passed as-is. The
    order of ``paths`` is part of the digest; sort them first for an
    order-independent key.

    Args:
        paths: Files to hash
        cancel_event: Optional cancellation signal, checked between reads
        log: Step logger for debug output

    Returns:
        32 character hex digest

    Raises:
        CacheIOError: If a file cannot be opened, inspected or read
        OperationCancelledError: If ``cancel_event`` is set
    """
    digest = hashlib.blake2b(digest_size=HashDefaults.DIGEST_SIZE)

    for path in paths:
        name = os.fspath(path)
        try:
            _hash_one(name, digest, cancel_event, log)
        except CacheVaultError:
            raise
        except OSError as exc:
            raise create_io_error(
                f"failed to hash {name}",
                name,
                operation="hash_files",
                original_error=exc,
            ) from exc

    return digest.hexdigest()


def _hash_one(
    name: str,
    digest: Any,
    cancel_event: threading.Event | None,
    log: StepLogger,
) -> None:
    raise_if_cancelled(cancel_event, "hash_files")

    log("stating %s", name)
    if stat.S_ISDIR(os.stat(name).st_mode):
        log("skipping %s (is a directory)", name)
        return

    log("opening %s", name)
    with guarded_release(open(name, "rb"), name=name, operation="hash_files", log=log) as handle:  # noqa: SIM115
        log("hashing %s", name)
        while chunk := handle.read(HashDefaults.READ_SIZE):
            digest.update(chunk)
            raise_if_cancelled(cancel_event, "hash_files")


def expand_glob(pattern: str) -> list[str]:
    """Expand ``pattern`` into matching paths, sorted, dot-files included."""
    return sorted(glob.glob(pattern, recursive=True, include_hidden=True))


def hash_glob(
    pattern: str,
    *,
    cancel_event: threading.Event | None = None,
    log: StepLogger = _silent,
) -> str:
    """Hash every file matched by ``pattern``.

    A pattern that matches nothing hashes the empty input.
    """
    matches = expand_glob(pattern)
    log("pattern %s matched %d paths", pattern, len(matches))
    return hash_files(matches, cancel_event=cancel_event, log=log)
