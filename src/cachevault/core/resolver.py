"""Fallback key resolution.

Restores accept several candidate keys, each used as a name prefix. Every
object matching any prefix is considered and the most recently updated one
wins.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence

from cachevault.core.cancellation import raise_if_cancelled
from cachevault.shared.errors import (
    CacheVaultError,
    create_cache_not_found_error,
    create_storage_error,
)
from cachevault.shared.protocols import ObjectInfo, ObjectStoreProtocol

logger = logging.getLogger(__name__)

OPERATION = "resolve"


class KeyResolver:
    """Selects the newest cached object among prefix-matched candidates.

    Args:
        store: Object store to list
        debug: Log every candidate considered
    """

    def __init__(self, store: ObjectStoreProtocol, *, debug: bool = False) -> None:
        self.store = store
        self.debug = debug

    def resolve(
        self,
        bucket: str,
        keys: Sequence[str],
        *,
        cancel_event: threading.Event | None = None,
    ) -> ObjectInfo:
        """Return the most recently updated object matching any key prefix.

        Objects are compared in listing order and a candidate replaces the
        current best only when it is strictly newer, so on equal timestamps
        the first one seen is kept.

        Raises:
            CacheNotFoundError: If no object matches any key
            StorageError: If listing a prefix fails
            OperationCancelledError: If ``cancel_event`` is set
        """
        best: ObjectInfo | None = None

        for key in keys:
            self._log("listing objects with prefix %s", key)
            try:
                for info in self.store.list_objects(bucket, key):
                    raise_if_cancelled(cancel_event, OPERATION)
                    if best is None or info.updated > best.updated:
                        self._log("setting %s as best candidate (updated %s)", info.name, info.updated)
                        best = info
            except CacheVaultError:
                raise
            except Exception as exc:
                raise create_storage_error(
                    f"failed to list objects for key {key}: {exc}",
                    bucket=bucket,
                    name=key,
                    operation=OPERATION,
                    original_error=exc,
                ) from exc

        if best is None:
            raise create_cache_not_found_error(keys, operation=OPERATION)

        return best

    def _log(self, msg: str, *args: object) -> None:
        if self.debug:
            logger.debug(msg, *args)
