"""Object store protocols.

This module defines the interface the cache protocol needs from a remote
object store. Core modules depend on these protocols only; concrete adapters
live in the services layer.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import datetime
from typing import BinaryIO, Protocol


@dataclass(frozen=True)
class ObjectInfo:
    """Metadata of one object held by the store.

    Attributes:
        name: Object name (the cache key it was saved under)
        updated: Time of creation or last write, timezone aware
        content_type: Content type recorded at upload
        cache_control: Cache-Control hint recorded at upload
        size: Object size in bytes, when known
    """

    name: str
    updated: datetime
    content_type: str | None = None
    cache_control: str | None = None
    size: int | None = None


class ObjectWriter(Protocol):
    """Write stream for a new object.

    Nothing is visible in the store until ``close`` commits the upload.
    ``abort`` releases the stream without committing.
    """

    def write(self, data: bytes) -> int:
        """Append ``data`` to the object."""

    def close(self) -> None:
        """Commit the object.

        Raises:
            PreconditionFailedError: If the object was created concurrently
        """

    def abort(self) -> None:
        """Discard the upload."""


class ObjectStoreProtocol(Protocol):
    """Protocol for the remote object store.

    Example:
        >>> store: ObjectStoreProtocol = GCSObjectStore(settings.store)
        >>> info = store.get_metadata("ci-cache", "deps-1f3a")
    """

    def get_metadata(self, bucket: str, name: str) -> ObjectInfo:
        """Fetch metadata of one object.

        Raises:
            ObjectNotFoundError: If no object has that name
        """

    def list_objects(self, bucket: str, prefix: str) -> Iterator[ObjectInfo]:
        """Lazily list every object whose name starts with ``prefix``."""

    def open_writer(
        self,
        bucket: str,
        name: str,
        *,
        content_type: str,
        cache_control: str,
    ) -> ObjectWriter:
        """Open a write stream that only commits if ``name`` does not exist.

        Raises:
            PreconditionFailedError: If the object already exists
        """

    def open_reader(self, bucket: str, name: str) -> BinaryIO:
        """Open a read stream on an object.

        Raises:
            ObjectNotFoundError: If no object has that name
        """
