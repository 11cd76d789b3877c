"""Google Cloud Storage adapter.

Implements ObjectStoreProtocol on top of the google-cloud-storage client.
New objects are written with ``if_generation_match=0`` so the upload only
commits if no object of that name exists; the resulting HTTP 412 surfaces
as PreconditionFailedError.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from google.api_core import exceptions as api_exceptions
from google.api_core.client_info import ClientInfo
from google.cloud import storage

from cachevault.shared.constants import CacheObject
from cachevault.shared.errors import (
    CacheVaultError,
    create_object_exists_error,
    create_object_not_found_error,
    create_precondition_failed_error,
    create_storage_error,
)
from cachevault.shared.protocols import ObjectInfo

logger = logging.getLogger(__name__)

_HTTP_NOT_FOUND = 404
_HTTP_CONFLICT = 409
_HTTP_PRECONDITION_FAILED = 412


def _status_code(error: BaseException) -> int | None:
    """HTTP status of an API or resumable upload error, if it carries one."""
    if isinstance(error, api_exceptions.GoogleAPICallError):
        return error.code
    response = getattr(error, "response", None)
    return getattr(response, "status_code", None)


def translate_error(
    error: BaseException,
    bucket: str,
    name: str,
    operation: str,
) -> CacheVaultError:
    """Map a client library error onto the store error hierarchy."""
    status = _status_code(error)
    if isinstance(error, api_exceptions.NotFound) or status == _HTTP_NOT_FOUND:
        return create_object_not_found_error(bucket, name, operation, error)
    if isinstance(error, api_exceptions.PreconditionFailed) or status == _HTTP_PRECONDITION_FAILED:
        return create_precondition_failed_error(bucket, name, operation, error)
    if isinstance(error, api_exceptions.Conflict) or status == _HTTP_CONFLICT:
        return create_object_exists_error(bucket, name, operation, error)
    return create_storage_error(
        f"{operation} gs://{bucket}/{name} failed: {error}",
        bucket=bucket,
        name=name,
        operation=operation,
        original_error=error,
    )


@contextmanager
def _translated(bucket: str, name: str, operation: str) -> Iterator[None]:
    try:
        yield
    except CacheVaultError:
        raise
    except Exception as exc:
        raise translate_error(exc, bucket, name, operation) from exc


def align_chunk_size(chunk_size: int) -> int:
    """Round ``chunk_size`` up to the resumable upload granularity."""
    alignment = CacheObject.CHUNK_ALIGNMENT
    return max(alignment, -(-chunk_size // alignment) * alignment)


class GCSObjectWriter:
    """ObjectWriter over a resumable ``BlobWriter``.

    Closing finalizes the upload. Aborting terminates the resumable session
    so a partial archive is never committed.
    """

    def __init__(self, blob_writer: Any, bucket: str, name: str) -> None:
        self._writer = blob_writer
        self.bucket = bucket
        self.name = name

    def write(self, data: bytes) -> int:
        with _translated(self.bucket, self.name, "write"):
            return self._writer.write(data)

    def close(self) -> None:
        with _translated(self.bucket, self.name, "commit"):
            self._writer.close()

    def abort(self) -> None:
        with _translated(self.bucket, self.name, "abort"):
            self._writer.terminate()


class GCSObjectReader:
    """Read stream over a ``BlobReader`` with errors translated."""

    def __init__(self, blob_reader: Any, bucket: str, name: str) -> None:
        self._reader = blob_reader
        self.bucket = bucket
        self.name = name

    def read(self, size: int = -1) -> bytes:
        with _translated(self.bucket, self.name, "read"):
            return self._reader.read(size)

    def close(self) -> None:
        with _translated(self.bucket, self.name, "close"):
            self._reader.close()


class GCSObjectStore:
    """Object store backed by Google Cloud Storage.

    Args:
        client: Preconfigured storage client, built from the other arguments
            when omitted
        project: Google Cloud project
        chunk_size: Resumable upload chunk size, rounded up to 256 KiB
        user_agent: User agent sent with every request
    """

    def __init__(
        self,
        client: storage.Client | None = None,
        *,
        project: str | None = None,
        chunk_size: int = CacheObject.CHUNK_SIZE,
        user_agent: str | None = None,
    ) -> None:
        if client is None:
            client_info = ClientInfo(user_agent=user_agent) if user_agent else None
            try:
                client = storage.Client(project=project, client_info=client_info)
            except Exception as exc:
                raise create_storage_error(
                    f"failed to create storage client: {exc}",
                    operation="create_client",
                    original_error=exc,
                ) from exc
        self.client = client
        self.chunk_size = align_chunk_size(chunk_size)

    def get_metadata(self, bucket: str, name: str) -> ObjectInfo:
        with _translated(bucket, name, "get_metadata"):
            blob = self.client.bucket(bucket).get_blob(name)
        if blob is None:
            raise create_object_not_found_error(bucket, name, "get_metadata")
        return _to_object_info(blob)

    def list_objects(self, bucket: str, prefix: str) -> Iterator[ObjectInfo]:
        with _translated(bucket, prefix, "list_objects"):
            for blob in self.client.list_blobs(bucket, prefix=prefix):
                yield _to_object_info(blob)

    def open_writer(
        self,
        bucket: str,
        name: str,
        *,
        content_type: str,
        cache_control: str,
    ) -> GCSObjectWriter:
        with _translated(bucket, name, "open_writer"):
            blob = self.client.bucket(bucket).blob(name)
            blob.cache_control = cache_control
            blob_writer = blob.open(
                "wb",
                chunk_size=self.chunk_size,
                content_type=content_type,
                ignore_flush=True,
                if_generation_match=0,
            )
        logger.debug("Opened writer for gs://%s/%s", bucket, name)
        return GCSObjectWriter(blob_writer, bucket, name)

    def open_reader(self, bucket: str, name: str) -> GCSObjectReader:
        with _translated(bucket, name, "open_reader"):
            blob_reader = self.client.bucket(bucket).blob(name).open("rb")
        return GCSObjectReader(blob_reader, bucket, name)


def _to_object_info(blob: Any) -> ObjectInfo:
    return ObjectInfo(
        name=blob.name,
        updated=blob.updated,
        content_type=blob.content_type,
        cache_control=blob.cache_control,
        size=blob.size,
    )


__all__ = [
    "GCSObjectReader",
    "GCSObjectStore",
    "GCSObjectWriter",
    "align_chunk_size",
    "translate_error",
]
