"""Scoped resource release.

Every handle the cache protocol opens (store writers and readers, source
files) is released on every exit path. A release failure that follows an
earlier failure is combined with it into one ResourceCleanupError; a release
failure on the success path becomes the reported error.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any, TypeVar

from cachevault.shared.errors import (
    CacheVaultError,
    ErrorCode,
    ErrorContext,
    InfrastructureError,
    create_cleanup_error,
    create_io_error,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


@contextmanager
def guarded_release(
    resource: T,
    *,
    name: str,
    operation: str,
    release: Callable[[], Any] | None = None,
    on_error: Callable[[], Any] | None = None,
    log: Callable[..., None] | None = None,
) -> Iterator[T]:
    """Yield ``resource`` and release it however the block exits.

    Args:
        resource: The handle to guard
        name: Human readable name used in error messages ("gcs writer")
        operation: Operation name recorded on errors
        release: Called when the block succeeds, defaults to ``resource.close``
        on_error: Called when the block fails, defaults to ``release``
        log: Optional step logger (``log("closing %s", name)``)

    Raises:
        ResourceCleanupError: If the block failed and releasing failed too
        CacheVaultError: If releasing failed after the block succeeded
    """
    close = release if release is not None else resource.close  # type: ignore[attr-defined]
    discard = on_error if on_error is not None else close

    try:
        yield resource
    except Exception as exc:
        if log is not None:
            log("closing %s", name)
        try:
            discard()
        except Exception as cleanup_exc:  # noqa: BLE001
            raise create_cleanup_error(name, exc, cleanup_exc, operation) from exc
        raise
    except BaseException:
        # Interrupts keep their type; a failed release is still reported
        try:
            discard()
        except Exception:  # noqa: BLE001
            logger.exception("Failed to close %s while interrupted", name)
        raise

    if log is not None:
        log("closing %s", name)
    try:
        close()
    except CacheVaultError:
        raise
    except OSError as exc:
        raise create_io_error(
            f"failed to close {name}",
            name,
            operation=operation,
            original_error=exc,
            code=ErrorCode.FILE_WRITE_ERROR,
        ) from exc
    except Exception as exc:
        raise InfrastructureError(
            ErrorCode.RESOURCE_CLEANUP_ERROR,
            f"failed to close {name}: {exc}",
            ErrorContext(operation=operation, additional_data={"resource": name}),
            exc,
        ) from exc
