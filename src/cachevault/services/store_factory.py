"""Object store construction from configuration."""

from __future__ import annotations

import logging

from cachevault.config.models import StoreSettings
from cachevault.services.filesystem_store import FilesystemObjectStore
from cachevault.services.gcs_store import GCSObjectStore
from cachevault.shared.constants import StoreBackends
from cachevault.shared.errors import create_config_error
from cachevault.shared.protocols import ObjectStoreProtocol

logger = logging.getLogger(__name__)


def create_object_store(settings: StoreSettings) -> ObjectStoreProtocol:
    """Build the object store selected by ``settings.backend``.

    Raises:
        ApplicationError: If the backend is unknown or misconfigured
    """
    logger.debug("Creating %s object store", settings.backend)

    if settings.backend == StoreBackends.GCS:
        return GCSObjectStore(
            project=settings.project,
            chunk_size=settings.chunk_size,
            user_agent=settings.user_agent,
        )

    if settings.backend == StoreBackends.FILESYSTEM:
        if not settings.root:
            raise create_config_error(
                "store.root is required for the filesystem backend",
                config_key="store.root",
                operation="create_object_store",
            )
        return FilesystemObjectStore(settings.root)

    raise create_config_error(
        f"Unknown store backend: {settings.backend}",
        config_key="store.backend",
        operation="create_object_store",
    )
