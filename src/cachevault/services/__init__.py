"""Object store adapters for CacheVault."""

from .filesystem_store import FilesystemObjectStore
from .gcs_store import GCSObjectStore
from .store_factory import create_object_store

__all__ = [
    "FilesystemObjectStore",
    "GCSObjectStore",
    "create_object_store",
]
