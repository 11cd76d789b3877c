"""Protocol interfaces shared across layers."""

from cachevault.shared.protocols.storage import ObjectInfo, ObjectStoreProtocol, ObjectWriter

__all__ = [
    "ObjectInfo",
    "ObjectStoreProtocol",
    "ObjectWriter",
]
