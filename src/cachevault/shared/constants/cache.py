"""
Cache Object Constants

This module provides the constants that describe how cache archives are
stored in the object store and how they are streamed to and from disk.
"""

# Base size units
KIB = 1024
MIB = 1024 * KIB


class CacheObject:
    """Metadata written with every cache archive."""

    CONTENT_TYPE = "application/x-zstd-compressed-tar"
    CACHE_CONTROL = "public,max-age=600"

    # Upload chunk size for resumable writes
    CHUNK_SIZE = 128_000_000
    # Resumable upload chunks must be a multiple of this
    CHUNK_ALIGNMENT = 256 * KIB


class ArchiveDefaults:
    """Archive pipeline defaults."""

    COMPRESSION_LEVEL = 3  # zstd default level
    BUFFER_SIZE = 1 * MIB
    DIRECTORY_MODE = 0o755
    MODE_MASK = 0o7777


class HashDefaults:
    """Content hasher defaults."""

    DIGEST_SIZE = 16  # 128-bit BLAKE2b
    READ_SIZE = 64 * KIB


class StoreBackends:
    """Supported object store backends."""

    GCS = "gcs"
    FILESYSTEM = "filesystem"

    USER_AGENT = "cachevault/{version}"
    METADATA_DIR = ".meta"


__all__ = [
    "ArchiveDefaults",
    "CacheObject",
    "HashDefaults",
    "StoreBackends",
]
