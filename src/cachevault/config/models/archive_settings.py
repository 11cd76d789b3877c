"""Archive pipeline configuration model."""

from __future__ import annotations

from pydantic import BaseModel, Field

from cachevault.shared.constants import ArchiveDefaults


class ArchiveSettings(BaseModel):
    """Archive pipeline configuration.

    Controls the zstd compression level of new archives and the buffer
    size that bounds memory use while streaming.
    """

    compression_level: int = Field(
        default=ArchiveDefaults.COMPRESSION_LEVEL,
        ge=-7,
        le=22,
        description="zstd compression level",
    )
    buffer_size: int = Field(
        default=ArchiveDefaults.BUFFER_SIZE,
        gt=0,
        description="Streaming buffer size in bytes",
    )


__all__ = ["ArchiveSettings"]
