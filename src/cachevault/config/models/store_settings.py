"""Object store configuration model."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from cachevault.shared.constants import Application, CacheObject, StoreBackends


class StoreSettings(BaseModel):
    """Object store configuration.

    This class selects the storage backend and carries the options each
    backend needs: the Google Cloud project for ``gcs`` and the root
    directory for ``filesystem``.
    """

    backend: Literal["gcs", "filesystem"] = Field(
        default=StoreBackends.GCS,
        description="Storage backend (gcs, filesystem)",
    )
    project: str | None = Field(
        default=None,
        description="Google Cloud project, inferred from the environment when unset",
    )
    root: str | None = Field(
        default=None,
        description="Root directory of the filesystem backend",
    )
    chunk_size: int = Field(
        default=CacheObject.CHUNK_SIZE,
        gt=0,
        description="Upload chunk size in bytes",
    )
    user_agent: str = Field(
        default=StoreBackends.USER_AGENT.format(version=Application.VERSION),
        description="User agent reported to the store",
    )

    @model_validator(mode="after")
    def _require_root_for_filesystem(self) -> StoreSettings:
        if self.backend == StoreBackends.FILESYSTEM and not self.root:
            msg = "store.root is required for the filesystem backend"
            raise ValueError(msg)
        return self


__all__ = ["StoreSettings"]
