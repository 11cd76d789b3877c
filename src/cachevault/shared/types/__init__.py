"""Shared type definitions."""

from cachevault.shared.types.cli import (
    HashFilesOptions,
    HashGlobOptions,
    RestoreOptions,
    SaveOptions,
)

__all__ = [
    "HashFilesOptions",
    "HashGlobOptions",
    "RestoreOptions",
    "SaveOptions",
]
