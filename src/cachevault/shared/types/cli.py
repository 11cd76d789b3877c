"""
CLI-related Type Definitions

This module provides option models for CLI commands. They validate
arguments at the boundary before they reach the cache protocol.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


class SaveOptions(BaseModel):
    """Options of the ``save`` command."""

    bucket: str
    key: str
    dir: Path
    timeout: float | None = Field(default=None, gt=0)
    json_output: bool = False


class RestoreOptions(BaseModel):
    """Options of the ``restore`` command."""

    bucket: str
    keys: list[str] = Field(default_factory=list)
    dir: Path
    timeout: float | None = Field(default=None, gt=0)
    json_output: bool = False


class HashGlobOptions(BaseModel):
    """Options of the ``hash-glob`` command."""

    pattern: str
    json_output: bool = False


class HashFilesOptions(BaseModel):
    """Options of the ``hash-files`` command."""

    paths: list[Path]
    json_output: bool = False


__all__ = [
    "HashFilesOptions",
    "HashGlobOptions",
    "RestoreOptions",
    "SaveOptions",
]
