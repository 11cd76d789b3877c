"""Configuration domain models."""

from __future__ import annotations

from .app_settings import AppSettings, LoggingSettings
from .archive_settings import ArchiveSettings
from .settings import Settings
from .store_settings import StoreSettings

__all__ = [
    "AppSettings",
    "ArchiveSettings",
    "LoggingSettings",
    "Settings",
    "StoreSettings",
]
