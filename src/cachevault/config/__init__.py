"""CacheVault Configuration Module

This module provides unified access to configuration models and settings
management for the CacheVault application.
"""

from __future__ import annotations

from .loader import get_config, load_settings, reload_config
from .models import AppSettings, ArchiveSettings, LoggingSettings, Settings, StoreSettings

__all__ = [
    "AppSettings",
    "ArchiveSettings",
    "LoggingSettings",
    "Settings",
    "StoreSettings",
    "get_config",
    "load_settings",
    "reload_config",
]
