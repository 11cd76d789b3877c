"""
CacheVault Constants Module

This module provides centralized constants for the CacheVault application.
All magic values and configuration constants are defined here to ensure
consistency across the codebase.
"""

from .application import Application, ConfigFiles
from .cache import ArchiveDefaults, CacheObject, HashDefaults, StoreBackends
from .cli import CLICommands, CLIDefaults, CLIHelp, CLIMessages, CLIOptions
from .logging import LogContextKeys, Logging

__all__ = [
    "Application",
    "ArchiveDefaults",
    "CLICommands",
    "CLIDefaults",
    "CLIHelp",
    "CLIMessages",
    "CLIOptions",
    "CacheObject",
    "ConfigFiles",
    "HashDefaults",
    "LogContextKeys",
    "Logging",
    "StoreBackends",
]
