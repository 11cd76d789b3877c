"""
CLI Configuration Constants

This module contains all constants related to command-line interface
configuration, default values, and user interaction settings.
"""

from typing import Literal


class CLICommands:
    """CLI command names."""

    SAVE = "save"
    RESTORE = "restore"
    HASH_GLOB = "hash-glob"
    HASH_FILES = "hash-files"


class CLIOptions:
    """CLI option names and flags."""

    # Common options
    VERBOSE = "--verbose"
    VERBOSE_SHORT = "-v"
    LOG_LEVEL = "--log-level"
    JSON = "--json"
    DEBUG = "--debug"
    CONFIG = "--config"
    VERSION = "--version"
    VERSION_SHORT = "-V"

    # Cache options
    BUCKET = "--bucket"
    KEY = "--key"
    DIR = "--dir"
    TIMEOUT = "--timeout"


class CLIHelp:
    """CLI help text and descriptions."""

    VERSION_TEXT = "CacheVault CLI v{version}"

    APP_NAME = "cachevault"
    APP_DESCRIPTION = "CacheVault - Build artifact cache backed by an object store"
    APP_STYLE: Literal["rich"] = "rich"

    BUCKET_HELP = "Name of the bucket holding the cache objects"
    SAVE_KEY_HELP = "Cache key to save the directory under"
    RESTORE_KEY_HELP = "Cache key prefix to restore (repeatable, most preferred first)"
    SAVE_DIR_HELP = "Directory to cache"
    RESTORE_DIR_HELP = "Directory to restore the cache into"
    TIMEOUT_HELP = "Abort the operation after this many seconds"
    HASH_GLOB_PATTERN_HELP = "Glob pattern selecting the files to hash"
    HASH_FILES_PATHS_HELP = "Files to hash, in order"
    DEBUG_HELP = "Log every cache step (opening, closing, candidate selection)"
    CONFIG_HELP = "Path to a TOML configuration file"


class CLIMessages:
    """CLI message templates."""

    INFO_COMMAND_STARTED = "Starting {command} command..."
    INFO_COMMAND_COMPLETED = "Completed {command} command"

    SAVE_CREATED = "[green]Saved {dir} as {bucket}/{key} ({size} bytes)[/green]"
    SAVE_EXISTS = "[yellow]Cache {bucket}/{key} already exists, skipping[/yellow]"
    RESTORE_DONE = "[green]Restored {bucket}/{key} into {dir} ({entries} entries)[/green]"
    UPLOADING = "Uploading {key}"


class CLIDefaults:
    """CLI default values."""

    EXIT_SUCCESS = 0
    EXIT_INTERRUPTED = 130


__all__ = [
    "CLICommands",
    "CLIDefaults",
    "CLIHelp",
    "CLIMessages",
    "CLIOptions",
]
