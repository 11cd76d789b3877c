"""Settings loader and singleton manager.

This module handles:
- Environment variable loading from .env files
- Configuration file loading from TOML
- Thread-safe singleton pattern for Settings instance
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from dotenv import load_dotenv
from pydantic import ValidationError

from cachevault.config.models.settings import Settings
from cachevault.shared.constants import ConfigFiles
from cachevault.shared.errors import create_config_error

logger = logging.getLogger(__name__)


class SettingsLoader:
    """Thread-safe singleton manager for Settings.

    Uses double-checked locking pattern to ensure thread-safety
    while minimizing lock overhead.
    """

    _instance: Settings | None = None
    _lock: threading.RLock = threading.RLock()

    def __init__(self) -> None:
        self._config_path: Path | None = None

    def configure(self, config_path: str | Path | None) -> None:
        """Set the configuration file used by the next (re)load."""
        with self._lock:
            self._config_path = Path(config_path) if config_path else None

    def get_config(self) -> Settings:
        """Get the global settings instance (thread-safe).

        Returns:
            The global Settings instance, loading it if necessary.
        """
        # First check (without lock for performance)
        if self._instance is None:
            # Second check (with lock for thread-safety)
            with self._lock:
                if self._instance is None:
                    self._instance = load_settings(self._config_path)

        return self._instance

    def reload_config(self) -> Settings:
        """Reload the global settings instance from configuration files.

        Returns:
            The reloaded Settings instance.
        """
        with self._lock:
            self._instance = load_settings(self._config_path)

        return self._instance


def _load_env_file(env_file: Path = Path(ConfigFiles.ENV_FILE)) -> None:
    """Load environment variables from a .env file when present.

    Variables already set in the environment take precedence.
    """
    if env_file.exists():
        load_dotenv(env_file, override=False)
        logger.debug("Loaded environment from %s", env_file)


def _default_config_paths() -> list[Path]:
    return [*ConfigFiles.SEARCH_PATHS, Path.home() / ConfigFiles.HOME_DIR / ConfigFiles.HOME_FILE]


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from TOML configuration file or environment.

    Args:
        config_path: Optional path to TOML configuration file. If None, tries to load
                    from default locations or environment variables.

    Returns:
        Settings instance loaded from the specified source

    Raises:
        ApplicationError: If the file is missing, unreadable or invalid
    """
    _load_env_file()

    path: Path | None = Path(config_path) if config_path else None
    if path is None:
        path = next((candidate for candidate in _default_config_paths() if candidate.exists()), None)

    try:
        if path is not None:
            return Settings.from_toml_file(path)
        # Fall back to environment variables and defaults
        return Settings()
    except FileNotFoundError as e:
        raise create_config_error(
            f"Configuration file not found: {path}",
            config_key=str(path),
            operation="load_settings",
            original_error=e,
        ) from e
    except (ValidationError, ValueError, OSError) as e:
        raise create_config_error(
            f"Invalid configuration: {e}",
            config_key=str(path) if path else None,
            operation="load_settings",
            original_error=e,
        ) from e


# Global loader instance
_loader = SettingsLoader()


def get_config() -> Settings:
    """Get the global settings instance (thread-safe)."""
    return _loader.get_config()


def reload_config(config_path: str | Path | None = None) -> Settings:
    """Reload the global settings instance, optionally from another file."""
    if config_path is not None:
        _loader.configure(config_path)
    return _loader.reload_config()


__all__ = [
    "SettingsLoader",
    "get_config",
    "load_settings",
    "reload_config",
]
