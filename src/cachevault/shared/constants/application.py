"""Application identity and configuration file locations."""

from pathlib import Path


class Application:
    """Application metadata."""

    NAME = "cachevault"
    VERSION = "0.1.0"
    ENV_PREFIX = "CACHEVAULT_"


class ConfigFiles:
    """Configuration file lookup, first existing file wins."""

    ENV_FILE = ".env"
    HOME_DIR = ".cachevault"
    SEARCH_PATHS = (
        Path("cachevault.toml"),
        Path("config") / "cachevault.toml",
    )
    HOME_FILE = "config.toml"


__all__ = ["Application", "ConfigFiles"]
