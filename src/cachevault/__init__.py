"""CacheVault - build artifact cache backed by an object store."""

from cachevault.shared.constants import Application

__version__ = Application.VERSION

__all__ = ["__version__"]
