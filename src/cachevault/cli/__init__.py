"""CacheVault command-line interface."""

from cachevault.cli.typer_app import app

__all__ = ["app"]
