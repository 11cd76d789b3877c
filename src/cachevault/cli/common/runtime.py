"""Construction of the cache objects a command works with."""

from __future__ import annotations

import logging

from cachevault.cli.common.context import get_cli_context
from cachevault.config import Settings, get_config
from cachevault.core import Cacher
from cachevault.core.hasher import StepLogger
from cachevault.services import create_object_store

logger = logging.getLogger(__name__)


def debug_enabled(settings: Settings | None = None) -> bool:
    """Whether step logging is on, from ``--debug`` or ``app.debug``."""
    settings = settings or get_config()
    return get_cli_context().debug or settings.app.debug


def create_cacher(settings: Settings | None = None) -> Cacher:
    """Build a Cacher on the configured object store."""
    settings = settings or get_config()
    return Cacher(
        create_object_store(settings.store),
        debug=debug_enabled(settings),
        compression_level=settings.archive.compression_level,
        buffer_size=settings.archive.buffer_size,
    )


def create_step_logger(settings: Settings | None = None) -> StepLogger:
    """Step logger for hashing commands, which need no object store."""
    if debug_enabled(settings):
        return logger.debug
    return lambda msg, *args: None
