"""CLI setup decorator module.

This module provides a decorator for standardizing CLI handler initialization:
console creation and a LoggerAdapter carrying the command name.
"""

from __future__ import annotations

import functools
import logging
from typing import Any, Callable, TypeVar

from rich.console import Console

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def setup_handler(
    *,
    supports_json: bool = False,
    require_console: bool = True,
) -> Callable[[F], F]:
    """Decorator for standardized CLI handler initialization.

    The decorated function receives:
    - console: Rich Console instance (omitted in JSON mode)
    - logger_adapter: LoggerAdapter with command context

    Args:
        supports_json: Whether handler supports JSON output mode
        require_console: Whether Rich Console should be created

    Example:
        >>> @setup_handler(supports_json=True)
        ... def handle_save_command(options, **kwargs):
        ...     console = kwargs.get("console")
    """

    def decorator(func: F) -> F:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            options = _extract_options(args, kwargs)

            # Create Rich Console if required and not in JSON mode
            console = None
            if require_console:
                is_json_mode = supports_json and bool(getattr(options, "json_output", False))
                if not is_json_mode:
                    console = Console()

            logger_adapter = logging.LoggerAdapter(
                logger,
                extra={
                    "command": func.__name__,
                    "operation": func.__name__,
                },
            )

            if console is not None:
                kwargs["console"] = console
            kwargs["logger_adapter"] = logger_adapter

            return func(*args, **kwargs)

        return wrapper  # type: ignore[return-value]

    return decorator


def _extract_options(args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
    """Return the options model passed to the handler.

    Raises:
        ValueError: If no options object found
    """
    for arg in args:
        if hasattr(arg, "json_output"):
            return arg

    if "options" in kwargs:
        return kwargs["options"]

    if args:
        return args[0]

    msg = "No options object found in function arguments"
    raise ValueError(msg)
