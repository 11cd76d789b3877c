"""
Reusable Typer Options Module

This module provides the global Typer options shared by the main callback.
Each one is used as ``Annotated[<type>, <option>]`` metadata.
"""

from __future__ import annotations

import typer

from cachevault.shared.constants import Application, CLIHelp, CLIOptions


def version_callback(value: bool) -> None:
    """Print version information and exit."""
    if value:
        typer.echo(CLIHelp.VERSION_TEXT.format(version=Application.VERSION))
        raise typer.Exit


# Verbose option - count-based for multiple -v flags
verbose_option = typer.Option(
    CLIOptions.VERBOSE,
    CLIOptions.VERBOSE_SHORT,
    count=True,
    help="Enable verbose output (equivalent to --log-level DEBUG).",
)

# Log level option - enum-based with case-insensitive choices
log_level_option = typer.Option(
    CLIOptions.LOG_LEVEL,
    case_sensitive=False,
    help="Set the logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL). Default: INFO.",
)

# JSON output option - flag-based
json_output_option = typer.Option(
    CLIOptions.JSON,
    help="Enable machine-readable JSON output instead of human-readable format.",
)

debug_option = typer.Option(
    CLIOptions.DEBUG,
    help=CLIHelp.DEBUG_HELP,
)

config_option = typer.Option(
    CLIOptions.CONFIG,
    help=CLIHelp.CONFIG_HELP,
    exists=True,
    dir_okay=False,
    readable=True,
)

# Version option - for main app only
version_option = typer.Option(
    CLIOptions.VERSION,
    CLIOptions.VERSION_SHORT,
    help="Show version information and exit.",
    callback=version_callback,
    is_eager=True,
)
