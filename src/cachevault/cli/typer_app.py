"""
CacheVault Typer CLI Application

This is the main Typer-based CLI application for CacheVault. It saves
directories to and restores them from an object store, and derives cache
keys from file contents.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any, Callable

import typer

from cachevault.cli.common.context import CliContext, LogLevel, get_cli_context, set_cli_context
from cachevault.cli.common.error_handler import handle_cli_error
from cachevault.cli.common.options import (
    config_option,
    debug_option,
    json_output_option,
    log_level_option,
    verbose_option,
    version_option,
)
from cachevault.cli.hash_handler import handle_hash_files_command, handle_hash_glob_command
from cachevault.cli.restore_handler import handle_restore_command
from cachevault.cli.save_handler import handle_save_command
from cachevault.config import get_config, reload_config
from cachevault.shared.constants import CLICommands, CLIDefaults, CLIHelp, CLIOptions
from cachevault.shared.logging import setup_logging
from cachevault.shared.types.cli import (
    HashFilesOptions,
    HashGlobOptions,
    RestoreOptions,
    SaveOptions,
)


def main_callback(
    verbose: int,
    log_level: LogLevel,
    json_output: bool,
    debug: bool,
    config_path: Path | None,
) -> None:
    """
    Set up the CLI context, configuration and logging.

    Args:
        verbose: Verbosity level (count-based)
        log_level: Logging level (enum-based)
        json_output: Whether to output in JSON format
        debug: Whether to log every cache protocol step
        config_path: Explicit configuration file
    """
    context = CliContext(
        verbose=verbose,
        log_level=log_level,
        json_output=json_output,
        debug=debug,
        config_path=config_path,
    )
    set_cli_context(context)

    settings = reload_config(config_path) if config_path else get_config()
    if settings.app.debug:
        context = context.model_copy(update={"debug": True})
        set_cli_context(context)

    setup_logging(
        context.get_effective_log_level(),
        settings.logging.file,
        use_rich=settings.logging.use_rich,
    )


app = typer.Typer(
    name=CLIHelp.APP_NAME,
    help=CLIHelp.APP_DESCRIPTION,
    add_completion=False,
    rich_markup_mode=CLIHelp.APP_STYLE,
    no_args_is_help=True,
)


@app.callback()
def main(
    verbose: Annotated[int, verbose_option] = 0,
    log_level: Annotated[LogLevel, log_level_option] = LogLevel.INFO,
    json_output: Annotated[bool, json_output_option] = False,
    debug: Annotated[bool, debug_option] = False,
    config_path: Annotated[Path | None, config_option] = None,
    version: Annotated[bool, version_option] = False,
) -> None:
    """Main CLI callback with error handling."""
    try:
        main_callback(verbose, log_level, json_output, debug, config_path)
    except Exception as e:
        exit_code = handle_cli_error(e, "main-callback", json_output=json_output)
        raise typer.Exit(exit_code) from e


def _run(command: str, handler: Callable[..., int], options: Any) -> None:
    """Run a handler and turn its failures into an exit code."""
    try:
        exit_code = handler(options)
    except (Exception, KeyboardInterrupt) as e:
        exit_code = handle_cli_error(e, command, json_output=get_cli_context().json_output)
        raise typer.Exit(exit_code) from e

    if exit_code != CLIDefaults.EXIT_SUCCESS:
        raise typer.Exit(exit_code)


@app.command(CLICommands.SAVE)
def save_command(
    bucket: str = typer.Option(..., CLIOptions.BUCKET, help=CLIHelp.BUCKET_HELP),
    key: str = typer.Option(..., CLIOptions.KEY, help=CLIHelp.SAVE_KEY_HELP),
    directory: Path = typer.Option(..., CLIOptions.DIR, help=CLIHelp.SAVE_DIR_HELP),
    timeout: float | None = typer.Option(
        None,
        CLIOptions.TIMEOUT,
        help=CLIHelp.TIMEOUT_HELP,
        min=0.001,
    ),
) -> None:
    """
    Save a directory as a compressed archive under a cache key.

    Saving a key that already exists does nothing, so it is safe to run
    after every build. Concurrent saves of the same key are safe too.

    Examples:
        # Cache node_modules under a lockfile-derived key
        cachevault save --bucket ci-cache --key "deps-$(cachevault hash-glob package-lock.json)" --dir node_modules
    """
    options = SaveOptions(
        bucket=bucket,
        key=key,
        dir=directory,
        timeout=timeout,
        json_output=get_cli_context().json_output,
    )
    _run(CLICommands.SAVE, handle_save_command, options)


@app.command(CLICommands.RESTORE)
def restore_command(
    bucket: str = typer.Option(..., CLIOptions.BUCKET, help=CLIHelp.BUCKET_HELP),
    keys: list[str] = typer.Option(..., CLIOptions.KEY, help=CLIHelp.RESTORE_KEY_HELP),
    directory: Path = typer.Option(..., CLIOptions.DIR, help=CLIHelp.RESTORE_DIR_HELP),
    timeout: float | None = typer.Option(
        None,
        CLIOptions.TIMEOUT,
        help=CLIHelp.TIMEOUT_HELP,
        min=0.001,
    ),
) -> None:
    """
    Restore the newest cached archive matching any of the keys.

    Each key is a name prefix, so an exact key can be followed by broader
    fallbacks.

    Examples:
        # Exact lockfile match, or else the newest deps archive
        cachevault restore --bucket ci-cache --key "deps-$HASH" --key deps- --dir node_modules
    """
    options = RestoreOptions(
        bucket=bucket,
        keys=keys,
        dir=directory,
        timeout=timeout,
        json_output=get_cli_context().json_output,
    )
    _run(CLICommands.RESTORE, handle_restore_command, options)


@app.command(CLICommands.HASH_GLOB)
def hash_glob_command(
    pattern: str = typer.Argument(..., help=CLIHelp.HASH_GLOB_PATTERN_HELP),
) -> None:
    """
    Print a digest of every file matched by a glob pattern.

    ``**`` matches any number of directories.
    """
    options = HashGlobOptions(pattern=pattern, json_output=get_cli_context().json_output)
    _run(CLICommands.HASH_GLOB, handle_hash_glob_command, options)


@app.command(CLICommands.HASH_FILES)
def hash_files_command(
    paths: list[Path] = typer.Argument(..., help=CLIHelp.HASH_FILES_PATHS_HELP),
) -> None:
    """Print a digest of the given files, in the given order."""
    options = HashFilesOptions(paths=paths, json_output=get_cli_context().json_output)
    _run(CLICommands.HASH_FILES, handle_hash_files_command, options)


if __name__ == "__main__":
    app()
