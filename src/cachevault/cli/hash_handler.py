"""Hash command handlers for CacheVault CLI.

Both commands print a bare digest so they can be used in shell
substitutions: ``cachevault restore --key "deps-$(cachevault hash-glob 'poetry.lock')"``.
"""

from __future__ import annotations

import logging
from typing import Any

import typer

from cachevault.cli.common.runtime import create_step_logger
from cachevault.cli.common.setup_decorator import setup_handler
from cachevault.cli.json_formatter import format_json_output, write_json_output
from cachevault.core.hasher import hash_files, hash_glob
from cachevault.shared.constants import CLICommands, CLIDefaults
from cachevault.shared.types.cli import HashFilesOptions, HashGlobOptions

logger = logging.getLogger(__name__)


def _emit_digest(command: str, digest: str, *, json_output: bool) -> None:
    if json_output:
        write_json_output(format_json_output(success=True, command=command, data={"digest": digest}))
    else:
        typer.echo(digest)


@setup_handler(supports_json=True, require_console=False)
def handle_hash_glob_command(options: HashGlobOptions, **kwargs: Any) -> int:
    """Hash every file matched by a glob pattern."""
    logger_adapter = kwargs.get("logger_adapter", logger)
    logger_adapter.debug("Hashing files matching %s", options.pattern)

    digest = hash_glob(options.pattern, log=create_step_logger())
    _emit_digest(CLICommands.HASH_GLOB, digest, json_output=options.json_output)
    return CLIDefaults.EXIT_SUCCESS


@setup_handler(supports_json=True, require_console=False)
def handle_hash_files_command(options: HashFilesOptions, **kwargs: Any) -> int:
    """Hash the given files in order."""
    logger_adapter = kwargs.get("logger_adapter", logger)
    logger_adapter.debug("Hashing %d files", len(options.paths))

    digest = hash_files(options.paths, log=create_step_logger())
    _emit_digest(CLICommands.HASH_FILES, digest, json_output=options.json_output)
    return CLIDefaults.EXIT_SUCCESS
