"""Restore command handler for CacheVault CLI."""

from __future__ import annotations

import logging
from typing import Any

from rich.console import Console

from cachevault.cli.common.runtime import create_cacher
from cachevault.cli.common.setup_decorator import setup_handler
from cachevault.cli.json_formatter import format_json_output, write_json_output
from cachevault.cli.progress import create_progress_manager
from cachevault.core import Deadline, RestoreRequest
from cachevault.shared.constants import CLICommands, CLIDefaults, CLIMessages
from cachevault.shared.types.cli import RestoreOptions

logger = logging.getLogger(__name__)


@setup_handler(supports_json=True)
def handle_restore_command(options: RestoreOptions, **kwargs: Any) -> int:
    """Handle the restore command.

    Keys are tried as prefixes; the most recently updated match wins.

    Returns:
        Exit code (0 for success)
    """
    console: Console | None = kwargs.get("console")
    logger_adapter = kwargs.get("logger_adapter", logger)

    logger_adapter.info(CLIMessages.INFO_COMMAND_STARTED.format(command=CLICommands.RESTORE))

    cacher = create_cacher()
    request = RestoreRequest(bucket=options.bucket, keys=options.keys, dir=options.dir)
    progress = create_progress_manager(disabled=options.json_output)

    with Deadline(options.timeout) as cancel_event:
        with progress.spinner(f"Restoring into {options.dir}"):
            result = cacher.restore(request, cancel_event=cancel_event)

    if options.json_output:
        write_json_output(
            format_json_output(
                success=True,
                command=CLICommands.RESTORE,
                data={
                    "bucket": options.bucket,
                    "key": result.key,
                    "entries": result.entries,
                    "size": result.size,
                },
            ),
        )
    elif console is not None:
        console.print(
            CLIMessages.RESTORE_DONE.format(
                bucket=options.bucket,
                key=result.key,
                dir=options.dir,
                entries=result.entries,
            ),
        )

    logger_adapter.info(CLIMessages.INFO_COMMAND_COMPLETED.format(command=CLICommands.RESTORE))
    return CLIDefaults.EXIT_SUCCESS
