"""Save command handler for CacheVault CLI."""

from __future__ import annotations

import logging
from typing import Any

from rich.console import Console

from cachevault.cli.common.runtime import create_cacher
from cachevault.cli.common.setup_decorator import setup_handler
from cachevault.cli.json_formatter import format_json_output, write_json_output
from cachevault.cli.progress import create_progress_manager
from cachevault.core import Deadline, SaveRequest
from cachevault.shared.constants import CLICommands, CLIDefaults, CLIMessages
from cachevault.shared.types.cli import SaveOptions

logger = logging.getLogger(__name__)


@setup_handler(supports_json=True)
def handle_save_command(options: SaveOptions, **kwargs: Any) -> int:
    """Handle the save command.

    Args:
        options: Validated save command options
        **kwargs: Injected by decorators (console, logger_adapter)

    Returns:
        Exit code (0 for success)

    Raises:
        CacheVaultError: If the save fails; the caller reports it
    """
    console: Console | None = kwargs.get("console")
    logger_adapter = kwargs.get("logger_adapter", logger)

    logger_adapter.info(CLIMessages.INFO_COMMAND_STARTED.format(command=CLICommands.SAVE))

    cacher = create_cacher()
    request = SaveRequest(bucket=options.bucket, key=options.key, dir=options.dir)
    progress = create_progress_manager(disabled=options.json_output)

    with Deadline(options.timeout) as cancel_event:
        with progress.transfer(CLIMessages.UPLOADING.format(key=options.key)) as update:
            result = cacher.save(request, cancel_event=cancel_event, progress_callback=update)

    if options.json_output:
        write_json_output(
            format_json_output(
                success=True,
                command=CLICommands.SAVE,
                data={
                    "bucket": options.bucket,
                    "key": options.key,
                    "created": result.created,
                    "reason": result.reason,
                    "bytes_written": result.bytes_written,
                    "entries": result.entries,
                },
            ),
        )
    elif console is not None:
        if result.created:
            console.print(
                CLIMessages.SAVE_CREATED.format(
                    dir=options.dir,
                    bucket=options.bucket,
                    key=options.key,
                    size=result.bytes_written,
                ),
            )
        else:
            console.print(CLIMessages.SAVE_EXISTS.format(bucket=options.bucket, key=options.key))

    logger_adapter.info(CLIMessages.INFO_COMMAND_COMPLETED.format(command=CLICommands.SAVE))
    return CLIDefaults.EXIT_SUCCESS
