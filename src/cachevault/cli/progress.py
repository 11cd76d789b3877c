"""
Progress Display Utility Module

This module wraps Rich's progress display for the CacheVault CLI: a transfer
bar for uploads, whose total size is unknown until the archive is complete,
and a spinner for operations of unknown duration.
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from contextlib import contextmanager

from rich.console import Console
from rich.progress import (
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
    TransferSpeedColumn,
)


class ProgressManager:
    """
    A wrapper around Rich's Progress class for CacheVault commands.

    Progress display can be disabled for non-interactive modes or JSON
    output; the methods then do nothing.
    """

    def __init__(self, *, disabled: bool = False, console: Console | None = None) -> None:
        """
        Initialize the ProgressManager.

        Args:
            disabled: If True, progress display will be disabled
            console: Console to render on, stderr by default
        """
        self.disabled = disabled

        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            DownloadColumn(),
            TransferSpeedColumn(),
            TimeElapsedColumn(),
            console=console or Console(stderr=True),
            disable=disabled,
            transient=True,
        )

    @contextmanager
    def transfer(self, description: str) -> Generator[Callable[[int], None], None, None]:
        """
        Display a byte counter while a transfer runs.

        Yields:
            Callback taking the running byte count

        Example:
            >>> with progress.transfer("Uploading deps-1f3a") as update:
            ...     cacher.save(request, progress_callback=update)
        """
        if self.disabled:
            yield lambda completed: None
            return

        task_id = self._progress.add_task(description, total=None)

        def update(completed: int) -> None:
            self._progress.update(task_id, completed=completed)

        try:
            with self._progress:
                yield update
        finally:
            self._progress.remove_task(task_id)

    @contextmanager
    def spinner(self, description: str = "Working...") -> Generator[None, None, None]:
        """
        Display a spinner for operations of unknown duration.

        Args:
            description: Description text to display with the spinner
        """
        if self.disabled:
            yield
            return

        task_id = self._progress.add_task(description, total=None)

        try:
            with self._progress:
                yield
        finally:
            self._progress.remove_task(task_id)


def create_progress_manager(*, disabled: bool = False) -> ProgressManager:
    """
    Factory function to create a ProgressManager instance.

    Args:
        disabled: If True, progress display will be disabled

    Returns:
        A new ProgressManager instance
    """
    return ProgressManager(disabled=disabled)
