"""Cancellation helpers.

Operations accept an optional ``threading.Event``; once it is set, the next
I/O boundary raises OperationCancelledError. Deadlines are expressed as a
timer that sets the same event.
"""

from __future__ import annotations

import threading
import types

from cachevault.shared.errors import create_cancelled_error


def raise_if_cancelled(cancel_event: threading.Event | None, operation: str) -> None:
    """Raise OperationCancelledError if ``cancel_event`` is set.

    Args:
        cancel_event: Cancellation signal, or None when the caller cannot cancel
        operation: Operation name recorded on the error
    """
    if cancel_event is not None and cancel_event.is_set():
        raise create_cancelled_error(operation)


class Deadline:
    """Context manager that sets a cancellation event after ``seconds``.

    Example:
        >>> with Deadline(300) as cancel_event:
        ...     cacher.save(request, cancel_event=cancel_event)
    """

    def __init__(
        self,
        seconds: float | None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        """Initialize the deadline.

        Args:
            seconds: Time budget; None disables the timer
            cancel_event: Event to set, a new one is created when omitted
        """
        self.seconds = seconds
        self.cancel_event = cancel_event if cancel_event is not None else threading.Event()
        self._timer: threading.Timer | None = None

    def __enter__(self) -> threading.Event:
        if self.seconds is not None:
            self._timer = threading.Timer(self.seconds, self.cancel_event.set)
            self._timer.daemon = True
            self._timer.start()
        return self.cancel_event

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def expired(self) -> bool:
        """Return True once the deadline has fired."""
        return self.cancel_event.is_set()
