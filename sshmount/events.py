"""
Module with utilities for following the lifecycle of a mount across threads.

The server of a mount runs on a worker thread while the thread that created the mount
carries on. The worker posts events to a central queue when it starts serving and when
it stops, and the owner asserts that these happen in the expected order. An exception
in the worker is posted to the queue as well and re-raised on the waiting side, so
failures are never lost in a background thread.

For example, the command-line interface waits for the server to stop like this:

    mount.events.expect(Event.SERVER_START)
    mount.events.expect(Event.SERVER_STOP)

Any deviation from this raises an exception that can be used to abort the program.
"""

from __future__ import annotations

from enum import auto, Enum
import queue
from typing import Any, Optional, Tuple, Union


class Event(Enum):
    """Types of events."""

    SERVER_START = auto()
    SERVER_STOP = auto()

    EXCEPTION = auto()


class UnexpectedEvent(Exception):
    """Exception raised when an event occurs that is not being waited upon."""

    def __init__(
        self,
        message: str,
        expected_event: Event,
        actual_event: Event,
        actual_value: Any,
    ) -> None:
        """Instantiate the exception with a description of what happened."""
        super().__init__(message, expected_event, actual_event, actual_value)

        self.message = message

        self.expected_event = expected_event
        self.actual_event = actual_event
        self.actual_value = actual_value


class EventQueue:
    """Thread-safe queue of events that can be notified of and waited upon."""

    def __init__(self) -> None:
        """Instantiate a new EventQueue."""
        self._queue: queue.Queue[Tuple[Event, Any]] = queue.Queue()

    def notify(self, event: Event, value: Any = None) -> None:
        """Post an event and any associated value to the queue."""
        self._queue.put((event, value))

    def exception(self, exception: Union[Exception, str]) -> None:
        """Post an exception event to the queue."""
        if isinstance(exception, Exception):
            self.notify(Event.EXCEPTION, exception)
        else:
            self.notify(Event.EXCEPTION, RuntimeError(exception))

    def expect(self, expected_event: Event, timeout: Optional[float] = None) -> Any:
        """
        Wait for the next event on the queue and check if it matches.

        Raises queue.Empty if no event arrives within the timeout.
        """
        event, value = self._queue.get(timeout=timeout)

        if event == expected_event:
            return value
        elif event == Event.EXCEPTION:
            raise value
        else:
            raise UnexpectedEvent(
                f"expected {expected_event}, but got {event}",
                expected_event,
                event,
                value,
            )
