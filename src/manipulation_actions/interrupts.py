"""Define the process-wide flag used to interrupt ongoing actions and explorations."""

from __future__ import annotations

import threading


class InterruptFlag:
    """A thread-safe flag raised by the stop channel and checked before every blocking step."""

    def __init__(self) -> None:
        """Initialize the flag in the lowered state."""
        self._event = threading.Event()

    def set(self) -> None:
        """Raise the flag, requesting that ongoing processing stop."""
        self._event.set()

    def clear(self) -> None:
        """Lower the flag so that new processing may proceed."""
        self._event.clear()

    def is_set(self) -> bool:
        """Check whether the flag is raised."""
        return self._event.is_set()
