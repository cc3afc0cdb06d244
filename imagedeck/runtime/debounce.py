"""Timer-based coalescing buffer for high-frequency interactions.

Nothing runs on its own thread: the owner calls ``poll`` from its event loop
and the callback fires once ``delay_seconds`` of silence have passed since
the last ``push``. Only the latest pushed value is delivered.
"""

from __future__ import annotations

import time
from collections.abc import Callable

_UNSET = object()


class Debouncer:
    """Last-value-wins debounce keyed on a monotonic deadline."""

    def __init__(
        self,
        delay_seconds: float,
        callback: Callable[[object], None],
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.delay_seconds = max(0.0, float(delay_seconds))
        self._callback = callback
        self._clock = clock
        self._value: object = _UNSET
        self._deadline = 0.0

    @property
    def pending(self) -> bool:
        return self._value is not _UNSET

    @property
    def deadline(self) -> float | None:
        return self._deadline if self.pending else None

    def push(self, value: object, now: float | None = None) -> None:
        """Replace the pending value and restart the silence window."""
        if now is None:
            now = self._clock()
        self._value = value
        self._deadline = now + self.delay_seconds

    def poll(self, now: float | None = None) -> bool:
        """Fire the callback when the deadline has passed; return whether it fired."""
        if not self.pending:
            return False
        if now is None:
            now = self._clock()
        if now < self._deadline:
            return False
        return self.flush()

    def flush(self) -> bool:
        """Fire immediately if a value is pending."""
        if not self.pending:
            return False
        value = self._value
        self._value = _UNSET
        self._callback(value)
        return True

    def cancel(self) -> None:
        """Drop the pending value without firing."""
        self._value = _UNSET


__all__ = ["Debouncer"]
