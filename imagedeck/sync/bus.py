"""In-process host bus: command handlers plus a queued event stream.

Commands run synchronously on ``invoke``; events emitted by command handlers
are queued and only delivered by ``dispatch_pending``, so a window never
observes a snapshot re-entrantly from inside its own intent.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from collections.abc import Callable, Mapping

LOGGER = logging.getLogger("imagedeck.bus")

EventHandler = Callable[[object, "str | None"], None]
CommandHandler = Callable[[Mapping[str, object]], object]


class HostRequestError(RuntimeError):
    """A request or intent was rejected by the host side."""

    def __init__(self, name: str, message: str) -> None:
        super().__init__(f"{name}: {message}")
        self.name = name


class InProcessBus:
    """Named commands and window-targeted events within one process."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._commands: dict[str, CommandHandler] = {}
        self._listeners: dict[str, list[tuple[int, EventHandler]]] = {}
        self._next_listener_id = 1
        self._queue: deque[tuple[str, object, str | None]] = deque()

    def register_command(self, name: str, handler: CommandHandler) -> None:
        with self._lock:
            self._commands[name] = handler

    def invoke(self, name: str, payload: Mapping[str, object] | None = None) -> object:
        """Run a command handler; every failure surfaces as ``HostRequestError``."""
        with self._lock:
            handler = self._commands.get(name)
        if handler is None:
            raise HostRequestError(name, "no handler registered")
        try:
            return handler(dict(payload or {}))
        except HostRequestError:
            raise
        except Exception as exc:
            raise HostRequestError(name, str(exc) or type(exc).__name__) from exc

    def listen(self, event_name: str, handler: EventHandler) -> Callable[[], None]:
        """Attach ``handler``; the returned callable detaches it (idempotent)."""
        with self._lock:
            listener_id = self._next_listener_id
            self._next_listener_id += 1
            self._listeners.setdefault(event_name, []).append((listener_id, handler))

        def unlisten() -> None:
            with self._lock:
                current = self._listeners.get(event_name, [])
                self._listeners[event_name] = [item for item in current if item[0] != listener_id]

        return unlisten

    def listener_count(self, event_name: str) -> int:
        with self._lock:
            return len(self._listeners.get(event_name, []))

    def emit(self, event_name: str, payload: object, target: str | None = None) -> None:
        """Queue an event for ``target`` window, or every window when ``None``."""
        with self._lock:
            self._queue.append((event_name, payload, target))

    def dispatch_pending(self, max_events: int | None = None) -> int:
        """Deliver queued events in emission order; return how many were delivered."""
        delivered = 0
        while max_events is None or delivered < max_events:
            with self._lock:
                if not self._queue:
                    break
                event_name, payload, target = self._queue.popleft()
                handlers = [handler for _id, handler in self._listeners.get(event_name, [])]
            for handler in handlers:
                try:
                    handler(payload, target)
                except Exception:
                    LOGGER.exception("handler for %s failed", event_name)
            delivered += 1
        return delivered


__all__ = ["HostRequestError", "InProcessBus", "EventHandler", "CommandHandler"]
