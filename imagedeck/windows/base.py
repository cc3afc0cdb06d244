"""Shared window lifecycle: register, subscribe, restore, tick, tear down."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from ..sync import messages
from ..sync.bus import InProcessBus
from ..sync.channel import SyncChannel
from ..sync.tab_store import DEFAULT_SEARCH_DELAY_SECONDS, TabSessionStore

LOGGER = logging.getLogger("imagedeck.windows")


class WindowController:
    """Base for viewer and explorer windows.

    ``open`` attaches every handler before the restore intent goes out, so the
    first snapshot cannot be missed.
    """

    kind = "window"

    def __init__(
        self,
        bus: InProcessBus,
        label: str,
        *,
        primary: bool = False,
        search_delay: float = DEFAULT_SEARCH_DELAY_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.label = label
        self.primary = primary
        self.clock = clock
        self.channel = SyncChannel(bus, label, clock=clock)
        self.store = TabSessionStore(self.channel, search_delay=search_delay, on_change=self._on_store_changed)
        self.opened = False
        self.closed = False

    def _attach_handlers(self) -> None:
        """Subscribe window-specific events; subclasses extend."""
        self.store.attach()

    def open(self) -> None:
        if self.opened:
            return
        self.opened = True
        self._attach_handlers()
        self.channel.publish(messages.REGISTER_WINDOW, {"kind": self.kind, "primary": self.primary})
        self.channel.publish(messages.REQUEST_RESTORE_STATE)
        LOGGER.debug("%s window %s opened", self.kind, self.label)

    def focus(self) -> bool:
        return self.channel.publish(messages.CHANGE_ACTIVE_WINDOW)

    def activate_tab(self, key: str) -> bool:
        return self.store.activate(key)

    def close_tab(self, key: str) -> bool:
        return self.store.close(key)

    def reset_tab(self, key: str) -> bool:
        return self.store.reset(key)

    def tick(self, now: float | None = None) -> None:
        if now is None:
            now = self.clock()
        self.channel.poll(now)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.channel.publish(messages.UNREGISTER_WINDOW)
        self.channel.close()
        LOGGER.debug("%s window %s closed", self.kind, self.label)

    def _on_store_changed(self) -> None:
        pass


__all__ = ["WindowController"]
