"""Window-scoped pub/sub adapter over the host bus.

A channel belongs to one window label. Child channels share the label but
own their own subscriptions and debounced intents, so a closing tab tears
down exactly what it attached.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Hashable, Mapping

from ..runtime.debounce import Debouncer
from .bus import HostRequestError, InProcessBus

LOGGER = logging.getLogger("imagedeck.sync")

SentCallback = Callable[[bool], None]


class SyncChannel:
    """Subscribe to window-scoped events and send intents to the session owner."""

    def __init__(
        self,
        bus: InProcessBus,
        window_label: str,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.bus = bus
        self.label = window_label
        self.closed = False
        self._clock = clock
        self._unsubscribers: list[Callable[[], None]] = []
        self._debounced: dict[Hashable, Debouncer] = {}
        self._children: list[SyncChannel] = []
        self._parent: SyncChannel | None = None

    def subscribe(self, event_name: str, handler: Callable[[object], None]) -> Callable[[], None]:
        """Attach ``handler`` for events targeted at this window or broadcast.

        The returned callable detaches it; after detaching, queued deliveries
        already in flight are dropped too.
        """
        if self.closed:
            return lambda: None
        active = True

        def deliver(payload: object, target: str | None) -> None:
            if not active or self.closed:
                return
            if target is not None and target != self.label:
                return
            handler(payload)

        unlisten = self.bus.listen(event_name, deliver)

        def unsubscribe() -> None:
            nonlocal active
            active = False
            unlisten()

        self._unsubscribers.append(unsubscribe)
        return unsubscribe

    def _with_label(self, payload: Mapping[str, object] | None) -> dict[str, object]:
        out = {"label": self.label}
        if payload:
            out.update(payload)
        return out

    def publish(self, intent: str, payload: Mapping[str, object] | None = None) -> bool:
        """Send an intent; return ``False`` when closed or rejected by the host."""
        if self.closed:
            return False
        try:
            self.bus.invoke(intent, self._with_label(payload))
        except HostRequestError as exc:
            LOGGER.warning("intent rejected: %s", exc)
            return False
        return True

    def request(self, name: str, payload: Mapping[str, object] | None = None) -> object:
        """Issue a request/response call; failures raise ``HostRequestError``."""
        if self.closed:
            raise HostRequestError(name, "channel closed")
        return self.bus.invoke(name, self._with_label(payload))

    def publish_debounced(
        self,
        slot: Hashable,
        intent: str,
        payload: Mapping[str, object] | None,
        delay_seconds: float,
        on_sent: SentCallback | None = None,
    ) -> None:
        """Coalesce intents per ``slot``: only the latest one is sent after ``delay_seconds`` of silence."""
        if self.closed:
            return
        debouncer = self._debounced.get(slot)
        if debouncer is None:
            debouncer = Debouncer(delay_seconds, self._send_debounced, clock=self._clock)
            self._debounced[slot] = debouncer
        debouncer.delay_seconds = max(0.0, float(delay_seconds))
        debouncer.push((intent, dict(payload or {}), on_sent))

    def _send_debounced(self, value: object) -> None:
        intent, payload, on_sent = value  # type: ignore[misc]
        ok = self.publish(intent, payload)
        if on_sent is not None:
            on_sent(ok)

    def has_pending(self, slot: Hashable) -> bool:
        debouncer = self._debounced.get(slot)
        return debouncer is not None and debouncer.pending

    def cancel_debounced(self, slot: Hashable) -> None:
        debouncer = self._debounced.pop(slot, None)
        if debouncer is not None:
            debouncer.cancel()

    def poll(self, now: float | None = None) -> int:
        """Send every debounced intent whose silence window has elapsed."""
        if self.closed:
            return 0
        if now is None:
            now = self._clock()
        fired = 0
        for debouncer in list(self._debounced.values()):
            if debouncer.poll(now):
                fired += 1
        for child in list(self._children):
            fired += child.poll(now)
        return fired

    def child(self) -> "SyncChannel":
        """Return a sub-scope with the same label and its own teardown."""
        sub = SyncChannel(self.bus, self.label, clock=self._clock)
        if self.closed:
            sub.close()
        else:
            sub._parent = self
            self._children.append(sub)
        return sub

    def close(self) -> None:
        """Unsubscribe all handlers, cancel debounced intents, close children."""
        if self.closed:
            return
        self.closed = True
        for child in list(self._children):
            child.close()
        self._children.clear()
        if self._parent is not None and self in self._parent._children:
            self._parent._children.remove(self)
        for debouncer in self._debounced.values():
            debouncer.cancel()
        self._debounced.clear()
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers.clear()
        LOGGER.debug("channel for %s closed", self.label)


__all__ = ["SyncChannel"]
