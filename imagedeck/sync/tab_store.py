"""Per-window replica of tab state pushed by the session owner.

Pagination, sort, search and transfer-target fields are owner-authoritative:
local interactions only send intents and raise a ``loading`` flag, and the
fields change when the matching snapshot arrives. Snapshots apply in arrival
order with last-write-wins per field.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from . import messages
from .channel import SyncChannel
from .messages import DEFAULT_SORT, FolderItem, SessionSnapshot, SortConfig, TabSnapshot

LOGGER = logging.getLogger("imagedeck.sync.tabs")

DEFAULT_SEARCH_DELAY_SECONDS = 0.3


@dataclass
class TabSession:
    """One tab's replicated state plus local UI-only fields."""

    key: str
    title: str = ""
    path: str | None = None
    transfer_target: str | None = None
    page: int = 1
    page_count: int = 1
    sort: SortConfig = DEFAULT_SORT
    search_query: str | None = None
    items: tuple[FolderItem, ...] = ()
    loading: bool = False
    search_input: str = ""
    placeholder: bool = False
    viewing: str | None = None
    viewing_changed: bool = False


class TabSessionStore:
    """Tabs of one window, reconciled against owner snapshots."""

    def __init__(
        self,
        channel: SyncChannel,
        *,
        search_delay: float = DEFAULT_SEARCH_DELAY_SECONDS,
        on_change: Callable[[], None] | None = None,
    ) -> None:
        self._channel = channel
        self.search_delay = search_delay
        self.tabs: dict[str, TabSession] = {}
        self.active_key: str | None = None
        self.closed_keys: set[str] = set()
        self._on_change = on_change

    def attach(self) -> None:
        """Subscribe snapshot handlers; call before requesting state restore."""
        self._channel.subscribe(messages.TAB_STATE_CHANGED, self.apply_tab_snapshot)
        self._channel.subscribe(messages.SESSION_STATE_CHANGED, self.apply_session_snapshot)

    @property
    def active(self) -> TabSession | None:
        if self.active_key is None:
            return None
        return self.tabs.get(self.active_key)

    def get(self, key: str) -> TabSession | None:
        return self.tabs.get(key)

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change()

    # inbound snapshots

    def apply_tab_snapshot(self, payload: object) -> None:
        snapshot = TabSnapshot.from_wire(payload)
        if snapshot is None:
            LOGGER.debug("ignoring malformed tab snapshot: %r", payload)
            return
        if snapshot.key in self.closed_keys:
            return
        tab = self.tabs.get(snapshot.key)
        if tab is None:
            tab = TabSession(key=snapshot.key)
            self.tabs[snapshot.key] = tab

        present = snapshot.fields
        if "title" in present:
            tab.title = snapshot.title
        if "path" in present:
            tab.path = snapshot.path
        if "transfer_path" in present:
            tab.transfer_target = snapshot.transfer_path
        if "page" in present:
            tab.page = snapshot.page
        if "end" in present:
            tab.page_count = snapshot.page_count
        if "folders" in present:
            tab.items = snapshot.items
        if "sort" in present:
            tab.sort = snapshot.sort
        if "search_query" in present:
            tab.search_query = snapshot.search_query
            if not self._channel.has_pending(("search", tab.key)):
                tab.search_input = snapshot.search_query or ""
        if "viewing" in present:
            tab.viewing = snapshot.viewing
            tab.viewing_changed = True
        tab.placeholder = False
        tab.loading = False
        self._changed()

    def apply_session_snapshot(self, payload: object) -> None:
        snapshot = SessionSnapshot.from_wire(payload)
        if snapshot is None:
            LOGGER.debug("ignoring malformed session snapshot: %r", payload)
            return
        ordered: dict[str, TabSession] = {}
        for row in snapshot.tabs:
            if row.key in self.closed_keys:
                continue
            tab = self.tabs.get(row.key) or TabSession(key=row.key)
            if row.title:
                tab.title = row.title
            if row.path is not None:
                tab.path = row.path
            tab.viewing = row.viewing
            ordered[row.key] = tab
        for key in self.tabs.keys() - ordered.keys():
            self._channel.cancel_debounced(("search", key))
        # a key the owner no longer lists cannot receive further snapshots
        self.closed_keys &= {row.key for row in snapshot.tabs}
        self.tabs = ordered
        self.active_key = snapshot.active_key if snapshot.active_key in ordered else None
        self._changed()

    # local placeholders

    def open_local(self, key: str, path: str | None = None, title: str = "") -> TabSession:
        """Register a tab before its first snapshot arrives."""
        tab = self.tabs.get(key)
        if tab is None:
            tab = TabSession(key=key, title=title, path=path, placeholder=True)
            self.tabs[key] = tab
            self._changed()
        return tab

    # outbound intents

    def _send(self, key: str, intent: str, payload: Mapping[str, object] | None = None) -> bool:
        tab = self.tabs.get(key)
        if tab is None:
            return False
        tab.loading = True
        body: dict[str, object] = {"key": key}
        if payload:
            body.update(payload)
        ok = self._channel.publish(intent, body)
        if not ok:
            tab.loading = False
        self._changed()
        return ok

    def change_page(self, key: str, page: int) -> bool:
        return self._send(key, messages.CHANGE_TAB_PAGE, {"page": int(page)})

    def move_forward(self, key: str) -> bool:
        return self._send(key, messages.MOVE_CURSOR_FORWARD)

    def move_backward(self, key: str) -> bool:
        return self._send(key, messages.MOVE_CURSOR_BACKWARD)

    def move_first(self, key: str) -> bool:
        return self._send(key, messages.MOVE_CURSOR_FIRST)

    def move_last(self, key: str) -> bool:
        return self._send(key, messages.MOVE_CURSOR_LAST)

    def change_sort(self, key: str, sort: SortConfig) -> bool:
        return self._send(key, messages.CHANGE_TAB_SORT, {"sort": sort.to_wire()})

    def change_sort_option(self, key: str, index: int) -> bool:
        if not 0 <= index < len(messages.SORT_OPTIONS):
            return False
        return self.change_sort(key, messages.SORT_OPTIONS[index][1])

    def change_transfer_target(self, key: str, target: str) -> bool:
        return self._send(key, messages.CHANGE_TAB_TRANSFER_TARGET, {"transfer_path": target})

    def change_path(self, key: str, path: str) -> bool:
        return self._send(key, messages.CHANGE_TAB_PATH, {"path": path})

    def reset(self, key: str) -> bool:
        return self._send(key, messages.RESET_TAB)

    def transfer_folder(self, key: str, source: str) -> bool:
        """Move ``source`` into the tab's transfer target; no-op without a target."""
        tab = self.tabs.get(key)
        if tab is None or not tab.transfer_target:
            return False
        return self._send(key, messages.TRANSFER_FOLDER, {"from": source, "to": tab.transfer_target})

    def input_search(self, key: str, text: str) -> None:
        """Echo typed text locally and debounce the search intent."""
        tab = self.tabs.get(key)
        if tab is None:
            return
        tab.search_input = text

        def sent(ok: bool) -> None:
            current = self.tabs.get(key)
            if current is not None:
                current.loading = ok
                self._changed()

        self._channel.publish_debounced(
            ("search", key),
            messages.CHANGE_TAB_SEARCH,
            {"key": key, "query": text or None},
            self.search_delay,
            on_sent=sent,
        )
        self._changed()

    def activate(self, key: str) -> bool:
        if key not in self.tabs:
            return False
        return self._channel.publish(messages.CHANGE_ACTIVE_TAB, {"key": key})

    def close(self, key: str) -> bool:
        """Send the close intent and stop accepting snapshots for ``key``.

        The tab leaves the replica immediately; the owner confirms by omitting
        it from the next session snapshot.
        """
        self.closed_keys.add(key)
        self._channel.cancel_debounced(("search", key))
        removed = self.tabs.pop(key, None)
        was_active = self.active_key == key
        if was_active:
            self.active_key = None
        ok = self._channel.publish(messages.CLOSE_TAB, {"key": key})
        if not ok:
            self.closed_keys.discard(key)
            if removed is not None:
                self.tabs[key] = removed
            if was_active:
                self.active_key = key
        self._changed()
        return ok


__all__ = ["DEFAULT_SEARCH_DELAY_SECONDS", "TabSession", "TabSessionStore"]
