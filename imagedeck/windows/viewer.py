"""Viewer window: one ``ViewerTabView`` per tab in the owner's session snapshot."""

from __future__ import annotations

import time
from collections.abc import Callable

from ..entry_tree import EntryClassifier
from ..runtime.media_loader import MediaLoader
from ..runtime.navigation import DEFAULT_SELECTION_DELAY_SECONDS
from ..sync import messages
from ..sync.bus import InProcessBus
from ..sync.tab_store import DEFAULT_SEARCH_DELAY_SECONDS
from .base import WindowController
from .viewer_tab import ViewerTabView


class ViewerWindow(WindowController):
    """Mirror session tabs as live viewer tabs and route input to the active one."""

    kind = "viewer"

    def __init__(
        self,
        bus: InProcessBus,
        label: str,
        classifier: EntryClassifier,
        *,
        primary: bool = False,
        selection_delay: float = DEFAULT_SELECTION_DELAY_SECONDS,
        search_delay: float = DEFAULT_SEARCH_DELAY_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        loader_factory: Callable[..., MediaLoader] = MediaLoader,
    ) -> None:
        self.classifier = classifier
        self.selection_delay = selection_delay
        self.loader_factory = loader_factory
        self.views: dict[str, ViewerTabView] = {}
        super().__init__(bus, label, primary=primary, search_delay=search_delay, clock=clock)

    def _attach_handlers(self) -> None:
        super()._attach_handlers()
        self.channel.subscribe(messages.FILE_OPENED, self._on_file_opened)

    def _on_file_opened(self, payload: object) -> None:
        if not self.primary or not isinstance(payload, str) or not payload:
            return
        self.open_path(payload)

    def open_path(self, path: str) -> bool:
        """Ask the owner to open a tab for ``path`` (directory, archive or file)."""
        return self.channel.publish(messages.OPEN_NEW_TAB, {"path": path})

    @property
    def active_view(self) -> ViewerTabView | None:
        key = self.store.active_key
        return self.views.get(key) if key is not None else None

    def _on_store_changed(self) -> None:
        if self.closed:
            return
        for key in list(self.views):
            tab = self.store.get(key)
            if tab is None or tab.path != self.views[key].path:
                self.views.pop(key).close()
            elif tab.viewing_changed:
                tab.viewing_changed = False
                self.views[key].apply_viewing(tab.viewing)
        for key, tab in self.store.tabs.items():
            if key in self.views or not tab.path:
                continue
            tab.viewing_changed = False
            view = ViewerTabView(
                key,
                tab.path,
                self.channel.child(),
                self.classifier,
                initial_identity=tab.viewing,
                selection_delay=self.selection_delay,
                clock=self.clock,
                loader_factory=self.loader_factory,
            )
            self.views[key] = view
            view.open()

    def handle_key(self, key: str) -> bool:
        view = self.active_view
        return view.handle_key(key) if view is not None else False

    def handle_button(self, button: int) -> bool:
        view = self.active_view
        return view.handle_button(button) if view is not None else False

    def tick(self, now: float | None = None) -> None:
        if now is None:
            now = self.clock()
        super().tick(now)
        for view in list(self.views.values()):
            view.tick(now)

    def close(self) -> None:
        for view in self.views.values():
            view.close()
        self.views.clear()
        super().close()


__all__ = ["ViewerWindow"]
