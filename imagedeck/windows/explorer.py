"""Explorer window: paginated folder grids replicated from the session owner."""

from __future__ import annotations

from ..sync import messages
from ..sync.messages import FolderItem
from .base import WindowController
from .viewer_tab import BACK_BUTTON, FORWARD_BUTTON

# folders plus their direct children, enough to notice thumbnail changes
FOLDER_WATCH_DEPTH = 1


class ExplorerWindow(WindowController):
    """Browse folders page by page; every change round-trips through the owner."""

    kind = "explorer"

    active_viewer_directory: str | None = None

    def __init__(self, *args, **kwargs) -> None:
        # tab key -> directory currently watched for it
        self._watched: dict[str, str] = {}
        super().__init__(*args, **kwargs)

    def _attach_handlers(self) -> None:
        super()._attach_handlers()
        self.channel.subscribe(messages.ACTIVE_VIEWER_DIRECTORY_CHANGED, self._on_active_viewer_directory)
        self.channel.subscribe(messages.DIRECTORY_TREE_CHANGED, self._on_directory_tree_changed)

    def _on_store_changed(self) -> None:
        if self.closed:
            return
        for key, path in list(self._watched.items()):
            tab = self.store.get(key)
            if tab is None or tab.path != path:
                self._unwatch(key)
        for key, tab in self.store.tabs.items():
            if tab.path and key not in self._watched and not tab.placeholder:
                if self.channel.publish(
                    messages.SUBSCRIBE_DIRECTORY_WATCH, {"path": tab.path, "key": key, "depth": FOLDER_WATCH_DEPTH}
                ):
                    self._watched[key] = tab.path

    def _unwatch(self, key: str) -> None:
        path = self._watched.pop(key)
        self.channel.publish(messages.UNSUBSCRIBE_DIRECTORY_WATCH, {"path": path, "key": key})

    def _on_directory_tree_changed(self, payload: object) -> None:
        if not isinstance(payload, str):
            return
        changed = messages.normalize_path_for_comparison(payload)
        for key, path in list(self._watched.items()):
            if messages.normalize_path_for_comparison(path) == changed:
                self.channel.publish(messages.REFRESH_EXPLORER_TAB, {"key": key})

    def _on_active_viewer_directory(self, payload: object) -> None:
        self.active_viewer_directory = payload if isinstance(payload, str) and payload else None

    def open_tab(self, path: str | None = None) -> bool:
        return self.channel.publish(messages.OPEN_NEW_EXPLORER_TAB, {"path": path})

    def open_folder(self, key: str, item: FolderItem) -> bool:
        """Open a thumbnail in a viewer tab, or descend into a folder without one."""
        if item.thumbpath:
            return self.channel.publish(messages.OPEN_NEW_TAB, {"path": item.thumbpath})
        return self.store.change_path(key, item.path)

    def transfer_folder(self, key: str, item: FolderItem) -> bool:
        """Move ``item`` into the tab's transfer target; false when no target is set."""
        return self.store.transfer_folder(key, item.path)

    def handle_key(self, key: str, *, in_text_input: bool = False) -> bool:
        tab = self.store.active
        if tab is None or in_text_input:
            return False
        if key == "ArrowLeft":
            self.store.move_backward(tab.key)
            return True
        if key == "ArrowRight":
            self.store.move_forward(tab.key)
            return True
        return False

    def handle_button(self, button: int) -> bool:
        tab = self.store.active
        if tab is None:
            return False
        if button == BACK_BUTTON:
            self.store.move_backward(tab.key)
            return True
        if button == FORWARD_BUTTON:
            self.store.move_forward(tab.key)
            return True
        return False

    def close(self) -> None:
        if not self.closed:
            for key in list(self._watched):
                self._unwatch(key)
        super().close()


__all__ = ["ExplorerWindow"]
