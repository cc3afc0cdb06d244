"""Reference in-process session owner.

Holds the authoritative tab state of every registered window, answers the
request/response calls windows make, and pushes snapshots back as queued bus
events. Any handler failure reaches the caller as ``HostRequestError``.
"""

from __future__ import annotations

import base64
import logging
import shutil
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from pathlib import Path

from ..entry_tree import EntryClassifier, FileKind, natural_sort_key
from ..entry_tree import fs
from ..runtime.config import DEFAULT_PAGE_SIZE
from ..sync import messages
from ..sync.bus import InProcessBus
from ..sync.messages import DEFAULT_SORT, FolderItem, SessionSnapshot, SessionTab, SortConfig, SortField, SortOrder, TabSnapshot
from .watch import build_watch_signature

LOGGER = logging.getLogger("imagedeck.owner")

DEFAULT_WATCH_DEPTH = 32


class OwnerError(Exception):
    """Raised by command handlers for invalid requests."""


@dataclass
class ViewerTabRecord:
    key: str
    title: str
    path: str
    viewing: str | None = None


@dataclass
class ExplorerTabRecord:
    key: str
    title: str
    path: str | None = None
    transfer_path: str | None = None
    page: int = 1
    page_count: int = 1
    items: tuple[FolderItem, ...] = ()
    sort: SortConfig = DEFAULT_SORT
    search_query: str | None = None

    def snapshot(self) -> TabSnapshot:
        return TabSnapshot(
            key=self.key,
            title=self.title,
            path=self.path,
            transfer_path=self.transfer_path,
            page=self.page,
            page_count=self.page_count,
            items=self.items,
            sort=self.sort,
            search_query=self.search_query,
        )


@dataclass
class WindowRecord:
    label: str
    kind: str
    primary: bool = False
    active_key: str | None = None
    tabs: list[ViewerTabRecord | ExplorerTabRecord] = field(default_factory=list)
    next_tab: int = 0

    def new_key(self) -> str:
        key = f"{self.label}-tab-{self.next_tab}"
        self.next_tab += 1
        return key

    def find(self, key: str) -> ViewerTabRecord | ExplorerTabRecord:
        for tab in self.tabs:
            if tab.key == key:
                return tab
        raise OwnerError(f"tab not found: {key}")


def _title_for(path: str | None) -> str:
    if not path:
        return "Devices"
    return Path(path).name or path


def _require_str(payload: Mapping[str, object], name: str) -> str:
    value = payload.get(name)
    if not isinstance(value, str) or not value:
        raise OwnerError(f"missing {name}")
    return value


class LocalSessionOwner:
    """Authoritative session state for windows sharing one ``InProcessBus``."""

    def __init__(
        self,
        bus: InProcessBus,
        classifier: EntryClassifier | None = None,
        *,
        page_size: int = DEFAULT_PAGE_SIZE,
        show_hidden: bool = False,
    ) -> None:
        self.bus = bus
        self.classifier = classifier or EntryClassifier()
        self.page_size = max(1, page_size)
        self.show_hidden = show_hidden
        self.windows: dict[str, WindowRecord] = {}
        self.active_viewer_label: str | None = None
        self.watches: dict[str, set[str]] = {}
        self._watch_signatures: dict[str, str] = {}
        self._watch_depths: dict[str, int] = {}
        self._register_commands()

    def _register_commands(self) -> None:
        handlers = {
            messages.REGISTER_WINDOW: self.register_window,
            messages.UNREGISTER_WINDOW: self.unregister_window,
            messages.REQUEST_RESTORE_STATE: self.request_restore_state,
            messages.CHANGE_ACTIVE_WINDOW: self.change_active_window,
            messages.CHANGE_ACTIVE_TAB: self.change_active_tab,
            messages.OPEN_NEW_TAB: self.open_new_tab,
            messages.OPEN_NEW_EXPLORER_TAB: self.open_new_explorer_tab,
            messages.CLOSE_TAB: self.close_tab,
            messages.RESET_TAB: self.reset_tab,
            messages.CHANGE_TAB_PAGE: self.change_tab_page,
            messages.CHANGE_TAB_SORT: self.change_tab_sort,
            messages.CHANGE_TAB_SEARCH: self.change_tab_search,
            messages.CHANGE_TAB_TRANSFER_TARGET: self.change_tab_transfer_target,
            messages.CHANGE_TAB_PATH: self.change_tab_path,
            messages.CHANGE_VIEWING: self.change_viewing,
            messages.TRANSFER_FOLDER: self.transfer_folder,
            messages.REFRESH_EXPLORER_TAB: self.refresh_explorer_tab,
            messages.MOVE_CURSOR_FORWARD: self.move_cursor_forward,
            messages.MOVE_CURSOR_BACKWARD: self.move_cursor_backward,
            messages.MOVE_CURSOR_FIRST: self.move_cursor_first,
            messages.MOVE_CURSOR_LAST: self.move_cursor_last,
            messages.LIST_DIRECTORY: self.list_directory,
            messages.LIST_ARCHIVE_MEMBERS: self.list_archive_members,
            messages.READ_ARCHIVE_MEMBER: self.read_archive_member,
            messages.RESOLVE_LOCAL_MEDIA_PATH: self.resolve_local_media_path,
            messages.SUBSCRIBE_DIRECTORY_WATCH: self.subscribe_directory_watch,
            messages.UNSUBSCRIBE_DIRECTORY_WATCH: self.unsubscribe_directory_watch,
        }
        for name, handler in handlers.items():
            self.bus.register_command(name, handler)

    # window registry

    def _window(self, payload: Mapping[str, object]) -> WindowRecord:
        label = _require_str(payload, "label")
        window = self.windows.get(label)
        if window is None:
            raise OwnerError(f"window not registered: {label}")
        return window

    def _viewer_target(self, payload: Mapping[str, object]) -> WindowRecord:
        label = payload.get("label")
        window = self.windows.get(label) if isinstance(label, str) else None
        if window is not None and window.kind == "viewer":
            return window
        if self.active_viewer_label in self.windows:
            return self.windows[self.active_viewer_label]
        for candidate in self.windows.values():
            if candidate.kind == "viewer":
                return candidate
        raise OwnerError("no viewer window registered")

    def register_window(self, payload: Mapping[str, object]) -> None:
        label = _require_str(payload, "label")
        kind = payload.get("kind")
        if kind not in {"viewer", "explorer"}:
            raise OwnerError(f"unknown window kind: {kind!r}")
        if label not in self.windows:
            self.windows[label] = WindowRecord(label=label, kind=str(kind), primary=bool(payload.get("primary")))
        if kind == "viewer" and self.active_viewer_label is None:
            self.active_viewer_label = label

    def unregister_window(self, payload: Mapping[str, object]) -> None:
        label = _require_str(payload, "label")
        self.windows.pop(label, None)
        if self.active_viewer_label == label:
            self.active_viewer_label = next(
                (w.label for w in self.windows.values() if w.kind == "viewer"),
                None,
            )

    def request_restore_state(self, payload: Mapping[str, object]) -> None:
        window = self._window(payload)
        self._emit_session(window)
        for tab in window.tabs:
            if isinstance(tab, ExplorerTabRecord):
                self._emit_tab(window, tab)
        if window.kind == "explorer":
            self.bus.emit(messages.ACTIVE_VIEWER_DIRECTORY_CHANGED, self.active_viewer_directory(), window.label)

    def change_active_window(self, payload: Mapping[str, object]) -> None:
        window = self._window(payload)
        if window.kind == "viewer" and self.active_viewer_label != window.label:
            self.active_viewer_label = window.label
            self._emit_active_viewer_directory()

    def active_viewer_directory(self) -> str | None:
        window = self.windows.get(self.active_viewer_label or "")
        if window is None or window.active_key is None:
            return None
        tab = window.find(window.active_key)
        return tab.path if isinstance(tab, ViewerTabRecord) else None

    # snapshots

    def _session_snapshot(self, window: WindowRecord) -> SessionSnapshot:
        return SessionSnapshot(
            active_key=window.active_key,
            tabs=tuple(
                SessionTab(
                    key=tab.key,
                    title=tab.title,
                    path=tab.path,
                    viewing=tab.viewing if isinstance(tab, ViewerTabRecord) else None,
                )
                for tab in window.tabs
            ),
        )

    def _emit_session(self, window: WindowRecord) -> None:
        self.bus.emit(messages.SESSION_STATE_CHANGED, self._session_snapshot(window).to_wire(), window.label)

    def _emit_tab(self, window: WindowRecord, tab: ExplorerTabRecord) -> None:
        self.bus.emit(messages.TAB_STATE_CHANGED, tab.snapshot().to_wire(), window.label)

    def _emit_active_viewer_directory(self) -> None:
        directory = self.active_viewer_directory()
        for window in self.windows.values():
            if window.kind == "explorer":
                self.bus.emit(messages.ACTIVE_VIEWER_DIRECTORY_CHANGED, directory, window.label)

    # tab lifecycle

    def open_new_tab(self, payload: Mapping[str, object]) -> str:
        """Open a viewer tab; a media file opens its folder positioned on the file."""
        raw_path = _require_str(payload, "path")
        target = Path(raw_path)
        if not target.exists():
            raise OwnerError(f"path not found: {raw_path}")
        window = self._viewer_target(payload)
        viewing: str | None = None
        tab_path = str(target)
        if target.is_file():
            kind = self.classifier.classify(target.name)
            if kind in (FileKind.IMAGE, FileKind.VIDEO):
                tab_path = str(target.parent)
                viewing = str(target)
            elif kind is not FileKind.ARCHIVE:
                raise OwnerError(f"unsupported file: {raw_path}")
        key = window.new_key()
        window.tabs.append(ViewerTabRecord(key=key, title=_title_for(tab_path), path=tab_path, viewing=viewing))
        window.active_key = key
        self._emit_session(window)
        if window.label == self.active_viewer_label:
            self._emit_active_viewer_directory()
        return key

    def open_new_explorer_tab(self, payload: Mapping[str, object]) -> str:
        window = self._window(payload)
        if window.kind != "explorer":
            raise OwnerError("not an explorer window")
        raw_path = payload.get("path")
        path = raw_path if isinstance(raw_path, str) and raw_path else None
        tab = ExplorerTabRecord(key=window.new_key(), title=_title_for(path), path=path)
        window.tabs.append(tab)
        window.active_key = tab.key
        self._refresh(tab, page=1)
        self._emit_session(window)
        self._emit_tab(window, tab)
        return tab.key

    def close_tab(self, payload: Mapping[str, object]) -> None:
        window = self._window(payload)
        tab = window.find(_require_str(payload, "key"))
        window.tabs.remove(tab)
        if window.active_key == tab.key:
            window.active_key = window.tabs[-1].key if window.tabs else None
        self._emit_session(window)
        if window.label == self.active_viewer_label:
            self._emit_active_viewer_directory()

    def change_active_tab(self, payload: Mapping[str, object]) -> None:
        window = self._window(payload)
        tab = window.find(_require_str(payload, "key"))
        window.active_key = tab.key
        self._emit_session(window)
        if window.label == self.active_viewer_label:
            self._emit_active_viewer_directory()

    def change_viewing(self, payload: Mapping[str, object]) -> None:
        """Record the viewer's current item; restored windows reopen on it."""
        window = self._window(payload)
        tab = window.find(_require_str(payload, "key"))
        if not isinstance(tab, ViewerTabRecord):
            raise OwnerError(f"not a viewer tab: {tab.key}")
        viewing = payload.get("viewing")
        tab.viewing = viewing if isinstance(viewing, str) and viewing else None

    def reset_tab(self, payload: Mapping[str, object]) -> None:
        window = self._window(payload)
        tab = window.find(_require_str(payload, "key"))
        if isinstance(tab, ViewerTabRecord):
            tab.viewing = None
            self._emit_session(window)
            # a viewer has no loading counterpart in the session snapshot
            self.bus.emit(
                messages.TAB_STATE_CHANGED,
                {"key": tab.key, "title": tab.title, "path": tab.path, "viewing": None},
                window.label,
            )
            return
        tab.path = None
        tab.title = _title_for(None)
        tab.transfer_path = None
        tab.sort = DEFAULT_SORT
        tab.search_query = None
        self._refresh(tab, page=1)
        self._emit_session(window)
        self._emit_tab(window, tab)

    # explorer paging

    def _explorer_tab(self, payload: Mapping[str, object]) -> tuple[WindowRecord, ExplorerTabRecord]:
        window = self._window(payload)
        tab = window.find(_require_str(payload, "key"))
        if not isinstance(tab, ExplorerTabRecord):
            raise OwnerError(f"not an explorer tab: {tab.key}")
        return window, tab

    def explore(self, tab: ExplorerTabRecord, page: int) -> tuple[tuple[FolderItem, ...], int]:
        """Return one page of sub-folders plus the page count (at least 1)."""
        if tab.path is None:
            return (), 1
        children, scan_error = fs.list_directory_children(Path(tab.path), self.show_hidden)
        if scan_error is not None:
            raise OwnerError(f"failed to open path: {tab.path}")
        folders = [child for child in children if child.is_dir]
        if tab.search_query:
            needle = tab.search_query.lower()
            folders = [child for child in folders if needle in child.name.lower()]

        reverse = tab.sort.order is SortOrder.DESC
        if tab.sort.field is SortField.NAME:
            folders.sort(key=lambda child: natural_sort_key(child.name), reverse=reverse)
        elif tab.sort.field is SortField.DATE_CREATED:
            folders.sort(key=lambda child: child.ctime_ns or 0, reverse=reverse)
        else:
            # recommendation scores are not computed locally; fall back to modified time
            folders.sort(key=lambda child: child.mtime_ns or 0, reverse=reverse)

        total = len(folders)
        page_count = max(1, -(-total // self.page_size))
        start = (max(1, page) - 1) * self.page_size
        items = tuple(
            FolderItem(
                path=str(child.path),
                filename=child.name,
                thumbpath=self._first_image(child.path),
                modified_at=(child.mtime_ns // 1_000_000_000) if child.mtime_ns is not None else None,
                created_at=(child.ctime_ns // 1_000_000_000) if child.ctime_ns is not None else None,
            )
            for child in folders[start : start + self.page_size]
        )
        return items, page_count

    def _first_image(self, folder: Path) -> str:
        children, scan_error = fs.list_directory_children(folder, self.show_hidden)
        if scan_error is not None:
            return ""
        images = [
            child for child in children if not child.is_dir and self.classifier.classify(child.name) is FileKind.IMAGE
        ]
        if not images:
            return ""
        images.sort(key=lambda child: natural_sort_key(child.name))
        return str(images[0].path)

    def _refresh(self, tab: ExplorerTabRecord, page: int) -> None:
        items, page_count = self.explore(tab, page)
        tab.items = items
        tab.page_count = page_count
        tab.page = min(max(1, page), page_count)
        if tab.page != page and tab.path is not None:
            tab.items, _ = self.explore(tab, tab.page)

    def _refresh_and_emit(self, payload: Mapping[str, object], page_for: Callable[[ExplorerTabRecord], int]) -> None:
        window, tab = self._explorer_tab(payload)
        page = page_for(tab)
        if page < 1 or page > tab.page_count:
            # out of range: re-emit current state so the window clears its loading flag
            self._emit_tab(window, tab)
            return
        self._refresh(tab, page)
        self._emit_tab(window, tab)

    def change_tab_page(self, payload: Mapping[str, object]) -> None:
        page = payload.get("page")
        if isinstance(page, bool) or not isinstance(page, int):
            raise OwnerError("page must be an integer")
        self._refresh_and_emit(payload, lambda _tab: page)

    def move_cursor_forward(self, payload: Mapping[str, object]) -> None:
        self._refresh_and_emit(payload, lambda tab: tab.page + 1)

    def move_cursor_backward(self, payload: Mapping[str, object]) -> None:
        self._refresh_and_emit(payload, lambda tab: tab.page - 1)

    def move_cursor_first(self, payload: Mapping[str, object]) -> None:
        self._refresh_and_emit(payload, lambda _tab: 1)

    def move_cursor_last(self, payload: Mapping[str, object]) -> None:
        self._refresh_and_emit(payload, lambda tab: tab.page_count)

    def change_tab_sort(self, payload: Mapping[str, object]) -> None:
        window, tab = self._explorer_tab(payload)
        tab.sort = SortConfig.from_wire(payload.get("sort"))
        self._refresh(tab, page=1)
        self._emit_tab(window, tab)

    def change_tab_search(self, payload: Mapping[str, object]) -> None:
        window, tab = self._explorer_tab(payload)
        query = payload.get("query")
        tab.search_query = query if isinstance(query, str) and query else None
        self._refresh(tab, page=1)
        self._emit_tab(window, tab)

    def change_tab_transfer_target(self, payload: Mapping[str, object]) -> None:
        window, tab = self._explorer_tab(payload)
        tab.transfer_path = _require_str(payload, "transfer_path")
        self._emit_tab(window, tab)

    def change_tab_path(self, payload: Mapping[str, object]) -> None:
        window, tab = self._explorer_tab(payload)
        path = _require_str(payload, "path")
        if not Path(path).is_dir():
            raise OwnerError(f"not a directory: {path}")
        tab.path = path
        tab.title = _title_for(path)
        self._refresh(tab, page=1)
        self._emit_session(window)
        self._emit_tab(window, tab)

    def refresh_explorer_tab(self, payload: Mapping[str, object]) -> None:
        """Re-explore the current page after the directory changed on disk."""
        window, tab = self._explorer_tab(payload)
        self._refresh(tab, tab.page)
        self._emit_tab(window, tab)

    def transfer_folder(self, payload: Mapping[str, object]) -> str:
        """Move folder ``from`` into directory ``to`` and refresh the tab's page.

        Viewer tabs showing the moved folder are closed. Returns the new path.
        """
        window, tab = self._explorer_tab(payload)
        source = Path(_require_str(payload, "from"))
        target_dir = Path(_require_str(payload, "to"))
        if not source.is_dir():
            raise OwnerError(f"not a directory: {source}")
        if not target_dir.is_dir():
            raise OwnerError(f"not a directory: {target_dir}")
        destination = target_dir / source.name
        if destination.exists():
            raise OwnerError(f"destination exists: {destination}")
        try:
            shutil.move(str(source), str(destination))
        except OSError as exc:
            raise OwnerError(f"failed to move {source}: {exc}") from exc
        LOGGER.debug("moved %s to %s", source, destination)
        self.close_viewer_tabs_by_directory(str(source))
        self._refresh(tab, tab.page)
        self._emit_tab(window, tab)
        return str(destination)

    def close_viewer_tabs_by_directory(self, directory: str) -> list[str]:
        """Close every viewer tab whose folder is ``directory``; returns the closed keys."""
        wanted = messages.normalize_path_for_comparison(directory)
        closed: list[str] = []
        for window in self.windows.values():
            if window.kind != "viewer":
                continue
            doomed = [
                tab for tab in window.tabs if messages.normalize_path_for_comparison(tab.path) == wanted
            ]
            if not doomed:
                continue
            for tab in doomed:
                window.tabs.remove(tab)
                closed.append(tab.key)
            if window.active_key in closed:
                window.active_key = window.tabs[0].key if window.tabs else None
            self._emit_session(window)
        if closed:
            self._emit_active_viewer_directory()
        return closed

    # listings and media

    def list_directory(self, payload: Mapping[str, object]) -> list[dict[str, object]]:
        return fs.list_directory_tree(Path(_require_str(payload, "path")), self.show_hidden)

    def list_archive_members(self, payload: Mapping[str, object]) -> list[str]:
        return fs.list_archive_members(Path(_require_str(payload, "path")))

    def read_archive_member(self, payload: Mapping[str, object]) -> str:
        data = fs.read_archive_member(Path(_require_str(payload, "path")), _require_str(payload, "name"))
        return base64.b64encode(data).decode("ascii")

    def resolve_local_media_path(self, payload: Mapping[str, object]) -> str:
        path = Path(_require_str(payload, "path"))
        if not path.is_file():
            raise OwnerError(f"not a file: {path}")
        return path.resolve().as_uri()

    # directory watches

    def subscribe_directory_watch(self, payload: Mapping[str, object]) -> None:
        path = _require_str(payload, "path")
        key = _require_str(payload, "key")
        depth = payload.get("depth")
        if isinstance(depth, bool) or not isinstance(depth, int) or depth < 0:
            depth = DEFAULT_WATCH_DEPTH
        watchers = self.watches.setdefault(path, set())
        # the deepest request so far decides how far the signature walks
        if not watchers or depth > self._watch_depths.get(path, -1):
            self._watch_depths[path] = max(depth, self._watch_depths.get(path, -1))
            self._watch_signatures[path] = self._signature(path)
        watchers.add(key)

    def unsubscribe_directory_watch(self, payload: Mapping[str, object]) -> None:
        path = _require_str(payload, "path")
        key = _require_str(payload, "key")
        watchers = self.watches.get(path)
        if watchers is None:
            return
        watchers.discard(key)
        if not watchers:
            del self.watches[path]
            self._watch_signatures.pop(path, None)
            self._watch_depths.pop(path, None)

    def _signature(self, path: str) -> str:
        depth = self._watch_depths.get(path, DEFAULT_WATCH_DEPTH)
        return build_watch_signature(Path(path), self.show_hidden, max_depth=depth)

    def poll_watches(self) -> list[str]:
        """Emit ``directory-tree-changed`` for every watched path whose signature moved."""
        changed: list[str] = []
        for path in list(self.watches):
            signature = self._signature(path)
            if self._watch_signatures.get(path) == signature:
                continue
            self._watch_signatures[path] = signature
            changed.append(path)
            self.bus.emit(messages.DIRECTORY_TREE_CHANGED, path)
        if changed:
            LOGGER.debug("watched paths changed: %s", changed)
        return changed

    def open_file(self, path: str) -> None:
        """Forward an OS-level "open with" request to every window."""
        self.bus.emit(messages.FILE_OPENED, path)


__all__ = [
    "OwnerError",
    "ViewerTabRecord",
    "ExplorerTabRecord",
    "WindowRecord",
    "LocalSessionOwner",
]
