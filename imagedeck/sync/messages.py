"""Wire shapes exchanged with the session owner.

Event names flow owner -> window, intent and request names window -> owner.
Parsing is lenient: unknown or mistyped fields fall back to defaults so a
partial snapshot never breaks the replica.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum

# events
DIRECTORY_TREE_CHANGED = "directory-tree-changed"
TAB_STATE_CHANGED = "tab-state-changed"
SESSION_STATE_CHANGED = "session-state-changed"
FILE_OPENED = "file-opened"
ACTIVE_VIEWER_DIRECTORY_CHANGED = "active-viewer-directory-changed"

# request/response calls
LIST_DIRECTORY = "list-directory"
LIST_ARCHIVE_MEMBERS = "list-archive-members"
READ_ARCHIVE_MEMBER = "read-archive-member"
RESOLVE_LOCAL_MEDIA_PATH = "resolve-local-media-path"

# intents
SUBSCRIBE_DIRECTORY_WATCH = "subscribe-directory-watch"
UNSUBSCRIBE_DIRECTORY_WATCH = "unsubscribe-directory-watch"
CHANGE_TAB_PAGE = "change-tab-page"
CHANGE_TAB_SORT = "change-tab-sort"
CHANGE_TAB_SEARCH = "change-tab-search"
CHANGE_TAB_TRANSFER_TARGET = "change-tab-transfer-target"
CHANGE_TAB_PATH = "change-tab-path"
MOVE_CURSOR_FORWARD = "move-cursor-forward"
MOVE_CURSOR_BACKWARD = "move-cursor-backward"
MOVE_CURSOR_FIRST = "move-cursor-first"
MOVE_CURSOR_LAST = "move-cursor-last"
CHANGE_VIEWING = "change-viewing"
TRANSFER_FOLDER = "transfer-folder"
REFRESH_EXPLORER_TAB = "refresh-explorer-tab"
OPEN_NEW_TAB = "open-new-tab"
OPEN_NEW_EXPLORER_TAB = "open-new-explorer-tab"
CLOSE_TAB = "close-tab"
RESET_TAB = "reset-tab"
CHANGE_ACTIVE_TAB = "change-active-tab"
CHANGE_ACTIVE_WINDOW = "change-active-window"
REGISTER_WINDOW = "register-window"
UNREGISTER_WINDOW = "unregister-window"
REQUEST_RESTORE_STATE = "request-restore-state"


class SortField(Enum):
    NAME = "Name"
    DATE_MODIFIED = "DateModified"
    DATE_CREATED = "DateCreated"
    RECOMMENDATION = "Recommendation"


class SortOrder(Enum):
    ASC = "Asc"
    DESC = "Desc"


@dataclass(frozen=True)
class SortConfig:
    field: SortField = SortField.DATE_MODIFIED
    order: SortOrder = SortOrder.DESC

    @classmethod
    def from_wire(cls, raw: object) -> "SortConfig":
        if not isinstance(raw, Mapping):
            return cls()
        try:
            sort_field = SortField(raw.get("field"))
            sort_order = SortOrder(raw.get("order"))
        except ValueError:
            return cls()
        return cls(field=sort_field, order=sort_order)

    def to_wire(self) -> dict[str, str]:
        return {"field": self.field.value, "order": self.order.value}


DEFAULT_SORT = SortConfig()

SORT_OPTIONS: tuple[tuple[str, SortConfig], ...] = (
    ("Name ↑", SortConfig(SortField.NAME, SortOrder.ASC)),
    ("Name ↓", SortConfig(SortField.NAME, SortOrder.DESC)),
    ("Modified ↑", SortConfig(SortField.DATE_MODIFIED, SortOrder.ASC)),
    ("Modified ↓", SortConfig(SortField.DATE_MODIFIED, SortOrder.DESC)),
    ("Created ↑", SortConfig(SortField.DATE_CREATED, SortOrder.ASC)),
    ("Created ↓", SortConfig(SortField.DATE_CREATED, SortOrder.DESC)),
    ("Recommended", SortConfig(SortField.RECOMMENDATION, SortOrder.DESC)),
)


def sort_option_index(sort: SortConfig) -> int:
    """Return the menu index of ``sort`` or -1."""
    for index, (_label, option) in enumerate(SORT_OPTIONS):
        if option == sort:
            return index
    return -1


def _optional_str(value: object) -> str | None:
    return value if isinstance(value, str) and value else None


def _optional_int(value: object) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def _int_at_least(value: object, minimum: int, default: int) -> int:
    parsed = _optional_int(value)
    return default if parsed is None else max(minimum, parsed)


@dataclass(frozen=True)
class FolderItem:
    """One grid cell in an explorer tab."""

    path: str
    filename: str
    thumbpath: str = ""
    modified_at: int | None = None
    created_at: int | None = None

    @classmethod
    def from_wire(cls, raw: object) -> "FolderItem | None":
        if not isinstance(raw, Mapping):
            return None
        path = _optional_str(raw.get("path"))
        if path is None:
            return None
        return cls(
            path=path,
            filename=_optional_str(raw.get("filename")) or "",
            thumbpath=_optional_str(raw.get("thumbpath")) or "",
            modified_at=_optional_int(raw.get("modified_at")),
            created_at=_optional_int(raw.get("created_at")),
        )

    def to_wire(self) -> dict[str, object]:
        return {
            "path": self.path,
            "filename": self.filename,
            "thumbpath": self.thumbpath,
            "modified_at": self.modified_at,
            "created_at": self.created_at,
        }


@dataclass(frozen=True)
class TabSnapshot:
    """Owner-authoritative state of one tab."""

    key: str
    title: str = ""
    path: str | None = None
    transfer_path: str | None = None
    page: int = 1
    page_count: int = 1
    items: tuple[FolderItem, ...] = ()
    sort: SortConfig = DEFAULT_SORT
    search_query: str | None = None
    viewing: str | None = None
    fields: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_wire(cls, raw: object) -> "TabSnapshot | None":
        """Parse a full or partial snapshot; ``fields`` records which keys were present."""
        if not isinstance(raw, Mapping):
            return None
        key = _optional_str(raw.get("key"))
        if key is None:
            return None
        folders = raw.get("folders")
        items: tuple[FolderItem, ...] = ()
        if isinstance(folders, (list, tuple)):
            items = tuple(item for item in (FolderItem.from_wire(f) for f in folders) if item is not None)
        return cls(
            key=key,
            title=_optional_str(raw.get("title")) or "",
            path=_optional_str(raw.get("path")),
            transfer_path=_optional_str(raw.get("transfer_path")),
            page=_int_at_least(raw.get("page"), 0, 1),
            page_count=_int_at_least(raw.get("end"), 1, 1),
            items=items,
            sort=SortConfig.from_wire(raw.get("sort")),
            search_query=_optional_str(raw.get("search_query")),
            viewing=_optional_str(raw.get("viewing")),
            fields=frozenset(str(name) for name in raw.keys()),
        )

    def to_wire(self) -> dict[str, object]:
        return {
            "key": self.key,
            "title": self.title,
            "path": self.path,
            "transfer_path": self.transfer_path,
            "page": self.page,
            "end": self.page_count,
            "folders": [item.to_wire() for item in self.items],
            "sort": self.sort.to_wire(),
            "search_query": self.search_query,
        }


@dataclass(frozen=True)
class SessionTab:
    """Tab-list row of a session snapshot."""

    key: str
    title: str = ""
    path: str | None = None
    viewing: str | None = None


@dataclass(frozen=True)
class SessionSnapshot:
    """Window-level active tab plus ordered tab list."""

    active_key: str | None = None
    tabs: tuple[SessionTab, ...] = ()

    @classmethod
    def from_wire(cls, raw: object) -> "SessionSnapshot | None":
        if not isinstance(raw, Mapping):
            return None
        active = raw.get("active")
        active_key = _optional_str(active.get("key")) if isinstance(active, Mapping) else None
        raw_tabs = raw.get("tabs")
        tabs: list[SessionTab] = []
        if isinstance(raw_tabs, (list, tuple)):
            for raw_tab in raw_tabs:
                if not isinstance(raw_tab, Mapping):
                    continue
                key = _optional_str(raw_tab.get("key"))
                if key is None:
                    continue
                tabs.append(
                    SessionTab(
                        key=key,
                        title=_optional_str(raw_tab.get("title")) or "",
                        path=_optional_str(raw_tab.get("path")),
                        viewing=_optional_str(raw_tab.get("viewing")),
                    )
                )
        return cls(active_key=active_key, tabs=tuple(tabs))

    def to_wire(self) -> dict[str, object]:
        return {
            "active": {"key": self.active_key} if self.active_key is not None else None,
            "tabs": [
                {"key": tab.key, "title": tab.title, "path": tab.path, "viewing": tab.viewing}
                for tab in self.tabs
            ],
        }


def normalize_path_for_comparison(path: str) -> str:
    """Fold separators and case so watch paths compare across platforms."""
    return path.replace("\\", "/").lower()


__all__ = [
    "DIRECTORY_TREE_CHANGED",
    "TAB_STATE_CHANGED",
    "SESSION_STATE_CHANGED",
    "FILE_OPENED",
    "ACTIVE_VIEWER_DIRECTORY_CHANGED",
    "LIST_DIRECTORY",
    "LIST_ARCHIVE_MEMBERS",
    "READ_ARCHIVE_MEMBER",
    "RESOLVE_LOCAL_MEDIA_PATH",
    "SUBSCRIBE_DIRECTORY_WATCH",
    "UNSUBSCRIBE_DIRECTORY_WATCH",
    "CHANGE_TAB_PAGE",
    "CHANGE_TAB_SORT",
    "CHANGE_TAB_SEARCH",
    "CHANGE_TAB_TRANSFER_TARGET",
    "CHANGE_TAB_PATH",
    "MOVE_CURSOR_FORWARD",
    "MOVE_CURSOR_BACKWARD",
    "MOVE_CURSOR_FIRST",
    "MOVE_CURSOR_LAST",
    "CHANGE_VIEWING",
    "TRANSFER_FOLDER",
    "REFRESH_EXPLORER_TAB",
    "OPEN_NEW_TAB",
    "OPEN_NEW_EXPLORER_TAB",
    "CLOSE_TAB",
    "RESET_TAB",
    "CHANGE_ACTIVE_TAB",
    "CHANGE_ACTIVE_WINDOW",
    "REGISTER_WINDOW",
    "UNREGISTER_WINDOW",
    "REQUEST_RESTORE_STATE",
    "SortField",
    "SortOrder",
    "SortConfig",
    "DEFAULT_SORT",
    "SORT_OPTIONS",
    "sort_option_index",
    "FolderItem",
    "TabSnapshot",
    "SessionTab",
    "SessionSnapshot",
    "normalize_path_for_comparison",
]
