"""Cross-window state synchronization: wire shapes, host bus, channels, tab replicas."""

from __future__ import annotations

from .bus import HostRequestError, InProcessBus
from .channel import SyncChannel
from .messages import FolderItem, SessionSnapshot, SortConfig, SortField, SortOrder, TabSnapshot
from .tab_store import TabSession, TabSessionStore

__all__ = [
    "HostRequestError",
    "InProcessBus",
    "SyncChannel",
    "FolderItem",
    "SessionSnapshot",
    "SortConfig",
    "SortField",
    "SortOrder",
    "TabSnapshot",
    "TabSession",
    "TabSessionStore",
]
