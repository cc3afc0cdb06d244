"""Per-window interaction state: debouncing, navigation, viewport, media fetch, config."""

from __future__ import annotations

from .debounce import Debouncer
from .media_loader import MediaLoader, MediaRequest, MediaResult
from .navigation import NavigationCursor
from .viewport import ViewportController, ViewportState

__all__ = [
    "Debouncer",
    "MediaLoader",
    "MediaRequest",
    "MediaResult",
    "NavigationCursor",
    "ViewportController",
    "ViewportState",
]
