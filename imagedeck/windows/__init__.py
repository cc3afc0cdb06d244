"""Window controllers binding sync replicas to per-tab navigation state."""

from __future__ import annotations

from .base import WindowController
from .explorer import ExplorerWindow
from .viewer import ViewerWindow
from .viewer_tab import MediaPayload, ViewerTabView

__all__ = ["WindowController", "ExplorerWindow", "ViewerWindow", "MediaPayload", "ViewerTabView"]
