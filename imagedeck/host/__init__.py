"""Reference host side: in-process session owner and directory watch signatures."""

from __future__ import annotations

from .session_owner import LocalSessionOwner, OwnerError
from .watch import build_watch_signature

__all__ = ["LocalSessionOwner", "OwnerError", "build_watch_signature"]
