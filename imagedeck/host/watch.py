"""Poll-based change signatures for watched directories and archives.

Computes cheap hashes over tree metadata; the session owner compares them on
each poll to decide when to emit ``directory-tree-changed``.
"""

from __future__ import annotations

import hashlib
import os
from pathlib import Path


def _update_digest(digest, token: str) -> None:
    """Append a token plus separator byte to a hash digest."""
    digest.update(token.encode("utf-8", errors="surrogateescape"))
    digest.update(b"\0")


def _path_stat_signature(path: Path) -> tuple[str, int, int, int]:
    """Return a stable stat tuple describing ``path`` existence and metadata."""
    try:
        st = path.stat()
    except FileNotFoundError:
        return ("missing", 0, 0, 0)
    except OSError:
        return ("error", 0, 0, 0)
    return ("ok", st.st_mtime_ns, st.st_size, st.st_mode)


def build_watch_signature(root: Path, show_hidden: bool = False, max_depth: int = 32) -> str:
    """Build a digest over ``root`` and every descendant's name and stat state.

    A plain file (an archive) contributes only its own stat tuple.
    """
    digest = hashlib.blake2b(digest_size=20)
    _update_digest(digest, f"root:{root}")
    _update_digest(digest, f"show_hidden:{1 if show_hidden else 0}")

    stat_state, stat_mtime, stat_size, stat_mode = _path_stat_signature(root)
    _update_digest(digest, f"root_stat:{stat_state}:{stat_mode}")
    if stat_state != "ok":
        return digest.hexdigest()
    if not root.is_dir():
        _update_digest(digest, f"file:{stat_mtime}:{stat_size}")
        return digest.hexdigest()

    def walk(directory: Path, depth: int) -> None:
        children: list[tuple[str, bool, int, int, str]] = []
        try:
            with os.scandir(directory) as entries:
                for child in entries:
                    name = child.name
                    if not show_hidden and name.startswith("."):
                        continue
                    try:
                        is_dir = child.is_dir(follow_symlinks=False)
                    except OSError:
                        is_dir = False
                    try:
                        st = child.stat(follow_symlinks=False)
                        mtime_ns = st.st_mtime_ns
                        size = 0 if is_dir else st.st_size
                        state = "ok"
                    except OSError:
                        mtime_ns = 0
                        size = 0
                        state = "error"
                    children.append((name, is_dir, mtime_ns, size, state))
        except OSError:
            _update_digest(digest, f"children_error:{directory}")
            return

        children.sort(key=lambda item: (not item[1], item[0].casefold(), item[0]))
        for name, is_dir, mtime_ns, size, state in children:
            _update_digest(digest, f"child:{directory}:{name}:{1 if is_dir else 0}:{state}:{mtime_ns}:{size}")
            if is_dir and depth < max_depth:
                walk(directory / name, depth + 1)

    walk(root, 0)
    return digest.hexdigest()


__all__ = ["build_watch_signature"]
