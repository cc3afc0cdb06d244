"""Raw listings from the local filesystem and archives.

Produces the host wire shape consumed by ``build_tree`` and
``build_archive_group``. Unreadable subdirectories are skipped; failures on
the requested root propagate to the caller.
"""

from __future__ import annotations

import os
import tarfile
import zipfile
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class DirectoryChild:
    """One visible directory child plus cached stat metadata."""

    name: str
    path: Path
    is_dir: bool
    mtime_ns: int | None
    ctime_ns: int | None


def list_directory_children(
    directory: Path,
    show_hidden: bool = False,
) -> tuple[list[DirectoryChild], Exception | None]:
    """List visible children of ``directory``.

    Returns ``(children, scan_error)``; ``scan_error`` is set when the
    directory cannot be scanned.
    """
    children: list[DirectoryChild] = []
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

                mtime_ns: int | None = None
                ctime_ns: int | None = None
                try:
                    stat = child.stat(follow_symlinks=False)
                    mtime_ns = int(stat.st_mtime_ns)
                    ctime_ns = int(getattr(stat, "st_birthtime", stat.st_ctime) * 1_000_000_000)
                except OSError:
                    pass

                children.append(
                    DirectoryChild(
                        name=name,
                        path=Path(child.path),
                        is_dir=is_dir,
                        mtime_ns=mtime_ns,
                        ctime_ns=ctime_ns,
                    )
                )
    except (PermissionError, OSError) as exc:
        return [], exc

    children.sort(key=lambda item: (not item.is_dir, item.name.lower()))
    return children, None


def list_directory_tree(root: Path, show_hidden: bool = False) -> list[dict[str, object]]:
    """Return the recursive raw listing below ``root``.

    Raises ``OSError`` when ``root`` itself cannot be scanned.
    """
    top, scan_error = list_directory_children(root, show_hidden)
    if scan_error is not None:
        raise scan_error

    def to_raw(children: list[DirectoryChild]) -> list[dict[str, object]]:
        nodes: list[dict[str, object]] = []
        for child in children:
            node: dict[str, object] = {"name": child.name, "path": str(child.path)}
            if child.is_dir:
                nested, nested_error = list_directory_children(child.path, show_hidden)
                node["children"] = [] if nested_error is not None else to_raw(nested)
            nodes.append(node)
        return nodes

    return to_raw(top)


def list_archive_members(archive: Path) -> list[str]:
    """Return member file names of a zip or tar archive, in archive order."""
    if zipfile.is_zipfile(archive):
        with zipfile.ZipFile(archive) as zf:
            return [info.filename for info in zf.infolist() if not info.is_dir()]
    with tarfile.open(archive) as tf:
        return [member.name for member in tf.getmembers() if member.isfile()]


def read_archive_member(archive: Path, name: str) -> bytes:
    """Return the raw bytes of one archive member.

    Raises ``KeyError`` when the member does not exist.
    """
    if zipfile.is_zipfile(archive):
        with zipfile.ZipFile(archive) as zf:
            return zf.read(name)
    with tarfile.open(archive) as tf:
        extracted = tf.extractfile(name)
        if extracted is None:
            raise KeyError(name)
        with extracted:
            return extracted.read()


__all__ = [
    "DirectoryChild",
    "list_directory_children",
    "list_directory_tree",
    "list_archive_members",
    "read_archive_member",
]
