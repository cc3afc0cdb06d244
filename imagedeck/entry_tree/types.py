"""Domain datatypes for viewable entry trees.

The union is closed: consumers dispatch with ``isinstance`` and finish with
``assert_never`` so a new entry kind fails type checking at every call site.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import assert_never


class FileKind(Enum):
    """Classification of a raw entry name by extension."""

    IMAGE = "Image"
    VIDEO = "Video"
    ARCHIVE = "Archive"
    UNKNOWN = "Unknown"


@dataclass(frozen=True)
class ImageEntry:
    """Image file addressable by its own path."""

    name: str
    path: str


@dataclass(frozen=True)
class VideoEntry:
    """Video file addressable by its own path."""

    name: str
    path: str


@dataclass(frozen=True)
class ArchiveMemberEntry:
    """Member of an archive; all members of one archive share ``container_path``."""

    name: str
    container_path: str


@dataclass(frozen=True)
class DirectoryEntry:
    """Directory with recursively nested, already filtered and sorted children."""

    name: str
    path: str
    children: tuple["Entry", ...] = ()


LeafEntry = ImageEntry | VideoEntry | ArchiveMemberEntry
Entry = DirectoryEntry | LeafEntry


def entry_identity(leaf: LeafEntry) -> str:
    """Return the selection key for a leaf.

    Archive members share a container path, so their key appends the member
    name to it.
    """
    if isinstance(leaf, (ImageEntry, VideoEntry)):
        return leaf.path
    if isinstance(leaf, ArchiveMemberEntry):
        return leaf.container_path + leaf.name
    assert_never(leaf)


def is_leaf(entry: Entry) -> bool:
    """Return whether ``entry`` is a directly viewable leaf."""
    if isinstance(entry, DirectoryEntry):
        return False
    if isinstance(entry, (ImageEntry, VideoEntry, ArchiveMemberEntry)):
        return True
    assert_never(entry)


__all__ = [
    "FileKind",
    "ImageEntry",
    "VideoEntry",
    "ArchiveMemberEntry",
    "DirectoryEntry",
    "LeafEntry",
    "Entry",
    "entry_identity",
    "is_leaf",
]
