"""Domain model for viewable entry trees.

This package contains non-UI tree primitives:
- entry datatypes forming a closed union
- extension classification
- filtered, naturally sorted tree construction
- sibling-group queries used for navigation
- raw listings from local directories and archives
"""

from __future__ import annotations

from .types import (
    ArchiveMemberEntry,
    DirectoryEntry,
    Entry,
    FileKind,
    ImageEntry,
    LeafEntry,
    VideoEntry,
    entry_identity,
    is_leaf,
)
from .classify import EntryClassifier
from .build import build_archive_group, build_tree, natural_sort_key, sort_entries
from .query import GroupPosition, first_viewable_group, flatten_leaves, iter_sibling_groups, resolve

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
    "EntryClassifier",
    "natural_sort_key",
    "sort_entries",
    "build_tree",
    "build_archive_group",
    "GroupPosition",
    "first_viewable_group",
    "resolve",
    "iter_sibling_groups",
    "flatten_leaves",
]
