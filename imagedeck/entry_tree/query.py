"""Pure queries over built entry trees.

Navigation always happens inside one sibling group: the leaf children of a
single directory, or all members of one archive.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass
from typing import assert_never

from .types import ArchiveMemberEntry, DirectoryEntry, Entry, ImageEntry, LeafEntry, VideoEntry, entry_identity


@dataclass(frozen=True)
class GroupPosition:
    """A sibling group plus the index of one member."""

    group: tuple[LeafEntry, ...]
    index: int

    @property
    def current(self) -> LeafEntry:
        return self.group[self.index]


def _split_level(entries: Sequence[Entry]) -> tuple[tuple[LeafEntry, ...], tuple[DirectoryEntry, ...]]:
    """Partition one sibling level into leaves and directories, keeping order."""
    leaves: list[LeafEntry] = []
    directories: list[DirectoryEntry] = []
    for entry in entries:
        if isinstance(entry, DirectoryEntry):
            directories.append(entry)
        elif isinstance(entry, (ImageEntry, VideoEntry, ArchiveMemberEntry)):
            leaves.append(entry)
        else:
            assert_never(entry)
    return tuple(leaves), tuple(directories)


def first_viewable_group(tree: Sequence[Entry]) -> tuple[LeafEntry, ...]:
    """Return the first non-empty leaf group in directory-first DFS order."""
    leaves, directories = _split_level(tree)
    if leaves:
        return leaves
    for directory in directories:
        group = first_viewable_group(directory.children)
        if group:
            return group
    return ()


def resolve(tree: Sequence[Entry], identity: str) -> GroupPosition | None:
    """Find the sibling group containing ``identity`` and its index there.

    Direct leaves of a level are checked before descending into its
    subdirectories; returns ``None`` when no leaf matches.
    """
    leaves, directories = _split_level(tree)
    for index, leaf in enumerate(leaves):
        if entry_identity(leaf) == identity:
            return GroupPosition(group=leaves, index=index)
    for directory in directories:
        found = resolve(directory.children, identity)
        if found is not None:
            return found
    return None


def iter_sibling_groups(tree: Sequence[Entry]) -> Iterator[tuple[LeafEntry, ...]]:
    """Yield every non-empty sibling group in DFS order."""
    leaves, directories = _split_level(tree)
    if leaves:
        yield leaves
    for directory in directories:
        yield from iter_sibling_groups(directory.children)


def flatten_leaves(tree: Sequence[Entry]) -> dict[str, LeafEntry]:
    """Map identity to leaf for every leaf in the tree."""
    flat: dict[str, LeafEntry] = {}
    for group in iter_sibling_groups(tree):
        for leaf in group:
            flat[entry_identity(leaf)] = leaf
    return flat


__all__ = [
    "GroupPosition",
    "first_viewable_group",
    "resolve",
    "iter_sibling_groups",
    "flatten_leaves",
]
