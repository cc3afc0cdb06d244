"""Typed tree construction from raw host listings.

Raw directory listings use the host wire shape: a sequence of mappings with
``name``, ``path`` and, for directories, a ``children`` list. Construction is
total: malformed nodes fall back to leaf interpretation instead of raising.
"""

from __future__ import annotations

import locale
import re
import unicodedata
from collections.abc import Iterable, Mapping, Sequence
from typing import assert_never

from .classify import EntryClassifier
from .types import ArchiveMemberEntry, DirectoryEntry, Entry, FileKind, ImageEntry, VideoEntry

_DIGIT_RUN_RE = re.compile(r"(\d+)")


def _strip_punctuation(text: str) -> str:
    """Drop punctuation, symbol, whitespace and combining-mark characters.

    Text is NFKD-decomposed first so accented letters sort next to their base
    letter even under the "C" collation locale.
    """
    return "".join(
        ch
        for ch in unicodedata.normalize("NFKD", text)
        if not unicodedata.category(ch).startswith(("P", "S", "Z", "M"))
    )


def natural_sort_key(name: str) -> tuple[object, ...]:
    """Locale-aware, numeric-aware, punctuation-insensitive sort key.

    Digit runs compare as integers (``file2`` before ``file10``) and sort
    ahead of text chunks. The original name is the final tiebreaker so the
    order stays deterministic when collation treats two names as equal.
    """
    tokens: list[tuple[int, int, str]] = []
    for chunk in _DIGIT_RUN_RE.split(name):
        if not chunk:
            continue
        if chunk.isdigit():
            tokens.append((0, int(chunk), ""))
            continue
        text = _strip_punctuation(chunk).casefold()
        if text:
            tokens.append((1, 0, locale.strxfrm(text)))
    return (tuple(tokens), name.casefold(), name)


def _entry_name(entry: Entry) -> str:
    if isinstance(entry, (DirectoryEntry, ImageEntry, VideoEntry, ArchiveMemberEntry)):
        return entry.name
    assert_never(entry)


def sort_entries(entries: Iterable[Entry]) -> tuple[Entry, ...]:
    """Return one sibling level ordered by ``natural_sort_key`` on names."""
    return tuple(sorted(entries, key=lambda entry: natural_sort_key(_entry_name(entry))))


def _raw_name(raw: Mapping[str, object], path: str) -> str:
    name = raw.get("name")
    if isinstance(name, str) and name:
        return name
    trimmed = path.rstrip("/\\")
    return re.split(r"[/\\]", trimmed)[-1] if trimmed else ""


def _raw_children(raw: Mapping[str, object]) -> Sequence[object] | None:
    """Return children when the node is a directory, otherwise ``None``."""
    children = raw.get("children")
    if isinstance(children, (list, tuple)):
        return children
    return None


def _build_node(raw: object, classifier: EntryClassifier) -> Entry | None:
    if not isinstance(raw, Mapping):
        return None
    raw_path = raw.get("path")
    path = raw_path if isinstance(raw_path, str) else ""
    name = _raw_name(raw, path)

    children = _raw_children(raw)
    if children is not None:
        built = sort_entries(
            node for node in (_build_node(child, classifier) for child in children) if node is not None
        )
        if not built:
            return None
        return DirectoryEntry(name=name, path=path, children=built)

    kind = classifier.classify(name)
    if kind is FileKind.IMAGE:
        return ImageEntry(name=name, path=path)
    if kind is FileKind.VIDEO:
        return VideoEntry(name=name, path=path)
    if kind is FileKind.ARCHIVE or kind is FileKind.UNKNOWN:
        # archives found in a directory are opened as their own tab
        return None
    assert_never(kind)


def build_tree(raw_listing: Iterable[object], classifier: EntryClassifier) -> tuple[Entry, ...]:
    """Build a filtered, sorted entry forest from a raw directory listing."""
    return sort_entries(
        node for node in (_build_node(raw, classifier) for raw in raw_listing) if node is not None
    )


def build_archive_group(
    container_path: str,
    member_names: Iterable[object],
    classifier: EntryClassifier,
) -> tuple[ArchiveMemberEntry, ...]:
    """Build the single flat sibling group for an archive's members."""
    members: list[ArchiveMemberEntry] = []
    for raw_name in member_names:
        if not isinstance(raw_name, str) or not raw_name:
            continue
        if classifier.classify(raw_name) is FileKind.UNKNOWN:
            continue
        members.append(ArchiveMemberEntry(name=raw_name, container_path=container_path))
    members.sort(key=lambda member: natural_sort_key(member.name))
    return tuple(members)


__all__ = [
    "natural_sort_key",
    "sort_entries",
    "build_tree",
    "build_archive_group",
]
