"""Navigation cursor over one sibling group.

The cursor is either empty (no group members) or positioned on a valid
index. Immediate listeners see every change of the current leaf; the
debounced selection hook only sees where rapid key-repeat navigation settles.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence

from ..entry_tree import Entry, LeafEntry, entry_identity, first_viewable_group, resolve
from .debounce import Debouncer

DEFAULT_SELECTION_DELAY_SECONDS = 0.1

CursorListener = Callable[[LeafEntry | None], None]


class NavigationCursor:
    """Forward/backward/jump cursor with wraparound inside one group."""

    def __init__(
        self,
        *,
        on_change: CursorListener | None = None,
        on_selected: CursorListener | None = None,
        selection_delay: float = DEFAULT_SELECTION_DELAY_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.group: tuple[LeafEntry, ...] = ()
        self.index = 0
        self._on_change = on_change
        self._on_selected = on_selected
        self._clock = clock
        self._selection = Debouncer(selection_delay, self._emit_selected, clock=clock)
        self._last_identity: str | None = None

    @property
    def is_empty(self) -> bool:
        return not self.group

    @property
    def current(self) -> LeafEntry | None:
        if not self.group:
            return None
        return self.group[self.index]

    def forward(self) -> None:
        if not self.group:
            return
        self.index = (self.index + 1) % len(self.group)
        self._transitioned()

    def backward(self) -> None:
        if not self.group:
            return
        self.index = (self.index - 1 + len(self.group)) % len(self.group)
        self._transitioned()

    def set_group(self, group: Sequence[LeafEntry], index: int = 0) -> None:
        """Replace the active group; out-of-range indices fall back to 0."""
        self.group = tuple(group)
        self.index = index if 0 <= index < len(self.group) else 0
        self._transitioned()

    def jump(self, tree: Sequence[Entry], identity: str) -> bool:
        """Position on ``identity``; unknown identities leave state unchanged."""
        found = resolve(tree, identity)
        if found is None:
            return False
        self.group = found.group
        self.index = found.index
        self._transitioned()
        return True

    def on_tree_rebuilt(self, tree: Sequence[Entry], pending_identity: str | None = None) -> None:
        """Re-derive the group after a rebuild, preferring a pending jump target."""
        if pending_identity is not None and self.jump(tree, pending_identity):
            return
        self.group = first_viewable_group(tree)
        self.index = 0
        self._transitioned()

    def poll(self, now: float | None = None) -> bool:
        return self._selection.poll(now)

    def cancel(self) -> None:
        self._selection.cancel()

    def _transitioned(self) -> None:
        leaf = self.current
        identity = entry_identity(leaf) if leaf is not None else None
        if identity != self._last_identity:
            self._last_identity = identity
            if self._on_change is not None:
                self._on_change(leaf)
        self._selection.push(leaf, self._clock())

    def _emit_selected(self, leaf: object) -> None:
        if self._on_selected is not None:
            self._on_selected(leaf)  # type: ignore[arg-type]


__all__ = ["DEFAULT_SELECTION_DELAY_SECONDS", "NavigationCursor"]
