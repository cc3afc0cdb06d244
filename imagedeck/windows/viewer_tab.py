"""One viewer tab: entry tree, navigation cursor, viewport and media.

The tab builds its tree from a host listing, keeps the cursor inside the
sibling group of the shown item, and fetches the shown item's media in the
background. Directory-watch subscription is paired with the tab lifecycle:
``close`` always releases the watch, whether or not subscribing succeeded.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import assert_never

from ..entry_tree import (
    ArchiveMemberEntry,
    Entry,
    EntryClassifier,
    ImageEntry,
    LeafEntry,
    VideoEntry,
    build_archive_group,
    build_tree,
    entry_identity,
)
from ..runtime.media_loader import MediaLoader
from ..runtime.navigation import DEFAULT_SELECTION_DELAY_SECONDS, NavigationCursor
from ..runtime.viewport import ViewportController
from ..sync import messages
from ..sync.bus import HostRequestError
from ..sync.channel import SyncChannel

LOGGER = logging.getLogger("imagedeck.viewer")

BACK_BUTTON = 3
FORWARD_BUTTON = 4


@dataclass(frozen=True)
class MediaPayload:
    """Displayable data for one leaf: a local URI or base64 archive bytes."""

    identity: str
    kind: str
    data: str


class ViewerTabView:
    """Navigation and view state for one viewer tab."""

    def __init__(
        self,
        key: str,
        path: str,
        channel: SyncChannel,
        classifier: EntryClassifier,
        *,
        initial_identity: str | None = None,
        selection_delay: float = DEFAULT_SELECTION_DELAY_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        loader_factory: Callable[[Callable[[LeafEntry], object]], MediaLoader] = MediaLoader,
    ) -> None:
        self.key = key
        self.path = path
        self.channel = channel
        self.classifier = classifier
        self.tree: tuple[Entry, ...] = ()
        self.viewport = ViewportController()
        self.cursor = NavigationCursor(
            on_change=self._on_current_changed,
            on_selected=self._on_selected,
            selection_delay=selection_delay,
            clock=clock,
        )
        self.loader = loader_factory(self._fetch_media)
        self.media: MediaPayload | None = None
        self.media_loading = False
        self.opened = False
        self.closed = False
        self._pending_identity = initial_identity
        self._reported_identity = initial_identity
        self._watch_requested = False

    @property
    def is_archive(self) -> bool:
        return self.classifier.is_archive(self.path)

    @property
    def current(self) -> LeafEntry | None:
        return self.cursor.current

    def open(self) -> None:
        """Attach the watch handler, subscribe the directory watch, then build the tree."""
        if self.opened or self.closed:
            return
        self.opened = True
        self.channel.subscribe(messages.DIRECTORY_TREE_CHANGED, self._on_directory_tree_changed)
        self._watch_requested = True
        self.channel.publish(messages.SUBSCRIBE_DIRECTORY_WATCH, {"path": self.path, "key": self.key})
        self.rebuild()

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self.cursor.cancel()
        self.loader.invalidate()
        if self._watch_requested:
            self.channel.publish(messages.UNSUBSCRIBE_DIRECTORY_WATCH, {"path": self.path, "key": self.key})
        self.channel.close()
        LOGGER.debug("viewer tab %s closed", self.key)

    def _on_directory_tree_changed(self, payload: object) -> None:
        if not isinstance(payload, str):
            return
        if messages.normalize_path_for_comparison(payload) != messages.normalize_path_for_comparison(self.path):
            return
        self.rebuild()

    def _fetch_tree(self) -> tuple[Entry, ...]:
        if self.is_archive:
            names = self.channel.request(messages.LIST_ARCHIVE_MEMBERS, {"path": self.path})
            if not isinstance(names, (list, tuple)):
                raise HostRequestError(messages.LIST_ARCHIVE_MEMBERS, "unexpected response shape")
            return build_archive_group(self.path, names, self.classifier)
        listing = self.channel.request(messages.LIST_DIRECTORY, {"path": self.path})
        if not isinstance(listing, (list, tuple)):
            raise HostRequestError(messages.LIST_DIRECTORY, "unexpected response shape")
        return build_tree(listing, self.classifier)

    def rebuild(self) -> bool:
        """Re-fetch and rebuild the tree; on failure the prior tree stays."""
        if self.closed:
            return False
        try:
            tree = self._fetch_tree()
        except HostRequestError as exc:
            LOGGER.warning("listing %s failed: %s", self.path, exc)
            return False
        self.tree = tree
        pending = self._pending_identity
        self._pending_identity = None
        self.cursor.on_tree_rebuilt(tree, pending)
        return True

    def select_path(self, identity: str) -> bool:
        """Show ``identity`` inside its own sibling group.

        Before the first tree arrives the request is remembered and applied on
        the next rebuild; afterwards unknown identities are ignored.
        """
        if not self.tree:
            self._pending_identity = identity
            return False
        return self.cursor.jump(self.tree, identity)

    def apply_viewing(self, identity: str | None) -> bool:
        """Reposition on an owner-pushed identity; ``None`` returns to the first group."""
        if identity is not None:
            return self.select_path(identity)
        self._reported_identity = None
        if not self.tree:
            self._pending_identity = None
            return False
        self.cursor.on_tree_rebuilt(self.tree)
        return True

    def forward(self) -> None:
        self.cursor.forward()

    def backward(self) -> None:
        self.cursor.backward()

    def handle_key(self, key: str) -> bool:
        if key == "ArrowLeft":
            self.backward()
            return True
        if key == "ArrowRight":
            self.forward()
            return True
        return False

    def handle_button(self, button: int) -> bool:
        if button == BACK_BUTTON:
            self.backward()
            return True
        if button == FORWARD_BUTTON:
            self.forward()
            return True
        return False

    def handle_wheel(self, delta_y: float) -> None:
        self.viewport.zoom_at(delta_y)

    def tick(self, now: float | None = None) -> None:
        """Fire the debounced selection and apply finished media fetches."""
        if self.closed:
            return
        self.cursor.poll(now)
        for result in self.loader.drain_results():
            self.media_loading = False
            if result.error is not None:
                continue
            if isinstance(result.payload, MediaPayload):
                self.media = result.payload

    def _on_current_changed(self, _leaf: LeafEntry | None) -> None:
        self.viewport.reset_on_item_change()

    def _on_selected(self, leaf: LeafEntry | None) -> None:
        if leaf is None or self.closed:
            self.loader.invalidate()
            self.media = None
            self.media_loading = False
            return
        self._report_viewing(leaf)
        if self.media is not None and self.media.identity == entry_identity(leaf):
            self.loader.invalidate()
            self.media_loading = False
            return
        self.media_loading = True
        self.loader.schedule(leaf)

    def _report_viewing(self, leaf: LeafEntry) -> None:
        identity = entry_identity(leaf)
        if identity == self._reported_identity:
            return
        if self.channel.publish(messages.CHANGE_VIEWING, {"key": self.key, "viewing": identity}):
            self._reported_identity = identity

    def _fetch_media(self, leaf: LeafEntry) -> MediaPayload:
        if isinstance(leaf, ArchiveMemberEntry):
            data = self.channel.request(
                messages.READ_ARCHIVE_MEMBER,
                {"path": leaf.container_path, "name": leaf.name},
            )
            kind = "ArchiveMember"
        elif isinstance(leaf, ImageEntry):
            data = self.channel.request(messages.RESOLVE_LOCAL_MEDIA_PATH, {"path": leaf.path})
            kind = "Image"
        elif isinstance(leaf, VideoEntry):
            data = self.channel.request(messages.RESOLVE_LOCAL_MEDIA_PATH, {"path": leaf.path})
            kind = "Video"
        else:
            assert_never(leaf)
        return MediaPayload(identity=entry_identity(leaf), kind=kind, data=str(data))


__all__ = ["BACK_BUTTON", "FORWARD_BUTTON", "MediaPayload", "ViewerTabView"]
