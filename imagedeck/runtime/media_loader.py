"""Background fetch worker for the media shown in a viewer tab.

Single-threaded and latest-request-wins: pending requests collapse to the
newest one, and results from superseded requests are dropped on drain so a
slow archive read cannot overwrite a newer selection.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from queue import Empty, Queue

from ..entry_tree import LeafEntry

LOGGER = logging.getLogger("imagedeck.media")


@dataclass(frozen=True)
class MediaRequest:
    """One media fetch job."""

    request_id: int
    leaf: LeafEntry


@dataclass(frozen=True)
class MediaResult:
    """Completed fetch; exactly one of ``payload`` / ``error`` is set."""

    request: MediaRequest
    payload: object = None
    error: Exception | None = None


class MediaLoader:
    """Fetch media off the event loop with request fencing."""

    def __init__(self, fetch: Callable[[LeafEntry], object], *, name: str = "imagedeck-media") -> None:
        self._fetch = fetch
        self._name = name
        self._lock = threading.Lock()
        self._pending: MediaRequest | None = None
        self._running = False
        self._next_request_id = 1
        self._latest_request_id = 0
        self._results: Queue[MediaResult] = Queue()

    @property
    def latest_request_id(self) -> int:
        with self._lock:
            return self._latest_request_id

    def _worker(self) -> None:
        while True:
            with self._lock:
                request = self._pending
                self._pending = None
                if request is None:
                    self._running = False
                    return

            try:
                payload = self._fetch(request.leaf)
            except Exception as exc:
                LOGGER.warning("media fetch failed for %r: %s", request.leaf, exc)
                self._results.put(MediaResult(request=request, error=exc))
                continue
            self._results.put(MediaResult(request=request, payload=payload))

    def schedule(self, leaf: LeafEntry) -> int:
        """Queue or replace pending work and return its request id."""
        with self._lock:
            request_id = self._next_request_id
            self._next_request_id += 1
            self._latest_request_id = request_id
            self._pending = MediaRequest(request_id=request_id, leaf=leaf)
            if self._running:
                return request_id
            self._running = True

        worker = threading.Thread(target=self._worker, name=self._name, daemon=True)
        worker.start()
        return request_id

    def invalidate(self) -> None:
        """Fence off every outstanding request."""
        with self._lock:
            self._pending = None
            self._latest_request_id = self._next_request_id
            self._next_request_id += 1

    def drain_results(self) -> list[MediaResult]:
        """Drain completed results, keeping only those for the latest request."""
        latest = self.latest_request_id
        out: list[MediaResult] = []
        while True:
            try:
                result = self._results.get_nowait()
            except Empty:
                break
            if result.request.request_id != latest:
                LOGGER.debug("dropping stale media result %d", result.request.request_id)
                continue
            out.append(result)
        return out


__all__ = ["MediaRequest", "MediaResult", "MediaLoader"]
