"""Zoom and pan state for the item shown in a viewer tab.

State transforms are pure functions over ``ViewportState``; the controller
adds drag-gesture tracking on top of them.
"""

from __future__ import annotations

from dataclasses import dataclass, field

MIN_SCALE = 0.1
MAX_SCALE = 3.0
ZOOM_STEP = 0.1
PRIMARY_BUTTON = 0


@dataclass(frozen=True)
class Offset:
    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class ViewportState:
    """Scale factor within ``[MIN_SCALE, MAX_SCALE]`` plus free pan offset."""

    scale: float = 1.0
    offset: Offset = field(default_factory=Offset)


def clamp_scale(scale: float) -> float:
    # rounding keeps repeated 0.1 steps from drifting off the grid
    return round(max(MIN_SCALE, min(MAX_SCALE, scale)), 6)


def zoom_by(state: ViewportState, delta: float) -> ViewportState:
    return ViewportState(scale=clamp_scale(state.scale + delta), offset=state.offset)


def zoom_at(state: ViewportState, direction: float) -> ViewportState:
    """Apply one wheel notch: positive direction zooms out, otherwise in."""
    delta = -ZOOM_STEP if direction > 0 else ZOOM_STEP
    return zoom_by(state, delta)


def pan(state: ViewportState, dx: float, dy: float) -> ViewportState:
    return ViewportState(
        scale=state.scale,
        offset=Offset(state.offset.x + dx, state.offset.y + dy),
    )


def reset() -> ViewportState:
    return ViewportState()


class ViewportController:
    """Mutable viewport plus primary-button drag gesture."""

    def __init__(self) -> None:
        self.state = ViewportState()
        self.dragging = False
        self._pointer: tuple[float, float] = (0.0, 0.0)

    @property
    def scale(self) -> float:
        return self.state.scale

    @property
    def offset(self) -> Offset:
        return self.state.offset

    def zoom_by(self, delta: float) -> None:
        self.state = zoom_by(self.state, delta)

    def zoom_in(self) -> None:
        self.zoom_by(ZOOM_STEP)

    def zoom_out(self) -> None:
        self.zoom_by(-ZOOM_STEP)

    def zoom_at(self, direction: float) -> None:
        self.state = zoom_at(self.state, direction)

    def press(self, button: int, x: float, y: float) -> None:
        """Start a drag on primary-button press; other buttons are ignored."""
        if button != PRIMARY_BUTTON:
            return
        self.dragging = True
        self._pointer = (x, y)

    def move(self, x: float, y: float) -> None:
        """Accumulate pointer movement into the offset while dragging."""
        if not self.dragging:
            return
        last_x, last_y = self._pointer
        self.pan(x - last_x, y - last_y)
        self._pointer = (x, y)

    def release(self) -> None:
        self.dragging = False

    def pan(self, dx: float, dy: float) -> None:
        if not self.dragging:
            return
        self.state = pan(self.state, dx, dy)

    def reset_on_item_change(self) -> None:
        self.state = reset()
        self.dragging = False


__all__ = [
    "MIN_SCALE",
    "MAX_SCALE",
    "ZOOM_STEP",
    "PRIMARY_BUTTON",
    "Offset",
    "ViewportState",
    "clamp_scale",
    "zoom_by",
    "zoom_at",
    "pan",
    "reset",
    "ViewportController",
]
