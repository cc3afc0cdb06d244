"""Viewport zoom bounds and drag-pan tests."""

from __future__ import annotations

import unittest

from imagedeck.runtime.viewport import MAX_SCALE, MIN_SCALE, Offset, ViewportController


class ViewportControllerTests(unittest.TestCase):
    def test_scale_stays_within_bounds(self) -> None:
        viewport = ViewportController()
        for _ in range(50):
            viewport.zoom_in()
        self.assertEqual(viewport.scale, MAX_SCALE)
        for _ in range(50):
            viewport.zoom_out()
        self.assertEqual(viewport.scale, MIN_SCALE)

    def test_wheel_down_zooms_out_and_up_zooms_in(self) -> None:
        viewport = ViewportController()
        viewport.zoom_at(120)
        self.assertAlmostEqual(viewport.scale, 0.9)
        viewport.zoom_at(-120)
        viewport.zoom_at(-120)
        self.assertAlmostEqual(viewport.scale, 1.1)

    def test_primary_drag_accumulates_offset(self) -> None:
        viewport = ViewportController()
        viewport.press(0, 10, 10)
        viewport.move(15, 8)
        viewport.move(20, 20)
        viewport.release()
        viewport.move(100, 100)
        self.assertEqual(viewport.offset, Offset(10, 10))

    def test_non_primary_button_does_not_drag(self) -> None:
        viewport = ViewportController()
        viewport.press(2, 0, 0)
        viewport.move(50, 50)
        self.assertEqual(viewport.offset, Offset())

    def test_pan_outside_drag_is_ignored(self) -> None:
        viewport = ViewportController()
        viewport.pan(5, 5)
        self.assertEqual(viewport.offset, Offset())

    def test_item_change_resets_everything(self) -> None:
        viewport = ViewportController()
        viewport.zoom_in()
        viewport.press(0, 0, 0)
        viewport.move(3, 4)
        viewport.reset_on_item_change()
        self.assertEqual(viewport.scale, 1.0)
        self.assertEqual(viewport.offset, Offset())
        self.assertFalse(viewport.dragging)


if __name__ == "__main__":
    unittest.main()
