"""End-to-end explorer window tests: paging, search, sort, opening folders,
transfers and directory watches."""

from __future__ import annotations

import tempfile
import unittest
from pathlib import Path

from imagedeck.entry_tree import EntryClassifier
from imagedeck.host import LocalSessionOwner
from imagedeck.sync.bus import InProcessBus
from imagedeck.sync.messages import SORT_OPTIONS, SortField, SortOrder
from imagedeck.windows import ExplorerWindow, ViewerWindow


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


class ExplorerSessionTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        for index in range(1, 6):
            (self.root / f"folder{index}").mkdir()
        (self.root / "folder1" / "cover.png").write_bytes(b"c")

        self.clock = FakeClock()
        self.bus = InProcessBus()
        self.classifier = EntryClassifier()
        self.owner = LocalSessionOwner(self.bus, self.classifier, page_size=2)
        self.explorer = ExplorerWindow(self.bus, "explorer", clock=self.clock, search_delay=0.3)
        self.explorer.open()
        self.pump()
        self.assertTrue(self.explorer.open_tab(str(self.root)))
        self.pump()
        tab = self.explorer.store.active
        assert tab is not None
        self.key = tab.key
        name_asc = next(i for i, (_label, sort) in enumerate(SORT_OPTIONS) if sort.field is SortField.NAME and sort.order is SortOrder.ASC)
        self.assertTrue(self.explorer.store.change_sort_option(self.key, name_asc))
        self.pump()

    def tearDown(self) -> None:
        self.explorer.close()
        self._tmp.cleanup()

    def pump(self) -> None:
        for _ in range(32):
            self.explorer.tick(self.clock.now)
            if self.bus.dispatch_pending() == 0:
                return

    def names(self) -> list[str]:
        tab = self.explorer.store.get(self.key)
        assert tab is not None
        return [item.filename for item in tab.items]

    def test_first_page_after_sort(self) -> None:
        tab = self.explorer.store.get(self.key)
        assert tab is not None
        self.assertEqual((tab.page, tab.page_count), (1, 3))
        self.assertEqual(self.names(), ["folder1", "folder2"])
        self.assertFalse(tab.loading)

    def test_arrow_keys_page_through_results(self) -> None:
        self.assertTrue(self.explorer.handle_key("ArrowRight"))
        tab = self.explorer.store.get(self.key)
        assert tab is not None
        self.assertTrue(tab.loading)
        self.assertEqual(tab.page, 1)
        self.pump()
        self.assertEqual(tab.page, 2)
        self.assertEqual(self.names(), ["folder3", "folder4"])
        self.assertFalse(tab.loading)

        self.explorer.handle_button(3)
        self.pump()
        self.assertEqual(tab.page, 1)

    def test_keys_are_ignored_while_typing(self) -> None:
        self.assertFalse(self.explorer.handle_key("ArrowRight", in_text_input=True))

    def test_forward_on_last_page_clears_loading(self) -> None:
        self.explorer.store.move_last(self.key)
        self.pump()
        self.explorer.store.move_forward(self.key)
        self.pump()
        tab = self.explorer.store.get(self.key)
        assert tab is not None
        self.assertEqual(tab.page, 3)
        self.assertFalse(tab.loading)

    def test_debounced_search_filters_folders(self) -> None:
        for text in ("f", "fo", "folder5"):
            self.explorer.store.input_search(self.key, text)
            self.clock.now += 0.1
        self.pump()
        self.assertEqual(self.names(), ["folder1", "folder2"])

        self.clock.now += 0.3
        self.pump()
        tab = self.explorer.store.get(self.key)
        assert tab is not None
        self.assertEqual(tab.search_query, "folder5")
        self.assertEqual(self.names(), ["folder5"])
        self.assertEqual(tab.search_input, "folder5")

    def test_open_folder_with_thumbnail_opens_viewer_tab(self) -> None:
        viewer = ViewerWindow(self.bus, "main", self.classifier, primary=True, clock=self.clock)
        viewer.open()
        self.pump()
        tab = self.explorer.store.get(self.key)
        assert tab is not None
        self.assertTrue(self.explorer.open_folder(self.key, tab.items[0]))
        for _ in range(4):
            viewer.tick(self.clock.now)
            self.pump()

        view = viewer.active_view
        assert view is not None
        assert view.current is not None
        self.assertEqual(view.current.path, str(self.root / "folder1" / "cover.png"))
        self.assertEqual(self.explorer.active_viewer_directory, str(self.root / "folder1"))
        viewer.close()

    def test_open_folder_without_thumbnail_descends(self) -> None:
        tab = self.explorer.store.get(self.key)
        assert tab is not None
        self.assertTrue(self.explorer.open_folder(self.key, tab.items[1]))
        self.pump()
        self.assertEqual(tab.path, str(self.root / "folder2"))
        self.assertEqual(tab.items, ())

    def test_closing_tab_stops_replication(self) -> None:
        self.assertTrue(self.explorer.close_tab(self.key))
        self.pump()
        self.assertIsNone(self.explorer.store.get(self.key))
        self.assertIsNone(self.explorer.store.active_key)
        self.assertEqual(self.owner.watches, {})

    def test_folder_created_on_disk_refreshes_the_grid(self) -> None:
        self.assertIn(str(self.root), self.owner.watches)
        (self.root / "folder0").mkdir()
        self.assertEqual(self.owner.poll_watches(), [str(self.root)])
        self.pump()
        self.assertEqual(self.names(), ["folder0", "folder1"])

    def test_descending_moves_the_watch(self) -> None:
        tab = self.explorer.store.get(self.key)
        assert tab is not None
        self.explorer.open_folder(self.key, tab.items[1])
        self.pump()
        self.assertEqual(list(self.owner.watches), [str(self.root / "folder2")])

    def test_transfer_moves_folder_and_closes_viewer_tab_on_it(self) -> None:
        viewer = ViewerWindow(self.bus, "main", self.classifier, primary=True, clock=self.clock)
        viewer.open()
        self.pump()
        tab = self.explorer.store.get(self.key)
        assert tab is not None
        first = tab.items[0]
        self.assertFalse(self.explorer.transfer_folder(self.key, first))

        self.explorer.open_folder(self.key, first)
        self.explorer.store.change_transfer_target(self.key, str(self.root / "folder5"))
        for _ in range(4):
            viewer.tick(self.clock.now)
            self.pump()
        self.assertEqual(len(viewer.views), 1)

        self.assertTrue(self.explorer.transfer_folder(self.key, first))
        for _ in range(4):
            viewer.tick(self.clock.now)
            self.pump()
        self.assertTrue((self.root / "folder5" / "folder1" / "cover.png").is_file())
        self.assertEqual(viewer.views, {})
        self.assertEqual(self.names(), ["folder2", "folder3"])
        self.assertFalse(tab.loading)
        viewer.close()


if __name__ == "__main__":
    unittest.main()
