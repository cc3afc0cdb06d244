"""Raw filesystem and archive listing tests."""

from __future__ import annotations

import io
import tarfile
import tempfile
import unittest
import zipfile
from pathlib import Path

from imagedeck.entry_tree import fs


class DirectoryListingTests(unittest.TestCase):
    def test_tree_listing_marks_directories_with_children(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / "sub").mkdir()
            (root / "sub" / "x.png").write_bytes(b"x")
            (root / "a.png").write_bytes(b"a")
            (root / ".hidden.png").write_bytes(b"h")

            listing = fs.list_directory_tree(root)

            by_name = {node["name"]: node for node in listing}
            self.assertEqual(set(by_name), {"sub", "a.png"})
            self.assertNotIn("children", by_name["a.png"])
            self.assertEqual([child["name"] for child in by_name["sub"]["children"]], ["x.png"])

    def test_show_hidden_includes_dotfiles(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            root = Path(tmp)
            (root / ".hidden.png").write_bytes(b"h")
            listing = fs.list_directory_tree(root, show_hidden=True)
            self.assertEqual([node["name"] for node in listing], [".hidden.png"])

    def test_missing_root_raises(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            with self.assertRaises(OSError):
                fs.list_directory_tree(Path(tmp) / "nope")

    def test_children_report_scan_error(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            children, error = fs.list_directory_children(Path(tmp) / "nope")
            self.assertEqual(children, [])
            self.assertIsNotNone(error)


class ArchiveListingTests(unittest.TestCase):
    def test_zip_members_and_bytes(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            archive = Path(tmp) / "book.zip"
            with zipfile.ZipFile(archive, "w") as zf:
                zf.writestr("p2.jpg", b"two")
                zf.writestr("dir/", b"")
                zf.writestr("p1.jpg", b"one")

            self.assertEqual(fs.list_archive_members(archive), ["p2.jpg", "p1.jpg"])
            self.assertEqual(fs.read_archive_member(archive, "p1.jpg"), b"one")
            with self.assertRaises(KeyError):
                fs.read_archive_member(archive, "missing.jpg")

    def test_tar_members_and_bytes(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            archive = Path(tmp) / "book.tar"
            with tarfile.open(archive, "w") as tf:
                data = b"page"
                info = tarfile.TarInfo("p1.png")
                info.size = len(data)
                tf.addfile(info, io.BytesIO(data))

            self.assertEqual(fs.list_archive_members(archive), ["p1.png"])
            self.assertEqual(fs.read_archive_member(archive, "p1.png"), b"page")


if __name__ == "__main__":
    unittest.main()
