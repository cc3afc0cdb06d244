"""Extension classification tests."""

from __future__ import annotations

import unittest

from imagedeck.entry_tree import EntryClassifier, FileKind
from imagedeck.entry_tree.classify import normalize_extensions


class ClassifierTests(unittest.TestCase):
    def test_classify_is_case_insensitive_suffix_match(self) -> None:
        classifier = EntryClassifier()
        self.assertIs(classifier.classify("Photo.JPG"), FileKind.IMAGE)
        self.assertIs(classifier.classify("clip.mkv"), FileKind.VIDEO)
        self.assertIs(classifier.classify("pages.Zip"), FileKind.ARCHIVE)
        self.assertIs(classifier.classify("notes.txt"), FileKind.UNKNOWN)
        self.assertIs(classifier.classify("png"), FileKind.UNKNOWN)

    def test_first_matching_kind_wins_when_sets_overlap(self) -> None:
        classifier = EntryClassifier(
            image_extensions=["webm"],
            video_extensions=["webm"],
            archive_extensions=["zip"],
        )
        self.assertIs(classifier.classify("a.webm"), FileKind.IMAGE)

    def test_custom_extensions_replace_defaults(self) -> None:
        classifier = EntryClassifier(image_extensions=[".AVIF"], video_extensions=[], archive_extensions=["cbz"])
        self.assertIs(classifier.classify("x.avif"), FileKind.IMAGE)
        self.assertIs(classifier.classify("x.png"), FileKind.UNKNOWN)
        self.assertTrue(classifier.is_archive("book.cbz"))
        self.assertEqual(classifier.extensions_for(FileKind.ARCHIVE), frozenset({"cbz"}))

    def test_normalize_extensions_strips_dots_and_blanks(self) -> None:
        self.assertEqual(normalize_extensions([".PNG", " jpg ", "", "."]), frozenset({"png", "jpg"}))


if __name__ == "__main__":
    unittest.main()
