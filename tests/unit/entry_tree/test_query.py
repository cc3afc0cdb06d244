"""Sibling-group query tests over built trees."""

from __future__ import annotations

import unittest

from imagedeck.entry_tree import (
    ArchiveMemberEntry,
    DirectoryEntry,
    ImageEntry,
    entry_identity,
    first_viewable_group,
    flatten_leaves,
    iter_sibling_groups,
    resolve,
)

A = ImageEntry(name="a.png", path="/r/a.png")
B = ImageEntry(name="b.png", path="/r/b.png")
X = ImageEntry(name="x.png", path="/r/sub/x.png")
Y = ImageEntry(name="y.png", path="/r/sub/deep/y.png")
DEEP = DirectoryEntry(name="deep", path="/r/sub/deep", children=(Y,))
SUB = DirectoryEntry(name="sub", path="/r/sub", children=(DEEP, X))
TREE = (A, B, SUB)


class FirstViewableGroupTests(unittest.TestCase):
    def test_prefers_leaves_of_the_top_level(self) -> None:
        self.assertEqual(first_viewable_group(TREE), (A, B))

    def test_descends_when_top_level_has_only_directories(self) -> None:
        self.assertEqual(first_viewable_group((SUB,)), (X,))

    def test_empty_tree_has_no_group(self) -> None:
        self.assertEqual(first_viewable_group(()), ())

    def test_root_without_leaves_yields_subdirectory_pair(self) -> None:
        p = ImageEntry(name="p.png", path="/r/only/p.png")
        q = ImageEntry(name="q.png", path="/r/only/q.png")
        tree = (DirectoryEntry(name="only", path="/r/only", children=(p, q)),)
        self.assertEqual(first_viewable_group(tree), (p, q))

    def test_group_members_share_one_parent(self) -> None:
        for tree in (TREE, (SUB,), (DEEP,), ()):
            group = first_viewable_group(tree)
            parents = {leaf.path.rsplit("/", 1)[0] for leaf in group}
            self.assertLessEqual(len(parents), 1)


class ResolveTests(unittest.TestCase):
    def test_finds_nested_leaf_inside_its_own_group(self) -> None:
        found = resolve(TREE, "/r/sub/deep/y.png")
        assert found is not None
        self.assertEqual(found.group, (Y,))
        self.assertEqual(found.index, 0)
        self.assertEqual(found.current, Y)

    def test_every_leaf_resolves_to_its_sibling_set(self) -> None:
        for group in iter_sibling_groups(TREE):
            for index, leaf in enumerate(group):
                found = resolve(TREE, entry_identity(leaf))
                assert found is not None
                self.assertEqual(found.group, group)
                self.assertEqual(found.index, index)

    def test_unknown_identity_returns_none(self) -> None:
        self.assertIsNone(resolve(TREE, "/r/missing.png"))

    def test_archive_members_resolve_by_container_plus_name(self) -> None:
        group = (
            ArchiveMemberEntry(name="p1.jpg", container_path="/v.zip"),
            ArchiveMemberEntry(name="p2.jpg", container_path="/v.zip"),
        )
        found = resolve(group, "/v.zipp2.jpg")
        assert found is not None
        self.assertEqual(found.index, 1)
        self.assertEqual(entry_identity(found.current), "/v.zipp2.jpg")


class GroupIterationTests(unittest.TestCase):
    def test_iter_sibling_groups_is_depth_first(self) -> None:
        self.assertEqual(list(iter_sibling_groups(TREE)), [(A, B), (X,), (Y,)])

    def test_flatten_leaves_indexes_every_leaf(self) -> None:
        self.assertEqual(set(flatten_leaves(TREE)), {A.path, B.path, X.path, Y.path})


if __name__ == "__main__":
    unittest.main()
