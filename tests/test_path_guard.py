"""Unit tests for nasgate.gate.path_guard: containment, traversal and the excluded install directory."""

import os
import unittest

from nasgate.gate.outcomes import ErrorKind, Rejection
from nasgate.gate.path_guard import PathGuard, is_within, relative_to_root, resolve

ROOT = "/srv/share"
INSTALL = "/srv/share/nasgate"


def _assert_denied(test: unittest.TestCase, outcome: object) -> None:
    test.assertIsInstance(outcome, Rejection)
    test.assertEqual(outcome.kind, ErrorKind.ACCESS_DENIED)
    test.assertEqual(outcome.status_code, 403)


class TestIsWithin(unittest.TestCase):
    def test_same_path(self) -> None:
        self.assertTrue(is_within("/srv/share", "/srv/share"))

    def test_child(self) -> None:
        self.assertTrue(is_within("/srv/share/docs/a.txt", "/srv/share"))

    def test_sibling_with_common_prefix_is_outside(self) -> None:
        self.assertFalse(is_within("/srv/share2", "/srv/share"))
        self.assertFalse(is_within("/srv/share2/secret", "/srv/share"))

    def test_filesystem_root_base(self) -> None:
        self.assertTrue(is_within("/etc", "/"))


class TestResolve(unittest.TestCase):
    """resolve() is purely textual: none of these paths exist on disk."""

    def test_root_forms(self) -> None:
        for requested in (None, "", "/", "//", "."):
            with self.subTest(requested=requested):
                self.assertEqual(resolve(ROOT, INSTALL, requested), ROOT)

    def test_leading_separator_is_relative_to_root(self) -> None:
        self.assertEqual(resolve(ROOT, INSTALL, "/docs/a.txt"), os.path.join(ROOT, "docs", "a.txt"))
        self.assertEqual(resolve(ROOT, INSTALL, "/etc/passwd"), os.path.join(ROOT, "etc", "passwd"))

    def test_dot_segments_inside_root_are_collapsed(self) -> None:
        self.assertEqual(resolve(ROOT, INSTALL, "docs/../photos/./a.jpg"), os.path.join(ROOT, "photos", "a.jpg"))

    def test_parent_traversal_denied(self) -> None:
        for requested in ("..", "../../etc", "docs/../../etc/passwd", "/../etc", "a/b/../../../x"):
            with self.subTest(requested=requested):
                _assert_denied(self, resolve(ROOT, INSTALL, requested))

    def test_escape_to_sibling_with_common_prefix_denied(self) -> None:
        _assert_denied(self, resolve(ROOT, INSTALL, "../share2/secret"))

    def test_excluded_subtree_denied(self) -> None:
        for requested in ("nasgate", "/nasgate/", "nasgate/.env", "docs/../nasgate/data/nasgate.db"):
            with self.subTest(requested=requested):
                _assert_denied(self, resolve(ROOT, INSTALL, requested))

    def test_name_sharing_prefix_with_excluded_is_allowed(self) -> None:
        self.assertEqual(resolve(ROOT, INSTALL, "nasgate-backup"), os.path.join(ROOT, "nasgate-backup"))

    def test_excluded_wins_when_it_contains_the_root(self) -> None:
        _assert_denied(self, resolve("/opt/nasgate/share", "/opt/nasgate", "docs"))

    def test_nul_byte_denied(self) -> None:
        _assert_denied(self, resolve(ROOT, INSTALL, "docs/a.txt\x00.jpg"))

    def test_unnormalized_root(self) -> None:
        self.assertEqual(resolve("/srv//share/", INSTALL, "docs"), os.path.join(ROOT, "docs"))


class TestRelativeToRoot(unittest.TestCase):
    def test_root_itself(self) -> None:
        self.assertEqual(relative_to_root(ROOT, ROOT), "/")

    def test_nested(self) -> None:
        self.assertEqual(relative_to_root(ROOT, os.path.join(ROOT, "docs", "a.txt")), "/docs/a.txt")


class TestPathGuard(unittest.TestCase):
    def setUp(self) -> None:
        self.guard = PathGuard(ROOT, INSTALL)

    def test_resolve_delegates(self) -> None:
        self.assertEqual(self.guard.resolve("docs"), os.path.join(ROOT, "docs"))
        _assert_denied(self, self.guard.resolve("../etc"))

    def test_is_excluded(self) -> None:
        self.assertTrue(self.guard.is_excluded(INSTALL))
        self.assertTrue(self.guard.is_excluded(os.path.join(INSTALL, "logs")))
        self.assertFalse(self.guard.is_excluded(os.path.join(ROOT, "docs")))

    def test_relative(self) -> None:
        self.assertEqual(self.guard.relative(os.path.join(ROOT, "docs")), "/docs")


if __name__ == "__main__":
    unittest.main()
