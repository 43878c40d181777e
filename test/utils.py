"""
Tests for the shared helpers and the Unset sentinel.

This module verifies:
- Unset identity, falsiness and union support in isinstance checks.
- coalesce preserving falsy values other than Unset.
- underscore label derivation and ordinal position labels.
- mirror returning immutable copies of container fields.
"""
import unittest
from unittest import TestCase

from flotilla.utils import Unset, UnsetType, coalesce, mirror, ordinal, rename, underscore


class UnsetTest(TestCase):
    """
    Test suite for the Unset sentinel.
    """

    def testSingleton(self) -> None:
        self.assertIs(UnsetType(), Unset)
        self.assertFalse(Unset)
        self.assertEqual(repr(Unset), "Unset")

    def testUnionInIsinstance(self) -> None:
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertTrue(isinstance("x", str | Unset))
        self.assertFalse(isinstance(1, str | Unset))

    def testFinal(self) -> None:
        with self.assertRaises(TypeError):
            type("Derived", (UnsetType,), {})


class HelpersTest(TestCase):
    """
    Test suite for the small helpers.
    """

    def testCoalesce(self) -> None:
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)

    def testUnderscore(self) -> None:
        self.assertEqual(underscore("MyCounter"), "my_counter")
        self.assertEqual(underscore("HTTPServer"), "http_server")
        self.assertEqual(underscore("already_ok"), "already_ok")

    def testOrdinal(self) -> None:
        self.assertEqual(ordinal(1), "first")
        self.assertEqual(ordinal(10), "tenth")
        self.assertEqual(ordinal(11), "11th")
        self.assertEqual(ordinal(22), "22nd")
        self.assertEqual(ordinal(113), "113th")

    def testRename(self) -> None:
        renamed = rename(lambda: None, "task")
        self.assertEqual(renamed.__name__, "task")
        self.assertEqual(rename("other")(lambda: None).__qualname__, "other")

    def testMirrorCopiesContainers(self) -> None:
        class Holder:
            items = mirror("items")

            def __init__(self):
                self._items = ["a", ["b"]]

        self.assertEqual(Holder().items, ("a", ("b",)))


if __name__ == "__main__":
    unittest.main()
