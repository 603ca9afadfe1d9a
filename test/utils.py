"""
Tests for the shared utilities.

This module verifies:
- The Unset sentinel: singleton identity, falsy semantics, union support, finality.
- coalesce(): only Unset is replaced.
- rename(): direct and decorator forms, bad arguments.
- mirror(): read-only properties handing out immutable snapshots.
- ordinal(): word forms up to ten, numeric suffixes after.
"""
import copy
import pickle
import unittest
from types import MappingProxyType
from unittest import TestCase

from optable.utils import *


class UnsetTest(TestCase):
    """Test suite for the Unset sentinel."""

    def testSingleton(self) -> None:
        self.assertIs(UnsetType(), Unset)
        self.assertIs(UnsetType(), UnsetType())

    def testFalsely(self) -> None:
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)
        self.assertNotEqual(Unset, False)  # noqa: E712

    def testRepr(self) -> None:
        self.assertEqual(repr(Unset), "Unset")

    def testUnionInIsinstance(self) -> None:
        """
        str | Unset builds a union usable by isinstance().
        """
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertTrue(isinstance("name", str | Unset))
        self.assertFalse(isinstance(1, str | Unset))

    def testCopyAndPicklePreserveSingleton(self) -> None:
        self.assertIs(copy.copy(Unset), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)
        self.assertIs(pickle.loads(pickle.dumps(Unset)), Unset)

    def testFinalClass(self) -> None:
        with self.assertRaises(TypeError):
            type("Subclass", (UnsetType,), {})


class CoalesceTest(TestCase):
    def testReplacesUnset(self) -> None:
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")

    def testDefaultIsNone(self) -> None:
        self.assertIsNone(coalesce(Unset))

    def testKeepsFalseyValues(self) -> None:
        for value in (None, 0, "", (), False):
            self.assertIs(coalesce(value, "fallback"), value)


class RenameTest(TestCase):
    def testDirectForm(self) -> None:
        def function():
            pass

        self.assertIs(rename(function, "renamed"), function)
        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")

    def testDecoratorForm(self) -> None:
        @rename("decorated")
        def function():
            pass

        self.assertEqual(function.__name__, "decorated")

    def testRejectsBadArguments(self) -> None:
        with self.assertRaises(TypeError):
            rename(42, "name")
        with self.assertRaises(TypeError):
            rename(lambda: None, 42)
        with self.assertRaises(TypeError):
            rename()
        with self.assertRaises(TypeError):
            rename(len, "length")  # built-ins refuse renaming


class MirrorTest(TestCase):
    class Holder:
        items = mirror("items")
        mapping = mirror("mapping")
        scalar = mirror("scalar")

        def __init__(self):
            self._items = ["a", ["b"]]
            self._mapping = {"key": {"nested"}}
            self._scalar = 42

    def testReadsBackingField(self) -> None:
        self.assertEqual(self.Holder().scalar, 42)

    def testReadOnly(self) -> None:
        with self.assertRaises(AttributeError):
            self.Holder().scalar = 0

    def testSnapshotsContainers(self) -> None:
        holder = self.Holder()
        self.assertEqual(holder.items, ("a", ("b",)))
        self.assertIsInstance(holder.mapping, MappingProxyType)
        self.assertEqual(holder.mapping["key"], frozenset({"nested"}))

    def testRejectsNonStringName(self) -> None:
        with self.assertRaises(TypeError):
            mirror(42)


class OrdinalTest(TestCase):
    def testWords(self) -> None:
        self.assertEqual(ordinal(1), "first")
        self.assertEqual(ordinal(3), "third")
        self.assertEqual(ordinal(10), "tenth")

    def testSuffixes(self) -> None:
        self.assertEqual(ordinal(11), "11th")
        self.assertEqual(ordinal(12), "12th")
        self.assertEqual(ordinal(13), "13th")
        self.assertEqual(ordinal(21), "21st")
        self.assertEqual(ordinal(22), "22nd")
        self.assertEqual(ordinal(23), "23rd")
        self.assertEqual(ordinal(111), "111th")
        self.assertEqual(ordinal(101), "101st")


if __name__ == '__main__':
    unittest.main()
