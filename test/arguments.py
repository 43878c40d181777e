# python
"""
Arguments module behavioral tests (value types, Argument, Option, Fragment).

Scope
- Validate token coercion per value type (numeric, boolean, choice, sequence).
- Validate declaration-time metadata checks (types, defaults, choices, aliases).
- Validate derived properties (required, long, spellings, banner).
- Validate positional-first coercion faults.

Conventions
- Test method names follow CamelCase per project convention.
- Specs are named with __set_name__ the way a class body would name them.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from flotilla import Argument, Option, Fragment, ValueType
from flotilla.faults import CoercionError, DeclarationError


def named(spec, name):
    spec.__set_name__(None, name)
    return spec


class TestValueType(TestCase):
    """Behavioral tests for token coercion."""

    def testNumericIntegerAndDecimal(self):
        self.assertEqual(ValueType.NUMERIC.coerce("42"), 42)
        self.assertIsInstance(ValueType.NUMERIC.coerce("42"), int)
        self.assertEqual(ValueType.NUMERIC.coerce("-1.5"), -1.5)
        self.assertIsInstance(ValueType.NUMERIC.coerce("2.0"), float)

    def testNumericRejectsWords(self):
        with self.assertRaises(ValueError):
            ValueType.NUMERIC.coerce("three")

    def testBooleanWords(self):
        for token in ("true", "YES", "y", "on", "1"):
            self.assertIs(ValueType.BOOLEAN.coerce(token), True)
        for token in ("false", "No", "n", "off", "0"):
            self.assertIs(ValueType.BOOLEAN.coerce(token), False)
        with self.assertRaises(ValueError):
            ValueType.BOOLEAN.coerce("maybe")

    def testChoiceMembership(self):
        self.assertEqual(ValueType.CHOICE.coerce("a", ("a", "b")), "a")
        with self.assertRaises(ValueError):
            ValueType.CHOICE.coerce("c", ("a", "b"))

    def testSequenceSplitsOnComma(self):
        self.assertEqual(ValueType.SEQUENCE.coerce("a,b,c"), ("a", "b", "c"))
        self.assertEqual(ValueType.SEQUENCE.coerce("single"), ("single",))


class TestArgument(TestCase):
    """Behavioral tests for positional Argument specifications."""

    def testRequiredWithoutDefault(self):
        self.assertTrue(Argument("numeric").required)
        self.assertFalse(Argument("numeric", 2).required)

    def testNoneDefaultMakesOptional(self):
        argument = Argument("string", None)
        self.assertFalse(argument.required)
        self.assertIsNone(argument.default)

    def testTypeAcceptsEnumMember(self):
        self.assertIs(Argument(ValueType.CHOICE, choices=("a",)).type, ValueType.CHOICE)

    def testUnknownTypeRejected(self):
        with self.assertRaises(DeclarationError):
            Argument("integer")

    def testDefaultMustMatchType(self):
        with self.assertRaises(DeclarationError):
            Argument("numeric", "two")
        with self.assertRaises(DeclarationError):
            Argument("numeric", True)

    def testChoiceNeedsChoices(self):
        with self.assertRaises(DeclarationError):
            Argument("choice")

    def testChoicesOnlyForChoiceType(self):
        with self.assertRaises(DeclarationError):
            Argument("string", choices=("a",))

    def testDuplicateChoicesRejected(self):
        with self.assertRaises(DeclarationError):
            Argument("choice", choices=("a", "a"))

    def testSequenceDefaultBecomesTuple(self):
        self.assertEqual(Argument("sequence", ["a", "b"]).default, ("a", "b"))

    def testEmptyDescrRejected(self):
        with self.assertRaises(DeclarationError):
            Argument("string", descr="   ")

    def testBanner(self):
        self.assertEqual(named(Argument("numeric"), "first").banner, "N")
        self.assertEqual(named(Argument("string"), "path").banner, "PATH")
        self.assertEqual(named(Argument("choice", choices=("a", "b")), "mode").banner, "{a,b}")
        self.assertEqual(named(Argument("string", metavar="FILE"), "path").banner, "FILE")

    def testCannotBeNamedTwice(self):
        argument = named(Argument(), "first")
        with self.assertRaises(DeclarationError):
            argument.__set_name__(None, "second")

    def testCoercionErrorMentionsPosition(self):
        argument = named(Argument("numeric"), "first")
        with self.assertRaises(CoercionError) as context:
            argument.coerce("abc", index=2)
        self.assertIn("second position", str(context.exception))
        self.assertIn("'first'", str(context.exception))

    def testRepr(self):
        self.assertTrue(repr(named(Argument("numeric"), "first")).startswith("argument(name='first'"))


class TestOption(TestCase):
    """Behavioral tests for named Option specifications."""

    def testDefaultsToNone(self):
        self.assertIsNone(Option().default)
        self.assertIsNone(Option("boolean").default)

    def testLongSpellingUsesHyphens(self):
        option = named(Option("boolean"), "dry_run")
        self.assertEqual(option.long, "--dry-run")

    def testSpellingsIncludeAliases(self):
        option = named(Option("numeric", 3, aliases=("-t", "--count")), "third")
        self.assertEqual(option.spellings, ("--third", "-t", "--count"))

    def testSingleAliasString(self):
        self.assertEqual(Option("numeric", aliases="-t").aliases, ("-t",))

    def testInvalidAliasRejected(self):
        with self.assertRaises(DeclarationError):
            Option("numeric", aliases=("t",))
        with self.assertRaises(DeclarationError):
            Option("numeric", aliases=("-1",))

    def testSequenceTypeRejected(self):
        with self.assertRaises(DeclarationError):
            Option("sequence")

    def testRequiredWithDefaultRejected(self):
        with self.assertRaises(DeclarationError):
            Option("string", "x", required=True)

    def testGroupDefaultsToOptions(self):
        self.assertEqual(Option().group, "options")
        self.assertEqual(Option(group="Runtime").group, "Runtime")
        with self.assertRaises(DeclarationError):
            Option(group=" ")

    def testBannerForBooleanIsNone(self):
        self.assertIsNone(named(Option("boolean"), "loud").banner)
        self.assertEqual(named(Option("numeric", metavar="THREE"), "third").banner, "THREE")

    def testInvokesShapes(self):
        self.assertEqual(Option("boolean", invokes="defined").invokes, "defined")
        self.assertEqual(Option("string", invokes={"a": "defined"}).invokes, {"a": "defined"})
        with self.assertRaises(DeclarationError):
            Option("numeric", invokes={"1": "defined"})
        with self.assertRaises(DeclarationError):
            Option("string", invokes="defined")
        with self.assertRaises(DeclarationError):
            Option("boolean", invokes=42)

    def testCoercionErrorUsesSpelling(self):
        option = named(Option("numeric", aliases=("-t",)), "third")
        with self.assertRaises(CoercionError) as context:
            option.coerce("x", spelling="-t", index=3)
        self.assertIn("'-t'", str(context.exception))
        self.assertIn("third position", str(context.exception))


class TestFragment(TestCase):
    """Behavioral tests for reusable option fragments."""

    def testOptionsAreNamed(self):
        fragment = Fragment("verbosity", verbose=Option("boolean"), level=Option("numeric", 1))
        self.assertEqual(fragment.name, "verbosity")
        self.assertEqual(list(fragment.options), ["verbose", "level"])
        self.assertEqual(fragment.options["level"].long, "--level")

    def testMembersMustBeOptions(self):
        with self.assertRaises(DeclarationError):
            Fragment("broken", value=Argument())

    def testNameRequired(self):
        with self.assertRaises(DeclarationError):
            Fragment("  ")


if __name__ == "__main__":
    unittest.main()
