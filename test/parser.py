"""
Parser module behavioral tests (resolution, matching, coercion, requirements, exit policy).

Scope
- Validate command resolution and the scope filter during matching.
- Validate long/short/equals/positional/terminator matching and their faults.
- Validate numeric and string coercion through the parser configuration.
- Validate the help short-circuit, shell-mode exit codes and parser re-use.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (Parser, parse_opts, builders, faults).
- Output is captured with an io.StringIO stream; exits are asserted via SystemExit.code.
"""

from __future__ import annotations

import io
import unittest
import warnings
from unittest import TestCase

from optable import (
    Parser,
    ParseResult,
    Scope,
    Command,
    Example,
    ConfigurationError,
    UnknownArgumentError,
    ExcessPositionalError,
    FlagAssignmentError,
    MissingArgumentError,
    UnsupportedBundledShortFormError,
    TooManyPositionalsError,
    TooFewPositionalsError,
    InvalidNumberError,
    StringTooLongError,
    MissingRequiredError,
    EmptyValueWarning,
    HelpRequested,
    flag,
    string,
    signed,
    unsigned,
    parse_opts,
)


class TestScenarios(TestCase):
    """End-to-end scenarios over small, realistic tables."""

    def testRequiredPositional(self):
        parser = Parser([string("patchfile", positional=True, required=True)], stream=io.StringIO())
        result = parser.parse(["prog", "a.txt"])
        self.assertIsNone(result.command)
        self.assertEqual(result["patchfile"], "a.txt")
        self.assertTrue(result.is_matched("patchfile"))

    def testCommandBoundFlag(self):
        parser = Parser(
            [flag("nowrite", scope=Scope.command(0))],
            [Command("apply", "Apply the patch"), Command("restore", "Restore the backup")],
            stream=io.StringIO(),
        )
        result = parser.parse(["prog", "apply", "--nowrite"])
        self.assertEqual(result.command, "apply")
        self.assertEqual(result.scope, Scope.command(0))
        self.assertIs(result["nowrite"], True)

        with self.assertRaises(UnknownArgumentError) as context:
            parser.parse(["prog", "restore", "--nowrite"])
        self.assertEqual(context.exception.token, "--nowrite")
        self.assertEqual(context.exception.index, 2)

    def testRequiredIntegerAllForms(self):
        parser = Parser([signed("timeout", "t", metavar="seconds", required=True)], stream=io.StringIO())

        with self.assertRaises(MissingRequiredError) as context:
            parser.parse(["prog"])
        self.assertEqual(context.exception.option.long, "timeout")
        self.assertIn("'--timeout'", context.exception.message)

        self.assertEqual(parser.parse(["prog", "-t", "10"])["timeout"], 10)
        self.assertEqual(parser.parse(["prog", "--timeout", "10"])["timeout"], 10)
        self.assertEqual(parser.parse(["prog", "--timeout=10"])["timeout"], 10)
        self.assertEqual(parser.parse(["prog", "-t=10"])["timeout"], 10)

    def testTooManyAfterTerminator(self):
        parser = Parser([string("first", positional=True), string("second", positional=True)], stream=io.StringIO())
        with self.assertRaises(TooManyPositionalsError) as context:
            parser.parse(["prog", "--", "a", "b", "c"])
        self.assertEqual(context.exception.expected, 2)
        self.assertEqual(context.exception.got, 3)

    def testHelpWinsOverMissingRequired(self):
        stream = io.StringIO()
        parser = Parser([signed("timeout", "t", metavar="seconds", required=True)], stream=stream)
        with self.assertRaises(HelpRequested) as context:
            parser.parse(["prog", "--help"])
        self.assertIsNone(context.exception.command)
        self.assertIn("Usage:", stream.getvalue())
        self.assertIn("--timeout <seconds>", stream.getvalue())


class TestMatching(TestCase):
    def setUp(self):
        self.stream = io.StringIO()
        self.parser = Parser(
            [
                flag("verbose", short=True, descr="Talk more"),
                string("output", "o", metavar="file", descr="Where to write"),
                signed("offset", metavar="n"),
                unsigned("count", "c", metavar="n", default=1),
                string("source", positional=True),
                string("target", positional=True),
            ],
            prog="tool",
            stream=self.stream,
        )

    def testDefaultsForUnmatched(self):
        result = self.parser.parse(["tool"])
        self.assertIs(result["verbose"], False)
        self.assertIsNone(result["output"])
        self.assertEqual(result["count"], 1)
        self.assertFalse(result.is_matched("count"))
        self.assertEqual(result.matched, frozenset())

    def testResultIsMapping(self):
        result = self.parser.parse(["tool", "-v"])
        self.assertIsInstance(result, ParseResult)
        self.assertEqual(
            set(result),
            {"verbose", "output", "offset", "count", "source", "target"},
        )
        self.assertEqual(len(result), 6)
        with self.assertRaises(KeyError):
            result["missing"]
        with self.assertRaises(KeyError):
            result.is_matched("missing")

    def testMixedTokens(self):
        result = self.parser.parse(["tool", "a.txt", "-v", "--output", "out.txt", "b.txt", "-c", "0x10"])
        self.assertEqual(result["source"], "a.txt")
        self.assertEqual(result["target"], "b.txt")
        self.assertIs(result["verbose"], True)
        self.assertEqual(result["output"], "out.txt")
        self.assertEqual(result["count"], 16)
        self.assertEqual(result.matched, {"source", "target", "verbose", "output", "count"})

    def testRepeatedOptionOverwrites(self):
        result = self.parser.parse(["tool", "-o", "first", "--output=second"])
        self.assertEqual(result["output"], "second")
        self.assertTrue(result.is_matched("output"))

    def testStringRoundTrip(self):
        for value in ("plain", "with spaces", "ünïcödé", "a=b", ""):
            with self.subTest(value=value):
                self.assertEqual(self.parser.parse(["tool", "--output", value])["output"], value)

    def testEqualsValueKeepsLaterEquals(self):
        self.assertEqual(self.parser.parse(["tool", "--output=a=b"])["output"], "a=b")

    def testNegativeValueForSigned(self):
        self.assertEqual(self.parser.parse(["tool", "--offset", "-5"])["offset"], -5)

    def testNegativeValueForUnsigned(self):
        with self.assertRaises(InvalidNumberError) as context:
            self.parser.parse(["tool", "--count", "-5"])
        self.assertEqual(context.exception.token, "-5")
        self.assertEqual(context.exception.index, 2)

    def testMissingArgumentAtEnd(self):
        with self.assertRaises(MissingArgumentError) as context:
            self.parser.parse(["tool", "--output"])
        self.assertEqual(context.exception.option.long, "output")
        self.assertIn("requires an argument but none was given", context.exception.message)

    def testMissingArgumentBeforeOption(self):
        with self.assertRaises(MissingArgumentError):
            self.parser.parse(["tool", "--output", "-v"])
        with self.assertRaises(MissingArgumentError):
            self.parser.parse(["tool", "--offset", "--verbose"])

    def testTerminatorConsumedAsValue(self):
        self.assertEqual(self.parser.parse(["tool", "--output", "--"])["output"], "--")

    def testUnknownLongSuggests(self):
        with self.assertRaises(UnknownArgumentError) as context:
            self.parser.parse(["tool", "--outptu", "x"])
        self.assertIn("'--output'", context.exception.hint)
        self.assertIn("tool --help", context.exception.hint)

    def testUnknownShort(self):
        with self.assertRaises(UnknownArgumentError):
            self.parser.parse(["tool", "-x"])

    def testUnknownEqualsKey(self):
        with self.assertRaises(UnknownArgumentError) as context:
            self.parser.parse(["tool", "--nope=1"])
        self.assertEqual(context.exception.token, "--nope=1")
        with self.assertRaises(UnknownArgumentError):
            self.parser.parse(["tool", "name=value"])

    def testExcessPositional(self):
        with self.assertRaises(ExcessPositionalError) as context:
            self.parser.parse(["tool", "a", "b", "c"])
        self.assertEqual(context.exception.token, "c")
        self.assertEqual(context.exception.index, 3)
        self.assertIn("third position", context.exception.message)

    def testPositionalByName(self):
        result = self.parser.parse(["tool", "--source", "a.txt", "b.txt"])
        self.assertEqual(result["source"], "a.txt")
        self.assertEqual(result["target"], "b.txt")

    def testFlagAssignment(self):
        with self.assertRaises(FlagAssignmentError) as context:
            self.parser.parse(["tool", "--verbose=yes"])
        self.assertEqual(context.exception.option.long, "verbose")

    def testBundledShortForms(self):
        with self.assertRaises(UnsupportedBundledShortFormError) as context:
            self.parser.parse(["tool", "-vc"])
        self.assertEqual(context.exception.token, "-vc")

    def testInvalidNumber(self):
        with self.assertRaises(InvalidNumberError) as context:
            self.parser.parse(["tool", "--offset", "ten"])
        self.assertEqual(context.exception.option.long, "offset")
        self.assertEqual(context.exception.token, "ten")
        with self.assertRaises(InvalidNumberError):
            self.parser.parse(["tool", "--count=0x"])

    def testEmptyEqualsValueWarns(self):
        with self.assertWarns(EmptyValueWarning):
            result = self.parser.parse(["tool", "--output="])
        self.assertEqual(result["output"], "")
        self.assertTrue(result.is_matched("output"))

    def testTerminatorFillsRemainingPositionals(self):
        result = self.parser.parse(["tool", "a.txt", "--", "-v"])
        self.assertEqual(result["source"], "a.txt")
        self.assertEqual(result["target"], "-v")
        self.assertIs(result["verbose"], False)

    def testTerminatorSingleDash(self):
        result = self.parser.parse(["tool", "-", "--x", "y=z"])
        self.assertEqual(result["source"], "--x")
        self.assertEqual(result["target"], "y=z")

    def testTooFewAfterTerminator(self):
        with self.assertRaises(TooFewPositionalsError) as context:
            self.parser.parse(["tool", "--", "only"])
        self.assertEqual(context.exception.expected, 2)
        self.assertEqual(context.exception.got, 1)

    def testShellLikeString(self):
        result = self.parser.parse("tool -v --output 'out file.txt'")
        self.assertEqual(result["output"], "out file.txt")

    def testEmptyArgvRejected(self):
        with self.assertRaises(ValueError):
            self.parser.parse([])
        with self.assertRaises(TypeError):
            self.parser.parse(["tool", 1])


class TestConfiguration(TestCase):
    def testHexadecimalDisabled(self):
        parser = Parser([signed("value", metavar="n")], hexadecimal=False, stream=io.StringIO())
        self.assertEqual(parser.parse(["prog", "--value", "42"])["value"], 42)
        self.assertEqual(parser.parse(["prog", "--value", "0b101010"])["value"], 42)
        with self.assertRaises(InvalidNumberError) as context:
            parser.parse(["prog", "--value", "0x2a"])
        self.assertNotIn("hexadecimal", context.exception.hint)

    def testBinaryDisabled(self):
        parser = Parser([signed("value", metavar="n")], binary=False, stream=io.StringIO())
        self.assertEqual(parser.parse(["prog", "--value", "0x2a"])["value"], 42)
        with self.assertRaises(InvalidNumberError):
            parser.parse(["prog", "--value", "0b101010"])

    def testMaxLength(self):
        parser = Parser([string("name", metavar="name")], max_length=4, stream=io.StringIO())
        self.assertEqual(parser.parse(["prog", "--name", "abcd"])["name"], "abcd")
        with self.assertRaises(StringTooLongError) as context:
            parser.parse(["prog", "--name", "abcde"])
        self.assertEqual(context.exception.expected, 4)
        self.assertEqual(context.exception.got, 5)
        with self.assertRaises(StringTooLongError):
            parser.parse(["prog", "--name=abcde"])

    def testDefaultMaxLength(self):
        parser = Parser([string("name", metavar="name")], stream=io.StringIO())
        self.assertEqual(parser.max_length, 1024)
        parser.parse(["prog", "--name", "x" * 1024])
        with self.assertRaises(StringTooLongError):
            parser.parse(["prog", "--name", "x" * 1025])

    def testMaxLengthDisabled(self):
        parser = Parser([string("name", metavar="name")], max_length=None, stream=io.StringIO())
        self.assertEqual(len(parser.parse(["prog", "--name", "x" * 5000])["name"]), 5000)

    def testBadConfiguration(self):
        with self.assertRaises(TypeError):
            Parser([], prog=42)
        with self.assertRaises(ValueError):
            Parser([], max_length=-1)
        with self.assertRaises(ConfigurationError):
            Parser([flag("help")])

    def testProgDefaultsToArgvZero(self):
        parser = Parser([], stream=io.StringIO())
        with self.assertRaises(UnknownArgumentError) as context:
            parser.parse(["./patch", "--nope"])
        self.assertIn("./patch --help", context.exception.hint)
        self.assertEqual(context.exception.prog, "./patch")


class TestCommands(TestCase):
    def setUp(self):
        self.parser = Parser(
            [
                flag("verbose", short=True),
                string("patchfile", positional=True, required=True, scope=Scope.ROOT),
                flag("nowrite", "n", scope=Scope.command(0)),
                string("backup", "b", metavar="file", scope=Scope.command(1), required=True),
            ],
            [Command("apply", "Apply the patch"), Command("restore", "Restore the backup")],
            [Example("apply -n", "Dry run")],
            stream=io.StringIO(),
        )

    def testRootScope(self):
        result = self.parser.parse(["prog", "-v", "a.patch"])
        self.assertIsNone(result.command)
        self.assertEqual(result.scope, Scope.ROOT)
        self.assertEqual(set(result), {"verbose", "patchfile"})

    def testCommandOnlyRecognizedFirst(self):
        with self.assertRaises(ExcessPositionalError):
            self.parser.parse(["prog", "a.patch", "apply"])

    def testCommandScope(self):
        result = self.parser.parse(["prog", "apply", "-n", "-v"])
        self.assertEqual(result.command, "apply")
        self.assertEqual(set(result), {"verbose", "nowrite"})
        self.assertIs(result["nowrite"], True)

    def testRootRequiredIgnoredUnderCommand(self):
        result = self.parser.parse(["prog", "restore", "-b", "x.bak"])
        self.assertEqual(result["backup"], "x.bak")

    def testCommandRequired(self):
        with self.assertRaises(MissingRequiredError) as context:
            self.parser.parse(["prog", "restore"])
        self.assertEqual(context.exception.option.long, "backup")
        self.assertIn("prog restore --help", context.exception.hint)

    def testRootOptionHiddenUnderCommand(self):
        with self.assertRaises(ExcessPositionalError):
            self.parser.parse(["prog", "apply", "a.patch"])

    def testFind(self):
        self.assertEqual(self.parser.find("backup").short, "b")
        self.assertIsNone(self.parser.find("missing"))

    def testHelpForCommand(self):
        stream = io.StringIO()
        parser = Parser(self.parser.options, self.parser.commands, self.parser.examples, stream=stream)
        with self.assertRaises(HelpRequested) as context:
            parser.parse(["prog", "apply", "-h"])
        self.assertEqual(context.exception.command, "apply")
        self.assertIn("--nowrite", stream.getvalue())
        self.assertNotIn("--backup", stream.getvalue())

    def testHelpAfterTerminatorIgnored(self):
        result = self.parser.parse(["prog", "--", "--help"])
        self.assertEqual(result["patchfile"], "--help")


class TestReuse(TestCase):
    def testIndependentResults(self):
        parser = Parser([flag("verbose", short=True), string("name", positional=True)], stream=io.StringIO())
        first = parser.parse(["prog", "-v", "one"])
        second = parser.parse(["prog", "two"])
        self.assertIs(first["verbose"], True)
        self.assertEqual(first["name"], "one")
        self.assertIs(second["verbose"], False)
        self.assertEqual(second["name"], "two")
        self.assertFalse(second.is_matched("verbose"))

    def testFailureDoesNotLeak(self):
        parser = Parser([string("name", positional=True, required=True)], stream=io.StringIO())
        with self.assertRaises(MissingRequiredError):
            parser.parse(["prog"])
        self.assertEqual(parser.parse(["prog", "x"])["name"], "x")


class TestShellMode(TestCase):
    def testErrorExitsWithOne(self):
        stream = io.StringIO()
        parser = Parser([flag("verbose")], prog="tool", shell=True, stream=stream)
        with self.assertRaises(SystemExit) as context:
            parser.parse(["tool", "--verbos"])
        self.assertEqual(context.exception.code, 1)
        self.assertIn("Unknown Argument", stream.getvalue())
        self.assertIn("did you mean '--verbose'?", stream.getvalue())

    def testHelpExitsWithZero(self):
        stream = io.StringIO()
        parser = Parser([flag("verbose")], prog="tool", shell=True, stream=stream)
        with self.assertRaises(SystemExit) as context:
            parser.parse(["tool", "-h"])
        self.assertEqual(context.exception.code, 0)
        self.assertIn("Available options:", stream.getvalue())

    def testWarningIsPrintedAndParsingContinues(self):
        stream = io.StringIO()
        parser = Parser([string("output", metavar="file")], shell=True, stream=stream)
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            result = parser.parse(["prog", "--output="])
        self.assertEqual(result["output"], "")
        self.assertIn("Empty Inline Value", stream.getvalue())

    def testParseOpts(self):
        stream = io.StringIO()
        result = parse_opts([flag("verbose", short=True)], (), (), ["prog", "-v"], stream=stream)
        self.assertIs(result["verbose"], True)
        with self.assertRaises(SystemExit) as context:
            parse_opts([flag("verbose", short=True)], (), (), ["prog", "-x"], stream=stream)
        self.assertEqual(context.exception.code, 1)


if __name__ == "__main__":
    unittest.main()
