"""
Parser behavioral tests (flag resolution, descent, arity, faults).

Scope
- Validate flag syntax, per-scope lookup and argument consumption.
- Validate descent into lists and the "no descent after a positional" rule.
- Validate command arity and positional conversion.
- Validate that actions run exactly once on success and never on failure.
- Validate fault context (token and 0-based index) and shell-mode rendering.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (Cli, invoke, parse, faults).
"""

from __future__ import annotations

import io
import unittest
from contextlib import redirect_stderr
from unittest import TestCase

from arbor import ArgumentType, Cli, ListNode, invoke, parse
from arbor.faults import (
    ArgumentCountMismatchError,
    BadArgumentTypeError,
    BadFlagSyntaxError,
    CommandException,
    FaultCode,
    MissingFlagArgumentError,
    UnknownCommandError,
    UnknownFlagError,
)


class Recorder:
    """Action double recording every (flags, arguments) call."""

    def __init__(self, result=None):
        self.calls = []
        self.result = result

    def __call__(self, flags, arguments):
        self.calls.append((flags, arguments))
        return self.result

    @property
    def flags(self):
        return dict(self.calls[-1][0])

    @property
    def arguments(self):
        return self.calls[-1][1]


class TestParser(TestCase):
    """Behavioral tests for parsing against a small tree."""

    def setUp(self):
        self.root = Recorder()
        self.tuna = Recorder()
        self.marlin = Recorder()
        self.mayo = Recorder("mayo-result")
        self.create = Recorder()
        self.sum = Recorder()

        self.cli = Cli("cli-test", "commands for the parser tests")
        self.cli.root.set_action(self.root)
        self.cli.add_short_flag("a", "Description for a flag")
        self.cli.add_long_flag("b", "bob", "Description for flag b|bob flag")
        self.cli.add_short_flag_with_parameter("c", "Description for c flag", "word")
        self.cli.add_long_flag_with_parameter("d", "dog", "Description for d|dog", "name")
        self.cli.add_long_flag_with_parameter("n", "number", "a number", "count", ArgumentType.INTEGER)

        tuna = self.cli.add_list("tuna", "This is the tuna command list", self.tuna)
        tuna.add_long_flag_with_parameter("a", "andrew", "Description for andrew flag", "whatever")
        tuna.add_short_flag("f", "The f flag, ya know")
        tuna.add_command("marlin", "This is the marlin command", self.marlin).add_short_flag("z", "The z flag, ya know")

        self.cli.add_command("mayo", "This is the mayo command", self.mayo)
        (self.cli.add_command("create", "create something", self.create)
            .add_argument("first")
            .add_argument("second"))
        (self.cli.add_command("sum", "add two numbers", self.sum)
            .add_argument("x", ArgumentType.INTEGER)
            .add_argument("y", ArgumentType.INTEGER))

        self.recorders = (self.root, self.tuna, self.marlin, self.mayo, self.create, self.sum)

    def assertNothingRan(self):
        for recorder in self.recorders:
            self.assertEqual(recorder.calls, [])

    def assertFault(self, kind, tokens, token, index):
        with self.assertRaises(kind) as context:
            self.cli.parse(tokens)
        self.assertEqual(context.exception.token, token)
        self.assertEqual(context.exception.index, index)
        self.assertNothingRan()
        return context.exception

    # ── Flag faults ───────────────────────────────────────────────────────

    def testBadFlagSyntaxStart(self):
        fault = self.assertFault(BadFlagSyntaxError, ["---a", "-b"], "---a", 0)
        self.assertIs(fault.code, FaultCode.BAD_FLAG_SYNTAX)

    def testBadFlagSyntaxEnd(self):
        self.assertFault(BadFlagSyntaxError, ["-b", "---a"], "---a", 1)

    def testBareDashes(self):
        self.assertFault(BadFlagSyntaxError, ["-"], "-", 0)
        self.assertFault(BadFlagSyntaxError, ["mayo", "--"], "--", 1)

    def testUnknownShortFlag(self):
        fault = self.assertFault(UnknownFlagError, ["-b", "-z"], "-z", 1)
        self.assertIs(fault.code, FaultCode.UNKNOWN_FLAG)

    def testUnknownLongFlag(self):
        self.assertFault(UnknownFlagError, ["-b", "--zebra"], "--zebra", 1)

    def testLongFlagShortSyntax(self):
        self.assertFault(UnknownFlagError, ["-b", "-bob"], "-bob", 1)

    def testShortFlagLongSyntax(self):
        self.assertFault(UnknownFlagError, ["--b"], "--b", 0)

    def testNoShortArgument(self):
        self.assertFault(MissingFlagArgumentError, ["-b", "-c"], "-c", 1)

    def testNoLongArgument(self):
        self.assertFault(MissingFlagArgumentError, ["-b", "--dog"], "--dog", 1)

    def testFlagsAreScopedToTheActiveNode(self):
        self.assertFault(UnknownFlagError, ["mayo", "-a"], "-a", 1)
        self.assertFault(UnknownFlagError, ["tuna", "-b"], "-b", 1)

    # ── Flag values ───────────────────────────────────────────────────────

    def testShortFlagOnly(self):
        self.cli.parse(["-a"])
        self.assertEqual(len(self.root.calls), 1)
        self.assertEqual(self.root.flags, {"a": True})
        self.assertEqual(self.root.arguments, ())

    def testLongFlagShortFlag(self):
        self.cli.parse(["--bob", "-a"])
        self.assertEqual(self.root.flags, {"a": True, "b": True})

    def testShortArgumentShortFlag(self):
        self.cli.parse(["-c", "hello", "-a"])
        self.assertEqual(self.root.flags, {"a": True, "c": "hello"})

    def testEverything(self):
        self.cli.parse(["-c", "hello", "--bob", "-a", "--dog", "world"])
        self.assertEqual(self.root.flags, {"a": True, "b": True, "c": "hello", "d": "world"})

    def testFlagArgumentIsConsumedRaw(self):
        self.cli.parse(["-c", "-a"])
        self.assertEqual(self.root.flags, {"c": "-a"})

    def testEmptyArgs(self):
        self.cli.parse([])
        self.assertEqual(len(self.root.calls), 1)
        self.assertEqual(self.root.flags, {})

    def testIntegerFlagRoundTrip(self):
        self.cli.parse(["-n", "42", "mayo"])
        flags, _ = self.mayo.calls[0]
        self.assertEqual(flags.get_value("n", ArgumentType.INTEGER), 42)

    def testIntegerFlagRejectsText(self):
        fault = self.assertFault(BadArgumentTypeError, ["-n", "abc", "mayo"], "abc", 1)
        self.assertIs(fault.code, FaultCode.BAD_ARGUMENT_TYPE)
        self.assertIsInstance(fault, CommandException)

    # ── Lists and commands ────────────────────────────────────────────────

    def testRootFlagReachesCommand(self):
        self.assertEqual(self.cli.parse(["mayo"]), "mayo-result")
        flags, arguments = self.mayo.calls[0]
        self.assertEqual(len(flags), 0)
        self.assertEqual(arguments, ())

        self.cli.parse(["-a", "mayo"])
        flags, arguments = self.mayo.calls[1]
        self.assertIs(flags.get_value("a", ArgumentType.BOOLEAN), True)
        self.assertEqual(len(self.mayo.calls), 2)

    def testNestedCommandFlag(self):
        self.cli.parse(["tuna", "marlin", "-z"])
        self.assertEqual(len(self.marlin.calls), 1)
        self.assertEqual(self.marlin.flags, {"z": True})

        self.marlin.calls.clear()
        self.assertFault(UnknownCommandError, ["tuna", "hello", "marlin"], "hello", 1)

    def testCommandArity(self):
        fault = self.assertFault(ArgumentCountMismatchError, ["create", "x"], None, 2)
        self.assertIs(fault.code, FaultCode.ARGUMENT_COUNT_MISMATCH)
        self.cli.parse(["create", "x", "y"])
        self.assertEqual(self.create.arguments, ("x", "y"))

    def testTooManyArguments(self):
        self.assertFault(ArgumentCountMismatchError, ["create", "x", "y", "z"], "z", 3)

    def testChildNamesAreArgumentsOfCommands(self):
        self.cli.parse(["create", "tuna", "mayo"])
        self.assertEqual(self.create.arguments, ("tuna", "mayo"))

    def testIntegerArguments(self):
        self.cli.parse(["sum", "1", "+2"])
        self.assertEqual(self.sum.arguments, (1, 2))
        self.sum.calls.clear()
        self.assertFault(BadArgumentTypeError, ["sum", "1", "x"], "x", 2)

    def testIntegerArgumentOverflow(self):
        fault = self.assertFault(BadArgumentTypeError, ["sum", "9223372036854775808", "1"], "9223372036854775808", 1)
        self.assertIs(fault.code, FaultCode.BAD_ARGUMENT_TYPE)
        self.cli.parse(["sum", "9223372036854775807", "1"])
        self.assertEqual(self.sum.arguments, (9223372036854775807, 1))

    def testBooleanArguments(self):
        toggle = Recorder()
        self.recorders += (toggle,)
        self.cli.add_command("toggle", "switch something", toggle).add_argument("on", ArgumentType.BOOLEAN)
        fault = self.assertFault(BadArgumentTypeError, ["toggle", "True"], "True", 1)
        self.assertIs(fault.code, FaultCode.BAD_ARGUMENT_TYPE)
        self.cli.parse(["toggle", "false"])
        self.assertEqual(toggle.arguments, (False,))

    def testBadCommand(self):
        fault = self.assertFault(UnknownCommandError, ["-a", "this-command-does-not-exist"], "this-command-does-not-exist", 1)
        self.assertIs(fault.code, FaultCode.UNKNOWN_COMMAND)

    def testBadNestedCommand(self):
        self.assertFault(UnknownCommandError, ["-a", "tuna", "this-command-does-not-exist"], "this-command-does-not-exist", 2)

    def testTunaListWithArguments(self):
        self.assertFault(UnknownCommandError, ["tuna", "hello", "world"], "hello", 1)

    def testTunaListWithoutPreFlags(self):
        self.cli.parse(["tuna"])
        self.assertEqual(len(self.tuna.calls), 1)
        self.assertEqual(self.tuna.flags, {})
        self.assertEqual(self.root.calls, [])

    def testTunaListWithPreFlags(self):
        self.cli.parse(["-a", "-c", "hello", "tuna"])
        self.assertEqual(self.tuna.flags, {"a": True, "c": "hello"})

    def testMarlinCommandWithPreFlags(self):
        self.cli.parse(["tuna", "-a", "andrew", "-f", "marlin", "-z"])
        self.assertEqual(self.marlin.flags, {"a": "andrew", "f": True, "z": True})

    def testNestedFlagOverwritesAncestorValue(self):
        self.cli.parse(["-a", "tuna", "--andrew", "fish", "marlin"])
        flags, _ = self.marlin.calls[0]
        self.assertEqual(flags.get_value("a", ArgumentType.STRING), "fish")

    def testActionExceptionsPropagate(self):
        def explode(flags, arguments):
            raise RuntimeError("boom")

        self.cli.add_command("explode", action=explode)
        with self.assertRaises(RuntimeError):
            self.cli.parse(["explode"])

    def testCommandWithoutAction(self):
        self.cli.add_command("noop")
        self.assertIsNone(self.cli.parse(["noop"]))

    def testSequentialParsesDoNotShareState(self):
        self.cli.parse(["-a", "mayo"])
        self.cli.parse(["mayo"])
        first, _ = self.mayo.calls[0]
        second, _ = self.mayo.calls[1]
        self.assertIn("a", first)
        self.assertNotIn("a", second)

    def testTokensMustBeStrings(self):
        with self.assertRaises(TypeError):
            self.cli.parse(["mayo", 1])

    # ── Entry points ──────────────────────────────────────────────────────

    def testInvokeSplitsStrings(self):
        invoke(self.cli, "tuna marlin -z")
        self.assertEqual(self.marlin.flags, {"z": True})

    def testInvokeAcceptsIterables(self):
        invoke(self.cli, iter(["create", "a b", "c"]))
        self.assertEqual(self.create.arguments, ("a b", "c"))

    def testInvokeRejectsBadPrompts(self):
        with self.assertRaises(TypeError):
            invoke(self.cli, 42)
        with self.assertRaises(TypeError):
            invoke(self.cli, ["mayo", None])
        with self.assertRaises(TypeError):
            invoke(object(), "mayo")

    def testModuleLevelParse(self):
        root = ListNode("root")
        recorder = Recorder()
        root.add_command("go", action=recorder).add_argument("n", ArgumentType.INTEGER)
        parse(root, ["go", "7"])
        self.assertEqual(recorder.arguments, (7,))
        with self.assertRaises(ArgumentCountMismatchError):
            parse(root, ["go"])


class TestShellMode(TestCase):
    """Behavioral tests for faults surfaced in shell mode."""

    def setUp(self):
        self.cli = Cli("shell-test", shell=True)
        self.cli.add_command("mayo")

    def testFaultIsRenderedAndExits(self):
        stream = io.StringIO()
        with redirect_stderr(stream), self.assertRaises(SystemExit) as context:
            self.cli.parse(["-z", "mayo"])
        self.assertEqual(context.exception.code, 1)
        output = stream.getvalue()
        self.assertIn("shell-test", output)
        self.assertIn("Unknown Flag", output)
        self.assertIn("'-z'", output)

    def testFancyFaultIsRenderedInAPanel(self):
        cli = Cli("fancy-test", shell=True, fancy=True)
        stream = io.StringIO()
        with redirect_stderr(stream), self.assertRaises(SystemExit):
            cli.parse(["nope"])
        self.assertIn("unknown command 'nope'", stream.getvalue())
        self.assertIn("╭", stream.getvalue())

    def testTriggerOptionsOverrideRuntimeOptions(self):
        fault = UnknownFlagError("boom", code=FaultCode.UNKNOWN_FLAG, token="-z", index=0)
        with self.assertRaises(UnknownFlagError) as context:
            self.cli.trigger(fault, shell=False, fancy=True)
        self.assertIs(context.exception.options["tool"], self.cli)
        self.assertIs(context.exception.options["fancy"], True)
        self.assertIs(context.exception.options["colorful"], False)

    def testOptionsMustBeBooleans(self):
        with self.assertRaises(TypeError):
            Cli("x", shell="yes")


if __name__ == "__main__":
    unittest.main()
