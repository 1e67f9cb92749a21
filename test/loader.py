"""
Loader behavioral tests (XML tree descriptions).

Scope
- Validate that a document builds the expected tree and that loaded actions run.
- Validate action references and action factories.
- Validate LoaderError for malformed or invalid documents.

Conventions
- Test method names follow CamelCase per project convention.
- Action references point at this module through __name__.
"""

from __future__ import annotations

import io
import os
import tempfile
import unittest
from unittest import TestCase

from arbor import ArgumentType, CommandNode, ListNode, LoaderError, load

CALLS = []


def record(flags, arguments):
    CALLS.append((dict(flags), arguments))


def create_action(name):
    def action(flags, arguments):
        CALLS.append((name, arguments))
    return action


def document(body, *, name="app", description="an application"):
    return io.StringIO('<cli name="%s" description="%s">%s</cli>' % (name, description, body))


class TestLoader(TestCase):
    """Behavioral tests for load()."""

    def setUp(self):
        CALLS.clear()

    def testFullDocument(self):
        cli = load(document(f"""
            <flag shortFlag="d" longFlag="debug" description="debug output"/>
            <flag shortFlag="n" description="a number">
                <argument name="count" type="NUMBER" description="how many"/>
            </flag>
            <list name="tuna" description="fish">
                <flag shortFlag="f"/>
                <command name="marlin" description="a fish">
                    <flag shortFlag="z"/>
                    <argument name="x" type="INTEGER"/>
                    <argument name="label"/>
                    <action class="{__name__}:record"/>
                </command>
            </list>
            <command name="mayo">
                <actionCreator class="{__name__}:create_action"/>
            </command>
        """))

        self.assertEqual(cli.name, "app")
        self.assertEqual(cli.descr, "an application")
        self.assertEqual(cli.root.flags["d"].long, "debug")
        self.assertIs(cli.root.flags["n"].argument.type, ArgumentType.INTEGER)
        self.assertEqual(cli.root.flags["n"].argument.descr, "how many")

        tuna = cli.root.child("tuna")
        self.assertIsInstance(tuna, ListNode)
        marlin = tuna.child("marlin")
        self.assertIsInstance(marlin, CommandNode)
        self.assertEqual([argument.name for argument in marlin.arguments], ["x", "label"])

        cli.parse(["-n", "3", "tuna", "-f", "marlin", "-z", "12", "tag"])
        self.assertEqual(CALLS, [({"n": 3, "f": True, "z": True}, (12, "tag"))])

        cli.parse(["mayo"])
        self.assertEqual(CALLS[-1], ("mayo", ()))

    def testLoadFromPath(self):
        with tempfile.TemporaryDirectory() as directory:
            path = os.path.join(directory, "cli.xml")
            with open(path, "w", encoding="utf-8") as file:
                file.write('<cli name="fromfile"><command name="go"/></cli>')
            cli = load(path)
        self.assertEqual(cli.name, "fromfile")
        self.assertEqual(cli.usage(), "fromfile  go\n")

    def testOptionsAreForwarded(self):
        cli = load(document(""), shell=True, fancy=True)
        self.assertTrue(cli.shell)
        self.assertTrue(cli.fancy)

    def testMalformedXml(self):
        with self.assertRaises(LoaderError):
            load(io.StringIO("<cli name='x'>"))

    def testRootMustBeCli(self):
        with self.assertRaises(LoaderError):
            load(io.StringIO("<list name='x'/>"))

    def testMissingName(self):
        with self.assertRaises(LoaderError):
            load(document("<command/>"))
        with self.assertRaises(LoaderError):
            load(io.StringIO("<cli/>"))

    def testInvalidName(self):
        with self.assertRaises(LoaderError):
            load(document('<list name="-bad"/>'))

    def testUnknownElement(self):
        with self.assertRaises(LoaderError):
            load(document('<group name="x"/>'))
        with self.assertRaises(LoaderError):
            load(document('<command name="x"><list name="y"/></command>'))

    def testUnknownType(self):
        with self.assertRaises(LoaderError):
            load(document('<command name="x"><argument name="y" type="FLOAT"/></command>'))

    def testFlagWithTwoArguments(self):
        with self.assertRaises(LoaderError):
            load(document('<flag shortFlag="a"><argument name="x"/><argument name="y"/></flag>'))

    def testUnresolvableAction(self):
        with self.assertRaises(LoaderError):
            load(document('<command name="x"><action class="no.such.module:action"/></command>'))
        with self.assertRaises(LoaderError):
            load(document(f'<command name="x"><action class="{__name__}:missing"/></command>'))
        with self.assertRaises(LoaderError):
            load(document(f'<command name="x"><action class="{__name__}:CALLS"/></command>'))

    def testActionCreatorMustReturnCallable(self):
        with self.assertRaises(LoaderError):
            load(document('<command name="x"><actionCreator class="builtins:str"/></command>'))

    def testDottedReference(self):
        cli = load(document(f'<command name="x"><action class="{__name__}.record"/></command>'))
        self.assertIs(cli.root.child("x").action, record)

    def testSourceType(self):
        with self.assertRaises(TypeError):
            load(42)


if __name__ == "__main__":
    unittest.main()
