"""
Arbor command-line façade.

Overview
- Cli owns the root list of a tree together with the runtime options that
  decide how faults surface:
  • shell: render faults on stderr and exit with status 1 instead of raising
  • colorful: apply the style palette when rendering
  • fancy: wrap rendered output in a panel
- Cli.parse(tokens) runs the parser; Cli.__invoke__(prompt) accepts the same
  prompt forms as the module-level invoke() helper.

Quick example:
    cli = Cli("cli", "fish things")
    cli.add_short_flag("a", "all")
    cli.add_command("mayo", action=lambda flags, arguments: print(flags.get_value("a", ArgumentType.BOOLEAN)))
    invoke(cli, "-a mayo")          # prints True
"""
import copy
import logging
import shlex
import sys
from collections.abc import Iterable

from .faults import trigger
from .nodes import ListNode
from .parser import Parser
from .utils import *

logger = logging.getLogger(__name__)


class Cli:
    """
    A command tree plus its runtime options.

    Builder calls made on the Cli are forwarded to its root list and return
    what the root returns (the new child for add_list/add_command, the root
    itself for flags).
    """

    def __init__(self, name, /, descr=Unset, *, shell=False, colorful=False, fancy=False):
        for option, value in (("shell", shell), ("colorful", colorful), ("fancy", fancy)):
            if not isinstance(value, bool):
                raise TypeError(f"cli {option!r} must be a boolean")
        self._root = ListNode(name, descr)
        self._shell = shell
        self._colorful = colorful
        self._fancy = fancy
        self._parser = Parser(self._root, trigger=self.trigger)

    root = mirror("root")
    shell = mirror("shell")
    colorful = mirror("colorful")
    fancy = mirror("fancy")

    @property
    def name(self):
        return self._root.name

    @property
    def descr(self):
        return self._root.descr

    def __repr__(self):
        return "cli(name=%r, shell=%r, colorful=%r, fancy=%r)" % (self.name, self.shell, self.colorful, self.fancy)

    # ── Builder (forwarded to the root list) ──────────────────────────────

    def add_list(self, name, /, descr=Unset, action=Unset):
        return self._root.add_list(name, descr, action)

    def add_command(self, name, /, descr=Unset, action=Unset):
        return self._root.add_command(name, descr, action)

    def add_flag(self, flag, /):
        return self._root.add_flag(flag)

    def add_short_flag(self, short, /, descr=Unset):
        return self._root.add_short_flag(short, descr)

    def add_long_flag(self, short, long, /, descr=Unset):
        return self._root.add_long_flag(short, long, descr)

    def add_short_flag_with_parameter(self, short, /, *args, **kwargs):
        return self._root.add_short_flag_with_parameter(short, *args, **kwargs)

    def add_long_flag_with_parameter(self, short, long, /, *args, **kwargs):
        return self._root.add_long_flag_with_parameter(short, long, *args, **kwargs)

    # ── Operations ────────────────────────────────────────────────────────

    def parse(self, tokens, /):
        """
        Resolve tokens against the tree and run the selected action once.

        Returns whatever the action returns. Faults are raised, or rendered
        followed by sys.exit(1) in shell mode.
        """
        return self._parser.run(tokens)

    def usage(self):
        return self._root.usage()

    def visit(self, visitor, /):
        self._root.visit(visitor)

    def trigger(self, fault, /, **options):
        """
        Surface a fault with this cli's runtime options merged in.
        """
        if (
                not hasattr(fault, "__trigger__") or
                not callable(fault.__trigger__) or
                not hasattr(fault, "__replace__") or
                not callable(fault.__replace__)
        ):
            raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
        fault = copy.replace(fault, **{
            "tool": self,
            "shell": self.shell,
            "fancy": self.fancy,
            "colorful": self.colorful,
        } | options)
        logger.debug("fault %s: %s", type(fault).__name__, fault)
        trigger(fault)

    def __invoke__(self, prompt=Unset):
        """
        Parse a prompt.

        Parameters
        - prompt:
          • Unset: read tokens from sys.argv[1:].
          • str: shell-like string; split with shlex.split.
          • Iterable[str]: pre-tokenized sequence, used as-is.

        Raises
        - TypeError: when prompt is not Unset/str/Iterable[str], or when an
          iterable contains a non-string element.
        """
        if prompt is Unset:
            tokens = sys.argv[1:]
        elif isinstance(prompt, str):
            tokens = shlex.split(prompt)
        elif isinstance(prompt, Iterable):
            tokens = list(prompt)
            if not all(isinstance(token, str) for token in tokens):
                raise TypeError("__invoke__() argument must be a string or an iterable of strings")
        else:
            raise TypeError("__invoke__() argument must be a string or an iterable of strings")

        return self.parse(tokens)


def invoke(object, prompt=Unset, /):
    """
    Convenience runner: call object.__invoke__(prompt).

    Raises
    - TypeError: when object does not implement __invoke__.
    """
    if not callable(getattr(object, "__invoke__", None)):
        raise TypeError("invoke() argument must implement __invoke__")
    return object.__invoke__(prompt)


__all__ = (
    "Cli",
    "invoke",
)
