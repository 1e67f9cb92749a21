"""
Arbor faults (parse errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every parse failure.
  Codes are grouped by domain (routing, flags, arguments) so logs and searches
  stay predictable.
- CommandException: base type carrying a message plus read-only options; it
  knows how to render itself with rich and how to surface itself (raise or
  print-and-exit) depending on the shell option.
- One concrete class per failure kind: BadFlagSyntaxError, UnknownFlagError,
  MissingFlagArgumentError, UnknownCommandError, ArgumentCountMismatchError,
  BadArgumentTypeError.
- ConversionError / ValueTypeError: plain Python errors raised by the pure
  conversion layer and by ArgumentValues.get_value.
- trigger(): central entry point to surface a fault.
- getdoc(): optional description lookup for a code from the host application.

Every parse fault is fatal for the whole parse call: there is no recovery and
no partial execution. Each one carries the offending token and its 0-based
index into the token array so callers can point at the culprit.

Host hooks (all optional, looked up on __main__)
- __codes__: mapping FaultCode -> label used instead of the numeric code.
- __docs__: mapping FaultCode -> short documentation string.
- __styles__: palette overrides for the rich renderer.
- __prog__: program label used in the header instead of the root list name.
"""
import copy
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the parser (stable identifiers).

    grouping
    - routing (111xx)
      • UNKNOWN_COMMAND
    - flags (112xx)
      • BAD_FLAG_SYNTAX, UNKNOWN_FLAG, MISSING_FLAG_ARGUMENT
    - arguments (113xx)
      • ARGUMENT_COUNT_MISMATCH, BAD_ARGUMENT_TYPE
    """
    # --- routing errors ---
    UNKNOWN_COMMAND         = 11101

    # --- flag errors ---
    BAD_FLAG_SYNTAX         = 11201
    UNKNOWN_FLAG            = 11202
    MISSING_FLAG_ARGUMENT   = 11203

    # --- argument errors ---
    ARGUMENT_COUNT_MISMATCH = 11301
    BAD_ARGUMENT_TYPE       = 11302

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class ConversionError(ValueError):
    """
    A raw token could not be converted into its declared argument type.

    Raised by ArgumentType.convert(); the parser wraps it into a
    BadArgumentTypeError that knows where the token came from.
    """

    def __init__(self, message, /, *, raw, type):
        super().__init__(message)
        self.raw = raw
        self.type = type


class ValueTypeError(TypeError):
    """
    A resolved value was requested with a type different from the stored one.
    """


class CommandException(Exception):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*([message] if message else []))
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    @property
    def token(self):
        return self.options.get("token")

    @property
    def index(self):
        return self.options.get("index")

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
            "docs": "#737373",  # dim footer gray
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", False)
        fancy = self.options.get("fancy", False)

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        tool = self.options.get("tool")
        prog = text(getattr(main, "__prog__", getattr(tool, "name", "arbor")), styler("prog-name"))

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(self.code.normalize() if self.code else "", styler("code")),
            " | ",
            text(str(self.options.get("title", "error")).title(), styler("error-title")),
            " ]"
        )
        body = [text(self.message, styler("error-message"))]
        if hint := self.options.get("hint"):
            body.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))
        if docs := self.options.get("docs"):
            body.append(text(docs, styler("docs")))

        if fancy:
            return Panel(Group(*body), title=header, title_align="left")

        return Group(header, *body)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class BadFlagSyntaxError(CommandException): ...
class UnknownFlagError(CommandException): ...
class MissingFlagArgumentError(CommandException): ...
class UnknownCommandError(CommandException): ...
class ArgumentCountMismatchError(CommandException): ...
class BadArgumentTypeError(CommandException): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see CommandException).
    - options are merged into the fault via copy.replace(fault, **options) before triggering.
    - in shell mode the fault is rendered on stderr and the process exits with status 1;
      otherwise the fault is raised.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "ConversionError",
    "ValueTypeError",
    "CommandException",
    "BadFlagSyntaxError",
    "UnknownFlagError",
    "MissingFlagArgumentError",
    "UnknownCommandError",
    "ArgumentCountMismatchError",
    "BadArgumentTypeError",
    "trigger",
    "getdoc",
)
