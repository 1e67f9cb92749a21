"""
Arbor visitors: the traversal contract and the documentation backends.

Traversal (performed by the nodes, see ListNode.visit / CommandNode.visit)
- list: visit_list, its flags (by short name), its commands (by name), its
  lists (by name, recursively), then leave_list
- command: visit_command, then its flags

A backend only implements the callbacks it needs and keeps its own stack of
open lists. Flags reported after visit_command belong to that command until
the next command, list or leave callback.

Backends
- TextDocumentation: plain aligned text, one block per list.
- MarkdownDocumentation: GitHub flavoured markdown.
- RichDocumentation: rich renderable with one table per list.

Every backend resets itself in generate(), so the same instance (and the same
tree) always produces the same document.
"""
import sys
from collections import defaultdict
from enum import Enum

from rich.box import ROUNDED
from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from .utils import *


class Visitor:
    """
    Base visitor; every callback is a no-op.
    """

    def visit_flag(self, flag, /):
        pass

    def visit_list(self, node, /):
        pass

    def leave_list(self, node, /):
        pass

    def visit_command(self, node, /):
        pass


class _ListState:
    # Per open list: collected flags and (command, command flags) pairs, plus
    # the output slot reserved when the list was entered.
    __slots__ = ("node", "flags", "commands", "slot")

    def __init__(self, node, slot):
        self.node = node
        self.flags = []
        self.commands = []
        self.slot = slot


class _CollectingVisitor(Visitor):
    """
    Shared bookkeeping for backends that render one block per list.

    Blocks are reserved in visit order and filled on leave_list, so a parent's
    block always precedes the blocks of its nested lists.
    """

    def _reset(self):
        self._stack = []
        self._blocks = []
        self._command = None

    def visit_list(self, node, /):
        self._command = None
        self._stack.append(_ListState(node, len(self._blocks)))
        self._blocks.append(None)

    def visit_flag(self, flag, /):
        if self._command is not None:
            self._command[1].append(flag)
        else:
            self._stack[-1].flags.append(flag)

    def visit_command(self, node, /):
        self._command = (node, [])
        self._stack[-1].commands.append(self._command)

    def leave_list(self, node, /):
        self._command = None
        names = [state.node.name for state in self._stack]
        state = self._stack.pop()
        self._blocks[state.slot] = self._render(state, names, nested=bool(self._stack))

    def _render(self, state, names, *, nested):
        raise NotImplementedError

    def _collect(self, tree):
        self._reset()
        tree.visit(self)
        return self._blocks


def _flag_name(flag):
    name = flag.display
    if flag.takes_argument:
        name += " (%s:%s)" % (flag.argument.name, flag.argument.type.name)
    return name


class TextDocumentation(_CollectingVisitor):
    """
    Plain text documentation:

        cli ... : the root
          Flags
            -d|--debug        : print debug output
            -f (file:STRING)  : file to read
          Commands
            create : create something
            delete : delete something

        cli tuna ... : fish
          Commands
            marlin
    """

    FLAGS = "  Flags\n"
    COMMANDS = "  Commands\n"

    def generate(self, tree, /):
        return "".join(self._collect(tree))

    def _render(self, state, names, *, nested):
        lines = ["\n"] if nested else []

        header = " ".join(names) + " ..."
        if state.node.descr:
            header += " : %s" % state.node.descr
        lines.append(header + "\n")

        if state.flags:
            lines.append(self.FLAGS)
            width = max(len(_flag_name(flag)) for flag in state.flags)
            for flag in state.flags:
                lines.append(self._line("    ", _flag_name(flag), width, flag.descr))

        if state.commands:
            lines.append(self.COMMANDS)
            width = max(len(command.name) for command, _ in state.commands)
            for command, flags in state.commands:
                lines.append(self._line("    ", command.name, width, command.descr))
                for flag in flags:
                    lines.append(self._line("      ", _flag_name(flag), 0, flag.descr))

        return "".join(lines)

    @staticmethod
    def _line(indent, name, width, descr):
        if descr:
            return "%s%-*s : %s\n" % (indent, width, name, descr)
        return "%s%s\n" % (indent, name)


class MarkdownDocumentation(Visitor):
    """
    GitHub flavoured markdown documentation.

    Lists become "# route *name*: descr" headings followed by "## Flags" and
    "## Commands" bullet lists; command flags are nested under their command.
    """

    NO_DESCRIPTION = "<no description>"

    def generate(self, tree, /):
        self._lines = [
            "This documentation is generated from %s.%s" % (type(self).__module__, type(self).__qualname__),
            "",
        ]
        self._section = None
        self._prefix = []
        tree.visit(self)
        return "\n".join(self._lines) + "\n"

    def _describe(self, descr):
        return descr if descr else self.NO_DESCRIPTION

    def _heading(self, node, bullet):
        return " ".join([bullet, *self._prefix, "*%s*:" % node.name, str(self._describe(node.descr))])

    def visit_flag(self, flag, /):
        if self._section == "command":
            indent = "  "
        else:
            indent = ""
            if self._section != "flags":
                self._lines.append("## Flags")
                self._section = "flags"

        line = "%s- %s" % (indent, flag.display)
        if flag.takes_argument:
            line += " (%s %s" % (flag.argument.type.name, flag.argument.name)
            if flag.argument.descr:
                line += ": %s" % flag.argument.descr
            line += ")"
        self._lines.append("%s: %s" % (line, self._describe(flag.descr)))

    def visit_list(self, node, /):
        self._section = "list"
        self._lines.append(self._heading(node, "#"))
        self._prefix.append(node.name)

    def leave_list(self, node, /):
        self._section = "list"
        self._prefix.pop()

    def visit_command(self, node, /):
        if self._section != "command":
            self._lines.append("## Commands")
        self._section = "command"
        self._lines.append(self._heading(node, "-"))


class RichDocumentation(_CollectingVisitor):
    """
    Rich documentation: a heading and a two-column table per list.

    Palette keys
    - list-route, list-description
    - table, table-title
    - flag-name, metavar, command-name, description

    Define a mapping named __styles__ in __main__ to override any palette entry.
    Styling applies only when colorful is True; fancy wraps the document in a panel.
    """

    def __init__(self, *, colorful=False, fancy=False):
        self.colorful = colorful
        self.fancy = fancy
        self._styles = defaultdict(str, {
            "list-route": "bold #FF4D94",
            "list-description": "italic #A3A3A3",
            "table": "#4B5563",
            "table-title": "bold #FFFFFF",
            "flag-name": "bold #22C55E",
            "metavar": "bold #FFD600",
            "command-name": "bold #36C5F0",
            "description": "#9CA3AF",
        })

    def _style(self, key):
        return self._styles[key] if self.colorful else ""

    def _text(self, fragment, key):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment if self.colorful else Text(fragment.plain)
        return Text(str(fragment), self._style(key))

    def _flag(self, flag, indent=""):
        name = Text.assemble(indent, self._text(flag.display, "flag-name"))
        if flag.takes_argument:
            name.append(" ").append_text(self._text("<%s:%s>" % (flag.argument.name, flag.argument.type.name.lower()), "metavar"))
        return name

    def generate(self, tree, /):
        self._styles.update(getattr(__import__("__main__"), "__styles__", {}))
        renderable = Group(*(part for block in self._collect(tree) for part in block))
        if self.fancy:
            renderable = Panel(
                renderable,
                title=self._text("[ %s HELP ]" % getattr(tree, "name", "").upper(), "list-route"),
                title_align="left",
            )
        return renderable

    def _render(self, state, names, *, nested):
        header = Text("\n" if nested else "")
        header.append_text(self._text(" ".join(names), "list-route"))
        if state.node.descr:
            header.append(" : ").append_text(self._text(state.node.descr, "list-description"))
        parts = [header]

        if not state.flags and not state.commands:
            return parts

        table = Table(
            "name", "help",
            box=ROUNDED,
            style=self._style("table"),
            header_style=self._style("table-title"),
        )
        for flag in state.flags:
            table.add_row(self._flag(flag), self._text(flag.descr, "description"))
        for command, flags in state.commands:
            name = self._text(command.name, "command-name")
            for argument in command.arguments:
                name.append(" ").append_text(self._text("<%s>" % argument.name, "metavar"))
            table.add_row(name, self._text(command.descr, "description"))
            for flag in flags:
                table.add_row(self._flag(flag, "  "), self._text(flag.descr, "description"))
        parts.append(table)
        return parts


class DocumentationType(Enum):
    """
    Supported documentation formats.
    """
    TEXT = "text"
    MARKDOWN = "markdown"
    RICH = "rich"

    @classmethod
    def of(cls, name, /):
        if isinstance(name, cls):
            return name
        if not isinstance(name, str):
            raise TypeError("of() argument must be a string")
        try:
            return cls(name.strip().lower())
        except ValueError:
            raise ValueError("unknown documentation type %r (expected one of: %s)" % (
                name, ", ".join(member.value for member in cls)
            )) from None


def generate(tree, /, kind=DocumentationType.TEXT, stream=Unset, *, colorful=Unset, fancy=Unset):
    """
    Write the documentation of tree (a Cli or a list node) to stream.

    Parameters
    - kind: DocumentationType or its name ("text", "markdown", "rich")
    - stream: text stream, defaults to sys.stdout
    - colorful / fancy: rich rendering options, default to the tree's own
    """
    kind = DocumentationType.of(kind)
    stream = coalesce(stream, sys.stdout)

    match kind:
        case DocumentationType.TEXT:
            stream.write(TextDocumentation().generate(tree))
        case DocumentationType.MARKDOWN:
            stream.write(MarkdownDocumentation().generate(tree))
        case DocumentationType.RICH:
            documentation = RichDocumentation(
                colorful=coalesce(colorful, getattr(tree, "colorful", False)),
                fancy=coalesce(fancy, getattr(tree, "fancy", False)),
            )
            Console(file=stream, highlight=False).print(documentation.generate(tree))


__all__ = (
    "Visitor",
    "TextDocumentation",
    "MarkdownDocumentation",
    "RichDocumentation",
    "DocumentationType",
    "generate",
)
