"""
Arbor node model: lists, commands and the tree builder.

What this module provides
- ListNode: a named group of child lists/commands plus a scope of flags.
  A list cannot take positionals; when parsing stops on a list, its action
  runs (by default it prints the list's usage).
- CommandNode: a terminal node with its own flags, an ordered sequence of
  typed positional Arguments and an action.
- Builder API shared by both variants (add_flag, add_short_flag, ...) and
  list-only growth (add_list, add_command).
- usage(): one line per child for a single node.
- visit(visitor): deterministic pre-order traversal for documentation.

Tree rules
- Names are unique among siblings; adding a child under an existing name
  replaces the previous child (last write wins).
- Flags are unique by short name within a node, and long names are unique too;
  adding a flag that collides with either replaces the previous flag.
- The tree is only grown during construction. Parsing never mutates it, so a
  tree can be reused for any number of sequential parse calls.

Actions
- An action is any callable accepting (flags, arguments): flags is an
  ArgumentValues keyed by short flag name, arguments is a tuple of converted
  positionals in declaration order.
"""
import functools
import logging
import operator
import re

from rich.console import Console
from rich.text import Text

from .arguments import Argument, ArgumentType, Flag
from .utils import *

logger = logging.getLogger(__name__)


class NodeType(type):
    """
    Metaclass for tree nodes.

    Responsibilities
    - Derive __typename__ ("list-node", "command-node") for messages.
    - Expose __introspectable__ names as read-only mirrored properties.
    - Provide a compact __repr__ / __rich_repr__ that never recurses into children.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        introspectable = namespace.get("__introspectable__", ())
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in introspectable
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            yield "name", self.name
            yield "descr", self.descr
            yield "flags", tuple(self.flags)
            if isinstance(self, ListNode):
                yield "children", tuple(self.children)
            else:
                yield "arguments", tuple(argument.name for argument in self.arguments)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_node(cls, name, descr, /):
    """
    Internal: validate a node name and optional description.

    Names must be non-empty, contain no whitespace and not start with the flag
    prefix, otherwise the parser could never route to them.
    """
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
    elif not re.fullmatch(r"[^-\s]\S*", name):
        raise ValueError(f"{cls.__typename__} 'name' {name!r} is not a valid name")

    if not isinstance(descr, str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")

    return name, descr


def _sanitize_action(cls, action, /):
    if not callable(action) and action is not Unset:
        raise TypeError(f"{cls.__typename__} 'action' must be callable")
    return action


class Node(metaclass=NodeType):
    """
    Common part of both node variants: identity, flags and parent link.

    Not meant to be instantiated directly; use ListNode for the root and the
    builder methods for everything below it.
    """

    __introspectable__ = (
        "name",
        "descr",
        "flags",
        "parent",
    )

    def __init__(self, name, /, descr=Unset, action=Unset, *, parent=Unset):
        if type(self) is Node:
            raise TypeError("node is abstract; create a list-node or a command-node")
        self._name, self._descr = _sanitize_node(type(self), name, descr)
        self._action = _sanitize_action(type(self), action)
        self._flags = {}
        self._parent = parent

    @property
    def root(self):
        """
        Topmost node of the tree this node belongs to.
        """
        node = self
        while node.parent:
            node = node.parent
        return node

    @property
    def path(self):
        """
        Ancestry from the root to this node, as a tuple.
        """
        path = [node := self]
        while node.parent:
            path.append(node := node.parent)
        return tuple(reversed(path))

    @property
    def route(self):
        """
        Space-joined names along path (e.g. "cli tuna marlin").
        """
        return " ".join(node.name for node in self.path)

    @property
    def action(self):
        return self._action

    def set_action(self, action, /):
        """
        Bind the callable run when parsing stops on this node.

        Returns the callable, so this also works as a decorator:

            @tree.add_command("mayo").set_action
            def mayo(flags, arguments): ...
        """
        if not callable(action):
            raise TypeError(f"{type(self).__typename__} 'action' must be callable")
        self._action = action
        return action

    # ── Flags ─────────────────────────────────────────────────────────────

    def add_flag(self, flag, /):
        """
        Declare a flag in this node's scope and return the node.

        A previous flag with the same short name, or with the same long name,
        is replaced and the new flag moves to the end of the declaration order.
        """
        if not isinstance(flag, Flag):
            raise TypeError(f"{type(self).__typename__} add_flag() argument must be a flag")

        for short, other in tuple(self._flags.items()):
            if short == flag.short or (flag.long and other.long == flag.long):
                logger.debug("%s %r: flag %s replaced by %s", type(self).__typename__, self.name, other.display, flag.display)
                del self._flags[short]
        self._flags[flag.short] = flag
        return self

    def add_short_flag(self, short, /, descr=Unset):
        return self.add_flag(Flag(short, Unset, descr))

    def add_long_flag(self, short, long, /, descr=Unset):
        return self.add_flag(Flag(short, long, descr))

    def add_short_flag_with_parameter(self, short, /, descr, name, type=ArgumentType.STRING, argument_descr=Unset):
        return self.add_flag(Flag(short, Unset, descr, Argument(name, type, argument_descr)))

    def add_long_flag_with_parameter(self, short, long, /, descr, name, type=ArgumentType.STRING, argument_descr=Unset):
        return self.add_flag(Flag(short, long, descr, Argument(name, type, argument_descr)))

    def find_flag(self, token_name, /, *, long=False):
        """
        Resolve a flag of this node's own scope by short name or, with long=True, by long name.

        Returns None when the name is not declared here; ancestors are never consulted.
        """
        if not long:
            return self._flags.get(token_name)
        for flag in self._flags.values():
            if flag.long and flag.long == token_name:
                return flag
        return None

    # ── Usage ─────────────────────────────────────────────────────────────

    def _flag_usage(self):
        def usage(flag):
            text = flag.display
            if flag.takes_argument:
                text += " <%s>" % flag.argument.name
            if flag.descr:
                text += " %s" % flag.descr
            return "[%s]" % text

        return " ".join(map(usage, self._flags.values()))

    def usage(self):
        """
        Render the usage lines of this node (not recursive).

        One line per child, children sorted by name:

            <name> [-a|--all <x> descr] ... <child> : <child descr>

        The " : <child descr>" tail is omitted when the child has no
        description. Nodes without children produce an empty string.
        """
        flags = self._flag_usage()
        lines = []
        for child in self._usage_children():
            line = "%s %s %s" % (self.name, flags, child.name)
            if child.descr:
                line += " : %s" % child.descr
            lines.append(line + "\n")
        return "".join(lines)

    def _usage_children(self):
        return ()

    def _visit_flags(self, visitor):
        for flag in sorted(self._flags.values(), key=lambda x: x.short):
            visitor.visit_flag(flag)


class ListNode(Node):
    """
    A node that groups child lists and commands.

    Parsing may stop on a list only when no positional was given to it; its
    action then runs. Unless another action is bound, that action prints the
    list's usage lines.
    """

    __introspectable__ = Node.__introspectable__ + (
        "children",
    )

    def __init__(self, name, /, descr=Unset, action=Unset, *, parent=Unset):
        super().__init__(name, descr, action, parent=parent)
        self._children = {}
        if self._action is Unset:
            self._action = self._default_action()

    def _default_action(self):
        @rename("usage")
        def action(flags, arguments):
            Console(highlight=False).print(Text(self.usage().rstrip("\n") or self.route), soft_wrap=True)
        return action

    def _usage_children(self):
        return sorted(self._children.values(), key=lambda x: x.name)

    @property
    def lists(self):
        """
        Child lists sorted by name.
        """
        return tuple(sorted(filter(lambda x: isinstance(x, ListNode), self._children.values()), key=lambda x: x.name))

    @property
    def commands(self):
        """
        Child commands sorted by name.
        """
        return tuple(sorted(filter(lambda x: isinstance(x, CommandNode), self._children.values()), key=lambda x: x.name))

    def child(self, name, /):
        """
        Return the child registered under name, or None.
        """
        return self._children.get(name)

    def _attach(self, child):
        if (previous := self._children.pop(child.name, None)) is not None:
            logger.debug("list-node %r: child %r replaced", self.name, child.name)
            previous._parent = Unset
        self._children[child.name] = child
        return child

    def add_list(self, name, /, descr=Unset, action=Unset):
        """
        Create a child list and return it.
        """
        return self._attach(ListNode(name, descr, action, parent=self))

    def add_command(self, name, /, descr=Unset, action=Unset):
        """
        Create a child command and return it.
        """
        return self._attach(CommandNode(name, descr, action, parent=self))

    def visit(self, visitor, /):
        """
        Pre-order traversal: the list, its flags, its commands, its lists, then leave.
        """
        visitor.visit_list(self)
        self._visit_flags(visitor)
        for command in self.commands:
            command.visit(visitor)
        for list in self.lists:
            list.visit(visitor)
        visitor.leave_list(self)


class CommandNode(Node):
    """
    A terminal node bound to an action and a fixed arity of typed positionals.
    """

    __introspectable__ = Node.__introspectable__ + (
        "arguments",
    )

    def __init__(self, name, /, descr=Unset, action=Unset, *, parent=Unset):
        super().__init__(name, descr, action, parent=parent)
        self._arguments = []

    def add_argument(self, name, /, type=ArgumentType.STRING, descr=Unset):
        """
        Append a positional argument and return the command.

        Re-declaring an existing name replaces that argument in place.
        """
        argument = Argument(name, type, descr)
        for index, other in enumerate(self._arguments):
            if other.name == argument.name:
                self._arguments[index] = argument
                break
        else:
            self._arguments.append(argument)
        return self

    def visit(self, visitor, /):
        """
        Visit the command, then its flags; commands have no children.
        """
        visitor.visit_command(self)
        self._visit_flags(visitor)


__all__ = (
    "Node",
    "ListNode",
    "CommandNode",
)

# Keep the metaclass out of star-imports.
del NodeType
