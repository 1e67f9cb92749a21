"""
Arbor parser: a single left-to-right pass over the token array.

States
- One "consuming at node" state per descended list; the active node only
  ever moves downwards. There is no backtracking.

Per token
- "-x" / "--xyz": resolved against the active node's own flags. A flag with
  an argument consumes the next token raw and converts it; a flag without an
  argument records True under its short name.
- a child name, while no positional has been accumulated at the active node:
  descend into that child. Values resolved so far are kept.
- anything else: appended to the active node's positionals.

End of input
- list with positionals  -> UnknownCommandError
- list without positionals -> the list's action (usage by default)
- command -> arity check, per-argument conversion, then the command's action
  called once with (flags, arguments)

Every failure is fatal for the whole call and is surfaced through the trigger
callable (arbor.faults.trigger unless a Cli supplies its own). Actions never
run on a failure path.
"""
import difflib
import logging

from .arguments import ArgumentValues
from .faults import *
from .nodes import ListNode
from .utils import *

logger = logging.getLogger(__name__)


class ParseState:
    """
    Transient state of one parse() call.

    - node: the active node
    - positionals: (index, token) pairs accumulated at the active node
    - values: resolved flag values, shared across descents
    - index: 0-based position of the next token to examine
    """

    __slots__ = ("node", "positionals", "values", "index")

    def __init__(self, node, /):
        self.node = node
        self.positionals = []
        self.values = ArgumentValues()
        self.index = 0

    def __repr__(self):
        return "parse-state(node=%r, positionals=%r, values=%r, index=%d)" % (
            self.node.route, [token for _, token in self.positionals], self.values, self.index
        )


class Parser:
    """
    Resolve a token array against a tree and run the selected action.

    A parser holds no per-call state: every run() builds a fresh ParseState,
    so one parser (and one tree) serves any number of sequential calls.
    """

    def __init__(self, root, /, *, trigger=trigger):
        if not isinstance(root, ListNode):
            raise TypeError("parser root must be a list-node")
        if not callable(trigger):
            raise TypeError("parser 'trigger' must be callable")
        self.root = root
        self.trigger = trigger

    def _fail(self, fault):
        self.trigger(fault)
        # Faults are fatal even when a custom trigger returns.
        raise RuntimeError("trigger() returned for a fatal fault") from fault

    def run(self, tokens, /):
        if isinstance(tokens, str):
            raise TypeError("parse() tokens must be a sequence of strings, not a string")
        tokens = tuple(tokens)
        for token in tokens:
            if not isinstance(token, str):
                raise TypeError("parse() tokens must be strings")

        state = ParseState(self.root)
        logger.debug("parsing %r from %r", tokens, self.root.name)

        while state.index < len(tokens):
            token = tokens[state.index]
            if token.startswith("-"):
                self._consume_flag(state, tokens)
            elif isinstance(state.node, ListNode) and not state.positionals and (child := state.node.child(token)):
                logger.debug("descending from %r into %r", state.node.name, child.name)
                state.node = child
                state.index += 1
            else:
                state.positionals.append((state.index, token))
                state.index += 1

        return self._finish(state, tokens)

    def _consume_flag(self, state, tokens):
        token = tokens[state.index]
        long = token.startswith("--")
        name = token[2:] if long else token[1:]

        if not name or name.startswith("-"):
            self._fail(BadFlagSyntaxError(
                "bad flag syntax %r at %s position" % (token, ordinal(state.index + 1)),
                title="bad flag syntax",
                code=FaultCode.BAD_FLAG_SYNTAX,
                hint="write flags as '-x' or '--name'",
                token=token,
                index=state.index,
                docs=getdoc(FaultCode.BAD_FLAG_SYNTAX),
            ))

        flag = state.node.find_flag(name, long=long)
        if flag is None:
            known = [
                spelling
                for other in state.node.flags.values()
                for spelling in ("-" + other.short, "--" + other.long if other.long else None)
                if spelling
            ]
            suggestions = difflib.get_close_matches(token, known, 5)
            try:
                hint = "did you mean %r? flags of %r are: %s" % (suggestions[0], state.node.route, " ".join(known))
            except IndexError:
                if known:
                    hint = "flags of %r are: %s" % (state.node.route, " ".join(known))
                else:
                    hint = "%r declares no flags" % state.node.route
            self._fail(UnknownFlagError(
                "unknown flag %r at %s position" % (token, ordinal(state.index + 1)),
                title="unknown flag",
                code=FaultCode.UNKNOWN_FLAG,
                hint=hint,
                token=token,
                index=state.index,
                suggestions=suggestions,
                docs=getdoc(FaultCode.UNKNOWN_FLAG),
            ))

        if not flag.takes_argument:
            logger.debug("flag %s set at %r", flag.display, state.node.name)
            state.values._set(flag.short, True)
            state.index += 1
            return

        if state.index + 1 >= len(tokens):
            self._fail(MissingFlagArgumentError(
                "flag %r at %s position requires a value" % (token, ordinal(state.index + 1)),
                title="missing flag argument",
                code=FaultCode.MISSING_FLAG_ARGUMENT,
                hint="pass <%s> after %s (for example: %s <%s>)" % (flag.argument.name, token, token, flag.argument.name),
                token=token,
                index=state.index,
                flag=flag,
                docs=getdoc(FaultCode.MISSING_FLAG_ARGUMENT),
            ))

        raw = tokens[state.index + 1]
        value = self._convert(flag.argument, raw, state.index + 1)
        logger.debug("flag %s = %r at %r", flag.display, value, state.node.name)
        state.values._set(flag.short, value)
        state.index += 2

    def _convert(self, argument, raw, index):
        try:
            return argument.convert(raw)
        except ConversionError as error:
            self._fail(BadArgumentTypeError(
                "bad value %r for <%s> at %s position: %s" % (raw, argument.name, ordinal(index + 1), error),
                title="bad argument type",
                code=FaultCode.BAD_ARGUMENT_TYPE,
                hint="<%s> expects %s" % (argument.name, {
                    "STRING": "any text",
                    "INTEGER": "a base-10 integer",
                    "BOOLEAN": "'true' or 'false'",
                }[argument.type.name]),
                token=raw,
                index=index,
                argument=argument,
                docs=getdoc(FaultCode.BAD_ARGUMENT_TYPE),
            ))

    def _finish(self, state, tokens):
        node = state.node

        if isinstance(node, ListNode):
            if state.positionals:
                index, token = state.positionals[0]
                suggestions = difflib.get_close_matches(token, [child for child in node.children], 5)
                try:
                    hint = "did you mean %r? '%s' accepts: %s" % (suggestions[0], node.route, " ".join(sorted(node.children)))
                except IndexError:
                    if node.children:
                        hint = "'%s' accepts: %s" % (node.route, " ".join(sorted(node.children)))
                    else:
                        hint = "'%s' has no commands" % node.route
                self._fail(UnknownCommandError(
                    "unknown command %r at %s position" % (token, ordinal(index + 1)),
                    title="unknown command",
                    code=FaultCode.UNKNOWN_COMMAND,
                    hint=hint,
                    token=token,
                    index=index,
                    suggestions=suggestions,
                    docs=getdoc(FaultCode.UNKNOWN_COMMAND),
                ))
            logger.debug("dispatching list action of %r", node.route)
            return node.action(state.values, ())

        arguments = node.arguments
        if len(state.positionals) != len(arguments):
            if len(state.positionals) > len(arguments):
                index, token = state.positionals[len(arguments)]
            else:
                index, token = len(tokens), None
            self._fail(ArgumentCountMismatchError(
                "%r expects %s but got %d" % (
                    node.route, pluralize("argument", len(arguments)), len(state.positionals)
                ),
                title="argument count mismatch",
                code=FaultCode.ARGUMENT_COUNT_MISMATCH,
                hint="usage: %s" % " ".join([node.route] + ["<%s>" % argument.name for argument in arguments]),
                token=token,
                index=index,
                expected=len(arguments),
                received=len(state.positionals),
                docs=getdoc(FaultCode.ARGUMENT_COUNT_MISMATCH),
            ))

        converted = tuple(
            self._convert(argument, token, index)
            for argument, (index, token) in zip(arguments, state.positionals)
        )

        if not node.action:
            logger.debug("command %r has no action", node.route)
            return None
        logger.debug("dispatching %r with %r and %r", node.route, state.values, converted)
        return node.action(state.values, converted)


def parse(root, tokens, /, *, trigger=trigger):
    """
    Parse tokens against the tree rooted at root and run the selected action.

    Returns whatever the action returns. Faults are surfaced with trigger, which
    raises them by default.
    """
    return Parser(root, trigger=trigger).run(tokens)


__all__ = (
    "ParseState",
    "Parser",
    "parse",
)
