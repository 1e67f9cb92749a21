"""
Arbor loader: build a Cli from an XML document.

Vocabulary
    <cli name="..." description="...">
      <flag shortFlag="d" longFlag="debug" description="...">
        <argument name="file" type="STRING" description="..."/>
      </flag>
      <list name="..." description="..."> ... </list>
      <command name="..." description="...">
        <flag .../>
        <argument name="x" type="INTEGER"/>
        <action class="package.module:callable"/>
        <actionCreator class="package.module:factory"/>
      </command>
    </cli>

- type is one of STRING, INTEGER (alias NUMBER), BOOLEAN; default STRING.
- <action> names the action itself; <actionCreator> names a factory called
  with the command name that returns the action.
- Unknown elements, missing attributes and unresolvable references raise
  LoaderError.
"""
import importlib
import logging
import os
import xml.etree.ElementTree as ElementTree

from .arguments import Argument, ArgumentType, Flag
from .cli import Cli
from .utils import *

logger = logging.getLogger(__name__)


class LoaderError(ValueError):
    """
    The document does not describe a valid tree.
    """


def _require(element, attribute):
    if (value := element.get(attribute)) is None:
        raise LoaderError("<%s> requires a %r attribute" % (element.tag, attribute))
    return value


def _optional(element, attribute):
    value = element.get(attribute)
    return Unset if value is None or not value.strip() else value


def _type(element):
    try:
        return ArgumentType.of(element.get("type", "STRING"))
    except ValueError as error:
        raise LoaderError("<%s name=%r>: %s" % (element.tag, element.get("name"), error)) from None


def _argument(element):
    return Argument(_require(element, "name"), _type(element), _optional(element, "description"))


def _flag(element):
    arguments = []
    for child in element:
        if child.tag != "argument":
            raise LoaderError("<flag> cannot contain <%s>" % child.tag)
        arguments.append(_argument(child))
    if len(arguments) > 1:
        raise LoaderError("<flag shortFlag=%r> declares %s" % (element.get("shortFlag"), pluralize("argument", len(arguments))))

    return Flag(
        _require(element, "shortFlag"),
        _optional(element, "longFlag"),
        _optional(element, "description"),
        arguments[0] if arguments else Unset,
    )


def _resolve(reference, element):
    """
    Import "package.module:attribute" (or "package.module.attribute").
    """
    module, separator, attribute = reference.partition(":")
    if not separator:
        module, _, attribute = reference.rpartition(".")
    if not module or not attribute:
        raise LoaderError("<%s> has a malformed class reference %r" % (element.tag, reference))
    try:
        object = importlib.import_module(module)
        for part in attribute.split("."):
            object = getattr(object, part)
    except (ImportError, AttributeError) as error:
        raise LoaderError("<%s> cannot resolve %r: %s" % (element.tag, reference, error)) from error
    if not callable(object):
        raise LoaderError("<%s> reference %r is not callable" % (element.tag, reference))
    return object


def _command(parent, element):
    command = parent.add_command(_require(element, "name"), _optional(element, "description"))
    for child in element:
        match child.tag:
            case "flag":
                command.add_flag(_flag(child))
            case "argument":
                argument = _argument(child)
                command.add_argument(argument.name, argument.type, argument.descr)
            case "action":
                command.set_action(_resolve(_require(child, "class"), child))
            case "actionCreator":
                action = _resolve(_require(child, "class"), child)(command.name)
                if not callable(action):
                    raise LoaderError("<actionCreator> for %r did not return a callable" % command.name)
                command.set_action(action)
            case _:
                raise LoaderError("<command> cannot contain <%s>" % child.tag)
    logger.debug("loaded command %r", command.route)


def _list(node, element):
    for child in element:
        match child.tag:
            case "flag":
                node.add_flag(_flag(child))
            case "list":
                _list(node.add_list(_require(child, "name"), _optional(child, "description")), child)
            case "command":
                _command(node, child)
            case _:
                raise LoaderError("<%s> cannot contain <%s>" % (element.tag, child.tag))
    logger.debug("loaded list %r", node.route)


def load(source, /, **options):
    """
    Build a Cli from an XML document.

    Parameters
    - source: path (str or os.PathLike) or a readable file object.
    - options: forwarded to Cli (shell, colorful, fancy).

    Raises
    - LoaderError: malformed XML or an invalid tree description. Invalid names
      or descriptions are reported the same way.
    """
    if not isinstance(source, str | os.PathLike) and not hasattr(source, "read"):
        raise TypeError("load() argument must be a path or a file object")

    try:
        root = ElementTree.parse(source).getroot()
    except ElementTree.ParseError as error:
        raise LoaderError("malformed document: %s" % error) from error

    if root.tag != "cli":
        raise LoaderError("document root must be <cli>, not <%s>" % root.tag)

    try:
        cli = Cli(_require(root, "name"), _optional(root, "description"), **options)
        _list(cli.root, root)
    except LoaderError:
        raise
    except (TypeError, ValueError) as error:
        raise LoaderError(str(error)) from error
    return cli


__all__ = (
    "LoaderError",
    "load",
)
