"""
arbor documentation tool.

    python -m arbor [-d|--debug] doc [-t|--type KIND] SOURCE
    python -m arbor [-d|--debug] usage SOURCE

SOURCE is an XML tree description (see arbor.loader). KIND is one of text,
markdown or rich. The tool itself is an arbor tree running in shell mode, so
parse faults are rendered on stderr and exit with status 1.
"""
import logging
import shlex
import sys

from rich.console import Console
from rich.logging import RichHandler
from rich.text import Text

from . import *
from .utils import Unset

__prog__ = "arbor"


def _configure():
    logger = logging.getLogger("arbor")
    logger.setLevel(logging.DEBUG)
    if not any(isinstance(handler, RichHandler) for handler in logger.handlers):
        logger.addHandler(RichHandler(console=Console(stderr=True), rich_tracebacks=True))


def _debugging(tokens):
    # Root flags precede the first command name.
    for token in tokens:
        if not isinstance(token, str) or not token.startswith("-"):
            return False
        if token in ("-d", "--debug"):
            return True
    return False


def _load(source):
    try:
        return load(source)
    except (OSError, LoaderError) as error:
        Console(stderr=True, highlight=False).print(Text("arbor: cannot load %s: %s" % (source, error)))
        sys.exit(1)


def doc(flags, arguments):
    source, = arguments
    try:
        kind = DocumentationType.of(flags.get_value("t", ArgumentType.STRING) or "text")
    except ValueError as error:
        Console(stderr=True, highlight=False).print(Text("arbor: %s" % error))
        sys.exit(1)
    generate(_load(source), kind)


def usage(flags, arguments):
    source, = arguments
    Console(highlight=False).print(Text(_load(source).usage().rstrip("\n")), soft_wrap=True)


def build():
    """
    Build the tree of the documentation tool.
    """
    cli = Cli("arbor", "documentation tool for arbor command trees", shell=True, colorful=sys.stderr.isatty())
    cli.add_long_flag("d", "debug", "print debug logs")
    (cli.add_command("doc", "print the documentation of a tree", doc)
        .add_long_flag_with_parameter("t", "type", "documentation format", "kind", ArgumentType.STRING, "text, markdown or rich")
        .add_argument("source", ArgumentType.STRING, "path to the XML tree description"))
    (cli.add_command("usage", "print the usage lines of the root of a tree", usage)
        .add_argument("source", ArgumentType.STRING, "path to the XML tree description"))
    return cli


def main(prompt=Unset):
    if prompt is Unset:
        prompt = sys.argv[1:]
    elif isinstance(prompt, str):
        prompt = shlex.split(prompt)
    else:
        prompt = list(prompt)
    if _debugging(prompt):
        _configure()
    invoke(build(), prompt)


if __name__ == "__main__":
    main()
