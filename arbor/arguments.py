r"""
Arbor argument typing and descriptors.

Overview
- ArgumentType: the closed set of convertible value kinds (STRING, INTEGER,
  BOOLEAN) and the pure conversion contract between a raw token and a typed value.
- Argument: immutable descriptor of a typed value (a command positional or
  the single parameter of a flag).
- Flag: immutable descriptor of a switch with a required short name, an
  optional long name, an optional description and at most one Argument.
- ArgumentValues: read-only mapping of resolved values handed to actions.

Conversion rules
- STRING is the identity.
- INTEGER accepts a base-10 signed integer (optional '+'/'-', ASCII digits)
  that fits in 64 bits; anything else fails.
- BOOLEAN accepts exactly "true" or "false" (case-sensitive).
  Flags without an argument are never converted: the parser records True as
  soon as it sees them.

Metadata (sanitized on construction)
- name / short / long: non-empty strings without whitespace; short names may
  not contain '-', long names may not start with '-'.
- descr: Unset | str | Text (trimmed, non-empty when provided).
- type: an ArgumentType member.
- argument: Unset | Argument (flags only).

Quick example:
    >>> flag = Flag("d", "dog", "name of the dog", Argument("name", ArgumentType.STRING))
    >>> flag.display
    '-d|--dog'
    >>> ArgumentType.INTEGER.convert("42")
    42
"""
import functools
import operator
import re
from collections.abc import Mapping
from enum import Enum

from rich.text import Text

from .faults import ConversionError, ValueTypeError
from .utils import *

# Bounds of a signed 64-bit integer; larger INTEGER tokens overflow.
_INTEGER_MIN = -(2 ** 63)
_INTEGER_MAX = 2 ** 63 - 1


class ArgumentType(Enum):
    """
    Convertible value kinds.

    Each member knows the Python class it produces (python), how to turn a raw
    token into that class (convert) and whether an already converted value
    belongs to it (accepts).
    """
    STRING = "string"
    INTEGER = "integer"
    BOOLEAN = "boolean"

    @property
    def python(self):
        """
        Python class produced by convert() for this kind.
        """
        return {
            ArgumentType.STRING: str,
            ArgumentType.INTEGER: int,
            ArgumentType.BOOLEAN: bool,
        }[self]

    def convert(self, raw, /):
        """
        Convert a raw command-line token into a typed value.

        Raises
        - TypeError: raw is not a string.
        - ConversionError: raw does not represent a value of this kind.
        """
        if not isinstance(raw, str):
            raise TypeError("convert() argument must be a string")

        match self:
            case ArgumentType.STRING:
                return raw
            case ArgumentType.INTEGER:
                if not re.fullmatch(r"[+-]?[0-9]+", raw):
                    raise ConversionError("%r is not a base-10 integer" % raw, raw=raw, type=self)
                value = int(raw)
                if not _INTEGER_MIN <= value <= _INTEGER_MAX:
                    raise ConversionError("%r does not fit in a 64-bit integer" % raw, raw=raw, type=self)
                return value
            case ArgumentType.BOOLEAN:
                try:
                    return {"true": True, "false": False}[raw]
                except KeyError:
                    raise ConversionError("%r is not 'true' or 'false'" % raw, raw=raw, type=self) from None

        raise RuntimeError("unreachable")

    def accepts(self, value, /):
        """
        Whether an already converted value belongs to this kind.

        bool is a subclass of int in Python; it is not accepted as an INTEGER.
        """
        if self is ArgumentType.INTEGER:
            return isinstance(value, int) and not isinstance(value, bool)
        return isinstance(value, self.python)

    @classmethod
    def of(cls, name, /):
        """
        Look up a member by (case-insensitive) name.

        "NUMBER" is accepted as an alias of INTEGER.
        """
        if isinstance(name, cls):
            return name
        if not isinstance(name, str):
            raise TypeError("of() argument must be a string")
        key = name.strip().upper()
        try:
            return cls[{"NUMBER": "INTEGER"}.get(key, key)]
        except KeyError:
            raise ValueError("unknown argument type %r" % name) from None


class DescriptorType(type):
    """
    Metaclass shared by the immutable descriptors (Argument, Flag).

    Responsibilities
    - Derive __typename__ from the class name (camel-case split with hyphens)
      for consistent messages.
    - Expose every name in __introspectable__ as a read-only property backed by
      the private "_<name>" field (see mirror()).
    - Provide stable __repr__/__rich_repr__ implementations for diagnostics.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
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
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        @rename("__eq__")
        def __eq__(self, other):
            if type(self) is not type(other):
                return NotImplemented
            return tuple(self.__rich_repr__()) == tuple(other.__rich_repr__())
        self.__eq__ = __eq__

        @rename("__hash__")
        def __hash__(self):
            return hash((type(self), tuple(map(str, (value for _, value in self.__rich_repr__())))))
        self.__hash__ = __hash__

        return self


def _sanitize_descr(cls, metadata, /):
    """
    Internal: validate and normalize the optional 'descr' field.

    - Unset stays Unset (rendered as “no description”).
    - str is trimmed and must be non-empty; rich Text is kept as-is.
    """
    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = descr


def _sanitize_name(cls, metadata, key, /, *, pattern, optional=False):
    """
    Internal: validate a name-like field against a pattern.
    """
    if optional and metadata[key] is Unset:
        return
    if not isinstance(name := metadata[key], str):
        raise TypeError(f"{cls.__typename__} {key!r} must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} {key!r} cannot be empty")
    elif not re.fullmatch(pattern, name):
        raise ValueError(f"{cls.__typename__} {key!r} {name!r} is not a valid name")
    metadata[key] = name


class Argument(metaclass=DescriptorType):
    """
    Typed value descriptor.

    Used for the ordered positionals of a command and for the single parameter
    of a flag. Instances are immutable; fields are exposed as read-only
    properties.
    """

    __introspectable__ = (
        "name",
        "type",
        "descr",
    )

    def __new__(cls, name, /, type=ArgumentType.STRING, descr=Unset):
        metadata = {
            "name": name,
            "type": type,
            "descr": descr,
        }
        _sanitize_name(cls, metadata, "name", pattern=r"\S+")
        if not isinstance(metadata["type"], ArgumentType):
            raise TypeError(f"{cls.__typename__} 'type' must be an argument type")
        _sanitize_descr(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    def convert(self, raw, /):
        """
        Shortcut for self.type.convert(raw).
        """
        return self.type.convert(raw)


class Flag(metaclass=DescriptorType):
    """
    Switch descriptor.

    A flag is recognized by "-<short>" and, when a long name is declared, by
    "--<long>". A flag without an argument resolves to True when seen; a flag
    with an argument consumes the next token and converts it.
    """

    __introspectable__ = (
        "short",
        "long",
        "descr",
        "argument",
    )

    # Prefix shared by short ("-x") and long ("--xyz") forms.
    PREFIX = "-"

    def __new__(cls, short, /, long=Unset, descr=Unset, argument=Unset):
        metadata = {
            "short": short,
            "long": long,
            "descr": descr,
            "argument": argument,
        }
        _sanitize_name(cls, metadata, "short", pattern=r"[^-\s]+")
        _sanitize_name(cls, metadata, "long", pattern=r"[^-\s]\S*", optional=True)
        _sanitize_descr(cls, metadata)
        if not isinstance(metadata["argument"], Argument | Unset):
            raise TypeError(f"{cls.__typename__} 'argument' must be an argument")

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def takes_argument(self):
        return self.argument is not Unset

    @property
    def display(self):
        """
        Token spelling of the flag, e.g. "-a" or "-b|--bob".
        """
        if self.long:
            return "%s%s|%s%s" % (self.PREFIX, self.short, self.PREFIX * 2, self.long)
        return self.PREFIX + self.short


class ArgumentValues(Mapping):
    """
    Read-only view of values resolved during one parse call.

    Keys are flag short names; values are str, int or bool. The parser is the
    only writer (through _set); actions receive the finished view.
    """

    def __init__(self, values=(), /):
        self._values = dict(values)

    def _set(self, key, value, /):
        self._values[key] = value

    def __getitem__(self, key, /):
        return self._values[key]

    def __iter__(self):
        return iter(self._values)

    def __len__(self):
        return len(self._values)

    def __repr__(self):
        return f"argument-values({self._values!r})"

    def get_value(self, key, type, /):
        """
        Return the value stored under key, checked against an ArgumentType.

        Returns
        - None when the key was never set (the flag was absent).

        Raises
        - ValueTypeError: the stored value does not belong to the requested type.
        """
        if not isinstance(type, ArgumentType):
            raise TypeError("get_value() second argument must be an argument type")
        try:
            value = self._values[key]
        except KeyError:
            return None
        if not type.accepts(value):
            raise ValueTypeError("value of %r is %s, not %s" % (key, _kind(value), type.name))
        return value


def _kind(value, /):
    # Name of the ArgumentType a stored value belongs to, for messages.
    for member in ArgumentType:
        if member.accepts(value):
            return member.name
    return value.__class__.__name__


__all__ = (
    # Types
    "ArgumentType",
    "ArgumentValues",

    # Descriptors
    "Argument",
    "Flag",
)

# Remove the internal metaclass from the module namespace to keep it out of
# star-imports and autocompletion.
del DescriptorType
