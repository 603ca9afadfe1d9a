r"""
Optable descriptors: options, commands and examples.

Overview
- Descriptors
  • Option: one named and/or positional argument with a typed value (boolean,
    string, signed or unsigned integer), a scope and help metadata.
  • Command: one first-level subcommand (name + description).
  • Example: one usage line shown in help (usage fragment + description).

- Builders
  • flag(...), string(...), signed(...), unsigned(...): shorthand for Option(...)
    with the kind filled in. short=True derives the short identifier from the
    first character of the long one.

- Tables
  • validate(options, commands, examples): table-level checks run once by the
    parser before any token is read (duplicates, reserved names, dangling scopes).
  • reachable(option, active): the scope filter used by matching, requirement
    checks and help.

Scopes
- Scope.GLOBAL (0): reachable everywhere.
- Scope.ROOT (1): reachable only when no command is active.
- Scope.command(i) (i + 2): reachable only while the i-th command is active.
The active scope computed by the parser uses the same encoding.

Descriptors are immutable and validated at construction: every malformed
declaration raises ConfigurationError with the offending descriptor.

Quick example:
    >>> from optable.options import flag, string, Scope
    >>> verbose = flag("verbose", short=True, descr="Talk more")
    >>> output = string("output", short="o", metavar="file", scope=Scope.ROOT)
"""
import enum
import functools
import logging
import operator
import re
from collections.abc import Iterable
from typing import final

from .coercion import SIGNED_MAX, SIGNED_MIN, UNSIGNED_MAX, UNSIGNED_MIN
from .faults import ConfigurationError, FaultCode
from .utils import *

logger = logging.getLogger(__name__)


class Kind(enum.Enum):
    BOOLEAN = "boolean"
    STRING = "string"
    SIGNED = "signed"
    UNSIGNED = "unsigned"


class Scope(int):
    """
    Integer scope tag of an option.

    Shares its encoding with the active command index: 0 is global, 1 is the
    root (no command), and i + 2 is the i-th command of the command table.
    """

    def __new__(cls, value=0, /):
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError("scope must be an integer")
        if value < 0:
            raise ValueError("scope cannot be negative")
        return super().__new__(cls, value)

    @classmethod
    def command(cls, index, /):
        """Scope bound to the command at the given 0-based table index."""
        if not isinstance(index, int) or isinstance(index, bool):
            raise TypeError("command index must be an integer")
        if index < 0:
            raise ValueError("command index cannot be negative")
        return cls(index + 2)

    @property
    def index(self):
        """0-based command index, or None for the global and root scopes."""
        return int(self) - 2 if self >= 2 else None

    def __repr__(self):
        match int(self):
            case 0:
                return "Scope.GLOBAL"
            case 1:
                return "Scope.ROOT"
            case value:
                return f"Scope.command({value - 2})"

    __str__ = __repr__


Scope.GLOBAL = Scope(0)
Scope.ROOT = Scope(1)


class DescriptorType(type):
    """
    Metaclass giving descriptors read-only fields and stable representations.

    - __typename__ is derived from the class name and used in diagnostics.
    - every name in __introspectable__ becomes a mirror() property over "_name".
    - __repr__/__rich_repr__ list the introspectable fields in order.
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
            return "%s(%s)" % (
                type(self).__typename__,
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            )
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_identifiers(cls, metadata, /):
    """
    Internal: validate the long and short identifiers of an option.

    - long: required string, non-empty, no leading "-", no "=" and no whitespace.
    - short: None, True (first character of long), or one character that is
      neither "-", "=" nor whitespace.
    """
    if (long := metadata["long"]) is Unset or long is None:
        raise ConfigurationError(f"{cls.__typename__} must specify a long name")
    if not isinstance(long, str):
        raise ConfigurationError(f"{cls.__typename__} long name must be a string, not {type(long).__name__}")
    if not long:
        raise ConfigurationError(f"{cls.__typename__} long name cannot be empty")
    if long.startswith("-"):
        raise ConfigurationError(f"{cls.__typename__} long name {long!r} must be given without dashes")
    if "=" in long or any(character.isspace() for character in long):
        raise ConfigurationError(f"{cls.__typename__} long name {long!r} cannot contain '=' or whitespace")

    if (short := metadata["short"]) is True:
        short = long[0]
    elif short is False:
        short = None

    if short is not None:
        if not isinstance(short, str) or len(short) != 1:
            raise ConfigurationError(f"{cls.__typename__} {long!r} short name must be a single character")
        if short in "-=" or short.isspace():
            raise ConfigurationError(f"{cls.__typename__} {long!r} short name cannot be {short!r}")
    metadata["short"] = short


def _sanitize_value(cls, metadata, /):
    """
    Internal: validate kind, metavar and default of an option.

    - kind: must be a Kind member.
    - metavar: mandatory for non-boolean, non-positional options; otherwise optional.
    - positional: booleans cannot be positional (their value is presence).
    - default: Unset resolves to False for booleans and None otherwise; an explicit
      default must fit the kind (integers are range-checked).
    """
    long = metadata["long"]

    if not isinstance(kind := metadata["kind"], Kind):
        raise ConfigurationError(f"{cls.__typename__} {long!r} kind must be a Kind, not {kind!r}")

    if (metavar := metadata["metavar"]) is not None:
        if not isinstance(metavar, str):
            raise ConfigurationError(f"{cls.__typename__} {long!r} metavar must be a string")
        if not (metavar := metavar.strip()):
            raise ConfigurationError(f"{cls.__typename__} {long!r} metavar cannot be empty")
        metadata["metavar"] = metavar

    if kind is not Kind.BOOLEAN and not metadata["positional"] and metavar is None:
        raise ConfigurationError(f"{cls.__typename__} {long!r} is not boolean and must specify a metavar")

    if kind is Kind.BOOLEAN and metadata["positional"]:
        raise ConfigurationError(f"{cls.__typename__} {long!r} is boolean and cannot be positional")

    if (default := metadata["default"]) is Unset:
        metadata["default"] = False if kind is Kind.BOOLEAN else None
        return

    match kind:
        case Kind.BOOLEAN if not isinstance(default, bool):
            raise ConfigurationError(f"{cls.__typename__} {long!r} default must be a bool")
        case Kind.STRING if not isinstance(default, str | None):
            raise ConfigurationError(f"{cls.__typename__} {long!r} default must be a string or None")
        case Kind.SIGNED | Kind.UNSIGNED if default is not None:
            if not isinstance(default, int) or isinstance(default, bool):
                raise ConfigurationError(f"{cls.__typename__} {long!r} default must be an integer or None")
            lower, upper = (SIGNED_MIN, SIGNED_MAX) if kind is Kind.SIGNED else (UNSIGNED_MIN, UNSIGNED_MAX)
            if not lower <= default <= upper:
                raise ConfigurationError(f"{cls.__typename__} {long!r} default {default} is out of range")


def _sanitize_text(cls, metadata, name, /):
    if not isinstance(metadata[name], str | None):
        raise ConfigurationError(f"{cls.__typename__} {name!r} must be a string")


@final
class Option(metaclass=DescriptorType):
    """
    Immutable option descriptor.

    Properties (read-only)
    - long: str, the unique key ("output" is matched as "--output").
    - short: str | None, one character ("o" is matched as "-o").
    - kind: Kind of the value.
    - required: bool, a missing required reachable option fails the parse.
    - positional: bool, filled by bare tokens in declaration order.
    - scope: Scope where the option is reachable.
    - descr: str | None, one-line help text.
    - metavar: str | None, value placeholder in help.
    - default: value reported when the option is not matched.
    """

    __introspectable__ = (
        "long",
        "short",
        "kind",
        "required",
        "positional",
        "scope",
        "descr",
        "metavar",
        "default",
    )

    def __init__(
            self,
            long=Unset,
            /,
            kind=Kind.BOOLEAN,
            *,
            short=None,
            required=False,
            positional=False,
            scope=Scope.GLOBAL,
            descr=None,
            metavar=None,
            default=Unset
    ):
        metadata = {
            "long": long,
            "short": short,
            "kind": kind,
            "required": bool(required),
            "positional": bool(positional),
            "scope": scope,
            "descr": descr,
            "metavar": metavar,
            "default": default,
        }
        _sanitize_identifiers(type(self), metadata)
        _sanitize_value(type(self), metadata)
        _sanitize_text(type(self), metadata, "descr")
        if not isinstance(scope, Scope):
            raise ConfigurationError(f"option {metadata['long']!r} scope must be a Scope, not {scope!r}")

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

    def __setattr__(self, name, value):
        if not name.startswith("_") or hasattr(self, name):
            raise AttributeError(f"{type(self).__typename__} descriptors are immutable")
        super().__setattr__(name, value)


@final
class Command(metaclass=DescriptorType):
    """Immutable first-level subcommand descriptor."""

    __introspectable__ = ("name", "descr")

    def __init__(self, name, /, descr=None):
        if not isinstance(name, str):
            raise ConfigurationError(f"command name must be a string, not {type(name).__name__}")
        if not name:
            raise ConfigurationError("command name cannot be empty")
        if name.startswith("-") or any(character.isspace() for character in name):
            raise ConfigurationError(f"command name {name!r} cannot start with '-' or contain whitespace")
        _sanitize_text(type(self), {"descr": descr}, "descr")

        self._name = name
        self._descr = descr

    def __setattr__(self, name, value):
        if not name.startswith("_") or hasattr(self, name):
            raise AttributeError(f"{type(self).__typename__} descriptors are immutable")
        super().__setattr__(name, value)


@final
class Example(metaclass=DescriptorType):
    """Immutable help example: a usage fragment (without the program name) and its description."""

    __introspectable__ = ("usage", "descr")

    def __init__(self, usage, descr, /):
        if not isinstance(usage, str) or not isinstance(descr, str):
            raise ConfigurationError("example usage and description must both be strings")

        self._usage = usage
        self._descr = descr

    def __setattr__(self, name, value):
        if not name.startswith("_") or hasattr(self, name):
            raise AttributeError(f"{type(self).__typename__} descriptors are immutable")
        super().__setattr__(name, value)


def flag(long, /, short=None, *, scope=Scope.GLOBAL, descr=None, required=False, default=Unset):
    """
    Build a boolean option: present means True.

    >>> flag("verbose", short=True).short
    'v'
    """
    return Option(long, Kind.BOOLEAN, short=short, scope=scope, descr=descr, required=required, default=default)


def string(long, /, short=None, *, metavar=None, scope=Scope.GLOBAL, descr=None, required=False, positional=False, default=Unset):
    """Build a string option, stored verbatim."""
    return Option(
        long, Kind.STRING,
        short=short, metavar=metavar, scope=scope, descr=descr, required=required, positional=positional, default=default
    )


def signed(long, /, short=None, *, metavar=None, scope=Scope.GLOBAL, descr=None, required=False, positional=False, default=Unset):
    """Build a signed 64-bit integer option (decimal, 0x hexadecimal or 0b binary)."""
    return Option(
        long, Kind.SIGNED,
        short=short, metavar=metavar, scope=scope, descr=descr, required=required, positional=positional, default=default
    )


def unsigned(long, /, short=None, *, metavar=None, scope=Scope.GLOBAL, descr=None, required=False, positional=False, default=Unset):
    return Option(
        long, Kind.UNSIGNED,
        short=short, metavar=metavar, scope=scope, descr=descr, required=required, positional=positional, default=default
    )


def reachable(option, active, /):
    """
    Return True when the option can be used while the given scope is active.

    active is Scope.ROOT when no command was resolved, or Scope.command(i).
    """
    return option.scope == Scope.GLOBAL or option.scope == active


def _overlap(first, second):
    return first == Scope.GLOBAL or second == Scope.GLOBAL or first == second


def validate(options, commands=(), examples=(), /):
    """
    Check descriptor tables once, before any token is read.

    Returns the three tables as tuples. Raises ConfigurationError on:
    - entries of the wrong descriptor type;
    - duplicate long names, or duplicate short names between options that can
      be reachable at the same time;
    - options claiming the reserved help names ("help" / "h");
    - scopes bound to a command index outside the command table;
    - duplicate command names.
    """
    for name, table in (("options", options), ("commands", commands), ("examples", examples)):
        if not isinstance(table, Iterable) or isinstance(table, str):
            raise ConfigurationError(f"{name} table must be an iterable of descriptors")

    options, commands, examples = tuple(options), tuple(commands), tuple(examples)

    names = {}
    for index, command in enumerate(commands):
        if not isinstance(command, Command):
            raise ConfigurationError(f"invalid command at index {index}: expected a command, got {command!r}", index=index)
        if command.name in names:
            raise ConfigurationError(
                f"invalid command at index {index}: name {command.name!r} is already used at index {names[command.name]}",
                code=FaultCode.DUPLICATED_DESCRIPTOR,
                descriptor=command,
                index=index,
            )
        names[command.name] = index

    longs = {}
    for index, option in enumerate(options):
        if not isinstance(option, Option):
            raise ConfigurationError(f"invalid option at index {index}: expected an option, got {option!r}", index=index)
        if option.long == "help" or option.short == "h":
            raise ConfigurationError(
                f"invalid option {option.long!r} at index {index}: '--help' and '-h' are reserved",
                code=FaultCode.RESERVED_NAME,
                descriptor=option,
                index=index,
            )
        if option.scope.index is not None and option.scope.index >= len(commands):
            raise ConfigurationError(
                f"invalid option {option.long!r} at index {index}: {option.scope!r} has no matching command",
                code=FaultCode.DANGLING_SCOPE,
                descriptor=option,
                index=index,
            )
        if option.long in longs:
            raise ConfigurationError(
                f"invalid option {option.long!r} at index {index}: long name is already used at index {longs[option.long]}",
                code=FaultCode.DUPLICATED_DESCRIPTOR,
                descriptor=option,
                index=index,
            )
        longs[option.long] = index

        if option.short is None:
            continue
        for other in options[:index]:
            if other.short == option.short and _overlap(other.scope, option.scope):
                raise ConfigurationError(
                    f"invalid option {option.long!r} at index {index}: short name {option.short!r} is already used by {other.long!r}",
                    code=FaultCode.DUPLICATED_DESCRIPTOR,
                    descriptor=option,
                    index=index,
                )

    for index, example in enumerate(examples):
        if not isinstance(example, Example):
            raise ConfigurationError(f"invalid example at index {index}: expected an example, got {example!r}", index=index)

    logger.debug("validated %d options, %d commands and %d examples", len(options), len(commands), len(examples))
    return options, commands, examples


__all__ = (
    # Types
    "Kind",
    "Scope",
    "Option",
    "Command",
    "Example",

    # Builders
    "flag",
    "string",
    "signed",
    "unsigned",

    # Tables
    "reachable",
    "validate",
)

del DescriptorType
