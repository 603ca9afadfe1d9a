"""
Optable faults (errors and warnings) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for all issues. Codes are
  grouped by domain to keep copy consistent and make logs/searches predictable.
- ConfigurationError: a defect in the embedding program's descriptor tables.
  Raised at construction/validation time, never rendered, never recovered.
- UserInputError / UserInputWarning: base types that carry message + options and
  know how to render themselves in a friendly, lowercased and actionable way.
- HelpRequested: the successful short-circuit taken when help was asked for.
- trigger(): central entry point to surface any fault (respecting shell/fancy/colorful).

UX goals
- Position-first messages: every token-related message includes the ordinal position
  (“at third position”) so users can learn by trying.
- Soft but technical language: short titles, one-sentence bodies, a single clear hint.

Integration
- The parser builds faults with a message and context, then calls trigger(fault, **runtime).
- In library mode, exceptions are raised and warnings go through `warnings`;
  in shell mode, they are rendered via rich and errors end the process with status 1.
"""
import inspect
import sys
import warnings
from abc import ABC
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset


class FaultCode(IntEnum):
    """
    canonical fault codes used across the engine (stable identifiers).

    grouping (by high-level domain)
    - configuration (101xx)
      • INVALID_DESCRIPTOR, DUPLICATED_DESCRIPTOR, RESERVED_NAME, DANGLING_SCOPE
    - arguments (111xx)
      • UNKNOWN_ARGUMENT, FLAG_ASSIGNMENT, MISSING_ARGUMENT, BUNDLED_SHORT_FORM
    - positionals (112xx)
      • EXCESS_POSITIONAL, TOO_MANY_POSITIONALS, TOO_FEW_POSITIONALS
    - values (113xx)
      • INVALID_NUMBER, STRING_TOO_LONG
    - requirements (114xx)
      • MISSING_REQUIRED
    - warnings (12xxx)
      • EMPTY_VALUE

    spacing leaves room for future additions without reshuffling existing codes.
    """
    # --- configuration errors (10xxx) ---
    INVALID_DESCRIPTOR    = 10101
    DUPLICATED_DESCRIPTOR = 10102
    RESERVED_NAME         = 10103
    DANGLING_SCOPE        = 10104

    # --- argument errors (11xxx) ---
    UNKNOWN_ARGUMENT      = 11111
    FLAG_ASSIGNMENT       = 11112
    MISSING_ARGUMENT      = 11113
    BUNDLED_SHORT_FORM    = 11114

    # --- positional errors (11xxx) ---
    EXCESS_POSITIONAL     = 11121
    TOO_MANY_POSITIONALS  = 11122
    TOO_FEW_POSITIONALS   = 11123

    # --- value errors (11xxx) ---
    INVALID_NUMBER        = 11131
    STRING_TOO_LONG       = 11132

    # --- requirement errors (11xxx) ---
    MISSING_REQUIRED      = 11141

    # --- warnings (12xxx) ---
    EMPTY_VALUE           = 12111

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class ConfigurationError(ValueError):
    """
    malformed descriptor table (a defect in the embedding program).

    carries the offending descriptor (when one exists) and its index in the
    table, so the traceback points straight at the bad declaration.
    """

    def __init__(self, message, /, *, code=FaultCode.INVALID_DESCRIPTOR, descriptor=None, index=None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.descriptor = descriptor
        self.index = index


def _console(stream):
    return Console(file=stream if stream is not None else sys.stderr, highlight=False)


def _render(fault, palette, title_style, message_style):
    main = __import__("__main__")

    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))
    colorful = fault.options.get("colorful", False)

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

    prog = text(getattr(main, "__prog__", fault.options.get("prog", "optable")), styler("prog-name"))

    header = Text.assemble(
        "[ ",
        prog,
        " — ",
        text(fault.options["code"].normalize(), styler("code")),
        " | ",
        text(fault.options["title"].title(), styler(title_style)),
        " ]"
    )
    message = text(fault.message, styler(message_style))
    hint = Text.assemble(text(" → ", styler("hint-arrow")), text(fault.options.get("hint"), styler("hint")))

    if fault.options.get("fancy", False):
        return Panel(Group(message, hint), title=header, title_align="left")

    return Group(header, message, hint)


class UserInputError(Exception):
    """
    base of every fault caused by the invocation tokens.

    the message is a single lowercased sentence; everything else (code, title,
    hint, the offending token/option/index...) travels in a read-only options
    mapping, also reachable as attributes (``error.option``, ``error.expected``).
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __getattr__(self, name):
        try:
            return self.__dict__["options"][name]
        except KeyError:
            raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}") from None

    def __rich__(self):
        return _render(self, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        }, "error-title", "error-message")

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        _console(self.options.get("stream")).print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UnknownArgumentError(UserInputError): ...
class ExcessPositionalError(UnknownArgumentError): ...
class FlagAssignmentError(UserInputError): ...
class MissingArgumentError(UserInputError): ...
class UnsupportedBundledShortFormError(UserInputError): ...
class TooManyPositionalsError(UserInputError): ...
class TooFewPositionalsError(UserInputError): ...
class InvalidNumberError(UserInputError): ...
class StringTooLongError(UserInputError): ...
class MissingRequiredError(UserInputError): ...


class UserInputWarning(ABC, Warning):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __getattr__(self, name):
        try:
            return self.__dict__["options"][name]
        except KeyError:
            raise AttributeError(f"{type(self).__name__!r} object has no attribute {name!r}") from None

    def __rich__(self):
        return _render(self, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #FFB400",  # amber fault code for warnings
            "warning-title": "bold #FFC2E0",  # softer pinky title for warnings

            # body
            "warning-message": "#D6D6DE",  # slightly lighter gray body
            "hint-arrow": "#B8EFAF dim",  # softer green arrow
            "hint": "italic #B8EFAF",  # softer green hint text
        }, "warning-title", "warning-message")

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        _console(self.options.get("stream")).print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class EmptyValueWarning(UserInputWarning): ...


class HelpRequested(Exception):
    """
    raised in library mode once help was rendered for the active command.

    in shell mode the same trigger ends the process with status 0 instead.
    ``command`` holds the active command name, or None at the root.
    """

    def __init__(self, command=None, /, **options):
        super().__init__(command)
        self.command = command
        self.options = MappingProxyType(options)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        sys.exit(0)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.command, **{**self.options, **overrides})


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into a copy of the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via a rich console on options["stream"];
      otherwise, exceptions are raised and warnings are emitted.

    typical options
    - prog, shell, fancy, colorful, stream, title, code, hint, and any other
      context the reporter may want to carry (token, index, option, expected, got).
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


__all__ = (
    "FaultCode",
    "ConfigurationError",
    "UserInputError",
    "UnknownArgumentError",
    "ExcessPositionalError",
    "FlagAssignmentError",
    "MissingArgumentError",
    "UnsupportedBundledShortFormError",
    "TooManyPositionalsError",
    "TooFewPositionalsError",
    "InvalidNumberError",
    "StringTooLongError",
    "MissingRequiredError",
    "UserInputWarning",
    "EmptyValueWarning",
    "HelpRequested",
    "trigger",
)
