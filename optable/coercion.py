"""
Numeric value coercion.

Grammar (tried in order, the first complete match wins)
- decimal: optional sign then ASCII digits ("42", "+7", "-3"); unsigned values reject "-".
- hexadecimal: "0x" then hex digits ("0x2a", "0xFF"); lowercase prefix only, no sign.
- binary: "0b" then binary digits ("0b101"); no sign.

Hexadecimal and binary fallbacks can be switched off per call. Whitespace,
underscores, empty digit runs and trailing garbage are all failures, and so is
any value outside the 64-bit range of the requested kind.

Every failure raises ValueError; callers turn it into a user-facing fault.
"""
import re

SIGNED_MIN = -(1 << 63)
SIGNED_MAX = (1 << 63) - 1
UNSIGNED_MIN = 0
UNSIGNED_MAX = (1 << 64) - 1

_SIGNED_DECIMAL = re.compile(r"[+-]?[0-9]+")
_UNSIGNED_DECIMAL = re.compile(r"\+?[0-9]+")
_HEXADECIMAL = re.compile(r"0x([0-9a-fA-F]+)")
_BINARY = re.compile(r"0b([01]+)")


def _parse(token, decimal, lower, upper, hexadecimal, binary):
    if not isinstance(token, str):
        raise TypeError("numerical value must be a string")

    if decimal.fullmatch(token):
        value = int(token, 10)
    elif hexadecimal and (match := _HEXADECIMAL.fullmatch(token)):
        value = int(match[1], 16)
    elif binary and (match := _BINARY.fullmatch(token)):
        value = int(match[1], 2)
    else:
        raise ValueError("invalid numerical sequence %r" % token)

    if not lower <= value <= upper:
        raise ValueError("numerical value %r is out of range [%d, %d]" % (token, lower, upper))
    return value


def parse_signed(token, /, *, hexadecimal=True, binary=True):
    """
    Parse a signed 64-bit integer.

    >>> parse_signed("-42")
    -42
    >>> parse_signed("0x2a")
    42
    """
    return _parse(token, _SIGNED_DECIMAL, SIGNED_MIN, SIGNED_MAX, hexadecimal, binary)


def parse_unsigned(token, /, *, hexadecimal=True, binary=True):
    """
    Parse an unsigned 64-bit integer; a leading "-" is always a failure.

    >>> parse_unsigned("0b101")
    5
    """
    return _parse(token, _UNSIGNED_DECIMAL, UNSIGNED_MIN, UNSIGNED_MAX, hexadecimal, binary)


def looks_negative(token, /):
    """Return True when the token starts like a negative number ("-1", "-0x2a")."""
    return len(token) >= 2 and token[0] == "-" and token[1] in "0123456789"


__all__ = (
    # Functions
    "parse_signed",
    "parse_unsigned",
    "looks_negative",

    # Constants
    "SIGNED_MIN",
    "SIGNED_MAX",
    "UNSIGNED_MIN",
    "UNSIGNED_MAX",
)
