"""
Token classification.

Each invocation token falls in exactly one class, checked in this order:

    TERMINATOR   "-" or "--"
    EQUALS       contains "=" anywhere ("--name=value", "-n=value", "a=b")
    LONG         "--" prefix and at least three characters ("--verbose")
    SHORT        "-" prefix and exactly two characters ("-v")
    BUNDLED      "-" prefix and more than two characters ("-abc", "-42")
    POSITIONAL   anything else

Classification never looks at the descriptor table.
"""
import enum


class TokenKind(enum.Enum):
    TERMINATOR = "terminator"
    EQUALS = "equals"
    LONG = "long"
    SHORT = "short"
    BUNDLED = "bundled"
    POSITIONAL = "positional"


def classify(token, /):
    """Return the TokenKind of a single invocation token."""
    if not isinstance(token, str):
        raise TypeError("classify() argument must be a string")
    if token in ("-", "--"):
        return TokenKind.TERMINATOR
    if "=" in token:
        return TokenKind.EQUALS
    if token.startswith("--"):
        return TokenKind.LONG
    if token.startswith("-"):
        return TokenKind.SHORT if len(token) == 2 else TokenKind.BUNDLED
    return TokenKind.POSITIONAL


def is_option(token, /):
    """
    Return True when the token is option-shaped.

    The test only looks at the prefix: "--name", "-n", "-abc", "-5" and even
    "--name=value" are option-shaped, while "-" and "--" are not. It decides
    whether the token after a value-taking option may be consumed as its value.
    """
    if token.startswith("--"):
        return len(token) >= 3
    return token.startswith("-") and len(token) >= 2


def split(token, /):
    """
    Split an equals-form token at its first "=".

    >>> split("--output=a=b")
    ('--output', 'a=b')
    """
    key, _, value = token.partition("=")
    return key, value


__all__ = (
    # Types
    "TokenKind",

    # Functions
    "classify",
    "is_option",
    "split",
)
