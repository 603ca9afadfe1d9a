"""
Optable parser: command resolution, token matching and requirement checks.

Lifecycle of Parser.parse(argv)
1) resolve: argv[1] naming a command activates Scope.command(i); otherwise the
   root scope is active and argv[1] is an ordinary token.
2) help pre-scan: "-h"/"--help" before the first terminator renders help for the
   active scope and short-circuits (HelpRequested, or exit status 0 in shell mode).
3) match: every token is classified (see optable.tokens) and consumed
   • equals-form   "--name=value" / "-n=value"
   • long / short  "--name" / "-n", value-taking kinds consume the next token
   • positional    first reachable, unmatched positional descriptor
   • terminator    "-" / "--", every remaining token fills the remaining positionals
4) requirements: the first reachable, required, unmatched option fails the parse.

The parser itself is immutable; each call works on a private run state and
returns a ParseResult, so a single parser may serve many calls.

Faults go through trigger(): raised in library mode (default), rendered to the
configured stream followed by exit status 1 in shell mode.
"""
import difflib
import logging
import shlex
import sys
from collections.abc import Mapping

from .coercion import looks_negative, parse_signed, parse_unsigned
from .faults import *
from .help import render_help
from .options import Kind, Scope, reachable, validate
from .tokens import TokenKind, classify, is_option, split
from .utils import *

logger = logging.getLogger(__name__)


class ParseResult(Mapping):
    """
    Immutable outcome of one parse.

    Maps the long name of every option reachable in the active scope to its
    value; unmatched options report their default.
    """

    command = mirror("command")
    scope = mirror("scope")
    matched = mirror("matched")

    def __init__(self, values, matched, command, scope, /):
        self._values = dict(values)
        self._matched = frozenset(matched)
        self._command = command
        self._scope = scope

    def __getitem__(self, name):
        return self._values[name]

    def __iter__(self):
        return iter(self._values)

    def __len__(self):
        return len(self._values)

    def is_matched(self, name, /):
        """Return True when the option was given on the command line; KeyError when it is unreachable."""
        if name not in self._values:
            raise KeyError(name)
        return name in self._matched

    def __repr__(self):
        return "parse-result(command=%r, values=%r)" % (self._command, self._values)


class _Run:
    """Mutable state of a single Parser.parse() call."""

    def __init__(self, parser, argv):
        self.parser = parser
        self.argv = argv
        self.prog = parser.prog or argv[0]
        self.active = Scope.ROOT
        self.command = None
        self.values = {}
        self.matched = set()

    # ---- reporting ----

    def fail(self, fault):
        self.parser.trigger(fault, prog=self.prog)

    def more(self):
        return "for more information see '%s --help'" % (self.prog if self.command is None else f"{self.prog} {self.command}")

    def suggest(self, input):
        names = []
        for option in self.reachable():
            names.append("--" + option.long)
            if option.short is not None:
                names.append("-" + option.short)
        try:
            return "did you mean %r? %s" % (difflib.get_close_matches(input, names, 1)[0], self.more())
        except IndexError:
            return self.more()

    # ---- lookups ----

    def reachable(self):
        return (option for option in self.parser.options if reachable(option, self.active))

    def lookup(self, key):
        if key.startswith("--"):
            return next((option for option in self.reachable() if option.long == key[2:]), None)
        if len(key) == 2 and key.startswith("-"):
            return next((option for option in self.reachable() if option.short == key[1]), None)
        return None

    # ---- steps ----

    def resolve(self):
        if len(self.argv) > 1:
            for index, command in enumerate(self.parser.commands):
                if command.name == self.argv[1]:
                    self.active = Scope.command(index)
                    self.command = command.name
                    break
        logger.debug("active scope is %r (command %s)", self.active, self.command or "<none>")

    def prescan(self):
        for token in self.argv[1:]:
            if token in ("-", "--"):
                return
            if token in ("--help", "-h"):
                logger.debug("found %r, rendering help", token)
                self.parser.help(self.command, prog=self.prog)
                trigger(HelpRequested(self.command), shell=self.parser.shell)
        logger.debug("found no help request, proceeding with parsing")

    def store(self, option, raw, index):
        config = self.parser
        match option.kind:
            case Kind.BOOLEAN:
                value = True
            case Kind.STRING:
                if config.max_length is not None and len(raw) > config.max_length:
                    return self.fail(StringTooLongError(
                        "option '--%s' at %s position has a too long string argument, max allowed is %d" % (
                            option.long, ordinal(index), config.max_length
                        ),
                        title="string too long",
                        code=FaultCode.STRING_TOO_LONG,
                        hint="shorten the value to at most %d characters" % config.max_length,
                        option=option,
                        token=raw,
                        index=index,
                        expected=config.max_length,
                        got=len(raw),
                    ))
                value = raw
            case Kind.SIGNED | Kind.UNSIGNED:
                parse = parse_signed if option.kind is Kind.SIGNED else parse_unsigned
                try:
                    value = parse(raw, hexadecimal=config.hexadecimal, binary=config.binary)
                except ValueError:
                    return self.fail(InvalidNumberError(
                        "invalid numerical sequence for option '--%s' at %s position: %r" % (
                            option.long, ordinal(index), raw
                        ),
                        title="invalid number",
                        code=FaultCode.INVALID_NUMBER,
                        hint=self.grammar(option.kind),
                        option=option,
                        token=raw,
                        index=index,
                    ))
        logger.debug("option %r set to %r", option.long, value)
        self.values[option.long] = value
        self.matched.add(option.long)

    def grammar(self, kind):
        forms = ["decimal"]
        if self.parser.hexadecimal:
            forms.append("0x hexadecimal")
        if self.parser.binary:
            forms.append("0b binary")
        return "expected %s 64-bit integer (%s)" % ("a signed" if kind is Kind.SIGNED else "an unsigned", ", ".join(forms))

    def named(self, token, index):
        if (option := self.lookup(token)) is None:
            return self.fail(UnknownArgumentError(
                "unknown argument %r at %s position" % (token, ordinal(index)),
                title="unknown argument",
                code=FaultCode.UNKNOWN_ARGUMENT,
                hint=self.suggest(token),
                token=token,
                index=index,
            ))

        if option.kind is Kind.BOOLEAN:
            self.store(option, token, index)
            return index

        try:
            value = self.argv[index + 1]
        except IndexError:
            value = None

        if value is not None and is_option(value):
            if option.kind is Kind.SIGNED:
                try:
                    parse_signed(value, hexadecimal=self.parser.hexadecimal, binary=self.parser.binary)
                except ValueError:
                    value = None
            elif option.kind is Kind.UNSIGNED and looks_negative(value):
                return self.fail(InvalidNumberError(
                    "invalid unsigned numerical value for option '--%s' at %s position: %r" % (
                        option.long, ordinal(index + 1), value
                    ),
                    title="invalid number",
                    code=FaultCode.INVALID_NUMBER,
                    hint=self.grammar(option.kind),
                    option=option,
                    token=value,
                    index=index + 1,
                ))
            else:
                value = None

        if value is None:
            return self.fail(MissingArgumentError(
                "option %r at %s position requires an argument but none was given" % (token, ordinal(index)),
                title="missing argument",
                code=FaultCode.MISSING_ARGUMENT,
                hint="pass a value after a space (for example: %s <%s>) or inline (for example: --%s=<%s>)" % (
                    token, option.metavar or option.long, option.long, option.metavar or option.long
                ),
                option=option,
                token=token,
                index=index,
            ))

        self.store(option, value, index + 1)
        return index + 1

    def equals(self, token, index):
        key, value = split(token)
        if (option := self.lookup(key)) is None:
            return self.fail(UnknownArgumentError(
                "unknown argument %r at %s position" % (key, ordinal(index)),
                title="unknown argument",
                code=FaultCode.UNKNOWN_ARGUMENT,
                hint=self.suggest(key),
                token=token,
                index=index,
            ))

        if option.kind is Kind.BOOLEAN:
            return self.fail(FlagAssignmentError(
                "invalid flag usage at %s position: option '--%s' does not expect an argument" % (
                    ordinal(index), option.long
                ),
                title="flag cannot take a value",
                code=FaultCode.FLAG_ASSIGNMENT,
                hint="remove everything from '=' (for example: %s)" % key,
                option=option,
                token=token,
                index=index,
            ))

        if option.kind is Kind.STRING and not value:
            self.parser.trigger(EmptyValueWarning(
                "empty inline value for option '--%s' at %s position" % (option.long, ordinal(index)),
                title="empty inline value",
                code=FaultCode.EMPTY_VALUE,
                hint="add a value after '=' (for example: %s=<%s>)" % (key, option.metavar or option.long),
                option=option,
                token=token,
                index=index,
            ), prog=self.prog)

        self.store(option, value, index)

    def positional(self, token, index):
        for option in self.reachable():
            if option.positional and option.long not in self.matched:
                logger.debug("positional %r fills %r", token, option.long)
                return self.store(option, token, index)

        self.fail(ExcessPositionalError(
            "excess positional argument %r at %s position" % (token, ordinal(index)),
            title="excess positional argument",
            code=FaultCode.EXCESS_POSITIONAL,
            hint=self.more(),
            token=token,
            index=index,
        ))

    def terminate(self, index):
        remaining = self.argv[index + 1:]
        slots = [option for option in self.reachable() if option.positional and option.long not in self.matched]
        logger.debug("terminator at index %d, %d tokens for %d positionals", index, len(remaining), len(slots))

        if len(remaining) != len(slots):
            many = len(remaining) > len(slots)
            return self.fail((TooManyPositionalsError if many else TooFewPositionalsError)(
                "too %s positional arguments after %r at %s position: expected %d got %d" % (
                    "many" if many else "few", self.argv[index], ordinal(index), len(slots), len(remaining)
                ),
                title="too %s positional arguments" % ("many" if many else "few"),
                code=FaultCode.TOO_MANY_POSITIONALS if many else FaultCode.TOO_FEW_POSITIONALS,
                hint=self.more(),
                token=self.argv[index],
                index=index,
                expected=len(slots),
                got=len(remaining),
            ))

        for offset, (option, token) in enumerate(zip(slots, remaining), start=index + 1):
            self.store(option, token, offset)

    def check(self):
        logger.debug("checking for unmatched required options")
        for option in self.reachable():
            if option.required and option.long not in self.matched:
                return self.fail(MissingRequiredError(
                    "missing required argument '--%s'" % option.long,
                    title="missing required argument",
                    code=FaultCode.MISSING_REQUIRED,
                    hint=self.more(),
                    option=option,
                ))

    def run(self):
        self.resolve()
        self.prescan()

        index = 2 if self.command is not None else 1
        while index < len(self.argv):
            token = self.argv[index]
            kind = classify(token)
            logger.debug("matching %r at index %d as %s", token, index, kind.value)

            match kind:
                case TokenKind.TERMINATOR:
                    self.terminate(index)
                    break
                case TokenKind.EQUALS:
                    self.equals(token, index)
                case TokenKind.LONG | TokenKind.SHORT:
                    index = self.named(token, index)
                case TokenKind.BUNDLED:
                    self.fail(UnsupportedBundledShortFormError(
                        "multiple shorthand options at once are not yet supported (%r at %s position)" % (
                            token, ordinal(index)
                        ),
                        title="bundled short options",
                        code=FaultCode.BUNDLED_SHORT_FORM,
                        hint="pass them one by one (for example: %s)" % " ".join("-" + char for char in token[1:4]),
                        token=token,
                        index=index,
                    ))
                case TokenKind.POSITIONAL:
                    self.positional(token, index)
            index += 1

        self.check()

        values = {
            option.long: self.values.get(option.long, option.default)
            for option in self.reachable()
        }
        logger.debug("done, matched %s", sorted(self.matched))
        return ParseResult(values, self.matched, self.command, self.active)


class Parser:
    """
    Reusable argument parser over immutable descriptor tables.

    Parameters
    - options: iterable of Option descriptors (see optable.options builders).
    - commands: iterable of Command descriptors (first-level subcommands).
    - examples: iterable of Example descriptors shown in help.

    Configuration (keyword-only)
    - prog: program name used in messages and help; defaults to argv[0].
    - descr: one paragraph shown in help under the usage lines.
    - stream: text stream for help and rendered faults (sys.stderr when None).
    - max_length: maximum string value length, None disables the check (1024).
    - hexadecimal / binary: accept 0x / 0b integers (both True).
    - help_descr: description of the built-in -h/--help option.
    - shell: report-and-exit instead of raising.
    - colorful / fancy: styled output and panel chrome for help and faults.

    Tables are validated once here; a malformed table raises ConfigurationError.
    """

    options = mirror("options")
    commands = mirror("commands")
    examples = mirror("examples")
    prog = mirror("prog")
    descr = mirror("descr")
    max_length = mirror("max_length")
    hexadecimal = mirror("hexadecimal")
    binary = mirror("binary")
    help_descr = mirror("help_descr")
    shell = mirror("shell")
    colorful = mirror("colorful")
    fancy = mirror("fancy")

    def __init__(
            self,
            options,
            commands=(),
            examples=(),
            /,
            *,
            prog=None,
            descr=None,
            stream=None,
            max_length=1024,
            hexadecimal=True,
            binary=True,
            help_descr="Show this help menu",
            shell=False,
            colorful=False,
            fancy=False
    ):
        if not isinstance(prog, str | None):
            raise TypeError("parser 'prog' must be a string")
        if not isinstance(descr, str | None):
            raise TypeError("parser 'descr' must be a string")
        if not isinstance(help_descr, str):
            raise TypeError("parser 'help_descr' must be a string")
        if max_length is not None:
            if not isinstance(max_length, int) or isinstance(max_length, bool):
                raise TypeError("parser 'max_length' must be an integer or None")
            if max_length < 0:
                raise ValueError("parser 'max_length' cannot be negative")

        logger.debug("validating descriptor tables")
        self._options, self._commands, self._examples = validate(options, commands, examples)
        self._prog = prog
        self._descr = descr
        self.stream = stream
        self._max_length = max_length
        self._hexadecimal = bool(hexadecimal)
        self._binary = bool(binary)
        self._help_descr = help_descr
        self._shell = bool(shell)
        self._colorful = bool(colorful)
        self._fancy = bool(fancy)

    def find(self, name, /):
        """Return the option whose long name is the given one, or None."""
        return next((option for option in self._options if option.long == name), None)

    def help(self, command=None, /, *, prog=Unset):
        """Render help for the root (None) or the named command to the configured stream."""
        if command is not None and not any(candidate.name == command for candidate in self._commands):
            raise ValueError("unknown command %r" % command)
        render_help(
            self._options,
            self._commands,
            self._examples,
            command=command,
            prog=coalesce(prog, self._prog) or sys.argv[0],
            descr=self._descr,
            help_descr=self._help_descr,
            stream=self.stream,
            colorful=self._colorful,
            fancy=self._fancy,
        )

    def trigger(self, fault, /, **options):
        trigger(
            fault,
            **{"prog": self._prog} | options,
            shell=self._shell,
            fancy=self._fancy,
            colorful=self._colorful,
            stream=self.stream,
        )

    def parse(self, argv=Unset, /):
        """
        Parse one invocation and return its ParseResult.

        argv holds the program name first. It may be a list of strings, a single
        shell-like string (split with shlex) or omitted to use sys.argv.
        """
        if argv is Unset:
            argv = sys.argv
        elif isinstance(argv, str):
            argv = shlex.split(argv)
        argv = list(argv)
        if not all(isinstance(token, str) for token in argv):
            raise TypeError("parse() argument must hold only strings")
        if not argv:
            raise ValueError("parse() argument must hold at least the program name")
        return _Run(self, argv).run()

    def __repr__(self):
        return "parser(options=%d, commands=%r)" % (len(self._options), [command.name for command in self._commands])


def parse_opts(options, commands=(), examples=(), argv=Unset, /, **config):
    """
    One-shot parse in shell mode: user errors are reported and exit with status 1,
    help exits with status 0.

    >>> result = parse_opts([optable.flag("verbose", short=True)], (), (), ["prog", "-v"])
    >>> result["verbose"]
    True
    """
    config.setdefault("shell", True)
    return Parser(options, commands, examples, **config).parse(argv)


__all__ = (
    "Parser",
    "ParseResult",
    "parse_opts",
)
