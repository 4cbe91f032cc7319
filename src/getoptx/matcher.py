"""
Argument matcher.

Scans an argument vector against a compiled OptionTable and produces a
ParseResult: the resolved options, then the positional arguments. Problems
in the argument vector never stop the scan; they show up as ``-?`` entries
in the options and as diagnostics.
"""

import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Iterable, NamedTuple, Optional, TextIO

from .dressing import dress
from .errors import Diagnostic, ErrorKind, Reporter
from .grammar import (
    LookupOutcome,
    OptionKind,
    OptionSpec,
    OptionTable,
    compile_optstring,
)

logger = logging.getLogger(__name__)

SENTINEL = "-"
ERROR_DISPLAY = "-?"

TRUTHY = frozenset({"1", "t", "j", "y", "on", "yes", "true", "ja", "oui", "si"})
FALSY = frozenset({"0", "f", "n", "no", "off", "false", "nein", "non"})


def parse_boolean(text: str) -> Optional[bool]:
    """Parse a boolean literal case-insensitively, None if unrecognized."""
    lowered = text.lower()
    if lowered in TRUTHY:
        return True
    if lowered in FALSY:
        return False
    return None


@dataclass(frozen=True)
class ResolvedOption:
    """
    One entry of the resolved options.

    Attributes:
        display: Canonical option string, or ``-?`` for an error marker.
        value: Value to print after the option, None for flags.
        values: Raw words the value was built from.
        variadic: Whether the value joins several words. Each word is
            quoted on its own before the joined value is quoted.
    """

    display: str
    value: Optional[str] = None
    values: tuple[str, ...] = ()
    variadic: bool = field(default=False, compare=False)

    @property
    def is_error(self) -> bool:
        return self.display == ERROR_DISPLAY

    def tokens(self, dresser: Callable[[str], str] = dress) -> list[str]:
        if self.value is None:
            return [self.display]
        if self.variadic:
            joined = " ".join(dresser(word) for word in self.values)
            return [self.display, dresser(joined)]
        return [self.display, dresser(self.value)]


@dataclass
class ParseResult:
    """Resolved options, positional arguments and the diagnostics raised."""

    options: list[ResolvedOption] = field(default_factory=list)
    arguments: list[str] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return any(option.is_error for option in self.options)

    def tokens(self, dresser: Callable[[str], str] = dress) -> list[str]:
        words = []
        for option in self.options:
            words.extend(option.tokens(dresser))
        words.append("--")
        words.extend(dresser(argument) for argument in self.arguments)
        return words

    def render(self, dresser: Callable[[str], str] = dress) -> str:
        """
        Build the output line.

        The options and the ``--`` separator are joined by spaces, then a
        space, then the positional arguments. With no positional arguments
        the line therefore ends in ``"-- "``.
        """
        line = " ".join(self.tokens(dresser))
        return line if self.arguments else line + " "


class _Token(NamedTuple):
    text: str
    # Remainder of a bundled short cluster, always matched as short options.
    synthetic: bool = False


@dataclass
class MatchContext:
    """All state of one scan."""

    table: OptionTable
    reporter: Reporter
    pending: deque = field(default_factory=deque)
    result: ParseResult = field(default_factory=ParseResult)

    def take_value(self) -> Optional[str]:
        """Consume the next token if it can serve as an option value."""
        if not self.pending:
            return None
        token = self.pending[0]
        if token.synthetic or token.text.startswith("-"):
            return None
        self.pending.popleft()
        return token.text

    def push_cluster(self, rest: str) -> None:
        self.pending.appendleft(_Token("-" + rest, synthetic=True))

    def emit(
        self,
        display: str,
        value: Optional[str] = None,
        values: tuple[str, ...] = (),
        variadic: bool = False,
    ) -> None:
        self.result.options.append(ResolvedOption(display, value, values, variadic))

    def fail(self, kind: ErrorKind, token: str) -> None:
        diagnostic = Diagnostic(kind, token)
        logger.debug("%s: %s", kind.name, token)
        self.result.options.append(ResolvedOption(ERROR_DISPLAY, token))
        self.result.diagnostics.append(diagnostic)
        self.reporter.report(diagnostic)


def _take_values(ctx: MatchContext, spec: OptionSpec, inline: Optional[str]) -> None:
    quantifier = spec.quantifier
    words = []
    if inline is None:
        inline = ctx.take_value()
    if inline is not None:
        words.append(inline)

    if quantifier.is_variadic:
        while True:
            word = ctx.take_value()
            if word is None:
                break
            words.append(word)

    if not words:
        if quantifier.is_required:
            ctx.fail(ErrorKind.MISSING_REQUIRED_VALUE, spec.display)
        ctx.emit(spec.display, SENTINEL)
    elif quantifier.is_variadic:
        joined = " ".join(dress(word) for word in words)
        ctx.emit(spec.display, joined, tuple(words), variadic=True)
    else:
        ctx.emit(spec.display, words[0], (words[0],))


def _emit_boolean(
    ctx: MatchContext, spec: OptionSpec, text: str, shorthand: bool = False
) -> None:
    if shorthand and text in ("+", "-"):
        state = text == "+"
    else:
        state = parse_boolean(text)

    if state is None:
        ctx.fail(ErrorKind.INVALID_BOOLEAN_LITERAL, spec.display)
        return
    ctx.emit(spec.display, "true" if state else "false")


def _match_long(ctx: MatchContext, body: str) -> None:
    name, sep, inline = body.partition("=")
    inline_value = inline if sep else None

    lookup = ctx.table.lookup_long(name)
    spec = lookup.spec
    if inline_value is None and lookup.outcome is not LookupOutcome.EXACT:
        negated = ctx.table.find_negated(name)
        if negated is not None:
            logger.debug("--%s negates %s", name, negated.display)
            spec, inline_value = negated, "false"

    if spec is None:
        if lookup.outcome is LookupOutcome.AMBIGUOUS:
            ctx.fail(ErrorKind.AMBIGUOUS_ABBREVIATION, "--" + name)
        else:
            ctx.fail(ErrorKind.ILLEGAL_OPTION, "--" + name)
        return

    if spec.kind is OptionKind.VALUED:
        _take_values(ctx, spec, inline_value)
    elif spec.kind is OptionKind.BOOLEAN:
        _emit_boolean(ctx, spec, "true" if inline_value is None else inline_value)
    else:
        if inline_value is not None:
            logger.debug(
                "Ignoring value %r given to flag %s", inline_value, spec.display
            )
        ctx.emit(spec.display)


def _match_short(ctx: MatchContext, cluster: str) -> None:
    char, rest = cluster[1], cluster[2:]
    spec = ctx.table.find_short(char)
    if spec is None:
        ctx.fail(ErrorKind.ILLEGAL_OPTION, "-" + char)
        return

    if spec.kind is OptionKind.VALUED:
        if not rest:
            _take_values(ctx, spec, None)
            return
        value = rest[1:] if rest.startswith("=") else rest
        if value:
            _take_values(ctx, spec, value)
        else:
            ctx.emit(spec.display, SENTINEL)
    elif spec.kind is OptionKind.BOOLEAN:
        if not rest:
            _emit_boolean(ctx, spec, "true")
        else:
            text = rest[1:] if rest.startswith("=") else rest
            _emit_boolean(ctx, spec, text, shorthand=True)
    else:
        ctx.emit(spec.display)
        if rest:
            ctx.push_cluster(rest)


def match(
    table: OptionTable,
    args: Iterable[str],
    quiet: bool = False,
    name: str = "getoptx",
    stream: Optional[TextIO] = None,
) -> ParseResult:
    """
    Match an argument vector against a compiled table.

    Args:
        table: Compiled option table.
        args: Arguments to scan, without the program name.
        quiet: Suppress diagnostics. A table compiled from an optstring
            starting with ``:`` is always quiet.
        name: Program name used in diagnostics.
        stream: Where diagnostics go. Defaults to sys.stderr.

    Returns:
        ParseResult: Options and positional arguments in input order.
    """
    reporter = Reporter(name=name, stream=stream, muted=quiet or table.silent_errors)
    ctx = MatchContext(
        table=table,
        reporter=reporter,
        pending=deque(_Token(arg) for arg in args),
    )

    while ctx.pending:
        token = ctx.pending.popleft()
        text = token.text
        if token.synthetic:
            _match_short(ctx, text)
        elif text in ("--", "-"):
            logger.debug("Option scan stopped at %r", text)
            break
        elif text.startswith("--"):
            _match_long(ctx, text[2:])
        elif text.startswith("-"):
            _match_short(ctx, text)
        else:
            ctx.result.arguments.append(text)

    ctx.result.arguments.extend(token.text for token in ctx.pending)
    ctx.pending.clear()
    return ctx.result


def getopt(
    optstring: str,
    args: Iterable[str],
    quiet: bool = False,
    name: str = "getoptx",
    stream: Optional[TextIO] = None,
) -> ParseResult:
    """Compile `optstring` and match `args` against it in one call."""
    table = compile_optstring(optstring)
    return match(table, args, quiet=quiet, name=name, stream=stream)
