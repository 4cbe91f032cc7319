"""
Optstring grammar compiler.

An optstring declares every option a command accepts in one compact string::

    ":v|verbose!,o|output:,I:*, |dry-run x::"

Each entry is an identifier (a short character, a ``|long`` name, or both)
followed by an optional sigil:

    ""      flag, takes no value
    "!"     boolean, takes an optional true/false value
    ":"     requires exactly one value
    "::"    optional single value (also ":?")
    ":*"    zero or more values
    ":+"    one or more values

Entries may be separated by nothing, commas or whitespace. A leading ``:``
silences diagnostics. The compiler is tolerant: anything that does not fit
the grammar is skipped and never raises.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import NamedTuple, Optional

from result import Err, Ok, Result

from .errors import GetoptError

logger = logging.getLogger(__name__)

_LONG_TAIL = frozenset("_-")


class OptionKind(enum.Enum):
    FLAG = "flag"
    BOOLEAN = "boolean"
    VALUED = "valued"


class Quantifier(enum.Enum):
    """How many values a valued option consumes."""

    REQUIRED_SINGLE = ":"
    OPTIONAL_SINGLE = "::"
    ZERO_OR_MORE = ":*"
    ONE_OR_MORE = ":+"

    @property
    def is_variadic(self) -> bool:
        return self in (Quantifier.ZERO_OR_MORE, Quantifier.ONE_OR_MORE)

    @property
    def is_required(self) -> bool:
        return self in (Quantifier.REQUIRED_SINGLE, Quantifier.ONE_OR_MORE)


@dataclass(frozen=True)
class OptionSpec:
    """
    One option declared in an optstring.

    Attributes:
        short: Single alphanumeric character, or None.
        long: Long name, or None. Starts alphanumeric, then alphanumerics,
            ``_`` or ``-``.
        kind: Whether the option is a flag, a boolean or takes values.
        quantifier: Value arity, set only for valued options.
    """

    short: Optional[str] = None
    long: Optional[str] = None
    kind: OptionKind = OptionKind.FLAG
    quantifier: Optional[Quantifier] = None

    def __post_init__(self) -> None:
        if self.short is None and self.long is None:
            raise ValueError("An option needs a short character or a long name")
        if (self.kind is OptionKind.VALUED) != (self.quantifier is not None):
            raise ValueError(
                f"Quantifier {self.quantifier} does not fit "
                f"option kind {self.kind.value}"
            )

    @property
    def display(self) -> str:
        """Canonical form used in the output stream."""
        if self.long is not None:
            return f"--{self.long}"
        return f"-{self.short}"


class LookupOutcome(enum.Enum):
    EXACT = "exact"
    PREFIX = "prefix"
    AMBIGUOUS = "ambiguous"
    UNKNOWN = "unknown"


class LongLookup(NamedTuple):
    spec: Optional[OptionSpec]
    outcome: LookupOutcome


@dataclass
class OptionTable:
    """
    Ordered collection of OptionSpec with short and long indexes.

    Short characters and long names are unique. When a later declaration
    reuses either, it is dropped and the first one wins.
    """

    specs: list[OptionSpec] = field(default_factory=list)
    silent_errors: bool = False
    _by_short: dict[str, OptionSpec] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )
    _by_long: dict[str, OptionSpec] = field(
        default_factory=dict, init=False, repr=False, compare=False
    )

    def __post_init__(self) -> None:
        declared, self.specs = self.specs, []
        for spec in declared:
            self.add(spec)

    def __len__(self) -> int:
        return len(self.specs)

    def __iter__(self):
        return iter(self.specs)

    def add(self, spec: OptionSpec) -> bool:
        """Add `spec` unless it clashes with an earlier declaration."""
        if spec.short is not None and spec.short in self._by_short:
            logger.info("Ignoring duplicate short option -%s", spec.short)
            return False
        if spec.long is not None and spec.long in self._by_long:
            logger.info("Ignoring duplicate long option --%s", spec.long)
            return False

        self.specs.append(spec)
        if spec.short is not None:
            self._by_short[spec.short] = spec
        if spec.long is not None:
            self._by_long[spec.long] = spec
        return True

    def find_short(self, char: str) -> Optional[OptionSpec]:
        return self._by_short.get(char)

    def lookup_long(self, name: str) -> LongLookup:
        """
        Resolve a possibly abbreviated long name.

        An exact name always wins. Otherwise `name` must be a prefix of
        exactly one declared long name. The empty name never resolves.
        """
        if not name:
            return LongLookup(None, LookupOutcome.UNKNOWN)

        exact = self._by_long.get(name)
        if exact is not None:
            return LongLookup(exact, LookupOutcome.EXACT)

        candidates = [
            spec
            for spec in self.specs
            if spec.long is not None and spec.long.startswith(name)
        ]
        if len(candidates) == 1:
            return LongLookup(candidates[0], LookupOutcome.PREFIX)
        if candidates:
            logger.debug(
                "--%s is ambiguous: %s",
                name,
                ", ".join(spec.display for spec in candidates),
            )
            return LongLookup(None, LookupOutcome.AMBIGUOUS)
        return LongLookup(None, LookupOutcome.UNKNOWN)

    def find_long(self, name: str) -> Optional[OptionSpec]:
        return self.lookup_long(name).spec

    def find_negated(self, name: str) -> Optional[OptionSpec]:
        """Return the boolean option negated by ``no-<name>`` or ``no<name>``."""
        for prefix in ("no-", "no"):
            if not name.startswith(prefix):
                continue
            spec = self.find_long(name[len(prefix) :])
            if spec is not None and spec.kind is OptionKind.BOOLEAN:
                return spec
        return None


def _is_alnum(ch: str) -> bool:
    return ch.isascii() and ch.isalnum()


def _scan_long(text: str, start: int) -> Optional[int]:
    """Return the end index of a long name starting at `start`, if any."""
    if start >= len(text) or not _is_alnum(text[start]):
        return None
    end = start + 1
    while end < len(text) and (_is_alnum(text[end]) or text[end] in _LONG_TAIL):
        end += 1
    if end - start < 2:
        return None
    return end


def _scan_sigil(
    text: str, pos: int
) -> tuple[OptionKind, Optional[Quantifier], int]:
    if pos < len(text) and text[pos] == "!":
        return OptionKind.BOOLEAN, None, pos + 1
    if pos >= len(text) or text[pos] != ":":
        return OptionKind.FLAG, None, pos

    pos += 1
    marker = text[pos] if pos < len(text) else ""
    if marker in (":", "?"):
        return OptionKind.VALUED, Quantifier.OPTIONAL_SINGLE, pos + 1
    if marker == "*":
        return OptionKind.VALUED, Quantifier.ZERO_OR_MORE, pos + 1
    if marker == "+":
        return OptionKind.VALUED, Quantifier.ONE_OR_MORE, pos + 1
    return OptionKind.VALUED, Quantifier.REQUIRED_SINGLE, pos


def _scan_option(text: str, pos: int) -> Optional[tuple[OptionSpec, int]]:
    """Scan one identifier and its sigil starting at `pos`."""
    short = None
    long = None

    if _is_alnum(text[pos]):
        short = text[pos]
        pos += 1

    if pos < len(text) and text[pos] == "|":
        end = _scan_long(text, pos + 1)
        if end is not None:
            long = text[pos + 1 : end]
            pos = end

    if short is None and long is None:
        return None

    kind, quantifier, pos = _scan_sigil(text, pos)
    return OptionSpec(short=short, long=long, kind=kind, quantifier=quantifier), pos


def compile_optstring(optstring: Optional[str]) -> OptionTable:
    """
    Compile an optstring into an OptionTable.

    Args:
        optstring: The option grammar. An empty string yields an empty table.

    Returns:
        OptionTable: Options in declaration order.

    Raises:
        GetoptError: If no optstring was given at all.
    """
    if optstring is None:
        raise GetoptError("missing optstring argument")

    silent = optstring.startswith(":")
    text = optstring[1:] if silent else optstring
    table = OptionTable(silent_errors=silent)

    pos = 0
    while pos < len(text):
        ch = text[pos]
        if ch == "," or ch.isspace():
            pos += 1
            continue

        scanned = _scan_option(text, pos)
        if scanned is None:
            logger.debug("Skipping %r at offset %d of optstring", ch, pos)
            pos += 1
            continue

        spec, pos = scanned
        if table.add(spec):
            logger.debug(
                "Declared %s (%s%s)",
                spec.display,
                spec.kind.value,
                f" {spec.quantifier.value}" if spec.quantifier else "",
            )

    return table


def safe_compile(optstring: Optional[str]) -> Result[OptionTable, str]:
    """
    Compile an optstring without raising.

    Returns:
        Result[OptionTable, str]:
            - Ok with the compiled table,
            - Err with the error message if no optstring was given.
    """
    try:
        return Ok(compile_optstring(optstring))
    except GetoptError as e:
        return Err(str(e))
