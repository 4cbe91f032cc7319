"""
Diagnostics for getoptx.

Malformed command lines never abort a scan. Each problem is recorded as a
Diagnostic on the parse result and, unless muted, written to an error stream
in the classic getopt form ``<progname>: <message> -- <token>``.
"""

import enum
import sys
from dataclasses import dataclass
from typing import Optional, TextIO


class GetoptError(Exception):
    """Structural failure that prevents matching from starting at all."""

    def __init__(self, msg: str, opt: str = "") -> None:
        self.msg = msg
        self.opt = opt
        super().__init__(msg, opt)

    def __str__(self) -> str:
        return self.msg


class ErrorKind(enum.Enum):
    """Recoverable problems found while matching arguments."""

    ILLEGAL_OPTION = "illegal-option"
    AMBIGUOUS_ABBREVIATION = "ambiguous-abbreviation"
    MISSING_REQUIRED_VALUE = "missing-required-value"
    INVALID_BOOLEAN_LITERAL = "invalid-boolean-literal"

    @property
    def message(self) -> str:
        return _MESSAGES[self]


_MESSAGES = {
    ErrorKind.ILLEGAL_OPTION: "illegal option",
    # No canonical name can be chosen, so it reads like an unknown option.
    ErrorKind.AMBIGUOUS_ABBREVIATION: "illegal option",
    ErrorKind.MISSING_REQUIRED_VALUE: "option requires a parameter",
    ErrorKind.INVALID_BOOLEAN_LITERAL: "option requires a boolean parameter",
}


@dataclass(frozen=True)
class Diagnostic:
    """One recoverable matching problem."""

    kind: ErrorKind
    token: str

    def format(self, progname: str) -> str:
        return f"{progname}: {self.kind.message} -- {self.token}"


class Reporter:
    """
    Write diagnostics to an error stream.

    Args:
        name: Program name prefixed to every line.
        stream: Destination stream. Defaults to sys.stderr at write time so
            that redirections made after construction are honored.
        muted: When True nothing is written.
    """

    def __init__(
        self,
        name: str = "getoptx",
        stream: Optional[TextIO] = None,
        muted: bool = False,
    ) -> None:
        self.name = name
        self.stream = stream
        self.muted = muted

    def report(self, diagnostic: Diagnostic) -> None:
        if self.muted:
            return
        stream = self.stream if self.stream is not None else sys.stderr
        print(diagnostic.format(self.name), file=stream)
