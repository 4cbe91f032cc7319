"""
getoptx - an extended getopt for shell scripts and programs.

This package compiles a compact option grammar ("optstring") and matches an
argument vector against it, producing a normalized, reparsable token stream
of resolved options followed by positional arguments. It supports short and
long options, unambiguous abbreviations, negated booleans, bundled short
flags, inline ``=value`` syntax and variadic values.
"""

from .errors import Diagnostic, ErrorKind, GetoptError
from .grammar import (
    OptionKind,
    OptionSpec,
    OptionTable,
    Quantifier,
    compile_optstring,
    safe_compile,
)
from .matcher import ParseResult, ResolvedOption, getopt, match

__version__ = "1.0.0"

__all__ = [
    "Diagnostic",
    "ErrorKind",
    "GetoptError",
    "OptionKind",
    "OptionSpec",
    "OptionTable",
    "ParseResult",
    "Quantifier",
    "ResolvedOption",
    "compile_optstring",
    "getopt",
    "match",
    "safe_compile",
]
