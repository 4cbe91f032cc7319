"""
getoptx command-line wrapper.

Usage::

    getoptx [options] [--] [optstring] parameters...

The wrapper's own settings live in the WrapperConfig dataclass. Each field
carries its help text and option strings in its metadata, and
WrapperArgParser turns the fields into argparse arguments. Everything after
the first ``--`` is handed to the matcher untouched. When ``-o`` is not
given, the first parameter is the optstring, and wrapper option parsing
stops there: every word after it is a parameter too.

The matcher's output line goes to stdout. Only words that are empty or hold
whitespace (and, with ``-f``/``-B``, glob or brace characters) are quoted, so
other shell metacharacters such as ``;`` or ``'`` pass through bare. Only
``eval`` the line when the parameters come from a trusted source.
"""

import argparse
import dataclasses
import logging
import sys
import typing
from dataclasses import dataclass, field
from typing import Any, Literal, Optional, Type, Union

from result import Err, Ok, Result

from . import __version__
from .dressing import Dresser
from .errors import GetoptError
from .grammar import compile_optstring
from .matcher import match

_log = logging.getLogger("getoptx")


def _get_optional_inner_type(type_hint: Any) -> Optional[Any]:
    """
    If type_hint is Optional[T] (i.e., Union[T, None]), return T.
    Otherwise, return None.
    """
    origin = getattr(type_hint, "__origin__", None)
    if origin is Union:
        args = type_hint.__args__
        non_none_args = [a for a in args if a is not type(None)]
        if len(non_none_args) == 1 and type(None) in args:
            return non_none_args[0]
    return None


@dataclass
class WrapperConfig:
    """Settings of one getoptx invocation."""

    options: Optional[str] = field(
        default=None,
        metadata={
            "help": "Optstring to match the parameters against",
            "flags": ("-o", "--options"),
        },
    )
    longoptions: list[str] = field(
        default_factory=list,
        metadata={
            "help": "Comma separated long options (name, name:, name::) "
            "added to the optstring; may be repeated",
            "flags": ("-l", "--longoptions"),
        },
    )
    name: str = field(
        default="getoptx",
        metadata={
            "help": "Program name used in diagnostics",
            "flags": ("-n", "--name"),
        },
    )
    quiet: bool = field(
        default=False,
        metadata={"help": "Do not report errors", "flags": ("-q", "--quiet")},
    )
    noglob: bool = field(
        default=False,
        metadata={
            "help": "Also quote words containing glob characters",
            "flags": ("-f",),
        },
    )
    nobrace: bool = field(
        default=False,
        metadata={"help": "Also quote words containing braces", "flags": ("-B",)},
    )
    log_level: Literal["WARNING", "INFO", "DEBUG"] = field(
        default="WARNING",
        metadata={"help": "Threshold for getoptx's own log messages"},
    )

    def optstring(self) -> str:
        """Return the optstring with any long options appended."""
        if self.options is None:
            raise GetoptError("missing optstring argument")
        if not self.longoptions:
            return self.options
        extra = ",".join(f"|{name}" for name in self.longoptions)
        return f"{self.options},{extra}"


class WrapperArgParser:
    """
    Build an argparse parser for the wrapper from a settings dataclass.

    Example:
        wrapper = WrapperArgParser()
        config, parameters = wrapper.parse(["-o", "ab:", "--", "-a", "-b", "1"])
        config.options   # "ab:"
        parameters       # ["-a", "-b", "1"]
    """

    def __init__(self, config_type: Type[Any] = WrapperConfig) -> None:
        self.config_type: Type[Any] = config_type
        self.parser: argparse.ArgumentParser = argparse.ArgumentParser(
            prog="getoptx",
            usage="%(prog)s [options] [--] [optstring] parameters...",
            description="Parse command-line parameters against an optstring.",
        )
        self.parser.add_argument(
            "-V", "--version", action="version", version=f"%(prog)s {__version__}"
        )
        self._add_dataclass_arguments()
        self.parser.add_argument(
            "parameters",
            nargs=argparse.REMAINDER,
            metavar="PARAMETER",
            help="Optstring (without -o) followed by the parameters to parse",
        )

    @staticmethod
    def _parse_list(s: str) -> list[str]:
        """Split a comma separated string into its non-empty items."""
        return [item.strip() for item in s.split(",") if item.strip()]

    def _get_field_default(self, field: dataclasses.Field) -> Any:
        """Extract the default value from a dataclass field."""
        if field.default is not dataclasses.MISSING:
            return field.default
        elif field.default_factory is not dataclasses.MISSING:
            return field.default_factory()
        return None

    def _format_description(self, description: str, default_value: Any) -> str:
        """Append default value info to the field description."""
        if default_value is None or default_value is False or default_value == []:
            return description
        default_suffix = f"(default: {default_value})"
        return f"{description} {default_suffix}" if description else default_suffix

    def _add_dataclass_arguments(self) -> None:
        for field in dataclasses.fields(self.config_type):
            self._add_field_argument(field)

    def _add_field_argument(self, field: dataclasses.Field) -> None:
        """
        Add a CLI argument for a single settings field.

        Every argument defaults to None so that _build_instance can tell an
        option given on the command line from the dataclass default.
        """
        names = field.metadata.get("flags") or (f"--{field.name.replace('_', '-')}",)
        arg_type = field.type if field.type is not dataclasses.MISSING else str

        inner_type = _get_optional_inner_type(arg_type)
        if inner_type is not None:
            arg_type = inner_type

        default_value = self._get_field_default(field)
        description = self._format_description(
            field.metadata.get("help", ""), default_value
        )

        if arg_type is bool:
            self.parser.add_argument(
                *names,
                dest=field.name,
                action="store_true",
                default=None,
                help=description,
            )
            return

        if self._try_add_generic_type_argument(
            names, field.name, arg_type, description
        ):
            return

        self.parser.add_argument(
            *names,
            dest=field.name,
            type=str,
            help=description,
            metavar="STRING",
        )

    def _try_add_generic_type_argument(
        self, names: tuple[str, ...], dest: str, arg_type: Any, description: str
    ) -> bool:
        """
        Try to add an argument for generic types (Literal, List).

        Returns:
            True if the type was handled, False otherwise.
        """
        type_origin = getattr(arg_type, "__origin__", None)

        if type_origin is Literal:
            choices = getattr(arg_type, "__args__", ())
            metavar = "{" + ",".join(str(choice) for choice in choices) + "}"
            self.parser.add_argument(
                *names,
                dest=dest,
                type=str,
                choices=choices,
                help=description,
                metavar=metavar,
            )
            return True

        if type_origin in (list, typing.List):
            # Repeated options accumulate into one list.
            self.parser.add_argument(
                *names,
                dest=dest,
                action="extend",
                type=self._parse_list,
                help=description,
                metavar="LIST",
            )
            return True

        return False

    def _build_instance(self, parsed_args: dict[str, Any]) -> Any:
        """Build the settings dataclass from parsed arguments and defaults."""
        values = {}
        for field in dataclasses.fields(self.config_type):
            value = self._get_field_default(field)
            if parsed_args.get(field.name) is not None:
                value = parsed_args[field.name]
            values[field.name] = value
        return self.config_type(**values)

    def _parse(self, argv: Optional[list[str]]) -> tuple[Any, list[str]]:
        argv = list(sys.argv[1:] if argv is None else argv)
        if "--" in argv:
            split = argv.index("--")
            head, tail = argv[:split], argv[split + 1 :]
        else:
            head, tail = argv, []

        parsed_args = vars(self.parser.parse_args(head))
        parameters = list(parsed_args.pop("parameters") or []) + tail
        config = self._build_instance(parsed_args)

        if config.options is None:
            if not parameters:
                raise GetoptError("missing optstring argument")
            config = dataclasses.replace(config, options=parameters.pop(0))
        return config, parameters

    def safe_parse(
        self, argv: Optional[list[str]] = None
    ) -> Result[tuple[Any, list[str]], str]:
        """
        Parse the wrapper's command line without exiting on a missing optstring.

        argparse still exits on malformed wrapper options.

        Returns:
            Result[tuple[Any, list[str]], str]:
                - Ok with (settings, parameters to match),
                - Err with the error message if no optstring was given.
        """
        try:
            return Ok(self._parse(argv))
        except GetoptError as e:
            return Err(str(e))

    def parse(self, argv: Optional[list[str]] = None) -> tuple[Any, list[str]]:
        """
        Parse the wrapper's command line.

        Args:
            argv: Arguments without the program name. If None, uses sys.argv.

        Returns:
            tuple: The settings dataclass and the parameters to match.

        Raises:
            SystemExit: On usage errors, including a missing optstring.
        """
        result = self.safe_parse(argv)
        if result.is_err():
            self.parser.error(result.unwrap_err())
        return result.unwrap()


def _configure_logging(level: str) -> None:
    """Send getoptx log records at or above `level` to stderr."""
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(name)s: %(levelname)s: %(message)s"))

    root = logging.getLogger("getoptx")
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(getattr(logging, level, logging.WARNING))
    root.propagate = False


def main(argv: Optional[list[str]] = None) -> int:
    """
    Run getoptx and print the normalized parameters.

    Returns:
        int: 0 once the line is printed. Errors in the parameters show up as
        ``-?`` entries in the output, never in the exit status.
    """
    wrapper = WrapperArgParser()
    config, parameters = wrapper.parse(argv)
    _configure_logging(config.log_level)

    table = compile_optstring(config.optstring())
    _log.debug(
        "Compiled %d option(s), matching %d parameter(s)", len(table), len(parameters)
    )

    result = match(table, parameters, quiet=config.quiet, name=config.name)
    print(result.render(Dresser(glob=config.noglob, brace=config.nobrace)))
    return 0
