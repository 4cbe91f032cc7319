import argparse
import logging
from io import StringIO
from unittest.mock import patch

import pytest

from getoptx import GetoptError, __version__
from getoptx.cli import WrapperArgParser, WrapperConfig, main


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo the handler main() installs on the getoptx logger."""
    yield
    root = logging.getLogger("getoptx")
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(logging.NOTSET)
    root.propagate = True


def run_main(argv):
    """Run main() and return (exit code, stdout, stderr)."""
    with patch("sys.stdout", new_callable=StringIO) as mock_stdout, patch(
        "sys.stderr", new_callable=StringIO
    ) as mock_stderr:
        code = main(argv)
    return code, mock_stdout.getvalue(), mock_stderr.getvalue()


class TestWrapperArgParser:
    """Test suite for building the wrapper's argparse parser."""

    def test_initialization(self):
        wrapper = WrapperArgParser()
        assert wrapper.config_type is WrapperConfig
        assert isinstance(wrapper.parser, argparse.ArgumentParser)

    def test_help_lists_meta_options(self):
        """Test that help text comes from field metadata."""
        wrapper = WrapperArgParser()

        with patch("sys.stdout", new_callable=StringIO) as mock_stdout:
            with pytest.raises(SystemExit):
                wrapper.parser.parse_args(["--help"])
            help_output = mock_stdout.getvalue()

        assert "Optstring to match the parameters against" in help_output
        assert "Program name used in diagnostics" in help_output
        for flag in ("-o", "--options", "-l", "--longoptions", "-n", "--name"):
            assert flag in help_output
        for flag in ("-q", "--quiet", "-f", "-B", "--log-level", "--version"):
            assert flag in help_output

    def test_default_shown_in_help(self):
        wrapper = WrapperArgParser()
        for action in wrapper.parser._actions:
            if action.dest == "name":
                assert (
                    action.help
                    == "Program name used in diagnostics (default: getoptx)"
                )
                break
        else:
            pytest.fail("Could not find the name argument")

    def test_log_level_choices(self):
        wrapper = WrapperArgParser()
        for action in wrapper.parser._actions:
            if action.dest == "log_level":
                assert action.choices == ("WARNING", "INFO", "DEBUG")
                break
        else:
            pytest.fail("Could not find the log_level argument")

    def test_invalid_log_level(self):
        with patch("sys.stderr", new_callable=StringIO):
            with pytest.raises(SystemExit):
                WrapperArgParser().parse(["--log-level", "TRACE", "-o", "a"])

    def test_parse_defaults(self):
        config, parameters = WrapperArgParser().parse(["-o", "ab"])
        assert config == WrapperConfig(options="ab")
        assert config.name == "getoptx"
        assert config.quiet is False
        assert config.longoptions == []
        assert parameters == []

    def test_parse_all_options(self):
        config, parameters = WrapperArgParser().parse(
            ["-q", "-f", "-B", "-n", "prog", "-o", ":ab"]
            + ["-l", "verbose,file:", "--", "-a", "x"]
        )
        assert config.quiet is True
        assert config.noglob is True
        assert config.nobrace is True
        assert config.name == "prog"
        assert config.options == ":ab"
        assert config.longoptions == ["verbose", "file:"]
        assert parameters == ["-a", "x"]

    def test_first_parameter_is_optstring_without_options(self):
        config, parameters = WrapperArgParser().parse(["--", "ab", "-a", "-b"])
        assert config.options == "ab"
        assert parameters == ["-a", "-b"]

    def test_positionals_before_separator(self):
        config, parameters = WrapperArgParser().parse(["ab", "one", "--", "-a"])
        assert config.options == "ab"
        assert parameters == ["one", "-a"]

    def test_words_after_optstring_are_parameters(self):
        """Test that wrapper option parsing stops at the optstring."""
        config, parameters = WrapperArgParser().parse(["ab", "x", "-q"])
        assert config.options == "ab"
        assert config.quiet is False
        assert parameters == ["x", "-q"]

    def test_options_before_optstring_still_apply(self):
        config, parameters = WrapperArgParser().parse(["-q", "ab", "-a", "-n", "p"])
        assert config.quiet is True
        assert config.name == "getoptx"
        assert parameters == ["-a", "-n", "p"]

    def test_repeated_longoptions_accumulate(self):
        config, _ = WrapperArgParser().parse(
            ["-o", "v", "-l", "verbose", "--longoptions", "file:,dir::", "-l", ""]
        )
        assert config.longoptions == ["verbose", "file:", "dir::"]

    def test_only_first_separator_splits(self):
        _, parameters = WrapperArgParser().parse(["-o", "a", "--", "-a", "--", "-a"])
        assert parameters == ["-a", "--", "-a"]

    def test_safe_parse_ok(self):
        result = WrapperArgParser().safe_parse(["-o", "a", "--", "-a"])
        assert result.is_ok()
        config, parameters = result.unwrap()
        assert config.options == "a"
        assert parameters == ["-a"]

    def test_safe_parse_missing_optstring(self):
        result = WrapperArgParser().safe_parse([])
        assert result.is_err()
        assert result.unwrap_err() == "missing optstring argument"

    def test_parse_missing_optstring_exits(self):
        with patch("sys.stderr", new_callable=StringIO) as mock_stderr:
            with pytest.raises(SystemExit) as exc_info:
                WrapperArgParser().parse(["-q"])
        assert exc_info.value.code == 2
        assert "missing optstring argument" in mock_stderr.getvalue()


class TestWrapperConfig:
    """Test suite for assembling the optstring."""

    def test_options_only(self):
        assert WrapperConfig(options="ab:").optstring() == "ab:"

    def test_long_options_appended(self):
        config = WrapperConfig(options="v", longoptions=["verbose", "file:"])
        assert config.optstring() == "v,|verbose,|file:"

    def test_missing_options(self):
        with pytest.raises(GetoptError):
            WrapperConfig().optstring()


class TestMain:
    """Test suite for the getoptx entry point."""

    def test_bundled_flags(self):
        code, stdout, stderr = run_main(["-o", "abc", "--", "-abc"])
        assert code == 0
        assert stdout == "-a -b -c -- \n"
        assert stderr == ""

    def test_gnu_form(self):
        _, stdout, _ = run_main(["--", "v|verbose!", "--no-verbose", "file"])
        assert stdout == "--verbose false -- file\n"

    def test_gnu_form_without_separator(self):
        code, stdout, stderr = run_main(["ab", "-a"])
        assert code == 0
        assert stdout == "-a -- \n"
        assert stderr == ""

    def test_gnu_form_keeps_wrapper_lookalikes(self):
        _, stdout, stderr = run_main(["ab", "x", "-q"])
        assert stdout == "-? -q -- x\n"
        assert stderr == "getoptx: illegal option -- -q\n"

    def test_errors_do_not_change_exit_code(self):
        code, stdout, stderr = run_main(["-o", "a", "--", "-z"])
        assert code == 0
        assert stdout == "-? -z -- \n"
        assert stderr == "getoptx: illegal option -- -z\n"

    def test_program_name(self):
        _, _, stderr = run_main(["-n", "myscript", "-o", "a", "--", "-z"])
        assert stderr == "myscript: illegal option -- -z\n"

    def test_quiet(self):
        _, stdout, stderr = run_main(["-q", "-o", "a", "--", "-z"])
        assert stdout == "-? -z -- \n"
        assert stderr == ""

    def test_long_options(self):
        _, stdout, _ = run_main(
            ["-o", "v", "-l", "verbose,file:", "--", "--verbose", "--file", "x", "-v"]
        )
        assert stdout == "--verbose --file x -v -- \n"

    def test_noglob(self):
        _, stdout, _ = run_main(["-o", "", "--", "*.py"])
        assert stdout == "-- *.py\n"
        _, stdout, _ = run_main(["-f", "-o", "", "--", "*.py"])
        assert stdout == '-- "*.py"\n'

    def test_nobrace(self):
        _, stdout, _ = run_main(["-B", "-o", "", "--", "{a,b}"])
        assert stdout == '-- "{a,b}"\n'

    def test_noglob_reaches_variadic_words(self):
        _, stdout, _ = run_main(["-f", "-o", "x:*", "--", "-x", "*.py", "b"])
        assert stdout == '-x "\\"*.py\\" b" -- \n'

    def test_missing_optstring(self):
        with patch("sys.stderr", new_callable=StringIO) as mock_stderr:
            with pytest.raises(SystemExit) as exc_info:
                main([])
        assert exc_info.value.code == 2
        assert "missing optstring argument" in mock_stderr.getvalue()

    def test_version(self):
        with patch("sys.stdout", new_callable=StringIO) as mock_stdout:
            with pytest.raises(SystemExit) as exc_info:
                main(["-V"])
        assert exc_info.value.code == 0
        assert mock_stdout.getvalue().strip() == f"getoptx {__version__}"

    def test_debug_logging(self):
        _, stdout, stderr = run_main(["--log-level", "DEBUG", "-o", "a", "--", "-a"])
        assert stdout == "-a -- \n"
        assert "getoptx: DEBUG: Compiled 1 option(s), matching 1 parameter(s)" in stderr

    def test_default_log_level_is_silent(self):
        _, _, stderr = run_main(["-o", "a a #", "--", "-a"])
        assert stderr == ""
