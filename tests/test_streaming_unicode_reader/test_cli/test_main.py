"""Tests for the CLI main module."""

import json
import logging
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from streaming_unicode_reader.cli.main import (
    EXIT_FAILURE,
    EXIT_INTERRUPTED,
    EXIT_OK,
    CLIConfig,
    PACKAGE_LOGGER,
    build_config,
    configure_logging,
    create_argument_parser,
    format_results,
    inspect_paths,
    main,
)
from streaming_unicode_reader.shared.config import ConfigError


@pytest.fixture(autouse=True)
def restore_package_level():
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    level = package_logger.level
    yield
    package_logger.setLevel(level)


@pytest.fixture
def utf16_file(tmp_path):
    path = tmp_path / "utf16.txt"
    path.write_bytes(b"\xff\xfe" + "héllo\n".encode("utf-16-le"))
    return path


@pytest.fixture
def broken_file(tmp_path):
    path = tmp_path / "broken.txt"
    path.write_bytes(b"fine\xc0\x80")
    return path


class TestCLIConfig:
    """Test CLI configuration management."""

    def test_default_config(self):
        """Test default configuration values."""
        config = CLIConfig()

        assert config.reader_config.name == "balanced"
        assert config.output_format == "text"
        assert config.verbose is False
        assert config.quiet is False

    def test_config_from_file(self):
        """Test loading configuration from file."""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
            json.dump({
                "preset": "xml",
                "output_format": "json",
            }, f)
            config_path = Path(f.name)

        try:
            config = CLIConfig.from_file(config_path)
            assert config.reader_config.content_policy == "xml10"
            assert config.output_format == "json"
        finally:
            config_path.unlink()

    def test_config_with_reader_section(self, tmp_path):
        """Test a full reader configuration in the file."""
        path = tmp_path / "cli.json"
        path.write_text(json.dumps({"reader": {"buffers": {"raw_buffer_size": 64}}}))

        config = CLIConfig.from_file(path)

        assert config.reader_config.buffers.raw_buffer_size == 64

    def test_config_from_nonexistent_file(self):
        """Test handling non-existent config file."""
        config = CLIConfig.from_file(Path("nonexistent.json"))

        assert config.output_format == "text"

    def test_config_invalid_json(self, tmp_path):
        """Test malformed files are configuration errors."""
        path = tmp_path / "bad.json"
        path.write_text("{oops")

        with pytest.raises(ConfigError, match="Could not load config file"):
            CLIConfig.from_file(path)

    def test_config_unknown_preset(self, tmp_path):
        """Test unknown presets in the file are rejected."""
        path = tmp_path / "preset.json"
        path.write_text(json.dumps({"preset": "turbo"}))

        with pytest.raises(ConfigError, match="Unknown preset 'turbo'"):
            CLIConfig.from_file(path)


class TestArgumentParser:
    """Test argument parsing."""

    def test_create_parser(self):
        """Test parser creation."""
        parser = create_argument_parser()

        assert parser.prog == "unicode-reader"

    def test_decode_command(self):
        """Test decode command arguments."""
        args = create_argument_parser().parse_args(["decode", "in.txt", "-o", "out.txt"])

        assert args.command == "decode"
        assert args.path == Path("in.txt")
        assert args.output == Path("out.txt")

    def test_global_options(self):
        """Test options that shape the reader configuration."""
        args = create_argument_parser().parse_args(
            ["--preset", "low_memory", "--buffer-size", "64", "--policy", "xml10",
             "inspect", "a.txt", "b.txt", "-f", "json"]
        )

        config = build_config(args)

        assert args.paths == [Path("a.txt"), Path("b.txt")]
        assert config.reader_config.buffers.raw_buffer_size == 64
        assert config.reader_config.content_policy == "xml10"
        assert config.reader_config.name == "low_memory"
        assert config.output_format == "json"

    def test_invalid_buffer_size(self):
        """Test invalid overrides are configuration errors."""
        args = create_argument_parser().parse_args(["--buffer-size", "1", "validate", "a"])

        with pytest.raises(ConfigError, match="raw_buffer_size"):
            build_config(args)


class TestInspectPaths:
    """Test per-file inspection."""

    def test_mixed_results(self, utf16_file, broken_file, tmp_path):
        """Test good, broken and missing files each get an entry."""
        # Act
        results = inspect_paths([utf16_file, broken_file, tmp_path / "missing"], CLIConfig())

        # Assert
        good, broken, missing = results
        assert good["success"] is True
        assert good["encoding"] == "utf-16-le"
        assert good["scalar_count"] == 6
        assert broken["success"] is False
        assert broken["error"]["offset"] == 4
        assert missing["error"]["kind"] == "FileNotFound"

    @patch("streaming_unicode_reader.cli.main.inspect")
    def test_unreadable_file_is_logged(self, mock_inspect, utf16_file, caplog):
        """Test open failures become entries and warnings naming the file."""
        # Arrange
        mock_inspect.side_effect = PermissionError("denied")
        caplog.set_level(logging.WARNING, logger=PACKAGE_LOGGER)

        # Act
        results = inspect_paths([utf16_file], CLIConfig())

        # Assert
        assert results[0]["error"] == {"kind": "OSError", "message": "denied"}
        record = next(r for r in caplog.records if r.getMessage() == "Could not open file")
        assert record.file == str(utf16_file)
        assert record.component == "cli"
        assert record.error == "denied"


class TestFormatResults:
    """Test result formatting."""

    def test_format_json(self, utf16_file):
        """Test JSON formatting."""
        results = inspect_paths([utf16_file], CLIConfig())

        parsed = json.loads(format_results(results, "json"))

        assert parsed[0]["file"] == str(utf16_file)
        assert parsed[0]["bom_length"] == 2

    def test_format_text(self, utf16_file, broken_file):
        """Test text formatting."""
        results = inspect_paths([utf16_file, broken_file], CLIConfig())

        output = format_results(results, "text")

        assert "Inspected 2 files, 1 decoded cleanly" in output
        assert "Encoding: utf-16-le (with BOM)" in output
        assert "Error: invalid sequence length at offset 4" in output

    def test_format_empty_results(self):
        """Test formatting empty results."""
        assert format_results([], "text") == "No results to display."


class TestConfigureLogging:
    """Test how the CLI applies log levels."""

    def test_configured_level_applies_without_flags(self):
        """Test the reader configuration sets the package level."""
        config = CLIConfig()
        config.reader_config = config.reader_config.override(logging_level="WARNING")

        assert configure_logging(config) == "WARNING"
        assert logging.getLogger(PACKAGE_LOGGER).level == logging.WARNING

    def test_flags_override_configured_level(self):
        """Test -v and -q win over the configured level."""
        config = CLIConfig()
        config.reader_config = config.reader_config.override(logging_level="CRITICAL")
        config.verbose = True

        assert configure_logging(config) == "DEBUG"

        config.verbose = False
        config.quiet = True
        assert configure_logging(config) == "ERROR"
        assert logging.getLogger(PACKAGE_LOGGER).level == logging.ERROR

    def test_level_from_config_file(self, tmp_path, utf16_file):
        """Test a logging_level in the config file reaches the package logger."""
        config_path = tmp_path / "cli.json"
        config_path.write_text(json.dumps({"reader": {"logging_level": "DEBUG"}}))

        result = main(["--config", str(config_path), "validate", str(utf16_file)])

        assert result == EXIT_OK
        assert logging.getLogger(PACKAGE_LOGGER).level == logging.DEBUG


class TestMain:
    """Test the main entry point."""

    def test_main_no_args(self, capsys):
        """Test running without a command prints help and fails."""
        assert main([]) == EXIT_FAILURE
        assert "unicode-reader" in capsys.readouterr().out

    def test_decode_to_stdout(self, utf16_file, capsys):
        """Test decoding writes UTF-8 text to stdout."""
        assert main(["decode", str(utf16_file)]) == EXIT_OK
        assert capsys.readouterr().out == "héllo\n"

    def test_decode_to_file(self, utf16_file, tmp_path):
        """Test decoding into an output file."""
        output = tmp_path / "out.txt"

        assert main(["-q", "decode", str(utf16_file), "-o", str(output)]) == EXIT_OK
        assert output.read_bytes() == "héllo\n".encode("utf-8")

    def test_decode_invalid_file(self, broken_file, capsys):
        """Test decode errors are reported on stderr."""
        result = main(["decode", str(broken_file)])

        captured = capsys.readouterr()
        assert result == EXIT_FAILURE
        assert "invalid sequence length at offset 4" in captured.err
        assert captured.out == "fine"

    def test_decode_missing_file(self, tmp_path, capsys):
        """Test a missing input file."""
        assert main(["decode", str(tmp_path / "nope.txt")]) == EXIT_FAILURE
        assert "File not found" in capsys.readouterr().err

    def test_inspect_json(self, utf16_file, capsys):
        """Test inspect with JSON output."""
        assert main(["inspect", str(utf16_file), "-f", "json"]) == EXIT_OK

        parsed = json.loads(capsys.readouterr().out)
        assert parsed[0]["encoding"] == "utf-16-le"

    def test_validate_exit_codes(self, utf16_file, broken_file, capsys):
        """Test validate fails when any file is invalid."""
        assert main(["validate", str(utf16_file)]) == EXIT_OK
        assert main(["validate", str(utf16_file), str(broken_file)]) == EXIT_FAILURE

        output = capsys.readouterr().out
        assert "Validated 2 files, 1 valid" in output

    def test_validate_json(self, broken_file, capsys):
        """Test validate with JSON output."""
        main(["validate", str(broken_file), "--format", "json"])

        parsed = json.loads(capsys.readouterr().out)
        assert parsed[0]["valid"] is False
        assert parsed[0]["error"]["reason"] == "INVALID_SEQUENCE_LENGTH"

    def test_policy_option(self, tmp_path, capsys):
        """Test the policy option changes what validates."""
        path = tmp_path / "del.txt"
        path.write_bytes(b"a\x7fb")

        assert main(["validate", str(path)]) == EXIT_FAILURE
        assert main(["--policy", "xml10", "validate", str(path)]) == EXIT_OK

    def test_configuration_error(self, tmp_path, capsys):
        """Test configuration errors are reported and fail."""
        config_path = tmp_path / "bad.json"
        config_path.write_text("[1, 2]")

        result = main(["--config", str(config_path), "validate", "x"])

        assert result == EXIT_FAILURE
        assert "Configuration error" in capsys.readouterr().err

    @patch("streaming_unicode_reader.cli.main.cmd_validate")
    def test_keyboard_interrupt(self, mock_validate, capsys):
        """Test interruption exits with the conventional code."""
        mock_validate.side_effect = KeyboardInterrupt

        assert main(["validate", "x"]) == EXIT_INTERRUPTED
        assert "interrupted" in capsys.readouterr().err
