"""Main CLI entry point for the unicode-reader command-line tool.

Provides decoding of files to normalized UTF-8, per-file inspection reports
and batch validation with meaningful exit codes.
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from streaming_unicode_reader import __version__
from streaming_unicode_reader.api import inspect, open_reader
from streaming_unicode_reader.character import StreamDecodeError
from streaming_unicode_reader.shared.config import (
    CONTENT_POLICIES,
    PRESETS,
    ConfigError,
    ReaderConfig,
)
from streaming_unicode_reader.shared.logging import get_logger

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INTERRUPTED = 130
PACKAGE_LOGGER = "streaming_unicode_reader"


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self) -> None:
        self.reader_config = ReaderConfig.balanced()
        self.output_format = "text"
        self.verbose = False
        self.quiet = False

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a JSON file.

        The file holds a reader configuration, optionally under a ``"reader"``
        key next to CLI settings such as ``"output_format"`` and ``"preset"``.

        Raises:
            ConfigError: If the file exists but cannot be used
        """
        config = cls()
        if not config_path.exists():
            return config

        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigError(f"Could not load config file {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {config_path} must hold a JSON object")

        preset = data.get("preset")
        if preset is not None:
            if preset not in PRESETS:
                raise ConfigError(f"Unknown preset {preset!r}")
            config.reader_config = PRESETS[preset]()
        if "reader" in data:
            config.reader_config = ReaderConfig.from_dict(data["reader"])
        config.output_format = data.get("output_format", config.output_format)
        return config


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="unicode-reader",
        description="Streaming UTF-8/UTF-16 decoder with strict validation"
    )

    parser.add_argument("--version", action="version", version=__version__)
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file path (JSON)"
    )
    parser.add_argument(
        "--preset",
        choices=sorted(PRESETS),
        help="Reader configuration preset"
    )
    parser.add_argument(
        "--buffer-size",
        type=int,
        help="Raw buffer size in bytes"
    )
    parser.add_argument(
        "--policy",
        choices=list(CONTENT_POLICIES),
        help="Content policy applied to decoded characters"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Quiet output"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    decode_parser = subparsers.add_parser(
        "decode", help="Decode a file and write it as UTF-8"
    )
    decode_parser.add_argument("path", type=Path, help="File to decode")
    decode_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )

    inspect_parser = subparsers.add_parser(
        "inspect", help="Report encoding and decoding statistics"
    )
    inspect_parser.add_argument("paths", nargs="+", type=Path, help="Files to inspect")
    inspect_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        help="Output format"
    )

    validate_parser = subparsers.add_parser(
        "validate", help="Check that files decode cleanly"
    )
    validate_parser.add_argument("paths", nargs="+", type=Path, help="Files to validate")
    validate_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        help="Output format"
    )

    return parser


def build_config(args: argparse.Namespace) -> CLIConfig:
    """Combine the config file, preset and command-line overrides."""
    config = CLIConfig()
    if args.config:
        config = CLIConfig.from_file(args.config)
    if args.preset:
        config.reader_config = PRESETS[args.preset]()

    overrides: Dict[str, Any] = {}
    if args.buffer_size is not None:
        overrides["buffers__raw_buffer_size"] = args.buffer_size
    if args.policy:
        overrides["content_policy"] = args.policy
    if overrides:
        try:
            config.reader_config = config.reader_config.override(**overrides)
        except ValueError as e:
            raise ConfigError(str(e)) from e

    if getattr(args, "format", None):
        config.output_format = args.format
    config.verbose = args.verbose
    config.quiet = args.quiet
    return config


def inspect_paths(paths: List[Path], config: CLIConfig) -> List[Dict[str, Any]]:
    """Inspect each file, turning missing files into error entries."""
    logger = get_logger(__name__, config.reader_config.correlation_id, "cli")
    results = []
    for path in paths:
        if not path.is_file():
            results.append({
                "file": str(path),
                "success": False,
                "error": {"kind": "FileNotFound", "message": "file not found"},
            })
            continue
        try:
            summary = inspect(path, config.reader_config)
        except OSError as e:
            logger.bind(file=str(path)).warning(
                "Could not open file", extra={"error": str(e)}
            )
            results.append({
                "file": str(path),
                "success": False,
                "error": {"kind": "OSError", "message": str(e)},
            })
            continue
        entry = {"file": str(path)}
        entry.update(summary.to_dict())
        results.append(entry)
    return results


def format_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format inspection results for output."""
    if format_type == "json":
        return json.dumps(results, indent=2)

    if not results:
        return "No results to display."

    lines = []
    successful = sum(1 for r in results if r.get("success", False))
    lines.append(f"Inspected {len(results)} files, {successful} decoded cleanly")
    lines.append("-" * 60)

    for result in results:
        status = "✓" if result.get("success", False) else "✗"
        lines.append(f"{status} {result['file']}")
        if "encoding" in result:
            bom = "with BOM" if result.get("bom_length") else "no BOM"
            lines.append(
                f"   Encoding: {result['encoding']} ({bom}), "
                f"Characters: {result.get('scalar_count', 0)}, "
                f"Bytes: {result.get('bytes_consumed', 0)}"
            )
        error = result.get("error")
        if error:
            location = f" at offset {error['offset']}" if "offset" in error else ""
            lines.append(f"   Error: {error.get('message', '')}{location}")
        lines.append("")

    return "\n".join(lines)


def cmd_decode(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle decode command."""
    if not args.path.is_file():
        print(f"File not found: {args.path}", file=sys.stderr)
        return EXIT_FAILURE

    try:
        with open_reader(args.path, config.reader_config) as reader:
            if args.output:
                with args.output.open("w", encoding="utf-8", newline="") as out:
                    for chunk in reader.iter_chunks():
                        out.write(chunk)
            else:
                for chunk in reader.iter_chunks():
                    sys.stdout.write(chunk)
                sys.stdout.flush()
    except StreamDecodeError as e:
        print(f"{args.path}: {e}", file=sys.stderr)
        return EXIT_FAILURE
    except OSError as e:
        print(f"Error processing {args.path}: {e}", file=sys.stderr)
        return EXIT_FAILURE

    if args.output and not config.quiet:
        print(f"Decoded {args.path} -> {args.output}", file=sys.stderr)
    return EXIT_OK


def cmd_inspect(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle inspect command."""
    results = inspect_paths(args.paths, config)
    print(format_results(results, config.output_format))
    if all(r.get("success", False) for r in results):
        return EXIT_OK
    return EXIT_FAILURE


def cmd_validate(args: argparse.Namespace, config: CLIConfig) -> int:
    """Handle validate command."""
    results = [
        {
            "file": r["file"],
            "valid": r.get("success", False),
            "encoding": r.get("encoding"),
            "error": r.get("error"),
        }
        for r in inspect_paths(args.paths, config)
    ]

    if config.output_format == "json":
        print(json.dumps(results, indent=2))
    else:
        valid_count = sum(1 for r in results if r["valid"])
        print(f"Validated {len(results)} files, {valid_count} valid")
        print("-" * 50)
        for result in results:
            status = "✓" if result["valid"] else "✗"
            print(f"{status} {result['file']}")
            if not result["valid"] and result["error"]:
                print(f"   Error: {result['error'].get('message', '')}")

    valid_count = sum(1 for r in results if r["valid"])
    return EXIT_OK if valid_count == len(results) else EXIT_FAILURE


def configure_logging(config: CLIConfig) -> str:
    """Set the package log level from the flags or the reader configuration.

    ``-v`` and ``-q`` win over ``logging_level``. A root handler is only
    installed when one of the flags was given.
    """
    if config.verbose:
        level = "DEBUG"
        logging.basicConfig(level=logging.DEBUG)
    elif config.quiet:
        level = "ERROR"
        logging.basicConfig(level=logging.ERROR)
    else:
        level = config.reader_config.logging_level
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
    return level


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return EXIT_FAILURE

    try:
        config = build_config(args)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_FAILURE
    configure_logging(config)

    handlers = {
        "decode": cmd_decode,
        "inspect": cmd_inspect,
        "validate": cmd_validate,
    }
    try:
        return handlers[args.command](args, config)
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
