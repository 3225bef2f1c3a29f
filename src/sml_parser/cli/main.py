"""Main CLI entry point for the sml command-line tool.

Provides parsing reports, formatting, validation and XML/CSV conversion for
SML files.
"""

import argparse
import json
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

from sml_parser import __version__
from sml_parser.api import (
    SmlParser,
    get_adapter,
    list_available_adapters,
    serialize,
    serialize_minified,
)
from sml_parser.shared import (
    ConfigValidationError,
    DiagnosticEntry,
    DiagnosticSeverity,
    ParserConfig,
    SerializerConfig,
    SmlError,
    SmlParserError,
    configure_logging,
    get_logger,
)

SML_SUFFIX = ".sml"
MAX_SHOWN_ERRORS = 3


class CLIConfig:
    """Configuration management for CLI operations."""

    def __init__(self) -> None:
        self.parser_config = ParserConfig()
        self.output_format = "json"
        self.default_indentation: Optional[str] = None
        self.show_progress = False

    @classmethod
    def from_file(cls, config_path: Path) -> "CLIConfig":
        """Load CLI configuration from a JSON file.

        Recognized keys are ``parser`` (a ParserConfig dictionary),
        ``output_format``, ``default_indentation`` and ``show_progress``.

        Raises:
            ConfigValidationError: If the file is not valid configuration
        """
        config = cls()
        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise ConfigValidationError(
                f"Could not load config file {config_path}: {e}"
            ) from e
        if not isinstance(data, dict):
            raise ConfigValidationError("Config file must hold a JSON object")

        if "parser" in data:
            if not isinstance(data["parser"], dict):
                raise ConfigValidationError(
                    "parser settings must be a JSON object", field_name="parser"
                )
            config.parser_config = ParserConfig.from_dict(data["parser"])
        config.output_format = data.get("output_format", config.output_format)
        config.default_indentation = SerializerConfig(
            default_indentation=data.get("default_indentation", config.default_indentation)
        ).default_indentation
        config.show_progress = bool(data.get("show_progress", config.show_progress))
        return config


class ProgressTracker:
    """Progress tracking for runs over many files."""

    def __init__(self, total: int, description: str = "Processing") -> None:
        self.total = total
        self.completed = 0
        self.description = description
        self.start_time = time.time()
        self.last_update = 0.0

    def update(self, increment: int = 1) -> None:
        """Update progress and display if needed."""
        self.completed += increment
        current_time = time.time()

        # Update every second or on completion
        if current_time - self.last_update >= 1.0 or self.completed >= self.total:
            self._display_progress()
            self.last_update = current_time

    def _display_progress(self) -> None:
        if self.total == 0:
            return

        percentage = (self.completed / self.total) * 100
        progress_bar = "=" * int(percentage // 2)
        progress_bar += " " * (50 - len(progress_bar))

        print(f"\r{self.description}: [{progress_bar}] "
              f"{percentage:.1f}% ({self.completed}/{self.total})",
              end="", file=sys.stderr)

        if self.completed >= self.total:
            print(file=sys.stderr)


class SMLProcessor:
    """Core SML processing logic for CLI operations."""

    def __init__(self, config: CLIConfig) -> None:
        self.config = config
        self.parser = SmlParser(config=config.parser_config)
        self.logger = get_logger(__name__, None, "cli_processor")

    def process_single_file(self, file_path: Path) -> Dict[str, Any]:
        """Parse a single SML file and report the outcome."""
        try:
            result = self.parser.parse_result(file_path)
        except (SmlError, OSError, UnicodeDecodeError) as e:
            self.logger.warning(
                "Failed to process file", extra={"file": str(file_path), "error": str(e)}
            )
            return {
                "file": str(file_path),
                "success": False,
                "error": str(e),
                "diagnostics": [_error_diagnostic(e).to_dict()],
            }

        return {
            "file": str(file_path),
            "success": True,
            "root": result.document.root.name,
            "end_keyword": result.end_keyword,
            "element_count": result.element_count,
            "attribute_count": result.attribute_count,
            "line_count": result.performance.lines_processed,
            "max_depth": result.performance.max_depth,
            "processing_time_ms": result.performance.processing_time_ms,
            "diagnostics": [diag.to_dict() for diag in result.diagnostics],
        }

    def find_sml_files(self, path: Path, recursive: bool = True) -> Iterator[Path]:
        """Find SML files in path; explicitly named files are always used."""
        if path.is_file():
            yield path
        elif path.is_dir():
            pattern = f"**/*{SML_SUFFIX}" if recursive else f"*{SML_SUFFIX}"
            for sml_file in sorted(path.glob(pattern)):
                if sml_file.is_file():
                    yield sml_file
        else:
            # Reported as a read failure by process_single_file.
            yield path

    def batch_process(self, paths: List[Path], recursive: bool = True) -> List[Dict[str, Any]]:
        """Process multiple SML files in order."""
        all_files: List[Path] = []
        for path in paths:
            all_files.extend(self.find_sml_files(path, recursive))

        results = []
        progress = ProgressTracker(len(all_files), "Processing SML files")
        for file_path in all_files:
            results.append(self.process_single_file(file_path))
            if self.config.show_progress:
                progress.update()
        return results


def _error_diagnostic(error: Exception) -> DiagnosticEntry:
    line_number = error.line_number if isinstance(error, SmlParserError) else None
    return DiagnosticEntry(
        severity=DiagnosticSeverity.ERROR,
        message=str(error),
        component="sml_cli",
        line_number=line_number,
    )


def create_argument_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="sml",
        description="Parse, format, validate and convert SML documents"
    )

    parser.add_argument("--version", action="version", version=__version__)

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Parse command
    parse_parser = subparsers.add_parser("parse", help="Parse SML files and report")
    parse_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="SML files or directories to parse"
    )
    parse_parser.add_argument(
        "--recursive", "-r",
        action="store_true",
        help="Recursively process directories"
    )
    parse_parser.add_argument(
        "--format", "-f",
        choices=["json", "csv", "text"],
        default=None,
        help="Output format (default: json)"
    )
    parse_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )
    parse_parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file path"
    )
    parse_parser.add_argument(
        "--progress",
        action="store_true",
        help="Show progress on stderr"
    )

    # Format command
    format_parser = subparsers.add_parser("format", help="Re-indent or minify SML files")
    format_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="SML files to format"
    )
    indent_group = format_parser.add_mutually_exclusive_group()
    indent_group.add_argument(
        "--indent",
        type=int,
        metavar="N",
        help="Indent with N spaces instead of tabs"
    )
    indent_group.add_argument(
        "--minify",
        action="store_true",
        help="Write minified output"
    )
    indent_group.add_argument(
        "--preserve",
        action="store_true",
        help="Keep whitespace, comments and blank lines"
    )
    format_parser.add_argument(
        "--in-place", "-i",
        action="store_true",
        help="Rewrite the files instead of printing"
    )
    format_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (single input only)"
    )
    format_parser.add_argument(
        "--config", "-c",
        type=Path,
        help="Configuration file path"
    )

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate SML files")
    validate_parser.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help="SML files or directories to validate"
    )
    validate_parser.add_argument(
        "--format", "-f",
        choices=["json", "text"],
        default="text",
        help="Output format"
    )

    # Convert command
    convert_parser = subparsers.add_parser("convert", help="Convert an SML file")
    convert_parser.add_argument(
        "path",
        type=Path,
        help="SML file to convert"
    )
    convert_parser.add_argument(
        "--adapter", "-a",
        default="elementtree",
        help="Adapter name: elementtree, lxml, beautifulsoup or pandas"
    )
    convert_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Output file (default: stdout)"
    )

    # Global options
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

    return parser


def format_results(results: List[Dict[str, Any]], format_type: str) -> str:
    """Format processing results for output."""
    if format_type == "csv":
        if not results:
            return ""

        lines = ["file,success,root,elements,attributes,time_ms,error"]
        for result in results:
            error = result.get("error", "").replace('"', '""')
            lines.append(
                f"{result['file']},{result['success']},{result.get('root', '')},"
                f"{result.get('element_count', 0)},{result.get('attribute_count', 0)},"
                f"{result.get('processing_time_ms', 0):.1f},\"{error}\""
            )
        return "\n".join(lines)

    if format_type == "text":
        if not results:
            return "No results to display."

        successful = sum(1 for r in results if r.get("success", False))
        lines = [f"Processed {len(results)} files, {successful} successful", "-" * 60]
        for result in results:
            if result.get("success", False):
                lines.append(f"OK   {result['file']}")
                lines.append(
                    f"   Root: {result['root']}, Elements: {result['element_count']}, "
                    f"Attributes: {result['attribute_count']}, "
                    f"Time: {result['processing_time_ms']:.1f}ms"
                )
            else:
                lines.append(f"FAIL {result['file']}")
                lines.append(f"   Error: {result.get('error', '')}")
            lines.append("")
        return "\n".join(lines)

    return json.dumps(results, indent=2)


def _load_config(config_path: Optional[Path]) -> CLIConfig:
    if config_path is None:
        return CLIConfig()
    return CLIConfig.from_file(config_path)


def _write_output(text: str, output: Optional[Path]) -> None:
    if output is None:
        print(text)
    else:
        output.write_text(text, encoding="utf-8")
        print(f"Results written to {output}", file=sys.stderr)


def cmd_parse(args: argparse.Namespace) -> int:
    """Handle parse command."""
    config = _load_config(args.config)
    if args.progress:
        config.show_progress = True
    output_format = args.format or config.output_format

    processor = SMLProcessor(config)
    results = processor.batch_process(args.paths, args.recursive)
    if not results:
        print("No SML files found", file=sys.stderr)
        return 1

    try:
        _write_output(format_results(results, output_format), args.output)
    except OSError as e:
        print(f"Error writing output: {e}", file=sys.stderr)
        return 1

    successful = sum(1 for r in results if r.get("success", False))
    return 0 if successful == len(results) else 1


def cmd_format(args: argparse.Namespace) -> int:
    """Handle format command."""
    config = _load_config(args.config)
    if args.output is not None and len(args.paths) > 1:
        print("--output requires a single input file", file=sys.stderr)
        return 1

    parser_config = config.parser_config
    if args.preserve:
        parser_config = parser_config.override(preserve_whitespace_and_comments=True)
    parser = SmlParser(config=parser_config)
    indentation = " " * args.indent if args.indent is not None else config.default_indentation

    exit_code = 0
    for path in args.paths:
        try:
            document = parser.parse(path)
        except (SmlError, OSError, UnicodeDecodeError) as e:
            print(f"{path}: {e}", file=sys.stderr)
            exit_code = 1
            continue

        if args.minify:
            text = serialize_minified(document)
        else:
            text = serialize(document, default_indentation=indentation)

        if args.in_place:
            path.write_text(text, encoding="utf-8")
            print(f"Formatted: {path}", file=sys.stderr)
        elif args.output is not None:
            args.output.write_text(text, encoding="utf-8")
        else:
            if len(args.paths) > 1:
                print(f"==> {path} <==")
            print(text)
    return exit_code


def cmd_validate(args: argparse.Namespace) -> int:
    """Handle validate command."""
    processor = SMLProcessor(CLIConfig())
    results = []
    for result in processor.batch_process(args.paths, recursive=True):
        validation_result = {"file": result["file"], "valid": result["success"]}
        if not result["success"]:
            validation_result["error"] = result["error"]
            validation_result["line"] = result["diagnostics"][0].get("line")
        results.append(validation_result)

    if args.format == "json":
        print(json.dumps(results, indent=2))
    else:
        valid_count = sum(1 for r in results if r["valid"])
        print(f"Validated {len(results)} files, {valid_count} valid")
        print("-" * 50)
        for result in results:
            status = "OK  " if result["valid"] else "FAIL"
            print(f"{status} {result['file']}")
            if not result["valid"]:
                print(f"   Error: {result['error']}")

    if not results:
        return 1
    return 0 if all(r["valid"] for r in results) else 1


def _render_converted(adapter_name: str, data: Any) -> str:
    if adapter_name == "pandas":
        return data.to_csv(index=False)
    if adapter_name == "beautifulsoup":
        return str(data)
    if adapter_name == "lxml":
        import lxml.etree as etree

        return etree.tostring(data, encoding="unicode", pretty_print=True)

    import xml.etree.ElementTree as ET

    return ET.tostring(data, encoding="unicode")


def cmd_convert(args: argparse.Namespace) -> int:
    """Handle convert command."""
    adapter = get_adapter(args.adapter)
    if adapter is None:
        available = ", ".join(m.name for m in list_available_adapters())
        print(f"Adapter not available: {args.adapter} (available: {available})", file=sys.stderr)
        return 1

    try:
        document = SmlParser().parse(args.path)
    except (SmlError, OSError, UnicodeDecodeError) as e:
        print(f"{args.path}: {e}", file=sys.stderr)
        return 1

    conversion = adapter.to_target(document)
    if not conversion.success:
        for error in conversion.errors[:MAX_SHOWN_ERRORS]:
            print(f"Error: {error}", file=sys.stderr)
        return 1

    try:
        _write_output(_render_converted(args.adapter, conversion.converted_data), args.output)
    except OSError as e:
        print(f"Error writing output: {e}", file=sys.stderr)
        return 1
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_argument_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.verbose:
        configure_logging(logging.DEBUG)
    elif args.quiet:
        configure_logging(logging.ERROR)

    try:
        if args.command == "parse":
            return cmd_parse(args)
        elif args.command == "format":
            return cmd_format(args)
        elif args.command == "validate":
            return cmd_validate(args)
        elif args.command == "convert":
            return cmd_convert(args)
        else:
            print(f"Unknown command: {args.command}", file=sys.stderr)
            return 1
    except ConfigValidationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nOperation interrupted by user", file=sys.stderr)
        return 130  # Standard exit code for SIGINT


if __name__ == "__main__":
    sys.exit(main())
