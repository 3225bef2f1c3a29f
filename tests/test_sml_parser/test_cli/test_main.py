"""Tests for the CLI main module."""

import json
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from sml_parser.cli.main import (
    CLIConfig,
    ProgressTracker,
    SMLProcessor,
    create_argument_parser,
    format_results,
    main,
)
from sml_parser.shared import ConfigValidationError

VALID = "Root\n  Person\n    Name John\n  End\nEnd\n"
INVALID = "Root\n  Person\n  End\n"


@pytest.fixture
def sml_dir(tmp_path: Path) -> Path:
    (tmp_path / "good.sml").write_text(VALID, encoding="utf-8")
    (tmp_path / "bad.sml").write_text(INVALID, encoding="utf-8")
    nested = tmp_path / "nested"
    nested.mkdir()
    (nested / "deep.sml").write_text("Root\nEnd", encoding="utf-8")
    (tmp_path / "notes.txt").write_text("Root\nEnd", encoding="utf-8")
    return tmp_path


class TestCLIConfig:
    """Test CLI configuration management."""

    def test_default_config(self):
        """Test default configuration values."""
        config = CLIConfig()
        assert config.output_format == "json"
        assert config.default_indentation is None
        assert config.show_progress is False
        assert config.parser_config.preserve_whitespace_and_comments is False

    def test_config_from_file(self):
        """Test loading configuration from file."""
        with tempfile.NamedTemporaryFile(mode="w", suffix=".json", delete=False) as f:
            json.dump({
                "parser": {"preserve_whitespace_and_comments": True, "max_depth": 10},
                "output_format": "csv",
                "default_indentation": "  ",
                "show_progress": True,
            }, f)
            config_path = Path(f.name)

        try:
            config = CLIConfig.from_file(config_path)
            assert config.parser_config.preserve_whitespace_and_comments is True
            assert config.parser_config.max_depth == 10
            assert config.output_format == "csv"
            assert config.default_indentation == "  "
            assert config.show_progress is True
        finally:
            config_path.unlink()

    def test_config_from_nonexistent_file(self):
        """Test missing config files are configuration errors."""
        with pytest.raises(ConfigValidationError, match="Could not load config file"):
            CLIConfig.from_file(Path("nonexistent.json"))

    def test_config_with_unknown_parser_key(self, tmp_path: Path):
        """Test unknown parser settings are rejected."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"parser": {"repair": True}}), encoding="utf-8")
        with pytest.raises(ConfigValidationError, match="Unknown ParserConfig fields: repair"):
            CLIConfig.from_file(path)

    def test_config_not_an_object(self, tmp_path: Path):
        """Test JSON that is not an object."""
        path = tmp_path / "config.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(ConfigValidationError, match="must hold a JSON object"):
            CLIConfig.from_file(path)

    def test_config_with_mistyped_values(self, tmp_path: Path):
        """Test wrongly typed settings are configuration errors."""
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"parser": {"max_depth": "5"}}), encoding="utf-8")
        with pytest.raises(ConfigValidationError) as exc_info:
            CLIConfig.from_file(path)
        assert exc_info.value.field_name == "max_depth"

        path.write_text(json.dumps({"default_indentation": 4}), encoding="utf-8")
        with pytest.raises(ConfigValidationError) as exc_info:
            CLIConfig.from_file(path)
        assert exc_info.value.field_name == "default_indentation"

        path.write_text(json.dumps({"parser": 5}), encoding="utf-8")
        with pytest.raises(ConfigValidationError) as exc_info:
            CLIConfig.from_file(path)
        assert exc_info.value.field_name == "parser"


class TestProgressTracker:
    """Test progress tracking functionality."""

    def test_progress_initialization(self):
        """Test progress tracker initialization."""
        tracker = ProgressTracker(100, "Test")
        assert tracker.total == 100
        assert tracker.completed == 0
        assert tracker.description == "Test"

    def test_progress_update(self):
        """Test progress update functionality."""
        tracker = ProgressTracker(10, "Test")
        tracker.update(5)
        assert tracker.completed == 5

        tracker.update()
        assert tracker.completed == 6

    @patch("builtins.print")
    def test_progress_display(self, mock_print):
        """Test progress display output."""
        tracker = ProgressTracker(10, "Test")
        tracker.update(5)
        tracker.last_update = 0
        tracker.update(1)
        mock_print.assert_called()


class TestSMLProcessor:
    """Test SML processing functionality."""

    def test_processor_initialization(self):
        """Test processor initialization."""
        config = CLIConfig()
        processor = SMLProcessor(config)
        assert processor.config == config
        assert processor.parser is not None

    def test_process_single_file_success(self, sml_dir: Path):
        """Test the report for a valid file."""
        result = SMLProcessor(CLIConfig()).process_single_file(sml_dir / "good.sml")

        assert result["success"] is True
        assert result["root"] == "Root"
        assert result["end_keyword"] == "End"
        assert result["element_count"] == 2
        assert result["attribute_count"] == 1
        assert result["line_count"] == 6
        assert result["max_depth"] == 2

    def test_process_invalid_file(self, sml_dir: Path):
        """Test the report for a parse failure."""
        result = SMLProcessor(CLIConfig()).process_single_file(sml_dir / "bad.sml")

        assert result["success"] is False
        assert result["error"] == 'Element "Root" not closed (4)'
        assert result["diagnostics"][0]["line"] == 4

    def test_process_nonexistent_file(self, tmp_path: Path):
        """Test unreadable files are reported."""
        result = SMLProcessor(CLIConfig()).process_single_file(tmp_path / "missing.sml")
        assert result["success"] is False
        assert "line" not in result["diagnostics"][0]

    def test_find_sml_files(self, sml_dir: Path):
        """Test directory discovery."""
        processor = SMLProcessor(CLIConfig())

        flat = list(processor.find_sml_files(sml_dir, recursive=False))
        deep = list(processor.find_sml_files(sml_dir, recursive=True))
        assert [p.name for p in flat] == ["bad.sml", "good.sml"]
        assert sorted(p.name for p in deep) == ["bad.sml", "deep.sml", "good.sml"]
        assert list(processor.find_sml_files(sml_dir / "notes.txt")) == [sml_dir / "notes.txt"]

    def test_batch_process(self, sml_dir: Path):
        """Test results are returned in discovery order."""
        results = SMLProcessor(CLIConfig()).batch_process([sml_dir], recursive=False)
        assert [r["success"] for r in results] == [False, True]


class TestArgumentParser:
    """Test argument parser creation."""

    def test_parse_command_with_options(self):
        """Test parse command options."""
        args = create_argument_parser().parse_args(
            ["parse", "a.sml", "b.sml", "-r", "-f", "csv", "-o", "out.csv"]
        )
        assert args.command == "parse"
        assert args.paths == [Path("a.sml"), Path("b.sml")]
        assert args.recursive is True
        assert args.format == "csv"
        assert args.output == Path("out.csv")

    def test_format_options_exclusive(self):
        """Test indentation modes cannot be combined."""
        parser = create_argument_parser()
        assert parser.parse_args(["format", "a.sml", "--indent", "2"]).indent == 2
        with pytest.raises(SystemExit):
            parser.parse_args(["format", "a.sml", "--indent", "2", "--minify"])

    def test_convert_defaults(self):
        """Test the default adapter."""
        args = create_argument_parser().parse_args(["convert", "a.sml"])
        assert args.adapter == "elementtree"


class TestFormatResults:
    """Test result formatting functionality."""

    RESULTS = [
        {"file": "a.sml", "success": True, "root": "Root", "element_count": 2,
         "attribute_count": 1, "processing_time_ms": 1.5},
        {"file": "b.sml", "success": False, "error": 'Element "Root" not closed (4)'},
    ]

    def test_format_json(self):
        """Test JSON formatting."""
        assert json.loads(format_results(self.RESULTS, "json")) == self.RESULTS

    def test_format_csv(self):
        """Test CSV formatting."""
        lines = format_results(self.RESULTS, "csv").split("\n")
        assert lines[0] == "file,success,root,elements,attributes,time_ms,error"
        assert lines[1] == 'a.sml,True,Root,2,1,1.5,""'
        assert lines[2] == 'b.sml,False,,0,0,0.0,"Element ""Root"" not closed (4)"'

    def test_format_text(self):
        """Test text formatting."""
        text = format_results(self.RESULTS, "text")
        assert text.startswith("Processed 2 files, 1 successful")
        assert "OK   a.sml" in text
        assert "FAIL b.sml" in text

    def test_format_empty_results(self):
        """Test formatting empty results."""
        assert format_results([], "csv") == ""
        assert format_results([], "text") == "No results to display."
        assert format_results([], "json") == "[]"


class TestMainFunction:
    """Test main CLI function."""

    def test_main_no_args(self):
        """Test main function with no arguments."""
        assert main([]) == 1

    def test_main_unknown_command(self):
        """Test main function with unknown command."""
        with pytest.raises(SystemExit):
            main(["unknown"])

    @patch("sml_parser.cli.main.cmd_parse")
    def test_main_parse_command(self, mock_cmd_parse):
        """Test main function routing to parse command."""
        mock_cmd_parse.return_value = 0
        assert main(["parse", "test.sml"]) == 0
        mock_cmd_parse.assert_called_once()

    def test_main_keyboard_interrupt(self):
        """Test main function handling keyboard interrupt."""
        with patch("sml_parser.cli.main.cmd_parse", side_effect=KeyboardInterrupt):
            assert main(["parse", "test.sml"]) == 130

    @patch("sml_parser.cli.main.cmd_format")
    def test_main_format_command(self, mock_cmd_format):
        """Test main function routing to format command."""
        mock_cmd_format.return_value = 0
        assert main(["format", "test.sml", "--minify"]) == 0
        args = mock_cmd_format.call_args[0][0]
        assert args.minify
        assert args.paths == [Path("test.sml")]

    def test_main_config_error(self, tmp_path: Path, capsys):
        """Test configuration errors end the run."""
        assert main(["parse", str(tmp_path), "-c", str(tmp_path / "missing.json")]) == 1
        assert "Configuration error" in capsys.readouterr().err

    @pytest.mark.parametrize("command, settings", [
        ("parse", {"parser": {"max_depth": "5"}}),
        ("format", {"default_indentation": 4}),
    ])
    def test_main_mistyped_config(self, tmp_path: Path, capsys, command, settings):
        """Test mistyped configuration values exit with status 1."""
        sml_file = tmp_path / "doc.sml"
        sml_file.write_text("Root\nEnd", encoding="utf-8")
        config_path = tmp_path / "cli.json"
        config_path.write_text(json.dumps(settings), encoding="utf-8")

        assert main([command, str(sml_file), "-c", str(config_path)]) == 1
        assert "Configuration error" in capsys.readouterr().err


@pytest.mark.integration
class TestCLIIntegration:
    """Integration tests for CLI functionality."""

    def test_cli_parse_json(self, sml_dir: Path, capsys):
        """Test parse reports as JSON."""
        exit_code = main(["parse", str(sml_dir / "good.sml"), "--format", "json"])
        results = json.loads(capsys.readouterr().out)

        assert exit_code == 0
        assert results[0]["root"] == "Root"

    def test_cli_parse_directory_with_failure(self, sml_dir: Path, capsys):
        """Test any failed file sets the exit code."""
        assert main(["parse", str(sml_dir), "-r", "-f", "text"]) == 1
        assert "Processed 3 files, 2 successful" in capsys.readouterr().out

    def test_cli_parse_output_file(self, sml_dir: Path, tmp_path: Path):
        """Test reports written to a file."""
        output = tmp_path / "report.csv"
        assert main(["parse", str(sml_dir / "good.sml"), "-f", "csv", "-o", str(output)]) == 0
        assert output.read_text(encoding="utf-8").startswith("file,success")

    def test_cli_parse_format_from_config(self, sml_dir: Path, tmp_path: Path, capsys):
        """Test the configured output format applies without --format."""
        config_path = tmp_path / "cli.json"
        config_path.write_text(json.dumps({"output_format": "text"}), encoding="utf-8")

        main(["parse", str(sml_dir / "good.sml"), "-c", str(config_path)])
        assert capsys.readouterr().out.startswith("Processed 1 files")

    def test_cli_parse_no_files(self, tmp_path: Path):
        """Test empty directories."""
        empty = tmp_path / "empty"
        empty.mkdir()
        assert main(["parse", str(empty)]) == 1

    def test_cli_format_indent(self, sml_dir: Path, capsys):
        """Test re-indenting with spaces."""
        assert main(["format", str(sml_dir / "good.sml"), "--indent", "2"]) == 0
        assert capsys.readouterr().out == "Root\n  Person\n    Name John\n  End\nEnd\n"

    def test_cli_format_minify(self, sml_dir: Path, capsys):
        """Test minified output."""
        assert main(["format", str(sml_dir / "good.sml"), "--minify"]) == 0
        assert capsys.readouterr().out == "Root\nPerson\nName John\n-\n-\n"

    def test_cli_format_preserve(self, tmp_path: Path, capsys):
        """Test layout is kept with --preserve."""
        path = tmp_path / "commented.sml"
        path.write_text("# head\nRoot   # r\n  A 1\nEnd", encoding="utf-8")

        assert main(["format", str(path), "--preserve"]) == 0
        assert capsys.readouterr().out == "# head\nRoot   # r\n  A 1\nEnd\n"

    def test_cli_format_in_place(self, sml_dir: Path):
        """Test rewriting files."""
        path = sml_dir / "good.sml"
        assert main(["format", str(path), "-i"]) == 0
        assert path.read_text(encoding="utf-8") == "Root\n\tPerson\n\t\tName John\n\tEnd\nEnd"

    def test_cli_format_multiple_files(self, sml_dir: Path, capsys):
        """Test headers between files and failure reporting."""
        exit_code = main(["format", str(sml_dir / "good.sml"), str(sml_dir / "bad.sml")])
        captured = capsys.readouterr()

        assert exit_code == 1
        assert captured.out.startswith(f"==> {sml_dir / 'good.sml'} <==\n")
        assert "not closed" in captured.err

    def test_cli_format_output_requires_single_input(self, sml_dir: Path, tmp_path: Path):
        """Test --output with several inputs."""
        output = str(tmp_path / "out.sml")
        paths = [str(sml_dir / "good.sml"), str(sml_dir / "bad.sml")]
        assert main(["format", *paths, "-o", output]) == 1

    def test_cli_validate(self, sml_dir: Path, capsys):
        """Test validation exit codes."""
        assert main(["validate", str(sml_dir / "good.sml")]) == 0
        assert "OK   " in capsys.readouterr().out
        assert main(["validate", str(sml_dir / "bad.sml")]) == 1

    def test_cli_validate_json(self, sml_dir: Path, capsys):
        """Test JSON validation output."""
        main(["validate", str(sml_dir / "bad.sml"), "-f", "json"])
        results = json.loads(capsys.readouterr().out)
        assert results[0]["valid"] is False
        assert results[0]["line"] == 4

    def test_cli_convert_elementtree(self, sml_dir: Path, capsys):
        """Test XML conversion to stdout."""
        assert main(["convert", str(sml_dir / "good.sml")]) == 0
        out = capsys.readouterr().out
        assert out.startswith('<element name="Root">')
        assert '<attribute name="Name"><value>John</value></attribute>' in out

    def test_cli_convert_unknown_adapter(self, sml_dir: Path, capsys):
        """Test unknown adapter names."""
        assert main(["convert", str(sml_dir / "good.sml"), "-a", "yaml"]) == 1
        assert "Adapter not available: yaml" in capsys.readouterr().err

    def test_cli_convert_invalid_file(self, sml_dir: Path):
        """Test conversion of an invalid document."""
        assert main(["convert", str(sml_dir / "bad.sml")]) == 1

    def test_cli_convert_pandas(self, sml_dir: Path, tmp_path: Path):
        """Test outline export as CSV."""
        try:
            import pandas  # noqa: F401
        except ImportError:
            pytest.skip("pandas not available")

        output = tmp_path / "outline.csv"
        assert main(["convert", str(sml_dir / "good.sml"), "-a", "pandas", "-o", str(output)]) == 0
        assert output.read_text(encoding="utf-8").startswith("depth,kind,name,values")
