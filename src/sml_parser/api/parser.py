"""Core parser API with progressive disclosure for SML documents.

This module provides the main parsing API, from simple module-level functions
to the configurable, reusable ``SmlParser`` class. Parsing is fail-fast: the
first fault raises an ``SmlParserError`` carrying the offending line.
"""

import time
from pathlib import Path
from typing import Any, BinaryIO, Dict, Optional, TextIO, Union

from sml_parser.shared import (
    ParserConfig,
    SerializerConfig,
    SmlParserError,
    get_logger,
)
from sml_parser.tree import ParseResult, SmlDocument, SmlSerializer, SmlTreeBuilder

# Type definitions for input data
InputType = Union[str, bytes, BinaryIO, TextIO, Path]

# Constants for API operations
PREVIEW_LENGTH = 100  # Max length for content preview in logs
MS_PER_SECOND = 1000  # Milliseconds per second conversion
DEFAULT_ENCODING = "utf-8"


def parse(
    input_data: InputType,
    preserve_whitespace_and_comments: bool = False,
    correlation_id: Optional[str] = None
) -> SmlDocument:
    """Parse SML from various input sources with automatic type detection.

    Args:
        input_data: SML content as string, UTF-8 bytes, file-like object, or Path
        preserve_whitespace_and_comments: Keep layout for faithful re-serialization
        correlation_id: Optional correlation ID for request tracking

    Returns:
        The parsed document

    Raises:
        SmlParserError: If the content is not a valid SML document
        TypeError: If the input type is not supported

    Examples:
        >>> document = parse("Root\\n  Name John\\nEnd")
        >>> document.root.get_string("name")
        'John'
    """
    logger = get_logger(__name__, correlation_id, "parse")
    logger.info(
        "Starting universal parse operation",
        extra={
            "input_type": type(input_data).__name__,
            "has_correlation_id": correlation_id is not None
        }
    )

    if isinstance(input_data, Path):
        return parse_file(
            input_data,
            preserve_whitespace_and_comments=preserve_whitespace_and_comments,
            correlation_id=correlation_id,
        )
    content = _read_content(input_data)
    return _build(content, _parser_config(preserve_whitespace_and_comments, correlation_id)).document


def parse_string(
    sml_string: str,
    preserve_whitespace_and_comments: bool = False,
    correlation_id: Optional[str] = None
) -> SmlDocument:
    """Parse SML from a string.

    Args:
        sml_string: SML content
        preserve_whitespace_and_comments: Keep layout for faithful re-serialization
        correlation_id: Optional correlation ID for request tracking

    Returns:
        The parsed document

    Examples:
        >>> parse_string("Root\\nStop").end_keyword
        'Stop'
    """
    logger = get_logger(__name__, correlation_id, "parse_string")
    logger.info(
        "Starting string parse operation",
        extra={
            "content_length": len(sml_string),
            "preview": (
                sml_string[:PREVIEW_LENGTH] + "..."
                if len(sml_string) > PREVIEW_LENGTH else sml_string
            )
        }
    )
    config = _parser_config(preserve_whitespace_and_comments, correlation_id)
    return _build(sml_string, config).document


def parse_file(
    file_path: Union[str, Path],
    encoding: str = DEFAULT_ENCODING,
    preserve_whitespace_and_comments: bool = False,
    correlation_id: Optional[str] = None
) -> SmlDocument:
    """Parse SML from a file.

    Args:
        file_path: Path to the SML file (string or Path object)
        encoding: Text encoding of the file
        preserve_whitespace_and_comments: Keep layout for faithful re-serialization
        correlation_id: Optional correlation ID for request tracking

    Returns:
        The parsed document

    Raises:
        OSError: If the file cannot be read
        SmlParserError: If the file is not a valid SML document
    """
    logger = get_logger(__name__, correlation_id, "parse_file")
    path_obj = Path(file_path)

    logger.info(
        "Starting file parse operation",
        extra={"file_path": str(path_obj), "encoding": encoding}
    )

    content = path_obj.read_text(encoding=encoding)
    config = _parser_config(preserve_whitespace_and_comments, correlation_id)
    document = _build(content, config).document
    logger.info(
        "File parse operation completed",
        extra={"file_path": str(path_obj), "encoding": encoding}
    )
    return document


def serialize(document: SmlDocument, default_indentation: Optional[str] = None) -> str:
    """Serialize a document, keeping any layout recorded while parsing.

    Args:
        document: Document to serialize
        default_indentation: Optional indentation unit overriding the document's

    Examples:
        >>> serialize(parse_string("Root\\nA 1\\nEnd"), default_indentation="  ")
        'Root\\n  A 1\\nEnd'
    """
    config = SerializerConfig(default_indentation=default_indentation)
    return SmlSerializer(config).serialize(document)


def serialize_minified(document: SmlDocument) -> str:
    """Serialize a document without indentation and with ``-`` as end keyword."""
    return SmlSerializer(SerializerConfig.minified_output()).serialize(document)


def save_file(
    document: SmlDocument,
    file_path: Union[str, Path],
    minified: bool = False,
    encoding: str = DEFAULT_ENCODING
) -> Path:
    """Serialize a document and write it to a file.

    Returns:
        The path written to
    """
    path_obj = Path(file_path)
    content = serialize_minified(document) if minified else serialize(document)
    path_obj.write_text(content, encoding=encoding)
    get_logger(__name__, None, "save_file").info(
        "SML document saved",
        extra={"file_path": str(path_obj), "minified": minified, "length": len(content)}
    )
    return path_obj


def _parser_config(preserve: bool, correlation_id: Optional[str]) -> ParserConfig:
    return ParserConfig(
        preserve_whitespace_and_comments=preserve,
        correlation_id=correlation_id,
    )


def _read_content(input_data: Union[str, bytes, BinaryIO, TextIO]) -> str:
    """Turn direct or file-like input into text.

    Args:
        input_data: String, UTF-8 bytes, or an object with ``read()``

    Returns:
        Document text
    """
    if hasattr(input_data, "read"):
        input_data = input_data.read()
    if isinstance(input_data, bytes):
        return input_data.decode(DEFAULT_ENCODING)
    if isinstance(input_data, str):
        return input_data
    raise TypeError(f"Unsupported input type: {type(input_data).__name__}")


def _build(content: str, config: ParserConfig) -> ParseResult:
    start_time = time.time()
    result = SmlTreeBuilder(config).build(content)
    result.performance.processing_time_ms = (time.time() - start_time) * MS_PER_SECOND
    return result


class SmlParser:
    """Configurable SML parser for reuse across many documents.

    Keeps usage statistics over its lifetime. Instances are not thread-safe.

    Attributes:
        config: Current parser configuration
        correlation_id: Correlation ID for request tracking

    Examples:
        Basic usage with default configuration:
        >>> parser = SmlParser()
        >>> parser.parse("Root\\nEnd").root.name
        'Root'

        Preserving layout:
        >>> parser = SmlParser(ParserConfig.preserving())
        >>> text = "Root # top\\nEnd"
        >>> serialize(parser.parse(text)) == text
        True
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize reusable SML parser.

        Args:
            config: Parser configuration (defaults to canonical mode)
            correlation_id: Optional correlation ID for request tracking
        """
        self.config = config or ParserConfig()
        self.correlation_id = correlation_id or self.config.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "sml_parser")
        self._tree_builder = SmlTreeBuilder(self.config, self.correlation_id)

        self._parse_count = 0
        self._successful_parses = 0
        self._total_processing_time = 0.0
        self._total_lines = 0

        self.logger.info(
            "SmlParser initialized",
            extra={"config": self.config.to_dict()}
        )

    def parse(self, input_data: InputType) -> SmlDocument:
        """Parse SML and return the document.

        Raises:
            SmlParserError: If the content is not a valid SML document
        """
        return self.parse_result(input_data).document

    def parse_result(
        self,
        input_data: InputType,
        config_override: Optional[ParserConfig] = None
    ) -> ParseResult:
        """Parse SML and return the document with metrics and diagnostics.

        Args:
            input_data: SML content as various input types
            config_override: Optional configuration for this parse only

        Returns:
            ParseResult for the document
        """
        start_time = time.time()
        self.logger.info(
            "Starting configured parse operation",
            extra={
                "input_type": type(input_data).__name__,
                "has_config_override": config_override is not None,
                "parse_count": self._parse_count + 1
            }
        )

        if config_override is not None:
            tree_builder = SmlTreeBuilder(config_override, self.correlation_id)
        else:
            tree_builder = self._tree_builder

        self._parse_count += 1
        try:
            if isinstance(input_data, Path):
                content = input_data.read_text(encoding=DEFAULT_ENCODING)
            else:
                content = _read_content(input_data)
            result = tree_builder.build(content)
        except SmlParserError:
            self._total_processing_time += (time.time() - start_time) * MS_PER_SECOND
            raise

        processing_time = (time.time() - start_time) * MS_PER_SECOND
        result.performance.processing_time_ms = processing_time
        self._successful_parses += 1
        self._total_processing_time += processing_time
        self._total_lines += result.performance.lines_processed

        self.logger.info(
            "Configured parse completed",
            extra={
                "processing_time_ms": processing_time,
                "total_parses": self._parse_count,
                "success_rate": self._successful_parses / self._parse_count
            }
        )
        return result

    def reconfigure(self, config: ParserConfig) -> None:
        """Replace the parser configuration."""
        self.config = config
        self._tree_builder = SmlTreeBuilder(self.config, self.correlation_id)
        self.logger.info("Parser reconfigured", extra={"config": config.to_dict()})

    @property
    def statistics(self) -> Dict[str, Any]:
        """Get parser usage statistics.

        Returns:
            Dictionary with parser statistics
        """
        return {
            "total_parses": self._parse_count,
            "successful_parses": self._successful_parses,
            "failed_parses": self._parse_count - self._successful_parses,
            "success_rate": (
                self._successful_parses / self._parse_count
                if self._parse_count > 0 else 0.0
            ),
            "total_lines": self._total_lines,
            "total_processing_time_ms": self._total_processing_time,
            "average_processing_time_ms": (
                self._total_processing_time / self._parse_count
                if self._parse_count > 0 else 0.0
            ),
            "correlation_id": self.correlation_id,
        }

    def reset_statistics(self) -> None:
        """Reset parser usage statistics."""
        self._parse_count = 0
        self._successful_parses = 0
        self._total_processing_time = 0.0
        self._total_lines = 0

        self.logger.info("Parser statistics reset")
