"""Recursive descent tree building for SML documents.

This module converts tokenized WSV lines into an SML document tree. The
grammar is decided by line arity alone: a one-token line equal to the end
keyword closes the current element, any other one-token line opens an
element, and a line with several tokens is an attribute. Nesting is purely
lexical, with no depth tags on closing lines.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Sequence, Union

from sml_parser.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    ParserConfig,
    PerformanceMetrics,
    SmlParserError,
    get_logger,
)
from sml_parser.tokenization import LineCursor, WsvLine, tokenize_lines
from sml_parser.tree.nodes import (
    LineLayout,
    SmlAttribute,
    SmlDocument,
    SmlElement,
    names_equal,
)


class LineRole(Enum):
    """Grammatical role of a non-empty line."""

    ELEMENT_START = auto()   # single token other than the end keyword
    ATTRIBUTE = auto()       # name followed by one or more values
    END = auto()             # single token equal to the end keyword


def classify_line(values: Sequence[Optional[str]], end_keyword: Optional[str]) -> LineRole:
    """Determine the role of a line from its values.

    Examples:
        >>> classify_line(["end"], "End")
        <LineRole.END: 3>
        >>> classify_line(["Name", "John"], "End")
        <LineRole.ATTRIBUTE: 2>
    """
    if not values:
        raise ValueError("Cannot classify an empty line")
    if len(values) > 1:
        return LineRole.ATTRIBUTE
    if names_equal(values[0], end_keyword):
        return LineRole.END
    return LineRole.ELEMENT_START


@dataclass(frozen=True)
class EndOfElement:
    """Closing line of the element currently being read."""

    line: WsvLine


ReadResult = Union[SmlElement, SmlAttribute, EndOfElement]


@dataclass
class ParseResult:
    """Result of building one SML document.

    Contains the document tree together with performance metrics and
    informational diagnostics collected while parsing.
    """

    document: SmlDocument
    performance: PerformanceMetrics = field(default_factory=PerformanceMetrics)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)
    preserved_layout: bool = False
    correlation_id: Optional[str] = None

    @property
    def tree(self) -> SmlDocument:
        """Direct access to the parsed document."""
        return self.document

    @property
    def end_keyword(self) -> Optional[str]:
        return self.document.end_keyword

    @property
    def element_count(self) -> int:
        return self.performance.elements_created

    @property
    def attribute_count(self) -> int:
        return self.performance.attributes_created

    @property
    def processing_time_ms(self) -> float:
        return self.performance.processing_time_ms

    def add_diagnostic(
        self,
        severity: DiagnosticSeverity,
        message: str,
        component: str,
        line_number: Optional[int] = None,
        details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Add diagnostic entry to result."""
        self.diagnostics.append(
            DiagnosticEntry(
                severity=severity,
                message=message,
                component=component,
                line_number=line_number,
                details=details,
                correlation_id=self.correlation_id,
            )
        )

    def summary(self) -> Dict[str, Any]:
        """Get summary statistics for the parse result."""
        return {
            "root": self.document.root.name,
            "end_keyword": self.end_keyword,
            "preserved_layout": self.preserved_layout,
            "element_count": self.element_count,
            "attribute_count": self.attribute_count,
            "performance": self.performance.to_dict(),
            "diagnostics": [diagnostic.to_dict() for diagnostic in self.diagnostics],
        }


class SmlTreeBuilder:
    """Builds SML document trees from text or tokenized lines.

    A builder may be reused for several documents, one at a time; the
    per-parse state lives in the line cursor and the metrics of the result
    being built.
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize tree builder.

        Args:
            config: Parser configuration (defaults to canonical mode)
            correlation_id: Optional correlation ID overriding the config's
        """
        self.config = config or ParserConfig()
        self.correlation_id = correlation_id or self.config.correlation_id
        self.logger = get_logger(__name__, self.correlation_id, "sml_tree_builder")
        self._metrics = PerformanceMetrics()

    @property
    def preserve(self) -> bool:
        return self.config.preserve_whitespace_and_comments

    def build(self, content: str) -> ParseResult:
        """Tokenize and parse SML text.

        Args:
            content: Complete document text

        Returns:
            ParseResult holding the document tree

        Raises:
            SmlParserError: On the first grammar or tokenization fault
        """
        start_time = time.time()
        self.logger.info(
            "Starting SML parse",
            extra={"content_length": len(content), "preserve": self.preserve}
        )
        try:
            lines = tokenize_lines(content, preserve=self.preserve)
            result = self.build_from_lines(lines)
        except SmlParserError as e:
            self.logger.warning(
                "SML parse failed",
                extra={"line": e.line_number, "error": e.message}
            )
            raise

        result.performance.characters_processed = len(content)
        result.performance.processing_time_ms = (time.time() - start_time) * 1000
        self.logger.info(
            "SML parse completed",
            extra={
                "element_count": result.element_count,
                "attribute_count": result.attribute_count,
                "processing_time_ms": result.performance.processing_time_ms,
            }
        )
        return result

    def build_from_lines(self, lines: Sequence[WsvLine]) -> ParseResult:
        """Parse already tokenized lines into a document."""
        self._metrics = PerformanceMetrics(lines_processed=len(lines))
        cursor = LineCursor(lines, self.correlation_id)

        leading_lines = cursor.skip_empty_lines()
        if not cursor.has_line():
            raise cursor.error("Root element expected")

        root = self._read_node(cursor, 1)
        if isinstance(root, EndOfElement) or not root.is_element:
            raise cursor.last_line_error("Invalid root element start")

        trailing_lines = cursor.skip_empty_lines()
        if cursor.has_line():
            raise cursor.error("Only one root element allowed")

        document = SmlDocument(root, end_keyword=cursor.end_keyword)
        if self.preserve:
            document.leading_lines = leading_lines
            document.trailing_lines = trailing_lines

        result = ParseResult(
            document=document,
            performance=self._metrics,
            preserved_layout=self.preserve,
            correlation_id=self.correlation_id,
        )
        result.add_diagnostic(
            DiagnosticSeverity.INFO,
            f"End keyword detected: {cursor.end_keyword!r}",
            "line_cursor",
            details={"minified": cursor.end_keyword is None},
        )
        return result

    def _read_node(self, cursor: LineCursor, depth: int) -> ReadResult:
        line = cursor.get_line()
        role = classify_line(line.values, cursor.end_keyword)
        if role is LineRole.END:
            return EndOfElement(line)

        name = line.values[0]
        if role is LineRole.ELEMENT_START:
            if name is None:
                raise cursor.last_line_error("Null value as element name is not allowed")
            if depth > self.config.max_depth:
                raise cursor.last_line_error(
                    f"Maximum nesting depth of {self.config.max_depth} exceeded"
                )
            element = SmlElement(name, layout=LineLayout.from_line(line))
            self._metrics.elements_created += 1
            self._metrics.max_depth = max(self._metrics.max_depth, depth)
            self._read_element_content(cursor, element, depth)
            return element

        if name is None:
            raise cursor.last_line_error("Null value as attribute name is not allowed")
        self._metrics.attributes_created += 1
        return SmlAttribute(name, line.values[1:], layout=LineLayout.from_line(line))

    def _read_element_content(
        self, cursor: LineCursor, element: SmlElement, depth: int
    ) -> None:
        while True:
            skipped = cursor.skip_empty_lines()
            if not cursor.has_line():
                raise cursor.last_line_error(f'Element "{element.name}" not closed')

            node = self._read_node(cursor, depth + 1)
            if isinstance(node, EndOfElement):
                element.end_layout = LineLayout.from_line(node.line)
                if self.preserve:
                    element.end_leading_lines = skipped
                return

            if self.preserve:
                node.leading_lines = skipped
            element.nodes.append(node)
