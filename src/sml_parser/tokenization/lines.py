"""Line cursor over tokenized WSV lines.

The cursor tracks the read position of a single parse and determines the
document's end keyword once, when it is constructed.
"""

from typing import List, Optional, Sequence

from sml_parser.shared.errors import SmlParserError
from sml_parser.shared.logging import get_logger
from sml_parser.tokenization.wsv import WsvLine


class LineCursor:
    """Sequential reader over the lines of one SML document.

    The end keyword is the single token closing the root element, which by
    the grammar is the last line holding any value. Detection scans backwards
    from the last line: the first one-token line wins, while a multi-token
    line found first means the document cannot be closed.

    Examples:
        >>> from sml_parser.tokenization.wsv import tokenize_lines
        >>> cursor = LineCursor(tokenize_lines("Root\\nEnd"))
        >>> cursor.end_keyword
        'End'
    """

    def __init__(
        self,
        lines: Sequence[WsvLine],
        correlation_id: Optional[str] = None
    ) -> None:
        """Initialize the cursor and detect the end keyword.

        Args:
            lines: Tokenized document lines
            correlation_id: Optional correlation ID for log records

        Raises:
            SmlParserError: If the end keyword could not be detected
        """
        self.lines: List[WsvLine] = list(lines)
        self.index = 0
        self.logger = get_logger(__name__, correlation_id, "line_cursor")
        self._end_keyword: Optional[str] = None
        self._has_end_keyword = False
        self._detect_end_keyword()

    @property
    def end_keyword(self) -> Optional[str]:
        """Detected end keyword; ``None`` for minified documents."""
        return self._end_keyword

    @property
    def has_end_keyword(self) -> bool:
        """Check whether detection found a closing line."""
        return self._has_end_keyword

    @property
    def line_count(self) -> int:
        """Total number of lines, including empty ones."""
        return len(self.lines)

    def has_line(self) -> bool:
        """Check whether unread lines remain."""
        return self.index < len(self.lines)

    def is_empty_line(self) -> bool:
        """Check whether the current line holds no values, without consuming it."""
        return self.has_line() and self.lines[self.index].is_empty

    def peek_line(self) -> WsvLine:
        """Return the current line without consuming it."""
        return self.lines[self.index]

    def get_line(self) -> WsvLine:
        """Consume and return the current line."""
        line = self.lines[self.index]
        self.index += 1
        return line

    def skip_empty_lines(self) -> List[WsvLine]:
        """Consume consecutive empty lines and return them in order."""
        skipped = []
        while self.is_empty_line():
            skipped.append(self.get_line())
        return skipped

    def error(self, message: str) -> SmlParserError:
        """Create a parse error positioned at the current line."""
        return SmlParserError(self.index, message)

    def last_line_error(self, message: str) -> SmlParserError:
        """Create a parse error positioned at the last consumed line."""
        return SmlParserError(self.index - 1, message)

    def _detect_end_keyword(self) -> None:
        if all(line.is_empty for line in self.lines):
            # Nothing to close; the parser reports the missing root element.
            self.logger.debug("Blank document, end keyword detection skipped")
            return

        for line_index in range(len(self.lines) - 1, -1, -1):
            values = self.lines[line_index].values
            if len(values) == 1:
                self._end_keyword = values[0]
                self._has_end_keyword = True
                self.logger.debug(
                    "End keyword detected",
                    extra={"end_keyword": self._end_keyword, "line": line_index + 1}
                )
                return
            if len(values) > 1:
                break

        raise SmlParserError(len(self.lines) - 1, "End keyword could not be detected")
