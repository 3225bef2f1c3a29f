"""WSV (Whitespace-Separated Values) line tokenization.

WSV splits every line of a document into an ordered sequence of values.
Values are separated by Unicode whitespace, ``-`` denotes a null value,
``#`` starts a comment, and double-quoted strings may contain whitespace,
``""`` for a literal quote and ``"/"`` for a line feed.

The tokenizer runs in two modes: the canonical mode keeps only the values of
each line, while the preserving mode additionally records the whitespace
runs around the values and the trailing comment so a line can be re-emitted
as written.
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence

from sml_parser.shared.errors import WsvParserError

NULL_MARKER = "-"
COMMENT_START = "#"
DOUBLE_QUOTE = '"'
LINE_FEED = "\n"
STRING_LINE_BREAK = '"/"'

WHITESPACE_CHARACTERS = frozenset(
    chr(code)
    for code in (
        0x0009, 0x000B, 0x000C, 0x000D, 0x0020, 0x0085, 0x00A0, 0x1680,
        0x2000, 0x2001, 0x2002, 0x2003, 0x2004, 0x2005, 0x2006, 0x2007,
        0x2008, 0x2009, 0x200A, 0x2028, 0x2029, 0x202F, 0x205F, 0x3000,
    )
)


def is_whitespace(char: str) -> bool:
    """Check whether a single character separates WSV values."""
    return char in WHITESPACE_CHARACTERS


@dataclass
class WsvLine:
    """One tokenized WSV line.

    Attributes:
        values: Values in line order; ``None`` marks a null value
        whitespaces: Preserving mode only. ``whitespaces[i]`` is the run
            before value ``i`` and ``whitespaces[len(values)]`` the run after
            the last value; ``""`` records an absent run, while ``None`` or
            a missing entry falls back to the default separator
        comment: Preserving mode only. Comment text without the ``#``
    """

    values: List[Optional[str]] = field(default_factory=list)
    whitespaces: Optional[List[Optional[str]]] = None
    comment: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        """A line without values, possibly holding whitespace or a comment."""
        return not self.values

    @property
    def has_layout(self) -> bool:
        """Check whether whitespace or comment information was recorded."""
        return self.whitespaces is not None or self.comment is not None

    def __len__(self) -> int:
        return len(self.values)

    def to_string(self) -> str:
        """Serialize the line with its recorded layout."""
        return serialize_line(self.values, self.whitespaces, self.comment)


class _LineTokenizer:
    """Character-level scanner for a single line."""

    def __init__(self, text: str, line_index: int, preserve: bool) -> None:
        self.text = text
        self.line_index = line_index
        self.preserve = preserve
        self.position = 0

    def _error(self, message: str) -> WsvParserError:
        return WsvParserError(self.line_index, self.position, message, self.text)

    def _at_end(self) -> bool:
        return self.position >= len(self.text)

    def _read_whitespace(self) -> str:
        start = self.position
        while not self._at_end() and is_whitespace(self.text[self.position]):
            self.position += 1
        return self.text[start:self.position]

    def _read_string(self) -> str:
        # Positioned on the opening quote.
        self.position += 1
        chars: List[str] = []
        while True:
            if self._at_end():
                raise self._error("String not closed")
            char = self.text[self.position]
            if char != DOUBLE_QUOTE:
                chars.append(char)
                self.position += 1
                continue
            next_char = self.text[self.position + 1:self.position + 2]
            if next_char == DOUBLE_QUOTE:
                chars.append(DOUBLE_QUOTE)
                self.position += 2
            elif next_char == "/":
                if self.text[self.position + 2:self.position + 3] != DOUBLE_QUOTE:
                    self.position += 2
                    raise self._error("Invalid string line break")
                chars.append(LINE_FEED)
                self.position += 3
            else:
                self.position += 1
                break
        if not self._at_end():
            char = self.text[self.position]
            if not is_whitespace(char) and char != COMMENT_START:
                raise self._error("Invalid character after string")
        return "".join(chars)

    def _read_unquoted(self) -> Optional[str]:
        start = self.position
        while not self._at_end():
            char = self.text[self.position]
            if is_whitespace(char) or char == COMMENT_START:
                break
            if char == DOUBLE_QUOTE:
                raise self._error("Invalid double quote in value")
            self.position += 1
        value = self.text[start:self.position]
        if value == NULL_MARKER:
            return None
        return value

    def tokenize(self) -> WsvLine:
        values: List[Optional[str]] = []
        whitespaces: List[Optional[str]] = []
        comment: Optional[str] = None

        while True:
            whitespace = self._read_whitespace()
            if self._at_end():
                whitespaces.append(whitespace)
                break
            if self.text[self.position] == COMMENT_START:
                whitespaces.append(whitespace)
                comment = self.text[self.position + 1:]
                break
            whitespaces.append(whitespace)
            if self.text[self.position] == DOUBLE_QUOTE:
                values.append(self._read_string())
            else:
                values.append(self._read_unquoted())

        if not self.preserve:
            return WsvLine(values)
        return WsvLine(values, whitespaces, comment)


def tokenize_line(text: str, line_index: int = 0, preserve: bool = False) -> WsvLine:
    """Tokenize a single line of WSV text.

    Args:
        text: Line content without the line feed
        line_index: Zero-based line index used for error positions
        preserve: Record whitespace runs and the comment

    Returns:
        The tokenized line

    Raises:
        WsvParserError: If the line is not valid WSV
    """
    return _LineTokenizer(text, line_index, preserve).tokenize()


def tokenize_lines(content: str, preserve: bool = False) -> List[WsvLine]:
    """Split a document into lines and tokenize each one.

    An empty document has no lines. Otherwise the content is split on line
    feeds, so a trailing line feed produces a final empty line.

    Examples:
        >>> [line.values for line in tokenize_lines('a b\\n- ""')]
        [['a', 'b'], [None, '']]
    """
    if not content:
        return []
    return [
        tokenize_line(text, index, preserve)
        for index, text in enumerate(content.split(LINE_FEED))
    ]


def _needs_quoting(value: str) -> bool:
    if value == NULL_MARKER:
        return True
    for char in value:
        if char in (DOUBLE_QUOTE, COMMENT_START, LINE_FEED) or is_whitespace(char):
            return True
    return False


def serialize_value(value: Optional[str]) -> str:
    """Escape a single value.

    Examples:
        >>> serialize_value(None), serialize_value(""), serialize_value("a b")
        ('-', '""', '"a b"')
    """
    if value is None:
        return NULL_MARKER
    if value == "":
        return DOUBLE_QUOTE * 2
    if not _needs_quoting(value):
        return value
    escaped = value.replace(DOUBLE_QUOTE, DOUBLE_QUOTE * 2)
    escaped = escaped.replace(LINE_FEED, STRING_LINE_BREAK)
    return f"{DOUBLE_QUOTE}{escaped}{DOUBLE_QUOTE}"


def serialize_values(values: Iterable[Optional[str]]) -> str:
    """Escape values and join them with single spaces."""
    return " ".join(serialize_value(value) for value in values)


def serialize_line(
    values: Sequence[Optional[str]],
    whitespaces: Optional[Sequence[Optional[str]]] = None,
    comment: Optional[str] = None
) -> str:
    """Serialize one line, re-applying recorded whitespace and comment.

    Missing whitespace runs between values fall back to a single space, so
    a layout recorded for fewer values still yields a valid line.
    """
    if whitespaces is None:
        whitespaces = []
    parts: List[str] = []
    for index, value in enumerate(values):
        whitespace = whitespaces[index] if index < len(whitespaces) else None
        if whitespace:
            parts.append(whitespace)
        elif index > 0:
            parts.append(" ")
        parts.append(serialize_value(value))

    trailing_index = len(values)
    trailing = whitespaces[trailing_index] if trailing_index < len(whitespaces) else None
    if trailing is not None:
        parts.append(trailing)
    elif comment is not None and values:
        parts.append(" ")

    if comment is not None:
        parts.append(COMMENT_START)
        parts.append(comment)
    return "".join(parts)


def serialize_lines(lines: Iterable[WsvLine]) -> str:
    """Serialize tokenized lines back into a document."""
    return LINE_FEED.join(line.to_string() for line in lines)
