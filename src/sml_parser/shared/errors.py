"""Exception types for SML parsing and tree construction.

Two disjoint families are defined here: structural errors raised when the
tree-building API is misused, and positioned parse errors raised while
reading SML or WSV text.
"""

from typing import Optional


class SmlError(Exception):
    """Base exception for all SML errors."""


class SmlStructureError(SmlError, ValueError):
    """Raised when a node is constructed or mutated with invalid content."""


class SmlParserError(SmlError):
    """Parse error positioned at a line of the input document.

    Attributes:
        line_index: Zero-based index of the line nearest the fault
        message: Human-readable description without position
    """

    def __init__(self, line_index: int, message: str) -> None:
        self.line_index = line_index
        self.message = message
        super().__init__(f"{message} ({line_index + 1})")

    @property
    def line_number(self) -> int:
        """One-based line number for display."""
        return self.line_index + 1


class WsvParserError(SmlParserError):
    """Tokenization error positioned at a line and character."""

    def __init__(
        self,
        line_index: int,
        char_index: int,
        message: str,
        line_text: Optional[str] = None
    ) -> None:
        self.char_index = char_index
        self.line_text = line_text
        SmlError.__init__(self, f"{message} ({line_index + 1}, {char_index + 1})")
        self.line_index = line_index
        self.message = message

    @property
    def column_number(self) -> int:
        """One-based character position for display."""
        return self.char_index + 1
