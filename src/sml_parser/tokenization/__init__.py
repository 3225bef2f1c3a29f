"""Tokenization layer for SML parsing.

SML documents are read line by line on top of WSV tokenization. This package
provides the WSV tokenizer/serializer and the line cursor consumed by the
tree builder.

Key Components:
    WsvLine: One tokenized line with optional whitespace and comment layout
    tokenize_lines: Split a document into tokenized lines
    serialize_value / serialize_values / serialize_line: WSV escaping
    LineCursor: Read position and end keyword detection for one parse
"""

from .wsv import (
    NULL_MARKER,
    WsvLine,
    is_whitespace,
    serialize_line,
    serialize_lines,
    serialize_value,
    serialize_values,
    tokenize_line,
    tokenize_lines,
)
from .lines import LineCursor

__all__ = [
    "LineCursor",
    "NULL_MARKER",
    "WsvLine",
    "is_whitespace",
    "serialize_line",
    "serialize_lines",
    "serialize_value",
    "serialize_values",
    "tokenize_line",
    "tokenize_lines",
]
