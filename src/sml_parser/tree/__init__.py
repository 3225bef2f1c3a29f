"""Document tree layer for SML parsing.

This module provides the SML document tree model together with the parser
that builds it from tokenized lines and the serializer that writes it back.

Key Components:
    SmlDocument: Document owning the root element, indentation and end keyword
    SmlElement: Named node with ordered child elements and attributes
    SmlAttribute: Named leaf node holding one or more values
    SmlTreeBuilder: Recursive descent parser producing a ParseResult
    SmlSerializer: Writer for default and minified output
"""

from .nodes import (
    DEFAULT_END_KEYWORD,
    LineLayout,
    NodeKind,
    SmlAttribute,
    SmlDocument,
    SmlElement,
    SmlNode,
    names_equal,
)
from .builder import (
    EndOfElement,
    LineRole,
    ParseResult,
    SmlTreeBuilder,
    classify_line,
)
from .serializer import SmlSerializer, serialize_document

__all__ = [
    "DEFAULT_END_KEYWORD",
    "EndOfElement",
    "LineLayout",
    "LineRole",
    "NodeKind",
    "ParseResult",
    "SmlAttribute",
    "SmlDocument",
    "SmlElement",
    "SmlNode",
    "SmlSerializer",
    "SmlTreeBuilder",
    "classify_line",
    "names_equal",
    "serialize_document",
]
