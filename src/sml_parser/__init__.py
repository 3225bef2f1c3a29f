"""SML Parser.

Reads and writes SML ("Simple Markup Language") documents: trees of named
elements and attributes written one node per line on top of WSV
(whitespace-separated values) tokenization, with elements closed by an
auto-detected end keyword.

Progressive API Disclosure:
- Level 1: Simple functions - parse(), parse_string(), parse_file(), serialize()
- Level 2: Configured parser - SmlParser class with ParserConfig
- Level 3: Integration adapters - ElementTree, lxml, BeautifulSoup, pandas
"""

__version__ = "0.1.0"
__author__ = "SML Parser Team"

# Progressive API disclosure - Level 1: Simple functions
# Progressive API disclosure - Level 2: Advanced configuration
from .api import (
    SmlParser,
    parse,
    parse_file,
    parse_string,
    save_file,
    serialize,
    serialize_minified,
)

# Configuration classes for advanced usage
from .shared.config import ParserConfig, SerializerConfig

# Error types
from .shared.errors import SmlError, SmlParserError, SmlStructureError, WsvParserError

# Core result objects and data structures
from .tree import ParseResult, SmlAttribute, SmlDocument, SmlElement

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Level 1: Simple parsing functions (progressive disclosure entry point)
    "parse",
    "parse_string",
    "parse_file",
    "serialize",
    "serialize_minified",
    "save_file",

    # Level 2: Advanced parser class
    "SmlParser",

    # Result objects and data structures
    "ParseResult",
    "SmlDocument",
    "SmlElement",
    "SmlAttribute",

    # Configuration classes for advanced usage
    "ParserConfig",
    "SerializerConfig",

    # Error types
    "SmlError",
    "SmlParserError",
    "SmlStructureError",
    "WsvParserError",
]
