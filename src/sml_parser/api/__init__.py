"""Public API for SML parsing.

Level 1 are the module-level functions ``parse``, ``parse_string``,
``parse_file``, ``serialize`` and ``save_file``; level 2 is the configurable
``SmlParser`` class; the adapters convert documents to other libraries.
"""

from .adapters import (
    AdapterMetadata,
    AdapterType,
    BeautifulSoupAdapter,
    ConversionDirection,
    ConversionResult,
    ElementTreeAdapter,
    IntegrationAdapter,
    LxmlAdapter,
    PandasAdapter,
    get_adapter,
    get_adapters_by_type,
    list_available_adapters,
    register_adapter,
    validate_adapter_compatibility,
)
from .parser import (
    SmlParser,
    parse,
    parse_file,
    parse_string,
    save_file,
    serialize,
    serialize_minified,
)

__all__ = [
    "AdapterMetadata",
    "AdapterType",
    "BeautifulSoupAdapter",
    "ConversionDirection",
    "ConversionResult",
    "ElementTreeAdapter",
    "IntegrationAdapter",
    "LxmlAdapter",
    "PandasAdapter",
    "SmlParser",
    "get_adapter",
    "get_adapters_by_type",
    "list_available_adapters",
    "parse",
    "parse_file",
    "parse_string",
    "register_adapter",
    "save_file",
    "serialize",
    "serialize_minified",
    "validate_adapter_compatibility",
]
