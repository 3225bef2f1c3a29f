"""Shared utilities for SML parsing.

This module provides the error types, configuration objects, result records
and logging helpers used across the tokenization, tree and API layers.
"""

from .result import (
    DiagnosticEntry,
    DiagnosticSeverity,
    PerformanceMetrics,
)
from .config import (
    ConfigError,
    ConfigValidationError,
    ParserConfig,
    SerializerConfig,
)
from .errors import (
    SmlError,
    SmlParserError,
    SmlStructureError,
    WsvParserError,
)
from .logging import (
    CorrelationLogger,
    configure_logging,
    get_logger,
)

__all__ = [
    "DiagnosticEntry",
    "DiagnosticSeverity",
    "PerformanceMetrics",
    "ConfigError",
    "ConfigValidationError",
    "ParserConfig",
    "SerializerConfig",
    "SmlError",
    "SmlParserError",
    "SmlStructureError",
    "WsvParserError",
    "CorrelationLogger",
    "configure_logging",
    "get_logger",
]
