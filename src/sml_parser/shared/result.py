"""Result objects and diagnostic types for SML parsing.

This module defines the diagnostic and performance records attached to
parse results and CLI reports.
"""

import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Optional


class DiagnosticSeverity(Enum):
    """Severity levels for diagnostic entries."""

    DEBUG = auto()
    INFO = auto()
    WARNING = auto()
    ERROR = auto()
    CRITICAL = auto()


@dataclass
class DiagnosticEntry:
    """Single diagnostic entry with context information."""

    severity: DiagnosticSeverity
    message: str
    component: str
    line_number: Optional[int] = None
    details: Optional[Dict[str, Any]] = None
    timestamp: float = field(default_factory=time.time)
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate diagnostic entry."""
        if not self.message:
            raise ValueError("Diagnostic message cannot be empty")
        if not self.component:
            raise ValueError("Diagnostic component cannot be empty")
        if self.line_number is not None and self.line_number < 1:
            raise ValueError("Diagnostic line number must be >= 1")

    def to_dict(self) -> Dict[str, Any]:
        """Convert diagnostic to a JSON-friendly dictionary."""
        result: Dict[str, Any] = {
            "severity": self.severity.name,
            "message": self.message,
            "component": self.component,
        }
        if self.line_number is not None:
            result["line"] = self.line_number
        if self.details:
            result["details"] = dict(self.details)
        return result


@dataclass
class PerformanceMetrics:
    """Performance metrics for a single parse."""

    processing_time_ms: float = 0.0
    characters_processed: int = 0
    lines_processed: int = 0
    elements_created: int = 0
    attributes_created: int = 0
    max_depth: int = 0

    @property
    def lines_per_second(self) -> float:
        """Calculate lines processed per second."""
        if self.processing_time_ms <= 0:
            return 0.0
        return (self.lines_processed * 1000.0) / self.processing_time_ms

    @property
    def nodes_created(self) -> int:
        """Total number of elements and attributes built."""
        return self.elements_created + self.attributes_created

    def to_dict(self) -> Dict[str, Any]:
        """Convert metrics to a dictionary."""
        return {
            "processing_time_ms": self.processing_time_ms,
            "characters_processed": self.characters_processed,
            "lines_processed": self.lines_processed,
            "elements_created": self.elements_created,
            "attributes_created": self.attributes_created,
            "max_depth": self.max_depth,
        }
