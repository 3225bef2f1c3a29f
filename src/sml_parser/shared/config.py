"""Configuration classes for SML parsing and serialization.

This module provides immutable configuration objects for the parser and
serializer, with presets and dictionary/JSON conversion.
"""

import json
from dataclasses import dataclass, fields, replace
from typing import Any, Dict, List, Optional

DEFAULT_MAX_DEPTH = 256
# Each nesting level costs two interpreter frames while parsing.
MAX_SUPPORTED_DEPTH = 400


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigValidationError(ConfigError):
    """Exception raised when configuration validation fails."""

    def __init__(self, message: str, field_name: Optional[str] = None,
                 suggestions: Optional[List[str]] = None):
        super().__init__(message)
        self.field_name = field_name
        self.suggestions = suggestions or []


@dataclass(frozen=True)
class ParserConfig:
    """Configuration for reading SML documents.

    Attributes:
        preserve_whitespace_and_comments: Keep whitespace, comments and blank
            lines as layout records on the parsed nodes
        max_depth: Maximum element nesting depth accepted before the parse
            fails with a positioned error
        correlation_id: Optional correlation ID attached to log records
    """

    preserve_whitespace_and_comments: bool = False
    max_depth: int = DEFAULT_MAX_DEPTH
    correlation_id: Optional[str] = None

    def __post_init__(self) -> None:
        """Validate parser configuration."""
        if not isinstance(self.preserve_whitespace_and_comments, bool):
            raise ConfigValidationError(
                "preserve_whitespace_and_comments must be a boolean",
                field_name="preserve_whitespace_and_comments",
            )
        if not isinstance(self.max_depth, int) or isinstance(self.max_depth, bool):
            raise ConfigValidationError(
                f"max_depth must be an integer, got {type(self.max_depth).__name__}",
                field_name="max_depth",
            )
        if self.correlation_id is not None and not isinstance(self.correlation_id, str):
            raise ConfigValidationError(
                "correlation_id must be a string or None", field_name="correlation_id"
            )
        if self.max_depth < 1:
            raise ConfigValidationError(
                "max_depth must be >= 1", field_name="max_depth"
            )
        if self.max_depth > MAX_SUPPORTED_DEPTH:
            raise ConfigValidationError(
                f"max_depth must be <= {MAX_SUPPORTED_DEPTH}",
                field_name="max_depth",
                suggestions=["Flatten the document structure"],
            )

    @classmethod
    def canonical(cls) -> "ParserConfig":
        """Create configuration that rebuilds structure only."""
        return cls()

    @classmethod
    def preserving(cls) -> "ParserConfig":
        """Create configuration that keeps whitespace, comments and blank lines."""
        return cls(preserve_whitespace_and_comments=True)

    def override(self, **kwargs: Any) -> "ParserConfig":
        """Create a new configuration with specific overrides.

        Example:
            >>> ParserConfig().override(max_depth=32).max_depth
            32
        """
        return replace(self, **kwargs)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def to_json(self, indent: int = 2) -> str:
        """Convert configuration to JSON string."""
        return json.dumps(self.to_dict(), indent=indent)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ParserConfig":
        """Create configuration from dictionary, rejecting unknown keys."""
        return cls(**_known_fields(cls, data))

    @classmethod
    def from_json(cls, json_str: str) -> "ParserConfig":
        """Create configuration from JSON string."""
        return cls.from_dict(json.loads(json_str))


@dataclass(frozen=True)
class SerializerConfig:
    """Configuration for writing SML documents.

    Attributes:
        default_indentation: Indentation unit overriding the document's own;
            ``None`` keeps the document's setting
        minified: Emit minified output (no indentation, null end keyword)
    """

    default_indentation: Optional[str] = None
    minified: bool = False

    def __post_init__(self) -> None:
        """Validate serializer configuration."""
        if not isinstance(self.minified, bool):
            raise ConfigValidationError("minified must be a boolean", field_name="minified")
        if self.default_indentation is not None:
            if not isinstance(self.default_indentation, str):
                raise ConfigValidationError(
                    "default_indentation must be a string, "
                    f"got {type(self.default_indentation).__name__}",
                    field_name="default_indentation",
                )
            if self.default_indentation.strip(" \t"):
                raise ConfigValidationError(
                    "default_indentation may only contain spaces and tabs",
                    field_name="default_indentation",
                )

    @classmethod
    def minified_output(cls) -> "SerializerConfig":
        """Create configuration for the shortest valid output."""
        return cls(minified=True)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary format."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SerializerConfig":
        """Create configuration from dictionary, rejecting unknown keys."""
        return cls(**_known_fields(cls, data))


def _known_fields(target_class: type, data: Dict[str, Any]) -> Dict[str, Any]:
    known = {f.name for f in fields(target_class)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigValidationError(
            f"Unknown {target_class.__name__} fields: {', '.join(unknown)}",
            field_name=unknown[0],
            suggestions=[f"Valid fields: {', '.join(sorted(known))}"],
        )
    return dict(data)
