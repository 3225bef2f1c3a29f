"""Integration adapters for exchanging SML documents with popular libraries.

This module provides bidirectional conversion between SML documents and XML
element trees (ElementTree, lxml, BeautifulSoup) as well as a tabular outline
view for pandas. The XML mapping is::

    <element name="Root">
      <attribute name="Name"><value>John</value></attribute>
      <attribute name="Age"><value null="true"/></attribute>
      <element name="Child"/>
    </element>

Adapters never raise on conversion problems; failures are reported through
``ConversionResult.success`` and its diagnostics.
"""

import threading
import time
import weakref
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Type, Union

from sml_parser.shared import (
    DiagnosticEntry,
    DiagnosticSeverity,
    SmlStructureError,
    get_logger,
)
from sml_parser.tree import NodeKind, ParseResult, SmlAttribute, SmlDocument, SmlElement

ELEMENT_TAG = "element"
ATTRIBUTE_TAG = "attribute"
VALUE_TAG = "value"
NAME_KEY = "name"
NULL_KEY = "null"

DocumentSource = Union[SmlDocument, ParseResult]


class AdapterType(Enum):
    """Types of integration adapters."""

    XML_LIBRARY = auto()     # XML processing libraries (ElementTree, lxml, BeautifulSoup)
    DATA_FRAME = auto()      # DataFrame libraries (pandas)


class ConversionDirection(Enum):
    """Direction of data conversion."""

    TO_TARGET = auto()      # Convert from SmlDocument to target format
    FROM_TARGET = auto()    # Convert from target format to SmlDocument


@dataclass
class AdapterMetadata:
    """Metadata about an integration adapter."""

    name: str
    version: str
    adapter_type: AdapterType
    target_library: str
    supported_versions: List[str]
    description: str
    author: str = "sml-parser"
    documentation_url: Optional[str] = None
    compatibility_notes: Optional[str] = None


@dataclass
class ConversionResult:
    """Result of a conversion operation."""

    success: bool
    converted_data: Any
    original_data: Any
    conversion_time_ms: float
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    metadata: Dict[str, Any] = field(default_factory=dict)
    diagnostics: List[DiagnosticEntry] = field(default_factory=list)


class AdapterPerformanceProfiler:
    """Performance profiling utility for adapters."""

    MAX_SAMPLES = 1000

    def __init__(self) -> None:
        """Initialize performance profiler."""
        self._metrics: Dict[str, List[float]] = {}
        self._lock = threading.RLock()

    def record_conversion(self, adapter_name: str, conversion_time_ms: float) -> None:
        """Record conversion performance."""
        with self._lock:
            samples = self._metrics.setdefault(adapter_name, [])
            samples.append(conversion_time_ms)
            if len(samples) > self.MAX_SAMPLES:
                del samples[:-self.MAX_SAMPLES]

    def get_statistics(self, adapter_name: str) -> Dict[str, float]:
        """Get performance statistics for an adapter."""
        with self._lock:
            times = self._metrics.get(adapter_name)
            if not times:
                return {}
            return {
                "count": len(times),
                "average_ms": sum(times) / len(times),
                "min_ms": min(times),
                "max_ms": max(times),
                "total_ms": sum(times),
            }

    def get_all_statistics(self) -> Dict[str, Dict[str, float]]:
        """Get performance statistics for all adapters."""
        with self._lock:
            return {name: self.get_statistics(name) for name in self._metrics}


def _as_document(source: DocumentSource) -> SmlDocument:
    if isinstance(source, ParseResult):
        return source.document
    if isinstance(source, SmlDocument):
        return source
    raise TypeError(f"Expected SmlDocument or ParseResult, got {type(source).__name__}")


def _build_xml(element: SmlElement, etree: Any, parent: Any = None) -> Any:
    """Build an XML element tree with any ElementTree-compatible module."""
    if parent is None:
        xml_element = etree.Element(ELEMENT_TAG)
    else:
        xml_element = etree.SubElement(parent, ELEMENT_TAG)
    xml_element.set(NAME_KEY, element.name)

    for node in element.nodes:
        if node.kind is NodeKind.ELEMENT:
            _build_xml(node, etree, xml_element)
            continue
        xml_attribute = etree.SubElement(xml_element, ATTRIBUTE_TAG)
        xml_attribute.set(NAME_KEY, node.name)
        for value in node.values:
            xml_value = etree.SubElement(xml_attribute, VALUE_TAG)
            if value is None:
                xml_value.set(NULL_KEY, "true")
            else:
                xml_value.text = value
    return xml_element


def _xml_children(xml_element: Any) -> List[Any]:
    # lxml yields comments and processing instructions with non-string tags.
    return [child for child in xml_element if isinstance(child.tag, str)]


def _xml_name(xml_element: Any) -> str:
    name = xml_element.get(NAME_KEY)
    if name is None:
        raise SmlStructureError(f"<{xml_element.tag}> is missing the '{NAME_KEY}' attribute")
    return name


def _read_xml(xml_element: Any) -> SmlElement:
    """Rebuild an SML element from its XML form."""
    if xml_element.tag != ELEMENT_TAG:
        raise SmlStructureError(f"Expected <{ELEMENT_TAG}>, found <{xml_element.tag}>")

    element = SmlElement(_xml_name(xml_element))
    for child in _xml_children(xml_element):
        if child.tag == ELEMENT_TAG:
            element.add(_read_xml(child))
        elif child.tag == ATTRIBUTE_TAG:
            values: List[Optional[str]] = []
            for xml_value in _xml_children(child):
                if xml_value.tag != VALUE_TAG:
                    raise SmlStructureError(
                        f"Expected <{VALUE_TAG}>, found <{xml_value.tag}>"
                    )
                if xml_value.get(NULL_KEY) == "true":
                    values.append(None)
                else:
                    values.append(xml_value.text or "")
            element.add(SmlAttribute(_xml_name(child), values))
        else:
            raise SmlStructureError(f"Unexpected <{child.tag}> inside <{ELEMENT_TAG}>")
    return element


class IntegrationAdapter(ABC):
    """Abstract base class for all integration adapters.

    This class defines the interface for bidirectional conversion between
    SML documents and target format representations, providing consistent
    error handling, performance monitoring, and validation capabilities.
    """

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        """Initialize the integration adapter.

        Args:
            correlation_id: Optional correlation ID for request tracking
        """
        self.correlation_id = correlation_id
        self._logger = get_logger(__name__, correlation_id, self.__class__.__name__)
        self._profiler = AdapterPerformanceProfiler()

    @property
    @abstractmethod
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the target library is available and compatible."""

    @abstractmethod
    def _convert_to(self, document: SmlDocument) -> Any:
        """Convert a document to the target representation."""

    @abstractmethod
    def _convert_from(self, target_data: Any) -> SmlDocument:
        """Convert the target representation to a document."""

    def to_target(self, source: DocumentSource) -> ConversionResult:
        """Convert an SML document to the target format.

        Args:
            source: Document, or the ParseResult holding it

        Returns:
            ConversionResult containing the converted data and metadata
        """
        start_time = time.time()
        try:
            document = _as_document(source)
            converted = self._convert_to(document)
        except (SmlStructureError, TypeError, ValueError, ImportError) as e:
            return self._create_error_result(
                f"Failed to convert to {self.metadata.target_library}: {e}",
                source,
                (time.time() - start_time) * 1000
            )

        processing_time = (time.time() - start_time) * 1000
        self._record_performance(processing_time)
        return ConversionResult(
            success=True,
            converted_data=converted,
            original_data=source,
            conversion_time_ms=processing_time,
            metadata={
                "element_count": document.element_count,
                "attribute_count": document.attribute_count,
            }
        )

    def from_target(self, target_data: Any) -> ConversionResult:
        """Convert target format data to an SML document.

        Args:
            target_data: Data in target format

        Returns:
            ConversionResult containing an SmlDocument
        """
        start_time = time.time()
        try:
            document = self._convert_from(target_data)
        except (SmlStructureError, TypeError, ValueError, KeyError, ImportError) as e:
            return self._create_error_result(
                f"Failed to convert from {self.metadata.target_library}: {e}",
                target_data,
                (time.time() - start_time) * 1000
            )

        processing_time = (time.time() - start_time) * 1000
        self._record_performance(processing_time)
        return ConversionResult(
            success=True,
            converted_data=document,
            original_data=target_data,
            conversion_time_ms=processing_time,
            metadata={
                "root": document.root.name,
                "element_count": document.element_count,
            }
        )

    def validate_conversion(
        self,
        original: Any,
        converted: Any,
        direction: ConversionDirection
    ) -> bool:
        """Validate the quality of a conversion operation.

        Args:
            original: Original data before conversion
            converted: Data after conversion
            direction: Direction of the conversion

        Returns:
            True if conversion maintains data integrity, False otherwise
        """
        if converted is None and original is not None:
            return False
        return self._perform_validation(original, converted, direction)

    def _perform_validation(
        self,
        original: Any,
        converted: Any,
        direction: ConversionDirection
    ) -> bool:
        """Compare the document on either side of the conversion.

        The target side is converted back and its element and attribute
        counts are compared with the SML side.
        """
        if direction is ConversionDirection.TO_TARGET:
            document, target = _as_document(original), converted
        else:
            document, target = _as_document(converted), original
        result = self.from_target(target)
        if not result.success:
            return False
        return (
            result.converted_data.element_count == document.element_count
            and result.converted_data.attribute_count == document.attribute_count
        )

    def get_performance_stats(self) -> Dict[str, Dict[str, float]]:
        """Get performance statistics for this adapter."""
        return self._profiler.get_all_statistics()

    def _record_performance(self, operation_time_ms: float) -> None:
        """Record performance metrics for this adapter."""
        self._profiler.record_conversion(self.metadata.name, operation_time_ms)

    def _create_error_result(
        self,
        error_message: str,
        original_data: Any,
        conversion_time_ms: float = 0.0
    ) -> ConversionResult:
        """Create a ConversionResult for error conditions."""
        self._logger.warning(error_message)
        return ConversionResult(
            success=False,
            converted_data=None,
            original_data=original_data,
            conversion_time_ms=conversion_time_ms,
            errors=[error_message],
            diagnostics=[
                DiagnosticEntry(
                    severity=DiagnosticSeverity.ERROR,
                    message=error_message,
                    component=self.__class__.__name__,
                    correlation_id=self.correlation_id
                )
            ]
        )


class AdapterRegistry:
    """Registry for managing integration adapters."""

    def __init__(self) -> None:
        """Initialize the adapter registry."""
        self._adapters: Dict[str, Type[IntegrationAdapter]] = {}
        self._instances: weakref.WeakValueDictionary = weakref.WeakValueDictionary()
        self._lock = threading.RLock()

    def register(self, adapter_class: Type[IntegrationAdapter]) -> None:
        """Register an adapter class under its metadata name.

        Args:
            adapter_class: Adapter class to register
        """
        with self._lock:
            metadata = adapter_class().metadata
            self._adapters[metadata.name] = adapter_class

    def get_adapter(
        self,
        adapter_name: str,
        correlation_id: Optional[str] = None
    ) -> Optional[IntegrationAdapter]:
        """Get an adapter instance by name.

        Args:
            adapter_name: Name of the adapter
            correlation_id: Optional correlation ID

        Returns:
            Adapter instance if found and available, None otherwise
        """
        with self._lock:
            adapter_class = self._adapters.get(adapter_name)
            if adapter_class is None:
                return None

            instance_key = f"{adapter_name}_{correlation_id or 'default'}"
            instance = self._instances.get(instance_key)
            if instance is not None:
                return instance

            instance = adapter_class(correlation_id)
            if not instance.is_available():
                return None
            self._instances[instance_key] = instance
            return instance

    def list_available_adapters(self) -> List[AdapterMetadata]:
        """List all available adapters with their metadata."""
        with self._lock:
            instances = [adapter_class() for adapter_class in self._adapters.values()]
        return [instance.metadata for instance in instances if instance.is_available()]

    def get_adapters_by_type(self, adapter_type: AdapterType) -> List[str]:
        """Get names of available adapters of the given type."""
        return [
            metadata.name for metadata in self.list_available_adapters()
            if metadata.adapter_type is adapter_type
        ]


# Global adapter registry instance
_adapter_registry = AdapterRegistry()


def register_adapter(adapter_class: Type[IntegrationAdapter]) -> None:
    """Register an integration adapter globally.

    Args:
        adapter_class: Adapter class to register
    """
    _adapter_registry.register(adapter_class)


def get_adapter(
    adapter_name: str,
    correlation_id: Optional[str] = None
) -> Optional[IntegrationAdapter]:
    """Get a registered adapter instance.

    Args:
        adapter_name: Name of the adapter
        correlation_id: Optional correlation ID

    Returns:
        Adapter instance if available, None otherwise
    """
    return _adapter_registry.get_adapter(adapter_name, correlation_id)


def list_available_adapters() -> List[AdapterMetadata]:
    """List all available integration adapters."""
    return _adapter_registry.list_available_adapters()


def get_adapters_by_type(adapter_type: AdapterType) -> List[str]:
    """Get adapter names by type."""
    return _adapter_registry.get_adapters_by_type(adapter_type)


def validate_adapter_compatibility(adapter_name: str) -> bool:
    """Validate that an adapter's dependencies are available."""
    adapter = get_adapter(adapter_name)
    return adapter is not None and adapter.is_available()


class ElementTreeAdapter(IntegrationAdapter):
    """Adapter for bidirectional conversion with xml.etree.ElementTree."""

    @property
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""
        return AdapterMetadata(
            name="elementtree",
            version="1.0.0",
            adapter_type=AdapterType.XML_LIBRARY,
            target_library="xml.etree.ElementTree",
            supported_versions=["3.8+"],
            description="Bidirectional conversion between SmlDocument and ElementTree"
        )

    def is_available(self) -> bool:
        """ElementTree ships with Python."""
        return True

    def _convert_to(self, document: SmlDocument) -> Any:
        import xml.etree.ElementTree as ET

        return _build_xml(document.root, ET)

    def _convert_from(self, target_data: Any) -> SmlDocument:
        if hasattr(target_data, "getroot"):
            target_data = target_data.getroot()
        if not hasattr(target_data, "tag"):
            raise TypeError("Target data is not a valid ElementTree element")
        return SmlDocument(_read_xml(target_data))


class LxmlAdapter(IntegrationAdapter):
    """Adapter for bidirectional conversion with lxml.etree."""

    @property
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""
        return AdapterMetadata(
            name="lxml",
            version="1.0.0",
            adapter_type=AdapterType.XML_LIBRARY,
            target_library="lxml",
            supported_versions=["4.0+"],
            description="Bidirectional conversion between SmlDocument and lxml.etree",
            compatibility_notes="Values holding XML-incompatible control characters fail"
        )

    def is_available(self) -> bool:
        """Check if lxml is available."""
        try:
            import lxml.etree  # noqa: F401
        except ImportError:
            return False
        return True

    def _convert_to(self, document: SmlDocument) -> Any:
        import lxml.etree as etree

        return _build_xml(document.root, etree)

    def _convert_from(self, target_data: Any) -> SmlDocument:
        if hasattr(target_data, "getroot"):
            target_data = target_data.getroot()
        if not hasattr(target_data, "tag"):
            raise TypeError("Target data is not a valid lxml element")
        return SmlDocument(_read_xml(target_data))


class BeautifulSoupAdapter(IntegrationAdapter):
    """Adapter for bidirectional conversion with BeautifulSoup.

    Uses the ``html.parser`` tree builder, which needs no extra library; the
    fixed lowercase tag vocabulary of the XML mapping survives its case
    folding.
    """

    @property
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""
        return AdapterMetadata(
            name="beautifulsoup",
            version="1.0.0",
            adapter_type=AdapterType.XML_LIBRARY,
            target_library="beautifulsoup4",
            supported_versions=["4.0+"],
            description="Bidirectional conversion between SmlDocument and BeautifulSoup",
            compatibility_notes="Carriage returns in values become line feeds"
        )

    def is_available(self) -> bool:
        """Check if BeautifulSoup is available."""
        try:
            import bs4  # noqa: F401
        except ImportError:
            return False
        return True

    def _convert_to(self, document: SmlDocument) -> Any:
        import xml.etree.ElementTree as ET
        from bs4 import BeautifulSoup

        xml_string = ET.tostring(_build_xml(document.root, ET), encoding="unicode")
        return BeautifulSoup(xml_string, "html.parser")

    def _convert_from(self, target_data: Any) -> SmlDocument:
        import xml.etree.ElementTree as ET

        if not hasattr(target_data, "find_all"):
            raise TypeError("Target data is not a valid BeautifulSoup object")
        root = target_data if target_data.name == ELEMENT_TAG else target_data.find(ELEMENT_TAG)
        if root is None:
            raise SmlStructureError(f"No <{ELEMENT_TAG}> found")
        return SmlDocument(_read_xml(ET.fromstring(str(root))))


class PandasAdapter(IntegrationAdapter):
    """Adapter exposing a document as a pandas DataFrame outline.

    Every node becomes one row in document order with the columns ``depth``
    (root is 0), ``kind`` (``"element"`` or ``"attribute"``), ``name`` and
    ``values`` (a list for attributes, ``None`` for elements). Depths alone
    determine nesting, so the outline converts back without loss of
    structure.
    """

    COLUMNS = ["depth", "kind", "name", "values"]

    @property
    def metadata(self) -> AdapterMetadata:
        """Get adapter metadata."""
        return AdapterMetadata(
            name="pandas",
            version="1.0.0",
            adapter_type=AdapterType.DATA_FRAME,
            target_library="pandas",
            supported_versions=["1.0+"],
            description="Outline conversion between SmlDocument and pandas DataFrame"
        )

    def is_available(self) -> bool:
        """Check if pandas is available."""
        try:
            import pandas  # noqa: F401
        except ImportError:
            return False
        return True

    def _convert_to(self, document: SmlDocument) -> Any:
        import pandas as pd

        rows: List[Dict[str, Any]] = []
        stack = [(document.root, 0)]
        while stack:
            node, depth = stack.pop()
            if node.kind is NodeKind.ELEMENT:
                rows.append({"depth": depth, "kind": ELEMENT_TAG, "name": node.name, "values": None})
                stack.extend((child, depth + 1) for child in reversed(node.nodes))
            else:
                rows.append(
                    {"depth": depth, "kind": ATTRIBUTE_TAG, "name": node.name, "values": list(node.values)}
                )
        return pd.DataFrame(rows, columns=self.COLUMNS)

    def _convert_from(self, target_data: Any) -> SmlDocument:
        import pandas as pd

        if not isinstance(target_data, pd.DataFrame):
            raise TypeError("Target data is not a pandas DataFrame")
        missing = [column for column in self.COLUMNS if column not in target_data.columns]
        if missing:
            raise KeyError(f"Missing columns: {', '.join(missing)}")
        if target_data.empty:
            raise SmlStructureError("DataFrame holds no rows")

        open_elements: List[SmlElement] = []
        root: Optional[SmlElement] = None
        for row in target_data[self.COLUMNS].itertuples(index=False):
            depth = int(row.depth)
            if root is None:
                if depth != 0 or row.kind != ELEMENT_TAG:
                    raise SmlStructureError("First row must be the root element at depth 0")
            elif not 1 <= depth <= len(open_elements):
                raise SmlStructureError(f"Row for '{row.name}' has invalid depth {depth}")

            del open_elements[depth:]
            if row.kind == ELEMENT_TAG:
                element = SmlElement(row.name)
                if root is None:
                    root = element
                else:
                    open_elements[-1].add(element)
                open_elements.append(element)
            elif row.kind == ATTRIBUTE_TAG:
                open_elements[-1].add(SmlAttribute(row.name, list(row.values)))
            else:
                raise SmlStructureError(f"Unknown node kind '{row.kind}'")
        return SmlDocument(root)


register_adapter(ElementTreeAdapter)
register_adapter(LxmlAdapter)
register_adapter(BeautifulSoupAdapter)
register_adapter(PandasAdapter)
