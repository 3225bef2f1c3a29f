"""Tests for integration adapters framework."""

import xml.etree.ElementTree as ET
from typing import Any

import pytest

from sml_parser.api.adapters import (
    AdapterMetadata,
    AdapterPerformanceProfiler,
    AdapterRegistry,
    AdapterType,
    BeautifulSoupAdapter,
    ConversionDirection,
    ElementTreeAdapter,
    IntegrationAdapter,
    LxmlAdapter,
    PandasAdapter,
    get_adapter,
    get_adapters_by_type,
    list_available_adapters,
    validate_adapter_compatibility,
)
from sml_parser.api.parser import SmlParser, parse_string
from sml_parser.shared import DiagnosticSeverity
from sml_parser.tree import SmlAttribute, SmlDocument, SmlElement

SAMPLE = "\n".join([
    "Root",
    "  Person",
    '    Name "John Smith"',
    '    Phones 123 - ""',
    "  End",
    "  Empty",
    "  End",
    '  Note "a < b & c"',
    "End",
])


def structure(element: SmlElement):
    nodes = []
    for node in element.nodes:
        if isinstance(node, SmlAttribute):
            nodes.append(("attribute", node.name, list(node.values)))
        else:
            nodes.append(structure(node))
    return ("element", element.name, nodes)


@pytest.fixture
def document() -> SmlDocument:
    return parse_string(SAMPLE)


class EchoAdapter(IntegrationAdapter):
    """Adapter converting documents to their dictionary form."""

    def __init__(self, correlation_id: str = None, available: bool = True):
        super().__init__(correlation_id)
        self._available = available

    @property
    def metadata(self) -> AdapterMetadata:
        return AdapterMetadata(
            name="echo",
            version="1.0.0",
            adapter_type=AdapterType.XML_LIBRARY,
            target_library="echo-lib",
            supported_versions=["1.0.0"],
            description="Adapter for unit testing"
        )

    def is_available(self) -> bool:
        return self._available

    def _convert_to(self, document: SmlDocument) -> Any:
        return document.to_dict()

    def _convert_from(self, target_data: Any) -> SmlDocument:
        if not isinstance(target_data, dict):
            raise TypeError("Expected a dictionary")
        return SmlDocument(SmlElement(target_data["root"]["element"]))


class TestAdapterPerformanceProfiler:
    """Tests for AdapterPerformanceProfiler."""

    def test_record_conversion(self):
        """Test recording conversion performance."""
        profiler = AdapterPerformanceProfiler()
        profiler.record_conversion("echo", 100.0)
        profiler.record_conversion("echo", 150.0)

        stats = profiler.get_statistics("echo")
        assert stats["count"] == 2
        assert stats["average_ms"] == 125.0
        assert stats["min_ms"] == 100.0
        assert stats["max_ms"] == 150.0
        assert stats["total_ms"] == 250.0

    def test_unknown_adapter_statistics(self):
        """Test statistics for an adapter without samples."""
        assert AdapterPerformanceProfiler().get_statistics("missing") == {}

    def test_sample_limit(self):
        """Test old samples are dropped beyond the limit."""
        profiler = AdapterPerformanceProfiler()
        for index in range(AdapterPerformanceProfiler.MAX_SAMPLES + 10):
            profiler.record_conversion("echo", float(index))

        stats = profiler.get_all_statistics()["echo"]
        assert stats["count"] == AdapterPerformanceProfiler.MAX_SAMPLES
        assert stats["min_ms"] == 10.0


class TestIntegrationAdapter:
    """Tests for the shared adapter behavior."""

    def test_to_target_from_document_and_result(self, document: SmlDocument):
        """Test both documents and parse results are accepted."""
        adapter = EchoAdapter()

        assert adapter.to_target(document).success
        result = adapter.to_target(SmlParser().parse_result(SAMPLE))
        assert result.success
        assert result.metadata == {"element_count": 3, "attribute_count": 3}
        assert adapter.get_performance_stats()["echo"]["count"] == 2

    def test_to_target_wrong_type(self):
        """Test conversion failures are reported, not raised."""
        result = EchoAdapter("cid").to_target("Root\nEnd")

        assert result.success is False
        assert result.converted_data is None
        assert "Expected SmlDocument or ParseResult" in result.errors[0]
        assert result.diagnostics[0].severity is DiagnosticSeverity.ERROR
        assert result.diagnostics[0].component == "EchoAdapter"
        assert result.diagnostics[0].correlation_id == "cid"

    def test_from_target_error(self):
        """Test errors raised while reading target data."""
        result = EchoAdapter().from_target(["not", "a", "dict"])
        assert not result.success
        assert result.errors[0].startswith("Failed to convert from echo-lib")

    def test_validate_conversion(self, document: SmlDocument):
        """Test validation compares element and attribute counts."""
        adapter = EchoAdapter()
        converted = adapter.to_target(document).converted_data

        assert not adapter.validate_conversion(document, None, ConversionDirection.TO_TARGET)
        assert not adapter.validate_conversion(document, converted, ConversionDirection.TO_TARGET)

        empty = SmlDocument(SmlElement("Root"))
        assert adapter.validate_conversion(
            empty, adapter.to_target(empty).converted_data, ConversionDirection.TO_TARGET
        )


class TestAdapterRegistry:
    """Tests for AdapterRegistry."""

    def test_register_adapter(self):
        """Test adapter registration."""
        registry = AdapterRegistry()
        registry.register(EchoAdapter)

        adapter = registry.get_adapter("echo")
        assert adapter is not None
        assert adapter.metadata.name == "echo"

    def test_get_adapter_with_correlation_id(self):
        """Test getting adapter with correlation ID."""
        registry = AdapterRegistry()
        registry.register(EchoAdapter)

        adapter = registry.get_adapter("echo", "test-correlation")
        assert adapter.correlation_id == "test-correlation"

    def test_get_non_existent_adapter(self):
        """Test getting non-existent adapter."""
        assert AdapterRegistry().get_adapter("non-existent") is None

    def test_list_and_filter(self):
        """Test listing available adapters by type."""
        registry = AdapterRegistry()
        registry.register(EchoAdapter)

        adapters = registry.list_available_adapters()
        assert [metadata.name for metadata in adapters] == ["echo"]
        assert registry.get_adapters_by_type(AdapterType.XML_LIBRARY) == ["echo"]
        assert registry.get_adapters_by_type(AdapterType.DATA_FRAME) == []

    def test_adapter_unavailable(self):
        """Test handling of unavailable adapters."""
        class UnavailableAdapter(EchoAdapter):
            def __init__(self, correlation_id=None):
                super().__init__(correlation_id, available=False)

        registry = AdapterRegistry()
        registry.register(UnavailableAdapter)

        assert registry.get_adapter("echo") is None
        assert registry.list_available_adapters() == []

    def test_adapter_instance_reuse(self):
        """Test that adapter instances are reused per correlation ID."""
        registry = AdapterRegistry()
        registry.register(EchoAdapter)

        adapter1 = registry.get_adapter("echo", "correlation-1")
        adapter2 = registry.get_adapter("echo", "correlation-1")
        adapter3 = registry.get_adapter("echo", "correlation-2")

        assert adapter1 is adapter2
        assert adapter1 is not adapter3


class TestGlobalFunctions:
    """Tests for global adapter functions."""

    def test_builtin_adapters_registered(self):
        """Test the standard library adapter is always available."""
        names = [metadata.name for metadata in list_available_adapters()]
        assert "elementtree" in names
        assert "elementtree" in get_adapters_by_type(AdapterType.XML_LIBRARY)
        assert isinstance(get_adapter("elementtree"), ElementTreeAdapter)

    def test_validate_adapter_compatibility(self):
        """Test compatibility checks."""
        assert validate_adapter_compatibility("elementtree")
        assert not validate_adapter_compatibility("missing")


class TestElementTreeAdapter:
    """Tests for the ElementTree adapter."""

    def test_metadata(self):
        """Test ElementTree adapter metadata."""
        adapter = ElementTreeAdapter()
        assert adapter.metadata.name == "elementtree"
        assert adapter.metadata.target_library == "xml.etree.ElementTree"
        assert adapter.is_available() is True

    def test_to_target_mapping(self, document: SmlDocument):
        """Test the XML vocabulary."""
        root = ElementTreeAdapter().to_target(document).converted_data

        assert root.tag == "element"
        assert root.get("name") == "Root"
        person = root.find("element")
        phones = person.findall("attribute")[1]
        values = phones.findall("value")
        assert phones.get("name") == "Phones"
        assert values[0].text == "123"
        assert values[1].get("null") == "true"
        assert values[2].get("null") is None
        assert not values[2].text

    def test_roundtrip(self, document: SmlDocument):
        """Test structure, nulls and empty strings survive."""
        adapter = ElementTreeAdapter()
        xml_text = ET.tostring(adapter.to_target(document).converted_data, encoding="unicode")

        result = adapter.from_target(ET.fromstring(xml_text))
        assert result.success
        assert structure(result.converted_data.root) == structure(document.root)
        assert result.converted_data.end_keyword == "End"

    def test_from_element_tree_object(self, document: SmlDocument):
        """Test whole trees are accepted."""
        adapter = ElementTreeAdapter()
        tree = ET.ElementTree(adapter.to_target(document).converted_data)
        assert adapter.from_target(tree).converted_data.root.name == "Root"

    def test_validate_conversion(self, document: SmlDocument):
        """Test validation in both directions."""
        adapter = ElementTreeAdapter()
        xml_root = adapter.to_target(document).converted_data
        back = adapter.from_target(xml_root).converted_data

        assert adapter.validate_conversion(document, xml_root, ConversionDirection.TO_TARGET)
        assert adapter.validate_conversion(xml_root, back, ConversionDirection.FROM_TARGET)

    @pytest.mark.parametrize("xml_text, message", [
        ("<root/>", "Expected <element>"),
        ("<element/>", "missing the 'name' attribute"),
        ('<element name="R"><other/></element>', "Unexpected <other>"),
        ('<element name="R"><attribute name="A"><x/></attribute></element>', "Expected <value>"),
        ('<element name="R"><attribute name="A"/></element>', "at least one value"),
    ])
    def test_invalid_xml_structure(self, xml_text: str, message: str):
        """Test malformed XML is reported as a failed conversion."""
        result = ElementTreeAdapter().from_target(ET.fromstring(xml_text))
        assert not result.success
        assert message in result.errors[0]

    def test_invalid_target_type(self):
        """Test non-element input."""
        result = ElementTreeAdapter().from_target("<element/>")
        assert not result.success
        assert "not a valid ElementTree element" in result.errors[0]


class TestLxmlAdapter:
    """Tests for the lxml adapter."""

    def test_metadata(self):
        """Test lxml adapter metadata."""
        metadata = LxmlAdapter().metadata
        assert metadata.name == "lxml"
        assert metadata.target_library == "lxml"

    def test_roundtrip(self, document: SmlDocument):
        """Test conversion through lxml."""
        try:
            from lxml import etree
        except ImportError:
            pytest.skip("lxml not available")

        adapter = LxmlAdapter()
        xml_bytes = etree.tostring(adapter.to_target(document).converted_data)
        parsed = etree.fromstring(xml_bytes)
        result = adapter.from_target(parsed)

        assert result.success
        assert structure(result.converted_data.root) == structure(document.root)

    def test_comments_ignored(self):
        """Test XML comments are skipped."""
        try:
            from lxml import etree
        except ImportError:
            pytest.skip("lxml not available")

        xml_root = etree.fromstring(
            '<element name="R"><!-- note --><attribute name="A"><value>1</value></attribute></element>'
        )
        result = LxmlAdapter().from_target(xml_root)
        assert result.converted_data.root.get_string("A") == "1"

    def test_control_characters_fail(self):
        """Test values XML cannot hold produce a failed result."""
        try:
            import lxml.etree  # noqa: F401
        except ImportError:
            pytest.skip("lxml not available")

        root = SmlElement("Root")
        root.add_string("A", "bell" + chr(7))
        result = LxmlAdapter().to_target(SmlDocument(root))
        assert not result.success


class TestBeautifulSoupAdapter:
    """Tests for the BeautifulSoup adapter."""

    def test_metadata(self):
        """Test BeautifulSoup adapter metadata."""
        metadata = BeautifulSoupAdapter().metadata
        assert metadata.name == "beautifulsoup"
        assert metadata.target_library == "beautifulsoup4"

    def test_roundtrip(self, document: SmlDocument):
        """Test conversion through a soup object."""
        try:
            from bs4 import BeautifulSoup
        except ImportError:
            pytest.skip("beautifulsoup4 not available")

        adapter = BeautifulSoupAdapter()
        soup = adapter.to_target(document).converted_data
        assert isinstance(soup, BeautifulSoup)
        assert soup.find("element")["name"] == "Root"

        result = adapter.from_target(soup)
        assert result.success
        assert structure(result.converted_data.root) == structure(document.root)

    def test_from_parsed_markup(self):
        """Test soups parsed from markup text."""
        try:
            from bs4 import BeautifulSoup
        except ImportError:
            pytest.skip("beautifulsoup4 not available")

        soup = BeautifulSoup(
            '<element name="Root"><attribute name="A"><value null="true"></value>'
            "<value>x</value></attribute></element>",
            "html.parser",
        )
        result = BeautifulSoupAdapter().from_target(soup)
        assert result.converted_data.root.attribute("a").values == [None, "x"]

    def test_missing_root(self):
        """Test soups without an element tag."""
        try:
            from bs4 import BeautifulSoup
        except ImportError:
            pytest.skip("beautifulsoup4 not available")

        result = BeautifulSoupAdapter().from_target(BeautifulSoup("<p>x</p>", "html.parser"))
        assert not result.success
        assert "No <element> found" in result.errors[0]


class TestPandasAdapter:
    """Tests for PandasAdapter."""

    def test_pandas_adapter_metadata(self):
        """Test PandasAdapter metadata."""
        metadata = PandasAdapter().metadata
        assert metadata.name == "pandas"
        assert metadata.adapter_type == AdapterType.DATA_FRAME

    def test_outline(self, document: SmlDocument):
        """Test one row per node in document order."""
        try:
            import pandas  # noqa: F401
        except ImportError:
            pytest.skip("pandas not available")

        frame = PandasAdapter().to_target(document).converted_data

        assert list(frame.columns) == PandasAdapter.COLUMNS
        assert list(frame["name"]) == ["Root", "Person", "Name", "Phones", "Empty", "Note"]
        assert list(frame["depth"]) == [0, 1, 2, 2, 1, 1]
        assert list(frame["kind"]) == [
            "element", "element", "attribute", "attribute", "element", "attribute"
        ]
        assert frame["values"][3] == ["123", None, ""]
        assert not isinstance(frame["values"][0], list)

    def test_roundtrip(self, document: SmlDocument):
        """Test the outline rebuilds the same tree."""
        try:
            import pandas  # noqa: F401
        except ImportError:
            pytest.skip("pandas not available")

        adapter = PandasAdapter()
        frame = adapter.to_target(document).converted_data
        result = adapter.from_target(frame)

        assert result.success
        assert structure(result.converted_data.root) == structure(document.root)

    def test_invalid_frames(self):
        """Test malformed outlines fail with errors."""
        try:
            import pandas as pd
        except ImportError:
            pytest.skip("pandas not available")

        adapter = PandasAdapter()

        missing = adapter.from_target(pd.DataFrame({"depth": [0]}))
        assert not missing.success
        assert "Missing columns" in missing.errors[0]

        empty = adapter.from_target(pd.DataFrame(columns=PandasAdapter.COLUMNS))
        assert "holds no rows" in empty.errors[0]

        bad_root = pd.DataFrame(
            [{"depth": 0, "kind": "attribute", "name": "A", "values": ["1"]}],
            columns=PandasAdapter.COLUMNS,
        )
        assert "root element at depth 0" in adapter.from_target(bad_root).errors[0]

        bad_depth = pd.DataFrame(
            [
                {"depth": 0, "kind": "element", "name": "Root", "values": None},
                {"depth": 3, "kind": "element", "name": "Deep", "values": None},
            ],
            columns=PandasAdapter.COLUMNS,
        )
        assert "invalid depth 3" in adapter.from_target(bad_depth).errors[0]

        assert not adapter.from_target([1, 2]).success
