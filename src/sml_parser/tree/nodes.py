"""SML document tree model.

An SML document owns a single root element. Elements own an ordered mix of
child elements and attributes; attributes own a non-empty list of values,
each a string or ``None``. Node variants are closed: every node reports its
``kind`` and consumers dispatch on it.

Name lookups compare case-insensitively but accent-sensitively, so
``Person`` matches ``PERSON`` but ``Resume`` does not match ``Résumé``.
"""

import unicodedata
from collections.abc import Sequence as SequenceABC
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from sml_parser.shared.errors import SmlError, SmlStructureError
from sml_parser.tokenization.wsv import WsvLine

DEFAULT_END_KEYWORD = "End"


class NodeKind(Enum):
    """Variants of SML nodes."""

    ELEMENT = auto()
    ATTRIBUTE = auto()


def _fold_name(name: str) -> str:
    return unicodedata.normalize("NFKC", unicodedata.normalize("NFKC", name).casefold())


def names_equal(first: Optional[str], second: Optional[str]) -> bool:
    """Compare two names case-insensitively; ``None`` only equals ``None``."""
    if isinstance(first, str) and isinstance(second, str):
        return first == second or _fold_name(first) == _fold_name(second)
    return first is None and second is None


@dataclass
class LineLayout:
    """Whitespace and comment recorded for one line in preserving mode."""

    whitespaces: List[Optional[str]] = field(default_factory=list)
    comment: Optional[str] = None

    @classmethod
    def from_line(cls, line: WsvLine) -> Optional["LineLayout"]:
        """Capture the layout of a tokenized line, if it recorded any."""
        if not line.has_layout:
            return None
        return cls(list(line.whitespaces or []), line.comment)


def _validate_name(name: Any, kind: NodeKind) -> None:
    if not isinstance(name, str):
        label = "Element" if kind is NodeKind.ELEMENT else "Attribute"
        raise SmlStructureError(f"{label} name must be a string, got {type(name).__name__}")


def _validate_values(name: str, values: Any) -> List[Optional[str]]:
    if isinstance(values, (str, bytes)) or not isinstance(values, SequenceABC):
        raise SmlStructureError(f"Values of attribute '{name}' not a sequence")
    if len(values) == 0:
        raise SmlStructureError(f"Attribute '{name}' must contain at least one value")
    for value in values:
        if value is not None and not isinstance(value, str):
            raise SmlStructureError(
                f"Values of attribute '{name}' must be strings or None, "
                f"got {type(value).__name__}"
            )
    return list(values)


class _NamedNode:
    """Name matching shared by elements and attributes."""

    kind: NodeKind
    name: str

    @property
    def is_element(self) -> bool:
        return self.kind is NodeKind.ELEMENT

    @property
    def is_attribute(self) -> bool:
        return self.kind is NodeKind.ATTRIBUTE

    def has_name(self, name: Optional[str]) -> bool:
        """Check the node name case-insensitively."""
        return names_equal(self.name, name)

    def is_element_with_name(self, name: Optional[str]) -> bool:
        return self.kind is NodeKind.ELEMENT and self.has_name(name)

    def is_attribute_with_name(self, name: Optional[str]) -> bool:
        return self.kind is NodeKind.ATTRIBUTE and self.has_name(name)


class SmlAttribute(_NamedNode):
    """Named leaf node holding one or more values.

    ``values`` returns a copy; use ``set_values`` to replace them.

    Attributes:
        name: Attribute name
        values: Values in order; ``None`` is the null value
        layout: Whitespace/comment of the source line (preserving mode)
        leading_lines: Blank or comment lines that preceded this attribute
    """

    kind = NodeKind.ATTRIBUTE

    def __init__(
        self,
        name: str,
        values: Sequence[Optional[str]],
        layout: Optional[LineLayout] = None,
        leading_lines: Optional[List[WsvLine]] = None
    ) -> None:
        _validate_name(name, self.kind)
        self.name = name
        self._values = _validate_values(name, values)
        self.layout = layout
        self.leading_lines = leading_lines if leading_lines is not None else []

    def __repr__(self) -> str:
        return f"SmlAttribute(name={self.name!r}, values={self._values!r})"

    @property
    def values(self) -> List[Optional[str]]:
        return list(self._values)

    def set_values(self, values: Sequence[Optional[str]]) -> None:
        """Replace the values, keeping the non-empty invariant."""
        self._values = _validate_values(self.name, values)

    def get_string(self) -> Optional[str]:
        """Return the first value."""
        return self._values[0]

    def to_dict(self) -> Dict[str, Any]:
        """Convert attribute to dictionary representation."""
        return {"attribute": self.name, "values": list(self._values)}


@dataclass(eq=False)
class SmlElement(_NamedNode):
    """Named node owning an ordered sequence of child nodes.

    Attributes:
        name: Element name
        nodes: Child elements and attributes in document order
        layout: Whitespace/comment of the opening line (preserving mode)
        leading_lines: Blank or comment lines that preceded the opening line
        end_layout: Whitespace/comment of the closing line (preserving mode)
        end_leading_lines: Blank or comment lines before the closing line
    """

    name: str
    nodes: List["SmlNode"] = field(default_factory=list)
    layout: Optional[LineLayout] = None
    leading_lines: List[WsvLine] = field(default_factory=list)
    end_layout: Optional[LineLayout] = None
    end_leading_lines: List[WsvLine] = field(default_factory=list)

    kind = NodeKind.ELEMENT

    def __post_init__(self) -> None:
        """Validate name and initial children."""
        _validate_name(self.name, self.kind)
        for node in self.nodes:
            _check_node(node)

    # Mutation

    def add(self, node: "SmlNode") -> "SmlNode":
        """Append a child node and return it."""
        _check_node(node)
        self.nodes.append(node)
        return node

    def insert(self, index: int, node: "SmlNode") -> "SmlNode":
        """Insert a child node at ``index`` and return it."""
        _check_node(node)
        if not (0 <= index <= len(self.nodes)):
            raise IndexError("Child index out of range")
        self.nodes.insert(index, node)
        return node

    def remove(self, node: "SmlNode") -> bool:
        """Remove a child node by identity."""
        for index, child in enumerate(self.nodes):
            if child is node:
                del self.nodes[index]
                return True
        return False

    def add_element(self, name: str) -> "SmlElement":
        """Append a new, empty child element and return it."""
        element = SmlElement(name)
        self.nodes.append(element)
        return element

    def add_attribute(self, name: str, values: Sequence[Optional[str]]) -> SmlAttribute:
        """Append a new attribute and return it."""
        attribute = SmlAttribute(name, values)
        self.nodes.append(attribute)
        return attribute

    def add_string(self, name: str, value: Any) -> SmlAttribute:
        """Append a single-value attribute, converting non-strings with ``str()``.

        Examples:
            >>> element = SmlElement("Point")
            >>> element.add_string("X", 12).values
            ['12']
        """
        if value is not None and not isinstance(value, str):
            value = str(value)
        return self.add_attribute(name, [value])

    # Queries

    def elements(self, name: Optional[str] = None) -> List["SmlElement"]:
        """Return child elements, optionally only those named ``name``."""
        return [
            node for node in self.nodes
            if node.kind is NodeKind.ELEMENT and (name is None or node.has_name(name))
        ]

    def element(self, name: str) -> Optional["SmlElement"]:
        """Return the first child element named ``name``."""
        for node in self.nodes:
            if node.is_element_with_name(name):
                return node
        return None

    def has_element(self, name: str) -> bool:
        return self.element(name) is not None

    def has_elements(self) -> bool:
        return any(node.kind is NodeKind.ELEMENT for node in self.nodes)

    def attributes(self, name: Optional[str] = None) -> List[SmlAttribute]:
        """Return child attributes, optionally only those named ``name``."""
        return [
            node for node in self.nodes
            if node.kind is NodeKind.ATTRIBUTE and (name is None or node.has_name(name))
        ]

    def attribute(self, name: str) -> Optional[SmlAttribute]:
        """Return the first child attribute named ``name``."""
        for node in self.nodes:
            if node.is_attribute_with_name(name):
                return node
        return None

    def has_attribute(self, name: str) -> bool:
        return self.attribute(name) is not None

    def has_attributes(self) -> bool:
        return any(node.kind is NodeKind.ATTRIBUTE for node in self.nodes)

    def get_string(self, name: str) -> Optional[str]:
        """Return the first value of the attribute named ``name``.

        Raises:
            SmlError: If the element has no such attribute
        """
        attribute = self.attribute(name)
        if attribute is None:
            raise SmlError(f'Attribute "{name}" not found in element "{self.name}"')
        return attribute.get_string()

    def iter_elements(self) -> Iterator["SmlElement"]:
        """Yield this element and all descendant elements in document order."""
        stack: List[SmlElement] = [self]
        while stack:
            element = stack.pop()
            yield element
            stack.extend(reversed(element.elements()))

    def find(self, name: str) -> Optional["SmlElement"]:
        """Find the first descendant element named ``name``."""
        for element in self.iter_elements():
            if element is not self and element.has_name(name):
                return element
        return None

    def find_all(self, name: str) -> List["SmlElement"]:
        """Find all descendant elements named ``name`` in document order."""
        return [
            element for element in self.iter_elements()
            if element is not self and element.has_name(name)
        ]

    def to_dict(self) -> Dict[str, Any]:
        """Convert element to dictionary representation."""
        result: Dict[str, Any] = {"element": self.name, "nodes": []}
        stack: List[Tuple[SmlElement, List[Dict[str, Any]]]] = [(self, result["nodes"])]
        while stack:
            element, children = stack.pop()
            for node in element.nodes:
                if node.kind is NodeKind.ATTRIBUTE:
                    children.append(node.to_dict())
                    continue
                entry: Dict[str, Any] = {"element": node.name, "nodes": []}
                children.append(entry)
                stack.append((node, entry["nodes"]))
        return result


SmlNode = Union[SmlElement, SmlAttribute]


def _check_node(node: Any) -> None:
    if not isinstance(node, (SmlElement, SmlAttribute)):
        raise TypeError("Child must be an SmlElement or SmlAttribute instance")


@dataclass
class SmlDocument:
    """SML document owning exactly one root element.

    Attributes:
        root: Root element
        default_indentation: Indentation unit for serialization; ``None``
            means one tab character
        end_keyword: Keyword closing every element; ``None`` after parsing
            minified text, where closing lines hold the null value
        leading_lines: Blank or comment lines before the root (preserving mode)
        trailing_lines: Blank or comment lines after the root (preserving mode)
    """

    root: SmlElement
    default_indentation: Optional[str] = None
    end_keyword: Optional[str] = DEFAULT_END_KEYWORD
    leading_lines: List[WsvLine] = field(default_factory=list)
    trailing_lines: List[WsvLine] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate the root element."""
        if not isinstance(self.root, SmlElement):
            raise TypeError("Document root must be an SmlElement instance")

    @classmethod
    def parse(cls, content: str, preserve_whitespace_and_comments: bool = False) -> "SmlDocument":
        """Parse SML text into a document.

        Raises:
            SmlParserError: If the text is not a valid SML document
        """
        from sml_parser.tree.builder import SmlTreeBuilder
        from sml_parser.shared.config import ParserConfig

        config = ParserConfig(preserve_whitespace_and_comments=preserve_whitespace_and_comments)
        return SmlTreeBuilder(config).build(content).document

    def to_string(self) -> str:
        """Serialize the document, keeping recorded layout."""
        from sml_parser.tree.serializer import SmlSerializer

        return SmlSerializer().serialize(self)

    def to_minified_string(self) -> str:
        """Serialize the document in minified form."""
        from sml_parser.tree.serializer import SmlSerializer

        return SmlSerializer().serialize(self, minified=True)

    def __str__(self) -> str:
        return self.to_string()

    def iter_elements(self) -> Iterator[SmlElement]:
        """Yield all elements in document order, starting with the root."""
        return self.root.iter_elements()

    def find(self, name: str) -> Optional[SmlElement]:
        """Find the first element named ``name``, including the root."""
        for element in self.iter_elements():
            if element.has_name(name):
                return element
        return None

    def find_all(self, name: str) -> List[SmlElement]:
        """Find all elements named ``name``, including the root."""
        return [element for element in self.iter_elements() if element.has_name(name)]

    @property
    def element_count(self) -> int:
        return sum(1 for _ in self.iter_elements())

    @property
    def attribute_count(self) -> int:
        return sum(len(element.attributes()) for element in self.iter_elements())

    def to_dict(self) -> Dict[str, Any]:
        """Convert document to dictionary representation."""
        return {
            "end_keyword": self.end_keyword,
            "default_indentation": self.default_indentation,
            "root": self.root.to_dict(),
        }
