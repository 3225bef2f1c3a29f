"""SML document serialization.

Documents are written one line per node: an element's name line, its
children one indentation level deeper, then a closing line holding the end
keyword. Layout records captured by a preserving parse are re-applied, so an
unmodified document is written back as it was read.
"""

from typing import List, Optional, Tuple

from sml_parser.shared import SerializerConfig, get_logger
from sml_parser.tokenization import WsvLine, serialize_line, serialize_values
from sml_parser.tree.nodes import (
    LineLayout,
    NodeKind,
    SmlDocument,
    SmlElement,
    SmlNode,
)

DEFAULT_INDENTATION = "\t"


class SmlSerializer:
    """Writes SML documents as text.

    Two modes are supported:

    - default: indentation by ``default_indentation`` (a tab when unset),
      the document's end keyword, and any recorded layout
    - minified: no indentation, ``-`` as end keyword, layout ignored

    Examples:
        >>> document = SmlDocument(SmlElement("Root"))
        >>> SmlSerializer().serialize(document)
        'Root\\nEnd'
        >>> SmlSerializer().serialize(document, minified=True)
        'Root\\n-'
    """

    def __init__(self, config: Optional[SerializerConfig] = None) -> None:
        self.config = config or SerializerConfig()
        self.logger = get_logger(__name__, None, "sml_serializer")

    def serialize(self, document: SmlDocument, minified: Optional[bool] = None) -> str:
        """Serialize a document.

        Args:
            document: Document to write
            minified: Override the configured mode

        Returns:
            Document text without a final line feed, unless blank lines were
            recorded after the root
        """
        if minified is None:
            minified = self.config.minified

        if minified:
            indentation = ""
            end_keyword = None
        else:
            indentation = self._indentation_for(document)
            end_keyword = document.end_keyword

        lines: List[str] = []
        if not minified:
            self._append_raw_lines(lines, document.leading_lines)
        self._serialize_element(lines, document.root, indentation, end_keyword, minified)
        if not minified:
            self._append_raw_lines(lines, document.trailing_lines)

        self.logger.debug(
            "Serialized SML document",
            extra={"line_count": len(lines), "minified": minified}
        )
        return "\n".join(lines)

    def _indentation_for(self, document: SmlDocument) -> str:
        if self.config.default_indentation is not None:
            return self.config.default_indentation
        if document.default_indentation is not None:
            return document.default_indentation
        return DEFAULT_INDENTATION

    def _serialize_element(
        self,
        lines: List[str],
        root: SmlElement,
        indentation: str,
        end_keyword: Optional[str],
        minified: bool
    ) -> None:
        # Entries are (node, level, closing); a closing entry writes the end line
        stack: List[Tuple[SmlNode, int, bool]] = [(root, 0, False)]
        while stack:
            node, level, closing = stack.pop()
            if closing:
                if not minified:
                    self._append_raw_lines(lines, node.end_leading_lines)
                end_layout = None if minified else node.end_layout
                lines.append(self._node_line([end_keyword], end_layout, level, indentation))
                continue

            if not minified:
                self._append_raw_lines(lines, node.leading_lines)
            layout = None if minified else node.layout
            if node.kind is NodeKind.ATTRIBUTE:
                lines.append(
                    self._node_line([node.name] + node.values, layout, level, indentation)
                )
                continue

            lines.append(self._node_line([node.name], layout, level, indentation))
            stack.append((node, level, True))
            for child in reversed(node.nodes):
                stack.append((child, level + 1, False))

    @staticmethod
    def _node_line(
        values: List[Optional[str]],
        layout: Optional[LineLayout],
        level: int,
        indentation: str
    ) -> str:
        if layout is not None:
            return serialize_line(values, layout.whitespaces, layout.comment)
        return indentation * level + serialize_values(values)

    @staticmethod
    def _append_raw_lines(lines: List[str], raw_lines: List[WsvLine]) -> None:
        for line in raw_lines:
            lines.append(line.to_string())


def serialize_document(
    document: SmlDocument,
    minified: Optional[bool] = None,
    config: Optional[SerializerConfig] = None
) -> str:
    """Serialize a document with a one-off serializer."""
    return SmlSerializer(config).serialize(document, minified=minified)
