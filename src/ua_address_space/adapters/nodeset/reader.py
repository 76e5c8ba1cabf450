"""OPC UA NodeSet2 XML reader.

Turns a NodeSet2 document into a ``NodeSetDocument``:
- NamespaceUris: the document's local namespace table
- Aliases: resolved in place wherever a NodeId is expected
- UA* node elements with their References

Attribute values (``<Value>``) are not decoded.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import defusedxml.ElementTree as ET
import structlog
from defusedxml import DefusedXmlException

from ua_address_space.domain.model.node_id import NodeId, QualifiedName
from ua_address_space.domain.model.nodes import NodeClass
from ua_address_space.domain.model.nodeset import (
    NodeDeclaration,
    NodeSetDocument,
    ReferenceDeclaration,
)
from ua_address_space.errors import InvalidNodeSetError, NodeIdParseError

if TYPE_CHECKING:
    from pathlib import Path
    from xml.etree.ElementTree import Element

logger = structlog.get_logger(__name__)

NODESET_NS = "http://opcfoundation.org/UA/2011/03/UANodeSet.xsd"

NODE_ELEMENTS: dict[str, NodeClass] = {
    "UAObject": NodeClass.Object,
    "UAVariable": NodeClass.Variable,
    "UAMethod": NodeClass.Method,
    "UAView": NodeClass.View,
    "UAObjectType": NodeClass.ObjectType,
    "UAVariableType": NodeClass.VariableType,
    "UAReferenceType": NodeClass.ReferenceType,
    "UADataType": NodeClass.DataType,
}


def _local(tag: str) -> str:
    """Strip the XML namespace from an element tag."""
    return tag.rsplit("}", 1)[-1]


def _parse_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() == "true"


class NodeSetReader:
    """Reader for a single NodeSet2 XML document."""

    def __init__(self, xml_content: str | bytes, source: str = "<string>") -> None:
        """Initialize reader with XML content.

        Args:
            xml_content: The NodeSet2 XML.
            source: Name used in diagnostics (usually the file path).

        Raises:
            InvalidNodeSetError: If the XML cannot be parsed.
        """
        self._source = source
        try:
            self._root = ET.fromstring(xml_content)
        except (ET.ParseError, DefusedXmlException) as e:
            raise InvalidNodeSetError(source, f"cannot parse XML: {e}") from e
        if _local(self._root.tag) != "UANodeSet":
            raise InvalidNodeSetError(source, f"root element is {_local(self._root.tag)}, expected UANodeSet")
        self._aliases: dict[str, str] = {}

    @classmethod
    def from_file(cls, path: Path) -> NodeSetReader:
        """Create reader from a NodeSet2 file.

        Raises:
            InvalidNodeSetError: If the file cannot be read or parsed.
        """
        try:
            content = path.read_bytes()
        except OSError as e:
            raise InvalidNodeSetError(str(path), f"cannot read file: {e}") from e
        return cls(content, source=str(path))

    def read(self) -> NodeSetDocument:
        document = NodeSetDocument(source=self._source)
        self._aliases = self._read_aliases()

        for child in self._root:
            tag = _local(child.tag)
            if tag == "NamespaceUris":
                document.namespace_uris = self._read_namespace_uris(child)
            elif tag in NODE_ELEMENTS:
                document.nodes.append(self._read_node(child, NODE_ELEMENTS[tag]))

        logger.debug(
            "Read NodeSet document",
            source=self._source,
            namespaces=len(document.namespace_uris),
            nodes=len(document.nodes),
        )
        return document

    def _read_namespace_uris(self, elem: Element) -> list[str]:
        uris = [(uri.text or "").strip() for uri in elem if _local(uri.tag) == "Uri"]
        for local_index, uri in enumerate(uris, start=1):
            if not uri:
                raise InvalidNodeSetError(self._source, f"empty namespace URI at local index {local_index}")
        return uris

    def _read_aliases(self) -> dict[str, str]:
        aliases: dict[str, str] = {}
        for child in self._root:
            if _local(child.tag) != "Aliases":
                continue
            for alias in child:
                name = alias.get("Alias")
                if name and alias.text:
                    aliases[name] = alias.text.strip()
        return aliases

    def _node_id(self, text: str | None, context: str) -> NodeId:
        """Resolve an alias or NodeId string."""
        if not text:
            raise InvalidNodeSetError(self._source, f"missing NodeId in {context}")
        value = self._aliases.get(text.strip(), text.strip())
        try:
            return NodeId.parse(value)
        except NodeIdParseError as e:
            raise InvalidNodeSetError(
                self._source, f"unknown alias or invalid NodeId {text!r} in {context}"
            ) from e

    def _int_attribute(self, elem: Element, name: str, context: str) -> int:
        value = elem.get(name, "")
        try:
            return int(value)
        except ValueError as e:
            raise InvalidNodeSetError(self._source, f"{name}={value!r} is not an integer in {context}") from e

    def _read_node(self, elem: Element, node_class: NodeClass) -> NodeDeclaration:
        node_id = self._node_id(elem.get("NodeId"), _local(elem.tag))
        browse_name_text = elem.get("BrowseName")
        if not browse_name_text:
            raise InvalidNodeSetError(self._source, f"node {node_id} has no BrowseName")
        try:
            browse_name = QualifiedName.parse(browse_name_text)
        except NodeIdParseError as e:
            raise InvalidNodeSetError(self._source, f"node {node_id}: {e}") from e

        declaration = NodeDeclaration(
            node_id=node_id,
            node_class=node_class,
            browse_name=browse_name,
        )

        for child in elem:
            tag = _local(child.tag)
            if tag == "DisplayName" and not declaration.display_name:
                declaration.display_name = (child.text or "").strip()
            elif tag == "Description" and not declaration.description:
                declaration.description = (child.text or "").strip()
            elif tag == "InverseName" and node_class is NodeClass.ReferenceType:
                declaration.attributes["inverse_name"] = (child.text or "").strip()
            elif tag == "References":
                declaration.references.extend(self._read_references(child, node_id))

        declaration.attributes.update(self._read_attributes(elem, node_class, node_id))
        return declaration

    def _read_attributes(self, elem: Element, node_class: NodeClass, node_id: NodeId) -> dict[str, object]:
        attributes: dict[str, object] = {}
        context = f"node {node_id}"

        if node_class in (NodeClass.Variable, NodeClass.VariableType):
            if elem.get("DataType"):
                attributes["data_type"] = self._node_id(elem.get("DataType"), context)
            if elem.get("ValueRank"):
                attributes["value_rank"] = self._int_attribute(elem, "ValueRank", context)
        if node_class is NodeClass.Variable and elem.get("AccessLevel"):
            attributes["access_level"] = self._int_attribute(elem, "AccessLevel", context)
        if node_class in (
            NodeClass.ObjectType,
            NodeClass.VariableType,
            NodeClass.ReferenceType,
            NodeClass.DataType,
        ):
            attributes["is_abstract"] = _parse_bool(elem.get("IsAbstract"))
        if node_class is NodeClass.ReferenceType:
            attributes["symmetric"] = _parse_bool(elem.get("Symmetric"))

        return attributes

    def _read_references(self, refs_elem: Element, node_id: NodeId) -> list[ReferenceDeclaration]:
        references: list[ReferenceDeclaration] = []
        context = f"references of {node_id}"
        for ref in refs_elem:
            if _local(ref.tag) != "Reference":
                continue
            references.append(
                ReferenceDeclaration(
                    reference_type=self._node_id(ref.get("ReferenceType"), context),
                    target=self._node_id(ref.text, context),
                    is_forward=_parse_bool(ref.get("IsForward"), default=True),
                )
            )
        return references


def read_nodeset(xml_content: str | bytes, source: str = "<string>") -> NodeSetDocument:
    """Parse NodeSet2 XML content into a NodeSetDocument."""
    return NodeSetReader(xml_content, source).read()


def read_nodeset_file(path: Path) -> NodeSetDocument:
    """Parse a NodeSet2 XML file into a NodeSetDocument."""
    return NodeSetReader.from_file(path).read()


__all__ = ["NODESET_NS", "NodeSetReader", "read_nodeset", "read_nodeset_file"]
