"""OPC UA NodeSet2 XML generator.

Writes the nodes of one namespace of an AddressSpace as a NodeSet2 document
that ``NodeSetReader`` (or any other OPC UA tool) can import again.

The document gets its own namespace table: the exported namespace is local
index 1, other non-standard namespaces it references follow in order of
first use. Reference types from namespace 0 are written through aliases.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET  # nosec B405 - generation only, no parsing
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import structlog

from ua_address_space.adapters.nodeset.reader import NODE_ELEMENTS, NODESET_NS
from ua_address_space.domain.model.node_id import NodeId, QualifiedName
from ua_address_space.domain.model.nodes import (
    Node,
    ReferenceTypeNode,
    TypeNode,
    VariableNode,
    VariableTypeNode,
)
from ua_address_space.domain.model.standard import HAS_SUBTYPE

if TYPE_CHECKING:
    from pathlib import Path

    from ua_address_space.domain.address_space import AddressSpace

logger = structlog.get_logger(__name__)

XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"

ELEMENT_NAMES = {node_class: tag for tag, node_class in NODE_ELEMENTS.items()}


class NodeSetGenerator:
    """Generator for OPC UA NodeSet2 XML files."""

    def __init__(
        self,
        address_space: AddressSpace,
        namespace_uri: str,
        deterministic: bool = False,
    ) -> None:
        """Initialize the generator.

        Args:
            address_space: Address space holding the nodes.
            namespace_uri: URI of the namespace to export.
            deterministic: If True, use fixed timestamp for reproducibility.

        Raises:
            ValueError: If the namespace is not registered or is namespace 0.
        """
        namespace = address_space.get_namespace(namespace_uri)
        if namespace is None:
            raise ValueError(f"Namespace {namespace_uri!r} is not registered")
        if namespace.index == 0:
            raise ValueError("The standard namespace cannot be exported")

        self._space = address_space
        self._namespace = namespace
        self._deterministic = deterministic
        self._local_indices: dict[int, int] = {0: 0, namespace.index: 1}
        self._namespace_uris: list[str] = [namespace.namespace_uri]
        self._aliases: dict[str, str] = {}

    def generate(self, output_path: Path | None = None) -> str:
        """Generate the NodeSet2 XML.

        Args:
            output_path: Optional path to write the XML file.

        Returns:
            XML string of the NodeSet.
        """
        nodes = list(self._space.iter_nodes(self._namespace.index))
        logger.info(
            "Generating NodeSet2 XML",
            namespace=self._namespace.namespace_uri,
            nodes=len(nodes),
        )

        # Node elements are built first so the namespace table and aliases
        # are complete before they are written at the top of the document.
        node_elements = [self._node_element(node) for node in nodes]

        root = self._create_root()
        self._add_namespaces(root)
        self._add_aliases(root)
        root.extend(node_elements)

        xml_str = self._to_xml_string(root)

        if output_path:
            output_path.write_text(xml_str, encoding="utf-8")
            logger.info("NodeSet2 XML written", path=str(output_path))

        return xml_str

    def _create_root(self) -> ET.Element:
        """Create the root UANodeSet element."""
        ET.register_namespace("", NODESET_NS)
        ET.register_namespace("xsi", XSI_NS)

        root = ET.Element(
            f"{{{NODESET_NS}}}UANodeSet",
            {f"{{{XSI_NS}}}schemaLocation": f"{NODESET_NS} UANodeSet.xsd"},
        )
        root.set("LastModified", self._get_timestamp())
        return root

    def _add_namespaces(self, root: ET.Element) -> None:
        ns_uris = ET.SubElement(root, f"{{{NODESET_NS}}}NamespaceUris")
        for namespace_uri in self._namespace_uris:
            uri = ET.SubElement(ns_uris, f"{{{NODESET_NS}}}Uri")
            uri.text = namespace_uri

    def _add_aliases(self, root: ET.Element) -> None:
        if not self._aliases:
            return
        aliases = ET.SubElement(root, f"{{{NODESET_NS}}}Aliases")
        for alias_name, alias_value in sorted(self._aliases.items()):
            alias = ET.SubElement(aliases, f"{{{NODESET_NS}}}Alias", {"Alias": alias_name})
            alias.text = alias_value

    def _local_index(self, namespace_index: int) -> int:
        local = self._local_indices.get(namespace_index)
        if local is None:
            namespace_uri = self._space.get_namespace_uri(namespace_index)
            if namespace_uri is None:
                raise ValueError(f"Namespace index {namespace_index} is not registered")
            self._namespace_uris.append(namespace_uri)
            local = len(self._namespace_uris)
            self._local_indices[namespace_index] = local
        return local

    def _local_node_id(self, node_id: NodeId) -> str:
        return node_id.with_namespace(self._local_index(node_id.namespace_index)).to_string()

    def _local_browse_name(self, name: QualifiedName) -> str:
        return str(name.with_namespace(self._local_index(name.namespace_index)))

    def _reference_type(self, reference_type_id: NodeId) -> str:
        """Alias for standard reference types, local NodeId otherwise."""
        if reference_type_id.namespace_index == 0:
            node = self._space.find_node(reference_type_id)
            if isinstance(node, ReferenceTypeNode):
                self._aliases[node.browse_name.name] = reference_type_id.to_string()
                return node.browse_name.name
        return self._local_node_id(reference_type_id)

    def _node_element(self, node: Node) -> ET.Element:
        attributes = {
            "NodeId": self._local_node_id(node.node_id),
            "BrowseName": self._local_browse_name(node.browse_name),
        }
        if isinstance(node, TypeNode) and node.is_abstract:
            attributes["IsAbstract"] = "true"
        if isinstance(node, ReferenceTypeNode) and node.symmetric:
            attributes["Symmetric"] = "true"
        if isinstance(node, VariableNode | VariableTypeNode):
            if node.data_type is not None:
                attributes["DataType"] = self._local_node_id(node.data_type)
            attributes["ValueRank"] = str(node.value_rank)
        if isinstance(node, VariableNode):
            attributes["AccessLevel"] = str(node.access_level)

        elem = ET.Element(f"{{{NODESET_NS}}}{ELEMENT_NAMES[node.node_class]}", attributes)

        dn = ET.SubElement(elem, f"{{{NODESET_NS}}}DisplayName")
        dn.text = node.display_name
        if node.description:
            desc = ET.SubElement(elem, f"{{{NODESET_NS}}}Description")
            desc.text = node.description
        if isinstance(node, ReferenceTypeNode) and node.inverse_name:
            inverse = ET.SubElement(elem, f"{{{NODESET_NS}}}InverseName")
            inverse.text = node.inverse_name

        refs = ET.SubElement(elem, f"{{{NODESET_NS}}}References")
        for reference in node.outgoing_references:
            ref = ET.SubElement(
                refs,
                f"{{{NODESET_NS}}}Reference",
                {"ReferenceType": self._reference_type(reference.reference_type_id)},
            )
            ref.text = self._local_node_id(reference.target_node_id)

        # Edges from this namespace are written on their source, except the
        # HasSubtype edge which also marks the supertype of a type node.
        for reference in node.incoming_references:
            if (
                reference.source_node_id.namespace_index == self._namespace.index
                and reference.reference_type_id != HAS_SUBTYPE
            ):
                continue
            ref = ET.SubElement(
                refs,
                f"{{{NODESET_NS}}}Reference",
                {
                    "ReferenceType": self._reference_type(reference.reference_type_id),
                    "IsForward": "false",
                },
            )
            ref.text = self._local_node_id(reference.source_node_id)

        return elem

    def _get_timestamp(self) -> str:
        """Get timestamp for NodeSet metadata."""
        if self._deterministic:
            return "2000-01-01T00:00:00Z"
        return datetime.now(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")

    def _to_xml_string(self, root: ET.Element) -> str:
        """Convert element tree to formatted XML string."""
        ET.indent(root, space="  ")
        return '<?xml version="1.0" encoding="utf-8"?>\n' + ET.tostring(root, encoding="unicode")


def generate_nodeset(address_space: AddressSpace, namespace_uri: str, output_path: Path) -> None:
    """Convenience function to export one namespace to a NodeSet2 XML file.

    Args:
        address_space: Address space holding the nodes.
        namespace_uri: URI of the namespace to export.
        output_path: Path to write the NodeSet2 XML file.
    """
    generator = NodeSetGenerator(address_space, namespace_uri)
    generator.generate(output_path)


__all__ = ["NodeSetGenerator", "generate_nodeset"]
