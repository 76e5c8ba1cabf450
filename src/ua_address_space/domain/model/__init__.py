"""Value types and node variants of the information model."""

from ua_address_space.domain.model.node_id import IdentifierType, NodeId, QualifiedName, coerce_node_id
from ua_address_space.domain.model.nodes import (
    DataTypeNode,
    Node,
    NodeClass,
    ObjectTypeNode,
    Reference,
    ReferenceTypeNode,
    TypeNode,
    VariableNode,
    VariableTypeNode,
    create_node,
)
from ua_address_space.domain.model.nodeset import (
    NodeDeclaration,
    NodeSetDocument,
    ReferenceDeclaration,
)

__all__ = [
    # Identifiers
    "IdentifierType",
    "NodeId",
    "QualifiedName",
    "coerce_node_id",
    # Nodes
    "DataTypeNode",
    "Node",
    "NodeClass",
    "ObjectTypeNode",
    "Reference",
    "ReferenceTypeNode",
    "TypeNode",
    "VariableNode",
    "VariableTypeNode",
    "create_node",
    # Documents
    "NodeDeclaration",
    "NodeSetDocument",
    "ReferenceDeclaration",
]
