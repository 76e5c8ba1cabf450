"""Node and Reference domain models.

Node kind is a closed tagged variant over asyncua's ``ua.NodeClass``:
- Object, Method, View: plain ``Node``
- Variable: ``VariableNode``
- ObjectType, VariableType, ReferenceType, DataType: ``TypeNode`` subclasses,
  the only variants carrying ``is_abstract`` and ``super_type``

References are plain value records. Each one is stored twice, outgoing on its
source node and incoming on its target node; only the AddressSpace mutates
those collections, and always both together.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from asyncua import ua

from ua_address_space.domain.model.node_id import NodeId, QualifiedName

NodeClass = ua.NodeClass

TYPE_NODE_CLASSES = frozenset(
    {
        NodeClass.ObjectType,
        NodeClass.VariableType,
        NodeClass.ReferenceType,
        NodeClass.DataType,
    }
)


@dataclass(frozen=True, slots=True)
class Reference:
    """Typed, directed edge between two nodes.

    Stored records are always in forward orientation (``is_forward=True``,
    source -> target). ``inverse()`` yields the view seen from the target.
    """

    source_node_id: NodeId
    target_node_id: NodeId
    reference_type_id: NodeId
    is_forward: bool = True

    def inverse(self) -> Reference:
        """Same edge as seen from the other endpoint."""
        return Reference(
            source_node_id=self.target_node_id,
            target_node_id=self.source_node_id,
            reference_type_id=self.reference_type_id,
            is_forward=not self.is_forward,
        )

    def normalized(self) -> Reference:
        """Forward-oriented form of this edge."""
        return self if self.is_forward else self.inverse()

    def __str__(self) -> str:
        arrow = "-->" if self.is_forward else "<--"
        return f"{self.source_node_id} {arrow}[{self.reference_type_id}] {self.target_node_id}"


@dataclass(eq=False, slots=True)
class Node:
    """Graph vertex owned by exactly one AddressSpace."""

    node_id: NodeId
    node_class: ua.NodeClass
    browse_name: QualifiedName
    display_name: str = ""
    description: str = ""
    _outgoing: list[Reference] = field(default_factory=list, init=False, repr=False)
    _incoming: list[Reference] = field(default_factory=list, init=False, repr=False)

    def __post_init__(self) -> None:
        if not self.display_name:
            self.display_name = self.browse_name.name

    @property
    def is_type(self) -> bool:
        return self.node_class in TYPE_NODE_CLASSES

    @property
    def outgoing_references(self) -> tuple[Reference, ...]:
        return tuple(self._outgoing)

    @property
    def incoming_references(self) -> tuple[Reference, ...]:
        return tuple(self._incoming)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.node_id}, {self.browse_name})"


@dataclass(eq=False, repr=False, slots=True)
class VariableNode(Node):
    data_type: NodeId | None = None
    value_rank: int = -1
    access_level: int = 1
    value: Any = None


@dataclass(eq=False, repr=False, slots=True)
class TypeNode(Node):
    """Common base of the four type node kinds."""

    is_abstract: bool = False
    super_type: NodeId | None = None


@dataclass(eq=False, repr=False, slots=True)
class ObjectTypeNode(TypeNode):
    pass


@dataclass(eq=False, repr=False, slots=True)
class VariableTypeNode(TypeNode):
    data_type: NodeId | None = None
    value_rank: int = -1


@dataclass(eq=False, repr=False, slots=True)
class ReferenceTypeNode(TypeNode):
    symmetric: bool = False
    inverse_name: str = ""


@dataclass(eq=False, repr=False, slots=True)
class DataTypeNode(TypeNode):
    pass


NODE_CLASS_TYPES: dict[ua.NodeClass, type[Node]] = {
    NodeClass.Object: Node,
    NodeClass.Method: Node,
    NodeClass.View: Node,
    NodeClass.Variable: VariableNode,
    NodeClass.ObjectType: ObjectTypeNode,
    NodeClass.VariableType: VariableTypeNode,
    NodeClass.ReferenceType: ReferenceTypeNode,
    NodeClass.DataType: DataTypeNode,
}


def create_node(
    node_class: ua.NodeClass,
    node_id: NodeId,
    browse_name: QualifiedName,
    **attributes: Any,
) -> Node:
    """Instantiate the node variant matching ``node_class``.

    Attributes not defined by the variant (e.g. ``super_type`` on an Object)
    raise TypeError.
    """
    node_type = NODE_CLASS_TYPES[node_class]
    return node_type(node_id=node_id, node_class=node_class, browse_name=browse_name, **attributes)


__all__ = [
    "NODE_CLASS_TYPES",
    "TYPE_NODE_CLASSES",
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
]
