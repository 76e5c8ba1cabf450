"""Tokenized NodeSet document structures.

A ``NodeSetDocument`` is what a document source hands to the loader: the
ordered namespace URIs the document declares and its node declarations,
all expressed in document-local namespace indices. Local index 0 is always
the standard namespace; local index ``k >= 1`` is ``namespace_uris[k - 1]``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ua_address_space.domain.model.node_id import NodeId, QualifiedName
from ua_address_space.domain.model.nodes import TYPE_NODE_CLASSES, NodeClass
from ua_address_space.domain.model.standard import HAS_SUBTYPE


@dataclass(frozen=True, slots=True)
class ReferenceDeclaration:
    """Reference declared on a node, pointing at ``target`` by NodeId."""

    reference_type: NodeId
    target: NodeId
    is_forward: bool = True


@dataclass(slots=True)
class NodeDeclaration:
    """One node as declared in a document.

    ``attributes`` holds class-specific attributes (``data_type``,
    ``value_rank``, ``access_level``, ``is_abstract``, ``symmetric``,
    ``inverse_name``), passed to the node variant on creation.
    """

    node_id: NodeId
    node_class: NodeClass
    browse_name: QualifiedName
    display_name: str = ""
    description: str = ""
    references: list[ReferenceDeclaration] = field(default_factory=list)
    attributes: dict[str, Any] = field(default_factory=dict)

    @property
    def is_type(self) -> bool:
        return self.node_class in TYPE_NODE_CLASSES

    @property
    def super_type(self) -> NodeId | None:
        """Target of the inverse HasSubtype reference, for type declarations."""
        if not self.is_type:
            return None
        for reference in self.references:
            if reference.reference_type == HAS_SUBTYPE and not reference.is_forward:
                return reference.target
        return None


@dataclass(slots=True)
class NodeSetDocument:
    """A tokenized model document."""

    source: str
    namespace_uris: list[str] = field(default_factory=list)
    nodes: list[NodeDeclaration] = field(default_factory=list)

    def namespace_uri(self, local_index: int) -> str | None:
        """URI of a document-local namespace index; None for index 0 or undeclared."""
        if 1 <= local_index <= len(self.namespace_uris):
            return self.namespace_uris[local_index - 1]
        return None


__all__ = ["NodeDeclaration", "NodeSetDocument", "ReferenceDeclaration"]
