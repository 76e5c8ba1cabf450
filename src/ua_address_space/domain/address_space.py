"""AddressSpace: owner of the namespace table and the node graph.

Nodes live in a single arena keyed by NodeId. References are value records
stored on both endpoints. Type nodes are additionally indexed by local
browse name in their namespace so that qualified type lookups avoid a
full-graph scan.

Lifecycle: create -> mutate (add_node / add_reference / loader) -> dispose.
There are no process-wide registries; all state belongs to one instance.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog
from asyncua import ua

from ua_address_space.domain.model import standard
from ua_address_space.domain.model.node_id import NodeId, QualifiedName, coerce_node_id
from ua_address_space.domain.model.nodes import (
    NODE_CLASS_TYPES,
    Node,
    NodeClass,
    Reference,
    ReferenceTypeNode,
    TypeNode,
)
from ua_address_space.domain.namespace import Namespace, NamespaceTable
from ua_address_space.errors import (
    DuplicateBrowseNameError,
    DuplicateNodeIdError,
    NodeIdParseError,
    StructuralInvariantError,
    UnknownNamespaceError,
    UnresolvedReferenceError,
)

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

logger = structlog.get_logger(__name__)


class AddressSpace:
    """In-memory typed graph of OPC UA nodes."""

    def __init__(self) -> None:
        self._namespaces = NamespaceTable()
        self._nodes: dict[NodeId, Node] = {}

    # -------------------------------------------------------------------------
    # Namespaces
    # -------------------------------------------------------------------------

    def get_namespace_uri(self, index: int) -> str | None:
        return self._namespaces.get_namespace_uri(index)

    def get_namespace_index(self, uri: str) -> int:
        return self._namespaces.get_namespace_index(uri)

    def get_namespace(self, index_or_uri: int | str) -> Namespace | None:
        return self._namespaces.get_namespace(index_or_uri)

    def register_namespace(self, uri: str) -> Namespace:
        """Register ``uri`` (idempotent) and return its namespace.

        Nodes can be inserted under the returned index immediately; the
        namespace's type indices are owned by the Namespace itself.
        """
        return self._namespaces.register_namespace(uri)

    def get_namespace_array(self) -> list[Namespace]:
        return self._namespaces.get_namespace_array()

    # -------------------------------------------------------------------------
    # Lookup
    # -------------------------------------------------------------------------

    def find_node(self, node_id: NodeId | str | int) -> Node | None:
        """Find a node by NodeId or its textual form.

        Returns None if the node does not exist.

        Raises:
            NodeIdParseError: If ``node_id`` is a malformed string.
        """
        return self._nodes.get(coerce_node_id(node_id))

    def find_object_type(
        self, name: str | QualifiedName, namespace_index: int | None = None
    ) -> TypeNode | None:
        return self._find_type(NodeClass.ObjectType, name, namespace_index)

    def find_variable_type(
        self, name: str | QualifiedName, namespace_index: int | None = None
    ) -> TypeNode | None:
        return self._find_type(NodeClass.VariableType, name, namespace_index)

    def find_reference_type(
        self, name: str | QualifiedName, namespace_index: int | None = None
    ) -> TypeNode | None:
        return self._find_type(NodeClass.ReferenceType, name, namespace_index)

    def find_data_type(
        self, name: str | QualifiedName, namespace_index: int | None = None
    ) -> TypeNode | None:
        return self._find_type(NodeClass.DataType, name, namespace_index)

    def _find_type(
        self,
        node_class: NodeClass,
        name: str | QualifiedName,
        namespace_index: int | None,
    ) -> TypeNode | None:
        """Resolve a type by (optionally qualified) local name.

        Lookup order:
        - ``"<k>:<name>"`` or a QualifiedName: namespace k, overriding any
          conflicting ``namespace_index`` argument
        - unqualified name with ``namespace_index``: that namespace
        - unqualified name alone: namespace 0 only; names that exist solely
          in other namespaces are not found
        """
        if isinstance(name, QualifiedName):
            explicit, local_name = name.namespace_index, name.name
        else:
            explicit, local_name = QualifiedName.split(name)

        if explicit is not None:
            if namespace_index is not None and namespace_index != explicit:
                logger.warning(
                    "Ambiguous namespace qualifier, using the one in the name",
                    name=str(name),
                    namespace_index=namespace_index,
                    qualifier=explicit,
                )
            namespace_index = explicit
        elif namespace_index is None:
            namespace_index = 0

        namespace = self._namespaces.get_namespace(namespace_index)
        if namespace is None:
            return None
        return namespace.find_type(node_class, local_name)

    def resolve_browse_path(
        self, start: NodeId | str, path: str | Sequence[str | QualifiedName]
    ) -> Node | None:
        """Follow forward hierarchical references along a browse path.

        ``path`` is either a sequence of browse names or a ``/``-separated
        string such as ``"Objects/2:ObjectInCUSTOM_NAMESPACE1"``.
        """
        node = self.find_node(start)
        if node is None:
            return None
        elements = path.split("/") if isinstance(path, str) else list(path)
        for element in elements:
            if element == "":
                continue
            browse_name = element if isinstance(element, QualifiedName) else QualifiedName.parse(element)
            node = self._find_child(node, browse_name)
            if node is None:
                return None
        return node

    def _find_child(self, node: Node, browse_name: QualifiedName) -> Node | None:
        for reference in node._outgoing:
            if not self.is_subtype_of(reference.reference_type_id, standard.HIERARCHICAL_REFERENCES):
                continue
            target = self._nodes.get(reference.target_node_id)
            if target is not None and target.browse_name == browse_name:
                return target
        return None

    def browse(
        self,
        node_id: NodeId | str,
        direction: ua.BrowseDirection = ua.BrowseDirection.Both,
        reference_type: NodeId | str | None = None,
        *,
        include_subtypes: bool = True,
    ) -> list[Reference]:
        """List the references of a node as seen from that node.

        Outgoing references are reported as stored (``is_forward=True``);
        incoming ones as inverse views whose source is the browsed node.
        """
        node = self.find_node(node_id)
        if node is None:
            return []
        type_filter = coerce_node_id(reference_type) if reference_type is not None else None

        views: list[Reference] = []
        if direction in (ua.BrowseDirection.Forward, ua.BrowseDirection.Both):
            views.extend(node._outgoing)
        if direction in (ua.BrowseDirection.Inverse, ua.BrowseDirection.Both):
            views.extend(reference.inverse() for reference in node._incoming)

        if type_filter is None:
            return views
        if include_subtypes:
            return [r for r in views if self.is_subtype_of(r.reference_type_id, type_filter)]
        return [r for r in views if r.reference_type_id == type_filter]

    # -------------------------------------------------------------------------
    # Type hierarchy
    # -------------------------------------------------------------------------

    def get_super_type(self, node: TypeNode) -> TypeNode | None:
        if node.super_type is None:
            return None
        super_type = self._nodes.get(node.super_type)
        return super_type if isinstance(super_type, TypeNode) else None

    def iter_super_types(self, node: TypeNode) -> Iterator[TypeNode]:
        """Yield the supertype chain of ``node``, nearest first.

        Raises:
            StructuralInvariantError: If the chain contains a cycle.
        """
        seen = {node.node_id}
        current = self.get_super_type(node)
        while current is not None:
            if current.node_id in seen:
                raise StructuralInvariantError([f"Supertype cycle through {current.node_id}"])
            seen.add(current.node_id)
            yield current
            current = self.get_super_type(current)

    def is_subtype_of(self, type_id: NodeId | str, base_id: NodeId | str) -> bool:
        """True if ``type_id`` equals ``base_id`` or derives from it."""
        type_id = coerce_node_id(type_id)
        base_id = coerce_node_id(base_id)
        if type_id == base_id:
            return True
        node = self._nodes.get(type_id)
        if not isinstance(node, TypeNode):
            return False
        return any(ancestor.node_id == base_id for ancestor in self.iter_super_types(node))

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def add_node(self, node: Node) -> Node:
        """Insert a node into the primary index and its namespace's type index.

        Raises:
            UnknownNamespaceError: If the node's namespace is not registered.
            DuplicateNodeIdError: If the NodeId is already present.
            DuplicateBrowseNameError: If a type of the same kind and local
                name already exists in the namespace.
        """
        if not isinstance(node, NODE_CLASS_TYPES[node.node_class]):
            raise TypeError(f"{type(node).__name__} cannot carry node class {node.node_class.name}")

        namespace = self._namespaces.get_namespace(node.node_id.namespace_index)
        if namespace is None:
            raise UnknownNamespaceError(node.node_id.namespace_index)
        if node.node_id in self._nodes:
            raise DuplicateNodeIdError(node.node_id)

        if isinstance(node, TypeNode):
            if not namespace.can_register_type(node):
                raise DuplicateBrowseNameError(namespace.index, node.node_class.name, node.browse_name.name)
            namespace.register_type(node)
        self._nodes[node.node_id] = node

        logger.debug("Added node", node_id=str(node.node_id), node_class=node.node_class.name)
        return node

    def add_reference(self, reference: Reference) -> bool:
        """Commit a reference to both endpoints.

        The record is normalised to forward orientation. Committing an
        identical edge twice is a no-op and returns False.

        Raises:
            UnresolvedReferenceError: If either endpoint does not exist.
        """
        reference = reference.normalized()
        source = self._nodes.get(reference.source_node_id)
        target = self._nodes.get(reference.target_node_id)
        if source is None or target is None:
            raise UnresolvedReferenceError(
                reference.source_node_id,
                reference.target_node_id,
                reference.reference_type_id,
                missing=reference.source_node_id if source is None else reference.target_node_id,
            )
        if reference in source._outgoing:
            return False

        source._outgoing.append(reference)
        target._incoming.append(reference)
        return True

    def delete_node(self, node_id: NodeId | str) -> bool:
        """Remove a node and both stored copies of every attached reference."""
        node = self.find_node(node_id)
        if node is None:
            return False

        for reference in node._outgoing:
            target = self._nodes.get(reference.target_node_id)
            if target is not None and target is not node:
                target._incoming.remove(reference)
        for reference in node._incoming:
            source = self._nodes.get(reference.source_node_id)
            if source is not None and source is not node:
                source._outgoing.remove(reference)
        node._outgoing.clear()
        node._incoming.clear()

        if isinstance(node, TypeNode):
            namespace = self._namespaces.get_namespace(node.node_id.namespace_index)
            if namespace is not None:
                namespace.unregister_type(node)
        del self._nodes[node.node_id]

        logger.debug("Deleted node", node_id=str(node.node_id))
        return True

    # -------------------------------------------------------------------------
    # Iteration and lifecycle
    # -------------------------------------------------------------------------

    def iter_nodes(self, namespace_index: int | None = None) -> Iterator[Node]:
        """Iterate nodes in insertion order, optionally limited to one namespace."""
        for node in self._nodes.values():
            if namespace_index is None or node.node_id.namespace_index == namespace_index:
                yield node

    def reference_type_name(self, reference_type_id: NodeId) -> str:
        """Browse name of a reference type, or its NodeId text if unknown."""
        node = self._nodes.get(reference_type_id)
        if isinstance(node, ReferenceTypeNode):
            return str(node.browse_name)
        return str(reference_type_id)

    def dispose(self) -> None:
        """Release all nodes, type indices and the namespace table.

        The instance must not be used afterwards.
        """
        for node in self._nodes.values():
            node._outgoing.clear()
            node._incoming.clear()
        self._nodes.clear()
        self._namespaces.clear()
        logger.debug("Address space disposed")

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        if not isinstance(node_id, NodeId | str):
            return False
        try:
            return self.find_node(node_id) is not None
        except NodeIdParseError:
            return False


__all__ = ["AddressSpace"]
