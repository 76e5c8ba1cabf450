"""Namespace registry for one AddressSpace.

The NamespaceTable is the sole authority for namespace index assignment:
index 0 is permanently bound to the standard namespace URI, new URIs are
appended in first-seen order, and indices are never reused or reordered.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import structlog

from ua_address_space.domain.model.nodes import TYPE_NODE_CLASSES, NodeClass, TypeNode
from ua_address_space.domain.model.standard import STANDARD_NAMESPACE_URI
from ua_address_space.errors import DuplicateBrowseNameError

if TYPE_CHECKING:
    from collections.abc import Iterator

logger = structlog.get_logger(__name__)


@dataclass(eq=False)
class Namespace:
    """A registered namespace and its per-kind type name indices.

    The four secondary indices (object, variable, reference and data types)
    map an unqualified local browse name to the type node. They are created
    on first insertion of a type of that kind.
    """

    namespace_uri: str
    index: int
    _type_indices: dict[NodeClass, dict[str, TypeNode]] = field(default_factory=dict, repr=False)

    def register_type(self, node: TypeNode) -> None:
        """Add a type node to the index for its kind.

        Raises:
            DuplicateBrowseNameError: If another type of the same kind already
                uses this local name in this namespace.
        """
        index = self._type_indices.setdefault(node.node_class, {})
        name = node.browse_name.name
        existing = index.get(name)
        if existing is not None and existing is not node:
            raise DuplicateBrowseNameError(self.index, node.node_class.name, name)
        index[name] = node

    def can_register_type(self, node: TypeNode) -> bool:
        existing = self._type_indices.get(node.node_class, {}).get(node.browse_name.name)
        return existing is None or existing is node

    def unregister_type(self, node: TypeNode) -> None:
        index = self._type_indices.get(node.node_class)
        if index is not None and index.get(node.browse_name.name) is node:
            del index[node.browse_name.name]

    def find_type(self, node_class: NodeClass, name: str) -> TypeNode | None:
        if node_class not in TYPE_NODE_CLASSES:
            raise ValueError(f"{node_class.name} is not a type node class")
        return self._type_indices.get(node_class, {}).get(name)

    def find_object_type(self, name: str) -> TypeNode | None:
        return self.find_type(NodeClass.ObjectType, name)

    def find_variable_type(self, name: str) -> TypeNode | None:
        return self.find_type(NodeClass.VariableType, name)

    def find_reference_type(self, name: str) -> TypeNode | None:
        return self.find_type(NodeClass.ReferenceType, name)

    def find_data_type(self, name: str) -> TypeNode | None:
        return self.find_type(NodeClass.DataType, name)

    def type_count(self, node_class: NodeClass | None = None) -> int:
        if node_class is not None:
            return len(self._type_indices.get(node_class, {}))
        return sum(len(index) for index in self._type_indices.values())

    def clear(self) -> None:
        self._type_indices.clear()


class NamespaceTable:
    """Ordered URI <-> index registry; position in the table equals index."""

    def __init__(self) -> None:
        self._namespaces: list[Namespace] = []
        self._by_uri: dict[str, Namespace] = {}
        self.register_namespace(STANDARD_NAMESPACE_URI)

    def get_namespace_uri(self, index: int) -> str | None:
        namespace = self.get_namespace(index)
        return namespace.namespace_uri if namespace else None

    def get_namespace_index(self, uri: str) -> int:
        """Return the index of ``uri``, or -1 if it is not registered."""
        namespace = self._by_uri.get(uri)
        return namespace.index if namespace else -1

    def get_namespace(self, index_or_uri: int | str) -> Namespace | None:
        if isinstance(index_or_uri, str):
            return self._by_uri.get(index_or_uri)
        if 0 <= index_or_uri < len(self._namespaces):
            return self._namespaces[index_or_uri]
        return None

    def register_namespace(self, uri: str) -> Namespace:
        """Return the namespace for ``uri``, appending it if new.

        Idempotent on URI; this is the only operation that grows the table.
        """
        if not uri:
            raise ValueError("Namespace URI must not be empty")
        existing = self._by_uri.get(uri)
        if existing is not None:
            return existing

        namespace = Namespace(namespace_uri=uri, index=len(self._namespaces))
        self._namespaces.append(namespace)
        self._by_uri[uri] = namespace
        logger.debug("Registered namespace", uri=uri, index=namespace.index)
        return namespace

    def get_namespace_array(self) -> list[Namespace]:
        """Snapshot of all namespaces in registration order."""
        return list(self._namespaces)

    def clear(self) -> None:
        for namespace in self._namespaces:
            namespace.clear()
        self._namespaces.clear()
        self._by_uri.clear()

    def __len__(self) -> int:
        return len(self._namespaces)

    def __iter__(self) -> Iterator[Namespace]:
        return iter(self._namespaces)

    def __contains__(self, uri: object) -> bool:
        return uri in self._by_uri


__all__ = ["Namespace", "NamespaceTable"]
