"""Exception hierarchy for the address space and NodeSet loader.

Lookups never raise for "not found" (they return None). The exceptions
below cover malformed input, fatal load conflicts, and defects detected by
the structural consistency checks.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ua_address_space.domain.model.node_id import NodeId


class AddressSpaceError(Exception):
    """Base class for all address space errors."""


class NodeIdParseError(AddressSpaceError, ValueError):
    """Raised when a NodeId or qualified name string cannot be parsed."""

    def __init__(self, text: str, reason: str) -> None:
        super().__init__(f"Cannot parse {text!r}: {reason}")
        self.text = text
        self.reason = reason


class UnknownNamespaceError(AddressSpaceError):
    """Raised when a node is inserted under a namespace index that is not registered."""

    def __init__(self, namespace_index: int) -> None:
        super().__init__(f"Namespace index {namespace_index} is not registered")
        self.namespace_index = namespace_index


class DuplicateNodeIdError(AddressSpaceError):
    """Raised when a NodeId is defined twice."""

    def __init__(self, node_id: NodeId, document: str | None = None) -> None:
        where = f" (while loading {document})" if document else ""
        super().__init__(f"Node {node_id} already exists{where}")
        self.node_id = node_id
        self.document = document


class DuplicateBrowseNameError(AddressSpaceError):
    """Raised when two type nodes of the same kind share a name within one namespace."""

    def __init__(self, namespace_index: int, node_class: str, name: str) -> None:
        super().__init__(f"{node_class} {name!r} is already registered in namespace {namespace_index}")
        self.namespace_index = namespace_index
        self.node_class = node_class
        self.name = name


class UnresolvedReferenceError(AddressSpaceError):
    """Raised when a reference endpoint does not exist once loading completes."""

    def __init__(
        self,
        source: NodeId,
        target: NodeId,
        reference_type: NodeId,
        document: str | None = None,
        missing: NodeId | None = None,
    ) -> None:
        where = f" declared in {document}" if document else ""
        missing = missing if missing is not None else target
        super().__init__(
            f"Reference {source} --[{reference_type}]--> {target}{where} "
            f"cannot be resolved: node {missing} does not exist"
        )
        self.missing = missing
        self.source = source
        self.target = target
        self.reference_type = reference_type
        self.document = document


class InvalidNodeSetError(AddressSpaceError):
    """Raised when a NodeSet document is malformed."""

    def __init__(self, document: str, message: str) -> None:
        super().__init__(f"{document}: {message}")
        self.document = document
        self.message = message


class StructuralInvariantError(AddressSpaceError):
    """Raised when the graph violates an internal invariant.

    Indicates a defect in the loader or in hand-built nodes, not in a lookup.
    """

    def __init__(self, problems: list[str]) -> None:
        super().__init__(
            "Address space consistency check failed:\n" + "\n".join(f"  - {p}" for p in problems)
        )
        self.problems = problems


__all__ = [
    "AddressSpaceError",
    "DuplicateBrowseNameError",
    "DuplicateNodeIdError",
    "InvalidNodeSetError",
    "NodeIdParseError",
    "StructuralInvariantError",
    "UnknownNamespaceError",
    "UnresolvedReferenceError",
]
