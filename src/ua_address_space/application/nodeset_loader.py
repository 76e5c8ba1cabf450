"""NodeSet loader: merges model documents into an AddressSpace.

Per document:
1. The declared namespace URIs are registered on the target AddressSpace.
   Registration is idempotent on URI, so a URI seen in an earlier document
   (or pre-registered by the caller) keeps its index. The result is the
   document's local -> global index translation table.
2. Every node declaration is translated through that table and inserted.
   A translated NodeId that already exists is fatal.
3. Reference declarations are translated and queued.

Once every document has been ingested, the queued references are committed
to both endpoints. Forward references across documents therefore resolve
regardless of document order. The first reference whose target does not
exist aborts the commit; nothing is rolled back.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import structlog

from ua_address_space.adapters.nodeset.reader import read_nodeset_file
from ua_address_space.domain.consistency import verify_address_space
from ua_address_space.domain.model.node_id import NodeId, QualifiedName
from ua_address_space.domain.model.nodes import Node, Reference, TypeNode, create_node
from ua_address_space.domain.model.nodeset import NodeSetDocument
from ua_address_space.domain.model.standard import HAS_SUBTYPE
from ua_address_space.errors import (
    DuplicateNodeIdError,
    InvalidNodeSetError,
    UnresolvedReferenceError,
)
from ua_address_space.observability.logging import LogContext

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from ua_address_space.domain.address_space import AddressSpace
    from ua_address_space.domain.model.nodeset import NodeDeclaration

logger = structlog.get_logger(__name__)

# Attributes whose values are NodeIds in document-local namespace indices
_NODE_ID_ATTRIBUTES = ("data_type",)


@dataclass(frozen=True, slots=True)
class PendingReference:
    """A translated reference waiting for the commit phase."""

    document: str
    reference: Reference


class NamespaceTranslation:
    """Document-local -> global namespace index table."""

    def __init__(self, document: NodeSetDocument, global_indices: list[int]) -> None:
        self._document = document
        self._table = [0, *global_indices]

    def index(self, local_index: int) -> int:
        if not 0 <= local_index < len(self._table):
            raise InvalidNodeSetError(
                self._document.source,
                f"namespace index {local_index} is not declared "
                f"(document declares {len(self._table) - 1} namespaces)",
            )
        return self._table[local_index]

    def node_id(self, node_id: NodeId) -> NodeId:
        return node_id.with_namespace(self.index(node_id.namespace_index))

    def browse_name(self, name: QualifiedName) -> QualifiedName:
        return name.with_namespace(self.index(name.namespace_index))

    def as_list(self) -> list[int]:
        return list(self._table)


class NodeSetLoader:
    """Two-phase loader for one load operation.

    Usage:
        loader = NodeSetLoader(address_space)
        for document in documents:
            loader.ingest(document)
        loader.commit()
    """

    def __init__(self, address_space: AddressSpace, *, verify: bool = True) -> None:
        self._space = address_space
        self._verify = verify
        self._pending: list[PendingReference] = []
        self._loaded_nodes: list[Node] = []
        self._documents: list[str] = []

    @property
    def pending_references(self) -> tuple[PendingReference, ...]:
        return tuple(self._pending)

    @property
    def loaded_nodes(self) -> tuple[Node, ...]:
        return tuple(self._loaded_nodes)

    def unify_namespaces(self, document: NodeSetDocument) -> NamespaceTranslation:
        """Register the document's namespaces and build its translation table.

        Raises:
            InvalidNodeSetError: If the document declares an empty namespace URI.
        """
        for local_index, uri in enumerate(document.namespace_uris, start=1):
            if not uri:
                raise InvalidNodeSetError(document.source, f"empty namespace URI at local index {local_index}")
        global_indices = [
            self._space.register_namespace(uri).index for uri in document.namespace_uris
        ]
        translation = NamespaceTranslation(document, global_indices)
        logger.debug("Namespace translation", table=translation.as_list())
        return translation

    def ingest(self, document: NodeSetDocument) -> None:
        """Insert a document's nodes and queue its references.

        Raises:
            InvalidNodeSetError: If the document uses an undeclared namespace
                index or a node declares attributes its class does not have.
            DuplicateNodeIdError: If a translated NodeId already exists.
            DuplicateBrowseNameError: If a type name collides in its namespace.
        """
        with LogContext(document=document.source):
            translation = self.unify_namespaces(document)
            for declaration in document.nodes:
                self._ingest_node(document, declaration, translation)
            self._documents.append(document.source)
            logger.info(
                "Ingested NodeSet document",
                nodes=len(document.nodes),
                namespaces=len(document.namespace_uris),
                pending_references=len(self._pending),
            )

    def _ingest_node(
        self,
        document: NodeSetDocument,
        declaration: NodeDeclaration,
        translation: NamespaceTranslation,
    ) -> None:
        node_id = translation.node_id(declaration.node_id)

        attributes: dict[str, Any] = dict(declaration.attributes)
        for name in _NODE_ID_ATTRIBUTES:
            value = attributes.get(name)
            if isinstance(value, NodeId):
                attributes[name] = translation.node_id(value)
        if declaration.is_type:
            super_type = declaration.super_type
            if super_type is not None:
                super_type = translation.node_id(super_type)
            attributes["super_type"] = super_type

        try:
            node = create_node(
                declaration.node_class,
                node_id,
                translation.browse_name(declaration.browse_name),
                display_name=declaration.display_name,
                description=declaration.description,
                **attributes,
            )
        except TypeError as e:
            raise InvalidNodeSetError(
                document.source,
                f"invalid attributes for {declaration.node_class.name} {declaration.node_id}: {e}",
            ) from e

        try:
            self._space.add_node(node)
        except DuplicateNodeIdError as e:
            raise DuplicateNodeIdError(node_id, document.source) from e
        self._loaded_nodes.append(node)

        for declared in declaration.references:
            reference = Reference(
                source_node_id=node_id,
                target_node_id=translation.node_id(declared.target),
                reference_type_id=translation.node_id(declared.reference_type),
                is_forward=declared.is_forward,
            )
            self._pending.append(PendingReference(document.source, reference))

    def commit(self) -> int:
        """Resolve and commit all queued references.

        Returns:
            Number of references added (identical duplicates are skipped).

        Raises:
            UnresolvedReferenceError: On the first reference whose target does
                not exist. References committed before it remain.
            StructuralInvariantError: If verification is enabled and the
                loaded nodes violate a graph invariant.
        """
        pending, self._pending = self._pending, []
        committed = 0
        for item in pending:
            reference = item.reference
            if self._space.find_node(reference.target_node_id) is None:
                logger.error(
                    "Unresolved reference",
                    document=item.document,
                    source=str(reference.source_node_id),
                    target=str(reference.target_node_id),
                    reference_type=self._space.reference_type_name(reference.reference_type_id),
                )
                raise UnresolvedReferenceError(
                    reference.source_node_id,
                    reference.target_node_id,
                    reference.reference_type_id,
                    document=item.document,
                )
            if self._space.add_reference(reference):
                committed += 1
                self._link_super_type(reference)

        if self._verify:
            verify_address_space(self._space, self._loaded_nodes)

        logger.info(
            "Committed references",
            documents=len(self._documents),
            nodes=len(self._loaded_nodes),
            references=committed,
        )
        return committed

    def _link_super_type(self, reference: Reference) -> None:
        """Take the supertype from a forward HasSubtype edge if the subtype lacks one."""
        edge = reference.normalized()
        if edge.reference_type_id != HAS_SUBTYPE:
            return
        subtype = self._space.find_node(edge.target_node_id)
        if isinstance(subtype, TypeNode) and subtype.super_type is None:
            subtype.super_type = edge.source_node_id

    def load(self, documents: Iterable[NodeSetDocument]) -> None:
        """Ingest all documents, then commit their references."""
        for document in documents:
            self.ingest(document)
        self.commit()


async def generate_address_space(
    address_space: AddressSpace,
    sources: Sequence[NodeSetDocument | Path | str],
    *,
    verify: bool = True,
) -> None:
    """Load NodeSet files and/or pre-tokenized documents into ``address_space``.

    Files are read off the event loop, one document at a time; the graph is
    only mutated between those suspension points.

    Raises:
        AddressSpaceError: The first fatal failure of the load operation.
    """
    loader = NodeSetLoader(address_space, verify=verify)
    for source in sources:
        if isinstance(source, NodeSetDocument):
            document = source
        else:
            document = await asyncio.to_thread(read_nodeset_file, Path(source))
        loader.ingest(document)
    loader.commit()


def load_nodeset_files(
    address_space: AddressSpace,
    paths: Sequence[Path | str],
    *,
    verify: bool = True,
) -> None:
    """Synchronous counterpart of ``generate_address_space`` for files."""
    loader = NodeSetLoader(address_space, verify=verify)
    loader.load(read_nodeset_file(Path(path)) for path in paths)


__all__ = [
    "NamespaceTranslation",
    "NodeSetLoader",
    "PendingReference",
    "generate_address_space",
    "load_nodeset_files",
]
