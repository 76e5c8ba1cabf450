"""Structural invariant checks for an AddressSpace.

Violations found here point at a loader defect or at hand-built nodes:
- outgoing/incoming copies of a reference that disagree
- supertypes that are missing, of another node class, or cyclic
- type nodes without a supertype that are not the root of their kind
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from ua_address_space.domain.model.nodes import TypeNode
from ua_address_space.domain.model.standard import TYPE_ROOTS
from ua_address_space.errors import StructuralInvariantError

if TYPE_CHECKING:
    from ua_address_space.domain.address_space import AddressSpace
    from ua_address_space.domain.model.nodes import Node

logger = structlog.get_logger(__name__)


def _check_reference_copies(space: AddressSpace, node: Node) -> list[str]:
    problems: list[str] = []
    for reference in node.outgoing_references:
        if reference.source_node_id != node.node_id or not reference.is_forward:
            problems.append(f"Outgoing reference on {node.node_id} is misplaced: {reference}")
            continue
        target = space.find_node(reference.target_node_id)
        if target is None:
            problems.append(f"Reference {reference} points to a missing node")
        elif reference not in target.incoming_references:
            problems.append(f"Reference {reference} has no incoming copy on its target")
    for reference in node.incoming_references:
        if reference.target_node_id != node.node_id or not reference.is_forward:
            problems.append(f"Incoming reference on {node.node_id} is misplaced: {reference}")
            continue
        source = space.find_node(reference.source_node_id)
        if source is None:
            problems.append(f"Reference {reference} comes from a missing node")
        elif reference not in source.outgoing_references:
            problems.append(f"Reference {reference} has no outgoing copy on its source")
    return problems


def _check_super_type(space: AddressSpace, node: TypeNode) -> list[str]:
    if node.super_type is None:
        if TYPE_ROOTS.get(node.node_class) == node.node_id:
            return []
        return [f"{node.node_class.name} {node.node_id} has no supertype"]

    super_type = space.find_node(node.super_type)
    if super_type is None:
        return [f"Supertype {node.super_type} of {node.node_id} does not exist"]
    if super_type.node_class != node.node_class:
        return [
            f"Supertype {node.super_type} of {node.node_id} is a "
            f"{super_type.node_class.name}, expected {node.node_class.name}"
        ]

    try:
        for _ancestor in space.iter_super_types(node):
            pass
    except StructuralInvariantError as e:
        return [f"{node.node_id}: {problem}" for problem in e.problems]
    return []


def find_inconsistencies(space: AddressSpace, nodes: list[Node] | None = None) -> list[str]:
    """Collect invariant violations, limited to ``nodes`` if given."""
    problems: list[str] = []
    for node in nodes if nodes is not None else space.iter_nodes():
        problems.extend(_check_reference_copies(space, node))
        if isinstance(node, TypeNode):
            problems.extend(_check_super_type(space, node))
    return problems


def verify_address_space(space: AddressSpace, nodes: list[Node] | None = None) -> None:
    """Raise StructuralInvariantError if any invariant is violated."""
    problems = find_inconsistencies(space, nodes)
    if problems:
        logger.error("Address space is inconsistent", problems=len(problems))
        raise StructuralInvariantError(problems)
    logger.debug("Address space consistency verified")


__all__ = ["find_inconsistencies", "verify_address_space"]
