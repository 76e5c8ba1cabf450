"""UA Address Space - OPC UA information model and NodeSet loader.

This package provides:
- A typed in-memory node graph addressable by namespace-qualified NodeIds
- Namespace virtualization across independently authored NodeSet2 documents
- Two-phase loading that resolves forward references between documents
- Typed and browse-name-qualified lookups
"""

__version__ = "0.1.0"

__author__ = "UA Address Space Team"

from ua_address_space.application.nodeset_loader import (
    NodeSetLoader,
    generate_address_space,
    load_nodeset_files,
)
from ua_address_space.domain.address_space import AddressSpace
from ua_address_space.domain.model.node_id import NodeId, QualifiedName

__all__ = [
    "AddressSpace",
    "NodeId",
    "NodeSetLoader",
    "QualifiedName",
    "__version__",
    "generate_address_space",
    "load_nodeset_files",
]
