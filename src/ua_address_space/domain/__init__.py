"""Address space domain: namespaces, nodes, references and the graph."""

from ua_address_space.domain.address_space import AddressSpace
from ua_address_space.domain.consistency import find_inconsistencies, verify_address_space
from ua_address_space.domain.namespace import Namespace, NamespaceTable

__all__ = [
    "AddressSpace",
    "Namespace",
    "NamespaceTable",
    "find_inconsistencies",
    "verify_address_space",
]
