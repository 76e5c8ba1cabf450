"""OPC UA NodeSet2 XML reading and generation."""

from ua_address_space.adapters.nodeset.generator import (
    NodeSetGenerator,
    generate_nodeset,
)
from ua_address_space.adapters.nodeset.reader import (
    NodeSetReader,
    read_nodeset,
    read_nodeset_file,
)

__all__ = [
    "NodeSetGenerator",
    "NodeSetReader",
    "generate_nodeset",
    "read_nodeset",
    "read_nodeset_file",
]
