"""Bundled NodeSet2 files.

``standard_nodeset_file`` is a reduced standard namespace: the base type of
each type kind, the core reference type hierarchy, the built-in scalar data
types and the Root/Objects/Types folders.
"""

from pathlib import Path

NODESETS_DIR = Path(__file__).parent

standard_nodeset_file = NODESETS_DIR / "Opc.Ua.Mini.NodeSet2.xml"

__all__ = ["NODESETS_DIR", "standard_nodeset_file"]
