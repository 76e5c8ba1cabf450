"""NodeId and QualifiedName value types.

Textual forms:
- NodeId: ``ns=<uint16>;i=<uint32>`` | ``s=<string>`` | ``g=<guid>`` | ``b=<base64>``;
  omitting ``ns=`` implies namespace 0.
- QualifiedName: ``<namespaceIndex>:<localName>``; unqualified implies namespace 0.
"""

from __future__ import annotations

import base64
import binascii
import re
import uuid
from dataclasses import dataclass
from enum import Enum

from asyncua import ua

from ua_address_space.errors import NodeIdParseError

MAX_NAMESPACE_INDEX = 0xFFFF
MAX_NUMERIC_IDENTIFIER = 0xFFFFFFFF

_NODE_ID_RE = re.compile(r"^(?:ns=(?P<ns>[0-9]+);)?(?P<kind>[isgb])=(?P<value>.*)$", re.DOTALL)
_QUALIFIED_NAME_RE = re.compile(r"^(?P<ns>[0-9]+):(?P<name>.+)$", re.DOTALL)


class IdentifierType(str, Enum):
    """Identifier kinds, valued by their textual prefix."""

    NUMERIC = "i"
    STRING = "s"
    GUID = "g"
    OPAQUE = "b"


@dataclass(frozen=True, slots=True)
class NodeId:
    """Namespace-qualified node identifier.

    Two NodeIds are equal when both the namespace index and the identifier
    (by value) match.
    """

    namespace_index: int
    identifier: int | str | uuid.UUID | bytes

    def __post_init__(self) -> None:
        if not 0 <= self.namespace_index <= MAX_NAMESPACE_INDEX:
            raise ValueError(f"Namespace index out of range: {self.namespace_index}")
        if isinstance(self.identifier, bool) or not isinstance(
            self.identifier, int | str | uuid.UUID | bytes
        ):
            raise TypeError(f"Unsupported identifier type: {type(self.identifier).__name__}")
        if isinstance(self.identifier, int) and not 0 <= self.identifier <= MAX_NUMERIC_IDENTIFIER:
            raise ValueError(f"Numeric identifier out of range: {self.identifier}")

    @property
    def identifier_type(self) -> IdentifierType:
        if isinstance(self.identifier, int):
            return IdentifierType.NUMERIC
        if isinstance(self.identifier, str):
            return IdentifierType.STRING
        if isinstance(self.identifier, uuid.UUID):
            return IdentifierType.GUID
        return IdentifierType.OPAQUE

    @classmethod
    def parse(cls, text: str) -> NodeId:
        """Parse the textual form of a NodeId.

        Raises:
            NodeIdParseError: If the text is not a valid NodeId.
        """
        match = _NODE_ID_RE.match(text.strip())
        if match is None:
            raise NodeIdParseError(text, "expected [ns=<index>;](i|s|g|b)=<identifier>")

        namespace_index = int(match.group("ns") or 0)
        if namespace_index > MAX_NAMESPACE_INDEX:
            raise NodeIdParseError(text, "namespace index exceeds 65535")

        kind = IdentifierType(match.group("kind"))
        value = match.group("value")
        identifier: int | str | uuid.UUID | bytes
        if kind is IdentifierType.NUMERIC:
            if not (value.isascii() and value.isdigit()) or int(value) > MAX_NUMERIC_IDENTIFIER:
                raise NodeIdParseError(text, "numeric identifier must be a uint32")
            identifier = int(value)
        elif kind is IdentifierType.STRING:
            identifier = value
        elif kind is IdentifierType.GUID:
            try:
                identifier = uuid.UUID(value)
            except ValueError as e:
                raise NodeIdParseError(text, "invalid GUID") from e
        else:
            try:
                identifier = base64.b64decode(value, validate=True)
            except binascii.Error as e:
                raise NodeIdParseError(text, "invalid base64 opaque identifier") from e

        return cls(namespace_index, identifier)

    def with_namespace(self, namespace_index: int) -> NodeId:
        """Return a copy of this NodeId under another namespace index."""
        return NodeId(namespace_index, self.identifier)

    def to_string(self) -> str:
        kind = self.identifier_type
        if kind is IdentifierType.OPAQUE:
            value = base64.b64encode(self.identifier).decode("ascii")  # type: ignore[arg-type]
        else:
            value = str(self.identifier)
        prefix = f"ns={self.namespace_index};" if self.namespace_index else ""
        return f"{prefix}{kind.value}={value}"

    def to_ua(self) -> ua.NodeId:
        """Convert to an asyncua NodeId (e.g. to populate an asyncua server)."""
        return ua.NodeId(self.identifier, self.namespace_index)

    @classmethod
    def from_ua(cls, node_id: ua.NodeId) -> NodeId:
        """Create from an asyncua NodeId."""
        return cls(node_id.NamespaceIndex, node_id.Identifier)

    def __str__(self) -> str:
        return self.to_string()


def coerce_node_id(value: NodeId | str | int) -> NodeId:
    """Accept a NodeId, its textual form, or a bare numeric id in namespace 0."""
    if isinstance(value, NodeId):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return NodeId(0, value)
    if isinstance(value, str):
        return NodeId.parse(value)
    raise TypeError(f"Cannot interpret {value!r} as a NodeId")


@dataclass(frozen=True, slots=True)
class QualifiedName:
    """Namespace-qualified browse name."""

    namespace_index: int
    name: str

    @classmethod
    def parse(cls, text: str) -> QualifiedName:
        """Parse ``<index>:<name>``; unqualified names map to namespace 0."""
        if not text:
            raise NodeIdParseError(text, "browse name must not be empty")
        match = _QUALIFIED_NAME_RE.match(text)
        if match is None:
            return cls(0, text)
        namespace_index = int(match.group("ns"))
        if namespace_index > MAX_NAMESPACE_INDEX:
            raise NodeIdParseError(text, "namespace index exceeds 65535")
        return cls(namespace_index, match.group("name"))

    @classmethod
    def split(cls, text: str) -> tuple[int | None, str]:
        """Split an optionally qualified name into (explicit index or None, local name)."""
        match = _QUALIFIED_NAME_RE.match(text)
        if match is None:
            return None, text
        return int(match.group("ns")), match.group("name")

    def with_namespace(self, namespace_index: int) -> QualifiedName:
        return QualifiedName(namespace_index, self.name)

    def __str__(self) -> str:
        if self.namespace_index:
            return f"{self.namespace_index}:{self.name}"
        return self.name


__all__ = [
    "IdentifierType",
    "NodeId",
    "QualifiedName",
    "coerce_node_id",
]
