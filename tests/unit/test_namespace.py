"""Unit tests for the namespace table and per-namespace type indices."""

from __future__ import annotations

import pytest

from ua_address_space.domain.model.node_id import NodeId, QualifiedName
from ua_address_space.domain.model.nodes import NodeClass, ObjectTypeNode, create_node
from ua_address_space.domain.model.standard import STANDARD_NAMESPACE_URI
from ua_address_space.domain.namespace import Namespace, NamespaceTable
from ua_address_space.errors import DuplicateBrowseNameError


def _object_type(namespace_index: int, identifier: int, name: str) -> ObjectTypeNode:
    node = create_node(
        NodeClass.ObjectType,
        NodeId(namespace_index, identifier),
        QualifiedName(namespace_index, name),
    )
    assert isinstance(node, ObjectTypeNode)
    return node


class TestNamespaceTable:
    """Tests for URI <-> index registration."""

    def test_standard_namespace_is_index_zero(self) -> None:
        table = NamespaceTable()
        assert len(table) == 1
        assert table.get_namespace_uri(0) == STANDARD_NAMESPACE_URI
        assert table.get_namespace_index(STANDARD_NAMESPACE_URI) == 0

    def test_register_appends(self) -> None:
        table = NamespaceTable()
        first = table.register_namespace("urn:a")
        second = table.register_namespace("urn:b")
        assert (first.index, second.index) == (1, 2)
        assert [ns.namespace_uri for ns in table] == [STANDARD_NAMESPACE_URI, "urn:a", "urn:b"]

    def test_register_is_idempotent(self) -> None:
        table = NamespaceTable()
        first = table.register_namespace("urn:a")
        again = table.register_namespace("urn:a")
        assert again is first
        assert len(table) == 2

    def test_register_standard_uri_returns_zero(self) -> None:
        table = NamespaceTable()
        assert table.register_namespace(STANDARD_NAMESPACE_URI).index == 0
        assert len(table) == 1

    def test_register_empty_uri_rejected(self) -> None:
        with pytest.raises(ValueError, match="must not be empty"):
            NamespaceTable().register_namespace("")

    def test_unknown_lookups(self) -> None:
        table = NamespaceTable()
        assert table.get_namespace_uri(5) is None
        assert table.get_namespace_uri(-1) is None
        assert table.get_namespace_index("urn:missing") == -1
        assert table.get_namespace("urn:missing") is None

    def test_get_namespace_by_index_or_uri(self) -> None:
        table = NamespaceTable()
        namespace = table.register_namespace("urn:a")
        assert table.get_namespace(1) is namespace
        assert table.get_namespace("urn:a") is namespace

    def test_namespace_array_is_snapshot(self) -> None:
        table = NamespaceTable()
        snapshot = table.get_namespace_array()
        table.register_namespace("urn:a")
        assert len(snapshot) == 1
        assert len(table.get_namespace_array()) == 2

    def test_contains_uri(self) -> None:
        table = NamespaceTable()
        table.register_namespace("urn:a")
        assert "urn:a" in table
        assert "urn:b" not in table

    def test_clear(self) -> None:
        table = NamespaceTable()
        table.register_namespace("urn:a")
        table.clear()
        assert len(table) == 0


class TestNamespaceTypeIndex:
    """Tests for the type name indices owned by a Namespace."""

    @pytest.fixture
    def namespace(self) -> Namespace:
        return Namespace(namespace_uri="urn:a", index=1)

    def test_register_and_find(self, namespace: Namespace) -> None:
        node = _object_type(1, 1, "PumpType")
        namespace.register_type(node)
        assert namespace.find_object_type("PumpType") is node
        assert namespace.find_variable_type("PumpType") is None
        assert namespace.type_count() == 1
        assert namespace.type_count(NodeClass.ObjectType) == 1

    def test_index_is_per_kind(self, namespace: Namespace) -> None:
        object_type = _object_type(1, 1, "Shared")
        data_type = create_node(NodeClass.DataType, NodeId(1, 2), QualifiedName(1, "Shared"))
        namespace.register_type(object_type)
        namespace.register_type(data_type)  # type: ignore[arg-type]
        assert namespace.find_object_type("Shared") is object_type
        assert namespace.find_data_type("Shared") is data_type

    def test_duplicate_name_same_kind_rejected(self, namespace: Namespace) -> None:
        namespace.register_type(_object_type(1, 1, "PumpType"))
        duplicate = _object_type(1, 2, "PumpType")
        assert not namespace.can_register_type(duplicate)
        with pytest.raises(DuplicateBrowseNameError):
            namespace.register_type(duplicate)

    def test_reregistering_same_node_is_noop(self, namespace: Namespace) -> None:
        node = _object_type(1, 1, "PumpType")
        namespace.register_type(node)
        namespace.register_type(node)
        assert namespace.type_count() == 1

    def test_unregister(self, namespace: Namespace) -> None:
        node = _object_type(1, 1, "PumpType")
        namespace.register_type(node)
        namespace.unregister_type(node)
        assert namespace.find_object_type("PumpType") is None

    def test_find_type_rejects_instance_class(self, namespace: Namespace) -> None:
        with pytest.raises(ValueError, match="not a type node class"):
            namespace.find_type(NodeClass.Object, "Anything")
