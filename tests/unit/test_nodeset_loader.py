"""Unit tests for the two-phase NodeSet loader."""

from __future__ import annotations

from pathlib import Path

import pytest

from ua_address_space.application.nodeset_loader import (
    NodeSetLoader,
    generate_address_space,
    load_nodeset_files,
)
from ua_address_space.domain.address_space import AddressSpace
from ua_address_space.domain.model import standard
from ua_address_space.domain.model.node_id import NodeId, QualifiedName
from ua_address_space.domain.model.nodes import NodeClass, TypeNode, VariableNode
from ua_address_space.domain.model.nodeset import (
    NodeDeclaration,
    NodeSetDocument,
    ReferenceDeclaration,
)
from ua_address_space.errors import (
    DuplicateNodeIdError,
    InvalidNodeSetError,
    StructuralInvariantError,
    UnresolvedReferenceError,
)
from ua_address_space.nodesets import standard_nodeset_file

FIXTURES_DIR = Path(__file__).parent.parent / "fixtures"

PLANT_URI = "urn:test:plant"
EQUIPMENT_URI = "urn:test:equipment"


def _object(node_id: str, name: str, *references: ReferenceDeclaration) -> NodeDeclaration:
    return NodeDeclaration(
        node_id=NodeId.parse(node_id),
        node_class=NodeClass.Object,
        browse_name=QualifiedName.parse(name),
        references=list(references),
    )


def _organized_by(parent: str) -> ReferenceDeclaration:
    return ReferenceDeclaration(standard.ORGANIZES, NodeId.parse(parent), is_forward=False)


class TestNamespaceUnification:
    """Tests for document-local to global namespace translation."""

    def test_translation_table(self, standard_space: AddressSpace) -> None:
        standard_space.register_namespace(EQUIPMENT_URI)
        loader = NodeSetLoader(standard_space)
        document = NodeSetDocument(source="plant", namespace_uris=[PLANT_URI, EQUIPMENT_URI])
        translation = loader.unify_namespaces(document)
        assert translation.as_list() == [0, 2, 1]
        assert translation.node_id(NodeId(1, 7)) == NodeId(2, 7)
        assert translation.browse_name(QualifiedName(2, "Pump")) == QualifiedName(1, "Pump")

    def test_undeclared_index(self, standard_space: AddressSpace) -> None:
        document = NodeSetDocument(
            source="bad",
            namespace_uris=[PLANT_URI],
            nodes=[_object("ns=2;i=1", "2:Stray", _organized_by("i=85"))],
        )
        with pytest.raises(InvalidNodeSetError, match="namespace index 2 is not declared"):
            NodeSetLoader(standard_space).ingest(document)

    def test_empty_namespace_uri_registers_nothing(self, standard_space: AddressSpace) -> None:
        document = NodeSetDocument(source="bad", namespace_uris=[PLANT_URI, ""])
        with pytest.raises(InvalidNodeSetError, match="empty namespace URI at local index 2"):
            NodeSetLoader(standard_space).ingest(document)
        assert standard_space.get_namespace_index(PLANT_URI) == -1

    def test_data_type_translated(self, standard_space: AddressSpace) -> None:
        data_type = NodeDeclaration(
            node_id=NodeId(1, 100),
            node_class=NodeClass.DataType,
            browse_name=QualifiedName(1, "Recipe"),
            references=[ReferenceDeclaration(standard.HAS_SUBTYPE, NodeId(0, 22), is_forward=False)],
        )
        variable = NodeDeclaration(
            node_id=NodeId(1, 101),
            node_class=NodeClass.Variable,
            browse_name=QualifiedName(1, "ActiveRecipe"),
            references=[_organized_by("i=85")],
            attributes={"data_type": NodeId(1, 100), "value_rank": -1},
        )
        standard_space.register_namespace(EQUIPMENT_URI)
        document = NodeSetDocument(source="recipes", namespace_uris=[PLANT_URI], nodes=[data_type, variable])
        NodeSetLoader(standard_space).load([document])

        node = standard_space.find_node("ns=2;i=101")
        assert isinstance(node, VariableNode)
        assert node.data_type == NodeId(2, 100)
        recipe = standard_space.find_data_type("2:Recipe")
        assert recipe is not None
        assert recipe.super_type == NodeId(0, 22)


class TestNodeSetLoader:
    """Tests for ingest and commit behaviour."""

    def test_load_standard_and_custom(self, address_space: AddressSpace, custom_nodeset_file: Path) -> None:
        load_nodeset_files(address_space, [standard_nodeset_file, custom_nodeset_file])
        assert len(address_space.get_namespace_array()) == 3
        node = address_space.find_node("ns=1;i=1")
        assert node is not None
        assert str(node.browse_name) == "1:ObjectInCUSTOM_NAMESPACE1"

    def test_references_queued_until_commit(self, standard_space: AddressSpace) -> None:
        loader = NodeSetLoader(standard_space)
        loader.ingest(NodeSetDocument(source="a", namespace_uris=[PLANT_URI], nodes=[
            _object("ns=1;i=1", "1:Reactor", _organized_by("i=85")),
        ]))
        assert len(loader.pending_references) == 1
        reactor = standard_space.find_node("ns=1;i=1")
        assert reactor is not None
        assert reactor.incoming_references == ()
        assert loader.loaded_nodes == (reactor,)

        assert loader.commit() == 1
        assert loader.pending_references == ()
        assert len(reactor.incoming_references) == 1

    def test_forward_reference_across_documents(self, standard_space: AddressSpace) -> None:
        # The child is declared in a document loaded before its parent's.
        child = NodeSetDocument(source="child", namespace_uris=[PLANT_URI], nodes=[
            _object("ns=1;i=2", "1:Agitator", _organized_by("ns=1;i=1")),
        ])
        parent = NodeSetDocument(source="parent", namespace_uris=[PLANT_URI], nodes=[
            _object("ns=1;i=1", "1:Reactor", _organized_by("i=85")),
        ])
        NodeSetLoader(standard_space).load([child, parent])
        agitator = standard_space.resolve_browse_path("i=85", "1:Reactor/1:Agitator")
        assert agitator is not None
        assert agitator.node_id == NodeId(1, 2)

    def test_identical_references_committed_once(self, standard_space: AddressSpace) -> None:
        parent = _object("ns=1;i=1", "1:Reactor", _organized_by("i=85"))
        parent.references.append(ReferenceDeclaration(standard.ORGANIZES, NodeId(1, 2)))
        child = _object("ns=1;i=2", "1:Agitator", _organized_by("ns=1;i=1"))
        loader = NodeSetLoader(standard_space)
        loader.ingest(NodeSetDocument(source="a", namespace_uris=[PLANT_URI], nodes=[parent, child]))
        assert loader.commit() == 2
        reactor = standard_space.find_node("ns=1;i=1")
        assert reactor is not None
        assert len(reactor.outgoing_references) == 1

    def test_duplicate_node_id_names_document(self, standard_space: AddressSpace, custom_nodeset_file: Path) -> None:
        with pytest.raises(DuplicateNodeIdError) as exc_info:
            load_nodeset_files(standard_space, [custom_nodeset_file, custom_nodeset_file])
        assert exc_info.value.node_id == NodeId(1, 1)
        assert exc_info.value.document == str(custom_nodeset_file)

    def test_unresolved_reference(self, standard_space: AddressSpace) -> None:
        broken = FIXTURES_DIR / "fixture_unresolved_reference.xml"
        with pytest.raises(UnresolvedReferenceError) as exc_info:
            load_nodeset_files(standard_space, [broken])
        assert exc_info.value.missing == NodeId(1, 999)
        assert exc_info.value.document == str(broken)

    def test_unresolved_reference_without_standard_nodeset(
        self, address_space: AddressSpace, custom_nodeset_file: Path
    ) -> None:
        with pytest.raises(UnresolvedReferenceError):
            load_nodeset_files(address_space, [custom_nodeset_file])

    def test_invalid_attributes(self, standard_space: AddressSpace) -> None:
        declaration = _object("ns=1;i=1", "1:Reactor")
        declaration.attributes["symmetric"] = True
        document = NodeSetDocument(source="bad", namespace_uris=[PLANT_URI], nodes=[declaration])
        with pytest.raises(InvalidNodeSetError, match="invalid attributes"):
            NodeSetLoader(standard_space).ingest(document)

    def test_super_type_from_forward_has_subtype(self, standard_space: AddressSpace) -> None:
        base = NodeDeclaration(
            node_id=NodeId(1, 1),
            node_class=NodeClass.ObjectType,
            browse_name=QualifiedName(1, "EquipmentType"),
            references=[
                ReferenceDeclaration(standard.HAS_SUBTYPE, standard.BASE_OBJECT_TYPE, is_forward=False),
                ReferenceDeclaration(standard.HAS_SUBTYPE, NodeId(1, 2)),
            ],
        )
        derived = NodeDeclaration(
            node_id=NodeId(1, 2),
            node_class=NodeClass.ObjectType,
            browse_name=QualifiedName(1, "PumpType"),
        )
        document = NodeSetDocument(source="types", namespace_uris=[EQUIPMENT_URI], nodes=[base, derived])
        NodeSetLoader(standard_space).load([document])

        pump = standard_space.find_object_type("1:PumpType")
        assert isinstance(pump, TypeNode)
        assert pump.super_type == NodeId(1, 1)
        assert [node.browse_name.name for node in standard_space.iter_super_types(pump)] == [
            "EquipmentType",
            "BaseObjectType",
        ]

    def test_verification_failure(self, standard_space: AddressSpace) -> None:
        loose = NodeDeclaration(
            node_id=NodeId(1, 1),
            node_class=NodeClass.ObjectType,
            browse_name=QualifiedName(1, "LooseType"),
        )
        document = NodeSetDocument(source="loose", namespace_uris=[EQUIPMENT_URI], nodes=[loose])
        with pytest.raises(StructuralInvariantError):
            NodeSetLoader(standard_space).load([document])

    def test_verification_disabled(self, standard_space: AddressSpace) -> None:
        loose = NodeDeclaration(
            node_id=NodeId(1, 1),
            node_class=NodeClass.ObjectType,
            browse_name=QualifiedName(1, "LooseType"),
        )
        document = NodeSetDocument(source="loose", namespace_uris=[EQUIPMENT_URI], nodes=[loose])
        NodeSetLoader(standard_space, verify=False).load([document])
        assert standard_space.find_object_type("1:LooseType") is not None


class TestGenerateAddressSpace:
    """Tests for the async entry point."""

    @pytest.mark.asyncio
    async def test_files_and_documents(self, address_space: AddressSpace, custom_nodeset_file: Path) -> None:
        extra = NodeSetDocument(source="extra", namespace_uris=[PLANT_URI], nodes=[
            _object("ns=1;i=1", "1:Reactor", _organized_by("i=85")),
        ])
        await generate_address_space(address_space, [standard_nodeset_file, str(custom_nodeset_file), extra])

        assert address_space.get_namespace_index(PLANT_URI) == 3
        assert address_space.find_node("ns=3;i=1") is not None
        assert address_space.resolve_browse_path("i=85", "2:ObjectInCUSTOM_NAMESPACE2") is not None

    @pytest.mark.asyncio
    async def test_missing_file(self, address_space: AddressSpace, tmp_path: Path) -> None:
        with pytest.raises(InvalidNodeSetError):
            await generate_address_space(address_space, [tmp_path / "missing.xml"])
