"""Well-known NodeIds of the standard namespace (namespace 0)."""

from __future__ import annotations

from asyncua import ua

from ua_address_space.domain.model.node_id import NodeId

STANDARD_NAMESPACE_URI = "http://opcfoundation.org/UA/"


def _ns0(identifier: int) -> NodeId:
    return NodeId(0, identifier)


# Reference types
REFERENCES = _ns0(ua.ObjectIds.References)
HIERARCHICAL_REFERENCES = _ns0(ua.ObjectIds.HierarchicalReferences)
ORGANIZES = _ns0(ua.ObjectIds.Organizes)
HAS_SUBTYPE = _ns0(ua.ObjectIds.HasSubtype)
HAS_COMPONENT = _ns0(ua.ObjectIds.HasComponent)
HAS_TYPE_DEFINITION = _ns0(ua.ObjectIds.HasTypeDefinition)

# Base types, one root per type kind
BASE_OBJECT_TYPE = _ns0(ua.ObjectIds.BaseObjectType)
BASE_VARIABLE_TYPE = _ns0(ua.ObjectIds.BaseVariableType)
BASE_DATA_TYPE = _ns0(ua.ObjectIds.BaseDataType)
FOLDER_TYPE = _ns0(ua.ObjectIds.FolderType)

# Folders
ROOT_FOLDER = _ns0(ua.ObjectIds.RootFolder)
OBJECTS_FOLDER = _ns0(ua.ObjectIds.ObjectsFolder)

TYPE_ROOTS: dict[ua.NodeClass, NodeId] = {
    ua.NodeClass.ObjectType: BASE_OBJECT_TYPE,
    ua.NodeClass.VariableType: BASE_VARIABLE_TYPE,
    ua.NodeClass.ReferenceType: REFERENCES,
    ua.NodeClass.DataType: BASE_DATA_TYPE,
}
