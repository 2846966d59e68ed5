"""IR (Intermediate Representation) models."""

from .spec_models import (
    ColumnTypeName,
    CascadeOption,
    DBProvider,
    Position,
    default_position,
    ColumnType,
    Column,
    Relationship,
    Model,
    EnumDefinition,
    AssociationTable,
    ModelWithUI,
    EnumWithUI,
    AssociationTableWithUI,
    UIMetadataEntry,
    UIMetadata,
    ProjectConfig,
    GitConfig,
    DatabaseConfig,
    SecurityConfig,
    TokenConfig,
)
from .relation_type import (
    RelationType,
    SYNTHESIZABLE_RELATION_TYPES,
    normalize_relation_type,
    uselist_for,
    relation_type_from_uselist,
    inverse_uselist,
)

__all__ = [
    "ColumnTypeName",
    "CascadeOption",
    "DBProvider",
    "Position",
    "default_position",
    "ColumnType",
    "Column",
    "Relationship",
    "Model",
    "EnumDefinition",
    "AssociationTable",
    "ModelWithUI",
    "EnumWithUI",
    "AssociationTableWithUI",
    "UIMetadataEntry",
    "UIMetadata",
    "ProjectConfig",
    "GitConfig",
    "DatabaseConfig",
    "SecurityConfig",
    "TokenConfig",
    "RelationType",
    "SYNTHESIZABLE_RELATION_TYPES",
    "normalize_relation_type",
    "uselist_for",
    "relation_type_from_uselist",
    "inverse_uselist",
]
