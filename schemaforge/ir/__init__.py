"""Intermediate Representation (IR) models and graph lookups."""

from .models import (
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
    RelationType,
)
from .graph_utils import (
    new_entity_id,
    parse_foreign_key,
    format_foreign_key,
    find_model_by_name,
    find_model_by_tablename,
    find_column,
    find_relationship,
    primary_key_column,
    default_relationship_name,
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
    "RelationType",
    "new_entity_id",
    "parse_foreign_key",
    "format_foreign_key",
    "find_model_by_name",
    "find_model_by_tablename",
    "find_column",
    "find_relationship",
    "primary_key_column",
    "default_relationship_name",
]
