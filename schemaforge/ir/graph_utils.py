"""Utilities for looking things up in an entity graph."""

import re
import uuid
from typing import Iterable, Optional, Tuple, TypeVar

from .models.spec_models import Column, Model, Relationship
from .models.relation_type import RelationType

IDENTIFIER_PATTERN = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
SIMPLE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_]+$")
FOREIGN_KEY_PATTERN = re.compile(r"^([A-Za-z0-9_]+)\.([A-Za-z0-9_]+)$")

ModelT = TypeVar("ModelT", bound=Model)


def new_entity_id() -> str:
    """
    Create a fresh opaque entity id.

    Returns:
        Random id, unrelated to any entity name
    """
    return uuid.uuid4().hex[:12]


def parse_foreign_key(foreign_key: Optional[str]) -> Optional[Tuple[str, str]]:
    """
    Split a foreign key reference into (tablename, column).

    Args:
        foreign_key: Reference of the form "<tablename>.<column>"

    Returns:
        (tablename, column) or None if the reference is malformed
    """
    if not foreign_key:
        return None
    match = FOREIGN_KEY_PATTERN.match(foreign_key)
    if not match:
        return None
    return match.group(1), match.group(2)


def format_foreign_key(tablename: str, column_name: str) -> str:
    return f"{tablename}.{column_name}"


def find_model_by_name(models: Iterable[ModelT], name: str) -> Optional[ModelT]:
    return next((model for model in models if model.name == name), None)


def find_model_by_tablename(models: Iterable[ModelT], tablename: str) -> Optional[ModelT]:
    return next((model for model in models if model.tablename == tablename), None)


def find_column(model: Model, column_name: str) -> Optional[Column]:
    return next((column for column in model.columns if column.name == column_name), None)


def find_relationship(model: Model, relationship_name: str) -> Optional[Relationship]:
    return next((rel for rel in model.relationships if rel.name == relationship_name), None)


def primary_key_column(model: Model) -> Optional[Column]:
    """
    Get the primary key column of a model.

    Args:
        model: Model to inspect

    Returns:
        First column flagged primary_key, or None
    """
    return next((column for column in model.columns if column.primary_key), None)


def default_relationship_name(target_name: str, relation_type: RelationType) -> str:
    """
    Default relationship name for a target model.

    Args:
        target_name: Target model name
        relation_type: Cardinality of the relationship

    Returns:
        Lowercased target name, pluralized with "s" for one-to-many
    """
    base = target_name.lower()
    if relation_type == RelationType.ONE_TO_MANY:
        return f"{base}s"
    return base
