"""Relation type definitions and normalization helpers.

The editor only synthesizes the three cardinalities expressible with a single
foreign key; many-to-many is recognized so it can be refused explicitly.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional


class RelationType(str, Enum):
    ONE_TO_ONE = "one-to-one"
    ONE_TO_MANY = "one-to-many"
    MANY_TO_ONE = "many-to-one"
    MANY_TO_MANY = "many-to-many"


SYNTHESIZABLE_RELATION_TYPES = (
    RelationType.ONE_TO_ONE,
    RelationType.ONE_TO_MANY,
    RelationType.MANY_TO_ONE,
)


def normalize_relation_type(value: Optional[str]) -> RelationType:
    """
    Normalize a user-supplied relation type string into the enum.

    Rules (deterministic):
    - Accept common aliases (1:1, 1:n, n:1, n:m, etc.)
    - Accept minor punctuation/spacing variants.
    - If unknown/blank, default to ONE_TO_ONE (the editor default, uselist absent).
    """
    raw = (value or "").strip().lower()
    if not raw:
        return RelationType.ONE_TO_ONE

    raw = raw.replace("_", "-")
    raw = raw.replace(" ", "-")
    raw = raw.replace("--", "-")

    if raw in {"1:1", "1-1", "one-to-one", "one-one"}:
        return RelationType.ONE_TO_ONE
    if raw in {"1:n", "1-n", "one-to-many", "one-many"}:
        return RelationType.ONE_TO_MANY
    if raw in {"n:1", "n-1", "many-to-one", "many-one"}:
        return RelationType.MANY_TO_ONE
    if raw in {"n:m", "n-m", "many-to-many", "many-many"}:
        return RelationType.MANY_TO_MANY

    return RelationType.ONE_TO_ONE


def uselist_for(relation_type: RelationType) -> Optional[bool]:
    """
    Map a cardinality onto the relationship `uselist` flag.

    one-to-many -> True, many-to-one -> False, one-to-one -> None (absent).
    """
    if relation_type == RelationType.ONE_TO_MANY:
        return True
    if relation_type == RelationType.MANY_TO_ONE:
        return False
    return None


def relation_type_from_uselist(uselist: Optional[bool]) -> RelationType:
    if uselist is True:
        return RelationType.ONE_TO_MANY
    if uselist is False:
        return RelationType.MANY_TO_ONE
    return RelationType.ONE_TO_ONE


def inverse_uselist(uselist: Optional[bool]) -> Optional[bool]:
    """The reciprocal side of a pair: True <-> False, absent stays absent."""
    if uselist is None:
        return None
    return not uselist
