"""Unit tests for relation type helpers."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from schemaforge.ir.graph_utils import default_relationship_name, format_foreign_key, parse_foreign_key
from schemaforge.ir.models.relation_type import (
    RelationType,
    inverse_uselist,
    normalize_relation_type,
    relation_type_from_uselist,
    uselist_for,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("1:n", RelationType.ONE_TO_MANY),
        ("Many To One", RelationType.MANY_TO_ONE),
        ("many_to_many", RelationType.MANY_TO_MANY),
        ("", RelationType.ONE_TO_ONE),
        (None, RelationType.ONE_TO_ONE),
        ("sideways", RelationType.ONE_TO_ONE),
    ],
)
def test_normalize_relation_type(raw, expected):
    assert normalize_relation_type(raw) == expected


def test_uselist_mapping_round_trips():
    """Every synthesizable cardinality maps onto uselist and back."""
    for relation_type in (RelationType.ONE_TO_ONE, RelationType.ONE_TO_MANY, RelationType.MANY_TO_ONE):
        assert relation_type_from_uselist(uselist_for(relation_type)) == relation_type


def test_inverse_uselist():
    assert inverse_uselist(True) is False
    assert inverse_uselist(False) is True
    assert inverse_uselist(None) is None


def test_foreign_key_helpers():
    assert parse_foreign_key("users.id") == ("users", "id")
    assert parse_foreign_key("users") is None
    assert parse_foreign_key("a.b.c") is None
    assert format_foreign_key("users", "id") == "users.id"


def test_default_relationship_name():
    assert default_relationship_name("Post", RelationType.ONE_TO_MANY) == "posts"
    assert default_relationship_name("User", RelationType.MANY_TO_ONE) == "user"
