"""Unit tests for the node/edge view adapter."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from schemaforge.graph.sample_data import load_sample_data
from schemaforge.graph.store import EntityGraphStore
from schemaforge.ir.models.spec_models import Column, ColumnType, EnumDefinition, Model, Position, Relationship
from schemaforge.layout.adapter import (
    ENUM_STROKE,
    RELATIONSHIP_STROKE,
    best_handles,
    to_edges,
    to_graph_view,
    to_nodes,
)


@pytest.mark.parametrize(
    "target, expected",
    [
        ((100, 300), ("bottom", "top")),
        ((100, -100), ("top", "bottom")),
        ((400, 150), ("right", "left")),
        ((-200, 150), ("left", "right")),
        # |dx| == |dy| goes vertical
        ((200, 200), ("bottom", "top")),
        ((0, 0), ("top", "bottom")),
        ((100, 100), ("top", "bottom")),
    ],
)
def test_best_handles(target, expected):
    """Handles follow the dominant axis between source and target."""
    source = Position(x=100, y=100)
    assert best_handles(source, Position(x=target[0], y=target[1])) == expected


def test_nodes_for_models_and_enums():
    """One node per model and per enum, carrying the entity in its data."""
    store = EntityGraphStore()
    ids = load_sample_data(store)

    nodes = to_nodes(store.models, store.enums)

    assert [n.id for n in nodes] == [ids["user"], ids["post"], ids["status_type"]]
    assert [n.type for n in nodes] == ["model", "model", "enum"]
    assert nodes[0].data["model_id"] == ids["user"]
    assert nodes[0].data["model"]["name"] == "User"
    assert nodes[2].data["enum"]["name"] == "StatusType"
    assert nodes[1].position == Position(x=400, y=100)


def test_relationship_edges():
    """Relationship edges are keyed by source, relationship name and target."""
    store = EntityGraphStore()
    ids = load_sample_data(store)

    edges = to_edges(store.models, store.enums)

    by_id = {edge.id: edge for edge in edges}
    posts = by_id[f"{ids['user']}-posts-{ids['post']}"]
    assert posts.source == ids["user"]
    assert posts.target == ids["post"]
    assert (posts.source_handle, posts.target_handle) == ("right", "left")
    assert posts.style.stroke == RELATIONSHIP_STROKE
    assert posts.type == "smoothstep"
    assert posts.data.kind == "relationship"

    author = by_id[f"{ids['post']}-author-{ids['user']}"]
    assert (author.source_handle, author.target_handle) == ("left", "right")


def test_vertical_placement_uses_bottom_and_top():
    """A target straight below the source connects bottom to top."""
    store = EntityGraphStore()
    store.add_model(Model(
        name="User",
        tablename="users",
        relationships=[Relationship(name="profile", target="Profile")],
    ), (100, 100))
    store.add_model(Model(name="Profile", tablename="profiles"), (100, 300))

    edge = to_edges(store.models, store.enums)[0]
    assert (edge.source_handle, edge.target_handle) == ("bottom", "top")


def test_enum_edges_are_dashed():
    """Columns typed with a known enum get a dashed edge to the enum node."""
    store = EntityGraphStore()
    model_id = store.add_model(Model(
        name="Post",
        tablename="posts",
        columns=[Column(name="status", type=ColumnType(name="enum", enum_class="Status"))],
    ))
    enum_id = store.add_enum(EnumDefinition(name="Status", values=["draft"]), (400, 100))

    edges = to_edges(store.models, store.enums)

    assert len(edges) == 1
    edge = edges[0]
    assert edge.id == f"{model_id}-status-enum-{enum_id}"
    assert edge.style.stroke == ENUM_STROKE
    assert edge.style.stroke_dasharray == "5,5"
    assert edge.data.kind == "enum"


def test_unresolvable_edges_are_dropped():
    """Relationships to unknown models and unknown enum classes produce no edges."""
    store = EntityGraphStore()
    store.add_model(Model(
        name="Post",
        tablename="posts",
        columns=[Column(name="status", type=ColumnType(name="enum", enum_class="Missing"))],
        relationships=[Relationship(name="ghost", target="Ghost")],
    ))

    view = to_graph_view(store.models, store.enums)
    assert len(view.nodes) == 1
    assert view.edges == []


def test_unpositioned_nodes_connect_vertically():
    """Entities left at the default position share a point, which routes top to bottom."""
    store = EntityGraphStore()
    store.add_model(Model(
        name="User",
        tablename="users",
        relationships=[Relationship(name="profile", target="Profile")],
    ))
    store.add_model(Model(name="Profile", tablename="profiles"))

    edge = to_edges(store.models, store.enums)[0]
    assert (edge.source_handle, edge.target_handle) == ("top", "bottom")
