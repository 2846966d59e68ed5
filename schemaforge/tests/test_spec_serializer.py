"""Unit tests for project specification export and import."""

import json
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from schemaforge.graph.sample_data import load_sample_data
from schemaforge.graph.store import EntityGraphStore
from schemaforge.ir.models.spec_models import (
    AssociationTable,
    Column,
    ColumnType,
    Model,
    Position,
)
from schemaforge.serialization.spec_serializer import CONFIG_SECTIONS, SpecSerializer
from schemaforge.utils.error_handling import SpecFormatError


def _user_store() -> EntityGraphStore:
    store = EntityGraphStore()
    store.add_model(Model(
        name="User",
        tablename="users",
        columns=[Column(name="id", type=ColumnType(name="integer"), primary_key=True)],
    ), (250, 300))
    return store


class TestExport:
    """Test export_spec."""

    def test_single_model_export(self):
        spec = SpecSerializer().export_spec(_user_store().state)

        assert spec["_ui_metadata"]["models"] == [{"name": "User", "position": {"x": 250, "y": 300}}]
        assert spec["_ui_metadata"]["enums"] == []
        assert "enums" not in spec["schema"]
        assert "association_tables" not in spec["schema"]
        model = spec["schema"]["models"][0]
        assert "id" not in model
        assert "position" not in model
        assert model["columns"] == [{"name": "id", "type": {"name": "integer"}, "primary_key": True}]

    def test_config_sections_copied(self):
        config = {"project": {"title": "Blog", "author": "me"}, "git": {"branch": "dev"}}

        spec = SpecSerializer().export_spec(_user_store().state, config)

        assert list(spec)[:len(CONFIG_SECTIONS)] == list(CONFIG_SECTIONS)
        assert spec["project"] == {"title": "Blog", "author": "me"}
        assert spec["database"] == {}
        config["project"]["title"] = "Changed"
        assert spec["project"]["title"] == "Blog"

    def test_association_tables_export_without_ids(self):
        store = _user_store()
        store.add_association_table(AssociationTable(
            name="UserTag",
            tablename="user_tags",
            columns=[Column(name="user_id", type=ColumnType(name="integer"), foreign_key="users.id")],
        ))

        schema = SpecSerializer().semantic_view(store.state)

        assert schema["association_tables"] == [{
            "name": "UserTag",
            "tablename": "user_tags",
            "columns": [{"name": "user_id", "type": {"name": "integer"}, "foreign_key": "users.id"}],
        }]

    def test_export_json(self):
        text = SpecSerializer().export_json(_user_store().state)
        assert json.loads(text)["schema"]["models"][0]["name"] == "User"


class TestImport:
    """Test import_spec."""

    def test_round_trip_up_to_ids(self):
        store = EntityGraphStore()
        load_sample_data(store)
        serializer = SpecSerializer()
        spec = serializer.export_spec(store.state)

        restored = EntityGraphStore()
        serializer.load_into(restored, spec)

        assert serializer.semantic_view(restored.state) == serializer.semantic_view(store.state)
        assert [m.position for m in restored.models] == [m.position for m in store.models]
        assert [e.position for e in restored.enums] == [e.position for e in store.enums]
        assert {m.id for m in restored.models}.isdisjoint({m.id for m in store.models})
        assert restored.dirty is False

    def test_positions_resolved_by_name(self):
        spec = {
            "schema": {"models": [
                {"name": "User", "tablename": "users", "columns": []},
                {"name": "Post", "tablename": "posts", "columns": []},
            ]},
            "_ui_metadata": {"models": [
                {"name": "Post", "position": {"x": 10, "y": 20}},
                {"name": "Post", "position": {"x": 99, "y": 99}},
                {"position": {"x": 1, "y": 1}},
            ]},
        }

        imported = SpecSerializer(fallback_position=Position(x=5, y=5)).import_spec(spec)

        positions = {m.name: m.position for m in imported.models}
        assert positions["Post"] == Position(x=10, y=20)
        assert positions["User"] == Position(x=5, y=5)

    def test_config_sections_returned(self):
        spec = {"schema": {"models": []}, "project": {"title": "Blog"}, "extra": {}}
        imported = SpecSerializer().import_spec(spec)
        assert imported.config == {"project": {"title": "Blog"}}

    @pytest.mark.parametrize(
        "spec",
        [
            [],
            {},
            {"schema": []},
            {"schema": {"models": [{"tablename": "users"}]}},
            {"schema": {"models": "users"}},
        ],
    )
    def test_malformed_specs_raise(self, spec):
        with pytest.raises(SpecFormatError):
            SpecSerializer().import_spec(spec)

    def test_invalid_json_raises(self):
        with pytest.raises(SpecFormatError):
            SpecSerializer().import_json("{not json")

    def test_failed_load_leaves_store_untouched(self):
        store = _user_store()
        with pytest.raises(SpecFormatError):
            SpecSerializer().load_into(store, {"schema": None})
        assert [m.name for m in store.models] == ["User"]
