"""Unit tests for the editor configuration store."""

import json
import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

sys.path.insert(0, str(Path(__file__).parent.parent.parent))

from schemaforge.config.loader import get_config, load_config
from schemaforge.config.store import ConfigStore, load_section_defaults
from schemaforge.utils.error_handling import SpecFormatError


def test_packaged_defaults():
    """config.yaml carries defaults for all five sections."""
    defaults = load_section_defaults()

    assert set(defaults) == {"project", "git", "database", "security", "token"}
    assert defaults["project"]["title"] == "My FastAPI Project"
    assert defaults["database"]["db_port"] == 5432
    assert defaults["token"]["access_token_expire_minutes"] == 30
    assert get_config("logging")["level"] == "INFO"


def test_load_config_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


class TestConfigStore:
    """Test section access and mutation."""

    def test_sections_in_wire_order(self):
        store = ConfigStore()
        sections = store.sections()

        assert list(sections) == ["project", "git", "database", "security", "token"]
        assert sections["git"]["branch"] == "main"
        assert store.token.refresh_token_expire_days == 7

    def test_set_section_merges(self):
        store = ConfigStore()

        store.set_section("project", title="Blog")

        assert store.project.title == "Blog"
        assert store.project.author == ""

    def test_unknown_keys_are_kept(self):
        store = ConfigStore()
        store.set_section("git", remote="origin")
        assert store.sections()["git"]["remote"] == "origin"

    def test_unknown_section(self):
        store = ConfigStore()
        with pytest.raises(KeyError):
            store.set_section("deploy", target="prod")
        with pytest.raises(KeyError):
            store.get_section("deploy")

    def test_wrong_type_is_rejected(self):
        store = ConfigStore()
        with pytest.raises(ValidationError):
            store.set_section("token", access_token_expire_minutes="soon")
        assert store.token.access_token_expire_minutes == 30

    def test_load_and_reset(self):
        store = ConfigStore()
        store.load({"project": {"title": "Imported"}, "unknown": {"a": 1}})

        assert store.project.title == "Imported"
        assert store.git.branch == "main"

        store.reset_to_defaults()
        assert store.project.title == "My FastAPI Project"

    @pytest.mark.parametrize(
        "sections",
        [
            {"project": {"title": "Imported"}, "git": "bad"},
            {"project": {"title": "Imported"}, "database": {"db_provider": "oracle"}},
        ],
    )
    def test_load_is_all_or_nothing(self, sections):
        store = ConfigStore()

        with pytest.raises(SpecFormatError):
            store.load(sections)

        assert store.project.title == "My FastAPI Project"
        assert store.database.db_provider == "postgresql"

    def test_load_error_names_the_field(self):
        with pytest.raises(SpecFormatError) as excinfo:
            ConfigStore().load({"token": {"access_token_expire_minutes": "soon"}})

        assert "token.access_token_expire_minutes" in excinfo.value.message
        assert excinfo.value.context.additional_context == {"section": "token"}

    def test_custom_defaults(self):
        store = ConfigStore(defaults={"project": {"title": "Custom"}})
        assert store.project.title == "Custom"
        assert store.database.db_name == "myapp"


class TestPersistence:
    """Test JSON persistence (last write wins)."""

    def test_changes_are_persisted_and_restored(self, tmp_path):
        path = tmp_path / "config" / "sections.json"
        store = ConfigStore(persist_path=path)
        store.set_section("project", title="Blog")

        assert json.loads(path.read_text(encoding="utf-8"))["project"]["title"] == "Blog"

        restored = ConfigStore.restore(path)
        assert restored.project.title == "Blog"
        assert restored.persist_path == path

    def test_unreadable_file_falls_back_to_defaults(self, tmp_path):
        path = tmp_path / "sections.json"
        path.write_text("{broken", encoding="utf-8")

        store = ConfigStore.restore(path)

        assert store.project.title == "My FastAPI Project"

    def test_invalid_saved_section_falls_back_to_defaults(self, tmp_path):
        path = tmp_path / "sections.json"
        path.write_text(json.dumps({"project": {"title": "Saved"}, "token": {"access_token_expire_minutes": "x"}}), encoding="utf-8")

        store = ConfigStore.restore(path)

        assert store.project.title == "My FastAPI Project"
        assert store.token.access_token_expire_minutes == 30
