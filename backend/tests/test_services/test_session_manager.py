"""Tests for SessionManager."""

from schemaforge.ir.models.spec_models import Model
from backend.utils.session_manager import SessionManager


def test_create_and_get_session():
    """Test creating a session."""
    manager = SessionManager()

    session = manager.create_session(project_id=3)

    assert manager.get_session(session.session_id) is session
    assert session.project_id == 3
    assert session.synthesizer.store is session.store
    assert session.store.models == []


def test_revision_follows_graph_changes():
    """Test that every committed change bumps the revision."""
    session = SessionManager().create_session()

    session.store.add_model(Model(name="User", tablename="users"))
    with session.store.batch():
        session.store.add_model(Model(name="Post", tablename="posts"))
        session.store.add_model(Model(name="Tag", tablename="tags"))

    assert session.revision == 2


def test_sessions_are_independent():
    """Test that sessions do not share graph or configuration."""
    manager = SessionManager()
    first = manager.create_session()
    second = manager.create_session()

    first.store.add_model(Model(name="User", tablename="users"))
    first.config.set_section("project", title="First")

    assert second.store.models == []
    assert second.config.project.title == "My FastAPI Project"


def test_config_defaults_and_persistence(tmp_path):
    """Test session configuration defaults and the persisted file."""
    path = tmp_path / "sections.json"
    manager = SessionManager(config_defaults={"project": {"title": "Default"}}, config_path=str(path))

    session = manager.create_session()
    assert session.config.project.title == "Default"
    session.config.set_section("project", title="Saved")

    assert manager.create_session().config.project.title == "Saved"


def test_delete_session():
    """Test closing a session."""
    manager = SessionManager()
    session = manager.create_session()

    assert manager.delete_session(session.session_id) is True
    assert manager.delete_session(session.session_id) is False
    assert manager.get_session(session.session_id) is None
