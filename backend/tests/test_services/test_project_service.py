"""Tests for ProjectService."""

import pytest
from schemaforge.utils.error_handling import SpecFormatError


def test_first_save_creates_project(project_service, session_manager, project_manager):
    """Test that the first save creates a project and binds the session to it."""
    session = session_manager.create_session()
    session.config.set_section("project", title="Blog", description="Posts and users")

    status, project = project_service.save_session(session)

    assert status == "created"
    assert project["name"] == "Blog"
    assert project["description"] == "Posts and users"
    assert session.project_id == project["id"]
    assert project_manager.get_project(project["id"]) is project


def test_second_save_updates_project(project_service, session_manager, project_manager):
    """Test that later saves update the bound project."""
    session = session_manager.create_session()
    project_service.save_session(session)
    session.store.clear()
    assert session.store.dirty is True

    status, project = project_service.save_session(session)

    assert status == "updated"
    assert len(project_manager.list_projects()) == 1
    assert session.store.dirty is False


def test_save_defaults_name(project_service, session_manager):
    """Test the fallback project name and description."""
    session = session_manager.create_session()
    session.config.set_section("project", title="", description="")

    status, project = project_service.save_session(session)

    assert project["name"] == "Untitled Project"
    assert project["description"] is None


def test_save_recreates_deleted_project(project_service, session_manager, project_manager):
    """Test saving a session whose project was deleted in the meantime."""
    session = session_manager.create_session()
    _, first = project_service.save_session(session)
    project_manager.delete_project(first["id"])

    status, project = project_service.save_session(session)

    assert status == "created"
    assert project["id"] != first["id"]


def test_open_project(project_service, project_manager, sample_spec):
    """Test opening a stored project."""
    stored = project_manager.create_project("Blog", sample_spec)

    session = project_service.open_project(stored["id"])

    assert session.project_id == stored["id"]
    assert [m.name for m in session.store.models] == ["User", "Post"]
    assert session.store.dirty is False


def test_open_missing_project(project_service):
    """Test opening a project that does not exist."""
    with pytest.raises(KeyError):
        project_service.open_project(42)


def test_open_corrupt_project(project_service, project_manager, session_manager):
    """Test that a corrupt stored specification does not leave a session behind."""
    stored = project_manager.create_project("Broken", {"schema": "nope"})

    with pytest.raises(SpecFormatError):
        project_service.open_project(stored["id"])

    assert session_manager.sessions == {}
