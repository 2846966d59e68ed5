"""Pytest fixtures and configuration."""

import copy

import pytest
from fastapi.testclient import TestClient
from backend.main import app
from backend.dependencies import (
    get_project_manager,
    get_project_service,
    get_session_manager,
    get_websocket_manager,
)
from backend.utils.project_manager import ProjectManager
from backend.utils.session_manager import SessionManager
from backend.utils.websocket_manager import WebSocketManager
from backend.services.validation_service import ValidationService
from backend.services.conversion_service import ConversionService
from backend.services.diagram_service import DiagramService
from backend.services.project_service import ProjectService


@pytest.fixture
def project_manager():
    """Fresh ProjectManager instance for testing."""
    return ProjectManager()


@pytest.fixture
def session_manager():
    """Fresh SessionManager instance for testing."""
    return SessionManager()


@pytest.fixture
def ws_manager():
    """Fresh WebSocketManager instance for testing."""
    return WebSocketManager()


@pytest.fixture
def validation_service():
    """ValidationService instance for testing."""
    return ValidationService()


@pytest.fixture
def conversion_service():
    """ConversionService instance for testing."""
    return ConversionService()


@pytest.fixture
def diagram_service():
    """DiagramService instance for testing."""
    return DiagramService()


@pytest.fixture
def project_service(project_manager, session_manager, conversion_service):
    """ProjectService wired to the fresh managers."""
    return ProjectService(
        project_manager=project_manager,
        session_manager=session_manager,
        conversion_service=conversion_service,
    )


@pytest.fixture
def client(project_manager, session_manager, ws_manager, project_service):
    """Test client for FastAPI app, isolated from the process-wide singletons."""
    app.dependency_overrides[get_project_manager] = lambda: project_manager
    app.dependency_overrides[get_session_manager] = lambda: session_manager
    app.dependency_overrides[get_websocket_manager] = lambda: ws_manager
    app.dependency_overrides[get_project_service] = lambda: project_service
    yield TestClient(app)
    app.dependency_overrides.clear()


SAMPLE_SPEC = {
    "project": {"title": "Blog", "author": "", "description": "A small blog"},
    "git": {"username": "octo", "repository": "blog", "branch": "main"},
    "database": {"db_provider": "postgresql", "db_name": "blog", "db_host": "localhost", "db_port": 5432},
    "security": {"secret_key": "s" * 32, "algorithm": "HS256"},
    "token": {"access_token_expire_minutes": 30, "refresh_token_expire_days": 7},
    "schema": {
        "models": [
            {
                "name": "User",
                "tablename": "users",
                "columns": [
                    {"name": "id", "type": {"name": "integer"}, "primary_key": True, "autoincrement": True},
                    {"name": "username", "type": {"name": "string", "length": 50}, "unique": True},
                ],
                "relationships": [
                    {"name": "posts", "target": "Post", "back_populates": "author", "uselist": True},
                ],
            },
            {
                "name": "Post",
                "tablename": "posts",
                "columns": [
                    {"name": "id", "type": {"name": "integer"}, "primary_key": True, "autoincrement": True},
                    {"name": "author_id", "type": {"name": "integer"}, "foreign_key": "users.id"},
                    {"name": "status", "type": {"name": "enum", "enum_class": "PostStatus"}},
                ],
                "relationships": [
                    {"name": "author", "target": "User", "back_populates": "posts", "uselist": False},
                ],
            },
        ],
        "enums": [{"name": "PostStatus", "values": ["draft", "published"]}],
    },
    "_ui_metadata": {
        "models": [
            {"name": "User", "position": {"x": 100, "y": 100}},
            {"name": "Post", "position": {"x": 100, "y": 400}},
        ],
        "enums": [{"name": "PostStatus", "position": {"x": 400, "y": 400}}],
    },
}


@pytest.fixture
def sample_spec():
    """A valid project specification (User/Post blog with one enum)."""
    return copy.deepcopy(SAMPLE_SPEC)
