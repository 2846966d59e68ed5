"""FastAPI dependencies - process-wide singletons (single process, no DB)."""

from functools import lru_cache

from backend.config import settings
from backend.utils.project_manager import ProjectManager
from backend.utils.session_manager import SessionManager
from backend.utils.websocket_manager import WebSocketManager
from backend.services.validation_service import ValidationService
from backend.services.conversion_service import ConversionService
from backend.services.diagram_service import DiagramService
from backend.services.project_service import ProjectService


@lru_cache(maxsize=1)
def get_project_manager() -> ProjectManager:
    """Singleton ProjectManager - shared across all requests."""
    return ProjectManager()


@lru_cache(maxsize=1)
def get_session_manager() -> SessionManager:
    """Singleton SessionManager - holds every open editor session."""
    return SessionManager(config_path=settings.config_store_path)


@lru_cache(maxsize=1)
def get_websocket_manager() -> WebSocketManager:
    """Singleton WebSocketManager - pushes graph updates to session subscribers."""
    return WebSocketManager()


@lru_cache(maxsize=1)
def get_validation_service() -> ValidationService:
    """Singleton ValidationService."""
    return ValidationService()


@lru_cache(maxsize=1)
def get_conversion_service() -> ConversionService:
    """Singleton ConversionService."""
    return ConversionService()


@lru_cache(maxsize=1)
def get_diagram_service() -> DiagramService:
    """Singleton DiagramService."""
    return DiagramService()


@lru_cache(maxsize=1)
def get_project_service() -> ProjectService:
    """Create ProjectService with dependencies (singleton)."""
    return ProjectService(
        project_manager=get_project_manager(),
        session_manager=get_session_manager(),
        conversion_service=get_conversion_service(),
    )
