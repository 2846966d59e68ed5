"""Project service - saves editor sessions as projects and reopens them."""

import logging
from typing import Dict, Any, Tuple

from schemaforge.utils.error_handling import SpecFormatError
from backend.services.conversion_service import ConversionService
from backend.utils.project_manager import ProjectManager
from backend.utils.session_manager import EditorSession, SessionManager

logger = logging.getLogger(__name__)

DEFAULT_PROJECT_NAME = "Untitled Project"


class ProjectService:
    """Bridges editor sessions and stored projects."""

    def __init__(
        self,
        project_manager: ProjectManager,
        session_manager: SessionManager,
        conversion_service: ConversionService
    ):
        self.project_manager = project_manager
        self.session_manager = session_manager
        self.conversion_service = conversion_service

    def save_session(self, session: EditorSession) -> Tuple[str, Dict[str, Any]]:
        """
        Persist a session's specification as a project.

        The project name and description come from the session's project
        configuration section. A session opened from a project updates it;
        otherwise a new project is created and the session is bound to it.

        Returns:
            ("created" | "updated", stored project)
        """
        spec = self.conversion_service.export_session(session)
        project_config = session.config.project
        name = project_config.title or DEFAULT_PROJECT_NAME
        description = project_config.description or None

        project = None
        status = "updated"
        if session.project_id is not None:
            project = self.project_manager.update_project(
                session.project_id,
                name=name,
                description=description,
                schema_data=spec,
            )
        if project is None:
            project = self.project_manager.create_project(name, spec, description=description)
            session.project_id = project["id"]
            status = "created"

        session.store.mark_saved()
        logger.info(f"Session {session.session_id} saved as project {project['id']} ({status})")
        return status, project

    def open_project(self, project_id: int) -> EditorSession:
        """
        Open a new editor session on a stored project.

        Raises:
            KeyError: The project does not exist
            SpecFormatError: The stored specification cannot be loaded
        """
        project = self.project_manager.get_project(project_id)
        if project is None:
            raise KeyError(project_id)

        session = self.session_manager.create_session(project_id=project_id)
        try:
            self.conversion_service.load_spec(session, project["schema_data"])
        except SpecFormatError:
            self.session_manager.delete_session(session.session_id)
            raise
        return session
