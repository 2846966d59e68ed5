"""Stored project persistence (in memory)."""

from typing import Dict, Any, List, Optional
from datetime import datetime, UTC
import copy


class ProjectManager:
    """Manages saved projects: a name, a description and the exported specification."""

    def __init__(self):
        self.projects: Dict[int, Dict[str, Any]] = {}
        self._next_id = 1

    def create_project(
        self,
        name: str,
        schema_data: Dict[str, Any],
        description: Optional[str] = None
    ) -> Dict[str, Any]:
        """Create a new project."""
        project_id = self._next_id
        self._next_id += 1
        now = datetime.now(UTC).isoformat()
        self.projects[project_id] = {
            "id": project_id,
            "name": name,
            "description": description,
            "schema_data": copy.deepcopy(schema_data),
            "created_at": now,
            "updated_at": now,
        }
        return self.projects[project_id]

    def get_project(self, project_id: int) -> Optional[Dict[str, Any]]:
        """Get project by ID."""
        return self.projects.get(project_id)

    def list_projects(self) -> List[Dict[str, Any]]:
        """All projects in creation order."""
        return list(self.projects.values())

    def update_project(
        self,
        project_id: int,
        name: Optional[str] = None,
        description: Optional[str] = None,
        schema_data: Optional[Dict[str, Any]] = None
    ) -> Optional[Dict[str, Any]]:
        """Update project fields. Returns None if the project does not exist."""
        if project_id not in self.projects:
            return None

        project = self.projects[project_id]
        if name:
            project["name"] = name
        if description is not None:
            project["description"] = description
        if schema_data is not None:
            project["schema_data"] = copy.deepcopy(schema_data)
        project["updated_at"] = datetime.now(UTC).isoformat()
        return project

    def delete_project(self, project_id: int) -> bool:
        """Delete a project. Returns False if it did not exist."""
        return self.projects.pop(project_id, None) is not None
