"""Response models for API endpoints."""

from pydantic import BaseModel
from typing import List, Optional, Dict, Any

from schemaforge.layout.adapter import GraphView


class ProjectResponse(BaseModel):
    """A stored project."""
    id: int
    name: str
    description: Optional[str] = None
    schema_data: Dict[str, Any]
    created_at: str
    updated_at: str


class ValidationError(BaseModel):
    """A validation issue located by a dotted field path."""
    field: str
    message: str
    value: Any = None


class SessionResponse(BaseModel):
    """Current state of an editor session."""
    session_id: str
    project_id: Optional[int] = None
    dirty: bool
    revision: int
    view: GraphView
    config: Dict[str, Any]
    created_id: Optional[str] = None
    notes: List[str] = []


class ValidationResponse(BaseModel):
    """Result of validating a session's specification."""
    valid: bool
    errors: List[ValidationError] = []
    formatted: List[str] = []


class SaveResponse(BaseModel):
    """Result of saving a session as a project."""
    status: str  # "created" | "updated"
    project: ProjectResponse
