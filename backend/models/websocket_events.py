"""WebSocket event models."""

from pydantic import BaseModel
from typing import Any, Dict, Optional, Literal
from datetime import datetime


class GraphUpdatedData(BaseModel):
    """Data for graph updated event."""
    session_id: str
    seq: int
    ts: Optional[datetime] = None
    revision: int
    dirty: bool
    action: str
    view: Dict[str, Any]


class GraphUpdatedEvent(BaseModel):
    """Event sent after every committed change to a session's graph."""
    type: Literal["graph_updated"] = "graph_updated"
    data: GraphUpdatedData


class SessionSavedData(BaseModel):
    """Data for session saved event."""
    session_id: str
    seq: int
    ts: Optional[datetime] = None
    project_id: int
    message: str


class SessionSavedEvent(BaseModel):
    """Event when a session was persisted as a project."""
    type: Literal["session_saved"] = "session_saved"
    data: SessionSavedData


class ErrorData(BaseModel):
    """Data for error event."""
    message: str
    error_type: str


class ErrorEvent(BaseModel):
    """Error event."""
    type: Literal["error"] = "error"
    data: ErrorData
