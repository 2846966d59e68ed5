"""Request models for API endpoints."""

from pydantic import BaseModel, Field
from typing import Dict, Any, List, Optional

from schemaforge.ir.models.relation_type import RelationType
from schemaforge.ir.models.spec_models import (
    CascadeOption,
    Column,
    Position,
    Relationship,
)


class ProjectCreateRequest(BaseModel):
    """Request to store a new project."""
    name: str = Field(..., min_length=1, description="Project name")
    description: Optional[str] = None
    schema_data: Dict[str, Any] = Field(..., description="Exported project specification")


class ProjectUpdateRequest(BaseModel):
    """Request to update a stored project."""
    name: Optional[str] = None
    description: Optional[str] = None
    schema_data: Optional[Dict[str, Any]] = None


class SessionCreateRequest(BaseModel):
    """Request to open an editor session (empty, from a stored project, or from a spec)."""
    project_id: Optional[int] = None
    spec: Optional[Dict[str, Any]] = None
    sample_data: bool = False


class SpecLoadRequest(BaseModel):
    """Request to replace a session's graph with a specification."""
    spec: Dict[str, Any]


class ModelCreateRequest(BaseModel):
    """Request to add a model. Omitted fields get the toolbar defaults."""
    name: Optional[str] = None
    tablename: Optional[str] = None
    columns: Optional[List[Column]] = None
    relationships: List[Relationship] = Field(default_factory=list)
    position: Optional[Position] = None


class ModelUpdateRequest(BaseModel):
    """Request to update model-level fields."""
    name: Optional[str] = None
    tablename: Optional[str] = None
    is_user: Optional[bool] = None
    username_field: Optional[str] = None
    password_field: Optional[str] = None


class ColumnSaveRequest(BaseModel):
    """Request to add (or replace, with original_name) a column."""
    column: Column
    original_name: Optional[str] = None
    create_relationship: bool = True
    relation_type: RelationType = RelationType.ONE_TO_ONE
    relationship_name: Optional[str] = None
    back_populates: Optional[str] = None
    cascade: List[CascadeOption] = Field(default_factory=list)


class RelationshipRequest(BaseModel):
    """Request to declare a relationship."""
    target: str = Field(..., min_length=1)
    relation_type: RelationType = RelationType.ONE_TO_ONE
    name: Optional[str] = None
    back_populates: Optional[str] = None
    cascade: List[CascadeOption] = Field(default_factory=list)
    create_foreign_key: bool = True


class EnumCreateRequest(BaseModel):
    """Request to add an enum. Omitted fields get the toolbar defaults."""
    name: Optional[str] = None
    values: Optional[List[str]] = None
    position: Optional[Position] = None


class EnumUpdateRequest(BaseModel):
    """Request to update an enum."""
    name: Optional[str] = None
    values: Optional[List[str]] = None


class AssociationTableRequest(BaseModel):
    """Request to add an association table."""
    name: str = Field(..., min_length=1)
    tablename: str = Field(..., min_length=1)
    columns: List[Column] = Field(default_factory=list)


class AssociationTableUpdateRequest(BaseModel):
    """Request to update an association table."""
    name: Optional[str] = None
    tablename: Optional[str] = None
    columns: Optional[List[Column]] = None


class PositionUpdateRequest(BaseModel):
    """Request to move a model or enum on the canvas."""
    x: float
    y: float
