"""Pydantic models for the entity graph and the project specification wire format.

The graph models are permissive: identifier patterns, uniqueness and
referential integrity are checked by the validation pass
(`schemaforge.utils.validation`), never while the graph is being mutated.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator


class ColumnTypeName(str, Enum):
    INTEGER = "integer"
    STRING = "string"
    BOOLEAN = "boolean"
    FLOAT = "float"
    NUMERIC = "numeric"
    TEXT = "text"
    DATE_TIME = "date-time"
    DATE = "date"
    TIME = "time"
    JSON = "json"
    ENUM = "enum"
    LARGE_BINARY = "large-binary"
    INTERVAL = "interval"
    BIG_INTEGER = "big-integer"
    UUID = "uuid"
    CHAR = "char"
    VARCHAR = "varchar"


class CascadeOption(str, Enum):
    SAVE_UPDATE = "save-update"
    MERGE = "merge"
    EXPUNGE = "expunge"
    DELETE = "delete"
    DELETE_ORPHAN = "delete-orphan"
    REFRESH_EXPIRE = "refresh-expire"
    ALL = "all"


class DBProvider(str, Enum):
    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"
    MYSQL = "mysql"


class Position(BaseModel):
    x: float = 100.0
    y: float = 100.0


def default_position() -> Position:
    return Position(x=100.0, y=100.0)


class ColumnType(BaseModel):
    name: ColumnTypeName
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    enum_class: Optional[str] = None

    model_config = {"extra": "allow"}

    def mirrors(self, other: "ColumnType") -> bool:
        """True when both types agree on name, length, precision and scale."""
        return (
            self.name == other.name
            and self.length == other.length
            and self.precision == other.precision
            and self.scale == other.scale
        )


class Column(BaseModel):
    name: str
    type: ColumnType
    primary_key: Optional[bool] = None
    nullable: Optional[bool] = None
    unique: Optional[bool] = None
    index: Optional[bool] = None
    autoincrement: Optional[bool] = None
    default: Optional[Union[bool, int, float, str]] = None
    foreign_key: Optional[str] = None
    server_default: Optional[str] = None
    info: Optional[Dict[str, Any]] = None

    model_config = {"extra": "allow"}


class Relationship(BaseModel):
    name: str
    target: str
    back_populates: Optional[str] = None
    backref: Optional[str] = None
    secondary: Optional[str] = None
    remote_side: Optional[List[str]] = None
    cascade: Optional[List[CascadeOption]] = None
    uselist: Optional[bool] = None
    order_by: Optional[str] = None

    model_config = {"extra": "allow"}

    @field_validator("cascade")
    @classmethod
    def _collapse_cascade(cls, value: Optional[List[CascadeOption]]) -> Optional[List[CascadeOption]]:
        # Set semantics, first-seen order kept
        if value is None:
            return None
        seen: List[CascadeOption] = []
        for option in value:
            if option not in seen:
                seen.append(option)
        return seen


class Model(BaseModel):
    name: str
    tablename: str
    columns: List[Column] = Field(default_factory=list)
    relationships: List[Relationship] = Field(default_factory=list)
    is_user: Optional[bool] = None
    username_field: Optional[str] = None
    password_field: Optional[str] = None

    model_config = {"extra": "allow"}


class EnumDefinition(BaseModel):
    name: str
    values: List[str] = Field(default_factory=list)

    model_config = {"extra": "allow"}


class AssociationTable(BaseModel):
    name: str
    tablename: str
    columns: List[Column] = Field(default_factory=list)

    model_config = {"extra": "allow"}


class ModelWithUI(Model):
    """A Model as held by the graph store: stable id plus canvas position."""

    id: str
    position: Position = Field(default_factory=default_position)


class EnumWithUI(EnumDefinition):
    id: str
    position: Position = Field(default_factory=default_position)


class AssociationTableWithUI(AssociationTable):
    id: str


class UIMetadataEntry(BaseModel):
    name: str
    position: Position = Field(default_factory=default_position)


class UIMetadata(BaseModel):
    models: List[UIMetadataEntry] = Field(default_factory=list)
    enums: List[UIMetadataEntry] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Configuration sections carried verbatim by the wire format
# ---------------------------------------------------------------------------


class ProjectConfig(BaseModel):
    title: str = "My FastAPI Project"
    author: str = ""
    description: str = ""

    model_config = {"extra": "allow"}


class GitConfig(BaseModel):
    username: str = ""
    repository: str = ""
    branch: str = "main"

    model_config = {"extra": "allow"}


class DatabaseConfig(BaseModel):
    db_provider: DBProvider = DBProvider.POSTGRESQL
    db_name: str = "myapp"
    db_host: Optional[str] = "localhost"
    db_port: Optional[int] = 5432
    db_username: Optional[str] = ""
    db_password: Optional[str] = ""
    db_driver: Optional[str] = None
    db_options: Optional[str] = None
    db_connect_args: Optional[str] = None

    model_config = {"extra": "allow"}


class SecurityConfig(BaseModel):
    secret_key: str = ""
    algorithm: str = "HS256"

    model_config = {"extra": "allow"}


class TokenConfig(BaseModel):
    access_token_expire_minutes: int = 30
    refresh_token_expire_days: int = 7

    model_config = {"extra": "allow"}
