"""Demo graph and the editor's defaults for freshly added entities."""

from __future__ import annotations

from typing import Dict, Tuple

from schemaforge.graph.store import EntityGraphStore
from schemaforge.ir.models.spec_models import (
    Column,
    ColumnType,
    ColumnTypeName,
    EnumDefinition,
    Model,
    Position,
    Relationship,
)
from schemaforge.utils.logging import get_logger

logger = get_logger(__name__)


def new_model_defaults(count: int) -> Tuple[Model, Position]:
    """
    Model added by the toolbar when the graph already holds `count` models.

    Args:
        count: Number of models currently in the graph

    Returns:
        (model, position): `Model{n}` / `model_{n}` with an autoincrement
        integer primary key `id`, staggered 50px per existing model
    """
    n = count + 1
    model = Model(
        name=f"Model{n}",
        tablename=f"model_{n}",
        columns=[
            Column(
                name="id",
                type=ColumnType(name=ColumnTypeName.INTEGER),
                primary_key=True,
                autoincrement=True,
            )
        ],
    )
    return model, Position(x=100 + count * 50, y=100 + count * 50)


def new_enum_defaults(count: int) -> Tuple[EnumDefinition, Position]:
    """Enum added by the toolbar: `EnumType{n}` with two placeholder values."""
    n = count + 1
    enum_definition = EnumDefinition(name=f"EnumType{n}", values=["value1", "value2"])
    return enum_definition, Position(x=400 + count * 50, y=100 + count * 50)


def load_sample_data(store: EntityGraphStore) -> Dict[str, str]:
    """
    Add the User / Post / StatusType demo graph to a store.

    Returns:
        Ids of the created entities keyed "user", "post" and "status_type"
    """
    with store.batch():
        user_id = store.add_model(
            Model(
                name="User",
                tablename="users",
                columns=[
                    Column(
                        name="id",
                        type=ColumnType(name=ColumnTypeName.INTEGER),
                        primary_key=True,
                        autoincrement=True,
                    ),
                    Column(
                        name="username",
                        type=ColumnType(name=ColumnTypeName.STRING, length=50),
                        unique=True,
                        nullable=False,
                    ),
                    Column(
                        name="email",
                        type=ColumnType(name=ColumnTypeName.STRING, length=255),
                        unique=True,
                        nullable=False,
                    ),
                    Column(
                        name="password_hash",
                        type=ColumnType(name=ColumnTypeName.STRING, length=255),
                        nullable=False,
                    ),
                ],
                relationships=[
                    Relationship(name="posts", target="Post", back_populates="author", uselist=True),
                ],
            ),
            position=Position(x=100, y=100),
        )
        post_id = store.add_model(
            Model(
                name="Post",
                tablename="posts",
                columns=[
                    Column(
                        name="id",
                        type=ColumnType(name=ColumnTypeName.INTEGER),
                        primary_key=True,
                        autoincrement=True,
                    ),
                    Column(
                        name="title",
                        type=ColumnType(name=ColumnTypeName.STRING, length=200),
                        nullable=False,
                    ),
                    Column(name="content", type=ColumnType(name=ColumnTypeName.TEXT)),
                    Column(
                        name="author_id",
                        type=ColumnType(name=ColumnTypeName.INTEGER),
                        foreign_key="users.id",
                        nullable=False,
                    ),
                    Column(
                        name="created_at",
                        type=ColumnType(name=ColumnTypeName.DATE_TIME),
                        nullable=False,
                    ),
                ],
                relationships=[
                    Relationship(name="author", target="User", back_populates="posts", uselist=False),
                ],
            ),
            position=Position(x=400, y=100),
        )
        status_id = store.add_enum(
            EnumDefinition(name="StatusType", values=["active", "inactive", "pending"]),
            position=Position(x=250, y=400),
        )

    logger.info("Loaded sample data (User, Post, StatusType)")
    return {"user": user_id, "post": post_id, "status_type": status_id}
