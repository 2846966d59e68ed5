"""Canonical entity graph and its mutation primitives.

The store holds models, enums and association tables keyed by stable opaque ids
in insertion order. Mutators never raise for a missing id: they return
`MutationStatus.NOT_FOUND` and leave the graph untouched. The store enforces no
uniqueness or referential rules and never cascades deletes; dependent cleanup
is done by the synthesizer's retraction helpers.
"""

from __future__ import annotations

import copy
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel

from schemaforge.ir.graph_utils import (
    find_column,
    find_model_by_name,
    find_model_by_tablename,
    find_relationship,
    new_entity_id,
)
from schemaforge.ir.models.spec_models import (
    AssociationTable,
    AssociationTableWithUI,
    Column,
    EnumDefinition,
    EnumWithUI,
    Model,
    ModelWithUI,
    Position,
    Relationship,
    default_position,
)
from schemaforge.utils.logging import get_logger

logger = get_logger(__name__)

PositionLike = Union[Position, Mapping[str, float], Tuple[float, float]]


class MutationStatus(str, Enum):
    APPLIED = "applied"
    NOT_FOUND = "not_found"


def to_position(value: Optional[PositionLike]) -> Position:
    """Coerce a Position, {x, y} mapping or (x, y) tuple; None gives the default."""
    if value is None:
        return default_position()
    if isinstance(value, Position):
        return value.model_copy()
    if isinstance(value, tuple):
        return Position(x=value[0], y=value[1])
    return Position.model_validate(dict(value))


def _as_data(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump()
    return value


def _merge(entry: BaseModel, updates: Mapping[str, Any], keep: Iterable[str] = ()) -> BaseModel:
    """Return a new entry with `updates` merged over `entry`; `keep` keys are never overwritten."""
    data = entry.model_dump()
    for key, value in updates.items():
        if key in keep:
            continue
        data[key] = _as_data(value)
    return type(entry).model_validate(data)


@dataclass
class GraphState:
    """Explicit graph value: insertion-ordered id -> entity maps."""
    models: Dict[str, ModelWithUI] = field(default_factory=dict)
    enums: Dict[str, EnumWithUI] = field(default_factory=dict)
    association_tables: Dict[str, AssociationTableWithUI] = field(default_factory=dict)

    def snapshot(self) -> "GraphState":
        return copy.deepcopy(self)

    def model_list(self) -> List[ModelWithUI]:
        return list(self.models.values())

    def enum_list(self) -> List[EnumWithUI]:
        return list(self.enums.values())

    def association_table_list(self) -> List[AssociationTableWithUI]:
        return list(self.association_tables.values())

    def is_empty(self) -> bool:
        return not (self.models or self.enums or self.association_tables)


GraphListener = Callable[[GraphState], None]


class EntityGraphStore:
    """
    Mutable holder of one GraphState with change notification.

    Listeners registered with `subscribe` receive a snapshot after every
    committed change. Writes made inside `batch()` are committed together:
    listeners are notified once, and an exception restores the prior graph.
    """

    def __init__(self, state: Optional[GraphState] = None):
        self.state = state if state is not None else GraphState()
        self.dirty = False
        self._listeners: List[GraphListener] = []
        self._batch_depth = 0
        self._pending_notify = False

    # ------------------------------------------------------------------
    # Observation
    # ------------------------------------------------------------------

    def subscribe(self, listener: GraphListener) -> Callable[[], None]:
        """
        Register a change listener.

        Args:
            listener: Callable receiving a GraphState snapshot

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @contextmanager
    def batch(self) -> Iterator["EntityGraphStore"]:
        """Apply every write inside the block as one unit."""
        saved_state = self.state.snapshot()
        saved_dirty = self.dirty
        self._batch_depth += 1
        try:
            yield self
        except BaseException:
            self._batch_depth -= 1
            self.state = saved_state
            self.dirty = saved_dirty
            if self._batch_depth == 0:
                self._pending_notify = False
            logger.debug("Batch aborted, graph restored")
            raise
        self._batch_depth -= 1
        if self._batch_depth == 0 and self._pending_notify:
            self._pending_notify = False
            self._notify()

    def _changed(self) -> None:
        self.dirty = True
        if self._batch_depth:
            self._pending_notify = True
        else:
            self._notify()

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.state.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    def mark_saved(self) -> None:
        self.dirty = False

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def models(self) -> List[ModelWithUI]:
        return self.state.model_list()

    @property
    def enums(self) -> List[EnumWithUI]:
        return self.state.enum_list()

    @property
    def association_tables(self) -> List[AssociationTableWithUI]:
        return self.state.association_table_list()

    def get_model(self, model_id: str) -> Optional[ModelWithUI]:
        return self.state.models.get(model_id)

    def get_enum(self, enum_id: str) -> Optional[EnumWithUI]:
        return self.state.enums.get(enum_id)

    def get_association_table(self, table_id: str) -> Optional[AssociationTableWithUI]:
        return self.state.association_tables.get(table_id)

    def find_model_by_name(self, name: str) -> Optional[ModelWithUI]:
        return find_model_by_name(self.state.models.values(), name)

    def find_model_by_tablename(self, tablename: str) -> Optional[ModelWithUI]:
        return find_model_by_tablename(self.state.models.values(), tablename)

    def find_enum_by_name(self, name: str) -> Optional[EnumWithUI]:
        return next((enum for enum in self.state.enums.values() if enum.name == name), None)

    # ------------------------------------------------------------------
    # Models
    # ------------------------------------------------------------------

    def add_model(self, model: Model, position: Optional[PositionLike] = None) -> str:
        """
        Add a model under a fresh id.

        Args:
            model: Model (or ModelWithUI; its id is replaced)
            position: Canvas position; falls back to the model's own, then the default

        Returns:
            The new model id
        """
        model_id = new_entity_id()
        if position is None:
            position = getattr(model, "position", None)
        data = model.model_dump(exclude={"id", "position"})
        self.state.models[model_id] = ModelWithUI.model_validate(
            {**data, "id": model_id, "position": to_position(position)}
        )
        logger.debug(f"Added model {model.name} ({model_id})")
        self._changed()
        return model_id

    def update_model(self, model_id: str, updates: Mapping[str, Any]) -> MutationStatus:
        entry = self.state.models.get(model_id)
        if entry is None:
            logger.debug(f"update_model: model {model_id} not found")
            return MutationStatus.NOT_FOUND
        self.state.models[model_id] = _merge(entry, updates, keep=("id",))
        self._changed()
        return MutationStatus.APPLIED

    def delete_model(self, model_id: str) -> MutationStatus:
        if self.state.models.pop(model_id, None) is None:
            return MutationStatus.NOT_FOUND
        logger.debug(f"Deleted model {model_id}")
        self._changed()
        return MutationStatus.APPLIED

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    def add_column(self, model_id: str, column: Column) -> MutationStatus:
        entry = self.state.models.get(model_id)
        if entry is None:
            return MutationStatus.NOT_FOUND
        columns = [*entry.columns, Column.model_validate(_as_data(column))]
        self.state.models[model_id] = entry.model_copy(update={"columns": columns})
        self._changed()
        return MutationStatus.APPLIED

    def update_column(self, model_id: str, column_name: str, updates: Mapping[str, Any]) -> MutationStatus:
        """Merge `updates` into the named column; the column keeps its list position."""
        entry = self.state.models.get(model_id)
        if entry is None or find_column(entry, column_name) is None:
            return MutationStatus.NOT_FOUND
        columns = [
            _merge(column, updates) if column.name == column_name else column
            for column in entry.columns
        ]
        self.state.models[model_id] = entry.model_copy(update={"columns": columns})
        self._changed()
        return MutationStatus.APPLIED

    def delete_column(self, model_id: str, column_name: str) -> MutationStatus:
        entry = self.state.models.get(model_id)
        if entry is None or find_column(entry, column_name) is None:
            return MutationStatus.NOT_FOUND
        columns = [column for column in entry.columns if column.name != column_name]
        self.state.models[model_id] = entry.model_copy(update={"columns": columns})
        self._changed()
        return MutationStatus.APPLIED

    # ------------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------------

    def add_relationship(self, model_id: str, relationship: Relationship) -> MutationStatus:
        entry = self.state.models.get(model_id)
        if entry is None:
            return MutationStatus.NOT_FOUND
        relationships = [*entry.relationships, Relationship.model_validate(_as_data(relationship))]
        self.state.models[model_id] = entry.model_copy(update={"relationships": relationships})
        self._changed()
        return MutationStatus.APPLIED

    def update_relationship(
        self, model_id: str, relationship_name: str, updates: Mapping[str, Any]
    ) -> MutationStatus:
        entry = self.state.models.get(model_id)
        if entry is None or find_relationship(entry, relationship_name) is None:
            return MutationStatus.NOT_FOUND
        relationships = [
            _merge(rel, updates) if rel.name == relationship_name else rel
            for rel in entry.relationships
        ]
        self.state.models[model_id] = entry.model_copy(update={"relationships": relationships})
        self._changed()
        return MutationStatus.APPLIED

    def delete_relationship(self, model_id: str, relationship_name: str) -> MutationStatus:
        entry = self.state.models.get(model_id)
        if entry is None or find_relationship(entry, relationship_name) is None:
            return MutationStatus.NOT_FOUND
        relationships = [rel for rel in entry.relationships if rel.name != relationship_name]
        self.state.models[model_id] = entry.model_copy(update={"relationships": relationships})
        self._changed()
        return MutationStatus.APPLIED

    # ------------------------------------------------------------------
    # Enums
    # ------------------------------------------------------------------

    def add_enum(self, enum_definition: EnumDefinition, position: Optional[PositionLike] = None) -> str:
        enum_id = new_entity_id()
        if position is None:
            position = getattr(enum_definition, "position", None)
        data = enum_definition.model_dump(exclude={"id", "position"})
        self.state.enums[enum_id] = EnumWithUI.model_validate(
            {**data, "id": enum_id, "position": to_position(position)}
        )
        logger.debug(f"Added enum {enum_definition.name} ({enum_id})")
        self._changed()
        return enum_id

    def update_enum(self, enum_id: str, updates: Mapping[str, Any]) -> MutationStatus:
        entry = self.state.enums.get(enum_id)
        if entry is None:
            return MutationStatus.NOT_FOUND
        self.state.enums[enum_id] = _merge(entry, updates, keep=("id",))
        self._changed()
        return MutationStatus.APPLIED

    def delete_enum(self, enum_id: str) -> MutationStatus:
        if self.state.enums.pop(enum_id, None) is None:
            return MutationStatus.NOT_FOUND
        self._changed()
        return MutationStatus.APPLIED

    # ------------------------------------------------------------------
    # Association tables
    # ------------------------------------------------------------------

    def add_association_table(self, table: AssociationTable) -> str:
        table_id = new_entity_id()
        data = table.model_dump(exclude={"id"})
        self.state.association_tables[table_id] = AssociationTableWithUI.model_validate(
            {**data, "id": table_id}
        )
        self._changed()
        return table_id

    def update_association_table(self, table_id: str, updates: Mapping[str, Any]) -> MutationStatus:
        entry = self.state.association_tables.get(table_id)
        if entry is None:
            return MutationStatus.NOT_FOUND
        self.state.association_tables[table_id] = _merge(entry, updates, keep=("id",))
        self._changed()
        return MutationStatus.APPLIED

    def delete_association_table(self, table_id: str) -> MutationStatus:
        if self.state.association_tables.pop(table_id, None) is None:
            return MutationStatus.NOT_FOUND
        self._changed()
        return MutationStatus.APPLIED

    # ------------------------------------------------------------------
    # Layout and wholesale operations
    # ------------------------------------------------------------------

    def update_position(self, entity_id: str, position: PositionLike) -> MutationStatus:
        """Move a model or an enum on the canvas."""
        new_position = to_position(position)
        if entity_id in self.state.models:
            entry = self.state.models[entity_id]
            self.state.models[entity_id] = entry.model_copy(update={"position": new_position})
        elif entity_id in self.state.enums:
            entry = self.state.enums[entity_id]
            self.state.enums[entity_id] = entry.model_copy(update={"position": new_position})
        else:
            return MutationStatus.NOT_FOUND
        self._changed()
        return MutationStatus.APPLIED

    def load_graph(
        self,
        models: Iterable[Model],
        enums: Iterable[EnumDefinition] = (),
        association_tables: Iterable[AssociationTable] = (),
    ) -> None:
        """
        Replace the whole graph.

        Entities that already carry an id (the *WithUI types) keep it; others get
        a fresh one. The dirty flag is reset since the graph now equals what was
        persisted.
        """
        state = GraphState()
        for model in models:
            model_id = getattr(model, "id", None) or new_entity_id()
            data = model.model_dump(exclude={"id", "position"})
            state.models[model_id] = ModelWithUI.model_validate(
                {**data, "id": model_id, "position": to_position(getattr(model, "position", None))}
            )
        for enum_definition in enums:
            enum_id = getattr(enum_definition, "id", None) or new_entity_id()
            data = enum_definition.model_dump(exclude={"id", "position"})
            state.enums[enum_id] = EnumWithUI.model_validate(
                {**data, "id": enum_id, "position": to_position(getattr(enum_definition, "position", None))}
            )
        for table in association_tables:
            table_id = getattr(table, "id", None) or new_entity_id()
            data = table.model_dump(exclude={"id"})
            state.association_tables[table_id] = AssociationTableWithUI.model_validate({**data, "id": table_id})

        self.state = state
        logger.info(
            f"Loaded graph: {len(state.models)} models, {len(state.enums)} enums, "
            f"{len(state.association_tables)} association tables"
        )
        self._changed()
        self.dirty = False

    def clear(self) -> None:
        self.state = GraphState()
        self._changed()
