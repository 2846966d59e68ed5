"""Relationship synthesizer.

Expands a single editor gesture into every write it implies:

* saving a column that carries a foreign key mirrors the referenced column's
  type, and optionally declares a relationship towards the referenced model
  (plus its reciprocal when `back_populates` is given);
* declaring a relationship first optionally creates the foreign key column on
  the "many" side, and the reciprocal relationship on the target.

Planning is pure: `plan_column_save` and `plan_relationship` read an explicit
GraphState and return a SynthesisResult describing the writes. Every refusal
(unknown target, malformed reference, locked primary key...) raises before
anything is written. `RelationshipSynthesizer` plans against a store and
applies the result inside a single `store.batch()`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel, Field

from schemaforge.graph.store import EntityGraphStore, GraphState, MutationStatus
from schemaforge.ir.graph_utils import (
    default_relationship_name,
    find_column,
    find_model_by_name,
    find_model_by_tablename,
    find_relationship,
    format_foreign_key,
    parse_foreign_key,
    primary_key_column,
)
from schemaforge.ir.models.relation_type import (
    RelationType,
    inverse_uselist,
    relation_type_from_uselist,
    uselist_for,
)
from schemaforge.ir.models.spec_models import (
    CascadeOption,
    Column,
    ColumnType,
    ColumnTypeName,
    ModelWithUI,
    Relationship,
)
from schemaforge.utils.error_handling import (
    ErrorContext,
    ReferentialError,
    SynthesisError,
    log_error_with_context,
)
from schemaforge.utils.logging import get_logger

logger = get_logger(__name__)

# Fields of a primary key column that the editors never change
LOCKED_PRIMARY_KEY_FIELDS = ("name", "type", "primary_key", "autoincrement")

FOREIGN_KEY_RELATION_TYPES = (RelationType.ONE_TO_ONE, RelationType.MANY_TO_ONE)


# ---------------------------------------------------------------------------
# Intents and results
# ---------------------------------------------------------------------------


class ColumnSaveIntent(BaseModel):
    """Save (add or replace) a column, optionally carrying a foreign key."""
    model_id: str
    column: Column
    original_name: Optional[str] = None
    create_relationship: bool = True
    relation_type: RelationType = RelationType.ONE_TO_ONE
    relationship_name: Optional[str] = None
    back_populates: Optional[str] = None
    cascade: List[CascadeOption] = Field(default_factory=list)


class RelationshipIntent(BaseModel):
    """Declare (or edit, when `existing_name` is set) a relationship."""
    model_id: str
    target: str
    relation_type: RelationType = RelationType.ONE_TO_ONE
    name: Optional[str] = None
    back_populates: Optional[str] = None
    cascade: List[CascadeOption] = Field(default_factory=list)
    create_foreign_key: bool = True
    existing_name: Optional[str] = None


@dataclass
class ColumnWrite:
    model_id: str
    column: Column
    replaces: Optional[str] = None


@dataclass
class RelationshipWrite:
    model_id: str
    relationship: Relationship
    replaces: Optional[str] = None


@dataclass
class SynthesisResult:
    """Writes implied by one intent. Absent parts mean "nothing to write"."""
    column: Optional[ColumnWrite] = None
    relationship: Optional[RelationshipWrite] = None
    reverse_relationship: Optional[RelationshipWrite] = None
    skipped: List[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return self.column is None and self.relationship is None and self.reverse_relationship is None


# ---------------------------------------------------------------------------
# Planning
# ---------------------------------------------------------------------------


def _refuse(error: SynthesisError) -> None:
    log_error_with_context(error, error.context, level="warning")
    raise error


def resolve_foreign_key(
    state: GraphState, foreign_key: str, context: ErrorContext
) -> Tuple[ModelWithUI, Column]:
    """
    Resolve a "<tablename>.<column>" reference against the graph.

    Args:
        state: Graph to resolve against
        foreign_key: Reference to resolve
        context: Error context for refusals

    Returns:
        (target model, target column)

    Raises:
        ReferentialError: malformed reference, unknown table or column, or a
            target column that is neither primary key nor unique
    """
    parsed = parse_foreign_key(foreign_key)
    if parsed is None:
        _refuse(ReferentialError(
            f"Malformed foreign key '{foreign_key}', expected '<tablename>.<column>'", context
        ))
    tablename, column_name = parsed

    target_model = find_model_by_tablename(state.models.values(), tablename)
    if target_model is None:
        _refuse(ReferentialError(
            f"Foreign key '{foreign_key}' references unknown table '{tablename}'", context
        ))

    target_column = find_column(target_model, column_name)
    if target_column is None:
        _refuse(ReferentialError(
            f"Foreign key '{foreign_key}' references unknown column '{column_name}' "
            f"on table '{tablename}'", context
        ))
    if not (target_column.primary_key or target_column.unique):
        _refuse(ReferentialError(
            f"Foreign key '{foreign_key}' must reference a primary key or unique column", context
        ))
    return target_model, target_column


def _lock_primary_key(existing: Column, column: Column) -> Column:
    locked = {name: getattr(existing, name) for name in LOCKED_PRIMARY_KEY_FIELDS}
    locked["type"] = existing.type.model_copy(deep=True)
    return column.model_copy(update=locked)


def _normalize_column_type(column: Column) -> Column:
    # enum_class only means something on enum columns
    if column.type.name != ColumnTypeName.ENUM and column.type.enum_class is not None:
        return column.model_copy(update={"type": column.type.model_copy(update={"enum_class": None})})
    return column


def _mirror_type(target_type: ColumnType) -> ColumnType:
    # An enum reference keeps the enum class so the copy stays a valid enum type
    enum_class = target_type.enum_class if target_type.name == ColumnTypeName.ENUM else None
    return ColumnType(
        name=target_type.name,
        length=target_type.length,
        precision=target_type.precision,
        scale=target_type.scale,
        enum_class=enum_class,
    )


def _plan_reverse(
    source: ModelWithUI,
    target: ModelWithUI,
    forward: Relationship,
    result: SynthesisResult,
) -> Optional[RelationshipWrite]:
    """Reciprocal of `forward` on `target`, unless one with that name already exists."""
    if not forward.back_populates:
        return None
    existing_names = {rel.name for rel in target.relationships}
    if target.id == source.id:
        existing_names.add(forward.name)
    if forward.back_populates in existing_names:
        message = (
            f"Reverse relationship '{forward.back_populates}' already exists on "
            f"'{target.name}', not creating it"
        )
        logger.debug(message)
        result.skipped.append(message)
        return None

    reverse = Relationship(
        name=forward.back_populates,
        target=source.name,
        back_populates=forward.name,
        uselist=inverse_uselist(forward.uselist),
    )
    return RelationshipWrite(model_id=target.id, relationship=reverse)


def plan_column_save(state: GraphState, intent: ColumnSaveIntent) -> SynthesisResult:
    """
    Plan the writes for saving a column.

    Args:
        state: Graph snapshot to plan against
        intent: The column save gesture

    Returns:
        SynthesisResult with the column write, plus the forward and reverse
        relationship writes when a foreign key is attached

    Raises:
        ReferentialError: The model, the edited column or the foreign key target does not resolve
        SynthesisError: A foreign key was attached to a primary key column, or the
            requested cardinality cannot be expressed by a foreign key on this column
    """
    context = ErrorContext(
        operation="save_column",
        model_id=intent.model_id,
        column_name=intent.column.name,
    )
    model = state.models.get(intent.model_id)
    if model is None:
        _refuse(ReferentialError(f"Model '{intent.model_id}' not found", context))
    context.model_name = model.name

    existing: Optional[Column] = None
    if intent.original_name is not None:
        existing = find_column(model, intent.original_name)
        if existing is None:
            _refuse(ReferentialError(
                f"Column '{intent.original_name}' not found on model '{model.name}'", context
            ))

    column = _normalize_column_type(intent.column.model_copy(deep=True))
    if existing is not None and existing.primary_key:
        if column.foreign_key:
            _refuse(SynthesisError("Primary key columns cannot carry a foreign key", context))
        column = _lock_primary_key(existing, column)

    result = SynthesisResult(
        column=ColumnWrite(model_id=model.id, column=column, replaces=intent.original_name)
    )
    if not column.foreign_key:
        return result

    target_model, target_column = resolve_foreign_key(state, column.foreign_key, context)
    result.column.column = column.model_copy(update={"type": _mirror_type(target_column.type)})

    if not intent.create_relationship:
        return result
    if intent.relation_type not in FOREIGN_KEY_RELATION_TYPES:
        _refuse(SynthesisError(
            f"A foreign key on '{model.name}' cannot express a {intent.relation_type.value} relationship",
            context,
        ))

    relationship_name = intent.relationship_name or target_model.name.lower()
    context.relationship_name = relationship_name
    existing_rel = find_relationship(model, relationship_name)
    fields: Dict[str, Any] = {
        "name": relationship_name,
        "target": target_model.name,
        "back_populates": intent.back_populates or None,
        "uselist": uselist_for(intent.relation_type),
        "cascade": list(intent.cascade) or None,
    }
    forward = existing_rel.model_copy(update=fields) if existing_rel else Relationship(**fields)
    result.relationship = RelationshipWrite(
        model_id=model.id,
        relationship=forward,
        replaces=relationship_name if existing_rel else None,
    )
    result.reverse_relationship = _plan_reverse(model, target_model, forward, result)

    logger.info(
        f"Planned foreign key {model.name}.{column.name} -> {column.foreign_key} "
        f"with relationship '{relationship_name}'"
    )
    return result


def _plan_relationship_foreign_key(
    source: ModelWithUI,
    target: ModelWithUI,
    relation_type: RelationType,
    result: SynthesisResult,
) -> Optional[ColumnWrite]:
    # The foreign key lives on the "many" side; the declaring side for one-to-one
    if relation_type == RelationType.ONE_TO_MANY:
        owner, referenced = target, source
    else:
        owner, referenced = source, target

    pk = primary_key_column(referenced)
    if pk is None:
        message = f"Model '{referenced.name}' has no primary key, foreign key not created"
        logger.warning(message)
        result.skipped.append(message)
        return None

    column_name = f"{referenced.name.lower()}_id"
    if find_column(owner, column_name) is not None:
        message = f"Column '{owner.name}.{column_name}' already exists, foreign key not created"
        logger.debug(message)
        result.skipped.append(message)
        return None

    column = Column(
        name=column_name,
        type=_mirror_type(pk.type),
        foreign_key=format_foreign_key(referenced.tablename, pk.name),
        nullable=True,
    )
    return ColumnWrite(model_id=owner.id, column=column)


def plan_relationship(state: GraphState, intent: RelationshipIntent) -> SynthesisResult:
    """
    Plan the writes for declaring (or editing) a relationship.

    Args:
        state: Graph snapshot to plan against
        intent: The relationship gesture

    Returns:
        SynthesisResult with the forward relationship, the foreign key column
        (new relationships only) and the reciprocal relationship

    Raises:
        ReferentialError: The declaring model, the target or the edited relationship does not resolve
        SynthesisError: A many-to-many relationship was requested
    """
    context = ErrorContext(
        operation="declare_relationship",
        model_id=intent.model_id,
        relationship_name=intent.name or intent.existing_name,
    )
    model = state.models.get(intent.model_id)
    if model is None:
        _refuse(ReferentialError(f"Model '{intent.model_id}' not found", context))
    context.model_name = model.name

    target_model = find_model_by_name(state.models.values(), intent.target)
    if target_model is None:
        _refuse(ReferentialError(f"Relationship target '{intent.target}' does not exist", context))

    if intent.relation_type == RelationType.MANY_TO_MANY:
        _refuse(SynthesisError(
            "Many-to-many relationships need an explicit association table", context
        ))

    existing: Optional[Relationship] = None
    if intent.existing_name is not None:
        existing = find_relationship(model, intent.existing_name)
        if existing is None:
            _refuse(ReferentialError(
                f"Relationship '{intent.existing_name}' not found on model '{model.name}'", context
            ))

    name = intent.name or default_relationship_name(target_model.name, intent.relation_type)
    fields: Dict[str, Any] = {
        "name": name,
        "target": target_model.name,
        "back_populates": intent.back_populates or None,
        "uselist": uselist_for(intent.relation_type),
        "cascade": list(intent.cascade) or None,
    }

    result = SynthesisResult()
    if existing is not None:
        forward = existing.model_copy(update=fields)
        result.relationship = RelationshipWrite(model.id, forward, replaces=intent.existing_name)
    else:
        same_name = find_relationship(model, name)
        forward = same_name.model_copy(update=fields) if same_name else Relationship(**fields)
        result.relationship = RelationshipWrite(model.id, forward, replaces=name if same_name else None)
        if intent.create_foreign_key:
            result.column = _plan_relationship_foreign_key(model, target_model, intent.relation_type, result)

    result.reverse_relationship = _plan_reverse(model, target_model, forward, result)

    logger.info(
        f"Planned relationship {model.name}.{name} -> {target_model.name} "
        f"({intent.relation_type.value})"
    )
    return result


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


def _ensure_applied(status: MutationStatus, what: str) -> None:
    if status != MutationStatus.APPLIED:
        raise SynthesisError(f"Could not apply {what}: target vanished", ErrorContext(operation="apply"))


def apply_synthesis(store: EntityGraphStore, result: SynthesisResult) -> None:
    """Apply all writes of a result as one batch."""
    with store.batch():
        if result.column is not None:
            write = result.column
            if write.replaces is not None:
                status = store.update_column(write.model_id, write.replaces, write.column.model_dump())
            else:
                status = store.add_column(write.model_id, write.column)
            _ensure_applied(status, f"column '{write.column.name}'")

        for write in (result.relationship, result.reverse_relationship):
            if write is None:
                continue
            if write.replaces is not None:
                status = store.update_relationship(
                    write.model_id, write.replaces, write.relationship.model_dump()
                )
            else:
                status = store.add_relationship(write.model_id, write.relationship)
            _ensure_applied(status, f"relationship '{write.relationship.name}'")


class RelationshipSynthesizer:
    """Editor-level operations over an EntityGraphStore."""

    def __init__(self, store: EntityGraphStore):
        self.store = store

    def apply(self, result: SynthesisResult) -> SynthesisResult:
        apply_synthesis(self.store, result)
        return result

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    def save_column(self, intent: ColumnSaveIntent) -> SynthesisResult:
        return self.apply(plan_column_save(self.store.state, intent))

    def add_column(self, model_id: str, column: Column, **options: Any) -> SynthesisResult:
        """Add a new column; a foreign key on it is synthesized like any saved column."""
        return self.save_column(ColumnSaveIntent(model_id=model_id, column=column, **options))

    def attach_foreign_key(
        self,
        model_id: str,
        column_name: str,
        foreign_key: str,
        create_relationship: bool = True,
        relation_type: RelationType = RelationType.ONE_TO_ONE,
        relationship_name: Optional[str] = None,
        back_populates: Optional[str] = None,
        cascade: Optional[List[CascadeOption]] = None,
    ) -> SynthesisResult:
        """
        Point an existing column at "<tablename>.<column>".

        Args:
            model_id: Owning model id
            column_name: Column to attach the foreign key to
            foreign_key: Reference to the target column
            create_relationship: Also declare a relationship towards the target model
            relation_type: one-to-one (default) or many-to-one
            relationship_name: Overrides the default (target model name, lowercased)
            back_populates: Name of the reciprocal relationship on the target
            cascade: Cascade options for the forward relationship

        Returns:
            The applied SynthesisResult
        """
        context = ErrorContext(operation="attach_foreign_key", model_id=model_id, column_name=column_name)
        model = self.store.get_model(model_id)
        if model is None:
            _refuse(ReferentialError(f"Model '{model_id}' not found", context))
        column = find_column(model, column_name)
        if column is None:
            _refuse(ReferentialError(f"Column '{column_name}' not found on model '{model.name}'", context))

        intent = ColumnSaveIntent(
            model_id=model_id,
            column=column.model_copy(update={"foreign_key": foreign_key}),
            original_name=column_name,
            create_relationship=create_relationship,
            relation_type=relation_type,
            relationship_name=relationship_name,
            back_populates=back_populates,
            cascade=cascade or [],
        )
        return self.save_column(intent)

    def edit_column(self, model_id: str, column_name: str, updates: Mapping[str, Any]) -> SynthesisResult:
        """
        Plain column edit. Locked primary key fields (and any foreign key on a
        primary key) are silently kept as they are.
        """
        context = ErrorContext(operation="edit_column", model_id=model_id, column_name=column_name)
        model = self.store.get_model(model_id)
        if model is None:
            _refuse(ReferentialError(f"Model '{model_id}' not found", context))
        column = find_column(model, column_name)
        if column is None:
            _refuse(ReferentialError(f"Column '{column_name}' not found on model '{model.name}'", context))

        updates = dict(updates)
        if column.primary_key:
            ignored = [key for key in updates if key in LOCKED_PRIMARY_KEY_FIELDS or key == "foreign_key"]
            if ignored:
                logger.debug(f"Ignoring locked primary key fields on {model.name}.{column_name}: {ignored}")
            updates = {key: value for key, value in updates.items() if key not in ignored}

        data = column.model_dump()
        data.update({key: value.model_dump() if isinstance(value, BaseModel) else value
                     for key, value in updates.items()})
        edited = Column.model_validate(data)

        return self.save_column(ColumnSaveIntent(
            model_id=model_id,
            column=edited,
            original_name=column_name,
            create_relationship=False,
        ))

    # ------------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------------

    def declare_relationship(self, intent: RelationshipIntent) -> SynthesisResult:
        return self.apply(plan_relationship(self.store.state, intent))

    def relation_type_of(self, model_id: str, relationship_name: str) -> Optional[RelationType]:
        model = self.store.get_model(model_id)
        if model is None:
            return None
        relationship = find_relationship(model, relationship_name)
        if relationship is None:
            return None
        return relation_type_from_uselist(relationship.uselist)

    # ------------------------------------------------------------------
    # Retraction
    # ------------------------------------------------------------------

    def _clear_foreign_keys(self, reference_prefix: str, exact: bool = False) -> int:
        """Clear foreign keys matching `reference_prefix` on models and association tables."""

        def matches(foreign_key: Optional[str]) -> bool:
            if not foreign_key:
                return False
            return foreign_key == reference_prefix if exact else foreign_key.startswith(reference_prefix)

        cleared = 0
        for model in self.store.models:
            for column in model.columns:
                if matches(column.foreign_key):
                    self.store.update_column(model.id, column.name, {"foreign_key": None})
                    cleared += 1
        for table in self.store.association_tables:
            if any(matches(column.foreign_key) for column in table.columns):
                columns = [
                    column.model_copy(update={"foreign_key": None}) if matches(column.foreign_key) else column
                    for column in table.columns
                ]
                cleared += sum(1 for column in table.columns if matches(column.foreign_key))
                self.store.update_association_table(table.id, {"columns": columns})
        return cleared

    def retract_model(self, model_id: str) -> MutationStatus:
        """Delete a model together with every foreign key and relationship pointing at it."""
        model = self.store.get_model(model_id)
        if model is None:
            return MutationStatus.NOT_FOUND

        with self.store.batch():
            cleared = self._clear_foreign_keys(f"{model.tablename}.")
            removed = 0
            for other in self.store.models:
                if other.id == model_id:
                    continue
                for rel in other.relationships:
                    if rel.target == model.name:
                        self.store.delete_relationship(other.id, rel.name)
                        removed += 1
            self.store.delete_model(model_id)

        logger.info(
            f"Retracted model {model.name}: cleared {cleared} foreign keys, "
            f"removed {removed} relationships"
        )
        return MutationStatus.APPLIED

    def retract_relationship(self, model_id: str, relationship_name: str) -> MutationStatus:
        """Delete a relationship and the reciprocal that points back at it."""
        model = self.store.get_model(model_id)
        if model is None:
            return MutationStatus.NOT_FOUND
        relationship = find_relationship(model, relationship_name)
        if relationship is None:
            return MutationStatus.NOT_FOUND

        with self.store.batch():
            self.store.delete_relationship(model_id, relationship_name)
            if relationship.back_populates:
                target = self.store.find_model_by_name(relationship.target)
                reverse = find_relationship(target, relationship.back_populates) if target else None
                if (
                    reverse is not None
                    and reverse.back_populates == relationship_name
                    and not (target.id == model_id and reverse.name == relationship_name)
                ):
                    self.store.delete_relationship(target.id, reverse.name)
                    logger.debug(f"Removed reciprocal {target.name}.{reverse.name}")
        return MutationStatus.APPLIED

    def retract_column(self, model_id: str, column_name: str) -> MutationStatus:
        """Delete a column and clear the foreign keys that referenced it."""
        model = self.store.get_model(model_id)
        if model is None or find_column(model, column_name) is None:
            return MutationStatus.NOT_FOUND

        with self.store.batch():
            self.store.delete_column(model_id, column_name)
            self._clear_foreign_keys(format_foreign_key(model.tablename, column_name), exact=True)
        return MutationStatus.APPLIED

    def retract_enum(self, enum_id: str) -> MutationStatus:
        """Delete an enum and clear `enum_class` on the columns that used it."""
        enum_definition = self.store.get_enum(enum_id)
        if enum_definition is None:
            return MutationStatus.NOT_FOUND

        with self.store.batch():
            for model in self.store.models:
                for column in model.columns:
                    if column.type.enum_class == enum_definition.name:
                        self.store.update_column(
                            model.id,
                            column.name,
                            {"type": column.type.model_copy(update={"enum_class": None})},
                        )
            self.store.delete_enum(enum_id)
        return MutationStatus.APPLIED
