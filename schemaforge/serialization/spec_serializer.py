"""Flatten the entity graph (plus configuration) into a project specification, and back.

Export drops every store-internal field (ids, positions) from the `schema`
section and records canvas positions by entity name under `_ui_metadata`.
Import builds fresh ids and resolves positions by name, so
`import_spec(export_spec(state))` equals `state` up to ids.
"""

from __future__ import annotations

import copy
import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from schemaforge.graph.store import EntityGraphStore, GraphState
from schemaforge.ir.graph_utils import new_entity_id
from schemaforge.ir.models.spec_models import (
    AssociationTable,
    AssociationTableWithUI,
    EnumDefinition,
    EnumWithUI,
    Model,
    ModelWithUI,
    Position,
    UIMetadataEntry,
    default_position,
)
from schemaforge.utils.error_handling import ErrorContext, SpecFormatError
from schemaforge.utils.logging import get_logger

logger = get_logger(__name__)

CONFIG_SECTIONS = ("project", "git", "database", "security", "token")
UI_METADATA_KEY = "_ui_metadata"


@dataclass
class ImportedSpec:
    """Graph entities (with fresh ids) and config sections read from a specification."""
    models: List[ModelWithUI] = field(default_factory=list)
    enums: List[EnumWithUI] = field(default_factory=list)
    association_tables: List[AssociationTableWithUI] = field(default_factory=list)
    config: Dict[str, Any] = field(default_factory=dict)


def _dump_position(position: Optional[Position]) -> Dict[str, float]:
    return (position or default_position()).model_dump()


class SpecSerializer:
    """Converts between a GraphState and the project specification wire format."""

    def __init__(self, fallback_position: Optional[Position] = None):
        self.fallback_position = fallback_position or default_position()

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def semantic_view(self, state: GraphState) -> Dict[str, Any]:
        """
        The `schema` section of the export: the graph without ids or positions.

        Two graphs with equal semantic views differ at most in ids and layout.
        """
        schema: Dict[str, Any] = {
            "models": [
                model.model_dump(mode="json", exclude={"id", "position"}, exclude_none=True)
                for model in state.models.values()
            ]
        }
        if state.enums:
            schema["enums"] = [
                enum_definition.model_dump(mode="json", exclude={"id", "position"}, exclude_none=True)
                for enum_definition in state.enums.values()
            ]
        if state.association_tables:
            schema["association_tables"] = [
                table.model_dump(mode="json", exclude={"id"}, exclude_none=True)
                for table in state.association_tables.values()
            ]
        return schema

    def export_spec(self, state: GraphState, config: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """
        Build the project specification for a graph.

        Args:
            state: Graph to export
            config: Configuration sections (project, git, database, security,
                token), copied verbatim; missing sections export as {}

        Returns:
            JSON-ready specification dictionary
        """
        config = config or {}
        spec: Dict[str, Any] = {
            section: copy.deepcopy(dict(config.get(section) or {})) for section in CONFIG_SECTIONS
        }
        spec["schema"] = self.semantic_view(state)
        spec[UI_METADATA_KEY] = {
            "models": [
                {"name": model.name, "position": _dump_position(model.position)}
                for model in state.models.values()
            ],
            "enums": [
                {"name": enum_definition.name, "position": _dump_position(enum_definition.position)}
                for enum_definition in state.enums.values()
            ],
        }
        logger.debug(
            f"Exported spec with {len(state.models)} models and {len(state.enums)} enums"
        )
        return spec

    def export_json(
        self, state: GraphState, config: Optional[Mapping[str, Any]] = None, indent: int = 2
    ) -> str:
        return json.dumps(self.export_spec(state, config), indent=indent)

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    def _positions_by_name(self, entries: Any) -> Dict[str, Position]:
        positions: Dict[str, Position] = {}
        if not isinstance(entries, list):
            return positions
        for raw in entries:
            try:
                entry = UIMetadataEntry.model_validate(raw)
            except ValidationError:
                logger.debug(f"Ignoring malformed layout entry: {raw!r}")
                continue
            # First entry for a name wins
            positions.setdefault(entry.name, entry.position)
        return positions

    def import_spec(self, spec: Mapping[str, Any]) -> ImportedSpec:
        """
        Rebuild graph entities from a project specification.

        Args:
            spec: Parsed specification (as produced by `export_spec`)

        Returns:
            ImportedSpec with fresh ids, positions resolved by name, and the
            config sections present in the spec

        Raises:
            SpecFormatError: The `schema` section is missing or malformed
        """
        context = ErrorContext(operation="import_spec")
        if not isinstance(spec, Mapping):
            raise SpecFormatError("Specification must be a JSON object", context)
        schema = spec.get("schema")
        if not isinstance(schema, Mapping):
            raise SpecFormatError("Specification has no 'schema' section", context)

        try:
            models = [Model.model_validate(raw) for raw in schema.get("models") or []]
            enums = [EnumDefinition.model_validate(raw) for raw in schema.get("enums") or []]
            tables = [AssociationTable.model_validate(raw) for raw in schema.get("association_tables") or []]
        except (ValidationError, TypeError) as exc:
            raise SpecFormatError(f"Malformed schema section: {exc}", context, original_exception=exc) from exc

        ui_metadata = spec.get(UI_METADATA_KEY)
        if not isinstance(ui_metadata, Mapping):
            ui_metadata = {}
        model_positions = self._positions_by_name(ui_metadata.get("models"))
        enum_positions = self._positions_by_name(ui_metadata.get("enums"))

        imported = ImportedSpec(
            models=[
                ModelWithUI.model_validate({
                    **model.model_dump(),
                    "id": new_entity_id(),
                    "position": model_positions.get(model.name, self.fallback_position).model_copy(),
                })
                for model in models
            ],
            enums=[
                EnumWithUI.model_validate({
                    **enum_definition.model_dump(),
                    "id": new_entity_id(),
                    "position": enum_positions.get(enum_definition.name, self.fallback_position).model_copy(),
                })
                for enum_definition in enums
            ],
            association_tables=[
                AssociationTableWithUI.model_validate({**table.model_dump(), "id": new_entity_id()})
                for table in tables
            ],
            config={
                section: copy.deepcopy(spec[section])
                for section in CONFIG_SECTIONS
                if section in spec
            },
        )
        logger.info(
            f"Imported spec: {len(imported.models)} models, {len(imported.enums)} enums, "
            f"{len(imported.association_tables)} association tables"
        )
        return imported

    def import_json(self, text: str) -> ImportedSpec:
        try:
            spec = json.loads(text)
        except json.JSONDecodeError as exc:
            raise SpecFormatError(
                f"Specification is not valid JSON: {exc.msg}",
                ErrorContext(operation="import_spec"),
                original_exception=exc,
            ) from exc
        return self.import_spec(spec)

    def load_into(self, store: EntityGraphStore, spec: Mapping[str, Any]) -> ImportedSpec:
        """Import a specification and replace the store's graph with it."""
        imported = self.import_spec(spec)
        store.load_graph(imported.models, imported.enums, imported.association_tables)
        return imported
