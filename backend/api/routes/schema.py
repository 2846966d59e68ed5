"""Schema editing endpoints for editor sessions."""

import logging
from typing import Dict, Any, Iterable, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.responses import Response
from pydantic import ValidationError as PydanticValidationError

from schemaforge.graph.sample_data import load_sample_data, new_enum_defaults, new_model_defaults
from schemaforge.graph.store import MutationStatus
from schemaforge.graph.synthesizer import ColumnSaveIntent, RelationshipIntent, SynthesisResult
from schemaforge.ir.models.spec_models import AssociationTable, EnumDefinition
from schemaforge.utils.error_handling import (
    ReferentialError,
    SchemaForgeError,
    SpecFormatError,
    get_error_message,
)
from backend.models.requests import (
    AssociationTableRequest,
    AssociationTableUpdateRequest,
    ColumnSaveRequest,
    EnumCreateRequest,
    EnumUpdateRequest,
    ModelCreateRequest,
    ModelUpdateRequest,
    PositionUpdateRequest,
    RelationshipRequest,
    SessionCreateRequest,
    SpecLoadRequest,
)
from backend.models.responses import (
    ProjectResponse,
    SaveResponse,
    SessionResponse,
    ValidationResponse,
)
from backend.dependencies import (
    get_conversion_service,
    get_diagram_service,
    get_project_service,
    get_session_manager,
    get_validation_service,
    get_websocket_manager,
)
from backend.services.conversion_service import ConversionService
from backend.services.diagram_service import DiagramService
from backend.services.project_service import ProjectService
from backend.services.validation_service import ValidationService
from backend.utils.session_manager import EditorSession, SessionManager
from backend.utils.websocket_manager import WebSocketManager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/sessions", tags=["schema"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _get_session(session_id: str, session_manager: SessionManager) -> EditorSession:
    session = session_manager.get_session(session_id)
    if not session:
        raise HTTPException(status_code=404, detail="Session not found")
    return session


def _require_model(session: EditorSession, model_id: str) -> None:
    if session.store.get_model(model_id) is None:
        raise HTTPException(status_code=404, detail="Model not found")


def _require_applied(status: MutationStatus, what: str) -> None:
    if status != MutationStatus.APPLIED:
        raise HTTPException(status_code=404, detail=f"{what} not found")


def _refused(error: SchemaForgeError) -> HTTPException:
    return HTTPException(status_code=422, detail=get_error_message(error))


def _session_response(
    session: EditorSession,
    conversion_service: ConversionService,
    created_id: Optional[str] = None,
    notes: Iterable[str] = ()
) -> SessionResponse:
    return SessionResponse(
        session_id=session.session_id,
        project_id=session.project_id,
        dirty=session.store.dirty,
        revision=session.revision,
        view=conversion_service.session_view(session),
        config=session.config.sections(),
        created_id=created_id,
        notes=list(notes),
    )


async def _publish(
    session: EditorSession,
    action: str,
    conversion_service: ConversionService,
    ws_manager: WebSocketManager,
    created_id: Optional[str] = None,
    notes: Iterable[str] = ()
) -> SessionResponse:
    """Build the session response and push it to the session's subscribers."""
    response = _session_response(session, conversion_service, created_id=created_id, notes=notes)
    await ws_manager.send_graph_updated(
        session.session_id,
        revision=response.revision,
        dirty=response.dirty,
        view=response.view.model_dump(mode="json"),
        action=action,
    )
    return response


def _synthesize(operation, *args, **kwargs) -> SynthesisResult:
    try:
        return operation(*args, **kwargs)
    except SchemaForgeError as e:
        raise _refused(e)


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


@router.post("", response_model=SessionResponse, status_code=201)
async def create_session(
    request: SessionCreateRequest = Body(default_factory=SessionCreateRequest),
    session_manager: SessionManager = Depends(get_session_manager),
    project_service: ProjectService = Depends(get_project_service),
    conversion_service: ConversionService = Depends(get_conversion_service)
):
    """
    Open an editor session.

    The session starts from a stored project (project_id), a specification
    (spec), the sample graph (sample_data) or empty, in that order of precedence.
    """
    if request.project_id is not None:
        try:
            session = project_service.open_project(request.project_id)
        except KeyError:
            raise HTTPException(status_code=404, detail="Project not found")
        except SpecFormatError as e:
            raise _refused(e)
    else:
        session = session_manager.create_session()
        if request.spec is not None:
            try:
                conversion_service.load_spec(session, request.spec)
            except SpecFormatError as e:
                session_manager.delete_session(session.session_id)
                raise _refused(e)
        elif request.sample_data:
            load_sample_data(session.store)

    logger.info(f"Opened session {session.session_id} (project: {session.project_id})")
    return _session_response(session, conversion_service)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    session_manager: SessionManager = Depends(get_session_manager),
    conversion_service: ConversionService = Depends(get_conversion_service)
):
    """Current graph view, dirty flag and configuration of a session."""
    session = _get_session(session_id, session_manager)
    return _session_response(session, conversion_service)


@router.delete("/{session_id}", status_code=204)
async def close_session(
    session_id: str,
    session_manager: SessionManager = Depends(get_session_manager),
    ws_manager: WebSocketManager = Depends(get_websocket_manager)
):
    """Close a session and drop its subscribers."""
    if not session_manager.delete_session(session_id):
        raise HTTPException(status_code=404, detail="Session not found")
    ws_manager.disconnect(session_id)


@router.put("/{session_id}/spec", response_model=SessionResponse)
async def load_spec(
    session_id: str,
    request: SpecLoadRequest,
    session_manager: SessionManager = Depends(get_session_manager),
    conversion_service: ConversionService = Depends(get_conversion_service),
    ws_manager: WebSocketManager = Depends(get_websocket_manager)
):
    """Replace the session's graph (and the config sections present) with a specification."""
    session = _get_session(session_id, session_manager)
    try:
        conversion_service.load_spec(session, request.spec)
    except SpecFormatError as e:
        raise _refused(e)
    return await _publish(session, "load_spec", conversion_service, ws_manager)


@router.post("/{session_id}/sample-data", response_model=SessionResponse)
async def load_sample(
    session_id: str,
    session_manager: SessionManager = Depends(get_session_manager),
    conversion_service: ConversionService = Depends(get_conversion_service),
    ws_manager: WebSocketManager = Depends(get_websocket_manager)
):
    """Replace the session's graph with the sample User/Post graph."""
    session = _get_session(session_id, session_manager)
    with session.store.batch():
        session.store.clear()
        load_sample_data(session.store)
    return await _publish(session, "load_sample_data", conversion_service, ws_manager)


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


@router.post("/{session_id}/models", response_model=SessionResponse, status_code=201)
async def add_model(
    session_id: str,
    request: ModelCreateRequest = Body(default_factory=ModelCreateRequest),
    session_manager: SessionManager = Depends(get_session_manager),
    conversion_service: ConversionService = Depends(get_conversion_service),
    ws_manager: WebSocketManager = Depends(get_websocket_manager)
):
    """Add a model; omitted fields take the toolbar defaults (Model{n} with an id primary key)."""
    session = _get_session(session_id, session_manager)
    model, position = new_model_defaults(len(session.store.models))
    updates: Dict[str, Any] = {
        key: value
        for key, value in {
            "name": request.name,
            "tablename": request.tablename,
            "columns": request.columns,
            "relationships": request.relationships or None,
        }.items()
        if value is not None
    }
    model = model.model_copy(update=updates)
    model_id = session.store.add_model(model, request.position or position)
    return await _publish(session, "add_model", conversion_service, ws_manager, created_id=model_id)


@router.patch("/{session_id}/models/{model_id}", response_model=SessionResponse)
async def update_model(
    session_id: str,
    model_id: str,
    request: ModelUpdateRequest,
    session_manager: SessionManager = Depends(get_session_manager),
    conversion_service: ConversionService = Depends(get_conversion_service),
    ws_manager: WebSocketManager = Depends(get_websocket_manager)
):
    """Update model-level fields (name, tablename, user model settings)."""
    session = _get_session(session_id, session_manager)
    status = session.store.update_model(model_id, request.model_dump(exclude_unset=True))
    _require_applied(status, "Model")
    return await _publish(session, "update_model", conversion_service, ws_manager)


@router.delete("/{session_id}/models/{model_id}", response_model=SessionResponse)
async def delete_model(
    session_id: str,
    model_id: str,
    session_manager: SessionManager = Depends(get_session_manager),
    conversion_service: ConversionService = Depends(get_conversion_service),
    ws_manager: WebSocketManager = Depends(get_websocket_manager)
):
    """Delete a model with the foreign keys and relationships pointing at it."""
    session = _get_session(session_id, session_manager)
    _require_applied(session.synthesizer.retract_model(model_id), "Model")
    return await _publish(session, "delete_model", conversion_service, ws_manager)


@router.put("/{session_id}/positions/{entity_id}", response_model=SessionResponse)
async def update_position(
    session_id: str,
    entity_id: str,
    request: PositionUpdateRequest,
    session_manager: SessionManager = Depends(get_session_manager),
    conversion_service: ConversionService = Depends(get_conversion_service),
    ws_manager: WebSocketManager = Depends(get_websocket_manager)
):
    """Move a model or enum node on the canvas."""
    session = _get_session(session_id, session_manager)
    status = session.store.update_position(entity_id, (request.x, request.y))
    _require_applied(status, "Entity")
    return await _publish(session, "update_position", conversion_service, ws_manager)


# ---------------------------------------------------------------------------
# Columns
# ---------------------------------------------------------------------------


@router.post("/{session_id}/models/{model_id}/columns", response_model=SessionResponse)
async def save_column(
    session_id: str,
    model_id: str,
    request: ColumnSaveRequest,
    session_manager: SessionManager = Depends(get_session_manager),
    conversion_service: ConversionService = Depends(get_conversion_service),
    ws_manager: WebSocketManager = Depends(get_websocket_manager)
):
    """
    Save a column (add, or replace the column named original_name).

    A foreign key on the column also declares the relationship and its
    reciprocal unless create_relationship is false.
    """
    session = _get_session(session_id, session_manager)
    _require_model(session, model_id)
    intent = ColumnSaveIntent(model_id=model_id, **request.model_dump())
    result = _synthesize(session.synthesizer.save_column, intent)
    return await _publish(session, "save_column", conversion_service, ws_manager, notes=result.skipped)


@router.patch("/{session_id}/models/{model_id}/columns/{column_name}", response_model=SessionResponse)
async def edit_column(
    session_id: str,
    model_id: str,
    column_name: str,
    updates: Dict[str, Any] = Body(...),
    session_manager: SessionManager = Depends(get_session_manager),
    conversion_service: ConversionService = Depends(get_conversion_service),
    ws_manager: WebSocketManager = Depends(get_websocket_manager)
):
    """Plain column edit; locked primary key fields are kept as they are."""
    session = _get_session(session_id, session_manager)
    _require_model(session, model_id)
    try:
        result = session.synthesizer.edit_column(model_id, column_name, updates)
    except ReferentialError as e:
        raise HTTPException(status_code=404, detail=get_error_message(e))
    except SchemaForgeError as e:
        raise _refused(e)
    except PydanticValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return await _publish(session, "edit_column", conversion_service, ws_manager, notes=result.skipped)


@router.delete("/{session_id}/models/{model_id}/columns/{column_name}", response_model=SessionResponse)
async def delete_column(
    session_id: str,
    model_id: str,
    column_name: str,
    session_manager: SessionManager = Depends(get_session_manager),
    conversion_service: ConversionService = Depends(get_conversion_service),
    ws_manager: WebSocketManager = Depends(get_websocket_manager)
):
    """Delete a column and clear the foreign keys that referenced it."""
    session = _get_session(session_id, session_manager)
    _require_applied(session.synthesizer.retract_column(model_id, column_name), "Column")
    return await _publish(session, "delete_column", conversion_service, ws_manager)


# ---------------------------------------------------------------------------
# Relationships
# ---------------------------------------------------------------------------


@router.post("/{session_id}/models/{model_id}/relationships", response_model=SessionResponse)
async def declare_relationship(
    session_id: str,
    model_id: str,
    request: RelationshipRequest,
    session_manager: SessionManager = Depends(get_session_manager),
    conversion_service: ConversionService = Depends(get_conversion_service),
    ws_manager: WebSocketManager = Depends(get_websocket_manager)
):
    """Declare a relationship, creating the foreign key column and the reciprocal."""
    session = _get_session(session_id, session_manager)
    _require_model(session, model_id)
    intent = RelationshipIntent(model_id=model_id, **request.model_dump())
    result = _synthesize(session.synthesizer.declare_relationship, intent)
    return await _publish(session, "declare_relationship", conversion_service, ws_manager, notes=result.skipped)


@router.put(
    "/{session_id}/models/{model_id}/relationships/{relationship_name}",
    response_model=SessionResponse
)
async def edit_relationship(
    session_id: str,
    model_id: str,
    relationship_name: str,
    request: RelationshipRequest,
    session_manager: SessionManager = Depends(get_session_manager),
    conversion_service: ConversionService = Depends(get_conversion_service),
    ws_manager: WebSocketManager = Depends(get_websocket_manager)
):
    """Edit a relationship in place. No foreign key column is created."""
    session = _get_session(session_id, session_manager)
    _require_model(session, model_id)
    intent = RelationshipIntent(
        model_id=model_id,
        existing_name=relationship_name,
        **request.model_dump(exclude={"create_foreign_key"}),
    )
    result = _synthesize(session.synthesizer.declare_relationship, intent)
    return await _publish(session, "edit_relationship", conversion_service, ws_manager, notes=result.skipped)


@router.delete(
    "/{session_id}/models/{model_id}/relationships/{relationship_name}",
    response_model=SessionResponse
)
async def delete_relationship(
    session_id: str,
    model_id: str,
    relationship_name: str,
    session_manager: SessionManager = Depends(get_session_manager),
    conversion_service: ConversionService = Depends(get_conversion_service),
    ws_manager: WebSocketManager = Depends(get_websocket_manager)
):
    """Delete a relationship and its reciprocal."""
    session = _get_session(session_id, session_manager)
    status = session.synthesizer.retract_relationship(model_id, relationship_name)
    _require_applied(status, "Relationship")
    return await _publish(session, "delete_relationship", conversion_service, ws_manager)


# ---------------------------------------------------------------------------
# Enums and association tables
# ---------------------------------------------------------------------------


@router.post("/{session_id}/enums", response_model=SessionResponse, status_code=201)
async def add_enum(
    session_id: str,
    request: EnumCreateRequest = Body(default_factory=EnumCreateRequest),
    session_manager: SessionManager = Depends(get_session_manager),
    conversion_service: ConversionService = Depends(get_conversion_service),
    ws_manager: WebSocketManager = Depends(get_websocket_manager)
):
    """Add an enum; omitted fields take the toolbar defaults."""
    session = _get_session(session_id, session_manager)
    enum_definition, position = new_enum_defaults(len(session.store.enums))
    updates = request.model_dump(include={"name", "values"}, exclude_none=True)
    enum_definition = EnumDefinition.model_validate({**enum_definition.model_dump(), **updates})
    enum_id = session.store.add_enum(enum_definition, request.position or position)
    return await _publish(session, "add_enum", conversion_service, ws_manager, created_id=enum_id)


@router.patch("/{session_id}/enums/{enum_id}", response_model=SessionResponse)
async def update_enum(
    session_id: str,
    enum_id: str,
    request: EnumUpdateRequest,
    session_manager: SessionManager = Depends(get_session_manager),
    conversion_service: ConversionService = Depends(get_conversion_service),
    ws_manager: WebSocketManager = Depends(get_websocket_manager)
):
    """Update an enum's name or values."""
    session = _get_session(session_id, session_manager)
    status = session.store.update_enum(enum_id, request.model_dump(exclude_unset=True))
    _require_applied(status, "Enum")
    return await _publish(session, "update_enum", conversion_service, ws_manager)


@router.delete("/{session_id}/enums/{enum_id}", response_model=SessionResponse)
async def delete_enum(
    session_id: str,
    enum_id: str,
    session_manager: SessionManager = Depends(get_session_manager),
    conversion_service: ConversionService = Depends(get_conversion_service),
    ws_manager: WebSocketManager = Depends(get_websocket_manager)
):
    """Delete an enum and clear enum_class on the columns that used it."""
    session = _get_session(session_id, session_manager)
    _require_applied(session.synthesizer.retract_enum(enum_id), "Enum")
    return await _publish(session, "delete_enum", conversion_service, ws_manager)


@router.post("/{session_id}/association-tables", response_model=SessionResponse, status_code=201)
async def add_association_table(
    session_id: str,
    request: AssociationTableRequest,
    session_manager: SessionManager = Depends(get_session_manager),
    conversion_service: ConversionService = Depends(get_conversion_service),
    ws_manager: WebSocketManager = Depends(get_websocket_manager)
):
    """Add an association table."""
    session = _get_session(session_id, session_manager)
    table_id = session.store.add_association_table(AssociationTable(**request.model_dump()))
    return await _publish(session, "add_association_table", conversion_service, ws_manager, created_id=table_id)


@router.patch("/{session_id}/association-tables/{table_id}", response_model=SessionResponse)
async def update_association_table(
    session_id: str,
    table_id: str,
    request: AssociationTableUpdateRequest,
    session_manager: SessionManager = Depends(get_session_manager),
    conversion_service: ConversionService = Depends(get_conversion_service),
    ws_manager: WebSocketManager = Depends(get_websocket_manager)
):
    """Update an association table."""
    session = _get_session(session_id, session_manager)
    status = session.store.update_association_table(table_id, request.model_dump(exclude_unset=True))
    _require_applied(status, "Association table")
    return await _publish(session, "update_association_table", conversion_service, ws_manager)


@router.delete("/{session_id}/association-tables/{table_id}", response_model=SessionResponse)
async def delete_association_table(
    session_id: str,
    table_id: str,
    session_manager: SessionManager = Depends(get_session_manager),
    conversion_service: ConversionService = Depends(get_conversion_service),
    ws_manager: WebSocketManager = Depends(get_websocket_manager)
):
    """Delete an association table."""
    session = _get_session(session_id, session_manager)
    _require_applied(session.store.delete_association_table(table_id), "Association table")
    return await _publish(session, "delete_association_table", conversion_service, ws_manager)


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@router.get("/{session_id}/config")
async def get_config(session_id: str, session_manager: SessionManager = Depends(get_session_manager)):
    """All configuration sections of a session."""
    return _get_session(session_id, session_manager).config.sections()


@router.put("/{session_id}/config/{section}")
async def update_config_section(
    session_id: str,
    section: str,
    values: Dict[str, Any] = Body(...),
    session_manager: SessionManager = Depends(get_session_manager)
):
    """Merge values into one configuration section (project, git, database, security, token)."""
    session = _get_session(session_id, session_manager)
    try:
        session.config.set_section(section, **values)
    except KeyError:
        raise HTTPException(status_code=404, detail=f"Unknown configuration section '{section}'")
    except PydanticValidationError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return session.config.sections()


@router.post("/{session_id}/config/reset")
async def reset_config(session_id: str, session_manager: SessionManager = Depends(get_session_manager)):
    """Reset every configuration section to its defaults."""
    session = _get_session(session_id, session_manager)
    session.config.reset_to_defaults()
    return session.config.sections()


# ---------------------------------------------------------------------------
# Export, validation, save and diagrams
# ---------------------------------------------------------------------------


@router.get("/{session_id}/export")
async def export_spec(
    session_id: str,
    session_manager: SessionManager = Depends(get_session_manager),
    conversion_service: ConversionService = Depends(get_conversion_service)
):
    """Project specification for the session: config sections, schema and _ui_metadata."""
    session = _get_session(session_id, session_manager)
    return conversion_service.export_session(session)


@router.get("/{session_id}/validate", response_model=ValidationResponse)
async def validate_session(
    session_id: str,
    schema_only: bool = Query(False),
    session_manager: SessionManager = Depends(get_session_manager),
    conversion_service: ConversionService = Depends(get_conversion_service),
    validation_service: ValidationService = Depends(get_validation_service)
):
    """Validate the session's exported specification."""
    session = _get_session(session_id, session_manager)
    spec = conversion_service.export_session(session)
    if schema_only:
        errors = await validation_service.validate_schema_only(spec)
    else:
        errors = await validation_service.validate_spec(spec)
    return ValidationResponse(
        valid=not errors,
        errors=errors,
        formatted=[f"{error.field}: {error.message}" for error in errors],
    )


@router.post("/{session_id}/save", response_model=SaveResponse)
async def save_session(
    session_id: str,
    session_manager: SessionManager = Depends(get_session_manager),
    project_service: ProjectService = Depends(get_project_service),
    ws_manager: WebSocketManager = Depends(get_websocket_manager)
):
    """Save the session as a project (create on first save, update afterwards)."""
    session = _get_session(session_id, session_manager)
    status, project = project_service.save_session(session)
    await ws_manager.send_session_saved(
        session_id,
        project_id=project["id"],
        message=f"Project '{project['name']}' {status}",
    )
    return SaveResponse(status=status, project=ProjectResponse(**project))


@router.get("/{session_id}/diagram")
async def get_diagram(
    session_id: str,
    format: str = Query("svg"),
    use_positions: bool = Query(False),
    session_manager: SessionManager = Depends(get_session_manager),
    diagram_service: DiagramService = Depends(get_diagram_service)
):
    """Render the session's graph with Graphviz (dot source, svg, png or pdf)."""
    session = _get_session(session_id, session_manager)
    try:
        content = await diagram_service.generate_schema_diagram(
            session.store.state,
            format=format,
            use_positions=use_positions,
        )
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return Response(content=content, media_type=diagram_service.media_type(format))
