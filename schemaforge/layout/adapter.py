"""Project the entity graph onto a node/edge view model for a canvas.

Pure functions: nothing here reads or writes a store. Edges whose target does
not resolve (unknown relationship target, unknown enum class) are dropped.
"""

from __future__ import annotations

from typing import Any, Dict, List, Literal, Optional, Sequence, Tuple

from pydantic import BaseModel, Field

from schemaforge.ir.graph_utils import find_model_by_name
from schemaforge.ir.models.spec_models import EnumWithUI, ModelWithUI, Position, default_position

Handle = Literal["top", "bottom", "left", "right"]

EDGE_TYPE = "smoothstep"
RELATIONSHIP_STROKE = "#6366f1"
ENUM_STROKE = "#a855f7"


class EdgeStyle(BaseModel):
    stroke: str
    stroke_width: int = 2
    stroke_dasharray: Optional[str] = None


class EdgeData(BaseModel):
    relationship_name: str
    source_model: str
    target_model: str
    kind: Literal["relationship", "enum"] = "relationship"


class NodeDescriptor(BaseModel):
    id: str
    type: Literal["model", "enum"]
    position: Position
    data: Dict[str, Any] = Field(default_factory=dict)


class EdgeDescriptor(BaseModel):
    id: str
    source: str
    target: str
    source_handle: Handle
    target_handle: Handle
    type: str = EDGE_TYPE
    style: EdgeStyle
    data: EdgeData


class GraphView(BaseModel):
    nodes: List[NodeDescriptor] = Field(default_factory=list)
    edges: List[EdgeDescriptor] = Field(default_factory=list)


def _xy(position: Optional[Position]) -> Tuple[float, float]:
    if position is None:
        return 0.0, 0.0
    return position.x, position.y


def best_handles(source: Optional[Position], target: Optional[Position]) -> Tuple[Handle, Handle]:
    """
    Pick the connection sides for an edge from its endpoints' relative placement.

    The dominant axis wins; an exact tie between |dx| and |dy| goes vertical,
    so two nodes at the same position connect top to bottom.

    Args:
        source: Source node position
        target: Target node position

    Returns:
        (source_handle, target_handle)
    """
    sx, sy = _xy(source)
    tx, ty = _xy(target)
    dx = tx - sx
    dy = ty - sy

    if abs(dx) > abs(dy):
        if dx > 0:
            return "right", "left"
        return "left", "right"
    if dy > 0:
        return "bottom", "top"
    return "top", "bottom"


def to_nodes(models: Sequence[ModelWithUI], enums: Sequence[EnumWithUI]) -> List[NodeDescriptor]:
    nodes = [
        NodeDescriptor(
            id=model.id,
            type="model",
            position=model.position or default_position(),
            data={"model_id": model.id, "model": model.model_dump(mode="json", exclude_none=True)},
        )
        for model in models
    ]
    nodes.extend(
        NodeDescriptor(
            id=enum_definition.id,
            type="enum",
            position=enum_definition.position or default_position(),
            data={"enum_id": enum_definition.id, "enum": enum_definition.model_dump(mode="json")},
        )
        for enum_definition in enums
    )
    return nodes


def to_edges(models: Sequence[ModelWithUI], enums: Sequence[EnumWithUI]) -> List[EdgeDescriptor]:
    """
    One edge per resolvable relationship and per column typed with a known enum.

    Args:
        models: Models in graph order
        enums: Enums in graph order

    Returns:
        Edges in model order; for each model its relationships, then its enum columns
    """
    edges: List[EdgeDescriptor] = []

    for model in models:
        for rel in model.relationships:
            target_model = find_model_by_name(models, rel.target)
            if target_model is None:
                continue
            source_handle, target_handle = best_handles(model.position, target_model.position)
            edges.append(EdgeDescriptor(
                id=f"{model.id}-{rel.name}-{target_model.id}",
                source=model.id,
                target=target_model.id,
                source_handle=source_handle,
                target_handle=target_handle,
                style=EdgeStyle(stroke=RELATIONSHIP_STROKE),
                data=EdgeData(
                    relationship_name=rel.name,
                    source_model=model.name,
                    target_model=target_model.name,
                ),
            ))

        for column in model.columns:
            if not column.type.enum_class:
                continue
            target_enum = next((e for e in enums if e.name == column.type.enum_class), None)
            if target_enum is None:
                continue
            source_handle, target_handle = best_handles(model.position, target_enum.position)
            edges.append(EdgeDescriptor(
                id=f"{model.id}-{column.name}-enum-{target_enum.id}",
                source=model.id,
                target=target_enum.id,
                source_handle=source_handle,
                target_handle=target_handle,
                style=EdgeStyle(stroke=ENUM_STROKE, stroke_dasharray="5,5"),
                data=EdgeData(
                    relationship_name=column.name,
                    source_model=model.name,
                    target_model=target_enum.name,
                    kind="enum",
                ),
            ))

    return edges


def to_graph_view(models: Sequence[ModelWithUI], enums: Sequence[EnumWithUI]) -> GraphView:
    return GraphView(nodes=to_nodes(models, enums), edges=to_edges(models, enums))
