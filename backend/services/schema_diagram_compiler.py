"""Schema Diagram Compiler - Compiles the entity graph to Graphviz diagrams.

This module converts a GraphState into Graphviz DOT and renders it as an image
(SVG, PNG, PDF).

Features:
- Model = table-shaped node listing its columns
- Primary key = underlined column name
- Foreign key column = "FK" marker
- Enum = node listing its values
- Relationship = solid edge towards the target model
- Enum column = dashed edge towards the enum
- Canvas positions are kept (neato with pinned nodes) when requested
"""

from __future__ import annotations

from html import escape
from typing import Dict, Optional

from graphviz import Digraph

from schemaforge.graph.store import GraphState
from schemaforge.ir.models.spec_models import Column, EnumWithUI, ModelWithUI
from schemaforge.layout.adapter import (
    ENUM_STROKE,
    RELATIONSHIP_STROKE,
    to_edges,
)

# Graphviz compass points for canvas handles
HANDLE_PORTS: Dict[str, str] = {"top": "n", "bottom": "s", "left": "w", "right": "e"}

# Canvas pixels per Graphviz inch when positions are pinned
POSITION_SCALE = 72.0


# ---- Helper functions ----

def _mid(model_id: str) -> str:
    """Generate model node ID."""
    return f"M_{model_id}"


def _nid(enum_id: str) -> str:
    """Generate enum node ID."""
    return f"N_{enum_id}"


def _html_underline(text: str) -> str:
    """Wrap text in HTML underline tags for Graphviz HTML-like labels.

    SVG output is most reliable for underlines; PNG may vary.
    """
    return f"<U>{text}</U>"


def _column_row(column: Column) -> str:
    name = escape(column.name)
    if column.primary_key:
        name = _html_underline(name)
    type_label = escape(column.type.name.value)
    if column.type.length:
        type_label += f"({column.type.length})"
    elif column.type.enum_class:
        type_label = escape(column.type.enum_class)
    marker = "FK" if column.foreign_key else ""
    return (
        f'<TR><TD ALIGN="LEFT">{name}</TD>'
        f'<TD ALIGN="LEFT"><FONT COLOR="#6b7280">{type_label}</FONT></TD>'
        f'<TD>{marker}</TD></TR>'
    )


def _model_label(model: ModelWithUI) -> str:
    rows = "".join(_column_row(column) for column in model.columns)
    return (
        '<<TABLE BORDER="0" CELLBORDER="1" CELLSPACING="0" CELLPADDING="4">'
        f'<TR><TD COLSPAN="3" BGCOLOR="#e0e7ff"><B>{escape(model.name)}</B>'
        f'<BR/><FONT POINT-SIZE="10">{escape(model.tablename)}</FONT></TD></TR>'
        f"{rows}</TABLE>>"
    )


def _enum_label(enum_definition: EnumWithUI) -> str:
    rows = "".join(f"<TR><TD>{escape(value)}</TD></TR>" for value in enum_definition.values)
    return (
        '<<TABLE BORDER="0" CELLBORDER="1" CELLSPACING="0" CELLPADDING="4">'
        f'<TR><TD BGCOLOR="#f3e8ff"><B>{escape(enum_definition.name)}</B>'
        f'<BR/><FONT POINT-SIZE="10">enum</FONT></TD></TR>'
        f"{rows}</TABLE>>"
    )


def _pos(x: float, y: float) -> str:
    # Graphviz y grows upwards, the canvas grows downwards
    return f"{x / POSITION_SCALE:.2f},{-y / POSITION_SCALE:.2f}!"


# ---- Main compiler ----

def graph_to_graphviz(state: GraphState, use_positions: bool = False) -> Digraph:
    """Compile a GraphState to a Graphviz Digraph.

    Args:
        state: Graph to draw
        use_positions: If True, pin nodes at their canvas positions (neato engine)

    Returns:
        Graphviz Digraph object ready for rendering
    """
    g = Digraph(
        "Schema",
        engine="neato" if use_positions else "dot",
        graph_attr={
            "rankdir": "LR",
            "nodesep": "0.6",
            "ranksep": "0.9",
            "pad": "0.25",
            "splines": "true" if use_positions else "ortho",
        },
    )
    g.attr("node", fontname="Helvetica", fontsize="12", shape="plaintext")
    g.attr("edge", fontname="Helvetica", fontsize="10")

    models = state.model_list()
    enums = state.enum_list()

    for model in models:
        kw = {}
        if use_positions:
            kw["pos"] = _pos(model.position.x, model.position.y)
        g.node(_mid(model.id), _model_label(model), **kw)

    for enum_definition in enums:
        kw = {}
        if use_positions:
            kw["pos"] = _pos(enum_definition.position.x, enum_definition.position.y)
        g.node(_nid(enum_definition.id), _enum_label(enum_definition), **kw)

    for edge in to_edges(models, enums):
        is_enum = edge.data.kind == "enum"
        head = _nid(edge.target) if is_enum else _mid(edge.target)
        edge_kw = {
            "tailport": HANDLE_PORTS[edge.source_handle],
            "headport": HANDLE_PORTS[edge.target_handle],
            "color": ENUM_STROKE if is_enum else RELATIONSHIP_STROKE,
            "penwidth": str(edge.style.stroke_width),
        }
        if is_enum:
            edge_kw["style"] = "dashed"
            edge_kw["arrowhead"] = "none"
        else:
            edge_kw["label"] = edge.data.relationship_name
        g.edge(_mid(edge.source), head, **edge_kw)

    return g


# ---- Rendering functions ----

def render_schema_diagram(
    state: GraphState,
    format: str = "svg",
    use_positions: bool = False,
    output_path: Optional[str] = None,
    cleanup: bool = True
) -> bytes:
    """Render a GraphState to image bytes.

    Args:
        state: Graph to render
        format: Output format - "svg" (recommended for underlines), "png" or "pdf"
        use_positions: Pin nodes at their canvas positions
        output_path: Optional path to save the file (without extension).
                     If None, only returns bytes without saving.
        cleanup: If True, remove intermediate .dot file after rendering

    Returns:
        Image bytes in the specified format
    """
    g = graph_to_graphviz(state, use_positions=use_positions)

    if output_path:
        result_path = g.render(output_path, format=format, cleanup=cleanup)
        with open(result_path, "rb") as f:
            return f.read()
    return g.pipe(format=format)
