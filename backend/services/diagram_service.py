"""Diagram service - renders schema diagrams for editor sessions."""

from typing import Union

from schemaforge.graph.store import GraphState
from backend.services.schema_diagram_compiler import graph_to_graphviz, render_schema_diagram

SUPPORTED_FORMATS = ("dot", "svg", "png", "pdf")
MEDIA_TYPES = {
    "dot": "text/vnd.graphviz",
    "svg": "image/svg+xml",
    "png": "image/png",
    "pdf": "application/pdf",
}


class DiagramService:
    """Generates schema diagram images."""

    async def generate_schema_diagram(
        self,
        state: GraphState,
        format: str = "svg",
        use_positions: bool = False
    ) -> Union[str, bytes]:
        """Generate a diagram for a graph.

        "dot" returns the DOT source (no Graphviz binaries needed); other
        formats are rendered by Graphviz.
        """
        if format not in SUPPORTED_FORMATS:
            raise ValueError(f"Unsupported diagram format '{format}', expected one of {SUPPORTED_FORMATS}")

        if format == "dot":
            return graph_to_graphviz(state, use_positions=use_positions).source
        return render_schema_diagram(state, format=format, use_positions=use_positions)

    @staticmethod
    def media_type(format: str) -> str:
        return MEDIA_TYPES.get(format, "application/octet-stream")
