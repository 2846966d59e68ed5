"""Node/edge projection of the entity graph."""

from .adapter import (
    EdgeStyle,
    EdgeData,
    NodeDescriptor,
    EdgeDescriptor,
    GraphView,
    best_handles,
    to_nodes,
    to_edges,
    to_graph_view,
)

__all__ = [
    "EdgeStyle",
    "EdgeData",
    "NodeDescriptor",
    "EdgeDescriptor",
    "GraphView",
    "best_handles",
    "to_nodes",
    "to_edges",
    "to_graph_view",
]
