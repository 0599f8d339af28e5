"""Pydantic models for graph payloads and computed layouts."""

from .graph import GraphData, GraphEdge, GraphNode, Point
from .layout_metadata import (
    BoundingBox,
    DETERMINISTIC_FAMILIES,
    LayoutConfig,
    LayoutFamily,
    LayoutPlan,
    LayoutResult,
    NodePosition,
    SIMULATION_FAMILIES,
)

__all__ = [
    # Graph payload
    "GraphData",
    "GraphEdge",
    "GraphNode",
    "Point",

    # Layout
    "BoundingBox",
    "DETERMINISTIC_FAMILIES",
    "LayoutConfig",
    "LayoutFamily",
    "LayoutPlan",
    "LayoutResult",
    "NodePosition",
    "SIMULATION_FAMILIES",
]
