"""Graph payload models for knowledge graphs sent to the layout engine.

This module provides Pydantic schemas that VALIDATE (not replace) the graph
payloads produced by the statement-to-graph conversion step:

    {
        "nodes": [{"id": "TP53", "name": "TP53", "type": "protein", ...}],
        "edges": [{"id": "e1", "source": "TP53", "target": "MDM2", ...}],
        "width": 800,
        "height": 600,
    }

Schemas are permissive: unknown node/edge attributes are kept so callers can
round-trip their payloads through ``apply_positions_to_graph``.

Edge endpoints arrive in two shapes depending on whether the client already
ran a force simulation (d3 replaces ids by node objects in place):
    - raw id string: ``"source": "TP53"``
    - object carrying an id: ``"source": {"id": "TP53", "x": 12.0, ...}``
Both are normalised to a plain string id.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


def _endpoint_id(value: Any) -> str:
    """Extract an endpoint id from a raw id or an object carrying ``id``."""
    if isinstance(value, str):
        return value
    if isinstance(value, dict) and "id" in value:
        return str(value["id"])
    if hasattr(value, "id"):
        return str(value.id)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    raise ValueError(f"Edge endpoint must be an id or an object with an 'id', got {type(value).__name__}")


class Point(BaseModel):
    """A 2D point as carried on input nodes."""

    x: float = Field(..., description="Horizontal coordinate")
    y: float = Field(..., description="Vertical coordinate")


class GraphNode(BaseModel):
    """A knowledge-graph entity.

    Only ``id`` is used by the layout engine. ``position`` is accepted (the
    previous layout, if any) but ignored when computing a new one.
    """

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., description="Unique node identifier")
    position: Optional[Point] = Field(
        default=None, description="Previously computed position, if any"
    )

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        """Accept numeric ids, which some upstream converters emit."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v


class GraphEdge(BaseModel):
    """A relation between two entities.

    ``source`` and ``target`` are normalised to node ids on validation.
    """

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = Field(default=None, description="Edge identifier")
    source: str = Field(..., description="Source node id")
    target: str = Field(..., description="Target node id")

    @field_validator("source", "target", mode="before")
    @classmethod
    def normalize_endpoint(cls, v: Any) -> str:
        return _endpoint_id(v)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def source_id(self) -> str:
        return self.source

    @property
    def target_id(self) -> str:
        return self.target


class GraphData(BaseModel):
    """Complete graph payload: nodes, edges and an optional target size."""

    model_config = ConfigDict(extra="allow")

    nodes: List[GraphNode] = Field(default_factory=list, description="Graph nodes")
    edges: List[GraphEdge] = Field(default_factory=list, description="Graph edges")
    width: Optional[float] = Field(default=None, description="Target canvas width")
    height: Optional[float] = Field(default=None, description="Target canvas height")

    @field_validator("nodes", "edges", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        """Treat a missing (null) node or edge list as empty."""
        return [] if v is None else v

    @classmethod
    def from_payload(cls, payload: Union["GraphData", Dict[str, Any], None]) -> "GraphData":
        """Build GraphData from a model instance, a dict, or None.

        Args:
            payload: Graph payload in any accepted form

        Returns:
            GraphData instance (empty for None)

        Raises:
            pydantic.ValidationError: If the payload is malformed
        """
        if payload is None:
            return cls()
        if isinstance(payload, cls):
            return payload
        return cls.model_validate(payload)


__all__ = [
    "Point",
    "GraphNode",
    "GraphEdge",
    "GraphData",
]
