"""Layout metadata: families, parameter sets and computed results.

This module provides schemas for:
- Node positions (x, y coordinates) and bounding boxes
- Layout families (the tagged union of algorithms the engine can run)
- LayoutConfig (the immutable parameter set chosen by the selector)
- LayoutResult (positions plus bookkeeping returned by the tool surface)

Coordinates use a top-left origin, in screen units (pixels).
"""

import hashlib
import json
import logging
import math
from enum import Enum
from typing import Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

logger = logging.getLogger(__name__)


class NodePosition(BaseModel):
    """Position of a single node in 2D layout space.

    Attributes:
        x: Horizontal coordinate
        y: Vertical coordinate
    """

    x: float = Field(..., description="Horizontal coordinate")
    y: float = Field(..., description="Vertical coordinate")

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y}


class BoundingBox(BaseModel):
    """Bounding box for an entire layout.

    Attributes:
        min_x: Minimum x coordinate
        max_x: Maximum x coordinate
        min_y: Minimum y coordinate
        max_y: Maximum y coordinate
        width: Computed width (max_x - min_x)
        height: Computed height (max_y - min_y)
    """

    min_x: float = Field(..., description="Minimum x coordinate")
    max_x: float = Field(..., description="Maximum x coordinate")
    min_y: float = Field(..., description="Minimum y coordinate")
    max_y: float = Field(..., description="Maximum y coordinate")

    @property
    def width(self) -> float:
        """Computed width of bounding box."""
        return self.max_x - self.min_x

    @property
    def height(self) -> float:
        """Computed height of bounding box."""
        return self.max_y - self.min_y

    @property
    def center(self) -> Tuple[float, float]:
        """Computed center point of bounding box."""
        return (
            (self.min_x + self.max_x) / 2,
            (self.min_y + self.max_y) / 2
        )

    @classmethod
    def from_points(cls, points: Dict[str, Tuple[float, float]]) -> "BoundingBox":
        """Compute bounding box from raw (x, y) tuples.

        Raises:
            ValueError: If points is empty
        """
        if not points:
            raise ValueError("Cannot compute bounding box from empty positions")

        x_coords = [p[0] for p in points.values()]
        y_coords = [p[1] for p in points.values()]

        return cls(
            min_x=min(x_coords),
            max_x=max(x_coords),
            min_y=min(y_coords),
            max_y=max(y_coords)
        )

    @classmethod
    def from_positions(cls, positions: Dict[str, NodePosition]) -> "BoundingBox":
        """Compute bounding box from node positions.

        Raises:
            ValueError: If positions is empty
        """
        return cls.from_points({k: (p.x, p.y) for k, p in positions.items()})

    def to_dict(self) -> Dict[str, float]:
        return {
            "min_x": self.min_x,
            "max_x": self.max_x,
            "min_y": self.min_y,
            "max_y": self.max_y,
            "width": self.width,
            "height": self.height,
        }


class LayoutFamily(str, Enum):
    """Concrete layout algorithms.

    The first eight are requestable by name; LARGE_GRAPH is only chosen by
    the selector when a graph is too big for the physics simulation.
    """

    BALANCED = "balanced"
    COMPACT = "compact"
    SPREAD = "spread"
    ULTRA_SPREAD = "ultra-spread"
    CIRCLE = "circle"
    GRID = "grid"
    CONCENTRIC = "concentric"
    TREE = "tree"
    LARGE_GRAPH = "large-graph"

    @property
    def is_simulation(self) -> bool:
        """Whether the family produces raw positions that need rescaling."""
        return self in SIMULATION_FAMILIES

    @property
    def is_deterministic(self) -> bool:
        return self in DETERMINISTIC_FAMILIES


SIMULATION_FAMILIES = frozenset({
    LayoutFamily.BALANCED,
    LayoutFamily.COMPACT,
    LayoutFamily.SPREAD,
    LayoutFamily.ULTRA_SPREAD,
    LayoutFamily.LARGE_GRAPH,
})

DETERMINISTIC_FAMILIES = frozenset({
    LayoutFamily.CIRCLE,
    LayoutFamily.GRID,
    LayoutFamily.CONCENTRIC,
    LayoutFamily.TREE,
})


class LayoutConfig(BaseModel):
    """Parameter set for one layout invocation.

    Selected once per request and never mutated afterwards.

    Attributes:
        family: Algorithm to run
        width: Canvas width the algorithm works in
        height: Canvas height the algorithm works in
        iterations: Simulation steps (refinement passes for LARGE_GRAPH)
        ideal_distance: Ideal edge length k
        gravity: Pull toward the canvas centre
        initial_temperature: Displacement cap for the first iteration
        cooling_factor: Per-iteration temperature multiplier (floored at 0.97)
        padding: Margin kept free on every side of the target box
        min_distance: Minimum node separation enforced after fitting (0 = off)
    """

    model_config = ConfigDict(frozen=True)

    family: LayoutFamily = Field(..., description="Layout algorithm")
    width: float = Field(..., gt=0, description="Canvas width")
    height: float = Field(..., gt=0, description="Canvas height")
    iterations: int = Field(default=300, ge=0, description="Simulation steps")
    ideal_distance: float = Field(default=30.0, gt=0, description="Ideal edge length k")
    gravity: float = Field(default=0.1, ge=0, description="Centering gravity")
    initial_temperature: float = Field(default=50.0, ge=0, description="Initial displacement cap")
    cooling_factor: float = Field(default=0.98, gt=0, le=1, description="Temperature decay")
    padding: float = Field(default=0.0, ge=0, description="Target box padding")
    min_distance: float = Field(default=0.0, ge=0, description="Minimum node separation")

    @property
    def center(self) -> Tuple[float, float]:
        return (self.width / 2, self.height / 2)


class LayoutPlan(BaseModel):
    """Outcome of layout selection: the family to run and its parameters."""

    model_config = ConfigDict(frozen=True)

    requested: str = Field(..., description="Layout name as requested by the caller")
    family: LayoutFamily = Field(..., description="Family actually run")
    config: LayoutConfig = Field(..., description="Parameters for the run")
    narrowed: bool = Field(
        default=False, description="True when a large graph forced a cheaper family"
    )


class LayoutResult(BaseModel):
    """Computed layout plus bookkeeping.

    Attributes:
        family: Family actually run
        requested_layout: Name the caller asked for
        positions: Dictionary of node_id -> NodePosition
        node_count: Number of nodes in the validated input
        edge_count: Number of edges kept for the layout
        dropped_edge_count: Edges dropped for referencing unknown nodes
        width: Target box width
        height: Target box height
        bounding_box: Bounding box of positions (None when empty)
        elapsed_ms: Wall-clock computation time
        etag: SHA-256 over the canonical positions
    """

    family: Optional[LayoutFamily] = Field(default=None, description="Family actually run")
    requested_layout: str = Field(default="balanced", description="Requested layout name")
    positions: Dict[str, NodePosition] = Field(
        default_factory=dict, description="Positions keyed by node ID"
    )
    node_count: int = Field(default=0, ge=0)
    edge_count: int = Field(default=0, ge=0)
    dropped_edge_count: int = Field(default=0, ge=0)
    width: float = Field(default=800.0)
    height: float = Field(default=600.0)
    bounding_box: Optional[BoundingBox] = Field(default=None)
    elapsed_ms: float = Field(default=0.0, ge=0)
    etag: Optional[str] = Field(default=None)

    @field_validator("positions")
    @classmethod
    def validate_positions_finite(
        cls, v: Dict[str, NodePosition]
    ) -> Dict[str, NodePosition]:
        """Reject NaN or infinite coordinates."""
        for node_id, pos in v.items():
            if not (math.isfinite(pos.x) and math.isfinite(pos.y)):
                raise ValueError(f"Non-finite position for node {node_id}: ({pos.x}, {pos.y})")
        return v

    def model_post_init(self, __context) -> None:
        """Compute bounding box and etag if not provided."""
        if self.bounding_box is None and self.positions:
            object.__setattr__(
                self, "bounding_box", BoundingBox.from_positions(self.positions)
            )
        if self.etag is None:
            object.__setattr__(self, "etag", self.compute_etag())

    @property
    def is_empty(self) -> bool:
        return not self.positions

    def compute_etag(self) -> str:
        """Compute SHA-256 etag from positions and family only.

        Returns:
            64-character hex string
        """
        canonical = {
            "family": self.family.value if self.family else None,
            "positions": {
                k: [round(v.x, 6), round(v.y, 6)] for k, v in sorted(self.positions.items())
            },
        }
        content = json.dumps(canonical, sort_keys=True, separators=(",", ":"))
        return hashlib.sha256(content.encode("utf-8")).hexdigest()

    def position_map(self) -> Dict[str, Dict[str, float]]:
        """Export the plain ``{id: {"x", "y"}}`` mapping."""
        return {node_id: pos.to_dict() for node_id, pos in self.positions.items()}

    @classmethod
    def empty(cls, requested_layout: str = "balanced", **kwargs) -> "LayoutResult":
        return cls(requested_layout=requested_layout, **kwargs)


__all__ = [
    "NodePosition",
    "BoundingBox",
    "LayoutFamily",
    "SIMULATION_FAMILIES",
    "DETERMINISTIC_FAMILIES",
    "LayoutConfig",
    "LayoutPlan",
    "LayoutResult",
]
