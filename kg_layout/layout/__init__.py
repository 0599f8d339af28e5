"""Layout module for automatic graph positioning.

This module provides:
- Layout engine abstraction (LayoutEngine) and the per-family registry
- Grid-accelerated force simulation and closed-form layouts
- Large-graph fallback for graphs beyond the physics budget
- Selection of family and parameters, and post-processing into the target box
"""

from kg_layout.layout.cancellation import (
    CancellationToken,
    LayoutCancelledError,
    LayoutTimeoutError,
)
from kg_layout.layout.engines import ENGINES, LayoutEngine, get_engine
from kg_layout.layout.postprocess import default_padding, fit_to_box, postprocess
from kg_layout.layout.selector import normalize_layout_name, select_layout
from kg_layout.layout.spatial_grid import SpatialGrid

__all__ = [
    "CancellationToken",
    "LayoutCancelledError",
    "LayoutTimeoutError",
    "LayoutEngine",
    "ENGINES",
    "get_engine",
    "default_padding",
    "fit_to_box",
    "postprocess",
    "normalize_layout_name",
    "select_layout",
    "SpatialGrid",
]
