"""Knowledge-graph layout engine.

Computes finite 2D positions for every node of a knowledge graph, with
physics, closed-form and large-graph layout families.

Usage:
    from kg_layout import compute_layout

    positions = compute_layout(graph, "balanced", 800, 600, seed=42)
"""

__version__ = "0.1.0"

from kg_layout.core.layout_service import (
    apply_positions_to_graph,
    compute_layout,
    compute_layout_async,
    compute_layout_with_timeout,
    run_layout,
    run_layout_async,
    run_layout_with_timeout,
)
from kg_layout.layout.cancellation import (
    CancellationToken,
    LayoutCancelledError,
    LayoutTimeoutError,
)
from kg_layout.models import GraphData, LayoutFamily, LayoutResult

__all__ = [
    "__version__",
    "compute_layout",
    "compute_layout_async",
    "compute_layout_with_timeout",
    "run_layout",
    "run_layout_async",
    "run_layout_with_timeout",
    "apply_positions_to_graph",
    "CancellationToken",
    "LayoutCancelledError",
    "LayoutTimeoutError",
    "GraphData",
    "LayoutFamily",
    "LayoutResult",
]
