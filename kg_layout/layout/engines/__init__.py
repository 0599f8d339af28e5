"""Layout engines registry.

Available engines:
- balanced, compact, spread, ultra-spread: grid-accelerated force simulation
- circle, grid, concentric, tree: closed-form placements
- large-graph: spiral seeding plus attraction-only refinement
"""

from typing import Union

from kg_layout.layout.engines.base import LayoutEngine, RawPositions
from kg_layout.layout.engines.deterministic import (
    CircleLayoutEngine,
    ConcentricLayoutEngine,
    GridLayoutEngine,
    TreeLayoutEngine,
)
from kg_layout.layout.engines.force import ForceDirectedEngine
from kg_layout.layout.engines.large_graph import LargeGraphEngine
from kg_layout.models.layout_metadata import LayoutFamily

# Engine registry. Engines hold no per-call state, so one instance per
# family is shared.
ENGINES = {
    LayoutFamily.BALANCED: ForceDirectedEngine(LayoutFamily.BALANCED),
    LayoutFamily.COMPACT: ForceDirectedEngine(LayoutFamily.COMPACT),
    LayoutFamily.SPREAD: ForceDirectedEngine(LayoutFamily.SPREAD),
    LayoutFamily.ULTRA_SPREAD: ForceDirectedEngine(LayoutFamily.ULTRA_SPREAD),
    LayoutFamily.CIRCLE: CircleLayoutEngine(),
    LayoutFamily.GRID: GridLayoutEngine(),
    LayoutFamily.CONCENTRIC: ConcentricLayoutEngine(),
    LayoutFamily.TREE: TreeLayoutEngine(),
    LayoutFamily.LARGE_GRAPH: LargeGraphEngine(),
}


def get_engine(family: Union[LayoutFamily, str]) -> LayoutEngine:
    """Get the layout engine for a family.

    Args:
        family: LayoutFamily or its value ('balanced', 'grid', ...)

    Returns:
        Layout engine instance

    Raises:
        ValueError: If no engine implements the family
    """
    try:
        key = LayoutFamily(family)
    except ValueError:
        key = None
    if key not in ENGINES:
        available = [f.value for f in ENGINES]
        raise ValueError(f"Unknown layout engine: {family}. Available: {available}")
    return ENGINES[key]


__all__ = [
    "LayoutEngine",
    "RawPositions",
    "ForceDirectedEngine",
    "CircleLayoutEngine",
    "GridLayoutEngine",
    "ConcentricLayoutEngine",
    "TreeLayoutEngine",
    "LargeGraphEngine",
    "ENGINES",
    "get_engine",
]
