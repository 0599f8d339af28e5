"""Layout selection: map a requested name and graph size to a LayoutPlan.

Selection is a pure function of (layout_name, node_count, width, height).
Physics families get a working canvas and parameters from a two-band table
(up to 1000 nodes / more than 1000 nodes). Graphs above the very-large
threshold are restricted to balanced, grid and circle, and balanced is
served by the large-graph fallback.
"""

import logging
from typing import Dict, NamedTuple, Optional, Tuple

from kg_layout.config.settings import get_setting
from kg_layout.layout.postprocess import default_padding
from kg_layout.models.layout_metadata import LayoutConfig, LayoutFamily, LayoutPlan

logger = logging.getLogger(__name__)

DEFAULT_FAMILY = LayoutFamily.BALANCED
LARGE_BAND_NODE_COUNT = 1000
COOLING_FACTOR = 0.98
TEMPERATURE_FACTOR = 0.05

# Names used by earlier clients, mapped to canonical families.
LAYOUT_ALIASES: Dict[str, LayoutFamily] = {
    "equilibré": LayoutFamily.BALANCED,
    "cose": LayoutFamily.BALANCED,
    "aéré": LayoutFamily.SPREAD,
    "ultra-dispersé": LayoutFamily.ULTRA_SPREAD,
    "breadthfirst": LayoutFamily.TREE,
    "circular": LayoutFamily.CIRCLE,
}

REQUESTABLE_FAMILIES = tuple(f for f in LayoutFamily if f is not LayoutFamily.LARGE_GRAPH)

VERY_LARGE_ALLOWED = frozenset({
    LayoutFamily.BALANCED,
    LayoutFamily.GRID,
    LayoutFamily.CIRCLE,
})


class PhysicsProfile(NamedTuple):
    """Physics parameters for one family: (up to 1000 nodes, more than 1000)."""

    ideal_distance: Tuple[float, float]
    gravity: Tuple[float, float]
    canvas: Tuple[Tuple[float, float], Tuple[float, float]]


PHYSICS_PROFILES: Dict[LayoutFamily, PhysicsProfile] = {
    LayoutFamily.BALANCED: PhysicsProfile(
        ideal_distance=(280, 180), gravity=(0.06, 0.12), canvas=((5000, 3000), (6000, 3600))
    ),
    LayoutFamily.COMPACT: PhysicsProfile(
        ideal_distance=(150, 120), gravity=(0.15, 0.20), canvas=((2800, 1800), (3500, 2500))
    ),
    LayoutFamily.SPREAD: PhysicsProfile(
        ideal_distance=(500, 400), gravity=(0.02, 0.04), canvas=((7000, 4000), (8000, 5000))
    ),
    LayoutFamily.ULTRA_SPREAD: PhysicsProfile(
        ideal_distance=(700, 600), gravity=(0.01, 0.02), canvas=((10000, 6000), (12000, 7500))
    ),
}


def normalize_layout_name(layout_name: Optional[str]) -> LayoutFamily:
    """Resolve a requested name (canonical or alias) to a family.

    Matching ignores case and surrounding whitespace. Unknown, empty and
    internal-only names resolve to balanced.
    """
    if not isinstance(layout_name, str):
        return DEFAULT_FAMILY

    key = layout_name.strip().lower()
    if key in LAYOUT_ALIASES:
        return LAYOUT_ALIASES[key]
    for family in REQUESTABLE_FAMILIES:
        if family.value == key:
            return family

    if key:
        logger.debug(f"Unknown layout name {layout_name!r}, using {DEFAULT_FAMILY.value}")
    return DEFAULT_FAMILY


def iterations_for(node_count: int) -> int:
    """Simulation steps: 300 up to 500 nodes, 200 up to 1000, 100 beyond."""
    if node_count <= 500:
        return 300
    if node_count <= LARGE_BAND_NODE_COUNT:
        return 200
    return 100


def very_large_canvas(node_count: int) -> Tuple[float, float]:
    width = max(6000, min(12000, node_count))
    height = max(4000, min(9000, node_count * 0.8))
    return float(width), float(height)


def _physics_config(
    family: LayoutFamily, node_count: int, padding: float, min_distance: float
) -> LayoutConfig:
    profile = PHYSICS_PROFILES[family]
    band = 1 if node_count > LARGE_BAND_NODE_COUNT else 0
    canvas_w, canvas_h = profile.canvas[band]
    return LayoutConfig(
        family=family,
        width=canvas_w,
        height=canvas_h,
        iterations=iterations_for(node_count),
        ideal_distance=profile.ideal_distance[band],
        gravity=profile.gravity[band],
        initial_temperature=TEMPERATURE_FACTOR * min(canvas_w, canvas_h),
        cooling_factor=COOLING_FACTOR,
        padding=padding,
        min_distance=min_distance,
    )


def _large_graph_config(node_count: int, padding: float, min_distance: float) -> LayoutConfig:
    profile = PHYSICS_PROFILES[LayoutFamily.BALANCED]
    canvas_w, canvas_h = very_large_canvas(node_count)
    return LayoutConfig(
        family=LayoutFamily.LARGE_GRAPH,
        width=canvas_w,
        height=canvas_h,
        iterations=min(50, max(20, 10000 // max(node_count, 1))),
        ideal_distance=profile.ideal_distance[1],
        gravity=profile.gravity[1],
        initial_temperature=TEMPERATURE_FACTOR * min(canvas_w, canvas_h),
        cooling_factor=COOLING_FACTOR,
        padding=padding,
        min_distance=min_distance,
    )


def select_layout(
    layout_name: Optional[str],
    node_count: int,
    width: float = 800.0,
    height: float = 600.0,
    *,
    min_distance: float = 0.0,
    very_large_threshold: Optional[int] = None,
) -> LayoutPlan:
    """Choose the family and parameters for a layout request.

    Args:
        layout_name: Requested name (canonical, alias, or anything else)
        node_count: Number of nodes in the validated graph
        width: Target box width
        height: Target box height
        min_distance: Minimum node separation to enforce after fitting
        very_large_threshold: Node count above which the large-graph rules
            apply (defaults to the 'very_large_graph_threshold' setting)

    Returns:
        LayoutPlan with an immutable LayoutConfig
    """
    if very_large_threshold is None:
        very_large_threshold = get_setting('very_large_graph_threshold')

    requested = layout_name if isinstance(layout_name, str) else ""
    family = normalize_layout_name(layout_name)
    padding = default_padding(width, height)

    narrowed = False
    if node_count > very_large_threshold:
        if family not in VERY_LARGE_ALLOWED:
            logger.info(
                f"{node_count} nodes exceeds {very_large_threshold}: "
                f"'{family.value}' replaced by '{DEFAULT_FAMILY.value}'"
            )
            family = DEFAULT_FAMILY
            narrowed = True
        if family is LayoutFamily.BALANCED:
            config = _large_graph_config(node_count, padding, min_distance)
            return LayoutPlan(
                requested=requested, family=config.family, config=config, narrowed=True
            )

    if family in PHYSICS_PROFILES:
        config = _physics_config(family, node_count, padding, min_distance)
    else:
        config = LayoutConfig(
            family=family,
            width=width,
            height=height,
            iterations=0,
            padding=padding,
            min_distance=min_distance,
        )

    return LayoutPlan(requested=requested, family=family, config=config, narrowed=narrowed)


__all__ = [
    "LAYOUT_ALIASES",
    "REQUESTABLE_FAMILIES",
    "PHYSICS_PROFILES",
    "VERY_LARGE_ALLOWED",
    "normalize_layout_name",
    "iterations_for",
    "very_large_canvas",
    "select_layout",
]
