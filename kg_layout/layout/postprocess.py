"""Post-processing of raw simulation output into the target box.

Physics and large-graph engines work on a large internal canvas. Their raw
positions are fitted into the caller's box (uniform scale, centred), the
optional spacing repair is run, and the result is clamped to the padded box.
Deterministic layouts already place nodes inside the padded box and skip
this step.
"""

import logging
import math
from typing import Optional

import numpy as np

from kg_layout.layout.engines.base import RawPositions
from kg_layout.layout.spatial_grid import SpatialGrid

logger = logging.getLogger(__name__)

PADDING_FACTOR = 0.1
MIN_DISTANCE_ITERATIONS = 5
REPAIR_CHUNK = 256
# Golden-ratio angle step; gives coincident pairs well-spread push directions.
_GOLDEN_TURN = 0.6180339887498949


def default_padding(width: float, height: float) -> float:
    """Margin kept free around a target box: 10% of its shorter side."""
    return PADDING_FACTOR * min(width, height)


def _to_array(positions: RawPositions):
    node_ids = list(positions)
    pts = np.array([positions[node_id] for node_id in node_ids], dtype=float).reshape(-1, 2)
    return node_ids, pts


def _to_positions(node_ids, pts: np.ndarray) -> RawPositions:
    return {node_id: (float(x), float(y)) for node_id, (x, y) in zip(node_ids, pts)}


def fit_to_box(
    positions: RawPositions, width: float, height: float, padding: float
) -> RawPositions:
    """Uniformly scale and centre positions into the padded box.

    Axes with zero extent are not used to derive the scale. If both are
    degenerate (all points coincide) positions are only recentred.
    Fitting an already fitted layout to the same box leaves it unchanged.

    Args:
        positions: Mapping node_id -> (x, y)
        width: Target box width
        height: Target box height
        padding: Margin on each side

    Returns:
        New mapping node_id -> (x, y)
    """
    if not positions:
        return {}

    node_ids, pts = _to_array(positions)
    lo = pts.min(axis=0)
    hi = pts.max(axis=0)
    extent = hi - lo
    usable = np.maximum([width - 2 * padding, height - 2 * padding], 0.0)

    scales = [usable[axis] / extent[axis] for axis in (0, 1) if extent[axis] > 0]
    scale = min(scales) if scales else 1.0

    box_center = np.array([width / 2, height / 2])
    fitted = (pts - (lo + hi) / 2) * scale + box_center
    return _to_positions(node_ids, fitted)


def _push_direction(i: np.ndarray, j: np.ndarray) -> np.ndarray:
    angle = 2 * math.pi * np.mod((i + 1) * (j + 1) * _GOLDEN_TURN, 1.0)
    return np.stack([np.cos(angle), np.sin(angle)], axis=-1)


def reachable_distance(n: int, width: float, height: float, padding: float) -> float:
    """Largest spacing ``n`` nodes can all keep inside the padded box."""
    usable_w = max(width - 2 * padding, 0.0)
    usable_h = max(height - 2 * padding, 0.0)
    if n < 2:
        return math.inf
    return math.sqrt(usable_w * usable_h / n)


def enforce_min_distance(
    positions: RawPositions,
    min_distance: float,
    iterations: int = MIN_DISTANCE_ITERATIONS,
) -> RawPositions:
    """Push apart node pairs closer than ``min_distance``.

    Each pass finds close pairs through a SpatialGrid with cell size
    ``min_distance`` and moves both nodes of a pair half the deficit apart
    along their connecting vector. Coincident pairs get a synthetic
    direction. Stops early once no pair is too close.

    Cell members are compared against their neighbourhood in blocks of
    REPAIR_CHUNK rows, so memory stays bounded when a cell is crowded.
    """
    if not positions or min_distance <= 0:
        return dict(positions)

    node_ids, pts = _to_array(positions)

    for step in range(iterations):
        grid = SpatialGrid.build(pts, min_distance)
        shift = np.zeros_like(pts)
        close_pairs = 0

        for cell, members in grid.buckets.items():
            candidates = grid.neighborhood(cell)
            for start in range(0, len(members), REPAIR_CHUNK):
                block = members[start:start + REPAIR_CHUNK]
                delta = pts[block][:, None, :] - pts[candidates][None, :, :]
                dist = np.sqrt(np.einsum("ijk,ijk->ij", delta, delta))

                close = (block[:, None] < candidates[None, :]) & (dist < min_distance)
                if not close.any():
                    continue

                rows, cols = np.nonzero(close)
                i, j = block[rows], candidates[cols]
                d = dist[rows, cols]
                unit = np.empty((len(d), 2))
                apart = d > 0
                unit[apart] = delta[rows[apart], cols[apart]] / d[apart, None]
                unit[~apart] = _push_direction(i[~apart], j[~apart])

                push = unit * ((min_distance - d) / 2)[:, None]
                np.add.at(shift, i, push)
                np.add.at(shift, j, -push)
                close_pairs += len(d)

        if close_pairs == 0:
            break
        logger.debug(f"min-distance pass {step}: separated {close_pairs} pair(s)")
        pts = pts + shift

    return _to_positions(node_ids, pts)


def clamp_to_box(
    positions: RawPositions, width: float, height: float, padding: float
) -> RawPositions:
    """Clip every position into the padded box."""
    if not positions:
        return {}

    node_ids, pts = _to_array(positions)
    pad_x = min(padding, width / 2)
    pad_y = min(padding, height / 2)
    clipped = np.clip(pts, [pad_x, pad_y], [width - pad_x, height - pad_y])
    return _to_positions(node_ids, clipped)


def postprocess(
    positions: RawPositions,
    width: float,
    height: float,
    padding: Optional[float] = None,
    min_distance: float = 0.0,
) -> RawPositions:
    """Fit, optionally repair spacing, then clamp to the padded box."""
    if padding is None:
        padding = default_padding(width, height)

    result = fit_to_box(positions, width, height, padding)
    if min_distance > 0:
        reachable = reachable_distance(len(result), width, height, padding)
        if min_distance > reachable:
            logger.warning(
                f"min_distance {min_distance:g} cannot hold for {len(result)} nodes "
                f"in a {width:g}x{height:g} box; using {reachable:g}"
            )
            min_distance = reachable
        result = enforce_min_distance(result, min_distance)
    return clamp_to_box(result, width, height, padding)


__all__ = [
    "default_padding",
    "fit_to_box",
    "enforce_min_distance",
    "reachable_distance",
    "clamp_to_box",
    "postprocess",
]
