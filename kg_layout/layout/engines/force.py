"""Force-directed layout engine (Fruchterman-Reingold style).

Forces per iteration:
1. Repulsion k^2/d between nodes in the same or adjacent grid cells, cut off
   beyond 3k
2. Attraction (d/k) * 0.8 along every edge
3. Gravity toward the canvas centre, proportional to the offset
Displacement is capped by a cooling temperature. After the run, offsets from
the centroid are scaled by the aeration factor to undo the clustering that
the repulsion cutoff causes.

One engine instance serves the balanced, compact, spread and ultra-spread
families; they differ only in the LayoutConfig the selector hands over.

Simulation state (positions, per-iteration forces) lives in numpy arrays
indexed by node ordinal, allocated per call and discarded afterwards.
"""

import logging
from typing import Optional

import networkx as nx
import numpy as np

from kg_layout.converters.graph_converter import GraphConverter
from kg_layout.layout.cancellation import CancellationToken, check_cancelled
from kg_layout.layout.engines.base import LayoutEngine, RawPositions
from kg_layout.layout.spatial_grid import SpatialGrid
from kg_layout.models.layout_metadata import LayoutConfig, LayoutFamily

logger = logging.getLogger(__name__)

REPULSION_CUTOFF_FACTOR = 3.0
ATTRACTION_CONSTANT = 0.8
AERATION_FACTOR = 1.5
GRID_DIVISIONS = 10
GRID_REBUILD_INTERVAL = 5
EARLY_STOP_NODE_COUNT = 1000
MIN_COOLING_FACTOR = 0.97
SEED_MARGIN = 0.1
CLAMP_MARGIN = 0.2
# Query nodes per vectorised repulsion block; bounds peak memory.
REPULSION_CHUNK = 256


def seed_positions(n: int, config: LayoutConfig, rng: np.random.Generator) -> np.ndarray:
    """Uniform random positions inside the central part of the canvas."""
    low = (config.width * SEED_MARGIN, config.height * SEED_MARGIN)
    high = (config.width * (1 - SEED_MARGIN), config.height * (1 - SEED_MARGIN))
    return rng.uniform(low, high, size=(n, 2))


def repulsion_forces(
    pos: np.ndarray, grid: SpatialGrid, k: float, cutoff: float
) -> np.ndarray:
    """Repulsive force on every node from its grid neighbourhood.

    Each node looks up candidates around its *current* cell in ``grid``,
    which may be a few iterations old.
    """
    force = np.zeros_like(pos)
    k_sq = k * k

    for cell, members in SpatialGrid.group(pos, grid.cell_size).items():
        candidates = grid.neighborhood(cell)
        if len(candidates) == 0:
            continue
        cand_pos = pos[candidates]

        for start in range(0, len(members), REPULSION_CHUNK):
            chunk = members[start:start + REPULSION_CHUNK]
            delta = pos[chunk][:, None, :] - cand_pos[None, :, :]
            dist = np.sqrt(np.einsum("ijk,ijk->ij", delta, delta))
            dist[dist == 0] = 1.0

            active = (chunk[:, None] != candidates[None, :]) & (dist <= cutoff)
            magnitude = np.where(active, k_sq / dist, 0.0)
            force[chunk] += np.einsum("ijk,ij->ik", delta, magnitude / dist)

    return force


def attraction_forces(pos: np.ndarray, edges: np.ndarray, k: float) -> np.ndarray:
    """Spring force along each edge, equal and opposite on its endpoints."""
    force = np.zeros_like(pos)
    if len(edges) == 0:
        return force

    src, dst = edges[:, 0], edges[:, 1]
    delta = pos[dst] - pos[src]
    dist = np.sqrt(np.einsum("ij,ij->i", delta, delta))
    dist[dist == 0] = 1.0

    pull = delta * ((dist / k) * ATTRACTION_CONSTANT / dist)[:, None]
    np.add.at(force, src, pull)
    np.add.at(force, dst, -pull)
    return force


def limit_displacement(force: np.ndarray, temperature: float) -> np.ndarray:
    """Scale each force vector so its length does not exceed ``temperature``."""
    length = np.sqrt(np.einsum("ij,ij->i", force, force))
    moving = length > 0
    scale = np.zeros_like(length)
    scale[moving] = np.minimum(length[moving], temperature) / length[moving]
    return force * scale[:, None]


def aerate(pos: np.ndarray, factor: float = AERATION_FACTOR) -> np.ndarray:
    """Scale every offset from the centroid by ``factor``."""
    if len(pos) == 0:
        return pos
    centroid = pos.mean(axis=0)
    return centroid + (pos - centroid) * factor


class ForceDirectedEngine(LayoutEngine):
    """Physics simulation layout with grid-accelerated repulsion."""

    def __init__(self, family: LayoutFamily = LayoutFamily.BALANCED):
        self._family = family
        self._converter = GraphConverter()

    @property
    def family(self) -> LayoutFamily:
        return self._family

    def layout(
        self,
        graph: nx.MultiDiGraph,
        config: LayoutConfig,
        *,
        rng: Optional[np.random.Generator] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> RawPositions:
        node_ids = list(graph.nodes())
        n = len(node_ids)
        if n == 0:
            return {}
        if n == 1:
            return {node_ids[0]: config.center}

        rng = rng if rng is not None else np.random.default_rng()
        index = self._converter.node_index(graph)
        edges = self._converter.edge_index(graph, index)

        pos = seed_positions(n, config, rng)
        pos = self.simulate(pos, edges, config, cancel_token=cancel_token)
        pos = aerate(pos)

        return {node_id: (float(x), float(y)) for node_id, (x, y) in zip(node_ids, pos)}

    def simulate(
        self,
        pos: np.ndarray,
        edges: np.ndarray,
        config: LayoutConfig,
        *,
        cancel_token: Optional[CancellationToken] = None,
    ) -> np.ndarray:
        """Run the iteration loop on seeded positions.

        Args:
            pos: (n, 2) seeded positions; not modified
            edges: (m, 2) node ordinals
            config: Simulation parameters
            cancel_token: Polled every GRID_REBUILD_INTERVAL iterations

        Returns:
            Final (n, 2) positions; the last finite state if an iteration
            produced NaN or infinity

        Raises:
            LayoutCancelledError: If the token is set
        """
        n = len(pos)
        k = config.ideal_distance
        cutoff = REPULSION_CUTOFF_FACTOR * k
        cell_size = max(config.width, config.height) / GRID_DIVISIONS
        center = np.array(config.center)
        lower = np.array([-CLAMP_MARGIN * config.width, -CLAMP_MARGIN * config.height])
        upper = np.array([(1 + CLAMP_MARGIN) * config.width, (1 + CLAMP_MARGIN) * config.height])

        steps = config.iterations
        if n > EARLY_STOP_NODE_COUNT:
            steps = config.iterations // 2

        temperature = config.initial_temperature
        cooling = max(MIN_COOLING_FACTOR, config.cooling_factor)

        logger.debug(
            f"{self.name}: simulating {n} nodes, {len(edges)} edges, "
            f"{steps} steps, k={k:g}, cell={cell_size:g}"
        )

        grid: Optional[SpatialGrid] = None
        for step in range(steps):
            if step % GRID_REBUILD_INTERVAL == 0:
                check_cancelled(cancel_token, self.name, step)
                grid = SpatialGrid.build(pos, cell_size)

            with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
                force = repulsion_forces(pos, grid, k, cutoff)
                force += attraction_forces(pos, edges, k)
                force -= (pos - center) * config.gravity
                moved = pos + limit_displacement(force, temperature)

            if not np.all(np.isfinite(moved)):
                logger.warning(
                    f"{self.name}: non-finite positions at step {step}; "
                    f"keeping last finite state"
                )
                break

            pos = np.clip(moved, lower, upper)
            temperature *= cooling

        return pos


__all__ = [
    "ForceDirectedEngine",
    "seed_positions",
    "repulsion_forces",
    "attraction_forces",
    "limit_displacement",
    "aerate",
    "AERATION_FACTOR",
]
