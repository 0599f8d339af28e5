"""Cheap layout for graphs too big for the physics simulation.

Nodes are seeded on a widening spiral around the canvas centre, then
config.iterations attraction-only passes pull long edges shorter. There is no
repulsion, so the cost is O(n + m) per pass.

The async variant yields to the event loop before seeding and between passes
so a server stays responsive while a large layout is being computed.
"""

import asyncio
import logging
import math
from typing import Optional

import networkx as nx
import numpy as np

from kg_layout.converters.graph_converter import GraphConverter
from kg_layout.layout.cancellation import CancellationToken, check_cancelled
from kg_layout.layout.engines.base import LayoutEngine, RawPositions
from kg_layout.models.layout_metadata import LayoutConfig, LayoutFamily

logger = logging.getLogger(__name__)

SPIRAL_START_RADIUS = 150.0
SPIRAL_RADIUS_STEP = 100.0
SPIRAL_GROWTH = 1.5
LONG_EDGE_THRESHOLD = 400.0
PULL_FRACTION = 0.05
RESCALE_PADDING = 0.1


def spiral_positions(n: int, width: float, height: float) -> np.ndarray:
    """Seed n nodes on a spiral of growing rings around the canvas centre.

    The first ring holds ceil(sqrt(n) / 4) nodes at radius 150. Each time the
    running count reaches the ring size, the ring size grows by half and the
    radius by 100.
    """
    pos = np.empty((n, 2))
    if n == 0:
        return pos

    cx, cy = width / 2, height / 2
    layer_size = max(1, math.ceil(math.sqrt(n) / 4))
    radius = SPIRAL_START_RADIUS

    for placed in range(n):
        if placed >= layer_size:
            layer_size = math.ceil(layer_size * SPIRAL_GROWTH)
            radius += SPIRAL_RADIUS_STEP
        angle = 2 * math.pi * placed / layer_size
        pos[placed] = (cx + radius * math.cos(angle), cy + radius * math.sin(angle))

    return pos


def refine_pass(pos: np.ndarray, edges: np.ndarray) -> np.ndarray:
    """One attraction pass: shorten every edge longer than the threshold.

    Both endpoints of a long edge move 5% of the edge vector toward each
    other. Moves from all edges are summed from the same starting positions.
    """
    if len(edges) == 0:
        return pos

    src, dst = edges[:, 0], edges[:, 1]
    delta = pos[dst] - pos[src]
    dist = np.sqrt(np.einsum("ij,ij->i", delta, delta))
    long_edges = dist > LONG_EDGE_THRESHOLD
    if not long_edges.any():
        return pos

    move = delta[long_edges] * PULL_FRACTION
    moved = pos.copy()
    np.add.at(moved, src[long_edges], move)
    np.add.at(moved, dst[long_edges], -move)
    return moved


def rescale_into_canvas(pos: np.ndarray, width: float, height: float) -> np.ndarray:
    """Uniformly scale and translate positions into the canvas, 10% padding."""
    if len(pos) == 0:
        return pos

    lo = pos.min(axis=0)
    extent = pos.max(axis=0) - lo
    extent[extent == 0] = 1.0
    scale = min(width / extent[0], height / extent[1]) * (1 - 2 * RESCALE_PADDING)
    offset = np.array([width * RESCALE_PADDING, height * RESCALE_PADDING])
    return (pos - lo) * scale + offset


class LargeGraphEngine(LayoutEngine):
    """Spiral seeding plus attraction-only refinement."""

    def __init__(self):
        self._converter = GraphConverter()

    @property
    def family(self) -> LayoutFamily:
        return LayoutFamily.LARGE_GRAPH

    def _prepare(self, graph: nx.MultiDiGraph, config: LayoutConfig):
        index = self._converter.node_index(graph)
        edges = self._converter.edge_index(graph, index)
        pos = spiral_positions(len(index), config.width, config.height)
        logger.debug(
            f"{self.name}: seeded {len(index)} nodes on spiral, "
            f"{len(edges)} edges, {config.iterations} passes"
        )
        return list(index), pos, edges

    def _finish(self, node_ids, pos: np.ndarray, config: LayoutConfig) -> RawPositions:
        pos = rescale_into_canvas(pos, config.width, config.height)
        return {node_id: (float(x), float(y)) for node_id, (x, y) in zip(node_ids, pos)}

    def layout(
        self,
        graph: nx.MultiDiGraph,
        config: LayoutConfig,
        *,
        rng: Optional[np.random.Generator] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> RawPositions:
        if graph.number_of_nodes() == 0:
            return {}

        node_ids, pos, edges = self._prepare(graph, config)
        for step in range(config.iterations):
            check_cancelled(cancel_token, self.name, step)
            pos = refine_pass(pos, edges)
        return self._finish(node_ids, pos, config)

    async def layout_async(
        self,
        graph: nx.MultiDiGraph,
        config: LayoutConfig,
        *,
        rng: Optional[np.random.Generator] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> RawPositions:
        if graph.number_of_nodes() == 0:
            return {}

        await asyncio.sleep(0)
        node_ids, pos, edges = self._prepare(graph, config)
        for step in range(config.iterations):
            await asyncio.sleep(0)
            check_cancelled(cancel_token, self.name, step)
            pos = refine_pass(pos, edges)
        return self._finish(node_ids, pos, config)


__all__ = [
    "LargeGraphEngine",
    "spiral_positions",
    "refine_pass",
    "rescale_into_canvas",
]
