"""Closed-form layouts: circle, grid, concentric rings, BFS tree.

All four are pure functions of (graph, width, height, padding): no
randomness and no iteration count. They place nodes directly inside the
padded target box, so their output is final and is not rescaled.

A single node is always placed at the box centre.
"""

import logging
import math
from typing import List, Optional

import networkx as nx
import numpy as np

from kg_layout.converters.graph_converter import out_degree, undirected_degree
from kg_layout.layout.cancellation import CancellationToken
from kg_layout.layout.engines.base import LayoutEngine, RawPositions
from kg_layout.models.layout_metadata import LayoutConfig, LayoutFamily

logger = logging.getLogger(__name__)

# Radius of the circle (and outermost ring) as a share of min(width, height).
RADIUS_FACTOR = 0.4
MAX_CONCENTRIC_LEVELS = 5


class DeterministicLayoutEngine(LayoutEngine):
    """Shared handling of trivial graphs for the closed-form layouts."""

    def layout(
        self,
        graph: nx.MultiDiGraph,
        config: LayoutConfig,
        *,
        rng: Optional[np.random.Generator] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> RawPositions:
        node_ids = list(graph.nodes())
        if not node_ids:
            return {}
        if len(node_ids) == 1:
            return {node_ids[0]: config.center}
        return self.place(graph, node_ids, config)

    def place(
        self, graph: nx.MultiDiGraph, node_ids: List[str], config: LayoutConfig
    ) -> RawPositions:
        """Place two or more nodes."""
        raise NotImplementedError


class CircleLayoutEngine(DeterministicLayoutEngine):
    """Node i of n at angle 2*pi*i/n on a circle of radius 0.4*min(W, H)."""

    @property
    def family(self) -> LayoutFamily:
        return LayoutFamily.CIRCLE

    def place(self, graph, node_ids, config):
        n = len(node_ids)
        cx, cy = config.center
        radius = RADIUS_FACTOR * min(config.width, config.height)

        positions = {}
        for i, node_id in enumerate(node_ids):
            angle = 2 * math.pi * i / n
            positions[node_id] = (
                cx + radius * math.cos(angle),
                cy + radius * math.sin(angle),
            )
        return positions


class GridLayoutEngine(DeterministicLayoutEngine):
    """Row-major placement on ceil(sqrt(n)) columns with uniform spacing.

    Node index i sits at row i // cols, column i % cols. Spacing is the
    largest value that lets the whole block fit the padded box; the block is
    centred.
    """

    @property
    def family(self) -> LayoutFamily:
        return LayoutFamily.GRID

    def place(self, graph, node_ids, config):
        n = len(node_ids)
        cols = math.ceil(math.sqrt(n))
        rows = math.ceil(n / cols)

        usable_w = max(config.width - 2 * config.padding, 0.0)
        usable_h = max(config.height - 2 * config.padding, 0.0)

        candidates = []
        if cols > 1:
            candidates.append(usable_w / (cols - 1))
        if rows > 1:
            candidates.append(usable_h / (rows - 1))
        spacing = min(candidates)

        x0 = (config.width - spacing * (cols - 1)) / 2
        y0 = (config.height - spacing * (rows - 1)) / 2

        positions = {}
        for i, node_id in enumerate(node_ids):
            row, col = divmod(i, cols)
            positions[node_id] = (x0 + col * spacing, y0 + row * spacing)
        return positions


class ConcentricLayoutEngine(DeterministicLayoutEngine):
    """Rings ranked by degree: the best-connected nodes sit nearest the centre.

    Nodes are sorted by undirected degree (descending, stable on input
    order) and cut into min(5, ceil(sqrt(n/2))) levels of equal size. Level L
    (1-based) has radius L/levels of the outer radius; nodes on a level are
    evenly spaced in angle.
    """

    @property
    def family(self) -> LayoutFamily:
        return LayoutFamily.CONCENTRIC

    def place(self, graph, node_ids, config):
        n = len(node_ids)
        degree = undirected_degree(graph)
        ranked = sorted(node_ids, key=lambda node_id: -degree[node_id])

        levels = min(MAX_CONCENTRIC_LEVELS, math.ceil(math.sqrt(n / 2)))
        per_level = math.ceil(n / levels)
        outer_radius = RADIUS_FACTOR * min(config.width, config.height)
        cx, cy = config.center

        positions = {}
        for rank, node_id in enumerate(ranked):
            level = rank // per_level + 1
            slot = rank % per_level
            on_level = min(per_level, n - (level - 1) * per_level)

            radius = outer_radius * level / levels
            angle = 2 * math.pi * slot / on_level
            positions[node_id] = (
                cx + radius * math.cos(angle),
                cy + radius * math.sin(angle),
            )
        return positions


class TreeLayoutEngine(DeterministicLayoutEngine):
    """Breadth-first levels from the node with most outgoing edges.

    The traversal ignores edge direction. Nodes the root cannot reach share
    one extra level below the deepest reached one. Within a level nodes are
    spread evenly along x; y grows with the level index.
    """

    @property
    def family(self) -> LayoutFamily:
        return LayoutFamily.TREE

    def choose_root(self, graph: nx.MultiDiGraph, node_ids: List[str]) -> str:
        """Max out-degree; ties go to the higher undirected degree, then input order."""
        out = out_degree(graph)
        degree = undirected_degree(graph)
        return max(node_ids, key=lambda node_id: (out[node_id], degree[node_id]))

    def assign_levels(self, graph: nx.MultiDiGraph, node_ids: List[str]) -> List[List[str]]:
        """Node ids grouped by BFS level, unreached nodes last."""
        root = self.choose_root(graph, node_ids)
        undirected = graph.to_undirected(as_view=True)

        layers = [list(layer) for layer in nx.bfs_layers(undirected, root)]
        reached = {node_id for layer in layers for node_id in layer}
        unreached = [node_id for node_id in node_ids if node_id not in reached]
        if unreached:
            logger.debug(f"tree: {len(unreached)} node(s) unreachable from root {root}")
            layers.append(unreached)
        return layers

    def place(self, graph, node_ids, config):
        layers = self.assign_levels(graph, node_ids)

        usable_w = max(config.width - 2 * config.padding, 0.0)
        usable_h = max(config.height - 2 * config.padding, 0.0)
        left = (config.width - usable_w) / 2
        top = (config.height - usable_h) / 2

        positions = {}
        for level, members in enumerate(layers):
            if len(layers) > 1:
                y = top + usable_h * level / (len(layers) - 1)
            else:
                y = config.height / 2
            step = usable_w / len(members)
            for i, node_id in enumerate(members):
                positions[node_id] = (left + step * (i + 0.5), y)
        return positions


__all__ = [
    "DeterministicLayoutEngine",
    "CircleLayoutEngine",
    "GridLayoutEngine",
    "ConcentricLayoutEngine",
    "TreeLayoutEngine",
    "RADIUS_FACTOR",
]
