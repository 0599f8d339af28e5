"""Spatial bucket index over node positions.

Instead of checking all N*(N-1)/2 node pairs for repulsion, nodes are binned
into square cells and only pairs in the same or adjacent cells are examined.

A SpatialGrid is an immutable value: ``SpatialGrid.build`` returns a fresh
grid from a snapshot of positions, and callers rebuild rather than mutate it.
Cells are keyed by integer (cx, cy) coordinates; buckets hold node ordinals
(row indices into the caller's position array).
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Tuple

import numpy as np

Cell = Tuple[int, int]

_EMPTY = np.empty(0, dtype=np.intp)

NEIGHBOR_OFFSETS: Tuple[Cell, ...] = tuple(
    (dx, dy) for dx in (-1, 0, 1) for dy in (-1, 0, 1)
)


@dataclass(frozen=True)
class SpatialGrid:
    """Immutable cell -> node-ordinal index."""

    cell_size: float
    buckets: Mapping[Cell, np.ndarray]

    @classmethod
    def build(cls, points: np.ndarray, cell_size: float) -> "SpatialGrid":
        """Bin an (n, 2) array of finite positions into cells.

        Args:
            points: Node positions, one row per node
            cell_size: Side length of a square cell (must be > 0)

        Returns:
            New SpatialGrid

        Raises:
            ValueError: If cell_size is not positive
        """
        if not cell_size > 0:
            raise ValueError(f"cell_size must be positive, got {cell_size}")

        buckets = cls.group(points, cell_size)
        return cls(cell_size=float(cell_size), buckets=MappingProxyType(buckets))

    @staticmethod
    def cells_of(points: np.ndarray, cell_size: float) -> np.ndarray:
        """Integer cell coordinates for each row of ``points``."""
        return np.floor(np.asarray(points, dtype=float) / cell_size).astype(np.int64)

    @classmethod
    def group(cls, points: np.ndarray, cell_size: float) -> Dict[Cell, np.ndarray]:
        """Group row ordinals of ``points`` by the cell they fall in.

        Ordinals within a cell keep ascending order.
        """
        points = np.asarray(points, dtype=float).reshape(-1, 2)
        if len(points) == 0:
            return {}

        keys = cls.cells_of(points, cell_size)
        uniq, inverse = np.unique(keys, axis=0, return_inverse=True)
        inverse = np.asarray(inverse).reshape(-1)
        order = np.argsort(inverse, kind="stable")
        counts = np.bincount(inverse, minlength=len(uniq))
        members = np.split(order, np.cumsum(counts)[:-1])

        return {
            (int(cx), int(cy)): idx
            for (cx, cy), idx in zip(uniq, members)
        }

    def cell_of(self, x: float, y: float) -> Cell:
        return (int(np.floor(x / self.cell_size)), int(np.floor(y / self.cell_size)))

    def bucket(self, cell: Cell) -> np.ndarray:
        return self.buckets.get(cell, _EMPTY)

    def neighborhood(self, cell: Cell) -> np.ndarray:
        """Ordinals bucketed in ``cell`` and its 8 neighbours."""
        cx, cy = cell
        parts = [
            self.buckets[(cx + dx, cy + dy)]
            for dx, dy in NEIGHBOR_OFFSETS
            if (cx + dx, cy + dy) in self.buckets
        ]
        if not parts:
            return _EMPTY
        return np.concatenate(parts)

    def occupied_cells(self) -> Iterator[Cell]:
        return iter(self.buckets)

    def __len__(self) -> int:
        return len(self.buckets)


__all__ = ["SpatialGrid", "Cell", "NEIGHBOR_OFFSETS"]
