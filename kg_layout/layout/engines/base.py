"""Base layout engine protocol.

Defines the interface that all layout engines must implement.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple

import networkx as nx
import numpy as np

from kg_layout.layout.cancellation import CancellationToken
from kg_layout.models.layout_metadata import LayoutConfig, LayoutFamily

RawPositions = Dict[str, Tuple[float, float]]


class LayoutEngine(ABC):
    """Abstract base class for layout engines.

    Layout engines convert a prepared graph (a networkx MultiDiGraph whose
    node order is the caller's input order and whose edges all reference
    known nodes) into raw node positions.
    """

    @property
    @abstractmethod
    def family(self) -> LayoutFamily:
        """Family this engine implements."""
        ...

    @property
    def name(self) -> str:
        return self.family.value

    @abstractmethod
    def layout(
        self,
        graph: nx.MultiDiGraph,
        config: LayoutConfig,
        *,
        rng: Optional[np.random.Generator] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> RawPositions:
        """Compute positions for a graph.

        Args:
            graph: Prepared graph
            config: Parameters chosen by the selector
            rng: Random source for engines that seed randomly
            cancel_token: Optional cooperative cancellation flag

        Returns:
            Mapping node_id -> (x, y)

        Raises:
            LayoutCancelledError: If the token is set while running
        """
        ...

    async def layout_async(
        self,
        graph: nx.MultiDiGraph,
        config: LayoutConfig,
        *,
        rng: Optional[np.random.Generator] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> RawPositions:
        """Asynchronous variant; engines that need to yield override this."""
        return self.layout(graph, config, rng=rng, cancel_token=cancel_token)
