"""Graph converter between layout payloads and NetworkX.

Every engine works on a networkx MultiDiGraph built here:
- node order is the caller's input order (first occurrence wins on duplicates)
- edges referencing unknown nodes are dropped, and counted in
  ``graph.graph["dropped_edges"]``
- parallel edges are kept, so degree counts every relation
"""

import logging
from copy import deepcopy
from typing import Any, Dict, Mapping, Tuple, Union

import networkx as nx
import numpy as np

from kg_layout.models.graph import GraphData

logger = logging.getLogger(__name__)


class GraphConverter:
    """Converts graph payloads to the NetworkX form consumed by layout engines."""

    def to_networkx(self, graph_data: GraphData) -> nx.MultiDiGraph:
        """Build the layout graph.

        Args:
            graph_data: Validated graph payload

        Returns:
            MultiDiGraph with one node per unique id and only resolvable edges
        """
        graph = nx.MultiDiGraph()

        duplicates = 0
        for node in graph_data.nodes:
            if node.id in graph:
                duplicates += 1
                continue
            graph.add_node(node.id)

        if duplicates:
            logger.debug(f"Ignored {duplicates} duplicate node id(s)")

        dropped = 0
        for i, edge in enumerate(graph_data.edges):
            if edge.source_id not in graph or edge.target_id not in graph:
                dropped += 1
                logger.debug(
                    f"Dropping edge {edge.id or i}: endpoint missing "
                    f"({edge.source_id} -> {edge.target_id})"
                )
                continue
            graph.add_edge(edge.source_id, edge.target_id, id=edge.id or f"e{i}")

        graph.graph["dropped_edges"] = dropped
        return graph

    def node_index(self, graph: nx.Graph) -> Dict[str, int]:
        """Map node id -> ordinal in input order."""
        return {node_id: i for i, node_id in enumerate(graph.nodes())}

    def edge_index(self, graph: nx.Graph, index: Mapping[str, int]) -> np.ndarray:
        """Edges as an (m, 2) array of node ordinals, self-loops excluded."""
        pairs = [
            (index[u], index[v])
            for u, v in graph.edges()
            if u != v
        ]
        if not pairs:
            return np.empty((0, 2), dtype=np.intp)
        return np.asarray(pairs, dtype=np.intp)


def undirected_degree(graph: nx.Graph) -> Dict[str, int]:
    """Edges touching each node, in either direction.

    This is the single degree definition used by every layout.
    """
    return {node_id: int(d) for node_id, d in graph.degree()}


def out_degree(graph: nx.DiGraph) -> Dict[str, int]:
    """Outgoing-edge count per node."""
    return {node_id: int(d) for node_id, d in graph.out_degree()}


def apply_positions_to_graph(
    graph: Union[GraphData, Dict[str, Any]],
    positions: Mapping[str, Mapping[str, float]],
) -> Dict[str, Any]:
    """Return a copy of a graph payload with computed positions applied.

    Nodes without a computed position keep their existing ``position``.

    Args:
        graph: Graph payload (model or dict)
        positions: Mapping node_id -> {"x", "y"}

    Returns:
        New payload dict; the input is not modified
    """
    if isinstance(graph, GraphData):
        payload = graph.model_dump(exclude_none=True)
    else:
        payload = deepcopy(dict(graph))

    nodes = []
    for node in payload.get("nodes") or []:
        node = dict(node)
        node_id = str(node.get("id"))
        if node_id in positions:
            pos = positions[node_id]
            node["position"] = {"x": float(pos["x"]), "y": float(pos["y"])}
        nodes.append(node)
    payload["nodes"] = nodes
    return payload


def graph_summary(graph: nx.MultiDiGraph) -> Tuple[int, int, int]:
    """(node_count, edge_count, dropped_edge_count) for logging and results."""
    return (
        graph.number_of_nodes(),
        graph.number_of_edges(),
        int(graph.graph.get("dropped_edges", 0)),
    )


__all__ = [
    "GraphConverter",
    "undirected_degree",
    "out_degree",
    "apply_positions_to_graph",
    "graph_summary",
]
