"""MCP tools for knowledge-graph layout computation.

Provides tools to:
- Compute a layout for a graph payload under a wall-clock budget
- List the available layout families, their cost and accepted aliases
- Apply computed positions back onto a graph payload
"""

import logging
from typing import Any, Dict, List

from mcp import Tool

from ..config.settings import get_setting
from ..converters.graph_converter import apply_positions_to_graph
from ..core.layout_service import TIMEOUT_RECOMMENDATION, run_layout_with_timeout
from ..layout.cancellation import LayoutTimeoutError
from ..layout.selector import LAYOUT_ALIASES, REQUESTABLE_FAMILIES, VERY_LARGE_ALLOWED
from ..models.layout_metadata import LayoutFamily, NodePosition
from ..utils.response import error_response, success_response

logger = logging.getLogger(__name__)

LAYOUT_NAMES = [family.value for family in REQUESTABLE_FAMILIES]


class LayoutTools:
    """Provides layout computation tools."""

    def get_tools(self) -> List[Tool]:
        """Return layout MCP tools."""
        return [
            Tool(
                name="layout_compute",
                description=(
                    "Compute 2D positions for every node of a knowledge graph. "
                    "Physics layouts (balanced, compact, spread, ultra-spread) are "
                    "iterative; circle, grid, concentric and tree are O(n)."
                ),
                inputSchema={
                    "type": "object",
                    "properties": {
                        "graph": {
                            "type": "object",
                            "description": "Graph payload: {nodes: [{id, ...}], edges: [{id, source, target}], width?, height?}"
                        },
                        "layout_name": {
                            "type": "string",
                            "description": f"Layout name ({', '.join(LAYOUT_NAMES)}) or a legacy alias",
                            "default": "balanced"
                        },
                        "width": {
                            "type": "number",
                            "description": "Target box width (defaults to graph width, then 800)"
                        },
                        "height": {
                            "type": "number",
                            "description": "Target box height (defaults to graph height, then 600)"
                        },
                        "seed": {
                            "type": "integer",
                            "description": "Random seed for reproducible physics layouts"
                        },
                        "min_distance": {
                            "type": "number",
                            "description": "Minimum node separation after fitting (0 disables)"
                        },
                        "timeout_seconds": {
                            "type": "number",
                            "description": "Wall-clock budget (defaults to the server setting)"
                        }
                    },
                    "required": ["graph"]
                }
            ),
            Tool(
                name="layout_families",
                description="List layout families with their cost class and accepted aliases",
                inputSchema={
                    "type": "object",
                    "properties": {}
                }
            ),
            Tool(
                name="layout_apply",
                description="Return a copy of a graph payload with computed positions applied to its nodes",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "graph": {
                            "type": "object",
                            "description": "Graph payload to update"
                        },
                        "positions": {
                            "type": "object",
                            "description": "Mapping node_id -> {x, y}, as returned by layout_compute"
                        }
                    },
                    "required": ["graph", "positions"]
                }
            ),
        ]

    async def handle_tool(self, name: str, arguments: dict) -> dict:
        """Route tool call to appropriate handler.

        Args:
            name: Tool name
            arguments: Tool arguments

        Returns:
            Standardized response
        """
        handlers = {
            "layout_compute": self._compute_layout,
            "layout_families": self._list_families,
            "layout_apply": self._apply_positions,
        }

        handler = handlers.get(name)
        if not handler:
            return error_response(f"Unknown layout tool: {name}", code="UNKNOWN_TOOL")

        try:
            return await handler(arguments or {})
        except Exception as e:
            logger.error(f"Error in {name}: {e}", exc_info=True)
            return error_response(str(e), code="TOOL_ERROR")

    async def _compute_layout(self, args: dict) -> dict:
        """Compute a layout for the supplied graph."""
        graph = args["graph"]
        layout_name = args.get("layout_name", "balanced")

        try:
            result = await run_layout_with_timeout(
                graph,
                layout_name,
                args.get("width"),
                args.get("height"),
                seed=args.get("seed"),
                min_distance=args.get("min_distance"),
                timeout=args.get("timeout_seconds"),
            )
        except LayoutTimeoutError as e:
            return error_response(
                str(e),
                code="LAYOUT_TIMEOUT",
                details={
                    "layout_name": e.layout_name,
                    "timeout_seconds": e.timeout,
                    "recommendation": e.recommendation,
                },
            )

        if result.is_empty:
            return error_response(
                "No positions computed: the graph is empty or invalid",
                code="EMPTY_LAYOUT",
                details={"recommendation": TIMEOUT_RECOMMENDATION},
            )

        warnings = []
        if result.dropped_edge_count:
            warnings.append(
                f"{result.dropped_edge_count} edge(s) referenced unknown nodes and were ignored"
            )

        return success_response({
            "family": result.family.value,
            "requested_layout": result.requested_layout,
            "positions": result.position_map(),
            "node_count": result.node_count,
            "edge_count": result.edge_count,
            "dropped_edge_count": result.dropped_edge_count,
            "width": result.width,
            "height": result.height,
            "bounding_box": result.bounding_box.to_dict() if result.bounding_box else None,
            "elapsed_ms": round(result.elapsed_ms, 2),
            "etag": result.etag,
        }, warnings=warnings)

    async def _list_families(self, args: dict) -> dict:
        """Describe every family the engine can run."""
        families = []
        for family in LayoutFamily:
            families.append({
                "name": family.value,
                "cost": "iterative" if family.is_simulation else "O(n)",
                "requestable": family in REQUESTABLE_FAMILIES,
                "aliases": sorted(
                    alias for alias, target in LAYOUT_ALIASES.items() if target is family
                ),
            })

        return success_response({
            "families": families,
            "default": LayoutFamily.BALANCED.value,
            "very_large_threshold": get_setting('very_large_graph_threshold'),
            "very_large_allowed": sorted(f.value for f in VERY_LARGE_ALLOWED),
        })

    async def _apply_positions(self, args: dict) -> dict:
        """Apply a position map to a graph payload."""
        graph = args["graph"]
        positions: Dict[str, Any] = args["positions"] or {}

        # Validates each entry and rejects non-numeric coordinates.
        checked = {
            str(node_id): NodePosition.model_validate(pos).to_dict()
            for node_id, pos in positions.items()
        }
        updated = apply_positions_to_graph(graph, checked)

        applied = sum(1 for node in updated.get("nodes", []) if str(node.get("id")) in checked)
        return success_response({
            "graph": updated,
            "applied_count": applied,
        })
