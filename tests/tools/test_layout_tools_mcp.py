"""Tests for the layout MCP tools and server dispatch."""

import pytest

from kg_layout.tools.layout_tools import LayoutTools
from kg_layout.utils.response import error_response, is_success, success_response


GRAPH = {
    "nodes": [{"id": "TP53"}, {"id": "MDM2"}, {"id": "CDKN1A"}],
    "edges": [
        {"id": "e1", "source": "TP53", "target": "MDM2"},
        {"id": "e2", "source": "TP53", "target": "CDKN1A"},
        {"id": "e3", "source": "MDM2", "target": "ghost"},
    ],
}


class TestResponseEnvelopes:
    """Test the response helpers."""

    def test_success(self):
        response = success_response({"a": 1}, warnings=["careful"])
        assert response == {"ok": True, "data": {"a": 1}, "warnings": ["careful"]}
        assert is_success(response)

    def test_error(self):
        response = error_response("boom", code="TOOL_ERROR", details={"why": "x"})
        assert response == {
            "ok": False,
            "error": {"message": "boom", "code": "TOOL_ERROR", "details": {"why": "x"}},
        }
        assert not is_success(response)


class TestLayoutToolsMCP:
    """Tests for layout tools MCP interface."""

    @pytest.fixture
    def layout_tools(self):
        """Create layout tools instance."""
        return LayoutTools()

    def test_tools_registered(self, layout_tools):
        names = [tool.name for tool in layout_tools.get_tools()]
        assert names == ["layout_compute", "layout_families", "layout_apply"]

    def test_compute_schema(self, layout_tools):
        tool = next(t for t in layout_tools.get_tools() if t.name == "layout_compute")
        assert tool.inputSchema["required"] == ["graph"]
        assert "timeout_seconds" in tool.inputSchema["properties"]

    @pytest.mark.asyncio
    async def test_compute(self, layout_tools):
        result = await layout_tools.handle_tool("layout_compute", {
            "graph": GRAPH,
            "layout_name": "circle",
            "width": 800,
            "height": 600,
        })

        assert result["ok"] is True
        data = result["data"]
        assert data["family"] == "circle"
        assert set(data["positions"]) == {"TP53", "MDM2", "CDKN1A"}
        assert data["positions"]["TP53"] == {"x": pytest.approx(640.0), "y": pytest.approx(300.0)}
        assert data["edge_count"] == 2
        assert data["dropped_edge_count"] == 1
        assert len(result["warnings"]) == 1
        assert data["bounding_box"]["width"] > 0
        assert len(data["etag"]) == 64

    @pytest.mark.asyncio
    async def test_compute_physics_with_seed(self, layout_tools):
        args = {"graph": GRAPH, "layout_name": "équilibré", "seed": 4}
        first = await layout_tools.handle_tool("layout_compute", args)
        second = await layout_tools.handle_tool("layout_compute", args)

        assert first["data"]["family"] == "balanced"
        assert first["data"]["positions"] == second["data"]["positions"]

    @pytest.mark.asyncio
    async def test_compute_empty_graph(self, layout_tools):
        result = await layout_tools.handle_tool("layout_compute", {"graph": {"nodes": [], "edges": []}})

        assert result["ok"] is False
        assert result["error"]["code"] == "EMPTY_LAYOUT"

    @pytest.mark.asyncio
    async def test_compute_timeout(self, layout_tools):
        graph = {
            "nodes": [{"id": f"n{i}"} for i in range(400)],
            "edges": [{"source": f"n{i}", "target": f"n{(i * 7 + 3) % 400}"} for i in range(400)],
        }
        result = await layout_tools.handle_tool("layout_compute", {
            "graph": graph,
            "layout_name": "spread",
            "timeout_seconds": 0.001,
        })

        assert result["ok"] is False
        assert result["error"]["code"] == "LAYOUT_TIMEOUT"
        assert result["error"]["details"]["recommendation"] == "grid"

    @pytest.mark.asyncio
    async def test_compute_timeout_as_string(self, layout_tools):
        """A numeric string budget is honoured instead of failing the call."""
        result = await layout_tools.handle_tool("layout_compute", {
            "graph": GRAPH,
            "layout_name": "grid",
            "timeout_seconds": "10",
        })

        assert result["ok"] is True
        assert result["data"]["family"] == "grid"

    @pytest.mark.asyncio
    async def test_compute_missing_graph(self, layout_tools):
        """Missing required arguments surface as TOOL_ERROR."""
        result = await layout_tools.handle_tool("layout_compute", {})
        assert result["ok"] is False
        assert result["error"]["code"] == "TOOL_ERROR"

    @pytest.mark.asyncio
    async def test_families(self, layout_tools):
        result = await layout_tools.handle_tool("layout_families", {})

        assert result["ok"] is True
        families = {f["name"]: f for f in result["data"]["families"]}
        assert families["grid"]["cost"] == "O(n)"
        assert families["balanced"]["cost"] == "iterative"
        assert families["balanced"]["aliases"] == ["cose", "equilibré"]
        assert families["large-graph"]["requestable"] is False
        assert result["data"]["very_large_allowed"] == ["balanced", "circle", "grid"]

    @pytest.mark.asyncio
    async def test_apply(self, layout_tools):
        result = await layout_tools.handle_tool("layout_apply", {
            "graph": GRAPH,
            "positions": {"TP53": {"x": 1, "y": 2}},
        })

        assert result["ok"] is True
        assert result["data"]["applied_count"] == 1
        assert result["data"]["graph"]["nodes"][0]["position"] == {"x": 1.0, "y": 2.0}
        assert "position" not in GRAPH["nodes"][0]

    @pytest.mark.asyncio
    async def test_apply_invalid_positions(self, layout_tools):
        result = await layout_tools.handle_tool("layout_apply", {
            "graph": GRAPH,
            "positions": {"TP53": {"x": "left"}},
        })
        assert result["error"]["code"] == "TOOL_ERROR"

    @pytest.mark.asyncio
    async def test_unknown_tool(self, layout_tools):
        result = await layout_tools.handle_tool("layout_nonexistent", {})
        assert result["error"]["code"] == "UNKNOWN_TOOL"


class TestServerDispatch:
    """Test routing in the MCP server."""

    @pytest.mark.asyncio
    async def test_routes_layout_tools(self):
        from kg_layout.server import LayoutMCPServer

        server = LayoutMCPServer()
        result = await server.call_tool("layout_families", {})
        assert result["ok"] is True

        unknown = await server.call_tool("graph_export", {})
        assert unknown["error"]["code"] == "UNKNOWN_TOOL"
