"""Tests for circle, grid, concentric and tree layouts."""

import math

import pytest

from kg_layout.converters.graph_converter import GraphConverter
from kg_layout.layout.engines.deterministic import (
    CircleLayoutEngine,
    ConcentricLayoutEngine,
    GridLayoutEngine,
    TreeLayoutEngine,
)
from kg_layout.models.graph import GraphData
from kg_layout.models.layout_metadata import LayoutConfig, LayoutFamily


def build_graph(node_ids, edges=()):
    data = GraphData(
        nodes=[{"id": node_id} for node_id in node_ids],
        edges=[{"source": s, "target": t} for s, t in edges],
    )
    return GraphConverter().to_networkx(data)


def box(family, width=800, height=600, padding=60):
    return LayoutConfig(family=family, width=width, height=height, padding=padding)


def inside(positions, config):
    p = config.padding
    return all(
        p - 1e-9 <= x <= config.width - p + 1e-9 and p - 1e-9 <= y <= config.height - p + 1e-9
        for x, y in positions.values()
    )


class TestSingleNode:
    """Every closed-form family puts a lone node at the centre."""

    @pytest.mark.parametrize("engine_cls, family", [
        (CircleLayoutEngine, LayoutFamily.CIRCLE),
        (GridLayoutEngine, LayoutFamily.GRID),
        (ConcentricLayoutEngine, LayoutFamily.CONCENTRIC),
        (TreeLayoutEngine, LayoutFamily.TREE),
    ])
    def test_single_node_at_centre(self, engine_cls, family):
        """n = 1 maps to (W/2, H/2)."""
        positions = engine_cls().layout(build_graph(["only"]), box(family))
        assert positions == {"only": (400.0, 300.0)}

    @pytest.mark.parametrize("engine_cls, family", [
        (CircleLayoutEngine, LayoutFamily.CIRCLE),
        (TreeLayoutEngine, LayoutFamily.TREE),
    ])
    def test_empty_graph(self, engine_cls, family):
        """No nodes, no positions."""
        assert engine_cls().layout(build_graph([]), box(family)) == {}


class TestCircleLayout:
    """Test circular placement."""

    def test_three_nodes_exact(self):
        """A, B, C at 0, 120 and 240 degrees on radius 0.4 * min(W, H)."""
        positions = CircleLayoutEngine().layout(
            build_graph(["A", "B", "C"]), box(LayoutFamily.CIRCLE)
        )

        for node_id, degrees in (("A", 0), ("B", 120), ("C", 240)):
            theta = math.radians(degrees)
            x, y = positions[node_id]
            assert x == pytest.approx(400 + 240 * math.cos(theta))
            assert y == pytest.approx(300 + 240 * math.sin(theta))

    def test_ignores_edges(self):
        """Placement depends on input order only."""
        ids = ["A", "B", "C", "D"]
        plain = CircleLayoutEngine().layout(build_graph(ids), box(LayoutFamily.CIRCLE))
        linked = CircleLayoutEngine().layout(
            build_graph(ids, [("A", "C"), ("B", "D")]), box(LayoutFamily.CIRCLE)
        )
        assert plain == linked


class TestGridLayout:
    """Test row-major grid placement."""

    def test_eighty_nodes_nine_columns(self):
        """n = 80 uses 9 columns; index 9 starts the second row."""
        ids = [f"n{i}" for i in range(80)]
        config = box(LayoutFamily.GRID)
        positions = GridLayoutEngine().layout(build_graph(ids), config)

        xs = sorted({round(x, 6) for x, _ in positions.values()})
        ys = sorted({round(y, 6) for _, y in positions.values()})
        assert len(xs) == 9
        assert len(ys) == 9

        assert positions["n9"][0] == pytest.approx(positions["n0"][0])
        assert positions["n9"][1] == pytest.approx(ys[1])
        assert positions["n8"][0] == pytest.approx(xs[-1])

    def test_uniform_spacing_and_centred(self):
        """One spacing on both axes, block centred inside the padded box."""
        ids = [f"n{i}" for i in range(80)]
        config = box(LayoutFamily.GRID)
        positions = GridLayoutEngine().layout(build_graph(ids), config)

        dx = positions["n1"][0] - positions["n0"][0]
        dy = positions["n9"][1] - positions["n0"][1]
        assert dx == pytest.approx(dy)
        # Usable box is 680 x 480 with 8 gaps per axis: the height limits.
        assert dx == pytest.approx(60.0)
        assert positions["n0"] == pytest.approx((160.0, 60.0))
        assert inside(positions, config)

    def test_two_nodes_single_row(self):
        """A single row spreads across the padded width."""
        positions = GridLayoutEngine().layout(build_graph(["A", "B"]), box(LayoutFamily.GRID))
        assert positions["A"] == pytest.approx((60.0, 300.0))
        assert positions["B"] == pytest.approx((740.0, 300.0))


class TestConcentricLayout:
    """Test degree-ranked rings."""

    def test_hub_on_inner_ring(self):
        """The highest-degree node sits closest to the centre."""
        ids = ["hub"] + [f"leaf{i}" for i in range(9)]
        edges = [("hub", leaf) for leaf in ids[1:]]
        positions = ConcentricLayoutEngine().layout(
            build_graph(ids, edges), box(LayoutFamily.CONCENTRIC)
        )

        def radius(node_id):
            x, y = positions[node_id]
            return math.hypot(x - 400, y - 300)

        # 10 nodes -> 3 levels of 4; outer radius 240.
        assert radius("hub") == pytest.approx(80.0)
        assert radius("hub") == pytest.approx(min(radius(node_id) for node_id in ids))
        assert radius("leaf8") > radius("hub")
        assert max(radius(node_id) for node_id in ids) == pytest.approx(240.0)

    def test_two_nodes_share_outer_ring(self):
        """n = 2 gives one level: both nodes opposite on the outer ring."""
        positions = ConcentricLayoutEngine().layout(
            build_graph(["A", "B"], [("A", "B")]), box(LayoutFamily.CONCENTRIC)
        )
        assert positions["A"] == pytest.approx((640.0, 300.0))
        assert positions["B"] == pytest.approx((160.0, 300.0))


class TestTreeLayout:
    """Test breadth-first level placement."""

    def test_levels_from_root(self):
        """Root at the top, children one level down, grandchildren below."""
        config = box(LayoutFamily.TREE)
        graph = build_graph(["D", "B", "A", "C"], [("A", "B"), ("A", "C"), ("B", "D")])
        positions = TreeLayoutEngine().layout(graph, config)

        assert positions["A"][1] == pytest.approx(60.0)
        assert positions["B"][1] == pytest.approx(positions["C"][1])
        assert positions["A"][1] < positions["B"][1] < positions["D"][1]
        assert positions["D"][1] == pytest.approx(540.0)
        assert inside(positions, config)

    def test_unreached_nodes_on_extra_level(self):
        """Nodes the root cannot reach share a level below the deepest one."""
        graph = build_graph(["A", "B", "X", "Y"], [("A", "B")])
        engine = TreeLayoutEngine()

        assert engine.assign_levels(graph, ["A", "B", "X", "Y"]) == [["A"], ["B"], ["X", "Y"]]

    def test_root_tie_broken_by_degree(self):
        """Equal out-degree: the node with more edges overall wins."""
        graph = build_graph(["A", "B", "C", "D", "E"], [("A", "B"), ("C", "D"), ("E", "C")])
        assert TreeLayoutEngine().choose_root(graph, ["A", "B", "C", "D", "E"]) == "C"

    def test_root_tie_broken_by_input_order(self):
        """No edges at all: the first node is the root."""
        graph = build_graph(["Q", "R", "S"])
        assert TreeLayoutEngine().choose_root(graph, ["Q", "R", "S"]) == "Q"

    def test_traversal_ignores_direction(self):
        """A node only reachable against edge direction is still levelled."""
        graph = build_graph(["A", "B", "C"], [("A", "B"), ("A", "B"), ("C", "B")])
        levels = TreeLayoutEngine().assign_levels(graph, ["A", "B", "C"])
        assert levels == [["A"], ["B"], ["C"]]
