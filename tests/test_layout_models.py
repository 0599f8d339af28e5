"""Tests for graph payload and layout result models."""

import pytest
from pydantic import ValidationError

from kg_layout.models.graph import GraphData, GraphEdge, GraphNode
from kg_layout.models.layout_metadata import (
    BoundingBox,
    LayoutConfig,
    LayoutFamily,
    LayoutResult,
    NodePosition,
)


class TestNodePosition:
    """Test NodePosition model."""

    def test_to_dict(self):
        assert NodePosition(x=1, y=2).to_dict() == {"x": 1.0, "y": 2.0}

    def test_rejects_non_numeric(self):
        with pytest.raises(ValueError):
            NodePosition.model_validate({"x": "left", "y": 2})


class TestBoundingBox:
    """Test BoundingBox model."""

    def test_dimensions(self):
        bbox = BoundingBox(min_x=10.0, max_x=110.0, min_y=0.0, max_y=50.0)
        assert bbox.width == 100.0
        assert bbox.height == 50.0
        assert bbox.center == (60.0, 25.0)

    def test_from_positions(self):
        """Test creating bounding box from node positions."""
        bbox = BoundingBox.from_positions({
            "N1": NodePosition(x=0.0, y=0.0),
            "N2": NodePosition(x=100.0, y=50.0),
            "N3": NodePosition(x=50.0, y=25.0),
        })
        assert bbox.to_dict() == {
            "min_x": 0.0, "max_x": 100.0, "min_y": 0.0, "max_y": 50.0,
            "width": 100.0, "height": 50.0,
        }

    def test_from_positions_empty(self):
        """Test that empty positions raises error."""
        with pytest.raises(ValueError, match="Cannot compute bounding box from empty positions"):
            BoundingBox.from_positions({})


class TestLayoutFamily:
    """Test the family union."""

    def test_simulation_and_deterministic_partition(self):
        for family in LayoutFamily:
            assert family.is_simulation != family.is_deterministic

    def test_values(self):
        assert LayoutFamily("ultra-spread") is LayoutFamily.ULTRA_SPREAD
        assert LayoutFamily.LARGE_GRAPH.is_simulation


class TestLayoutConfig:
    """Test parameter validation."""

    def test_rejects_non_positive_size(self):
        with pytest.raises(ValidationError):
            LayoutConfig(family=LayoutFamily.GRID, width=0, height=600)

    def test_cooling_factor_bounds(self):
        with pytest.raises(ValidationError):
            LayoutConfig(family=LayoutFamily.BALANCED, width=800, height=600, cooling_factor=1.5)

    def test_center(self):
        assert LayoutConfig(family=LayoutFamily.GRID, width=800, height=600).center == (400, 300)


class TestLayoutResult:
    """Test LayoutResult bookkeeping."""

    def test_bbox_and_etag_computed(self):
        result = LayoutResult(
            family=LayoutFamily.CIRCLE,
            positions={"a": NodePosition(x=1, y=2), "b": NodePosition(x=3, y=-4)},
        )
        assert result.bounding_box.min_y == -4
        assert len(result.etag) == 64
        assert result.position_map() == {"a": {"x": 1.0, "y": 2.0}, "b": {"x": 3.0, "y": -4.0}}

    def test_etag_depends_on_positions_only(self):
        """Timing metadata does not change the etag."""
        positions = {"a": NodePosition(x=1, y=2)}
        first = LayoutResult(family=LayoutFamily.GRID, positions=positions, elapsed_ms=1)
        second = LayoutResult(family=LayoutFamily.GRID, positions=positions, elapsed_ms=99)
        moved = LayoutResult(family=LayoutFamily.GRID, positions={"a": NodePosition(x=1, y=3)})

        assert first.etag == second.etag
        assert first.etag != moved.etag

    def test_rejects_non_finite(self):
        with pytest.raises(ValidationError, match="Non-finite position"):
            LayoutResult(positions={"a": NodePosition(x=float("nan"), y=0)})

    def test_empty(self):
        result = LayoutResult.empty("tree")
        assert result.is_empty
        assert result.bounding_box is None
        assert result.position_map() == {}


class TestGraphPayload:
    """Test graph payload validation and normalisation."""

    def test_endpoint_forms(self):
        """Raw ids and objects carrying an id are both accepted."""
        edge = GraphEdge(source={"id": "A", "x": 4}, target="B")
        assert (edge.source_id, edge.target_id) == ("A", "B")

    def test_numeric_ids_coerced(self):
        node = GraphNode(id=7)
        edge = GraphEdge(id=3, source=1, target=2)
        assert node.id == "7"
        assert (edge.id, edge.source, edge.target) == ("3", "1", "2")

    def test_bad_endpoint(self):
        with pytest.raises(ValidationError):
            GraphEdge(source={"name": "no id"}, target="B")

    def test_extra_fields_kept(self):
        node = GraphNode(id="TP53", name="TP53", type="protein")
        assert node.model_dump()["type"] == "protein"

    def test_from_payload(self):
        data = GraphData.from_payload({"nodes": [{"id": "A"}], "edges": None, "width": 640})
        assert [node.id for node in data.nodes] == ["A"]
        assert data.edges == []
        assert data.width == 640
        assert GraphData.from_payload(None).nodes == []
        assert GraphData.from_payload(data) is data
