"""Tests for layout selection: names, aliases, parameter tables, narrowing."""

import pytest

from kg_layout.layout.postprocess import default_padding
from kg_layout.layout.selector import (
    iterations_for,
    normalize_layout_name,
    select_layout,
    very_large_canvas,
)
from kg_layout.models.layout_metadata import LayoutFamily


class TestNormalizeLayoutName:
    """Test name and alias resolution."""

    @pytest.mark.parametrize("name, family", [
        ("balanced", LayoutFamily.BALANCED),
        ("compact", LayoutFamily.COMPACT),
        ("spread", LayoutFamily.SPREAD),
        ("ultra-spread", LayoutFamily.ULTRA_SPREAD),
        ("circle", LayoutFamily.CIRCLE),
        ("grid", LayoutFamily.GRID),
        ("concentric", LayoutFamily.CONCENTRIC),
        ("tree", LayoutFamily.TREE),
    ])
    def test_canonical_names(self, name, family):
        assert normalize_layout_name(name) is family

    @pytest.mark.parametrize("alias, family", [
        ("equilibré", LayoutFamily.BALANCED),
        ("cose", LayoutFamily.BALANCED),
        ("aéré", LayoutFamily.SPREAD),
        ("ultra-dispersé", LayoutFamily.ULTRA_SPREAD),
        ("breadthfirst", LayoutFamily.TREE),
        ("circular", LayoutFamily.CIRCLE),
    ])
    def test_legacy_aliases(self, alias, family):
        assert normalize_layout_name(alias) is family

    def test_case_and_whitespace_ignored(self):
        assert normalize_layout_name("  Grid ") is LayoutFamily.GRID
        assert normalize_layout_name("ÉQUILIBRÉ") is LayoutFamily.BALANCED

    @pytest.mark.parametrize("name", ["", "spiral", None, 42, "large-graph"])
    def test_unknown_means_balanced(self, name):
        """Unknown, empty, non-string and internal-only names fall back."""
        assert normalize_layout_name(name) is LayoutFamily.BALANCED


class TestPhysicsTables:
    """Test parameter tables for simulation families."""

    def test_iteration_bands(self):
        assert iterations_for(10) == 300
        assert iterations_for(500) == 300
        assert iterations_for(501) == 200
        assert iterations_for(1000) == 200
        assert iterations_for(1001) == 100

    @pytest.mark.parametrize("name, n, k, gravity, canvas", [
        ("balanced", 100, 280, 0.06, (5000, 3000)),
        ("balanced", 2000, 180, 0.12, (6000, 3600)),
        ("compact", 100, 150, 0.15, (2800, 1800)),
        ("compact", 2000, 120, 0.20, (3500, 2500)),
        ("spread", 100, 500, 0.02, (7000, 4000)),
        ("spread", 2000, 400, 0.04, (8000, 5000)),
        ("ultra-spread", 100, 700, 0.01, (10000, 6000)),
        ("ultra-spread", 2000, 600, 0.02, (12000, 7500)),
    ])
    def test_profiles(self, name, n, k, gravity, canvas):
        plan = select_layout(name, n, 800, 600)
        config = plan.config

        assert config.ideal_distance == k
        assert config.gravity == pytest.approx(gravity)
        assert (config.width, config.height) == canvas
        assert config.initial_temperature == pytest.approx(0.05 * min(canvas))
        assert config.cooling_factor == pytest.approx(0.98)
        assert plan.narrowed is False

    def test_padding_from_target_box(self):
        """Padding is derived from the caller's box, not the internal canvas."""
        plan = select_layout("balanced", 10, 1000, 500)
        assert plan.config.padding == pytest.approx(default_padding(1000, 500))
        assert plan.config.padding == pytest.approx(50.0)

    def test_deterministic_family_uses_target_box(self):
        plan = select_layout("circle", 10, 1024, 768)
        assert plan.family is LayoutFamily.CIRCLE
        assert (plan.config.width, plan.config.height) == (1024, 768)

    def test_config_is_frozen(self):
        plan = select_layout("grid", 10)
        with pytest.raises(Exception):
            plan.config.width = 5


class TestVeryLargeGraphs:
    """Test narrowing above the very-large threshold."""

    @pytest.mark.parametrize("name", ["balanced", "compact", "spread", "tree", "concentric", "nonsense"])
    def test_routes_to_large_graph(self, name):
        """Anything outside {balanced, grid, circle} becomes the fallback."""
        plan = select_layout(name, 8000, very_large_threshold=5000)
        assert plan.family is LayoutFamily.LARGE_GRAPH
        assert plan.narrowed is True

    @pytest.mark.parametrize("name, family", [
        ("grid", LayoutFamily.GRID),
        ("circle", LayoutFamily.CIRCLE),
    ])
    def test_cheap_families_kept(self, name, family):
        plan = select_layout(name, 8000, very_large_threshold=5000)
        assert plan.family is family

    def test_threshold_is_exclusive(self):
        """Exactly at the threshold the physics simulation is still used."""
        plan = select_layout("balanced", 5000, very_large_threshold=5000)
        assert plan.family is LayoutFamily.BALANCED

    def test_large_graph_parameters(self):
        """Passes and canvas follow the size formulas."""
        plan = select_layout("balanced", 8000, very_large_threshold=5000)
        assert plan.config.iterations == 20
        assert (plan.config.width, plan.config.height) == (8000, 6400)

        small = select_layout("balanced", 150, very_large_threshold=100)
        assert small.config.iterations == 50

    def test_canvas_formula(self):
        assert very_large_canvas(5001) == pytest.approx((6000.0, 4000.8))
        assert very_large_canvas(20000) == (12000.0, 9000.0)

    def test_threshold_from_settings(self):
        """Without an explicit threshold, the configured one (5000) applies."""
        assert select_layout("tree", 5001).family is LayoutFamily.LARGE_GRAPH
        assert select_layout("tree", 4999).family is LayoutFamily.TREE
