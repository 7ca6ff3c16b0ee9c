"""Tests for panel layout."""
import pytest

from allowances import AllowanceRow
from geometry_2d import BoxSpec, GlueConfig, layout_panels, round_half_up


class TestRounding:
    @pytest.mark.parametrize("value, expected", [(2.5, 3), (3.5, 4), (2.49, 2), (-0.5, 0), (60.0, 60)])
    def test_half_up(self, value, expected):
        assert round_half_up(value) == expected


class TestScenarioA:
    """RSC, outside glue, glue lap on the small panel."""

    def test_panels(self, scenario_a):
        assert scenario_a.roles == ("W", "L", "W", "L")
        assert scenario_a.panels == (125, 270, 123, 267)

    def test_totals(self, scenario_a):
        assert scenario_a.glue_lap == 28
        assert scenario_a.total_width == 813
        assert scenario_a.s2s == 86
        assert scenario_a.reference_flap == 60
        assert scenario_a.total_height == 2 * 60 + 86

    def test_scores(self, scenario_a):
        assert scenario_a.scores == (28, 153, 423, 546)
        assert scenario_a.top_score_y == 60
        assert scenario_a.bottom_score_y == 146

    @pytest.mark.parametrize("x, idx", [(0, 0), (27.9, 0), (152.9, 0), (153, 1), (423, 2), (812, 3)])
    def test_panel_index(self, scenario_a, x, idx):
        assert scenario_a.panel_index_at(x) == idx


class TestLayoutRules:
    def test_large_off_swaps_roles(self, outside_b):
        box = BoxSpec(L=267, W=120, H=80, thickness=3.0)
        lay = layout_panels(box, GlueConfig(off="large", lap_width=28), outside_b)
        assert lay.roles == ("L", "W", "L", "W")
        # allowances stay with the panel position
        assert lay.panels == (272, 123, 270, 120)
        assert lay.reference_flap == 60

    def test_negative_panels_clamp_to_zero(self):
        row = AllowanceRow(flute="X", p1=-5, p2=0, p3=0, p4=-5, h1=0, flap=0)
        lay = layout_panels(BoxSpec(L=2, W=2, H=0, thickness=3), GlueConfig(lap_width=4), row)
        assert lay.panels == (0, 2, 2, 0)
        assert lay.total_width == 8
        assert lay.total_height == 2 + 0

    @pytest.mark.parametrize("L, W, H, lap", [
        (100, 50, 30, 20), (333.3, 111.1, 77.7, 25.5), (1, 1, 1, 0), (1200, 800, 600, 40),
    ])
    def test_width_and_height_identities(self, outside_b, L, W, H, lap):
        lay = layout_panels(BoxSpec(L=L, W=W, H=H, thickness=3), GlueConfig(lap_width=lap), outside_b)
        assert lay.total_width == round_half_up(lap) + sum(lay.panels)
        assert lay.total_height == 2 * lay.reference_flap + lay.s2s
        assert lay.total_width >= 0 and lay.total_height >= 0
