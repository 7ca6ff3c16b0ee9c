"""Tests for slot planning and the cutting boundaries."""
import pytest

from geometry_2d import MIN_SLOT_WIDTH, build_boundary, plan_slots


class TestSlots:
    def test_one_slot_per_score(self, scenario_a):
        slots = plan_slots(9, scenario_a.scores, 0.0)
        assert slots.centres == (28, 153, 423, 546)
        assert slots.intervals[0] == (23.5, 32.5)
        assert all(b - a == pytest.approx(9) for a, b in slots.intervals)

    def test_ascending_and_disjoint(self):
        slots = plan_slots(12, (546, 28, 423, 153), 0.0)
        xs = [x for interval in slots.intervals for x in interval]
        assert xs == sorted(xs)

    def test_narrow_glue_lap(self):
        """Glue lap 10 with a 30 mm slot: the glue slot shrinks, the others do not."""
        slots = plan_slots(30, (10, 135, 260, 385), 0.0)
        a, b = slots.intervals[0]
        half = (b - a) / 2
        assert half == pytest.approx(4.25)
        assert half < 10 / 2
        assert a > 0
        assert slots.intervals[1] == (120, 150)

    def test_no_room_means_no_slot(self):
        slots = plan_slots(9, (1.0, 100.0), 0.0)
        assert slots.centres == (100.0,)

    def test_minimum_width(self):
        slots = plan_slots(0, (100,), 0.0)
        assert slots.width == MIN_SLOT_WIDTH
        assert slots.intervals == ((99.75, 100.25),)


class TestBoundary:
    def test_top_path_notches(self):
        pts = build_boundary(True, lambda x: 0.0, 60, [(23.5, 32.5)], 813, start_x=23.5)
        assert pts == ((23.5, 0.0), (23.5, 60), (32.5, 60), (32.5, 0.0), (813, 0.0))

    def test_bottom_path_notches(self):
        pts = build_boundary(False, lambda x: 206.0, 146, [(23.5, 32.5), (148.5, 157.5)], 813)
        assert pts[0] == (23.5, 206.0)
        assert (148.5, 146) in pts and (157.5, 146) in pts
        assert pts[-1] == (813, 206.0)

    def test_no_slots_starts_at_left_edge(self):
        pts = build_boundary(True, lambda x: 5.0, 60, [], 100)
        assert pts == ((0.0, 5.0), (100, 5.0))

    def test_edge_never_crosses_score(self):
        pts = build_boundary(True, lambda x: 80.0, 60, [(10, 20)], 100)
        assert all(y <= 60 for _x, y in pts)
        pts = build_boundary(False, lambda x: 100.0, 146, [(10, 20)], 200)
        assert all(y >= 146 for _x, y in pts)

    def test_step_edge_follows_panels(self, scenario_a):
        edges = (10.0, 0.0, 10.0, 0.0)
        edge_at = lambda x: edges[scenario_a.panel_index_at(x)]
        slots = plan_slots(9, scenario_a.scores, 0.0)
        pts = build_boundary(True, edge_at, 60, slots.intervals, 813)
        assert (148.5, 10.0) in pts     # left of the score, panel 1
        assert (157.5, 0.0) in pts      # right of the score, panel 2
        xs = [x for x, _y in pts]
        assert xs == sorted(xs)
