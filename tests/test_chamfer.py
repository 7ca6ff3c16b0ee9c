"""Tests for the glue-lap chamfer."""
import itertools
import math

import pytest

from geometry_2d import chamfer

TOP, BOTTOM = 0.0, 206.0


class TestChamfer:
    def test_auto_bevel(self):
        ch = chamfer(0.0, 23.5, 0.0, 206.0, 24, 0, TOP, BOTTOM)
        rise = 23.5 * math.tan(math.radians(24))
        assert ch.top_y == pytest.approx(rise)
        assert ch.bot_y == pytest.approx(206.0 - rise)
        assert ch.has_vertical
        assert ch.meet is None

    def test_extension_overrides_angle(self):
        ch = chamfer(0.0, 23.5, 0.0, 206.0, 24, 20, TOP, BOTTOM)
        assert ch.top_y == 20
        assert ch.bot_y == 186

    def test_zero_run_is_flat(self):
        ch = chamfer(0.0, 0.0, 10.0, 190.0, 45, 0, TOP, BOTTOM)
        assert (ch.top_y, ch.bot_y) == (10.0, 190.0)
        assert ch.meet is None

    def test_right_angle_saturates(self):
        """90 degrees would rise forever; it stops at the bounds and the bevels meet."""
        ch = chamfer(0.0, 23.5, 0.0, 206.0, 90, 0, TOP, BOTTOM)
        assert ch.top_y == BOTTOM
        assert ch.bot_y == TOP
        assert not ch.has_vertical
        assert ch.meet == pytest.approx((11.75, 103.0))

    def test_zero_run_crossing_stays_straight(self):
        ch = chamfer(0.0, 0.0, 0.0, 206.0, 24, 200, TOP, BOTTOM)
        assert (ch.top_y, ch.bot_y) == (200, 6)
        assert not ch.has_vertical
        assert ch.meet == (0.0, 0.0)

    def test_long_extension_meets_inside_run(self):
        ch = chamfer(0.0, 40.0, 0.0, 100.0, 24, 400, TOP, 100.0)
        assert ch.meet is not None
        x, y = ch.meet
        assert 0.0 <= x <= 40.0
        assert TOP <= y <= 100.0

    @pytest.mark.parametrize("angle, ext, x_start", itertools.product(
        [-5, 0, 0.05, 10, 45, 89.9, 90, 120], [0, 5, 1000], [0, 1, 23.5, 300]))
    def test_clamp_invariant(self, angle, ext, x_start):
        ch = chamfer(0.0, x_start, 0.0, 206.0, angle, ext, TOP, BOTTOM)
        assert TOP <= ch.top_y <= BOTTOM
        assert TOP <= ch.bot_y <= BOTTOM
