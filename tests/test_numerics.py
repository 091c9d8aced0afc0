"""Tests for the scalar helpers."""

import math

import pytest

from lander.numerics import (
    G_STANDARD,
    dead_zone,
    g_to_ms2,
    interpolate,
    interpolate_smooth,
    max_abs,
    mix,
    ms2_to_g,
    not_nan,
    sat_min_max,
)


class TestSaturation:
    """Test clamping helpers."""

    def test_not_nan(self) -> None:
        assert not_nan(float("nan")) == 0.0
        assert not_nan(3.5) == 3.5

    def test_sat_min_max_inside(self) -> None:
        assert sat_min_max(5.0, 0.0, 10.0) == 5.0

    def test_sat_min_max_bounds(self) -> None:
        assert sat_min_max(-1.0, 0.0, 10.0) == 0.0
        assert sat_min_max(11.0, 0.0, 10.0) == 10.0

    def test_sat_min_max_inverted_range(self) -> None:
        """Upper bound wins when min > max."""
        assert sat_min_max(5.0, 10.0, 0.0) == 0.0

    def test_max_abs_keeps_sign(self) -> None:
        assert max_abs(-30.0, 20.0) == -20.0
        assert max_abs(30.0, 20.0) == 20.0
        assert max_abs(5.0, 20.0) == 5.0
        assert max_abs(0.0, 20.0) == 0.0

    def test_dead_zone(self) -> None:
        assert dead_zone(1.5, 2.0) == 0.0
        assert dead_zone(-1.5, 2.0) == 0.0
        assert dead_zone(2.5, 2.0) == 2.5
        assert dead_zone(-2.5, 2.0) == -2.5


class TestInterpolation:
    """Test clamped interpolation."""

    def test_midpoint(self) -> None:
        assert interpolate(0.0, 10.0, 0.0, 1.0, 5.0) == pytest.approx(0.5)

    def test_clamped_outside(self) -> None:
        assert interpolate(0.0, 10.0, 2.0, 4.0, -5.0) == 2.0
        assert interpolate(0.0, 10.0, 2.0, 4.0, 50.0) == 4.0

    def test_decreasing_values(self) -> None:
        assert interpolate(500.0, 2000.0, 2.0, 0.0, 1250.0) == pytest.approx(1.0)

    def test_degenerate_interval(self) -> None:
        assert interpolate(3.0, 3.0, 7.0, 9.0, 3.0) == 7.0

    def test_smooth_endpoints_and_midpoint(self) -> None:
        assert interpolate_smooth(-5.0, 5.0, 0.0, 2.0, -10.0) == 0.0
        assert interpolate_smooth(-5.0, 5.0, 0.0, 2.0, 10.0) == 2.0
        assert interpolate_smooth(-5.0, 5.0, 0.0, 2.0, 0.0) == pytest.approx(1.0)

    def test_smooth_flat_at_ends(self) -> None:
        """Smoothstep changes slower than linear near the ends."""
        near_start = interpolate_smooth(0.0, 1.0, 0.0, 1.0, 0.1)
        assert near_start < interpolate(0.0, 1.0, 0.0, 1.0, 0.1)

    def test_mix(self) -> None:
        assert mix(10.0, 0.0, 0.7) == pytest.approx(7.0)
        assert mix(10.0, 0.0, 2.0) == pytest.approx(10.0)
        assert mix(10.0, 0.0, -1.0) == pytest.approx(0.0)


class TestUnits:
    """Test g conversions."""

    def test_round_trip(self) -> None:
        assert ms2_to_g(g_to_ms2(1.3)) == pytest.approx(1.3)

    def test_standard_gravity(self) -> None:
        assert g_to_ms2(1.0) == G_STANDARD
        assert math.isclose(ms2_to_g(9.81), 1.0)
