"""Tests for the gravity estimator, exponent selection and terrain radar."""

import math

import pytest

from lander.environment import gravity_at_altitude
from lander.gnc.navigation import (
    UNDEFINED_ALTITUDE,
    ExponentSelector,
    GravityEstimator,
    ScanMode,
    TerrainRadar,
)
from lander.gnc.navigation.radar import START_RANGE
from lander.vehicle.interfaces import HitType, RaycastHit

# =============================================================================
# Gravity Estimator Tests
# =============================================================================


def _feed(estimator, planet, altitudes, radius=1.0e5):
    for altitude in altitudes:
        g = gravity_at_altitude(altitude, planet, radius, estimator.exponent)
        estimator.update(g, altitude, planet.hill_param)


class TestGravityEstimator:
    """Test radius estimation from gravity samples."""

    def test_first_sample_only_stored(self, flatland):
        est = GravityEstimator(2.0)
        _feed(est, flatland, [5000.0])
        assert est.confidence == 0.0
        assert est.confidence_best == 0.0

    def test_second_sample_has_no_confidence(self, flatland):
        """Two samples give a radius but nothing to compare it with."""
        est = GravityEstimator(2.0)
        _feed(est, flatland, [5000.0, 4000.0])
        assert est.radius == pytest.approx(1.0e5, rel=1e-6)
        assert est.confidence == 0.0

    def test_third_sample_converges(self, flatland):
        est = GravityEstimator(2.0)
        _feed(est, flatland, [5000.0, 4000.0, 3000.0])
        assert est.confidence == pytest.approx(1.0, abs=1e-6)
        assert est.radius_best == pytest.approx(1.0e5, rel=1e-6)
        assert est.gravity_best == pytest.approx(9.81, rel=1e-6)

    def test_wrong_exponent_still_latches(self, flatland):
        """The n=7 estimator sees an inverse-square field as a large planet."""
        est = GravityEstimator(7.0)
        for altitude in (5000.0, 4000.0, 3000.0):
            g = gravity_at_altitude(altitude, flatland, 1.0e5, 2.0)
            est.update(g, altitude, flatland.hill_param)
        assert est.radius_best > 1.0e5

    def test_constant_gravity_rejected(self, flatland):
        """Below the hills gravity does not change: no estimate."""
        est = GravityEstimator(2.0)
        _feed(est, flatland, [900.0, 800.0])
        assert est.radius < 0
        assert est.gravity == -1.0
        assert est.confidence == 0.0

    def test_reset_forgets_best(self, flatland):
        est = GravityEstimator(2.0)
        _feed(est, flatland, [5000.0, 4000.0, 3000.0])
        est.reset()
        assert est.confidence_best == 0.0
        assert est.radius == 0.0
        assert est.confidence == 0.0

    def test_reset_replays_identically(self, flatland):
        """Test the same samples after a reset give the same estimate."""
        est = GravityEstimator(2.0)
        _feed(est, flatland, [5000.0, 4000.0, 3000.0])
        first = (est.radius, est.confidence, est.confidence_best, est.radius_best)
        est.reset()
        _feed(est, flatland, [5000.0, 4000.0, 3000.0])
        assert (est.radius, est.confidence, est.confidence_best, est.radius_best) == first

    def test_invalid_exponent(self):
        with pytest.raises(ValueError):
            GravityEstimator(0.0)

    def test_debug_string(self, flatland):
        est = GravityEstimator(2.0)
        _feed(est, flatland, [5000.0, 4000.0, 3000.0])
        assert "n=2" in est.debug_string()


class TestExponentSelector:
    """Test the hysteresis between the two gravity exponents."""

    def test_switches_after_consistent_samples(self):
        selector = ExponentSelector()
        results = [selector.update(0.5, 0.9) for _ in range(5)]
        assert results[:4] == [2, 2, 2, 2]
        assert results[4] == 7

    def test_switches_back(self):
        selector = ExponentSelector(exponent=7)
        for _ in range(5):
            selector.update(0.9, 0.5)
        assert selector.exponent == 2
        assert selector.score == -5

    def test_close_confidences_do_not_move(self):
        selector = ExponentSelector()
        selector.update(0.900, 0.901)
        assert selector.score == 0

    def test_manual_mode_keeps_exponent(self):
        selector = ExponentSelector(exponent=2, auto_switch=False)
        for _ in range(10):
            selector.update(0.5, 0.9)
        assert selector.exponent == 2
        assert selector.score == 5

    def test_invalid_exponent(self):
        with pytest.raises(ValueError):
            ExponentSelector(exponent=3)


# =============================================================================
# Terrain Radar Tests
# =============================================================================


@pytest.fixture
def radar_at(make_plant):
    """Radar with one sensor on a plant hovering at the given altitude."""

    def _make(altitude, sensors=1):
        plant = make_plant(altitude=altitude, lift_ratio=0.0, radar=False, gear=False)
        for _ in range(sensors):
            plant.add_range_sensor()
        radar = TerrainRadar(plant.range_sensors, max_range=2.0e5, speed_scale=20.0)
        radar.start()
        return radar, plant

    return _make


class TestRadarAltitude:
    """Test the altitude cast with adaptive range."""

    def test_hit(self, radar_at):
        radar, _ = radar_at(100.0)
        radar.scan_for_altitude(0.0, 0.0)
        assert radar.valid
        assert radar.distance() == pytest.approx(100.0)
        assert radar.alt_scan_range == pytest.approx(150.0)

    def test_miss_doubles_range(self, radar_at):
        radar, _ = radar_at(5000.0)
        radar.scan_for_altitude(0.0, 0.0)
        assert not radar.valid
        assert radar.distance() == UNDEFINED_ALTITUDE
        assert radar.alt_scan_range == pytest.approx(2 * START_RANGE)
        for _ in range(3):
            radar.scan_for_altitude(0.0, 0.0)
        assert radar.valid
        assert radar.distance() == pytest.approx(5000.0)

    def test_tilt_compensated(self, radar_at):
        """Casting against the vehicle tilt still measures the vertical."""
        radar, plant = radar_at(100.0)
        plant.set_attitude(pitch=10.0)
        radar.scan_for_altitude(10.0, 0.0)
        assert radar.distance() == pytest.approx(100.0, rel=1e-6)

    def test_no_sensor(self):
        radar = TerrainRadar([], max_range=2.0e5, speed_scale=20.0)
        radar.start()
        radar.scan_for_altitude(0.0, 0.0)
        assert not radar.exists
        assert radar.mode is ScanMode.NO_RADAR
        assert radar.distance() == UNDEFINED_ALTITUDE
        assert radar.recommend_forward_speed() == 0.0

    def test_age(self, radar_at):
        radar, _ = radar_at(100.0)
        radar.increment_alt_age()
        radar.increment_alt_age()
        assert radar.alt_age == 2
        radar.scan_for_altitude(0.0, 0.0)
        assert radar.alt_age == 0


class TestRadarTerrain:
    """Test terrain scanning and the speed recommendation."""

    def test_scan_direction_slant_range(self, radar_at):
        radar, _ = radar_at(100.0)
        distance = radar.scan_direction(10.0, 0.0, 0.0, 0.0, 500.0)
        assert distance == pytest.approx(100.0 / math.cos(math.radians(10.0)))

    def test_scan_direction_miss(self, radar_at):
        radar, _ = radar_at(100.0)
        assert radar.scan_direction(0.0, 0.0, 0.0, 0.0, 50.0) == 50.0

    def test_scan_direction_disabled_sensor(self, radar_at):
        radar, _ = radar_at(100.0)
        radar.disable()
        assert radar.scan_direction(10.0, 0.0, 0.0, 0.0, 500.0) == 501.0

    def test_flat_ground_single_radar(self, radar_at):
        radar, _ = radar_at(100.0)
        radar.scan_for_altitude(0.0, 0.0)
        radar.scan_terrain(0.0, 0.0)
        assert radar.mode is ScanMode.SINGLE_NARROW
        assert radar.distances["fwd"] == pytest.approx(100.0)
        assert radar.distances["rear"] == pytest.approx(100.0)
        assert radar.recommend_forward_speed() == 0.0

    def test_single_standby_out_of_range(self, radar_at):
        radar, _ = radar_at(500.0)
        radar.scan_for_altitude(0.0, 0.0)
        radar.scan_terrain(0.0, 0.0)
        assert radar.mode is ScanMode.SINGLE_STANDBY
        assert radar.distances["fwd"] == radar.max_terrain_distance

    def test_double_radar_modes(self, radar_at):
        radar, _ = radar_at(500.0, sensors=2)
        radar.scan_for_altitude(0.0, 0.0)
        radar.scan_terrain(0.0, 0.0)
        assert radar.double_radar
        assert radar.mode is ScanMode.DOUBLE_WIDE

        high, _ = radar_at(3000.0, sensors=2)
        for _ in range(3):
            high.scan_for_altitude(0.0, 0.0)
        high.scan_terrain(0.0, 0.0)
        assert high.mode is ScanMode.DOUBLE_EARLY

    def test_obstructed_pair_keeps_last_distances(self, radar_at, monkeypatch):
        """A ray on the vehicle itself keeps the previous pair and flags the whole cycle."""
        radar, plant = radar_at(100.0)
        sensor = plant.range_sensors[0]
        radar.scan_for_altitude(0.0, 0.0)
        radar.scan_terrain(0.0, 0.0)
        radar.scan_terrain(0.0, 0.0)
        before = (radar.distances["fwd"], radar.distances["rear"])
        assert not radar.obstruction

        clear_cast = sensor.raycast

        def self_hit_forward(distance, pitch, yaw):
            if pitch > 0:
                return RaycastHit(HitType.LARGE_GRID, None, entity_id=sensor.grid_entity_id)
            return clear_cast(distance, pitch, yaw)

        monkeypatch.setattr(sensor, "raycast", self_hit_forward)
        radar.scan_terrain(0.0, 0.0)
        assert radar.obstruction
        assert (radar.distances["fwd"], radar.distances["rear"]) == before

        radar.scan_terrain(0.0, 0.0)
        assert radar.obstruction
        assert radar.distances["left"] == pytest.approx(100.0)

        monkeypatch.setattr(sensor, "raycast", clear_cast)
        radar.scan_terrain(0.0, 0.0)
        assert not radar.obstruction

    def test_scan_pair_reports_self_hit(self, radar_at, monkeypatch):
        radar, plant = radar_at(100.0)
        sensor = plant.range_sensors[0]
        monkeypatch.setattr(
            sensor, "raycast",
            lambda distance, pitch, yaw: RaycastHit(HitType.LARGE_GRID, None, entity_id=sensor.grid_entity_id),
        )
        blocked, d_pos, d_neg = radar.scan_pair(10.0, 0.0, 0.0, 0.0, 500.0)
        assert blocked
        assert math.isnan(d_pos) and math.isnan(d_neg)

    def test_start_restarts_micro_scan(self, radar_at):
        radar, _ = radar_at(100.0)
        radar.scan_for_altitude(0.0, 0.0)
        radar.scan_terrain(0.0, 0.0)
        radar.obstruction = True
        radar.disable()
        radar.start()
        assert radar.scan_step == 0
        assert not radar.obstruction

    def test_recommends_drift_to_lower_ground(self, radar_at):
        """Ground further away behind: move backward, capped at 20 m/s."""
        radar, _ = radar_at(100.0)
        radar.scan_for_altitude(0.0, 0.0)
        radar.distances["fwd"] = 80.0
        radar.distances["rear"] = 120.0
        assert radar.recommend_forward_speed() == -20.0

    def test_small_slope_in_dead_zone(self, radar_at):
        radar, _ = radar_at(100.0)
        radar.scan_for_altitude(0.0, 0.0)
        radar.angle = 10.0
        radar.distances["left"] = 100.05
        radar.distances["right"] = 99.95
        assert radar.recommend_left_speed() == 0.0

    def test_log_channels(self, radar_at):
        radar, _ = radar_at(100.0)
        assert len(radar.log_names()) == len(radar.log_values())
