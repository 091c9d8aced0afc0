"""Tests for the auto-leveler and horizontal thruster control."""

import math

import numpy as np
import pytest

from flight.control import AutoLeveler, HorizontalThrusters
from flight.control.leveler import rotate
from lander.gnc.control import PIDGains
from lander.numerics import G_STANDARD
from lander.propulsion import PropulsionType
from lander.propulsion.thrust_group import OVERRIDE_TINY
from lander.simulation import LanderPlant

DT = 1.0 / 60.0
SIDE_MASS = 1.0e3
SIDE_THRUST = 1.0e5


def test_rotate_quarter_turn():
    """Test Rodrigues rotation of x about z."""
    result = rotate(np.array([1.0, 0.0, 0.0]), np.array([0.0, 0.0, 1.0]), math.pi / 2)
    np.testing.assert_allclose(result, [0.0, 1.0, 0.0], atol=1e-12)


# =============================================================================
# Auto-leveler Tests
# =============================================================================


@pytest.fixture
def leveled_plant(make_plant):
    plant = make_plant(lift_ratio=0.0, radar=False, gear=False)
    plant.add_gyro()
    leveler = AutoLeveler(plant.controller, plant.gyros, 20.0, 0, 5.0, 10.0)
    return plant, leveler


class TestAutoLeveler:
    """Test attitude measurement and tilt commands."""

    def test_level_attitude(self, leveled_plant):
        _, leveler = leveled_plant
        leveler.update_attitude()
        assert leveler.tilt_pitch == pytest.approx(0.0, abs=1e-9)
        assert leveler.tilt_roll == pytest.approx(0.0, abs=1e-9)

    def test_measures_tilt(self, leveled_plant):
        plant, leveler = leveled_plant
        plant.set_attitude(pitch=10.0)
        leveler.update_attitude()
        assert leveler.tilt_pitch == pytest.approx(10.0)
        plant.set_attitude(roll=-5.0)
        leveler.update_attitude()
        assert leveler.tilt_roll == pytest.approx(-5.0)

    def test_disabled_does_not_override(self, leveled_plant):
        plant, leveler = leveled_plant
        leveler.tick()
        leveler.tick()
        assert not plant.gyros[0].override_enabled

    def test_levels_the_vehicle(self, leveled_plant):
        plant, leveler = leveled_plant
        plant.set_attitude(pitch=10.0)
        leveler.enable()
        for _ in range(300):
            leveler.tick()
            plant.step(DT)
        assert plant.tilt < 0.5

    def test_desired_tilt_from_speed_error(self, leveled_plant):
        _, leveler = leveled_plant
        leveler.enable()
        leveler.tick(speed_fwd=10.0)
        leveler.tick(speed_fwd=10.0)
        assert leveler.desired_pitch == pytest.approx(math.atan(2.0) / (math.pi / 2) * 20.0)
        assert leveler.desired_roll == pytest.approx(0.0)

    def test_tilt_saturates_at_max_angle(self, leveled_plant):
        _, leveler = leveled_plant
        leveler.enable()
        leveler.tick(speed_left=1.0e6)
        leveler.tick(speed_left=1.0e6)
        assert leveler.desired_roll == pytest.approx(20.0, rel=1e-4)

    def test_pilot_rotation_releases_gyros(self, leveled_plant):
        plant, leveler = leveled_plant
        leveler.enable()
        leveler.tick()
        assert plant.gyros[0].override_enabled
        plant.controller.rotation = np.array([1.0, 0.0])
        leveler.tick()
        assert not plant.gyros[0].override_enabled
        assert leveler.timer == 0

    def test_takes_back_after_delay(self, make_plant):
        plant = make_plant(lift_ratio=0.0, radar=False, gear=False)
        plant.add_gyro()
        leveler = AutoLeveler(plant.controller, plant.gyros, 20.0, 3, 5.0, 10.0)
        leveler.enable()
        plant.controller.roll = 1.0
        leveler.tick()
        plant.controller.roll = 0.0
        for _ in range(4):
            leveler.tick()
        assert not plant.gyros[0].override_enabled
        leveler.tick()
        assert plant.gyros[0].override_enabled

    def test_disable_clears_state(self, leveled_plant):
        plant, leveler = leveled_plant
        leveler.enable()
        leveler.tick(speed_fwd=3.0)
        leveler.disable()
        assert leveler.speed_fwd == 0.0
        assert not plant.gyros[0].override_enabled
        assert plant.gyros[0].pitch == 0.0

    def test_debug_string(self, leveled_plant):
        _, leveler = leveled_plant
        assert "[AUTO LEVELER]" in leveler.debug_string()


# =============================================================================
# Horizontal Thruster Tests
# =============================================================================


@pytest.fixture
def side_thrusters(void):
    """Vacuum plant with a 1e5 N ion thruster on each horizontal axis."""
    plant = LanderPlant(void, 1.0e5, altitude=100.0)
    for direction in ("forward", "backward", "left", "right"):
        plant.add_thruster("LargeIonThrust", SIDE_THRUST, direction=direction)
    hardware = plant.build_hardware()
    horizontal = HorizontalThrusters(hardware, 0, PIDGains(kp=1.0, ki=0.0, kd=0.0), 1.0)
    horizontal.update_thrust()
    return plant, hardware, horizontal


def _ion_override(group):
    return group.overrides[PropulsionType.ION]


class TestHorizontalThrusters:
    """Test speed loops on the side thrust groups."""

    def test_waits_for_delay(self, side_thrusters):
        _, hardware, horizontal = side_thrusters
        horizontal.tick(2.0, 0.0, 0.0, 0.0, SIDE_MASS, False, True)
        assert hardware.rear.allocation is None

    def test_brakes_forward_motion(self, side_thrusters):
        _, hardware, horizontal = side_thrusters
        for _ in range(2):
            horizontal.tick(2.0, 0.0, 0.0, 0.0, SIDE_MASS, False, True)
        assert _ion_override(hardware.rear) == pytest.approx(2.0 * G_STANDARD * SIDE_MASS / SIDE_THRUST)
        assert _ion_override(hardware.forward) == OVERRIDE_TINY
        assert _ion_override(hardware.left) == OVERRIDE_TINY
        assert horizontal.fwd_pid.output == pytest.approx(-2.0)

    def test_left_axis(self, side_thrusters):
        _, hardware, horizontal = side_thrusters
        for _ in range(2):
            horizontal.tick(0.0, 0.0, 0.0, 3.0, SIDE_MASS, False, True)
        assert _ion_override(hardware.left) == pytest.approx(3.0 * G_STANDARD * SIDE_MASS / SIDE_THRUST)
        assert _ion_override(hardware.right) == OVERRIDE_TINY

    def test_dead_zone(self, side_thrusters):
        _, hardware, horizontal = side_thrusters
        for _ in range(2):
            horizontal.tick(0.01, 0.0, 0.0, 0.0, SIDE_MASS, True, True)
        assert _ion_override(hardware.rear) == OVERRIDE_TINY

    def test_pilot_move_disables(self, side_thrusters):
        plant, hardware, horizontal = side_thrusters
        for _ in range(2):
            horizontal.tick(2.0, 0.0, 0.0, 0.0, SIDE_MASS, False, True)
        plant.controller.move = np.array([0.0, 0.0, 1.0])
        horizontal.tick(2.0, 0.0, 0.0, 0.0, SIDE_MASS, False, True)
        assert hardware.rear.allocation is None
        assert horizontal.timer == 0
        assert horizontal.fwd_pid.output == 0.0

    def test_move_ignored_when_not_overridable(self, side_thrusters):
        plant, hardware, horizontal = side_thrusters
        plant.controller.move = np.array([0.0, 0.0, 1.0])
        for _ in range(2):
            horizontal.tick(2.0, 0.0, 0.0, 0.0, SIDE_MASS, False, False)
        assert _ion_override(hardware.rear) == pytest.approx(2.0 * G_STANDARD * SIDE_MASS / SIDE_THRUST)

    def test_log_channels(self, side_thrusters):
        _, _, horizontal = side_thrusters
        assert len(horizontal.log_names()) == len(horizontal.log_values())
