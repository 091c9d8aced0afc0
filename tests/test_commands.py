"""Tests for the free-text command dispatcher."""

import pytest

from flight.commands import dispatch
from flight.guidance import GuidanceMode
from lander.gnc.guidance import AltitudeMode


@pytest.fixture
def ready(make_plant, make_controller, run_loop):
    plant = make_plant()
    controller, _ = make_controller(plant)
    run_loop(plant, controller, 11)
    return controller


class TestModeCommands:
    """Test mode tokens."""

    def test_mode_token(self, ready):
        assert dispatch(ready, "mode2")
        assert ready.mode is GuidanceMode.LAND_QUICK

    def test_case_and_whitespace(self, ready):
        assert dispatch(ready, "  MODE3 ")
        assert ready.mode is GuidanceMode.HOVER

    def test_refused_mode_still_recognized(self, make_plant, make_controller):
        controller, _ = make_controller(make_plant())
        assert dispatch(controller, "mode1")
        assert controller.mode is GuidanceMode.OFF

    def test_off(self, ready):
        dispatch(ready, "mode2")
        assert dispatch(ready, "off")
        assert ready.mode is GuidanceMode.OFF


class TestActionCommands:
    """Test feature toggles and hold adjustments."""

    def test_leveler(self, ready):
        assert dispatch(ready, "leveloff")
        assert not ready.state.level
        assert dispatch(ready, "levelswitch")
        assert ready.state.level

    def test_thrusters(self, ready):
        assert dispatch(ready, "thrustersoff")
        assert not ready.state.use_horizontal_thrusters
        assert dispatch(ready, "thrusterson")
        assert ready.state.use_horizontal_thrusters

    def test_angle(self, ready):
        assert dispatch(ready, "angleoff")
        assert not ready.state.use_angle

    def test_hold_adjustments(self, ready):
        dispatch(ready, "mode4")
        assert dispatch(ready, "speedup")
        assert ready.autopilot.desired_speed == 5.0
        assert dispatch(ready, "altsl")
        assert ready.autopilot.altitude_mode is AltitudeMode.SEA_LEVEL
        assert dispatch(ready, "altgnd")
        assert ready.autopilot.altitude_mode is AltitudeMode.GROUND


class TestPlanetCommands:
    """Test planet selection by name."""

    def test_planet_in_sentence(self, ready):
        assert dispatch(ready, "land on mars")
        assert ready.planet.short_name == "mars"

    @pytest.mark.parametrize("text", ["xyz", "", "   "])
    def test_unknown(self, ready, text):
        assert not dispatch(ready, text)
