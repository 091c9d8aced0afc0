"""Shared fixtures: test planets and simulated vehicles."""

import numpy as np
import pytest

from flight.guidance import GuidanceConfig, GuidanceController
from lander.environment import PlanetCatalog, PlanetModel
from lander.simulation import LanderPlant
from lander.vehicle.interfaces import HitType

# Earth-like surface, 100 km radius, hills up to 1 km, atmosphere up to 100 km
FLATLAND = PlanetModel("flatland", "Flatland", 1.0, 100.0, 0.01, 1.0)
# No gravity, no atmosphere
VOID = PlanetModel("void", "Void", 0.0, 0.0, 0.0, 0.0)
RADIUS = 1.0e5


@pytest.fixture
def catalog():
    return PlanetCatalog(extra_planets=[FLATLAND, VOID])


@pytest.fixture
def make_plant():
    """Factory for a free-falling lander with an atmospheric lifter and one radar."""

    def _make(
        altitude: float = 5000.0,
        vertical_speed: float = 0.0,
        planet: PlanetModel = FLATLAND,
        lift_ratio: float = 2.0,
        lifter: str = "LargeAtmosphericThrust",
        radar: bool = True,
        gear: bool = True,
    ) -> LanderPlant:
        plant = LanderPlant(planet, RADIUS, altitude=altitude, vertical_speed=vertical_speed)
        plant.dampeners = False
        if lift_ratio > 0:
            plant.add_thruster(lifter, lift_ratio * plant.mass * 9.81)
        if radar:
            hit_type = HitType.PLANET if planet.gravity_sea_level > 0 else HitType.ASTEROID
            plant.add_range_sensor(hit_type=hit_type)
        if gear:
            plant.add_gear()
        return plant

    return _make


@pytest.fixture
def make_controller(catalog):
    """Factory for a controller bound to a plant; collects emitted events."""

    def _make(plant: LanderPlant, config: GuidanceConfig | None = None, planet: str = "flatland"):
        events = []
        controller = GuidanceController(
            config or GuidanceConfig(),
            plant.build_hardware(),
            catalog=catalog,
            event_sink=events.append,
        )
        controller.set_planet(planet)
        return controller, events

    return _make


@pytest.fixture
def flatland():
    return FLATLAND


@pytest.fixture
def void():
    return VOID


@pytest.fixture
def run_loop():
    """Run fast ticks of guidance and plant; returns the next tick counter."""

    def _run(plant: LanderPlant, controller: GuidanceController, ticks: int, start: int = 0) -> int:
        dt = 1.0 / 60.0
        for counter in range(start, start + ticks):
            controller.tick(counter)
            plant.step(dt)
        return start + ticks

    return _run


class FakeThruster:
    """Thruster with fixed ratings and a fixed force direction."""

    def __init__(self, subtype_name, max_thrust, effective_thrust=None, direction=(0.0, 0.0, 1.0)):
        self.subtype_name = subtype_name
        self.display_name = subtype_name
        self.enabled = True
        self.working = True
        self.thrust_override_percentage = 0.0
        self.thrust_override = 0.0
        self.max_thrust = max_thrust
        self.max_effective_thrust = max_thrust if effective_thrust is None else effective_thrust
        self.current_thrust = 0.0
        self.force_direction = np.array(direction, dtype=np.float64)

    @property
    def is_working(self):
        return self.working


@pytest.fixture
def fake_thruster():
    return FakeThruster
