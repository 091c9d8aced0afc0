"""Simulation plant for closed-loop guidance testing.

Provides a point-mass vehicle above flat terrain with simulated thrusters,
gyros, gear, parachutes and range sensors, plus the loop that runs the
guidance ticks against it.

Example:
    >>> from lander.simulation import LanderPlant, LandingSimulator
    >>>
    >>> plant = LanderPlant(planet, radius=1e5, altitude=5000.0, vertical_speed=-50.0)
    >>> plant.add_thruster("LargeAtmosphericThrust", 2.0e5)
    >>> sim = LandingSimulator(plant, controller)
    >>> result = sim.run(max_time=300.0)
"""

from lander.simulation.devices import (
    SimGasTank,
    SimGyro,
    SimLandingGear,
    SimParachute,
    SimRangeSensor,
    SimShipController,
    SimThruster,
)
from lander.simulation.simulator import (
    LanderPlant,
    LandingResult,
    LandingSimulator,
    SimConfig,
)

__all__ = [
    "LanderPlant",
    "LandingResult",
    "LandingSimulator",
    "SimConfig",
    "SimGasTank",
    "SimGyro",
    "SimLandingGear",
    "SimParachute",
    "SimRangeSensor",
    "SimShipController",
    "SimThruster",
]
