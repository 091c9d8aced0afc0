"""Flight software package - landing guidance for thruster-lifted vehicles.

This package contains the guidance and control loops that would run on the
vehicle's programmable block. They are developed and tested against the
simulated plant in lander/simulation.

Architecture:
    The simulation (lander/simulation) provides the "plant" - truth state,
    thrusters, gyros and range sensors behind the interfaces of
    lander/vehicle. Flight software (flight/) reads those interfaces and
    commands the actuators at three tick rates.

    Simulation loop:
        controller.tick100()    # Slow: planet reclassification, profile
        controller.tick10()     # Medium: estimates, setpoint source
        controller.tick1()      # Fast: vertical PID, thrust, leveler
        plant.step(dt)          # Apply to plant

Subpackages:
    guidance: Mode management, vertical speed setpoints and thrust
    control: Auto-leveler, gyro override and horizontal thrusters

Example:
    >>> from flight import GuidanceConfig, GuidanceController, GuidanceMode
    >>>
    >>> controller = GuidanceController(GuidanceConfig(), plant.build_hardware())
    >>> controller.configure(GuidanceMode.LAND_GENTLE)
    >>> for counter in range(6000):
    ...     controller.tick(counter)
    ...     plant.step(1 / 60)
"""

from flight.commands import dispatch
from flight.control import AutoLeveler, GyroController, HorizontalThrusters
from flight.guidance import (
    ControllerUnavailableError,
    GuidanceConfig,
    GuidanceController,
    GuidanceEvent,
    GuidanceMode,
    GuidanceState,
    SetpointSource,
)

__all__ = [
    "AutoLeveler",
    "ControllerUnavailableError",
    "GuidanceConfig",
    "GuidanceController",
    "GuidanceEvent",
    "GuidanceMode",
    "GuidanceState",
    "GyroController",
    "HorizontalThrusters",
    "SetpointSource",
    "dispatch",
]
