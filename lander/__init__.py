"""Lander - Models and GNC building blocks for planetary landing.

This package provides the physical models (planets, gravity, atmosphere,
propulsion), the guidance/navigation/control primitives, and a simulation
plant used to exercise the on-board guidance in flight/.

Example:
    >>> from lander import DescentProfileBuilder, PlanetCatalog, ThrustGroup
    >>>
    >>> planet = PlanetCatalog().find("earth")
    >>> builder = DescentProfileBuilder(exponent=2.0)
    >>> profile = builder.compute(
    ...     start_altitude_sl=20.0, vehicle_mass=1.0e4, planet=planet,
    ...     radius=60000.0, max_acceleration=30.0, max_twr=5.0,
    ...     sufficient_twr=2.0, safety_factor=1.1, max_speed=500.0,
    ...     initial_speed=1.5, thrust_group=lifters,
    ... )
    >>> print(f"Speed at 3 km: {profile.interpolate_speed(3000.0):.1f} m/s")
"""

__version__ = "0.1.0"

# Environment
from lander.environment import (
    PlanetCatalog,
    PlanetModel,
    density_at_altitude,
    gravity_at_altitude,
)

# GNC building blocks
from lander.gnc import (
    AutoPilot,
    DescentProfileBuilder,
    GravityEstimator,
    MovingAverage,
    PIDController,
    RateLimiter,
    RollingBuffer,
    TerrainRadar,
)
from lander.gnc.guidance import DescentProfile

# Propulsion
from lander.propulsion import PropulsionType, ThrustGroup

# Telemetry
from lander.telemetry import RunTimeCounter, TelemetryRecorder

# Vehicle
from lander.vehicle import ShipInfo, VehicleHardware

__all__ = [
    "__version__",
    # Environment
    "PlanetCatalog",
    "PlanetModel",
    "density_at_altitude",
    "gravity_at_altitude",
    # GNC
    "AutoPilot",
    "DescentProfile",
    "DescentProfileBuilder",
    "GravityEstimator",
    "MovingAverage",
    "PIDController",
    "RateLimiter",
    "RollingBuffer",
    "TerrainRadar",
    # Propulsion
    "PropulsionType",
    "ThrustGroup",
    # Telemetry
    "RunTimeCounter",
    "TelemetryRecorder",
    # Vehicle
    "ShipInfo",
    "VehicleHardware",
]
