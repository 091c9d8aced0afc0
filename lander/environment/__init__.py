"""Environment models for planetary descent.

Provides planet descriptions, the planet catalog, and the gravity and
atmosphere-density laws the guidance assumes.
"""

from lander.environment.planet import PlanetCatalog, PlanetModel
from lander.environment.atmosphere import (
    atmosphere_limit_altitude,
    density_at_altitude,
)
from lander.environment.gravity import GRAVITY_CUTOFF_G, gravity_at_altitude

__all__ = [
    "GRAVITY_CUTOFF_G",
    "PlanetCatalog",
    "PlanetModel",
    "atmosphere_limit_altitude",
    "density_at_altitude",
    "gravity_at_altitude",
]
