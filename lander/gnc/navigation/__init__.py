"""Navigation: what the vehicle can infer about its surroundings.

Provides the planet gravity estimator and the terrain radar.
"""

from lander.gnc.navigation.gravity_estimator import ExponentSelector, GravityEstimator
from lander.gnc.navigation.radar import UNDEFINED_ALTITUDE, ScanMode, TerrainRadar

__all__ = [
    "ExponentSelector",
    "GravityEstimator",
    "ScanMode",
    "TerrainRadar",
    "UNDEFINED_ALTITUDE",
]
