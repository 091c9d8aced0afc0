"""GNC (Guidance, Navigation, Control) building blocks for powered descent.

Example:
    >>> from lander.gnc.control import PIDController
    >>> from lander.gnc.navigation import GravityEstimator
    >>> from lander.gnc.guidance import DescentProfileBuilder
"""

from lander.gnc.control import (
    MovingAverage,
    PIDController,
    RateLimiter,
    RollingBuffer,
)
from lander.gnc.guidance import (
    AutoPilot,
    DescentProfileBuilder,
)
from lander.gnc.navigation import (
    GravityEstimator,
    TerrainRadar,
)

__all__ = [
    # Control
    "MovingAverage",
    "PIDController",
    "RateLimiter",
    "RollingBuffer",
    # Navigation
    "GravityEstimator",
    "TerrainRadar",
    # Guidance
    "AutoPilot",
    "DescentProfileBuilder",
]
