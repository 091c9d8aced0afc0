"""Control primitives for the guidance loops.

Provides the discrete PID controller and the smoothing filters used by
the vertical, altitude and horizontal control chains.
"""

from lander.gnc.control.filters import (
    MovingAverage,
    RateLimiter,
    RollingBuffer,
)
from lander.gnc.control.pid import (
    PIDController,
    PIDGains,
)

__all__ = [
    "MovingAverage",
    "PIDController",
    "PIDGains",
    "RateLimiter",
    "RollingBuffer",
]
