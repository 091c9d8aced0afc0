"""Attitude and horizontal control.

Control keeps the vehicle level (or tilted against its horizontal speed)
and drives the side thrusters.

Available controllers:
    AutoLeveler: Tilt-angle computation and gyro commands
    GyroController: Gyro override towards a target orientation
    HorizontalThrusters: PID-driven side thrust
"""

from flight.control.horizontal import HorizontalThrusters
from flight.control.leveler import AutoLeveler, GyroController

__all__ = [
    "AutoLeveler",
    "GyroController",
    "HorizontalThrusters",
]
