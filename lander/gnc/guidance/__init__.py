"""Guidance: speed setpoints for descent, hover and hold."""

from lander.gnc.guidance.autopilot import AltitudeMode, AutoPilot
from lander.gnc.guidance.profile import DescentProfile, DescentProfileBuilder

__all__ = [
    "AltitudeMode",
    "AutoPilot",
    "DescentProfile",
    "DescentProfileBuilder",
]
