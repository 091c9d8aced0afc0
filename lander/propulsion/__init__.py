"""Propulsion modeling: thrust pools and their density response."""

from lander.propulsion.thrust_group import (
    PropulsionType,
    ThrustAllocation,
    ThrustGroup,
    classify_thruster,
)

__all__ = [
    "PropulsionType",
    "ThrustAllocation",
    "ThrustGroup",
    "classify_thruster",
]
