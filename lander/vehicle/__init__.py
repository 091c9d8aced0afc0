"""Vehicle modeling: hardware interfaces, hardware bundle, mass properties.

Example:
    >>> from lander.vehicle import ShipInfo, VehicleHardware
    >>>
    >>> hardware = VehicleHardware.from_thrusters(controller, thrusters)
    >>> info = ShipInfo(hardware)
    >>> print(f"Mass: {info.mass:.0f} kg")
"""

from lander.vehicle.hardware import VehicleHardware
from lander.vehicle.interfaces import (
    GasTank,
    Gyro,
    HitType,
    LandingGear,
    Parachute,
    RangeSensor,
    RaycastHit,
    ShipController,
    Thruster,
)
from lander.vehicle.ship_info import ShipInfo

__all__ = [
    "GasTank",
    "Gyro",
    "HitType",
    "LandingGear",
    "Parachute",
    "RangeSensor",
    "RaycastHit",
    "ShipController",
    "ShipInfo",
    "Thruster",
    "VehicleHardware",
]
