"""Bundle of the hardware the guidance drives.

Example:
    >>> from lander.vehicle import VehicleHardware
    >>>
    >>> hardware = VehicleHardware.from_thrusters(controller, thrusters, gyros=gyros)
    >>> hardware.lifters.update_thrust()
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

import numpy as np

from lander.propulsion.thrust_group import ThrustGroup
from lander.vehicle.interfaces import (
    GasTank,
    Gyro,
    LandingGear,
    Parachute,
    RangeSensor,
    ShipController,
    Thruster,
)

ALIGNMENT_THRESHOLD: float = 0.9  # Min cosine between a thruster force and an axis


@dataclass
class VehicleHardware:
    """Every piece of hardware the guidance reads or commands.

    Thrust groups are named after the direction they push the vehicle:
    ``lifters`` push up, ``down`` pushes down, ``forward`` pushes forward.

    Attributes:
        controller: Vehicle state provider, None when none was found
        lifters: Thrusters pushing up
        down: Thrusters pushing down
        forward: Thrusters pushing forward
        rear: Thrusters pushing backward
        left: Thrusters pushing left
        right: Thrusters pushing right
        gyros: Rotation actuators
        gears: Landing gear
        parachutes: Parachute hatches (also density sensors)
        range_sensors: Downward range sensors, altitude sensor first
        h2_tanks: Hydrogen tanks
    """
    controller: ShipController | None
    lifters: ThrustGroup = field(default_factory=lambda: ThrustGroup(name="lifters"))
    down: ThrustGroup = field(default_factory=lambda: ThrustGroup(name="down"))
    forward: ThrustGroup = field(default_factory=lambda: ThrustGroup(name="forward"))
    rear: ThrustGroup = field(default_factory=lambda: ThrustGroup(name="rear"))
    left: ThrustGroup = field(default_factory=lambda: ThrustGroup(name="left"))
    right: ThrustGroup = field(default_factory=lambda: ThrustGroup(name="right"))
    gyros: list[Gyro] = field(default_factory=list)
    gears: list[LandingGear] = field(default_factory=list)
    parachutes: list[Parachute] = field(default_factory=list)
    range_sensors: list[RangeSensor] = field(default_factory=list)
    h2_tanks: list[GasTank] = field(default_factory=list)

    @classmethod
    def from_thrusters(
        cls,
        controller: ShipController,
        thrusters: Iterable[Thruster],
        **kwargs,
    ) -> "VehicleHardware":
        """Sort thrusters into direction groups using the controller axes.

        Thrusters not aligned with any axis are ignored. Remaining keyword
        arguments are passed to the constructor.
        """
        up, fwd, right = controller.up(), controller.forward(), controller.right()
        axes = {
            "lifters": up, "down": -up,
            "forward": fwd, "rear": -fwd,
            "right": right, "left": -right,
        }
        groups: dict[str, list[Thruster]] = {name: [] for name in axes}
        for thruster in thrusters:
            direction = np.asarray(thruster.force_direction, dtype=np.float64)
            for name, axis in axes.items():
                if float(np.dot(direction, axis)) > ALIGNMENT_THRESHOLD:
                    groups[name].append(thruster)
                    break
        return cls(
            controller=controller,
            **{name: ThrustGroup(members, name=name) for name, members in groups.items()},
            **kwargs,
        )

    def any_gear_locked(self) -> bool:
        return any(gear.is_locked for gear in self.gears)

    def unlock_gears(self) -> None:
        for gear in self.gears:
            gear.unlock()

    def open_parachutes(self) -> None:
        for parachute in self.parachutes:
            parachute.open_door()

    def parachute_density(self) -> float:
        """Atmosphere density measured by the first parachute, -1 without one."""
        if not self.parachutes:
            return -1.0
        return float(self.parachutes[0].atmosphere_density)

    def horizontal_groups(self) -> tuple[ThrustGroup, ThrustGroup, ThrustGroup, ThrustGroup]:
        return self.forward, self.rear, self.left, self.right
