"""Vehicle mass properties and propellant state derived from the hardware."""

from dataclasses import dataclass, field

from lander.numerics import max3
from lander.vehicle.hardware import VehicleHardware


@dataclass
class ShipInfo:
    """Slowly varying vehicle properties, refreshed on the slow tick.

    Attributes:
        hardware: Vehicle hardware
        inertia_ratio_small: Gyro authority scale for small grids
        inertia_ratio_large: Gyro authority scale for large grids
        mass: Total mass [kg]
        inertia: Largest principal inertia of the bounding box [kg*m^2]
    """
    hardware: VehicleHardware
    inertia_ratio_small: float = 1e7
    inertia_ratio_large: float = 6e8
    mass: float = field(default=0.0, init=False)
    inertia: float = field(default=0.0, init=False)

    def __post_init__(self):
        self.update_mass()
        self.update_inertia()

    def update_mass(self) -> None:
        self.mass = float(self.hardware.controller.total_mass())

    def update_inertia(self) -> None:
        """Inertia of a uniform box filling the vehicle bounding box."""
        x, y, z = (float(v) for v in self.hardware.controller.grid_size())
        self.inertia = max3(
            self.mass * (y * y + z * z) / 12.0,
            self.mass * (x * x + z * z) / 12.0,
            self.mass * (x * x + y * y) / 12.0,
        )

    def max_angle(self) -> float:
        """Tilt angle the gyros can reasonably hold [deg]."""
        if self.inertia <= 0:
            return 0.0
        ratio = (self.inertia_ratio_small if self.hardware.controller.is_small_grid
                 else self.inertia_ratio_large)
        return len(self.hardware.gyros) / self.inertia * ratio

    def h2_stored_liters(self) -> float:
        return float(sum(t.filled_ratio * t.capacity for t in self.hardware.h2_tanks))

    def h2_capacity_liters(self) -> float:
        return float(sum(t.capacity for t in self.hardware.h2_tanks))

    def debug_string(self) -> str:
        return (
            f"[SHIP INFO]\n{self.mass:06.0f}kg {self.inertia:06.0f}kg.m2 "
            f"{self.max_angle():05.2f}deg {self.h2_stored_liters() / 1000:.0f}kL"
        )
