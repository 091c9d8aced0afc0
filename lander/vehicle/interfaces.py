"""Hardware interfaces consumed by the guidance.

The guidance never talks to concrete hardware. It reads and commands
objects satisfying these protocols; the simulation package provides
implementations, and a flight integration provides its own.

Frame conventions:
    World vectors are 3-element float arrays. The ship axes returned by
    :class:`ShipController` form a right-handed frame where
    ``forward = up x right``.

Rotation commands sent to :class:`Gyro` are angular rates [rad/s] about
the ship right (pitch), up (yaw) and backward (roll) axes, using the
right-hand rule.
"""

from enum import Enum, auto
from typing import NamedTuple, Protocol

import numpy as np
from numpy.typing import NDArray

# =============================================================================
# Range Sensor
# =============================================================================


class HitType(Enum):
    """What a range-sensor ray hit."""

    NONE = auto()
    PLANET = auto()
    LARGE_GRID = auto()
    SMALL_GRID = auto()
    ASTEROID = auto()
    OTHER = auto()


class RaycastHit(NamedTuple):
    """Result of a single range-sensor cast."""
    hit_type: HitType = HitType.NONE
    hit_position: NDArray[np.float64] | None = None
    entity_id: int = 0

    @property
    def is_empty(self) -> bool:
        return self.hit_type is HitType.NONE


class RangeSensor(Protocol):
    """Downward-looking ray-casting range sensor."""

    def can_scan(self, distance: float) -> bool:
        """True when a cast of ``distance`` can be done right now."""
        ...

    def raycast(self, distance: float, pitch: float, yaw: float) -> RaycastHit:
        """Cast a ray, offset by pitch/yaw [deg] from the sensor axis.

        The sensor looks along ship-down. Positive pitch tilts the ray
        towards ship forward, positive yaw towards ship right.
        """
        ...

    @property
    def position(self) -> NDArray[np.float64]: ...

    @property
    def grid_entity_id(self) -> int:
        """Entity id of the vehicle the sensor is mounted on."""
        ...

    def enable_raycast(self, enabled: bool) -> None: ...


# =============================================================================
# Actuators
# =============================================================================


class Thruster(Protocol):
    """Thrust actuator.

    ``subtype_name`` and ``display_name`` are used to classify the
    propulsion type. Thrusts are in Newtons.
    """
    subtype_name: str
    display_name: str
    enabled: bool
    thrust_override_percentage: float
    thrust_override: float

    @property
    def max_thrust(self) -> float: ...

    @property
    def max_effective_thrust(self) -> float: ...

    @property
    def current_thrust(self) -> float: ...

    @property
    def is_working(self) -> bool: ...

    @property
    def force_direction(self) -> NDArray[np.float64]:
        """Unit vector of the force applied to the vehicle, world frame."""
        ...


class Gyro(Protocol):
    """Rotation actuator with rate override."""
    override_enabled: bool
    pitch: float
    yaw: float
    roll: float

    @property
    def max_rate(self) -> float:
        """Largest commandable rate [rad/s]."""
        ...


class LandingGear(Protocol):
    @property
    def is_locked(self) -> bool: ...

    def unlock(self) -> None: ...


class Parachute(Protocol):
    @property
    def atmosphere_density(self) -> float:
        """Local relative atmosphere density the parachute measures."""
        ...

    def open_door(self) -> None: ...


class GasTank(Protocol):
    @property
    def capacity(self) -> float:
        """Capacity [L]."""
        ...

    @property
    def filled_ratio(self) -> float: ...


# =============================================================================
# Vehicle State Provider
# =============================================================================


class ShipController(Protocol):
    """Read-only view of the vehicle state plus pilot inputs."""
    dampeners_override: bool

    def natural_gravity(self) -> NDArray[np.float64]:
        """Gravity vector [m/s^2], world frame."""
        ...

    def linear_velocity(self) -> NDArray[np.float64]:
        """Velocity [m/s], world frame."""
        ...

    def position(self) -> NDArray[np.float64]: ...

    def total_mass(self) -> float: ...

    def grid_size(self) -> NDArray[np.float64]:
        """Bounding box extents of the vehicle [m]."""
        ...

    @property
    def is_small_grid(self) -> bool: ...

    def forward(self) -> NDArray[np.float64]: ...

    def right(self) -> NDArray[np.float64]: ...

    def up(self) -> NDArray[np.float64]: ...

    def surface_elevation(self) -> float | None:
        """Height above the terrain below, None when unavailable [m]."""
        ...

    def sea_level_elevation(self) -> float | None:
        """Height above sea level, None when unavailable [m]."""
        ...

    def move_indicator(self) -> NDArray[np.float64]:
        """Pilot translation input (right, up, backward)."""
        ...

    def rotation_indicator(self) -> NDArray[np.float64]:
        """Pilot rotation input (pitch, yaw)."""
        ...

    def roll_indicator(self) -> float: ...
