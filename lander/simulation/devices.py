"""Simulated hardware attached to a :class:`~lander.simulation.simulator.LanderPlant`.

Every class here satisfies the matching Protocol of
:mod:`lander.vehicle.interfaces`, reading the truth state of the plant it
is mounted on. Directions are named after the ship axis they follow:
``"up"``, ``"down"``, ``"forward"``, ``"backward"``, ``"left"``, ``"right"``.

Example:
    >>> plant = LanderPlant(planet, radius=1e5, altitude=5000.0)
    >>> lifter = SimThruster(plant, "LargeAtmosphericThrust", 2.0e5, "up")
    >>> plant.thrusters.append(lifter)
"""

from typing import TYPE_CHECKING

import numpy as np
from numpy.typing import NDArray

from lander.propulsion.thrust_group import (
    PropulsionType,
    atmospheric_thrust_for_density,
    classify_thruster,
    ion_thrust_for_density,
    prototech_thrust_for_density,
)
from lander.vehicle.interfaces import HitType, RaycastHit

if TYPE_CHECKING:
    from lander.simulation.simulator import LanderPlant

_DENSITY_LAWS = {
    PropulsionType.ATMOSPHERIC: atmospheric_thrust_for_density,
    PropulsionType.ION: ion_thrust_for_density,
    PropulsionType.PROTOTECH: prototech_thrust_for_density,
}


# =============================================================================
# Actuators
# =============================================================================


class SimThruster:
    """Thruster whose effective thrust follows the local density.

    The force pushes the vehicle along ``direction``, i.e. the exhaust
    points the other way. ``thrust_override`` is in Newtons and
    ``thrust_override_percentage`` in [0, 1]; both views share one value.
    """

    def __init__(
        self,
        plant: "LanderPlant",
        subtype_name: str,
        max_thrust: float,
        direction: str,
        display_name: str = "",
    ) -> None:
        self.plant = plant
        self.subtype_name = subtype_name
        self.display_name = display_name or subtype_name
        self.direction = direction
        self.enabled = True
        self.working = True
        self.thrust_override_percentage = 0.0
        self._max_thrust = max_thrust
        self.kind = classify_thruster(subtype_name, self.display_name)

    @property
    def thrust_override(self) -> float:
        return self.thrust_override_percentage * self._max_thrust

    @thrust_override.setter
    def thrust_override(self, value: float) -> None:
        self.thrust_override_percentage = value / self._max_thrust if self._max_thrust > 0 else 0.0

    @property
    def max_thrust(self) -> float:
        return self._max_thrust

    @property
    def max_effective_thrust(self) -> float:
        law = _DENSITY_LAWS.get(self.kind)
        if law is None:
            return self._max_thrust
        return law(self._max_thrust, self.plant.density)

    @property
    def is_working(self) -> bool:
        return self.working and self.enabled

    @property
    def is_overridden(self) -> bool:
        return self.thrust_override_percentage > 0

    @property
    def current_thrust(self) -> float:
        """Thrust produced during the last plant step [N]."""
        if not self.is_working:
            return 0.0
        if self.is_overridden:
            return self.thrust_override_percentage * self.max_effective_thrust
        return self.plant.dampener_thrust(self)

    @property
    def force_direction(self) -> NDArray[np.float64]:
        return self.plant.axis(self.direction)


class SimGyro:
    """Gyro commanding body rates about right (pitch), up (yaw) and backward (roll)."""

    def __init__(self, max_rate: float = 1.0) -> None:
        self.override_enabled = False
        self.pitch = 0.0
        self.yaw = 0.0
        self.roll = 0.0
        self._max_rate = max_rate

    @property
    def max_rate(self) -> float:
        return self._max_rate


class SimLandingGear:
    """Gear that locks on ground contact when ``auto_lock`` is set."""

    def __init__(self, plant: "LanderPlant", auto_lock: bool = True) -> None:
        self.plant = plant
        self.auto_lock = auto_lock
        self._locked = False

    @property
    def is_locked(self) -> bool:
        if self.auto_lock and self.plant.landed:
            self._locked = True
        return self._locked

    def unlock(self) -> None:
        self._locked = False


class SimParachute:
    """Parachute hatch that doubles as a density sensor.

    Attributes:
        drag_area: Drag coefficient times area at density 1 [m^2]
        deployed: The door was opened
    """

    def __init__(self, plant: "LanderPlant", drag_area: float = 500.0) -> None:
        self.plant = plant
        self.drag_area = drag_area
        self.deployed = False

    @property
    def atmosphere_density(self) -> float:
        return self.plant.density

    def open_door(self) -> None:
        self.deployed = True

    def drag_force(self, velocity: NDArray[np.float64]) -> NDArray[np.float64]:
        if not self.deployed:
            return np.zeros(3)
        speed = float(np.linalg.norm(velocity))
        return -0.5 * 1.225 * self.plant.density * self.drag_area * speed * velocity


class SimGasTank:
    def __init__(self, capacity: float, filled_ratio: float = 1.0) -> None:
        self._capacity = capacity
        self._filled_ratio = filled_ratio

    @property
    def capacity(self) -> float:
        return self._capacity

    @property
    def filled_ratio(self) -> float:
        return self._filled_ratio


# =============================================================================
# Sensors
# =============================================================================


class SimRangeSensor:
    """Ray-casting range sensor looking along ship-down.

    The terrain is the plane z = 0 of the plant; hits are reported as
    ``hit_type`` (PLANET, or ASTEROID for a rendezvous target).
    """

    def __init__(
        self,
        plant: "LanderPlant",
        hit_type: HitType = HitType.PLANET,
        scan_rate: float | None = None,
    ) -> None:
        """Initialize range sensor.

        Args:
            plant: Plant the sensor is mounted on
            hit_type: Reported type of a terrain hit
            scan_rate: Cast range recharged per second [m/s] (None = unlimited)
        """
        self.plant = plant
        self.hit_type = hit_type
        self.scan_rate = scan_rate
        self.available_range = 0.0
        self.raycast_enabled = False
        self.casts = 0

    @property
    def position(self) -> NDArray[np.float64]:
        return self.plant.position.copy()

    @property
    def grid_entity_id(self) -> int:
        return self.plant.entity_id

    def enable_raycast(self, enabled: bool) -> None:
        self.raycast_enabled = enabled

    def recharge(self, dt: float) -> None:
        if self.scan_rate is not None and self.raycast_enabled:
            self.available_range += self.scan_rate * dt

    def can_scan(self, distance: float) -> bool:
        if not self.raycast_enabled:
            return False
        return self.scan_rate is None or self.available_range >= distance

    def raycast(self, distance: float, pitch: float, yaw: float) -> RaycastHit:
        """Cast towards ship-down, tilted ``pitch`` towards forward and ``yaw`` towards right [deg]."""
        if self.scan_rate is not None:
            self.available_range = max(self.available_range - distance, 0.0)
        self.casts += 1
        p, y = np.radians(pitch), np.radians(yaw)
        direction = np.cos(p) * self.plant.axis("down") + np.sin(p) * self.plant.axis("forward")
        direction = np.cos(y) * direction + np.sin(y) * self.plant.axis("right")
        direction = direction / np.linalg.norm(direction)

        origin = self.plant.position
        if direction[2] >= 0 or origin[2] < 0:
            return RaycastHit()
        t = -origin[2] / direction[2]
        if t > distance:
            return RaycastHit()
        return RaycastHit(self.hit_type, origin + t * direction, entity_id=1)


# =============================================================================
# Vehicle State Provider
# =============================================================================


class SimShipController:
    """Cockpit view of the plant: truth state plus pilot inputs.

    Surface and sea-level elevations are only reported inside a gravity
    field, like a cockpit that needs a planet to measure them.
    """

    def __init__(self, plant: "LanderPlant", small_grid: bool = False) -> None:
        self.plant = plant
        self.small_grid = small_grid
        self.move = np.zeros(3)
        self.rotation = np.zeros(2)
        self.roll = 0.0

    @property
    def dampeners_override(self) -> bool:
        return self.plant.dampeners

    @dampeners_override.setter
    def dampeners_override(self, value: bool) -> None:
        self.plant.dampeners = value

    def natural_gravity(self) -> NDArray[np.float64]:
        return self.plant.gravity_vector

    def linear_velocity(self) -> NDArray[np.float64]:
        return self.plant.velocity.copy()

    def position(self) -> NDArray[np.float64]:
        return self.plant.position.copy()

    def total_mass(self) -> float:
        return self.plant.mass

    def grid_size(self) -> NDArray[np.float64]:
        return self.plant.grid_size.copy()

    @property
    def is_small_grid(self) -> bool:
        return self.small_grid

    def forward(self) -> NDArray[np.float64]:
        return self.plant.axis("forward")

    def right(self) -> NDArray[np.float64]:
        return self.plant.axis("right")

    def up(self) -> NDArray[np.float64]:
        return self.plant.axis("up")

    def surface_elevation(self) -> float | None:
        if self.plant.gravity_magnitude <= 0:
            return None
        return float(self.plant.position[2])

    def sea_level_elevation(self) -> float | None:
        if self.plant.gravity_magnitude <= 0:
            return None
        return self.plant.altitude_sl

    def move_indicator(self) -> NDArray[np.float64]:
        return self.move.copy()

    def rotation_indicator(self) -> NDArray[np.float64]:
        return self.rotation.copy()

    def roll_indicator(self) -> float:
        return self.roll
