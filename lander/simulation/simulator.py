"""Point-mass landing plant and closed-loop simulation driver.

The plant keeps the truth state of a vehicle above flat terrain (the
plane z = 0, world z up) and propagates it in response to the commands
the guidance writes into the simulated hardware:

- Translation: thruster forces, parachute drag and gravity, semi-implicit Euler
- Rotation: body rates commanded by overriding gyros (no rotational inertia)
- Ground contact: the vehicle stops on the terrain and the gear locks

Gravity and density follow the same planet laws the guidance assumes
(:func:`gravity_at_altitude`, :func:`density_at_altitude`).

Architecture:
    The guidance owns nothing of the plant; LandingSimulator runs the loop:

        controller.tick100()    # every 100 fast ticks
        controller.tick10()     # every 10 fast ticks
        controller.tick1()      # every fast tick
        plant.step(dt)          # propagate truth

Example:
    >>> from lander.simulation import LanderPlant, LandingSimulator
    >>>
    >>> plant = LanderPlant(planet, radius=1e5, altitude=5000.0, vertical_speed=-50.0)
    >>> hardware = plant.build_hardware()
    >>> controller = GuidanceController(GuidanceConfig(), hardware)
    >>> sim = LandingSimulator(plant, controller)
    >>> result = sim.run(max_time=300.0)
    >>> result.touchdown_speed
"""

import logging
from dataclasses import dataclass, field
from typing import Protocol

import numpy as np
from beartype import beartype
from numba import njit
from numpy.typing import NDArray

from lander.environment.atmosphere import density_at_altitude
from lander.environment.gravity import gravity_at_altitude
from lander.environment.planet import PlanetModel
from lander.simulation.devices import (
    SimGasTank,
    SimGyro,
    SimLandingGear,
    SimParachute,
    SimRangeSensor,
    SimShipController,
    SimThruster,
)
from lander.telemetry import RunTimeCounter, TelemetryRecorder
from lander.vehicle.hardware import VehicleHardware

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

DAMPENER_TIME_CONSTANT: float = 0.5  # Velocity decay time of the inertia dampeners [s]
LANDED_CLEARANCE: float = 0.05  # Height above terrain still counted as landed [m]
PLANT_CHANNELS = ["time", "altitude", "vertical_speed", "horizontal_speed", "tilt"]


# =============================================================================
# Configuration
# =============================================================================


@beartype
@dataclass
class SimConfig:
    """Simulation configuration.

    Attributes:
        tick_rate: Fast ticks per second [Hz]
        log_factor: Fast ticks per telemetry row
        stop_on_landing: End the run once the vehicle has settled on the ground
        settle_time: Time spent on the ground before stopping [s]
    """
    tick_rate: float = 60.0
    log_factor: int = 2
    stop_on_landing: bool = True
    settle_time: float = 2.0

    def __post_init__(self) -> None:
        if self.tick_rate <= 0:
            raise ValueError(f"tick_rate must be positive, got {self.tick_rate}")
        if self.log_factor < 1:
            raise ValueError(f"log_factor must be >= 1, got {self.log_factor}")

    @property
    def dt(self) -> float:
        return 1.0 / self.tick_rate


# =============================================================================
# Numba-Optimized Integration
# =============================================================================


@njit(cache=True)
def _translate(
    px: float, py: float, pz: float,
    vx: float, vy: float, vz: float,
    ax: float, ay: float, az: float,
    dt: float,
) -> tuple[float, float, float, float, float, float]:
    """Semi-implicit Euler step of position and velocity."""
    vx += ax * dt
    vy += ay * dt
    vz += az * dt
    return px + vx * dt, py + vy * dt, pz + vz * dt, vx, vy, vz


@njit(cache=True)
def _rodrigues(
    vx: float, vy: float, vz: float,
    kx: float, ky: float, kz: float,
    angle: float,
) -> tuple[float, float, float]:
    """Rotate v about the unit axis k by ``angle`` [rad]."""
    c = np.cos(angle)
    s = np.sin(angle)
    dot = kx * vx + ky * vy + kz * vz
    cx = ky * vz - kz * vy
    cy = kz * vx - kx * vz
    cz = kx * vy - ky * vx
    return (
        vx * c + cx * s + kx * dot * (1.0 - c),
        vy * c + cy * s + ky * dot * (1.0 - c),
        vz * c + cz * s + kz * dot * (1.0 - c),
    )


# =============================================================================
# Plant
# =============================================================================


class LanderPlant:
    """Truth state and simulated hardware of a vehicle above flat terrain.

    Attributes:
        planet: Planet supplying gravity and atmosphere
        radius: Planet sea-level radius [m]
        exponent: Gravity inverse-power exponent
        ground_altitude_sl: Height of the terrain above sea level [m]
        mass: Vehicle mass [kg]
        position: World position, z is the height above terrain [m]
        velocity: World velocity [m/s]
        landed: The vehicle rests on the terrain
        touchdown_speed: Vertical speed at the first ground contact [m/s]
    """

    def __init__(
        self,
        planet: PlanetModel,
        radius: float,
        altitude: float,
        vertical_speed: float = 0.0,
        mass: float = 10000.0,
        exponent: float = 2.0,
        ground_altitude_sl: float = 0.0,
        grid_size: tuple[float, float, float] = (5.0, 5.0, 5.0),
    ) -> None:
        if radius <= 0:
            raise ValueError(f"Planet radius must be positive, got {radius}")
        if mass <= 0:
            raise ValueError(f"Mass must be positive, got {mass}")
        self.planet = planet
        self.radius = radius
        self.exponent = exponent
        self.ground_altitude_sl = ground_altitude_sl
        self.mass = mass
        self.grid_size = np.array(grid_size, dtype=np.float64)
        self.entity_id = 42

        self.position = np.array([0.0, 0.0, altitude])
        self.velocity = np.array([0.0, 0.0, vertical_speed])
        self._right = np.array([1.0, 0.0, 0.0])
        self._forward = np.array([0.0, 1.0, 0.0])
        self._up = np.array([0.0, 0.0, 1.0])
        self.time = 0.0
        self.dampeners = True
        self.landed = altitude <= 0
        self.touchdown_speed: float | None = None

        self.controller = SimShipController(self)
        self.thrusters: list[SimThruster] = []
        self.gyros: list[SimGyro] = []
        self.gears: list[SimLandingGear] = []
        self.parachutes: list[SimParachute] = []
        self.range_sensors: list[SimRangeSensor] = []
        self.tanks: list[SimGasTank] = []

    # -------------------------------------------------------------------------
    # Assembly
    # -------------------------------------------------------------------------

    def add_thruster(self, subtype_name: str, max_thrust: float, direction: str = "up") -> SimThruster:
        thruster = SimThruster(self, subtype_name, max_thrust, direction)
        self.thrusters.append(thruster)
        return thruster

    def add_gyro(self, max_rate: float = 1.0) -> SimGyro:
        gyro = SimGyro(max_rate)
        self.gyros.append(gyro)
        return gyro

    def add_gear(self, auto_lock: bool = True) -> SimLandingGear:
        gear = SimLandingGear(self, auto_lock)
        self.gears.append(gear)
        return gear

    def add_parachute(self, drag_area: float = 500.0) -> SimParachute:
        parachute = SimParachute(self, drag_area)
        self.parachutes.append(parachute)
        return parachute

    def add_range_sensor(self, **kwargs) -> SimRangeSensor:
        sensor = SimRangeSensor(self, **kwargs)
        self.range_sensors.append(sensor)
        return sensor

    def build_hardware(self) -> VehicleHardware:
        """Sort the simulated devices into a VehicleHardware bundle."""
        return VehicleHardware.from_thrusters(
            self.controller,
            self.thrusters,
            gyros=list(self.gyros),
            gears=list(self.gears),
            parachutes=list(self.parachutes),
            range_sensors=list(self.range_sensors),
            h2_tanks=list(self.tanks),
        )

    # -------------------------------------------------------------------------
    # State
    # -------------------------------------------------------------------------

    def axis(self, name: str) -> NDArray[np.float64]:
        """World direction of a ship axis."""
        axes = {
            "right": self._right,
            "left": -self._right,
            "forward": self._forward,
            "backward": -self._forward,
            "up": self._up,
            "down": -self._up,
        }
        return axes[name].copy()

    @property
    def altitude(self) -> float:
        return float(self.position[2])

    @property
    def altitude_sl(self) -> float:
        return float(self.position[2]) + self.ground_altitude_sl

    @property
    def gravity_magnitude(self) -> float:
        return gravity_at_altitude(self.altitude_sl, self.planet, self.radius, self.exponent)

    @property
    def gravity_vector(self) -> NDArray[np.float64]:
        return np.array([0.0, 0.0, -self.gravity_magnitude])

    @property
    def density(self) -> float:
        return density_at_altitude(self.altitude_sl, self.planet, self.radius)

    @property
    def tilt(self) -> float:
        """Angle between the ship up axis and the vertical [deg]."""
        return float(np.degrees(np.arccos(np.clip(self._up[2], -1.0, 1.0))))

    def set_attitude(self, pitch: float = 0.0, roll: float = 0.0) -> None:
        """Set a nose-up ``pitch`` and right-side-up ``roll`` tilt from level [deg]."""
        self._right = np.array([1.0, 0.0, 0.0])
        self._forward = np.array([0.0, 1.0, 0.0])
        self._up = np.array([0.0, 0.0, 1.0])
        self._rotate(self._right, np.radians(pitch))
        self._rotate(-self._forward, np.radians(roll))

    def dampener_thrust(self, thruster: SimThruster) -> float:
        """Thrust the inertia dampeners draw from a non-overridden thruster [N]."""
        if not self.dampeners or self.landed:
            return 0.0
        direction = thruster.force_direction
        wanted = -self.velocity / DAMPENER_TIME_CONSTANT - self.gravity_vector
        demand = self.mass * float(np.dot(wanted, direction))
        if demand <= 0:
            return 0.0
        sharing = [
            t for t in self.thrusters
            if t.direction == thruster.direction and t.is_working and not t.is_overridden
        ]
        return min(demand / max(len(sharing), 1), thruster.max_effective_thrust)

    # -------------------------------------------------------------------------
    # Propagation
    # -------------------------------------------------------------------------

    def _rotate(self, axis: NDArray[np.float64], angle: float) -> None:
        norm = float(np.linalg.norm(axis))
        if norm == 0 or angle == 0:
            return
        k = axis / norm
        for vector in (self._right, self._forward, self._up):
            vector[:] = _rodrigues(vector[0], vector[1], vector[2], k[0], k[1], k[2], angle)
        # Re-orthonormalize against drift
        self._up /= np.linalg.norm(self._up)
        self._forward -= np.dot(self._forward, self._up) * self._up
        self._forward /= np.linalg.norm(self._forward)
        self._right[:] = np.cross(self._forward, self._up)

    def body_rate(self) -> NDArray[np.float64]:
        """World angular velocity commanded by the overriding gyros [rad/s]."""
        active = [g for g in self.gyros if g.override_enabled]
        if not active:
            return np.zeros(3)
        backward = -self._forward
        omega = sum(g.pitch * self._right + g.yaw * self._up + g.roll * backward for g in active)
        return omega / len(active)

    def net_force(self) -> NDArray[np.float64]:
        force = np.zeros(3)
        for thruster in self.thrusters:
            force += thruster.current_thrust * thruster.force_direction
        for parachute in self.parachutes:
            force += parachute.drag_force(self.velocity)
        return force

    def step(self, dt: float) -> None:
        """Propagate the truth state by ``dt`` [s]."""
        for sensor in self.range_sensors:
            sensor.recharge(dt)

        omega = self.body_rate()
        acceleration = self.net_force() / self.mass + self.gravity_vector

        px, py, pz, vx, vy, vz = _translate(
            self.position[0], self.position[1], self.position[2],
            self.velocity[0], self.velocity[1], self.velocity[2],
            acceleration[0], acceleration[1], acceleration[2],
            dt,
        )
        self.position = np.array([px, py, pz])
        self.velocity = np.array([vx, vy, vz])
        self._rotate(omega, float(np.linalg.norm(omega)) * dt)

        if self.position[2] <= 0.0:
            if not self.landed:
                self.touchdown_speed = float(-self.velocity[2])
                logger.info("Touchdown at %.2f m/s", self.touchdown_speed)
            self.position[2] = 0.0
            self.velocity = np.zeros(3)
            self.landed = True
        elif self.position[2] > LANDED_CLEARANCE:
            self.landed = False
        self.time += dt

    def log_values(self) -> list[float]:
        horizontal = float(np.hypot(self.velocity[0], self.velocity[1]))
        return [self.time, self.altitude, float(self.velocity[2]), horizontal, self.tilt]


# =============================================================================
# Closed-loop Driver
# =============================================================================


class GuidanceLoop(Protocol):
    """What the driver needs from the on-board guidance."""

    def tick100(self) -> None: ...

    def tick10(self) -> None: ...

    def tick1(self) -> None: ...

    def all_log_names(self) -> list[str]: ...

    def all_log_values(self) -> list[float]: ...


@dataclass
class LandingResult:
    """Outcome of a LandingSimulator run.

    Attributes:
        landed: The vehicle ended on the ground
        touchdown_speed: Vertical speed at the first ground contact [m/s]
        time: Simulated duration [s]
        telemetry: Recorded plant and guidance channels
    """
    landed: bool
    touchdown_speed: float | None
    time: float
    telemetry: TelemetryRecorder = field(repr=False)

    def to_dataframe(self):
        """Convert the telemetry to a Polars DataFrame."""
        return self.telemetry.to_dataframe()


class LandingSimulator:
    """Runs a guidance loop against a plant at a fixed tick rate.

    Attributes:
        counter: Fast ticks run so far
        recorder: Plant channels followed by the guidance channels
        run_time: Wall time statistics of the three tick rates
    """

    def __init__(self, plant: LanderPlant, controller: GuidanceLoop, config: SimConfig | None = None) -> None:
        self.plant = plant
        self.controller = controller
        self.config = config or SimConfig()
        self.counter = 0
        self.recorder = TelemetryRecorder(
            PLANT_CHANNELS + controller.all_log_names(), self.config.log_factor
        )
        self.run_time = RunTimeCounter()

    def step(self) -> None:
        """Run one fast tick: due guidance ticks, slow to fast, then the plant."""
        if self.counter % 100 == 0:
            with self.run_time.measure("slow"):
                self.controller.tick100()
        if self.counter % 10 == 0:
            with self.run_time.measure("medium"):
                self.controller.tick10()
        with self.run_time.measure("fast"):
            self.controller.tick1()
        self.plant.step(self.config.dt)
        self.recorder.record(self.counter, self.plant.log_values() + self.controller.all_log_values())
        self.counter += 1

    def run_ticks(self, count: int) -> None:
        for _ in range(count):
            self.step()

    def run(self, max_time: float = 600.0) -> LandingResult:
        """Run until the vehicle has settled on the ground or ``max_time`` [s] elapsed."""
        cfg = self.config
        start = self.plant.time
        landed_since: float | None = None
        while self.plant.time - start < max_time:
            self.step()
            if not cfg.stop_on_landing:
                continue
            if self.plant.landed:
                if landed_since is None:
                    landed_since = self.plant.time
                elif self.plant.time - landed_since >= cfg.settle_time:
                    break
            else:
                landed_since = None
        logger.debug("%s", self.run_time.debug_string())
        return LandingResult(
            landed=self.plant.landed,
            touchdown_speed=self.plant.touchdown_speed,
            time=self.plant.time - start,
            telemetry=self.recorder,
        )
