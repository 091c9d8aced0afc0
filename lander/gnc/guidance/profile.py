"""Descent profile: a speed-vs-altitude table built by simulating a liftoff.

There is no closed form for the fastest safe descent of a vehicle whose
thrust depends on density and whose gravity depends on altitude. Instead,
the reverse problem is simulated once: a liftoff from the final approach
point, using the thrust available at each altitude with a safety factor.
Read backwards, the speed reached at each altitude during that liftoff is
the speed from which the vehicle can still stop by the final approach
point. During descent the table is only interpolated.

The simulation uses an increasing time step (0.5 s, growing by 0.05 s per
step, 256 steps) to cover both the slow start near the ground and long
climbs.

Example:
    >>> from lander.gnc.guidance import DescentProfileBuilder
    >>>
    >>> builder = DescentProfileBuilder(exponent=2.0)
    >>> profile = builder.compute(
    ...     start_altitude_sl=20.0, vehicle_mass=50000.0, planet=planet,
    ...     radius=60000.0, max_acceleration=30.0, max_twr=5.0,
    ...     sufficient_twr=5.0, safety_factor=1.1, max_speed=500.0,
    ...     initial_speed=1.5, thrust_group=lifters,
    ... )
    >>> speed_limit = profile.interpolate_speed(1500.0)
"""

import logging
from dataclasses import dataclass, field

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

from lander.environment.atmosphere import density_at_altitude
from lander.environment.gravity import gravity_at_altitude
from lander.environment.planet import PlanetModel
from lander.numerics import interpolate, min3
from lander.propulsion.thrust_group import ThrustGroup

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

NB_POINTS: int = 256
DT_START: float = 0.5  # First integration step [s]
DT_INCREMENT: float = 0.05  # Step growth per point [s]
H2_FLOW_RATIO: float = 0.000816  # Hydrogen consumption [L/(N*s)]


# =============================================================================
# Profile Table
# =============================================================================


@dataclass
class DescentProfile:
    """Liftoff simulation results, indexed by step.

    Attributes:
        altitude_sl: Altitude above sea level [m], increasing when valid
        vertical_speed: Upward speed reached at each altitude [m/s]
        atmospheric_ratio: Share of thrust from atmospheric thrusters
        electric_ratio: Share of thrust from ion/prototech thrusters
        hydrogen_ratio: Share of thrust from hydrogen thrusters
        h2_used: Cumulative hydrogen consumption [L]
        computed: A computation has run since the last invalidation
        valid: The simulated liftoff succeeded
    """
    altitude_sl: NDArray[np.float64] = field(default_factory=lambda: np.zeros(NB_POINTS))
    vertical_speed: NDArray[np.float64] = field(default_factory=lambda: np.zeros(NB_POINTS))
    atmospheric_ratio: NDArray[np.float64] = field(default_factory=lambda: np.zeros(NB_POINTS))
    electric_ratio: NDArray[np.float64] = field(default_factory=lambda: np.zeros(NB_POINTS))
    hydrogen_ratio: NDArray[np.float64] = field(default_factory=lambda: np.zeros(NB_POINTS))
    h2_used: NDArray[np.float64] = field(default_factory=lambda: np.zeros(NB_POINTS))
    computed: bool = False
    valid: bool = False

    def invalidate(self) -> None:
        """Mark the table stale without discarding it."""
        self.computed = False
        self.valid = False

    def interpolate_speed(self, altitude_sl: float) -> float:
        """Speed limit at ``altitude_sl`` [m/s], 0 when the profile is invalid."""
        return self._interpolate(altitude_sl, self.vertical_speed)

    def interpolate_h2_used(self, altitude_sl: float) -> float:
        """Hydrogen needed to climb from the start point to ``altitude_sl`` [L]."""
        return self._interpolate(altitude_sl, self.h2_used)

    def _interpolate(self, altitude_sl: float, values: NDArray[np.float64]) -> float:
        if not self.valid:
            return 0.0
        if altitude_sl <= self.altitude_sl[0]:
            return float(values[0])
        if altitude_sl >= self.altitude_sl[-1]:
            return float(values[-1])
        # Index of the last sample at or below the requested altitude
        m = int(np.searchsorted(self.altitude_sl, altitude_sl, side="right")) - 1
        return float(interpolate(
            float(self.altitude_sl[m]), float(self.altitude_sl[m + 1]),
            float(values[m]), float(values[m + 1]),
            float(altitude_sl),
        ))

    @property
    def final_speed(self) -> float:
        if self.valid and self.computed:
            return float(self.vertical_speed[-1])
        return 0.0

    @property
    def final_altitude(self) -> float:
        if self.valid and self.computed:
            return float(self.altitude_sl[-1])
        return 0.0

    def to_dataframe(self):
        """Convert to Polars DataFrame."""
        import polars as pl

        return pl.DataFrame({
            "altitude_sl": self.altitude_sl,
            "vertical_speed": self.vertical_speed,
            "atmospheric_ratio": self.atmospheric_ratio,
            "electric_ratio": self.electric_ratio,
            "hydrogen_ratio": self.hydrogen_ratio,
            "h2_used": self.h2_used,
        })

    def debug_string(self) -> str:
        lines = [
            "[DESCENT PROFILE]",
            f"Computed:{self.computed} Valid:{self.valid}",
            f"Final:{self.vertical_speed[-1]:05.1f}m/s, {self.altitude_sl[-1]:05.1f}m, "
            f"{self.h2_used[-1] / 1000:05.1f}kL",
            "Alt(m) | speed (m/s) | a/i/h ratio",
        ]
        for i in range(10):
            lines.append(
                f"{self.altitude_sl[i]:05.1f}  | {self.vertical_speed[i]:05.1f}  | "
                f"{self.atmospheric_ratio[i]:.2f} {self.electric_ratio[i]:.2f} "
                f"{self.hydrogen_ratio[i]:.2f}"
            )
        return "\n".join(lines)


# =============================================================================
# Builder
# =============================================================================


@beartype
class DescentProfileBuilder:
    """Builds a DescentProfile by forward-simulating a vertical liftoff.

    The builder owns a single profile table that is overwritten by each
    computation.
    """

    def __init__(self, exponent: float = 2.0) -> None:
        """Initialize builder.

        Args:
            exponent: Gravity inverse-power exponent assumed by the simulation
        """
        self.exponent = exponent
        self.profile = DescentProfile()

    def invalidate(self) -> None:
        self.profile.invalidate()

    @property
    def is_valid(self) -> bool:
        return self.profile.valid

    @property
    def is_computed(self) -> bool:
        return self.profile.computed

    def compute(
        self,
        start_altitude_sl: float,
        vehicle_mass: float,
        planet: PlanetModel,
        radius: float,
        max_acceleration: float,
        max_twr: float,
        sufficient_twr: float,
        safety_factor: float,
        max_speed: float,
        initial_speed: float,
        thrust_group: ThrustGroup,
    ) -> DescentProfile:
        """Simulate a liftoff and store it as the descent profile.

        Thrust is allocated atmospheric first (up to the acceleration and
        TWR caps), then electric, then hydrogen only while the total stays
        below ``sufficient_twr``. Once ``max_speed`` is reached thrusters
        only balance gravity.

        Args:
            start_altitude_sl: Altitude of the final approach point [m]
            vehicle_mass: Vehicle mass [kg]
            planet: Assumed planet
            radius: Assumed sea-level radius [m]
            max_acceleration: Acceleration cap [m/s^2]
            max_twr: Thrust-to-weight cap
            sufficient_twr: TWR above which hydrogen is not used
            safety_factor: Divides the available thrust (> 0)
            max_speed: Speed cap [m/s]
            initial_speed: Speed at the start point [m/s]
            thrust_group: Thrusters available for the descent

        Returns:
            The updated profile
        """
        if safety_factor <= 0:
            raise ValueError(f"Safety factor must be positive, got {safety_factor}")
        if vehicle_mass <= 0:
            raise ValueError(f"Vehicle mass must be positive, got {vehicle_mass}")

        p = self.profile
        safety_inverse = 1.0 / safety_factor
        mass = vehicle_mass

        p.vertical_speed[0] = initial_speed
        p.altitude_sl[0] = start_altitude_sl
        p.atmospheric_ratio[0] = 1.0
        p.electric_ratio[0] = 1.0
        p.hydrogen_ratio[0] = 1.0
        p.h2_used[0] = 0.0

        valid = True
        t = 0.0
        dt = DT_START
        for i in range(1, NB_POINTS):
            t += dt
            prev_altitude = float(p.altitude_sl[i - 1])
            prev_speed = float(p.vertical_speed[i - 1])
            gravity = gravity_at_altitude(prev_altitude, planet, radius, self.exponent)
            density = density_at_altitude(prev_altitude, planet, radius)

            thr_max_accel = mass * min(max_acceleration, gravity + 2.0 * t)
            thr_max_twr = mass * gravity * max_twr
            thr_sufficient = mass * gravity * sufficient_twr
            at_max_speed = prev_speed >= max_speed

            a_thrust = max(
                thrust_group.a_eff, thrust_group.atmospheric_thrust_for_density(density)
            ) * safety_inverse
            a_thrust = min3(a_thrust, thr_max_accel, thr_max_twr)

            e_thrust = thrust_group.electric_thrust_for_density(density) * safety_inverse
            if at_max_speed:
                e_thrust = max(0.0, min(e_thrust, mass * gravity - a_thrust))
            else:
                e_thrust = max(0.0, min3(e_thrust, thr_max_accel - a_thrust, thr_max_twr - a_thrust))

            h_thrust = 0.0
            if a_thrust + e_thrust < thr_sufficient:
                if at_max_speed:
                    h_thrust = max(0.0, mass * gravity - a_thrust - e_thrust)
                else:
                    h_thrust = max(0.0, min3(
                        thrust_group.h_max,
                        thr_max_accel - a_thrust - e_thrust,
                        thr_max_twr - a_thrust - e_thrust,
                    )) * safety_inverse

            p.h2_used[i] = p.h2_used[i - 1] + h_thrust * H2_FLOW_RATIO * dt
            total = a_thrust + e_thrust + h_thrust
            if total > 0:
                p.atmospheric_ratio[i] = a_thrust / total
                p.electric_ratio[i] = e_thrust / total
                p.hydrogen_ratio[i] = h_thrust / total
            else:
                p.atmospheric_ratio[i] = 0.0
                p.electric_ratio[i] = 0.0
                p.hydrogen_ratio[i] = 0.0

            accel = total / mass - gravity
            p.vertical_speed[i] = min(accel * dt + prev_speed, max_speed)
            p.altitude_sl[i] = prev_altitude + prev_speed * dt + 0.5 * accel * dt * dt
            if p.vertical_speed[i] < 0 or p.altitude_sl[i] <= prev_altitude:
                valid = False
            dt += DT_INCREMENT

        if valid != p.valid or not p.computed:
            if valid:
                logger.info("Descent profile valid up to %.0f m", p.altitude_sl[-1])
            else:
                logger.warning(
                    "Simulated liftoff failed from %.0f m, profile invalid", start_altitude_sl
                )
        p.computed = True
        p.valid = valid
        return p
