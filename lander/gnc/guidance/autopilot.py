"""Hover and altitude/speed-hold autopilot.

Produces horizontal speed setpoints from pilot input, and in hold mode a
vertical speed setpoint from an altitude PID. The safe horizontal speed
grows with altitude (and with the free distance the forward-looking radar
sees), so the vehicle slows down near terrain.

Example:
    >>> from lander.gnc.guidance import AutoPilot
    >>>
    >>> autopilot = AutoPilot(config)
    >>> autopilot.init()
    >>> autopilot.desired_altitude = 50.0
    >>> autopilot.update_safe_speed(ground_altitude=120.0, forward=-1.0)
    >>> autopilot.update_vertical_speed_setpoint(120.0, 620.0, 9.81)
"""

import math
from enum import Enum

import numpy as np
from numpy.typing import NDArray

from lander.gnc.control.filters import MovingAverage
from lander.gnc.control.pid import PIDController
from lander.numerics import interpolate, sat_min_max

FORWARD_ALTITUDE_FILTER_LENGTH: int = 10


class AltitudeMode(Enum):
    """Reference of the held altitude."""

    GROUND = "gnd"
    SEA_LEVEL = "sl"


class AutoPilot:
    """Setpoint generator for hover (pilot-driven) and hold modes.

    Attributes:
        forward_speed_sp: Forward speed setpoint [m/s]
        left_speed_sp: Left speed setpoint [m/s]
        vertical_speed_sp: Vertical speed setpoint [m/s], hold mode only
        desired_speed: Cruise speed requested by the pilot [m/s]
        desired_altitude: Altitude to hold [m]
        forward: Ground distance seen ahead, projected on the vertical [m]
        forward_valid: The forward-looking cast hit terrain
        altitude_mode: Reference of ``desired_altitude``
    """

    def __init__(self, config) -> None:
        """Initialize autopilot.

        Args:
            config: Guidance configuration (gains, filter lengths, speed limits)
        """
        self.altitude_pid = PIDController(
            kp=config.alt_kp,
            ki=config.alt_ki,
            kd=config.alt_kd,
            integral_limits=(config.alt_ai_min, config.alt_ai_max),
            derivative_filter=config.alt_ad_filter,
            max_derivative=config.alt_ad_max,
        )
        self._forward_speed_filter = MovingAverage(config.speed_filter_length)
        self._left_speed_filter = MovingAverage(config.speed_filter_length)
        self.altitude_filter = MovingAverage(config.alt_filter_length)
        self._safe_speed_filter = MovingAverage(config.safe_speed_filter_length)
        self._forward_altitude_filter = MovingAverage(FORWARD_ALTITUDE_FILTER_LENGTH)

        self.speed_increment = config.speed_increment
        self.max_speed = config.max_speed
        self.safe_altitude_min = config.safe_speed_alt_min
        self.safe_altitude_max = config.safe_speed_alt_max
        self.safe_speed_min = config.safe_speed_min
        self.safe_speed_max = config.safe_speed_max

        self.forward_speed_sp = 0.0
        self.left_speed_sp = 0.0
        self.vertical_speed_sp = 0.0
        self.desired_speed = config.mode4_initial_speed
        self.desired_altitude = config.mode4_initial_alt
        self.forward = self.safe_altitude_max
        self.forward_valid = False
        self.altitude_mode = AltitudeMode.GROUND

    def init(self) -> None:
        """Reset setpoints, filters and the altitude PID."""
        self.forward_speed_sp = 0.0
        self.left_speed_sp = 0.0
        self.vertical_speed_sp = 0.0
        self.altitude_pid.reset()
        self._forward_speed_filter.clear()
        self._left_speed_filter.clear()
        self.altitude_filter.clear()
        self._safe_speed_filter.clear()
        self.altitude_mode = AltitudeMode.GROUND

    @property
    def safe_speed(self) -> float:
        return self._safe_speed_filter.get()

    def update_speed_direct(self, move_indicator: NDArray[np.float64]) -> None:
        """Hover mode: each pilot input axis commands +-safe speed."""
        safe = self.safe_speed
        backward, right = float(move_indicator[2]), float(move_indicator[0])
        self.forward_speed_sp = self._forward_speed_filter.add_value(
            -safe if backward > 0 else safe if backward < 0 else 0.0)
        self.left_speed_sp = self._left_speed_filter.add_value(
            -safe if right > 0 else safe if right < 0 else 0.0)

    def update_speed_progressive(self, move_indicator: NDArray[np.float64]) -> None:
        """Hold mode: pilot input nudges the cruise speed up or down."""
        self.left_speed_sp = 0.0
        backward = float(move_indicator[2])
        if backward > 0 and self.desired_speed >= self.speed_increment:
            self.desired_speed -= self.speed_increment
        elif backward < 0 and self.desired_speed < self.max_speed:
            self.desired_speed += self.speed_increment
        self.forward_speed_sp = min(self.desired_speed, self.safe_speed)

    def update_vertical_speed_setpoint(
        self, ground_altitude: float, sea_level_altitude: float, gravity: float
    ) -> float:
        """Hold mode: vertical speed needed to reach the desired altitude.

        Args:
            ground_altitude: Altitude above ground [m]
            sea_level_altitude: Altitude above sea level [m]
            gravity: Local gravity [m/s^2]

        Returns:
            Vertical speed setpoint [m/s]
        """
        self.altitude_filter.add_value(self.desired_altitude)
        if self.forward_valid:
            self._forward_altitude_filter.add_value(self.forward)
        if self.desired_speed > 1 and self.forward_valid:
            relevant = min(ground_altitude, self._forward_altitude_filter.get() + 5.0)
        else:
            relevant = ground_altitude

        if self.altitude_mode is AltitudeMode.GROUND:
            delta = self.altitude_filter.get() - relevant
        else:
            min_ground_altitude = interpolate(
                self.safe_speed_min, self.safe_speed_max,
                self.safe_altitude_min, self.safe_altitude_max,
                self.desired_speed,
            )
            delta = max(
                self.altitude_filter.get() - sea_level_altitude,
                min_ground_altitude - relevant,
            )

        delta = delta / sat_min_max(relevant / 50.0, 0.1, 1.0)
        self.altitude_pid.update(delta, -5.0, 5.0)
        self.vertical_speed_sp = self.altitude_pid.output + max(delta - 10.0, 0.0) * 0.5
        if delta > 0:
            self.vertical_speed_sp = min(self.vertical_speed_sp, math.sqrt(2.0 * gravity * delta + 5.0))
        return self.vertical_speed_sp

    def update_safe_speed(self, ground_altitude: float, forward: float) -> None:
        """Feed the safe-speed filter from the clearance below and ahead."""
        clearance = min(ground_altitude, forward) if forward > 0 else ground_altitude
        self._safe_speed_filter.add_value(interpolate(
            self.safe_altitude_min, self.safe_altitude_max,
            self.safe_speed_min, self.safe_speed_max,
            clearance,
        ))

    def set_forward(self, forward: float, valid: bool) -> None:
        self.forward = forward
        self.forward_valid = valid

    def debug_string(self) -> str:
        return (
            f"[AUTOPILOT]\nforward:{self.forward:.0f}m {self.forward_valid} "
            f"PIDout:{self.altitude_pid.output:.2f}m/s {self.vertical_speed_sp:.2f}m/s"
        )

    def log_names(self) -> list[str]:
        return ["nforward", "vertical_speed_sp"]

    def log_values(self) -> list[float]:
        return [self.forward, self.vertical_speed_sp]
