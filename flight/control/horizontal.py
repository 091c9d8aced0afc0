"""Horizontal speed control with side thrusters.

One PID per horizontal axis turns the speed error into an acceleration
request in g, which the forward/rear and left/right thrust groups share
according to its sign.

This is flight software - designed to run on the vehicle.
"""

import numpy as np

from lander.gnc.control.pid import PIDController, PIDGains
from lander.numerics import G_STANDARD, dead_zone
from lander.vehicle.hardware import VehicleHardware

DERIVATIVE_FILTER: float = 0.5
MAX_DERIVATIVE: float = 1.0
OUTPUT_DEAD_ZONE: float = 0.05  # Used when the gyros also tilt the vehicle


class HorizontalThrusters:
    """Forward and left speed loops driving the horizontal thrust groups.

    Attributes:
        fwd_pid: Forward speed loop
        left_pid: Left speed loop
        timer: Quiet fast ticks since the last pilot input
    """

    def __init__(self, hardware: VehicleHardware, delay: int, gains: PIDGains, integral_max: float) -> None:
        """Initialize horizontal thrusters.

        Args:
            hardware: Vehicle hardware (controller and horizontal groups)
            delay: Quiet fast ticks before taking back control from the pilot
            gains: Gains of both axes
            integral_max: Magnitude of the integral clamp
        """
        self.hardware = hardware
        self.delay = delay
        limits = (-integral_max, integral_max)
        self.fwd_pid = PIDController.from_gains(gains, limits, DERIVATIVE_FILTER, MAX_DERIVATIVE)
        self.left_pid = PIDController.from_gains(gains, limits, DERIVATIVE_FILTER, MAX_DERIVATIVE)
        self.timer = 0

    def update_thrust(self) -> None:
        for group in self.hardware.horizontal_groups():
            group.update_thrust()

    def disable(self) -> None:
        for group in self.hardware.horizontal_groups():
            group.disable()
        self.fwd_pid.reset()
        self.left_pid.reset()

    def tick(
        self,
        fwd_speed: float,
        left_speed: float,
        fwd_speed_sp: float,
        left_speed_sp: float,
        mass: float,
        use_dead_zone: bool,
        overridable: bool,
    ) -> None:
        """Run one fast tick.

        Args:
            fwd_speed: Forward speed [m/s]
            left_speed: Left speed [m/s]
            fwd_speed_sp: Forward speed setpoint [m/s]
            left_speed_sp: Left speed setpoint [m/s]
            mass: Vehicle mass [kg]
            use_dead_zone: Ignore small requests (the gyros handle them)
            overridable: Pilot translation input takes over
        """
        controller = self.hardware.controller
        moving = overridable and float(np.linalg.norm(controller.move_indicator())) > 0
        rotating = float(np.linalg.norm(controller.rotation_indicator())) > 0
        if moving or rotating:
            self.disable()
            self.timer = 0
            return
        if self.timer <= self.delay:
            self.timer += 1
            return

        zone = OUTPUT_DEAD_ZONE if use_dead_zone else 0.0
        fwd_out = self.fwd_pid.update(fwd_speed_sp - fwd_speed)
        left_out = self.left_pid.update(left_speed_sp - left_speed)
        newtons_per_g = mass * G_STANDARD
        hw = self.hardware
        hw.forward.apply_thrust(dead_zone(fwd_out, zone) * newtons_per_g)
        hw.rear.apply_thrust(dead_zone(-fwd_out, zone) * newtons_per_g)
        hw.left.apply_thrust(dead_zone(left_out, zone) * newtons_per_g)
        hw.right.apply_thrust(dead_zone(-left_out, zone) * newtons_per_g)

    def debug_string(self) -> str:
        fwd, left = self.fwd_pid, self.left_pid
        return (
            f"[FWD PID]: P: {fwd.p_term:+.2f} I:{fwd.i_term:+.2f} D:{fwd.d_term:+.2f}\n"
            f"[LEFT PID]: P: {left.p_term:+.2f} I:{left.i_term:+.2f} D:{left.d_term:+.2f}"
        )

    def log_names(self) -> list[str]:
        return ["fwd_pid_output", "left_pid_output"]

    def log_values(self) -> list[float]:
        return [self.fwd_pid.output, self.left_pid.output]
