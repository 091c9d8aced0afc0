"""Auto-leveler: keeps the vehicle upright or tilted towards a speed target.

The leveler computes a desired tilt from the horizontal speed error and
hands a reference/target vector pair to the gyro controller, which rotates
the vehicle until the (tilted) ship-down reference points along gravity.
Pilot rotation input releases the gyros; they are taken back after a
configurable number of quiet ticks.

This is flight software - designed to run on the vehicle.

Example:
    >>> from flight.control import AutoLeveler
    >>>
    >>> leveler = AutoLeveler(controller, gyros, max_angle=20.0, delay=20,
    ...                       responsiveness=5.0, rpm_scale=0.1)
    >>> leveler.enable()
    >>> leveler.tick(speed_fwd=12.0, speed_left=0.0, desired_fwd=0.0, desired_left=0.0)
"""

import math
from collections.abc import Sequence

import numpy as np
from numpy.typing import NDArray

from lander.numerics import not_nan
from lander.vehicle.interfaces import Gyro, ShipController

MIN_GYRO_RATE: float = 0.002  # [rad/s]
LEVEL_ANGLE: float = 90.0  # Angle between a horizontal axis and "up" when level [deg]


def rotate(vector: NDArray[np.float64], axis: NDArray[np.float64], angle: float) -> NDArray[np.float64]:
    """Rotate ``vector`` about unit ``axis`` by ``angle`` [rad] (Rodrigues)."""
    c, s = math.cos(angle), math.sin(angle)
    return vector * c + np.cross(axis, vector) * s + axis * float(np.dot(axis, vector)) * (1.0 - c)


# =============================================================================
# Gyro Controller
# =============================================================================


class GyroController:
    """Rotates the vehicle so that a reference direction meets a target.

    Both vectors are world-frame. The commanded rate is proportional to the
    angle between them, never below MIN_GYRO_RATE while overriding.
    """

    def __init__(self, controller: ShipController, gyros: Sequence[Gyro], rpm_scale: float) -> None:
        self.controller = controller
        self.gyros = list(gyros)
        self.rpm_scale = rpm_scale
        self.override = False
        self.angle = 0.0
        self.reference = np.array([0.0, 0.0, -1.0])
        self.target = np.array([0.0, 0.0, -1.0])

    def set_override(self, state: bool) -> None:
        self.override = state
        for gyro in self.gyros:
            if not state:
                gyro.pitch = 0.0
                gyro.yaw = 0.0
                gyro.roll = 0.0
            gyro.override_enabled = state

    def set_target_orientation(self, reference: NDArray[np.float64], target: NDArray[np.float64]) -> None:
        self.reference = np.asarray(reference, dtype=np.float64)
        self.target = np.asarray(target, dtype=np.float64)

    def tick(self) -> None:
        if not self.override:
            return
        ref_norm = np.linalg.norm(self.reference)
        tgt_norm = np.linalg.norm(self.target)
        if ref_norm == 0 or tgt_norm == 0:
            return
        reference = self.reference / ref_norm
        target = self.target / tgt_norm

        axis = np.cross(reference, target)
        sin_angle = float(np.linalg.norm(axis))
        self.angle = math.atan2(sin_angle, float(np.dot(reference, target)))
        if sin_angle > 0:
            axis = axis / sin_angle
        elif self.angle > 0:
            # Opposite vectors: any axis perpendicular to the reference works
            axis = np.cross(reference, self.controller.forward())
            axis = axis / max(float(np.linalg.norm(axis)), 1e-12)

        right = self.controller.right()
        up = self.controller.up()
        backward = -self.controller.forward()
        for gyro in self.gyros:
            rate = max(MIN_GYRO_RATE, gyro.max_rate * (self.angle / math.pi) * self.rpm_scale)
            omega = axis * rate
            gyro.pitch = float(np.dot(omega, right))
            gyro.yaw = float(np.dot(omega, up))
            gyro.roll = float(np.dot(omega, backward))


# =============================================================================
# Auto-leveler
# =============================================================================


class AutoLeveler:
    """Keeps the vehicle level, or tilted to track a horizontal speed target.

    Attributes:
        pitch: Angle between the ship forward axis and "up" [deg], 90 when level
        roll: Angle between the ship right axis and "up" [deg], 90 when level
        max_angle: Largest commanded tilt [deg]
    """

    def __init__(
        self,
        controller: ShipController,
        gyros: Sequence[Gyro],
        max_angle: float,
        delay: int,
        responsiveness: float,
        rpm_scale: float,
    ) -> None:
        """Initialize leveler.

        Args:
            controller: Vehicle state provider
            gyros: Gyros to override
            max_angle: Largest tilt [deg]
            delay: Quiet fast ticks before taking the gyros back from the pilot
            responsiveness: Speed error [m/s] giving half of ``max_angle``
            rpm_scale: Gyro rate scale
        """
        self.controller = controller
        self.gyro_controller = GyroController(controller, gyros, rpm_scale)
        self.max_angle = max_angle
        self.delay = delay
        self.responsiveness = responsiveness
        self.enabled = False
        self.timer = 0
        self.pitch = LEVEL_ANGLE
        self.roll = LEVEL_ANGLE
        self.desired_pitch = 0.0
        self.desired_roll = 0.0
        self.speed_fwd = 0.0
        self.speed_left = 0.0
        self.desired_fwd = 0.0
        self.desired_left = 0.0

    def enable(self) -> None:
        self.enabled = True
        self.gyro_controller.set_override(True)

    def disable(self) -> None:
        self.enabled = False
        self.gyro_controller.set_override(False)
        self.speed_fwd = 0.0
        self.speed_left = 0.0
        self.desired_fwd = 0.0
        self.desired_left = 0.0

    def update_attitude(self) -> None:
        """Measure pitch and roll relative to the gravity vertical."""
        gravity = self.controller.natural_gravity()
        norm = float(np.linalg.norm(gravity))
        if norm == 0:
            self.pitch = LEVEL_ANGLE
            self.roll = LEVEL_ANGLE
            return
        up = -gravity / norm
        self.pitch = not_nan(math.degrees(math.acos(
            float(np.clip(np.dot(self.controller.forward(), up), -1.0, 1.0)))))
        self.roll = not_nan(math.degrees(math.acos(
            float(np.clip(np.dot(self.controller.right(), up), -1.0, 1.0)))))

    @property
    def tilt_pitch(self) -> float:
        """Nose-up tilt from level [deg]."""
        return LEVEL_ANGLE - self.pitch

    @property
    def tilt_roll(self) -> float:
        """Right-side-up tilt from level [deg]."""
        return LEVEL_ANGLE - self.roll

    def _pilot_rotating(self) -> bool:
        rotation = np.asarray(self.controller.rotation_indicator(), dtype=np.float64)
        return bool(np.linalg.norm(rotation) > 0 or self.controller.roll_indicator() != 0)

    def tick(
        self,
        speed_fwd: float = 0.0,
        speed_left: float = 0.0,
        desired_fwd: float = 0.0,
        desired_left: float = 0.0,
    ) -> None:
        """Run one fast tick. With no arguments the leveler just holds level."""
        self.speed_fwd = speed_fwd
        self.speed_left = speed_left
        self.desired_fwd = desired_fwd
        self.desired_left = desired_left
        self.update_attitude()
        if not self.enabled:
            return

        if self._pilot_rotating():
            self.desired_pitch = self.pitch - LEVEL_ANGLE
            self.desired_roll = self.roll - LEVEL_ANGLE
            self.gyro_controller.set_override(False)
            self.timer = 0
        elif self.timer > self.delay:
            self.gyro_controller.set_override(True)
            self.desired_pitch = (math.atan((speed_fwd - desired_fwd) / self.responsiveness)
                                  / (math.pi / 2) * self.max_angle)
            self.desired_roll = (math.atan((speed_left - desired_left) / self.responsiveness)
                                 / (math.pi / 2) * self.max_angle)

            # Tilt the ship-down reference; the gyros then bring it onto gravity
            left = -self.controller.right()
            backward = -self.controller.forward()
            reference = rotate(-self.controller.up(), backward, math.radians(self.desired_roll))
            reference = rotate(reference, left, math.radians(self.desired_pitch))
            self.gyro_controller.set_target_orientation(reference, self.controller.natural_gravity())
            self.gyro_controller.tick()
        else:
            self.timer += 1

    def debug_string(self) -> str:
        return (
            f"[AUTO LEVELER]\nFwd :{self.speed_fwd:05.1f}({self.desired_fwd:05.1f})\n"
            f"Left:{self.speed_left:05.1f}({self.desired_left:05.1f})\n"
            f"pitch:{self.tilt_pitch:.2f} roll:{-self.tilt_roll:.2f} max:{self.max_angle:.2f}"
        )
