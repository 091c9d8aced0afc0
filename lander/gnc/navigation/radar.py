"""Terrain radar: altitude ranging and terrain-slope scanning.

Drives one or two downward-looking range sensors. The first sensor keeps
an altitude measurement with an adaptive cast range. The terrain sensor
(the same one when only one is fitted) sweeps symmetric ray pairs around
the vertical; the asymmetry of each pair tells which way the ground
slopes, and the radar recommends drifting towards lower terrain.

Scan states:
    NO_RADAR        no sensor fitted
    SINGLE_STANDBY  one sensor, ground out of terrain range
    SINGLE_NARROW   one sensor, fwd/rear and left/right pairs
    DOUBLE_STANDBY  two sensors, ground out of range
    DOUBLE_EARLY    two sensors, narrow pairs only
    DOUBLE_WIDE     two sensors, narrow, wide and diagonal pairs

Example:
    >>> from lander.gnc.navigation import TerrainRadar
    >>>
    >>> radar = TerrainRadar(sensors, max_range=2e5, speed_scale=20.0)
    >>> radar.start()
    >>> radar.scan_for_altitude(pitch=0.0, roll=0.0)
    >>> radar.scan_terrain(ship_pitch=0.0, ship_roll=0.0)
    >>> v_fwd = radar.recommend_forward_speed()
"""

import math
from collections.abc import Sequence
from enum import Enum

import numpy as np

from lander.numerics import dead_zone, interpolate, max_abs, sat_min_max
from lander.vehicle.interfaces import HitType, RangeSensor, RaycastHit

# =============================================================================
# Constants
# =============================================================================

UNDEFINED_ALTITUDE: float = 1e6  # Reported when no altitude is known [m]
HORIZ_MAX_SPEED: float = 20.0  # Cap of recommended horizontal speeds [m/s]
RANGE_MARGIN: float = 50.0  # Added to the last hit distance [m]
START_RANGE: float = 1000.0  # Altitude cast range at start [m]
MAX_TERRAIN_DISTANCE_SINGLE: float = 180.0
MAX_TERRAIN_DISTANCE_DOUBLE: float = 200.0
DOUBLE_RADAR_WIDE_SCAN_DISTANCE: float = 1000.0
DOUBLE_RADAR_INITIAL_SCAN_DISTANCE: float = 5000.0
MIN_SCAN_ANGLE: float = 2.0  # [deg]
MAX_SCAN_ANGLE: float = 30.0  # [deg]
GROUND_SCAN_HORIZ_LENGTH: float = 20.0  # Ground footprint of the narrow pairs [m]
HORIZ_DEADZONE: float = 2.0  # [m/s]
MAX_CAST_ANGLE: float = 45.0  # [deg]

_ALTITUDE_HITS = (HitType.PLANET, HitType.LARGE_GRID, HitType.ASTEROID)
_TERRAIN_HITS = (HitType.PLANET, HitType.LARGE_GRID)


class ScanMode(Enum):
    NO_RADAR = 0
    SINGLE_STANDBY = 1
    SINGLE_NARROW = 2
    DOUBLE_STANDBY = 3
    DOUBLE_EARLY = 4
    DOUBLE_WIDE = 5


_SCANNING_MODES = (ScanMode.SINGLE_NARROW, ScanMode.DOUBLE_EARLY, ScanMode.DOUBLE_WIDE)

_DISTANCE_NAMES = (
    "fwd", "rear", "left", "right",
    "fwd_wide", "rear_wide", "left_wide", "right_wide",
    "fwd_left", "fwd_right", "rear_left", "rear_right",
)


# =============================================================================
# Terrain Radar
# =============================================================================


class TerrainRadar:
    """Altitude and terrain scanner built on one or two range sensors.

    Attributes:
        valid: The last altitude cast hit something
        active: The radar is started
        obstruction: The last terrain pair hit the vehicle itself
        mode: Current scan state
        alt_age: Fast ticks since the last valid altitude hit
        distances: Slant ranges of the terrain pairs, projected on the vertical [m]
    """

    def __init__(self, sensors: Sequence[RangeSensor], max_range: float, speed_scale: float) -> None:
        """Initialize radar.

        Args:
            sensors: Zero, one or two range sensors (altitude first)
            max_range: Longest altitude cast [m]
            speed_scale: Gain from slope angle [rad] to speed [m/s]
        """
        self.max_range = max_range
        self.speed_scale = speed_scale
        self.valid = False
        self.active = False
        self.obstruction = False
        self.alt_age = 0
        self.alt_scan_range = START_RANGE
        self.terrain_scan_range = 0.0

        if len(sensors) == 0:
            self._altitude_sensor = None
            self._terrain_sensor = None
            self.double_radar = False
            self.max_terrain_distance = MAX_TERRAIN_DISTANCE_SINGLE
            self.mode = ScanMode.NO_RADAR
        elif len(sensors) == 1:
            self._altitude_sensor = sensors[0]
            self._terrain_sensor = sensors[0]
            self.double_radar = False
            self.max_terrain_distance = MAX_TERRAIN_DISTANCE_SINGLE
            self.mode = ScanMode.SINGLE_STANDBY
        else:
            self._altitude_sensor = sensors[0]
            self._terrain_sensor = sensors[1]
            self.double_radar = True
            self.max_terrain_distance = MAX_TERRAIN_DISTANCE_DOUBLE
            self.mode = ScanMode.DOUBLE_STANDBY

        self._last_return = RaycastHit()
        self.angle = 1.0
        self.double_angle = 1.0
        self.diag_angle = 1.0
        self.scan_step = 0
        self.distances: dict[str, float] = {}
        self._reset_distances()

    @property
    def exists(self) -> bool:
        return self._altitude_sensor is not None

    def _reset_distances(self) -> None:
        self.distances = dict.fromkeys(_DISTANCE_NAMES, self.max_terrain_distance)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    def start(self) -> None:
        if not self.exists:
            return
        self.alt_scan_range = START_RANGE
        self._altitude_sensor.enable_raycast(True)
        self._terrain_sensor.enable_raycast(True)
        self.alt_age = 0
        self.scan_step = 0
        self.obstruction = False
        self._reset_distances()
        self.active = True

    def disable(self) -> None:
        if not self.exists:
            return
        self._altitude_sensor.enable_raycast(False)
        self._terrain_sensor.enable_raycast(False)
        self._reset_distances()
        self.valid = False
        self.active = False

    def increment_alt_age(self) -> None:
        self.alt_age += 1

    # -------------------------------------------------------------------------
    # Altitude
    # -------------------------------------------------------------------------

    def scan_for_altitude(self, pitch: float, roll: float) -> None:
        """Cast the altitude ray, compensating the vehicle tilt [deg].

        A hit narrows the next cast to the hit distance plus a margin; a
        miss doubles the range up to ``max_range``.
        """
        if not self.exists:
            return
        if not self._altitude_sensor.can_scan(self.alt_scan_range):
            return
        self._last_return = self._altitude_sensor.raycast(self.alt_scan_range, -pitch, -roll)
        if self._last_return.hit_type in _ALTITUDE_HITS and self._last_return.hit_position is not None:
            self.valid = True
            self.alt_scan_range = self.distance() + RANGE_MARGIN
            self.alt_age = 0
        else:
            self.valid = False
            self.alt_scan_range = min(self.alt_scan_range * 2.0, self.max_range)

    def distance(self) -> float:
        """Distance from the altitude sensor to the last hit [m]."""
        if not self.exists or not self.valid:
            return UNDEFINED_ALTITUDE
        hit = self._last_return.hit_position
        return float(np.linalg.norm(hit - self._altitude_sensor.position))

    # -------------------------------------------------------------------------
    # Terrain
    # -------------------------------------------------------------------------

    def scan_terrain(self, ship_pitch: float, ship_roll: float) -> None:
        """Update the scan state and run one micro-scan step.

        Args:
            ship_pitch: Nose-up tilt from level [deg]
            ship_roll: Right-side-up tilt from level [deg]
        """
        if not self.exists:
            self.mode = ScanMode.NO_RADAR
            return

        distance = self.distance()
        if self.double_radar:
            self.mode = ScanMode.DOUBLE_STANDBY
            self.terrain_scan_range = min(distance * 1.2 + 20.0, DOUBLE_RADAR_INITIAL_SCAN_DISTANCE)
            if self.valid and distance < self.terrain_scan_range:
                if distance < DOUBLE_RADAR_WIDE_SCAN_DISTANCE:
                    self.mode = ScanMode.DOUBLE_WIDE
                else:
                    self.mode = ScanMode.DOUBLE_EARLY
        else:
            self.mode = ScanMode.SINGLE_STANDBY
            self.terrain_scan_range = self.max_terrain_distance
            if self.valid and distance < self.terrain_scan_range:
                self.mode = ScanMode.SINGLE_NARROW

        raw_angle = math.degrees(math.atan2(GROUND_SCAN_HORIZ_LENGTH, distance))
        self.angle = sat_min_max(raw_angle, MIN_SCAN_ANGLE, MAX_SCAN_ANGLE - 5.0)
        self.diag_angle = sat_min_max(raw_angle * 1.414, MIN_SCAN_ANGLE, MAX_SCAN_ANGLE)
        self.double_angle = sat_min_max(raw_angle * 2.0, MIN_SCAN_ANGLE, MAX_SCAN_ANGLE)

        if self.mode in _SCANNING_MODES:
            if self._terrain_sensor.can_scan(2.0 * self.terrain_scan_range):
                self._scan_step(ship_pitch, ship_roll)
        else:
            self._reset_distances()

    def _scan_step(self, ship_pitch: float, ship_roll: float) -> None:
        step = self.scan_step
        wide = self.mode is ScanMode.DOUBLE_WIDE
        scan = self._scan_into
        if step == 0:
            self.obstruction = False
            scan("fwd", "rear", self.angle, 0.0, ship_pitch, ship_roll)
            self.scan_step = 1
        elif step == 1:
            scan("left", "right", 0.0, -self.angle, ship_pitch, ship_roll)
            self.scan_step = 0 if self.mode is ScanMode.SINGLE_NARROW else 2
        elif step == 2:
            if wide:
                scan("fwd_wide", "rear_wide", self.double_angle, 0.0, ship_pitch, ship_roll)
            self.scan_step = 3
        elif step == 3:
            if wide:
                scan("left_wide", "right_wide", 0.0, -self.double_angle, ship_pitch, ship_roll)
            self.scan_step = 4
        elif step == 4:
            if wide:
                scan("fwd_left", "rear_right", self.diag_angle, -self.diag_angle, ship_pitch, ship_roll)
            self.scan_step = 5
        else:
            if wide:
                scan("fwd_right", "rear_left", self.diag_angle, self.diag_angle, ship_pitch, ship_roll)
            self.scan_step = 0

    def _scan_into(
        self,
        pos_key: str,
        neg_key: str,
        scan_pitch: float,
        scan_roll: float,
        ship_pitch: float,
        ship_roll: float,
    ) -> None:
        """Store a pair's distances; an obstructed pair keeps the last ones."""
        blocked, d_pos, d_neg = self.scan_pair(
            scan_pitch, scan_roll, ship_pitch, ship_roll, self.terrain_scan_range)
        if blocked:
            # Cleared at the start of the next cycle
            self.obstruction = True
            return
        self.distances[pos_key] = d_pos
        self.distances[neg_key] = d_neg

    def scan_direction(
        self,
        scan_pitch: float,
        scan_yaw: float,
        ship_pitch: float,
        ship_roll: float,
        max_range: float,
    ) -> float:
        """Cast one terrain ray.

        Returns:
            Distance to terrain [m], -1 when the ray hit the vehicle itself,
            ``max_range`` on a miss, ``max_range + 1`` when no cast was done
        """
        if not self.exists:
            self.mode = ScanMode.NO_RADAR
            return max_range + 1.0
        sensor = self._terrain_sensor
        if not sensor.can_scan(max_range):
            return max_range + 1.0
        cast_pitch = max_abs(scan_pitch - ship_pitch, MAX_CAST_ANGLE)
        cast_yaw = max_abs(scan_yaw - ship_roll, MAX_CAST_ANGLE)
        result = sensor.raycast(max_range, cast_pitch, cast_yaw)
        if result.hit_type in _TERRAIN_HITS and result.hit_position is not None:
            return float(np.linalg.norm(result.hit_position - sensor.position))
        if result.entity_id == sensor.grid_entity_id:
            return -1.0
        return max_range

    def scan_pair(
        self,
        scan_pitch: float,
        scan_roll: float,
        ship_pitch: float,
        ship_roll: float,
        max_range: float,
    ) -> tuple[bool, float, float]:
        """Cast a symmetric ray pair.

        Returns:
            (obstruction, positive-side distance, negative-side distance),
            distances projected on the sensor axis [m]; both are NaN when
            either ray hit the vehicle
        """
        cos_product = math.cos(math.radians(scan_pitch)) * math.cos(math.radians(scan_roll))
        d_pos = self.scan_direction(scan_pitch, scan_roll, ship_pitch, ship_roll, max_range) * cos_product
        d_neg = self.scan_direction(-scan_pitch, -scan_roll, ship_pitch, ship_roll, max_range) * cos_product
        if d_pos < 0 or d_neg < 0:
            return True, math.nan, math.nan
        return False, d_pos, d_neg

    # -------------------------------------------------------------------------
    # Speed Recommendation
    # -------------------------------------------------------------------------

    def recommend_forward_speed(self) -> float:
        if not self.exists:
            return 0.0
        d = self.distances
        return self._recommend_speed(
            d["fwd"], d["rear"], d["fwd_wide"], d["rear_wide"],
            d["fwd_left"], d["fwd_right"], d["rear_left"], d["rear_right"],
        )

    def recommend_left_speed(self) -> float:
        if not self.exists:
            return 0.0
        d = self.distances
        return self._recommend_speed(
            d["left"], d["right"], d["left_wide"], d["right_wide"],
            d["fwd_left"], d["rear_left"], d["fwd_right"], d["rear_right"],
        )

    def _recommend_speed(
        self,
        d_pos: float,
        d_neg: float,
        d_wide_pos: float,
        d_wide_neg: float,
        d_diag1: float,
        d_diag2: float,
        d_diag3: float,
        d_diag4: float,
    ) -> float:
        # The blending constants are empirical; keep them as they are.
        alt = self.distance()
        max_speed = min(alt, HORIZ_MAX_SPEED)
        zone = interpolate(500.0, 2000.0, HORIZ_DEADZONE, 0.0, alt)
        v_base = math.atan2(d_pos - d_neg, math.tan(math.radians(self.angle)) * (d_pos + d_neg))

        if self.double_radar and self.mode is ScanMode.DOUBLE_WIDE:
            v_wide = math.atan2(
                d_wide_pos - d_wide_neg,
                math.tan(math.radians(self.double_angle)) * (d_wide_pos + d_wide_neg),
            )
            v_diag = math.atan2(
                d_diag1 + d_diag2 - d_diag3 - d_diag4,
                math.tan(math.radians(self.diag_angle)) * (d_diag1 + d_diag2 + d_diag3 + d_diag4),
            )
            v_raw = v_base + v_wide + v_diag
            if d_wide_pos < d_pos and v_raw > 0 and d_pos > 0:
                v_raw *= (d_wide_pos / d_pos) ** 2
            if d_wide_neg < d_neg and v_raw < 0 and d_neg > 0:
                v_raw *= (d_wide_neg / d_neg) ** 2
            if d_pos < alt and v_raw > 0 and alt > 0:
                v_raw *= d_pos / alt
            if d_neg < alt and v_raw < 0 and alt > 0:
                v_raw *= d_neg / alt
            speed = v_raw * self.speed_scale
        else:
            speed = v_base * 3.0 * self.speed_scale

        return max_abs(dead_zone(speed, zone), max_speed)

    # -------------------------------------------------------------------------
    # Diagnostics
    # -------------------------------------------------------------------------

    def altitude_debug_string(self) -> str:
        if not self.exists:
            return "[NO RADAR !]"
        return (
            f"[RADAR]\nRange:{self.alt_scan_range:05.1f}m\n"
            f"Return type: {self._last_return.hit_type.name} Age: {self.alt_age}"
        )

    def terrain_debug_string(self) -> str:
        if not self.exists:
            return "[NO RADAR !]"
        d = self.distances
        return (
            f"[TERRAIN] {self.mode.name}\n"
            f"Scan: {self.angle:04.1f}deg/{self.double_angle:04.1f} "
            f"Dist: {self.terrain_scan_range:05.1f}m\n"
            f"Fw: {d['fwd']:05.1f}/{d['fwd_wide']:05.1f} Rr: {d['rear']:05.1f}/{d['rear_wide']:05.1f} "
            f"Fw spd: {self.recommend_forward_speed():04.1f}\n"
            f"Lf: {d['left']:05.1f}/{d['left_wide']:05.1f} Rt: {d['right']:05.1f}/{d['right_wide']:05.1f} "
            f"Lf spd: {self.recommend_left_speed():04.1f}"
        )

    def log_names(self) -> list[str]:
        return ["d_fwd", "d_rear", "d_left", "d_right"]

    def log_values(self) -> list[float]:
        d = self.distances
        return [d["fwd"], d["rear"], d["left"], d["right"]]
