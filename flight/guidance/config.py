"""Guidance configuration.

All tuning constants of the landing guidance live in one immutable
parameter object injected into the controller at construction.

Example:
    >>> from flight.guidance import GuidanceConfig
    >>>
    >>> config = GuidanceConfig(final_speed=2.0, lwr_safety_factor=1.2)
"""

from dataclasses import dataclass

from beartype import beartype

from lander.gnc.control.pid import PIDGains


@beartype
@dataclass(frozen=True)
class GuidanceConfig:
    """Tuning constants of the landing guidance.

    Speeds are in m/s, altitudes in m, accelerations in m/s^2.
    LWR (lift-to-weight ratio) values are thrust-to-weight ratios.
    """
    # Altitude and gravity model
    altitude_offset: float = 0.0  # Height of the controller above the gear
    gravity_exponent: int = 2
    auto_switch_exponent: bool = True
    default_asl_meters: float = 500.0  # Assumed ground height above sea level
    grav_transition_high: float = 4000.0
    grav_transition_low: float = 1000.0

    # Vertical speed PID
    vert_kp: float = 0.4
    vert_ki: float = 0.05
    vert_kd: float = 10.0
    vert_ai_max: float = 4.0
    vert_ai_min: float = -0.1
    vert_ad_filter: float = 0.8
    vert_ad_max: float = 0.5

    # Lift-to-weight targets
    lwr_offset: float = 0.0
    lwr_safety_factor: float = 1.1
    lwr_limit: float = 5.0
    lwr_mix_ground_ratio: float = 0.7
    elec_lwr_sufficient: float = 2.0
    accel_limit: float = 30.0

    # Vertical speeds
    vspeed_safe_limit: float = 500.0
    vspeed_default: float = 200.0
    mode1_ion_alt_limit: float = 2000.0
    mode1_ion_speed: float = 115.0
    mode1_atmo_speed: float = 20.0
    final_speed: float = 1.5
    final_speed_altitude: float = 20.0

    # Warnings
    panic_delta: float = 5.0
    panic_ratio: float = 100.0
    marginal_max: int = 10
    marginal_warn: int = 5
    h2_margin_warning: float = 5.0  # [%]

    # Landing and liftoff events
    landing_timer_altitude: float = 200.0
    liftoff_timer_altitude: float = 250.0

    # Radar
    radar_max_range: float = 2e5

    # Leveler and horizontal control
    auto_level: bool = True
    terrain_avoid_gyro: bool = True  # Tilt towards the radar speed recommendation
    terrain_avoid_thrusters: bool = True  # Use side thrusters for horizontal speed
    max_angle: float = 20.0  # [deg]
    smart_delay_time: int = 20  # Fast ticks
    gyro_responsiveness: float = 5.0
    gyro_rpm_scale: float = 0.1
    horiz_kp: float = 0.5
    horiz_ki: float = 0.1
    horiz_kd: float = 0.1
    horiz_ai_max: float = 0.05
    speed_scale: float = 20.0
    inertia_ratio_small: float = 1e7
    inertia_ratio_large: float = 6e8

    # Altitude/speed hold autopilot
    mode4_initial_alt: float = 50.0
    mode4_initial_speed: float = 0.0
    alt_ai_max: float = 2.0
    alt_ai_min: float = -0.1
    alt_kp: float = 0.5
    alt_ki: float = 0.1
    alt_kd: float = 0.5
    alt_ad_filter: float = 0.8
    alt_ad_max: float = 0.5
    speed_increment: float = 0.1
    max_speed: float = 100.0
    speed_filter_length: int = 30
    alt_filter_length: int = 30
    safe_speed_filter_length: int = 10
    safe_speed_alt_min: float = 10.0
    safe_speed_alt_max: float = 400.0
    safe_speed_min: float = 3.0
    safe_speed_max: float = 200.0

    # Asteroid rendezvous
    mode5_thrust_ratio: float = 0.5
    mode5_max_speed: float = 95.0

    # Misc
    log_factor: int = 2  # Fast ticks per telemetry row
    disable_delay: int = 3  # Slow ticks before auto-disable is armed
    start_hover: bool = False

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.gravity_exponent not in (2, 7):
            raise ValueError(f"gravity_exponent must be 2 or 7, got {self.gravity_exponent}")
        if self.lwr_safety_factor <= 0:
            raise ValueError(f"lwr_safety_factor must be positive, got {self.lwr_safety_factor}")
        if self.vert_ai_min > self.vert_ai_max or self.alt_ai_min > self.alt_ai_max:
            raise ValueError("Integral limits must satisfy min <= max")
        for name in ("vert_ad_filter", "alt_ad_filter"):
            value = getattr(self, name)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be in [0, 1], got {value}")
        if self.log_factor < 1:
            raise ValueError(f"log_factor must be >= 1, got {self.log_factor}")

    @property
    def vertical_gains(self) -> PIDGains:
        return PIDGains(kp=self.vert_kp, ki=self.vert_ki, kd=self.vert_kd)

    @property
    def horizontal_gains(self) -> PIDGains:
        return PIDGains(kp=self.horiz_kp, ki=self.horiz_ki, kd=self.horiz_kd)
