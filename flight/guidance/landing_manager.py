"""Landing guidance controller: the mode state machine and its control loops.

The controller owns every estimator, filter and loop of the landing
guidance and runs them at three rates, always in the order slow, medium,
fast within one frame:

    tick100  gravity estimation, planet classification, mass, warnings
    tick10   gravity, thrust-to-weight ratios, radar, profile, setpoint source
    tick1    altitude, speeds, vertical PID, thrust, leveling, panic check

Per-mode behavior is read from :data:`flight.guidance.modes.MODE_BEHAVIOR`.

This is flight software - designed to run on the vehicle.

Example:
    >>> from flight.guidance import GuidanceConfig, GuidanceController
    >>>
    >>> controller = GuidanceController(GuidanceConfig(), hardware)
    >>> controller.set_planet("earth")
    >>> controller.configure_land(GuidanceMode.LAND_GENTLE)
    >>> for counter in range(600):
    ...     controller.tick(counter)
"""

import logging
import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass

import numpy as np

from flight.control.horizontal import HorizontalThrusters
from flight.control.leveler import AutoLeveler
from flight.guidance.config import GuidanceConfig
from flight.guidance.modes import (
    MODE_BEHAVIOR,
    AltitudeSource,
    GravitySource,
    GuidanceEvent,
    GuidanceMode,
    ModeBehavior,
    SetpointSource,
    WarningLevel,
)
from lander.environment.planet import PlanetCatalog, PlanetModel
from lander.gnc.control.filters import MovingAverage, RateLimiter
from lander.gnc.control.pid import PIDController
from lander.gnc.guidance.autopilot import AltitudeMode, AutoPilot
from lander.gnc.guidance.profile import DescentProfileBuilder
from lander.gnc.navigation.gravity_estimator import ExponentSelector, GravityEstimator
from lander.gnc.navigation.radar import HORIZ_MAX_SPEED, UNDEFINED_ALTITUDE, TerrainRadar
from lander.numerics import (
    g_to_ms2,
    interpolate,
    interpolate_smooth,
    max3,
    mix,
    ms2_to_g,
    not_nan,
    sat_min_max,
)
from lander.vehicle.hardware import VehicleHardware
from lander.vehicle.ship_info import ShipInfo

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

PROFILE_CONFIDENCE: float = 0.95  # Estimator confidence needed to build a profile
ESTIMATE_CONFIDENCE: float = 0.9  # Estimator confidence to report an estimate
MIN_GROUND_ALTITUDE: float = 2.0  # Below this the mode is released [m]
RECLASSIFY_ALTITUDE: float = 10000.0  # [m]
VACUUM_ALTITUDE: float = 1000.0  # [m]
DENSE_OBSERVATION: float = 0.8
THIN_OBSERVATION: float = 0.2
PILOT_SPEED: float = 10.0  # Horizontal setpoint of pilot input while landing [m/s]
PILOT_DEAD_ZONE: float = 0.1
COS40: float = 0.766  # Forward-look cast angle, hold mode
SPACE_REFERENCE_ACCEL: float = 7.9  # Rendezvous thrust scale [m/s^2]
SPACE_INTEGRAL_MAX: float = 0.1
MARGINAL_DELTA: float = 5.0  # Speed error counted as marginal [m/s]
SETPOINT_SLEW_DOWN: float = -0.1  # Largest setpoint decrease per fast tick [m/s]
SETPOINT_SLEW_UP: float = 999.0
SPEED_TARGET_FILTER_LENGTH: int = 3
ALTITUDE_FILTER_LENGTH: int = 3


class ControllerUnavailableError(RuntimeError):
    """No ship controller: the vehicle state cannot be read."""


@dataclass
class GuidanceState:
    """Everything the controller updates during its ticks.

    Speeds are in m/s, altitudes in m, gravities in m/s^2. LWR values
    are lift-to-weight ratios of the lifters.
    """
    mode: GuidanceMode = GuidanceMode.OFF
    use_angle: bool = True
    use_horizontal_thrusters: bool = True
    level: bool = True
    gravity_exponent: int = 2

    # Environment
    grav_now: float = 0.0
    gnd_grav_exp: float = 0.0
    obs_density: float = -1.0
    ship_weight: float = 0.0

    # Altitude
    gnd_altitude: float = UNDEFINED_ALTITUDE
    sl_altitude: float = UNDEFINED_ALTITUDE
    gnd_sl_offset: float = 0.0
    radar_offset: float = 0.0

    # Lift-to-weight ratios, here and at the ground
    a_lwr_now: float = 0.0
    i_lwr_now: float = 0.0
    h_lwr_now: float = 0.0
    a_lwr_gnd: float = 0.0
    i_lwr_gnd: float = 0.0
    h_lwr_gnd: float = 0.0
    lwr_target: float = 0.0

    # Speeds and commands
    vert_speed: float = 0.0
    vert_speed_sp: float = 0.0
    vert_speed_delta: float = 0.0
    fwd_speed: float = 0.0
    fwd_speed_sp: float = 0.0
    left_speed: float = 0.0
    left_speed_sp: float = 0.0
    lwr_command: float = 0.0
    thr_command: float = 0.0

    # Status
    speed_sp_source: SetpointSource = SetpointSource.NONE
    alt_source: AltitudeSource = AltitudeSource.UNDEFINED
    grav_source: GravitySource = GravitySource.UNDEFINED
    warning: WarningLevel = WarningLevel.INFO
    marginal: int = 0
    panic: bool = False
    h2_margin: float | None = None  # [%], None without hydrogen lifters
    allow_disable: int = 0
    allow_landing_event: bool = False
    allow_liftoff_event: bool = False
    hover_pending: bool = False


# =============================================================================
# Guidance Controller
# =============================================================================


class GuidanceController:
    """Owns the operating mode and runs the landing guidance loops.

    Attributes:
        config: Tuning constants
        hardware: Vehicle hardware
        state: Tick-updated state
        planet: Current planet model (replaced, never mutated)
    """

    def __init__(
        self,
        config: GuidanceConfig,
        hardware: VehicleHardware,
        catalog: PlanetCatalog | None = None,
        event_sink: Callable[[GuidanceEvent], None] | None = None,
    ) -> None:
        """Initialize controller.

        Args:
            config: Tuning constants
            hardware: Vehicle hardware
            catalog: Planet catalog (default: built-in catalog)
            event_sink: Receives events for timers, sounds and displays

        Raises:
            ControllerUnavailableError: If the hardware has no ship controller
        """
        if hardware.controller is None:
            raise ControllerUnavailableError("No suitable cockpit or remote control")

        self.config = config
        self.hardware = hardware
        self.catalog = catalog if catalog is not None else PlanetCatalog()
        self.event_sink = event_sink
        self.state = GuidanceState(
            use_angle=config.terrain_avoid_gyro,
            use_horizontal_thrusters=config.terrain_avoid_thrusters,
            level=config.auto_level,
            gravity_exponent=config.gravity_exponent,
            hover_pending=config.start_hover,
        )

        self.estimator2 = GravityEstimator(2.0)
        self.estimator7 = GravityEstimator(7.0)
        self.exponent_selector = ExponentSelector(
            exponent=config.gravity_exponent, auto_switch=config.auto_switch_exponent
        )
        self.ship_info = ShipInfo(hardware, config.inertia_ratio_small, config.inertia_ratio_large)
        self.profile_builder = DescentProfileBuilder(float(config.gravity_exponent))
        self.vert_pid = PIDController.from_gains(
            config.vertical_gains,
            integral_limits=(config.vert_ai_min, config.vert_ai_max),
            derivative_filter=config.vert_ad_filter,
            max_derivative=config.vert_ad_max,
        )
        self.leveler = AutoLeveler(
            hardware.controller,
            hardware.gyros,
            max_angle=min(config.max_angle, self.ship_info.max_angle()),
            delay=config.smart_delay_time,
            responsiveness=config.gyro_responsiveness,
            rpm_scale=config.gyro_rpm_scale,
        )
        self.radar = TerrainRadar(hardware.range_sensors, config.radar_max_range, config.speed_scale)
        self.horizontal = HorizontalThrusters(
            hardware, config.smart_delay_time, config.horizontal_gains, config.horiz_ai_max
        )
        self.autopilot = AutoPilot(config)
        self.left_speed_target = MovingAverage(SPEED_TARGET_FILTER_LENGTH)
        self.fwd_speed_target = MovingAverage(SPEED_TARGET_FILTER_LENGTH)
        self.altitude_filter = MovingAverage(ALTITUDE_FILTER_LENGTH)
        self.speed_limiter = RateLimiter(SETPOINT_SLEW_UP, SETPOINT_SLEW_DOWN)

        self.planet: PlanetModel = self.catalog.unknown()
        self.configure_off()

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def mode(self) -> GuidanceMode:
        return self.state.mode

    @property
    def behavior(self) -> ModeBehavior:
        return MODE_BEHAVIOR[self.state.mode]

    @property
    def profile(self):
        return self.profile_builder.profile

    def _estimator(self) -> GravityEstimator:
        return self.estimator2 if self.state.gravity_exponent == 2 else self.estimator7

    def _emit(self, event: GuidanceEvent) -> None:
        logger.debug("Event %s", event.value)
        if self.event_sink is not None:
            self.event_sink(event)

    def _set_mode(self, mode: GuidanceMode) -> None:
        if mode != self.state.mode:
            logger.info("Mode %s -> %s", MODE_BEHAVIOR[self.state.mode].label, MODE_BEHAVIOR[mode].label)
        self.state.mode = mode

    # -------------------------------------------------------------------------
    # Mode Configuration
    # -------------------------------------------------------------------------

    def disable_conditions(self) -> bool:
        """Conditions under which no active mode may run."""
        s = self.state
        return (
            (s.grav_now == 0 and s.mode != GuidanceMode.ASTEROID_RENDEZVOUS)
            or s.gnd_altitude < MIN_GROUND_ALTITUDE
            or self.hardware.any_gear_locked()
        )

    def configure_off(self) -> None:
        """Release every actuator and forget the landing state."""
        s = self.state
        was_active = s.mode != GuidanceMode.OFF
        self._set_mode(GuidanceMode.OFF)
        self.hardware.lifters.disable()
        self.hardware.down.disable()
        self.horizontal.disable()
        self.radar.disable()
        self.set_planet("unknown")
        if was_active:
            self._emit(GuidanceEvent.DEACTIVATED)
        self.profile_builder.invalidate()
        s.speed_sp_source = SetpointSource.NONE
        s.alt_source = AltitudeSource.UNDEFINED
        s.grav_source = GravitySource.UNDEFINED
        s.panic = False
        s.marginal = 0
        s.radar_offset = 0.0
        self.vert_pid.reset()
        self.fwd_speed_target.clear()
        self.left_speed_target.clear()
        self.altitude_filter.clear()
        self.leveler.disable()
        self.estimator2.reset()
        self.estimator7.reset()
        self._init_landing_events()

    def configure_land(self, mode: GuidanceMode = GuidanceMode.LAND_GENTLE) -> bool:
        """Enter a landing mode.

        Switching between the two landing modes keeps the radar and
        profile state.

        Returns:
            True if the mode was entered
        """
        if not MODE_BEHAVIOR[mode].landing:
            raise ValueError(f"Not a landing mode: {mode!r}")
        if self.disable_conditions():
            logger.info("Landing refused: disable conditions hold")
            return False
        s = self.state
        if not self.behavior.landing:
            self.radar.start()
            self._emit(GuidanceEvent.ACTIVATED)
            self.profile_builder.invalidate()
            self.speed_limiter.init(-self.config.vspeed_safe_limit)
        self._set_mode(mode)
        self.hardware.controller.dampeners_override = False
        if s.level:
            self.leveler.enable()
        s.allow_disable = self.config.disable_delay
        self._init_landing_events()
        self._select_setpoint_source()
        return True

    def configure_hover(self) -> bool:
        """Enter hover mode: pilot-driven with dampeners on."""
        if self.disable_conditions():
            logger.info("Hover refused: disable conditions hold")
            return False
        s = self.state
        self._set_mode(GuidanceMode.HOVER)
        self.hardware.controller.dampeners_override = True
        if s.level:
            self.leveler.enable()
        s.speed_sp_source = SetpointSource.NONE
        self.hardware.lifters.disable()
        s.allow_disable = self.config.disable_delay
        self.radar.disable()
        self._init_landing_events()
        s.marginal = 0
        return True

    def configure_hold(
        self,
        altitude: float = 0.0,
        speed: float = 0.0,
        altitude_mode: AltitudeMode = AltitudeMode.GROUND,
    ) -> bool:
        """Enter altitude/speed hold. Can be entered from the ground.

        Args:
            altitude: Altitude to hold [m] (0 = current, at least the initial)
            speed: Cruise speed [m/s] (0 = initial speed)
            altitude_mode: Reference of ``altitude``
        """
        s = self.state
        cfg = self.config
        self._set_mode(GuidanceMode.ALTITUDE_SPEED_HOLD)
        self.hardware.controller.dampeners_override = False
        ap = self.autopilot
        ap.init()
        ap.desired_altitude = altitude if altitude != 0 else max(cfg.mode4_initial_alt, s.gnd_altitude)
        ap.desired_speed = speed if speed != 0 else cfg.mode4_initial_speed
        ap.altitude_mode = altitude_mode
        self.speed_limiter.init(0.0)
        if s.level:
            self.leveler.enable()
        s.speed_sp_source = SetpointSource.HOLD
        self.vert_pid.reset()
        self.hardware.unlock_gears()
        s.allow_disable = cfg.disable_delay
        self.radar.start()
        self._init_landing_events()
        return True

    def configure_rendezvous(self) -> bool:
        """Enter asteroid rendezvous. Only possible without gravity."""
        s = self.state
        if s.grav_now != 0:
            logger.info("Rendezvous refused: gravity present")
            return False
        self._set_mode(GuidanceMode.ASTEROID_RENDEZVOUS)
        self.hardware.controller.dampeners_override = False
        self.speed_limiter.init(0.0)
        s.speed_sp_source = SetpointSource.NONE
        self.vert_pid.reset()
        s.allow_disable = self.config.disable_delay
        self.radar.start()
        self._init_landing_events()
        return True

    def configure(self, mode: GuidanceMode) -> bool:
        """Enter ``mode`` with its default parameters."""
        if mode == GuidanceMode.OFF:
            self.configure_off()
            return True
        if MODE_BEHAVIOR[mode].landing:
            return self.configure_land(mode)
        if mode == GuidanceMode.HOVER:
            return self.configure_hover()
        if mode == GuidanceMode.ALTITUDE_SPEED_HOLD:
            return self.configure_hold()
        return self.configure_rendezvous()

    def set_planet(self, name: str) -> bool:
        """Select the first catalog planet whose short name is in ``name``.

        Returns:
            True if a planet matched
        """
        found = self.catalog.find(name)
        if found is None:
            return False
        if found.short_name != self.planet.short_name:
            logger.info("Planet set to %s", found.display_name)
        self.planet = found
        if self.planet.short_name == "unknown":
            self.planet = self.planet.with_density(self.hardware.lifters.worst_density())
        return True

    # -------------------------------------------------------------------------
    # Feature Toggles
    # -------------------------------------------------------------------------

    def enable_leveler(self) -> None:
        self.state.level = True
        self.leveler.enable()

    def disable_leveler(self) -> None:
        self.state.level = False
        self.leveler.disable()

    def switch_leveler(self) -> None:
        if self.state.level:
            self.disable_leveler()
        else:
            self.enable_leveler()

    def enable_thrusters(self) -> None:
        self.state.use_horizontal_thrusters = True

    def disable_thrusters(self) -> None:
        self.state.use_horizontal_thrusters = False
        self.horizontal.disable()

    def switch_thrusters(self) -> None:
        if self.state.use_horizontal_thrusters:
            self.disable_thrusters()
        else:
            self.enable_thrusters()

    def enable_angle(self) -> None:
        self.state.use_angle = True

    def disable_angle(self) -> None:
        self.state.use_angle = False

    def switch_angle(self) -> None:
        self.state.use_angle = not self.state.use_angle

    # -------------------------------------------------------------------------
    # Hold Mode Commands
    # -------------------------------------------------------------------------

    def hold_increase_speed(self) -> None:
        self.autopilot.desired_speed += 5.0

    def hold_decrease_speed(self) -> None:
        self.autopilot.desired_speed = max(self.autopilot.desired_speed - 5.0, 0.0)

    def hold_increase_altitude(self) -> None:
        self.autopilot.desired_altitude += 10.0

    def hold_decrease_altitude(self) -> None:
        self.autopilot.desired_altitude = max(self.autopilot.desired_altitude - 10.0, 0.0)

    def hold_altitude_switch(self) -> None:
        if self.autopilot.altitude_mode is AltitudeMode.GROUND:
            self.hold_altitude_sea_level()
        else:
            self.hold_altitude_ground()

    def hold_altitude_ground(self) -> None:
        """Hold the current altitude above ground."""
        ap = self.autopilot
        ap.altitude_mode = AltitudeMode.GROUND
        ap.desired_altitude = self.state.gnd_altitude
        ap.altitude_filter.set(self.state.gnd_altitude)

    def hold_altitude_sea_level(self) -> None:
        """Hold the current altitude above sea level."""
        ap = self.autopilot
        ap.altitude_mode = AltitudeMode.SEA_LEVEL
        ap.desired_altitude = self.state.sl_altitude
        ap.altitude_filter.set(self.state.sl_altitude)

    # -------------------------------------------------------------------------
    # Ticks
    # -------------------------------------------------------------------------

    def tick(self, counter: int) -> None:
        """Run the ticks due at fast-tick ``counter``, slow to fast."""
        if counter % 100 == 0:
            self.tick100()
        if counter % 10 == 0:
            self.tick10()
        self.tick1()

    def tick100(self) -> None:
        """Slow tick."""
        s = self.state
        if self.behavior.landing:
            self.estimator2.update(s.grav_now, s.sl_altitude, self.planet.hill_param)
            self.estimator7.update(s.grav_now, s.sl_altitude, self.planet.hill_param)
            s.gravity_exponent = self.exponent_selector.update(
                self.estimator2.confidence, self.estimator7.confidence
            )
            logger.debug("%s", self._estimator().debug_string())
            self.update_profile()
        if not self.behavior.in_space:
            self._update_planet_atmosphere()
        self.ship_info.update_mass()
        self.ship_info.update_inertia()
        self._update_warning()
        self.hardware.lifters.update_density_sweep()
        self._manage_alarms()
        if s.allow_disable > 0:
            s.allow_disable -= 1

    def tick10(self) -> None:
        """Medium tick."""
        s = self.state
        cfg = self.config
        s.grav_now = float(np.linalg.norm(self.hardware.controller.natural_gravity()))
        s.ship_weight = self.ship_info.mass * s.grav_now
        self.hardware.lifters.update_thrust()
        self.horizontal.update_thrust()
        self.hardware.down.update_thrust()
        self._update_available_lwr()
        self._estimate_surface_gravity()
        self._update_lwr_target()

        mode = s.mode
        if self.behavior.landing:
            self.radar.scan_for_altitude(self.leveler.tilt_pitch, self.leveler.tilt_roll)
            if s.use_angle or s.use_horizontal_thrusters:
                self.radar.scan_terrain(self.leveler.tilt_pitch, self.leveler.tilt_roll)
            if not self.profile_builder.is_valid:
                self.update_profile()
            self._select_setpoint_source()
        elif mode == GuidanceMode.HOVER:
            self.autopilot.update_safe_speed(s.gnd_altitude, -1.0)
        elif mode == GuidanceMode.ALTITUDE_SPEED_HOLD:
            scan_distance = (cfg.safe_speed_alt_max + 10.0) / COS40
            distance = self.radar.scan_direction(
                40.0, 0.0, self.leveler.tilt_pitch, self.leveler.tilt_roll, scan_distance
            )
            self.autopilot.set_forward(COS40 * distance, distance < scan_distance)
            self.autopilot.update_safe_speed(s.gnd_altitude, self.autopilot.forward)
        elif mode == GuidanceMode.ASTEROID_RENDEZVOUS:
            self.radar.scan_for_altitude(0.0, 0.0)
            self._select_space_setpoint_source()

        self._manage_landing_events()

        if s.mode != GuidanceMode.OFF and s.allow_disable == 0 and self.disable_conditions():
            self.configure_off()
        if s.mode == GuidanceMode.ASTEROID_RENDEZVOUS and s.gnd_altitude < cfg.final_speed_altitude:
            self.configure_off()
            self.hardware.controller.dampeners_override = True

        if s.hover_pending and s.grav_now > 0:
            s.hover_pending = False
            self.configure_hover()

    def tick1(self) -> None:
        """Fast tick."""
        s = self.state
        self._update_altitude()
        self.leveler.update_attitude()
        mode = s.mode
        behavior = self.behavior
        if behavior.landing:
            self._update_speeds_in_gravity()
            self.radar.increment_alt_age()
            self._update_speed_setpoint_in_gravity()
            self._run_vertical_loop()
            self._update_landing_horizontal_setpoints()
            if s.level:
                if s.use_angle:
                    self.leveler.tick(s.fwd_speed, s.left_speed, s.fwd_speed_sp, s.left_speed_sp)
                else:
                    self.leveler.tick()
            if s.use_horizontal_thrusters:
                self.horizontal.tick(
                    s.fwd_speed, s.left_speed, s.fwd_speed_sp, s.left_speed_sp,
                    self.ship_info.mass, s.use_angle, True,
                )
            self._check_panic()
        elif mode == GuidanceMode.HOVER:
            self._update_speeds_in_gravity()
            self.autopilot.update_speed_direct(self.hardware.controller.move_indicator())
            self._run_autopilot_horizontal(overridable=False)
        elif mode == GuidanceMode.ALTITUDE_SPEED_HOLD:
            self._update_speeds_in_gravity()
            self.autopilot.update_speed_progressive(self.hardware.controller.move_indicator())
            self._run_autopilot_horizontal(overridable=True)
            s.vert_speed_sp = self.autopilot.update_vertical_speed_setpoint(
                s.gnd_altitude, s.sl_altitude, s.grav_now
            )
            self._run_vertical_loop()
        elif mode == GuidanceMode.ASTEROID_RENDEZVOUS:
            self._update_speeds_in_space()
            self._update_speed_setpoint_in_space()
            s.vert_speed_delta = s.vert_speed_sp - s.vert_speed
            self.vert_pid.update(s.vert_speed_delta, self.config.vert_ai_min, SPACE_INTEGRAL_MAX)
            self._apply_thrust_in_space(self.vert_pid.output)

    # -------------------------------------------------------------------------
    # Slow-tick Updates
    # -------------------------------------------------------------------------

    def update_profile(self) -> None:
        """Rebuild the descent profile once the gravity estimate is trusted."""
        estimator = self._estimator()
        if estimator.confidence_best <= PROFILE_CONFIDENCE:
            return
        cfg = self.config
        s = self.state
        if self.ship_info.mass <= 0:
            return
        self.profile_builder.exponent = float(s.gravity_exponent)
        self.profile_builder.compute(
            start_altitude_sl=cfg.final_speed_altitude + s.gnd_sl_offset,
            vehicle_mass=self.ship_info.mass,
            planet=self.planet,
            radius=estimator.radius_best,
            max_acceleration=cfg.accel_limit,
            max_twr=cfg.lwr_limit,
            sufficient_twr=self.behavior.profile_sufficient_twr(cfg),
            safety_factor=cfg.lwr_safety_factor,
            max_speed=cfg.vspeed_safe_limit,
            initial_speed=cfg.final_speed,
            thrust_group=self.hardware.lifters,
        )

    def _update_planet_atmosphere(self) -> None:
        s = self.state
        lifters = self.hardware.lifters
        parachute = self.hardware.parachute_density()
        parachute_density = parachute if parachute > 0.01 else -1.0
        atmo_density = (lifters.a_eff / lifters.a_max * 0.7 + 0.3
                        if lifters.a_max > 0 and lifters.a_eff > 1 else -1.0)
        ion_density = ((1.0 - lifters.i_eff / lifters.i_max) / 0.8
                       if lifters.i_max > 0 and lifters.i_eff > 1 else -1.0)
        s.obs_density = max3(parachute_density, atmo_density, ion_density)

        if s.mode == GuidanceMode.OFF and s.gnd_altitude > RECLASSIFY_ALTITUDE:
            self.set_planet("unknown")
        if self.planet.precise:
            return
        worst = lifters.worst_density()
        if self.planet.short_name == "unknown":
            self.planet = self.planet.with_density(worst)
        if self.planet.short_name == "atmo":
            self.planet = self.planet.with_density(max(self.planet.density_sea_level, worst))
        if s.obs_density > -1:
            if s.obs_density > DENSE_OBSERVATION and s.gnd_altitude < RECLASSIFY_ALTITUDE:
                self._reclassify("dynatmo", max(s.obs_density, worst))
            if s.obs_density < THIN_OBSERVATION and s.gnd_altitude < VACUUM_ALTITUDE:
                self._reclassify("dynvacuum", None)

    def _reclassify(self, short_name: str, density: float | None) -> None:
        planet = self.catalog.get(short_name)
        if planet.short_name != self.planet.short_name:
            logger.info("Planet reclassified as %s", planet.display_name)
        if density is not None:
            planet = planet.with_density(density)
        self.planet = planet

    def _update_warning(self) -> None:
        s = self.state
        cfg = self.config
        lifters = self.hardware.lifters
        mass = self.ship_info.mass
        if mass > 0:
            density = self.planet.density_sea_level
            thrust = (lifters.atmospheric_thrust_for_density(density)
                      + lifters.electric_thrust_for_density(density) + lifters.h_max)
            max_g = ms2_to_g(thrust / (mass * cfg.lwr_safety_factor * (1.0 + cfg.lwr_offset)))
        else:
            max_g = 0.0
        s.warning = WarningLevel.BAD if max_g < ms2_to_g(s.gnd_grav_exp) else WarningLevel.GOOD

        capacity = self.ship_info.h2_capacity_liters()
        if capacity > 0 and lifters.h_max > 0:
            to_use = self.profile.interpolate_h2_used(s.sl_altitude) / capacity * 100.0
            stored = self.ship_info.h2_stored_liters() / capacity * 100.0
            s.h2_margin = stored - to_use
        else:
            s.h2_margin = None

    @property
    def h2_warning(self) -> bool:
        margin = self.state.h2_margin
        return margin is not None and margin <= self.config.h2_margin_warning

    def _manage_alarms(self) -> None:
        s = self.state
        if s.mode == GuidanceMode.OFF:
            return
        if s.panic:
            self._emit(GuidanceEvent.PANIC_ALARM)
        elif (s.warning is WarningLevel.BAD or s.speed_sp_source is SetpointSource.UNABLE
              or s.marginal >= self.config.marginal_warn):
            self._emit(GuidanceEvent.WARNING_ALARM)

    # -------------------------------------------------------------------------
    # Medium-tick Updates
    # -------------------------------------------------------------------------

    @staticmethod
    def lift_to_weight(gravity: float, mass: float, thrust: float) -> float:
        return thrust / (gravity * mass) if gravity > 0 and mass > 0 else 0.0

    def _update_available_lwr(self) -> None:
        s = self.state
        lifters = self.hardware.lifters
        mass = self.ship_info.mass
        density = self.planet.density_sea_level
        lwr = self.lift_to_weight
        s.a_lwr_now = lwr(s.grav_now, mass, lifters.a_eff)
        s.i_lwr_now = lwr(s.grav_now, mass, lifters.i_eff + lifters.p_eff)
        s.h_lwr_now = lwr(s.grav_now, mass, lifters.h_eff)
        s.a_lwr_gnd = lwr(s.gnd_grav_exp, mass, lifters.atmospheric_thrust_for_density(density))
        s.i_lwr_gnd = lwr(s.gnd_grav_exp, mass, lifters.electric_thrust_for_density(density))
        s.h_lwr_gnd = lwr(s.gnd_grav_exp, mass, lifters.h_max)

    def _estimate_surface_gravity(self) -> None:
        s = self.state
        cfg = self.config
        if self.planet.precise:
            s.grav_source = GravitySource.IDENTIFIED
            s.gnd_grav_exp = g_to_ms2(self.planet.gravity_sea_level)
            return
        estimator = self._estimator()
        weighted = interpolate(0.0, 1.0, s.grav_now, estimator.gravity_best, estimator.confidence_best)
        s.grav_source = (GravitySource.ESTIMATE if estimator.confidence_best > ESTIMATE_CONFIDENCE
                         else GravitySource.UNDEFINED)
        s.gnd_grav_exp = max(s.grav_now, interpolate(
            cfg.grav_transition_low, cfg.grav_transition_high, s.grav_now, weighted, s.gnd_altitude
        ))
        self.planet = self.planet.with_gravity(ms2_to_g(s.gnd_grav_exp))
        if s.gnd_altitude < cfg.grav_transition_low:
            s.grav_source = GravitySource.LOCAL

    def lwr_target(self, gravity: float, a_lwr: float, i_lwr: float, h_lwr: float) -> float:
        """Lift-to-weight ratio the descent may count on."""
        cfg = self.config
        if gravity <= 0:
            return 0.0
        total = a_lwr + i_lwr + h_lwr
        if self.behavior.gentle:
            total = min(cfg.elec_lwr_sufficient, total)
        return min(total / cfg.lwr_safety_factor - cfg.lwr_offset, cfg.lwr_limit)

    def _update_lwr_target(self) -> None:
        s = self.state
        here = self.lwr_target(s.grav_now, s.a_lwr_now, s.i_lwr_now, s.h_lwr_now)
        ground = self.lwr_target(s.gnd_grav_exp, s.a_lwr_gnd, s.i_lwr_gnd, s.h_lwr_gnd)
        s.lwr_target = mix(ground, here, self.config.lwr_mix_ground_ratio)

    def _select_setpoint_source(self) -> None:
        """Pick the vertical speed strategy from the data available."""
        s = self.state
        cfg = self.config
        if s.gnd_altitude < UNDEFINED_ALTITUDE:
            if s.gnd_altitude > cfg.final_speed_altitude:
                if self.profile_builder.is_valid:
                    source = SetpointSource.PROFILE
                elif s.lwr_target > 1:
                    source = SetpointSource.ALT_GRAV_FORMULA
                else:
                    source = SetpointSource.UNABLE
            else:
                source = SetpointSource.FINAL_SPEED
        else:
            source = SetpointSource.GRAV_FORMULA
        if source is not s.speed_sp_source:
            logger.debug("Setpoint source %s", source.value)
        s.speed_sp_source = source

    def _select_space_setpoint_source(self) -> None:
        s = self.state
        if (s.gnd_altitude < UNDEFINED_ALTITUDE - 5.0
                and s.gnd_altitude > self.config.final_speed_altitude):
            s.speed_sp_source = SetpointSource.RDV
        else:
            s.speed_sp_source = SetpointSource.NONE

    def _init_landing_events(self) -> None:
        s = self.state
        below = s.gnd_altitude < self.config.landing_timer_altitude
        s.allow_landing_event = not below
        s.allow_liftoff_event = below

    def _manage_landing_events(self) -> None:
        s = self.state
        cfg = self.config
        if s.gnd_altitude < cfg.landing_timer_altitude and s.allow_landing_event:
            self._emit(GuidanceEvent.LANDING)
            s.allow_landing_event = False
            s.allow_liftoff_event = True
        liftoff_altitude = max(cfg.liftoff_timer_altitude, cfg.landing_timer_altitude + 1.0)
        if (s.gnd_altitude > liftoff_altitude and s.allow_liftoff_event
                and not self.behavior.in_space):
            self._emit(GuidanceEvent.LIFTOFF)
            s.allow_liftoff_event = False
            s.allow_landing_event = True

    # -------------------------------------------------------------------------
    # Fast-tick Updates
    # -------------------------------------------------------------------------

    def _update_altitude(self) -> None:
        """Fuse the controller elevation with the radar range."""
        s = self.state
        cfg = self.config
        ctrl = self.hardware.controller
        surface = ctrl.surface_elevation()
        radar = self.radar
        if radar.exists and radar.valid and radar.active:
            radar_alt = radar.distance()
            if surface is not None:
                if radar.alt_age <= 1:
                    s.radar_offset = radar_alt - surface
                fused = surface + s.radar_offset
            else:
                fused = radar_alt
            if s.alt_source is not AltitudeSource.RADAR:
                self.altitude_filter.set(fused)
            s.gnd_altitude = self.altitude_filter.add_value(fused)
            s.alt_source = AltitudeSource.RADAR
        elif surface is not None:
            s.gnd_altitude = surface
            s.alt_source = AltitudeSource.GROUND
        else:
            s.gnd_altitude = UNDEFINED_ALTITUDE
            s.alt_source = AltitudeSource.UNDEFINED
        s.gnd_altitude -= cfg.altitude_offset

        sea_level = ctrl.sea_level_elevation()
        if sea_level is not None and surface is not None:
            s.gnd_sl_offset = sea_level - surface
        else:
            s.gnd_sl_offset = cfg.default_asl_meters
        s.sl_altitude = s.gnd_altitude + s.gnd_sl_offset

    def _update_speeds_in_gravity(self) -> None:
        s = self.state
        ctrl = self.hardware.controller
        gravity = ctrl.natural_gravity()
        norm = float(np.linalg.norm(gravity))
        velocity = ctrl.linear_velocity()
        if norm == 0:
            s.vert_speed = s.fwd_speed = s.left_speed = 0.0
            return
        up = -gravity / norm
        s.vert_speed = not_nan(float(np.dot(velocity, up)))
        s.fwd_speed = not_nan(float(np.dot(velocity, np.cross(up, ctrl.right()))))
        s.left_speed = not_nan(float(np.dot(velocity, np.cross(up, ctrl.forward()))))

    def _update_speeds_in_space(self) -> None:
        ctrl = self.hardware.controller
        self.state.vert_speed = float(np.dot(ctrl.linear_velocity(), ctrl.up()))

    def setpoint_for_source(self, source: SetpointSource) -> float:
        """Raw vertical speed setpoint of a strategy at the current altitude."""
        s = self.state
        cfg = self.config
        if source is SetpointSource.PROFILE:
            return -self.profile.interpolate_speed(s.sl_altitude)
        if source is SetpointSource.ALT_GRAV_FORMULA:
            energy = 2.0 * (s.gnd_altitude - cfg.final_speed_altitude) * (s.lwr_target - 1.0) * s.gnd_grav_exp
            return -math.sqrt(max(energy, 0.0)) - cfg.final_speed
        if source is SetpointSource.GRAV_FORMULA:
            if s.grav_now <= 0:
                return 0.0
            return -cfg.vspeed_default * (s.lwr_target - 1.0) / ms2_to_g(s.grav_now)
        if source is SetpointSource.FINAL_SPEED:
            return -cfg.final_speed
        return 0.0

    def _update_speed_setpoint_in_gravity(self) -> None:
        s = self.state
        cfg = self.config
        setpoint = not_nan(self.setpoint_for_source(s.speed_sp_source))
        # Horizontal speed beyond what the radar can steer is bled off vertically
        excess = (max(0.0, abs(s.fwd_speed) - HORIZ_MAX_SPEED) ** 2
                  + max(0.0, abs(s.left_speed) - HORIZ_MAX_SPEED) ** 2)
        setpoint = -math.sqrt(max(setpoint * setpoint - excess, 0.0))
        setpoint = max(setpoint, self.speed_limiter.limit(setpoint))
        s.vert_speed_sp = sat_min_max(setpoint, -cfg.vspeed_safe_limit, -cfg.final_speed)

    def _update_speed_setpoint_in_space(self) -> None:
        s = self.state
        cfg = self.config
        if s.speed_sp_source is SetpointSource.RDV and s.gnd_altitude > cfg.final_speed_altitude:
            mass = self.ship_info.mass
            accel = (min(self.hardware.lifters.total_effective / mass * cfg.mode5_thrust_ratio, cfg.accel_limit)
                     if mass > 0 else 0.0)
            s.vert_speed_sp = max(
                -math.sqrt(2.0 * accel * (s.gnd_altitude - cfg.final_speed_altitude)),
                -cfg.mode5_max_speed,
            )
        else:
            s.vert_speed_sp = 0.0

    def _run_vertical_loop(self) -> None:
        s = self.state
        s.vert_speed_delta = s.vert_speed_sp - s.vert_speed
        self.vert_pid.update(
            s.vert_speed_delta, self.config.vert_ai_min, s.a_lwr_now + s.i_lwr_now + s.h_lwr_now
        )
        self._apply_thrust_in_gravity(self.vert_pid.output)

    def _apply_thrust_in_gravity(self, pid_output: float) -> None:
        s = self.state
        cfg = self.config
        lifters = self.hardware.lifters
        s.lwr_command = pid_output + interpolate_smooth(-5.0, 5.0, 0.0, 2.0, s.vert_speed_delta)
        s.thr_command = s.lwr_command * s.ship_weight

        if ((s.thr_command > lifters.total_effective or s.vert_speed_delta > MARGINAL_DELTA)
                and s.marginal < cfg.marginal_max):
            s.marginal += 1
        elif s.marginal > 0:
            s.marginal -= 1

        atmo_min = 0.0
        ion_min = 0.0
        if self.behavior.gentle:
            atmo_min = interpolate(-cfg.mode1_atmo_speed, -cfg.mode1_atmo_speed + 5.0,
                                   s.ship_weight, 0.0, s.vert_speed)
            if s.gnd_altitude > cfg.mode1_ion_alt_limit and s.vert_speed_delta < 0:
                ion_min = interpolate(-cfg.mode1_ion_speed, -cfg.mode1_ion_speed + 5.0,
                                      s.ship_weight, 0.0, s.vert_speed)
        lifters.apply_thrust(s.thr_command, atmo_min, ion_min)

    def _apply_thrust_in_space(self, pid_output: float) -> None:
        s = self.state
        hw = self.hardware
        s.lwr_command = pid_output + interpolate_smooth(-5.0, 5.0, -1.0, 1.0, s.vert_speed_delta)
        scale = self.ship_info.mass * SPACE_REFERENCE_ACCEL
        if s.lwr_command >= 0:
            s.thr_command = s.lwr_command * scale
            hw.lifters.apply_thrust(s.thr_command)
            hw.down.disable()
        else:
            s.thr_command = max(s.lwr_command, -1.0) * scale
            hw.down.apply_thrust(-s.thr_command)
            hw.lifters.disable()

    def _update_landing_horizontal_setpoints(self) -> None:
        s = self.state
        if s.use_angle or s.use_horizontal_thrusters:
            s.left_speed_sp = self.left_speed_target.add_value(self.radar.recommend_left_speed())
            s.fwd_speed_sp = self.fwd_speed_target.add_value(self.radar.recommend_forward_speed())
        else:
            s.left_speed_sp = s.fwd_speed_sp = 0.0

        move = self.hardware.controller.move_indicator()
        backward, right = float(move[2]), float(move[0])
        if backward > PILOT_DEAD_ZONE:
            s.fwd_speed_sp = -PILOT_SPEED
        elif backward < -PILOT_DEAD_ZONE:
            s.fwd_speed_sp = PILOT_SPEED
        if right > PILOT_DEAD_ZONE:
            s.left_speed_sp = -PILOT_SPEED
        elif right < -PILOT_DEAD_ZONE:
            s.left_speed_sp = PILOT_SPEED

    def _run_autopilot_horizontal(self, overridable: bool) -> None:
        s = self.state
        s.fwd_speed_sp = self.autopilot.forward_speed_sp
        s.left_speed_sp = self.autopilot.left_speed_sp
        if s.use_angle:
            self.leveler.tick(s.fwd_speed, s.left_speed, s.fwd_speed_sp, s.left_speed_sp)
        else:
            self.leveler.tick()
        if s.use_horizontal_thrusters:
            self.horizontal.tick(
                s.fwd_speed, s.left_speed, s.fwd_speed_sp, s.left_speed_sp,
                self.ship_info.mass, s.use_angle, overridable,
            )

    def _check_panic(self) -> None:
        """Raise panic when the speed error is too large for the altitude left."""
        s = self.state
        cfg = self.config
        was_panic = s.panic
        s.panic = s.vert_speed_delta > s.gnd_altitude / cfg.panic_ratio + cfg.panic_delta
        if s.panic and not was_panic:
            logger.warning(
                "Panic: speed error %.1f m/s at %.0f m", s.vert_speed_delta, s.gnd_altitude
            )
            self._emit(GuidanceEvent.PANIC_ALARM)
            if self.hardware.parachutes:
                self.hardware.open_parachutes()
                self._emit(GuidanceEvent.PARACHUTES_DEPLOYED)

    # -------------------------------------------------------------------------
    # Persisted State
    # -------------------------------------------------------------------------

    def persistent_state(self) -> dict[str, int | float | str]:
        """Values that must survive a restart."""
        return {
            "mode": int(self.state.mode),
            "mode4_altitude": float(self.autopilot.desired_altitude),
            "mode4_speed": float(self.autopilot.desired_speed),
            "mode4_altitude_mode": self.autopilot.altitude_mode.value,
            "gravity_exponent": int(self.state.gravity_exponent),
        }

    def restore_persistent_state(self, values: Mapping[str, int | float | str]) -> None:
        """Restore values saved by :meth:`persistent_state`.

        Missing keys fall back to the configuration defaults. The mode is
        entered through its normal configure method.
        """
        cfg = self.config
        exponent = int(values.get("gravity_exponent", cfg.gravity_exponent))
        if exponent in (2, 7):
            self.state.gravity_exponent = exponent
            self.exponent_selector.exponent = exponent
        mode = GuidanceMode(int(values.get("mode", GuidanceMode.OFF)))
        if mode == GuidanceMode.ALTITUDE_SPEED_HOLD:
            self.configure_hold(
                float(values.get("mode4_altitude", cfg.mode4_initial_alt)),
                float(values.get("mode4_speed", cfg.mode4_initial_speed)),
                AltitudeMode(values.get("mode4_altitude_mode", AltitudeMode.GROUND.value)),
            )
        elif mode != GuidanceMode.OFF:
            self.configure(mode)

    # -------------------------------------------------------------------------
    # Diagnostics
    # -------------------------------------------------------------------------

    def log_names(self) -> list[str]:
        return [
            "mode", "grav_now", "vspeed", "vspeed_sp", "speed_sp_source",
            "gnd_altitude", "gnd_sl_offset", "alt_source",
            "vpid_p", "vpid_i", "vpid_d", "pid_output", "twr_wanted",
        ]

    def log_values(self) -> list[float]:
        s = self.state
        pid = self.vert_pid
        return [
            float(s.mode), s.grav_now, s.vert_speed, s.vert_speed_sp, float(s.speed_sp_source.code),
            s.gnd_altitude, s.gnd_sl_offset, float(s.alt_source.code),
            pid.p_term, pid.i_term, pid.d_term, pid.output, s.lwr_command,
        ]

    def all_log_names(self) -> list[str]:
        return (self.log_names() + self.radar.log_names()
                + self.horizontal.log_names() + self.autopilot.log_names())

    def all_log_values(self) -> list[float]:
        return (self.log_values() + self.radar.log_values()
                + self.horizontal.log_values() + self.autopilot.log_values())

    def debug_string(self) -> str:
        s = self.state
        lines = [
            f"[GUIDANCE] {self.behavior.label}",
            self.planet.debug_string(),
            f"Alt: {s.gnd_altitude:.1f}m ({s.alt_source.value}) SL offset: {s.gnd_sl_offset:.0f}m",
            f"Grav: {ms2_to_g(s.grav_now):.2f}g now, {ms2_to_g(s.gnd_grav_exp):.2f}g gnd "
            f"({s.grav_source.value}, n={s.gravity_exponent})",
            f"VSpeed: {s.vert_speed:.1f} / {s.vert_speed_sp:.1f}m/s ({s.speed_sp_source.value})",
            f"LWR target: {s.lwr_target:.2f} command: {s.lwr_command:.2f}",
            f"Warning: {s.warning.value} marginal: {s.marginal} panic: {s.panic}",
        ]
        if s.h2_margin is not None:
            lines.append(f"H2 margin: {s.h2_margin:.0f}%")
        return "\n".join(lines)

    def full_debug_string(self) -> str:
        """Debug strings of every component."""
        return "\n".join([
            self.debug_string(),
            self.ship_info.debug_string(),
            self.estimator2.debug_string(),
            self.estimator7.debug_string(),
            self.radar.altitude_debug_string(),
            self.radar.terrain_debug_string(),
            self.leveler.debug_string(),
            self.horizontal.debug_string(),
            self.autopilot.debug_string(),
            self.hardware.lifters.debug_string(),
            self.profile.debug_string(),
        ])
