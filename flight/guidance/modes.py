"""Operating modes, status tags and per-mode behavior.

Everything the controller does differently depending on the mode is read
from the MODE_BEHAVIOR table rather than tested against mode numbers.
"""

from enum import Enum, IntEnum
from typing import NamedTuple


class GuidanceMode(IntEnum):
    """Operating modes."""
    OFF = 0
    LAND_GENTLE = 1          # Landing on electric thrusters when possible
    LAND_QUICK = 2           # Landing at the full available TWR
    HOVER = 3                # Pilot-driven hover
    ALTITUDE_SPEED_HOLD = 4  # Autopilot holding altitude and cruise speed
    ASTEROID_RENDEZVOUS = 5  # Zero-gravity approach of a surface


class SetpointSource(Enum):
    """Strategy currently supplying the vertical speed setpoint."""
    NONE = "None"
    PROFILE = "Profile"
    ALT_GRAV_FORMULA = "AltGravFormula"
    GRAV_FORMULA = "GravFormula"
    FINAL_SPEED = "FinalSpeed"
    HOLD = "Hold"
    UNABLE = "Unable"
    RDV = "RDV"

    @property
    def code(self) -> int:
        """Numeric channel value for telemetry."""
        return list(SetpointSource).index(self)


class AltitudeSource(Enum):
    UNDEFINED = "Undefined"
    GROUND = "Ground"
    RADAR = "Radar"

    @property
    def code(self) -> int:
        return list(AltitudeSource).index(self)


class GravitySource(Enum):
    UNDEFINED = "Undefined"
    IDENTIFIED = "Identified"
    ESTIMATE = "Estimate"
    LOCAL = "Local"


class WarningLevel(Enum):
    INFO = "Info"
    GOOD = "Good"
    RISK = "Risk"
    BAD = "Bad"


class GuidanceEvent(Enum):
    """Notifications for external timers, sound blocks and displays."""
    ACTIVATED = "activated"
    DEACTIVATED = "deactivated"
    LANDING = "landing"
    LIFTOFF = "liftoff"
    WARNING_ALARM = "warning_alarm"
    PANIC_ALARM = "panic_alarm"
    PARACHUTES_DEPLOYED = "parachutes_deployed"


class ModeBehavior(NamedTuple):
    """What a mode does.

    Attributes:
        label: Display name
        landing: Estimates gravity and follows a descent profile
        gentle: Prefers electric thrust (caps the LWR target, forces early
            atmospheric and ion thrust)
        horizontal: Runs the leveler and horizontal thrusters
        in_space: Controls thrust against zero gravity
    """
    label: str
    landing: bool = False
    gentle: bool = False
    horizontal: bool = False
    in_space: bool = False

    def profile_sufficient_twr(self, config) -> float:
        """TWR above which the profile stops adding hydrogen thrust."""
        return config.elec_lwr_sufficient if self.gentle else config.lwr_limit


MODE_BEHAVIOR: dict[GuidanceMode, ModeBehavior] = {
    GuidanceMode.OFF: ModeBehavior("Off"),
    GuidanceMode.LAND_GENTLE: ModeBehavior("Land (gentle)", landing=True, gentle=True, horizontal=True),
    GuidanceMode.LAND_QUICK: ModeBehavior("Land (quick)", landing=True, horizontal=True),
    GuidanceMode.HOVER: ModeBehavior("Hover", horizontal=True),
    GuidanceMode.ALTITUDE_SPEED_HOLD: ModeBehavior("Altitude/speed hold", horizontal=True),
    GuidanceMode.ASTEROID_RENDEZVOUS: ModeBehavior("Asteroid rendezvous", in_space=True),
}
