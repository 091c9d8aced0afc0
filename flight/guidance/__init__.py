"""Landing guidance.

Guidance selects the vertical speed setpoint for the current mode and
altitude, and turns the vertical speed error into a lift-to-weight command.

Available components:
    GuidanceController: Mode manager running the fast/medium/slow ticks
    GuidanceConfig: Immutable tuning constants
    MODE_BEHAVIOR: What each GuidanceMode does
"""

from flight.guidance.config import GuidanceConfig
from flight.guidance.landing_manager import (
    ControllerUnavailableError,
    GuidanceController,
    GuidanceState,
)
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

__all__ = [
    "AltitudeSource",
    "ControllerUnavailableError",
    "GravitySource",
    "GuidanceConfig",
    "GuidanceController",
    "GuidanceEvent",
    "GuidanceMode",
    "GuidanceState",
    "MODE_BEHAVIOR",
    "ModeBehavior",
    "SetpointSource",
    "WarningLevel",
]
