"""Free-text command dispatch.

Maps the pilot's command tokens onto :class:`GuidanceController` entry
points. Anything that is not a known token is tried as a planet name.

Example:
    >>> from flight.commands import dispatch
    >>>
    >>> dispatch(controller, "mode1")
    True
    >>> dispatch(controller, "land on earth please")  # planet match
    True
"""

import logging

from flight.guidance.landing_manager import GuidanceController
from flight.guidance.modes import GuidanceMode

logger = logging.getLogger(__name__)

_MODE_COMMANDS = {
    "mode1": GuidanceMode.LAND_GENTLE,
    "mode2": GuidanceMode.LAND_QUICK,
    "mode3": GuidanceMode.HOVER,
    "mode4": GuidanceMode.ALTITUDE_SPEED_HOLD,
    "mode5": GuidanceMode.ASTEROID_RENDEZVOUS,
}

# Checked in order; longer tokens sharing a prefix come first
_ACTIONS = [
    ("angleon", GuidanceController.enable_angle),
    ("angleoff", GuidanceController.disable_angle),
    ("angleswitch", GuidanceController.switch_angle),
    ("thrusterson", GuidanceController.enable_thrusters),
    ("thrustersoff", GuidanceController.disable_thrusters),
    ("thrustersswitch", GuidanceController.switch_thrusters),
    ("levelon", GuidanceController.enable_leveler),
    ("leveloff", GuidanceController.disable_leveler),
    ("levelswitch", GuidanceController.switch_leveler),
    ("altup", GuidanceController.hold_increase_altitude),
    ("altdown", GuidanceController.hold_decrease_altitude),
    ("speedup", GuidanceController.hold_increase_speed),
    ("speeddown", GuidanceController.hold_decrease_speed),
    ("altswitch", GuidanceController.hold_altitude_switch),
    ("altgnd", GuidanceController.hold_altitude_ground),
    ("altsl", GuidanceController.hold_altitude_sea_level),
]


def dispatch(controller: GuidanceController, argument: str) -> bool:
    """Run the command contained in ``argument``.

    Args:
        controller: Guidance controller to drive
        argument: Command text, case-insensitive

    Returns:
        True if the command was recognized (even when the requested mode
        was refused by the controller)
    """
    command = argument.strip().lower()
    if not command:
        return False

    if command == "off":
        controller.configure_off()
        return True

    for token, mode in _MODE_COMMANDS.items():
        if token in command:
            if not controller.configure(mode):
                logger.info("Command %r refused in mode %s", token, controller.behavior.label)
            return True

    for token, action in _ACTIONS:
        if token in command:
            action(controller)
            return True

    if controller.set_planet(command):
        return True

    logger.warning("Unknown command: %r", argument)
    return False
