"""Per-direction thrust pools and force allocation.

A ThrustGroup owns every thruster pushing the vehicle in one direction.
Thrusters are partitioned by propulsion type, each with its own response
to atmosphere density:

- ATMOSPHERIC: needs air, useless below ~30% density
- ION: best in vacuum, loses 80% of its thrust at full density
- PROTOTECH: high-efficiency electric, loses 70% at full density
- HYDROGEN: chemical, density independent, consumes propellant

Requested forces are allocated in priority order atmospheric, prototech,
ion, hydrogen, and sent to the thrusters as override percentages.

Example:
    >>> from lander.propulsion import ThrustGroup
    >>>
    >>> lifters = ThrustGroup(thrusters, name="lifters")
    >>> lifters.update_thrust()
    >>> allocation = lifters.apply_thrust(2.0e5, atmo_min=0.0, ion_min=0.0)
"""

from collections.abc import Iterable
from enum import Enum
from typing import TYPE_CHECKING, NamedTuple

import numpy as np
from numpy.typing import NDArray

from lander.numerics import sat_min_max

if TYPE_CHECKING:
    from lander.vehicle.interfaces import Thruster

# =============================================================================
# Constants
# =============================================================================

OVERRIDE_DEAD_ZONE: float = 0.01  # Overrides below this are floored
OVERRIDE_TINY: float = 1e-6  # Floor value, keeps engines responsive
DENSITY_SAMPLES: int = 11


class PropulsionType(Enum):
    """Propulsion types, in allocation order."""

    ATMOSPHERIC = "A"
    PROTOTECH = "P"
    ION = "I"
    HYDROGEN = "H"


def classify_thruster(subtype_name: str, display_name: str = "") -> PropulsionType | None:
    """Guess the propulsion type from block names.

    Returns:
        The type, or None for thrusters the guidance does not drive
    """
    name = subtype_name.lower()
    display = display_name.lower()
    if "hydrogen" in name or "epstein" in name or "rcs" in name:
        return PropulsionType.HYDROGEN
    if "ion" in name or "ion" in display:
        return PropulsionType.ION
    if "atmo" in name:
        return PropulsionType.ATMOSPHERIC
    if "prototech" in name:
        return PropulsionType.PROTOTECH
    return None


# =============================================================================
# Thrust-for-density Laws
# =============================================================================


def atmospheric_thrust_for_density(max_thrust: float, density: float) -> float:
    return max(max_thrust * (min(density, 1.0) * 1.43 - 0.43), 0.0)


def ion_thrust_for_density(max_thrust: float, density: float) -> float:
    return max_thrust * (1.0 - 0.8 * min(density, 1.0))


def prototech_thrust_for_density(max_thrust: float, density: float) -> float:
    return max_thrust * (1.0 - 0.7 * min(density, 1.0))


class ThrustAllocation(NamedTuple):
    """Forces [N] and overrides [0-1] produced by ThrustGroup.apply_thrust."""
    atmospheric: float
    prototech: float
    ion: float
    hydrogen: float
    atmospheric_override: float
    prototech_override: float
    ion_override: float
    hydrogen_override: float

    @property
    def total(self) -> float:
        return self.atmospheric + self.prototech + self.ion + self.hydrogen


# =============================================================================
# Thrust Group
# =============================================================================


class ThrustGroup:
    """Thrusters acting along one direction, partitioned by propulsion type.

    Aggregates (``*_max``, ``*_eff``, ``*_now``) are refreshed by
    :meth:`update_thrust` and only count working thrusters.
    """

    def __init__(self, thrusters: Iterable["Thruster"] = (), name: str = "") -> None:
        self.name = name
        self._thrusters: dict[PropulsionType, list["Thruster"]] = {
            kind: [] for kind in PropulsionType
        }
        for thruster in thrusters:
            kind = classify_thruster(thruster.subtype_name, thruster.display_name)
            if kind is not None:
                self._thrusters[kind].append(thruster)

        self.max_thrust = dict.fromkeys(PropulsionType, 0.0)
        self.effective_thrust = dict.fromkeys(PropulsionType, 0.0)
        self.current_thrust = dict.fromkeys(PropulsionType, 0.0)
        self.overrides = dict.fromkeys(PropulsionType, 0.0)
        self.allocation: ThrustAllocation | None = None

        self.atmospheric_density_sweep: NDArray[np.float64] = np.zeros(DENSITY_SAMPLES)
        self.ion_density_sweep: NDArray[np.float64] = np.zeros(DENSITY_SAMPLES)
        self.prototech_density_sweep: NDArray[np.float64] = np.zeros(DENSITY_SAMPLES)

    def thrusters(self, kind: PropulsionType | None = None) -> list["Thruster"]:
        if kind is not None:
            return list(self._thrusters[kind])
        return [t for kind in PropulsionType for t in self._thrusters[kind]]

    def __len__(self) -> int:
        return sum(len(group) for group in self._thrusters.values())

    # -------------------------------------------------------------------------
    # Aggregates
    # -------------------------------------------------------------------------

    def update_thrust(self) -> None:
        """Recompute max/effective/current thrust of each type."""
        for kind, group in self._thrusters.items():
            working = [t for t in group if t.is_working]
            self.max_thrust[kind] = float(sum(t.max_thrust for t in working))
            self.effective_thrust[kind] = float(sum(t.max_effective_thrust for t in working))
            self.current_thrust[kind] = float(sum(t.current_thrust for t in working))

    @property
    def total_max(self) -> float:
        return sum(self.max_thrust.values())

    @property
    def total_effective(self) -> float:
        return sum(self.effective_thrust.values())

    @property
    def total_current(self) -> float:
        return sum(self.current_thrust.values())

    @property
    def a_max(self) -> float:
        return self.max_thrust[PropulsionType.ATMOSPHERIC]

    @property
    def i_max(self) -> float:
        return self.max_thrust[PropulsionType.ION]

    @property
    def p_max(self) -> float:
        return self.max_thrust[PropulsionType.PROTOTECH]

    @property
    def h_max(self) -> float:
        return self.max_thrust[PropulsionType.HYDROGEN]

    @property
    def a_eff(self) -> float:
        return self.effective_thrust[PropulsionType.ATMOSPHERIC]

    @property
    def i_eff(self) -> float:
        return self.effective_thrust[PropulsionType.ION]

    @property
    def p_eff(self) -> float:
        return self.effective_thrust[PropulsionType.PROTOTECH]

    @property
    def h_eff(self) -> float:
        return self.effective_thrust[PropulsionType.HYDROGEN]

    # -------------------------------------------------------------------------
    # Allocation
    # -------------------------------------------------------------------------

    def apply_thrust(self, wanted: float, atmo_min: float = 0.0, ion_min: float = 0.0) -> ThrustAllocation:
        """Distribute ``wanted`` [N] across the propulsion types.

        Atmospheric thrusters take what they can first, at least ``atmo_min``.
        Prototech then ion thrusters follow, together providing at least
        ``ion_min``. Hydrogen covers the remainder and is never commanded
        negative. Requests beyond the effective thrust saturate.

        Args:
            wanted: Requested force [N]
            atmo_min: Minimum atmospheric force [N]
            ion_min: Minimum electric (prototech + ion) force [N]

        Returns:
            The allocated forces and the overrides sent to the thrusters
        """
        a_eff, p_eff, i_eff, h_eff = self.a_eff, self.p_eff, self.i_eff, self.h_eff

        a_thrust = sat_min_max(wanted, atmo_min, a_eff)
        p_thrust = sat_min_max(wanted - a_thrust, ion_min, p_eff)
        i_thrust = sat_min_max(wanted - a_thrust - p_thrust, ion_min - p_thrust, i_eff)
        h_thrust = sat_min_max(wanted - a_thrust - p_thrust - i_thrust, 0.0, h_eff)

        a_override = self._override(a_thrust, a_eff, default=1.0)
        p_override = self._override(p_thrust, p_eff)
        i_override = self._override(i_thrust, i_eff)
        h_override = self._override(h_thrust, h_eff)

        self.overrides = {
            PropulsionType.ATMOSPHERIC: a_override,
            PropulsionType.PROTOTECH: p_override,
            PropulsionType.ION: i_override,
            PropulsionType.HYDROGEN: h_override,
        }
        for kind, group in self._thrusters.items():
            for thruster in group:
                thruster.enabled = True
                thruster.thrust_override_percentage = self.overrides[kind]

        self.allocation = ThrustAllocation(
            a_thrust, p_thrust, i_thrust, h_thrust,
            a_override, p_override, i_override, h_override,
        )
        return self.allocation

    @staticmethod
    def _override(force: float, effective: float, default: float = OVERRIDE_TINY) -> float:
        # Atmospheric thrusters without effective thrust stay fully open.
        if effective <= 0:
            return default
        ratio = sat_min_max(force / effective, 0.0, 1.0)
        if ratio < OVERRIDE_DEAD_ZONE:
            return OVERRIDE_TINY
        return ratio

    def disable(self) -> None:
        """Release all overrides, leaving the thrusters enabled."""
        for thruster in self.thrusters():
            thruster.thrust_override = 0.0
            thruster.enabled = True
        self.overrides = dict.fromkeys(PropulsionType, 0.0)
        self.allocation = None

    # -------------------------------------------------------------------------
    # Density Model
    # -------------------------------------------------------------------------

    def worst_density(self) -> float:
        """Density the group handles worst: 1.0 when mostly electric, else 0.3."""
        if self.a_max + self.i_max * 0.2 + self.p_max * 0.3 < self.i_max + self.p_max:
            return 1.0
        return 0.3

    def atmospheric_thrust_for_density(self, density: float) -> float:
        return atmospheric_thrust_for_density(self.a_max, density)

    def ion_thrust_for_density(self, density: float) -> float:
        return ion_thrust_for_density(self.i_max, density)

    def prototech_thrust_for_density(self, density: float) -> float:
        return prototech_thrust_for_density(self.p_max, density)

    def electric_thrust_for_density(self, density: float) -> float:
        return self.ion_thrust_for_density(density) + self.prototech_thrust_for_density(density)

    def update_density_sweep(self) -> None:
        """Tabulate available thrust per type at densities 0.0, 0.1, ..., 1.0."""
        densities = np.linspace(0.0, 1.0, DENSITY_SAMPLES)
        self.atmospheric_density_sweep = np.array(
            [self.atmospheric_thrust_for_density(d) for d in densities])
        self.ion_density_sweep = np.array([self.ion_thrust_for_density(d) for d in densities])
        self.prototech_density_sweep = np.array(
            [self.prototech_thrust_for_density(d) for d in densities])

    # -------------------------------------------------------------------------
    # Diagnostics
    # -------------------------------------------------------------------------

    def inventory(self) -> str:
        counts = {kind: len(group) for kind, group in self._thrusters.items()}
        return (
            f"({counts[PropulsionType.ION]} I, {counts[PropulsionType.ATMOSPHERIC]} A, "
            f"{counts[PropulsionType.HYDROGEN]} H, {counts[PropulsionType.PROTOTECH]} P)"
        )

    def debug_string(self) -> str:
        o = self.overrides
        return (
            f"[{self.name}] A:{o[PropulsionType.ATMOSPHERIC]:+.2f} "
            f"I:{o[PropulsionType.ION]:+.2f} H:{o[PropulsionType.HYDROGEN]:+.2f} "
            f"P:{o[PropulsionType.PROTOTECH]:+.2f} WD{self.worst_density():.2f}\n"
            f"A: {self.a_eff:.3g} I: {self.i_eff:.3g} H: {self.h_eff:.3g} P: {self.p_eff:.3g}"
        )
