"""Planet models and the catalog of known planets.

A PlanetModel is an immutable record. Estimated models (``precise=False``)
are refined by building a new instance with :meth:`PlanetModel.with_gravity`
or :meth:`PlanetModel.with_density`; the owner replaces its reference.
Catalog models (``precise=True``) are never refined.

Example:
    >>> from lander.environment import PlanetCatalog
    >>>
    >>> catalog = PlanetCatalog()
    >>> planet = catalog.find("land on mars please")
    >>> planet.display_name
    'Mars (vanilla)'
"""

from collections.abc import Iterable
from dataclasses import dataclass, replace

from beartype import beartype

# =============================================================================
# Planet Model
# =============================================================================


@beartype
@dataclass(frozen=True)
class PlanetModel:
    """Physical description of a planet, as used by the guidance.

    Attributes:
        short_name: Lower-case identifier matched against commands
        display_name: Human readable name
        density_sea_level: Relative atmosphere density at sea level
        atmosphere_limit_ratio: Atmosphere height, in units of hill height
        hill_param: Highest terrain height as a fraction of the radius
        gravity_sea_level: Gravity at sea level [g]
        precise: True when the values are known rather than estimated
        known: False only for the "unknown" placeholder
    """
    short_name: str
    display_name: str
    density_sea_level: float
    atmosphere_limit_ratio: float
    hill_param: float
    gravity_sea_level: float
    precise: bool = True
    known: bool = True

    def __post_init__(self):
        object.__setattr__(self, "short_name", self.short_name.lower())
        for name in ("density_sea_level", "atmosphere_limit_ratio",
                     "hill_param", "gravity_sea_level"):
            if getattr(self, name) < 0:
                object.__setattr__(self, name, 0.0)

    def with_gravity(self, gravity_sea_level: float) -> "PlanetModel":
        """Copy with a new sea-level gravity [g]."""
        return replace(self, gravity_sea_level=max(float(gravity_sea_level), 0.0))

    def with_density(self, density_sea_level: float) -> "PlanetModel":
        """Copy with a new sea-level density."""
        return replace(self, density_sea_level=max(float(density_sea_level), 0.0))

    def debug_string(self) -> str:
        return (
            f"[PLANET] {self.display_name}: {self.gravity_sea_level:.2f}g, "
            f"density {self.density_sea_level:.2f}, hill {self.hill_param:.3f}, "
            f"precise={self.precise}"
        )


# =============================================================================
# Catalog
# =============================================================================

# (short name, display name, density SL, atmosphere limit, hill, gravity SL [g])
_PLACEHOLDERS = [
    ("unknown", "Unknown Planet", 1.0, 2.0, 0.065, 1.0, False, False),
    ("dynvacuum", "Deduced Vacuum Planet", 0.0, 0.0, 0.065, 1.0, False, True),
    ("dynatmo", "Deduced Atmo Planet", 0.8, 1.0, 0.065, 1.0, False, True),
    ("vacuum", "Generic Vacuum Planet", 0.0, 0.0, 0.065, 1.0, False, True),
    ("atmo", "Generic Atmo Planet", 0.8, 1.0, 0.065, 1.0, False, True),
]

_KNOWN_PLANETS = [
    ("pertam", "Pertam", 1.0, 2.0, 0.025, 1.2),
    ("triton", "Triton", 1.0, 0.47, 0.20, 1.0),
    ("earth", "Earthlike", 1.0, 2.0, 0.12, 1.0),
    ("alien", "Alien", 1.2, 2.0, 0.12, 1.1),
    ("mars", "Mars (vanilla)", 1.0, 2.0, 0.12, 0.9),
    ("moon", "Moon (vanilla)", 0.0, 1.0, 0.03, 0.25),
    ("europa", "Europa", 0.5, 1.0, 0.06, 0.25),
    ("titan", "Titan", 0.5, 1.0, 0.03, 0.25),
    ("komorebi", "Komorebi", 1.12, 2.4, 0.032, 1.14),
    ("orlunda", "Orlunda", 0.89, 6.0, 0.01, 1.12),
    ("trelan", "Trelan", 1.0, 1.2, 0.1285, 0.92),
    ("teal", "Teal", 1.0, 2.0, 0.02, 1.0),
    ("kimi", "Kimi", 0.0, 1.0, 0.0, 0.05),
    ("qun", "Qun", 0.0, 1.0, 0.25, 0.42),
    ("tohil", "Tohil", 0.5, 1.0, 0.03, 0.328),
    ("satreus", "Satreus", 0.9, 1.5, 0.04, 0.95),
    ("agni", "Agni", 0.55, 2.3, 0.022, 1.27),
    ("cauldron", "Cauldron", 1.0, 3.5, 0.01, 1.58),
    ("tellus", "Tellus", 1.0, 2.7, 0.06, 1.0),
    ("pyke", "Pyke", 1.5, 2.0, 0.06, 1.42),
    ("saprimentas", "Saprimentas", 1.5, 2.0, 0.07, 0.96),
    ("aulden", "Aulden", 1.2, 2.0, 0.10, 0.82),
    ("silona", "Silona", 0.85, 2.0, 0.03, 0.64),
    ("argus", "Argus", 0.79, 2.0, 0.01, 1.45),
    ("aridus", "Aridus", 1.3, 1.0, 0.1, 0.5),
    ("microtech", "Microtech", 1.0, 0.5, 0.25, 1.0),
    ("hurston", "Hurston", 1.0, 1.9, 0.11, 1.1),
    ("ignis", "Ignis", 0.85, 3.0, 0.005, 1.08),
    ("tharsis", "Tharsis", 0.85, 3.0, 0.015, 0.75),
    ("umbris", "Umbris", 0.0, 0.0, 0.05, 0.19),
    ("valkor", "Valkor", 1.0, 0.3, 0.165, 1.05),
    ("theros", "Theros", 1.0, 0.73, 0.1, 0.95),
    ("thanatos", "Thanatos", 1.5, 2.8, 0.04, 1.4),
    ("halcyon", "Halcyon", 0.85, 1.3, 0.3, 0.5),
    ("terra", "(Terra) Earth by Infinite", 2.0, 0.9, 0.02, 1.0),
    ("luna", "Luna by Infinite", 0.0, 1.0, 0.07, 0.16),
    ("sspmars", "Mars by Infinite", 0.006, 2.0, 0.09, 0.38),
    ("venus", "Venus by Infinite", 92.0, 2.0, 0.04, 0.9),
    ("mercury", "Mercury by Infinite", 0.0, 1.0, 0.1, 0.37),
    ("ceres", "Ceres by Infinite", 0.0, 0.5, 0.1, 0.05),
    ("deimos", "Deimos by Infinite", 0.0, 0.0, 0.8, 0.05),
    ("phobos", "Phobos by Infinite", 0.0, 0.0, 1.0, 0.05),
    ("callisto", "Callisto by Infinite", 0.0, 0.5, 0.04, 0.12),
    ("europa", "Europa by Infinite", 0.0, 0.5, 0.04, 0.13),
    ("ganymede", "Ganymede by Infinite", 0.0, 0.0, 0.04, 0.14),
    ("io", "Io by Infinite", 0.0, 0.0, 0.025, 0.18),
    ("dione", "Dione by Infinite", 0.0, 0.5, 0.06, 0.05),
    ("enceladus", "Enceladus by Infinite", 0.0, 0.5, 0.02, 0.05),
    ("iapetus", "Iapetus by Infinite", 0.0, 0.0, 0.03, 0.05),
    ("mimas", "Mimas by Infinite", 0.0, 0.5, 0.07, 0.05),
    ("rhea", "Rhea by Infinite", 0.0, 0.0, 0.06, 0.05),
    ("thetys", "Thetys by Infinite", 0.0, 0.5, 0.09, 0.05),
    ("titan", "Titan by Infinite", 1.5, 3.0, 0.01, 0.14),
    ("ariel", "Ariel by Infinite", 0.0, 0.5, 0.03, 0.05),
    ("charon", "Charon by Infinite", 0.0, 0.5, 0.03, 0.05),
    ("miranda", "Miranda by Infinite", 0.0, 0.5, 0.05, 0.08),
    ("oberon", "Oberon by Infinite", 0.0, 0.5, 0.03, 0.05),
    ("pluto", "Pluto by Infinite", 0.00001, 0.0, 0.03, 0.06),
    ("titania", "Titania by Infinite", 0.0, 0.5, 0.03, 0.05),
    ("triton", "Triton by Infinite", 0.0, 0.5, 0.03, 0.07),
    ("umbriel", "Umbriel by Infinite", 0.0, 0.5, 0.03, 0.05),
    ("acheris", "Acheris", 1.5, 2.0, 0.0003, 1.36),
    ("ares", "Ares", 0.85, 3.0, 0.025, 0.53),
    ("euterpe", "Euterpe", 0.1, 2.0, 0.025, 0.19),
    ("gaia", "Gaia", 1.0, 3.0, 0.03, 0.97),
    ("nyxion", "Nyxion", 0.0, 0.0, 0.095, 0.22),
    ("tartarus", "Tartarus", 1.1, 1.5, 0.08, 1.13),
    ("tarvos", "Tarvos", 0.85, 3.0, 0.03, 0.75),
    ("vulcanis", "Vulcanis", 0.85, 3.0, 0.065, 0.9),
    ("zephyr", "Zephyr", 10.0, 3.0, 0.01, 3.24),
    ("calliope", "Calliope", 1.0, 3.0, 0.03, 0.92),
    ("calypso", "Calypso", 0.2, 3.0, 0.03, 0.63),
    ("cryos", "Cryos", 0.1, 2.0, 0.065, 0.09),
    ("erebus", "Erebus", 0.0, 0.0, 0.028, 0.32),
    ("helghan", "Helghan", 1.2, 3.5, 0.01, 1.1),
    ("arcadia", "Arcadia", 1.0, 2.0, 0.04, 1.17),
    ("sarilla", "Sarilla", 0.0, 0.0, 0.14, 0.74),
    ("anteros", "Anteros", 1.10, 1.69, 0.07, 1.32),
    ("chimera", "Chimera", 1.22, 1.5, 0.1, 1.0),
    ("zira", "Zira", 0.0, 0.0, 0.14, 0.16),
    ("celaeno", "Celaeno", 1.02, 6.5, 0.02, 0.93),
    ("scylla", "Scylla", 0.0, 0.0, 0.01, 0.32),
    ("dustydesert", "Dusty Desert Planet", 1.0, 2.0, 0.12, 1.0),
    ("gamadon", "Gamadon", 0.8, 2.0, 0.15, 0.72),
    ("kuma", "Kuma", 1.0, 0.5, 0.1, 1.0),
    ("mieliv", "Mieliv", 1.0, 0.5, 0.1, 1.0),
    ("sario", "Sario", 0.0, 0.0, 0.30, 0.3),
    ("kor", "Kor", 0.0, 0.0, 0.03, 0.74),
]


class PlanetCatalog:
    """Ordered list of planet models, placeholders first.

    Lookup returns the first entry whose short name appears in the query,
    so earlier entries shadow later ones with overlapping names.
    """

    def __init__(self, extra_planets: Iterable[PlanetModel] = ()) -> None:
        """Initialize catalog.

        Args:
            extra_planets: Additional models, looked up after the built-in ones
        """
        self._planets: list[PlanetModel] = [
            PlanetModel(short, name, density, limit, hill, grav, precise, known)
            for short, name, density, limit, hill, grav, precise, known in _PLACEHOLDERS
        ]
        self._planets += [
            PlanetModel(short, name, density, limit, hill, grav)
            for short, name, density, limit, hill, grav in _KNOWN_PLANETS
        ]
        self._planets += list(extra_planets)

    def __len__(self) -> int:
        return len(self._planets)

    def __iter__(self):
        return iter(self._planets)

    def find(self, command: str) -> PlanetModel | None:
        """Return the first planet whose short name is contained in ``command``."""
        lowered = command.lower()
        for candidate in self._planets:
            if candidate.short_name in lowered:
                return candidate
        return None

    def get(self, short_name: str) -> PlanetModel:
        """Return the planet with exactly this short name.

        Raises:
            KeyError: If no planet has this short name
        """
        for candidate in self._planets:
            if candidate.short_name == short_name:
                return candidate
        raise KeyError(f"Unknown planet: {short_name!r}")

    def unknown(self) -> PlanetModel:
        return self._planets[0]
