"""Planet gravity model for descent guidance.

Gravity above the highest terrain of a planet falls with an inverse-power
law of the distance to the planet center:

    g(h) = g_sl * (R_max / (R + h)) ** n,   R_max = R * (1 + hill)

where ``R`` is the sea-level radius, ``hill`` the relative height of the
highest terrain and ``n`` the exponent (2 for Newtonian physics, 7 for the
steeper falloff some game-physics presets use). Below ``R_max`` gravity is
constant at ``g_sl``. Far from the planet the field is cut to zero once it
drops under 0.05 g.

Core functions are numba-compiled for performance.

Example:
    >>> from lander.environment import gravity_at_altitude
    >>> from lander.environment.planet import PlanetModel
    >>>
    >>> planet = PlanetModel("earth", "Earthlike", 1.0, 2.0, 0.12, 1.0)
    >>> g = gravity_at_altitude(12000.0, planet, radius=60000.0, exponent=2.0)
"""

from beartype import beartype
from numba import njit

from lander.environment.planet import PlanetModel
from lander.numerics import G_STANDARD

# =============================================================================
# Constants
# =============================================================================

GRAVITY_CUTOFF_G: float = 0.05  # Below this the field is treated as zero [g]


# =============================================================================
# Numba-Optimized Core Functions
# =============================================================================


@njit(cache=True)
def _gravity_at_altitude(
    altitude_sl: float,
    g_sea_level: float,
    radius: float,
    hill_param: float,
    exponent: float,
) -> float:
    """Numba-optimized gravity magnitude [m/s^2].

    g_sea_level is expressed in g.
    """
    max_radius = radius * (1.0 + hill_param)
    if altitude_sl >= max_radius - radius:
        raw = G_STANDARD * g_sea_level * (max_radius / (altitude_sl + radius)) ** exponent
        if raw > G_STANDARD * GRAVITY_CUTOFF_G:
            return raw
        return 0.0
    return G_STANDARD * g_sea_level


# =============================================================================
# Convenience Functions
# =============================================================================


@beartype
def gravity_at_altitude(
    altitude_sl: float,
    planet: PlanetModel,
    radius: float,
    exponent: float,
) -> float:
    """Get gravity magnitude above sea level of a planet.

    Args:
        altitude_sl: Altitude above sea level [m]
        planet: Planet model supplying sea-level gravity and hill parameter
        radius: Sea-level radius [m]
        exponent: Inverse-power law exponent

    Returns:
        Gravity magnitude [m/s^2]
    """
    return float(_gravity_at_altitude(
        float(altitude_sl),
        planet.gravity_sea_level,
        float(radius),
        planet.hill_param,
        float(exponent),
    ))
