"""Linear-taper atmosphere model.

Density decreases linearly from its sea-level value to zero at the
atmosphere limit altitude:

    h_limit = R * limit_ratio * hill
    rho(h) = rho_sl * (1 - h / h_limit)     for 0 <= h <= h_limit
    rho(h) = rho_sl                         below sea level
    rho(h) = 0                              above h_limit

Densities are relative to the density thrusters are rated at (1.0), not
physical kg/m^3.

Example:
    >>> from lander.environment import density_at_altitude
    >>> rho = density_at_altitude(3000.0, planet, radius=60000.0)
"""

from beartype import beartype
from numba import njit

from lander.environment.planet import PlanetModel


@njit(cache=True)
def _density_at_altitude(
    altitude_sl: float,
    density_sea_level: float,
    radius: float,
    limit_ratio: float,
    hill_param: float,
) -> float:
    """Numba-optimized relative density."""
    limit_altitude = radius * limit_ratio * hill_param
    if altitude_sl > limit_altitude:
        return 0.0
    if altitude_sl >= 0.0:
        if limit_altitude <= 0.0:
            return density_sea_level
        return density_sea_level * (1.0 - altitude_sl / limit_altitude)
    return density_sea_level


@beartype
def atmosphere_limit_altitude(planet: PlanetModel, radius: float) -> float:
    """Altitude above sea level where the atmosphere ends [m]."""
    return radius * planet.atmosphere_limit_ratio * planet.hill_param


@beartype
def density_at_altitude(altitude_sl: float, planet: PlanetModel, radius: float) -> float:
    """Get relative atmosphere density above sea level of a planet.

    Args:
        altitude_sl: Altitude above sea level [m]
        planet: Planet model supplying sea-level density and limit ratio
        radius: Sea-level radius [m]

    Returns:
        Relative density (1.0 = thruster rating density)
    """
    return float(_density_at_altitude(
        float(altitude_sl),
        planet.density_sea_level,
        float(radius),
        planet.atmosphere_limit_ratio,
        planet.hill_param,
    ))
