"""Scalar helpers shared by the guidance and control code.

Every helper is total: NaN inputs, inverted ranges and degenerate
intervals produce a defined value instead of raising, so they can be used
inside tick loops without guards.

Example:
    >>> from lander.numerics import interpolate, sat_min_max
    >>> interpolate(0.0, 10.0, 0.0, 1.0, 5.0)
    0.5
    >>> sat_min_max(12.0, 0.0, 10.0)
    10.0
"""

import math

# =============================================================================
# Constants
# =============================================================================

G_STANDARD: float = 9.81  # Gravity used to express accelerations in g [m/s^2]


# =============================================================================
# Saturation and Dead Zones
# =============================================================================


def not_nan(value: float) -> float:
    """Replace NaN by zero."""
    if math.isnan(value):
        return 0.0
    return value


def sat_min_max(value: float, min_value: float, max_value: float) -> float:
    """Clamp ``value`` to ``[min_value, max_value]``.

    The upper bound wins when the range is inverted.
    """
    if value > max_value or min_value > max_value:
        return max_value
    if value < min_value:
        return min_value
    return value


def max_abs(value: float, limit: float) -> float:
    """Limit the magnitude of ``value`` to ``limit``, keeping its sign."""
    return math.copysign(min(abs(value), limit), value) if value != 0 else 0.0


def min3(a: float, b: float, c: float) -> float:
    return min(a, b, c)


def max3(a: float, b: float, c: float) -> float:
    return max(a, b, c)


def dead_zone(value: float, zone: float) -> float:
    """Zero inside ``(-zone, zone)``, unchanged outside."""
    if abs(value) < zone:
        return 0.0
    return value


# =============================================================================
# Interpolation
# =============================================================================


def interpolate(x1: float, x2: float, y1: float, y2: float, x: float) -> float:
    """Linear interpolation between (x1, y1) and (x2, y2), clamped at both ends.

    Args:
        x1: Abscissa where the result equals ``y1`` (lower end)
        x2: Abscissa where the result equals ``y2`` (upper end)
        y1: Value at and below ``x1``
        y2: Value at and above ``x2``
        x: Evaluation point

    Returns:
        Interpolated value. ``y1`` is returned for a degenerate interval.
    """
    if x1 == x2:
        return y1
    if x <= x1:
        return y1
    if x >= x2:
        return y2
    return y1 + (y2 - y1) * (x - x1) / (x2 - x1)


def interpolate_smooth(x1: float, x2: float, y1: float, y2: float, x: float) -> float:
    """Smoothstep interpolation, clamped like :func:`interpolate`."""
    if x1 == x2:
        return y1
    if x <= x1:
        return y1
    if x >= x2:
        return y2
    t = (x - x1) / (x2 - x1)
    return y1 + (y2 - y1) * t * t * (3.0 - 2.0 * t)


def mix(a: float, b: float, ratio_of_a: float) -> float:
    """Weighted blend, ``ratio_of_a`` of ``a`` and the rest of ``b``.

    The ratio is saturated to [0, 1].
    """
    ratio = sat_min_max(ratio_of_a, 0.0, 1.0)
    return a * ratio + b * (1.0 - ratio)


# =============================================================================
# Units
# =============================================================================


def g_to_ms2(value: float) -> float:
    """Convert an acceleration from g to m/s^2."""
    return value * G_STANDARD


def ms2_to_g(value: float) -> float:
    """Convert an acceleration from m/s^2 to g."""
    return value / G_STANDARD
