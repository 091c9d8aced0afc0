"""Surface gravity estimation for unknown planets.

While the vehicle descends, gravity grows as it gets closer to the planet
center. Two samples (g1, h1) and (g2, h2) taken at different altitudes
above sea level determine the radius R of a planet whose field follows
``g ~ (1 / (R + h)) ** n``:

    K = (g1 / g2) ** (1 / n)
    R = (K * h1 - h2) / (1 - K)

Successive radius estimates are compared to derive a confidence, and the
best estimate seen so far is latched. Two estimators run side by side
for exponents 2 and 7; ExponentSelector decides which one to trust.

Example:
    >>> from lander.gnc.navigation import GravityEstimator
    >>>
    >>> est = GravityEstimator(exponent=2.0)
    >>> for g, h in samples:
    ...     est.update(g, h, hill_param=0.12)
    >>> est.radius_best, est.confidence_best
"""

import logging
from dataclasses import dataclass, field

from beartype import beartype

from lander.numerics import ms2_to_g, sat_min_max

logger = logging.getLogger(__name__)

# =============================================================================
# Constants
# =============================================================================

MAX_PLAUSIBLE_RADIUS: float = 1e7  # Above this the estimate is rejected [m]
LARGE_RADIUS: float = 2e5  # Above this confidence is derated [m]
LARGE_RADIUS_DERATING: float = 0.95
CERTAIN_CONFIDENCE: float = 0.95  # Latches the best estimate unconditionally

# Sentinel radii for the two non-estimate cases
RADIUS_NO_CHANGE: float = -2.0
RADIUS_NO_SAMPLE: float = -3.0


# =============================================================================
# Estimator
# =============================================================================


@beartype
@dataclass
class GravityEstimator:
    """Inverse-power-law planet radius and surface gravity estimator.

    Attributes:
        exponent: Assumed inverse-power exponent n
        radius: Latest radius estimate [m] (negative = no estimate)
        gravity: Latest gravity at the top of the hills [m/s^2] (-1 = none)
        confidence: Agreement of the two latest radius estimates, in [0, 1]
        radius_best: Radius of the best estimate so far [m]
        gravity_best: Gravity of the best estimate so far [m/s^2]
        confidence_best: Confidence of the best estimate so far
    """
    exponent: float
    radius: float = field(default=0.0, init=False)
    gravity: float = field(default=0.0, init=False)
    confidence: float = field(default=0.0, init=False)
    radius_best: float = field(default=0.0, init=False)
    gravity_best: float = field(default=0.0, init=False)
    confidence_best: float = field(default=0.0, init=False)

    _gravity_prev: float = field(default=0.0, init=False, repr=False)
    _altitude_prev: float = field(default=0.0, init=False, repr=False)

    def __post_init__(self):
        if self.exponent <= 0:
            raise ValueError(f"Gravity exponent must be positive, got {self.exponent}")

    def update(self, gravity: float, altitude_sl: float, hill_param: float) -> None:
        """Feed one gravity/altitude sample.

        Args:
            gravity: Gravity magnitude at the vehicle [m/s^2]
            altitude_sl: Altitude above sea level [m]
            hill_param: Hill parameter of the assumed planet
        """
        if self._gravity_prev == 0 or self._altitude_prev == 0:
            self._gravity_prev = gravity
            self._altitude_prev = altitude_sl
        elif gravity != self._gravity_prev and altitude_sl != self._altitude_prev and gravity > 0:
            k = (self._gravity_prev / gravity) ** (1.0 / self.exponent)
            if k != 1:
                radius_new = (k * self._altitude_prev - altitude_sl) / (1.0 - k)
            else:
                radius_new = RADIUS_NO_CHANGE

            larger = max(radius_new, self.radius)
            if larger > 0:
                self.confidence = (min(radius_new, self.radius) / larger) ** 2
            else:
                self.confidence = 0.0
            if radius_new < 0 or radius_new > MAX_PLAUSIBLE_RADIUS:
                self.confidence = 0.0
            if radius_new > LARGE_RADIUS:
                self.confidence *= LARGE_RADIUS_DERATING
            self.radius = radius_new
        else:
            self.radius = RADIUS_NO_SAMPLE
            self.confidence = 0.0

        if altitude_sl + self.radius > 0 and self.radius > 0:
            self.gravity = gravity * (
                (altitude_sl + self.radius) / (self.radius * (1.0 + hill_param))
            ) ** self.exponent
        else:
            self.gravity = -1.0
            self.confidence = 0.0

        self.confidence = sat_min_max(self.confidence, 0.0, 1.0)
        if self.confidence > self.confidence_best or self.confidence > CERTAIN_CONFIDENCE:
            self.confidence_best = self.confidence
            self.radius_best = self.radius
            self.gravity_best = self.gravity

        self._gravity_prev = gravity
        self._altitude_prev = altitude_sl

    def reset(self) -> None:
        """Forget the sample history and the best confidence."""
        self._gravity_prev = 0.0
        self._altitude_prev = 0.0
        self.radius = 0.0
        self.confidence = 0.0
        self.confidence_best = 0.0

    def debug_string(self) -> str:
        return (
            f"[GRAVITY ESTIMATOR n={self.exponent:g}]\n"
            f"Current: R={self.radius:06.0f}m, g={ms2_to_g(self.gravity):.2f}g, "
            f"c={self.confidence:.2f}\n"
            f"Best   : R={self.radius_best:06.0f}m, g={ms2_to_g(self.gravity_best):.2f}g, "
            f"c={self.confidence_best:.2f}"
        )


# =============================================================================
# Exponent Selection
# =============================================================================


@beartype
@dataclass
class ExponentSelector:
    """Chooses which gravity exponent to trust.

    A score moves one step towards the estimator whose confidence beats
    the other by ``margin``; the exponent switches only when the score
    reaches a bound, i.e. after several consistent samples.
    """
    exponent: int = 2
    auto_switch: bool = True
    max_score: int = 5
    margin: float = 1.02
    score: int = field(default=0, init=False)

    def __post_init__(self):
        if self.exponent not in (2, 7):
            raise ValueError(f"Gravity exponent must be 2 or 7, got {self.exponent}")

    def update(self, confidence_2: float, confidence_7: float) -> int:
        """Update the score and return the trusted exponent."""
        if confidence_2 > confidence_7 * self.margin and self.score > -self.max_score:
            self.score -= 1
        elif confidence_7 > confidence_2 * self.margin and self.score < self.max_score:
            self.score += 1

        if self.auto_switch:
            previous = self.exponent
            if self.score == -self.max_score:
                self.exponent = 2
            elif self.score == self.max_score:
                self.exponent = 7
            if self.exponent != previous:
                logger.info("Gravity exponent switched from %d to %d", previous, self.exponent)
        return self.exponent
