"""PID controller implementation.

Provides the PID controller shared by the vertical-speed, altitude-hold and
horizontal-speed loops:
- Integral clamped to a fixed range, then to a caller-supplied dynamic range
- First-order low-pass filter on the sample-to-sample error change
- Hard cap on the derivative contribution
- NaN errors treated as zero

The controller runs at a fixed tick rate, so it works on per-sample
increments rather than on time derivatives. The output is the unclamped
sum P + I + D; callers saturate it where needed.

Example:
    >>> from lander.gnc.control import PIDController
    >>>
    >>> pid = PIDController(kp=0.4, ki=0.05, kd=10.0, integral_limits=(-0.1, 4.0))
    >>> output = pid.update(error=2.0, integral_max=1.5)
"""

from dataclasses import dataclass, field

from beartype import beartype

from lander.numerics import not_nan, sat_min_max

# =============================================================================
# PID Gains
# =============================================================================


@beartype
@dataclass
class PIDGains:
    """PID controller gains.

    Attributes:
        kp: Proportional gain
        ki: Integral gain (per sample)
        kd: Derivative gain (per sample)
    """
    kp: float = 1.0
    ki: float = 0.0
    kd: float = 0.0

    def scale(self, factor: float) -> "PIDGains":
        """Scale all gains by a factor."""
        return PIDGains(
            kp=self.kp * factor,
            ki=self.ki * factor,
            kd=self.kd * factor,
        )


# =============================================================================
# PID Controller
# =============================================================================


@beartype
@dataclass
class PIDController:
    """General-purpose discrete PID controller.

    Implements:
        P = kp * e
        I = sat(I + ki * e, fixed range), then sat(I, dynamic range)
        D = sat(kd * (a * D_prev + (1 - a) * (e - e_prev)), +-max_derivative)
        u = P + I + D

    Attributes:
        kp: Proportional gain
        ki: Integral gain
        kd: Derivative gain
        integral_limits: (min, max) fixed integral range, always enforced
        derivative_filter: Low-pass coefficient a in [0, 1] (0 = no filter)
        max_derivative: Magnitude cap of the derivative term
    """
    kp: float = 1.0
    ki: float = 0.0
    kd: float = 0.0
    integral_limits: tuple[float, float] = (-1.0, 1.0)
    derivative_filter: float = 0.0
    max_derivative: float = 1.0

    # Internal state
    _p_term: float = field(default=0.0, init=False, repr=False)
    _i_term: float = field(default=0.0, init=False, repr=False)
    _d_term: float = field(default=0.0, init=False, repr=False)
    _prev_error: float = field(default=0.0, init=False, repr=False)
    _prev_derivative: float = field(default=0.0, init=False, repr=False)
    _output: float = field(default=0.0, init=False, repr=False)

    def __post_init__(self):
        if self.integral_limits[0] > self.integral_limits[1]:
            raise ValueError(
                f"Integral limits must be ordered (min, max), got {self.integral_limits}"
            )
        if self.max_derivative < 0:
            raise ValueError(f"max_derivative must be >= 0, got {self.max_derivative}")
        self.derivative_filter = sat_min_max(self.derivative_filter, 0.0, 1.0)

    @classmethod
    def from_gains(
        cls,
        gains: PIDGains,
        integral_limits: tuple[float, float],
        derivative_filter: float = 0.0,
        max_derivative: float = 1.0,
    ) -> "PIDController":
        """Create controller from PIDGains object."""
        return cls(
            kp=gains.kp,
            ki=gains.ki,
            kd=gains.kd,
            integral_limits=integral_limits,
            derivative_filter=derivative_filter,
            max_derivative=max_derivative,
        )

    def reset(self) -> None:
        """Reset controller state, keeping the coefficients."""
        self._p_term = 0.0
        self._i_term = 0.0
        self._d_term = 0.0
        self._prev_error = 0.0
        self._prev_derivative = 0.0
        self._output = 0.0

    def update(
        self,
        error: float,
        integral_min: float | None = None,
        integral_max: float | None = None,
    ) -> float:
        """Compute PID control output for one sample.

        Args:
            error: Current error (setpoint - measurement)
            integral_min: Dynamic lower integral bound (default: fixed bound)
            integral_max: Dynamic upper integral bound (default: fixed bound)

        Returns:
            Unclamped control output
        """
        error = not_nan(error)
        fixed_min, fixed_max = self.integral_limits
        if integral_min is None:
            integral_min = fixed_min
        if integral_max is None:
            integral_max = fixed_max

        self._p_term = error * self.kp

        self._i_term += error * self.ki
        self._i_term = sat_min_max(self._i_term, fixed_min, fixed_max)
        self._i_term = sat_min_max(self._i_term, integral_min, integral_max)

        alpha = self.derivative_filter
        derivative = alpha * self._prev_derivative + (1.0 - alpha) * (error - self._prev_error)
        self._d_term = sat_min_max(
            derivative * self.kd, -self.max_derivative, self.max_derivative
        )
        self._prev_derivative = derivative
        self._prev_error = error

        self._output = self._p_term + self._i_term + self._d_term
        return self._output

    @property
    def p_term(self) -> float:
        return self._p_term

    @property
    def i_term(self) -> float:
        return self._i_term

    @property
    def d_term(self) -> float:
        return self._d_term

    @property
    def output(self) -> float:
        return self._output

    @property
    def gains(self) -> PIDGains:
        """Get current gains as PIDGains object."""
        return PIDGains(kp=self.kp, ki=self.ki, kd=self.kd)

    @gains.setter
    def gains(self, value: PIDGains) -> None:
        """Set gains from PIDGains object."""
        self.kp = value.kp
        self.ki = value.ki
        self.kd = value.kd

    def log_names(self, prefix: str) -> list[str]:
        return [f"{prefix}_p", f"{prefix}_i", f"{prefix}_d", f"{prefix}_output"]

    def log_values(self) -> list[float]:
        return [self._p_term, self._i_term, self._d_term, self._output]
