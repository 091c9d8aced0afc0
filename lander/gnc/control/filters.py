"""Smoothing and statistics primitives used inside the control loops.

- MovingAverage: fixed-length boxcar filter with O(1) update
- RateLimiter: asymmetric slew-rate limiter
- RollingBuffer: circular buffer exposing average and maximum

Example:
    >>> from lander.gnc.control import MovingAverage, RateLimiter
    >>> avg = MovingAverage(3)
    >>> avg.add_value(3.0)
    1.0
    >>> limiter = RateLimiter(max_rate_positive=1.0, max_rate_negative=-0.5)
    >>> limiter.limit(10.0)
    1.0
"""

from dataclasses import dataclass, field

import numpy as np
from beartype import beartype
from numpy.typing import NDArray


@beartype
@dataclass
class MovingAverage:
    """Boxcar average over the last ``size`` samples.

    The buffer starts filled with zeros, so the first samples are
    attenuated until ``size`` values have been added.
    """
    size: int
    _values: NDArray[np.float64] = field(init=False, repr=False)
    _index: int = field(default=0, init=False, repr=False)
    _sum: float = field(default=0.0, init=False, repr=False)

    def __post_init__(self):
        if self.size < 1:
            raise ValueError(f"Moving average size must be >= 1, got {self.size}")
        self._values = np.zeros(self.size)

    def add_value(self, value: float) -> float:
        """Push a sample and return the updated average."""
        self._sum -= float(self._values[self._index])
        self._values[self._index] = value
        self._sum += value
        self._index = (self._index + 1) % self.size
        return self._sum / self.size

    def get(self) -> float:
        return self._sum / self.size

    def set(self, value: float) -> None:
        """Fill the whole window with ``value``."""
        self._values[:] = value
        self._sum = value * self.size

    def clear(self) -> None:
        self.set(0.0)
        self._index = 0


@beartype
@dataclass
class RateLimiter:
    """Limits how fast a signal may change between successive calls.

    Attributes:
        max_rate_positive: Largest allowed increase per call
        max_rate_negative: Largest allowed decrease per call (negative)
    """
    max_rate_positive: float
    max_rate_negative: float
    _last_value: float = field(default=0.0, init=False, repr=False)

    def limit(self, value: float) -> float:
        delta = value - self._last_value
        if delta > self.max_rate_positive:
            value = self._last_value + self.max_rate_positive
        elif delta < self.max_rate_negative:
            value = self._last_value + self.max_rate_negative
        self._last_value = value
        return value

    def init(self, initial_value: float) -> None:
        """Restart the limiter from ``initial_value``."""
        self._last_value = initial_value

    @property
    def last_value(self) -> float:
        return self._last_value


@beartype
@dataclass
class RollingBuffer:
    """Circular buffer of the last ``size`` samples."""
    size: int
    _buffer: NDArray[np.float64] = field(init=False, repr=False)
    _index: int = field(default=0, init=False, repr=False)

    def __post_init__(self):
        if self.size < 1:
            raise ValueError(f"Rolling buffer size must be >= 1, got {self.size}")
        self._buffer = np.zeros(self.size)

    def add(self, item: float) -> None:
        self._buffer[self._index] = item
        self._index = (self._index + 1) % self.size

    @property
    def buffer(self) -> NDArray[np.float64]:
        return self._buffer.copy()

    def average(self) -> float:
        return float(np.mean(self._buffer))

    def max(self) -> float:
        return float(np.max(self._buffer))
