"""Telemetry recording and tick run-time statistics.

TelemetryRecorder collects named numeric channels every ``log_factor``
fast ticks and exports them as a polars DataFrame. RunTimeCounter keeps
rolling statistics of the wall time spent in each tick rate.

Example:
    >>> from lander.telemetry import TelemetryRecorder
    >>>
    >>> recorder = TelemetryRecorder(["time", "altitude"], log_factor=2)
    >>> recorder.record(0, [0.0, 5000.0])
    >>> df = recorder.to_dataframe()
"""

import time
from collections.abc import Iterator, Sequence
from contextlib import contextmanager

import numpy as np
from numpy.typing import NDArray

from lander.gnc.control.filters import RollingBuffer

# Samples kept per tick rate: about two seconds at 60 Hz
RUN_TIME_SAMPLES = {"fast": 120, "medium": 12, "slow": 2}


class TelemetryRecorder:
    """Decimated recorder of named numeric channels.

    Attributes:
        names: Channel names, in record order
        log_factor: Fast ticks per recorded row
    """

    def __init__(self, names: Sequence[str], log_factor: int = 1) -> None:
        if log_factor < 1:
            raise ValueError(f"log_factor must be >= 1, got {log_factor}")
        if len(set(names)) != len(names):
            raise ValueError("Channel names must be unique")
        self.names = list(names)
        self.log_factor = log_factor
        self._rows: list[list[float]] = []

    def __len__(self) -> int:
        return len(self._rows)

    def record(self, counter: int, values: Sequence[float]) -> bool:
        """Store ``values`` if fast tick ``counter`` is due.

        Returns:
            True if a row was stored
        """
        if counter % self.log_factor != 0:
            return False
        if len(values) != len(self.names):
            raise ValueError(f"Expected {len(self.names)} values, got {len(values)}")
        self._rows.append([float(v) for v in values])
        return True

    def channel(self, name: str) -> NDArray[np.float64]:
        """All recorded samples of one channel."""
        index = self.names.index(name)
        return np.array([row[index] for row in self._rows])

    def clear(self) -> None:
        self._rows = []

    def to_dataframe(self):
        """Convert to Polars DataFrame."""
        import polars as pl

        return pl.DataFrame(
            {name: self.channel(name) for name in self.names},
            schema={name: pl.Float64 for name in self.names},
        )


class RunTimeCounter:
    """Rolling wall-time statistics of the fast, medium and slow ticks [ms]."""

    def __init__(self) -> None:
        self.buffers = {kind: RollingBuffer(size) for kind, size in RUN_TIME_SAMPLES.items()}

    @contextmanager
    def measure(self, kind: str) -> Iterator[None]:
        """Time the enclosed block and add it to the ``kind`` buffer."""
        buffer = self.buffers[kind]
        start = time.perf_counter()
        try:
            yield
        finally:
            buffer.add((time.perf_counter() - start) * 1000.0)

    def average(self, kind: str) -> float:
        return self.buffers[kind].average()

    def max(self, kind: str) -> float:
        return self.buffers[kind].max()

    def debug_string(self) -> str:
        parts = [f"{kind}: {self.average(kind):.3f}/{self.max(kind):.3f}ms" for kind in self.buffers]
        return "[RUN TIME] " + " ".join(parts)
