"""Tests for the telemetry recorder and run-time counter."""

import pytest
from numpy.testing import assert_allclose

from lander.telemetry import RunTimeCounter, TelemetryRecorder


class TestTelemetryRecorder:
    """Test decimated channel recording."""

    def test_decimation(self):
        recorder = TelemetryRecorder(["a", "b"], log_factor=3)
        stored = [recorder.record(counter, [counter, 2 * counter]) for counter in range(7)]
        assert stored == [True, False, False, True, False, False, True]
        assert len(recorder) == 3
        assert_allclose(recorder.channel("b"), [0.0, 6.0, 12.0])

    def test_duplicate_names(self):
        with pytest.raises(ValueError, match="unique"):
            TelemetryRecorder(["a", "a"])

    def test_invalid_log_factor(self):
        with pytest.raises(ValueError):
            TelemetryRecorder(["a"], log_factor=0)

    def test_length_mismatch(self):
        recorder = TelemetryRecorder(["a", "b"])
        with pytest.raises(ValueError, match="Expected 2 values"):
            recorder.record(0, [1.0])

    def test_skipped_row_not_checked(self):
        """Rows that are not due are dropped before validation."""
        recorder = TelemetryRecorder(["a", "b"], log_factor=2)
        assert not recorder.record(1, [1.0])

    def test_clear(self):
        recorder = TelemetryRecorder(["a"])
        recorder.record(0, [1.0])
        recorder.clear()
        assert len(recorder) == 0

    def test_to_dataframe(self):
        recorder = TelemetryRecorder(["time", "altitude"])
        for counter in range(4):
            recorder.record(counter, [counter / 60.0, 100.0 - counter])
        df = recorder.to_dataframe()
        assert df.columns == ["time", "altitude"]
        assert df.height == 4
        assert df["altitude"].to_list() == [100.0, 99.0, 98.0, 97.0]


class TestRunTimeCounter:
    """Test tick timing statistics."""

    def test_measure(self):
        counter = RunTimeCounter()
        with counter.measure("fast"):
            sum(range(1000))
        assert counter.max("fast") > 0.0
        assert counter.average("slow") == 0.0

    def test_measure_records_on_error(self):
        counter = RunTimeCounter()
        with pytest.raises(RuntimeError):
            with counter.measure("medium"):
                sum(range(1000))
                raise RuntimeError("boom")
        assert counter.max("medium") > 0.0

    def test_unknown_kind(self):
        with pytest.raises(KeyError):
            with RunTimeCounter().measure("turbo"):
                pass

    def test_debug_string(self):
        assert RunTimeCounter().debug_string().startswith("[RUN TIME]")
