"""Tests for thrust groups: classification, density laws and allocation."""

import pytest
from numpy.testing import assert_allclose

from lander.propulsion import PropulsionType, ThrustGroup, classify_thruster
from lander.propulsion.thrust_group import (
    OVERRIDE_TINY,
    atmospheric_thrust_for_density,
    ion_thrust_for_density,
    prototech_thrust_for_density,
)

# =============================================================================
# Classification and Density Laws
# =============================================================================


class TestClassification:
    """Test propulsion type detection from block names."""

    @pytest.mark.parametrize("name, expected", [
        ("LargeHydrogenThrust", PropulsionType.HYDROGEN),
        ("SmallEpsteinDrive", PropulsionType.HYDROGEN),
        ("LargeIonThrust", PropulsionType.ION),
        ("LargeAtmosphericThrust", PropulsionType.ATMOSPHERIC),
        ("LargePrototechThruster", PropulsionType.PROTOTECH),
        ("WarpDrive", None),
    ])
    def test_subtype_names(self, name, expected):
        assert classify_thruster(name) is expected

    def test_display_name_marks_ion(self):
        """Modded electric thrusters are recognized by their display name."""
        assert classify_thruster("Custom", "Heavy Ion Engine") is PropulsionType.ION


class TestDensityLaws:
    """Test thrust available at a given atmosphere density."""

    def test_atmospheric_dead_below_30_percent(self):
        assert atmospheric_thrust_for_density(100.0, 0.3) == 0.0
        assert atmospheric_thrust_for_density(100.0, 0.0) == 0.0

    def test_atmospheric_full_at_rating(self):
        assert atmospheric_thrust_for_density(100.0, 1.0) == pytest.approx(100.0)
        assert atmospheric_thrust_for_density(100.0, 2.0) == pytest.approx(100.0)

    def test_ion(self):
        assert ion_thrust_for_density(100.0, 0.0) == pytest.approx(100.0)
        assert ion_thrust_for_density(100.0, 1.0) == pytest.approx(20.0)

    def test_prototech(self):
        assert prototech_thrust_for_density(100.0, 1.0) == pytest.approx(30.0)


# =============================================================================
# Thrust Group
# =============================================================================


@pytest.fixture
def mixed_group(fake_thruster):
    """Atmospheric 1e5 N, ion 5e4 N effective, hydrogen 1e5 N."""
    group = ThrustGroup([
        fake_thruster("LargeAtmosphericThrust", 1.0e5),
        fake_thruster("LargeIonThrust", 2.5e5, 5.0e4),
        fake_thruster("LargeHydrogenThrust", 1.0e5),
    ], name="lifters")
    group.update_thrust()
    return group


class TestAggregates:
    """Test max/effective thrust bookkeeping."""

    def test_partition(self, mixed_group):
        assert len(mixed_group) == 3
        assert len(mixed_group.thrusters(PropulsionType.ION)) == 1
        assert mixed_group.inventory() == "(1 I, 1 A, 1 H, 0 P)"

    def test_unknown_thrusters_ignored(self, fake_thruster):
        group = ThrustGroup([fake_thruster("WarpDrive", 1.0e6)])
        assert len(group) == 0

    def test_totals(self, mixed_group):
        assert mixed_group.a_eff == pytest.approx(1.0e5)
        assert mixed_group.i_max == pytest.approx(2.5e5)
        assert mixed_group.i_eff == pytest.approx(5.0e4)
        assert mixed_group.total_effective == pytest.approx(2.5e5)

    def test_broken_thrusters_not_counted(self, fake_thruster):
        broken = fake_thruster("LargeHydrogenThrust", 1.0e5)
        broken.working = False
        group = ThrustGroup([broken, fake_thruster("LargeHydrogenThrust", 2.0e4)])
        group.update_thrust()
        assert group.h_max == pytest.approx(2.0e4)

    def test_worst_density(self, fake_thruster):
        ion_only = ThrustGroup([fake_thruster("LargeIonThrust", 1.0e5)])
        ion_only.update_thrust()
        assert ion_only.worst_density() == 1.0

        atmo = ThrustGroup([fake_thruster("LargeAtmosphericThrust", 1.0e5)])
        atmo.update_thrust()
        assert atmo.worst_density() == 0.3

    def test_density_sweep(self, mixed_group):
        mixed_group.update_density_sweep()
        assert len(mixed_group.ion_density_sweep) == 11
        assert mixed_group.ion_density_sweep[0] == pytest.approx(2.5e5)
        assert mixed_group.ion_density_sweep[-1] == pytest.approx(5.0e4)
        assert mixed_group.atmospheric_density_sweep[3] == 0.0


class TestApplyThrust:
    """Test force allocation in priority order."""

    def test_atmospheric_then_ion(self, mixed_group):
        """Atmospheric saturates first, ion covers the rest, hydrogen idles."""
        allocation = mixed_group.apply_thrust(1.2e5)
        assert allocation.atmospheric == pytest.approx(1.0e5)
        assert allocation.ion == pytest.approx(2.0e4)
        assert allocation.hydrogen == 0.0
        assert allocation.atmospheric_override == pytest.approx(1.0)
        assert allocation.ion_override == pytest.approx(0.4)
        assert allocation.hydrogen_override == OVERRIDE_TINY

    def test_overrides_written_to_thrusters(self, mixed_group):
        mixed_group.apply_thrust(1.2e5)
        ion = mixed_group.thrusters(PropulsionType.ION)[0]
        assert ion.thrust_override_percentage == pytest.approx(0.4)
        assert ion.enabled

    def test_hydrogen_last(self, mixed_group):
        allocation = mixed_group.apply_thrust(2.0e5)
        assert allocation.hydrogen == pytest.approx(5.0e4)
        assert allocation.hydrogen_override == pytest.approx(0.5)

    def test_saturation(self, mixed_group):
        allocation = mixed_group.apply_thrust(1.0e7)
        assert allocation.total == pytest.approx(mixed_group.total_effective)

    def test_never_negative(self, mixed_group):
        allocation = mixed_group.apply_thrust(-5.0e4)
        assert allocation.total == 0.0

    def test_minimums(self, mixed_group):
        allocation = mixed_group.apply_thrust(0.0, atmo_min=4.0e4, ion_min=1.0e4)
        assert allocation.atmospheric == pytest.approx(4.0e4)
        assert allocation.ion == pytest.approx(1.0e4)

    def test_atmospheric_without_air_stays_open(self, fake_thruster):
        group = ThrustGroup([fake_thruster("LargeAtmosphericThrust", 1.0e5, 0.0)])
        group.update_thrust()
        allocation = group.apply_thrust(5.0e4)
        assert allocation.atmospheric_override == 1.0

    def test_disable(self, mixed_group):
        mixed_group.apply_thrust(1.2e5)
        mixed_group.disable()
        assert mixed_group.allocation is None
        for thruster in mixed_group.thrusters():
            assert thruster.thrust_override == 0.0
        assert_allclose(list(mixed_group.overrides.values()), 0.0)
