"""Tests for the planet models, gravity law and atmosphere law."""

import dataclasses

import pytest

from lander.environment import (
    GRAVITY_CUTOFF_G,
    PlanetCatalog,
    PlanetModel,
    atmosphere_limit_altitude,
    density_at_altitude,
    gravity_at_altitude,
)

EARTHLIKE = PlanetModel("earth", "Earthlike", 1.0, 2.0, 0.12, 1.0)


# =============================================================================
# Planet Model Tests
# =============================================================================


class TestPlanetModel:
    """Test the immutable planet record."""

    def test_short_name_lowered(self) -> None:
        planet = PlanetModel("Mars", "Mars", 1.0, 2.0, 0.12, 0.9)
        assert planet.short_name == "mars"

    def test_negative_values_clamped(self) -> None:
        planet = PlanetModel("x", "X", -1.0, 2.0, -0.1, 1.0)
        assert planet.density_sea_level == 0.0
        assert planet.hill_param == 0.0

    def test_frozen(self) -> None:
        with pytest.raises(dataclasses.FrozenInstanceError):
            EARTHLIKE.gravity_sea_level = 2.0

    def test_with_gravity_returns_copy(self) -> None:
        heavier = EARTHLIKE.with_gravity(1.5)
        assert heavier.gravity_sea_level == 1.5
        assert EARTHLIKE.gravity_sea_level == 1.0
        assert heavier.short_name == "earth"

    def test_with_density_floors_at_zero(self) -> None:
        assert EARTHLIKE.with_density(-3.0).density_sea_level == 0.0

    def test_debug_string(self) -> None:
        assert "Earthlike" in EARTHLIKE.debug_string()


class TestPlanetCatalog:
    """Test planet lookup."""

    def test_find_in_sentence(self) -> None:
        planet = PlanetCatalog().find("land on mars please")
        assert planet is not None
        assert planet.display_name == "Mars (vanilla)"

    def test_find_is_case_insensitive(self) -> None:
        assert PlanetCatalog().find("EARTH").short_name == "earth"

    def test_find_none(self) -> None:
        assert PlanetCatalog().find("xyz") is None

    def test_first_match_wins(self) -> None:
        """Duplicate short names resolve to the earlier entry."""
        assert PlanetCatalog().find("titan").display_name == "Titan"

    def test_unknown_placeholder(self) -> None:
        unknown = PlanetCatalog().unknown()
        assert unknown.short_name == "unknown"
        assert not unknown.precise
        assert not unknown.known

    def test_get_exact(self) -> None:
        catalog = PlanetCatalog()
        assert catalog.get("dynatmo").display_name == "Deduced Atmo Planet"
        with pytest.raises(KeyError):
            catalog.get("nowhere")

    def test_extra_planets_appended(self) -> None:
        extra = PlanetModel("flatland", "Flatland", 1.0, 100.0, 0.01, 1.0)
        catalog = PlanetCatalog(extra_planets=[extra])
        assert len(catalog) == len(PlanetCatalog()) + 1
        assert catalog.find("flatland") == extra

    def test_placeholders_imprecise(self) -> None:
        catalog = PlanetCatalog()
        for name in ("unknown", "dynvacuum", "dynatmo", "vacuum", "atmo"):
            assert not catalog.get(name).precise
        assert catalog.get("moon").precise


# =============================================================================
# Gravity Tests
# =============================================================================


class TestGravity:
    """Test the inverse-power gravity law."""

    def test_constant_below_hills(self) -> None:
        for altitude in (-100.0, 0.0, 3000.0, 7199.0):
            assert gravity_at_altitude(altitude, EARTHLIKE, 60000.0, 2.0) == pytest.approx(9.81)

    def test_inverse_square_above_hills(self) -> None:
        g = gravity_at_altitude(14400.0, EARTHLIKE, 60000.0, 2.0)
        assert g == pytest.approx(9.81 * (67200.0 / 74400.0) ** 2)

    def test_steeper_exponent(self) -> None:
        g2 = gravity_at_altitude(20000.0, EARTHLIKE, 60000.0, 2.0)
        g7 = gravity_at_altitude(20000.0, EARTHLIKE, 60000.0, 7.0)
        assert g7 < g2

    def test_cutoff(self) -> None:
        assert gravity_at_altitude(1.0e6, EARTHLIKE, 60000.0, 2.0) == 0.0
        assert GRAVITY_CUTOFF_G == 0.05

    def test_zero_gravity_planet(self) -> None:
        void = PlanetModel("void", "Void", 0.0, 0.0, 0.0, 0.0)
        assert gravity_at_altitude(100.0, void, 1000.0, 2.0) == 0.0


# =============================================================================
# Atmosphere Tests
# =============================================================================


class TestAtmosphere:
    """Test the linear-taper density law."""

    def test_limit_altitude(self) -> None:
        assert atmosphere_limit_altitude(EARTHLIKE, 60000.0) == pytest.approx(14400.0)

    def test_linear_taper(self) -> None:
        assert density_at_altitude(0.0, EARTHLIKE, 60000.0) == pytest.approx(1.0)
        assert density_at_altitude(7200.0, EARTHLIKE, 60000.0) == pytest.approx(0.5)

    def test_above_limit(self) -> None:
        assert density_at_altitude(20000.0, EARTHLIKE, 60000.0) == 0.0

    def test_below_sea_level(self) -> None:
        assert density_at_altitude(-50.0, EARTHLIKE, 60000.0) == pytest.approx(1.0)

    def test_vacuum(self) -> None:
        moon = PlanetModel("moon", "Moon", 0.0, 1.0, 0.03, 0.25)
        assert density_at_altitude(10.0, moon, 20000.0) == 0.0
