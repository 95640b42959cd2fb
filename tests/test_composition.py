import math

import pytest

from src.planetary_climate import AtmosphericComposition, CellCoordinate, GasRegistry
from src.planetary_climate.config import AVERAGE_AIR_MOLAR_MASS


def test_unknown_symbol_reads_zero():
    composition = AtmosphericComposition({"CO2": 0.6})
    assert composition["Xe"] == 0.0
    assert composition.get("Xe") == 0.0
    assert composition.get("Xe", 1.5) == 1.5
    assert "Xe" not in composition


def test_values_stay_non_negative_and_finite():
    composition = AtmosphericComposition({"CO2": 0.6})
    assert composition.set("CO2", -3.0) == 0.0
    assert composition["CO2"] == 0.0

    composition.set("O2", 1.0)
    composition.set("O2", math.nan)
    composition.set("O2", math.inf)
    assert composition["O2"] == 1.0

    composition.adjust("O2", -5.0)
    assert composition["O2"] == 0.0


def test_total_pressure_is_sum_of_partials():
    composition = AtmosphericComposition({"CO2": 0.6, "N2": 0.016, "Ar": 0.012})
    assert composition.total_pressure == pytest.approx(0.628)


def test_external_total_pressure_source():
    composition = AtmosphericComposition({"CO2": 1.0}, total_pressure_source=lambda: 0.7)
    assert composition.is_externally_driven
    assert composition.total_pressure == 0.7

    fallback = AtmosphericComposition({"CO2": 1.0}, total_pressure_source=lambda: math.nan)
    assert fallback.total_pressure == 1.0


def test_from_fractions_normalizes():
    composition = AtmosphericComposition.from_fractions({"N2": 2.0, "O2": 2.0}, 10.0)
    assert composition["N2"] == pytest.approx(5.0)
    assert composition["O2"] == pytest.approx(5.0)
    assert len(AtmosphericComposition.from_fractions({"N2": 1.0}, 0.0)) == 0


def test_fractions_and_percentages():
    composition = AtmosphericComposition({"CO2": 3.0, "N2": 1.0})
    assert composition.fractions() == pytest.approx({"CO2": 0.75, "N2": 0.25})
    assert composition.percentages()["CO2"] == pytest.approx(75.0)
    assert AtmosphericComposition({"CO2": 0.0}).fractions() == {"CO2": 0.0}


def test_copy_is_independent():
    composition = AtmosphericComposition({"CO2": 0.6})
    duplicate = composition.copy()
    duplicate.set("CO2", 5.0)
    assert composition["CO2"] == 0.6


def test_cell_coordinate():
    coord = CellCoordinate(18, 36)
    assert coord == (18, 36)
    assert hash(coord) == hash((18, 36))
    assert CellCoordinate(0, 5) < CellCoordinate(1, 0)
    assert coord.latitude(5.0) == 0.0
    assert coord.longitude(5.0) == 0.0
    assert CellCoordinate(0, 0).latitude(5.0) == -90.0
    assert CellCoordinate(0, 0).longitude(5.0) == -180.0


def test_registry_builtin_gases(registry):
    for symbol in ("CO2", "O2", "N2", "H2O", "Ar", "CH4", "GHG"):
        assert symbol in registry
    assert registry.molar_mass("CO2") == 44.01
    assert registry.molar_mass("co2") == 44.01
    assert registry.molar_mass("Xe") == AVERAGE_AIR_MOLAR_MASS


def test_registry_register(registry):
    info = registry.register("Ne", "Neon", molar_mass=20.18)
    assert info.unit == "kPa"
    assert registry.molar_mass("Ne") == 20.18
    assert registry.symbols[-1] == "Ne"

    # Re-registering keeps the known molar mass
    registry.register("CO2", "CO2 (reported)", unit="mbar")
    assert registry.molar_mass("CO2") == 44.01
    assert registry.get("CO2").unit == "mbar"

    with pytest.raises(ValueError):
        registry.register("", "Nothing")
    with pytest.raises(ValueError):
        registry.register("Kr", "Krypton", molar_mass=0.0)


def test_registration_does_not_touch_compositions():
    registry = GasRegistry()
    composition = AtmosphericComposition({"CO2": 0.6})
    registry.register("Kr", "Krypton")
    assert composition["Kr"] == 0.0
    assert "Kr" not in composition


@pytest.mark.parametrize("molar_mass", [math.nan, math.inf, -math.inf, -4.0])
def test_registry_rejects_non_physical_molar_mass(registry, molar_mass):
    with pytest.raises(ValueError):
        registry.register("Kr", "Krypton", molar_mass=molar_mass)
    assert registry.get("Kr") is None
