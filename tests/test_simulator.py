import logging
import math

import pytest

from src.planetary_climate import (
    AtmosphereGrid,
    ClimateConfig,
    ClimateSimulator,
    EquatorialRegion,
    IceCapStatus,
)

HOUR = 3600.0


def test_default_setup(simulator):
    assert [r.name for r in simulator.regions] == ["north_pole", "south_pole", "equator"]
    assert len(simulator.grid) == 2592
    assert simulator.atmosphere["CO2"] == 0.6
    assert simulator.registry is simulator.grid.registry


def test_uninitialized_grid_is_initialized(config):
    grid = AtmosphereGrid(config)
    simulator = ClimateSimulator(grid=grid)
    assert simulator.grid is grid
    assert len(grid) == 2592


def test_global_temperature_is_area_weighted(simulator):
    for _ in range(5):
        simulator.step(HOUR)

    regions = simulator.regions
    expected = (sum(r.average_temperature * r.surface_area for r in regions)
                / sum(r.surface_area for r in regions))
    assert simulator.calculate_global_average_temperature() == pytest.approx(expected)
    assert simulator.global_temperature == pytest.approx(expected)
    assert simulator.get_regional_temperatures()["global"] == pytest.approx(expected)


def test_regional_temperatures(simulator):
    temperatures = simulator.get_regional_temperatures()
    assert set(temperatures) == {"north_pole", "south_pole", "equator", "global"}
    assert temperatures["equator"] == 300.0
    assert temperatures["north_pole"] == pytest.approx(207.0)


def test_missing_regions_read_zero(config):
    simulator = ClimateSimulator(config, regions=[EquatorialRegion()])
    temperatures = simulator.get_regional_temperatures()
    assert temperatures["north_pole"] == 0.0
    assert temperatures["global"] == 300.0
    assert simulator.get_ice_cap_status() == IceCapStatus(0.0, 0.0, False, False)


@pytest.mark.parametrize("delta_time", [0.0, -10.0, math.nan, math.inf])
def test_invalid_time_steps_are_ignored(simulator, delta_time):
    equator = simulator.get_region("equator")
    simulator.step(delta_time)
    assert simulator.elapsed_time == 0.0
    assert simulator.day_of_year == 0.0
    assert equator.surface_temperature == 300.0


def test_orbit_wraps(simulator, config):
    sol = config.sol_seconds
    simulator.step(sol * (config.year_length_sols + 1.5))
    assert simulator.day_of_year == pytest.approx(1.5, abs=1e-6)
    assert simulator.time_of_day == pytest.approx(0.1, abs=1e-6)
    assert 0.0 <= simulator.day_of_year < config.year_length_sols


def test_time_of_day_advances(simulator, config):
    simulator.step(config.sol_seconds / 4)
    assert simulator.time_of_day == pytest.approx(0.25)
    assert simulator.day_of_year == pytest.approx(0.25)
    assert simulator.elapsed_time == pytest.approx(config.sol_seconds / 4)


def test_failing_region_is_isolated(simulator, monkeypatch, caplog):
    north = simulator.get_region("north_pole")
    equator = simulator.get_region("equator")
    before = north.get_state()

    def broken_update(forcing, delta_time):
        north.surface_temperature = 300.0
        raise RuntimeError("solver diverged")

    monkeypatch.setattr(north, "update", broken_update)
    with caplog.at_level(logging.ERROR):
        simulator.step(HOUR)

    assert north.surface_temperature == before["_surface_temperature"]
    assert north.ice_cap_area == before["ice_cap_area"]
    assert equator.last_insolation > 0
    assert "north_pole" in caplog.text


def test_non_finite_region_state_is_rolled_back(simulator, monkeypatch):
    equator = simulator.get_region("equator")

    def corrupting_update(forcing, delta_time):
        equator._surface_temperature = math.nan

    monkeypatch.setattr(equator, "update", corrupting_update)
    simulator.step(HOUR)
    assert equator.surface_temperature == 300.0
    assert math.isfinite(simulator.global_temperature)


def test_active_cells_approach_equilibrium(simulator):
    grid = simulator.grid
    grid.activate_cell((18, 36))
    simulator.step(HOUR)

    active = grid.get_cell((18, 36))
    inactive = grid.get_cell((18, 37))
    target = simulator.temperature_model.baseline_temperature()
    assert target < active.temperature < 288.15
    assert inactive.temperature == 288.15


def test_more_co2_means_more_warming(config):
    thin = ClimateSimulator(config)
    thick = ClimateSimulator(config)
    thick.add_gas("CO2", 1e17)
    thin.step(HOUR)
    thick.step(HOUR)
    assert thick.last_greenhouse_warming > thin.last_greenhouse_warming
    assert thick.last_greenhouse_warming <= config.max_greenhouse_warming


def test_global_gas_addition(simulator, config):
    mass = 1e15
    expected = mass * config.surface_gravity / config.planet_surface_area_m2 / 1000.0
    co2_before = simulator.atmosphere["CO2"]
    cell_before = simulator.grid.get_cell((2, 2)).get_partial_pressure("CO2")

    delta = simulator.add_gas("CO2", mass)

    assert delta == pytest.approx(expected)
    assert simulator.atmosphere["CO2"] == pytest.approx(co2_before + expected)
    assert simulator.grid.get_cell((2, 2)).get_partial_pressure("CO2") == pytest.approx(
        cell_before + expected
    )


def test_cell_gas_addition(simulator, config):
    grid = simulator.grid
    mass = 1e12
    target = grid.get_cell((18, 36))
    neighbour = grid.get_cell((18, 37))
    before = target.get_partial_pressure("O2")
    neighbour_before = neighbour.get_partial_pressure("O2")
    planet_before = simulator.atmosphere["O2"]

    delta = simulator.add_gas("O2", mass, coordinate=(18, 36))

    area_m2 = grid.cell_area_km2((18, 36)) * 1e6
    assert delta == pytest.approx(mass * config.surface_gravity / area_m2 / 1000.0)
    assert target.get_partial_pressure("O2") == pytest.approx(before + delta)
    assert neighbour.get_partial_pressure("O2") == neighbour_before
    assert simulator.atmosphere["O2"] == pytest.approx(
        planet_before + mass * config.surface_gravity / config.planet_surface_area_m2 / 1000.0
    )


def test_gas_addition_edge_cases(simulator):
    co2 = simulator.atmosphere["CO2"]
    assert simulator.add_gas("CO2", 1e15, coordinate=(99, 99)) == 0.0
    assert simulator.add_gas("CO2", 0.0) == 0.0
    assert simulator.add_gas("CO2", math.nan) == 0.0
    assert simulator.atmosphere["CO2"] == co2

    simulator.add_gas("CO2", -1e30)
    assert simulator.atmosphere["CO2"] == 0.0
    assert simulator.grid.get_cell((0, 0)).get_partial_pressure("CO2") == 0.0


def test_ice_cap_status(simulator):
    status = simulator.get_ice_cap_status()
    assert isinstance(status, IceCapStatus)
    assert status.north_ice_area == pytest.approx(150000.0)
    assert status.north_stable and status.south_stable


def test_regional_data_and_status(simulator):
    simulator.step(HOUR)
    data = simulator.get_regional_data()
    assert data.north_pole is simulator.get_region("north_pole")
    assert data.global_averages.total_surface_area == pytest.approx(3_000_000.0)

    status = simulator.get_climate_status()
    assert status.startswith("Global:")
    assert "North Pole" in status
    assert "Equator" in status


def test_reconfigure_starts_new_run(simulator):
    simulator.grid.activate_cell((0, 0))
    simulator.grid.activate_cell((30, 60))
    simulator.add_gas("CO2", 1e17)
    simulator.step(HOUR)

    simulator.reconfigure(ClimateConfig(grid_lat_size=10.0, grid_lon_size=10.0))

    assert len(simulator.grid) == 18 * 36
    assert simulator.grid.get_cell((0, 0)).is_active
    assert simulator.grid.active_count == 1
    assert simulator.elapsed_time == 0.0
    assert simulator.atmosphere["CO2"] == 0.6
    assert simulator.config.grid_lat_size == 10.0
