import math

import pytest

from src.planetary_climate import AtmosphereGrid, ClimateConfig


def test_initialize_allocates_every_cell_once(grid):
    assert len(grid) == 2592
    first = grid.get_cell((18, 36))
    grid.initialize_grid()
    assert len(grid) == 2592
    assert grid.get_cell((18, 36)) is first


def test_uninitialized_grid_is_empty(config):
    grid = AtmosphereGrid(config)
    assert not grid.is_initialized
    assert len(grid) == 0
    assert grid.get_global_average_temperature() == 0.0


def test_activation_scenario(grid):
    for coord in [(18, 36), (0, 36), (35, 36)]:
        assert grid.activate_cell(coord)
    assert grid.active_count == 3
    assert len(grid.get_active_cells()) == 3
    assert grid.get_global_average_temperature() == pytest.approx(288.15)
    assert grid.get_global_average_pressure() == pytest.approx(101.325)


def test_activation_is_idempotent(grid):
    grid.activate_cell((5, 5))
    grid.activate_cell((5, 5))
    assert grid.active_count == 1
    grid.deactivate_cell((5, 5))
    grid.deactivate_cell((5, 5))
    assert grid.active_count == 0


@pytest.mark.parametrize("coord", [(36, 0), (0, 72), (-1, 0), ("a", 1), (True, 0), (1.5, 2), None, (1,), (99, 0)])
def test_invalid_coordinates_are_ignored(grid, coord):
    assert grid.activate_cell(coord) is False
    assert grid.deactivate_cell(coord) is False
    assert grid.get_cell(coord) is None
    assert grid.cell_latitude(coord) is None
    assert grid.cell_longitude(coord) is None
    assert grid.cell_area_km2(coord) == 0.0
    assert grid.active_count == 0


def test_deactivation_keeps_state(grid):
    grid.activate_cell((10, 10))
    cell = grid.get_cell((10, 10))
    cell.temperature = 250.0
    grid.deactivate_cell((10, 10))
    assert not cell.is_active
    assert cell.temperature == 250.0
    assert grid.get_global_average_temperature() == 0.0


def test_active_cells_are_ordered(grid):
    for coord in [(20, 3), (1, 70), (20, 1)]:
        grid.activate_cell(coord)
    assert [c.coordinate for c in grid.get_active_cells()] == [(1, 70), (20, 1), (20, 3)]


def test_cells_in_region(grid):
    north = grid.get_cells_in_region(75.0, 90.0, -180.0, 180.0)
    assert len(north) == 3 * 72
    assert all(grid.cell_latitude(c.coordinate) >= 75.0 for c in north)

    single = grid.get_cells_in_region(0.0, 0.0, 0.0, 0.0)
    assert [c.coordinate for c in single] == [(18, 36)]

    assert grid.get_cells_in_region(10.0, -10.0, -180.0, 180.0) == []


def test_cell_areas_cover_the_sphere(grid, config):
    total = sum(grid.cell_area_km2(c.coordinate) for c in grid.cells)
    assert total == pytest.approx(4 * math.pi * config.planet_radius_km ** 2, rel=1e-9)
    # Equatorial cells are larger than polar ones
    assert grid.cell_area_km2((18, 0)) > grid.cell_area_km2((0, 0))
    assert grid.cell_area_km2((99, 0)) == 0.0


def test_cell_pressure_setter_rescales(grid):
    cell = grid.get_cell((3, 3))
    fractions = cell.composition.fractions()
    cell.total_pressure = 0.6
    assert cell.total_pressure == pytest.approx(0.6)
    assert cell.composition.fractions() == pytest.approx(fractions)


def test_to_dataset(grid):
    grid.activate_cell((18, 36))
    grid.get_cell((18, 36)).temperature = 230.0
    dataset = grid.to_dataset()

    assert dataset.temperature.shape == (36, 72)
    assert int(dataset.is_active.sum()) == 1
    assert float(dataset.temperature.sel(lat=0.0, lon=0.0)) == 230.0
    assert dataset.temperature.attrs["units"] == "K"
    assert dataset.partial_pressure_CO2.attrs["units"] == "kPa"
    assert float(dataset.pressure.mean()) == pytest.approx(101.325)


def test_coarse_resolution():
    grid = AtmosphereGrid(ClimateConfig(grid_lat_size=10.0, grid_lon_size=20.0))
    grid.initialize_grid()
    assert len(grid) == 18 * 18


def test_cell_position(grid):
    assert grid.cell_latitude((0, 0)) == -90.0
    assert grid.cell_longitude((0, 0)) == -180.0
    assert grid.cell_latitude((18, 36)) == 0.0
    assert grid.cell_longitude((35, 71)) == 175.0


def test_active_mean_ignores_activation_order(config):
    temperatures = {(2, 7): 210.123456789, (30, 1): 1e-7, (11, 64): 300.000000001,
                    (0, 0): 251.5, (17, 33): 199.99999}
    means = []
    for order in (sorted(temperatures), sorted(temperatures, reverse=True)):
        grid = AtmosphereGrid(config)
        grid.initialize_grid()
        for coord in order:
            grid.get_cell(coord).temperature = temperatures[coord]
            grid.activate_cell(coord)
        means.append(grid.get_global_average_temperature())
    assert means[0] == means[1]
