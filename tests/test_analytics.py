import threading

import pytest

from src.planetary_climate import ClimateAnalyticsProvider, ClimateConfig, ClimateSimulator


@pytest.fixture
def analytics(grid, registry):
    return ClimateAnalyticsProvider(grid, registry)


def activate(grid, coords, **partials):
    for coord in coords:
        grid.activate_cell(coord)
        for symbol, value in partials.items():
            grid.get_cell(coord).set_partial_pressure(symbol, value)


def test_requires_grid_or_simulator():
    with pytest.raises(ValueError):
        ClimateAnalyticsProvider()


def test_variance_is_zero_with_fewer_than_two_cells(analytics, grid):
    assert analytics.gas_variance("O2") == 0.0
    activate(grid, [(18, 36)])
    assert analytics.gas_variance("O2") == 0.0


def test_variance(analytics, grid):
    activate(grid, [(18, 36)], O2=10.0)
    activate(grid, [(18, 37)], O2=30.0)
    assert analytics.gas_variance("O2") == pytest.approx(100.0)
    assert analytics.gas_variance("Xe") == 0.0


def test_hotspots(analytics, grid):
    activate(grid, [(18, lon) for lon in range(9)], CO2=1.0)
    activate(grid, [(18, 9)], CO2=100.0)
    assert analytics.gas_hotspots("CO2") == 1

    uniform = [(5, lon) for lon in range(4)]
    for cell in grid.get_active_cells():
        grid.deactivate_cell(cell.coordinate)
    activate(grid, uniform, CO2=2.0)
    assert analytics.gas_hotspots("CO2") == 0


def test_average_gas_pressure_ignores_empty_cells(analytics, grid):
    activate(grid, [(1, 1)], CH4=0.0)
    activate(grid, [(1, 2)], CH4=4.0)
    assert analytics.average_gas_pressure("CH4") == pytest.approx(4.0)
    assert analytics.average_gas_pressure("Kr") == 0.0


def test_regional_temperatures(analytics, grid):
    for coord, temperature in [((35, 0), 200.0), ((34, 10), 210.0), ((0, 0), 150.0),
                               ((18, 0), 250.0), ((17, 5), 260.0)]:
        grid.activate_cell(coord)
        grid.get_cell(coord).temperature = temperature
    # Inactive cells inside a region do not count
    grid.get_cell((35, 1)).temperature = 100.0

    assert analytics.regional_temperature("north_pole") == pytest.approx(205.0)
    assert analytics.regional_temperature("south_pole") == pytest.approx(150.0)
    assert analytics.regional_temperature("equator") == pytest.approx(255.0)
    assert analytics.regional_temperature("atlantis") == 0.0
    assert analytics.box_temperature(-5.0, 5.0, -180.0, 180.0) == pytest.approx(255.0)
    assert analytics.box_temperature(10.0, -10.0, -180.0, 180.0) == 0.0


def test_empty_region_reads_zero(analytics):
    assert analytics.regional_temperature("north_pole") == 0.0


def test_register_gas_does_not_touch_cells(analytics, grid, registry):
    activate(grid, [(18, 36), (18, 37)])
    before = [cell.composition.as_dict() for cell in grid]

    analytics.register_gas("Ne", "Neon", unit="mbar")

    assert "Ne" in registry
    assert registry.get("Ne").unit == "mbar"
    assert [cell.composition.as_dict() for cell in grid] == before
    assert grid.get_cell((18, 36)).get_partial_pressure("Ne") == 0.0

    analytics.refresh()
    assert analytics.get("Ne_pressure") == 0.0
    assert analytics.has("Ne_pressure")


def test_keyed_values(analytics, grid):
    analytics.refresh()
    assert analytics.get("active_cells_count") == 0.0
    assert not analytics.has("pressure_active_cells")
    assert analytics.get("pressure_active_cells") == 0.0

    for coord in [(18, 36), (0, 36), (35, 36)]:
        grid.activate_cell(coord)
    values = analytics.refresh()

    assert values["active_cells_count"] == 3.0
    assert analytics.get("temperature_active_cells") == pytest.approx(288.15)
    assert analytics.get("temperature_north_pole") == pytest.approx(288.15)
    assert analytics.get("pressure_active_cells") == pytest.approx(101.325)
    assert analytics.has("O2_cellular_variance")
    assert analytics.get("CO2_cellular_hotspots") == 0.0
    assert analytics.get("no_such_key") == 0.0
    assert analytics.keys() == sorted(values)


def test_snapshot_is_a_copy(analytics, grid):
    grid.activate_cell((18, 36))
    analytics.refresh()
    snapshot = analytics.snapshot()
    snapshot["active_cells_count"] = 99.0
    assert analytics.get("active_cells_count") == 1.0


def test_values_refresh_on_demand(analytics, grid):
    analytics.refresh()
    grid.activate_cell((18, 36))
    assert analytics.get("active_cells_count") == 0.0
    analytics.refresh()
    assert analytics.get("active_cells_count") == 1.0


def test_simulator_values(simulator):
    analytics = ClimateAnalyticsProvider(simulator=simulator)
    assert analytics.lock is simulator.lock
    assert analytics.registry is simulator.registry

    simulator.step(3600.0)
    analytics.refresh()

    assert analytics.get("global_temperature") == pytest.approx(simulator.global_temperature)
    assert analytics.get("equator_temperature") == pytest.approx(
        simulator.get_region("equator").average_temperature
    )
    assert analytics.get("greenhouse_warming") == pytest.approx(simulator.last_greenhouse_warming)
    assert analytics.get("north_ice_area") > 0
    assert 0.0 <= analytics.get("habitability_score") <= 100.0
    assert analytics.has("habitability_score")


def test_analytics_follow_reconfigured_grid(simulator):
    analytics = ClimateAnalyticsProvider(simulator=simulator)
    simulator.reconfigure(ClimateConfig(grid_lat_size=10.0, grid_lon_size=10.0))
    simulator.grid.activate_cell((0, 0))
    analytics.refresh()
    assert analytics.grid is simulator.grid
    assert analytics.get("active_cells_count") == 1.0


@pytest.mark.parametrize("with_simulator", [False, True])
def test_refresh_with_plain_lock(grid, registry, with_simulator):
    lock = threading.Lock()
    if with_simulator:
        simulator = ClimateSimulator(grid=grid, registry=registry)
        analytics = ClimateAnalyticsProvider(simulator=simulator, lock=lock)
    else:
        analytics = ClimateAnalyticsProvider(grid, registry, lock=lock)
    activate(grid, [(35, 0), (35, 1)], CO2=0.6)

    results = {}
    worker = threading.Thread(target=lambda: results.update(analytics.refresh()), daemon=True)
    worker.start()
    worker.join(timeout=3.0)

    assert not worker.is_alive()
    assert results["temperature_north_pole"] == pytest.approx(288.15)
    assert results["CO2_cellular_variance"] == 0.0
    assert analytics.get("active_cells_count") == 2.0
    assert not lock.locked()
