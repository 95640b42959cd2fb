import pytest

from src.planetary_climate import AtmosphereGrid, ClimateConfig, ClimateSimulator, GasRegistry


@pytest.fixture
def config():
    return ClimateConfig.default()


@pytest.fixture
def registry(config):
    return GasRegistry(config)


@pytest.fixture
def grid(config, registry):
    grid = AtmosphereGrid(config, registry)
    grid.initialize_grid()
    return grid


@pytest.fixture
def simulator(config):
    return ClimateSimulator(config)
