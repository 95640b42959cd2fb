"""
Planetary climate package.

This package contains the cellular atmosphere grid, the greenhouse,
temperature and pressure models, the regional pole and equator models,
the climate simulator and the analytics built on top of them.
"""

from .analytics import ClimateAnalyticsProvider
from .cell import AtmosphereCell
from .composition import AtmosphericComposition
from .config import ClimateConfig, ConfigurationError
from .coordinates import CellCoordinate
from .gases import GasInfo, GasRegistry
from .greenhouse import GreenhouseModel
from .grid import AtmosphereGrid
from .habitability import HabitabilityAnalyzer, TerraformingPhase
from .pressure import PressureModel
from .regions import (
    ClimateRegionData,
    EquatorialRegion,
    GlobalClimateAverages,
    Pole,
    PoleType,
    RegionalClimateModel,
    RegionalForcing,
)
from .simulator import ClimateSimulator, IceCapStatus
from .temperature import TemperatureModel

__all__ = ['AtmosphereCell', 'AtmosphereGrid', 'AtmosphericComposition', 'CellCoordinate',
           'ClimateAnalyticsProvider', 'ClimateConfig', 'ClimateRegionData', 'ClimateSimulator',
           'ConfigurationError', 'EquatorialRegion', 'GasInfo', 'GasRegistry',
           'GlobalClimateAverages', 'GreenhouseModel', 'HabitabilityAnalyzer', 'IceCapStatus',
           'Pole', 'PoleType', 'PressureModel', 'RegionalClimateModel', 'RegionalForcing',
           'TemperatureModel', 'TerraformingPhase']
