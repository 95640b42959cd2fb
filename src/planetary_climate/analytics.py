"""Derived climate analytics over the atmosphere grid.

The provider answers regional, variance and hotspot queries over active
cells and maintains a keyed table of values for reporting, refreshed on
demand. Missing keys read as 0.0 so reporting code never has to guard.
"""

import logging
import threading
from typing import Dict, List, Optional, Tuple

import numpy as np

from ..utils import finite_or
from .cell import AtmosphereCell
from .gases import GasInfo, GasRegistry
from .grid import EMPTY_AGGREGATE, AtmosphereGrid
from .habitability import HabitabilityAnalyzer

logger = logging.getLogger(__name__)

# Latitude/longitude boxes (inclusive) of the named regions
REGIONS: Dict[str, Tuple[float, float, float, float]] = {
    "north_pole": (75.0, 90.0, -180.0, 180.0),
    "south_pole": (-90.0, -75.0, -180.0, 180.0),
    "equator": (-15.0, 15.0, -180.0, 180.0),
}


class ClimateAnalyticsProvider:
    """Regional and statistical views of the active cells."""

    def __init__(
            self,
            grid: Optional[AtmosphereGrid] = None,
            registry: Optional[GasRegistry] = None,
            simulator=None,
            lock=None
    ):
        """Create a provider.

        Args:
            grid: Grid to analyse; the simulator's grid when omitted
            registry: Gas registry for tracked gases; the grid's when omitted
            simulator: Optional ClimateSimulator adding regional and global values
            lock: Lock held during every read; the simulator's lock by default.
                Each public method takes it exactly once, so a plain
                threading.Lock works as well as an RLock
        """
        if grid is None and simulator is None:
            raise ValueError("ClimateAnalyticsProvider needs a grid or a simulator")
        self.simulator = simulator
        self._grid = grid
        self.registry = registry if registry is not None else self.grid.registry
        if lock is None:
            lock = simulator.lock if simulator is not None else threading.RLock()
        self.lock = lock
        self.habitability = HabitabilityAnalyzer()
        self._values: Dict[str, float] = {}

    @property
    def grid(self) -> AtmosphereGrid:
        # Follow the simulator, which rebuilds its grid on reconfigure
        if self.simulator is not None:
            return self.simulator.grid
        return self._grid

    # === Regional queries ===

    def box_temperature(self, lat_min: float, lat_max: float,
                        lon_min: float, lon_max: float) -> float:
        """Mean temperature of the active cells inside a box (K), 0.0 if none."""
        with self.lock:
            return self._box_temperature(lat_min, lat_max, lon_min, lon_max)

    def _box_temperature(self, lat_min: float, lat_max: float,
                         lon_min: float, lon_max: float) -> float:
        cells = [c for c in self.grid.get_cells_in_region(lat_min, lat_max, lon_min, lon_max)
                 if c.is_active]
        return self._mean([c.temperature for c in cells])

    def regional_temperature(self, name: str) -> float:
        """Mean temperature of the active cells of a named region.

        Args:
            name: north_pole, south_pole or equator

        Returns:
            Temperature in Kelvin, 0.0 for unknown or empty regions
        """
        box = REGIONS.get(name)
        if box is None:
            logger.debug("Unknown region %s", name)
            return EMPTY_AGGREGATE
        return self.box_temperature(*box)

    def _region_has_active_cells(self, name: str) -> bool:
        return any(c.is_active for c in self.grid.get_cells_in_region(*REGIONS[name]))

    # === Gas statistics ===

    def _gas_pressures(self, symbol: str, cells: Optional[List[AtmosphereCell]] = None) -> np.ndarray:
        cells = self.grid.get_active_cells() if cells is None else cells
        values = np.array([c.composition[symbol] for c in cells], dtype=float)
        return values[np.isfinite(values)]

    def average_gas_pressure(self, symbol: str) -> float:
        """Mean partial pressure over active cells holding the gas (kPa)."""
        with self.lock:
            return self._average_gas_pressure(symbol)

    def _average_gas_pressure(self, symbol: str) -> float:
        values = self._gas_pressures(symbol)
        return self._mean(values[values > 0])

    def gas_variance(self, symbol: str) -> float:
        """Spread of a gas between active cells: (max - min) / mean * 100.

        Returns:
            Percentage, 0.0 with fewer than two active cells or a zero mean
        """
        with self.lock:
            return self._gas_variance(symbol)

    def _gas_variance(self, symbol: str) -> float:
        values = self._gas_pressures(symbol)
        if values.size < 2:
            return 0.0
        mean = float(np.mean(values))
        if mean <= 0:
            return 0.0
        return finite_or((float(np.max(values)) - float(np.min(values))) / mean * 100.0, 0.0)

    def gas_hotspots(self, symbol: str) -> int:
        """Number of active cells above mean + 2σ (population σ) for a gas."""
        with self.lock:
            return self._gas_hotspots(symbol)

    def _gas_hotspots(self, symbol: str) -> int:
        values = self._gas_pressures(symbol)
        if values.size < 2:
            return 0
        threshold = np.mean(values) + 2.0 * np.std(values)
        return int(np.count_nonzero(values > threshold))

    @staticmethod
    def _mean(values) -> float:
        values = np.asarray(values, dtype=float)
        if values.size == 0:
            return EMPTY_AGGREGATE
        return finite_or(float(np.mean(values)), EMPTY_AGGREGATE)

    # === Gas registration ===

    def register_gas(self, symbol: str, display_name: str, unit: str = "kPa") -> GasInfo:
        """Track an additional gas in reports. Cell compositions are not touched."""
        with self.lock:
            return self.registry.register(symbol, display_name, unit)

    # === Keyed values ===

    def refresh(self) -> Dict[str, float]:
        """Recompute the keyed value table.

        Returns:
            Copy of the new table
        """
        with self.lock:
            values: Dict[str, float] = {}
            grid = self.grid
            active = grid.get_active_cells()

            for name in REGIONS:
                if self._region_has_active_cells(name):
                    values[f"temperature_{name}"] = self._box_temperature(*REGIONS[name])

            values["active_cells_count"] = float(len(active))
            if active:
                values["pressure_active_cells"] = grid.get_global_average_pressure()
                values["temperature_active_cells"] = grid.get_global_average_temperature()
                for symbol in self.registry.symbols:
                    values[f"{symbol}_pressure"] = self._average_gas_pressure(symbol)
            if len(active) >= 2:
                for symbol in self.registry.symbols:
                    values[f"{symbol}_cellular_variance"] = self._gas_variance(symbol)
                    values[f"{symbol}_cellular_hotspots"] = float(self._gas_hotspots(symbol))

            if self.simulator is not None:
                values.update(self._simulator_values())

            self._values = values
            logger.debug("Analytics refreshed: %d values", len(values))
            return dict(values)

    def _simulator_values(self) -> Dict[str, float]:
        simulator = self.simulator
        values = {
            f"{name}_temperature": temperature
            for name, temperature in simulator.get_regional_temperatures().items()
        }
        ice = simulator.get_ice_cap_status()
        values["north_ice_area"] = ice.north_ice_area
        values["south_ice_area"] = ice.south_ice_area
        values["greenhouse_warming"] = simulator.last_greenhouse_warming
        values["planetary_pressure"] = simulator.atmosphere.total_pressure
        values["day_of_year"] = simulator.day_of_year
        values["habitability_score"] = self.habitability.score(
            simulator.atmosphere, simulator.global_temperature
        )
        return values

    def get(self, key: str) -> float:
        """Value for key from the last refresh, 0.0 if absent."""
        with self.lock:
            return self._values.get(key, 0.0)

    def has(self, key: str) -> bool:
        with self.lock:
            return key in self._values

    def keys(self) -> List[str]:
        with self.lock:
            return sorted(self._values)

    def snapshot(self) -> Dict[str, float]:
        """Copy of the table from the last refresh."""
        with self.lock:
            return dict(self._values)
