"""Cellular atmosphere grid covering the whole planet.

The grid partitions the sphere into fixed latitude/longitude cells. Every
cell is allocated once by initialize_grid() and lives for the whole
simulation; only its active flag changes afterwards.
"""

import logging
import math
from typing import Dict, Iterator, List, Optional, Sequence

import numpy as np
import xarray as xr

from .cell import AtmosphereCell
from .composition import AtmosphericComposition
from .config import ClimateConfig
from .coordinates import CellCoordinate
from .gases import GasRegistry

logger = logging.getLogger(__name__)

# Returned by aggregate queries when no cell is active
EMPTY_AGGREGATE = 0.0


class AtmosphereGrid:
    """Fixed collection of atmosphere cells keyed by coordinate.

    Aggregates over active cells are plain arithmetic means: cells are
    equal-index buckets rather than equal-area patches, which is an accepted
    approximation at this level. Area-weighted averaging happens in the
    regional models.
    """

    def __init__(
            self,
            config: Optional[ClimateConfig] = None,
            registry: Optional[GasRegistry] = None
    ):
        """Create an empty grid. Call initialize_grid() to allocate cells.

        Args:
            config: Configuration providing resolution and default cell state
            registry: Gas registry used when exporting data
        """
        self.config = config or ClimateConfig.default()
        self.registry = registry if registry is not None else GasRegistry(self.config)
        self.lat_size = self.config.grid_lat_size
        self.lon_size = self.config.grid_lon_size
        self.lat_cells = self.config.lat_cells
        self.lon_cells = self.config.lon_cells
        self._cells: Dict[CellCoordinate, AtmosphereCell] = {}
        self._active: set = set()

    def initialize_grid(self) -> None:
        """Allocate every cell of the sphere. Calling it again is a no-op."""
        if self._cells:
            logger.debug("Grid already initialized with %d cells", len(self._cells))
            return

        for lat in range(self.lat_cells):
            for lon in range(self.lon_cells):
                coord = CellCoordinate(lat, lon)
                composition = AtmosphericComposition.from_fractions(
                    self.config.default_cell_fractions,
                    self.config.default_cell_pressure,
                )
                self._cells[coord] = AtmosphereCell(
                    coord, composition, self.config.default_cell_temperature
                )

        logger.info(
            "Initialized atmosphere grid with %dx%d cells (%.1f° x %.1f°)",
            self.lat_cells, self.lon_cells, self.lat_size, self.lon_size
        )

    @property
    def is_initialized(self) -> bool:
        return bool(self._cells)

    # === Lookup ===

    def _normalize(self, coord: Sequence[int]) -> Optional[CellCoordinate]:
        """Turn coord into a CellCoordinate, or None if it is not a valid cell."""
        try:
            lat, lon = coord
        except (TypeError, ValueError):
            return None
        if isinstance(lat, bool) or isinstance(lon, bool):
            return None
        if not isinstance(lat, (int, np.integer)) or not isinstance(lon, (int, np.integer)):
            return None
        candidate = CellCoordinate(int(lat), int(lon))
        return candidate if candidate in self._cells else None

    def is_valid(self, coord: Sequence[int]) -> bool:
        """True if coord names an allocated cell."""
        return self._normalize(coord) is not None

    def get_cell(self, coord: Sequence[int]) -> Optional[AtmosphereCell]:
        """Cell at coord, or None if the coordinate is invalid."""
        key = self._normalize(coord)
        return self._cells[key] if key is not None else None

    @property
    def cells(self) -> List[AtmosphereCell]:
        """All cells in coordinate order."""
        return [self._cells[c] for c in sorted(self._cells)]

    def __iter__(self) -> Iterator[AtmosphereCell]:
        return iter(self.cells)

    def __len__(self) -> int:
        return len(self._cells)

    # === Activation ===

    def activate_cell(self, coord: Sequence[int]) -> bool:
        """Include a cell in per-step simulation and active aggregates.

        Args:
            coord: Cell coordinate

        Returns:
            True if the coordinate was valid, False if it was ignored
        """
        key = self._normalize(coord)
        if key is None:
            logger.debug("Ignoring activation of invalid cell %s", coord)
            return False
        self._cells[key].activate()
        self._active.add(key)
        return True

    def deactivate_cell(self, coord: Sequence[int]) -> bool:
        """Exclude a cell from simulation; the cell keeps its last state.

        Args:
            coord: Cell coordinate

        Returns:
            True if the coordinate was valid, False if it was ignored
        """
        key = self._normalize(coord)
        if key is None:
            logger.debug("Ignoring deactivation of invalid cell %s", coord)
            return False
        self._cells[key].deactivate()
        self._active.discard(key)
        return True

    def get_active_cells(self) -> List[AtmosphereCell]:
        """Active cells in coordinate order."""
        return [self._cells[c] for c in sorted(self._active)]

    @property
    def active_count(self) -> int:
        return len(self._active)

    # === Geometry ===

    def cell_latitude(self, coord: Sequence[int]) -> Optional[float]:
        """Latitude of a cell in degrees (index * cell height - 90), None if invalid."""
        key = self._normalize(coord)
        return key.latitude(self.lat_size) if key is not None else None

    def cell_longitude(self, coord: Sequence[int]) -> Optional[float]:
        """Longitude of a cell in degrees (index * cell width - 180), None if invalid."""
        key = self._normalize(coord)
        return key.longitude(self.lon_size) if key is not None else None

    def cell_area_km2(self, coord: Sequence[int]) -> float:
        """Surface area of the spherical patch covered by a cell.

        Args:
            coord: Cell coordinate

        Returns:
            Area in km², 0.0 for invalid coordinates
        """
        key = self._normalize(coord)
        if key is None:
            return 0.0
        lat_south = math.radians(key.latitude(self.lat_size))
        lat_north = math.radians(min(90.0, key.latitude(self.lat_size) + self.lat_size))
        radius = self.config.planet_radius_km
        return radius ** 2 * math.radians(self.lon_size) * (math.sin(lat_north) - math.sin(lat_south))

    def get_cells_in_region(
            self,
            lat_min: float,
            lat_max: float,
            lon_min: float,
            lon_max: float
    ) -> List[AtmosphereCell]:
        """Cells, active or not, whose position lies in an inclusive box.

        Args:
            lat_min: Southern bound in degrees
            lat_max: Northern bound in degrees
            lon_min: Western bound in degrees
            lon_max: Eastern bound in degrees

        Returns:
            Matching cells in coordinate order; empty for an inverted box
        """
        if lat_min > lat_max or lon_min > lon_max:
            logger.debug(
                "Empty region query lat=[%s, %s] lon=[%s, %s]",
                lat_min, lat_max, lon_min, lon_max
            )
            return []

        region = []
        for coord in sorted(self._cells):
            lat = coord.latitude(self.lat_size)
            lon = coord.longitude(self.lon_size)
            if lat_min <= lat <= lat_max and lon_min <= lon <= lon_max:
                region.append(self._cells[coord])
        return region

    # === Aggregates ===

    def get_global_average_temperature(self) -> float:
        """Mean temperature of active cells (K), 0.0 if none is active."""
        return self._active_mean(lambda cell: cell.temperature)

    def get_global_average_pressure(self) -> float:
        """Mean total pressure of active cells (kPa), 0.0 if none is active."""
        return self._active_mean(lambda cell: cell.total_pressure)

    def _active_mean(self, value_of) -> float:
        if not self._active:
            return EMPTY_AGGREGATE
        values = np.array([value_of(self._cells[c]) for c in sorted(self._active)], dtype=float)
        values = values[np.isfinite(values)]
        if values.size == 0:
            return EMPTY_AGGREGATE
        return float(np.mean(values))

    # === Export ===

    def to_dataset(self) -> xr.Dataset:
        """Snapshot of every cell as an xarray Dataset on (lat, lon).

        Returns:
            Dataset with temperature, pressure, is_active and one
            partial_pressure_<symbol> variable per known gas
        """
        shape = (self.lat_cells, self.lon_cells)
        temperature = np.zeros(shape)
        pressure = np.zeros(shape)
        active = np.zeros(shape, dtype=bool)

        symbols = list(self.registry.symbols)
        for cell in self._cells.values():
            for symbol in cell.composition:
                if symbol not in symbols:
                    symbols.append(symbol)
        partials = {symbol: np.zeros(shape) for symbol in symbols}

        for coord, cell in self._cells.items():
            temperature[coord] = cell.temperature
            pressure[coord] = cell.total_pressure
            active[coord] = cell.is_active
            for symbol in symbols:
                partials[symbol][coord] = cell.composition[symbol]

        lats = np.arange(self.lat_cells) * self.lat_size - 90.0
        lons = np.arange(self.lon_cells) * self.lon_size - 180.0

        data_vars = {
            "temperature": (["lat", "lon"], temperature),
            "pressure": (["lat", "lon"], pressure),
            "is_active": (["lat", "lon"], active),
        }
        for symbol, values in partials.items():
            data_vars[f"partial_pressure_{symbol}"] = (["lat", "lon"], values)

        dataset = xr.Dataset(data_vars=data_vars, coords={"lat": lats, "lon": lons})

        dataset.temperature.attrs["units"] = "K"
        dataset.pressure.attrs["units"] = "kPa"
        for symbol in symbols:
            info = self.registry.get(symbol)
            var = dataset[f"partial_pressure_{symbol}"]
            var.attrs["units"] = "kPa"
            var.attrs["long_name"] = info.display_name if info else symbol
        dataset.attrs["lat_size"] = self.lat_size
        dataset.attrs["lon_size"] = self.lon_size
        return dataset
