"""Climate simulator driving the regional models and the atmosphere grid.

An external driver calls ClimateSimulator.step(delta_time) once per tick.
Each step advances orbital time, computes greenhouse warming from the
planetary atmosphere, updates every regional model and every active grid
cell, and recomputes the area-weighted global temperature.
"""

import logging
import threading
from typing import Dict, Iterable, List, NamedTuple, Optional, Sequence

from ..utils import finite_or
from .composition import AtmosphericComposition
from .config import ClimateConfig
from .gases import GasRegistry
from .greenhouse import GreenhouseModel
from .grid import AtmosphereGrid
from .pressure import PressureModel
from .regions import (
    ClimateRegionData,
    EquatorialRegion,
    Pole,
    PoleType,
    RegionalClimateModel,
    RegionalForcing,
    area_weighted_mean,
)
from .temperature import TemperatureModel

logger = logging.getLogger(__name__)

# Returned for regions the simulator does not own
MISSING_REGION_TEMPERATURE = 0.0


class IceCapStatus(NamedTuple):
    """Ice cap area (km²) and stability of both poles."""

    north_ice_area: float
    south_ice_area: float
    north_stable: bool
    south_stable: bool


class ClimateSimulator:
    """Orchestrates one planetary climate run.

    The simulator owns a re-entrant lock held for the whole of step(),
    add_gas() and reconfigure(). Readers that need a consistent view across
    several calls (such as ClimateAnalyticsProvider) can hold the same lock.
    """

    def __init__(
            self,
            config: Optional[ClimateConfig] = None,
            grid: Optional[AtmosphereGrid] = None,
            regions: Optional[Sequence[RegionalClimateModel]] = None,
            registry: Optional[GasRegistry] = None,
            atmosphere: Optional[AtmosphericComposition] = None
    ):
        """Create a simulator.

        Args:
            config: Run configuration, ClimateConfig.default() if omitted
            grid: Atmosphere grid, created and initialized if omitted
            regions: Regional models, two poles and the equator if omitted
            registry: Gas registry shared with the grid and the models
            atmosphere: Planetary composition, config.initial_atmosphere if omitted
        """
        self.config = config or (grid.config if grid is not None else ClimateConfig.default())
        if registry is None:
            registry = grid.registry if grid is not None else GasRegistry(self.config)
        self.registry = registry
        self.lock = threading.RLock()

        self.grid = grid if grid is not None else AtmosphereGrid(self.config, self.registry)
        self.grid.initialize_grid()

        self._atmosphere = (
            atmosphere if atmosphere is not None
            else AtmosphericComposition(self.config.initial_atmosphere)
        )
        self._custom_regions = regions is not None
        self.regions: List[RegionalClimateModel] = (
            list(regions) if regions is not None else self._default_regions()
        )
        self._build_models()

        self._day_of_year = 0.0
        self._time_of_day = 0.0
        self._elapsed_time = 0.0
        self._last_greenhouse_warming = 0.0
        self._global_temperature = self.calculate_global_average_temperature()

        logger.info("Climate simulator ready: %d regions, %d cells, %d gases",
                    len(self.regions), len(self.grid), len(self.registry))

    def _build_models(self) -> None:
        self.greenhouse_model = GreenhouseModel(self.config, self.registry)
        self.temperature_model = TemperatureModel(self.config)
        self.pressure_model = PressureModel(self.config, self.registry)

    def _default_regions(self) -> List[RegionalClimateModel]:
        """North pole, south pole and equatorial band from the configuration."""
        config = self.config
        pole_args = dict(
            latitude=config.pole_latitude,
            surface_area_km2=config.pole_area_km2,
            axial_tilt_degrees=config.axial_tilt_degrees,
            year_length_sols=config.year_length_sols,
            emissivity=config.emissivity,
        )
        return [
            Pole(PoleType.NORTH, **pole_args),
            Pole(PoleType.SOUTH, **pole_args),
            EquatorialRegion(
                surface_area_km2=config.equator_area_km2,
                year_length_sols=config.year_length_sols,
                emissivity=config.emissivity,
            ),
        ]

    # === State ===

    @property
    def atmosphere(self) -> AtmosphericComposition:
        """Planetary composition driving the regional models."""
        return self._atmosphere

    @property
    def day_of_year(self) -> float:
        """Day of the year in sols, within [0, year_length_sols)."""
        return self._day_of_year

    @property
    def time_of_day(self) -> float:
        """Fraction of the current sol, within [0, 1)."""
        return self._time_of_day

    @property
    def elapsed_time(self) -> float:
        """Simulated seconds since the start of the run."""
        return self._elapsed_time

    @property
    def last_greenhouse_warming(self) -> float:
        """Greenhouse warming (K) used by the most recent step."""
        return self._last_greenhouse_warming

    @property
    def global_temperature(self) -> float:
        """Area-weighted global temperature after the most recent step (K)."""
        return self._global_temperature

    def get_region(self, name: str) -> Optional[RegionalClimateModel]:
        """Regional model by name (north_pole, south_pole, equator), None if absent."""
        for region in self.regions:
            if region.name == name:
                return region
        return None

    # === Simulation ===

    def step(self, delta_time: float) -> None:
        """Advance the simulation by delta_time seconds.

        Non-positive or non-finite time steps are ignored. Failures inside a
        region or a cell are logged and rolled back so they never propagate.

        Args:
            delta_time: Elapsed simulated time in seconds
        """
        delta_time = finite_or(delta_time, 0.0)
        if delta_time <= 0:
            logger.debug("Ignoring non-positive time step %s", delta_time)
            return

        with self.lock:
            start_day = self._day_of_year
            self._advance_orbit(delta_time)

            warming = self._calculate_step_warming()
            self._last_greenhouse_warming = warming
            forcing = RegionalForcing(
                solar_constant=self.config.solar_constant,
                total_pressure=self._atmosphere.total_pressure,
                co2_pressure=self._atmosphere["CO2"],
                greenhouse_warming=warming,
                day_of_year=self._day_of_year,
                time_of_day=self._time_of_day,
            )

            for region in self.regions:
                self._update_region(region, forcing, delta_time)

            self._apply_pressure_drift(self._atmosphere, delta_time, start_day)
            self._update_cells(delta_time, start_day)

            self._global_temperature = self.calculate_global_average_temperature()
            logger.debug("Step %.0fs: day %.2f, greenhouse %.2fK, global %.2fK",
                         delta_time, self._day_of_year, warming, self._global_temperature)

    def _advance_orbit(self, delta_time: float) -> None:
        sols = delta_time / self.config.sol_seconds
        self._day_of_year = (self._day_of_year + sols) % self.config.year_length_sols
        self._time_of_day = (self._time_of_day + sols) % 1.0
        self._elapsed_time += delta_time

    def _calculate_step_warming(self) -> float:
        atmosphere = self._atmosphere
        return self.greenhouse_model.calculate_regional_warming(
            atmosphere["CO2"],
            atmosphere["H2O"],
            atmosphere["GHG"],
            self.greenhouse_model.registered_gas_warming(atmosphere),
        )

    def _update_region(self, region: RegionalClimateModel, forcing: RegionalForcing,
                       delta_time: float) -> None:
        """Update one region, restoring its previous state on failure."""
        state = region.get_state()
        try:
            region.update(forcing, delta_time)
            if not region.is_finite():
                raise FloatingPointError(f"{region.name} produced a non-finite state")
        except Exception:
            logger.exception("Update of region %s failed, keeping previous state", region.name)
            region.set_state(state)

    def _apply_pressure_drift(self, composition: AtmosphericComposition, delta_time: float,
                              day_of_year: float) -> None:
        changes = self.pressure_model.calculate_pressure_change(composition, delta_time, day_of_year)
        for symbol, change in changes.items():
            if change:
                composition.adjust(symbol, change)

    def _update_cells(self, delta_time: float, day_of_year: float) -> None:
        """Move every active cell toward its greenhouse equilibrium temperature."""
        for cell in self.grid.get_active_cells():
            temperature = cell.temperature
            composition = cell.composition.as_dict()
            try:
                self._apply_pressure_drift(cell.composition, delta_time, day_of_year)
                warming = self.greenhouse_model.calculate_greenhouse_warming(cell.composition)
                target = self.temperature_model.equilibrium_temperature(warming)
                cell.temperature = self.temperature_model.apply_thermal_inertia(
                    temperature, target, delta_time
                )
            except Exception:
                logger.exception("Update of cell %s failed, keeping previous state",
                                 cell.coordinate)
                cell.temperature = temperature
                for symbol, value in composition.items():
                    cell.composition.set(symbol, value)

    # === External inputs ===

    def add_gas(self, symbol: str, mass_kg: float,
                coordinate: Optional[Sequence[int]] = None) -> float:
        """Apply a gas-quantity delta coming from another subsystem.

        Without a coordinate the pressure change is spread over the whole
        planet and added to the planetary composition and to every cell.
        With a coordinate the cell receives the change for its own area, and
        the planetary composition receives the change for the whole planet.
        Negative masses remove gas; pressures never go below zero.

        Args:
            symbol: Gas symbol, e.g. "CO2"
            mass_kg: Mass delta in kg
            coordinate: Optional target cell

        Returns:
            Pressure change applied to the target in kPa (0.0 if ignored)
        """
        mass_kg = finite_or(mass_kg, 0.0)
        if not symbol or mass_kg == 0:
            return 0.0
        if symbol not in self.registry:
            logger.debug("Adding unregistered gas %s with average air molar mass", symbol)

        sign = 1.0 if mass_kg > 0 else -1.0
        with self.lock:
            planet_delta = sign * self.pressure_model.pressure_delta(
                symbol, abs(mass_kg), self._global_temperature
            )

            if coordinate is None:
                self._atmosphere.adjust(symbol, planet_delta)
                for cell in self.grid.cells:
                    cell.add_gas_pressure(symbol, planet_delta)
                logger.debug("Global %s change of %.3gkg: %+.6fkPa", symbol, mass_kg, planet_delta)
                return planet_delta

            cell = self.grid.get_cell(coordinate)
            if cell is None:
                logger.debug("Ignoring gas addition to invalid cell %s", coordinate)
                return 0.0
            area_m2 = self.grid.cell_area_km2(coordinate) * 1e6
            cell_delta = sign * self.pressure_model.pressure_delta(
                symbol, abs(mass_kg), cell.temperature, area_m2
            )
            cell.add_gas_pressure(symbol, cell_delta)
            self._atmosphere.adjust(symbol, planet_delta)
            logger.debug("Cell %s %s change of %.3gkg: %+.6fkPa",
                         cell.coordinate, symbol, mass_kg, cell_delta)
            return cell_delta

    def reconfigure(self, config: ClimateConfig) -> None:
        """Start a new run with a different configuration.

        Models, grid, default regions, planetary atmosphere and orbital time
        are rebuilt. Custom regions passed at construction are kept, and
        previously active cells stay active where they still exist. Gas
        registrations are kept; built-in molar masses follow the new config.

        Args:
            config: Configuration for the new run
        """
        with self.lock:
            active = [cell.coordinate for cell in self.grid.get_active_cells()]
            self.config = config
            for symbol, mass in config.molar_masses.items():
                info = self.registry.get(symbol)
                if info is not None:
                    self.registry.register(symbol, info.display_name, info.unit, mass,
                                           info.greenhouse_factor)

            self.grid = AtmosphereGrid(config, self.registry)
            self.grid.initialize_grid()
            for coord in active:
                self.grid.activate_cell(coord)

            if not self._custom_regions:
                self.regions = self._default_regions()
            self._atmosphere = AtmosphericComposition(config.initial_atmosphere)
            self._build_models()

            self._day_of_year = 0.0
            self._time_of_day = 0.0
            self._elapsed_time = 0.0
            self._last_greenhouse_warming = 0.0
            self._global_temperature = self.calculate_global_average_temperature()
            logger.info("Simulator reconfigured, %d cells still active", self.grid.active_count)

    # === Queries ===

    def calculate_global_average_temperature(self) -> float:
        """Area-weighted average of the regional temperatures.

        Σ(T·A) / Σ(A) over every region. Without regions the grid's active
        cell mean is used instead.

        Returns:
            Temperature in Kelvin
        """
        if not self.regions:
            return self.grid.get_global_average_temperature()
        return area_weighted_mean(
            self.regions, lambda r: r.average_temperature,
            fallback=self.grid.get_global_average_temperature()
        )

    def get_regional_temperatures(self) -> Dict[str, float]:
        """Average temperature of each region plus the global value (K)."""
        with self.lock:
            temperatures = {}
            for name in ("north_pole", "south_pole", "equator"):
                region = self.get_region(name)
                temperatures[name] = (
                    region.average_temperature if region is not None
                    else MISSING_REGION_TEMPERATURE
                )
            temperatures["global"] = self.calculate_global_average_temperature()
            return temperatures

    def _poles(self) -> Iterable[Optional[Pole]]:
        for name in ("north_pole", "south_pole"):
            region = self.get_region(name)
            yield region if isinstance(region, Pole) else None

    def get_ice_cap_status(self) -> IceCapStatus:
        """Ice cap area and stability of both poles."""
        with self.lock:
            north, south = self._poles()
            return IceCapStatus(
                north_ice_area=north.ice_cap_area if north else 0.0,
                south_ice_area=south.ice_cap_area if south else 0.0,
                north_stable=north.is_ice_stable if north else False,
                south_stable=south.is_ice_stable if south else False,
            )

    def get_regional_data(self) -> ClimateRegionData:
        """Regional models together with their area-weighted global averages."""
        with self.lock:
            return ClimateRegionData.from_regions(self.regions)

    def get_climate_status(self) -> str:
        """Multi-line human readable summary of the current climate."""
        with self.lock:
            lines = [
                f"Global: {self.calculate_global_average_temperature():.1f}K, "
                f"GHG: {self._last_greenhouse_warming:.1f}K, "
                f"P: {self._atmosphere.total_pressure:.3f}kPa, "
                f"Day {self._day_of_year:.1f}"
            ]
            lines.extend(str(region) for region in self.regions)
            return "\n".join(lines)
