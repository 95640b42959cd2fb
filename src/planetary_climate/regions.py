"""Regional climate models for the poles and the equatorial band.

These are coarse, non-cellular reference models kept alongside the grid.
Each region integrates its own energy balance every step from insolation,
greenhouse warming and its local convective or latent-heat terms.
"""

import copy
import logging
import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from scipy import constants

from ..utils import clamp, finite_or

logger = logging.getLogger(__name__)

MARTIAN_YEAR_SOLS = 668.6
MARS_OBLIQUITY = 25.19
WATER_FREEZING_POINT = 273.15


@dataclass(frozen=True)
class RegionalForcing:
    """External inputs driving one regional update.

    Attributes:
        solar_constant: Solar irradiance (W/m²)
        total_pressure: Planetary total pressure (kPa)
        co2_pressure: Planetary CO2 partial pressure (kPa)
        greenhouse_warming: Greenhouse warming for this step (K)
        day_of_year: Day of the year (sols)
        time_of_day: Fraction of the current sol (0-1)
    """

    solar_constant: float
    total_pressure: float
    co2_pressure: float
    greenhouse_warming: float
    day_of_year: float
    time_of_day: float


class RegionalClimateModel(ABC):
    """Common interface of the regional climate models."""

    def __init__(self, name: str, latitude: float, surface_area_km2: float,
                 year_length_sols: float = MARTIAN_YEAR_SOLS):
        if surface_area_km2 <= 0:
            raise ValueError(f"Surface area of {name} must be positive, got {surface_area_km2}")
        self.name = name
        self.latitude = latitude
        self.surface_area = surface_area_km2
        self.year_length_sols = year_length_sols

    @property
    @abstractmethod
    def surface_temperature(self) -> float:
        """Surface temperature in Kelvin."""

    @property
    @abstractmethod
    def atmospheric_temperature(self) -> float:
        """Near-surface air temperature in Kelvin."""

    @property
    @abstractmethod
    def humidity(self) -> float:
        """Relative humidity (0-1)."""

    @property
    @abstractmethod
    def albedo(self) -> float:
        """Surface reflectivity (0-1)."""

    @property
    @abstractmethod
    def wind_speed(self) -> float:
        """Mean wind speed in m/s."""

    @property
    def average_temperature(self) -> float:
        """Representative temperature used for global aggregation."""
        return self.surface_temperature

    @abstractmethod
    def calculate_insolation(self, solar_constant: float, day_of_year: float,
                             time_of_day: float) -> float:
        """Solar energy reaching the surface in W/m²."""

    @abstractmethod
    def update(self, forcing: RegionalForcing, delta_time: float) -> None:
        """Advance the region by delta_time seconds."""

    def get_state(self) -> Dict[str, Any]:
        """Copy of the mutable state, used to roll back a failed update."""
        return copy.deepcopy(self.__dict__)

    def set_state(self, state: Dict[str, Any]) -> None:
        self.__dict__.update(copy.deepcopy(state))

    def is_finite(self) -> bool:
        """True if every numeric state value is a finite number."""
        for value in self.__dict__.values():
            if isinstance(value, float) and not math.isfinite(value):
                return False
        return True


class PoleType(Enum):
    """Hemisphere of a polar region."""

    NORTH = "north"
    SOUTH = "south"


class Pole(RegionalClimateModel):
    """Polar region with a seasonal ice cap.

    Energy balance works on a per-square-metre column: absorbed sunlight
    minus thermal emission plus greenhouse forcing, divided by a column heat
    capacity mixed from ice and regolith.
    """

    ICE_HEAT_CAPACITY = 2.1e6  # J/m³/K
    SOIL_HEAT_CAPACITY = 1.3e6  # J/m³/K
    ICE_THERMAL_DEPTH = 1.0  # m of ice taking part in the daily cycle
    SOIL_THERMAL_DEPTH = 0.5  # m of regolith
    AIR_COLUMN_HEAT_CAPACITY = 2.0e5  # J/m²/K
    ATMOSPHERE_HEAT_TRANSFER = 2.0  # W/m²/K at 1 kPa and no wind
    ATMOSPHERIC_ATTENUATION = 0.7
    DEFAULT_WIND_SPEED = 5.0  # m/s

    SUBLIMATION_CONSTANT = 1e-6  # kg/m²/s/kPa
    CO2_FROST_POINT = 148.0  # K
    ICE_DENSITY = 917.0  # kg/m³
    ICE_THICKNESS = 1000.0  # m
    SOIL_ALBEDO = 0.15
    ICE_ALBEDO = 0.65

    def __init__(
            self,
            pole_type: PoleType,
            latitude: float = 85.0,
            surface_area_km2: float = 500000.0,
            axial_tilt_degrees: float = MARS_OBLIQUITY,
            year_length_sols: float = MARTIAN_YEAR_SOLS,
            emissivity: float = 0.95
    ):
        """Create a polar region.

        Args:
            pole_type: NORTH or SOUTH
            latitude: Distance of the region centre from the equator (degrees)
            surface_area_km2: Surface area of the region (km²)
            axial_tilt_degrees: Planet obliquity (degrees)
            year_length_sols: Orbital period (sols)
            emissivity: Surface emissivity
        """
        super().__init__(f"{pole_type.value}_pole", abs(latitude), surface_area_km2,
                         year_length_sols)
        self.pole_type = pole_type
        self.axial_tilt = axial_tilt_degrees
        self.emissivity = emissivity
        self.ice_cap_area = surface_area_km2 * 0.3
        self._albedo = 0.4  # Mixed ice/soil

        # Mars averages ~210K
        self._surface_temperature = 210.0
        self._ice_temperature = 200.0
        self._atmospheric_temperature = 215.0
        self._wind_speed = self.DEFAULT_WIND_SPEED
        self.last_insolation = 0.0
        self.last_sublimation_rate = 0.0

    # === State ===

    @property
    def surface_temperature(self) -> float:
        return self._surface_temperature

    @surface_temperature.setter
    def surface_temperature(self, value: float) -> None:
        self._surface_temperature = clamp(finite_or(value, self._surface_temperature), 100.0, 350.0)

    @property
    def ice_temperature(self) -> float:
        """Ice cap temperature in Kelvin (never above the melting point)."""
        return self._ice_temperature

    @ice_temperature.setter
    def ice_temperature(self, value: float) -> None:
        self._ice_temperature = clamp(finite_or(value, self._ice_temperature), 100.0, 273.0)

    @property
    def atmospheric_temperature(self) -> float:
        return self._atmospheric_temperature

    @atmospheric_temperature.setter
    def atmospheric_temperature(self, value: float) -> None:
        self._atmospheric_temperature = clamp(
            finite_or(value, self._atmospheric_temperature), 100.0, 350.0
        )

    @property
    def ice_fraction(self) -> float:
        return clamp(self.ice_cap_area / self.surface_area, 0.0, 1.0)

    @property
    def average_temperature(self) -> float:
        """Ice-area weighted mean of ice and surface temperature."""
        ice = self.ice_fraction
        return self._ice_temperature * ice + self._surface_temperature * (1.0 - ice)

    @property
    def albedo(self) -> float:
        return self._albedo

    @property
    def wind_speed(self) -> float:
        return self._wind_speed

    @property
    def humidity(self) -> float:
        """Cold poles sequester water in ice, so humidity stays low."""
        temperature_factor = max(0.0, 1.0 - (self._ice_temperature - 150.0) / 100.0)
        return 0.1 * temperature_factor * (1.0 - self.ice_fraction)

    @property
    def is_ice_stable(self) -> bool:
        return self._ice_temperature < 273.0

    @property
    def has_liquid_water(self) -> bool:
        return self._surface_temperature > WATER_FREEZING_POINT and self.ice_fraction < 0.1

    # === Physics ===

    def calculate_insolation(self, solar_constant: float, day_of_year: float,
                             time_of_day: float = 0.25) -> float:
        """Insolation at the pole for the current season and hour.

        Args:
            solar_constant: Solar irradiance (W/m²)
            day_of_year: Day of the year (sols)
            time_of_day: Fraction of the sol, 0.25 at the insolation peak

        Returns:
            Insolation in W/m² (>= 0)
        """
        season = 2 * math.pi * day_of_year / self.year_length_sols
        declination = self.axial_tilt * math.sin(season)
        if self.pole_type is PoleType.SOUTH:
            declination = -declination

        zenith = math.radians(min(90.0, abs(self.latitude - declination)))
        diurnal = 0.5 + 0.5 * math.sin(2 * math.pi * time_of_day)
        insolation = solar_constant * math.cos(zenith) * diurnal * self.ATMOSPHERIC_ATTENUATION
        return max(0.0, finite_or(insolation, 0.0))

    def calculate_heat_flux(self, atmospheric_pressure: float, wind_speed: float) -> float:
        """Sensible heat flux from surface to air (W/m²).

        Args:
            atmospheric_pressure: Local pressure (kPa)
            wind_speed: Wind speed (m/s)

        Returns:
            Heat flux, positive when the surface warms the air
        """
        difference = self._surface_temperature - self._atmospheric_temperature
        pressure_factor = max(0.1, finite_or(atmospheric_pressure, 0.0))
        wind_factor = 1.0 + max(0.0, wind_speed) * 0.01
        return difference * pressure_factor * wind_factor * self.ATMOSPHERE_HEAT_TRANSFER

    def column_heat_capacity(self) -> float:
        """Area-weighted heat capacity of the surface column (J/m²/K)."""
        ice = self.ice_fraction
        return (
            ice * self.ICE_HEAT_CAPACITY * self.ICE_THERMAL_DEPTH
            + (1.0 - ice) * self.SOIL_HEAT_CAPACITY * self.SOIL_THERMAL_DEPTH
        )

    def update_temperatures(self, insolation: float, atmospheric_pressure: float,
                            greenhouse_warming: float, delta_time: float) -> None:
        """Integrate the surface energy balance.

        Args:
            insolation: Solar insolation (W/m²)
            atmospheric_pressure: Local pressure (kPa)
            greenhouse_warming: Greenhouse warming (K)
            delta_time: Time step (s)
        """
        absorbed = insolation * (1.0 - self._albedo)
        temperature = self.average_temperature
        emitted = self.emissivity * constants.Stefan_Boltzmann * temperature ** 4
        # Linearized forcing that shifts the equilibrium by greenhouse_warming
        greenhouse = 4.0 * self.emissivity * constants.Stefan_Boltzmann * temperature ** 3 * greenhouse_warming
        net_flux = absorbed - emitted + greenhouse

        change = net_flux * delta_time / self.column_heat_capacity()
        self.surface_temperature = self._surface_temperature + change * 0.7  # Soil responds faster
        self.ice_temperature = self._ice_temperature + change * 0.3

        heat_flux = self.calculate_heat_flux(atmospheric_pressure, self._wind_speed)
        air_change = heat_flux * delta_time / self.AIR_COLUMN_HEAT_CAPACITY
        # Air cannot overshoot the surface temperature in one step
        gap = self._surface_temperature - self._atmospheric_temperature
        air_change = math.copysign(min(abs(air_change), abs(gap)), gap)
        self.atmospheric_temperature = self._atmospheric_temperature + air_change

    def calculate_ice_sublimation(self, atmospheric_pressure: float, humidity: float) -> float:
        """Ice sublimation rate.

        Positive above the CO2 frost point (ice turns to gas), negative below
        it (gas deposits as ice). Humid air slows sublimation.

        Args:
            atmospheric_pressure: Local pressure (kPa)
            humidity: Relative humidity (0-1)

        Returns:
            Rate in kg/m²/s
        """
        pressure = max(0.1, finite_or(atmospheric_pressure, 0.0))
        exponent = clamp((self._ice_temperature - self.CO2_FROST_POINT) / 10.0, -50.0, 50.0)
        drive = math.exp(exponent) - 1.0
        if drive > 0:
            drive *= 1.0 - clamp(humidity, 0.0, 1.0)
        return finite_or(self.SUBLIMATION_CONSTANT * pressure * drive, 0.0)

    def update_ice_cap(self, sublimation_rate: float, delta_time: float) -> None:
        """Shrink or grow the ice cap and refresh the albedo.

        Args:
            sublimation_rate: Rate from calculate_ice_sublimation (kg/m²/s)
            delta_time: Time step (s)
        """
        had_ice = self.ice_cap_area > 0
        ice_area_m2 = self.ice_cap_area * 1e6
        mass_change = sublimation_rate * max(ice_area_m2, 1e6) * delta_time
        area_change_km2 = (mass_change / self.ICE_DENSITY) / self.ICE_THICKNESS / 1e6
        self.ice_cap_area = clamp(
            finite_or(self.ice_cap_area - area_change_km2, self.ice_cap_area),
            0.0, self.surface_area
        )
        if had_ice and self.ice_cap_area == 0:
            logger.debug("%s ice cap fully sublimated", self.name)
        elif not had_ice and self.ice_cap_area > 0:
            logger.debug("%s ice cap forming again", self.name)
        ice = self.ice_fraction
        self._albedo = self.SOIL_ALBEDO * (1.0 - ice) + self.ICE_ALBEDO * ice

    def update(self, forcing: RegionalForcing, delta_time: float) -> None:
        """Advance the pole by one step."""
        insolation = self.calculate_insolation(
            forcing.solar_constant, forcing.day_of_year, forcing.time_of_day
        )
        self.last_insolation = insolation
        self.update_temperatures(insolation, forcing.total_pressure,
                                 forcing.greenhouse_warming, delta_time)
        rate = self.calculate_ice_sublimation(forcing.total_pressure, self.humidity)
        self.last_sublimation_rate = rate
        self.update_ice_cap(rate, delta_time)

    def __str__(self) -> str:
        return (
            f"{self.pole_type.value.capitalize()} Pole: "
            f"T_surf={self._surface_temperature:.1f}K, T_ice={self._ice_temperature:.1f}K, "
            f"T_atm={self._atmospheric_temperature:.1f}K, "
            f"Ice={self.ice_cap_area:.0f}km² ({self.ice_fraction:.1%}), Albedo={self._albedo:.2f}"
        )


class EquatorialRegion(RegionalClimateModel):
    """Equatorial band with humidity, convection and latent heat."""

    HEAT_CAPACITY = 1.5e6  # J/m²/K for the active surface layer
    LATENT_HEAT = 2.26e6  # J/kg (water vaporization)
    CONVECTION_COEFFICIENT = 2.0  # W/m²/K
    EVAPORATION_COEFFICIENT = 0.001  # m/s
    ATMOSPHERIC_ATTENUATION = 0.85
    ALBEDO = 0.2
    HUMIDITY_TIME_CONSTANT = 3600.0  # s
    ATMOSPHERIC_COUPLING = 0.1

    def __init__(
            self,
            latitude: float = 0.0,
            surface_area_km2: float = 2000000.0,
            year_length_sols: float = MARTIAN_YEAR_SOLS,
            emissivity: float = 0.95
    ):
        """Create the equatorial region.

        Args:
            latitude: Latitude of the band centre (degrees)
            surface_area_km2: Surface area of the band (km²)
            year_length_sols: Orbital period (sols)
            emissivity: Surface emissivity
        """
        super().__init__("equator", latitude, surface_area_km2, year_length_sols)
        self.emissivity = emissivity
        self._surface_temperature = 300.0
        self._atmospheric_temperature = 295.0
        self._relative_humidity = 0.7
        self._absolute_humidity = 0.015  # kg/m³
        self._dew_point = 293.0
        self._convection_strength = 0.8
        self._wind_speed = 3.0
        self.last_insolation = 0.0

    # === State ===

    @property
    def surface_temperature(self) -> float:
        return self._surface_temperature

    @property
    def atmospheric_temperature(self) -> float:
        return self._atmospheric_temperature

    @property
    def humidity(self) -> float:
        return self._relative_humidity

    @property
    def relative_humidity(self) -> float:
        return self._relative_humidity

    @property
    def absolute_humidity(self) -> float:
        """Absolute humidity in kg/m³."""
        return self._absolute_humidity

    @property
    def dew_point(self) -> float:
        """Dew point in Kelvin."""
        return self._dew_point

    @property
    def convection_strength(self) -> float:
        return self._convection_strength

    @property
    def albedo(self) -> float:
        return self.ALBEDO

    @property
    def wind_speed(self) -> float:
        return self._wind_speed

    # === Physics ===

    def calculate_insolation(self, solar_constant: float, day_of_year: float,
                             time_of_day: float) -> float:
        """Insolation with a weak seasonal and a strong diurnal cycle.

        Args:
            solar_constant: Solar irradiance (W/m²)
            day_of_year: Day of the year (sols)
            time_of_day: Fraction of the sol (0-1)

        Returns:
            Insolation in W/m²
        """
        seasonal = 1.0 - 0.1 * math.cos(2 * math.pi * day_of_year / self.year_length_sols)
        diurnal = 0.5 + 0.5 * math.sin(2 * math.pi * time_of_day)
        insolation = solar_constant * seasonal * diurnal * self.ATMOSPHERIC_ATTENUATION
        return max(0.0, finite_or(insolation, 0.0))

    @staticmethod
    def calculate_saturation_humidity(temperature: float) -> float:
        """Saturation humidity (kg/m³) from the Clausius-Clapeyron relation."""
        reference_temperature = 273.15
        reference_humidity = 0.0048
        latent_heat = 2.5e6  # J/kg
        vapour_gas_constant = 461.0  # J/kg/K
        temperature = max(1.0, temperature)
        exponent = (latent_heat / vapour_gas_constant) * (
            1.0 / reference_temperature - 1.0 / temperature
        )
        return reference_humidity * math.exp(clamp(exponent, -50.0, 50.0))

    def calculate_latent_heat_flux(self) -> float:
        """Evaporative heat loss of the surface (W/m², >= 0)."""
        saturation = self.calculate_saturation_humidity(self._surface_temperature)
        deficit = saturation - self._absolute_humidity
        evaporation = max(0.0, deficit * self.EVAPORATION_COEFFICIENT)  # kg/m²/s
        return evaporation * self.LATENT_HEAT

    def calculate_convective_flux(self) -> float:
        """Heat exchanged with the air by convection (W/m², positive warms the surface)."""
        return (
            self._convection_strength
            * (self._atmospheric_temperature - self._surface_temperature)
            * self.CONVECTION_COEFFICIENT
        )

    def update_temperatures(self, insolation: float, greenhouse_warming: float,
                            delta_time: float) -> None:
        """Integrate the equatorial heat balance.

        Args:
            insolation: Solar insolation (W/m²)
            greenhouse_warming: Greenhouse warming (K)
            delta_time: Time step (s)
        """
        temperature = self._surface_temperature
        absorbed = insolation * (1.0 - self.ALBEDO)
        emitted = self.emissivity * constants.Stefan_Boltzmann * temperature ** 4
        greenhouse = 4.0 * self.emissivity * constants.Stefan_Boltzmann * temperature ** 3 * greenhouse_warming
        net = (
            absorbed - emitted + greenhouse
            + self.calculate_convective_flux()
            - self.calculate_latent_heat_flux()
        )

        change = net * delta_time / self.HEAT_CAPACITY
        self._surface_temperature = clamp(finite_or(temperature + change, temperature), 250.0, 350.0)
        self._atmospheric_temperature = clamp(
            finite_or(self._atmospheric_temperature + change * self.ATMOSPHERIC_COUPLING,
                      self._atmospheric_temperature),
            240.0, 340.0
        )

    def update_humidity(self, co2_pressure: float, delta_time: float) -> None:
        """Relax humidity toward a CO2-suppressed saturation target.

        Args:
            co2_pressure: CO2 partial pressure (kPa)
            delta_time: Time step (s)
        """
        saturation = self.calculate_saturation_humidity(self._surface_temperature)
        target = max(0.0, saturation * (1.0 - max(0.0, co2_pressure) * 0.1))
        approach = 1.0 - math.exp(-max(0.0, delta_time) / self.HUMIDITY_TIME_CONSTANT)
        self._absolute_humidity = max(
            0.0, finite_or(self._absolute_humidity + (target - self._absolute_humidity) * approach,
                           self._absolute_humidity)
        )
        if saturation > 0:
            self._relative_humidity = clamp(self._absolute_humidity / saturation, 0.0, 1.0)
        self._dew_point = self.calculate_dew_point(self._absolute_humidity)

    def calculate_dew_point(self, absolute_humidity: float) -> float:
        """Dew point in Kelvin (Magnus approximation)."""
        if absolute_humidity <= 0:
            return self._dew_point
        a, b = 17.27, 237.7
        alpha = math.log(absolute_humidity / 0.0048)
        if alpha >= a:
            return self._dew_point
        return finite_or(b * alpha / (a - alpha) + 273.15, self._dew_point)

    def update(self, forcing: RegionalForcing, delta_time: float) -> None:
        """Advance the equatorial band by one step."""
        insolation = self.calculate_insolation(
            forcing.solar_constant, forcing.day_of_year, forcing.time_of_day
        )
        self.last_insolation = insolation
        self.update_temperatures(insolation, forcing.greenhouse_warming, delta_time)
        self.update_humidity(forcing.co2_pressure, delta_time)

    def __str__(self) -> str:
        return (
            f"Equator: T_surf={self._surface_temperature:.1f}K, "
            f"T_atm={self._atmospheric_temperature:.1f}K, RH={self._relative_humidity:.0%}, "
            f"Dew={self._dew_point:.1f}K"
        )


# === Aggregated regional data ===

def area_weighted_mean(regions: Sequence[RegionalClimateModel], value_of,
                       fallback: float = 0.0) -> float:
    """Σ(value·area) / Σ(area) over regions, fallback when the total area is zero."""
    total_area = sum(r.surface_area for r in regions)
    if total_area <= 0:
        return fallback
    weighted = sum(value_of(r) * r.surface_area for r in regions)
    return finite_or(weighted / total_area, fallback)


@dataclass
class GlobalClimateAverages:
    """Area-weighted global values derived from the regional models."""

    surface_temperature: float = 273.15
    atmospheric_temperature: float = 268.15
    ice_temperature: float = 263.15
    average_albedo: float = 0.3
    total_ice_area: float = 0.0
    total_surface_area: float = 0.0
    average_humidity: float = 0.5
    average_wind_speed: float = 2.0


@dataclass
class ClimateRegionData:
    """All regional models plus their global aggregates."""

    north_pole: Optional[Pole]
    south_pole: Optional[Pole]
    equatorial_region: Optional[EquatorialRegion]
    regions: List[RegionalClimateModel] = field(default_factory=list)
    global_averages: GlobalClimateAverages = field(default_factory=GlobalClimateAverages)

    @classmethod
    def from_regions(cls, regions: Sequence[RegionalClimateModel]) -> "ClimateRegionData":
        """Collect the regions and compute their global averages."""
        poles = [r for r in regions if isinstance(r, Pole)]
        north = next((p for p in poles if p.pole_type is PoleType.NORTH), None)
        south = next((p for p in poles if p.pole_type is PoleType.SOUTH), None)
        equator = next((r for r in regions if isinstance(r, EquatorialRegion)), None)

        averages = GlobalClimateAverages()
        if regions:
            averages.surface_temperature = area_weighted_mean(
                regions, lambda r: r.surface_temperature, averages.surface_temperature)
            averages.atmospheric_temperature = area_weighted_mean(
                regions, lambda r: r.atmospheric_temperature, averages.atmospheric_temperature)
            averages.average_albedo = area_weighted_mean(
                regions, lambda r: r.albedo, averages.average_albedo)
            averages.average_humidity = area_weighted_mean(
                regions, lambda r: r.humidity, averages.average_humidity)
            averages.average_wind_speed = area_weighted_mean(
                regions, lambda r: r.wind_speed, averages.average_wind_speed)
            averages.total_surface_area = sum(r.surface_area for r in regions)
        if poles:
            averages.ice_temperature = sum(p.ice_temperature for p in poles) / len(poles)
            averages.total_ice_area = sum(p.ice_cap_area for p in poles)

        return cls(north, south, equator, list(regions), averages)
