"""Atmospheric pressure dynamics.

Pressure changes are driven by gas additions coming from outside the core
(buildings, weather events). The model converts an added mass into a pressure
change with the ideal gas law spread over a surface and the gas's scale
height. Autonomous drift is zero unless atmospheric escape or the seasonal
CO2 cycle is enabled in the configuration.
"""

import logging
import math
from typing import Dict, Optional

from scipy import constants

from ..utils import finite_or
from .composition import AtmosphericComposition
from .config import ClimateConfig
from .gases import GasRegistry

logger = logging.getLogger(__name__)

# Mostly CO2 for Mars (g/mol)
DEFAULT_COLUMN_MOLAR_MASS = 44.0


class PressureModel:
    """Ideal-gas pressure response and barometric profile."""

    def __init__(
            self,
            config: Optional[ClimateConfig] = None,
            registry: Optional[GasRegistry] = None
    ):
        self.config = config or ClimateConfig.default()
        self.registry = registry if registry is not None else GasRegistry(self.config)

    @property
    def planet_surface_area(self) -> float:
        """Planet surface area in m²."""
        return self.config.planet_surface_area_m2

    def scale_height(self, temperature: float, molar_mass: float) -> float:
        """Atmospheric scale height H = RT / (Mg).

        Args:
            temperature: Temperature in Kelvin
            molar_mass: Molar mass in g/mol

        Returns:
            Scale height in metres (0.0 for non-physical inputs)
        """
        temperature = finite_or(temperature, 0.0)
        molar_mass = finite_or(molar_mass, 0.0)
        if temperature <= 0 or molar_mass <= 0:
            return 0.0
        height = (constants.R * temperature) / (molar_mass * 0.001 * self.config.surface_gravity)
        return finite_or(height, 0.0)

    def pressure_delta(
            self,
            gas_symbol: str,
            mass_kg: float,
            temperature: float,
            surface_area_m2: Optional[float] = None
    ) -> float:
        """Pressure change produced by adding a mass of gas.

        ΔP = nRT / (A·H), with n the number of moles and H the gas's scale
        height at the given temperature.

        Args:
            gas_symbol: Symbol of the added gas
            mass_kg: Added mass in kg
            temperature: Air temperature in Kelvin
            surface_area_m2: Surface the gas spreads over, planet surface by default

        Returns:
            Pressure change in kPa (0.0 for non-positive mass or bad inputs)
        """
        mass_kg = finite_or(mass_kg, 0.0)
        if mass_kg <= 0:
            return 0.0

        area = self.planet_surface_area if surface_area_m2 is None else finite_or(surface_area_m2, 0.0)
        if area <= 0:
            logger.debug("Cannot spread %s over non-positive area %s", gas_symbol, surface_area_m2)
            return 0.0

        molar_mass = self.registry.molar_mass(gas_symbol)
        height = self.scale_height(temperature, molar_mass)
        if height <= 0:
            logger.debug("Non-physical scale height for %s at T=%s", gas_symbol, temperature)
            return 0.0

        moles = mass_kg * 1000.0 / molar_mass
        delta_pa = (moles * constants.R * temperature) / (area * height)
        delta_kpa = finite_or(delta_pa / 1000.0, 0.0)
        logger.debug("Adding %.3gkg %s: +%.6fkPa", mass_kg, gas_symbol, delta_kpa)
        return delta_kpa

    def pressure_after_gas_addition(
            self,
            total_pressure: float,
            gas_symbol: str,
            mass_kg: float,
            temperature: float,
            surface_area_m2: Optional[float] = None
    ) -> float:
        """Total pressure after adding a mass of gas.

        Args:
            total_pressure: Current total pressure (kPa)
            gas_symbol: Symbol of the added gas
            mass_kg: Added mass in kg
            temperature: Air temperature in Kelvin
            surface_area_m2: Surface the gas spreads over, planet surface by default

        Returns:
            New total pressure in kPa
        """
        total_pressure = max(0.0, finite_or(total_pressure, 0.0))
        return total_pressure + self.pressure_delta(gas_symbol, mass_kg, temperature, surface_area_m2)

    def pressure_at_altitude(
            self,
            surface_pressure: float,
            temperature: float,
            altitude_km: float,
            molar_mass: float = DEFAULT_COLUMN_MOLAR_MASS
    ) -> float:
        """Barometric formula P(h) = P0 * exp(-h / H).

        Args:
            surface_pressure: Pressure at altitude zero (kPa)
            temperature: Air temperature in Kelvin
            altitude_km: Altitude above the reference surface (km)
            molar_mass: Mean molar mass of the air (g/mol)

        Returns:
            Pressure in kPa
        """
        surface_pressure = max(0.0, finite_or(surface_pressure, 0.0))
        altitude_km = finite_or(altitude_km, 0.0)
        if altitude_km == 0:
            return surface_pressure

        height_km = self.scale_height(temperature, molar_mass) / 1000.0
        if height_km <= 0:
            return 0.0 if altitude_km > 0 else surface_pressure
        return finite_or(surface_pressure * math.exp(-altitude_km / height_km), surface_pressure)

    def calculate_pressure_change(
            self,
            composition: Optional[AtmosphericComposition],
            delta_time: float,
            day_of_year: float = 0.0
    ) -> Dict[str, float]:
        """Autonomous partial pressure drift over delta_time.

        Zero for every gas unless a drift term is enabled: atmospheric escape
        removes a fixed fraction of each gas per sol, and the seasonal CO2
        cycle moves CO2 between the polar caps and the air.

        Args:
            composition: Composition the drift applies to
            delta_time: Elapsed time in seconds
            day_of_year: Current day of the year in sols

        Returns:
            Partial pressure change per gas symbol (kPa)
        """
        if composition is None:
            logger.warning("Cannot calculate pressure change without a composition")
            return {}

        changes = {symbol: 0.0 for symbol in composition}
        delta_time = max(0.0, finite_or(delta_time, 0.0))
        sols = delta_time / self.config.sol_seconds

        escape_rate = self.config.atmospheric_escape_rate
        if escape_rate > 0 and sols > 0:
            # Exponential loss keeps large steps from driving pressures negative
            kept = math.exp(-escape_rate * sols)
            for symbol, pressure in composition.items():
                changes[symbol] -= pressure * (1.0 - kept)

        amplitude = self.config.seasonal_co2_amplitude
        if amplitude > 0 and sols > 0 and composition["CO2"] > 0:
            year = self.config.year_length_sols
            before = math.sin(2 * math.pi * day_of_year / year)
            after = math.sin(2 * math.pi * (day_of_year + sols) / year)
            baseline = composition["CO2"] / (1.0 + amplitude * before)
            changes["CO2"] = changes.get("CO2", 0.0) + baseline * amplitude * (after - before)

        return {symbol: finite_or(change, 0.0) for symbol, change in changes.items()}
