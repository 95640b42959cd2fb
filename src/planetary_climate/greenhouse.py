"""Greenhouse warming model.

Computes the temperature increase produced by CO2, water vapour and other
greenhouse gases. CO2 follows a logarithmic response, water vapour and other
gases a linear one. Totals are clamped to the configured maximum so a large
gas injection cannot make the simulation diverge.
"""

import logging
import math
from typing import Optional

from scipy import constants

from ..utils import clamp, finite_or
from .composition import AtmosphericComposition
from .config import ClimateConfig
from .gases import GasRegistry

logger = logging.getLogger(__name__)

# Symbols handled by dedicated terms rather than by registry factors
_DEDICATED_SYMBOLS = ("CO2", "H2O", "GHG")


class GreenhouseModel:
    """Greenhouse warming from atmospheric partial pressures."""

    def __init__(
            self,
            config: Optional[ClimateConfig] = None,
            registry: Optional[GasRegistry] = None
    ):
        self.config = config or ClimateConfig.default()
        self.registry = registry if registry is not None else GasRegistry(self.config)

    # === Individual terms ===

    def co2_warming(self, co2_pressure: float) -> float:
        """CO2 warming relative to the baseline pressure.

        ΔT = efficiency * 5.35 * ln(P / P_baseline). Pressures at or below
        the baseline give no warming; there is no cooling term.

        Args:
            co2_pressure: CO2 partial pressure (kPa)

        Returns:
            Warming in Kelvin (>= 0)
        """
        baseline = self.config.co2_baseline_pressure
        co2_pressure = finite_or(co2_pressure, 0.0)
        if baseline <= 0 or co2_pressure <= baseline:
            return 0.0
        warming = (
            self.config.co2_greenhouse_efficiency
            * self.config.co2_forcing_coefficient
            * math.log(co2_pressure / baseline)
        )
        return max(0.0, finite_or(warming, 0.0))

    def co2_column_warming(self, co2_pressure: float) -> float:
        """CO2 warming of the whole atmospheric column.

        ΔT = efficiency * scale * ln(1 + P * k), used by the regional step.

        Args:
            co2_pressure: CO2 partial pressure (kPa)

        Returns:
            Warming in Kelvin (>= 0)
        """
        co2_pressure = max(0.0, finite_or(co2_pressure, 0.0))
        warming = (
            self.config.co2_greenhouse_efficiency
            * self.config.co2_log_scale
            * math.log1p(co2_pressure * self.config.co2_log_pressure_factor)
        )
        return max(0.0, finite_or(warming, 0.0))

    def h2o_warming(self, h2o_pressure: float) -> float:
        """Water vapour warming, efficiency * P * factor (K)."""
        h2o_pressure = max(0.0, finite_or(h2o_pressure, 0.0))
        warming = (
            self.config.h2o_greenhouse_efficiency
            * h2o_pressure
            * self.config.h2o_warming_factor
        )
        return max(0.0, finite_or(warming, 0.0))

    def other_ghg_warming(self, ghg_pressure: float) -> float:
        """Warming from lumped other greenhouse gases, P * factor (K)."""
        ghg_pressure = max(0.0, finite_or(ghg_pressure, 0.0))
        return max(0.0, finite_or(ghg_pressure * self.config.ghg_warming_factor, 0.0))

    def registered_gas_warming(self, composition: AtmosphericComposition) -> float:
        """Linear warming from registered gases that carry a greenhouse factor."""
        total = 0.0
        for info in self.registry.greenhouse_gases():
            if info.symbol in _DEDICATED_SYMBOLS:
                continue
            total += max(0.0, composition[info.symbol]) * info.greenhouse_factor
        return max(0.0, finite_or(total, 0.0))

    def _limit(self, warming: float) -> float:
        return clamp(finite_or(warming, 0.0), 0.0, self.config.max_greenhouse_warming)

    # === Totals ===

    def calculate_greenhouse_warming(self, composition: Optional[AtmosphericComposition]) -> float:
        """Total warming for a composition using the baseline-relative CO2 term.

        Args:
            composition: Gas composition to evaluate

        Returns:
            Warming in Kelvin, within [0, max_greenhouse_warming]
        """
        if composition is None:
            logger.warning("Cannot calculate greenhouse effect without a composition")
            return 0.0

        co2 = self.co2_warming(composition["CO2"])
        h2o = self.h2o_warming(composition["H2O"])
        other = self.other_ghg_warming(composition["GHG"]) + self.registered_gas_warming(composition)

        total = self._limit(co2 + h2o + other)
        logger.debug("Greenhouse: CO2=%.1fK, H2O=%.1fK, other=%.1fK, total=%.1fK",
                     co2, h2o, other, total)
        return total

    def calculate_regional_warming(
            self,
            co2_pressure: float,
            h2o_pressure: float,
            ghg_pressure: float,
            extra_warming: float = 0.0
    ) -> float:
        """Total warming driving the regional models in one step.

        Args:
            co2_pressure: CO2 partial pressure (kPa)
            h2o_pressure: Water vapour partial pressure (kPa)
            ghg_pressure: Other greenhouse gas partial pressure (kPa)
            extra_warming: Additional warming from registered gases (K)

        Returns:
            Warming in Kelvin, within [0, max_greenhouse_warming]
        """
        total = (
            self.co2_column_warming(co2_pressure)
            + self.h2o_warming(h2o_pressure)
            + self.other_ghg_warming(ghg_pressure)
            + max(0.0, finite_or(extra_warming, 0.0))
        )
        return self._limit(total)

    def calculate_radiative_forcing(
            self,
            composition: Optional[AtmosphericComposition],
            temperature: float
    ) -> float:
        """Radiative forcing equivalent of the greenhouse warming (W/m²).

        Uses the linearized Stefan-Boltzmann law, F = 4σT³ΔT.

        Args:
            composition: Gas composition to evaluate
            temperature: Reference temperature (K)

        Returns:
            Forcing in W/m² (>= 0)
        """
        if composition is None:
            return 0.0
        temperature = max(0.0, finite_or(temperature, 0.0))
        warming = self.calculate_greenhouse_warming(composition)
        forcing = 4.0 * constants.Stefan_Boltzmann * temperature ** 3 * warming
        return max(0.0, finite_or(forcing, 0.0))
