"""Temperature equilibrium model.

Balances solar input against blackbody emission and adds greenhouse warming.
Applied temperatures approach the equilibrium gradually through a thermal
inertia term instead of jumping to it.
"""

import logging
from typing import Optional

from scipy import constants

from ..utils import clamp, finite_or
from .config import ClimateConfig

logger = logging.getLogger(__name__)


class TemperatureModel:
    """Stefan-Boltzmann equilibrium temperature with thermal inertia."""

    def __init__(self, config: Optional[ClimateConfig] = None):
        self.config = config or ClimateConfig.default()

    def baseline_temperature(self) -> float:
        """Equilibrium temperature without greenhouse gases.

        T = (S / 4σ)^0.25, the factor of 4 spreading the intercepted
        sunlight over the whole sphere.

        Returns:
            Temperature in Kelvin
        """
        effective_solar = self.config.solar_constant / 4.0
        return (effective_solar / constants.Stefan_Boltzmann) ** 0.25

    def equilibrium_temperature(self, greenhouse_warming: float) -> float:
        """Baseline plus greenhouse warming, clamped to the physical range.

        Args:
            greenhouse_warming: Greenhouse warming in Kelvin

        Returns:
            Temperature in Kelvin within [min_temperature, max_temperature]
        """
        greenhouse_warming = finite_or(greenhouse_warming, 0.0)
        equilibrium = self.baseline_temperature() + greenhouse_warming
        equilibrium = clamp(equilibrium, self.config.min_temperature, self.config.max_temperature)
        logger.debug("Equilibrium temperature %.1fK (+%.1fK greenhouse)",
                     equilibrium, greenhouse_warming)
        return equilibrium

    def apply_thermal_inertia(self, current: float, target: float, delta_time: float) -> float:
        """Move current toward target at a rate limited by thermal inertia.

        The step is |target - current| * inertia * (dt / time_constant) and
        never overshoots the target.

        Args:
            current: Current temperature (K)
            target: Equilibrium temperature (K)
            delta_time: Elapsed time in seconds

        Returns:
            New temperature in Kelvin
        """
        current = finite_or(current, target)
        target = finite_or(target, current)
        delta_time = max(0.0, finite_or(delta_time, 0.0))

        gap = target - current
        max_change = abs(gap) * self.config.thermal_inertia * (
            delta_time / self.config.thermal_time_constant
        )
        change = min(max_change, abs(gap))
        result = current + (change if gap > 0 else -change)
        return finite_or(result, current)

    def radiative_cooling(self, temperature: float) -> float:
        """Thermal emission εσT⁴ in W/m²."""
        temperature = max(0.0, finite_or(temperature, 0.0))
        return finite_or(
            self.config.emissivity * constants.Stefan_Boltzmann * temperature ** 4, 0.0
        )
