"""Habitability scoring of an atmosphere for human life.

Scores oxygen, pressure, temperature and CO2 toxicity on a 0-100 scale and
combines them into a single weighted score, mapped onto a terraforming phase.
"""

from enum import Enum
from typing import Dict, Optional

from ..utils import clamp, finite_or
from .composition import AtmosphericComposition

EARTH_PRESSURE = 101.325  # kPa
LIQUID_WATER_PRESSURE = 0.063 * EARTH_PRESSURE  # kPa
O2_MIN_BREATHABLE = 16.0  # kPa
O2_EARTH_LEVEL = 21.0  # kPa

OPTIMAL_TEMPERATURE_MIN = 288.15  # K
OPTIMAL_TEMPERATURE_MAX = 298.15  # K

WEIGHTS = {
    "oxygen": 0.35,
    "pressure": 0.25,
    "temperature": 0.25,
    "toxicity": 0.15,
}


class TerraformingPhase(Enum):
    """Stage of terraforming reached for a given habitability score."""

    EARLY_STAGE = "Early Stage - Basic infrastructure development"
    FOUNDATION = "Foundation Phase - Atmospheric thickening in progress"
    DEVELOPMENT = "Development Phase - Significant atmospheric changes"
    ADVANCED = "Advanced Phase - Approaching habitable conditions"
    FINAL = "Final Phase - Fine-tuning for Earth-like conditions"
    COMPLETE = "Complete - Fully terraformed environment achieved"

    @classmethod
    def from_score(cls, score: float) -> "TerraformingPhase":
        score = finite_or(score, 0.0)
        if score < 10:
            return cls.EARLY_STAGE
        if score < 30:
            return cls.FOUNDATION
        if score < 50:
            return cls.DEVELOPMENT
        if score < 75:
            return cls.ADVANCED
        if score < 90:
            return cls.FINAL
        return cls.COMPLETE


class HabitabilityAnalyzer:
    """Weighted habitability score of a composition at a given temperature."""

    def oxygen_score(self, o2_pressure: float) -> float:
        """Score O2 partial pressure against human needs (16 kPa minimum, 21 kPa optimal)."""
        o2_pressure = max(0.0, finite_or(o2_pressure, 0.0))
        if o2_pressure <= 0:
            return 0.0
        if o2_pressure < O2_MIN_BREATHABLE:
            return o2_pressure / O2_MIN_BREATHABLE * 50.0
        if o2_pressure <= O2_EARTH_LEVEL:
            ratio = (o2_pressure - O2_MIN_BREATHABLE) / (O2_EARTH_LEVEL - O2_MIN_BREATHABLE)
            return 50.0 + ratio * 50.0
        # Oxygen toxicity above Earth level
        penalty = min((o2_pressure - O2_EARTH_LEVEL) * 2.0, 50.0)
        return max(50.0, 100.0 - penalty)

    def pressure_score(self, total_pressure: float) -> float:
        """Score total pressure; liquid water needs ~6.4 kPa, Earth is 101.325 kPa."""
        total_pressure = max(0.0, finite_or(total_pressure, 0.0))
        if total_pressure < LIQUID_WATER_PRESSURE:
            return total_pressure / LIQUID_WATER_PRESSURE * 30.0
        if total_pressure < EARTH_PRESSURE * 0.5:
            return 30.0 + total_pressure / (EARTH_PRESSURE * 0.5) * 50.0
        if total_pressure <= EARTH_PRESSURE * 1.5:
            return 80.0 + (1.0 - abs(total_pressure - EARTH_PRESSURE) / EARTH_PRESSURE) * 20.0
        excess = total_pressure - EARTH_PRESSURE * 1.5
        return max(20.0, 80.0 - min(excess, 60.0))

    def temperature_score(self, temperature: float) -> float:
        """Score temperature; 15-25 °C is optimal."""
        temperature = finite_or(temperature, 0.0)
        if OPTIMAL_TEMPERATURE_MIN <= temperature <= OPTIMAL_TEMPERATURE_MAX:
            return 100.0
        if 273.15 <= temperature <= 323.15:
            if temperature < OPTIMAL_TEMPERATURE_MIN:
                offset = OPTIMAL_TEMPERATURE_MIN - temperature
                return 70.0 + (1.0 - offset / (OPTIMAL_TEMPERATURE_MIN - 273.15)) * 30.0
            offset = temperature - OPTIMAL_TEMPERATURE_MAX
            return 70.0 + (1.0 - offset / (323.15 - OPTIMAL_TEMPERATURE_MAX)) * 30.0
        if 253.15 <= temperature <= 353.15:
            distance = min(abs(temperature - OPTIMAL_TEMPERATURE_MIN),
                           abs(temperature - OPTIMAL_TEMPERATURE_MAX))
            return max(20.0, 70.0 - distance / 80.0 * 50.0)
        return max(0.0, 20.0 - abs(temperature - 273.15) / 10.0)

    def toxicity_score(self, co2_pressure: float) -> float:
        """Score CO2 partial pressure, 100 meaning no toxicity."""
        co2_pressure = max(0.0, finite_or(co2_pressure, 0.0))
        if co2_pressure <= 0.5:
            return 100.0
        if co2_pressure <= 4.0:
            return 100.0 - (co2_pressure - 0.5) / 3.5 * 30.0
        if co2_pressure <= 7.0:
            return 70.0 - (co2_pressure - 4.0) / 3.0 * 50.0
        return max(0.0, 20.0 - min((co2_pressure - 7.0) * 5.0, 20.0))

    def breakdown(self, composition: Optional[AtmosphericComposition],
                  temperature: float) -> Dict[str, float]:
        """Individual factor scores (0-100).

        Args:
            composition: Atmosphere to evaluate
            temperature: Surface temperature in Kelvin

        Returns:
            Scores keyed by oxygen, pressure, temperature and toxicity
        """
        if composition is None:
            return {factor: 0.0 for factor in WEIGHTS}
        return {
            "oxygen": self.oxygen_score(composition["O2"]),
            "pressure": self.pressure_score(composition.total_pressure),
            "temperature": self.temperature_score(temperature),
            "toxicity": self.toxicity_score(composition["CO2"]),
        }

    def score(self, composition: Optional[AtmosphericComposition], temperature: float) -> float:
        """Weighted habitability score (0-100)."""
        factors = self.breakdown(composition, temperature)
        total = sum(factors[name] * weight for name, weight in WEIGHTS.items())
        return clamp(total, 0.0, 100.0)

    def phase(self, composition: Optional[AtmosphericComposition],
              temperature: float) -> TerraformingPhase:
        return TerraformingPhase.from_score(self.score(composition, temperature))

    def assessment(self, composition: Optional[AtmosphericComposition],
                   temperature: float) -> str:
        """Human readable rating with the factors holding the score back."""
        score = self.score(composition, temperature)
        factors = self.breakdown(composition, temperature)

        if score >= 90:
            rating = "Excellent - Earth-like conditions"
        elif score >= 75:
            rating = "Good - Habitable with minimal protection"
        elif score >= 50:
            rating = "Moderate - Requires life support systems"
        elif score >= 25:
            rating = "Poor - Survival possible with heavy protection"
        else:
            rating = "Hostile - Unsurvivable without full environmental suits"

        issue_names = {
            "oxygen": "insufficient oxygen",
            "pressure": "low pressure",
            "temperature": "extreme temperature",
            "toxicity": "atmospheric toxicity",
        }
        issues = [issue_names[name] for name in WEIGHTS if factors[name] < 50]
        text = f"{rating} - Score: {score:.1f}%"
        if issues:
            text += f" (Issues: {', '.join(issues)})"
        return text
