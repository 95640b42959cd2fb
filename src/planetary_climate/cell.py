"""A single cell of the atmosphere grid."""

import logging
from typing import Any, Dict, Optional

from ..utils import finite_or
from .composition import AtmosphericComposition
from .coordinates import CellCoordinate

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 288.15  # K


class AtmosphereCell:
    """Air column over one latitude/longitude cell.

    The cell owns its composition and temperature. Its total pressure is the
    sum of the composition's partial pressures, so writing gas amounts through
    the cell keeps both consistent. Deactivating a cell only removes it from
    per-step simulation and active aggregates; its state is kept.
    """

    def __init__(
            self,
            coordinate: CellCoordinate,
            composition: Optional[AtmosphericComposition] = None,
            temperature: float = DEFAULT_TEMPERATURE
    ):
        """Create a cell.

        Args:
            coordinate: Fixed grid coordinate of the cell
            composition: Initial gas composition (empty if omitted)
            temperature: Initial temperature in Kelvin
        """
        self._coordinate = CellCoordinate(*coordinate)
        self.composition = composition if composition is not None else AtmosphericComposition()
        self._temperature = finite_or(temperature, DEFAULT_TEMPERATURE)
        self._is_active = False

    @property
    def coordinate(self) -> CellCoordinate:
        """Grid coordinate, fixed at creation."""
        return self._coordinate

    @property
    def is_active(self) -> bool:
        return self._is_active

    def activate(self) -> None:
        self._is_active = True

    def deactivate(self) -> None:
        self._is_active = False

    @property
    def temperature(self) -> float:
        """Air temperature in Kelvin."""
        return self._temperature

    @temperature.setter
    def temperature(self, value: float) -> None:
        # Keep the last valid value if a computation produced NaN/inf
        self._temperature = finite_or(value, self._temperature)

    @property
    def total_pressure(self) -> float:
        """Total pressure in kPa."""
        return self.composition.total_pressure

    @total_pressure.setter
    def total_pressure(self, value: float) -> None:
        """Rescale every partial pressure so that they sum to value."""
        value = finite_or(value, self.total_pressure)
        current = self.total_pressure
        if current <= 0:
            logger.debug("Cell %s has no gas to rescale to %.3f kPa", self._coordinate, value)
            return
        self.composition.scale(max(0.0, value) / current)

    def get_partial_pressure(self, symbol: str) -> float:
        """Partial pressure of a gas in kPa, zero if the gas is absent."""
        return self.composition[symbol]

    def set_partial_pressure(self, symbol: str, value: float) -> float:
        """Set the partial pressure of a gas, returning the stored value."""
        return self.composition.set(symbol, value)

    def add_gas_pressure(self, symbol: str, delta: float) -> float:
        """Change the partial pressure of a gas by delta kPa (never below zero)."""
        return self.composition.adjust(symbol, delta)

    def to_dict(self) -> Dict[str, Any]:
        """Plain representation of the cell state."""
        return {
            "lat_index": self._coordinate.lat_index,
            "lon_index": self._coordinate.lon_index,
            "temperature": self._temperature,
            "pressure": self.total_pressure,
            "is_active": self._is_active,
            "composition": self.composition.as_dict(),
        }

    def __repr__(self) -> str:
        state = "active" if self._is_active else "inactive"
        return (
            f"AtmosphereCell({self._coordinate}, T={self._temperature:.1f}K, "
            f"P={self.total_pressure:.3f}kPa, {state})"
        )
