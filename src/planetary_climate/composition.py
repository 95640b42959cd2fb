"""Atmospheric composition: partial pressures keyed by gas symbol."""

import logging
import math
from typing import Callable, Dict, Iterator, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


class AtmosphericComposition:
    """Partial pressures (kPa) of the gases in one body of air.

    Unknown symbols read as zero, so gases registered at runtime never break
    existing compositions. Values are kept non-negative: negative writes are
    clamped to zero and non-finite writes are ignored.

    The total pressure is the sum of all partial pressures unless a
    ``total_pressure_source`` callable is given, in which case the total is
    driven externally (for example by a host application).
    """

    def __init__(
            self,
            partial_pressures: Optional[Mapping[str, float]] = None,
            total_pressure_source: Optional[Callable[[], float]] = None
    ):
        """Create a composition.

        Args:
            partial_pressures: Initial partial pressures by gas symbol (kPa)
            total_pressure_source: Optional callable returning the total pressure
        """
        self._pressures: Dict[str, float] = {}
        self._total_pressure_source = total_pressure_source
        for symbol, value in (partial_pressures or {}).items():
            self.set(symbol, value)

    @classmethod
    def from_fractions(
            cls,
            fractions: Mapping[str, float],
            total_pressure: float
    ) -> "AtmosphericComposition":
        """Build a composition from gas fractions and a total pressure.

        Fractions are normalized, so they need not sum to one.

        Args:
            fractions: Relative amount of each gas
            total_pressure: Total pressure to distribute (kPa)

        Returns:
            New composition whose partial pressures sum to total_pressure
        """
        weight = sum(v for v in fractions.values() if v > 0)
        if weight <= 0 or total_pressure <= 0:
            return cls()
        return cls({s: total_pressure * v / weight for s, v in fractions.items() if v > 0})

    def __getitem__(self, symbol: str) -> float:
        return self._pressures.get(symbol, 0.0)

    def get(self, symbol: str, default: float = 0.0) -> float:
        """Partial pressure of symbol, or default when it is not present."""
        return self._pressures.get(symbol, default)

    def set(self, symbol: str, value: float) -> float:
        """Set the partial pressure of a gas.

        Args:
            symbol: Gas symbol
            value: Partial pressure (kPa)

        Returns:
            The stored value
        """
        try:
            value = float(value)
        except (TypeError, ValueError):
            logger.debug("Ignoring non-numeric pressure %r for %s", value, symbol)
            return self[symbol]
        if not math.isfinite(value):
            logger.debug("Ignoring non-finite pressure %s for %s", value, symbol)
            return self[symbol]
        if value < 0:
            logger.debug("Clamping negative pressure %.4f for %s to zero", value, symbol)
            value = 0.0
        self._pressures[symbol] = value
        return value

    def adjust(self, symbol: str, delta: float) -> float:
        """Add delta to the partial pressure of a gas, never going below zero."""
        return self.set(symbol, self[symbol] + delta)

    @property
    def total_pressure(self) -> float:
        """Total pressure (kPa), summed or externally driven."""
        if self._total_pressure_source is not None:
            value = self._total_pressure_source()
            if value is not None and math.isfinite(value):
                return max(0.0, float(value))
            logger.debug("External total pressure unavailable, summing partials")
        return math.fsum(self._pressures.values())

    @property
    def is_externally_driven(self) -> bool:
        """True when the total pressure comes from an external source."""
        return self._total_pressure_source is not None

    def fractions(self) -> Dict[str, float]:
        """Share of each gas in the total pressure (0-1)."""
        total = self.total_pressure
        if total <= 0:
            return {symbol: 0.0 for symbol in self._pressures}
        return {symbol: value / total for symbol, value in self._pressures.items()}

    def percentages(self) -> Dict[str, float]:
        """Share of each gas in the total pressure (0-100)."""
        return {symbol: f * 100.0 for symbol, f in self.fractions().items()}

    def scale(self, factor: float) -> None:
        """Multiply every partial pressure by factor."""
        for symbol in list(self._pressures):
            self.set(symbol, self._pressures[symbol] * factor)

    def copy(self) -> "AtmosphericComposition":
        """Independent copy sharing the external pressure source, if any."""
        return AtmosphericComposition(dict(self._pressures), self._total_pressure_source)

    def items(self) -> Iterator[Tuple[str, float]]:
        return iter(list(self._pressures.items()))

    def as_dict(self) -> Dict[str, float]:
        return dict(self._pressures)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._pressures

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._pressures))

    def __len__(self) -> int:
        return len(self._pressures)

    def __repr__(self) -> str:
        shares = ", ".join(f"{s}:{p:.1f}%" for s, p in self.percentages().items())
        return f"AtmosphericComposition({shares})"
