"""Gas vocabulary for the atmosphere simulation.

The registry is an explicitly owned object handed to the grid, the pressure
model, the simulator and the analytics provider, so several simulations in
one process never share gas definitions by accident.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional

from .config import AVERAGE_AIR_MOLAR_MASS, ClimateConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GasInfo:
    """Metadata for one gas species.

    Attributes:
        symbol: Chemical symbol used as composition key (e.g. "CO2")
        display_name: Human readable name for reports
        unit: Reporting unit
        molar_mass: Molar mass in g/mol, None to use the average air value
        greenhouse_factor: Linear warming per kPa for non-CO2/H2O greenhouse gases
    """

    symbol: str
    display_name: str
    unit: str = "kPa"
    molar_mass: Optional[float] = None
    greenhouse_factor: float = 0.0


_BUILTIN_GASES = (
    ("CO2", "Carbon dioxide"),
    ("O2", "Oxygen"),
    ("N2", "Nitrogen"),
    ("H2O", "Water vapour"),
    ("Ar", "Argon"),
    ("CH4", "Methane"),
    ("GHG", "Greenhouse gases"),
)


class GasRegistry:
    """Registry of known gas species and their physical metadata."""

    def __init__(self, config: Optional[ClimateConfig] = None):
        """Create a registry holding the built-in gases.

        Args:
            config: Configuration supplying molar masses for built-in gases
        """
        config = config or ClimateConfig.default()
        self._gases: Dict[str, GasInfo] = {}
        for symbol, name in _BUILTIN_GASES:
            self._gases[symbol] = GasInfo(
                symbol=symbol,
                display_name=name,
                molar_mass=config.molar_masses.get(symbol),
            )

    def register(
            self,
            symbol: str,
            display_name: str,
            unit: str = "kPa",
            molar_mass: Optional[float] = None,
            greenhouse_factor: float = 0.0
    ) -> GasInfo:
        """Register a new gas species or update an existing one.

        Registration only touches metadata: compositions created earlier keep
        reading zero for the new symbol until a value is written.

        Args:
            symbol: Composition key of the gas
            display_name: Name used in reports
            unit: Reporting unit
            molar_mass: Molar mass in g/mol
            greenhouse_factor: Linear warming per kPa (K/kPa)

        Returns:
            The stored GasInfo

        Raises:
            ValueError: If the symbol is empty or the molar mass is not a positive finite number
        """
        if not symbol:
            raise ValueError("Gas symbol must be a non-empty string")
        if molar_mass is not None and (not math.isfinite(molar_mass) or molar_mass <= 0):
            raise ValueError(f"Molar mass of {symbol} must be positive, got {molar_mass}")

        existing = self._gases.get(symbol)
        if molar_mass is None and existing is not None:
            molar_mass = existing.molar_mass

        info = GasInfo(symbol, display_name, unit, molar_mass, max(0.0, greenhouse_factor))
        self._gases[symbol] = info
        logger.info("Registered gas %s (%s, %s)", symbol, display_name, unit)
        return info

    def get(self, symbol: str) -> Optional[GasInfo]:
        """Return the metadata for symbol, or None if it is unknown."""
        return self._gases.get(symbol)

    def molar_mass(self, symbol: str) -> float:
        """Molar mass of symbol in g/mol, average air if unknown."""
        info = self._gases.get(symbol)
        if info is None:
            # Case-insensitive fallback for host resource names like "co2"
            for key, candidate in self._gases.items():
                if key.upper() == symbol.upper():
                    info = candidate
                    break
        if info is None or info.molar_mass is None:
            logger.debug("No molar mass for %s, using average air", symbol)
            return AVERAGE_AIR_MOLAR_MASS
        return info.molar_mass

    @property
    def symbols(self) -> List[str]:
        """Registered symbols in registration order."""
        return list(self._gases)

    def greenhouse_gases(self) -> List[GasInfo]:
        """Gases carrying a linear greenhouse factor."""
        return [g for g in self._gases.values() if g.greenhouse_factor > 0]

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._gases

    def __iter__(self) -> Iterator[GasInfo]:
        return iter(list(self._gases.values()))

    def __len__(self) -> int:
        return len(self._gases)
