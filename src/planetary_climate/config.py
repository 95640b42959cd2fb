"""Configuration for the planetary climate simulation.

Holds the Mars physical constants, greenhouse parameters, grid resolution and
regional geometry used by the simulator. A configuration is immutable for the
duration of a run; use ClimateSimulator.reconfigure to switch between runs.
"""

import dataclasses
import math
from types import MappingProxyType
from dataclasses import dataclass, field
from typing import Any, Dict, Mapping

# Fallback molar mass for gases without a registered value (g/mol)
AVERAGE_AIR_MOLAR_MASS = 28.97


class ConfigurationError(ValueError):
    """Raised when a ClimateConfig holds physically meaningless values."""


def _default_molar_masses() -> Dict[str, float]:
    return {
        "CO2": 44.01,
        "O2": 32.00,
        "N2": 28.01,
        "H2O": 18.02,
        "Ar": 39.95,
        "CH4": 16.04,
        "GHG": 100.0,  # Lumped fluorocarbon-like greenhouse gases
    }


def _default_cell_fractions() -> Dict[str, float]:
    # Earth dry air, used for freshly allocated grid cells
    return {
        "N2": 0.7808,
        "O2": 0.2095,
        "Ar": 0.0093,
        "CO2": 0.0004,
    }


def _default_initial_atmosphere() -> Dict[str, float]:
    # Present-day Mars partial pressures (kPa)
    return {
        "CO2": 0.6,
        "N2": 0.016,
        "Ar": 0.012,
        "O2": 0.0009,
        "H2O": 0.0002,
    }


_MAPPING_FIELDS = ("molar_masses", "default_cell_fractions", "initial_atmosphere")


@dataclass(frozen=True)
class ClimateConfig:
    """Immutable parameters for one simulation run.

    Attributes:
        solar_constant: Solar irradiance at the planet (W/m², Mars ~589)
        surface_gravity: Surface gravity (m/s²)
        planet_radius_km: Planet radius (km)
        molar_masses: Molar mass per gas symbol (g/mol)
        co2_greenhouse_efficiency: Multiplier on CO2 warming
        h2o_greenhouse_efficiency: Multiplier on water vapour warming
        max_greenhouse_warming: Upper bound on total greenhouse warming (K)
        co2_baseline_pressure: CO2 pressure producing no extra warming (kPa)
        co2_forcing_coefficient: Logarithmic CO2 forcing coefficient
        co2_log_scale: Scale factor of the per-step CO2 term
        co2_log_pressure_factor: Pressure multiplier inside the per-step logarithm
        h2o_warming_factor: Linear water vapour factor (K/kPa)
        ghg_warming_factor: Linear factor for other greenhouse gases (K/kPa)
        min_temperature: Lower equilibrium temperature clamp (K)
        max_temperature: Upper equilibrium temperature clamp (K)
        thermal_inertia: Fraction of the gap closed per time constant
        thermal_time_constant: Time constant of the inertia smoothing (s)
        emissivity: Surface emissivity
        axial_tilt_degrees: Axial tilt (degrees)
        year_length_sols: Orbital period (sols)
        sol_hours: Length of a solar day (hours)
        grid_lat_size: Cell height (degrees of latitude)
        grid_lon_size: Cell width (degrees of longitude)
        default_cell_temperature: Temperature of freshly allocated cells (K)
        default_cell_pressure: Total pressure of freshly allocated cells (kPa)
        default_cell_fractions: Gas fractions of freshly allocated cells
        initial_atmosphere: Planetary partial pressures at start (kPa)
        pole_latitude: Latitude of the polar regional models (degrees)
        pole_area_km2: Surface area of each polar region (km²)
        equator_area_km2: Surface area of the equatorial region (km²)
        atmospheric_escape_rate: Fraction of each gas lost per sol (0 disables)
        seasonal_co2_amplitude: Relative CO2 seasonal swing (0 disables)
    """

    solar_constant: float = 589.0
    surface_gravity: float = 3.71
    planet_radius_km: float = 3389.5
    molar_masses: Mapping[str, float] = field(default_factory=_default_molar_masses, hash=False)

    co2_greenhouse_efficiency: float = 1.0
    h2o_greenhouse_efficiency: float = 2.8
    max_greenhouse_warming: float = 60.0
    co2_baseline_pressure: float = 0.6
    co2_forcing_coefficient: float = 5.35
    co2_log_scale: float = 5.0
    co2_log_pressure_factor: float = 100.0
    h2o_warming_factor: float = 2.8
    ghg_warming_factor: float = 0.1

    min_temperature: float = 150.0
    max_temperature: float = 400.0
    thermal_inertia: float = 0.15
    thermal_time_constant: float = 24.0 * 3600.0
    emissivity: float = 0.95

    axial_tilt_degrees: float = 25.19
    year_length_sols: float = 668.6
    sol_hours: float = 24.66

    grid_lat_size: float = 5.0
    grid_lon_size: float = 5.0
    default_cell_temperature: float = 288.15
    default_cell_pressure: float = 101.325
    default_cell_fractions: Mapping[str, float] = field(
        default_factory=_default_cell_fractions, hash=False
    )
    initial_atmosphere: Mapping[str, float] = field(
        default_factory=_default_initial_atmosphere, hash=False
    )

    pole_latitude: float = 85.0
    pole_area_km2: float = 500000.0
    equator_area_km2: float = 2000000.0

    atmospheric_escape_rate: float = 0.0
    seasonal_co2_amplitude: float = 0.0

    def __post_init__(self):
        # Read-only views so a validated config cannot be edited mid-run
        for name in _MAPPING_FIELDS:
            object.__setattr__(self, name, MappingProxyType(dict(getattr(self, name))))
        self._validate()

    def _validate(self) -> None:
        """Reject values that would silently corrupt the simulation."""
        for name in ("solar_constant", "surface_gravity", "planet_radius_km",
                     "thermal_time_constant", "year_length_sols", "sol_hours",
                     "pole_area_km2", "equator_area_km2"):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise ConfigurationError(f"{name} must be positive, got {value}")

        for name in ("co2_greenhouse_efficiency", "h2o_greenhouse_efficiency",
                     "max_greenhouse_warming", "co2_forcing_coefficient",
                     "co2_log_scale", "co2_log_pressure_factor",
                     "h2o_warming_factor", "ghg_warming_factor",
                     "thermal_inertia", "co2_baseline_pressure",
                     "default_cell_pressure", "atmospheric_escape_rate",
                     "seasonal_co2_amplitude"):
            value = getattr(self, name)
            if not math.isfinite(value) or value < 0:
                raise ConfigurationError(f"{name} must be non-negative, got {value}")

        for symbol, mass in self.molar_masses.items():
            if not math.isfinite(mass) or mass <= 0:
                raise ConfigurationError(
                    f"Molar mass of {symbol} must be positive, got {mass}"
                )

        if self.min_temperature <= 0 or self.min_temperature >= self.max_temperature:
            raise ConfigurationError(
                f"Temperature clamp is invalid: min={self.min_temperature}, "
                f"max={self.max_temperature}"
            )
        if not self.min_temperature <= self.default_cell_temperature <= self.max_temperature:
            raise ConfigurationError(
                f"default_cell_temperature {self.default_cell_temperature} lies "
                f"outside [{self.min_temperature}, {self.max_temperature}]"
            )
        if not 0 < self.emissivity <= 1:
            raise ConfigurationError(f"emissivity must be in (0, 1], got {self.emissivity}")
        if self.seasonal_co2_amplitude >= 1:
            raise ConfigurationError(
                f"seasonal_co2_amplitude must be below 1, got {self.seasonal_co2_amplitude}"
            )
        if not 0 <= self.pole_latitude <= 90:
            raise ConfigurationError(f"pole_latitude must be in [0, 90], got {self.pole_latitude}")

        if not 0 < self.grid_lat_size <= 180 or not 0 < self.grid_lon_size <= 360:
            raise ConfigurationError(
                f"Grid resolution {self.grid_lat_size}x{self.grid_lon_size} is out of range"
            )

        for label, mapping in (("default_cell_fractions", self.default_cell_fractions),
                               ("initial_atmosphere", self.initial_atmosphere)):
            for symbol, value in mapping.items():
                if not math.isfinite(value) or value < 0:
                    raise ConfigurationError(
                        f"{label}[{symbol!r}] must be non-negative, got {value}"
                    )

    # === Derived values ===

    @property
    def sol_seconds(self) -> float:
        """Length of one sol in seconds."""
        return self.sol_hours * 3600.0

    @property
    def planet_surface_area_m2(self) -> float:
        """Surface area of the planet in square metres."""
        return 4.0 * math.pi * (self.planet_radius_km * 1000.0) ** 2

    @property
    def lat_cells(self) -> int:
        """Number of latitude bands in the grid."""
        return int(180 / self.grid_lat_size)

    @property
    def lon_cells(self) -> int:
        """Number of longitude bands in the grid."""
        return int(360 / self.grid_lon_size)

    # === Construction helpers ===

    def replace(self, **changes: Any) -> "ClimateConfig":
        """Return a copy with the given fields changed (validated again)."""
        return dataclasses.replace(self, **changes)

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "ClimateConfig":
        """Build a configuration from a mapping such as a parsed config file.

        Args:
            values: Field names mapped to values; missing fields keep defaults

        Returns:
            Validated ClimateConfig

        Raises:
            ConfigurationError: If the mapping contains unknown keys or invalid values
        """
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")
        return cls(**dict(values))

    # === Presets ===

    @classmethod
    def realistic(cls) -> "ClimateConfig":
        """Mars physics based on measured atmospheric constants."""
        return cls()

    @classmethod
    def game_balanced(cls) -> "ClimateConfig":
        """Stronger greenhouse response for faster terraforming."""
        return cls(
            co2_greenhouse_efficiency=1.5,
            h2o_greenhouse_efficiency=4.0,
            max_greenhouse_warming=80.0,
        )

    @classmethod
    def debug(cls) -> "ClimateConfig":
        """Extremely accelerated climate changes for testing."""
        return cls(
            co2_greenhouse_efficiency=5.0,
            h2o_greenhouse_efficiency=10.0,
            max_greenhouse_warming=200.0,
        )

    @classmethod
    def default(cls) -> "ClimateConfig":
        """Same as realistic()."""
        return cls.realistic()
