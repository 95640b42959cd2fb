#!/usr/bin/env python3
"""Minimal terraforming scenario.

Releases greenhouse gases and oxygen into the atmosphere, steps the
simulator, and prints the analytics a host application would graph.
"""

from src.planetary_climate import (
    ClimateAnalyticsProvider,
    ClimateConfig,
    ClimateSimulator,
    HabitabilityAnalyzer,
)
from src.utils import configure_logging


def print_analytics(analytics, keys):
    """Print selected analytics values."""
    analytics.refresh()
    for key in keys:
        print(f"  {key:28s} {analytics.get(key):12.4f}")


def main():
    """Run a short terraforming scenario."""
    configure_logging()

    simulator = ClimateSimulator(ClimateConfig.game_balanced())
    analytics = ClimateAnalyticsProvider(simulator=simulator)
    habitability = HabitabilityAnalyzer()

    # Factory sites and the polar rows
    grid = simulator.grid
    for coord in [(18, 36), (18, 40), (0, 36), (35, 36)]:
        grid.activate_cell(coord)
    analytics.register_gas("Ne", "Neon")

    keys = ["global_temperature", "greenhouse_warming", "planetary_pressure",
            "CO2_pressure", "CO2_cellular_variance", "CO2_cellular_hotspots",
            "habitability_score", "north_ice_area"]

    print("Initial state:")
    print_analytics(analytics, keys)

    sol = simulator.config.sol_seconds
    for year_quarter in range(4):
        print(f"\nQuarter {year_quarter + 1}: releasing gases...")
        for _ in range(10):
            simulator.add_gas("CO2", 5e15)
            simulator.add_gas("GHG", 1e13)
            simulator.add_gas("CO2", 1e12, coordinate=(18, 36))
            simulator.add_gas("O2", 2e15)
        for _ in range(int(simulator.config.year_length_sols / 4)):
            simulator.step(sol)
        print_analytics(analytics, keys)

    print()
    print(simulator.get_climate_status())
    print(habitability.assessment(simulator.atmosphere, simulator.global_temperature))


if __name__ == "__main__":
    main()
