#!/usr/bin/env python3
"""Example script running a Martian year with the ClimateSimulator.

This script steps the simulator one hour at a time for a full year and
plots the regional temperatures, the polar ice caps and a snapshot of the
atmosphere grid.
"""

import matplotlib.pyplot as plt
import numpy as np

from src.planetary_climate import ClimateConfig, ClimateSimulator
from src.utils import configure_logging


def run_year(simulator, samples_per_sol=1):
    """Step the simulator through one orbit and record regional values.

    Args:
        simulator: ClimateSimulator instance
        samples_per_sol: Number of recorded samples per sol

    Returns:
        Dictionary of numpy arrays keyed by series name
    """
    config = simulator.config
    hour = 3600.0
    steps_per_sol = int(round(config.sol_seconds / hour))
    sols = int(config.year_length_sols)
    record_every = max(1, steps_per_sol // samples_per_sol)

    history = {name: [] for name in ("day", "north_pole", "south_pole", "equator", "global",
                                     "north_ice", "south_ice")}

    for sol in range(sols):
        for step in range(steps_per_sol):
            simulator.step(hour)
            if step % record_every == 0:
                temperatures = simulator.get_regional_temperatures()
                ice = simulator.get_ice_cap_status()
                history["day"].append(simulator.day_of_year)
                for name in ("north_pole", "south_pole", "equator", "global"):
                    history[name].append(temperatures[name])
                history["north_ice"].append(ice.north_ice_area)
                history["south_ice"].append(ice.south_ice_area)

        if sol % 100 == 0:
            print(f"Sol {sol}/{sols}: {simulator.global_temperature:.1f}K global")

    return {name: np.array(values) for name, values in history.items()}


def plot_history(history):
    """Plot regional temperatures and ice caps over the year."""
    fig, (ax1, ax2) = plt.subplots(2, 1, figsize=(12, 8), sharex=True)

    for name, label in (("north_pole", "North pole"), ("south_pole", "South pole"),
                        ("equator", "Equator"), ("global", "Global (area weighted)")):
        ax1.plot(history[name], label=label)
    ax1.set_ylabel("Temperature (K)")
    ax1.set_title("Regional temperatures over a Martian year")
    ax1.legend()
    ax1.grid(True, alpha=0.3)

    ax2.plot(history["north_ice"], label="North ice cap")
    ax2.plot(history["south_ice"], label="South ice cap")
    ax2.set_xlabel("Sample (one per sol)")
    ax2.set_ylabel("Ice cap area (km²)")
    ax2.legend()
    ax2.grid(True, alpha=0.3)

    plt.tight_layout()
    plt.show()


def plot_grid(simulator):
    """Show the active cells of the grid as an xarray snapshot."""
    dataset = simulator.grid.to_dataset()
    fig, axes = plt.subplots(1, 2, figsize=(14, 5))

    dataset.temperature.where(dataset.is_active).plot(ax=axes[0], cmap="coolwarm")
    axes[0].set_title("Active cell temperature (K)")

    dataset.partial_pressure_CO2.where(dataset.is_active).plot(ax=axes[1], cmap="viridis")
    axes[1].set_title("Active cell CO2 partial pressure (kPa)")

    plt.tight_layout()
    plt.show()


def main():
    """Simulate one Martian year."""
    configure_logging()

    print("Setting up Mars climate simulator...")
    simulator = ClimateSimulator(ClimateConfig.realistic())

    # Activate a band of cells around the equator and both polar rows
    grid = simulator.grid
    for lon in range(grid.lon_cells):
        grid.activate_cell((grid.lat_cells // 2, lon))
        grid.activate_cell((0, lon))
        grid.activate_cell((grid.lat_cells - 1, lon))
    print(f"Activated {grid.active_count} of {len(grid)} cells")

    print("Running one Martian year...")
    history = run_year(simulator)

    print(simulator.get_climate_status())

    print("Plotting results...")
    plot_history(history)
    plot_grid(simulator)

    print("Done!")


if __name__ == "__main__":
    main()
