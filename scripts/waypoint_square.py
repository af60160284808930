#!/usr/bin/env python
"""Example: Fly the square waypoint route and report tracking.

The simulation loop is driven in batch (no wall clock):
1. Load the scenario (reset, route, waypoint mode)
2. Step until the route finishes and the vehicle holds position
3. Summarize the flight from the recorded telemetry

Usage:
    uv run python scripts/waypoint_square.py
"""

import logging

import numpy as np

from quadsim.gnc.control import FlightMode
from quadsim.scenarios import load_scenario
from quadsim.simulation import SimulationOrchestrator


def run_square():
    """Fly the waypoint-navigation scenario."""
    print("=" * 60)
    print("WAYPOINT SQUARE")
    print("=" * 60)

    # =========================================================================
    # Setup
    # =========================================================================
    MAX_TIME = 120.0    # [s]
    HOLD_TIME = 5.0     # settle after the route finishes [s]

    sim = SimulationOrchestrator()
    scenario = load_scenario(sim, "waypoint-navigation")
    params = sim.get_vehicle_parameters()

    print(f"\nScenario: {scenario.name}")
    print(f"  {scenario.description}")
    for i, (x, y, z) in enumerate(scenario.route):
        print(f"  WP{i}: ({x:+.1f}, {y:+.1f}, {z:.1f}) m")
    print("\nVehicle:")
    print(f"  Mass: {params.mass:.2f} kg")
    print(f"  Hover throttle: {params.hover_throttle:.3f}")
    print(f"  Thrust/weight: {params.thrust_to_weight:.2f}")

    # =========================================================================
    # Simulation Loop
    # =========================================================================
    print("\nRunning simulation...")
    print("-" * 60)

    dt = sim.get_config().timestep
    last_index = sim.get_current_waypoint_index()
    finished_at = None

    while sim.time < MAX_TIME:
        sample = sim.step()

        index = sim.get_current_waypoint_index()
        if index != last_index:
            pos = sample.state.position
            print(f"  T+{sim.time:6.2f}s  reached WP{last_index} at "
                  f"({pos[0]:+.2f}, {pos[1]:+.2f}, {pos[2]:.2f})")
            last_index = index

        if finished_at is None and sim.get_flight_mode() is FlightMode.POSITION_HOLD:
            finished_at = sim.time
            print(f"\n✓ Route complete at T+{finished_at:.1f}s, holding position")

        if finished_at is not None and sim.time - finished_at >= HOLD_TIME:
            break
    else:
        print(f"\n✗ Route not finished after {MAX_TIME:.0f}s")

    # =========================================================================
    # Results
    # =========================================================================
    df = sim.history.to_dataframe()
    state = sim.get_drone_state()
    target = sim.get_setpoints().position

    print("-" * 60)
    print("\nFINAL STATE:")
    print(f"  Time: {sim.time:.1f} s ({int(round(sim.time / dt))} steps)")
    print(f"  Position: ({state.position[0]:+.3f}, {state.position[1]:+.3f}, {state.position[2]:.3f}) m")
    print(f"  Position error: {np.linalg.norm(target - state.position):.3f} m")
    print(f"  Speed: {state.speed:.3f} m/s")
    print("\nTELEMETRY (last window):")
    print(f"  Samples: {df.height}")
    print(f"  Max tilt: {np.degrees(max(df['roll'].abs().max(), df['pitch'].abs().max())):.1f} deg")
    print(f"  Altitude range: {df['z'].min():.2f} to {df['z'].max():.2f} m")

    return sim, df


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    run_square()
