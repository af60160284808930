#!/usr/bin/env python
"""Example: Run the scripted square mission through the mission bridge.

The mission is a list of requests (takeoff, move-to, land). The bridge
serves them one at a time while the simulation steps, and each response
is printed as it arrives. A final telemetry request reads back the
landed state.

Usage:
    uv run python scripts/scripted_mission.py
"""

import logging

from quadsim.mission import MissionBridge, MissionRequest
from quadsim.scenarios import load_scenario
from quadsim.simulation import SimulationOrchestrator


def run_mission():
    """Fly the scripted-mission scenario."""
    print("=" * 60)
    print("SCRIPTED MISSION")
    print("=" * 60)

    MAX_STEPS = 20_000

    sim = SimulationOrchestrator()
    scenario = load_scenario(sim, "scripted-mission")
    bridge = MissionBridge(sim)

    requests = scenario.mission_requests()
    labels = {}
    for request in requests:
        labels[bridge.submit(request)] = f"{request.kind.value} {request.payload or ''}".strip()

    print(f"\n{len(requests)} requests queued")
    print("-" * 60)

    answered = 0
    for _ in range(MAX_STEPS):
        sim.step()
        for response in bridge.responses():
            answered += 1
            status = "ok" if response.ok else f"failed: {response.error}"
            print(f"  T+{sim.time:6.2f}s  {labels[response.id]:<40} {status}")
        if answered == len(requests):
            break

    bridge.submit(MissionRequest.get_telemetry())
    state = bridge.poll_response().payload
    print("-" * 60)
    print(f"\nAnswered {answered}/{len(requests)} requests in {sim.time:.1f} s")
    print(f"  Final position: ({state.position[0]:+.3f}, {state.position[1]:+.3f}, {state.position[2]:.3f}) m")

    bridge.close()
    return sim


if __name__ == "__main__":
    logging.basicConfig(level=logging.WARNING)
    run_mission()
