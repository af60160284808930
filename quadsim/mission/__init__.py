"""Scripted missions: request/response protocol and the simulation bridge.

Example:
    >>> from quadsim.mission import MissionBridge, MissionRequest
    >>> from quadsim.simulation import SimulationOrchestrator
    >>>
    >>> sim = SimulationOrchestrator()
    >>> bridge = MissionBridge(sim)
    >>> responses = bridge.run([MissionRequest.takeoff(3.0), MissionRequest.land()], max_steps=3000)
"""

from quadsim.mission.bridge import (
    MissionBridge,
)
from quadsim.mission.protocol import (
    MissionCommand,
    MissionRequest,
    MissionResponse,
)

__all__ = [
    "MissionBridge",
    "MissionCommand",
    "MissionRequest",
    "MissionResponse",
]
