"""Simulation module for fixed-timestep quadrotor flight.

Provides the orchestrator that advances the plant and the controllers
together, its configuration objects and the telemetry it records.

Example:
    >>> from quadsim.simulation import SimulationOrchestrator, SimConfig
    >>>
    >>> sim = SimulationOrchestrator(SimConfig(timestep=0.01))
    >>> sim.run(500)
    >>> df = sim.history.to_dataframe()
"""

from quadsim.simulation.config import (
    CascadeGains,
    ControllerConfig,
    SetPoints,
    SimConfig,
)
from quadsim.simulation.simulator import (
    SimulationEvent,
    SimulationOrchestrator,
)
from quadsim.simulation.telemetry import (
    TelemetryHistory,
    TelemetrySample,
)

__all__ = [
    # Configuration
    "CascadeGains",
    "ControllerConfig",
    "SetPoints",
    "SimConfig",
    # Orchestrator
    "SimulationEvent",
    "SimulationOrchestrator",
    # Telemetry
    "TelemetryHistory",
    "TelemetrySample",
]
