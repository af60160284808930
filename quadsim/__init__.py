"""Quadsim - Flight dynamics and control simulation for a quadrotor trainer.

This package provides a fixed-timestep 6DOF rigid body model of an
X-configuration quadrotor, a cascaded PID control stack with flight
modes and waypoint following, and an orchestrator that steps them
together and records telemetry.

Example:
    >>> from quadsim import SimulationOrchestrator, FlightMode, Waypoint
    >>>
    >>> sim = SimulationOrchestrator()
    >>> sim.set_waypoints([Waypoint.at(1.0, 1.0, 2.0)])
    >>> sim.set_flight_mode(FlightMode.WAYPOINT)
    >>> sim.run(1500)
    >>> print(sim.get_flight_mode())
"""

__version__ = "0.1.0"

from quadsim.dynamics import (
    KinematicState,
    MotorCommand,
    RigidBodyModel,
    VehicleParameters,
)
from quadsim.gnc import (
    CascadedLoop,
    ControlMixer,
    FlightMode,
    ManualInputs,
    PIDGains,
    PIDLoop,
    Waypoint,
    WaypointSequencer,
)
from quadsim.mission import (
    MissionBridge,
    MissionRequest,
    MissionResponse,
)
from quadsim.scenarios import (
    FlightScenario,
    get_scenario,
    list_scenarios,
    load_scenario,
)
from quadsim.simulation import (
    ControllerConfig,
    SetPoints,
    SimConfig,
    SimulationEvent,
    SimulationOrchestrator,
    TelemetrySample,
)

__all__ = [
    "__version__",
    # Dynamics
    "KinematicState",
    "MotorCommand",
    "RigidBodyModel",
    "VehicleParameters",
    # Control and guidance
    "CascadedLoop",
    "ControlMixer",
    "FlightMode",
    "ManualInputs",
    "PIDGains",
    "PIDLoop",
    "Waypoint",
    "WaypointSequencer",
    # Simulation
    "ControllerConfig",
    "SetPoints",
    "SimConfig",
    "SimulationEvent",
    "SimulationOrchestrator",
    "TelemetrySample",
    # Missions and scenarios
    "FlightScenario",
    "MissionBridge",
    "MissionRequest",
    "MissionResponse",
    "get_scenario",
    "list_scenarios",
    "load_scenario",
]
