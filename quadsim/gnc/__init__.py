"""GNC (Guidance, Navigation, Control) module for the quadrotor.

Example:
    >>> from quadsim.gnc import PIDGains, PIDLoop, Waypoint, WaypointSequencer
    >>>
    >>> # Altitude loop
    >>> altitude_ctrl = PIDLoop(PIDGains(kp=2.0, ki=0.3, kd=1.0), output_limits=(-0.5, 0.5))
    >>>
    >>> # Route with one waypoint
    >>> route = WaypointSequencer([Waypoint.at(1.0, 0.0, 2.0)])
"""

from quadsim.gnc.control import (
    CascadedLoop,
    ControlAxes,
    ControlMixer,
    FlightMode,
    ManualInputs,
    PIDGains,
    PIDLoop,
    PIDState,
    mix_motors,
)
from quadsim.gnc.guidance import (
    Waypoint,
    WaypointSequencer,
)

__all__ = [
    # Control
    "CascadedLoop",
    "ControlAxes",
    "ControlMixer",
    "FlightMode",
    "ManualInputs",
    "PIDGains",
    "PIDLoop",
    "PIDState",
    "mix_motors",
    # Guidance
    "Waypoint",
    "WaypointSequencer",
]
