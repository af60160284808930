"""Control algorithms for the quadrotor.

Provides PID loops, the cascaded position controller and the
flight-mode aware motor mixer.
"""

from quadsim.gnc.control.mixer import (
    ControlAxes,
    ControlMixer,
    FlightMode,
    ManualInputs,
    mix_motors,
)
from quadsim.gnc.control.pid import (
    CascadedLoop,
    PIDGains,
    PIDLoop,
    PIDState,
)

__all__ = [
    # PID
    "CascadedLoop",
    "PIDGains",
    "PIDLoop",
    "PIDState",
    # Mixing
    "ControlAxes",
    "ControlMixer",
    "FlightMode",
    "ManualInputs",
    "mix_motors",
]
