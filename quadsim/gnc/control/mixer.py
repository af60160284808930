"""Flight modes and motor mixing.

The mixer turns per-axis control outputs, pilot stick inputs and the
active flight mode into four motor thrust fractions.

Motor layout (X configuration, viewed from above)::

    1 (FL)   2 (FR)
         \\ /
         / \\
    3 (RL)   4 (RR)

Mixing, each motor clamped to [0, 1]:
    m1 = base + pitch + yaw - roll
    m2 = base + pitch - yaw + roll
    m3 = base - pitch + yaw - roll
    m4 = base - pitch - yaw + roll

Yaw raises the left pair (FL, RL) against the right pair (FR, RR), the
same pairing as the reaction torque in ``quadsim.dynamics.rigid_body``.
Roll and yaw therefore share one motor differential.
"""

from dataclasses import dataclass, replace
from enum import Enum
from typing import assert_never

import numpy as np
from beartype import beartype

from quadsim.dynamics.state import MotorCommand

# =============================================================================
# Flight Modes and Pilot Inputs
# =============================================================================


class FlightMode(Enum):
    """Flight modes, selected only by an explicit command."""
    MANUAL = "manual"
    STABILIZED = "stabilized"
    ALTITUDE_HOLD = "altitude_hold"
    POSITION_HOLD = "position_hold"
    WAYPOINT = "waypoint"

    @property
    def uses_position_control(self) -> bool:
        """True for modes where the x/y cascades command roll and pitch."""
        return self in (FlightMode.POSITION_HOLD, FlightMode.WAYPOINT)


@beartype
@dataclass(frozen=True)
class ManualInputs:
    """Pilot stick positions.

    Attributes:
        pitch: Pitch stick [-1, 1]
        roll: Roll stick [-1, 1]
        yaw: Yaw stick [-1, 1]
        throttle: Throttle [0, 1]
    """
    pitch: float = 0.0
    roll: float = 0.0
    yaw: float = 0.0
    throttle: float = 0.5

    def __post_init__(self) -> None:
        """Clamp every stick into its range."""
        for name in ("pitch", "roll", "yaw"):
            object.__setattr__(self, name, float(np.clip(getattr(self, name), -1.0, 1.0)))
        object.__setattr__(self, "throttle", float(np.clip(self.throttle, 0.0, 1.0)))

    def merged(self, **changes) -> "ManualInputs":
        """Return a copy with the given sticks replaced."""
        return replace(self, **changes)


@beartype
@dataclass(frozen=True)
class ControlAxes:
    """One value per control axis (used for outputs and for errors)."""
    altitude: float = 0.0
    roll: float = 0.0
    pitch: float = 0.0
    yaw: float = 0.0
    position_x: float = 0.0
    position_y: float = 0.0


# =============================================================================
# Mixer
# =============================================================================


@beartype
def mix_motors(base: float, roll: float, pitch: float, yaw: float) -> MotorCommand:
    """Combine collective thrust and axis commands into motor fractions."""
    return MotorCommand.from_array(np.array([
        base + pitch + yaw - roll,
        base + pitch - yaw + roll,
        base - pitch + yaw - roll,
        base - pitch - yaw + roll,
    ]))


@beartype
@dataclass(frozen=True)
class ControlMixer:
    """Flight-mode aware motor mixer.

    Attributes:
        manual_authority: Stick scaling in manual mode
        assisted_authority: Stick scaling when sticks add to PID output
    """
    manual_authority: float = 0.3
    assisted_authority: float = 0.2

    def axis_inputs(
        self,
        mode: FlightMode,
        outputs: ControlAxes,
        manual: ManualInputs,
        hover_throttle: float,
    ) -> tuple[float, float, float, float]:
        """Per-mode (base, roll, pitch, yaw) before motor mixing."""
        a = self.assisted_authority
        match mode:
            case FlightMode.MANUAL:
                m = self.manual_authority
                return (manual.throttle, manual.roll * m, manual.pitch * m, manual.yaw * m)
            case FlightMode.STABILIZED:
                return (
                    manual.throttle,
                    outputs.roll + manual.roll * a,
                    outputs.pitch + manual.pitch * a,
                    outputs.yaw + manual.yaw * a,
                )
            case FlightMode.ALTITUDE_HOLD:
                return (
                    hover_throttle + outputs.altitude,
                    manual.roll * a,
                    manual.pitch * a,
                    outputs.yaw + manual.yaw * a,
                )
            case FlightMode.POSITION_HOLD | FlightMode.WAYPOINT:
                return (
                    hover_throttle + outputs.altitude,
                    outputs.roll,
                    outputs.pitch,
                    outputs.yaw,
                )
            case _:
                assert_never(mode)

    def mix(
        self,
        mode: FlightMode,
        outputs: ControlAxes,
        manual: ManualInputs,
        hover_throttle: float,
    ) -> MotorCommand:
        """Compute motor commands for the active flight mode.

        Args:
            mode: Active flight mode
            outputs: PID outputs per axis (ignored in manual mode)
            manual: Pilot stick inputs
            hover_throttle: Motor fraction that balances the weight

        Returns:
            Clamped motor command
        """
        base, roll, pitch, yaw = self.axis_inputs(mode, outputs, manual, hover_throttle)
        return mix_motors(base, roll, pitch, yaw)
