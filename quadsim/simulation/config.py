"""Simulation, controller and setpoint configuration.

Every configuration object is a frozen dataclass. Partial updates go
through ``merged()``, which replaces only the named fields and runs the
same validation as construction.

Example:
    >>> from quadsim.simulation.config import ControllerConfig, SimConfig
    >>>
    >>> config = SimConfig().merged(timestep=0.005)
    >>> gains = ControllerConfig().merged(altitude={"kp": 3.0})
"""

from dataclasses import dataclass, field, replace
from typing import Any

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

from quadsim.gnc.control.pid import PIDGains

# Output saturation per loop
ALTITUDE_OUTPUT_LIMIT = 0.5     # throttle fraction
ATTITUDE_OUTPUT_LIMIT = 0.5     # roll/pitch mixer command
YAW_OUTPUT_LIMIT = 0.3          # yaw mixer command
MAX_VELOCITY = 3.0              # outer position loop [m/s]
MAX_TILT_SETPOINT = 0.3         # inner velocity loop [rad]


# =============================================================================
# Simulation
# =============================================================================


@beartype
@dataclass(frozen=True)
class SimConfig:
    """Scheduling and bypass switches.

    Attributes:
        timestep: Physics and control step [s]
        real_time_multiplier: Simulated seconds per wall-clock second
        enable_physics: Integrate the rigid body model each step
        enable_control: Run the PID stack (otherwise motors idle at hover)
    """
    timestep: float = 0.01
    real_time_multiplier: float = 1.0
    enable_physics: bool = True
    enable_control: bool = True

    def __post_init__(self) -> None:
        """Validate scheduling values."""
        if not (np.isfinite(self.timestep) and self.timestep > 0):
            raise ValueError(f"Timestep must be positive, got {self.timestep}")
        if not (np.isfinite(self.real_time_multiplier) and self.real_time_multiplier > 0):
            raise ValueError(
                f"Real time multiplier must be positive, got {self.real_time_multiplier}"
            )

    @property
    def step_interval(self) -> float:
        """Wall-clock time between steps [s]."""
        return self.timestep / self.real_time_multiplier

    def merged(self, **changes) -> "SimConfig":
        return replace(self, **changes)


# =============================================================================
# Controller Gains
# =============================================================================


def _merge_gains(current: PIDGains, update: PIDGains | dict[str, Any]) -> PIDGains:
    if isinstance(update, PIDGains):
        return update
    return replace(current, **update)


@beartype
@dataclass(frozen=True)
class CascadeGains:
    """Gains of one horizontal position cascade.

    Attributes:
        outer: Position loop gains (position error -> velocity setpoint)
        inner: Velocity loop gains (velocity error -> tilt setpoint)
        enabled: Enables both loops together
    """
    outer: PIDGains = field(default_factory=lambda: PIDGains(kp=1.0, ki=0.0, kd=0.1))
    inner: PIDGains = field(default_factory=lambda: PIDGains(kp=0.25, ki=0.01, kd=0.0))
    enabled: bool = True

    def merged(self, update: dict[str, Any]) -> "CascadeGains":
        """Merge a partial dict.

        Values for ``outer`` and ``inner`` may themselves be partial dicts
        of gain fields.
        """
        changes = dict(update)
        if "outer" in changes:
            changes["outer"] = _merge_gains(self.outer, changes["outer"])
        if "inner" in changes:
            changes["inner"] = _merge_gains(self.inner, changes["inner"])
        return replace(self, **changes)


@beartype
@dataclass(frozen=True)
class ControllerConfig:
    """Gains for every control axis.

    Defaults are tuned for a 0.01 s step with the default vehicle.
    """
    altitude: PIDGains = field(default_factory=lambda: PIDGains(kp=2.0, ki=0.3, kd=1.0))
    roll: PIDGains = field(default_factory=lambda: PIDGains(kp=0.4, ki=0.05, kd=0.06))
    pitch: PIDGains = field(default_factory=lambda: PIDGains(kp=0.4, ki=0.05, kd=0.06))
    yaw: PIDGains = field(default_factory=lambda: PIDGains(kp=1.0, ki=0.0, kd=0.2))
    position_x: CascadeGains = field(default_factory=CascadeGains)
    position_y: CascadeGains = field(default_factory=CascadeGains)

    def merged(self, **axes: PIDGains | CascadeGains | dict[str, Any]) -> "ControllerConfig":
        """Return a copy with the named axes replaced or partially updated.

        Args:
            **axes: Axis name mapped to a full gains object or a dict of
                the fields to change

        Returns:
            New controller configuration

        Example:
            >>> cfg = ControllerConfig().merged(roll={"kd": 0.08}, yaw=PIDGains(kp=3.0))
        """
        changes: dict[str, Any] = {}
        for name, update in axes.items():
            current = getattr(self, name, None)
            if isinstance(current, PIDGains):
                changes[name] = _merge_gains(current, update)
            elif isinstance(current, CascadeGains):
                changes[name] = update if isinstance(update, CascadeGains) else current.merged(update)
            else:
                raise ValueError(f"Unknown control axis: {name}")
        return replace(self, **changes)


# =============================================================================
# Setpoints
# =============================================================================


def _read_only_vector(values: NDArray[np.float64], name: str) -> NDArray[np.float64]:
    vector = np.array(values, dtype=np.float64)
    if vector.shape != (3,):
        raise ValueError(f"{name} must be shape (3,), got {vector.shape}")
    if not np.all(np.isfinite(vector)):
        raise ValueError(f"{name} must be finite, got {vector}")
    vector.flags.writeable = False
    return vector


@beartype
@dataclass(frozen=True)
class SetPoints:
    """Control targets.

    Attributes:
        position: Target [x, y, z] [m]
        attitude: Target [roll, pitch, yaw] [rad]
    """
    position: NDArray[np.float64] = field(default_factory=lambda: np.array([0.0, 0.0, 2.0]))
    attitude: NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        object.__setattr__(self, "position", _read_only_vector(self.position, "position"))
        object.__setattr__(self, "attitude", _read_only_vector(self.attitude, "attitude"))

    def merged(
        self,
        position: NDArray[np.float64] | None = None,
        attitude: NDArray[np.float64] | None = None,
    ) -> "SetPoints":
        """Return a copy with the given targets replaced."""
        return SetPoints(
            position=self.position if position is None else position,
            attitude=self.attitude if attitude is None else attitude,
        )
