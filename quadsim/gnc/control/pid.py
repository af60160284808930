"""PID controller implementation.

Provides a single-axis PID loop with:
- Conditional-integration anti-windup
- Output saturation
- Enable/disable with automatic state reset
- Live gain replacement that keeps accumulated state

and a cascaded (outer/inner) loop built from two of them.

Example:
    >>> from quadsim.gnc.control import PIDGains, PIDLoop
    >>>
    >>> # Altitude loop producing a throttle correction
    >>> ctrl = PIDLoop(PIDGains(kp=2.0, ki=0.3, kd=1.0), output_limits=(-0.5, 0.5))
    >>>
    >>> # Compute control output
    >>> correction = ctrl.update(setpoint=2.0, measurement=0.0, dt=0.01)
"""

from dataclasses import dataclass, field, replace
from typing import NamedTuple

import numpy as np
from beartype import beartype

# =============================================================================
# PID Gains
# =============================================================================


@beartype
@dataclass(frozen=True)
class PIDGains:
    """PID controller gains.

    Attributes:
        kp: Proportional gain
        ki: Integral gain
        kd: Derivative gain
        enabled: Whether the loop produces output
    """
    kp: float = 1.0
    ki: float = 0.0
    kd: float = 0.0
    enabled: bool = True

    def __post_init__(self) -> None:
        """Reject NaN and infinite gains."""
        if not all(np.isfinite(g) for g in (self.kp, self.ki, self.kd)):
            raise ValueError(f"Gains must be finite, got {self}")

    def merged(self, **changes) -> "PIDGains":
        """Return a copy with the given fields replaced."""
        return replace(self, **changes)


class PIDState(NamedTuple):
    """Snapshot of the internal state of a PID loop."""
    error: float
    integral: float
    derivative: float
    last_error: float
    output: float


# =============================================================================
# PID Loop
# =============================================================================


@beartype
@dataclass
class PIDLoop:
    """General-purpose single-axis PID loop.

    Implements the parallel PID form:
        u = kp * e + ki * integral(e) + kd * de/dt

    clamped to ``output_limits``. While the unclamped output saturates and
    the error pushes further into the limit, the integral contribution of
    that step is taken back out, so the integral stops growing.

    Attributes:
        gains: Current gains and enabled flag
        output_limits: (min, max) output limits
    """
    gains: PIDGains = field(default_factory=PIDGains)
    output_limits: tuple[float, float] = (-1.0, 1.0)

    # Internal state
    _error: float = field(default=0.0, init=False, repr=False)
    _integral: float = field(default=0.0, init=False, repr=False)
    _derivative: float = field(default=0.0, init=False, repr=False)
    _last_error: float = field(default=0.0, init=False, repr=False)
    _output: float = field(default=0.0, init=False, repr=False)

    def __post_init__(self) -> None:
        """Validate output limits."""
        low, high = self.output_limits
        if not low < high:
            raise ValueError(f"Output limits must satisfy min < max, got {self.output_limits}")

    @property
    def enabled(self) -> bool:
        return self.gains.enabled

    def reset(self) -> None:
        """Zero error, integral, derivative and output history."""
        self._error = 0.0
        self._integral = 0.0
        self._derivative = 0.0
        self._last_error = 0.0
        self._output = 0.0

    def update(self, setpoint: float, measurement: float, dt: float) -> float:
        """Compute PID control output.

        Args:
            setpoint: Desired value
            measurement: Measured value
            dt: Time step [s], must be positive

        Returns:
            Clamped control output (0.0 while disabled)
        """
        if not dt > 0:
            raise ValueError(f"Time step must be positive, got {dt}")
        if not self.gains.enabled:
            return 0.0

        error = setpoint - measurement
        integral_step = error * dt
        self._integral += integral_step
        self._derivative = (error - self._last_error) / dt

        raw = (
            self.gains.kp * error
            + self.gains.ki * self._integral
            + self.gains.kd * self._derivative
        )

        low, high = self.output_limits
        output = min(max(raw, low), high)

        # Anti-windup: undo this step's integration while pushing into a limit
        if (raw > high and error > 0) or (raw < low and error < 0):
            self._integral -= integral_step

        self._error = error
        self._last_error = error
        self._output = output
        return output

    def set_gains(self, gains: PIDGains) -> None:
        """Replace gains; accumulated state is kept unless the loop is disabled."""
        was_enabled = self.gains.enabled
        self.gains = gains
        if was_enabled and not gains.enabled:
            self.reset()

    def set_enabled(self, enabled: bool) -> None:
        """Enable or disable the loop. Disabling resets the internal state."""
        self.gains = replace(self.gains, enabled=enabled)
        if not enabled:
            self.reset()

    def set_limits(self, output_limits: tuple[float, float]) -> None:
        """Change the output saturation limits."""
        low, high = output_limits
        if not low < high:
            raise ValueError(f"Output limits must satisfy min < max, got {output_limits}")
        self.output_limits = output_limits

    def get_state(self) -> PIDState:
        return PIDState(
            error=self._error,
            integral=self._integral,
            derivative=self._derivative,
            last_error=self._last_error,
            output=self._output,
        )


# =============================================================================
# Cascaded PID Loop
# =============================================================================


@beartype
@dataclass
class CascadedLoop:
    """Cascaded (outer/inner) PID loop for one horizontal axis.

    - Outer loop: position error -> velocity setpoint (+/- max_velocity)
    - Inner loop: velocity error -> attitude setpoint (+/- max_inner_setpoint)

    Example:
        >>> cascade = CascadedLoop.from_gains(
        ...     outer_gains=PIDGains(kp=1.0, kd=0.1),
        ...     inner_gains=PIDGains(kp=0.25, ki=0.01),
        ... )
        >>> pitch_target = cascade.update(1.0, position=0.0, velocity=0.0, dt=0.01)
    """
    outer: PIDLoop
    inner: PIDLoop

    @classmethod
    def from_gains(
        cls,
        outer_gains: PIDGains,
        inner_gains: PIDGains,
        max_velocity: float = 3.0,
        max_inner_setpoint: float = 0.3,
    ) -> "CascadedLoop":
        """Create a cascade from gains and saturation limits."""
        return cls(
            outer=PIDLoop(outer_gains, output_limits=(-max_velocity, max_velocity)),
            inner=PIDLoop(inner_gains, output_limits=(-max_inner_setpoint, max_inner_setpoint)),
        )

    @property
    def enabled(self) -> bool:
        return self.outer.enabled and self.inner.enabled

    def reset(self) -> None:
        """Reset both loops."""
        self.outer.reset()
        self.inner.reset()

    def update(
        self,
        position_setpoint: float,
        position: float,
        velocity: float,
        dt: float,
    ) -> float:
        """Compute cascaded output.

        Args:
            position_setpoint: Target position along the axis [m]
            position: Measured position [m]
            velocity: Measured velocity [m/s]
            dt: Time step [s]

        Returns:
            Attitude setpoint from the inner loop [rad]
        """
        velocity_setpoint = self.outer.update(position_setpoint, position, dt)
        return self.inner.update(velocity_setpoint, velocity, dt)

    def set_enabled(self, enabled: bool) -> None:
        self.outer.set_enabled(enabled)
        self.inner.set_enabled(enabled)

    def set_outer_gains(self, gains: PIDGains) -> None:
        self.outer.set_gains(replace(gains, enabled=self.outer.enabled))

    def set_inner_gains(self, gains: PIDGains) -> None:
        self.inner.set_gains(replace(gains, enabled=self.inner.enabled))

    def get_outer_state(self) -> PIDState:
        return self.outer.get_state()

    def get_inner_state(self) -> PIDState:
        return self.inner.get_state()
