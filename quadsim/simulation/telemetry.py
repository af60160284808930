"""Per-step telemetry records and the bounded history buffer."""

from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass

import numpy as np
from beartype import beartype

from quadsim.dynamics.state import KinematicState, MotorCommand
from quadsim.gnc.control.mixer import ControlAxes, FlightMode, ManualInputs
from quadsim.simulation.config import SetPoints

HISTORY_CAPACITY = 10_000


@beartype
@dataclass(frozen=True)
class TelemetrySample:
    """Everything recorded for one simulation step.

    Attributes:
        time: Simulated time at the start of the step [s]
        state: Vehicle state after the step (read-only arrays)
        motors: Motor command applied during the step
        outputs: Control output per axis
        errors: Control error per axis
        setpoints: Targets in effect during the step
        flight_mode: Active flight mode
        manual_inputs: Pilot inputs in effect during the step
    """
    time: float
    state: KinematicState
    motors: MotorCommand
    outputs: ControlAxes
    errors: ControlAxes
    setpoints: SetPoints
    flight_mode: FlightMode
    manual_inputs: ManualInputs


@beartype
class TelemetryHistory:
    """FIFO ring buffer of telemetry samples.

    Once ``capacity`` samples are stored, appending drops the oldest.
    """

    def __init__(self, capacity: int = HISTORY_CAPACITY) -> None:
        if capacity <= 0:
            raise ValueError(f"Capacity must be positive, got {capacity}")
        self._samples: deque[TelemetrySample] = deque(maxlen=capacity)

    def __len__(self) -> int:
        return len(self._samples)

    def __iter__(self) -> Iterator[TelemetrySample]:
        return iter(list(self._samples))

    @property
    def capacity(self) -> int:
        return self._samples.maxlen

    @property
    def latest(self) -> TelemetrySample | None:
        """Most recent sample, or None when empty."""
        return self._samples[-1] if self._samples else None

    def append(self, sample: TelemetrySample) -> None:
        self._samples.append(sample)

    def clear(self) -> None:
        self._samples.clear()

    def samples(self) -> list[TelemetrySample]:
        """Copy of the stored samples, oldest first."""
        return list(self._samples)

    def to_dataframe(self):
        """Convert to Polars DataFrame, one row per sample."""
        import polars as pl

        samples = self.samples()
        position = np.array([s.state.position for s in samples]).reshape(-1, 3)
        velocity = np.array([s.state.velocity for s in samples]).reshape(-1, 3)
        orientation = np.array([s.state.orientation for s in samples]).reshape(-1, 3)
        motors = np.array([s.motors.to_array() for s in samples]).reshape(-1, 4)

        return pl.DataFrame({
            "time": [s.time for s in samples],
            "flight_mode": [s.flight_mode.value for s in samples],
            "x": position[:, 0],
            "y": position[:, 1],
            "z": position[:, 2],
            "vx": velocity[:, 0],
            "vy": velocity[:, 1],
            "vz": velocity[:, 2],
            "roll": orientation[:, 0],
            "pitch": orientation[:, 1],
            "yaw": orientation[:, 2],
            "motor1": motors[:, 0],
            "motor2": motors[:, 1],
            "motor3": motors[:, 2],
            "motor4": motors[:, 3],
            "altitude_error": [s.errors.altitude for s in samples],
            "altitude_output": [s.outputs.altitude for s in samples],
            "setpoint_x": [float(s.setpoints.position[0]) for s in samples],
            "setpoint_y": [float(s.setpoints.position[1]) for s in samples],
            "setpoint_z": [float(s.setpoints.position[2]) for s in samples],
        })
