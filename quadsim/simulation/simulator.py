"""Fixed-timestep orchestration of the quadrotor plant and its controllers.

The orchestrator owns the rigid body model, the PID stack, the motor
mixer, the waypoint route and the telemetry history, and advances them
together one timestep at a time.

Architecture:
    Each step:
    - read the vehicle state
    - in waypoint mode, advance the route and copy the active waypoint
      into the position setpoint
    - compute control outputs and mix them into motor commands
    - integrate the rigid body model over one timestep
    - record telemetry, advance simulated time, notify observers

    An external timer drives ``tick()``, which runs at most one step per
    call once enough wall-clock time has passed. ``step()`` and ``run()``
    advance the simulation directly for batch use.

Example:
    >>> from quadsim.simulation import SimulationOrchestrator
    >>>
    >>> sim = SimulationOrchestrator()
    >>> sim.set_setpoints(position=np.array([0.0, 0.0, 2.0]))
    >>> sample = sim.run(2000)
    >>> print(f"Altitude: {sample.state.altitude:.2f} m")
"""

import logging
import time
from collections.abc import Callable
from enum import Enum
from typing import Any

import numpy as np
from beartype import beartype
from numpy.typing import NDArray
from tqdm import tqdm

from quadsim.dynamics.rigid_body import RigidBodyModel
from quadsim.dynamics.state import (
    KinematicState,
    MotorCommand,
    VehicleParameters,
    rotation_matrix,
    wrap_angle,
)
from quadsim.gnc.control.mixer import ControlAxes, ControlMixer, FlightMode, ManualInputs
from quadsim.gnc.control.pid import CascadedLoop, PIDLoop, PIDState
from quadsim.gnc.guidance.waypoints import Waypoint, WaypointSequencer
from quadsim.simulation.config import (
    ALTITUDE_OUTPUT_LIMIT,
    ATTITUDE_OUTPUT_LIMIT,
    MAX_TILT_SETPOINT,
    MAX_VELOCITY,
    YAW_OUTPUT_LIMIT,
    ControllerConfig,
    SetPoints,
    SimConfig,
)
from quadsim.simulation.telemetry import HISTORY_CAPACITY, TelemetryHistory, TelemetrySample

logger = logging.getLogger(__name__)


class SimulationEvent(Enum):
    """Events delivered to subscribers.

    STEP_COMPLETED handlers receive the new ``TelemetrySample``; RESET
    handlers receive no arguments.
    """
    STEP_COMPLETED = "step_completed"
    RESET = "reset"


# =============================================================================
# Orchestrator
# =============================================================================


@beartype
class SimulationOrchestrator:
    """Fixed-timestep quadrotor simulation with flight modes and telemetry.

    The simulation is either stopped or running. Only ``tick()`` looks at
    that flag; ``step()`` and ``run()`` always advance.

    Example:
        >>> sim = SimulationOrchestrator()
        >>> sim.set_flight_mode(FlightMode.WAYPOINT)
        >>> sim.set_waypoints([Waypoint.at(1.0, 0.0, 2.0)])
        >>> sim.start()
        >>> while sim.is_running:
        ...     sim.tick()   # from a timer or frame callback
    """

    def __init__(
        self,
        config: SimConfig | None = None,
        controller_config: ControllerConfig | None = None,
        params: VehicleParameters | None = None,
        clock: Callable[[], float] = time.perf_counter,
        history_capacity: int = HISTORY_CAPACITY,
    ) -> None:
        """Initialize the simulation at rest on the ground.

        Args:
            config: Timestep, real-time multiplier and bypass switches
            controller_config: Gains for every control axis
            params: Vehicle parameters
            clock: Wall-clock source in seconds, used by ``tick()``
            history_capacity: Maximum number of telemetry samples kept
        """
        self._config = config or SimConfig()
        self._controller_config = controller_config or ControllerConfig()
        self._model = RigidBodyModel(params)
        self._mixer = ControlMixer()
        self._clock = clock

        cfg = self._controller_config
        self._altitude = PIDLoop(cfg.altitude, (-ALTITUDE_OUTPUT_LIMIT, ALTITUDE_OUTPUT_LIMIT))
        self._roll = PIDLoop(cfg.roll, (-ATTITUDE_OUTPUT_LIMIT, ATTITUDE_OUTPUT_LIMIT))
        self._pitch = PIDLoop(cfg.pitch, (-ATTITUDE_OUTPUT_LIMIT, ATTITUDE_OUTPUT_LIMIT))
        self._yaw = PIDLoop(cfg.yaw, (-YAW_OUTPUT_LIMIT, YAW_OUTPUT_LIMIT))
        self._position_x = CascadedLoop.from_gains(
            cfg.position_x.outer, cfg.position_x.inner, MAX_VELOCITY, MAX_TILT_SETPOINT,
        )
        self._position_y = CascadedLoop.from_gains(
            cfg.position_y.outer, cfg.position_y.inner, MAX_VELOCITY, MAX_TILT_SETPOINT,
        )
        self._apply_controller_config(cfg)

        self._setpoints = SetPoints()
        self._manual = ManualInputs()
        self._mode = FlightMode.POSITION_HOLD
        self._route = WaypointSequencer()
        self._history = TelemetryHistory(history_capacity)

        self._time = 0.0
        self._running = False
        self._last_step_wall_time = 0.0

        self._subscribers: dict[SimulationEvent, list[Callable]] = {
            event: [] for event in SimulationEvent
        }
        self._update_callback: Callable[[TelemetrySample], None] | None = None
        self._reset_callback: Callable[[], None] | None = None

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def time(self) -> float:
        """Current simulation time [s]."""
        return self._time

    def start(self) -> None:
        """Start stepping from ``tick()``. No effect if already running."""
        if self._running:
            return
        self._running = True
        self._last_step_wall_time = self._clock()
        logger.info("Simulation started at t=%.3f s", self._time)

    def pause(self) -> None:
        """Stop stepping from ``tick()``. State is kept."""
        if not self._running:
            return
        self._running = False
        logger.info("Simulation paused at t=%.3f s", self._time)

    def reset(self) -> None:
        """Stop and return to the initial state.

        Zeroes the vehicle state and the simulated time, clears telemetry,
        resets every controller and rewinds the waypoint route. Setpoints,
        gains, flight mode and vehicle parameters are kept.
        """
        self._running = False
        self._model.reset()
        self._time = 0.0
        self._history.clear()
        self._reset_controllers()
        self._route.rewind()
        logger.info("Simulation reset")

        if self._reset_callback is not None:
            self._reset_callback()
        self._notify(SimulationEvent.RESET)

    def tick(self, now: float | None = None) -> bool:
        """Advance by one step if the step interval has elapsed.

        Runs at most one step per call. Wall-clock time beyond one
        interval is dropped rather than caught up.

        Args:
            now: Wall-clock time [s] (default: the configured clock)

        Returns:
            True if a step was taken
        """
        if not self._running:
            return False
        if now is None:
            now = self._clock()
        if now - self._last_step_wall_time < self._config.step_interval:
            return False
        self._last_step_wall_time = now
        self.step()
        return True

    def run(self, n_steps: int, progress: bool = False) -> TelemetrySample | None:
        """Take ``n_steps`` steps back to back.

        Args:
            n_steps: Number of steps
            progress: If True, show a tqdm progress bar

        Returns:
            The last telemetry sample, or None if no step was taken
        """
        if n_steps < 0:
            raise ValueError(f"Step count must be non-negative, got {n_steps}")

        iterator: Any = range(n_steps)
        if progress:
            iterator = tqdm(iterator, desc="Simulating", unit="step")

        sample = None
        for _ in iterator:
            sample = self.step()
        return sample

    # -------------------------------------------------------------------------
    # Step
    # -------------------------------------------------------------------------

    def step(self) -> TelemetrySample:
        """Advance the simulation by exactly one timestep.

        Returns:
            Telemetry recorded for this step
        """
        dt = self._config.timestep
        state = self._model.get_state()
        hover = self._model.get_parameters().hover_throttle

        if self._mode is FlightMode.WAYPOINT:
            self._advance_route(state)

        outputs = errors = ControlAxes()
        if self._mode is FlightMode.MANUAL:
            command = self._mixer.mix(self._mode, outputs, self._manual, hover)
        elif self._config.enable_control:
            outputs, errors = self._compute_control(state, dt)
            command = self._mixer.mix(self._mode, outputs, self._manual, hover)
        else:
            command = MotorCommand.uniform(hover)

        if self._config.enable_physics:
            self._model.update(command, dt)

        sample = TelemetrySample(
            time=self._time,
            state=self._model.get_state(),
            motors=command,
            outputs=outputs,
            errors=errors,
            setpoints=self._setpoints,
            flight_mode=self._mode,
            manual_inputs=self._manual,
        )
        self._history.append(sample)
        self._time += dt

        if self._update_callback is not None:
            self._update_callback(sample)
        self._notify(SimulationEvent.STEP_COMPLETED, sample)
        return sample

    def _advance_route(self, state: KinematicState) -> None:
        if self._route.is_finished or self._route.update(state.position):
            final = self._route.final_waypoint
            self._setpoints = self._setpoints.merged(position=final.position)
            logger.info("Route finished at waypoint %s, holding position", final.id)
            self.set_flight_mode(FlightMode.POSITION_HOLD)
            return

        active = self._route.active_waypoint
        if active is not None:
            self._setpoints = self._setpoints.merged(position=active.position)

    def _compute_control(
        self,
        state: KinematicState,
        dt: float,
    ) -> tuple[ControlAxes, ControlAxes]:
        """Run every control loop once.

        Returns:
            (outputs, errors) per axis
        """
        target = self._setpoints.position
        attitude = self._setpoints.attitude
        x, y, z = (float(v) for v in state.position)
        vx, vy, _ = (float(v) for v in state.velocity)

        altitude_out = self._altitude.update(float(target[2]), z, dt)

        if self._mode.uses_position_control:
            ux = self._position_x.update(float(target[0]), x, vx, dt)
            uy = self._position_y.update(float(target[1]), y, vy, dt)
            # World-frame tilt commands into the heading frame
            forward, left, _ = rotation_matrix(0.0, 0.0, state.yaw).T @ np.array([ux, uy, 0.0])
            pitch_target = float(forward)
            roll_target = float(-left)
        else:
            ux = uy = 0.0
            roll_target, pitch_target = float(attitude[0]), float(attitude[1])

        roll_out = self._roll.update(roll_target, state.roll, dt)
        pitch_out = self._pitch.update(pitch_target, state.pitch, dt)

        yaw_target = float(attitude[2])
        yaw_error = wrap_angle(yaw_target - state.yaw)
        yaw_out = self._yaw.update(yaw_target, yaw_target - yaw_error, dt)

        outputs = ControlAxes(
            altitude=altitude_out,
            roll=roll_out,
            pitch=pitch_out,
            yaw=yaw_out,
            position_x=ux,
            position_y=uy,
        )
        errors = ControlAxes(
            altitude=float(target[2]) - z,
            roll=roll_target - state.roll,
            pitch=pitch_target - state.pitch,
            yaw=yaw_error,
            position_x=float(target[0]) - x,
            position_y=float(target[1]) - y,
        )
        return outputs, errors

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def get_config(self) -> SimConfig:
        return self._config

    def set_config(self, **fields) -> None:
        """Merge simulation settings, e.g. ``set_config(timestep=0.005)``."""
        self._config = self._config.merged(**fields)

    def get_controller_config(self) -> ControllerConfig:
        return self._controller_config

    def set_controller_config(self, **axes) -> None:
        """Merge gains per axis. Changes reach the live loops immediately.

        Example:
            >>> sim.set_controller_config(altitude={"kp": 3.0})
            >>> sim.set_controller_config(position_x={"inner": {"ki": 0.0}})
        """
        self._apply_controller_config(self._controller_config.merged(**axes))

    def _apply_controller_config(self, cfg: ControllerConfig) -> None:
        self._controller_config = cfg
        self._altitude.set_gains(cfg.altitude)
        self._roll.set_gains(cfg.roll)
        self._pitch.set_gains(cfg.pitch)
        self._yaw.set_gains(cfg.yaw)
        for cascade, gains in ((self._position_x, cfg.position_x),
                               (self._position_y, cfg.position_y)):
            cascade.set_outer_gains(gains.outer)
            cascade.set_inner_gains(gains.inner)
            cascade.set_enabled(gains.enabled)

    def get_controller_states(self) -> dict[str, PIDState]:
        """Internal state of every PID loop, keyed by loop name."""
        return {
            "altitude": self._altitude.get_state(),
            "roll": self._roll.get_state(),
            "pitch": self._pitch.get_state(),
            "yaw": self._yaw.get_state(),
            "position_x_outer": self._position_x.get_outer_state(),
            "position_x_inner": self._position_x.get_inner_state(),
            "position_y_outer": self._position_y.get_outer_state(),
            "position_y_inner": self._position_y.get_inner_state(),
        }

    def _reset_controllers(self) -> None:
        for loop in (self._altitude, self._roll, self._pitch, self._yaw,
                     self._position_x, self._position_y):
            loop.reset()

    def get_setpoints(self) -> SetPoints:
        return self._setpoints

    def set_setpoints(
        self,
        position: NDArray[np.float64] | None = None,
        attitude: NDArray[np.float64] | None = None,
    ) -> None:
        """Replace the position and/or attitude targets."""
        self._setpoints = self._setpoints.merged(position=position, attitude=attitude)

    def get_manual_inputs(self) -> ManualInputs:
        return self._manual

    def set_manual_inputs(self, **fields: float) -> None:
        """Merge pilot inputs; values are clamped into range."""
        self._manual = self._manual.merged(**fields)

    def get_vehicle_parameters(self) -> VehicleParameters:
        return self._model.get_parameters()

    def set_vehicle_parameters(self, **fields) -> None:
        """Merge vehicle parameters, e.g. ``set_vehicle_parameters(mass=2.0)``."""
        self._model.set_parameters(**fields)

    # -------------------------------------------------------------------------
    # Flight mode
    # -------------------------------------------------------------------------

    @property
    def flight_mode(self) -> FlightMode:
        return self._mode

    def get_flight_mode(self) -> FlightMode:
        return self._mode

    def set_flight_mode(self, mode: FlightMode) -> None:
        """Switch flight mode. Any mode can follow any other.

        Entering or leaving position control resets the position cascades.
        """
        if mode is self._mode:
            return
        if mode.uses_position_control != self._mode.uses_position_control:
            self._position_x.reset()
            self._position_y.reset()
        logger.info("Flight mode %s -> %s", self._mode.value, mode.value)
        self._mode = mode

    # -------------------------------------------------------------------------
    # Waypoints
    # -------------------------------------------------------------------------

    def add_waypoint(self, waypoint: Waypoint) -> None:
        self._route.add(waypoint)

    def remove_waypoint(self, waypoint_id: str) -> bool:
        """Remove a waypoint by id. Unknown ids are ignored."""
        return self._route.remove(waypoint_id)

    def clear_waypoints(self) -> None:
        self._route.clear()

    def set_waypoints(self, waypoints: list[Waypoint]) -> None:
        """Replace the route and start from its first waypoint."""
        self._route.set(waypoints)

    def get_waypoints(self) -> list[Waypoint]:
        return self._route.waypoints

    def get_current_waypoint_index(self) -> int:
        return self._route.current_index

    # -------------------------------------------------------------------------
    # State and telemetry
    # -------------------------------------------------------------------------

    def get_drone_state(self) -> KinematicState:
        """Read-only snapshot of the vehicle state."""
        return self._model.get_state()

    def set_drone_state(self, **components: NDArray[np.float64]) -> None:
        """Overwrite state components, e.g. ``set_drone_state(orientation=...)``."""
        self._model.set_state(**components)

    def get_data_history(self) -> list[TelemetrySample]:
        return self._history.samples()

    def get_current_data(self) -> TelemetrySample | None:
        return self._history.latest

    @property
    def history(self) -> TelemetryHistory:
        return self._history

    # -------------------------------------------------------------------------
    # Observers
    # -------------------------------------------------------------------------

    def set_update_callback(self, callback: Callable[[TelemetrySample], None] | None) -> None:
        """Set the single per-step callback (None to remove)."""
        self._update_callback = callback

    def set_reset_callback(self, callback: Callable[[], None] | None) -> None:
        """Set the single reset callback (None to remove)."""
        self._reset_callback = callback

    def subscribe(self, event: SimulationEvent, handler: Callable) -> None:
        """Register a handler, called synchronously once per event."""
        self._subscribers[event].append(handler)

    def unsubscribe(self, event: SimulationEvent, handler: Callable) -> None:
        """Remove a handler. Unknown handlers are ignored."""
        if handler in self._subscribers[event]:
            self._subscribers[event].remove(handler)

    def _notify(self, event: SimulationEvent, *args) -> None:
        for handler in list(self._subscribers[event]):
            handler(*args)
