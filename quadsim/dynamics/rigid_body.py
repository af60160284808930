"""6DOF rigid body equations of motion for an X-configuration quadrotor.

Computes state derivatives from the four motor commands and advances the
kinematic state by one fixed timestep.

The equations use:
- Newton's second law for translational motion: F = m * a
- Euler's equations for rotational motion: M = I * alpha + omega x (I * omega)
- ZYX Euler angle rates from body rates

Forces in the world frame (z up):
- Rotor thrust along body +Z, rotated by the ZYX Euler rotation matrix
- Gravity: -m * g along world Z
- Quadratic drag: magnitude c * |v|^2, opposing the velocity

Integration is classical RK4 with the motor command held constant over
the step. The stage arithmetic is compiled with numba.

Example:
    >>> from quadsim.dynamics import MotorCommand, RigidBodyModel
    >>>
    >>> model = RigidBodyModel()
    >>> hover = model.get_parameters().hover_throttle
    >>> model.update(MotorCommand.uniform(hover + 0.1), dt=0.01)
    >>> climb_rate = model.get_state().velocity[2]
"""

import dataclasses

import numpy as np
from beartype import beartype
from numba import njit
from numpy.typing import NDArray

from quadsim.dynamics.state import (
    GRAVITY,
    KinematicState,
    MotorCommand,
    VehicleParameters,
    wrap_angle,
    wrap_angles,
)

SQRT2 = np.sqrt(2.0)
MIN_COS_PITCH = 1e-6


# =============================================================================
# Numba-Optimized Integration
# =============================================================================


@njit(cache=True, fastmath=True)
def _state_derivative(
    y: np.ndarray,
    thrust: float,
    tau_x: float, tau_y: float, tau_z: float,
    mass: float,
    drag_coeff: float,
    Ixx: float, Iyy: float, Izz: float,
    g: float,
) -> np.ndarray:
    """Compute the 12-element state derivative in one numba function."""
    dy = np.empty(12)

    vx, vy, vz = y[3], y[4], y[5]
    roll, pitch, yaw = y[6], y[7], y[8]
    p, q, r = y[9], y[10], y[11]

    cr, sr = np.cos(roll), np.sin(roll)
    cp, sp = np.cos(pitch), np.sin(pitch)
    cy, sy = np.cos(yaw), np.sin(yaw)

    # Thrust along body Z, third column of the body-to-world matrix
    fx = (cr*sp*cy + sr*sy) * thrust
    fy = (cr*sp*sy - sr*cy) * thrust
    fz = cr*cp * thrust - mass * g

    # Quadratic drag: -c * |v|^2 * v_hat = -c * |v| * v
    speed = np.sqrt(vx*vx + vy*vy + vz*vz)
    fx -= drag_coeff * speed * vx
    fy -= drag_coeff * speed * vy
    fz -= drag_coeff * speed * vz

    # Position derivatives = velocity
    dy[0] = vx
    dy[1] = vy
    dy[2] = vz

    dy[3] = fx / mass
    dy[4] = fy / mass
    dy[5] = fz / mass

    # Body rates to ZYX Euler angle rates; cos(pitch) floored near gimbal lock
    if abs(cp) < MIN_COS_PITCH:
        cp = MIN_COS_PITCH if cp >= 0.0 else -MIN_COS_PITCH
    dy[6] = p + (q*sr + r*cr) * sp / cp
    dy[7] = q*cr - r*sr
    dy[8] = (q*sr + r*cr) / cp

    # Euler equations, diagonal inertia
    dy[9] = (tau_x + (Iyy - Izz) * q * r) / Ixx
    dy[10] = (tau_y + (Izz - Ixx) * r * p) / Iyy
    dy[11] = (tau_z + (Ixx - Iyy) * p * q) / Izz

    return dy


@njit(cache=True, fastmath=True)
def _rk4_step_core(
    y: np.ndarray,
    thrust: float,
    tau_x: float, tau_y: float, tau_z: float,
    mass: float,
    drag_coeff: float,
    Ixx: float, Iyy: float, Izz: float,
    g: float,
    dt: float,
) -> np.ndarray:
    """Numba-optimized RK4 integration step with constant inputs."""
    h = dt / 2

    k1 = _state_derivative(y, thrust, tau_x, tau_y, tau_z,
                           mass, drag_coeff, Ixx, Iyy, Izz, g)
    k2 = _state_derivative(y + h*k1, thrust, tau_x, tau_y, tau_z,
                           mass, drag_coeff, Ixx, Iyy, Izz, g)
    k3 = _state_derivative(y + h*k2, thrust, tau_x, tau_y, tau_z,
                           mass, drag_coeff, Ixx, Iyy, Izz, g)
    k4 = _state_derivative(y + dt*k3, thrust, tau_x, tau_y, tau_z,
                           mass, drag_coeff, Ixx, Iyy, Izz, g)

    return y + (dt / 6.0) * (k1 + 2.0*k2 + 2.0*k3 + k4)


# =============================================================================
# Rotor Forces
# =============================================================================


@beartype
def rotor_forces_and_torques(
    command: MotorCommand,
    params: VehicleParameters,
) -> tuple[float, NDArray[np.float64]]:
    """Convert motor fractions into total thrust and body torques.

    Args:
        command: Motor thrust fractions (FL, FR, RL, RR)
        params: Vehicle parameters

    Returns:
        (total thrust [N], [roll, pitch, yaw] torque [N*m])
    """
    f1, f2, f3, f4 = command.to_array() * params.max_thrust
    arm = params.arm_length / SQRT2

    thrust = f1 + f2 + f3 + f4
    roll_torque = arm * (f2 + f4 - f1 - f3)
    pitch_torque = arm * (f1 + f2 - f3 - f4)
    # Rotor reaction: left pair (FL, RL) against right pair (FR, RR)
    yaw_torque = params.thrust_to_torque * (f1 + f3 - f2 - f4)

    return float(thrust), np.array([roll_torque, pitch_torque, yaw_torque])


# =============================================================================
# Rigid Body Model
# =============================================================================


@beartype
class RigidBodyModel:
    """Quadrotor plant: motor commands and timestep in, next state out.

    Owns the vehicle parameters and the kinematic state. Has no knowledge
    of control or scheduling.

    Example:
        >>> model = RigidBodyModel(params=VehicleParameters(mass=2.0))
        >>> model.set_state(position=np.array([0.0, 0.0, 5.0]))
        >>> model.update(MotorCommand.uniform(0.0), dt=0.01)
    """

    def __init__(
        self,
        params: VehicleParameters | None = None,
        initial_state: KinematicState | None = None,
    ) -> None:
        """Initialize the model.

        Args:
            params: Vehicle parameters (default: 1.5 kg trainer quad)
            initial_state: Starting state (default: zero state)
        """
        self._params = params or VehicleParameters()
        self._state = initial_state.copy() if initial_state else KinematicState.zeros()

    # -------------------------------------------------------------------------
    # State access
    # -------------------------------------------------------------------------

    def get_state(self) -> KinematicState:
        """Get a read-only snapshot of the current state."""
        return self._state.snapshot()

    def set_state(
        self,
        state: KinematicState | None = None,
        position: NDArray[np.float64] | None = None,
        velocity: NDArray[np.float64] | None = None,
        orientation: NDArray[np.float64] | None = None,
        angular_velocity: NDArray[np.float64] | None = None,
    ) -> None:
        """Restore a snapshot and/or overwrite individual components.

        Components not given keep their current value. Orientation is
        wrapped into (-pi, pi].
        """
        changes = {
            name: np.array(value, dtype=np.float64)
            for name, value in (
                ("position", position),
                ("velocity", velocity),
                ("orientation", orientation),
                ("angular_velocity", angular_velocity),
            )
            if value is not None
        }
        new_state = dataclasses.replace((state or self._state).copy(), **changes)
        self._state = dataclasses.replace(
            new_state, orientation=wrap_angles(new_state.orientation),
        )

    def reset(self) -> None:
        """Return to the zero state (parameters are kept)."""
        self._state = KinematicState.zeros()

    # -------------------------------------------------------------------------
    # Parameters
    # -------------------------------------------------------------------------

    def get_parameters(self) -> VehicleParameters:
        return self._params

    def set_parameters(self, params: VehicleParameters | None = None, **changes) -> None:
        """Replace parameters wholesale and/or merge individual fields."""
        base = params or self._params
        self._params = dataclasses.replace(base, **changes) if changes else base

    # -------------------------------------------------------------------------
    # Dynamics
    # -------------------------------------------------------------------------

    def derivatives(self, command: MotorCommand) -> NDArray[np.float64]:
        """State derivative at the current state for a motor command.

        Returns:
            12-element array ordered like ``KinematicState.to_array``
        """
        thrust, torque = rotor_forces_and_torques(command, self._params)
        Ixx, Iyy, Izz = self._params.inertia
        return _state_derivative(
            self._state.to_array(),
            thrust, torque[0], torque[1], torque[2],
            self._params.mass, self._params.drag_coeff,
            Ixx, Iyy, Izz, GRAVITY,
        )

    def update(self, command: MotorCommand, dt: float) -> None:
        """Propagate the state by one timestep.

        Args:
            command: Motor thrust fractions, held constant over the step
            dt: Timestep [s], must be positive
        """
        if not dt > 0:
            raise ValueError(f"Timestep must be positive, got {dt}")

        thrust, torque = rotor_forces_and_torques(command, self._params)
        Ixx, Iyy, Izz = self._params.inertia

        y = _rk4_step_core(
            self._state.to_array(),
            thrust, torque[0], torque[1], torque[2],
            self._params.mass, self._params.drag_coeff,
            Ixx, Iyy, Izz, GRAVITY,
            dt,
        )

        # Ground contact: no penetration, no bounce
        if y[2] < 0.0:
            y[2] = 0.0
            y[5] = max(y[5], 0.0)

        for i in (6, 7, 8):
            y[i] = wrap_angle(float(y[i]))

        self._state = KinematicState.from_array(y)
