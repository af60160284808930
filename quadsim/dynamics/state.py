"""Kinematic state, motor commands and vehicle parameters for a quadrotor.

The state vector contains:
- Position (3): [x, y, z] in the world frame, z positive up [m]
- Velocity (3): [vx, vy, vz] in the world frame [m/s]
- Orientation (3): [roll, pitch, yaw] Euler angles (ZYX sequence) [rad]
- Angular velocity (3): [p, q, r] body rates [rad/s]

Total: 12 state variables

Conventions:
- Motors are ordered front-left, front-right, rear-left, rear-right
  (X configuration).
- A positive roll torque lifts the right-hand motors (2 and 4).
- A positive pitch torque lifts the front motors (1 and 2).
- A positive yaw torque comes from the left-hand motors (1 and 3).
- Euler angles are kept in the half-open interval (-pi, pi].
"""

from dataclasses import dataclass, field

import numpy as np
from beartype import beartype
from numpy.typing import NDArray

GRAVITY = 9.81  # [m/s^2]


# =============================================================================
# Angle Utilities
# =============================================================================


@beartype
def wrap_angle(angle: float) -> float:
    """Wrap an angle into (-pi, pi].

    Args:
        angle: Angle [rad], any magnitude

    Returns:
        Equivalent angle in (-pi, pi]
    """
    wrapped = (angle + np.pi) % (2.0 * np.pi) - np.pi
    if wrapped <= -np.pi:
        wrapped = np.pi
    return float(wrapped)


@beartype
def wrap_angles(angles: NDArray[np.float64]) -> NDArray[np.float64]:
    """Wrap every component of an angle vector into (-pi, pi]."""
    return np.array([wrap_angle(float(a)) for a in angles])


@beartype
def rotation_matrix(roll: float, pitch: float, yaw: float) -> NDArray[np.float64]:
    """Body-to-world rotation matrix for ZYX (yaw-pitch-roll) Euler angles.

    Args:
        roll: Rotation about body X [rad]
        pitch: Rotation about body Y [rad]
        yaw: Rotation about world Z [rad]

    Returns:
        3x3 matrix R such that v_world = R @ v_body
    """
    cr, sr = np.cos(roll), np.sin(roll)
    cp, sp = np.cos(pitch), np.sin(pitch)
    cy, sy = np.cos(yaw), np.sin(yaw)

    return np.array([
        [cp * cy, sr * sp * cy - cr * sy, cr * sp * cy + sr * sy],
        [cp * sy, sr * sp * sy + cr * cy, cr * sp * sy - sr * cy],
        [-sp, sr * cp, cr * cp],
    ])


def _frozen(arr: NDArray[np.float64]) -> NDArray[np.float64]:
    out = np.array(arr, dtype=np.float64)
    out.flags.writeable = False
    return out


# =============================================================================
# State Classes
# =============================================================================


@beartype
@dataclass(frozen=True)
class KinematicState:
    """12-element rigid body state of the vehicle.

    Fields cannot be reassigned; derive a changed state with
    ``dataclasses.replace``.

    Attributes:
        position: [x, y, z] world position [m]
        velocity: [vx, vy, vz] world velocity [m/s]
        orientation: [roll, pitch, yaw] Euler angles [rad]
        angular_velocity: [p, q, r] body angular rates [rad/s]
    """
    position: NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))
    velocity: NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))
    orientation: NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))
    angular_velocity: NDArray[np.float64] = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        """Validate shapes."""
        for name in ("position", "velocity", "orientation", "angular_velocity"):
            value = getattr(self, name)
            if value.shape != (3,):
                raise ValueError(f"{name} must be shape (3,), got {value.shape}")

    @classmethod
    def zeros(cls) -> "KinematicState":
        """Vehicle at the origin, level and at rest."""
        return cls()

    def to_array(self) -> NDArray[np.float64]:
        """Convert state to flat array for integration."""
        return np.concatenate([
            self.position,
            self.velocity,
            self.orientation,
            self.angular_velocity,
        ])

    @classmethod
    def from_array(cls, arr: NDArray[np.float64]) -> "KinematicState":
        """Create state from flat array."""
        return cls(
            position=np.array(arr[0:3]),
            velocity=np.array(arr[3:6]),
            orientation=np.array(arr[6:9]),
            angular_velocity=np.array(arr[9:12]),
        )

    def copy(self) -> "KinematicState":
        """Create a copy with its own writeable arrays."""
        return KinematicState(
            position=self.position.copy(),
            velocity=self.velocity.copy(),
            orientation=self.orientation.copy(),
            angular_velocity=self.angular_velocity.copy(),
        )

    def snapshot(self) -> "KinematicState":
        """Create a copy whose arrays are read-only."""
        return KinematicState(
            position=_frozen(self.position),
            velocity=_frozen(self.velocity),
            orientation=_frozen(self.orientation),
            angular_velocity=_frozen(self.angular_velocity),
        )

    @property
    def roll(self) -> float:
        return float(self.orientation[0])

    @property
    def pitch(self) -> float:
        return float(self.orientation[1])

    @property
    def yaw(self) -> float:
        return float(self.orientation[2])

    @property
    def altitude(self) -> float:
        """Height above the ground plane [m]."""
        return float(self.position[2])

    @property
    def speed(self) -> float:
        """Speed magnitude [m/s]."""
        return float(np.linalg.norm(self.velocity))


@beartype
@dataclass(frozen=True)
class MotorCommand:
    """Normalized thrust fractions for the four rotors.

    Attributes:
        motor1: Front-left [0-1]
        motor2: Front-right [0-1]
        motor3: Rear-left [0-1]
        motor4: Rear-right [0-1]
    """
    motor1: float = 0.0
    motor2: float = 0.0
    motor3: float = 0.0
    motor4: float = 0.0

    @classmethod
    def uniform(cls, level: float) -> "MotorCommand":
        """Same fraction on every motor, clamped to [0, 1]."""
        level = min(max(level, 0.0), 1.0)
        return cls(level, level, level, level)

    @classmethod
    def from_array(cls, values: NDArray[np.float64]) -> "MotorCommand":
        """Create a command from 4 values, clamping each to [0, 1]."""
        clipped = np.clip(values, 0.0, 1.0)
        return cls(*(float(v) for v in clipped))

    def to_array(self) -> NDArray[np.float64]:
        return np.array([self.motor1, self.motor2, self.motor3, self.motor4])


# =============================================================================
# Vehicle Parameters
# =============================================================================


@beartype
@dataclass(frozen=True)
class VehicleParameters:
    """Physical parameters of the quadrotor.

    Attributes:
        mass: Vehicle mass [kg]
        arm_length: Distance from center to each rotor [m]
        inertia: Diagonal of the inertia tensor (Ixx, Iyy, Izz) [kg*m^2]
        drag_coeff: Quadratic drag coefficient [N/(m/s)^2]
        max_thrust: Maximum thrust per motor [N]
        thrust_to_torque: Reaction torque per newton of rotor thrust [m]
    """
    mass: float = 1.5
    arm_length: float = 0.25
    inertia: tuple[float, float, float] = (0.0347563, 0.0347563, 0.0577)
    drag_coeff: float = 0.01
    max_thrust: float = 15.0
    thrust_to_torque: float = 0.016

    def __post_init__(self) -> None:
        """Validate physical ranges."""
        values = (self.mass, self.arm_length, *self.inertia, self.drag_coeff,
                  self.max_thrust, self.thrust_to_torque)
        if not all(np.isfinite(v) for v in values):
            raise ValueError("Vehicle parameters must be finite")
        if self.mass <= 0:
            raise ValueError(f"Mass must be positive, got {self.mass}")
        if min(self.inertia) <= 0:
            raise ValueError(f"Inertia must be positive, got {self.inertia}")
        if self.max_thrust <= 0:
            raise ValueError(f"Max thrust must be positive, got {self.max_thrust}")
        if self.arm_length < 0 or self.drag_coeff < 0 or self.thrust_to_torque < 0:
            raise ValueError("Arm length, drag and torque ratio must be non-negative")

    @property
    def weight(self) -> float:
        """Gravitational force on the vehicle [N]."""
        return self.mass * GRAVITY

    @property
    def hover_throttle(self) -> float:
        """Per-motor fraction whose total thrust equals the weight."""
        return self.weight / (4.0 * self.max_thrust)

    @property
    def thrust_to_weight(self) -> float:
        """Maximum thrust-to-weight ratio [-]."""
        return 4.0 * self.max_thrust / self.weight
