"""Dynamics module for 6DOF quadrotor simulation.

This module provides the equations of motion and state representation
for simulating an X-configuration quadrotor.

Example:
    >>> from quadsim.dynamics import MotorCommand, RigidBodyModel
    >>>
    >>> model = RigidBodyModel()
    >>> model.update(MotorCommand.uniform(0.5), dt=0.01)
    >>> state = model.get_state()
"""

from quadsim.dynamics.rigid_body import (
    RigidBodyModel,
    rotor_forces_and_torques,
)
from quadsim.dynamics.state import (
    GRAVITY,
    KinematicState,
    MotorCommand,
    VehicleParameters,
    rotation_matrix,
    wrap_angle,
    wrap_angles,
)

__all__ = [
    # State
    "GRAVITY",
    "KinematicState",
    "MotorCommand",
    "VehicleParameters",
    # Angle utilities
    "rotation_matrix",
    "wrap_angle",
    "wrap_angles",
    # Rigid body model
    "RigidBodyModel",
    "rotor_forces_and_torques",
]
