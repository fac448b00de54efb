"""
Dynamics Module for HJ Override

Control-affine robot models ẋ = f(x) + B(x) u:

- DubinsCar: constant-speed car steering its heading (3 states)
- PlanarDoubleIntegrator: simplified planar quadrotor (4 states)
- VerticalDoubleIntegrator: simplified vertical quadrotor (2 states)

Usage:
    >>> from hj_override.dynamics import create_dynamics
    >>>
    >>> car = create_dynamics("dubins", speed=3.0)
    >>> x_next = car.step([-4.0, 3.0, 0.0], [1.0], dt=0.01)
    >>> B = car.control_matrix(x_next)
"""

from .base import ControlAffineDynamics, default_initial_state, euler_step, stack_columns, wrap_angle
from .robots import (
    DubinsCar,
    PlanarDoubleIntegrator,
    RobotKind,
    VerticalDoubleIntegrator,
    create_dynamics,
)

__all__ = [
    # Base
    "ControlAffineDynamics",
    # Robots
    "DubinsCar",
    "PlanarDoubleIntegrator",
    "RobotKind",
    "VerticalDoubleIntegrator",
    "create_dynamics",
    "default_initial_state",
    "euler_step",
    "stack_columns",
    "wrap_angle",
]
