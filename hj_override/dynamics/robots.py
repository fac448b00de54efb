"""
Robot Dynamics Models

State layouts:
    DubinsCar:                 [x, y, θ]        u = [turn rate]
    PlanarDoubleIntegrator:    [x, v_x, y, v_y] u = [a_x, a_y]
    VerticalDoubleIntegrator:  [z, v_z]         u = [a_z]

The double integrators are simplified quadrotor models; the Dubins car
moves at constant speed and steers.
"""

from __future__ import annotations

from enum import Enum
from typing import Union

import numpy as np
from numpy.typing import NDArray

from .base import ControlAffineDynamics, stack_columns


class RobotKind(Enum):
    """Available robot models."""

    DUBINS = "dubins"
    PLANAR_DOUBLE_INTEGRATOR = "planar_double_integrator"
    VERTICAL_DOUBLE_INTEGRATOR = "vertical_double_integrator"


class DubinsCar(ControlAffineDynamics):
    """
    Constant-speed Dubins car.

    Example:
        >>> car = DubinsCar(speed=3.0)
        >>> x_next = car.step([-4.0, 3.0, 0.0], [1.0], dt=0.01)
    """

    N_STATE = 3
    N_CONTROL = 1
    ANGLE_INDICES = (2,)
    POSITION_INDICES = (0, 1)

    def __init__(self, speed: float = 3.0):
        self.speed = float(speed)

    def drift(self, x: NDArray) -> NDArray:
        return np.array([self.speed * np.cos(x[2]), self.speed * np.sin(x[2]), 0.0])

    def control_matrix(self, x: NDArray) -> NDArray:
        return stack_columns([[0.0, 0.0, 1.0]])

    def __repr__(self) -> str:
        return f"DubinsCar(speed={self.speed})"


class PlanarDoubleIntegrator(ControlAffineDynamics):
    """Decoupled double integrators along x and y."""

    N_STATE = 4
    N_CONTROL = 2
    POSITION_INDICES = (0, 2)

    def drift(self, x: NDArray) -> NDArray:
        return np.array([x[1], 0.0, x[3], 0.0])

    def control_matrix(self, x: NDArray) -> NDArray:
        return stack_columns(
            [
                [0.0, 1.0, 0.0, 0.0],
                [0.0, 0.0, 0.0, 1.0],
            ]
        )


class VerticalDoubleIntegrator(ControlAffineDynamics):
    """Double integrator along the vertical axis only."""

    N_STATE = 2
    N_CONTROL = 1
    POSITION_INDICES = (0,)

    def drift(self, x: NDArray) -> NDArray:
        return np.array([x[1], 0.0])

    def control_matrix(self, x: NDArray) -> NDArray:
        return stack_columns([[0.0, 1.0]])


def create_dynamics(kind: Union[str, RobotKind], **kwargs) -> ControlAffineDynamics:
    """
    Factory function to create robot dynamics.

    Args:
        kind: "dubins", "planar_double_integrator" or "vertical_double_integrator"
        **kwargs: Model parameters (e.g. speed for the Dubins car)

    Returns:
        Dynamics instance
    """
    try:
        kind = RobotKind(kind)
    except ValueError:
        raise ValueError(f"Unknown robot kind: {kind}") from None

    if kind == RobotKind.DUBINS:
        return DubinsCar(**kwargs)
    elif kind == RobotKind.PLANAR_DOUBLE_INTEGRATOR:
        return PlanarDoubleIntegrator(**kwargs)
    else:
        return VerticalDoubleIntegrator(**kwargs)
