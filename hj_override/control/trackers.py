"""
Nominal Tracking Controllers

Controllers the intervention layer passes through while the robot is
safe. All expose get_control(x) -> u and update_setpoint(setpoint).
"""

from __future__ import annotations

from typing import List, Sequence

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..dynamics import ControlAffineDynamics, wrap_angle


class ZeroController:
    """Controller that does nothing."""

    def __init__(self, n_control: int = 1):
        self.n_control = n_control
        self.setpoint = np.zeros(2)

    def update_setpoint(self, setpoint: ArrayLike) -> None:
        self.setpoint = np.asarray(setpoint, dtype=float)

    def get_control(self, x: NDArray) -> NDArray:  # noqa: ARG002
        return np.zeros(self.n_control)


class PDController:
    """
    PD regulation of one state component to a setpoint.

        u = K_P (x_i - setpoint) + K_D ẋ_i

    The rate ẋ_i is read from the drift term, i.e. the velocity of the
    controlled component for the double integrators. Gains are negative
    so that the feedback is stabilizing.
    """

    def __init__(
        self,
        dynamics: ControlAffineDynamics,
        setpoint: float,
        index: int,
        k_p: float = -2.0,
        k_d: float = -2.0,
    ):
        """
        Initialize PD controller.

        Args:
            dynamics: Robot dynamics (for the rate of the controlled state)
            setpoint: Target value of the controlled component
            index: Which state component to regulate
            k_p: Proportional gain
            k_d: Derivative gain
        """
        self.dynamics = dynamics
        self.setpoint = float(setpoint)
        self.index = index
        self.k_p = k_p
        self.k_d = k_d
        self.last_u = 0.0

    def update_setpoint(self, setpoint: float) -> None:
        self.setpoint = float(setpoint)

    def get_control(self, x: NDArray) -> NDArray:
        x = np.asarray(x, dtype=float)
        P = self.k_p * (x[self.index] - self.setpoint)  # noqa: N806
        D = self.k_d * self.dynamics.drift(x)[self.index]  # noqa: N806
        self.last_u = P + D
        return np.array([self.last_u])


class ConcatController:
    """
    Stacks several 1-D controllers into one multi-input controller.

    Setpoint component i is routed to controller i.

    Example:
        >>> tracker = ConcatController([PDController(quad, 1.0, 0),
        ...                             PDController(quad, -4.0, 2)])
        >>> u = tracker.get_control(x)  # [u_x, u_y]
    """

    def __init__(self, controllers: Sequence):
        self.controllers: List = list(controllers)

    @property
    def setpoint(self) -> NDArray:
        return np.array([controller.setpoint for controller in self.controllers], dtype=float)

    def update_setpoint(self, setpoint: ArrayLike) -> None:
        setpoint = np.asarray(setpoint, dtype=float)
        for controller, component in zip(self.controllers, setpoint):
            controller.update_setpoint(component)

    def get_control(self, x: NDArray) -> NDArray:
        return np.array([controller.get_control(x)[0] for controller in self.controllers])


class DubinsTracker:
    """
    Naive Dubins car steering: turn at full rate towards the setpoint.

    The heading error is wrapped into (-π, π] so the car always turns the
    short way round; zero error gives zero turn rate.
    """

    def __init__(self, max_u: float, setpoint: ArrayLike):
        self.max_u = float(max_u)
        self.setpoint = np.asarray(setpoint, dtype=float)

    def update_setpoint(self, setpoint: ArrayLike) -> None:
        self.setpoint = np.asarray(setpoint, dtype=float)

    def heading_error(self, x: NDArray) -> float:
        """Current heading minus the bearing to the setpoint, wrapped."""
        track_angle = np.arctan2(self.setpoint[1] - x[1], self.setpoint[0] - x[0])
        return float(wrap_angle(x[2] - track_angle))

    def get_control(self, x: NDArray) -> NDArray:
        error = self.heading_error(np.asarray(x, dtype=float))
        if error < 0:
            return np.array([self.max_u])
        if error > 0:
            return np.array([-self.max_u])
        return np.array([0.0])
