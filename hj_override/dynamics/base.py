"""
Control-Affine Dynamics

All robots share the control-affine form

    ẋ = f(x) + B(x) u

where f is the drift and the columns of B are the directions in which each
control input acts. The intervention controller relies on this structure:
the worst-case-optimal input only needs the sign of B(x)[:, i] · ∇V.

Integration is explicit forward Euler; heading-type components are wrapped
into (-π, π] after each step.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..errors import check_dimension

logger = logging.getLogger(__name__)


def wrap_angle(angle):
    """Wrap an angle (or array of angles) into (-π, π]."""
    return np.pi - np.mod(np.pi - angle, 2 * np.pi)


def euler_step(
    f: Callable[[NDArray, NDArray], NDArray],
    x: NDArray,
    u: NDArray,
    dt: float,
) -> NDArray:
    """Forward Euler: x_{k+1} = x_k + dt * f(x_k, u_k)"""
    return x + dt * f(x, u)


class ControlAffineDynamics(ABC):
    """
    Base class for control-affine robot dynamics.

    Subclasses define N_STATE, N_CONTROL, the drift and the control matrix.
    ANGLE_INDICES lists state components that are headings.
    POSITION_INDICES lists the (x, y) components used for goal tracking.
    """

    N_STATE: int = 0
    N_CONTROL: int = 0
    ANGLE_INDICES: Tuple[int, ...] = ()
    POSITION_INDICES: Tuple[int, ...] = ()

    @property
    def n_state(self) -> int:
        """State dimension."""
        return self.N_STATE

    @property
    def n_control(self) -> int:
        """Control dimension."""
        return self.N_CONTROL

    @abstractmethod
    def drift(self, x: NDArray) -> NDArray:
        """Drift term f(x) (n_state,)."""
        raise NotImplementedError

    @abstractmethod
    def control_matrix(self, x: NDArray) -> NDArray:
        """Control matrix B(x) (n_state, n_control); column i is input i's direction."""
        raise NotImplementedError

    def control_coefficient(self, x: NDArray, i: int) -> NDArray:
        """Column i of the control matrix."""
        return self.control_matrix(x)[:, i]

    def dynamics(self, x: ArrayLike, u: ArrayLike) -> NDArray:
        """
        Evaluate continuous-time dynamics: ẋ = f(x) + B(x) u

        Args:
            x: State vector (n_state,)
            u: Control vector (n_control,)

        Returns:
            State derivative (n_state,)
        """
        x = np.asarray(x, dtype=float)
        u = np.asarray(u, dtype=float).reshape(-1)
        check_dimension(x, self.N_STATE, "state")
        check_dimension(u, self.N_CONTROL, "control")
        return self.drift(x) + self.control_matrix(x) @ u

    def wrap_state(self, x: NDArray) -> NDArray:
        """Wrap heading components into (-π, π]."""
        x = np.array(x, dtype=float)
        for index in self.ANGLE_INDICES:
            wrapped = wrap_angle(x[index])
            if wrapped != x[index]:
                logger.debug("Wrapped state[%d] from %.4f to %.4f", index, x[index], wrapped)
            x[index] = wrapped
        return x

    def step(self, x: ArrayLike, u: ArrayLike, dt: float) -> NDArray:
        """
        Integrate dynamics one timestep with forward Euler.

        Args:
            x: Current state (n_state,)
            u: Control input held over the step (n_control,)
            dt: Timestep

        Returns:
            Next state (n_state,)
        """
        x = np.asarray(x, dtype=float)
        return self.wrap_state(euler_step(self.dynamics, x, u, dt))

    def position(self, x: NDArray) -> NDArray:
        """Planar position components of the state."""
        return np.asarray(x, dtype=float)[list(self.POSITION_INDICES)]

    def simulate(
        self,
        x0: ArrayLike,
        controller: Callable[[float, NDArray], NDArray],
        t_span: Tuple[float, float],
        dt: float,
    ) -> Tuple[NDArray, NDArray, NDArray]:
        """
        Simulate closed-loop trajectory.

        Args:
            x0: Initial state (n_state,)
            controller: Control law (t, x) -> u
            t_span: (t_start, t_end)
            dt: Timestep

        Returns:
            t: Time vector (N,)
            x: State trajectory (N, n_state)
            u: Control trajectory (N-1, n_control)
        """
        times = np.arange(t_span[0], t_span[1] + 0.5 * dt, dt)
        states = np.zeros((len(times), self.N_STATE))
        controls = np.zeros((max(len(times) - 1, 0), self.N_CONTROL))
        states[0] = np.asarray(x0, dtype=float)
        for k in range(len(times) - 1):
            controls[k] = controller(times[k], states[k])
            states[k + 1] = self.step(states[k], controls[k], dt)
        return times, states, controls

    def __repr__(self) -> str:
        return f"{type(self).__name__}(n_state={self.N_STATE}, n_control={self.N_CONTROL})"


def stack_columns(columns: Sequence[Sequence[float]]) -> NDArray:
    """Build a (n_state, n_control) matrix from per-control columns."""
    return np.array(columns, dtype=float).T


def default_initial_state(dynamics: ControlAffineDynamics, initial: Optional[ArrayLike] = None) -> NDArray:
    """Initial state as a float array, zeros if not given."""
    if initial is None:
        return np.zeros(dynamics.N_STATE)
    x0 = np.asarray(initial, dtype=float).reshape(-1)
    check_dimension(x0, dynamics.N_STATE, "initial state")
    return x0
