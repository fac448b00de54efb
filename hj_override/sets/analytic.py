"""
Analytic Safe Sets

Closed-form value functions for simple obstacle shapes. They are used
directly as avoid sets and collision footprints, or sampled onto a grid
(see sampling.sample_grid) to build a GridValueFunction.

Shapes:
    IntervalSet:          |x| - w on the first state component
    CircleSet:            signed distance to a circle in the (x, y) plane
    ClosestApproachSet:   circle margin along a Dubins car's straight-line course
    DoubleIntegratorSet:  braking-distance reach set for a 1-D double integrator
"""

from __future__ import annotations

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..errors import DimensionMismatchError
from .base import SafeSet, as_state


def _require_length(states: NDArray, minimum: int, name: str) -> None:
    if len(states) < minimum:
        raise DimensionMismatchError(f"{name} needs at least {minimum} state components, got {len(states)}")


class IntervalSet(SafeSet):
    """
    Interval |x_0| <= width in double-integrator state space.

    Example:
        >>> interval = IntervalSet(1.0)
        >>> interval.value([2.0, 0.0])
        1.0
    """

    def __init__(self, width: float):
        self.width = float(width)

    def value(self, state: ArrayLike) -> float:
        states = as_state(state)
        _require_length(states, 1, "IntervalSet")
        return float(abs(states[0]) - self.width)

    def gradient(self, state: ArrayLike) -> NDArray:
        states = as_state(state)
        _require_length(states, 1, "IntervalSet")
        gradient = np.zeros_like(states)
        # sign(0) == 0 at the centre
        gradient[0] = np.sign(states[0])
        return gradient

    def __repr__(self) -> str:
        return f"IntervalSet(width={self.width})"


class CircleSet(SafeSet):
    """
    Circle of given radius centred at the origin of the (x, y) plane.

    Extra state components (e.g. heading of a Dubins car) are ignored and
    receive a zero gradient entry.
    """

    def __init__(self, radius: float):
        self.radius = float(radius)

    def value(self, state: ArrayLike) -> float:
        states = as_state(state)
        _require_length(states, 2, "CircleSet")
        return float(np.hypot(states[0], states[1]) - self.radius)

    def gradient(self, state: ArrayLike) -> NDArray:
        states = as_state(state)
        _require_length(states, 2, "CircleSet")
        gradient = np.zeros_like(states)
        norm = np.hypot(states[0], states[1])
        if norm < 1e-12:
            return gradient
        gradient[0] = states[0] / norm
        gradient[1] = states[1] / norm
        return gradient

    def __repr__(self) -> str:
        return f"CircleSet(radius={self.radius})"


class ClosestApproachSet(SafeSet):
    """
    Circle avoid set for a constant-speed car with state [x, y, theta].

    The value is the circle margin at the closest approach of the current
    straight-line course:

        heading away:     |r| - radius
        heading towards:  |r x h| - radius

    with r the position relative to the centre and h = (cos theta, sin theta).
    Driving straight leaves the value unchanged while approaching and
    increases it while moving away, so the bang-bang input derived from the
    gradient never lets it decrease.

    Example:
        >>> course = ClosestApproachSet(1.0)
        >>> course.value([-3.0, 2.0, 0.0])  # passes 2 above the centre
        1.0
    """

    def __init__(self, radius: float):
        self.radius = float(radius)

    def _geometry(self, state: ArrayLike):
        states = as_state(state)
        _require_length(states, 3, "ClosestApproachSet")
        heading = np.array([np.cos(states[2]), np.sin(states[2])])
        along = states[0] * heading[0] + states[1] * heading[1]
        cross = states[0] * heading[1] - states[1] * heading[0]
        return states, heading, along, cross

    def value(self, state: ArrayLike) -> float:
        states, _, along, cross = self._geometry(state)
        if along >= 0:
            return float(np.hypot(states[0], states[1]) - self.radius)
        return float(abs(cross) - self.radius)

    def gradient(self, state: ArrayLike) -> NDArray:
        states, heading, along, cross = self._geometry(state)
        gradient = np.zeros_like(states)
        if along >= 0:
            norm = np.hypot(states[0], states[1])
            if norm < 1e-12:
                return gradient
            gradient[0] = states[0] / norm
            gradient[1] = states[1] / norm
            return gradient
        # Heading straight at the centre counts as passing on the left
        side = 1.0 if cross >= 0 else -1.0
        gradient[0] = side * heading[1]
        gradient[1] = -side * heading[0]
        gradient[2] = side * along
        return gradient

    def __repr__(self) -> str:
        return f"ClosestApproachSet(radius={self.radius})"


class DoubleIntegratorSet(SafeSet):
    """
    Analytic avoid set for a double integrator p'' = u - d.

    State: [p, v]. The obstacle occupies |p - obstacle_position| <= half_length.
    When the system is heading towards the obstacle the stopping distance
    v^2 / (2 * leeway) is subtracted from the margin, where leeway is the
    control authority left after the worst-case disturbance.

    Args:
        leeway: max control magnitude minus max disturbance magnitude
        obstacle_position: obstacle centre along p
        half_length: obstacle half extent along p
    """

    def __init__(
        self,
        leeway: float = 1.0,
        obstacle_position: float = 0.0,
        half_length: float = 1.0,
    ):
        if leeway <= 0:
            raise ValueError(f"leeway must be positive, got {leeway}")
        self.leeway = float(leeway)
        self.obstacle_position = float(obstacle_position)
        self.half_length = float(half_length)

    @property
    def n_dims(self) -> int:
        return 2

    def _split(self, state: ArrayLike):
        states = as_state(state)
        if len(states) != 2:
            raise DimensionMismatchError(f"DoubleIntegratorSet expects state [p, v], got length {len(states)}")
        return states[0], states[1]

    def _moving_away(self, p: float, v: float) -> bool:
        return v * (self.obstacle_position - p) < 0

    def value(self, state: ArrayLike) -> float:
        p, v = self._split(state)
        margin = abs(p - self.obstacle_position) - self.half_length
        if self._moving_away(p, v):
            return float(margin)
        return float(margin - v**2 / (2.0 * self.leeway))

    def gradient(self, state: ArrayLike) -> NDArray:
        """
        Gradient of value(), ignoring the impulse from the case switch.

        Returns:
            [dV/dp, dV/dv]
        """
        p, v = self._split(state)
        dVdp = -1.0 if p - self.obstacle_position < 0 else 1.0  # noqa: N806
        dVdv = 0.0 if self._moving_away(p, v) else -v / self.leeway  # noqa: N806
        return np.array([dVdp, dVdv])

    def __repr__(self) -> str:
        return (
            f"DoubleIntegratorSet(leeway={self.leeway}, "
            f"obstacle_position={self.obstacle_position}, half_length={self.half_length})"
        )
