"""
Obstacles

An obstacle places a safe set (or palette of safe sets) at a position in
the global state space. Queries translate the global state into the
obstacle frame by subtracting the offset, then delegate.

Each obstacle also owns a collision footprint: a separate, usually
tighter set used only to detect physical contact, never to trigger the
safety override.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..errors import DimensionMismatchError
from ..sets import CircleSet, CoupledPairSet, GridValueFunction, IntervalSet, SafeSet, SafeSetPalette, as_state

AvoidSets = Union[SafeSet, SafeSetPalette]

# Collision footprint of a round obstacle relative to its nominal radius
ROUND_COLLISION_SCALE = 0.95


class Obstacle:
    """
    Safe set translated to a position in the global state space.

    The offset has the full state dimension, with zeros in the
    non-positional components.

    Example:
        >>> obstacle = Obstacle([2.0, 1.0, 0.0], CircleSet(1.0), collision_set=CircleSet(0.9))
        >>> obstacle.value(0, [4.0, 1.0, 0.3])
        1.0
    """

    def __init__(
        self,
        offset: ArrayLike,
        avoid_sets: AvoidSets,
        collision_set: Optional[SafeSet] = None,
    ):
        """
        Initialize obstacle.

        Args:
            offset: Obstacle position in state coordinates (n,)
            avoid_sets: Safe set or palette in obstacle-relative coordinates
            collision_set: Contact footprint in obstacle-relative coordinates;
                defaults to the avoid set itself (set id 0 for palettes)
        """
        self.offset = as_state(offset)
        self.offset.setflags(write=False)
        self.avoid_sets = avoid_sets
        if collision_set is None:
            collision_set = avoid_sets.get(0) if isinstance(avoid_sets, SafeSetPalette) else avoid_sets
        self.collision_set = collision_set

    @property
    def position(self) -> NDArray:
        """Planar (x, y) position of the obstacle."""
        return self.offset[:2]

    def is_ready(self) -> bool:
        return self.avoid_sets.is_ready() and self.collision_set.is_ready()

    def offset_states(self, state: ArrayLike) -> NDArray:
        """Transform a global state into obstacle-relative coordinates."""
        states = as_state(state)
        if len(states) != len(self.offset):
            raise DimensionMismatchError(
                f"Obstacle offset has {len(self.offset)} components, got state of length {len(states)}"
            )
        return states - self.offset

    def _avoid_set(self, set_id: int) -> SafeSet:
        if isinstance(self.avoid_sets, SafeSetPalette):
            return self.avoid_sets.get(set_id)
        return self.avoid_sets

    def value(self, set_id: int, state: ArrayLike) -> float:
        """Safety value of the selected avoid set at a global state."""
        return self._avoid_set(set_id).value(self.offset_states(state))

    def gradient(self, set_id: int, state: ArrayLike) -> NDArray:
        """Gradient of the selected avoid set at a global state."""
        return self._avoid_set(set_id).gradient(self.offset_states(state))

    def collision_value(self, state: ArrayLike) -> float:
        """Collision footprint value at a global state (<= 0 means contact)."""
        return self.collision_set.value(self.offset_states(state))

    def grid_slice(
        self,
        set_id: int,
        state: ArrayLike,
        axis_x: int,
        axis_y: int,
    ) -> Tuple[NDArray, NDArray, NDArray]:
        """
        Stored grid values around this obstacle in global coordinates.

        Only available when the selected avoid set is a GridValueFunction.
        """
        avoid_set = self._avoid_set(set_id)
        if not isinstance(avoid_set, GridValueFunction):
            raise TypeError(f"grid_slice needs a GridValueFunction, got {type(avoid_set).__name__}")
        xs, ys, values = avoid_set.grid_slice(self.offset_states(state), axis_x, axis_y)
        return xs + self.offset[axis_x], ys + self.offset[axis_y], values

    def __repr__(self) -> str:
        return f"{type(self).__name__}(offset={self.offset.tolist()})"


class RoundObstacle(Obstacle):
    """
    Circular obstacle for the Dubins car (state [x, y, theta]).

    The drawn radius is trimmed by the car radius, since the avoid set
    already accounts for the car's extent; contact is detected against
    a circle of 95% of the nominal radius.
    """

    def __init__(
        self,
        x: float,
        y: float,
        radius: float,
        avoid_sets: AvoidSets,
        radius_trim: float = 0.0,
        n_state: int = 3,
    ):
        offset = np.zeros(n_state)
        offset[:2] = [x, y]
        super().__init__(offset, avoid_sets, CircleSet(radius * ROUND_COLLISION_SCALE))
        self.radius = float(radius)
        self.trimmed_radius = float(radius - radius_trim)


class BoxObstacle(Obstacle):
    """
    Rectangular obstacle for the planar double integrator
    (state [x, v_x, y, v_y]).

    The collision footprint is the box |x| <= half_width, |y| <= half_height
    expressed as a coupled pair of intervals.
    """

    def __init__(
        self,
        x: float,
        y: float,
        half_width: float,
        half_height: float,
        avoid_sets: AvoidSets,
    ):
        super().__init__(
            [x, 0.0, y, 0.0],
            avoid_sets,
            CoupledPairSet(IntervalSet(half_width), IntervalSet(half_height)),
        )
        self.half_width = float(half_width)
        self.half_height = float(half_height)

    @property
    def position(self) -> NDArray:
        return self.offset[[0, 2]]

    def corners(self, pad: float = 0.0) -> Sequence[float]:
        """(left, bottom, right, top) of the box grown by pad on every side."""
        x, y = self.offset[0], self.offset[2]
        return (
            x - self.half_width - pad,
            y - self.half_height - pad,
            x + self.half_width + pad,
            y + self.half_height + pad,
        )
