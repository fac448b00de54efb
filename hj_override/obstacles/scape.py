"""
Obstaclescapes

The obstaclescape is the union of all obstacles' safe sets: its value is
the minimum over the obstacles currently taken into account, and its
gradient is the gradient of the obstacle attaining that minimum.

Per-obstacle flags:
    destroyed:   permanently removed (cleared obstacle)
    undetected:  transiently invisible to the robot's sensors

Eligibility:
    value / gradient:  not destroyed and not undetected
    collision checks:  not destroyed and undetected

Collisions are only checked against undetected obstacles: a robot is
expected to collide only with hazards its safety layer cannot see.

MaskedObstaclescape adds partial observability: an independently sampled
detection mask that is pushed into the wrapped scape before every query.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..errors import DimensionMismatchError
from ..sets import as_state
from .obstacle import Obstacle

logger = logging.getLogger(__name__)

# Value reported when no obstacle is eligible. Not a distance, just "far".
SAFE_SENTINEL = 100.0

# Probability that an obstacle is detected when a mask is resampled
DEFAULT_DETECTION_PROBABILITY = 0.8


class Obstaclescape:
    """
    Union of a sequence of obstacles with destroyed / undetected flags.

    Example:
        >>> scape = Obstaclescape([Obstacle([0, 0], CircleSet(1.0)),
        ...                        Obstacle([5, 5], CircleSet(1.0))])
        >>> scape.dominant_obstacle(0, [0.1, 0.1])
        (0, -0.858...)
    """

    def __init__(self, obstacles: Sequence[Obstacle]):
        self.obstacles: List[Obstacle] = list(obstacles)
        dims = {len(obstacle.offset) for obstacle in self.obstacles}
        if len(dims) > 1:
            raise DimensionMismatchError(f"Obstacle offsets disagree on state dimension: {sorted(dims)}")
        self.destroyed: List[bool] = [False] * len(self.obstacles)
        self.undetected: List[bool] = [False] * len(self.obstacles)

    def __len__(self) -> int:
        return len(self.obstacles)

    def is_ready(self) -> bool:
        return all(obstacle.is_ready() for obstacle in self.obstacles)

    # =========================================================================
    # Flags
    # =========================================================================

    def destroy(self, index: int) -> None:
        """Permanently remove an obstacle from all queries."""
        self.destroyed[index] = True
        logger.info("Obstacle %d destroyed", index)

    def set_undetected(self, mask: Sequence[bool]) -> None:
        """Replace the undetected flags (one per obstacle)."""
        if len(mask) != len(self.obstacles):
            raise DimensionMismatchError(f"Expected {len(self.obstacles)} undetected flags, got {len(mask)}")
        self.undetected = [bool(flag) for flag in mask]

    def is_avoided(self, index: int) -> bool:
        """Whether obstacle `index` takes part in value / gradient queries."""
        return not self.destroyed[index] and not self.undetected[index]

    def is_collidable(self, index: int) -> bool:
        """Whether obstacle `index` takes part in collision checks."""
        return not self.destroyed[index] and self.undetected[index]

    # =========================================================================
    # Queries
    # =========================================================================

    def dominant_obstacle(self, set_id: int, state: ArrayLike) -> Tuple[Optional[int], float]:
        """
        Find the eligible obstacle with the lowest safety value.

        Ties go to the obstacle that comes first.

        Returns:
            index: Dominant obstacle, or None if no obstacle is eligible
            value: Its safety value, or SAFE_SENTINEL
        """
        states = as_state(state)
        dominant: Optional[int] = None
        min_value = SAFE_SENTINEL
        for index, obstacle in enumerate(self.obstacles):
            if not self.is_avoided(index):
                continue
            value = obstacle.value(set_id, states)
            if dominant is None or value < min_value:
                dominant = index
                min_value = value
        return dominant, min_value

    def value(self, set_id: int, state: ArrayLike) -> float:
        """Union safety value (minimum over eligible obstacles)."""
        _, value = self.dominant_obstacle(set_id, state)
        return value

    def gradient(self, set_id: int, state: ArrayLike) -> NDArray:
        """Gradient of the dominant obstacle; zero if none is eligible."""
        states = as_state(state)
        dominant, _ = self.dominant_obstacle(set_id, states)
        if dominant is None:
            return np.zeros_like(states)
        return self.obstacles[dominant].gradient(set_id, states)

    def collision_value(self, state: ArrayLike) -> Tuple[float, Optional[int]]:
        """
        Lowest collision footprint value over undetected, intact obstacles.

        Returns:
            value: Minimum footprint value, or SAFE_SENTINEL
            index: Obstacle attaining it, or None
        """
        states = as_state(state)
        closest: Optional[int] = None
        min_value = SAFE_SENTINEL
        for index, obstacle in enumerate(self.obstacles):
            if not self.is_collidable(index):
                continue
            value = obstacle.collision_value(states)
            if closest is None or value < min_value:
                closest = index
                min_value = value
        return min_value, closest

    def grid_slices(
        self,
        set_id: int,
        state: ArrayLike,
        axis_x: int,
        axis_y: int,
    ) -> List[Tuple[NDArray, NDArray, NDArray]]:
        """Grid slices (global coordinates) of every avoided obstacle."""
        return [
            obstacle.grid_slice(set_id, state, axis_x, axis_y)
            for index, obstacle in enumerate(self.obstacles)
            if self.is_avoided(index)
        ]

    def __repr__(self) -> str:
        return (
            f"Obstaclescape(n={len(self.obstacles)}, "
            f"destroyed={sum(self.destroyed)}, undetected={sum(self.undetected)})"
        )


class MaskedObstaclescape:
    """
    Obstaclescape with a randomly sampled detection mask.

    Each obstacle is independently detected with probability
    detection_probability. The mask is resampled only on request
    (e.g. when the robot reaches a goal) and written into the wrapped
    scape's undetected flags before every query.

    Example:
        >>> masked = MaskedObstaclescape(scape, rng=np.random.default_rng(0))
        >>> masked.resample_mask()
        >>> v = masked.value(0, state)
    """

    def __init__(
        self,
        obstaclescape: Obstaclescape,
        detection_probability: float = DEFAULT_DETECTION_PROBABILITY,
        rng: Optional[np.random.Generator] = None,
    ):
        if not 0.0 <= detection_probability <= 1.0:
            raise ValueError(f"detection_probability must be in [0, 1], got {detection_probability}")
        self.obstaclescape = obstaclescape
        self.detection_probability = detection_probability
        self.rng = rng if rng is not None else np.random.default_rng()
        self.undetection_mask: List[bool] = []
        self.resample_mask()

    @property
    def obstacles(self) -> List[Obstacle]:
        return self.obstaclescape.obstacles

    def __len__(self) -> int:
        return len(self.obstaclescape)

    def is_ready(self) -> bool:
        return self.obstaclescape.is_ready()

    def resample_mask(self) -> List[bool]:
        """
        Draw a new detection mask.

        Returns:
            Copy of the new undetection mask (True = undetected)
        """
        draws = self.rng.random(len(self.obstaclescape))
        self.undetection_mask = [bool(draw >= self.detection_probability) for draw in draws]
        logger.info("Resampled undetection mask: %s", self.undetection_mask)
        return list(self.undetection_mask)

    def _apply_mask(self) -> None:
        self.obstaclescape.set_undetected(self.undetection_mask)

    def dominant_obstacle(self, set_id: int, state: ArrayLike) -> Tuple[Optional[int], float]:
        self._apply_mask()
        return self.obstaclescape.dominant_obstacle(set_id, state)

    def value(self, set_id: int, state: ArrayLike) -> float:
        self._apply_mask()
        return self.obstaclescape.value(set_id, state)

    def gradient(self, set_id: int, state: ArrayLike) -> NDArray:
        self._apply_mask()
        return self.obstaclescape.gradient(set_id, state)

    def collision_value(self, state: ArrayLike) -> Tuple[float, Optional[int]]:
        self._apply_mask()
        return self.obstaclescape.collision_value(state)

    def grid_slices(
        self,
        set_id: int,
        state: ArrayLike,
        axis_x: int,
        axis_y: int,
    ) -> List[Tuple[NDArray, NDArray, NDArray]]:
        self._apply_mask()
        return self.obstaclescape.grid_slices(set_id, state, axis_x, axis_y)

    def __repr__(self) -> str:
        return f"MaskedObstaclescape({self.obstaclescape!r}, p_detect={self.detection_probability})"
