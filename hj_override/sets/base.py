"""
Safe Set Interface

A safe set is described by a signed safety value function V(x):
    V(x) > 0   state is safe
    V(x) <= 0  state violates the safety margin

gradient(x) returns the spatial gradient of V, which the intervention
controller uses as the co-state for the worst-case-optimal avoidance input.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

import numpy as np
from numpy.typing import ArrayLike, NDArray


def as_state(state: ArrayLike) -> NDArray:
    """Convert a state-like input to a 1-D float array (copy)."""
    return np.array(state, dtype=float).reshape(-1)


class SafeSet(ABC):
    """
    Abstract safe set.

    Subclasses implement value() and gradient(). Sets that only accept a
    fixed state length report it through n_dims; sets that read a prefix
    of the state (analytic shapes) leave it as None.
    """

    @property
    def n_dims(self) -> Optional[int]:
        """State dimension, or None if any sufficiently long state is accepted."""
        return None

    @abstractmethod
    def value(self, state: ArrayLike) -> float:
        """Safety value at the given state."""
        raise NotImplementedError

    @abstractmethod
    def gradient(self, state: ArrayLike) -> NDArray:
        """Spatial gradient of the safety value at the given state."""
        raise NotImplementedError

    def is_safe(self, state: ArrayLike, level: float = 0.0) -> bool:
        """Check whether the value is strictly above the given level."""
        return self.value(state) > level

    def is_ready(self) -> bool:
        """Whether the set can answer queries (grids may still be loading)."""
        return True

