"""
Safe Set Composition

Operators that build new safe sets from existing ones:

- UnionSet: pointwise minimum of two value functions (the unsafe regions
  are unioned). The gradient is taken from whichever operand attains the
  minimum; ties go to the second operand.
- CoupledPairSet: two decoupled subsystems sharing one state vector. The
  joint state is unsafe only if both subsystems are, so the value is the
  maximum of the two sub-values and only the dominant subsystem
  contributes to the gradient.
- SafeSetPalette: interchangeable estimates of the same safety property,
  selected by integer set id at runtime.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..errors import DimensionMismatchError, PaletteIndexError
from .base import SafeSet, as_state

logger = logging.getLogger(__name__)

# Suffixes of the learned variants stored next to a base reach set
LEARNED_VARIANTS = ("", "Pixelwise", "LSPicker", "BI", "MLE", "Conservative")
TRIFECTA_VARIANTS = ("", "MLE", "Conservative")


class UnionSet(SafeSet):
    """
    Union of the unsafe regions of two safe sets: V = min(V_A, V_B).

    Example:
        >>> union = UnionSet(CircleSet(1.0), IntervalSet(0.5))
        >>> union.value([2.0, 0.0])
        1.0
    """

    def __init__(self, set_a: SafeSet, set_b: SafeSet):
        self.set_a = set_a
        self.set_b = set_b
        logger.debug("Unioned %r and %r", set_a, set_b)

    @property
    def n_dims(self) -> Optional[int]:
        return _common_dimension([self.set_a, self.set_b])

    def is_ready(self) -> bool:
        return self.set_a.is_ready() and self.set_b.is_ready()

    def _select(self, state: NDArray) -> Tuple[SafeSet, float]:
        """Pick the operand attaining the minimum (B on ties) and its value."""
        value_a = self.set_a.value(state)
        value_b = self.set_b.value(state)
        if value_a < value_b:
            return self.set_a, value_a
        return self.set_b, value_b

    def value(self, state: ArrayLike) -> float:
        _, value = self._select(as_state(state))
        return value

    def gradient(self, state: ArrayLike) -> NDArray:
        states = as_state(state)
        dominant, _ = self._select(states)
        return dominant.gradient(states)

    def __repr__(self) -> str:
        return f"UnionSet({self.set_a!r}, {self.set_b!r})"


class CoupledPairSet(SafeSet):
    """
    Joint safe set of two decoupled subsystems.

    The full state is split as [state_a (split entries), state_b (rest)].
    The value is max(V_A(state_a), V_B(state_b)); ties go to subsystem A.

    Example:
        >>> box = CoupledPairSet(IntervalSet(1.0), IntervalSet(2.0))
        >>> box.value([0.0, 0.0, 3.0, 0.0])  # outside along the second axis
        1.0
    """

    def __init__(self, set_a: SafeSet, set_b: SafeSet, split: int = 2):
        """
        Initialize coupled pair.

        Args:
            set_a: Safe set of the first subsystem
            set_b: Safe set of the second subsystem
            split: Number of leading state entries that belong to set_a
        """
        if split < 1:
            raise ValueError(f"split must be at least 1, got {split}")
        self.set_a = set_a
        self.set_b = set_b
        self.split = split

    @property
    def n_dims(self) -> Optional[int]:
        if self.set_b.n_dims is None:
            return None
        return self.split + self.set_b.n_dims

    def is_ready(self) -> bool:
        return self.set_a.is_ready() and self.set_b.is_ready()

    def split_state(self, state: ArrayLike) -> Tuple[NDArray, NDArray]:
        """Dice the joint state into the two subsystem states."""
        states = as_state(state)
        if len(states) <= self.split:
            raise DimensionMismatchError(
                f"CoupledPairSet needs more than {self.split} state components, got {len(states)}"
            )
        if self.n_dims is not None and len(states) != self.n_dims:
            raise DimensionMismatchError(f"CoupledPairSet expects {self.n_dims} state components, got {len(states)}")
        return states[: self.split], states[self.split :]

    def _values(self, state: ArrayLike) -> Tuple[NDArray, NDArray, float, float]:
        state_a, state_b = self.split_state(state)
        return state_a, state_b, self.set_a.value(state_a), self.set_b.value(state_b)

    def value(self, state: ArrayLike) -> float:
        _, _, value_a, value_b = self._values(state)
        if value_a < value_b:
            return value_b
        return value_a

    def gradient(self, state: ArrayLike) -> NDArray:
        state_a, state_b, value_a, value_b = self._values(state)
        gradient = np.zeros(len(state_a) + len(state_b))
        if value_a < value_b:
            gradient[self.split :] = self.set_b.gradient(state_b)
        else:
            gradient[: self.split] = self.set_a.gradient(state_a)
        return gradient

    def __repr__(self) -> str:
        return f"CoupledPairSet({self.set_a!r}, {self.set_b!r}, split={self.split})"


class SafeSetPalette:
    """
    Indexed collection of alternative safe sets for the same obstacle.

    All members describe the same state space; the set id picks which
    estimate (e.g. raw, pixelwise, conservative) answers a query.

    Example:
        >>> palette = SafeSetPalette([CircleSet(1.0), CircleSet(1.5)])
        >>> palette.value(1, [2.0, 0.0, 0.0])
        0.5
    """

    def __init__(self, safe_sets: Sequence[SafeSet]):
        if len(safe_sets) == 0:
            raise ValueError("Palette needs at least one safe set")
        self.safe_sets: List[SafeSet] = list(safe_sets)
        _common_dimension(self.safe_sets)

    def __len__(self) -> int:
        return len(self.safe_sets)

    def __getitem__(self, set_id: int) -> SafeSet:
        return self.get(set_id)

    @property
    def n_dims(self) -> Optional[int]:
        return _common_dimension(self.safe_sets)

    def is_ready(self) -> bool:
        return all(safe_set.is_ready() for safe_set in self.safe_sets)

    def get(self, set_id: int) -> SafeSet:
        """Safe set for a set id; negative ids are rejected, not wrapped."""
        if not 0 <= set_id < len(self.safe_sets):
            raise PaletteIndexError(f"Set id {set_id} out of range for palette of {len(self.safe_sets)} sets")
        return self.safe_sets[set_id]

    def value(self, set_id: int, state: ArrayLike) -> float:
        return self.get(set_id).value(state)

    def gradient(self, set_id: int, state: ArrayLike) -> NDArray:
        return self.get(set_id).gradient(state)

    def __repr__(self) -> str:
        return f"SafeSetPalette({len(self.safe_sets)} sets)"


def _common_dimension(safe_sets: Sequence[SafeSet]) -> Optional[int]:
    """Shared known dimension of the sets; raises if two known dimensions differ."""
    dims = {safe_set.n_dims for safe_set in safe_sets if safe_set.n_dims is not None}
    if len(dims) > 1:
        raise DimensionMismatchError(f"Safe sets disagree on state dimension: {sorted(dims)}")
    return dims.pop() if dims else None


# =============================================================================
# Palette Factories
# =============================================================================


def learned_palette(name: str, loader: Callable[[str], SafeSet]) -> SafeSetPalette:
    """
    Palette of a base reach set and its learned modifications.

    Args:
        name: Base set name, e.g. "dubins"
        loader: Maps a set name to a safe set (see loader.ReachsetLoader)

    Returns:
        Palette ordered as LEARNED_VARIANTS
    """
    return SafeSetPalette([loader(name + suffix) for suffix in LEARNED_VARIANTS])


def trifecta_palette(name: str, loader: Callable[[str], SafeSet]) -> SafeSetPalette:
    """Palette of the standard, maximum-likelihood and conservative sets."""
    return SafeSetPalette([loader(name + suffix) for suffix in TRIFECTA_VARIANTS])


def copied_palette(safe_set: SafeSet, copies: int = 4) -> SafeSetPalette:
    """Palette that answers every set id with the same safe set."""
    return SafeSetPalette([safe_set] * copies)
