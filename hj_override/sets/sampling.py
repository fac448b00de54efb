"""
Grid Sampling Utilities

- sample_grid: precompute a GridMetadata by evaluating any safe set at
  every gridpoint (analytic sets as the basis of a precomputed grid)
- value_slice: evaluate a value query on a 2-D sweep of two state axes,
  the enumerable sample a rendering layer draws from
"""

from __future__ import annotations

from typing import Callable, Sequence, Tuple

import numpy as np
from numpy.typing import ArrayLike, NDArray

from .base import SafeSet, as_state
from .grid import GridMetadata


def sample_grid(
    safe_set: SafeSet,
    gmin: Sequence[float],
    gdx: Sequence[float],
    gN: Sequence[int],  # noqa: N803
    gperiodicity: Sequence[bool],
) -> GridMetadata:
    """
    Tabulate a safe set on a rectangular grid.

    Args:
        safe_set: Set to evaluate
        gmin: Per-axis minimum bound
        gdx: Per-axis spacing
        gN: Per-axis point count
        gperiodicity: Per-axis periodicity flags

    Returns:
        GridMetadata whose data[i, j, ...] = safe_set.value(gridpoint)
    """
    gmin = np.asarray(gmin, dtype=float)
    gdx = np.asarray(gdx, dtype=float)
    shape = tuple(int(n) for n in gN)

    data = np.empty(shape)
    for index in np.ndindex(*shape):
        data[index] = safe_set.value(gmin + np.asarray(index) * gdx)

    return GridMetadata(gmin=gmin, gdx=gdx, gN=shape, gperiodicity=gperiodicity, data=data)


def value_slice(
    query: Callable[[NDArray], float],
    state: ArrayLike,
    axis_x: int,
    axis_y: int,
    xs: ArrayLike,
    ys: ArrayLike,
) -> Tuple[NDArray, NDArray, NDArray]:
    """
    Evaluate a value query over a sweep of two state axes.

    All other state components are held at their values in `state`.

    Args:
        query: Maps a full state to a safety value, e.g. safe_set.value or
            functools.partial(scape.value, set_id)
        state: Base state (n,)
        axis_x: Swept axis for the first output dimension
        axis_y: Swept axis for the second output dimension
        xs: Sample coordinates along axis_x
        ys: Sample coordinates along axis_y

    Returns:
        xs, ys, values with values[i, j] = query(state with x=xs[i], y=ys[j])
    """
    if axis_x == axis_y:
        raise ValueError("axis_x and axis_y must differ")
    base = as_state(state)
    xs = np.asarray(xs, dtype=float)
    ys = np.asarray(ys, dtype=float)

    values = np.empty((len(xs), len(ys)))
    sample = base.copy()
    for i, x in enumerate(xs):
        sample[axis_x] = x
        for j, y in enumerate(ys):
            sample[axis_y] = y
            values[i, j] = query(sample)
    return xs, ys, values
