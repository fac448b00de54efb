"""
Grid-Based Value Functions

Precomputed safety value functions (e.g. from a level-set toolbox) stored
on a rectangular grid, queried at arbitrary off-grid states by
multilinear interpolation.

Grid convention (one entry per state axis):
    gmin:         coordinate of index 0
    gdx:          grid spacing (> 0)
    gN:           number of grid points
    gperiodicity: True if the axis wraps at gmin + gN * gdx

Interpolation:
    For each axis the state lies between a lower and a higher gridpoint.
    Each of the 2^D cell corners is weighted by the volume of the box
    between the state and the opposite corner, normalized by the cell
    volume prod(gdx). A state on a grid line puts full weight on the
    coincident gridpoint along that axis.

Gradient strategies:
    CENTERED: (V(x + dx/2) - V(x - dx/2)) / dx per axis, continuous
    NEAREST:  (V(x_high) - V(x_low)) / dx between the neighbouring
              gridpoints, piecewise constant per cell
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..errors import DimensionMismatchError, GridLoadError, GridNotLoadedError
from .base import SafeSet, as_state

logger = logging.getLogger(__name__)

# States closer than this (in units of gdx) to a grid line are snapped onto it
GRID_SNAP_TOL = 1e-9


class GradientMethod(Enum):
    """Available gradient estimators."""

    CENTERED = "centered"
    NEAREST = "nearest"


@dataclass(frozen=True, eq=False)
class GridMetadata:
    """
    Immutable grid description plus value array.

    Attributes:
        gmin: Per-axis minimum bound (D,)
        gdx: Per-axis spacing (D,)
        gN: Per-axis point count (D,)
        gperiodicity: Per-axis periodicity flags (D,)
        data: Values, shape == tuple(gN)
    """

    gmin: NDArray
    gdx: NDArray
    gN: NDArray  # noqa: N815
    gperiodicity: NDArray
    data: NDArray

    def __post_init__(self):
        gmin = np.array(self.gmin, dtype=float).reshape(-1)
        gdx = np.array(self.gdx, dtype=float).reshape(-1)
        gN = np.array(self.gN, dtype=int).reshape(-1)  # noqa: N806
        gperiodicity = np.array(self.gperiodicity, dtype=bool).reshape(-1)
        data = np.array(self.data, dtype=float)

        n_dims = len(gmin)
        if n_dims == 0:
            raise GridLoadError("Grid must have at least one axis")
        if not (len(gdx) == len(gN) == len(gperiodicity) == n_dims):
            raise GridLoadError(
                f"Inconsistent axis counts: gmin={len(gmin)}, gdx={len(gdx)}, "
                f"gN={len(gN)}, gperiodicity={len(gperiodicity)}"
            )
        if np.any(gdx <= 0):
            raise GridLoadError(f"Grid spacing must be positive, got {gdx.tolist()}")
        if np.any(gN < 1):
            raise GridLoadError(f"Grid point counts must be positive, got {gN.tolist()}")
        if data.shape != tuple(gN):
            raise GridLoadError(f"Data shape {data.shape} does not match gN {tuple(gN.tolist())}")

        for array in (gmin, gdx, gN, gperiodicity, data):
            array.setflags(write=False)

        object.__setattr__(self, "gmin", gmin)
        object.__setattr__(self, "gdx", gdx)
        object.__setattr__(self, "gN", gN)
        object.__setattr__(self, "gperiodicity", gperiodicity)
        object.__setattr__(self, "data", data)

    @property
    def n_dims(self) -> int:
        """Number of grid axes."""
        return len(self.gmin)

    @property
    def gmax(self) -> NDArray:
        """Coordinate of the last gridpoint along each axis."""
        return self.gmin + (self.gN - 1) * self.gdx

    def axis_coordinates(self, axis: int) -> NDArray:
        """Coordinates of all gridpoints along an axis."""
        return self.gmin[axis] + np.arange(self.gN[axis]) * self.gdx[axis]


class GridValueFunction(SafeSet):
    """
    Safety value function interpolated from a precomputed grid.

    The grid can be attached at construction or later through load(), so a
    collaborator can fetch the data asynchronously. Any query before the
    data is attached raises GridNotLoadedError.

    Example:
        >>> meta = GridMetadata(gmin=[-1, -1], gdx=[1, 1], gN=[3, 3],
        ...                     gperiodicity=[False, False], data=np.ones((3, 3)))
        >>> vf = GridValueFunction(meta)
        >>> vf.value([0.25, -0.5])
        1.0
    """

    def __init__(
        self,
        metadata: Optional[GridMetadata] = None,
        name: str = "",
        gradient_method: Union[str, GradientMethod] = GradientMethod.CENTERED,
    ):
        """
        Initialize grid value function.

        Args:
            metadata: Grid description and values, or None to load later
            name: Identifier used in logs and reprs
            gradient_method: "centered" (default) or "nearest"
        """
        self.name = name
        self.gradient_method = GradientMethod(gradient_method)
        self._metadata: Optional[GridMetadata] = None
        if metadata is not None:
            self.load(metadata)

    def load(self, metadata: GridMetadata) -> None:
        """Attach grid data. The data is immutable afterwards."""
        if not isinstance(metadata, GridMetadata):
            raise GridLoadError(f"Expected GridMetadata, got {type(metadata).__name__}")
        self._metadata = metadata
        logger.info(
            "Loaded grid %r: shape=%s, periodic axes=%s",
            self.name,
            tuple(metadata.gN.tolist()),
            np.flatnonzero(metadata.gperiodicity).tolist(),
        )

    @property
    def is_loaded(self) -> bool:
        return self._metadata is not None

    def is_ready(self) -> bool:
        return self.is_loaded

    @property
    def metadata(self) -> GridMetadata:
        """Grid data; raises GridNotLoadedError before load()."""
        if self._metadata is None:
            raise GridNotLoadedError(f"Grid {self.name!r} has not been loaded")
        return self._metadata

    @property
    def n_dims(self) -> Optional[int]:
        if self._metadata is None:
            return None
        return self._metadata.n_dims

    # =========================================================================
    # Indexing
    # =========================================================================

    def _checked_state(self, state: ArrayLike) -> NDArray:
        states = as_state(state)
        if len(states) != self.metadata.n_dims:
            raise DimensionMismatchError(
                f"Grid {self.name!r} has {self.metadata.n_dims} axes, got state of length {len(states)}"
            )
        return states

    def _scaled(self, states: NDArray) -> NDArray:
        """Fractional grid index of the state, snapped onto nearby grid lines."""
        grid = self.metadata
        scaled = (states - grid.gmin) / grid.gdx
        nearest = np.rint(scaled)
        snap = np.abs(scaled - nearest) < GRID_SNAP_TOL
        scaled[snap] = nearest[snap]
        return scaled

    def _wrap(self, index: NDArray) -> NDArray:
        """Wrap periodic axes into [0, gN) and clamp the others."""
        grid = self.metadata
        return np.where(
            grid.gperiodicity,
            np.mod(index, grid.gN),
            np.clip(index, 0, grid.gN - 1),
        )

    def indices_for(self, state: ArrayLike, wrap: bool = False) -> Tuple[NDArray, NDArray]:
        """
        Find the enclosing gridpoints along each axis.

        Args:
            state: Query state (D,)
            wrap: If True, periodic axes wrap into [0, gN). If False they are
                left unwrapped so the caller can compute distances first.
                Non-periodic axes are always clamped into [0, gN).

        Returns:
            low: Lower neighbour index per axis (D,)
            high: Higher neighbour index per axis (D,)
        """
        states = self._checked_state(state)
        return self._indices(states, wrap)

    def _indices(self, states: NDArray, wrap: bool) -> Tuple[NDArray, NDArray]:
        grid = self.metadata
        scaled = self._scaled(states)
        low = np.floor(scaled).astype(int)
        high = np.ceil(scaled).astype(int)
        if wrap:
            return self._wrap(low), self._wrap(high)
        clamp_low = np.clip(low, 0, grid.gN - 1)
        clamp_high = np.clip(high, 0, grid.gN - 1)
        low = np.where(grid.gperiodicity, low, clamp_low)
        high = np.where(grid.gperiodicity, high, clamp_high)
        return low, high

    def index_to_state(self, index: int, axis: int) -> float:
        """Coordinate of gridpoint `index` along `axis`."""
        grid = self.metadata
        return float(index * grid.gdx[axis] + grid.gmin[axis])

    def gridded_value(self, index) -> float:
        """Stored value at an integer grid index (one entry per axis)."""
        return float(self.metadata.data[tuple(int(i) for i in index)])

    # =========================================================================
    # Value and Gradient
    # =========================================================================

    def value(self, state: ArrayLike) -> float:
        """
        Multilinear interpolation of the grid at the given state.

        Args:
            state: Query state (D,)

        Returns:
            Interpolated safety value
        """
        states = self._checked_state(state)
        grid = self.metadata
        low, high = self._indices(states, wrap=False)

        # Fraction of the cell covered towards each neighbour, i.e. the
        # distance to the opposite corner divided by gdx
        weight_high = (states - (low * grid.gdx + grid.gmin)) / grid.gdx
        weight_low = ((high * grid.gdx + grid.gmin) - states) / grid.gdx
        on_line = low == high
        weight_high[on_line] = 1.0
        weight_low[on_line] = 0.0

        # Wrapping must come after the distances: a wrapped index no longer
        # sits next to the state in coordinates
        low = self._wrap(low)
        high = self._wrap(high)

        n_dims = grid.n_dims
        value = 0.0
        for corner in range(2**n_dims):
            volume = 1.0
            index = []
            for axis in range(n_dims):
                if corner & (1 << axis):
                    volume *= weight_high[axis]
                    index.append(high[axis])
                else:
                    volume *= weight_low[axis]
                    index.append(low[axis])
            if volume == 0.0:
                continue
            value += volume * grid.data[tuple(index)]
        return float(value)

    def gradient(self, state: ArrayLike) -> NDArray:
        """Gradient using the configured strategy."""
        if self.gradient_method == GradientMethod.NEAREST:
            return self.gradient_nearest(state)
        return self.gradient_centered(state)

    def gradient_centered(self, state: ArrayLike) -> NDArray:
        """
        Centered finite difference with step gdx, continuous in the state.

        Returns:
            Gradient (D,)
        """
        states = self._checked_state(state)
        gdx = self.metadata.gdx
        gradient = np.zeros_like(states)
        for axis in range(len(states)):
            states_low = states.copy()
            states_high = states.copy()
            states_low[axis] -= gdx[axis] / 2
            states_high[axis] += gdx[axis] / 2
            gradient[axis] = (self.value(states_high) - self.value(states_low)) / gdx[axis]
        return gradient

    def gradient_nearest(self, state: ArrayLike) -> NDArray:
        """
        Finite difference between the neighbouring gridpoints, piecewise
        constant inside each cell. Zero along axes where the state lies on a
        grid line.

        Returns:
            Gradient (D,)
        """
        states = self._checked_state(state)
        gdx = self.metadata.gdx
        low, high = self._indices(states, wrap=True)
        gradient = np.zeros_like(states)
        for axis in range(len(states)):
            states_low = states.copy()
            states_high = states.copy()
            states_low[axis] = self.index_to_state(low[axis], axis)
            states_high[axis] = self.index_to_state(high[axis], axis)
            gradient[axis] = (self.value(states_high) - self.value(states_low)) / gdx[axis]
        return gradient

    # =========================================================================
    # Visualization Support
    # =========================================================================

    def grid_slice(
        self,
        state: ArrayLike,
        axis_x: int,
        axis_y: int,
    ) -> Tuple[NDArray, NDArray, NDArray]:
        """
        Stored values on the 2-D grid slice through the state.

        The axes other than axis_x / axis_y are held at the lower neighbour
        gridpoint of the state.

        Returns:
            xs: Gridpoint coordinates along axis_x (Nx,)
            ys: Gridpoint coordinates along axis_y (Ny,)
            values: Stored values, values[i, j] at (xs[i], ys[j]) (Nx, Ny)
        """
        if axis_x == axis_y:
            raise ValueError("axis_x and axis_y must differ")
        grid = self.metadata
        low, _ = self.indices_for(state, wrap=True)
        index = [int(i) for i in low]
        index[axis_x] = slice(None)
        index[axis_y] = slice(None)
        values = grid.data[tuple(index)]
        if axis_x > axis_y:
            values = values.T
        return grid.axis_coordinates(axis_x), grid.axis_coordinates(axis_y), np.array(values)

    def __repr__(self) -> str:
        if self._metadata is None:
            return f"GridValueFunction(name={self.name!r}, loaded=False)"
        return (
            f"GridValueFunction(name={self.name!r}, "
            f"shape={tuple(self._metadata.gN.tolist())}, "
            f"gradient_method={self.gradient_method.value!r})"
        )
