"""
Safe Set Module for HJ Override

Safety value functions and their composition:

- base: SafeSet interface (value, gradient)
- analytic: closed-form interval, circle, closest-approach and double-integrator sets
- grid: GridValueFunction, multilinear interpolation over precomputed grids
- composition: union, coupled pair and palette of interchangeable sets
- loader: reachset ingestion from JSON / MATLAB dumps
- sampling: tabulating sets on grids, 2-D value slices for rendering

Sign convention:
    value(x) > 0   safe
    value(x) <= 0  inside the avoid set

Usage:
    >>> from hj_override.sets import GridValueFunction, load_reachset
    >>>
    >>> vf = load_reachset("reachableSets/dubins_reachset.json")
    >>> v = vf.value([1.0, 2.0, 0.3])
    >>> p = vf.gradient([1.0, 2.0, 0.3])
"""

from .analytic import CircleSet, ClosestApproachSet, DoubleIntegratorSet, IntervalSet
from .base import SafeSet, as_state
from .composition import (
    LEARNED_VARIANTS,
    TRIFECTA_VARIANTS,
    CoupledPairSet,
    SafeSetPalette,
    UnionSet,
    copied_palette,
    learned_palette,
    trifecta_palette,
)
from .grid import GradientMethod, GridMetadata, GridValueFunction
from .loader import ReachsetLoader, grid_from_dict, load_reachset
from .sampling import sample_grid, value_slice

__all__ = [
    "LEARNED_VARIANTS",
    "TRIFECTA_VARIANTS",
    # Analytic
    "CircleSet",
    "ClosestApproachSet",
    # Composition
    "CoupledPairSet",
    "DoubleIntegratorSet",
    # Grid
    "GradientMethod",
    "GridMetadata",
    "GridValueFunction",
    "IntervalSet",
    # Loading
    "ReachsetLoader",
    # Base
    "SafeSet",
    "SafeSetPalette",
    "UnionSet",
    "as_state",
    "copied_palette",
    "grid_from_dict",
    "learned_palette",
    "load_reachset",
    # Sampling
    "sample_grid",
    "trifecta_palette",
    "value_slice",
]
