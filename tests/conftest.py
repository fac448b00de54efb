"""Shared fixtures for the hj_override test suite."""

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest

from hj_override.sets import GridMetadata, GridValueFunction


@pytest.fixture
def dip_grid():
    """3x3 grid, value 1 everywhere except 0 at the centre gridpoint (0, 0)."""
    data = np.ones((3, 3))
    data[1, 1] = 0.0
    return GridMetadata(gmin=[-1.0, -1.0], gdx=[1.0, 1.0], gN=[3, 3], gperiodicity=[False, False], data=data)


@pytest.fixture
def dip_vf(dip_grid):
    return GridValueFunction(dip_grid, name="dip")


@pytest.fixture
def linear_vf():
    """V(x, y) = 2x + 3y sampled on [0, 4]^2."""
    xs = np.arange(5.0)
    data = 2.0 * xs[:, None] + 3.0 * xs[None, :]
    meta = GridMetadata(gmin=[0.0, 0.0], gdx=[1.0, 1.0], gN=[5, 5], gperiodicity=[False, False], data=data)
    return GridValueFunction(meta, name="linear")


@pytest.fixture
def rng():
    return np.random.default_rng(0)
