"""Smoke tests for plotting helpers."""

import matplotlib.pyplot as plt
import numpy as np
import pytest

from hj_override.experiments import FigureConfig, plot_obstacles, plot_trajectory, plot_value_slice
from hj_override.obstacles import BoxObstacle, Obstacle, RoundObstacle
from hj_override.sets import CircleSet, IntervalSet, copied_palette


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")


def test_plot_value_slice():
    xs = np.linspace(-2.0, 2.0, 9)
    ys = np.linspace(-1.0, 1.0, 5)
    values = np.hypot(xs[:, None], ys[None, :]) - 1.0
    ax = plot_value_slice(xs, ys, values, title="circle", config=FigureConfig(levels=5))
    assert ax.get_title() == "circle"


def test_plot_obstacles_draws_patches():
    obstacles = [
        RoundObstacle(0.0, 0.0, 1.8, copied_palette(CircleSet(1.8))),
        BoxObstacle(3.0, 0.0, 1.0, 0.5, IntervalSet(1.0)),
        Obstacle([-3.0, 0.0], CircleSet(1.0)),
    ]
    ax = plot_obstacles(obstacles, undetected=[True, False, False], destroyed=[False, False, True])
    assert len(ax.patches) == 2


def test_plot_trajectory_marks_overrides():
    states = np.column_stack([np.linspace(0.0, 1.0, 6), np.zeros(6), np.zeros(6)])
    overrides = [False, True, True, False, False]
    ax = plot_trajectory(states, overrides=overrides, goal=[1.0, 0.0], label="robot")
    assert ax.get_legend() is not None
