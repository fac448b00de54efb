"""
Visualization of Safety Value Functions and Trajectories

Figures for override scenarios:
1. Value slices (filled contours, zero level set highlighted)
2. Obstacles (round / box footprints, coloured by detection status)
3. Robot trajectories with override segments marked

Plotting consumes only the query surface of the sets and obstacles
(value slices, positions, flags); nothing here feeds back into control.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np
from matplotlib import patches
from numpy.typing import NDArray

from ..obstacles import BoxObstacle, Obstacle, RoundObstacle

plt.rcParams.update(
    {
        "font.family": "serif",
        "font.size": 10,
        "axes.labelsize": 11,
        "axes.titlesize": 12,
        "legend.fontsize": 9,
        "figure.dpi": 150,
        "savefig.dpi": 300,
        "savefig.bbox": "tight",
        "axes.grid": True,
        "grid.alpha": 0.3,
        "lines.linewidth": 1.5,
    }
)

# Color scheme (colorblind-friendly)
COLORS = {
    "tracking": "#0072B2",  # Blue
    "override": "#D55E00",  # Orange
    "detected": "#009E73",  # Green
    "undetected": "#999999",  # Gray
    "destroyed": "#CC79A7",  # Pink
    "goal": "#E69F00",  # Amber
    "level_set": "#000000",
}


@dataclass
class FigureConfig:
    """Configuration for figure generation."""

    width: float = 7.0
    height_ratio: float = 0.6
    cmap: str = "RdBu"
    levels: int = 21

    def get_figsize(self) -> Tuple[float, float]:
        return (self.width, self.width * self.height_ratio)


def _axes(ax: Optional[plt.Axes], config: FigureConfig) -> plt.Axes:
    if ax is None:
        fig, ax = plt.subplots(figsize=config.get_figsize())
    return ax


def plot_value_slice(
    xs: NDArray,
    ys: NDArray,
    values: NDArray,
    ax: Optional[plt.Axes] = None,
    level: float = 0.0,
    title: str = "",
    config: Optional[FigureConfig] = None,
) -> plt.Axes:
    """
    Plot a 2-D slice of a safety value function.

    Args:
        xs: Coordinates along the first slice axis (nx,)
        ys: Coordinates along the second slice axis (ny,)
        values: Values indexed [i, j] for (xs[i], ys[j])
        ax: Matplotlib axes
        level: Level set to outline (0 = avoid set boundary)
        title: Axes title

    Returns:
        Matplotlib axes
    """
    config = config or FigureConfig()
    ax = _axes(ax, config)

    values = np.asarray(values, dtype=float)
    limit = max(float(np.max(np.abs(values))), 1e-9)
    ax.contourf(xs, ys, values.T, levels=config.levels, cmap=config.cmap, vmin=-limit, vmax=limit)
    if values.min() < level < values.max():
        ax.contour(xs, ys, values.T, levels=[level], colors=COLORS["level_set"], linewidths=2)

    ax.set_aspect("equal")
    if title:
        ax.set_title(title)
    return ax


def plot_obstacles(
    obstacles: Sequence[Obstacle],
    ax: Optional[plt.Axes] = None,
    undetected: Optional[Sequence[bool]] = None,
    destroyed: Optional[Sequence[bool]] = None,
    config: Optional[FigureConfig] = None,
) -> plt.Axes:
    """
    Draw obstacle footprints.

    Round obstacles are drawn at their trimmed radius, boxes at their
    half extents. Generic obstacles are drawn as a marker at their
    position.
    """
    config = config or FigureConfig()
    ax = _axes(ax, config)

    for index, obstacle in enumerate(obstacles):
        if destroyed is not None and destroyed[index]:
            color = COLORS["destroyed"]
        elif undetected is not None and undetected[index]:
            color = COLORS["undetected"]
        else:
            color = COLORS["detected"]

        if isinstance(obstacle, RoundObstacle):
            ax.add_patch(patches.Circle(tuple(obstacle.position), obstacle.trimmed_radius, color=color, alpha=0.6))
        elif isinstance(obstacle, BoxObstacle):
            left, bottom, right, top = obstacle.corners()
            ax.add_patch(patches.Rectangle((left, bottom), right - left, top - bottom, color=color, alpha=0.6))
        else:
            position = obstacle.position
            ax.plot(position[0], position[1] if len(position) > 1 else 0.0, "x", color=color, markersize=10)

    ax.autoscale_view()
    return ax


def plot_trajectory(
    states: NDArray,
    position_indices: Tuple[int, int] = (0, 1),
    overrides: Optional[Sequence[bool]] = None,
    goal: Optional[Sequence[float]] = None,
    ax: Optional[plt.Axes] = None,
    label: str = "",
    config: Optional[FigureConfig] = None,
) -> plt.Axes:
    """
    Plot a planar robot trajectory.

    Args:
        states: State trajectory (T+1, n_state)
        position_indices: State components used as plot x / y
        overrides: Per-step override flags (T,); overridden steps are
            drawn in the override colour
        goal: Goal position to mark
        ax: Matplotlib axes
        label: Legend label

    Returns:
        Matplotlib axes
    """
    config = config or FigureConfig()
    ax = _axes(ax, config)

    states = np.asarray(states, dtype=float)
    x = states[:, position_indices[0]]
    y = states[:, position_indices[1]]

    ax.plot(x, y, color=COLORS["tracking"], label=label)
    if overrides is not None:
        flags = np.asarray(overrides, dtype=bool)
        steps = np.flatnonzero(flags[: len(x) - 1])
        ax.scatter(x[steps], y[steps], color=COLORS["override"], s=6, zorder=3, label="override")

    # Start and end markers
    ax.plot(x[0], y[0], "o", color=COLORS["tracking"], markersize=8)
    ax.plot(x[-1], y[-1], "s", color=COLORS["tracking"], markersize=8)
    if goal is not None:
        ax.plot(goal[0], goal[1], "*", color=COLORS["goal"], markersize=12)

    ax.set_xlabel(f"x[{position_indices[0]}]")
    ax.set_ylabel(f"x[{position_indices[1]}]")
    ax.set_aspect("equal")
    if label or overrides is not None:
        ax.legend()
    return ax
