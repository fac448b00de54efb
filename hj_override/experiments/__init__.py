"""
Experiments Module for HJ Override

Plotting helpers for value slices, obstacles and trajectories.
"""

from .visualization import COLORS, FigureConfig, plot_obstacles, plot_trajectory, plot_value_slice

__all__ = [
    "COLORS",
    "FigureConfig",
    "plot_obstacles",
    "plot_trajectory",
    "plot_value_slice",
]
