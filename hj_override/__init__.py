"""
HJ Override

Hamilton-Jacobi reachability safety override for mobile robots: a
nominal goal tracker drives the robot until a precomputed safety value
function drops below a trigger level, at which point a bang-bang input
derived from the value gradient takes over.

Modules:
    sets: Safety value functions (grids, analytic sets, composition, loading)
    obstacles: Obstacles and obstacle scapes with detection masks
    dynamics: Control-affine robot models with Euler integration
    control: Tracking, safety and intervention controllers
    recording: Session telemetry
    simulation: Tick-driven simulation context and scenario builders
    config: YAML scenario configuration
    experiments: Plotting
"""

__version__ = "0.1.0"
__author__ = "HJ Override Team"

# Convenience imports
from . import control, dynamics, obstacles, sets
from .config import ObstacleSpec, ScenarioConfig, WorkspaceBounds
from .errors import (
    DimensionMismatchError,
    GridLoadError,
    GridNotLoadedError,
    HJOverrideError,
    PaletteIndexError,
)
from .recording import Recorder
from .simulation import SimulationContext, build_scenario

__all__ = [
    "DimensionMismatchError",
    "GridLoadError",
    "GridNotLoadedError",
    "HJOverrideError",
    "ObstacleSpec",
    "PaletteIndexError",
    "Recorder",
    "ScenarioConfig",
    "SimulationContext",
    "WorkspaceBounds",
    "build_scenario",
    "control",
    "dynamics",
    "obstacles",
    "sets",
]
