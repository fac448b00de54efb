"""
Scenario Configuration

Dataclass configs for a single-robot override scenario, loadable from
YAML. Defaults reproduce the Dubins car weaving past a round obstacle.

Example YAML:

    robot: dubins
    initial_state: [-4.0, 3.0, 0.0]
    speed: 3.0
    max_u: 1.0
    goal: [1.0, -4.0]
    obstacles:
      - shape: round
        position: [0.0, 0.0]
        size: [1.8]
        avoid_set: {type: closest_approach}
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

import numpy as np
import yaml
from numpy.typing import NDArray


@dataclass
class WorkspaceBounds:
    """Axis-aligned region goals are drawn from."""

    x_min: float = -15.0
    x_max: float = 15.0
    y_min: float = -5.0
    y_max: float = 5.0

    def __post_init__(self):
        if self.x_min > self.x_max or self.y_min > self.y_max:
            raise ValueError(f"Empty workspace: {self}")

    def sample_xy(self, rng: np.random.Generator) -> NDArray:
        """Uniform random point in the workspace."""
        return np.array(
            [
                rng.uniform(self.x_min, self.x_max),
                rng.uniform(self.y_min, self.y_max),
            ]
        )

    def contains(self, xy) -> bool:
        return self.x_min <= xy[0] <= self.x_max and self.y_min <= xy[1] <= self.y_max


@dataclass
class ObstacleSpec:
    """
    One obstacle of a scenario.

    Attributes:
        shape: "round" (size = [radius]) or "box" (size = [half_width, half_height])
        position: Planar position [x, y]
        size: Shape parameters
        avoid_set: Avoid-set description, one of
            {type: circle}                          analytic circle of the obstacle radius
            {type: closest_approach}                circle margin along a Dubins car's course
            {type: interval}                        analytic interval pair for boxes
            {type: reachset, name: <set name>}      precomputed grid via the loader
            {type: learned, name: <set name>}       learned palette via the loader
            {type: trifecta, name: <set name>}      trifecta palette via the loader
        copies: Palette size when the avoid set is a single set
        radius_trim: Avoid-radius reduction for round obstacles
    """

    shape: str = "round"
    position: List[float] = field(default_factory=lambda: [0.0, 0.0])
    size: List[float] = field(default_factory=lambda: [1.8])
    avoid_set: Dict[str, Any] = field(default_factory=lambda: {"type": "circle"})
    copies: int = 4
    radius_trim: float = 0.0

    def __post_init__(self):
        if self.shape not in ("round", "box"):
            raise ValueError(f"Unknown obstacle shape: {self.shape}")
        expected = 1 if self.shape == "round" else 2
        if len(self.size) != expected:
            raise ValueError(f"{self.shape} obstacle needs {expected} size parameter(s), got {self.size}")
        if len(self.position) != 2:
            raise ValueError(f"Obstacle position must be [x, y], got {self.position}")


@dataclass
class ScenarioConfig:
    """Configuration of a single-robot override scenario."""

    # Robot
    robot: str = "dubins"
    initial_state: Optional[List[float]] = field(default_factory=lambda: [-4.0, 3.0, 0.0])
    speed: float = 3.0  # Dubins forward speed
    car_radius: float = 0.55  # Physical half-width, becomes the trigger level

    # Control
    max_u: float = 1.0
    trigger_level: Optional[float] = None  # None -> car_radius
    controller: str = "intervention"  # "intervention" or "legible"
    set_id: int = 0

    # Goals
    goal: List[float] = field(default_factory=lambda: [1.0, -4.0])
    goal_tolerance: float = 0.5
    workspace: WorkspaceBounds = field(default_factory=WorkspaceBounds)

    # Obstacles
    obstacles: List[ObstacleSpec] = field(
        default_factory=lambda: [ObstacleSpec(avoid_set={"type": "closest_approach"}, radius_trim=0.55)]
    )
    detection_probability: float = 0.8
    reachset_root: Optional[str] = None

    # Simulation
    dt: float = 0.02
    n_steps: int = 500
    seed: Optional[int] = None

    @property
    def effective_trigger_level(self) -> float:
        return self.car_radius if self.trigger_level is None else self.trigger_level

    @classmethod
    def from_dict(cls, config: Mapping[str, Any]) -> "ScenarioConfig":
        config = dict(config)
        unknown = set(config) - set(cls.__dataclass_fields__)
        if unknown:
            raise ValueError(f"Unknown scenario keys: {sorted(unknown)}")
        if "workspace" in config:
            config["workspace"] = WorkspaceBounds(**config["workspace"])
        if "obstacles" in config:
            config["obstacles"] = [ObstacleSpec(**spec) for spec in config["obstacles"]]
        return cls(**config)

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "ScenarioConfig":
        with open(path) as f:
            config = yaml.safe_load(f) or {}
        return cls.from_dict(config)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_yaml(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        with open(path, "w") as f:
            yaml.safe_dump(self.to_dict(), f, sort_keys=False)
        return path
