"""
Telemetry Recording

Collects the discrete events of a session (goal changes with the current
undetection mask, collisions) plus per-robot state traces. Persistence is
left to the caller: to_dict() gives a JSON-ready structure and save_json()
writes it to disk.
"""

from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

import numpy as np
from numpy.typing import ArrayLike

logger = logging.getLogger(__name__)

# Score added each time a robot reaches its goal
GOAL_REWARD = 20


@dataclass
class GoalSetEvent:
    """A robot was given a new goal (and the detection mask was resampled)."""

    robot_id: int
    undetection_mask: List[bool]
    goal: List[float]
    timestamp: float


@dataclass
class CollisionEvent:
    """A robot's state entered an obstacle's collision footprint."""

    robot_id: int
    undetection_mask: List[bool]
    goal: List[float]
    timestamp: float
    obstacle_index: int
    value: float


@dataclass
class RegenEvent:
    """The obstacle layout was regenerated."""

    timestamp: float
    obstacles: List[List[float]]


@dataclass
class Recorder:
    """
    Session record.

    Example:
        >>> recorder = Recorder(seed=7)
        >>> recorder.record_goal(0, [False, True], [1.0, -4.0], timestamp=0.0)
        >>> recorder.save_json("session.json")
    """

    seed: Optional[int] = None
    driving_style: str = ""
    obstacles: List[List[float]] = field(default_factory=list)

    # Telemetry
    robot_traces: Dict[int, List[List[float]]] = field(default_factory=dict)
    time_trace: List[float] = field(default_factory=list)

    # Events
    goal_set_events: List[GoalSetEvent] = field(default_factory=list)
    collision_events: List[CollisionEvent] = field(default_factory=list)
    regen_events: List[RegenEvent] = field(default_factory=list)

    final_score: int = 0

    def record_goal(
        self,
        robot_id: int,
        undetection_mask: Sequence[bool],
        goal: ArrayLike,
        timestamp: float,
    ) -> GoalSetEvent:
        event = GoalSetEvent(
            robot_id=robot_id,
            undetection_mask=[bool(flag) for flag in undetection_mask],
            goal=np.asarray(goal, dtype=float).tolist(),
            timestamp=float(timestamp),
        )
        self.goal_set_events.append(event)
        return event

    def record_collision(
        self,
        robot_id: int,
        undetection_mask: Sequence[bool],
        goal: ArrayLike,
        timestamp: float,
        obstacle_index: int,
        value: float,
    ) -> CollisionEvent:
        event = CollisionEvent(
            robot_id=robot_id,
            undetection_mask=[bool(flag) for flag in undetection_mask],
            goal=np.asarray(goal, dtype=float).tolist(),
            timestamp=float(timestamp),
            obstacle_index=int(obstacle_index),
            value=float(value),
        )
        self.collision_events.append(event)
        logger.info("Robot %d collided with obstacle %d at t=%.3f", robot_id, obstacle_index, timestamp)
        return event

    def record_regen(self, timestamp: float, obstacles: Sequence[ArrayLike]) -> RegenEvent:
        event = RegenEvent(
            timestamp=float(timestamp),
            obstacles=[np.asarray(position, dtype=float).tolist() for position in obstacles],
        )
        self.regen_events.append(event)
        self.obstacles = event.obstacles
        return event

    def record_state(self, robot_id: int, state: ArrayLike, timestamp: float) -> None:
        """Append one sample to a robot's trace and the shared time trace."""
        self.robot_traces.setdefault(robot_id, []).append(np.asarray(state, dtype=float).tolist())
        if not self.time_trace or self.time_trace[-1] != timestamp:
            self.time_trace.append(float(timestamp))

    def add_score(self, points: int = GOAL_REWARD) -> int:
        self.final_score += points
        return self.final_score

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready representation of the session."""
        return asdict(self)

    def save_json(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)
        logger.info("Saved recording to %s", path)
        return path
