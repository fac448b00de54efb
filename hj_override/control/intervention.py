"""
Safety Intervention Controllers

Least-restrictive supervision of a nominal tracker:

    V(x) <  trigger_level  ->  OVERRIDE: bang-bang input from ∇V(x)
    V(x) >= trigger_level  ->  TRACKING: nominal input unmodified

The mode is re-evaluated on every call with no hysteresis. The palette
variant queries an obstacle scape through a runtime-selectable set id
and, when the goal is reached, draws a new goal, resamples the
detection mask and reports the change to a recorder.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, List, Optional

import numpy as np
from numpy.typing import ArrayLike, NDArray

from ..config import WorkspaceBounds
from ..dynamics import ControlAffineDynamics
from ..recording import GOAL_REWARD, Recorder
from .safe import SafeController

logger = logging.getLogger(__name__)


class ControlMode(Enum):
    """Supervisor state."""

    TRACKING = "tracking"
    OVERRIDE = "override"


class InterventionController:
    """
    Switch between a nominal tracker and the bang-bang safety input.

    Example:
        >>> controller = InterventionController(car, CircleSet(1.8), max_u=1.0,
        ...                                     tracker=DubinsTracker(1.0, [1.0, -4.0]),
        ...                                     trigger_level=0.55)
        >>> u = controller.compute(x)
        >>> controller.mode
        <ControlMode.TRACKING: 'tracking'>
    """

    def __init__(
        self,
        dynamics: ControlAffineDynamics,
        safe_set: Any,
        max_u: float,
        tracker: Any,
        trigger_level: float = 0.0,
    ):
        """
        Initialize intervention controller.

        Args:
            dynamics: Robot dynamics (control coefficient columns)
            safe_set: Safety value function with value(x) / gradient(x)
            max_u: Control bound per input
            tracker: Nominal controller with get_control(x)
            trigger_level: Override when the safety value drops below this
        """
        self.dynamics = dynamics
        self.safe_set = safe_set
        self.tracker = tracker
        self.trigger_level = float(trigger_level)
        self.safer = SafeController(dynamics, max_u)

        self.mode = ControlMode.TRACKING
        self.last_value: Optional[float] = None
        self.n_overrides = 0

    @property
    def max_u(self) -> float:
        return self.safer.max_u

    def is_ready(self) -> bool:
        return self.safe_set.is_ready()

    # =========================================================================
    # Safety queries
    # =========================================================================

    def safety_value(self, x: NDArray) -> float:
        return self.safe_set.value(x)

    def safety_gradient(self, x: NDArray) -> NDArray:
        return self.safe_set.gradient(x)

    # =========================================================================
    # Control
    # =========================================================================

    def update_mode(self, x: ArrayLike) -> ControlMode:
        """Evaluate the safety value at x and set the supervisor mode."""
        x = np.asarray(x, dtype=float)
        value = self.safety_value(x)
        mode = ControlMode.OVERRIDE if value < self.trigger_level else ControlMode.TRACKING

        if mode != self.mode:
            if mode == ControlMode.OVERRIDE:
                self.n_overrides += 1
            logger.debug("Switching to %s (value=%.4f, trigger=%.4f)", mode.value, value, self.trigger_level)

        self.mode = mode
        self.last_value = value
        return mode

    def compute(self, x: ArrayLike, t: float = 0.0) -> NDArray:  # noqa: ARG002
        """
        Compute the supervised control.

        Args:
            x: Current state (n_state,)
            t: Current time

        Returns:
            Control (n_control,)
        """
        x = np.asarray(x, dtype=float)
        if self.update_mode(x) == ControlMode.OVERRIDE:
            return self.safer.get_control(x, self.safety_gradient(x))
        return np.asarray(self.tracker.get_control(x), dtype=float)

    def __call__(self, t: float, x: NDArray) -> NDArray:
        """Control law signature used by ControlAffineDynamics.simulate."""
        return self.compute(x, t)


class PaletteInterventionController(InterventionController):
    """
    Intervention against an obstacle scape with a selectable set id.

    When the robot gets within goal_tolerance of the goal on both position
    axes, the goal is mirrored in x and redrawn in y, the scape's detection
    mask is resampled and a goal event is recorded.
    """

    def __init__(
        self,
        dynamics: ControlAffineDynamics,
        scape: Any,
        set_id: int,
        max_u: float,
        tracker: Any,
        trigger_level: float = 0.0,
        recorder: Optional[Recorder] = None,
        workspace: Optional[WorkspaceBounds] = None,
        robot_id: int = 0,
        goal_tolerance: float = 0.5,
        rng: Optional[np.random.Generator] = None,
        t0: float = 0.0,
    ):
        """
        Initialize palette intervention controller.

        Args:
            dynamics: Robot dynamics
            scape: Obstacle scape with value(set_id, x) / gradient(set_id, x)
            set_id: Initial palette entry
            max_u: Control bound per input
            tracker: Nominal controller with setpoint / update_setpoint
            trigger_level: Override threshold
            recorder: Receives goal events (optional)
            workspace: Region new goal y-coordinates are drawn from
            robot_id: Robot identifier in recorded events
            goal_tolerance: Per-axis distance counting as goal reached
            rng: Random generator for goal draws
            t0: Timestamp of the initial goal event
        """
        super().__init__(dynamics, scape, max_u, tracker, trigger_level)
        self.set_id = set_id
        self.recorder = recorder
        self.workspace = workspace if workspace is not None else WorkspaceBounds()
        self.robot_id = robot_id
        self.goal_tolerance = goal_tolerance
        self.rng = rng if rng is not None else np.random.default_rng()
        self.goals_reached = 0

        self._record_goal(t0)

    def select_set(self, set_id: int) -> None:
        logger.info("Robot %d switched to safe set %d", self.robot_id, set_id)
        self.set_id = set_id

    def safety_value(self, x: NDArray) -> float:
        return self.safe_set.value(self.set_id, x)

    def safety_gradient(self, x: NDArray) -> NDArray:
        return self.safe_set.gradient(self.set_id, x)

    # =========================================================================
    # Goal handling
    # =========================================================================

    @property
    def goal(self) -> NDArray:
        return np.asarray(self.tracker.setpoint, dtype=float)[:2]

    def undetection_mask(self) -> List[bool]:
        return list(getattr(self.safe_set, "undetection_mask", []))

    def goal_reached(self, x: NDArray) -> bool:
        error = self.goal - self.dynamics.position(x)[:2]
        return bool(np.all(np.abs(error) < self.goal_tolerance))

    def reset_goal(self, t: float) -> NDArray:
        """
        Mirror the goal in x, redraw y, resample the mask and record.

        A one-component goal (vertical robot) is a height and is redrawn
        from the workspace y-range.
        """
        new_goal = self.workspace.sample_xy(self.rng)
        if len(self.goal) == 1:
            new_goal = new_goal[1:]
        else:
            new_goal[0] = -self.goal[0]
        self.tracker.update_setpoint(new_goal)

        resample = getattr(self.safe_set, "resample_mask", None)
        if resample is not None:
            resample()

        self.goals_reached += 1
        logger.info("Robot %d reached its goal, new goal %s", self.robot_id, new_goal)
        self._record_goal(t)
        if self.recorder is not None:
            self.recorder.add_score(GOAL_REWARD)
        return new_goal

    def _record_goal(self, t: float) -> None:
        if self.recorder is not None:
            self.recorder.record_goal(self.robot_id, self.undetection_mask(), self.goal, t)

    def compute(self, x: ArrayLike, t: float = 0.0) -> NDArray:
        x = np.asarray(x, dtype=float)
        if self.goal_reached(x):
            self.reset_goal(t)
        return super().compute(x, t)


class LegibleController(PaletteInterventionController):
    """
    Always-on bang-bang steering that makes the robot's intent legible.

    The co-state blends two palette entries,

        p = mu_human ∇V_human(x) - mu_robot ∇V_robot(x),

    pushing away from what a human observer's model deems unsafe while
    staying close to the robot's own boundary.
    """

    def __init__(
        self,
        dynamics: ControlAffineDynamics,
        scape: Any,
        max_u: float,
        tracker: Any,
        human_set_id: int = 4,
        robot_set_id: int = 0,
        mu_human: float = 10.0,
        mu_robot: float = 1.0,
        **kwargs,
    ):
        super().__init__(dynamics, scape, robot_set_id, max_u, tracker, **kwargs)
        self.human_set_id = human_set_id
        self.mu_human = mu_human
        self.mu_robot = mu_robot

    def safety_gradient(self, x: NDArray) -> NDArray:
        grad_human = self.safe_set.gradient(self.human_set_id, x)
        grad_robot = self.safe_set.gradient(self.set_id, x)
        return self.mu_human * grad_human - self.mu_robot * grad_robot

    def compute(self, x: ArrayLike, t: float = 0.0) -> NDArray:
        x = np.asarray(x, dtype=float)
        if self.goal_reached(x):
            self.reset_goal(t)
        self.mode = ControlMode.OVERRIDE
        self.last_value = self.safety_value(x)
        return self.safer.get_control(x, self.safety_gradient(x))
