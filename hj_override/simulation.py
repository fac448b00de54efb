"""
Simulation Driver

SimulationContext owns everything a control tick touches (robot state,
clock, controller, obstacle scape, recorder), so nothing lives in
module-level state. One tick computes the supervised control, integrates
the dynamics with forward Euler, advances the clock and checks contact.

build_scenario() assembles a complete context from a ScenarioConfig.

Example:
    >>> config = ScenarioConfig.from_yaml("configs/dubins_round.yaml")
    >>> sim = build_scenario(config)
    >>> times, states, controls = sim.run(config.n_steps, config.dt)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from .config import ObstacleSpec, ScenarioConfig
from .control import (
    ConcatController,
    ControlMode,
    DubinsTracker,
    LegibleController,
    PaletteInterventionController,
    PDController,
)
from .dynamics import ControlAffineDynamics, RobotKind, create_dynamics, default_initial_state
from .errors import GridNotLoadedError
from .obstacles import BoxObstacle, MaskedObstaclescape, Obstacle, Obstaclescape, RoundObstacle
from .recording import Recorder
from .sets import (
    CircleSet,
    ClosestApproachSet,
    CoupledPairSet,
    DoubleIntegratorSet,
    IntervalSet,
    ReachsetLoader,
    SafeSet,
    SafeSetPalette,
    copied_palette,
    learned_palette,
    trifecta_palette,
)

logger = logging.getLogger(__name__)


@dataclass
class SimulationContext:
    """
    State of a running single-robot simulation.

    Attributes:
        dynamics: Robot model
        controller: Supervisor with compute(x, t) and is_ready()
        state: Current robot state
        t: Simulation clock
        scape: Obstacle scape used for contact checks (optional)
        recorder: Receives state samples and collision events (optional)
        robot_id: Robot identifier in recorded events
    """

    dynamics: ControlAffineDynamics
    controller: Any
    state: Optional[NDArray] = None
    t: float = 0.0
    scape: Optional[Any] = None
    recorder: Optional[Recorder] = None
    robot_id: int = 0

    # Traces
    override_trace: List[bool] = field(default_factory=list)
    colliding_with: Optional[int] = field(default=None, init=False)

    def __post_init__(self):
        self.state = default_initial_state(self.dynamics, self.state)

    def is_ready(self) -> bool:
        """True once every grid reachable from the controller and scape is loaded."""
        ready = self.controller.is_ready()
        if self.scape is not None:
            ready = ready and self.scape.is_ready()
        return ready

    def goal(self) -> NDArray:
        goal = getattr(self.controller, "goal", None)
        if goal is None:
            return np.zeros(0)
        return np.asarray(goal, dtype=float)

    # =========================================================================
    # Tick
    # =========================================================================

    def tick(self, dt: float) -> NDArray:
        """
        Advance the simulation by one control step.

        Args:
            dt: Elapsed time since the previous tick

        Returns:
            Control applied over the step (n_control,)
        """
        if not self.is_ready():
            raise GridNotLoadedError("Must load all reachsets before the first tick")

        u = self.controller.compute(self.state, self.t)
        self.override_trace.append(getattr(self.controller, "mode", None) == ControlMode.OVERRIDE)

        self.state = self.dynamics.step(self.state, u, dt)
        self.t += dt

        if self.recorder is not None:
            self.recorder.record_state(self.robot_id, self.state, self.t)
        self.check_collision()
        return u

    def check_collision(self) -> Optional[int]:
        """
        Check contact against the scape's collidable obstacles.

        A collision event is recorded when contact with an obstacle begins,
        not on every tick spent in contact.

        Returns:
            Index of the obstacle in contact, None if clear
        """
        if self.scape is None:
            return None

        value, index = self.scape.collision_value(self.state)
        if index is None or value > 0:
            self.colliding_with = None
            return None

        if index != self.colliding_with and self.recorder is not None:
            self.recorder.record_collision(
                self.robot_id,
                list(getattr(self.scape, "undetection_mask", [])),
                self.goal(),
                self.t,
                index,
                value,
            )
        self.colliding_with = index
        return index

    def run(self, n_steps: int, dt: float) -> Tuple[NDArray, NDArray, NDArray]:
        """
        Run a fixed number of ticks.

        Returns:
            t: Time vector (n_steps + 1,)
            x: State trajectory (n_steps + 1, n_state)
            u: Control trajectory (n_steps, n_control)
        """
        times = np.zeros(n_steps + 1)
        states = np.zeros((n_steps + 1, self.dynamics.n_state))
        controls = np.zeros((n_steps, self.dynamics.n_control))

        times[0] = self.t
        states[0] = self.state
        for k in range(n_steps):
            controls[k] = self.tick(dt)
            times[k + 1] = self.t
            states[k + 1] = self.state
        return times, states, controls


# =============================================================================
# Scenario Builders
# =============================================================================


def build_avoid_sets(
    spec: ObstacleSpec,
    config: ScenarioConfig,
    loader: Optional[Callable[[str], SafeSet]] = None,
) -> Union[SafeSet, SafeSetPalette]:
    """
    Build the avoid-set palette described by an obstacle spec.

    Args:
        spec: Obstacle description
        config: Scenario (for the control bound of analytic braking sets)
        loader: Maps set names to grids, required for grid-backed types

    Returns:
        Safe set palette in obstacle-relative coordinates
    """
    kind = spec.avoid_set.get("type", "circle")
    # The vertical robot only sees the height of a box
    sizes = spec.size[-1:] if config.robot == RobotKind.VERTICAL_DOUBLE_INTEGRATOR.value else spec.size

    if kind == "circle":
        return copied_palette(CircleSet(sizes[0]), spec.copies)
    if kind == "closest_approach":
        return copied_palette(ClosestApproachSet(sizes[0]), spec.copies)
    if kind == "interval":
        if len(sizes) == 1:
            return copied_palette(IntervalSet(sizes[0]), spec.copies)
        return copied_palette(CoupledPairSet(IntervalSet(sizes[0]), IntervalSet(sizes[1])), spec.copies)
    if kind == "double_integrator":
        if len(sizes) == 1:
            return copied_palette(DoubleIntegratorSet(config.max_u, 0.0, sizes[0]), spec.copies)
        return copied_palette(
            CoupledPairSet(
                DoubleIntegratorSet(config.max_u, 0.0, sizes[0]),
                DoubleIntegratorSet(config.max_u, 0.0, sizes[1]),
            ),
            spec.copies,
        )

    if kind not in ("reachset", "learned", "trifecta"):
        raise ValueError(f"Unknown avoid set type: {kind}")
    if loader is None:
        raise ValueError(f"Avoid set type '{kind}' needs a reachset loader")
    name = spec.avoid_set["name"]
    if kind == "reachset":
        return copied_palette(loader(name), spec.copies)
    if kind == "learned":
        return learned_palette(name, loader)
    return trifecta_palette(name, loader)


def build_obstacle(
    spec: ObstacleSpec,
    config: ScenarioConfig,
    loader: Optional[Callable[[str], SafeSet]] = None,
) -> Obstacle:
    """Place an obstacle for the configured robot."""
    robot = RobotKind(config.robot)
    avoid_sets = build_avoid_sets(spec, config, loader)
    x, y = spec.position

    if spec.shape == "round" and robot == RobotKind.DUBINS:
        return RoundObstacle(x, y, spec.size[0], avoid_sets, radius_trim=spec.radius_trim)
    if spec.shape == "box" and robot == RobotKind.PLANAR_DOUBLE_INTEGRATOR:
        return BoxObstacle(x, y, spec.size[0], spec.size[1], avoid_sets)
    if spec.shape == "box" and robot == RobotKind.VERTICAL_DOUBLE_INTEGRATOR:
        return Obstacle([y, 0.0], avoid_sets, IntervalSet(spec.size[1]))
    raise ValueError(f"Unsupported obstacle shape for {robot.value}: {spec.shape}")


def build_tracker(dynamics: ControlAffineDynamics, config: ScenarioConfig) -> Any:
    """Nominal goal tracker for the configured robot."""
    robot = RobotKind(config.robot)
    goal_x, goal_y = config.goal[0], config.goal[1]

    if robot == RobotKind.DUBINS:
        return DubinsTracker(config.max_u, [goal_x, goal_y])
    if robot == RobotKind.PLANAR_DOUBLE_INTEGRATOR:
        return ConcatController([PDController(dynamics, goal_x, 0), PDController(dynamics, goal_y, 2)])
    return ConcatController([PDController(dynamics, goal_y, 0)])


def build_scenario(
    config: ScenarioConfig,
    loader: Optional[Callable[[str], SafeSet]] = None,
) -> SimulationContext:
    """
    Assemble a simulation from a scenario configuration.

    Args:
        config: Scenario configuration
        loader: Maps set names to grids; defaults to a ReachsetLoader over
            config.reachset_root when one is given

    Returns:
        Ready-to-run simulation context
    """
    if loader is None and config.reachset_root is not None:
        loader = ReachsetLoader(config.reachset_root)

    rng = np.random.default_rng(config.seed)
    kwargs = {"speed": config.speed} if config.robot == RobotKind.DUBINS.value else {}
    dynamics = create_dynamics(config.robot, **kwargs)

    obstacles = [build_obstacle(spec, config, loader) for spec in config.obstacles]
    scape = MaskedObstaclescape(Obstaclescape(obstacles), config.detection_probability, rng=rng)

    recorder = Recorder(seed=config.seed, driving_style=config.controller)
    recorder.record_regen(0.0, [obstacle.position for obstacle in obstacles])

    tracker = build_tracker(dynamics, config)
    common = {
        "trigger_level": config.effective_trigger_level,
        "recorder": recorder,
        "workspace": config.workspace,
        "goal_tolerance": config.goal_tolerance,
        "rng": rng,
    }
    if config.controller == "intervention":
        controller = PaletteInterventionController(dynamics, scape, config.set_id, config.max_u, tracker, **common)
    elif config.controller == "legible":
        controller = LegibleController(dynamics, scape, config.max_u, tracker, robot_set_id=config.set_id, **common)
    else:
        raise ValueError(f"Unknown controller: {config.controller}")

    logger.info("Built %s scenario with %d obstacles", config.robot, len(obstacles))
    return SimulationContext(
        dynamics=dynamics,
        controller=controller,
        state=config.initial_state,
        scape=scape,
        recorder=recorder,
    )
