#!/usr/bin/env python3
"""
Scenario Runner for HJ Override

Loads a YAML scenario, runs the supervised robot for a fixed number of
ticks, prints a summary and optionally saves the recording and a figure.

Usage:
    python scripts/run_scenario.py configs/dubins_round.yaml
    python scripts/run_scenario.py configs/quadrotor_box.yaml --steps 1000 --plot
    python scripts/run_scenario.py configs/dubins_round.yaml --set-id 2 --output results -v
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path

# Add repository root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

import numpy as np

from hj_override import ScenarioConfig, build_scenario
from hj_override.dynamics import RobotKind


def main():
    """Run one scenario."""
    parser = argparse.ArgumentParser(description="Run an HJ override scenario")
    parser.add_argument("config", type=str, help="Scenario YAML file")
    parser.add_argument("--steps", type=int, default=None, help="Override the number of ticks")
    parser.add_argument("--dt", type=float, default=None, help="Override the tick length")
    parser.add_argument("--set-id", type=int, default=None, help="Palette entry to avoid with")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--output", type=str, default=None, help="Directory for recording and figures")
    parser.add_argument("--plot", action="store_true", help="Plot the trajectory")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s",
    )

    config = ScenarioConfig.from_yaml(args.config)
    if args.steps is not None:
        config.n_steps = args.steps
    if args.dt is not None:
        config.dt = args.dt
    if args.set_id is not None:
        config.set_id = args.set_id
    if args.seed is not None:
        config.seed = args.seed

    print(f"\n{'#' * 60}")
    print(f"#  HJ Override: {Path(args.config).name}")
    print(f"#  Robot: {config.robot}, controller: {config.controller}, set id: {config.set_id}")
    print(f"#  Started: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    print(f"{'#' * 60}")

    sim = build_scenario(config)
    times, states, controls = sim.run(config.n_steps, config.dt)

    recorder = sim.recorder
    override_fraction = float(np.mean(sim.override_trace)) if sim.override_trace else 0.0
    print("\nSummary:")
    print(f"  Simulated time:    {times[-1]:.2f} s ({config.n_steps} ticks)")
    print(f"  Final state:       {np.array2string(states[-1], precision=3)}")
    print(f"  Override fraction: {override_fraction:.1%}")
    print(f"  Goals reached:     {sim.controller.goals_reached}")
    print(f"  Collisions:        {len(recorder.collision_events)}")
    print(f"  Score:             {recorder.final_score}")

    if args.output is not None:
        output_dir = Path(args.output) / datetime.now().strftime("%Y%m%d_%H%M%S")
        path = recorder.save_json(output_dir / "recording.json")
        print(f"\nRecording saved to: {path}")

    if args.plot:
        import matplotlib.pyplot as plt

        from hj_override.experiments import plot_obstacles, plot_trajectory

        position_indices = sim.dynamics.POSITION_INDICES
        if config.robot == RobotKind.VERTICAL_DOUBLE_INTEGRATOR.value:
            print("Plotting needs a planar robot, skipping")
        else:
            scape = sim.scape.obstaclescape
            ax = plot_obstacles(scape.obstacles, undetected=sim.scape.undetection_mask, destroyed=scape.destroyed)
            plot_trajectory(states, position_indices, sim.override_trace, goal=sim.controller.goal, ax=ax)
            if args.output is not None:
                figure_path = output_dir / "trajectory.pdf"
                ax.figure.savefig(figure_path)
                print(f"Figure saved to: {figure_path}")
            else:
                plt.show()

    return 0


if __name__ == "__main__":
    sys.exit(main())
