"""Tests for scenario configuration."""

from pathlib import Path

import numpy as np
import pytest

from hj_override.config import ObstacleSpec, ScenarioConfig, WorkspaceBounds

CONFIG_DIR = Path(__file__).parent.parent / "configs"


class TestWorkspaceBounds:
    def test_sample_stays_inside(self, rng):
        bounds = WorkspaceBounds(-2.0, 3.0, -1.0, 1.0)
        for _ in range(100):
            assert bounds.contains(bounds.sample_xy(rng))

    def test_rejects_empty_region(self):
        with pytest.raises(ValueError, match="Empty workspace"):
            WorkspaceBounds(x_min=1.0, x_max=0.0)


class TestObstacleSpec:
    def test_defaults(self):
        spec = ObstacleSpec()
        assert spec.shape == "round"
        assert spec.avoid_set == {"type": "circle"}
        assert spec.copies == 4

    def test_unknown_shape(self):
        with pytest.raises(ValueError, match="Unknown obstacle shape"):
            ObstacleSpec(shape="triangle")

    @pytest.mark.parametrize("shape, size", [("round", [1.0, 2.0]), ("box", [1.0])])
    def test_size_must_match_shape(self, shape, size):
        with pytest.raises(ValueError):
            ObstacleSpec(shape=shape, size=size)

    def test_position_must_be_planar(self):
        with pytest.raises(ValueError):
            ObstacleSpec(position=[0.0, 0.0, 0.0])


class TestScenarioConfig:
    def test_trigger_level_defaults_to_car_radius(self):
        assert ScenarioConfig().effective_trigger_level == pytest.approx(0.55)
        assert ScenarioConfig(trigger_level=0.1).effective_trigger_level == pytest.approx(0.1)

    def test_from_dict_builds_nested_configs(self):
        config = ScenarioConfig.from_dict(
            {
                "max_u": 2.0,
                "workspace": {"x_min": -1.0, "x_max": 1.0, "y_min": -1.0, "y_max": 1.0},
                "obstacles": [{"shape": "box", "size": [0.5, 0.5], "avoid_set": {"type": "interval"}}],
            }
        )
        assert config.max_u == 2.0
        assert isinstance(config.workspace, WorkspaceBounds)
        assert isinstance(config.obstacles[0], ObstacleSpec)
        assert config.obstacles[0].shape == "box"

    def test_from_dict_rejects_unknown_keys(self):
        with pytest.raises(ValueError, match="max_speed"):
            ScenarioConfig.from_dict({"max_speed": 3.0})

    def test_yaml_round_trip(self, tmp_path):
        config = ScenarioConfig(seed=11, goal=[2.0, 2.0], obstacles=[ObstacleSpec(position=[1.0, -1.0])])
        path = config.to_yaml(tmp_path / "scenario.yaml")
        loaded = ScenarioConfig.from_yaml(path)
        assert loaded == config

    def test_empty_yaml_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert ScenarioConfig.from_yaml(path) == ScenarioConfig()

    @pytest.mark.parametrize("name", ["dubins_round.yaml", "quadrotor_box.yaml"])
    def test_bundled_configs_load(self, name):
        config = ScenarioConfig.from_yaml(CONFIG_DIR / name)
        assert config.obstacles
        assert np.isfinite(config.effective_trigger_level)
