"""Tests for obstacles, obstacle scapes and detection masks."""

import numpy as np
import pytest

from hj_override.errors import DimensionMismatchError
from hj_override.obstacles import (
    SAFE_SENTINEL,
    BoxObstacle,
    MaskedObstaclescape,
    Obstacle,
    Obstaclescape,
    RoundObstacle,
)
from hj_override.sets import CircleSet, GridMetadata, GridValueFunction, IntervalSet, SafeSetPalette, copied_palette


@pytest.fixture
def two_obstacles():
    return Obstaclescape([Obstacle([0.0, 0.0], CircleSet(1.0)), Obstacle([5.0, 5.0], CircleSet(1.0))])


class TestObstacle:
    def test_value_in_obstacle_frame(self):
        obstacle = Obstacle([2.0, 1.0, 0.0], CircleSet(1.0))
        assert obstacle.value(0, [4.0, 1.0, 0.3]) == pytest.approx(1.0)
        np.testing.assert_allclose(obstacle.gradient(0, [4.0, 1.0, 0.3]), [1.0, 0.0, 0.0])

    def test_palette_dispatch(self):
        obstacle = Obstacle([0.0, 0.0], SafeSetPalette([CircleSet(1.0), CircleSet(2.0)]))
        assert obstacle.value(0, [3.0, 0.0]) == pytest.approx(2.0)
        assert obstacle.value(1, [3.0, 0.0]) == pytest.approx(1.0)

    def test_collision_uses_footprint_not_avoid_set(self):
        obstacle = Obstacle([0.0, 0.0], CircleSet(2.0), collision_set=CircleSet(0.5))
        assert obstacle.value(0, [1.0, 0.0]) < 0
        assert obstacle.collision_value([1.0, 0.0]) == pytest.approx(0.5)

    def test_collision_defaults_to_first_avoid_set(self):
        palette = SafeSetPalette([CircleSet(1.0), CircleSet(2.0)])
        obstacle = Obstacle([0.0, 0.0], palette)
        assert obstacle.collision_set is palette[0]

    def test_offset_dimension_checked(self):
        obstacle = Obstacle([0.0, 0.0, 0.0], CircleSet(1.0))
        with pytest.raises(DimensionMismatchError):
            obstacle.value(0, [1.0, 1.0])

    def test_offset_is_read_only(self):
        obstacle = Obstacle([1.0, 2.0], CircleSet(1.0))
        with pytest.raises(ValueError):
            obstacle.offset[0] = 3.0

    def test_round_obstacle(self):
        obstacle = RoundObstacle(1.0, -2.0, 1.8, copied_palette(CircleSet(1.8)), radius_trim=0.55)
        np.testing.assert_allclose(obstacle.offset, [1.0, -2.0, 0.0])
        np.testing.assert_allclose(obstacle.position, [1.0, -2.0])
        assert obstacle.trimmed_radius == pytest.approx(1.25)
        # Contact footprint is 95% of the nominal radius
        assert obstacle.collision_value([1.0 + 1.71, -2.0, 0.0]) == pytest.approx(0.0, abs=1e-12)

    def test_box_obstacle(self):
        obstacle = BoxObstacle(2.0, 3.0, 1.0, 0.5, IntervalSet(1.0))
        np.testing.assert_allclose(obstacle.offset, [2.0, 0.0, 3.0, 0.0])
        np.testing.assert_allclose(obstacle.position, [2.0, 3.0])
        assert obstacle.collision_value([2.5, 0.0, 3.2, 0.0]) < 0
        assert obstacle.collision_value([2.5, 0.0, 4.0, 0.0]) == pytest.approx(0.5)
        assert obstacle.corners(pad=0.1) == pytest.approx((0.9, 2.4, 3.1, 3.6))

    def test_grid_slice_in_global_coordinates(self):
        meta = GridMetadata([-1.0, -1.0], [1.0, 1.0], [3, 3], [False, False], np.zeros((3, 3)))
        obstacle = Obstacle([10.0, 20.0], GridValueFunction(meta))
        xs, ys, values = obstacle.grid_slice(0, [10.0, 20.0], 0, 1)
        np.testing.assert_allclose(xs, [9.0, 10.0, 11.0])
        np.testing.assert_allclose(ys, [19.0, 20.0, 21.0])
        assert values.shape == (3, 3)

    def test_grid_slice_needs_grid(self):
        with pytest.raises(TypeError):
            Obstacle([0.0, 0.0], CircleSet(1.0)).grid_slice(0, [0.0, 0.0], 0, 1)


class TestObstaclescape:
    def test_value_is_nearest_obstacle(self, two_obstacles):
        state = [0.1, 0.1]
        near = two_obstacles.obstacles[0].value(0, state)
        assert two_obstacles.value(0, state) == pytest.approx(near)
        assert two_obstacles.dominant_obstacle(0, state)[0] == 0

    def test_destroying_nearest_obstacle_flips_dominance(self, two_obstacles):
        state = [0.1, 0.1]
        two_obstacles.destroy(0)
        index, value = two_obstacles.dominant_obstacle(0, state)
        assert index == 1
        assert value == pytest.approx(two_obstacles.obstacles[1].value(0, state))
        np.testing.assert_allclose(
            two_obstacles.gradient(0, state),
            two_obstacles.obstacles[1].gradient(0, state),
        )

    def test_gradient_follows_value_dominance(self, two_obstacles, rng):
        for _ in range(20):
            state = rng.uniform(-2.0, 7.0, size=2)
            index, _ = two_obstacles.dominant_obstacle(0, state)
            np.testing.assert_allclose(
                two_obstacles.gradient(0, state),
                two_obstacles.obstacles[index].gradient(0, state),
            )

    def test_ties_go_to_first_obstacle(self):
        scape = Obstaclescape([Obstacle([-1.0, 0.0], CircleSet(0.5)), Obstacle([1.0, 0.0], CircleSet(0.5))])
        assert scape.dominant_obstacle(0, [0.0, 0.0])[0] == 0

    def test_sentinel_when_nothing_is_eligible(self, two_obstacles):
        two_obstacles.destroy(0)
        two_obstacles.set_undetected([False, True])
        assert two_obstacles.value(0, [0.0, 0.0]) == SAFE_SENTINEL
        np.testing.assert_array_equal(two_obstacles.gradient(0, [0.0, 0.0]), [0.0, 0.0])

    def test_value_is_not_capped_by_sentinel(self):
        scape = Obstaclescape([Obstacle([0.0, 0.0], CircleSet(1.0))])
        assert scape.value(0, [500.0, 0.0]) == pytest.approx(499.0)

    def test_undetected_obstacles_are_not_avoided(self, two_obstacles):
        two_obstacles.set_undetected([True, False])
        assert two_obstacles.dominant_obstacle(0, [0.1, 0.1])[0] == 1

    def test_collision_only_against_undetected_obstacles(self, two_obstacles):
        # Both detected: nothing to collide with, even when inside obstacle 0
        assert two_obstacles.collision_value([0.0, 0.0]) == (SAFE_SENTINEL, None)

        two_obstacles.set_undetected([True, False])
        value, index = two_obstacles.collision_value([0.0, 0.0])
        assert index == 0
        assert value == pytest.approx(-1.0)

        two_obstacles.destroy(0)
        assert two_obstacles.collision_value([0.0, 0.0]) == (SAFE_SENTINEL, None)

    def test_mask_length_checked(self, two_obstacles):
        with pytest.raises(DimensionMismatchError):
            two_obstacles.set_undetected([True])

    def test_offsets_must_agree(self):
        with pytest.raises(DimensionMismatchError):
            Obstaclescape([Obstacle([0.0, 0.0], CircleSet(1.0)), Obstacle([0.0, 0.0, 0.0], CircleSet(1.0))])

    def test_grid_slices_skip_obstacles_not_avoided(self):
        meta = GridMetadata([-1.0, -1.0], [1.0, 1.0], [3, 3], [False, False], np.zeros((3, 3)))
        scape = Obstaclescape(
            [
                Obstacle([0.0, 0.0], GridValueFunction(meta)),
                Obstacle([5.0, 0.0], GridValueFunction(meta)),
            ]
        )
        assert len(scape.grid_slices(0, [0.0, 0.0], 0, 1)) == 2

        scape.set_undetected([True, False])
        slices = scape.grid_slices(0, [0.0, 0.0], 0, 1)
        assert len(slices) == 1
        np.testing.assert_allclose(slices[0][0], [4.0, 5.0, 6.0])

    def test_readiness(self):
        pending = GridValueFunction()
        scape = Obstaclescape([Obstacle([0.0, 0.0], CircleSet(1.0)), Obstacle([0.0, 0.0], pending, CircleSet(1.0))])
        assert not scape.is_ready()


class TestMaskedObstaclescape:
    def test_mask_is_pushed_before_queries(self, two_obstacles):
        masked = MaskedObstaclescape(two_obstacles, detection_probability=1.0)
        assert masked.undetection_mask == [False, False]
        masked.undetection_mask = [True, False]
        two_obstacles.set_undetected([False, False])
        assert masked.dominant_obstacle(0, [0.1, 0.1])[0] == 1
        assert two_obstacles.undetected == [True, False]

    def test_detection_probability_extremes(self, two_obstacles, rng):
        assert MaskedObstaclescape(two_obstacles, 1.0, rng).resample_mask() == [False, False]
        assert MaskedObstaclescape(two_obstacles, 0.0, rng).resample_mask() == [True, True]

    def test_resample_is_reproducible_with_seed(self, two_obstacles):
        first = MaskedObstaclescape(two_obstacles, 0.5, np.random.default_rng(4)).undetection_mask
        second = MaskedObstaclescape(two_obstacles, 0.5, np.random.default_rng(4)).undetection_mask
        assert first == second

    def test_detection_rate_close_to_probability(self, rng):
        scape = Obstaclescape([Obstacle([float(i), 0.0], CircleSet(0.1)) for i in range(2000)])
        mask = MaskedObstaclescape(scape, 0.8, rng).undetection_mask
        assert np.mean(mask) == pytest.approx(0.2, abs=0.03)

    def test_collision_through_mask(self, two_obstacles):
        masked = MaskedObstaclescape(two_obstacles, detection_probability=0.0)
        value, index = masked.collision_value([0.0, 0.0])
        assert index == 0
        assert value < 0
        assert masked.value(0, [0.0, 0.0]) == SAFE_SENTINEL

    def test_grid_slices_follow_mask(self):
        meta = GridMetadata([-1.0, -1.0], [1.0, 1.0], [3, 3], [False, False], np.zeros((3, 3)))
        scape = Obstaclescape([Obstacle([0.0, 0.0], GridValueFunction(meta))])
        assert MaskedObstaclescape(scape, detection_probability=0.0).grid_slices(0, [0.0, 0.0], 0, 1) == []
        assert len(MaskedObstaclescape(scape, detection_probability=1.0).grid_slices(0, [0.0, 0.0], 0, 1)) == 1

    def test_rejects_bad_probability(self, two_obstacles):
        with pytest.raises(ValueError):
            MaskedObstaclescape(two_obstacles, 1.5)
