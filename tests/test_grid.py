"""Tests for grid value functions: interpolation, periodicity, gradients."""

import numpy as np
import pytest
from scipy.interpolate import RegularGridInterpolator

from hj_override.errors import DimensionMismatchError, GridLoadError, GridNotLoadedError
from hj_override.sets import GradientMethod, GridMetadata, GridValueFunction


def test_value_exact_on_gridpoints(dip_vf, dip_grid):
    for i in range(3):
        for j in range(3):
            state = [-1.0 + i, -1.0 + j]
            assert dip_vf.value(state) == dip_grid.data[i, j]


def test_value_exact_on_gridpoints_with_uneven_spacing():
    rng = np.random.default_rng(1)
    data = rng.normal(size=(4, 5, 3))
    meta = GridMetadata(
        gmin=[-0.3, 1.1, -2.0],
        gdx=[0.1, 0.7, 0.25],
        gN=[4, 5, 3],
        gperiodicity=[False, False, True],
        data=data,
    )
    vf = GridValueFunction(meta)
    for index in np.ndindex(4, 5, 3):
        state = meta.gmin + np.asarray(index) * meta.gdx
        assert vf.value(state) == pytest.approx(data[index], abs=1e-12)


def test_bilinear_blend_in_dip_cell(dip_vf):
    assert dip_vf.value([0.0, 0.0]) == 0.0
    assert dip_vf.value([-1.0, -1.0]) == 1.0
    assert dip_vf.value([-0.5, -0.5]) == pytest.approx(0.75)


def test_matches_scipy_multilinear_interpolation():
    rng = np.random.default_rng(2)
    gmin = np.array([-1.0, 0.0, 2.0])
    gdx = np.array([0.5, 0.25, 1.0])
    gN = (5, 6, 4)  # noqa: N806
    data = rng.normal(size=gN)
    vf = GridValueFunction(GridMetadata(gmin, gdx, gN, [False, False, False], data))

    axes = [gmin[k] + np.arange(gN[k]) * gdx[k] for k in range(3)]
    reference = RegularGridInterpolator(axes, data, method="linear")

    gmax = gmin + (np.array(gN) - 1) * gdx
    for _ in range(50):
        state = rng.uniform(gmin, gmax)
        assert vf.value(state) == pytest.approx(float(reference(state)[0]), abs=1e-10)


def test_value_is_continuous_across_cells(linear_vf):
    # Linear data is reproduced exactly by multilinear interpolation
    for state in ([0.2, 0.7], [1.999999, 3.5], [2.000001, 3.5], [3.9, 0.1]):
        assert linear_vf.value(state) == pytest.approx(2 * state[0] + 3 * state[1])


def test_constant_extrapolation_outside_non_periodic_bounds(dip_vf):
    assert dip_vf.value([-5.0, 0.0]) == dip_vf.value([-1.0, 0.0])
    assert dip_vf.value([0.0, 7.0]) == dip_vf.value([0.0, 1.0])


class TestPeriodicAxis:
    @pytest.fixture
    def ring(self):
        meta = GridMetadata(gmin=[0.0], gdx=[1.0], gN=[4], gperiodicity=[True], data=[0.0, 1.0, 2.0, 3.0])
        return GridValueFunction(meta)

    def test_wraps_between_last_and_first_gridpoint(self, ring):
        assert ring.value([3.5]) == pytest.approx(1.5)
        assert ring.value([-0.5]) == pytest.approx(1.5)

    def test_value_repeats_every_period(self, ring):
        for x in (0.0, 0.3, 1.75, 3.2):
            assert ring.value([x + 4.0]) == pytest.approx(ring.value([x]))
            assert ring.value([x - 4.0]) == pytest.approx(ring.value([x]))

    def test_heading_axis_of_a_dubins_grid(self):
        rng = np.random.default_rng(3)
        n_theta = 16
        dtheta = 2 * np.pi / n_theta
        meta = GridMetadata(
            gmin=[-2.0, -2.0, -np.pi],
            gdx=[0.5, 0.5, dtheta],
            gN=[9, 9, n_theta],
            gperiodicity=[False, False, True],
            data=rng.normal(size=(9, 9, n_theta)),
        )
        vf = GridValueFunction(meta)
        state = np.array([0.3, -0.7, 2.9])
        shifted = state + np.array([0.0, 0.0, 2 * np.pi])
        assert vf.value(shifted) == pytest.approx(vf.value(state))


    def test_nearest_gradient_across_the_seam(self, ring):
        # Cell between the last gridpoint (3) and the wrapped first one (0)
        secant = (ring.value([4.0]) - ring.value([3.0])) / 1.0
        assert secant == pytest.approx(-3.0)
        assert ring.gradient_nearest([3.5])[0] == pytest.approx(secant)
        assert ring.gradient_nearest([-0.5])[0] == pytest.approx(secant)


class TestIndices:
    def test_clamps_non_periodic_axes(self, dip_vf):
        low, high = dip_vf.indices_for([-3.0, 0.5])
        assert low.tolist() == [0, 1]
        assert high.tolist() == [0, 2]

    def test_on_grid_line_gives_equal_indices(self, dip_vf):
        low, high = dip_vf.indices_for([0.0, 1.0])
        assert low.tolist() == [1, 2]
        assert high.tolist() == [1, 2]

    def test_periodic_axes_wrap_only_when_asked(self):
        meta = GridMetadata(gmin=[0.0], gdx=[1.0], gN=[4], gperiodicity=[True], data=np.zeros(4))
        vf = GridValueFunction(meta)
        low, high = vf.indices_for([3.5])
        assert (low[0], high[0]) == (3, 4)
        low, high = vf.indices_for([3.5], wrap=True)
        assert (low[0], high[0]) == (3, 0)

    def test_index_to_state(self, dip_vf):
        assert dip_vf.index_to_state(2, 0) == 1.0
        assert dip_vf.gridded_value([1, 1]) == 0.0


class TestGradient:
    def test_centered_gradient_of_linear_data(self, linear_vf):
        np.testing.assert_allclose(linear_vf.gradient([1.3, 2.2]), [2.0, 3.0], atol=1e-12)

    def test_default_method_is_centered(self, linear_vf):
        assert linear_vf.gradient_method == GradientMethod.CENTERED

    def test_nearest_gradient_inside_cell(self, linear_vf):
        np.testing.assert_allclose(linear_vf.gradient_nearest([1.3, 2.2]), [2.0, 3.0], atol=1e-12)

    def test_nearest_gradient_is_zero_along_grid_lines(self, linear_vf):
        gradient = linear_vf.gradient_nearest([2.0, 2.5])
        assert gradient[0] == 0.0
        assert gradient[1] == pytest.approx(3.0)

    def test_nearest_method_selected_by_name(self):
        xs = np.arange(5.0)
        meta = GridMetadata([0.0], [1.0], [5], [False], xs**2)
        vf = GridValueFunction(meta, gradient_method="nearest")
        # Secant between gridpoints 1 and 2
        assert vf.gradient([1.4])[0] == pytest.approx(3.0)

    def test_centered_gradient_points_out_of_dip(self, dip_vf):
        gradient = dip_vf.gradient([0.25, 0.0])
        assert gradient[0] > 0
        assert gradient[1] == pytest.approx(0.0)

    def test_unknown_method_rejected(self):
        with pytest.raises(ValueError):
            GridValueFunction(gradient_method="upwind")


class TestLoadState:
    def test_query_before_load_raises(self):
        vf = GridValueFunction(name="pending")
        assert not vf.is_ready()
        with pytest.raises(GridNotLoadedError):
            vf.value([0.0, 0.0])
        with pytest.raises(GridNotLoadedError):
            vf.gradient([0.0, 0.0])

    def test_load_later(self, dip_grid):
        vf = GridValueFunction(name="late")
        vf.load(dip_grid)
        assert vf.is_ready()
        assert vf.n_dims == 2
        assert vf.value([0.0, 0.0]) == 0.0

    def test_state_dimension_is_checked(self, dip_vf):
        with pytest.raises(DimensionMismatchError):
            dip_vf.value([0.0, 0.0, 0.0])
        with pytest.raises(DimensionMismatchError):
            dip_vf.gradient([0.0])


class TestMetadataValidation:
    def test_shape_must_match_gN(self):  # noqa: N802
        with pytest.raises(GridLoadError):
            GridMetadata([0.0, 0.0], [1.0, 1.0], [3, 3], [False, False], np.zeros((3, 2)))

    def test_spacing_must_be_positive(self):
        with pytest.raises(GridLoadError):
            GridMetadata([0.0], [0.0], [3], [False], np.zeros(3))

    def test_axis_counts_must_agree(self):
        with pytest.raises(GridLoadError):
            GridMetadata([0.0, 0.0], [1.0], [3, 3], [False, False], np.zeros((3, 3)))

    def test_data_is_read_only(self, dip_grid):
        with pytest.raises(ValueError):
            dip_grid.data[0, 0] = 5.0

    def test_derived_quantities(self, dip_grid):
        np.testing.assert_allclose(dip_grid.gmax, [1.0, 1.0])
        np.testing.assert_allclose(dip_grid.axis_coordinates(0), [-1.0, 0.0, 1.0])


def test_grid_slice_holds_other_axes_at_lower_gridpoint():
    data = np.arange(24, dtype=float).reshape(2, 3, 4)
    meta = GridMetadata([0.0, 0.0, 0.0], [1.0, 1.0, 1.0], [2, 3, 4], [False, False, False], data)
    vf = GridValueFunction(meta)

    xs, ys, values = vf.grid_slice([0.0, 1.6, 2.0], axis_x=0, axis_y=2)
    np.testing.assert_allclose(xs, [0.0, 1.0])
    np.testing.assert_allclose(ys, [0.0, 1.0, 2.0, 3.0])
    np.testing.assert_allclose(values, data[:, 1, :])

    _, _, swapped = vf.grid_slice([0.0, 1.6, 2.0], axis_x=2, axis_y=0)
    np.testing.assert_allclose(swapped, data[:, 1, :].T)
