"""Tests for the analytic Jacobians of the Pose2 functions."""

from functools import partial

import jax
import jax.numpy as jnp
import numpy as np
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st
from jax.experimental import checkify

from jax_manifold.geometry import (
    Point2,
    Pose2,
    RangeSingularityError,
    Rot2,
    Rot2Chart,
    pose2,
    relative_bearing,
)
from jax_manifold.geometry.pose2 import Pose2Chart
from jax_manifold.numerical import (
    numerical_derivative11,
    numerical_derivative21,
    numerical_derivative22,
)

angles = st.floats(min_value=-np.pi, max_value=np.pi, allow_nan=False)
coords = st.floats(min_value=-10.0, max_value=10.0, allow_nan=False)


def assert_jacobian_close(H, H_numerical):
    np.testing.assert_allclose(H, H_numerical, rtol=1e-5, atol=1e-5)


# Numerical differentiation helper
def test_numerical_derivative_scalar():
    """Test central differences on a scalar function."""
    H = numerical_derivative11(lambda x: x**3, jnp.asarray(2.0))
    np.testing.assert_allclose(H, jnp.array([[12.0]]), rtol=1e-8)


def test_numerical_derivative_point2_norm():
    """Test central differences from a Point2 to a scalar."""
    H = numerical_derivative11(lambda p: p.norm(), Point2(3.0, 4.0))
    np.testing.assert_allclose(H, jnp.array([[0.6, 0.8]]), rtol=1e-8)


# transform_to
def test_transform_to_jacobians_closed_form():
    """Test the closed-form transform_to Jacobians at a known point."""
    pose = Pose2.from_angle(jnp.pi / 2, 0.0, 0.0)
    point = Point2(1.0, 0.0)

    q, H1, H2 = pose2.transform_to(pose, point, H1=True, H2=True)

    # q = (0, -1)
    expected_H1 = jnp.array([[-1.0, 0.0, -1.0], [0.0, -1.0, 0.0]])
    np.testing.assert_allclose(H1, expected_H1, atol=1e-12)
    np.testing.assert_allclose(H2, pose.r.transpose(), atol=1e-12)


@given(angles, coords, coords, coords, coords)
@settings(deadline=None)
def test_transform_to_jacobians(theta, x, y, px, py):
    """Property test: transform_to Jacobians match numerical differentiation."""
    pose = Pose2.from_angle(theta, x, y)
    point = Point2(px, py)

    _, H1, H2 = pose2.transform_to(pose, point, H1=True, H2=True)

    assert_jacobian_close(H1, numerical_derivative21(pose2.transform_to, pose, point))
    assert_jacobian_close(H2, numerical_derivative22(pose2.transform_to, pose, point))


@given(angles, coords, coords, coords, coords)
@settings(deadline=None)
def test_transform_from_jacobians(theta, x, y, px, py):
    """Property test: transform_from Jacobians match numerical differentiation."""
    pose = Pose2.from_angle(theta, x, y)
    point = Point2(px, py)

    _, H1, H2 = pose2.transform_from(pose, point, H1=True, H2=True)

    assert_jacobian_close(H1, numerical_derivative21(pose2.transform_from, pose, point))
    assert_jacobian_close(H2, numerical_derivative22(pose2.transform_from, pose, point))


# Group operations
@given(angles, coords, coords, angles, coords, coords)
@settings(deadline=None)
def test_compose_jacobians(t1, x1, y1, t2, x2, y2):
    """Property test: compose Jacobians match numerical differentiation."""
    p1 = Pose2.from_angle(t1, x1, y1)
    p2 = Pose2.from_angle(t2, x2, y2)

    _, H1, H2 = pose2.compose(p1, p2, H1=True, H2=True)

    assert_jacobian_close(H1, numerical_derivative21(pose2.compose, p1, p2))
    assert_jacobian_close(H2, numerical_derivative22(pose2.compose, p1, p2))


@given(angles, coords, coords)
@settings(deadline=None)
def test_inverse_jacobian(theta, x, y):
    """Property test: inverse Jacobian matches numerical differentiation."""
    p = Pose2.from_angle(theta, x, y)

    _, H = pose2.inverse(p, H=True)

    assert_jacobian_close(H, numerical_derivative11(pose2.inverse, p))


def test_between_jacobian_rotated_to_identity():
    """Between a quarter-turned pose and the identity."""
    p1 = Pose2.from_angle(jnp.pi / 2, 0.0, 0.0)
    p2 = Pose2.identity()

    _, H1, H2 = pose2.between(p1, p2, H1=True, H2=True)

    assert_jacobian_close(H1, numerical_derivative21(pose2.between, p1, p2))
    np.testing.assert_allclose(H2, jnp.eye(3))


@given(angles, coords, coords, angles, coords, coords)
@settings(deadline=None)
def test_between_jacobians(t1, x1, y1, t2, x2, y2):
    """Property test: between Jacobians match numerical differentiation."""
    p1 = Pose2.from_angle(t1, x1, y1)
    p2 = Pose2.from_angle(t2, x2, y2)

    _, H1, H2 = pose2.between(p1, p2, H1=True, H2=True)

    assert_jacobian_close(H1, numerical_derivative21(pose2.between, p1, p2))
    assert_jacobian_close(H2, numerical_derivative22(pose2.between, p1, p2))


def test_between_jacobian_is_negative_adjoint():
    """The closed-form between H1 equals -Ad(between(p1, p2)^-1)."""
    p1 = Pose2.from_angle(0.9, 1.0, -2.0)
    p2 = Pose2.from_angle(-2.5, 4.0, 0.5)

    result, H1, _ = pose2.between(p1, p2, H1=True)

    np.testing.assert_allclose(H1, -result.inverse().adjoint(), atol=1e-12)


def test_between_jacobian_autodiff():
    """Cross-check between H1 against jax.jacfwd through the chart."""
    p1 = Pose2.from_angle(0.4, -1.0, 3.0)
    p2 = Pose2.from_angle(2.2, 2.0, 1.0)
    result, H1, _ = pose2.between(p1, p2, H1=True)

    def perturbed(v):
        return Pose2Chart.local(result, pose2.between(Pose2Chart.retract(p1, v), p2))

    H1_autodiff = jax.jacfwd(perturbed)(jnp.zeros(3))
    np.testing.assert_allclose(H1, H1_autodiff, atol=1e-9)


# Bearing and range
def local_offsets():
    """Strategy for points at least 0.1 away from the pose origin."""
    return st.tuples(
        st.floats(min_value=0.1, max_value=10.0),
        angles,
    )


@given(angles, coords, coords, local_offsets())
@settings(deadline=None)
def test_bearing_jacobians(theta, x, y, offset):
    """Property test: bearing Jacobians match numerical differentiation."""
    pose = Pose2.from_angle(theta, x, y)
    distance, direction = offset
    local = Point2(distance * np.cos(direction), distance * np.sin(direction))
    point = pose2.transform_from(pose, local)

    result, H1, H2 = pose2.bearing(pose, point, H1=True, H2=True)

    np.testing.assert_allclose(Rot2Chart.local(Rot2.from_angle(direction), result), 0.0, atol=1e-9)
    assert H1.shape == (1, 3)
    assert H2.shape == (1, 2)
    assert_jacobian_close(H1, numerical_derivative21(pose2.bearing, pose, point))
    assert_jacobian_close(H2, numerical_derivative22(pose2.bearing, pose, point))


@given(angles, coords, coords, local_offsets())
@settings(deadline=None)
def test_range_jacobians(theta, x, y, offset):
    """Property test: range Jacobians match numerical differentiation."""
    pose = Pose2.from_angle(theta, x, y)
    distance, direction = offset
    local = Point2(distance * np.cos(direction), distance * np.sin(direction))
    point = pose2.transform_from(pose, local)

    result, H1, H2 = pose2.range(pose, point, H1=True, H2=True)

    np.testing.assert_allclose(result, distance, rtol=1e-9)
    assert H1.shape == (1, 3)
    assert H2.shape == (1, 2)
    assert_jacobian_close(H1, numerical_derivative21(pose2.range, pose, point))
    assert_jacobian_close(H2, numerical_derivative22(pose2.range, pose, point))


def test_range_jacobian_known_values():
    """Range from the origin to (3, 4): derivative is the unit direction."""
    pose = Pose2.identity()
    point = Point2(3.0, 4.0)

    result, H1, H2 = pose2.range(pose, point, H1=True, H2=True)

    np.testing.assert_allclose(result, 5.0, rtol=1e-12)
    np.testing.assert_allclose(H1, jnp.array([[-0.6, -0.8, 0.0]]), atol=1e-12)
    np.testing.assert_allclose(H2, jnp.array([[0.6, 0.8]]), atol=1e-12)


def test_relative_bearing_degenerate_value():
    """A zero-length direction gives the identity bearing."""
    assert relative_bearing(Point2(0.0, 0.0)).equals(Rot2.identity())


# Value-only calls
@pytest.mark.parametrize(
    "fn, args",
    [
        (pose2.transform_to, (Pose2.from_angle(0.3, 1.0, 2.0), Point2(-1.0, 4.0))),
        (pose2.transform_from, (Pose2.from_angle(0.3, 1.0, 2.0), Point2(-1.0, 4.0))),
        (pose2.compose, (Pose2.from_angle(0.3, 1.0, 2.0), Pose2.from_angle(-1.0, 0.0, 5.0))),
        (pose2.between, (Pose2.from_angle(0.3, 1.0, 2.0), Pose2.from_angle(-1.0, 0.0, 5.0))),
        (pose2.bearing, (Pose2.from_angle(0.3, 1.0, 2.0), Point2(-1.0, 4.0))),
        (pose2.range, (Pose2.from_angle(0.3, 1.0, 2.0), Point2(-1.0, 4.0))),
    ],
)
def test_value_only_matches_value_with_jacobians(fn, args):
    """The primary result does not depend on which Jacobians are requested."""
    value = fn(*args)
    for flags in ({"H1": True}, {"H2": True}, {"H1": True, "H2": True}):
        result, H1, H2 = fn(*args, **flags)
        np.testing.assert_array_equal(
            jnp.stack(jax.tree_util.tree_leaves(result)),
            jnp.stack(jax.tree_util.tree_leaves(value)),
        )
        assert (H1 is None) != flags.get("H1", False)
        assert (H2 is None) != flags.get("H2", False)


def test_inverse_value_only():
    """inverse returns a bare pose unless its Jacobian is requested."""
    p = Pose2.from_angle(0.3, 1.0, 2.0)
    result, H = pose2.inverse(p, H=True)
    assert isinstance(pose2.inverse(p), Pose2)
    assert result.equals(pose2.inverse(p))
    assert H.shape == (3, 3)


# Singularities
def test_range_value_at_zero_distance():
    """The range itself is defined at zero distance."""
    pose = Pose2.from_angle(0.5, 1.0, 1.0)
    np.testing.assert_allclose(pose2.range(pose, Point2(1.0, 1.0)), 0.0, atol=1e-12)


@pytest.mark.parametrize("fn", [pose2.range, pose2.bearing])
@pytest.mark.parametrize("flags", [{"H1": True}, {"H2": True}])
def test_jacobian_at_zero_distance_raises(fn, flags):
    """Jacobians at zero distance are a precondition failure."""
    pose = Pose2.from_angle(0.5, 1.0, 1.0)
    with pytest.raises(RangeSingularityError, match="singular at zero distance"):
        fn(pose, Point2(1.0, 1.0), **flags)


def test_range_singularity_under_jit():
    """Under jit, the zero-distance failure surfaces through checkify."""
    checked = jax.jit(checkify.checkify(partial(pose2.range, H1=True)))

    err, _ = checked(Pose2.identity(), Point2(0.0, 0.0))
    assert err.get() is not None
    assert "singular at zero distance" in err.get()

    err, (n, H1, _) = checked(Pose2.identity(), Point2(3.0, 4.0))
    assert err.get() is None
    np.testing.assert_allclose(n, 5.0, rtol=1e-12)
    np.testing.assert_allclose(H1, jnp.array([[-0.6, -0.8, 0.0]]), atol=1e-12)


@pytest.mark.parametrize("fn", [pose2.range, pose2.bearing])
def test_jacobians_under_plain_jit(fn):
    """Jacobian-requesting range and bearing compile without checkify."""
    pose = Pose2.from_angle(0.3, 1.0, -2.0)
    point = Point2(4.0, 2.0)
    jitted = jax.jit(fn, static_argnames=("H1", "H2"))

    result, H1, H2 = jitted(pose, point, H1=True, H2=True)
    expected, H1_expected, H2_expected = fn(pose, point, H1=True, H2=True)

    np.testing.assert_allclose(
        jnp.stack(jax.tree_util.tree_leaves(result)),
        jnp.stack(jax.tree_util.tree_leaves(expected)),
        atol=1e-12,
    )
    np.testing.assert_allclose(H1, H1_expected, atol=1e-12)
    np.testing.assert_allclose(H2, H2_expected, atol=1e-12)


@pytest.mark.parametrize("fn", [pose2.range, pose2.bearing])
def test_jacobians_at_zero_distance_under_plain_jit(fn):
    """Without checkify the zero-distance Jacobians are finite zeros."""
    jitted = jax.jit(fn, static_argnames=("H1", "H2"))
    _, H1, H2 = jitted(Pose2.identity(), Point2(0.0, 0.0), H1=True, H2=True)
    np.testing.assert_array_equal(H1, jnp.zeros((1, 3)))
    np.testing.assert_array_equal(H2, jnp.zeros((1, 2)))


def test_bearing_singularity_under_jit():
    """Under jit, the bearing zero-distance failure surfaces through checkify."""
    checked = jax.jit(checkify.checkify(partial(pose2.bearing, H2=True)))
    err, _ = checked(Pose2.identity(), Point2(0.0, 0.0))
    assert "singular at zero distance" in err.get()
