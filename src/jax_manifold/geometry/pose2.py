"""Pose2: rigid transforms of the plane, SE(2), with analytic Jacobians.

A pose (R, t) maps a point p in its local frame to R p + t in the reference
frame. Tangent vectors and Jacobian columns are ordered (dx, dy, dtheta), and
perturbations act on the right:

    pose.retract(v) == pose * Pose2.expmap(v)

Every free function below takes boolean flags selecting which Jacobians to
return. With no flag set the bare value is returned and no matrix is built;
otherwise the result is `(value, H1, H2)` with `None` in place of the
Jacobians that were not requested.
"""

from typing import Optional, Tuple, Union

import jax
import jax.numpy as jnp
from flax import struct

from ..concepts import (
    DEFAULT_TOLERANCE,
    IsLieGroup,
    LieGroupTag,
    group,
    manifold,
    register_structure,
)
from .errors import require_nonzero_distance
from .point2 import Point2
from .rot2 import Rot2, relative_bearing

Array = jax.Array
Scalar = Union[float, Array]

# Below this angle expmap/logmap use Taylor expansions
SMALL_ANGLE = 1e-6


@group.multiplicative_group
@register_structure(LieGroupTag)
@struct.dataclass
class Pose2:
    """Immutable 2D pose: rotation `r` followed by translation `t`."""

    r: Rot2
    t: Point2

    # Constructors
    @classmethod
    def identity(cls) -> "Pose2":
        return cls(Rot2.identity(), Point2.identity())

    @classmethod
    def from_angle(cls, theta: Scalar, x: Scalar, y: Scalar) -> "Pose2":
        return cls(Rot2.from_angle(theta), Point2(jnp.asarray(x), jnp.asarray(y)))

    @classmethod
    def from_vector(cls, v: Array) -> "Pose2":
        """Pose from a (3,) array [x, y, theta]."""
        v = jnp.asarray(v)
        if v.shape != (3,):
            raise ValueError(f"Pose2 vector must have shape (3,), got {v.shape}")
        return cls.from_angle(v[2], v[0], v[1])

    # Accessors
    def x(self) -> Array:
        return jnp.asarray(self.t.x)

    def y(self) -> Array:
        return jnp.asarray(self.t.y)

    def theta(self) -> Array:
        return self.r.theta()

    def vector(self) -> Array:
        return jnp.stack([self.x(), self.y(), self.theta()])

    def matrix(self) -> Array:
        """3x3 homogeneous matrix [[R, t], [0, 0, 1]]."""
        c, s = self.r.c, self.r.s
        return jnp.array(
            [
                [c, -s, self.t.x],
                [s, c, self.t.y],
                [0.0, 0.0, 1.0],
            ]
        )

    def adjoint(self) -> Array:
        """Adjoint map, taking tangent vectors at `self` to the identity."""
        c, s = self.r.c, self.r.s
        return jnp.array(
            [
                [c, -s, self.t.y],
                [s, c, -self.t.x],
                [0.0, 0.0, 1.0],
            ]
        )

    # Group operations
    def __mul__(self, other: "Pose2") -> "Pose2":
        return Pose2(self.r * other.r, self.t + self.r.rotate(other.t))

    def inverse(self) -> "Pose2":
        return Pose2(self.r.inverse(), -self.r.unrotate(self.t))

    def equals(self, other: "Pose2", tol: float = DEFAULT_TOLERANCE) -> bool:
        return self.t.equals(other.t, tol) and self.r.equals(other.r, tol)

    # Manifold
    @classmethod
    def expmap(cls, v: Array) -> "Pose2":
        """Exponential map from a tangent vector [dx, dy, dtheta]."""
        v = jnp.asarray(v)
        vx, vy, w = v[0], v[1], v[2]
        small = jnp.abs(w) < SMALL_ANGLE
        safe_w = jnp.where(small, 1.0, w)

        # t = V(w) (vx, vy) with V = [[a, -b], [b, a]]
        a = jnp.where(small, 1.0 - w * w / 6.0, jnp.sin(w) / safe_w)
        b = jnp.where(small, w / 2.0, (1.0 - jnp.cos(w)) / safe_w)
        return cls(Rot2.from_angle(w), Point2(a * vx - b * vy, b * vx + a * vy))

    @staticmethod
    def logmap(p: "Pose2") -> Array:
        """Inverse of `expmap`."""
        w = p.theta()
        c, s = p.r.c, p.r.s
        small = jnp.abs(w) < SMALL_ANGLE

        # V(w)^-1 = [[alpha, w/2], [-w/2, alpha]], alpha = w s / (2 (1 - c)).
        # For c > 0 the equivalent w (1 + c) / (2 s) avoids cancellation in 1 - c.
        use_half_angle = c > 0.0
        safe_s = jnp.where(small | ~use_half_angle, 1.0, s)
        safe_one_minus_c = jnp.where(use_half_angle, 1.0, 1.0 - c)
        alpha = jnp.where(
            small,
            1.0 - w * w / 12.0,
            jnp.where(
                use_half_angle,
                w * (1.0 + c) / (2.0 * safe_s),
                w * s / (2.0 * safe_one_minus_c),
            ),
        )
        half_w = w / 2.0
        tx, ty = p.t.x, p.t.y
        return jnp.stack([alpha * tx + half_w * ty, -half_w * tx + alpha * ty, w])

    def retract(self, v: Array) -> "Pose2":
        return Pose2Chart.retract(self, v)

    def local(self, other: "Pose2") -> Array:
        return Pose2Chart.local(self, other)


class Pose2Chart:
    """Exponential-coordinates chart on SE(2)."""

    manifold_type = Pose2

    @staticmethod
    def local(p: Pose2, q: Pose2) -> Array:
        return Pose2.logmap(between(p, q))

    @staticmethod
    def retract(p: Pose2, v: Array) -> Pose2:
        return p * Pose2.expmap(v)


manifold.register_manifold(Pose2, dim=3, chart=Pose2Chart)
IsLieGroup(Pose2)


def transform_to(
    pose: Pose2, point: Point2, H1: bool = False, H2: bool = False
) -> Union[Point2, Tuple[Point2, Optional[Array], Optional[Array]]]:
    """Express a reference-frame point in the local frame of `pose`.

    Computes q = R^T (point - t).

    Args:
        pose: The local frame.
        point: Point in the reference frame.
        H1: Return the 2x3 Jacobian of q with respect to `pose`.
        H2: Return the 2x2 Jacobian of q with respect to `point`.

    Returns:
        q, or (q, H1, H2) if any Jacobian is requested.
    """
    q = pose.r.unrotate(point - pose.t)
    if not (H1 or H2):
        return q
    D_pose = jnp.array([[-1.0, 0.0, q.y], [0.0, -1.0, -q.x]]) if H1 else None
    D_point = pose.r.transpose() if H2 else None
    return q, D_pose, D_point


def transform_from(
    pose: Pose2, point: Point2, H1: bool = False, H2: bool = False
) -> Union[Point2, Tuple[Point2, Optional[Array], Optional[Array]]]:
    """Express a local-frame point in the reference frame: R point + t."""
    q = pose.t + pose.r.rotate(point)
    if not (H1 or H2):
        return q
    D_pose = None
    if H1:
        D_pose = pose.r.matrix() @ jnp.array([[1.0, 0.0, -point.y], [0.0, 1.0, point.x]])
    D_point = pose.r.matrix() if H2 else None
    return q, D_pose, D_point


def compose(
    p1: Pose2, p2: Pose2, H1: bool = False, H2: bool = False
) -> Union[Pose2, Tuple[Pose2, Optional[Array], Optional[Array]]]:
    """p1 * p2, with Jacobians Ad(p2^-1) and the identity."""
    result = p1 * p2
    if not (H1 or H2):
        return result
    D_p1 = p2.inverse().adjoint() if H1 else None
    D_p2 = jnp.eye(3) if H2 else None
    return result, D_p1, D_p2


def inverse(p: Pose2, H: bool = False) -> Union[Pose2, Tuple[Pose2, Array]]:
    """p^-1, with Jacobian -Ad(p)."""
    result = p.inverse()
    if not H:
        return result
    return result, -p.adjoint()


def between(
    p1: Pose2, p2: Pose2, H1: bool = False, H2: bool = False
) -> Union[Pose2, Tuple[Pose2, Optional[Array], Optional[Array]]]:
    """Relative pose p1^-1 * p2, so that p1 * between(p1, p2) == p2.

    Args:
        p1: Start pose.
        p2: End pose.
        H1: Return the 3x3 Jacobian with respect to `p1`.
        H2: Return the 3x3 Jacobian with respect to `p2`, always the identity.

    Returns:
        The relative pose, or (pose, H1, H2) if any Jacobian is requested.
    """
    c1, s1 = p1.r.c, p1.r.s
    c2, s2 = p2.r.c, p2.r.s

    # Delta rotation, R1^T R2
    c = c1 * c2 + s1 * s2
    s = -s1 * c2 + c1 * s2
    R = Rot2(c, s)

    # Delta translation, R1^T (t2 - t1)
    dt = p2.t - p1.t
    x, y = dt.x, dt.y
    t = Point2(c1 * x + s1 * y, -s1 * x + c1 * y)

    result = Pose2(R, t)
    if not (H1 or H2):
        return result

    D_p1 = None
    if H1:
        # Equal to -Ad(result^-1), written out in terms of p2
        dt1 = -s2 * x + c2 * y
        dt2 = -c2 * x - s2 * y
        D_p1 = jnp.array(
            [
                [-c, -s, dt1],
                [s, -c, dt2],
                [0.0, 0.0, -1.0],
            ]
        )
    D_p2 = jnp.eye(3) if H2 else None
    return result, D_p1, D_p2


def bearing(
    pose: Pose2, point: Point2, H1: bool = False, H2: bool = False
) -> Union[Rot2, Tuple[Rot2, Optional[Array], Optional[Array]]]:
    """Direction of `point` as seen from `pose`, as a rotation.

    Jacobians are 1x3 with respect to `pose` and 1x2 with respect to `point`.

    Raises:
        RangeSingularityError: A Jacobian is requested and `point` coincides
            with the origin of `pose`.
    """
    if not (H1 or H2):
        return relative_bearing(transform_to(pose, point))
    d, D_d_pose, D_d_point = transform_to(pose, point, H1=H1, H2=H2)
    result, D_result_d = relative_bearing(d, H=True)
    return (
        result,
        D_result_d @ D_d_pose if H1 else None,
        D_result_d @ D_d_point if H2 else None,
    )


def range(
    pose: Pose2, point: Point2, H1: bool = False, H2: bool = False
) -> Union[Array, Tuple[Array, Optional[Array], Optional[Array]]]:
    """Distance from the origin of `pose` to `point`.

    Jacobians are 1x3 with respect to `pose` and 1x2 with respect to `point`.

    Raises:
        RangeSingularityError: A Jacobian is requested and `point` coincides
            with the origin of `pose`. Under `jax.jit` the Jacobians are
            zero there instead.
    """
    if not (H1 or H2):
        return transform_to(pose, point).norm()
    d, D_d_pose, D_d_point = transform_to(pose, point, H1=H1, H2=H2)
    n = d.norm()
    require_nonzero_distance(n, "range")
    safe_n = jnp.where(n > 0.0, n, 1.0)
    D_result_d = jnp.array([[d.x / safe_n, d.y / safe_n]])
    return (
        n,
        D_result_d @ D_d_pose if H1 else None,
        D_result_d @ D_d_point if H2 else None,
    )
