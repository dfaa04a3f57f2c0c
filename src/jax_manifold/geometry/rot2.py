"""Rot2: planar rotations stored as a unit (cos, sin) pair.

Keeping the cosine and sine instead of the angle makes composition, inversion
and rotation of points free of trigonometric calls.
"""

from typing import Tuple, Union

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

Array = jax.Array
Scalar = Union[float, Array]

# Below this distance the bearing to a point is undefined; identity is returned
BEARING_DEGENERATE_DISTANCE = 1e-5


@group.multiplicative_group
@register_structure(LieGroupTag)
@struct.dataclass
class Rot2:
    """Rotation by angle theta, as (c, s) = (cos(theta), sin(theta)).

    The default constructor trusts that c**2 + s**2 == 1. Use `from_cos_sin`
    for pairs that may not be normalized.
    """

    c: Scalar
    s: Scalar

    # Constructors
    @classmethod
    def identity(cls) -> "Rot2":
        return cls(jnp.asarray(1.0), jnp.asarray(0.0))

    @classmethod
    def from_angle(cls, theta: Scalar) -> "Rot2":
        return cls(jnp.cos(theta), jnp.sin(theta))

    @classmethod
    def from_cos_sin(cls, c: Scalar, s: Scalar) -> "Rot2":
        """Rotation from a (c, s) pair, normalized to unit length.

        The pair must be nonzero. A concrete zero pair raises ValueError; under
        `jax.jit` it cannot be detected and yields NaN.
        """
        n = jnp.sqrt(c * c + s * s)
        try:
            degenerate = bool(jnp.any(n == 0.0))
        except jax.errors.ConcretizationTypeError:
            degenerate = False
        if degenerate:
            raise ValueError(f"Rot2.from_cos_sin needs a nonzero (c, s) pair, got ({c}, {s})")
        return cls(c / n, s / n)

    # Accessors
    def theta(self) -> Array:
        return jnp.arctan2(self.s, self.c)

    def matrix(self) -> Array:
        """2x2 rotation matrix [[c, -s], [s, c]]."""
        return jnp.array([[self.c, -self.s], [self.s, self.c]])

    def transpose(self) -> Array:
        return jnp.array([[self.c, self.s], [-self.s, self.c]])

    # Group operations
    def __mul__(self, other: "Rot2") -> "Rot2":
        return self.compose(other)

    def compose(self, other: "Rot2") -> "Rot2":
        return Rot2(
            self.c * other.c - self.s * other.s,
            self.s * other.c + self.c * other.s,
        )

    def between(self, other: "Rot2") -> "Rot2":
        """self^-1 * other, without forming the inverse."""
        return Rot2(
            self.c * other.c + self.s * other.s,
            -self.s * other.c + self.c * other.s,
        )

    def inverse(self) -> "Rot2":
        return Rot2(self.c, -self.s)

    # Actions on points
    def rotate(self, p: Point2) -> Point2:
        return Point2(self.c * p.x - self.s * p.y, self.s * p.x + self.c * p.y)

    def unrotate(self, p: Point2) -> Point2:
        """Apply the inverse rotation, R^T p."""
        return Point2(self.c * p.x + self.s * p.y, -self.s * p.x + self.c * p.y)

    def equals(self, other: "Rot2", tol: float = DEFAULT_TOLERANCE) -> bool:
        return bool(jnp.abs(self.c - other.c) < tol) and bool(jnp.abs(self.s - other.s) < tol)


def relative_bearing(d: Point2, H: bool = False) -> Union[Rot2, Tuple[Rot2, Array]]:
    """Rotation pointing along `d`, i.e. with angle atan2(d.y, d.x).

    Args:
        d: Direction in the local frame.
        H: Also return the 1x2 Jacobian of the angle with respect to `d`.

    Returns:
        The bearing, or `(bearing, H)` if `H` is requested. The bearing is the
        identity when `d` is shorter than BEARING_DEGENERATE_DISTANCE.

    Raises:
        RangeSingularityError: `H` is requested and `d` is zero.
    """
    x, y = d.x, d.y
    d2 = x * x + y * y
    n = jnp.sqrt(d2)
    degenerate = n <= BEARING_DEGENERATE_DISTANCE
    safe_n = jnp.where(degenerate, 1.0, n)
    result = Rot2(jnp.where(degenerate, 1.0, x / safe_n), jnp.where(degenerate, 0.0, y / safe_n))
    if not H:
        return result
    require_nonzero_distance(n, "bearing")
    safe_d2 = jnp.where(d2 > 0.0, d2, 1.0)
    return result, jnp.array([[-y / safe_d2, x / safe_d2]])


class Rot2Chart:
    """Chart on Rot2: the tangent is a 1-vector holding an angle increment."""

    manifold_type = Rot2

    @staticmethod
    def local(r: Rot2, q: Rot2) -> Array:
        return jnp.reshape(r.between(q).theta(), (1,))

    @staticmethod
    def retract(r: Rot2, v: Array) -> Rot2:
        v = jnp.reshape(jnp.asarray(v), (1,))
        return r * Rot2.from_angle(v[0])


manifold.register_manifold(Rot2, dim=1, chart=Rot2Chart)
IsLieGroup(Rot2)
