"""Point2: a 2D vector, the vector-space member of the geometry types."""

from typing import Union

import jax
import jax.numpy as jnp
from flax import struct

from ..concepts import (
    DEFAULT_TOLERANCE,
    IsVectorSpace,
    VectorSpaceTag,
    group,
    manifold,
    register_structure,
)

Array = jax.Array
Scalar = Union[float, Array]


@group.additive_group
@register_structure(VectorSpaceTag)
@struct.dataclass
class Point2:
    """Immutable 2D point (x, y)."""

    x: Scalar
    y: Scalar

    @classmethod
    def identity(cls) -> "Point2":
        return cls(jnp.asarray(0.0), jnp.asarray(0.0))

    @classmethod
    def from_vector(cls, v: Array) -> "Point2":
        v = jnp.asarray(v)
        if v.shape != (2,):
            raise ValueError(f"Point2 vector must have shape (2,), got {v.shape}")
        return cls(v[0], v[1])

    def vector(self) -> Array:
        return jnp.stack([jnp.asarray(self.x), jnp.asarray(self.y)])

    def norm(self) -> Array:
        return jnp.sqrt(self.x * self.x + self.y * self.y)

    def __add__(self, other: "Point2") -> "Point2":
        return Point2(self.x + other.x, self.y + other.y)

    def __sub__(self, other: "Point2") -> "Point2":
        return Point2(self.x - other.x, self.y - other.y)

    def __neg__(self) -> "Point2":
        return Point2(-self.x, -self.y)

    def __mul__(self, scale: Scalar) -> "Point2":
        return Point2(self.x * scale, self.y * scale)

    __rmul__ = __mul__

    def equals(self, other: "Point2", tol: float = DEFAULT_TOLERANCE) -> bool:
        return bool(jnp.abs(self.x - other.x) < tol) and bool(jnp.abs(self.y - other.y) < tol)


class Point2Chart:
    """Euclidean chart: tangent vectors are plain offsets."""

    manifold_type = Point2

    @staticmethod
    def local(p: Point2, q: Point2) -> Array:
        return (q - p).vector()

    @staticmethod
    def retract(p: Point2, v: Array) -> Point2:
        return p + Point2.from_vector(v)


manifold.register_manifold(Point2, dim=2, chart=Point2Chart)
IsVectorSpace(Point2)
