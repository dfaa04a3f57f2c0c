"""Manifold traits and charts.

A manifold type declares its dimension, the shape of its tangent vectors, and
a default chart: the pair of maps between the manifold and the flat tangent
space around a reference point.
"""

from typing import Any, Optional, Protocol, Tuple, TypeVar, runtime_checkable

import jax
import numpy as np

from .structure import DEFAULT_TOLERANCE, TraitRegistry, require_testable

Array = jax.Array
T = TypeVar("T")

dimension: TraitRegistry[int] = TraitRegistry("dimension")
tangent_vector: TraitRegistry[Tuple[int, ...]] = TraitRegistry("tangent_vector")
default_chart: TraitRegistry[type] = TraitRegistry("default_chart")


@runtime_checkable
class Chart(Protocol):
    """Local coordinates around a point of `manifold_type`."""

    manifold_type: type

    @staticmethod
    def local(p: Any, q: Any) -> Array:
        """Tangent vector at `p` that reaches `q`."""
        ...

    @staticmethod
    def retract(p: Any, v: Array) -> Any:
        """Point reached by moving from `p` along tangent vector `v`."""
        ...


def register_manifold(
    cls: type,
    *,
    dim: int,
    chart: type,
    tangent_shape: Optional[Tuple[int, ...]] = None,
) -> None:
    """Attach manifold traits to `cls`.

    Args:
        cls: The manifold type.
        dim: Dimension of the tangent space.
        chart: Default chart class for `cls`.
        tangent_shape: Shape of a tangent vector, `(dim,)` if omitted.
    """
    if tangent_shape is None:
        tangent_shape = (dim,)
    dimension.register(cls, dim)
    tangent_vector.register(cls, tuple(tangent_shape))
    default_chart.register(cls, chart)


def tangent_size(cls: type) -> int:
    return int(np.prod(tangent_vector.lookup(cls)))


def check_invariants(a: T, b: T, tol: float = DEFAULT_TOLERANCE) -> bool:
    """Check that the default chart of `a`'s type round-trips `b`.

    Returns:
        True if `retract(a, local(a, b))` equals `b` within `tol`.
    """
    cls = type(a)
    require_testable(cls)
    chart = default_chart.lookup(cls)
    return bool(chart.retract(a, chart.local(a, b)).equals(b, tol))
