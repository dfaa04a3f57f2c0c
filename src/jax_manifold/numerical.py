"""Numerical derivatives through manifold charts.

Central differences taken in tangent coordinates: inputs are perturbed with
their default chart's `retract`, and output differences are measured with the
output's `local`. The result is therefore directly comparable with the
analytic Jacobians returned by the geometry functions.
"""

from typing import Any, Callable

import jax
import jax.numpy as jnp

from .concepts import manifold

Array = jax.Array

NUMERICAL_DELTA = 1e-5


class _ArrayChart:
    """Euclidean chart for values that are plain arrays or scalars."""

    @staticmethod
    def local(p: Any, q: Any) -> Array:
        return jnp.ravel(jnp.asarray(q) - jnp.asarray(p))

    @staticmethod
    def retract(p: Any, v: Array) -> Array:
        p = jnp.asarray(p)
        return p + jnp.reshape(v, p.shape)


def _chart_for(value: Any):
    if manifold.default_chart.contains(type(value)):
        return manifold.default_chart.lookup(type(value))
    return _ArrayChart


def _tangent_dim(value: Any) -> int:
    if manifold.dimension.contains(type(value)):
        return manifold.dimension.lookup(type(value))
    return int(jnp.size(jnp.asarray(value)))


def numerical_derivative11(
    f: Callable[[Any], Any], x: Any, delta: float = NUMERICAL_DELTA
) -> Array:
    """Jacobian of `f` at `x` by central differences.

    Returns:
        (m, n) array, where n is the tangent dimension of `x` and m that of
        `f(x)`.
    """
    fx = f(x)
    x_chart = _chart_for(x)
    y_chart = _chart_for(fx)

    columns = []
    for j in range(_tangent_dim(x)):
        d = jnp.zeros(_tangent_dim(x)).at[j].set(delta)
        plus = y_chart.local(fx, f(x_chart.retract(x, d)))
        minus = y_chart.local(fx, f(x_chart.retract(x, -d)))
        columns.append((plus - minus) / (2.0 * delta))
    return jnp.stack(columns, axis=-1)


def numerical_derivative21(
    f: Callable[[Any, Any], Any], x1: Any, x2: Any, delta: float = NUMERICAL_DELTA
) -> Array:
    """Jacobian of `f(x1, x2)` with respect to `x1`."""
    return numerical_derivative11(lambda a: f(a, x2), x1, delta)


def numerical_derivative22(
    f: Callable[[Any, Any], Any], x1: Any, x2: Any, delta: float = NUMERICAL_DELTA
) -> Array:
    """Jacobian of `f(x1, x2)` with respect to `x2`."""
    return numerical_derivative11(lambda b: f(x1, b), x2, delta)
