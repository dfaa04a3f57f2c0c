"""Precondition failures of the geometry functions."""

import jax
from jax.experimental import checkify
from loguru import logger


class RangeSingularityError(ValueError):
    """A derivative of range or bearing was requested at zero distance."""


def require_nonzero_distance(n: jax.Array, operation: str) -> None:
    """Fail if the local-frame distance `n` is zero.

    With concrete values this raises RangeSingularityError. Under `jax.jit` the
    value is not known, so a checkify debug check is staged instead: it reports
    through `checkify.checkify` when the caller wraps the function, and is a
    no-op otherwise. The Jacobians computed on that path are zero at n == 0.
    """
    try:
        distance = float(n)
    except jax.errors.ConcretizationTypeError:
        checkify.debug_check(n > 0, f"{operation} Jacobian is singular at zero distance")
        return
    if distance == 0.0:
        logger.warning("{} Jacobian requested at zero distance", operation)
        raise RangeSingularityError(f"{operation} Jacobian is singular at zero distance")
