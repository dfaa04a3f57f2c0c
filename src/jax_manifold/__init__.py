"""
JAX Manifold: manifold-valued quantities for nonlinear least squares.

This library provides an algebraic-structure contract system (manifolds,
groups, Lie groups, vector spaces) and a JIT-compilable realization of it for
planar rigid transforms, with closed-form Jacobians for every operation an
optimizer needs.
"""

import jax
from loguru import logger

jax.config.update("jax_enable_x64", True)

# Silent by default; re-enable with logger.enable("jax_manifold")
logger.disable("jax_manifold")

# Import core modules
from . import concepts
from . import geometry
from . import numerical
from .concepts import DEFAULT_TOLERANCE

__version__ = "0.1.0"
__all__ = ["concepts", "geometry", "numerical", "DEFAULT_TOLERANCE"]
