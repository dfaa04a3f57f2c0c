"""Algebraic-structure contracts for optimization variables.

This module provides:
- Structure tags (manifold, group, Lie group, vector space) and trait registries
- Manifold traits and charts (manifold module)
- Group traits, free operations and generators (group module)
- Concept checks run when a participating type is defined (checks module)
"""

from . import group, manifold
from .checks import (
    Concept,
    IsChart,
    IsGroup,
    IsLieGroup,
    IsManifold,
    IsVectorSpace,
    concept_assert,
)
from .structure import (
    DEFAULT_TOLERANCE,
    ConceptError,
    GroupTag,
    LieGroupTag,
    ManifoldTag,
    TraitRegistry,
    VectorSpaceTag,
    category_of,
    register_structure,
)

__all__ = [
    "group",
    "manifold",
    "Concept",
    "IsChart",
    "IsGroup",
    "IsLieGroup",
    "IsManifold",
    "IsVectorSpace",
    "concept_assert",
    "DEFAULT_TOLERANCE",
    "ConceptError",
    "GroupTag",
    "LieGroupTag",
    "ManifoldTag",
    "TraitRegistry",
    "VectorSpaceTag",
    "category_of",
    "register_structure",
]
