"""Concept checks for the algebraic structures.

Instantiating a concept on a type verifies that the type carries the right
structure tag and the traits and operations that the structure needs:

    IsLieGroup(Pose2)  # raises ConceptError if Pose2 is not a Lie group

Checks run once, when a module defining a type is imported (or when a class
decorated with `concept_assert` is created), and never on the numeric path.
"""

from typing import Callable, Tuple, Type, TypeVar

from loguru import logger

from . import group, manifold
from .structure import (
    ConceptError,
    GroupTag,
    LieGroupTag,
    ManifoldTag,
    VectorSpaceTag,
    category_of,
    has_category,
    structure_category,
)

C = TypeVar("C", bound=type)

_OPERATORS = {
    group.MultiplicativeFlavor: ("__mul__",),
    group.AdditiveFlavor: ("__add__", "__sub__", "__neg__"),
}


def _require_category(cls: type, tag: type, what: str) -> None:
    if not has_category(cls, tag):
        found = category_of(cls).__name__ if structure_category.contains(cls) else "no tag"
        raise ConceptError(
            f"The structure_category of '{cls.__name__}' ({found}) does not assert it as {what}"
        )


def _require_operators(cls: type, names: Tuple[str, ...]) -> None:
    missing = [name for name in names if getattr(cls, name, None) is None]
    if missing:
        raise ConceptError(f"Type '{cls.__name__}' is missing operators: {', '.join(missing)}")


class Concept:
    """Base class: constructing a concept on a type runs its `usage` checks."""

    def __init__(self, cls: type):
        self.cls = cls
        self.usage()
        logger.debug("{} satisfies {}", getattr(cls, "__name__", cls), type(self).__name__)

    def usage(self) -> None:
        if not isinstance(self.cls, type):
            raise ConceptError(f"Concepts apply to types, got {self.cls!r}")


class IsChart(Concept):
    """A chart names its manifold and defines `local(p, q)` and `retract(p, v)`."""

    def usage(self) -> None:
        super().usage()
        manifold_type = getattr(self.cls, "manifold_type", None)
        if not isinstance(manifold_type, type):
            raise ConceptError(f"Chart '{self.cls.__name__}' does not declare a manifold_type")
        for name in ("local", "retract"):
            if not callable(getattr(self.cls, name, None)):
                raise ConceptError(f"Chart '{self.cls.__name__}' does not define {name}()")


class IsManifold(Concept):
    def usage(self) -> None:
        super().usage()
        cls = self.cls
        _require_category(cls, ManifoldTag, "a manifold (or derived)")

        dim = manifold.dimension.lookup(cls)
        size = manifold.tangent_size(cls)
        if size != dim:
            raise ConceptError(
                f"Tangent vector of '{cls.__name__}' has size {size}, expected dimension {dim}"
            )

        chart = manifold.default_chart.lookup(cls)
        IsChart(chart)
        if not issubclass(cls, chart.manifold_type):
            raise ConceptError(
                f"Default chart of '{cls.__name__}' is a chart on "
                f"'{chart.manifold_type.__name__}'"
            )


class IsGroup(Concept):
    def usage(self) -> None:
        super().usage()
        cls = self.cls
        _require_category(cls, GroupTag, "a group (or derived)")

        e = group.identity.lookup(cls)
        if not isinstance(e, cls):
            raise ConceptError(f"Identity of '{cls.__name__}' is a {type(e).__name__}")
        group.operations.lookup(cls)

        group_flavor = group.flavor.lookup(cls)
        if group_flavor not in _OPERATORS:
            raise ConceptError(f"Unknown group flavor {group_flavor!r} for '{cls.__name__}'")
        _require_operators(cls, _OPERATORS[group_flavor])


class IsLieGroup(IsGroup, IsManifold):
    def usage(self) -> None:
        super().usage()
        _require_category(self.cls, LieGroupTag, "a Lie group (or derived)")


class IsVectorSpace(IsLieGroup):
    def usage(self) -> None:
        super().usage()
        cls = self.cls
        _require_category(cls, VectorSpaceTag, "a vector space (or derived)")
        if group.flavor.lookup(cls) is not group.AdditiveFlavor:
            raise ConceptError(f"Vector space '{cls.__name__}' must be an additive group")
        _require_operators(cls, _OPERATORS[group.AdditiveFlavor])


def concept_assert(*concepts: Type[Concept]) -> Callable[[C], C]:
    """Class decorator: verify `concepts` as soon as the class is created.

    Apply it outermost, after the decorators that register traits.
    """

    def decorator(cls: C) -> C:
        for concept in concepts:
            concept(cls)
        return cls

    return decorator
