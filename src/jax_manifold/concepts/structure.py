"""Algebraic structure tags and the per-type trait registries.

Every type that takes part in optimization is associated with exactly one
structure tag. The tags form a small lattice:

    ManifoldTag    GroupTag
          \\        /
         LieGroupTag
              |
        VectorSpaceTag

A concept check (see `jax_manifold.concepts.checks`) asks whether the tag
registered for a type is a subclass of the tag the concept requires.
"""

from typing import Any, Callable, Dict, Generic, Type, TypeVar

from loguru import logger

V = TypeVar("V")
C = TypeVar("C", bound=type)

# Default tolerance of equals() and the invariant checks
DEFAULT_TOLERANCE = 1e-9


class ConceptError(TypeError):
    """A type does not satisfy the structural contract it is used under."""


class ManifoldTag:
    """Marker: the type is a manifold."""


class GroupTag:
    """Marker: the type is a group."""


class LieGroupTag(ManifoldTag, GroupTag):
    """Marker: the type is a Lie group, hence both a manifold and a group."""


class VectorSpaceTag(LieGroupTag):
    """Marker: the type is a vector space, the simplest Lie group."""


class TraitRegistry(Generic[V]):
    """Mapping from a type to one trait value.

    Lookups walk the method resolution order, so a subclass inherits the
    traits of its base unless it registers its own.
    """

    def __init__(self, name: str):
        self.name = name
        self._values: Dict[type, V] = {}

    def register(self, cls: type, value: V) -> None:
        self._values[cls] = value
        logger.debug("Registered {} trait for {}", self.name, cls.__name__)

    def contains(self, cls: type) -> bool:
        return any(base in self._values for base in cls.__mro__)

    def lookup(self, cls: type) -> V:
        for base in cls.__mro__:
            if base in self._values:
                return self._values[base]
        raise ConceptError(f"Type '{cls.__name__}' has no '{self.name}' trait")

    def __repr__(self) -> str:
        return f"TraitRegistry({self.name!r}, {len(self._values)} types)"


structure_category: TraitRegistry[type] = TraitRegistry("structure_category")


def register_structure(tag: type) -> Callable[[C], C]:
    """Class decorator associating `cls` with a structure tag."""
    if not (isinstance(tag, type) and issubclass(tag, (ManifoldTag, GroupTag))):
        raise ValueError(f"{tag!r} is not an algebraic structure tag")

    def decorator(cls: C) -> C:
        structure_category.register(cls, tag)
        return cls

    return decorator


def category_of(cls: Type[Any]) -> type:
    """Return the structure tag registered for `cls`."""
    return structure_category.lookup(cls)


def has_category(cls: Type[Any], tag: type) -> bool:
    """True if the tag registered for `cls` is-a `tag`."""
    return structure_category.contains(cls) and issubclass(category_of(cls), tag)


def require_testable(cls: Type[Any]) -> None:
    """Raise unless instances of `cls` can be compared with `equals(other, tol)`."""
    if not callable(getattr(cls, "equals", None)):
        raise ConceptError(
            f"Type '{cls.__name__}' is not testable: it must define equals(other, tol)"
        )
