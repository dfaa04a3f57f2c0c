"""Group traits, free group operations and their generators.

A group type registers an identity element, a flavor (additive or
multiplicative) and the three operations `compose`, `between` and `inverse`.
The `additive_group` and `multiplicative_group` class decorators derive all of
these from the type's operators, so concrete types never spell them out.
"""

from typing import Any, Callable, NamedTuple, TypeVar

from loguru import logger

from .structure import DEFAULT_TOLERANCE, TraitRegistry, require_testable

T = TypeVar("T")
C = TypeVar("C", bound=type)


class AdditiveFlavor:
    """Group written with `+`, binary `-` and unary `-`."""


class MultiplicativeFlavor:
    """Group written with `*` and `.inverse()`."""


class GroupOperations(NamedTuple):
    compose: Callable[[Any, Any], Any]
    between: Callable[[Any, Any], Any]
    inverse: Callable[[Any], Any]


identity: TraitRegistry[Any] = TraitRegistry("identity")
flavor: TraitRegistry[type] = TraitRegistry("flavor")
operations: TraitRegistry[GroupOperations] = TraitRegistry("group_operations")


def compose(g: T, h: T) -> T:
    return operations.lookup(type(g)).compose(g, h)


def between(g: T, h: T) -> T:
    """Element `x` such that `compose(g, x) == h`."""
    return operations.lookup(type(g)).between(g, h)


def inverse(g: T) -> T:
    return operations.lookup(type(g)).inverse(g)


def _register_group(cls: type, group_flavor: type, ops: GroupOperations) -> None:
    identity.register(cls, cls.identity())
    flavor.register(cls, group_flavor)
    operations.register(cls, ops)
    logger.debug("{} is a {} group", cls.__name__, group_flavor.__name__)


def additive_group(cls: C) -> C:
    """Class decorator: derive the group structure from `+`, `-` and unary `-`.

    The class must provide an `identity()` classmethod returning the zero.
    """
    _register_group(
        cls,
        AdditiveFlavor,
        GroupOperations(
            compose=lambda g, h: g + h,
            between=lambda g, h: h - g,
            inverse=lambda g: -g,
        ),
    )
    return cls


def multiplicative_group(cls: C) -> C:
    """Class decorator: derive the group structure from `*` and `.inverse()`.

    The class must provide an `identity()` classmethod.
    """
    _register_group(
        cls,
        MultiplicativeFlavor,
        GroupOperations(
            compose=lambda g, h: g * h,
            between=lambda g, h: g.inverse() * h,
            inverse=lambda g: g.inverse(),
        ),
    )
    return cls


def check_invariants(a: T, b: T, tol: float = DEFAULT_TOLERANCE) -> bool:
    """Check the group axioms on a pair of elements.

    Returns:
        True if, within `tol`,
          compose(a, inverse(a)) == identity,
          between(a, b) == compose(inverse(a), b), and
          compose(a, between(a, b)) == b.
    """
    cls = type(a)
    require_testable(cls)
    e = identity.lookup(cls)
    return (
        bool(compose(a, inverse(a)).equals(e, tol))
        and bool(between(a, b).equals(compose(inverse(a), b), tol))
        and bool(compose(a, between(a, b)).equals(b, tol))
    )
