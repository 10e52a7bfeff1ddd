"""Builders for rule conditions and fact accessors.

Every builder returns a plain callable that takes the fact store.  Callables
that read facts carry a ``deps`` attribute listing the fact paths whose change
can alter their result; the rule set uses it to skip rules that a write
cannot affect.
"""

from __future__ import annotations

import operator
from collections.abc import Mapping, Set as AbstractSet
from numbers import Number
from typing import Any, Callable, Iterable, List, Optional

from .paths import get_path, prefixes

Condition = Callable[[Mapping], Any]
Accessor = Callable[[Mapping], Any]


def deps_of(condition: Any) -> Optional[List[str]]:
    """Return the declared dependencies of ``condition`` or ``None``."""

    if not callable(condition):
        return None
    return getattr(condition, "deps", None)


def union_deps(*groups: Optional[Iterable[str]]) -> List[str]:
    """Merge dependency lists keeping first-seen order and dropping repeats."""

    merged: List[str] = []
    seen = set()
    for group in groups:
        for path in group or ():
            if path not in seen:
                seen.add(path)
                merged.append(path)
    return merged


def _with_deps(fn: Callable[..., Any], *operands: Any) -> Callable[..., Any]:
    # A callable operand without deps may read any fact, so the result must
    # be evaluated on every change as well.
    if any(callable(operand) and deps_of(operand) is None for operand in operands):
        return fn
    deps = union_deps(*(deps_of(operand) for operand in operands))
    if deps:
        fn.deps = deps  # type: ignore[attr-defined]
    return fn


def fact_of(path: str) -> Accessor:
    """Return an accessor reading ``path`` from the fact store.

    The accessor depends on every prefix of ``path``: overwriting an ancestor
    changes what the leaf resolves to even though the leaf was never written.
    """

    deps = prefixes(path)

    def get_fact(facts: Mapping) -> Any:
        return get_path(facts, path)

    get_fact.deps = deps  # type: ignore[attr-defined]
    return get_fact


def depends_on(*paths: str) -> Callable[[Condition], Condition]:
    """Attach explicit dependencies to a hand-written condition.

    Useful for asynchronous conditions, which the combinators cannot build::

        @depends_on("order.total")
        async def over_budget(facts):
            return await quote(facts["order"]) > LIMIT
    """

    deps = union_deps(*(prefixes(path) for path in paths))

    def decorator(condition: Condition) -> Condition:
        condition.deps = union_deps(deps_of(condition), deps)  # type: ignore[attr-defined]
        return condition

    return decorator


def strict_equal(left: Any, right: Any) -> bool:
    """Equality that never conflates values of different kinds.

    Numbers compare by value, booleans only equal booleans, and containers
    are equal only when they are the same object.
    """

    if left is right:
        return True
    if isinstance(left, (Mapping, AbstractSet, list)) or isinstance(right, (Mapping, AbstractSet, list)):
        return False
    if isinstance(left, bool) or isinstance(right, bool):
        return False
    if isinstance(left, Number) and isinstance(right, Number):
        return left == right
    return type(left) is type(right) and left == right


def _resolve(facts: Mapping, operand: Any) -> Any:
    return operand(facts) if callable(operand) else operand


def _left_operand(operand: Any) -> Any:
    # A bare string on the left names a fact rather than a literal.
    return fact_of(operand) if isinstance(operand, str) else operand


def _ordering(compare: Callable[[Any, Any], bool]) -> Callable[[Any, Any], bool]:
    def ordered(left: Any, right: Any) -> bool:
        if left is None or right is None:
            return False
        try:
            return bool(compare(left, right))
        except TypeError:
            # values that cannot be ordered never satisfy the comparison
            return False

    return ordered


def _comparison(name: str, compare: Callable[[Any, Any], bool]) -> Callable[[Any, Any], Condition]:
    def build(left: Any, right: Any) -> Condition:
        left = _left_operand(left)

        def condition(facts: Mapping) -> bool:
            return compare(_resolve(facts, left), _resolve(facts, right))

        condition.__name__ = name
        condition.__qualname__ = name
        return _with_deps(condition, left, right)

    build.__name__ = name
    build.__qualname__ = name
    build.__doc__ = f"Condition applying ``{name}`` to two fact accessors or literals."
    return build


eq = _comparison("eq", strict_equal)
neq = _comparison("neq", lambda left, right: not strict_equal(left, right))
gt = _comparison("gt", _ordering(operator.gt))
lt = _comparison("lt", _ordering(operator.lt))
gte = _comparison("gte", _ordering(operator.ge))
lte = _comparison("lte", _ordering(operator.le))


def and_(*conditions: Condition) -> Condition:
    """Truthy when every component condition is truthy."""

    if not conditions:
        raise ValueError("and_ requires at least one condition")

    def all_of(facts: Mapping) -> bool:
        return all(condition(facts) for condition in conditions)

    return _with_deps(all_of, *conditions)


def or_(*conditions: Condition) -> Condition:
    """Truthy when at least one component condition is truthy."""

    if not conditions:
        raise ValueError("or_ requires at least one condition")

    def any_of(facts: Mapping) -> bool:
        return any(condition(facts) for condition in conditions)

    return _with_deps(any_of, *conditions)


__all__ = [
    "Accessor",
    "Condition",
    "and_",
    "depends_on",
    "deps_of",
    "eq",
    "fact_of",
    "gt",
    "gte",
    "lt",
    "lte",
    "neq",
    "or_",
    "strict_equal",
    "union_deps",
]
