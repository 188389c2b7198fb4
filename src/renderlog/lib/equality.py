"""
Domain: Equality (Value Comparison)

Structural comparison of arbitrary captured values (props, state, context).

Functions:
  - deep_equal: structural equality, tolerant of cyclic graphs
  - shallow_equal: one level deep, members compared by identity
  - same_value: identity semantics used for dependency arrays

deep_equal never raises. Cycles are handled with an identity map of the pairs
currently being compared: while a container from the left-hand graph is on
the comparison path, meeting it again is equal only if it meets the same
counterpart. A pair leaves the map as soon as its comparison returns, so a
value shared in several places, or tried against several set members, is
compared afresh each time.
"""
from __future__ import annotations

import math
import re
from collections.abc import Mapping, Set
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from fractions import Fraction
from typing import Any, Dict, Tuple

_NUMBER_TYPES = (int, float, complex, Decimal, Fraction)
_SCALAR_TYPES = (str, bytes, bool, int, float, complex, Decimal, Fraction)
_TEMPORAL_TYPES = (datetime, date, time, timedelta)

# id(left) -> (left, right) for pairs on the active comparison path
Visited = Dict[int, Tuple[Any, Any]]


def _is_number(value: Any) -> bool:
    return isinstance(value, _NUMBER_TYPES) and not isinstance(value, bool)


def _is_nan(value: Any) -> bool:
    if isinstance(value, float):
        return math.isnan(value)
    if isinstance(value, Decimal):
        return value.is_nan()
    return False


def _same_kind(a: Any, b: Any) -> bool:
    """Numbers form one kind; everything else must share its exact type."""
    if _is_number(a) and _is_number(b):
        return True
    return type(a) is type(b)


def _is_record(value: Any) -> bool:
    return hasattr(value, "__dict__") and not callable(value)


def deep_equal(a: Any, b: Any, _seen: Visited | None = None) -> bool:
    """
    Compare two values structurally.

    Args:
        a: First value
        b: Second value

    Returns:
        True when both values have the same structure and contents.
    """
    if a is b:
        return True

    if _is_nan(a) and _is_nan(b):
        return True

    if a is None or b is None:
        return False

    if not _same_kind(a, b):
        return False

    if isinstance(a, _SCALAR_TYPES):
        return a == b

    if isinstance(a, _TEMPORAL_TYPES):
        return a == b

    if isinstance(a, re.Pattern):
        return a.pattern == b.pattern and a.flags == b.flags

    seen: Visited = {} if _seen is None else _seen

    # Back on a container that is still being compared: a cycle
    if id(a) in seen:
        return seen[id(a)][1] is b

    seen[id(a)] = (a, b)
    try:
        return _compare_containers(a, b, seen)
    finally:
        del seen[id(a)]


def _compare_containers(a: Any, b: Any, seen: Visited) -> bool:
    if isinstance(a, Mapping):
        if len(a) != len(b):
            return False
        for key, value in a.items():
            if key not in b or not deep_equal(value, b[key], seen):
                return False
        return True

    if isinstance(a, Set):
        if len(a) != len(b):
            return False
        for value in a:
            if not any(deep_equal(value, other, seen) for other in b):
                return False
        return True

    if isinstance(a, (list, tuple)):
        if len(a) != len(b):
            return False
        return all(deep_equal(x, y, seen) for x, y in zip(a, b))

    if _is_record(a):
        fields_a = vars(a)
        fields_b = vars(b)
        if fields_a.keys() != fields_b.keys():
            return False
        return all(deep_equal(fields_a[key], fields_b[key], seen) for key in fields_a)

    try:
        return bool(a == b)
    except Exception:
        # Values whose __eq__ is not boolean (array-likes) or that refuse comparison
        return False


def shallow_equal(a: Any, b: Any) -> bool:
    """Compare one level deep; members are compared with same_value."""
    if a is b:
        return True
    if _is_nan(a) and _is_nan(b):
        return True
    if a is None or b is None:
        return False
    if not _same_kind(a, b):
        return False

    if isinstance(a, (list, tuple)):
        return len(a) == len(b) and all(same_value(x, y) for x, y in zip(a, b))

    if isinstance(a, Mapping):
        if len(a) != len(b):
            return False
        return all(key in b and same_value(value, b[key]) for key, value in a.items())

    return same_value(a, b)


def same_value(a: Any, b: Any) -> bool:
    """
    Identity comparison with value semantics for immutable scalars.

    Same reference, or both NaN, count as the same value. Positive and
    negative zero are different values. Immutable scalars (numbers, strings,
    bytes, booleans) compare by value within their kind; everything else
    compares by identity.
    """
    if a is b:
        return True
    if _is_nan(a) and _is_nan(b):
        return True
    if _is_nan(a) or _is_nan(b):
        return False
    if isinstance(a, bool) or isinstance(b, bool):
        return type(a) is type(b) and a == b
    if _is_number(a) and _is_number(b):
        if a != b:
            return False
        if isinstance(a, float) and isinstance(b, float) and a == 0.0:
            return math.copysign(1.0, a) == math.copysign(1.0, b)
        if isinstance(a, float) != isinstance(b, float) and a == 0:
            # int 0 against float -0.0
            zero = a if isinstance(a, float) else b
            return math.copysign(1.0, zero) > 0
        return True
    if isinstance(a, (str, bytes)) and type(a) is type(b):
        return a == b
    return False
