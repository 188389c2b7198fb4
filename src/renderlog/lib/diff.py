"""
Domain: Diff (Change Detection)

Change lists built on the equality engine.

Functions:
  - diff_record: added/removed/changed keys between two mappings
  - diff_sequence: index-wise buckets between two sequences
  - diff_props: prop changes, skipping reference-identical values
  - changed_dependency_indices: positions whose dependency changed identity
"""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping, Sequence

from ..kernel.schema import PropChange
from .equality import deep_equal, same_value

_MISSING = object()


class ChangeKind(str, Enum):
    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"


@dataclass
class ValueChange:
    key: str
    prev_value: Any
    next_value: Any
    kind: ChangeKind


@dataclass
class IndexedValue:
    index: int
    value: Any


@dataclass
class IndexedChange:
    index: int
    prev_value: Any
    next_value: Any


@dataclass
class SequenceDiff:
    added: List[IndexedValue] = field(default_factory=list)
    removed: List[IndexedValue] = field(default_factory=list)
    changed: List[IndexedChange] = field(default_factory=list)
    unchanged: List[IndexedValue] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed or self.changed)


def _union_keys(prev: Mapping[str, Any], next_: Mapping[str, Any]) -> List[str]:
    """Keys of prev in order, then keys only present in next."""
    keys = list(prev.keys())
    keys.extend(key for key in next_.keys() if key not in prev)
    return keys


def diff_record(prev: Mapping[str, Any], next_: Mapping[str, Any]) -> List[ValueChange]:
    """
    Compute the changes between two mappings.

    Unchanged keys are omitted. Missing sides are reported as None.

    Args:
        prev: Previous mapping
        next_: Next mapping

    Returns:
        Ordered list of ValueChange entries
    """
    changes: List[ValueChange] = []
    for key in _union_keys(prev, next_):
        has_prev = key in prev
        has_next = key in next_
        if not has_prev:
            changes.append(ValueChange(key, None, next_[key], ChangeKind.ADDED))
        elif not has_next:
            changes.append(ValueChange(key, prev[key], None, ChangeKind.REMOVED))
        elif not deep_equal(prev[key], next_[key]):
            changes.append(ValueChange(key, prev[key], next_[key], ChangeKind.CHANGED))
    return changes


def diff_sequence(prev: Sequence[Any], next_: Sequence[Any]) -> SequenceDiff:
    """
    Compare two sequences position by position in a single pass.

    Args:
        prev: Previous sequence
        next_: Next sequence

    Returns:
        SequenceDiff with added, removed, changed and unchanged buckets
    """
    result = SequenceDiff()
    for index in range(max(len(prev), len(next_))):
        has_prev = index < len(prev)
        has_next = index < len(next_)
        if not has_prev:
            result.added.append(IndexedValue(index, next_[index]))
        elif not has_next:
            result.removed.append(IndexedValue(index, prev[index]))
        elif not deep_equal(prev[index], next_[index]):
            result.changed.append(IndexedChange(index, prev[index], next_[index]))
        else:
            result.unchanged.append(IndexedValue(index, prev[index]))
    return result


def diff_props(prev: Mapping[str, Any], next_: Mapping[str, Any]) -> List[PropChange]:
    """
    Compute prop changes for a props-change event.

    A key is reported when its presence differs, or when the values are
    neither the same reference nor structurally equal. Reference-identical
    values are never compared, so memoized payloads cost nothing.
    """
    changes: List[PropChange] = []
    for key in _union_keys(prev, next_):
        prev_value = prev.get(key, _MISSING)
        next_value = next_.get(key, _MISSING)
        presence_differs = (prev_value is _MISSING) != (next_value is _MISSING)

        if not presence_differs and prev_value is next_value:
            continue

        structurally_equal = deep_equal(prev_value, next_value)
        if presence_differs or not structurally_equal:
            changes.append(
                PropChange(
                    key=key,
                    prev_value=None if prev_value is _MISSING else prev_value,
                    next_value=None if next_value is _MISSING else next_value,
                    structurally_equal=structurally_equal,
                )
            )
    return changes


def changed_dependency_indices(prev: Sequence[Any], next_: Sequence[Any]) -> List[int]:
    """
    Find dependency positions whose value changed.

    Uses same_value semantics: the same reference or two NaNs are unchanged,
    positive and negative zero are changed. A position present on one side
    only is changed.
    """
    changed: List[int] = []
    for index in range(max(len(prev), len(next_))):
        prev_value = prev[index] if index < len(prev) else _MISSING
        next_value = next_[index] if index < len(next_) else _MISSING
        if not same_value(prev_value, next_value):
            changed.append(index)
    return changed
