"""
Domain: Format (Display Text)

Bounded, human-readable rendering of captured values and lifecycle events.

Functions:
  - format_value: value -> short display string (truncated, depth-limited)
  - format_change: "prev -> next" pair
  - format_event: one-line summary for a kernel event, by kind
"""
from __future__ import annotations

import re
from collections.abc import Mapping, Set
from datetime import date, datetime
from typing import Any, Optional

from ..kernel.schema import (
    ContextChangeEvent,
    EffectCleanupEvent,
    EffectRunEvent,
    ErrorEvent,
    EventKind,
    KernelEvent,
    MountEvent,
    PropsChangeEvent,
    StateChangeEvent,
    UnmountEvent,
    UpdateEvent,
)
from .timing import format_duration

MAX_VALUE_LENGTH = 100
MAX_DEPTH = 3
MAX_ITEMS = 5
MAX_SET_ITEMS = 3

ARROW = "->"


def truncate_string(text: str, max_length: int = MAX_VALUE_LENGTH) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def format_value(value: Any, depth: int = 0) -> str:
    """
    Format a value for display.

    Strings are quoted and truncated, containers show their first items and a
    "+N" tail, nesting beyond MAX_DEPTH collapses to a size marker.
    """
    if depth > MAX_DEPTH:
        return "[...]"

    if value is None:
        return "None"

    if isinstance(value, str):
        return f'"{truncate_string(value, MAX_VALUE_LENGTH - 2)}"'

    if isinstance(value, (bool, int, float)):
        return repr(value)

    if isinstance(value, (datetime, date)):
        return value.isoformat()

    if isinstance(value, re.Pattern):
        return f"/{value.pattern}/"

    if isinstance(value, BaseException):
        return f"[{type(value).__name__}: {value}]"

    if callable(value):
        name = getattr(value, "__name__", None) or "anonymous"
        return f"[function: {name}]"

    if isinstance(value, Mapping):
        if not value:
            return "{}"
        if depth >= MAX_DEPTH:
            return f"{{...{len(value)}}}"
        pairs = ", ".join(
            f"{key}: {format_value(item, depth + 1)}"
            for key, item in list(value.items())[:MAX_ITEMS]
        )
        more = f", ... +{len(value) - MAX_ITEMS}" if len(value) > MAX_ITEMS else ""
        return f"{{ {pairs}{more} }}"

    if isinstance(value, Set):
        items = ", ".join(format_value(item, depth + 1) for item in list(value)[:MAX_SET_ITEMS])
        more = f", ... +{len(value) - MAX_SET_ITEMS}" if len(value) > MAX_SET_ITEMS else ""
        return f"{type(value).__name__}({len(value)}) {{ {items}{more} }}"

    if isinstance(value, (list, tuple)):
        if not value:
            return "[]"
        if depth >= MAX_DEPTH:
            return f"[...{len(value)}]"
        items = ", ".join(format_value(item, depth + 1) for item in value[:MAX_ITEMS])
        more = f", ... +{len(value) - MAX_ITEMS}" if len(value) > MAX_ITEMS else ""
        return f"[{items}{more}]"

    return truncate_string(repr(value))


def format_change(prev: Any, next_: Any) -> str:
    return f"{format_value(prev)} {ARROW} {format_value(next_)}"


def format_component_name(name: str, component_id: Optional[str] = None) -> str:
    """Name with a short id suffix, e.g. "Counter#k3x9"."""
    if component_id:
        short_id = component_id.split("-")[0] or component_id[:8]
        return f"{name}#{short_id}"
    return name


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


def _format_mount(event: MountEvent) -> str:
    details = ""
    if event.props:
        details += f" | {_plural(len(event.props), 'prop')}"
    if event.initial_state:
        details += f" | {_plural(len(event.initial_state), 'state hook')}"
    return f"MOUNT {event.component_name}{details}"


def _format_unmount(event: UnmountEvent) -> str:
    return f"UNMOUNT {event.component_name} (lifetime: {format_duration(event.lifetime)})"


def _format_update(event: UpdateEvent) -> str:
    return f"UPDATE {event.component_name} ({event.reason.value}, render #{event.render_count})"


def _format_props_change(event: PropsChangeEvent) -> str:
    count = len(event.changes)
    keys = ", ".join(change.key for change in event.changes)
    suffix = f": {keys}" if keys else ""
    return f"PROPS {event.component_name} ({_plural(count, 'change')}{suffix})"


def _format_state_change(event: StateChangeEvent) -> str:
    return (
        f"STATE {event.component_name} [{event.hook_index}] "
        f"{format_change(event.prev_state, event.next_state)}"
    )


def _format_effect_run(event: EffectRunEvent) -> str:
    if event.dependencies_changed:
        indices = ", ".join(str(index) for index in event.dependencies_changed)
        reason = f"deps changed: [{indices}]"
    else:
        reason = "mount"
    return f"EFFECT RUN {event.component_name} [{event.effect_index}] ({reason})"


def _format_effect_cleanup(event: EffectCleanupEvent) -> str:
    return f"EFFECT CLEANUP {event.component_name} [{event.effect_index}] ({event.reason.value})"


def _format_context_change(event: ContextChangeEvent) -> str:
    return (
        f"CONTEXT {event.component_name} {event.context_name}: "
        f"{format_change(event.prev_value, event.next_value)}"
    )


def _format_error(event: ErrorEvent) -> str:
    recovered = " (recovered)" if event.recovered else ""
    return f"ERROR {event.component_name}: {event.error_type}: {event.message}{recovered}"


_FORMATTERS = {
    EventKind.MOUNT: _format_mount,
    EventKind.UNMOUNT: _format_unmount,
    EventKind.UPDATE: _format_update,
    EventKind.PROPS_CHANGE: _format_props_change,
    EventKind.STATE_CHANGE: _format_state_change,
    EventKind.EFFECT_RUN: _format_effect_run,
    EventKind.EFFECT_CLEANUP: _format_effect_cleanup,
    EventKind.CONTEXT_CHANGE: _format_context_change,
    EventKind.ERROR: _format_error,
}


def format_event(event: KernelEvent) -> str:
    """One-line summary of an event, specific to its kind."""
    return _FORMATTERS[event.kind](event)
