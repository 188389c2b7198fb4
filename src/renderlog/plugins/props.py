"""
Props tracker: current props, snapshot history and per-key change statistics.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..kernel.plugin import Plugin, PluginHooks
from ..kernel.schema import MountEvent, PluginType, PropChange, PropsChangeEvent


@dataclass
class PropsSnapshot:
    timestamp: float
    props: Dict[str, Any]
    changes: List[PropChange] = field(default_factory=list)


@dataclass
class PropChangeStats:
    key: str
    change_count: int
    last_changed: float


@dataclass
class _ComponentProps:
    component_name: str
    current: Dict[str, Any]
    history: List[PropsSnapshot]
    stats: Dict[str, PropChangeStats] = field(default_factory=dict)


class PropsTracker(Plugin):
    """
    Keeps the live props of every mounted component.

    A change whose next value is None removes the key from the current
    props, mirroring how diff_props reports a removed prop.
    """

    name = "props-tracker"
    version = "1.0.0"
    type = PluginType.CORE

    def __init__(self) -> None:
        self._components: Dict[str, _ComponentProps] = {}
        self.hooks = PluginHooks(
            on_mount=self._on_mount,
            on_props_change=self._on_props_change,
        )

    def uninstall(self) -> None:
        self._components.clear()

    def _on_mount(self, event: MountEvent) -> None:
        self._components[event.component_id] = _ComponentProps(
            component_name=event.component_name,
            current=dict(event.props),
            history=[PropsSnapshot(event.timestamp, dict(event.props))],
        )

    def _on_props_change(self, event: PropsChangeEvent) -> None:
        component = self._components.get(event.component_id)
        if component is None:
            return

        for change in event.changes:
            if change.next_value is None:
                component.current.pop(change.key, None)
            else:
                component.current[change.key] = change.next_value

            stats = component.stats.get(change.key)
            if stats is None:
                component.stats[change.key] = PropChangeStats(change.key, 1, event.timestamp)
            else:
                stats.change_count += 1
                stats.last_changed = event.timestamp

        component.history.append(
            PropsSnapshot(event.timestamp, dict(component.current), list(event.changes))
        )

    # =========================================================================
    # API
    # =========================================================================

    def get_current_props(self, component_id: str) -> Optional[Dict[str, Any]]:
        component = self._components.get(component_id)
        return dict(component.current) if component else None

    def get_history(self, component_id: str) -> List[PropsSnapshot]:
        component = self._components.get(component_id)
        return list(component.history) if component else []

    def get_change_count(self, component_id: str) -> int:
        """Number of props-change events seen since mount."""
        component = self._components.get(component_id)
        return len(component.history) - 1 if component else 0

    def get_most_changed(self, component_id: str, limit: int = 10) -> List[PropChangeStats]:
        component = self._components.get(component_id)
        if component is None:
            return []
        ranked = sorted(component.stats.values(), key=lambda s: s.change_count, reverse=True)
        return ranked[:limit]
