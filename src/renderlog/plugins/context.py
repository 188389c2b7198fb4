"""
Context tracker: current context values and change history per component.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from ..kernel.plugin import Plugin, PluginHooks
from ..kernel.schema import ContextChangeEvent, PluginType


@dataclass
class ContextRecord:
    timestamp: float
    context_name: str
    prev_value: Any
    next_value: Any


@dataclass
class _ComponentContext:
    component_name: str
    values: Dict[str, Any] = field(default_factory=dict)
    history: Dict[str, List[ContextRecord]] = field(default_factory=dict)


class ContextTracker(Plugin):
    """
    Tracks context changes.

    Args:
        contexts: Context names to track from the start
        track_all: Track every context; when False only `contexts` are tracked
    """

    name = "context-tracker"
    version = "1.0.0"
    type = PluginType.OPTIONAL

    def __init__(self, contexts: Optional[Iterable[str]] = None, track_all: bool = True) -> None:
        self.track_all = track_all
        self._initial = list(contexts or [])
        self._tracked: Dict[str, None] = dict.fromkeys(self._initial)
        self._components: Dict[str, _ComponentContext] = {}
        self.hooks = PluginHooks(on_context_change=self._on_context_change)

    def uninstall(self) -> None:
        self._components.clear()
        self._tracked = dict.fromkeys(self._initial)

    def should_track(self, context_name: str) -> bool:
        return self.track_all or context_name in self._tracked

    def _on_context_change(self, event: ContextChangeEvent) -> None:
        if not self.should_track(event.context_name):
            return
        self._tracked[event.context_name] = None

        component = self._components.setdefault(
            event.component_id, _ComponentContext(component_name=event.component_name)
        )
        component.values[event.context_name] = event.next_value
        component.history.setdefault(event.context_name, []).append(
            ContextRecord(event.timestamp, event.context_name, event.prev_value, event.next_value)
        )

    # =========================================================================
    # API
    # =========================================================================

    def get_value(self, component_id: str, context_name: str) -> Any:
        component = self._components.get(component_id)
        return component.values.get(context_name) if component else None

    def get_history(self, component_id: str, context_name: str) -> List[ContextRecord]:
        component = self._components.get(component_id)
        if component is None:
            return []
        return list(component.history.get(context_name, []))

    def get_tracked_contexts(self) -> List[str]:
        return list(self._tracked)
