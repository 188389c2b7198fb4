"""
State tracker: current hook values per component and a snapshot per change.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..kernel.plugin import Plugin, PluginHooks
from ..kernel.schema import HookType, MountEvent, PluginType, StateChangeEvent
from ..lib.timing import now_ms


@dataclass(frozen=True)
class HookState:
    index: int
    hook_type: HookType
    value: Any
    prev_value: Any = None


@dataclass
class StateSnapshot:
    timestamp: float
    hooks: List[HookState]


@dataclass
class _ComponentState:
    component_name: str
    hooks: Dict[int, HookState] = field(default_factory=dict)
    history: List[StateSnapshot] = field(default_factory=list)
    change_count: int = 0

    def snapshot(self, timestamp: float) -> StateSnapshot:
        return StateSnapshot(timestamp, list(self.hooks.values()))


class StateTracker(Plugin):
    """
    Tracks useState/useReducer values.

    Mount seeds one useState hook per entry of initial_state, indexed in
    insertion order.
    """

    name = "state-tracker"
    version = "1.0.0"
    type = PluginType.CORE

    def __init__(self) -> None:
        self._components: Dict[str, _ComponentState] = {}
        self.hooks = PluginHooks(
            on_mount=self._on_mount,
            on_state_change=self._on_state_change,
        )

    def uninstall(self) -> None:
        self._components.clear()

    def _on_mount(self, event: MountEvent) -> None:
        state = _ComponentState(component_name=event.component_name)
        for index, value in enumerate(event.initial_state.values()):
            state.hooks[index] = HookState(index, HookType.USE_STATE, value)
        if state.hooks:
            state.history.append(state.snapshot(event.timestamp))
        self._components[event.component_id] = state

    def _on_state_change(self, event: StateChangeEvent) -> None:
        state = self._components.get(event.component_id)
        if state is None:
            return
        state.hooks[event.hook_index] = HookState(
            event.hook_index, event.hook_type, event.next_state, event.prev_state
        )
        state.change_count += 1
        state.history.append(state.snapshot(event.timestamp))

    # =========================================================================
    # API
    # =========================================================================

    def get_current_state(self, component_id: str) -> Optional[StateSnapshot]:
        state = self._components.get(component_id)
        return state.snapshot(now_ms()) if state else None

    def get_history(self, component_id: str) -> List[StateSnapshot]:
        state = self._components.get(component_id)
        return list(state.history) if state else []

    def get_hook_value(self, component_id: str, hook_index: int) -> Any:
        state = self._components.get(component_id)
        if state is None or hook_index not in state.hooks:
            return None
        return state.hooks[hook_index].value

    def get_change_count(self, component_id: str) -> int:
        state = self._components.get(component_id)
        return state.change_count if state else 0
