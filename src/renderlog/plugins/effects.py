"""
Effect tracker: run counts, active effects and the last dependencies per effect.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Set

from ..kernel.plugin import Plugin, PluginHooks
from ..kernel.schema import EffectCleanupEvent, EffectRunEvent, PluginType


@dataclass
class EffectRecord:
    timestamp: float
    effect_index: int
    action: str  # "run" | "cleanup"
    dependencies: List[Any]
    dependencies_changed: List[int]
    reason: str


@dataclass
class _ComponentEffects:
    component_name: str
    active: Set[int] = field(default_factory=set)
    run_counts: Dict[int, int] = field(default_factory=dict)
    dependencies: Dict[int, List[Any]] = field(default_factory=dict)
    history: List[EffectRecord] = field(default_factory=list)


class EffectTracker(Plugin):
    """Tracks effect runs and cleanups; an effect's first run is its mount run."""

    name = "effect-tracker"
    version = "1.0.0"
    type = PluginType.CORE

    def __init__(self) -> None:
        self._components: Dict[str, _ComponentEffects] = {}
        self.hooks = PluginHooks(
            on_effect_run=self._on_effect_run,
            on_effect_cleanup=self._on_effect_cleanup,
        )

    def uninstall(self) -> None:
        self._components.clear()

    def _on_effect_run(self, event: EffectRunEvent) -> None:
        component = self._components.setdefault(
            event.component_id, _ComponentEffects(component_name=event.component_name)
        )
        index = event.effect_index
        previous_runs = component.run_counts.get(index, 0)

        component.active.add(index)
        component.run_counts[index] = previous_runs + 1
        component.dependencies[index] = list(event.dependencies)
        component.history.append(
            EffectRecord(
                timestamp=event.timestamp,
                effect_index=index,
                action="run",
                dependencies=list(event.dependencies),
                dependencies_changed=list(event.dependencies_changed),
                reason="mount" if previous_runs == 0 else "deps-change",
            )
        )

    def _on_effect_cleanup(self, event: EffectCleanupEvent) -> None:
        component = self._components.get(event.component_id)
        if component is None:
            return
        index = event.effect_index
        component.active.discard(index)
        component.history.append(
            EffectRecord(
                timestamp=event.timestamp,
                effect_index=index,
                action="cleanup",
                dependencies=list(component.dependencies.get(index, [])),
                dependencies_changed=[],
                reason=event.reason.value,
            )
        )

    # =========================================================================
    # API
    # =========================================================================

    def get_history(self, component_id: str) -> List[EffectRecord]:
        component = self._components.get(component_id)
        return list(component.history) if component else []

    def get_run_count(self, component_id: str, effect_index: int) -> int:
        component = self._components.get(component_id)
        return component.run_counts.get(effect_index, 0) if component else 0

    def get_active_effects(self, component_id: str) -> List[int]:
        component = self._components.get(component_id)
        return sorted(component.active) if component else []

    def get_dependencies(self, component_id: str, effect_index: int) -> List[Any]:
        component = self._components.get(component_id)
        if component is None:
            return []
        return list(component.dependencies.get(effect_index, []))
