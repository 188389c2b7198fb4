"""
Lifecycle logger: mount/unmount times, lifetimes and update counts per component.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..kernel.plugin import Plugin, PluginHooks
from ..kernel.schema import MountEvent, PluginType, UnmountEvent, UpdateEvent
from ..lib.timing import format_duration, now_ms


@dataclass
class LifecycleRecord:
    kind: str
    timestamp: float
    details: str


@dataclass
class ComponentLifecycle:
    component_id: str
    component_name: str
    mount_time: float
    unmount_time: Optional[float] = None
    update_count: int = 0
    history: List[LifecycleRecord] = field(default_factory=list)


class LifecycleLogger(Plugin):
    """Tracks mount, unmount and update events for components."""

    name = "lifecycle-logger"
    version = "1.0.0"
    type = PluginType.CORE

    def __init__(self) -> None:
        self._components: Dict[str, ComponentLifecycle] = {}
        self.hooks = PluginHooks(
            on_mount=self._on_mount,
            on_unmount=self._on_unmount,
            on_update=self._on_update,
        )

    def uninstall(self) -> None:
        self._components.clear()

    def _on_mount(self, event: MountEvent) -> None:
        self._components[event.component_id] = ComponentLifecycle(
            component_id=event.component_id,
            component_name=event.component_name,
            mount_time=event.timestamp,
            history=[
                LifecycleRecord("mount", event.timestamp, f"Mounted with {len(event.props)} props"),
            ],
        )

    def _on_unmount(self, event: UnmountEvent) -> None:
        component = self._components.get(event.component_id)
        if component is None:
            return
        component.unmount_time = event.timestamp
        component.history.append(
            LifecycleRecord(
                "unmount", event.timestamp, f"Unmounted after {format_duration(event.lifetime)}"
            )
        )

    def _on_update(self, event: UpdateEvent) -> None:
        component = self._components.get(event.component_id)
        if component is None:
            return
        component.update_count += 1
        component.history.append(
            LifecycleRecord(
                "update",
                event.timestamp,
                f"Update #{event.render_count} ({event.reason.value})",
            )
        )

    # =========================================================================
    # API
    # =========================================================================

    def get_mount_time(self, component_id: str) -> Optional[float]:
        component = self._components.get(component_id)
        return component.mount_time if component else None

    def get_unmount_time(self, component_id: str) -> Optional[float]:
        component = self._components.get(component_id)
        return component.unmount_time if component else None

    def get_lifetime(self, component_id: str) -> Optional[float]:
        """Milliseconds between mount and unmount, or until now while still mounted."""
        component = self._components.get(component_id)
        if component is None:
            return None
        end = component.unmount_time if component.unmount_time is not None else now_ms()
        return end - component.mount_time

    def get_update_count(self, component_id: str) -> int:
        component = self._components.get(component_id)
        return component.update_count if component else 0

    def is_mounted(self, component_id: str) -> bool:
        component = self._components.get(component_id)
        return component is not None and component.unmount_time is None

    def get_history(self, component_id: str) -> List[LifecycleRecord]:
        component = self._components.get(component_id)
        return list(component.history) if component else []
