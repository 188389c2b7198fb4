"""
Render timer: render duration statistics and slow-render warnings.

Durations are measured from the event timestamp to the moment the hook runs
(mounts) or from the previous render start (updates), using the plugin's
clock.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List

import structlog

from ..kernel.plugin import Plugin, PluginHooks
from ..kernel.schema import MountEvent, PluginType, UpdateEvent
from ..lib.timing import now_ms

logger = structlog.get_logger(__name__)

DEFAULT_WARN_THRESHOLD = 16.0  # one frame at 60fps
DEFAULT_ERROR_THRESHOLD = 50.0
MAX_RENDER_RECORDS = 1000
TRIM_BATCH = 100
MAX_PLAUSIBLE_DURATION = 10000.0


@dataclass
class RenderTimeStats:
    count: int = 0
    total: float = 0.0
    average: float = 0.0
    min: float = 0.0
    max: float = 0.0
    last: float = 0.0


@dataclass
class RenderTimeRecord:
    component_id: str
    component_name: str
    duration: float
    timestamp: float


@dataclass
class _ComponentRenders:
    component_name: str
    last_render_start: float
    durations: List[float] = field(default_factory=list)
    stats: RenderTimeStats = field(default_factory=RenderTimeStats)


class RenderTimer(Plugin):
    """
    Measures render durations.

    Args:
        warn_threshold: Duration (ms) at which a render is reported at debug level
        error_threshold: Duration (ms) at which a render is reported as a warning
        clock: Millisecond clock, replaceable for deterministic measurements
    """

    name = "render-timer"
    version = "1.0.0"
    type = PluginType.OPTIONAL

    def __init__(
        self,
        warn_threshold: float = DEFAULT_WARN_THRESHOLD,
        error_threshold: float = DEFAULT_ERROR_THRESHOLD,
        clock: Callable[[], float] = now_ms,
    ) -> None:
        self.warn_threshold = warn_threshold
        self.error_threshold = error_threshold
        self._clock = clock
        self._components: Dict[str, _ComponentRenders] = {}
        self._renders: List[RenderTimeRecord] = []
        self.hooks = PluginHooks(on_mount=self._on_mount, on_update=self._on_update)

    def uninstall(self) -> None:
        self._components.clear()
        self._renders.clear()

    def _on_mount(self, event: MountEvent) -> None:
        self._components[event.component_id] = _ComponentRenders(
            component_name=event.component_name,
            last_render_start=event.timestamp,
        )
        duration = self._clock() - event.timestamp
        if duration > 0:
            self.record_render(event.component_id, event.component_name, duration, event.timestamp)

    def _on_update(self, event: UpdateEvent) -> None:
        data = self._components.get(event.component_id)
        if data is None:
            return
        duration = self._clock() - (data.last_render_start or event.timestamp)
        data.last_render_start = event.timestamp
        if 0 < duration < MAX_PLAUSIBLE_DURATION:
            self.record_render(event.component_id, event.component_name, duration, event.timestamp)

    def record_render(
        self, component_id: str, component_name: str, duration: float, timestamp: float
    ) -> None:
        """Add one measured render to the statistics and the global record."""
        data = self._components.get(component_id)
        if data is None:
            data = _ComponentRenders(component_name=component_name, last_render_start=timestamp)
            self._components[component_id] = data

        data.durations.append(duration)
        total = sum(data.durations)
        data.stats = RenderTimeStats(
            count=len(data.durations),
            total=total,
            average=total / len(data.durations),
            min=min(data.durations),
            max=max(data.durations),
            last=duration,
        )

        self._renders.append(RenderTimeRecord(component_id, component_name, duration, timestamp))
        if len(self._renders) > MAX_RENDER_RECORDS:
            del self._renders[:TRIM_BATCH]

        if duration >= self.error_threshold:
            logger.warning(
                "slow render",
                component=component_name,
                duration_ms=round(duration, 2),
                threshold_ms=self.error_threshold,
            )
        elif duration >= self.warn_threshold:
            logger.debug(
                "render over budget",
                component=component_name,
                duration_ms=round(duration, 2),
                threshold_ms=self.warn_threshold,
            )

    # =========================================================================
    # API
    # =========================================================================

    def get_render_time(self, component_id: str) -> RenderTimeStats:
        data = self._components.get(component_id)
        return data.stats if data else RenderTimeStats()

    def get_slowest_renders(self, limit: int = 10) -> List[RenderTimeRecord]:
        return sorted(self._renders, key=lambda r: r.duration, reverse=True)[:limit]

    def get_average_render_time(self, component_id: str) -> float:
        return self.get_render_time(component_id).average

    def get_total_render_time(self, component_id: str) -> float:
        return self.get_render_time(component_id).total
