"""
Error tracker: a bounded record of component errors, indexed by component.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

from ..kernel.plugin import Plugin, PluginHooks
from ..kernel.schema import ErrorEvent, PluginType
from ..lib.ids import generate_uid

DEFAULT_MAX_ERRORS = 100


@dataclass
class ErrorRecord:
    id: str
    timestamp: float
    component_id: str
    component_name: str
    error_type: str
    message: str
    component_stack: Optional[str]
    recovered: bool
    stack: Optional[str]


class ErrorTracker(Plugin):
    """
    Keeps the most recent errors, oldest evicted first.

    Args:
        max_errors: Capacity of the record
        capture_stack: Keep the event's stack text on each record
    """

    name = "error-tracker"
    version = "1.0.0"
    type = PluginType.OPTIONAL

    def __init__(self, max_errors: int = DEFAULT_MAX_ERRORS, capture_stack: bool = True) -> None:
        if max_errors <= 0:
            raise ValueError("max_errors must be positive")
        self.max_errors = max_errors
        self.capture_stack = capture_stack
        self._errors: List[ErrorRecord] = []
        self._by_component: Dict[str, List[ErrorRecord]] = {}
        self.hooks = PluginHooks(on_error=self._on_error)

    def uninstall(self) -> None:
        self.clear()

    def _on_error(self, event: ErrorEvent) -> None:
        record = ErrorRecord(
            id=generate_uid(),
            timestamp=event.timestamp,
            component_id=event.component_id,
            component_name=event.component_name,
            error_type=event.error_type,
            message=event.message,
            component_stack=event.component_stack,
            recovered=event.recovered,
            stack=event.stack if self.capture_stack else None,
        )
        self._add(record)

    def _add(self, record: ErrorRecord) -> None:
        self._errors.append(record)
        self._by_component.setdefault(record.component_id, []).append(record)

        while len(self._errors) > self.max_errors:
            removed = self._errors.pop(0)
            bucket = self._by_component.get(removed.component_id)
            if bucket is None:
                continue
            bucket.remove(removed)
            if not bucket:
                del self._by_component[removed.component_id]

    # =========================================================================
    # API
    # =========================================================================

    def get_errors(self, component_id: Optional[str] = None) -> List[ErrorRecord]:
        if component_id is not None:
            return list(self._by_component.get(component_id, []))
        return list(self._errors)

    def get_error_count(self) -> int:
        return len(self._errors)

    def get_last_error(self) -> Optional[ErrorRecord]:
        return self._errors[-1] if self._errors else None

    def clear(self) -> None:
        self._errors.clear()
        self._by_component.clear()
