from __future__ import annotations

import traceback
from enum import Enum
from typing import Any, Dict, List, Literal, Mapping, Optional, Pattern, Union

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator


class EventKind(str, Enum):
    MOUNT = "mount"
    UNMOUNT = "unmount"
    UPDATE = "update"
    PROPS_CHANGE = "props-change"
    STATE_CHANGE = "state-change"
    EFFECT_RUN = "effect-run"
    EFFECT_CLEANUP = "effect-cleanup"
    CONTEXT_CHANGE = "context-change"
    ERROR = "error"


class LogLevel(str, Enum):
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"

    @property
    def rank(self) -> int:
        return _LEVEL_RANK[self]


_LEVEL_RANK = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.WARN: 2,
    LogLevel.ERROR: 3,
}


class UpdateReason(str, Enum):
    PROPS = "props"
    STATE = "state"
    CONTEXT = "context"
    PARENT = "parent"
    FORCE = "force"


class HookType(str, Enum):
    USE_STATE = "useState"
    USE_REDUCER = "useReducer"


class CleanupReason(str, Enum):
    UNMOUNT = "unmount"
    DEPS_CHANGE = "deps-change"


class PluginType(str, Enum):
    CORE = "core"
    OPTIONAL = "optional"


# =============================================================================
# Events
# =============================================================================


class BaseEvent(BaseModel):
    """Fields shared by every lifecycle event. Events are immutable once built."""

    component_id: str
    component_name: str
    timestamp: float

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class MountEvent(BaseEvent):
    kind: Literal[EventKind.MOUNT] = EventKind.MOUNT
    props: Dict[str, Any] = Field(default_factory=dict)
    initial_state: Dict[str, Any] = Field(default_factory=dict)


class UnmountEvent(BaseEvent):
    kind: Literal[EventKind.UNMOUNT] = EventKind.UNMOUNT
    lifetime: float


class UpdateEvent(BaseEvent):
    kind: Literal[EventKind.UPDATE] = EventKind.UPDATE
    reason: UpdateReason
    render_count: int


class PropChange(BaseModel):
    key: str
    prev_value: Any = None
    next_value: Any = None
    structurally_equal: bool = False

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)


class PropsChangeEvent(BaseEvent):
    kind: Literal[EventKind.PROPS_CHANGE] = EventKind.PROPS_CHANGE
    changes: List[PropChange] = Field(default_factory=list)


class StateChangeEvent(BaseEvent):
    kind: Literal[EventKind.STATE_CHANGE] = EventKind.STATE_CHANGE
    hook_index: int
    hook_type: HookType = HookType.USE_STATE
    prev_state: Any = None
    next_state: Any = None
    action: Any = None


class EffectRunEvent(BaseEvent):
    kind: Literal[EventKind.EFFECT_RUN] = EventKind.EFFECT_RUN
    effect_index: int
    dependencies: List[Any] = Field(default_factory=list)
    dependencies_changed: List[int] = Field(default_factory=list)


class EffectCleanupEvent(BaseEvent):
    kind: Literal[EventKind.EFFECT_CLEANUP] = EventKind.EFFECT_CLEANUP
    effect_index: int
    reason: CleanupReason


class ContextChangeEvent(BaseEvent):
    kind: Literal[EventKind.CONTEXT_CHANGE] = EventKind.CONTEXT_CHANGE
    context_name: str
    prev_value: Any = None
    next_value: Any = None


class ErrorEvent(BaseEvent):
    kind: Literal[EventKind.ERROR] = EventKind.ERROR
    error_type: str
    message: str
    stack: Optional[str] = None
    component_stack: Optional[str] = None
    recovered: bool = False

    # Live exception, when captured in-process. Never serialized.
    exception: Optional[BaseException] = Field(default=None, exclude=True)

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        *,
        component_id: str,
        component_name: str,
        timestamp: float,
        component_stack: Optional[str] = None,
        recovered: bool = False,
    ) -> "ErrorEvent":
        """Build an error event from a raised exception, keeping its traceback text."""
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return cls(
            component_id=component_id,
            component_name=component_name,
            timestamp=timestamp,
            error_type=type(exc).__name__,
            message=str(exc),
            stack=stack,
            component_stack=component_stack,
            recovered=recovered,
            exception=exc,
        )


KernelEvent = Union[
    MountEvent,
    UnmountEvent,
    UpdateEvent,
    PropsChangeEvent,
    StateChangeEvent,
    EffectRunEvent,
    EffectCleanupEvent,
    ContextChangeEvent,
    ErrorEvent,
]

EVENT_MODELS: Dict[EventKind, type] = {
    EventKind.MOUNT: MountEvent,
    EventKind.UNMOUNT: UnmountEvent,
    EventKind.UPDATE: UpdateEvent,
    EventKind.PROPS_CHANGE: PropsChangeEvent,
    EventKind.STATE_CHANGE: StateChangeEvent,
    EventKind.EFFECT_RUN: EffectRunEvent,
    EventKind.EFFECT_CLEANUP: EffectCleanupEvent,
    EventKind.CONTEXT_CHANGE: ContextChangeEvent,
    EventKind.ERROR: ErrorEvent,
}


def parse_event(data: Mapping[str, Any]) -> KernelEvent:
    """
    Validate a raw mapping (for example one JSON line) into its event model.

    Raises:
        ValueError: unknown or missing kind
        pydantic.ValidationError: payload does not match the kind
    """
    if "kind" not in data:
        raise ValueError("Event is missing its 'kind'")
    kind = EventKind(data["kind"])
    return EVENT_MODELS[kind].model_validate({**data, "kind": kind})


# =============================================================================
# Log entries and queries
# =============================================================================


class LogEntry(BaseModel):
    """A stored, leveled and formatted wrapper around one event."""

    id: str
    timestamp: float
    component_id: str
    component_name: str
    event: KernelEvent
    level: LogLevel
    formatted: str

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    @property
    def kind(self) -> EventKind:
        return self.event.kind


class TimeRange(BaseModel):
    start: float
    end: float

    def contains(self, timestamp: float) -> bool:
        return self.start <= timestamp <= self.end


class LogFilter(BaseModel):
    """
    Conjunction of optional predicates, then an optional most-recent limit.

    component_name matches exactly when a string, or with Pattern.search when
    a compiled pattern.
    """

    component_name: Optional[Union[str, Pattern[str]]] = None
    event_kind: Optional[Union[EventKind, List[EventKind]]] = None
    level: Optional[Union[LogLevel, List[LogLevel]]] = None
    time_range: Optional[TimeRange] = None
    limit: Optional[int] = None

    @field_validator("time_range", mode="before")
    @classmethod
    def _coerce_time_range(cls, value: Any) -> Any:
        if isinstance(value, (tuple, list)) and len(value) == 2:
            return {"start": value[0], "end": value[1]}
        return value


# =============================================================================
# Kernel and plugin surfaces
# =============================================================================


class KernelOptions(BaseModel):
    enabled: bool = True
    max_logs: PositiveInt = 1000
    log_level: LogLevel = LogLevel.DEBUG


class PluginInfo(BaseModel):
    name: str
    version: str
    type: PluginType
    enabled: bool


