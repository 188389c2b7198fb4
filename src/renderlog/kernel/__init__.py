"""
Kernel: The machinery of renderlog.

This module contains the event-processing infrastructure:
- schema: Event, log entry and option data structures
- bus: Typed synchronous fan-out
- store: Bounded, indexed log persistence
- plugin: Plugin contract and factory
- registry: Plugin storage and lifecycle
- engine: Kernel orchestration

The kernel is distinct from lib/ (equality, diff, formatting helpers) and
plugins/ (the instrumentation consumers).
"""
from .schema import (
    CleanupReason,
    ContextChangeEvent,
    EffectCleanupEvent,
    EffectRunEvent,
    ErrorEvent,
    EventKind,
    HookType,
    KernelEvent,
    KernelOptions,
    LogEntry,
    LogFilter,
    LogLevel,
    MountEvent,
    PluginInfo,
    PluginType,
    PropChange,
    PropsChangeEvent,
    StateChangeEvent,
    TimeRange,
    UnmountEvent,
    UpdateEvent,
    UpdateReason,
    parse_event,
)
from .errors import (
    ConfigError,
    DuplicatePluginError,
    PluginError,
    PluginValidationError,
    RenderLogError,
)
from .bus import EventBus
from .store import LogSnapshot, LogStore
from .plugin import FunctionPlugin, Plugin, PluginHooks, create_plugin, validate_plugin
from .registry import PluginRegistry
from .engine import Kernel, create_kernel, event_level

__all__ = [
    # Schema
    "CleanupReason",
    "ContextChangeEvent",
    "EffectCleanupEvent",
    "EffectRunEvent",
    "ErrorEvent",
    "EventKind",
    "HookType",
    "KernelEvent",
    "KernelOptions",
    "LogEntry",
    "LogFilter",
    "LogLevel",
    "MountEvent",
    "PluginInfo",
    "PluginType",
    "PropChange",
    "PropsChangeEvent",
    "StateChangeEvent",
    "TimeRange",
    "UnmountEvent",
    "UpdateEvent",
    "UpdateReason",
    "parse_event",
    # Errors
    "ConfigError",
    "DuplicatePluginError",
    "PluginError",
    "PluginValidationError",
    "RenderLogError",
    # Bus
    "EventBus",
    # Store
    "LogSnapshot",
    "LogStore",
    # Plugins
    "FunctionPlugin",
    "Plugin",
    "PluginHooks",
    "create_plugin",
    "validate_plugin",
    "PluginRegistry",
    # Engine
    "Kernel",
    "create_kernel",
    "event_level",
]
