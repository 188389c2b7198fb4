"""
renderlog: a synchronous event kernel for component lifecycle instrumentation.

Public API re-exports from kernel/ (machinery) and lib/ (helpers). Plugins
live in renderlog.plugins.
"""
from .kernel.schema import (
    ContextChangeEvent,
    EffectCleanupEvent,
    EffectRunEvent,
    ErrorEvent,
    EventKind,
    KernelOptions,
    LogEntry,
    LogFilter,
    LogLevel,
    MountEvent,
    PluginType,
    PropChange,
    PropsChangeEvent,
    StateChangeEvent,
    UnmountEvent,
    UpdateEvent,
    parse_event,
)
from .kernel.errors import (
    ConfigError,
    DuplicatePluginError,
    PluginError,
    PluginValidationError,
    RenderLogError,
)
from .kernel.plugin import Plugin, PluginHooks, create_plugin
from .kernel.engine import Kernel, create_kernel
from .lib.diff import changed_dependency_indices, diff_props
from .lib.equality import deep_equal, same_value, shallow_equal
from .lib.timing import now_ms

__version__ = "0.1.0"

__all__ = [
    # Events
    "ContextChangeEvent",
    "EffectCleanupEvent",
    "EffectRunEvent",
    "ErrorEvent",
    "EventKind",
    "MountEvent",
    "PropChange",
    "PropsChangeEvent",
    "StateChangeEvent",
    "UnmountEvent",
    "UpdateEvent",
    "parse_event",
    # Logs and options
    "KernelOptions",
    "LogEntry",
    "LogFilter",
    "LogLevel",
    # Errors
    "ConfigError",
    "DuplicatePluginError",
    "PluginError",
    "PluginValidationError",
    "RenderLogError",
    # Plugins
    "Plugin",
    "PluginHooks",
    "PluginType",
    "create_plugin",
    # Kernel
    "Kernel",
    "create_kernel",
    # Helpers
    "changed_dependency_indices",
    "diff_props",
    "deep_equal",
    "same_value",
    "shallow_equal",
    "now_ms",
]
