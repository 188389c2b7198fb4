"""
Kernel: the single entry point for instrumentation events.

Architecture:
    adapters ──> Kernel.emit() ──┬──> EventBus subscribers (by kind)
                                 ├──> plugin hooks (by kind)
                                 └──> LogEntry ──> LogStore ──> log subscribers + on_log hooks

Everything runs synchronously inside emit(). Subscribers, hooks and plugin
lifecycle methods that raise are logged and skipped, so one misbehaving
consumer never interrupts the others or the host application.

There is no process-wide kernel: the integration boundary creates one with
create_kernel(), hands it to adapters and consumers, and tears it down with
destroy() (or by leaving a `with` block).
"""
from __future__ import annotations

from typing import Any, Iterable, List, Optional

import structlog
from pydantic import ValidationError

from ..lib.format import format_event
from ..lib.ids import generate_uid
from ..lib.timing import now_ms
from .bus import EventBus, EventHandler, LogHandler, Unsubscribe
from .errors import ConfigError
from .plugin import Plugin
from .registry import PluginRegistry
from .schema import (
    ErrorEvent,
    EventKind,
    KernelEvent,
    KernelOptions,
    LogEntry,
    LogFilter,
    LogLevel,
    PluginInfo,
)
from .store import LogSnapshot, LogStore

logger = structlog.get_logger(__name__)

_INFO_KINDS = frozenset({EventKind.MOUNT, EventKind.UNMOUNT, EventKind.UPDATE})


def event_level(event: KernelEvent) -> LogLevel:
    """
    Level of an event.

    Errors are `error` (`warn` once recovered), mount/unmount/update are
    `info`, every other kind is `debug`.
    """
    if isinstance(event, ErrorEvent):
        return LogLevel.WARN if event.recovered else LogLevel.ERROR
    if event.kind in _INFO_KINDS:
        return LogLevel.INFO
    return LogLevel.DEBUG


def _merge_options(current: KernelOptions, updates: dict) -> KernelOptions:
    try:
        return KernelOptions.model_validate({**current.model_dump(), **updates})
    except ValidationError as exc:
        raise ConfigError(f"Invalid kernel options: {exc}") from exc


class Kernel:
    """
    Orchestrates the event bus, the plugin registry and the log store.

    Example:
        with create_kernel(max_logs=500, plugins=core_plugins()) as kernel:
            kernel.emit(MountEvent(component_id="c1", component_name="Counter", timestamp=now_ms()))
            recent = kernel.filter_logs(LogFilter(component_name="Counter", limit=10))
    """

    def __init__(self, options: Optional[KernelOptions] = None, **overrides: Any) -> None:
        base = options if options is not None else KernelOptions()
        self._options = _merge_options(base, overrides) if overrides else base
        self._bus = EventBus()
        self._store = LogStore(self._options.max_logs)
        self._registry = PluginRegistry()
        self._registry.attach(self)

    # =========================================================================
    # Configuration
    # =========================================================================

    def configure(self, options: Optional[KernelOptions] = None, **updates: Any) -> None:
        """
        Merge new options into the current ones.

        Accepts a KernelOptions (its explicitly set fields are merged) and/or
        keyword fields: enabled, max_logs, log_level.

        Raises:
            ConfigError: the merged options are invalid
        """
        merged = {}
        if options is not None:
            merged.update({name: getattr(options, name) for name in options.model_fields_set})
        merged.update(updates)
        new_options = _merge_options(self._options, merged)

        if new_options.max_logs != self._options.max_logs:
            self._store.set_capacity(new_options.max_logs)
        self._options = new_options

    def get_options(self) -> KernelOptions:
        return self._options.model_copy()

    def is_enabled(self) -> bool:
        return self._options.enabled

    def enable(self) -> None:
        self.configure(enabled=True)

    def disable(self) -> None:
        self.configure(enabled=False)

    # =========================================================================
    # Plugins
    # =========================================================================

    def register(self, plugin: Plugin) -> None:
        """Register a plugin and install it against this kernel."""
        self._registry.register(plugin)

    def unregister(self, name: str) -> None:
        self._registry.unregister(name)

    def get_plugin(self, name: str) -> Optional[Plugin]:
        return self._registry.get(name)

    def has_plugin(self, name: str) -> bool:
        return self._registry.has(name)

    def list_plugins(self) -> List[PluginInfo]:
        return self._registry.list_plugins()

    def enable_plugin(self, name: str) -> None:
        self._registry.enable(name)

    def disable_plugin(self, name: str) -> None:
        self._registry.disable(name)

    def is_plugin_enabled(self, name: str) -> bool:
        return self._registry.is_enabled(name)

    # =========================================================================
    # Events
    # =========================================================================

    def on(self, kind: EventKind, handler: EventHandler) -> Unsubscribe:
        return self._bus.subscribe(kind, handler)

    def off(self, kind: EventKind, handler: EventHandler) -> None:
        self._bus.unsubscribe_all(kind, handler)

    def on_log(self, handler: LogHandler) -> Unsubscribe:
        return self._bus.subscribe_log(handler)

    def emit(self, event: KernelEvent) -> None:
        """
        Dispatch one event.

        When disabled this does nothing at all. Otherwise: bus subscribers for
        the event kind, then plugin hooks for that kind, then, if the event's
        level reaches the configured minimum, a LogEntry is stored and sent to
        log subscribers and on_log hooks.
        """
        if not self._options.enabled:
            return

        self._bus.publish(event)

        for plugin, hook in self._registry.plugins_with_hook(event.kind):
            try:
                hook(event)
            except Exception:
                logger.exception(
                    "plugin hook failed",
                    plugin=plugin.name,
                    operation=f"on_{event.kind.value.replace('-', '_')}",
                    event_kind=event.kind.value,
                    component=event.component_name,
                )

        formatted = format_event(event)
        level = event_level(event)
        if level.rank < self._options.log_level.rank:
            return

        entry = LogEntry(
            id=generate_uid(),
            timestamp=now_ms(),
            component_id=event.component_id,
            component_name=event.component_name,
            event=event,
            level=level,
            formatted=formatted,
        )
        self.add_log(entry)

    # =========================================================================
    # Logs
    # =========================================================================

    def add_log(self, entry: LogEntry) -> None:
        """Store an entry and fan it out to log subscribers and on_log hooks."""
        self._store.append(entry)
        self._bus.publish_log(entry)

        for plugin, hook in self._registry.plugins_with_log_hook():
            try:
                hook(entry)
            except Exception:
                logger.exception(
                    "plugin log hook failed",
                    plugin=plugin.name,
                    operation="on_log",
                    event_kind=entry.kind.value,
                )

    def get_logs(self) -> LogSnapshot:
        return self._store.snapshot()

    def clear_logs(self) -> None:
        self._store.clear()

    def filter_logs(self, filter: Optional[LogFilter] = None, **criteria: Any) -> List[LogEntry]:
        return self._store.query(filter, **criteria)

    # =========================================================================
    # Teardown
    # =========================================================================

    def destroy(self) -> None:
        """Disable, uninstall every plugin and drop all subscriptions. Safe to repeat."""
        self._options = self._options.model_copy(update={"enabled": False})
        self._registry.clear()
        self._bus.clear_all()

    def __enter__(self) -> "Kernel":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.destroy()


def create_kernel(
    options: Optional[KernelOptions] = None,
    plugins: Iterable[Plugin] = (),
    **overrides: Any,
) -> Kernel:
    """
    Build a kernel and register the given plugins in order.

    Raises:
        ConfigError: invalid options
        PluginError: a plugin is malformed or its name is taken
    """
    kernel = Kernel(options, **overrides)
    for plugin in plugins:
        kernel.register(plugin)
    return kernel
