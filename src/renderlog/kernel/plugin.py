"""
Plugin contract.

A plugin is a named, versioned unit with install/uninstall lifecycle methods,
an optional table of per-event-kind hooks, and an optional API surface.
Plugins are validated once, at registration, by validate_plugin; dispatch then
reads the hook table by event kind without probing shapes again.
"""
from __future__ import annotations

from dataclasses import dataclass, fields
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from .errors import PluginValidationError
from .schema import (
    ContextChangeEvent,
    EffectCleanupEvent,
    EffectRunEvent,
    ErrorEvent,
    EventKind,
    LogEntry,
    MountEvent,
    PluginType,
    PropsChangeEvent,
    StateChangeEvent,
    UnmountEvent,
    UpdateEvent,
)

if TYPE_CHECKING:
    from .engine import Kernel


HOOK_FIELDS: Dict[EventKind, str] = {
    EventKind.MOUNT: "on_mount",
    EventKind.UNMOUNT: "on_unmount",
    EventKind.UPDATE: "on_update",
    EventKind.PROPS_CHANGE: "on_props_change",
    EventKind.STATE_CHANGE: "on_state_change",
    EventKind.EFFECT_RUN: "on_effect_run",
    EventKind.EFFECT_CLEANUP: "on_effect_cleanup",
    EventKind.CONTEXT_CHANGE: "on_context_change",
    EventKind.ERROR: "on_error",
}


@dataclass(frozen=True)
class PluginHooks:
    """Sparse hook table: one optional callable per event kind plus on_log."""

    on_mount: Optional[Callable[[MountEvent], None]] = None
    on_unmount: Optional[Callable[[UnmountEvent], None]] = None
    on_update: Optional[Callable[[UpdateEvent], None]] = None
    on_props_change: Optional[Callable[[PropsChangeEvent], None]] = None
    on_state_change: Optional[Callable[[StateChangeEvent], None]] = None
    on_effect_run: Optional[Callable[[EffectRunEvent], None]] = None
    on_effect_cleanup: Optional[Callable[[EffectCleanupEvent], None]] = None
    on_context_change: Optional[Callable[[ContextChangeEvent], None]] = None
    on_error: Optional[Callable[[ErrorEvent], None]] = None
    on_log: Optional[Callable[[LogEntry], None]] = None

    def for_kind(self, kind: EventKind) -> Optional[Callable[[Any], None]]:
        return getattr(self, HOOK_FIELDS[kind])

    def validate(self) -> None:
        for item in fields(self):
            value = getattr(self, item.name)
            if value is not None and not callable(value):
                raise PluginValidationError(f"Hook {item.name} must be callable")


class Plugin:
    """
    Base class for plugins.

    Subclasses set name, version and type, override install/uninstall as
    needed, and assign `hooks` (usually in __init__, bound to their methods).
    """

    name: str = ""
    version: str = ""
    type: PluginType = PluginType.OPTIONAL
    hooks: Optional[PluginHooks] = None

    def install(self, kernel: "Kernel") -> None:
        pass

    def uninstall(self) -> None:
        pass

    @property
    def api(self) -> Any:
        """Query surface of the plugin. Built-in plugins expose themselves."""
        return self

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}@{self.version}>"


def validate_plugin(plugin: Any) -> None:
    """
    Check an object against the plugin contract.

    Raises:
        PluginValidationError: with the first violated requirement
    """
    if plugin is None:
        raise PluginValidationError("Plugin must be an object")

    name = getattr(plugin, "name", None)
    if not name or not isinstance(name, str):
        raise PluginValidationError("Plugin must have a name property of type string")

    version = getattr(plugin, "version", None)
    if not version or not isinstance(version, str):
        raise PluginValidationError(f'Plugin "{name}" must have a version property of type string')

    try:
        PluginType(getattr(plugin, "type", None))
    except ValueError:
        raise PluginValidationError(f'Plugin "{name}" must have a type of "core" or "optional"') from None

    if not callable(getattr(plugin, "install", None)):
        raise PluginValidationError(f'Plugin "{name}" must have an install method')

    if not callable(getattr(plugin, "uninstall", None)):
        raise PluginValidationError(f'Plugin "{name}" must have an uninstall method')

    hooks = getattr(plugin, "hooks", None)
    if hooks is not None:
        if not isinstance(hooks, PluginHooks):
            raise PluginValidationError(f'Plugin "{name}" hooks must be a PluginHooks table')
        hooks.validate()


class FunctionPlugin(Plugin):
    """Plugin assembled from callables by create_plugin."""

    def __init__(
        self,
        name: str,
        version: str,
        type: PluginType = PluginType.OPTIONAL,
        hooks: Optional[PluginHooks] = None,
        api: Any = None,
        on_install: Optional[Callable[["Kernel"], None]] = None,
        on_uninstall: Optional[Callable[[], None]] = None,
    ) -> None:
        self.name = name
        self.version = version
        self.type = PluginType(type)
        self.hooks = hooks
        self._api = api
        self._on_install = on_install
        self._on_uninstall = on_uninstall

    @property
    def api(self) -> Any:
        return self._api

    def install(self, kernel: "Kernel") -> None:
        if self._on_install is not None:
            self._on_install(kernel)

    def uninstall(self) -> None:
        if self._on_uninstall is not None:
            self._on_uninstall()


def create_plugin(
    name: str,
    version: str,
    type: PluginType = PluginType.OPTIONAL,
    hooks: Optional[PluginHooks] = None,
    api: Any = None,
    on_install: Optional[Callable[["Kernel"], None]] = None,
    on_uninstall: Optional[Callable[[], None]] = None,
    **hook_callables: Callable[..., None],
) -> Plugin:
    """
    Create a plugin from callables.

    Hooks may be given as a PluginHooks table or as keyword callables named
    after its fields (on_mount=..., on_log=...).

    Example:
        plugin = create_plugin("audit", "1.0.0", on_error=report)
    """
    if not name or not isinstance(name, str):
        raise PluginValidationError("Plugin name is required and must be a string")
    if not version or not isinstance(version, str):
        raise PluginValidationError("Plugin version is required and must be a string")

    if hook_callables:
        known = {item.name for item in fields(PluginHooks)}
        unknown = set(hook_callables) - known
        if unknown:
            raise PluginValidationError(f"Unknown hook(s): {', '.join(sorted(unknown))}")
        base = {item.name: getattr(hooks, item.name) for item in fields(PluginHooks)} if hooks else {}
        hooks = PluginHooks(**{**base, **hook_callables})

    try:
        plugin_type = PluginType(type)
    except ValueError:
        raise PluginValidationError(f'Plugin "{name}" must have a type of "core" or "optional"') from None

    return FunctionPlugin(
        name=name,
        version=version,
        type=plugin_type,
        hooks=hooks,
        api=api,
        on_install=on_install,
        on_uninstall=on_uninstall,
    )
