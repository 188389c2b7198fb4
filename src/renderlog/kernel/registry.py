from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Set, Tuple

import structlog

from .errors import DuplicatePluginError
from .plugin import Plugin, validate_plugin
from .schema import EventKind, PluginInfo, PluginType

if TYPE_CHECKING:
    from .engine import Kernel

logger = structlog.get_logger(__name__)

Hook = Callable[[Any], None]


class PluginRegistry:
    """
    Plugin storage and lifecycle.

    Registration is strict: a malformed plugin or a duplicate name raises
    before anything changes. Activation is forgiving: install/uninstall
    failures are logged, and a plugin whose install fails stays registered
    but disabled.
    """

    def __init__(self) -> None:
        self._plugins: Dict[str, Plugin] = {}
        self._enabled: Set[str] = set()
        self._kernel: Optional["Kernel"] = None

    def attach(self, kernel: "Kernel") -> None:
        """Give the registry the kernel handle passed to install()."""
        self._kernel = kernel

    def register(self, plugin: Plugin) -> None:
        """
        Register and, when a kernel is attached, install a plugin.

        Raises:
            PluginValidationError: the plugin does not satisfy the contract
            DuplicatePluginError: the name is already registered
        """
        validate_plugin(plugin)
        if plugin.name in self._plugins:
            raise DuplicatePluginError(plugin.name)

        self._plugins[plugin.name] = plugin
        self._enabled.add(plugin.name)

        if self._kernel is not None and not self._install(plugin):
            self._enabled.discard(plugin.name)

    def unregister(self, name: str) -> None:
        """Uninstall and remove a plugin. Unknown names are ignored."""
        plugin = self._plugins.get(name)
        if plugin is None:
            return
        self._uninstall(plugin)
        del self._plugins[name]
        self._enabled.discard(name)

    def enable(self, name: str) -> None:
        plugin = self._plugins.get(name)
        if plugin is None or name in self._enabled:
            return
        self._enabled.add(name)
        if self._kernel is not None and not self._install(plugin):
            self._enabled.discard(name)

    def disable(self, name: str) -> None:
        plugin = self._plugins.get(name)
        if plugin is None or name not in self._enabled:
            return
        self._uninstall(plugin)
        self._enabled.discard(name)

    def _install(self, plugin: Plugin) -> bool:
        try:
            plugin.install(self._kernel)
        except Exception:
            logger.exception("plugin install failed", plugin=plugin.name, operation="install")
            return False
        return True

    def _uninstall(self, plugin: Plugin) -> None:
        try:
            plugin.uninstall()
        except Exception:
            logger.exception("plugin uninstall failed", plugin=plugin.name, operation="uninstall")

    def get(self, name: str) -> Optional[Plugin]:
        return self._plugins.get(name)

    def has(self, name: str) -> bool:
        return name in self._plugins

    def is_enabled(self, name: str) -> bool:
        return name in self._enabled

    def list_plugins(self) -> List[PluginInfo]:
        """Registered plugins in registration order."""
        return [
            PluginInfo(
                name=plugin.name,
                version=plugin.version,
                type=PluginType(plugin.type),
                enabled=plugin.name in self._enabled,
            )
            for plugin in self._plugins.values()
        ]

    def enabled_plugins(self) -> List[Plugin]:
        return [p for p in self._plugins.values() if p.name in self._enabled]

    def plugins_with_hook(self, kind: EventKind) -> List[Tuple[Plugin, Hook]]:
        """Enabled plugins exposing a hook for `kind`, paired with that hook."""
        found: List[Tuple[Plugin, Hook]] = []
        for plugin in self.enabled_plugins():
            if plugin.hooks is None:
                continue
            hook = plugin.hooks.for_kind(EventKind(kind))
            if hook is not None:
                found.append((plugin, hook))
        return found

    def plugins_with_log_hook(self) -> List[Tuple[Plugin, Hook]]:
        return [
            (plugin, plugin.hooks.on_log)
            for plugin in self.enabled_plugins()
            if plugin.hooks is not None and plugin.hooks.on_log is not None
        ]

    def count(self) -> int:
        return len(self._plugins)

    def clear(self) -> None:
        """Uninstall and remove every plugin; one failing uninstall does not stop the rest."""
        for plugin in list(self._plugins.values()):
            self._uninstall(plugin)
        self._plugins.clear()
        self._enabled.clear()
