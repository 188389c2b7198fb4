"""
Plugins: instrumentation consumers of kernel events.

Core (installed together by install_core_plugins):
- lifecycle: mount/unmount/update history
- props: live props and change statistics
- state: hook state snapshots
- effects: effect runs and cleanups

Optional:
- context: context value history
- errors: bounded error record
- timer: render duration statistics
- chain: render propagation chains
- exporter: JSON/CSV session export
"""
from typing import TYPE_CHECKING, List

from ..kernel.plugin import Plugin
from .lifecycle import LifecycleLogger
from .props import PropsTracker
from .state import StateTracker
from .effects import EffectTracker
from .context import ContextTracker
from .errors import ErrorTracker
from .timer import RenderTimer
from .chain import RenderChain
from .exporter import FileExporter, build_export_data, to_csv, to_json

if TYPE_CHECKING:
    from ..kernel.engine import Kernel


def core_plugins() -> List[Plugin]:
    """Fresh instances of the core trackers, in registration order."""
    return [LifecycleLogger(), PropsTracker(), StateTracker(), EffectTracker()]


def install_core_plugins(kernel: "Kernel") -> None:
    for plugin in core_plugins():
        kernel.register(plugin)


__all__ = [
    "LifecycleLogger",
    "PropsTracker",
    "StateTracker",
    "EffectTracker",
    "ContextTracker",
    "ErrorTracker",
    "RenderTimer",
    "RenderChain",
    "FileExporter",
    "build_export_data",
    "to_csv",
    "to_json",
    "core_plugins",
    "install_core_plugins",
]
