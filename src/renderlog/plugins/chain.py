"""
Render chain: which component's render appears to have triggered which.

Mount and update events are consumed in arrival order. A render that follows
a render of a different component within `window_ms` is linked as triggered
by it. Other renders leave existing links alone, so a component first seen
outside the window becomes a new chain root. This is temporal
co-occurrence, not a verified dependency graph. With `strict=True` no edges
are inferred and only explicit link() calls create them.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Union

import structlog

from ..kernel.plugin import Plugin, PluginHooks
from ..kernel.schema import MountEvent, PluginType, UpdateEvent

logger = structlog.get_logger(__name__)

DEFAULT_MAX_DEPTH = 10
CHAIN_WINDOW_MS = 50.0


@dataclass
class RenderChainNode:
    component_id: str
    component_name: str
    timestamp: float
    triggered_by: Optional[str] = None
    triggered: List[str] = field(default_factory=list)
    depth: int = 0


class RenderChain(Plugin):
    """
    Tracks parent-to-child render propagation.

    Args:
        max_depth: Depth beyond which a deep-chain warning is logged
        window_ms: Renders closer than this are treated as one chain
        strict: Disable temporal inference; only link() creates edges
    """

    name = "render-chain"
    version = "1.0.0"
    type = PluginType.OPTIONAL

    def __init__(
        self,
        max_depth: int = DEFAULT_MAX_DEPTH,
        window_ms: float = CHAIN_WINDOW_MS,
        strict: bool = False,
    ) -> None:
        self.max_depth = max_depth
        self.window_ms = window_ms
        self.strict = strict
        self._nodes: Dict[str, RenderChainNode] = {}
        self._parents: Dict[str, str] = {}
        self._children: Dict[str, Dict[str, None]] = {}
        self._last_timestamp: Optional[float] = None
        self._last_component_id: Optional[str] = None
        self.hooks = PluginHooks(on_mount=self._on_render, on_update=self._on_render)

    def uninstall(self) -> None:
        self._nodes.clear()
        self._parents.clear()
        self._children.clear()
        self._last_timestamp = None
        self._last_component_id = None

    def _on_render(self, event: Union[MountEvent, UpdateEvent]) -> None:
        self.record_render(event.component_id, event.component_name, event.timestamp)

    def record_render(self, component_id: str, component_name: str, timestamp: float) -> None:
        """Feed one render in arrival order."""
        node = self._nodes.get(component_id)
        if node is None:
            node = RenderChainNode(component_id, component_name, timestamp)
            self._nodes[component_id] = node
        node.timestamp = timestamp

        if not self.strict:
            previous = self._last_component_id
            in_window = (
                self._last_timestamp is not None
                and timestamp - self._last_timestamp < self.window_ms
            )
            # outside the window a render keeps whatever links it already has
            if in_window and previous is not None and previous != component_id:
                self._attach(component_id, previous)

        self._last_timestamp = timestamp
        self._last_component_id = component_id

    def link(self, child_id: str, parent_id: str) -> None:
        """
        Record an explicit triggered-by edge between two known components.

        Raises:
            ValueError: unknown component, or a component linked to itself
        """
        for component_id in (child_id, parent_id):
            if component_id not in self._nodes:
                raise ValueError(f"Unknown component: {component_id}")
        if child_id == parent_id:
            raise ValueError(f"Component {child_id} cannot trigger itself")
        self._attach(child_id, parent_id)

    def _attach(self, child_id: str, parent_id: str) -> None:
        self._detach(child_id)
        node = self._nodes[child_id]
        parent = self._nodes[parent_id]

        node.triggered_by = parent_id
        self._parents[child_id] = parent_id
        if child_id not in parent.triggered:
            parent.triggered.append(child_id)
        self._children.setdefault(parent_id, {})[child_id] = None

        node.depth = parent.depth + 1
        if node.depth > self.max_depth:
            logger.warning(
                "deep render chain",
                component=node.component_name,
                depth=node.depth,
                max_depth=self.max_depth,
            )
        self._update_descendant_depths(child_id, parent_id)

    def _update_descendant_depths(self, child_id: str, parent_id: str) -> None:
        """Re-derive depth below a moved node; a cycle back to the new parent stops the walk."""
        visited: Set[str] = {child_id, parent_id}
        pending = [child_id]
        while pending:
            current = pending.pop()
            depth = self._nodes[current].depth + 1
            for descendant_id in self._children.get(current, {}):
                if descendant_id in visited:
                    continue
                visited.add(descendant_id)
                self._nodes[descendant_id].depth = depth
                pending.append(descendant_id)

    def _detach(self, child_id: str) -> None:
        parent_id = self._parents.pop(child_id, None)
        self._nodes[child_id].triggered_by = None
        if parent_id is None:
            return
        parent = self._nodes.get(parent_id)
        if parent is not None and child_id in parent.triggered:
            parent.triggered.remove(child_id)
        children = self._children.get(parent_id)
        if children is not None:
            children.pop(child_id, None)
            if not children:
                del self._children[parent_id]

    # =========================================================================
    # API
    # =========================================================================

    def get_chain(self, component_id: str) -> Optional[RenderChainNode]:
        return self._nodes.get(component_id)

    def get_root_cause(self, component_id: str) -> str:
        """Follow triggered-by edges to the top; stops where the walk would revisit a component."""
        current = component_id
        seen: Set[str] = {current}
        while current in self._parents:
            parent = self._parents[current]
            if parent in seen:
                break
            seen.add(parent)
            current = parent
        return current

    def get_children(self, component_id: str) -> List[str]:
        return list(self._children.get(component_id, {}))

    def get_parent(self, component_id: str) -> Optional[str]:
        return self._parents.get(component_id)

    def visualize_chain(self) -> str:
        """
        Render every chain as an indented tree.

        Example:
            Render Chain:
               └─ App
                  ├─ Header
                  └─ Counter
        """
        if not self._nodes:
            return "No render chains recorded"

        roots = [cid for cid in self._nodes if cid not in self._parents]
        reached = self._reachable(roots)
        # components caught in a cycle have no parentless ancestor
        for component_id in self._nodes:
            if component_id not in reached:
                roots.append(component_id)
                reached |= self._reachable([component_id])

        lines = ["Render Chain:"]
        visited: Set[str] = set()
        for position, root_id in enumerate(roots):
            self._draw(root_id, "   ", position == len(roots) - 1, visited, lines)
        return "\n".join(lines) + "\n"

    def _reachable(self, start: List[str]) -> Set[str]:
        reached: Set[str] = set()
        pending = list(start)
        while pending:
            component_id = pending.pop()
            if component_id in reached:
                continue
            reached.add(component_id)
            pending.extend(self._children.get(component_id, {}))
        return reached

    def _draw(
        self, component_id: str, prefix: str, is_last: bool, visited: Set[str], lines: List[str]
    ) -> None:
        node = self._nodes.get(component_id)
        if node is None:
            return
        connector = "└─ " if is_last else "├─ "
        if component_id in visited:
            lines.append(f"{prefix}{connector}{node.component_name} (cycle)")
            return
        visited.add(component_id)
        lines.append(f"{prefix}{connector}{node.component_name}")

        children = self.get_children(component_id)
        child_prefix = prefix + ("   " if is_last else "│  ")
        for position, child_id in enumerate(children):
            self._draw(child_id, child_prefix, position == len(children) - 1, visited, lines)
