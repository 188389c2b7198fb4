from __future__ import annotations

from typing import Callable, Dict, List

import structlog

from .schema import EventKind, KernelEvent, LogEntry

logger = structlog.get_logger(__name__)

EventHandler = Callable[[KernelEvent], None]
LogHandler = Callable[[LogEntry], None]
Unsubscribe = Callable[[], None]


class EventBus:
    """
    Synchronous typed fan-out.

    Handlers are kept per event kind in registration order (a handler is held
    once per kind). Delivery runs inside the publishing call; a handler that
    raises is logged and the remaining handlers still receive the event.
    """

    def __init__(self) -> None:
        # dicts used as ordered sets
        self._handlers: Dict[EventKind, Dict[EventHandler, None]] = {}
        self._log_handlers: Dict[LogHandler, None] = {}

    def subscribe(self, kind: EventKind, handler: EventHandler) -> Unsubscribe:
        """
        Subscribe a handler to one event kind.

        Returns:
            An idempotent callable that removes the subscription.
        """
        kind = EventKind(kind)
        self._handlers.setdefault(kind, {})[handler] = None

        def unsubscribe() -> None:
            self.unsubscribe_all(kind, handler)

        return unsubscribe

    def unsubscribe_all(self, kind: EventKind, handler: EventHandler) -> None:
        """Remove a handler from a kind; the kind's bucket goes away once empty."""
        kind = EventKind(kind)
        bucket = self._handlers.get(kind)
        if bucket is None:
            return
        bucket.pop(handler, None)
        if not bucket:
            del self._handlers[kind]

    def subscribe_log(self, handler: LogHandler) -> Unsubscribe:
        """Subscribe to every stored log entry."""
        self._log_handlers[handler] = None

        def unsubscribe() -> None:
            self._log_handlers.pop(handler, None)

        return unsubscribe

    def publish(self, event: KernelEvent) -> None:
        bucket = self._handlers.get(event.kind)
        if not bucket:
            return
        for handler in list(bucket):
            try:
                handler(event)
            except Exception:
                logger.exception(
                    "event handler failed",
                    event_kind=event.kind.value,
                    component=event.component_name,
                )

    def publish_log(self, entry: LogEntry) -> None:
        for handler in list(self._log_handlers):
            try:
                handler(entry)
            except Exception:
                logger.exception(
                    "log handler failed",
                    event_kind=entry.kind.value,
                    entry_id=entry.id,
                )

    def handler_count(self, kind: EventKind) -> int:
        return len(self._handlers.get(EventKind(kind), {}))

    def log_handler_count(self) -> int:
        return len(self._log_handlers)

    def has_handlers(self, kind: EventKind) -> bool:
        return self.handler_count(kind) > 0

    def registered_kinds(self) -> List[EventKind]:
        return list(self._handlers)

    def clear_all(self) -> None:
        """Drop every subscription."""
        self._handlers.clear()
        self._log_handlers.clear()
