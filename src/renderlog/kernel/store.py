from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional

from ..lib.timing import now_ms
from .schema import EventKind, LogEntry, LogFilter

DEFAULT_MAX_LOGS = 1000


@dataclass
class LogSnapshot:
    """Read view of the store. Collections are the store's own, not copies."""

    entries: List[LogEntry]
    by_component: Dict[str, List[LogEntry]]
    by_type: Dict[EventKind, List[LogEntry]]
    start_time: float
    last_entry: Optional[LogEntry]


def _remove_ref(bucket: List[LogEntry], entry: LogEntry) -> None:
    """Remove an entry from an index bucket by identity."""
    # Trimmed entries are the oldest, so they sit at the front of their bucket
    if bucket and bucket[0] is entry:
        del bucket[0]
        return
    for index, candidate in enumerate(bucket):
        if candidate is entry:
            del bucket[index]
            return


def _as_set(value: Any) -> Optional[set]:
    if value is None:
        return None
    if isinstance(value, (list, tuple, set, frozenset)):
        return set(value)
    return {value}


class LogStore:
    """
    Bounded log with two derived indexes (by component id and by event kind).

    Indexes hold references to the entries in `entries`; a bucket is deleted
    as soon as it becomes empty. Trimming evicts from the front, oldest first.
    """

    def __init__(self, max_logs: int = DEFAULT_MAX_LOGS) -> None:
        self._max_logs = max_logs
        self.entries: List[LogEntry] = []
        self.by_component: Dict[str, List[LogEntry]] = {}
        self.by_type: Dict[EventKind, List[LogEntry]] = {}
        self.start_time: float = now_ms()
        self.last_entry: Optional[LogEntry] = None

    @property
    def max_logs(self) -> int:
        return self._max_logs

    def append(self, entry: LogEntry) -> None:
        """Store an entry, index it, and trim back to capacity."""
        self.entries.append(entry)
        self.last_entry = entry
        self.by_component.setdefault(entry.component_id, []).append(entry)
        self.by_type.setdefault(entry.kind, []).append(entry)

        if len(self.entries) > self._max_logs:
            self._trim()

    def _trim(self) -> None:
        excess = len(self.entries) - self._max_logs
        if excess <= 0:
            return

        removed = self.entries[:excess]
        del self.entries[:excess]

        for entry in removed:
            self._unindex(self.by_component, entry.component_id, entry)
            self._unindex(self.by_type, entry.kind, entry)

        if not self.entries:
            self.last_entry = None

    @staticmethod
    def _unindex(index: Dict[Any, List[LogEntry]], key: Any, entry: LogEntry) -> None:
        bucket = index.get(key)
        if bucket is None:
            return
        _remove_ref(bucket, entry)
        if not bucket:
            del index[key]

    def set_capacity(self, max_logs: int) -> None:
        """Change the capacity, trimming immediately when over it."""
        self._max_logs = max_logs
        if len(self.entries) > max_logs:
            self._trim()

    def clear(self) -> None:
        """Empty the log and its indexes. start_time marks the session and is kept."""
        self.entries = []
        self.by_component.clear()
        self.by_type.clear()
        self.last_entry = None

    def snapshot(self) -> LogSnapshot:
        return LogSnapshot(
            entries=self.entries,
            by_component=self.by_component,
            by_type=self.by_type,
            start_time=self.start_time,
            last_entry=self.last_entry,
        )

    def query(self, filter: Optional[LogFilter] = None, **criteria: Any) -> List[LogEntry]:
        """
        Filter stored entries.

        Accepts a LogFilter, keyword criteria (the LogFilter fields), or both;
        keywords override the filter's fields. Predicates combine with AND and
        the limit keeps the most recent matches, applied last.

        Example:
            store.query(component_name=re.compile("^Counter"), level=["debug"], limit=5)
        """
        if criteria:
            base = {}
            if filter is not None:
                base = {name: getattr(filter, name) for name in filter.model_fields_set}
            filter = LogFilter.model_validate({**base, **criteria})
        if filter is None:
            return list(self.entries)

        result: Iterable[LogEntry] = self.entries

        name = filter.component_name
        if name is not None:
            if isinstance(name, str):
                result = [e for e in result if e.component_name == name]
            else:
                result = [e for e in result if name.search(e.component_name)]

        kinds = _as_set(filter.event_kind)
        if kinds is not None:
            result = [e for e in result if e.kind in kinds]

        levels = _as_set(filter.level)
        if levels is not None:
            result = [e for e in result if e.level in levels]

        if filter.time_range is not None:
            window = filter.time_range
            result = [e for e in result if window.contains(e.timestamp)]

        result = list(result)
        if filter.limit is not None and filter.limit > 0:
            result = result[-filter.limit:]
        return result

    def count(self) -> int:
        return len(self.entries)
