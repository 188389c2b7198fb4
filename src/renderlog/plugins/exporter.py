"""
File exporter: the session export payload as JSON or CSV.

Payload layout (JSON keys in camelCase):
    metadata  exportedAt, sessionStart, sessionDurationMs, totalLogs, componentCount
    logs      one object per stored entry, oldest first
    summary   byComponent (by name), byEventKind (every kind, zero-filled), byLevel
"""
from __future__ import annotations

import csv
import io
import math
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Set, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..kernel.plugin import Plugin
from ..kernel.schema import EventKind, LogEntry, PluginType
from ..kernel.store import LogSnapshot
from ..lib.format import format_value
from ..lib.timing import now_ms, to_iso

if TYPE_CHECKING:
    from ..kernel.engine import Kernel

CIRCULAR = "[Circular]"

CSV_COLUMNS = [
    "id",
    "timestamp",
    "componentId",
    "componentName",
    "eventKind",
    "level",
    "formattedText",
]


class _ExportModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ExportMetadata(_ExportModel):
    exported_at: str
    session_start: str
    session_duration_ms: float
    total_logs: int
    component_count: int


class ExportSummary(_ExportModel):
    by_component: Dict[str, int] = Field(default_factory=dict)
    by_event_kind: Dict[str, int] = Field(default_factory=dict)
    by_level: Dict[str, int] = Field(default_factory=dict)


class ExportData(_ExportModel):
    metadata: ExportMetadata
    logs: List[Dict[str, Any]] = Field(default_factory=list)
    summary: ExportSummary


# =============================================================================
# Payload construction
# =============================================================================


def to_jsonable(value: Any, _active: Optional[Set[int]] = None) -> Any:
    """
    Convert a captured value into JSON-native data.

    Models become objects with camelCase keys, containers are converted
    recursively, a container met again inside itself becomes "[Circular]",
    and anything else falls back to its format_value text.
    """
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, float):
        return value if math.isfinite(value) else format_value(value)
    if isinstance(value, Enum):
        return value.value

    active = _active if _active is not None else set()
    if not isinstance(value, (BaseModel, dict, list, tuple, set, frozenset)):
        return format_value(value)
    if id(value) in active:
        return CIRCULAR

    active.add(id(value))
    try:
        if isinstance(value, BaseModel):
            return {
                to_camel(name): to_jsonable(getattr(value, name), active)
                for name, info in type(value).model_fields.items()
                if not info.exclude
            }
        if isinstance(value, dict):
            return {str(key): to_jsonable(item, active) for key, item in value.items()}
        return [to_jsonable(item, active) for item in value]
    finally:
        active.discard(id(value))


def _export_log(entry: LogEntry) -> Dict[str, Any]:
    return {
        "id": entry.id,
        "timestamp": entry.timestamp,
        "componentId": entry.component_id,
        "componentName": entry.component_name,
        "eventKind": entry.kind.value,
        "level": entry.level.value,
        "formattedText": entry.formatted,
        "event": to_jsonable(entry.event),
    }


def empty_export_data(now: Optional[float] = None) -> ExportData:
    moment = to_iso(now_ms() if now is None else now)
    return ExportData(
        metadata=ExportMetadata(
            exported_at=moment,
            session_start=moment,
            session_duration_ms=0,
            total_logs=0,
            component_count=0,
        ),
        summary=ExportSummary(),
    )


def build_export_data(snapshot: LogSnapshot, now: Optional[float] = None) -> ExportData:
    """
    Build the export payload for a log snapshot.

    Args:
        snapshot: The kernel's current log view
        now: Export time in epoch ms (defaults to the current time)
    """
    now = now_ms() if now is None else now
    entries = snapshot.entries

    by_component: Dict[str, int] = {}
    by_event_kind: Dict[str, int] = {kind.value: 0 for kind in EventKind}
    by_level: Dict[str, int] = {}
    for entry in entries:
        by_component[entry.component_name] = by_component.get(entry.component_name, 0) + 1
        by_event_kind[entry.kind.value] += 1
        by_level[entry.level.value] = by_level.get(entry.level.value, 0) + 1

    return ExportData(
        metadata=ExportMetadata(
            exported_at=to_iso(now),
            session_start=to_iso(snapshot.start_time),
            session_duration_ms=now - snapshot.start_time,
            total_logs=len(entries),
            component_count=len(snapshot.by_component),
        ),
        logs=[_export_log(entry) for entry in entries],
        summary=ExportSummary(
            by_component=by_component,
            by_event_kind=by_event_kind,
            by_level=by_level,
        ),
    )


# =============================================================================
# Serialization
# =============================================================================


def to_json(data: ExportData, pretty: bool = True) -> str:
    return data.model_dump_json(by_alias=True, indent=2 if pretty else None)


def to_csv(entries: List[LogEntry]) -> str:
    """Flat table, one row per entry; fields are quoted only when they need it."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CSV_COLUMNS)
    for entry in entries:
        writer.writerow(
            [
                entry.id,
                to_iso(entry.timestamp),
                entry.component_id,
                entry.component_name,
                entry.kind.value,
                entry.level.value,
                entry.formatted,
            ]
        )
    return buffer.getvalue()


class FileExporter(Plugin):
    """
    Exports the attached kernel's logs.

    Args:
        pretty: Indent JSON output
        directory: Where default-named export files are written
    """

    name = "file-exporter"
    version = "1.0.0"
    type = PluginType.OPTIONAL

    def __init__(self, pretty: bool = True, directory: Union[str, Path, None] = None) -> None:
        self.pretty = pretty
        self.directory = Path(directory) if directory is not None else Path.cwd()
        self._kernel: Optional["Kernel"] = None

    def install(self, kernel: "Kernel") -> None:
        self._kernel = kernel

    def uninstall(self) -> None:
        self._kernel = None

    def get_export_data(self) -> ExportData:
        if self._kernel is None:
            return empty_export_data()
        return build_export_data(self._kernel.get_logs())

    def to_json(self, pretty: Optional[bool] = None) -> str:
        return to_json(self.get_export_data(), self.pretty if pretty is None else pretty)

    def to_csv(self) -> str:
        if self._kernel is None:
            return to_csv([])
        return to_csv(self._kernel.get_logs().entries)

    def _target(self, path: Union[str, Path, None], suffix: str) -> Path:
        if path is not None:
            return Path(path)
        return self.directory / f"renderlog-export-{int(now_ms())}.{suffix}"

    def export_json(self, path: Union[str, Path, None] = None) -> Path:
        """Write the JSON export and return the file written."""
        target = self._target(path, "json")
        target.write_text(self.to_json(), encoding="utf-8")
        return target

    def export_csv(self, path: Union[str, Path, None] = None) -> Path:
        """Write the CSV export and return the file written."""
        target = self._target(path, "csv")
        target.write_text(self.to_csv(), encoding="utf-8", newline="")
        return target
