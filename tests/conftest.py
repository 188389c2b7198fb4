"""
Pytest configuration and shared fixtures for renderlog tests.
"""
import itertools

import pytest

from renderlog.kernel.engine import create_kernel
from renderlog.kernel.schema import (
    LogEntry,
    LogLevel,
    MountEvent,
    UpdateEvent,
    UpdateReason,
)
from renderlog.lib.format import format_event


_entry_ids = itertools.count(1)


def _mount(component_id="c1", name="Counter", timestamp=1000.0, **payload) -> MountEvent:
    return MountEvent(component_id=component_id, component_name=name, timestamp=timestamp, **payload)


def _update(component_id="c1", name="Counter", timestamp=1000.0, render_count=2,
                reason=UpdateReason.STATE) -> UpdateEvent:
    return UpdateEvent(
        component_id=component_id,
        component_name=name,
        timestamp=timestamp,
        reason=reason,
        render_count=render_count,
    )


def _entry(component_id="c1", name="Counter", level=LogLevel.INFO, timestamp=1000.0,
               event=None) -> LogEntry:
    """Build a stored log entry without going through a kernel."""
    event = event or _mount(component_id, name, timestamp)
    return LogEntry(
        id=f"e{next(_entry_ids)}",
        timestamp=timestamp,
        component_id=component_id,
        component_name=name,
        event=event,
        level=level,
        formatted=format_event(event),
    )


@pytest.fixture
def kernel():
    """A fresh kernel, destroyed after the test."""
    k = create_kernel()
    yield k
    k.destroy()


@pytest.fixture
def test_context():
    """Shared context for passing data between steps."""
    return {}


@pytest.fixture
def events_file(tmp_path):
    """Write a JSON-lines events file from a list of lines."""

    def write(lines, name="events.jsonl"):
        path = tmp_path / name
        path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return path

    return write


@pytest.fixture
def make_mount():
    return _mount


@pytest.fixture
def make_update():
    return _update


@pytest.fixture
def make_entry():
    return _entry
