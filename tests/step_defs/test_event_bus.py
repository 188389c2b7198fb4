"""
Step definitions for the event bus feature.
"""
import pytest
from pytest_bdd import given, scenarios, then, when, parsers
from structlog.testing import capture_logs

from renderlog.kernel.bus import EventBus
from renderlog.kernel.schema import EventKind

scenarios("../features/event_bus.feature")


@pytest.fixture
def calls():
    return []


@given("an event bus", target_fixture="bus")
def event_bus(test_context):
    test_context["unsubscribe"] = {}
    return EventBus()


def _recorder(calls, name):
    def handler(event):
        calls.append(name)

    return handler


@given(parsers.parse('handlers "{names}" subscribed to "{kind}"'))
def subscribe_handlers(bus, calls, test_context, names: str, kind: str):
    for name in names.split(","):
        test_context["unsubscribe"][name] = bus.subscribe(EventKind(kind), _recorder(calls, name))


@given(parsers.parse('a handler "{name}" subscribed to "{kind}"'))
def subscribe_handler(bus, calls, test_context, name: str, kind: str):
    test_context["unsubscribe"][name] = bus.subscribe(EventKind(kind), _recorder(calls, name))


@given(parsers.parse('a failing handler subscribed to "{kind}"'))
def subscribe_failing(bus, kind: str):
    def explode(event):
        raise RuntimeError("boom")

    bus.subscribe(EventKind(kind), explode)


@when(parsers.parse('a "{kind}" event is published'))
def publish(bus, test_context, make_mount, make_update, kind: str):
    event = make_mount() if kind == "mount" else make_update()
    with capture_logs() as logs:
        bus.publish(event)
    test_context["logs"] = logs


@when(parsers.parse('the "{name}" subscription is removed twice'))
def unsubscribe_twice(test_context, name: str):
    unsubscribe = test_context["unsubscribe"][name]
    unsubscribe()
    unsubscribe()


@then(parsers.parse('the calls are "{names}"'))
def calls_are(calls, names: str):
    assert calls == names.split(",")


@then("no calls were made")
def no_calls(calls):
    assert calls == []


@then(parsers.parse('an "{message}" error was logged'))
def error_logged(test_context, message: str):
    errors = [log for log in test_context["logs"] if log["event"] == message]
    assert len(errors) == 1
    assert errors[0]["log_level"] == "error"
    assert errors[0]["event_kind"] == "mount"


@then(parsers.parse('the bus has no bucket for "{kind}"'))
def no_bucket(bus, kind: str):
    assert EventKind(kind) not in bus.registered_kinds()
    assert not bus.has_handlers(EventKind(kind))


# =============================================================================
# Plain tests
# =============================================================================


def test_same_handler_is_held_once_per_kind(make_mount):
    bus = EventBus()
    received = []
    bus.subscribe(EventKind.MOUNT, received.append)
    bus.subscribe(EventKind.MOUNT, received.append)
    bus.publish(make_mount())
    assert len(received) == 1
    assert bus.handler_count(EventKind.MOUNT) == 1


def test_handler_unsubscribing_during_delivery_still_lets_others_run(make_mount):
    bus = EventBus()
    received = []
    unsubscribe = None

    def once(event):
        received.append("once")
        unsubscribe()

    unsubscribe = bus.subscribe(EventKind.MOUNT, once)
    bus.subscribe(EventKind.MOUNT, lambda event: received.append("steady"))

    bus.publish(make_mount())
    bus.publish(make_mount())
    assert received == ["once", "steady", "steady"]


def test_log_handlers_are_isolated(make_entry):
    bus = EventBus()
    received = []

    def broken(entry):
        raise ValueError("bad handler")

    bus.subscribe_log(broken)
    bus.subscribe_log(received.append)
    entry = make_entry()

    with capture_logs() as logs:
        bus.publish_log(entry)

    assert received == [entry]
    assert logs[0]["event"] == "log handler failed"
    assert logs[0]["entry_id"] == entry.id


def test_unsubscribe_after_clear_all_is_safe(make_mount):
    bus = EventBus()
    unsubscribe = bus.subscribe(EventKind.MOUNT, lambda event: None)
    unsubscribe_log = bus.subscribe_log(lambda entry: None)
    bus.clear_all()
    unsubscribe()
    unsubscribe_log()
    assert bus.registered_kinds() == []
    assert bus.log_handler_count() == 0
