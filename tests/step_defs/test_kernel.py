"""
Step definitions for the kernel feature.
"""
import pytest
from pytest_bdd import given, scenarios, then, when, parsers
from structlog.testing import capture_logs

from renderlog.kernel.engine import Kernel, create_kernel, event_level
from renderlog.kernel.errors import ConfigError
from renderlog.kernel.plugin import create_plugin
from renderlog.kernel.schema import (
    ErrorEvent,
    EventKind,
    KernelOptions,
    LogLevel,
    StateChangeEvent,
)

scenarios("../features/kernel.feature")


@pytest.fixture
def seen():
    return {"subscriber": [], "hook": []}


@given("a kernel with a mount subscriber and a mount-hook plugin", target_fixture="bdd_kernel")
def kernel_with_consumers(kernel, seen):
    kernel.on(EventKind.MOUNT, seen["subscriber"].append)
    kernel.register(create_plugin("hook", "1.0.0", on_mount=seen["hook"].append))
    return kernel


@given("a kernel with a failing mount hook", target_fixture="bdd_kernel")
def kernel_with_failing_hook(kernel):
    def explode(event):
        raise RuntimeError("hook exploded")

    kernel.register(create_plugin("explosive", "1.0.0", on_mount=explode))
    return kernel


@when("the kernel is disabled")
def disable(bdd_kernel):
    bdd_kernel.disable()


@when(parsers.parse('the kernel log level is set to "{level}"'))
def set_level(bdd_kernel, level: str):
    bdd_kernel.configure(log_level=level)


@when("a mount event is emitted")
def emit_mount(bdd_kernel, test_context, make_mount):
    with capture_logs() as logs:
        bdd_kernel.emit(make_mount(props={"step": 1}))
    test_context["logs"] = logs


@when("the kernel is destroyed twice")
def destroy_twice(bdd_kernel):
    bdd_kernel.destroy()
    bdd_kernel.destroy()


@then(parsers.parse("the store holds {count:d} entries"))
def store_count(bdd_kernel, count: int):
    assert len(bdd_kernel.get_logs().entries) == count


@then(parsers.parse("the subscriber saw {count:d} events"))
def subscriber_count(seen, count: int):
    assert len(seen["subscriber"]) == count


@then(parsers.parse("the hook saw {count:d} events"))
def hook_count(seen, count: int):
    assert len(seen["hook"]) == count


@then(parsers.parse('the stored entry is formatted as "{text}"'))
def stored_formatted(bdd_kernel, text: str):
    entry = bdd_kernel.get_logs().last_entry
    assert entry.formatted == text
    assert entry.level is LogLevel.INFO


@then(parsers.parse('a "{message}" error was logged with operation "{operation}"'))
def hook_error_logged(test_context, message: str, operation: str):
    matching = [log for log in test_context["logs"] if log["event"] == message]
    assert len(matching) == 1
    assert matching[0]["operation"] == operation
    assert matching[0]["plugin"] == "explosive"
    assert matching[0]["event_kind"] == "mount"


@then("the kernel is disabled")
def kernel_disabled(bdd_kernel):
    assert not bdd_kernel.is_enabled()


@then("no plugins are registered")
def no_plugins(bdd_kernel):
    assert bdd_kernel.list_plugins() == []


@then("the subscriber saw 0 events after re-enabling and emitting")
def no_events_after_destroy(bdd_kernel, seen, make_mount):
    bdd_kernel.enable()
    bdd_kernel.emit(make_mount())
    assert seen["subscriber"] == []
    assert seen["hook"] == []


# =============================================================================
# Plain tests
# =============================================================================


def _error(recovered=False):
    return ErrorEvent(
        component_id="c1",
        component_name="Form",
        timestamp=1.0,
        error_type="ValueError",
        message="bad input",
        recovered=recovered,
    )


def test_event_levels(make_mount, make_update):
    state = StateChangeEvent(
        component_id="c1", component_name="Form", timestamp=1.0, hook_index=0,
        prev_state=1, next_state=2,
    )
    assert event_level(make_mount()) is LogLevel.INFO
    assert event_level(make_update()) is LogLevel.INFO
    assert event_level(state) is LogLevel.DEBUG
    assert event_level(_error()) is LogLevel.ERROR
    assert event_level(_error(recovered=True)) is LogLevel.WARN


def test_log_subscribers_and_on_log_hooks_receive_stored_entries(kernel, make_mount):
    entries, hooked = [], []
    kernel.on_log(entries.append)
    kernel.register(create_plugin("tail", "1.0.0", on_log=hooked.append))

    kernel.emit(make_mount())

    stored = kernel.get_logs().entries
    assert entries == stored
    assert hooked == stored
    assert stored[0].event.component_name == "Counter"


def test_off_removes_a_subscriber(kernel, make_mount):
    received = []
    kernel.on(EventKind.MOUNT, received.append)
    kernel.off(EventKind.MOUNT, received.append)
    kernel.emit(make_mount())
    assert received == []


def test_configure_shrinks_the_store(kernel, make_mount):
    for index in range(5):
        kernel.emit(make_mount(component_id=f"c{index}"))
    kernel.configure(max_logs=2)
    assert [e.component_id for e in kernel.get_logs().entries] == ["c3", "c4"]
    assert kernel.get_options().max_logs == 2


def test_configure_rejects_invalid_options(kernel):
    with pytest.raises(ConfigError):
        kernel.configure(max_logs=0)
    with pytest.raises(ConfigError):
        kernel.configure(log_level="verbose")
    assert kernel.get_options().model_dump() == KernelOptions().model_dump()


def test_configure_merges_explicit_fields_only(kernel):
    kernel.configure(max_logs=50)
    kernel.configure(KernelOptions(log_level=LogLevel.ERROR))
    options = kernel.get_options()
    assert options.max_logs == 50
    assert options.log_level is LogLevel.ERROR


def test_filter_logs_delegates_to_the_store(kernel, make_mount, make_update):
    kernel.emit(make_mount())
    kernel.emit(make_update())
    updates = kernel.filter_logs(event_kind=[EventKind.UPDATE])
    assert [entry.kind for entry in updates] == [EventKind.UPDATE]
    kernel.clear_logs()
    assert kernel.filter_logs() == []


def test_create_kernel_registers_plugins_in_order():
    first = create_plugin("first", "1.0.0")
    second = create_plugin("second", "1.0.0")
    with create_kernel(plugins=[first, second], log_level="info") as k:
        assert isinstance(k, Kernel)
        assert [info.name for info in k.list_plugins()] == ["first", "second"]
        assert k.get_options().log_level is LogLevel.INFO
    assert not k.is_enabled()


def test_create_kernel_rejects_invalid_overrides():
    with pytest.raises(ConfigError):
        create_kernel(max_logs=-1)
