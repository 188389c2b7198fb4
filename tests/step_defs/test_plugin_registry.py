"""
Step definitions for the plugin registry feature.
"""
import pytest
from pytest_bdd import given, scenarios, then, when, parsers
from structlog.testing import capture_logs

from renderlog.kernel.engine import create_kernel
from renderlog.kernel.errors import DuplicatePluginError, PluginValidationError
from renderlog.kernel.plugin import Plugin, PluginHooks, create_plugin, validate_plugin
from renderlog.kernel.registry import PluginRegistry
from renderlog.kernel.schema import EventKind, PluginType

scenarios("../features/plugin_registry.feature")


class RecordingPlugin(Plugin):
    """Counts hook calls and lifecycle transitions."""

    version = "1.0.0"

    def __init__(self, name):
        self.name = name
        self.mounts = []
        self.installs = 0
        self.uninstalls = 0
        self.hooks = PluginHooks(on_mount=self.mounts.append)

    def install(self, kernel):
        self.installs += 1

    def uninstall(self):
        self.uninstalls += 1


class FlakyPlugin(RecordingPlugin):
    def install(self, kernel):
        raise RuntimeError("cannot install")


# =============================================================================
# Steps
# =============================================================================


@given("a kernel", target_fixture="bdd_kernel")
def a_kernel(kernel, test_context):
    test_context["plugins"] = {}
    return kernel


@given(parsers.parse('a plugin "{name}" is registered'))
def register_plugin(bdd_kernel, test_context, name: str):
    plugin = RecordingPlugin(name)
    bdd_kernel.register(plugin)
    test_context["plugins"][name] = plugin


@when(parsers.parse('another plugin named "{name}" is registered'))
def register_duplicate(bdd_kernel, test_context, name: str):
    with pytest.raises(DuplicatePluginError) as excinfo:
        bdd_kernel.register(RecordingPlugin(name))
    test_context["error"] = excinfo.value


@when(parsers.parse('a plugin "{name}" whose install fails is registered'))
def register_flaky(bdd_kernel, test_context, name: str):
    with capture_logs() as logs:
        bdd_kernel.register(FlakyPlugin(name))
    test_context["logs"] = logs


@when("a plugin without a version is registered")
def register_malformed(bdd_kernel, test_context):
    plugin = RecordingPlugin("broken")
    plugin.version = ""
    with pytest.raises(PluginValidationError) as excinfo:
        bdd_kernel.register(plugin)
    test_context["error"] = excinfo.value


@when(parsers.parse('the plugin "{name}" is disabled'))
def disable_plugin(bdd_kernel, name: str):
    bdd_kernel.disable_plugin(name)


@when("a mount event is emitted")
def emit_mount(bdd_kernel, make_mount):
    bdd_kernel.emit(make_mount())


@then("registration fails with a duplicate plugin error")
def duplicate_error(test_context):
    error = test_context["error"]
    assert isinstance(error, DuplicatePluginError)
    assert error.name == "audit"
    assert str(error) == 'Plugin "audit" is already registered'


@then("registration fails with a validation error")
def validation_error(test_context):
    assert "version" in str(test_context["error"])


@then(parsers.parse('the plugin "{name}" is enabled'))
def plugin_enabled(bdd_kernel, name: str):
    assert bdd_kernel.is_plugin_enabled(name)


@then(parsers.parse('the plugin "{name}" is disabled'))
def plugin_disabled(bdd_kernel, name: str):
    assert not bdd_kernel.is_plugin_enabled(name)


@then(parsers.parse('the first "{name}" plugin is still registered'))
def first_registered(bdd_kernel, test_context, name: str):
    first = test_context["plugins"][name]
    assert bdd_kernel.get_plugin(name) is first
    assert first.installs == 1
    assert first.uninstalls == 0


@then(parsers.parse('the kernel has the plugin "{name}"'))
def kernel_has_plugin(bdd_kernel, name: str):
    assert bdd_kernel.has_plugin(name)


@then(parsers.parse('a "{message}" error was logged for "{name}"'))
def error_logged(test_context, message: str, name: str):
    matching = [log for log in test_context["logs"] if log["event"] == message]
    assert matching
    assert matching[0]["plugin"] == name
    assert matching[0]["operation"] == "install"


@then("no plugins are registered")
def no_plugins(bdd_kernel):
    assert bdd_kernel.list_plugins() == []


@then(parsers.parse('the plugin "{name}" saw {count:d} mount events'))
def mount_count(test_context, name: str, count: int):
    assert len(test_context["plugins"][name].mounts) == count


@then(parsers.parse('the plugin "{name}" was uninstalled'))
def was_uninstalled(test_context, name: str):
    assert test_context["plugins"][name].uninstalls == 1


# =============================================================================
# Plain tests
# =============================================================================


def test_list_plugins_preserves_registration_order():
    registry = PluginRegistry()
    for name in ("b", "a", "c"):
        registry.register(RecordingPlugin(name))
    registry.disable("a")

    infos = registry.list_plugins()
    assert [info.name for info in infos] == ["b", "a", "c"]
    assert [info.enabled for info in infos] == [True, False, True]
    assert {info.type for info in infos} == {PluginType.OPTIONAL}


def test_registry_without_kernel_does_not_install():
    registry = PluginRegistry()
    plugin = RecordingPlugin("idle")
    registry.register(plugin)
    assert plugin.installs == 0
    assert registry.is_enabled("idle")


def test_failing_uninstall_still_removes_the_plugin():
    registry = PluginRegistry()

    class Stubborn(RecordingPlugin):
        def uninstall(self):
            raise RuntimeError("stuck")

    registry.register(Stubborn("stubborn"))
    with capture_logs() as logs:
        registry.unregister("stubborn")

    assert not registry.has("stubborn")
    assert logs[0]["event"] == "plugin uninstall failed"


def test_clear_uninstalls_every_plugin_even_when_one_fails():
    registry = PluginRegistry()

    class Stubborn(RecordingPlugin):
        def uninstall(self):
            raise RuntimeError("stuck")

    healthy = RecordingPlugin("healthy")
    registry.register(Stubborn("stubborn"))
    registry.register(healthy)
    registry.clear()

    assert healthy.uninstalls == 1
    assert registry.count() == 0


def test_plugins_with_hook_only_lists_enabled_plugins_with_that_hook():
    registry = PluginRegistry()
    watcher = RecordingPlugin("watcher")
    silent = create_plugin("silent", "1.0.0")
    registry.register(watcher)
    registry.register(silent)

    found = registry.plugins_with_hook(EventKind.MOUNT)
    assert [plugin for plugin, _ in found] == [watcher]
    assert registry.plugins_with_hook(EventKind.ERROR) == []


@pytest.mark.parametrize(
    "attribute, value, message",
    [
        ("name", "", "name"),
        ("version", None, "version"),
        ("type", "plugin", "type"),
        ("install", None, "install"),
        ("uninstall", "not callable", "uninstall"),
        ("hooks", {"on_mount": print}, "hooks"),
    ],
)
def test_validate_plugin_names_the_violation(attribute, value, message):
    plugin = RecordingPlugin("checked")
    setattr(plugin, attribute, value)
    with pytest.raises(PluginValidationError, match=message):
        validate_plugin(plugin)


def test_create_plugin_rejects_unknown_hooks():
    with pytest.raises(PluginValidationError, match="on_render"):
        create_plugin("bad", "1.0.0", on_render=print)


def test_create_plugin_exposes_api_and_hooks(make_mount):
    seen = []
    plugin = create_plugin(
        "tap",
        "2.0.0",
        type=PluginType.CORE,
        api={"seen": seen},
        on_mount=seen.append,
    )
    with create_kernel(plugins=[plugin]) as kernel:
        kernel.emit(make_mount())

    assert plugin.api == {"seen": seen}
    assert len(seen) == 1
    assert plugin.type is PluginType.CORE
