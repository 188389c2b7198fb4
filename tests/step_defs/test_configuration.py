"""
Step definitions for the configuration feature.
"""
import pytest
from pytest_bdd import given, scenarios, then, when, parsers

from renderlog.config import find_config, load_config
from renderlog.kernel.errors import ConfigError
from renderlog.kernel.schema import LogLevel

scenarios("../features/configuration.feature")


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    for name in ("RENDERLOG_ENABLED", "RENDERLOG_MAX_LOGS", "RENDERLOG_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


@given("an empty working directory")
def empty_directory(tmp_path):
    assert not any(tmp_path.iterdir())


@given(parsers.parse('a renderlog.toml with max_logs {max_logs:d} and log_level "{level}"'))
def renderlog_toml(tmp_path, max_logs: int, level: str):
    (tmp_path / "renderlog.toml").write_text(
        f'[kernel]\nmax_logs = {max_logs}\nlog_level = "{level}"\n'
    )


@given(parsers.parse('the environment sets {name} to "{value}"'))
def set_env(monkeypatch, name: str, value: str):
    monkeypatch.setenv(name, value)


@when("the configuration is loaded")
def load(test_context):
    test_context["options"] = load_config()


@when("the configuration is loaded expecting an error")
def load_failing(test_context):
    with pytest.raises(ConfigError) as excinfo:
        load_config()
    test_context["error"] = excinfo.value


@then(parsers.parse('the options are enabled with max_logs {max_logs:d} at level "{level}"'))
def options_are(test_context, max_logs: int, level: str):
    options = test_context["options"]
    assert options.enabled is True
    assert options.max_logs == max_logs
    assert options.log_level is LogLevel(level)


@then(parsers.parse('a configuration error mentions "{text}"'))
def error_mentions(test_context, text: str):
    assert text in str(test_context["error"])


# =============================================================================
# Plain tests
# =============================================================================


def test_pyproject_tool_table(tmp_path):
    (tmp_path / "pyproject.toml").write_text(
        '[project]\nname = "app"\n\n[tool.renderlog]\nenabled = false\nlog_level = "error"\n'
    )
    options = load_config()
    assert options.enabled is False
    assert options.log_level is LogLevel.ERROR
    assert find_config() == tmp_path / "pyproject.toml"


def test_renderlog_toml_wins_over_pyproject(tmp_path):
    (tmp_path / "pyproject.toml").write_text("[tool.renderlog]\nmax_logs = 5\n")
    (tmp_path / "renderlog.toml").write_text("[kernel]\nmax_logs = 7\n")
    assert load_config().max_logs == 7


def test_explicit_path_and_environment_mapping(tmp_path):
    path = tmp_path / "custom.toml"
    path.write_text("[kernel]\nmax_logs = 12\n")
    options = load_config(path, environ={"RENDERLOG_ENABLED": "off", "RENDERLOG_LOG_LEVEL": "WARN"})
    assert options.max_logs == 12
    assert options.enabled is False
    assert options.log_level is LogLevel.WARN


@pytest.mark.parametrize(
    "environ",
    [
        {"RENDERLOG_ENABLED": "maybe"},
        {"RENDERLOG_MAX_LOGS": "many"},
        {"RENDERLOG_LOG_LEVEL": "verbose"},
    ],
)
def test_invalid_environment_values(environ):
    with pytest.raises(ConfigError):
        load_config(environ=environ)


def test_missing_explicit_file_and_broken_toml(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "absent.toml")
    broken = tmp_path / "broken.toml"
    broken.write_text("[kernel\n")
    with pytest.raises(ConfigError, match="Invalid TOML"):
        load_config(broken)
