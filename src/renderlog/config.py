"""
Configuration: kernel options from TOML and the environment.

Sources, later ones winning:
1. Defaults (KernelOptions)
2. A TOML file: `renderlog.toml` with a [kernel] table, or the
   [tool.renderlog] table of a `pyproject.toml`
3. Environment: RENDERLOG_ENABLED, RENDERLOG_MAX_LOGS, RENDERLOG_LOG_LEVEL

```toml
[kernel]
enabled = true
max_logs = 500
log_level = "info"
```
"""
from __future__ import annotations

import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from pydantic import ValidationError

from .kernel.errors import ConfigError
from .kernel.schema import KernelOptions

CONFIG_FILENAME = "renderlog.toml"

ENV_ENABLED = "RENDERLOG_ENABLED"
ENV_MAX_LOGS = "RENDERLOG_MAX_LOGS"
ENV_LOG_LEVEL = "RENDERLOG_LOG_LEVEL"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def find_config(start: Optional[Path] = None) -> Optional[Path]:
    """Look for renderlog.toml, then pyproject.toml, in the start directory."""
    directory = start or Path.cwd()
    for candidate in (directory / CONFIG_FILENAME, directory / "pyproject.toml"):
        if candidate.is_file():
            return candidate
    return None


def _read_table(path: Path) -> Dict[str, Any]:
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in {path}: {exc}") from exc

    if path.name == "pyproject.toml":
        return dict(data.get("tool", {}).get("renderlog", {}))
    return dict(data.get("kernel", {}))


def _env_overrides(environ: Mapping[str, str]) -> Dict[str, Any]:
    overrides: Dict[str, Any] = {}

    enabled = environ.get(ENV_ENABLED)
    if enabled is not None:
        value = enabled.strip().lower()
        if value in _TRUE:
            overrides["enabled"] = True
        elif value in _FALSE:
            overrides["enabled"] = False
        else:
            raise ConfigError(f"{ENV_ENABLED} must be a boolean, got {enabled!r}")

    max_logs = environ.get(ENV_MAX_LOGS)
    if max_logs is not None:
        overrides["max_logs"] = max_logs.strip()

    log_level = environ.get(ENV_LOG_LEVEL)
    if log_level is not None:
        overrides["log_level"] = log_level.strip().lower()

    return overrides


def load_config(
    path: Union[Path, str, None] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> KernelOptions:
    """Resolve kernel options.

    Args:
        path: Config file; when None, renderlog.toml or pyproject.toml in the
            working directory is used if present
        environ: Environment mapping (defaults to os.environ)

    Raises:
        ConfigError: unreadable file, an explicit path that does not exist,
            or option values that fail validation
    """
    if path is not None:
        path = Path(path)
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")
    else:
        path = find_config()

    values: Dict[str, Any] = _read_table(path) if path is not None else {}
    values.update(_env_overrides(os.environ if environ is None else environ))

    try:
        return KernelOptions.model_validate(values)
    except ValidationError as exc:
        raise ConfigError(f"Invalid renderlog configuration: {exc}") from exc
