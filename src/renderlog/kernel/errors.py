"""Kernel error types."""


class RenderLogError(Exception):
    """Base error for renderlog."""


class ConfigError(RenderLogError):
    """Raised when kernel options fail validation or a config file cannot be read."""


class PluginError(RenderLogError):
    """Raised when a plugin cannot be registered."""


class DuplicatePluginError(PluginError):
    """Raised when a plugin name is already registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f'Plugin "{name}" is already registered')
        self.name = name


class PluginValidationError(PluginError):
    """Raised when an object does not satisfy the plugin contract."""
