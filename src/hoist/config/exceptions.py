"""Custom exceptions for configuration management."""

from hoist.errors import HoistError


class ConfigError(HoistError):
    """Raised when configuration data cannot be processed."""
