"""Exceptions raised by the configuration layer."""


class ConfigError(Exception):
    """Raised when configuration files or overrides are invalid."""
