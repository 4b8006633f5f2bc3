"""Exceptions raised by the configuration layer."""


class ConfigError(Exception):
    """Raised when propcmd configuration cannot be read, merged, or validated."""
