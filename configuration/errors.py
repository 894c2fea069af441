"""
Base of the fleetgauge exception hierarchy and the configuration errors.

This module must not import `backends`; the loader raises these errors
without loading the upstream client libraries.
"""


class MetricsError(Exception):
    """Base class for all fleetgauge errors."""


class ConfigError(MetricsError):
    """Missing or invalid configuration."""


class BadConfigurationError(ConfigError):
    """A backend could not be constructed from its configuration."""

    def __init__(self, name: str, cause: Exception):
        super().__init__(f"Bad configuration for {name}: {cause}")
        self.name = name
        self.cause = cause
