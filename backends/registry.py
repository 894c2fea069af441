"""
Backend registry for fleetgauge.

Maps a backend kind ("prometheus", "graphite", ...) to the factory that
builds it. To add a new kind:

1. Create a new module in backends/, e.g. `influx.py`.
2. Define a Backender subclass implementing get_value().
3. Write a factory `(name, conf, options) -> Backender` and decorate it
   with @register("<kind>").
4. Import the module in backends/__init__.py so it registers itself.

Example:

    from .registry import register

    @register("influx")
    def build_influx(name, conf, options):
        return InfluxBackend(name, conf)
"""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass

from configuration.models import BackendConfig

from .base import Backender
from .errors import BadConfigurationError, ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildOptions:
    """Process-wide inputs handed to every factory."""

    graphite_password: str = ""


BackendFactory = Callable[[str, BackendConfig, BuildOptions], Backender]

# Global factory registry: maps backend kind → factory
REGISTRY: dict[str, BackendFactory] = {}

ConfiguredBackends = dict[str, Backender]


def register(kind: str):
    """
    Decorator to register a backend factory under a given kind.

    Args:
        kind (str): Value of `kind` in a backend's configuration.
    """

    def decorator(factory: BackendFactory) -> BackendFactory:
        REGISTRY[kind] = factory
        return factory

    return decorator


def registered_kinds() -> list[str]:
    return sorted(REGISTRY)


def initialize_backends(
    backends: Mapping[str, BackendConfig], *, graphite_password: str = ""
) -> ConfiguredBackends:
    """
    Build one Backender per configured backend, keyed by name.

    Stops at the first failure and raises; a partially built mapping is
    never returned.

    Raises:
        ConfigError: an entry has an empty or unregistered kind. Kinds match
            exactly, so "Prometheus" is not "prometheus".
        BadConfigurationError: a factory rejected its configuration.
    """
    options = BuildOptions(graphite_password=graphite_password)
    configured: ConfiguredBackends = {}

    for name, conf in backends.items():
        kind = conf.kind
        if not kind:
            raise ConfigError(f"missing backend type for '{name}'")

        factory = REGISTRY.get(kind)
        if factory is None:
            logger.error("Unknown backend type '%s' for backend %s", kind, name)
            raise ConfigError(f"unknown backend type '{kind}' for backend {name}")

        try:
            backend = factory(name, conf, options)
        except Exception as exc:
            raise BadConfigurationError(name, exc) from exc

        logger.info("Configured %s backend '%s'", kind, name)
        configured[name] = backend

    return configured
