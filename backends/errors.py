"""
Exception hierarchy shared by the backends and the configuration loader.

Everything raised from `Backender.get_value` is a `MetricsError` subclass and
is recoverable by the caller. `ConfigError` is raised while building the
registry; whether it is fatal is left to the outermost caller.
"""

from configuration.errors import BadConfigurationError as BadConfigurationError
from configuration.errors import ConfigError as ConfigError
from configuration.errors import MetricsError as MetricsError


class InvalidRuleError(MetricsError):
    """The rule is missing a field required to build a query."""


class WrongResultTypeError(MetricsError):
    """The upstream query returned a result shape we can't reduce to a scalar."""


class EmptyResultError(WrongResultTypeError):
    """The query matched nothing, or matched only null or non-finite datapoints."""


class AmbiguousResultError(WrongResultTypeError):
    """The query matched more than one series."""


class BackendError(MetricsError):
    """Transport or client failure talking to the upstream system."""
