from abc import ABC, abstractmethod
from typing import NamedTuple

from configuration.models import Rule

from .errors import InvalidRuleError

MISSING_METRIC_NAME = "Missing metric_name inside config{} stanza"


class BackendInfo(NamedTuple):
    kind: str
    name: str


class Backender(ABC):
    """
    A named connection to one time-series system.

    Each instance owns exactly one upstream client and is built once at
    startup by the registry.
    """

    def __init__(self, name: str, kind: str):
        self._name = name
        self._kind = kind

    @property
    def name(self) -> str:
        return self._name

    @property
    def kind(self) -> str:
        return self._kind

    def info(self) -> BackendInfo:
        """Return the backend's kind and name. Never touches the network."""
        return BackendInfo(kind=self._kind, name=self._name)

    @abstractmethod
    def get_value(self, rule: Rule) -> float:
        """
        Run one query for `rule` and reduce the result to a single float.

        Raises InvalidRuleError, WrongResultTypeError (or a subclass) or
        BackendError. Never retries and never caches.
        """

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._name!r}>"


def require_metric_name(rule: Rule) -> str:
    """Return the rule's metric name, or raise if it is empty."""
    if not rule.metric_name:
        raise InvalidRuleError(MISSING_METRIC_NAME)
    return rule.metric_name
