import logging
import math
from dataclasses import dataclass, field
from typing import Any, Optional

import requests

from configuration.models import BackendConfig, Rule

from .base import Backender, require_metric_name
from .errors import AmbiguousResultError, BackendError, EmptyResultError
from .registry import BuildOptions, register

logger = logging.getLogger(__name__)


@dataclass
class Series:
    """One target returned by the render API; datapoints are (value, timestamp)."""

    target: str
    datapoints: list[tuple[Optional[float], int]] = field(default_factory=list)

    def latest(self) -> Optional[float]:
        """Most recent finite value, or None if every datapoint is null, NaN or infinite."""
        points = [(ts, v) for v, ts in self.datapoints if v is not None and math.isfinite(v)]
        if not points:
            return None
        return max(points)[1]


class GraphiteClient:
    """Client for the Graphite render API (`/render?format=json`)."""

    def __init__(
        self,
        host: str,
        username: str = "",
        password: str = "",
        *,
        timeout: float = 10.0,
        session=None,
    ):
        if not host:
            raise ValueError("graphite backend requires a host")
        self.host = host.rstrip("/")
        self.username = username
        self.password = password
        self.timeout = timeout
        self.session = session or requests.Session()
        if username:
            self.session.auth = (username, password)

    def render(self, target: str, from_: str, until: str = "now") -> list[Series]:
        params = {"target": target, "from": from_, "until": until, "format": "json"}
        url = f"{self.host}/render"
        logger.debug("GET %s target=%s from=%s", url, target, from_)
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            payload: Any = response.json()
        except requests.RequestException as exc:
            logger.warning("Graphite request to %s failed: %s", url, exc)
            raise BackendError(f"graphite request failed: {exc}") from exc
        except ValueError as exc:
            raise BackendError(f"graphite returned invalid JSON: {exc}") from exc

        if not isinstance(payload, list):
            raise BackendError("graphite returned an unexpected response body")

        try:
            return [
                Series(
                    target=item.get("target", target),
                    datapoints=[
                        (None if v is None else float(v), int(ts))
                        for v, ts in item.get("datapoints", [])
                    ],
                )
                for item in payload
            ]
        except (AttributeError, TypeError, ValueError) as exc:
            raise BackendError(f"graphite returned malformed series: {exc}") from exc


class GraphiteBackend(Backender):
    """Reads the latest non-null datapoint of a single Graphite target."""

    def __init__(self, name: str, conf: BackendConfig, client: GraphiteClient):
        super().__init__(name, conf.kind)
        self.host = conf.host
        self.connection = client

    def get_value(self, rule: Rule) -> float:
        target = require_metric_name(rule)

        series = self.connection.render(target, from_=f"-{rule.config.window}s")
        if not series:
            raise EmptyResultError(f"metric {target} returned no series")
        if len(series) > 1:
            raise AmbiguousResultError(
                f"metric {target} is ambiguous: {len(series)} series returned"
            )

        value = series[0].latest()
        if value is None:
            raise EmptyResultError(f"metric {target} has no datapoints")
        return value


def resolve_password(configured: str, fallback: str) -> str:
    """A configured password always wins; the fallback only fills an empty one."""
    return configured if configured else fallback


@register("graphite")
def build_graphite(name: str, conf: BackendConfig, options: BuildOptions) -> GraphiteBackend:
    client = GraphiteClient(
        conf.host,
        conf.username,
        resolve_password(conf.password, options.graphite_password),
    )
    return GraphiteBackend(name, conf, client)
