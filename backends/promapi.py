"""
Minimal client for the Prometheus HTTP API (v1).

`QueryAPI` is the surface PrometheusBackend depends on; `HTTPQueryAPI` is the
requests-based implementation used in production. Results are decoded into
the four Prometheus value types: Vector, Matrix, Scalar and String.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, Union

import requests

from .errors import BackendError

logger = logging.getLogger(__name__)


@dataclass
class Sample:
    """One labelled value of an instant vector."""

    metric: dict[str, str] = field(default_factory=dict)
    value: float = 0.0
    timestamp: float = 0.0


class Vector(list):
    """Instant vector: ordered list of Samples sharing one evaluation time."""


@dataclass
class SampleStream:
    metric: dict[str, str] = field(default_factory=dict)
    values: list[tuple[float, float]] = field(default_factory=list)


class Matrix(list):
    """Range vector: list of SampleStreams."""


@dataclass
class Scalar:
    value: float = 0.0
    timestamp: float = 0.0


@dataclass
class String:
    value: str = ""
    timestamp: float = 0.0


Value = Union[Vector, Matrix, Scalar, String]


@dataclass(frozen=True)
class Range:
    start: datetime
    end: datetime
    step: float  # seconds


class QueryAPI(Protocol):
    def query(self, query: str, ts: datetime) -> Value:
        """Evaluate `query` at a single instant."""
        ...

    def query_range(self, query: str, r: Range) -> Value:
        """Evaluate `query` over a range of time."""
        ...


def _pair(raw: list) -> tuple[float, float]:
    # Prometheus encodes [<unix ts>, "<value>"]; value strings include "NaN" and "+Inf".
    ts, value = raw
    return float(ts), float(value)


def decode_value(data: Any) -> Value:
    """Decode the `data` member of a successful API response."""
    if not isinstance(data, dict):
        raise BackendError("prometheus response has no data object")
    result_type = data.get("resultType")
    result = data.get("result")

    if result_type == "vector":
        if not isinstance(result or [], list):
            raise BackendError("prometheus vector result is not a list")
        vector = Vector()
        for item in result or []:
            ts, value = _pair(item["value"])
            vector.append(Sample(metric=item.get("metric", {}), value=value, timestamp=ts))
        return vector

    if result_type == "matrix":
        if not isinstance(result or [], list):
            raise BackendError("prometheus matrix result is not a list")
        return Matrix(
            SampleStream(
                metric=item.get("metric", {}),
                values=[_pair(v) for v in item.get("values", [])],
            )
            for item in result or []
        )

    if result_type == "scalar":
        ts, value = _pair(result)
        return Scalar(value=value, timestamp=ts)

    if result_type == "string":
        ts, value = result
        return String(value=str(value), timestamp=float(ts))

    raise BackendError(f"unknown result type {result_type!r}")


class HTTPQueryAPI:
    """
    QueryAPI over HTTP.

    :param host: Base URL of the Prometheus server, e.g. http://prometheus:9090
    :param timeout: Per-request timeout in seconds. A request that exceeds it
        fails with BackendError.
    :param session: Optional requests.Session to reuse (tests inject fakes).
    """

    def __init__(self, host: str, *, timeout: float = 10.0, session=None):
        if not host:
            raise ValueError("prometheus backend requires a host")
        self.host = host.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def query(self, query: str, ts: datetime) -> Value:
        return self._get("/api/v1/query", {"query": query, "time": ts.timestamp()})

    def query_range(self, query: str, r: Range) -> Value:
        params = {
            "query": query,
            "start": r.start.timestamp(),
            "end": r.end.timestamp(),
            "step": r.step,
        }
        return self._get("/api/v1/query_range", params)

    def _get(self, path: str, params: dict[str, Any]) -> Value:
        url = f"{self.host}{path}"
        logger.debug("GET %s query=%s", url, params.get("query"))
        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            payload = response.json()
        except requests.RequestException as exc:
            logger.warning("Prometheus request to %s failed: %s", url, exc)
            raise BackendError(f"prometheus request failed: {exc}") from exc
        except ValueError as exc:
            raise BackendError(f"prometheus returned invalid JSON: {exc}") from exc

        if not isinstance(payload, dict):
            raise BackendError("prometheus returned an unexpected response body")

        # Prometheus reports query errors with a JSON body on 4xx/5xx responses.
        if payload.get("status") != "success":
            error_type = payload.get("errorType", f"http {response.status_code}")
            raise BackendError(f"{error_type}: {payload.get('error', 'unknown error')}")

        try:
            return decode_value(payload.get("data"))
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise BackendError(f"prometheus returned a malformed result: {exc}") from exc
