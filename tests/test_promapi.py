import math
from datetime import datetime, timedelta, timezone

import pytest
import requests

from backends.errors import BackendError, MetricsError
from backends.promapi import HTTPQueryAPI, Matrix, Range, Scalar, String, Vector
from backends.prometheus import PrometheusBackend
from configuration.models import BackendConfig, Rule, RuleQuery


class FakeResponse:
    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.headers = {}
        self.response = response
        self.error = error
        self.requests = []

    def get(self, url, params=None, timeout=None):
        self.requests.append((url, params, timeout))
        if self.error is not None:
            raise self.error
        return self.response


def success(result_type, result):
    return FakeResponse({"status": "success", "data": {"resultType": result_type, "result": result}})


NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def test_requires_host():
    with pytest.raises(ValueError):
        HTTPQueryAPI("")


def test_query_decodes_vector():
    session = FakeSession(
        success(
            "vector",
            [
                {"metric": {"job": "api"}, "value": [1704067200.0, "127"]},
                {"metric": {"job": "web"}, "value": [1704067200.0, "NaN"]},
            ],
        )
    )
    api = HTTPQueryAPI("http://prom:9090/", session=session, timeout=2.0)

    value = api.query("up", NOW)

    assert isinstance(value, Vector)
    assert value[0].metric == {"job": "api"}
    assert value[0].value == 127.0
    assert math.isnan(value[1].value)

    url, params, timeout = session.requests[0]
    assert url == "http://prom:9090/api/v1/query"
    assert params == {"query": "up", "time": NOW.timestamp()}
    assert timeout == 2.0


def test_query_decodes_scalar_and_string():
    api = HTTPQueryAPI("http://prom", session=FakeSession(success("scalar", [1.0, "+Inf"])))
    scalar = api.query("1/0", NOW)
    assert isinstance(scalar, Scalar)
    assert scalar.value == math.inf

    api = HTTPQueryAPI("http://prom", session=FakeSession(success("string", [1.0, "hello"])))
    string = api.query('"hello"', NOW)
    assert isinstance(string, String)
    assert string.value == "hello"


def test_query_range_decodes_matrix():
    session = FakeSession(
        success("matrix", [{"metric": {"job": "api"}, "values": [[1.0, "1"], [2.0, "2"]]}])
    )
    api = HTTPQueryAPI("http://prom", session=session)

    value = api.query_range("up", Range(start=NOW - timedelta(minutes=5), end=NOW, step=60))

    assert isinstance(value, Matrix)
    assert value[0].values == [(1.0, 1.0), (2.0, 2.0)]
    url, params, _ = session.requests[0]
    assert url == "http://prom/api/v1/query_range"
    assert params["step"] == 60


def test_api_error_becomes_backend_error():
    response = FakeResponse(
        {"status": "error", "errorType": "bad_data", "error": "parse error"}, status_code=400
    )
    api = HTTPQueryAPI("http://prom", session=FakeSession(response))

    with pytest.raises(BackendError) as exc_info:
        api.query("up{", NOW)

    assert str(exc_info.value) == "bad_data: parse error"


@pytest.mark.parametrize(
    "error", [requests.Timeout("read timed out"), requests.ConnectionError("refused")]
)
def test_transport_failure_becomes_backend_error(error):
    api = HTTPQueryAPI("http://prom", session=FakeSession(error=error))

    with pytest.raises(BackendError):
        api.query("up", NOW)


def test_invalid_json_becomes_backend_error():
    api = HTTPQueryAPI("http://prom", session=FakeSession(FakeResponse(ValueError("no json"))))

    with pytest.raises(BackendError):
        api.query("up", NOW)


def test_unknown_result_type():
    api = HTTPQueryAPI("http://prom", session=FakeSession(success("histogram", [])))

    with pytest.raises(BackendError):
        api.query("up", NOW)


@pytest.mark.parametrize(
    "payload",
    [
        {"status": "success", "data": ["vector"]},
        {"status": "success", "data": {"resultType": "matrix", "result": [[1.0, "2"]]}},
        {"status": "success", "data": {"resultType": "matrix", "result": {"values": []}}},
        {"status": "success", "data": {"resultType": "vector", "result": [[1.0, "2"]]}},
        {"status": "success", "data": {"resultType": "vector", "result": "up"}},
        {"status": "success", "data": {"resultType": "scalar", "result": None}},
    ],
)
def test_malformed_result_becomes_backend_error(payload):
    api = HTTPQueryAPI("http://prom", session=FakeSession(FakeResponse(payload)))

    with pytest.raises(BackendError):
        api.query("up", NOW)


def test_non_object_body_becomes_backend_error():
    api = HTTPQueryAPI("http://prom", session=FakeSession(FakeResponse(["success"])))

    with pytest.raises(BackendError) as exc_info:
        api.query("up", NOW)

    assert str(exc_info.value) == "prometheus returned an unexpected response body"


def test_malformed_result_surfaces_through_backend():
    payload = {"status": "success", "data": {"resultType": "matrix", "result": [[1.0, "2"]]}}
    api = HTTPQueryAPI("http://prom", session=FakeSession(FakeResponse(payload)))
    backend = PrometheusBackend("prom", BackendConfig(kind="prometheus", host="http://prom"), api)

    with pytest.raises(MetricsError):
        backend.get_value(Rule(config=RuleQuery(metric_name="up")))
