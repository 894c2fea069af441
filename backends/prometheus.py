import logging
import math
from datetime import datetime, timezone

from configuration.models import BackendConfig, Rule

from .base import Backender, require_metric_name
from .errors import AmbiguousResultError, EmptyResultError, WrongResultTypeError
from .promapi import HTTPQueryAPI, QueryAPI, Vector
from .registry import BuildOptions, register

logger = logging.getLogger(__name__)


class PrometheusBackend(Backender):
    """
    Reads a metric with a PromQL instant query.

    The rule's metric_name is sent as the query expression unmodified, so it
    may be any PromQL expression that evaluates to a single-sample vector,
    e.g. `avg(rate(http_requests_total{job="api"}[5m]))`.
    """

    def __init__(self, name: str, conf: BackendConfig, client: QueryAPI):
        super().__init__(name, conf.kind)
        self.host = conf.host
        self.connection = client

    def get_value(self, rule: Rule) -> float:
        query = require_metric_name(rule)

        logger.debug("[%s] instant query: %s", self.name, query)
        value = self.connection.query(query, datetime.now(timezone.utc))

        if not isinstance(value, Vector):
            raise WrongResultTypeError(f"metric {query} is not a vector")
        if not value:
            raise EmptyResultError(f"metric {query} returned no samples")
        if len(value) > 1:
            raise AmbiguousResultError(
                f"metric {query} is ambiguous: {len(value)} samples returned"
            )

        sample = float(value[0].value)
        if not math.isfinite(sample):
            raise EmptyResultError(f"metric {query} has no finite value ({sample})")
        return sample


@register("prometheus")
def build_prometheus(name: str, conf: BackendConfig, options: BuildOptions) -> PrometheusBackend:
    return PrometheusBackend(name, conf, HTTPQueryAPI(conf.host))
