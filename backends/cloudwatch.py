import logging
from datetime import datetime, timedelta, timezone

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from configuration.models import BackendConfig, Rule

from .base import Backender, require_metric_name
from .errors import BackendError, EmptyResultError, InvalidRuleError
from .registry import BuildOptions, register

logger = logging.getLogger(__name__)

STATISTICS = ("SampleCount", "Average", "Sum", "Minimum", "Maximum")


class CloudWatchBackend(Backender):
    """
    Reads a metric with CloudWatch GetMetricStatistics.

    The rule's config stanza supplies metric_name, metric_namespace,
    dimensions, statistic and period. The value returned is the requested
    statistic of the most recent datapoint in the rule's window.
    """

    def __init__(self, name: str, conf: BackendConfig, client=None):
        if not conf.region:
            raise ValueError("cloudwatch backend requires a region")
        super().__init__(name, conf.kind)
        self.region = conf.region
        self.connection = client or boto3.client("cloudwatch", region_name=conf.region)

    def get_value(self, rule: Rule) -> float:
        metric_name = require_metric_name(rule)
        query = rule.config
        if not query.metric_namespace:
            raise InvalidRuleError("Missing metric_namespace inside config{} stanza")
        if query.statistic not in STATISTICS:
            raise InvalidRuleError(
                f"Invalid statistic '{query.statistic}' for metric {metric_name}; "
                f"expected one of {', '.join(STATISTICS)}"
            )

        end = datetime.now(timezone.utc)
        start = end - timedelta(seconds=query.window)

        logger.debug(
            "[%s] GetMetricStatistics %s/%s %s", self.name, query.metric_namespace, metric_name, query.statistic
        )
        try:
            response = self.connection.get_metric_statistics(
                Namespace=query.metric_namespace,
                MetricName=metric_name,
                Dimensions=[{"Name": k, "Value": v} for k, v in query.dimensions.items()],
                StartTime=start,
                EndTime=end,
                Period=query.period,
                Statistics=[query.statistic],
            )
        except (BotoCoreError, ClientError) as exc:
            logger.warning("CloudWatch request for %s failed: %s", metric_name, exc)
            raise BackendError(f"cloudwatch request failed: {exc}") from exc

        datapoints = response.get("Datapoints", [])
        if not datapoints:
            raise EmptyResultError(f"metric {metric_name} has no datapoints")

        latest = max(datapoints, key=lambda dp: dp["Timestamp"])
        return float(latest[query.statistic])


@register("cloudwatch")
def build_cloudwatch(name: str, conf: BackendConfig, options: BuildOptions) -> CloudWatchBackend:
    return CloudWatchBackend(name, conf)
