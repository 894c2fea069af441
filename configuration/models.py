from pydantic import BaseModel, ConfigDict, Field


class RuleQuery(BaseModel):
    """
    Query parameters from a rule's `config` stanza.

    - metric_name: metric (Graphite target, PromQL expression, CloudWatch metric)
    - metric_namespace: CloudWatch namespace, e.g. "AWS/EC2"
    - dimensions: CloudWatch dimensions, name -> value
    - statistic: CloudWatch statistic
    - period: aggregation period in seconds
    - window: how many seconds of history to request
    """

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    metric_name: str = ""
    metric_namespace: str = ""
    dimensions: dict[str, str] = Field(default_factory=dict)
    statistic: str = "Average"
    period: int = Field(60, gt=0)
    window: int = Field(300, gt=0)


class Rule(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    name: str = ""
    backend: str = ""
    comparison: str = ""
    comparison_value: float = 0.0
    action: str = ""
    action_value: float = 0.0
    config: RuleQuery = Field(default_factory=RuleQuery)

    @property
    def metric_name(self) -> str:
        return self.config.metric_name


class Group(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    min_count: int = Field(0, ge=0)
    max_count: int = Field(0, ge=0)
    rules: dict[str, Rule] = Field(default_factory=dict)


class Job(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    groups: dict[str, Group] = Field(default_factory=dict)


class BackendConfig(BaseModel):
    """
    Connection settings for one named backend.

    `kind` stays a plain string here; the registry checks it against the
    registered kinds.
    """

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)

    kind: str = ""
    name: str = ""
    # cloudwatch
    region: str = ""
    # graphite / prometheus
    host: str = ""
    username: str = ""
    password: str = ""


class RootConfig(BaseModel):
    model_config = ConfigDict(extra="ignore")

    backends: dict[str, BackendConfig] = Field(default_factory=dict)
    jobs: dict[str, Job] = Field(default_factory=dict)
