"""Core domain models for translated logs and reported metrics."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Severity(str, Enum):
    """Log severity understood by the logging backend."""

    DEFAULT = "DEFAULT"
    ERROR = "ERROR"


@dataclass
class LogRecord:
    """A structured log record ready to be posted.

    Attributes:
        payload: JSON-compatible body; always contains ``eventType``.
        labels: String labels attached to the entry.
        severity: DEFAULT or ERROR.
    """

    payload: dict[str, Any]
    labels: dict[str, str] = field(default_factory=dict)
    severity: Severity = Severity.DEFAULT


@dataclass(frozen=True)
class AppInfo:
    """Descriptive metadata for a Cloud Foundry application.

    The zero value (all empty, ``last_queried == 0``) stands for
    "unknown application".
    """

    app_name: str = ""
    space_guid: str = ""
    space_name: str = ""
    org_guid: str = ""
    org_name: str = ""
    last_queried: float = 0.0


@dataclass(frozen=True)
class AppMetadata:
    """Result of a successful metadata source lookup."""

    name: str
    space_guid: str
    space_name: str
    org_guid: str
    org_name: str


class MetricKind(str, Enum):
    CUMULATIVE = "CUMULATIVE"


class ValueType(str, Enum):
    INT64 = "INT64"
    STRING = "STRING"


@dataclass(frozen=True)
class LabelDescriptor:
    key: str
    value_type: ValueType = ValueType.STRING


@dataclass(frozen=True)
class MetricDescriptor:
    """Backend-side schema for one custom metric.

    Attributes:
        name: Fully-qualified resource name
            (``projects/<id>/metricDescriptors/<type>``).
        type: Metric type string (``custom.<namespace>/<short name>``).
        display_name: Human-readable name; the short metric name.
        labels: Label schema.
    """

    name: str
    type: str
    display_name: str = ""
    labels: tuple[LabelDescriptor, ...] = ()
    metric_kind: MetricKind = MetricKind.CUMULATIVE
    value_type: ValueType = ValueType.INT64
    description: str = ""


@dataclass(frozen=True)
class MonitoredResource:
    """Infrastructure that emits the reported metrics."""

    type: str = "global"
    labels: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class TimeInterval:
    """Closed interval in Unix seconds."""

    start: float
    end: float


@dataclass(frozen=True)
class TimeSeriesPoint:
    """One cumulative INT64 point for one metric/label combination."""

    metric_type: str
    labels: dict[str, str]
    interval: TimeInterval
    value: int
    resource: MonitoredResource


@dataclass(frozen=True)
class ListMetricDescriptorsRequest:
    name: str
    filter: str


@dataclass(frozen=True)
class CreateMetricDescriptorRequest:
    name: str
    metric_descriptor: MetricDescriptor


@dataclass
class CreateTimeSeriesRequest:
    name: str
    time_series: list[TimeSeriesPoint] = field(default_factory=list)
