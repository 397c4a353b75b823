"""Cloud Foundry firehose to Cloud Logging / Cloud Monitoring nozzle."""

from stackdriver_nozzle.adapters import (
    AppInfoCache,
    EnvelopeTranslator,
    InMemoryLogAdapter,
    InMemoryMetricClient,
    LabelMaker,
    LogSink,
    MetricDescriptorRegistry,
    MetricReporter,
    NullAppInfoRepository,
)
from stackdriver_nozzle.app import Nozzle, create_nozzle
from stackdriver_nozzle.config import NozzleConfig
from stackdriver_nozzle.core.envelope import Envelope, EventType, MessageType
from stackdriver_nozzle.core.models import AppInfo, LogRecord, Severity
from stackdriver_nozzle.core.telemetry import Counter, CounterMap, Registry

__all__ = [
    "AppInfo",
    "AppInfoCache",
    "Counter",
    "CounterMap",
    "Envelope",
    "EnvelopeTranslator",
    "EventType",
    "InMemoryLogAdapter",
    "InMemoryMetricClient",
    "LabelMaker",
    "LogRecord",
    "LogSink",
    "MessageType",
    "MetricDescriptorRegistry",
    "MetricReporter",
    "Nozzle",
    "NozzleConfig",
    "NullAppInfoRepository",
    "Registry",
    "Severity",
    "create_nozzle",
]
