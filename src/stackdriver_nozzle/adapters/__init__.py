"""Adapters implementing the core ports."""

from stackdriver_nozzle.adapters.app_info import AppInfoCache, NullAppInfoRepository
from stackdriver_nozzle.adapters.in_memory import InMemoryLogAdapter, InMemoryMetricClient
from stackdriver_nozzle.adapters.labels import LabelMaker
from stackdriver_nozzle.adapters.log_sink import EnvelopeTranslator, LogSink
from stackdriver_nozzle.adapters.telemetry_sink import (
    MAX_TIME_SERIES_PER_REQUEST,
    MetricDescriptorRegistry,
    MetricReporter,
)

__all__ = [
    "MAX_TIME_SERIES_PER_REQUEST",
    "AppInfoCache",
    "EnvelopeTranslator",
    "InMemoryLogAdapter",
    "InMemoryMetricClient",
    "LabelMaker",
    "LogSink",
    "MetricDescriptorRegistry",
    "MetricReporter",
    "NullAppInfoRepository",
]
