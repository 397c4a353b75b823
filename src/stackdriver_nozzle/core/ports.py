"""Port interfaces for the nozzle's collaborators.

These protocols define the contracts that adapters must implement.
The translation and reporting pipeline depends only on these interfaces,
not concrete implementations.
"""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from stackdriver_nozzle.core.envelope import Envelope
from stackdriver_nozzle.core.models import (
    AppInfo,
    AppMetadata,
    CreateMetricDescriptorRequest,
    CreateTimeSeriesRequest,
    ListMetricDescriptorsRequest,
    LogRecord,
    MetricDescriptor,
)
from stackdriver_nozzle.core.telemetry import Series


@runtime_checkable
class LogAdapterPort(Protocol):
    """Port for posting translated log records.

    Examples: HttpLogAdapter, InMemoryLogAdapter.
    """

    def post_log(self, record: LogRecord) -> None:
        """Post one log record. Raises BackendError on failure."""
        ...


@runtime_checkable
class MetricClientPort(Protocol):
    """Port for the monitoring backend.

    Examples: HttpMetricClient, InMemoryMetricClient.
    """

    def list_metric_descriptors(
        self, request: ListMetricDescriptorsRequest
    ) -> list[MetricDescriptor]:
        """List descriptors matching the request filter."""
        ...

    def create_metric_descriptor(self, request: CreateMetricDescriptorRequest) -> None:
        """Create one metric descriptor."""
        ...

    def post(self, request: CreateTimeSeriesRequest) -> None:
        """Submit a batch of time series points."""
        ...


@runtime_checkable
class LabelMakerPort(Protocol):
    """Port for deriving log labels from an envelope."""

    def log_labels(self, envelope: Envelope) -> dict[str, str]:
        ...


@runtime_checkable
class AppMetadataSourcePort(Protocol):
    """Port for the slow application metadata lookup.

    Examples: CloudControllerClient.
    """

    def app_by_guid(self, guid: str) -> AppMetadata:
        """Resolve an application. Raises MetadataLookupError on failure."""
        ...


@runtime_checkable
class AppInfoRepositoryPort(Protocol):
    """Port for cached application metadata."""

    def get_app_info(self, guid: str) -> AppInfo:
        ...


@runtime_checkable
class TelemetrySinkPort(Protocol):
    """Port for a destination of periodic telemetry snapshots."""

    def init(self, registered_series: Sequence[Series]) -> None:
        ...

    def report(self, snapshot: Sequence[Series]) -> None:
        ...
