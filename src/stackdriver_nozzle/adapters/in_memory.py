"""In-memory backend adapters for logs and metrics."""

import threading

from stackdriver_nozzle.core.errors import BackendError
from stackdriver_nozzle.core.models import (
    CreateMetricDescriptorRequest,
    CreateTimeSeriesRequest,
    ListMetricDescriptorsRequest,
    LogRecord,
    MetricDescriptor,
)


class InMemoryLogAdapter:
    """In-memory implementation of LogAdapterPort.

    Stores posted records in a list. Suitable for testing and dry runs
    where nothing should leave the process.
    """

    def __init__(self) -> None:
        self._records: list[LogRecord] = []
        self._lock = threading.Lock()

    def post_log(self, record: LogRecord) -> None:
        """Store a log record."""
        with self._lock:
            self._records.append(record)

    @property
    def records(self) -> list[LogRecord]:
        with self._lock:
            return list(self._records)


class InMemoryMetricClient:
    """In-memory implementation of MetricClientPort.

    Remembers created descriptors and posted requests. Failures can be
    injected per operation to exercise error paths.

    Args:
        descriptors: Descriptors that already exist on the "backend".
    """

    def __init__(self, descriptors: list[MetricDescriptor] | None = None) -> None:
        self._descriptors: dict[str, MetricDescriptor] = {
            d.name: d for d in descriptors or []
        }
        self.list_requests: list[ListMetricDescriptorsRequest] = []
        self.create_requests: list[CreateMetricDescriptorRequest] = []
        self.posted: list[CreateTimeSeriesRequest] = []
        self.fail_list = False
        self.fail_create: set[str] = set()
        self.fail_post_calls: set[int] = set()
        self._post_calls = 0
        self._lock = threading.Lock()

    def list_metric_descriptors(
        self, request: ListMetricDescriptorsRequest
    ) -> list[MetricDescriptor]:
        """Return stored descriptors whose type starts with the filter prefix."""
        with self._lock:
            self.list_requests.append(request)
            if self.fail_list:
                raise BackendError("list metric descriptors failed")
            prefix = _starts_with_argument(request.filter)
            return [d for d in self._descriptors.values() if d.type.startswith(prefix)]

    def create_metric_descriptor(self, request: CreateMetricDescriptorRequest) -> None:
        """Store a descriptor, or fail if its type was marked as failing."""
        with self._lock:
            self.create_requests.append(request)
            descriptor = request.metric_descriptor
            if descriptor.type in self.fail_create:
                raise BackendError(f"create {descriptor.type} failed")
            self._descriptors[descriptor.name] = descriptor

    def post(self, request: CreateTimeSeriesRequest) -> None:
        """Record a posted request; calls listed in fail_post_calls (0-based) fail."""
        with self._lock:
            call = self._post_calls
            self._post_calls += 1
            self.posted.append(request)
            if call in self.fail_post_calls:
                raise BackendError(f"post #{call} failed")

    @property
    def descriptors(self) -> list[MetricDescriptor]:
        with self._lock:
            return list(self._descriptors.values())


def _starts_with_argument(filter_expr: str) -> str:
    """Extract X from a ``metric.type = starts_with("X")`` filter."""
    marker = 'starts_with("'
    start = filter_expr.find(marker)
    if start < 0:
        return ""
    start += len(marker)
    end = filter_expr.find('")', start)
    return filter_expr[start:end] if end >= 0 else ""
