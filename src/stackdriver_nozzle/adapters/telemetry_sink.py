"""Telemetry sink that reports in-process counters to Cloud Monitoring.

MetricDescriptorRegistry makes sure every known series has a custom metric
descriptor before the first report. MetricReporter turns registry
snapshots into CUMULATIVE INT64 time series and posts them in batches.
"""

import logging
import time
from collections.abc import Callable, Iterator, Sequence

from stackdriver_nozzle.core.errors import BackendError, UnsupportedValueError
from stackdriver_nozzle.core.models import (
    CreateMetricDescriptorRequest,
    CreateTimeSeriesRequest,
    LabelDescriptor,
    ListMetricDescriptorsRequest,
    MetricDescriptor,
    MonitoredResource,
    TimeInterval,
    TimeSeriesPoint,
    ValueType,
)
from stackdriver_nozzle.core.ports import MetricClientPort
from stackdriver_nozzle.core.telemetry import Counter, CounterMap, Series

logger = logging.getLogger(__name__)

# Backend limit on points per CreateTimeSeries request.
MAX_TIME_SERIES_PER_REQUEST = 200

DEFAULT_METRIC_NAMESPACE = "googleapis.com"


class MetricNaming:
    """Builds metric type strings and descriptor resource names.

    Args:
        project_id: GCP project the metrics belong to.
        namespace: Custom metric namespace (``custom.<namespace>/...``).
    """

    def __init__(self, project_id: str, namespace: str = DEFAULT_METRIC_NAMESPACE) -> None:
        self.project_path = f"projects/{project_id}"
        self.type_prefix = f"custom.{namespace}/"

    def metric_type(self, short_name: str) -> str:
        return f"{self.type_prefix}{short_name}"

    def descriptor_name(self, short_name: str) -> str:
        return f"{self.project_path}/metricDescriptors/{self.metric_type(short_name)}"


def merge_labels(base: dict[str, str], overlay: dict[str, str]) -> dict[str, str]:
    """Return a copy of base with overlay applied; overlay wins on collision."""
    merged = dict(base)
    merged.update(overlay)
    return merged


class MetricDescriptorRegistry:
    """Registers missing metric descriptors, once per descriptor."""

    def __init__(
        self,
        client: MetricClientPort,
        naming: MetricNaming,
        labels: dict[str, str],
    ) -> None:
        self._client = client
        self._naming = naming
        self._labels = labels
        self._registered: set[str] = set()

    def init(self, known_series: Sequence[Series]) -> None:
        """Create descriptors for series the backend does not know yet.

        Listing and creation failures are logged; registration continues
        with the remaining series.
        """
        self._registered.update(self._existing_descriptor_names())

        for series in known_series:
            name = self._naming.descriptor_name(series.name)
            if name in self._registered:
                continue

            request = CreateMetricDescriptorRequest(
                name=self._naming.project_path,
                metric_descriptor=MetricDescriptor(
                    name=name,
                    type=self._naming.metric_type(series.name),
                    display_name=series.name,
                    labels=self._label_schema(series.value),
                    description="stackdriver-nozzle created custom metric.",
                ),
            )
            try:
                self._client.create_metric_descriptor(request)
            except BackendError as e:
                logger.error(
                    "telemetrySink.CreateMetricDescriptor",
                    extra={"error": str(e), "req": request},
                )
                continue
            self._registered.add(name)

    def _existing_descriptor_names(self) -> set[str]:
        request = ListMetricDescriptorsRequest(
            name=self._naming.project_path,
            filter=f'metric.type = starts_with("{self._naming.type_prefix}")',
        )
        try:
            descriptors = self._client.list_metric_descriptors(request)
        except BackendError as e:
            logger.error(
                "telemetrySink.ListMetricDescriptors",
                extra={"error": str(e), "req": request},
            )
            return set()
        return {descriptor.name for descriptor in descriptors}

    def _label_schema(self, value: object) -> tuple[LabelDescriptor, ...]:
        keys = list(self._labels)
        if isinstance(value, CounterMap):
            keys.extend(value.label_keys)
        return tuple(LabelDescriptor(key=key, value_type=ValueType.STRING) for key in keys)


class MetricReporter:
    """Reports counter snapshots as cumulative time series.

    The interval start time and the monitored resource are fixed at
    construction and shared by every report, which is what makes the
    points cumulative.

    Args:
        client: Monitoring backend.
        project_id: GCP project to report into.
        subscription_id: Firehose subscription id, attached as a label.
        foundation: Foundation name, attached as a label.
        resource: Monitored resource attached to every point.
        namespace: Custom metric namespace.
        clock: Time source in Unix seconds.
    """

    def __init__(
        self,
        client: MetricClientPort,
        project_id: str,
        subscription_id: str,
        foundation: str,
        resource: MonitoredResource | None = None,
        namespace: str = DEFAULT_METRIC_NAMESPACE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._client = client
        self._naming = MetricNaming(project_id, namespace)
        self._labels = {"subscription_id": subscription_id, "foundation": foundation}
        self._resource = resource or MonitoredResource()
        self._clock = clock
        self._start_time = clock()
        self._descriptors = MetricDescriptorRegistry(client, self._naming, self._labels)

    @property
    def start_time(self) -> float:
        return self._start_time

    def init(self, registered_series: Sequence[Series]) -> None:
        """Register metric descriptors for every known series."""
        self._descriptors.init(registered_series)

    def report(self, snapshot: Sequence[Series]) -> None:
        """Post one point per counter, in batches of at most 200."""
        interval = TimeInterval(start=self._start_time, end=self._clock())
        request = self._new_request()

        for series in snapshot:
            try:
                points = list(self._time_series(series, interval))
            except UnsupportedValueError as e:
                logger.error(
                    "telemetrySink.timeSeries",
                    extra={"error": str(e), "value": series},
                )
                continue
            for point in points:
                request.time_series.append(point)
                if len(request.time_series) == MAX_TIME_SERIES_PER_REQUEST:
                    self._post(request)
                    request = self._new_request()

        if request.time_series:
            self._post(request)

    def _new_request(self) -> CreateTimeSeriesRequest:
        return CreateTimeSeriesRequest(name=self._naming.project_path)

    def _post(self, request: CreateTimeSeriesRequest) -> None:
        try:
            self._client.post(request)
        except BackendError as e:
            logger.error("telemetrySink.Report", extra={"error": str(e), "req": request})

    def _time_series(
        self, series: Series, interval: TimeInterval
    ) -> Iterator[TimeSeriesPoint]:
        metric_type = self._naming.metric_type(series.name)
        value = series.value
        if isinstance(value, Counter):
            yield self._point(metric_type, interval, dict(self._labels), value.value())
        elif isinstance(value, CounterMap):
            for counter in value.entries():
                labels = merge_labels(self._labels, counter.labels)
                yield self._point(metric_type, interval, labels, counter.value())
        else:
            raise UnsupportedValueError(series.name, value)

    def _point(
        self,
        metric_type: str,
        interval: TimeInterval,
        labels: dict[str, str],
        value: int,
    ) -> TimeSeriesPoint:
        return TimeSeriesPoint(
            metric_type=metric_type,
            labels=labels,
            interval=interval,
            value=value,
            resource=self._resource,
        )
