"""HTTP adapters for Cloud Logging and Cloud Monitoring.

Both clients speak the public REST APIs over a caller-supplied
``httpx.Client``, which carries authentication headers and timeouts.
Transport errors, non-2xx responses, unencodable request bodies and
malformed response bodies all surface as BackendError.
"""

from datetime import datetime, timezone
from typing import Any

import httpx

from stackdriver_nozzle.core.errors import BackendError
from stackdriver_nozzle.core.models import (
    CreateMetricDescriptorRequest,
    CreateTimeSeriesRequest,
    LabelDescriptor,
    ListMetricDescriptorsRequest,
    LogRecord,
    MetricDescriptor,
    MetricKind,
    MonitoredResource,
    TimeSeriesPoint,
    ValueType,
)

MONITORING_URL = "https://monitoring.googleapis.com/v3/"
LOGGING_URL = "https://logging.googleapis.com/v2/"


def _rfc3339(timestamp: float) -> str:
    moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return moment.isoformat(timespec="microseconds").replace("+00:00", "Z")


def _resource_json(resource: MonitoredResource) -> dict[str, Any]:
    obj: dict[str, Any] = {"type": resource.type}
    if resource.labels:
        obj["labels"] = dict(resource.labels)
    return obj


def descriptor_to_json(descriptor: MetricDescriptor) -> dict[str, Any]:
    """Encode a MetricDescriptor as a REST resource body."""
    return {
        "name": descriptor.name,
        "type": descriptor.type,
        "displayName": descriptor.display_name,
        "description": descriptor.description,
        "metricKind": descriptor.metric_kind.value,
        "valueType": descriptor.value_type.value,
        "labels": [
            {"key": label.key, "valueType": label.value_type.value}
            for label in descriptor.labels
        ],
    }


def descriptor_from_json(obj: dict[str, Any]) -> MetricDescriptor:
    """Decode a REST metric descriptor, ignoring fields the nozzle never sets."""
    labels = tuple(
        LabelDescriptor(key=label["key"], value_type=ValueType(label.get("valueType", "STRING")))
        for label in obj.get("labels", [])
        if label.get("valueType", "STRING") in ValueType.__members__
    )
    kind = obj.get("metricKind", "CUMULATIVE")
    value_type = obj.get("valueType", "INT64")
    return MetricDescriptor(
        name=obj["name"],
        type=obj.get("type", ""),
        display_name=obj.get("displayName", ""),
        labels=labels,
        metric_kind=MetricKind(kind) if kind in MetricKind.__members__ else MetricKind.CUMULATIVE,
        value_type=ValueType(value_type) if value_type in ValueType.__members__ else ValueType.INT64,
        description=obj.get("description", ""),
    )


def time_series_to_json(point: TimeSeriesPoint) -> dict[str, Any]:
    """Encode a point as a REST TimeSeries with a single INT64 point."""
    return {
        "metric": {"type": point.metric_type, "labels": dict(point.labels)},
        "resource": _resource_json(point.resource),
        "metricKind": MetricKind.CUMULATIVE.value,
        "valueType": ValueType.INT64.value,
        "points": [
            {
                "interval": {
                    "startTime": _rfc3339(point.interval.start),
                    "endTime": _rfc3339(point.interval.end),
                },
                # int64 values travel as strings in the JSON mapping
                "value": {"int64Value": str(point.value)},
            }
        ],
    }


def log_entry_json(
    record: LogRecord, log_name: str, resource: MonitoredResource
) -> dict[str, Any]:
    """Encode a LogRecord as a Cloud Logging LogEntry."""
    return {
        "logName": log_name,
        "resource": _resource_json(resource),
        "jsonPayload": record.payload,
        "labels": dict(record.labels),
        "severity": record.severity.value,
    }


def _send(client: httpx.Client, method: str, url: str, **kwargs: Any) -> httpx.Response:
    try:
        response = client.request(method, url, **kwargs)
        response.raise_for_status()
    except (TypeError, ValueError) as e:
        raise BackendError(f"{method} {url} could not encode request: {e}") from e
    except httpx.HTTPStatusError as e:
        raise BackendError(
            f"{method} {url} returned {e.response.status_code}: {e.response.text}"
        ) from e
    except httpx.HTTPError as e:
        raise BackendError(f"{method} {url} failed: {e}") from e
    return response


def _json_body(response: httpx.Response) -> dict[str, Any]:
    try:
        body = response.json()
    except ValueError as e:
        raise BackendError(f"invalid JSON response from {response.request.url}: {e}") from e
    if not isinstance(body, dict):
        raise BackendError(f"unexpected response shape from {response.request.url}")
    return body


class HttpMetricClient:
    """MetricClientPort backed by the Cloud Monitoring v3 REST API.

    Args:
        client: Authenticated HTTP client.
        base_url: API root, overridable for tests and emulators.
    """

    def __init__(self, client: httpx.Client, base_url: str = MONITORING_URL) -> None:
        self._client = client
        self._base_url = base_url

    def list_metric_descriptors(
        self, request: ListMetricDescriptorsRequest
    ) -> list[MetricDescriptor]:
        """List descriptors, following pagination to the end."""
        url = f"{self._base_url}{request.name}/metricDescriptors"
        params: dict[str, str] = {"filter": request.filter}
        descriptors: list[MetricDescriptor] = []
        while True:
            body = _json_body(_send(self._client, "GET", url, params=params))
            try:
                descriptors.extend(
                    descriptor_from_json(obj) for obj in body.get("metricDescriptors", [])
                )
            except (KeyError, TypeError, AttributeError, ValueError) as e:
                raise BackendError(f"malformed metric descriptor in {url}: {e!r}") from e
            token = body.get("nextPageToken")
            if not token:
                return descriptors
            params = {"filter": request.filter, "pageToken": token}

    def create_metric_descriptor(self, request: CreateMetricDescriptorRequest) -> None:
        url = f"{self._base_url}{request.name}/metricDescriptors"
        _send(self._client, "POST", url, json=descriptor_to_json(request.metric_descriptor))

    def post(self, request: CreateTimeSeriesRequest) -> None:
        url = f"{self._base_url}{request.name}/timeSeries"
        body = {"timeSeries": [time_series_to_json(p) for p in request.time_series]}
        _send(self._client, "POST", url, json=body)


class HttpLogAdapter:
    """LogAdapterPort backed by the Cloud Logging v2 ``entries:write`` call.

    Each record is written as its own entry; nothing is batched.

    Args:
        client: Authenticated HTTP client.
        project_id: Project that owns the log.
        log_id: Log name within the project.
        resource: Monitored resource for every entry.
        base_url: API root, overridable for tests and emulators.
    """

    def __init__(
        self,
        client: httpx.Client,
        project_id: str,
        log_id: str,
        resource: MonitoredResource | None = None,
        base_url: str = LOGGING_URL,
    ) -> None:
        self._client = client
        self._log_name = f"projects/{project_id}/logs/{log_id}"
        self._resource = resource or MonitoredResource()
        self._url = f"{base_url}entries:write"

    def post_log(self, record: LogRecord) -> None:
        body = {"entries": [log_entry_json(record, self._log_name, self._resource)]}
        _send(self._client, "POST", self._url, json=body)
