"""Typed-to-generic conversion of envelopes into JSON payload dicts.

Key names follow the dropsonde JSON field names. Unset (None) fields and
empty collections are omitted while explicit zeros are kept, bytes are
rendered as base64 and enums as their integer value, matching what a
generic JSON dump of the wire structs produces.
"""

import base64
import json
import uuid
from collections.abc import Callable
from typing import Any

from stackdriver_nozzle.core.envelope import (
    ContainerMetric,
    CounterEvent,
    Envelope,
    Error,
    HttpStartStop,
    LogMessage,
    ValueMetric,
)
from stackdriver_nozzle.core.errors import TranslationError


def _omit_empty(fields: dict[str, Any]) -> dict[str, Any]:
    """Drop unset fields and empty collections; zero values are kept."""
    return {
        key: value
        for key, value in fields.items()
        if value is not None and value != [] and value != {}
    }


def _b64(data: bytes | None) -> str | None:
    if not data:
        return None
    return base64.b64encode(data).decode("ascii")


def _log_message(msg: LogMessage) -> dict[str, Any]:
    return _omit_empty(
        {
            "message": _b64(msg.message),
            "message_type": int(msg.message_type),
            "timestamp": msg.timestamp,
            "app_id": msg.app_id,
            "source_type": msg.source_type,
            "source_instance": msg.source_instance,
        }
    )


def _error(err: Error) -> dict[str, Any]:
    return _omit_empty({"source": err.source, "code": err.code, "message": err.message})


def _http_start_stop(hss: HttpStartStop) -> dict[str, Any]:
    return _omit_empty(
        {
            "startTimestamp": hss.start_timestamp,
            "stopTimestamp": hss.stop_timestamp,
            "requestId": _b64(hss.request_id),
            "peerType": int(hss.peer_type),
            "method": int(hss.method),
            "uri": hss.uri,
            "remoteAddress": hss.remote_address,
            "userAgent": hss.user_agent,
            "statusCode": hss.status_code,
            "contentLength": hss.content_length,
            "applicationId": _b64(hss.application_id),
            "instanceIndex": hss.instance_index,
            "instanceId": hss.instance_id,
            "forwarded": list(hss.forwarded),
        }
    )


def _value_metric(vm: ValueMetric) -> dict[str, Any]:
    return _omit_empty({"name": vm.name, "value": vm.value, "unit": vm.unit})


def _counter_event(ce: CounterEvent) -> dict[str, Any]:
    return _omit_empty({"name": ce.name, "delta": ce.delta, "total": ce.total})


def _container_metric(cm: ContainerMetric) -> dict[str, Any]:
    return _omit_empty(
        {
            "applicationId": cm.application_id,
            "instanceIndex": cm.instance_index,
            "cpuPercentage": cm.cpu_percentage,
            "memoryBytes": cm.memory_bytes,
            "diskBytes": cm.disk_bytes,
            "memoryBytesQuota": cm.memory_bytes_quota,
            "diskBytesQuota": cm.disk_bytes_quota,
        }
    )


def _envelope(env: Envelope) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "origin": env.origin,
        "eventType": int(env.event_type),
        "timestamp": env.timestamp,
        "deployment": env.deployment,
        "job": env.job,
        "index": env.index,
        "ip": env.ip,
        "tags": dict(env.tags),
    }
    for key, sub in (
        ("httpStartStop", env.http_start_stop),
        ("logMessage", env.log_message),
        ("valueMetric", env.value_metric),
        ("counterEvent", env.counter_event),
        ("error", env.error),
        ("containerMetric", env.container_metric),
    ):
        if sub is not None:
            fields[key] = _CONVERTERS[type(sub)](sub)
    return _omit_empty(fields)


_CONVERTERS: dict[type, Callable[[Any], dict[str, Any]]] = {
    Envelope: _envelope,
    LogMessage: _log_message,
    Error: _error,
    HttpStartStop: _http_start_stop,
    ValueMetric: _value_metric,
    CounterEvent: _counter_event,
    ContainerMetric: _container_metric,
}


def struct_to_map(obj: object) -> dict[str, Any]:
    """Convert an envelope or sub-message into a JSON-compatible dict.

    The result is passed through a JSON encode/decode so that it contains
    only plain JSON types and is independent of the source object.

    Args:
        obj: An Envelope or one of its sub-message types.

    Returns:
        A fresh dict keyed by dropsonde JSON field names.

    Raises:
        TranslationError: If the type is unknown or a field is not
            representable as JSON (e.g. a NaN metric value).
    """
    converter = _CONVERTERS.get(type(obj))
    if converter is None:
        raise TranslationError(f"no payload conversion for {type(obj).__name__}")
    try:
        result: dict[str, Any] = json.loads(json.dumps(converter(obj), allow_nan=False))
    except (TypeError, ValueError) as e:
        raise TranslationError(f"{type(obj).__name__} is not JSON-encodable: {e}") from e
    return result


def format_uuid(raw: bytes | None) -> str:
    """Render 16 raw request-id bytes as a canonical UUID string.

    Returns an empty string when no id is present.

    Raises:
        TranslationError: If the id is not exactly 16 bytes.
    """
    if not raw:
        return ""
    try:
        return str(uuid.UUID(bytes=bytes(raw)))
    except ValueError as e:
        raise TranslationError(f"invalid request id: {raw!r}") from e
