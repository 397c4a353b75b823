"""Envelope-to-log translation and the sink that posts the results.

EnvelopeTranslator turns one firehose envelope into one LogRecord;
LogSink feeds translated records to a LogAdapterPort one at a time.
"""

import json
import logging
import math
from typing import Any

from stackdriver_nozzle.core.encoding.payload import format_uuid, struct_to_map
from stackdriver_nozzle.core.envelope import Envelope, EventType, MessageType
from stackdriver_nozzle.core.errors import BackendError, TranslationError
from stackdriver_nozzle.core.models import LogRecord, Severity
from stackdriver_nozzle.core.ports import LabelMakerPort, LogAdapterPort
from stackdriver_nozzle.core.telemetry import Registry

logger = logging.getLogger(__name__)


def _parse_severity(message_type: MessageType) -> Severity:
    if message_type == MessageType.ERR:
        return Severity.ERROR
    return Severity.DEFAULT


class EnvelopeTranslator:
    """Converts envelopes into structured log records.

    Args:
        label_maker: Source of the labels attached to every record.
        newline_token: Substring in raw log messages that stands for a
            newline. An empty token disables substitution.
    """

    def __init__(self, label_maker: LabelMakerPort, newline_token: str = "") -> None:
        self._label_maker = label_maker
        self._newline_token = newline_token

    def translate(self, envelope: Envelope) -> LogRecord:
        """Translate one envelope into a LogRecord.

        Payload conversion problems are logged and leave a partial payload;
        they never raise.
        """
        try:
            payload = struct_to_map(envelope)
        except TranslationError as e:
            logger.error("error parsing envelope", extra={"error": str(e)})
            payload = {}

        payload["eventType"] = envelope.event_type.name
        severity = Severity.DEFAULT

        if envelope.timestamp:
            payload["timestamp"] = envelope.timestamp

        if envelope.event_type == EventType.LogMessage:
            severity = self._reshape_log_message(envelope, payload)
        elif envelope.event_type == EventType.Error:
            payload["message"] = envelope.error.message if envelope.error else ""
            severity = Severity.ERROR
        elif envelope.event_type == EventType.HttpStartStop:
            self._reshape_http_start_stop(envelope, payload)

        labels = self._label_maker.log_labels(envelope)
        app = labels.get("applicationPath", "")
        if app:
            payload["serviceContext"] = {"service": app}

        return LogRecord(payload=payload, labels=labels, severity=severity)

    def _reshape_log_message(
        self, envelope: Envelope, payload: dict[str, Any]
    ) -> Severity:
        log_message = envelope.log_message
        if log_message is None:
            return Severity.DEFAULT
        try:
            log_message_map = struct_to_map(log_message)
        except TranslationError as e:
            logger.error("error parsing logMessage", extra={"error": str(e)})
            return Severity.DEFAULT

        raw_message = log_message.message
        message = self._parse_message(raw_message)
        embedded = _parse_embedded_json(raw_message)
        if embedded is not None:
            msg = embedded.get("msg")
            if isinstance(msg, str):
                message = msg
                del embedded["msg"]
            log_message_map.update(embedded)

        # snake_case to match the dropsonde field name
        log_message_map["message_type"] = log_message.message_type.name
        payload["message"] = message
        log_message_map.pop("message", None)
        payload["logMessage"] = log_message_map
        return _parse_severity(log_message.message_type)

    def _reshape_http_start_stop(
        self, envelope: Envelope, payload: dict[str, Any]
    ) -> None:
        http_start_stop = envelope.http_start_stop
        if http_start_stop is None:
            return
        try:
            http_map = struct_to_map(http_start_stop)
            http_map["requestId"] = format_uuid(http_start_stop.request_id)
        except TranslationError as e:
            logger.error("error parsing httpStartStop", extra={"error": str(e)})
            return
        http_map["method"] = http_start_stop.method.name
        http_map["peerType"] = http_start_stop.peer_type.name
        payload["httpStartStop"] = http_map

    def _parse_message(self, raw_message: bytes) -> str:
        message = raw_message.decode("utf-8", errors="replace")
        if self._newline_token:
            message = message.replace(self._newline_token, "\n")
        return message


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


def _finite_float(text: str) -> float:
    value = float(text)
    if math.isinf(value):
        raise ValueError(f"number out of range: {text}")
    return value


def _parse_embedded_json(raw_message: bytes) -> dict[str, Any] | None:
    """Return the raw message as a JSON object, or None if it is not one.

    NaN and Infinity are not JSON, so a message containing them is text.
    """
    try:
        parsed = json.loads(
            raw_message, parse_constant=_reject_constant, parse_float=_finite_float
        )
    except (ValueError, UnicodeDecodeError):
        return None
    if not isinstance(parsed, dict):
        return None
    return parsed


class LogSink:
    """Receives envelopes, translates them and posts the resulting logs.

    Example:
        ```python
        sink = LogSink(EnvelopeTranslator(label_maker), InMemoryLogAdapter())
        sink.receive(envelope)
        ```
    """

    def __init__(
        self,
        translator: EnvelopeTranslator,
        log_adapter: LogAdapterPort,
        registry: Registry | None = None,
    ) -> None:
        registry = registry or Registry()
        self._translator = translator
        self._log_adapter = log_adapter
        self._received = registry.counter("nozzle.logs.received")
        self._dropped = registry.counter("nozzle.logs.dropped")
        self._post_errors = registry.counter("nozzle.logs.post_errors")

    def receive(self, envelope: Envelope | None) -> None:
        """Translate and post one envelope.

        A None envelope is what the firehose client hands over after a fatal
        stream error, often thousands of times in a row; it is dropped
        without logging.
        """
        if envelope is None:
            self._dropped.increment()
            return
        self._received.increment()
        record = self._translator.translate(envelope)
        try:
            self._log_adapter.post_log(record)
        except BackendError as e:
            self._post_errors.increment()
            logger.error(
                "failed to post log",
                extra={"error": str(e), "event_type": record.payload["eventType"]},
            )
