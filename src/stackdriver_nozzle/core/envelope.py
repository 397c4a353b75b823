"""Firehose envelope models.

Mirrors the dropsonde event schema: an envelope carries common routing
fields plus exactly one variant-specific sub-message selected by
``event_type``.
"""

from dataclasses import dataclass, field
from enum import IntEnum


class EventType(IntEnum):
    """Envelope variant tag."""

    HttpStartStop = 4
    LogMessage = 5
    ValueMetric = 6
    CounterEvent = 7
    Error = 8
    ContainerMetric = 9


class MessageType(IntEnum):
    """Output stream a LogMessage was written to."""

    OUT = 1
    ERR = 2


class PeerType(IntEnum):
    """Side of the HTTP exchange that emitted an HttpStartStop."""

    Client = 1
    Server = 2


class Method(IntEnum):
    """HTTP request method."""

    GET = 1
    POST = 2
    PUT = 3
    DELETE = 4
    HEAD = 5
    ACL = 6
    BASELINE_CONTROL = 7
    BIND = 8
    CHECKIN = 9
    CHECKOUT = 10
    CONNECT = 11
    COPY = 12
    DEBUG = 13
    LABEL = 14
    LINK = 15
    LOCK = 16
    MERGE = 17
    MKACTIVITY = 18
    MKCALENDAR = 19
    MKCOL = 20
    MKREDIRECTREF = 21
    MKWORKSPACE = 22
    MOVE = 23
    OPTIONS = 24
    ORDERPATCH = 25
    PATCH = 26
    PRI = 27
    PROPFIND = 28
    PROPPATCH = 29
    REBIND = 30
    REPORT = 31
    SEARCH = 32
    SHOWMETHOD = 33
    SPACEJUMP = 34
    TEXTSEARCH = 35
    TRACE = 36
    TRACK = 37
    UNBIND = 38
    UNCHECKOUT = 39
    UNLINK = 40
    UNLOCK = 41
    UPDATE = 42
    UPDATEREDIRECTREF = 43
    VERSION_CONTROL = 44


@dataclass(frozen=True)
class LogMessage:
    """A line of application or platform output.

    Attributes:
        message: Raw message bytes as emitted by the source.
        message_type: Stream the line came from (OUT or ERR).
        timestamp: Unix time in nanoseconds.
        app_id: GUID of the emitting application, if any.
        source_type: Component type (e.g. "APP/PROC/WEB", "RTR").
        source_instance: Instance index of the source component.
    """

    message: bytes
    message_type: MessageType
    timestamp: int = 0
    app_id: str | None = None
    source_type: str | None = None
    source_instance: str | None = None


@dataclass(frozen=True)
class Error:
    """An error reported by a platform component."""

    source: str
    code: int
    message: str


@dataclass(frozen=True)
class HttpStartStop:
    """Timing and metadata for one HTTP request seen by the router."""

    start_timestamp: int
    stop_timestamp: int
    request_id: bytes
    peer_type: PeerType
    method: Method
    uri: str
    remote_address: str
    user_agent: str
    status_code: int
    content_length: int
    application_id: bytes | None = None
    instance_index: int | None = None
    instance_id: str | None = None
    forwarded: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class ValueMetric:
    """A point-in-time gauge emitted by a platform component."""

    name: str
    value: float
    unit: str


@dataclass(frozen=True)
class CounterEvent:
    """An incrementing counter emitted by a platform component."""

    name: str
    delta: int
    total: int | None = None


@dataclass(frozen=True)
class ContainerMetric:
    """Resource usage of one application instance container."""

    application_id: str
    instance_index: int
    cpu_percentage: float
    memory_bytes: int
    disk_bytes: int
    memory_bytes_quota: int | None = None
    disk_bytes_quota: int | None = None


@dataclass(frozen=True)
class Envelope:
    """One event from the firehose.

    Attributes:
        origin: Name of the emitting component.
        event_type: Variant tag selecting which sub-message is set.
        timestamp: Unix time in nanoseconds (None when unset).
        deployment, job, index, ip: BOSH placement of the emitter.
        tags: Free-form key/value tags attached by the emitter.
    """

    origin: str
    event_type: EventType
    timestamp: int | None = None
    deployment: str | None = None
    job: str | None = None
    index: str | None = None
    ip: str | None = None
    tags: dict[str, str] = field(default_factory=dict)
    log_message: LogMessage | None = None
    error: Error | None = None
    http_start_stop: HttpStartStop | None = None
    value_metric: ValueMetric | None = None
    counter_event: CounterEvent | None = None
    container_metric: ContainerMetric | None = None
