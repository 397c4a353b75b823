"""Shared test fixtures for all test modules."""

import json

import pytest

from stackdriver_nozzle.adapters.in_memory import InMemoryLogAdapter, InMemoryMetricClient
from stackdriver_nozzle.core.envelope import (
    Envelope,
    Error,
    EventType,
    HttpStartStop,
    LogMessage,
    MessageType,
    Method,
    PeerType,
)
from stackdriver_nozzle.core.models import AppMetadata
from stackdriver_nozzle.core.errors import MetadataLookupError


class StaticLabelMaker:
    """LabelMaker stand-in returning the same labels for every envelope."""

    def __init__(self, labels: dict[str, str] | None = None) -> None:
        self.labels = labels or {}
        self.calls: list[Envelope] = []

    def log_labels(self, envelope: Envelope) -> dict[str, str]:
        self.calls.append(envelope)
        return dict(self.labels)


class FakeClock:
    """Manually advanced time source."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeMetadataSource:
    """Counts lookups; unknown GUIDs fail."""

    def __init__(self, apps: dict[str, AppMetadata] | None = None) -> None:
        self.apps = apps or {}
        self.lookups: list[str] = []

    def app_by_guid(self, guid: str) -> AppMetadata:
        self.lookups.append(guid)
        if guid not in self.apps:
            raise MetadataLookupError(f"app {guid} not found")
        return self.apps[guid]


@pytest.fixture
def label_maker() -> StaticLabelMaker:
    return StaticLabelMaker()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def log_adapter() -> InMemoryLogAdapter:
    """Fixture providing an empty in-memory log adapter."""
    return InMemoryLogAdapter()


@pytest.fixture
def metric_client() -> InMemoryMetricClient:
    """Fixture providing an in-memory metric client with no descriptors."""
    return InMemoryMetricClient()


@pytest.fixture
def metadata_source() -> FakeMetadataSource:
    return FakeMetadataSource(
        {
            "app-guid": AppMetadata(
                name="my-app",
                space_guid="space-guid",
                space_name="dev",
                org_guid="org-guid",
                org_name="acme",
            )
        }
    )


@pytest.fixture
def log_message_envelope():
    """Factory fixture for LogMessage envelopes."""

    def _envelope(
        message: bytes | str | dict = b"hello",
        message_type: MessageType = MessageType.OUT,
        timestamp: int = 1_500_000_000_123_456_789,
        app_id: str | None = "app-guid",
    ) -> Envelope:
        if isinstance(message, dict):
            message = json.dumps(message)
        if isinstance(message, str):
            message = message.encode()
        return Envelope(
            origin="rep",
            event_type=EventType.LogMessage,
            timestamp=timestamp,
            job="diego_cell",
            index="0",
            log_message=LogMessage(
                message=message,
                message_type=message_type,
                timestamp=timestamp,
                app_id=app_id,
                source_type="APP/PROC/WEB",
                source_instance="0",
            ),
        )

    return _envelope


@pytest.fixture
def error_envelope() -> Envelope:
    return Envelope(
        origin="doppler",
        event_type=EventType.Error,
        timestamp=1_500_000_000_000_000_000,
        error=Error(source="doppler", code=500, message="it broke"),
    )


@pytest.fixture
def http_envelope() -> Envelope:
    return Envelope(
        origin="gorouter",
        event_type=EventType.HttpStartStop,
        timestamp=1_500_000_000_000_000_000,
        http_start_stop=HttpStartStop(
            start_timestamp=1_500_000_000_000_000_000,
            stop_timestamp=1_500_000_000_500_000_000,
            request_id=bytes.fromhex("0123456789abcdef0123456789abcdef"),
            peer_type=PeerType.Client,
            method=Method.GET,
            uri="http://example.com/path",
            remote_address="10.0.0.1:5000",
            user_agent="curl/8.0",
            status_code=200,
            content_length=42,
        ),
    )
