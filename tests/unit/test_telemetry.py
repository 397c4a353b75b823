"""Tests for in-process telemetry primitives."""

import threading

import pytest

from stackdriver_nozzle.core.telemetry import (
    Counter,
    CounterMap,
    PeriodicReporter,
    Registry,
    Series,
)


@pytest.mark.core
class TestCounter:
    """Tests for Counter."""

    def test_starts_at_zero(self) -> None:
        assert Counter().value() == 0

    def test_increment_and_add(self) -> None:
        counter = Counter()
        counter.increment()
        counter.add(4)
        assert counter.value() == 5

    def test_negative_delta_raises(self) -> None:
        with pytest.raises(ValueError, match="non-negative"):
            Counter().add(-1)

    def test_labels_are_copied(self) -> None:
        counter = Counter({"status": "500"})
        counter.labels["status"] = "200"
        assert counter.labels == {"status": "500"}

    def test_concurrent_increments_are_not_lost(self) -> None:
        counter = Counter()

        def work() -> None:
            for _ in range(1000):
                counter.increment()

        threads = [threading.Thread(target=work) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert counter.value() == 8000


@pytest.mark.core
class TestCounterMap:
    """Tests for CounterMap."""

    def test_get_creates_labelled_counter(self) -> None:
        counter_map = CounterMap("method", "status")
        counter = counter_map.get("GET", "200")
        assert counter.labels == {"method": "GET", "status": "200"}

    def test_get_returns_same_counter_for_same_key(self) -> None:
        counter_map = CounterMap("status")
        assert counter_map.get("500") is counter_map.get("500")
        assert len(counter_map) == 1

    def test_wrong_arity_raises(self) -> None:
        with pytest.raises(ValueError, match="expected 2 label values"):
            CounterMap("a", "b").get("x")

    def test_entries_snapshot(self) -> None:
        counter_map = CounterMap("status")
        counter_map.get("200").add(2)
        counter_map.get("500").add(1)
        values = sorted(c.value() for c in counter_map.entries())
        assert values == [1, 2]


@pytest.mark.core
class TestRegistry:
    """Tests for Registry."""

    def test_snapshot_is_sorted_by_name(self) -> None:
        registry = Registry()
        registry.counter("b")
        registry.counter_map("a", "status")
        assert [s.name for s in registry.snapshot()] == ["a", "b"]

    def test_duplicate_registration_raises(self) -> None:
        registry = Registry()
        registry.counter("x")
        with pytest.raises(ValueError, match="already registered"):
            registry.counter("x")


class RecordingSink:
    def __init__(self) -> None:
        self.inits: list[list[Series]] = []
        self.reports: list[list[Series]] = []
        self.reported = threading.Event()

    def init(self, registered_series) -> None:
        self.inits.append(list(registered_series))

    def report(self, snapshot) -> None:
        self.reports.append(list(snapshot))
        self.reported.set()


@pytest.mark.core
class TestPeriodicReporter:
    """Tests for PeriodicReporter."""

    def test_init_once_then_reports(self) -> None:
        registry = Registry()
        registry.counter("events")
        sink = RecordingSink()
        reporter = PeriodicReporter(registry, sink, interval=0.01)

        reporter.start()
        assert sink.reported.wait(timeout=5)
        reporter.stop()

        assert len(sink.inits) == 1
        assert [s.name for s in sink.inits[0]] == ["events"]
        assert len(sink.reports) >= 2

    def test_stop_flushes_final_report(self) -> None:
        sink = RecordingSink()
        reporter = PeriodicReporter(Registry(), sink, interval=3600)
        reporter.start()
        reporter.stop()
        assert len(sink.reports) == 1

    def test_sink_failure_does_not_stop_reporting(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        class ExplodingSink(RecordingSink):
            def report(self, snapshot) -> None:
                super().report(snapshot)
                raise RuntimeError("boom")

        sink = ExplodingSink()
        reporter = PeriodicReporter(Registry(), sink, interval=3600)
        reporter.start()
        reporter.stop()
        assert "telemetry report failed" in caplog.text

    def test_rejects_non_positive_interval(self) -> None:
        with pytest.raises(ValueError, match="positive"):
            PeriodicReporter(Registry(), RecordingSink(), interval=0)

    def test_double_start_raises(self) -> None:
        reporter = PeriodicReporter(Registry(), RecordingSink(), interval=3600)
        reporter.start()
        try:
            with pytest.raises(RuntimeError, match="already started"):
                reporter.start()
        finally:
            reporter.stop()
