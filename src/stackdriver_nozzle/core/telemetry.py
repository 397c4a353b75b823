"""In-process cumulative counters and the periodic snapshot loop.

Counters only ever grow. A Registry holds named counters and counter maps;
its snapshot is what the metric reporter turns into time series.
"""

import logging
import threading
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from stackdriver_nozzle.core.ports import TelemetrySinkPort

logger = logging.getLogger(__name__)


class Counter:
    """A thread-safe, monotonically non-decreasing integer.

    Args:
        labels: Fixed labels identifying this counter inside a CounterMap.
    """

    def __init__(self, labels: dict[str, str] | None = None) -> None:
        self._value = 0
        self._labels = dict(labels or {})
        self._lock = threading.Lock()

    @property
    def labels(self) -> dict[str, str]:
        return dict(self._labels)

    def value(self) -> int:
        with self._lock:
            return self._value

    def increment(self) -> None:
        self.add(1)

    def add(self, delta: int) -> None:
        """Add a non-negative delta.

        Raises:
            ValueError: If delta is negative.
        """
        if delta < 0:
            raise ValueError("counter delta must be non-negative")
        with self._lock:
            self._value += delta

    def __repr__(self) -> str:
        return f"Counter(value={self.value()}, labels={self._labels})"


class CounterMap:
    """Counters dimensioned by a fixed tuple of label keys.

    Example:
        ```python
        errors = CounterMap("status")
        errors.get("500").increment()
        ```
    """

    def __init__(self, *label_keys: str) -> None:
        self.label_keys: tuple[str, ...] = tuple(label_keys)
        self._counters: dict[tuple[str, ...], Counter] = {}
        self._lock = threading.Lock()

    def get(self, *label_values: str) -> Counter:
        """Return the counter for the given label values, creating it if new.

        Raises:
            ValueError: If the number of values does not match label_keys.
        """
        if len(label_values) != len(self.label_keys):
            raise ValueError(
                f"expected {len(self.label_keys)} label values, got {len(label_values)}"
            )
        with self._lock:
            counter = self._counters.get(label_values)
            if counter is None:
                counter = Counter(dict(zip(self.label_keys, label_values)))
                self._counters[label_values] = counter
            return counter

    def entries(self) -> list[Counter]:
        """Snapshot of the current counters, safe to iterate while others write."""
        with self._lock:
            return list(self._counters.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._counters)


class Series(NamedTuple):
    """A named telemetry value as seen by a sink."""

    name: str
    value: object


class Registry:
    """Named counters and counter maps owned by one nozzle instance."""

    def __init__(self) -> None:
        self._series: dict[str, object] = {}
        self._lock = threading.Lock()

    def register(self, name: str, value: object) -> None:
        """Register a value under a name.

        Raises:
            ValueError: If the name is already registered.
        """
        with self._lock:
            if name in self._series:
                raise ValueError(f"series {name!r} already registered")
            self._series[name] = value

    def counter(self, name: str) -> Counter:
        counter = Counter()
        self.register(name, counter)
        return counter

    def counter_map(self, name: str, *label_keys: str) -> CounterMap:
        counter_map = CounterMap(*label_keys)
        self.register(name, counter_map)
        return counter_map

    def snapshot(self) -> list[Series]:
        with self._lock:
            return [Series(name, value) for name, value in sorted(self._series.items())]


class PeriodicReporter:
    """Drives a telemetry sink from a background thread.

    The sink is initialised once on start, then receives a registry
    snapshot every ``interval`` seconds and a final one on stop.
    """

    def __init__(
        self, registry: Registry, sink: "TelemetrySinkPort", interval: float
    ) -> None:
        if interval <= 0:
            raise ValueError("report interval must be positive")
        self._registry = registry
        self._sink = sink
        self._interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        if self._thread is not None:
            raise RuntimeError("reporter already started")
        self._sink.init(self._registry.snapshot())
        self._thread = threading.Thread(
            target=self._run, name="telemetry-reporter", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        if self._thread is None:
            return
        self._stop.set()
        self._thread.join()
        self._thread = None
        self._report_once()

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            self._report_once()

    def _report_once(self) -> None:
        try:
            self._sink.report(self._registry.snapshot())
        except Exception:
            logger.exception("telemetry report failed")

