"""BDD step definitions for metric reporting features."""

from dataclasses import dataclass, field

import pytest
from pytest_bdd import given, parsers, then, when

from stackdriver_nozzle.adapters.in_memory import InMemoryMetricClient
from stackdriver_nozzle.adapters.telemetry_sink import MetricReporter
from stackdriver_nozzle.core.telemetry import CounterMap, Registry
from tests.conftest import FakeClock


@dataclass
class ReportingScenarioContext:
    """Shared state between steps in a reporting scenario."""

    registry: Registry = field(default_factory=Registry)
    client: InMemoryMetricClient | None = None
    reporter: MetricReporter | None = None


@pytest.fixture
def ctx() -> ReportingScenarioContext:
    """Fresh scenario context for each test."""
    return ReportingScenarioContext()


# === Background Steps ===
@given("an in-memory metric client")
def step_metric_client(ctx: ReportingScenarioContext) -> None:
    ctx.client = InMemoryMetricClient()


@given(parsers.parse('a metric reporter for project "{project}" with foundation "{foundation}"'))
def step_reporter(ctx: ReportingScenarioContext, project: str, foundation: str) -> None:
    ctx.reporter = MetricReporter(ctx.client, project, "sub", foundation, clock=FakeClock())


# === Given ===
@given(parsers.parse('a counter "{name}" with value {value:d}'))
def step_counter(ctx: ReportingScenarioContext, name: str, value: int) -> None:
    ctx.registry.counter(name).add(value)


@given(
    parsers.parse(
        'a counter map "{name}" keyed by "{key}" with entries A={a:d} and B={b:d}'
    )
)
def step_counter_map_ab(
    ctx: ReportingScenarioContext, name: str, key: str, a: int, b: int
) -> None:
    counter_map = ctx.registry.counter_map(name, key)
    counter_map.get("A").add(a)
    counter_map.get("B").add(b)


@given(parsers.parse('a counter map "{name}" keyed by "{key}" with {count:d} entries'))
def step_counter_map_n(ctx: ReportingScenarioContext, name: str, key: str, count: int) -> None:
    counter_map: CounterMap = ctx.registry.counter_map(name, key)
    for i in range(count):
        counter_map.get(str(i)).increment()


@given("the first post fails")
def step_first_post_fails(ctx: ReportingScenarioContext) -> None:
    ctx.client.fail_post_calls = {0}


# === When ===
@when("the snapshot is reported")
def step_report(ctx: ReportingScenarioContext) -> None:
    ctx.reporter.report(ctx.registry.snapshot())


@when("descriptors are registered twice")
def step_register_twice(ctx: ReportingScenarioContext) -> None:
    ctx.reporter.init(ctx.registry.snapshot())
    ctx.reporter.init(ctx.registry.snapshot())


# === Then ===
@then(parsers.parse("{count:d} request is posted"))
def step_request_count(ctx: ReportingScenarioContext, count: int) -> None:
    assert len(ctx.client.posted) == count


@then(parsers.parse("{count:d} points are posted in total"))
def step_point_count(ctx: ReportingScenarioContext, count: int) -> None:
    assert sum(len(r.time_series) for r in ctx.client.posted) == count


@then(parsers.parse('every point carries the label "{key}" = "{value}"'))
def step_every_point_label(ctx: ReportingScenarioContext, key: str, value: str) -> None:
    for request in ctx.client.posted:
        for point in request.time_series:
            assert point.labels[key] == value


@then(parsers.parse('the posted batch sizes are "{sizes}"'))
def step_batch_sizes(ctx: ReportingScenarioContext, sizes: str) -> None:
    expected = [int(s) for s in sizes.split(",")]
    assert [len(r.time_series) for r in ctx.client.posted] == expected


@then(parsers.parse("{count:d} descriptor creation request is issued"))
def step_creation_count(ctx: ReportingScenarioContext, count: int) -> None:
    assert len(ctx.client.create_requests) == count
