"""BDD step definitions for the live metrics subscription feature."""

import asyncio
import json
from dataclasses import dataclass, field

import pytest
from pytest_bdd import given, parsers, then, when

from livepulse.adapters.buffer.in_memory import InMemoryMetricBuffer
from livepulse.core.models import ClientState, QuickPulseMetric, StreamIdentity
from livepulse.core.performance import PerformanceSampler
from livepulse.core.subscription import SubscriptionClient
from tests.helpers import (
    FIXED_NOW,
    TEST_KEY,
    FakeLiveTransport,
    FakePerformanceSource,
    subscribed_response,
)


@dataclass
class SubscriptionScenarioContext:
    """Shared state between steps in a subscription scenario."""

    transport: FakeLiveTransport = field(default_factory=FakeLiveTransport)
    buffer: InMemoryMetricBuffer = field(default_factory=InMemoryMetricBuffer)
    client: SubscriptionClient | None = None


@pytest.fixture
def ctx() -> SubscriptionScenarioContext:
    """Fresh scenario context for each test."""
    return SubscriptionScenarioContext()


def _tick(ctx: SubscriptionScenarioContext) -> None:
    assert ctx.client is not None
    asyncio.run(ctx.client.tick())


# === Background ===
@given("a live metrics client that has never contacted the backend")
def step_new_client(ctx: SubscriptionScenarioContext) -> None:
    ctx.client = SubscriptionClient(
        instrumentation_key=TEST_KEY,
        transport=ctx.transport,
        sampler=PerformanceSampler(FakePerformanceSource()),
        buffer=ctx.buffer,
        identity=StreamIdentity("bdd-host", "bdd-instance", "0" * 32),
        clock=lambda: FIXED_NOW,
    )


# === Backend behaviour ===
@given(parsers.parse('the backend answers "{value}"'))
def step_backend_answers(ctx: SubscriptionScenarioContext, value: str) -> None:
    ctx.transport.default = subscribed_response(value)


@given("the backend omits the subscription header")
def step_backend_omits_header(ctx: SubscriptionScenarioContext) -> None:
    ctx.transport.default = subscribed_response(None)


@given("the backend is unreachable")
def step_backend_unreachable(ctx: SubscriptionScenarioContext) -> None:
    ctx.transport.fail("connection refused")


@given(parsers.parse("the backend answers with HTTP {status:d}"))
def step_backend_status(ctx: SubscriptionScenarioContext, status: int) -> None:
    ctx.transport.respond(subscribed_response("true", status=status))


@given(parsers.parse('a metric "{name}" with value "{value}" is buffered'))
def step_metric_buffered(
    ctx: SubscriptionScenarioContext, name: str, value: str
) -> None:
    ctx.buffer.add(QuickPulseMetric(name=name, value=value))


# === Ticks ===
@given("the client ticks")
def step_given_tick(ctx: SubscriptionScenarioContext) -> None:
    _tick(ctx)


@when("the client ticks")
def step_when_tick(ctx: SubscriptionScenarioContext) -> None:
    _tick(ctx)


# === Outcomes ===
@then(parsers.parse("the last request was a {action}"))
def step_last_action(ctx: SubscriptionScenarioContext, action: str) -> None:
    assert ctx.transport.actions[-1] == action


@then(parsers.parse("the client is {state}"))
def step_client_state(ctx: SubscriptionScenarioContext, state: str) -> None:
    assert ctx.client is not None
    assert ctx.client.state is ClientState(state)


@then(parsers.parse("the next tick is in {seconds:d} seconds"))
def step_next_interval(ctx: SubscriptionScenarioContext, seconds: int) -> None:
    assert ctx.client is not None
    assert ctx.client.interval == seconds


@then(parsers.parse('the last post contains metric "{name}" with value "{value}"'))
def step_post_contains(
    ctx: SubscriptionScenarioContext, name: str, value: str
) -> None:
    body = json.loads(ctx.transport.requests[-1].body)
    assert {"Name": name, "Value": value, "Weight": 1} in body[0]["Metrics"]


@then("the metric buffer is empty")
def step_buffer_empty(ctx: SubscriptionScenarioContext) -> None:
    assert len(ctx.buffer) == 0
