"""Shared test fixtures for all test modules."""

from collections.abc import Callable

import httpx
import pytest

from livepulse.adapters.buffer.in_memory import InMemoryMetricBuffer
from livepulse.core.models import StreamIdentity
from livepulse.core.performance import PerformanceSampler
from livepulse.core.ports import LiveTransportPort
from livepulse.core.subscription import SubscriptionClient
from tests.helpers import (
    FIXED_NOW,
    TEST_KEY,
    FakeLiveTransport,
    FakePerformanceSource,
    MockBackend,
)


@pytest.fixture
def identity() -> StreamIdentity:
    """A fixed stream identity."""
    return StreamIdentity(
        hostname="test-host",
        instance_id="test-instance",
        stream_id="2f59e890b9ce4546915881454d62c7f7",
    )


@pytest.fixture
def buffer() -> InMemoryMetricBuffer:
    """Fixture providing an empty metric buffer."""
    return InMemoryMetricBuffer()


@pytest.fixture
def performance_source() -> FakePerformanceSource:
    return FakePerformanceSource()


@pytest.fixture
def fake_transport() -> FakeLiveTransport:
    """Transport fake answering 'not subscribed' unless told otherwise."""
    return FakeLiveTransport()


@pytest.fixture
def mock_backend() -> MockBackend:
    """Backend served through httpx.MockTransport."""
    return MockBackend()


@pytest.fixture
def make_client(
    identity: StreamIdentity,
    buffer: InMemoryMetricBuffer,
    performance_source: FakePerformanceSource,
) -> Callable[..., SubscriptionClient]:
    """Factory fixture for SubscriptionClient wired to test doubles.

    Usage:
        def test_something(make_client, fake_transport):
            client = make_client(fake_transport)
    """

    def _make(
        transport: LiveTransportPort,
        ping_interval: float = 5.0,
        post_interval: float = 1.0,
    ) -> SubscriptionClient:
        return SubscriptionClient(
            instrumentation_key=TEST_KEY,
            transport=transport,
            sampler=PerformanceSampler(performance_source),
            buffer=buffer,
            identity=identity,
            ping_interval=ping_interval,
            post_interval=post_interval,
            clock=lambda: FIXED_NOW,
        )

    return _make


@pytest.fixture
def asgi_test_client():
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            app = create_ingestion_app(buffer)
            async with asgi_test_client(app) as client:
                response = await client.get("/status")
    """

    def _get_client(app):
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client
