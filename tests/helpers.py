"""Shared fakes for livepulse tests."""

import json
from collections import deque
from dataclasses import dataclass, field
from typing import Any

import httpx

from livepulse.adapters.transport.httpx_transport import HttpxLiveTransport
from livepulse.core.errors import TransportError
from livepulse.core.ports import LiveRequest, LiveResponse

FIXED_NOW = 1700062129.5
TEST_KEY = "c959f435-704c-41eb-a6e0-56c88fbbc774"
TEST_ENDPOINT = "https://live.test"


def subscribed_response(value: str | None, status: int = 200) -> LiveResponse:
    """Build a LiveResponse with the given subscription header value."""
    headers = {} if value is None else {"x-ms-qps-subscribed": value}
    return LiveResponse(status_code=status, headers=headers)


class FakePerformanceSource:
    """PerformanceSourcePort fake returning fixed values or raising."""

    def __init__(self, cpu: float = 12.5, memory: int = 7916893184) -> None:
        self.cpu: float | Exception = cpu
        self.memory: int | Exception = memory
        self.calls = 0

    def cpu_percent(self) -> float:
        self.calls += 1
        if isinstance(self.cpu, Exception):
            raise self.cpu
        return self.cpu

    def committed_bytes(self) -> int:
        if isinstance(self.memory, Exception):
            raise self.memory
        return self.memory


class FakeLiveTransport:
    """LiveTransportPort fake that records requests and replays responses.

    Queued items are returned in order; an exception item is raised instead.
    When the queue is empty, ``default`` is returned.
    """

    def __init__(self, default: LiveResponse | None = None) -> None:
        self.requests: list[LiveRequest] = []
        self.queue: deque[LiveResponse | Exception] = deque()
        self.default = default or subscribed_response("false")

    def respond(self, response: LiveResponse | Exception) -> None:
        self.queue.append(response)

    def fail(self, message: str = "connection refused") -> None:
        self.queue.append(TransportError(message))

    async def send(self, request: LiveRequest) -> LiveResponse:
        self.requests.append(request)
        item = self.queue.popleft() if self.queue else self.default
        if isinstance(item, Exception):
            raise item
        return item

    @property
    def actions(self) -> list[str]:
        return [r.action for r in self.requests]

    def last_body(self) -> Any:
        return json.loads(self.requests[-1].body)


@dataclass
class RecordedRequest:
    """A request seen by MockBackend."""

    action: str
    url: httpx.URL
    headers: httpx.Headers
    body: Any


@dataclass
class MockBackend:
    """Live metrics backend served through httpx.MockTransport."""

    requests: list[RecordedRequest] = field(default_factory=list)
    responses: deque[httpx.Response | Exception] = field(default_factory=deque)
    subscribed: str | None = "false"

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(
            RecordedRequest(
                action=request.url.path.rsplit("/", 1)[-1],
                url=request.url,
                headers=request.headers,
                body=json.loads(request.content),
            )
        )
        if self.responses:
            item = self.responses.popleft()
            if isinstance(item, Exception):
                raise item
            return item
        headers = {} if self.subscribed is None else {
            "x-ms-qps-subscribed": self.subscribed
        }
        return httpx.Response(200, headers=headers)

    def transport(
        self, key: str = TEST_KEY, endpoint: str = TEST_ENDPOINT
    ) -> HttpxLiveTransport:
        client = httpx.AsyncClient(transport=httpx.MockTransport(self.handler))
        return HttpxLiveTransport(endpoint, key, client=client)
