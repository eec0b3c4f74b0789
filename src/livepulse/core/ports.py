"""Port interfaces for livepulse adapters.

These protocols define the contracts that adapters must implement.
The core domain depends only on these interfaces, not concrete implementations.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from livepulse.core.models import QuickPulseMetric


@runtime_checkable
class MetricBufferPort(Protocol):
    """Port for the buffer of externally submitted metrics.

    Adapters implementing this protocol must make ``add`` and ``drain``
    mutually exclusive.
    Examples: InMemoryMetricBuffer, RingBufferMetricBuffer.
    """

    def add(self, metric: QuickPulseMetric) -> None:
        """Append a metric, preserving submission order."""
        ...

    def drain(self) -> list[QuickPulseMetric]:
        """Return all pending metrics and leave the buffer empty."""
        ...


@runtime_checkable
class PerformanceSourcePort(Protocol):
    """Port for host resource readings.

    Examples: PsutilPerformanceSource.
    """

    def cpu_percent(self) -> float:
        """Return current total processor usage in percent."""
        ...

    def committed_bytes(self) -> int:
        """Return current committed memory in bytes."""
        ...


@dataclass(frozen=True)
class LiveRequest:
    """A fully built request for one backend action.

    Attributes:
        action: Either "ping" or "post".
        headers: Request headers.
        body: Serialized JSON body.
    """

    action: str
    headers: Mapping[str, str]
    body: bytes


@dataclass(frozen=True)
class LiveResponse:
    """The parts of a backend response the client acts on.

    Attributes:
        status_code: HTTP status.
        headers: Response headers, keys lower-cased.
    """

    status_code: int
    headers: Mapping[str, str] = field(default_factory=dict)


@runtime_checkable
class LiveTransportPort(Protocol):
    """Port for sending requests to the live metrics backend.

    Implementations raise TransportError when no response was received.
    Examples: HttpxLiveTransport.
    """

    async def send(self, request: LiveRequest) -> LiveResponse:
        """Send a request and return the backend's response."""
        ...
