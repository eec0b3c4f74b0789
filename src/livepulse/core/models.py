"""Core domain models for live metrics telemetry."""

import enum
from dataclasses import dataclass, field
from datetime import timedelta
from typing import ClassVar


class ClientState(enum.Enum):
    """Subscription state of the live metrics client."""

    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


@dataclass(frozen=True)
class QuickPulseMetric:
    """A single metric as sent to the live metrics backend.

    Attributes:
        name: Counter path or externally submitted metric name.
        value: String-encoded numeric value.
        weight: Number of observations the value represents.
    """

    name: str
    value: str
    weight: int = 1

    def to_wire(self) -> dict[str, str | int]:
        """Return the PascalCase mapping used in heartbeat bodies."""
        return {"Name": self.name, "Value": self.value, "Weight": self.weight}


def format_value(value: float) -> str:
    """Render a number the way the backend expects metric values.

    Integral values drop the trailing ``.0`` so byte counts stay exact.
    """
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclass(frozen=True)
class MetricItem:
    """One aggregated metric inside a MetricData envelope.

    Attributes:
        name: Metric name, passed through to the backend unchanged.
        min: Smallest observed value.
        max: Largest observed value.
        count: Number of observations.
        value: Aggregated value, when the producer sends one.
    """

    name: str
    min: float
    max: float
    count: int
    value: float | None = None

    def to_metric(self) -> QuickPulseMetric:
        """Convert to the outgoing metric representation."""
        value = self.value if self.value is not None else self.max
        return QuickPulseMetric(
            name=self.name,
            value=format_value(value),
            weight=max(self.count, 1),
        )


@dataclass(frozen=True)
class RequestRecord:
    """A RequestData envelope: one completed request seen by the producer."""

    base_type: ClassVar[str] = "RequestData"

    duration: timedelta
    name: str
    url: str
    id: str
    response_code: str
    success: bool

    def to_metrics(self) -> list[QuickPulseMetric]:
        """Requests feed no buffered metrics; see PerformanceSampler."""
        return []


@dataclass(frozen=True)
class MetricRecord:
    """A MetricData envelope: a batch of aggregated metrics."""

    base_type: ClassVar[str] = "MetricData"

    metrics: tuple[MetricItem, ...] = ()

    def to_metrics(self) -> list[QuickPulseMetric]:
        return [item.to_metric() for item in self.metrics]


TelemetryEnvelope = RequestRecord | MetricRecord


@dataclass(frozen=True)
class StreamIdentity:
    """Identity of this agent, stable for the lifetime of the process.

    Attributes:
        hostname: Machine name reported to the backend.
        instance_id: Instance name (WEBSITE_INSTANCE_ID or the hostname).
        stream_id: Random 128-bit token as 32 hex characters.
    """

    hostname: str
    instance_id: str
    stream_id: str


@dataclass(frozen=True)
class HeartbeatRequest:
    """Body of a ping or post request to the live metrics backend."""

    role_name: str
    instance: str
    instrumentation_key: str
    invariant_version: str
    machine_name: str
    stream_id: str
    timestamp: str
    version: str
    metrics: list[QuickPulseMetric] = field(default_factory=list)

    def to_wire(self) -> dict[str, object]:
        """Return the PascalCase mapping the backend expects.

        ``Documents`` is always null.
        """
        return {
            "RoleName": self.role_name,
            "Instance": self.instance,
            "InstrumentationKey": self.instrumentation_key,
            "InvariantVersion": self.invariant_version,
            "MachineName": self.machine_name,
            "StreamId": self.stream_id,
            "Timestamp": self.timestamp,
            "Version": self.version,
            "Metrics": [metric.to_wire() for metric in self.metrics],
            "Documents": None,
        }
