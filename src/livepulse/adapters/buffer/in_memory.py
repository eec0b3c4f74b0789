"""In-memory metric buffer adapter."""

import threading

from livepulse.core.models import QuickPulseMetric


class InMemoryMetricBuffer:
    """Unbounded implementation of MetricBufferPort.

    Stores metrics in a list guarded by a lock. Suitable for testing and
    for producers whose volume is known to stay small between posts.
    """

    def __init__(self) -> None:
        self._metrics: list[QuickPulseMetric] = []
        self._lock = threading.Lock()

    def add(self, metric: QuickPulseMetric) -> None:
        """Append a metric to the buffer."""
        with self._lock:
            self._metrics.append(metric)

    def drain(self) -> list[QuickPulseMetric]:
        """Return all buffered metrics and empty the buffer."""
        with self._lock:
            drained, self._metrics = self._metrics, []
        return drained

    def __len__(self) -> int:
        with self._lock:
            return len(self._metrics)
