"""Ring buffer metric buffer adapter.

Provides bounded in-memory buffering that automatically evicts the oldest
metrics when the buffer is full. Keeps memory predictable when nobody is
subscribed and posts are not draining the buffer.
"""

import threading
from collections import deque

from livepulse.core.logs import get_logger
from livepulse.core.models import QuickPulseMetric

logger = get_logger(__name__)

DEFAULT_MAX_SIZE = 10_000


class RingBufferMetricBuffer:
    """Ring buffer implementation of MetricBufferPort.

    Stores metrics in a fixed-size circular buffer. When the buffer is
    full, the oldest metric is dropped to make room for the new one.

    Args:
        max_size: Maximum number of metrics to hold.
    """

    def __init__(self, max_size: int = DEFAULT_MAX_SIZE) -> None:
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self._buffer: deque[QuickPulseMetric] = deque(maxlen=max_size)
        self._lock = threading.Lock()
        self._dropped = 0

    @property
    def max_size(self) -> int:
        return self._buffer.maxlen or 0

    @property
    def dropped(self) -> int:
        """Number of metrics evicted since creation."""
        return self._dropped

    def add(self, metric: QuickPulseMetric) -> None:
        """Append a metric, evicting the oldest one when full."""
        with self._lock:
            if len(self._buffer) == self._buffer.maxlen:
                self._dropped += 1
                if self._dropped == 1 or self._dropped % 1000 == 0:
                    logger.warning(
                        "Metric buffer full (%d), dropped %d metrics so far",
                        self.max_size,
                        self._dropped,
                    )
            self._buffer.append(metric)

    def drain(self) -> list[QuickPulseMetric]:
        """Return all buffered metrics, oldest first, and empty the buffer."""
        with self._lock:
            drained = list(self._buffer)
            self._buffer.clear()
        return drained

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)
