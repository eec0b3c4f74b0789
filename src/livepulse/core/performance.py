"""Performance counter sampling for live metrics posts."""

import enum

from livepulse.core.logs import get_logger
from livepulse.core.models import QuickPulseMetric, format_value
from livepulse.core.ports import PerformanceSourcePort

logger = get_logger(__name__)


class CounterName(enum.Enum):
    """Performance counters reported to the backend.

    Values are the counter paths of the wire protocol and must not change.
    """

    TOTAL_PROCESSOR_TIME = r"\Processor(_Total)\% Processor Time"
    MEMORY_COMMITTED_BYTES = r"\Memory\Committed Bytes"
    REQUESTS_PER_SECOND = r"\ApplicationInsights\Requests/Sec"
    FAILED_REQUESTS_PER_SECOND = r"\ApplicationInsights\Requests Failed/Sec"
    DEPENDENCY_CALLS_PER_SECOND = r"\ApplicationInsights\Dependency Calls/Sec"
    FAILED_DEPENDENCY_CALLS_PER_SECOND = (
        r"\ApplicationInsights\Dependency Calls Failed/Sec"
    )
    EXCEPTIONS_PER_SECOND = r"\ApplicationInsights\Exceptions/Sec"


PerformanceSample = dict[CounterName, str]

# No request pipeline of our own exists to measure these against
_PLACEHOLDER_COUNTERS = (
    CounterName.REQUESTS_PER_SECOND,
    CounterName.FAILED_REQUESTS_PER_SECOND,
    CounterName.DEPENDENCY_CALLS_PER_SECOND,
    CounterName.FAILED_DEPENDENCY_CALLS_PER_SECOND,
    CounterName.EXCEPTIONS_PER_SECOND,
)


class PerformanceSampler:
    """Captures point-in-time host counters from a PerformanceSourcePort.

    Every call to ``sample`` re-queries the source. When the source fails,
    the last good reading is reported instead (zeros before the first one).

    Args:
        source: Adapter returning current CPU percent and committed bytes.
    """

    def __init__(self, source: PerformanceSourcePort) -> None:
        self._source = source
        self._last_cpu = "0"
        self._last_memory = "0"

    def sample(self) -> PerformanceSample:
        """Return a fresh sample of every counter in CounterName."""
        try:
            self._last_cpu = format_value(self._source.cpu_percent())
        except Exception:
            logger.warning("CPU usage unavailable, reusing last value", exc_info=True)
        try:
            self._last_memory = format_value(self._source.committed_bytes())
        except Exception:
            logger.warning(
                "Memory usage unavailable, reusing last value", exc_info=True
            )

        sample: PerformanceSample = {
            CounterName.TOTAL_PROCESSOR_TIME: self._last_cpu,
            CounterName.MEMORY_COMMITTED_BYTES: self._last_memory,
        }
        for counter in _PLACEHOLDER_COUNTERS:
            sample[counter] = "0"
        return sample

    def collect(self) -> list[QuickPulseMetric]:
        """Sample and convert to outgoing metrics, in CounterName order."""
        sample = self.sample()
        return [
            QuickPulseMetric(name=counter.value, value=sample[counter])
            for counter in CounterName
        ]
