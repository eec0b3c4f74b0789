"""Metric buffer adapters implementing MetricBufferPort."""

from livepulse.adapters.buffer.in_memory import InMemoryMetricBuffer
from livepulse.adapters.buffer.ring_buffer import RingBufferMetricBuffer

__all__ = [
    "InMemoryMetricBuffer",
    "RingBufferMetricBuffer",
]
