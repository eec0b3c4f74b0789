"""Performance source adapters implementing PerformanceSourcePort."""

from livepulse.adapters.performance.psutil_source import PsutilPerformanceSource

__all__ = ["PsutilPerformanceSource"]
