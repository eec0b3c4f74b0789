"""psutil-backed host resource readings."""

import psutil


class PsutilPerformanceSource:
    """PerformanceSourcePort implementation backed by psutil.

    ``cpu_percent`` is non-blocking: psutil compares against the previous
    call, so the first reading after construction is primed here.
    """

    def __init__(self) -> None:
        psutil.cpu_percent(interval=None)

    def cpu_percent(self) -> float:
        """Return system-wide CPU usage since the previous call."""
        return float(psutil.cpu_percent(interval=None))

    def committed_bytes(self) -> int:
        """Return memory in use, in bytes."""
        return int(psutil.virtual_memory().used)
