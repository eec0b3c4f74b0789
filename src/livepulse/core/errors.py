"""Error taxonomy for livepulse.

Only ConfigurationError is allowed to stop the process. Every other error
is caught at the component boundary, logged, and recovered from.
"""


class LivePulseError(Exception):
    """Base class for all livepulse errors."""


class DecodeError(LivePulseError):
    """An ingestion line is not a valid telemetry envelope.

    Attributes:
        reason: Short description of what was wrong.
        line: The offending input, for logging.
    """

    def __init__(self, reason: str, line: str = "") -> None:
        super().__init__(reason)
        self.reason = reason
        self.line = line


class TransportError(LivePulseError):
    """The backend could not be reached or answered with a non-success status.

    Attributes:
        status_code: HTTP status when a response was received, else None.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ProtocolError(LivePulseError):
    """A backend response is missing the structure the protocol expects."""


class ConfigurationError(LivePulseError):
    """Startup configuration is missing or invalid."""
