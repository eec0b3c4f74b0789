"""Transport adapters implementing LiveTransportPort."""

from livepulse.adapters.transport.httpx_transport import HttpxLiveTransport

__all__ = ["HttpxLiveTransport"]
