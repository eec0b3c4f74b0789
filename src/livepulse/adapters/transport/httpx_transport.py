"""httpx adapter for the live metrics backend.

Sends ping and post requests to::

    {endpoint}/QuickPulseService.svc/{action}?ikey={instrumentation_key}
"""

import httpx

from livepulse.core.errors import TransportError
from livepulse.core.logs import get_logger
from livepulse.core.ports import LiveRequest, LiveResponse

logger = get_logger(__name__)

DEFAULT_TIMEOUT_SECONDS = 10.0

_SERVICE_PATH = "QuickPulseService.svc"


class HttpxLiveTransport:
    """LiveTransportPort implementation using an httpx.AsyncClient.

    Args:
        endpoint: Live endpoint base URL.
        instrumentation_key: Passed as the ``ikey`` query parameter.
        client: Client to send with; one is created (and owned) when omitted.
        timeout: Request timeout in seconds for an owned client.
    """

    def __init__(
        self,
        endpoint: str,
        instrumentation_key: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._endpoint = endpoint.rstrip("/")
        self._instrumentation_key = instrumentation_key
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    def url_for(self, action: str) -> str:
        """Return the URL for an action, without the query string."""
        return f"{self._endpoint}/{_SERVICE_PATH}/{action}"

    async def send(self, request: LiveRequest) -> LiveResponse:
        """POST the request and return status and lower-cased headers.

        Raises:
            TransportError: On connection errors, timeouts, or other
                httpx failures before a response was read.
        """
        try:
            response = await self._client.post(
                self.url_for(request.action),
                params={"ikey": self._instrumentation_key},
                headers=dict(request.headers),
                content=request.body,
            )
        except httpx.HTTPError as e:
            raise TransportError(f"{type(e).__name__}: {e}") from e

        logger.debug(
            "Live metrics %s -> %d %s",
            request.action,
            response.status_code,
            dict(response.headers),
        )
        return LiveResponse(
            status_code=response.status_code,
            headers={k.lower(): v for k, v in response.headers.items()},
        )

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()
