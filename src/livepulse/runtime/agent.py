"""Agent runtime: wires ingestion, buffering and the live metrics client.

One event loop runs both the ingestion HTTP server and the subscription
client loop. The metric buffer is the only state they share.
"""

import asyncio

import uvicorn
from fastapi import FastAPI

from livepulse import __version__
from livepulse.adapters.buffer.ring_buffer import RingBufferMetricBuffer
from livepulse.adapters.frameworks.fastapi import create_ingestion_router
from livepulse.adapters.performance.psutil_source import PsutilPerformanceSource
from livepulse.adapters.transport.httpx_transport import HttpxLiveTransport
from livepulse.config import Settings
from livepulse.core.logs import get_logger
from livepulse.core.performance import PerformanceSampler
from livepulse.core.ports import MetricBufferPort, PerformanceSourcePort
from livepulse.core.subscription import SubscriptionClient, create_identity

logger = get_logger(__name__)


def create_app(buffer: MetricBufferPort) -> FastAPI:
    """Create the ingestion FastAPI application."""
    app = FastAPI(title="livepulse", version=__version__)
    app.include_router(create_ingestion_router(buffer))
    return app


class Agent:
    """A configured livepulse agent, ready to serve.

    Args:
        settings: Startup configuration.
        transport: Backend transport; an httpx transport for the configured
            live endpoint is created when omitted.
        source: Host performance source; psutil when omitted.
    """

    def __init__(
        self,
        settings: Settings,
        transport: HttpxLiveTransport | None = None,
        source: PerformanceSourcePort | None = None,
    ) -> None:
        key = settings.connection.instrumentation_key
        self.settings = settings
        self.buffer = RingBufferMetricBuffer(settings.buffer_size)
        self.transport = transport or HttpxLiveTransport(
            settings.connection.live_endpoint, key
        )
        self.client = SubscriptionClient(
            instrumentation_key=key,
            transport=self.transport,
            sampler=PerformanceSampler(source or PsutilPerformanceSource()),
            buffer=self.buffer,
            identity=create_identity(settings.instance_id),
        )
        self.app = create_app(self.buffer)

    async def serve(self, host: str = "0.0.0.0") -> None:
        """Run the ingestion server and client loop until the server exits."""
        config = uvicorn.Config(
            self.app,
            host=host,
            port=self.settings.port,
            log_config=None,
            lifespan="off",
        )
        server = uvicorn.Server(config)
        client_task = asyncio.create_task(self.client.run())
        logger.info(
            "Serving ingestion on %s:%d, live endpoint %s",
            host,
            self.settings.port,
            self.settings.connection.live_endpoint,
        )
        try:
            await server.serve()
        finally:
            self.client.stop()
            await client_task
            await self.transport.aclose()
