"""Subscription state machine for the live metrics backend.

While nobody is watching, the client sends a lightweight ping every
``ping_interval`` seconds. Once the backend answers with
``x-ms-qps-subscribed: true`` it switches to posting performance counters
and buffered metrics every ``post_interval`` seconds, until a response
says the subscription ended.
"""

import asyncio
import socket
import time
import uuid
from collections.abc import Callable

from livepulse import __version__
from livepulse.core.encoding.heartbeat import (
    date_marker,
    encode_ping,
    encode_post,
    is_subscribed,
    ping_headers,
    post_headers,
)
from livepulse.core.errors import ProtocolError, TransportError
from livepulse.core.logs import get_logger, log_exception
from livepulse.core.models import (
    ClientState,
    HeartbeatRequest,
    QuickPulseMetric,
    StreamIdentity,
)
from livepulse.core.performance import PerformanceSampler
from livepulse.core.ports import (
    LiveRequest,
    LiveTransportPort,
    MetricBufferPort,
)

logger = get_logger(__name__)

PING_INTERVAL_SECONDS = 5.0
POST_INTERVAL_SECONDS = 1.0

ROLE_NAME = "Web"
INVARIANT_VERSION = "1"
SDK_VERSION = f"python:{__version__}"


def create_identity(instance_id: str | None = None) -> StreamIdentity:
    """Create the identity this process reports for its whole lifetime.

    Args:
        instance_id: Instance name; defaults to the hostname.
    """
    hostname = socket.gethostname() or "unknown"
    return StreamIdentity(
        hostname=hostname,
        instance_id=instance_id or hostname,
        stream_id=uuid.uuid4().hex,
    )


# @tra: Core.Subscription.StateMachine
class SubscriptionClient:
    """Drives the ping/post protocol against the live metrics backend.

    The client owns its state and interval; only ``tick`` changes them,
    and only from a successful response.

    Args:
        instrumentation_key: Opaque key identifying the telemetry resource.
        transport: Adapter that sends requests to the backend.
        sampler: Source of performance counters for posts.
        buffer: Externally submitted metrics awaiting the next post.
        identity: Stream identity; generated when omitted.
        ping_interval: Seconds between pings while disconnected.
        post_interval: Seconds between posts while connected.
        clock: Returns the current Unix time in seconds.
    """

    def __init__(
        self,
        instrumentation_key: str,
        transport: LiveTransportPort,
        sampler: PerformanceSampler,
        buffer: MetricBufferPort,
        identity: StreamIdentity | None = None,
        ping_interval: float = PING_INTERVAL_SECONDS,
        post_interval: float = POST_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._instrumentation_key = instrumentation_key
        self._transport = transport
        self._sampler = sampler
        self._buffer = buffer
        self._identity = identity or create_identity()
        self._ping_interval = ping_interval
        self._post_interval = post_interval
        self._clock = clock
        self._state = ClientState.DISCONNECTED
        self._stopping = asyncio.Event()

    @property
    def state(self) -> ClientState:
        return self._state

    @property
    def identity(self) -> StreamIdentity:
        return self._identity

    @property
    def interval(self) -> float:
        """Seconds to wait before the next tick, given the current state."""
        if self._state is ClientState.CONNECTED:
            return self._post_interval
        return self._ping_interval

    def build_heartbeat(
        self, metrics: list[QuickPulseMetric], now: float
    ) -> HeartbeatRequest:
        """Build a heartbeat body stamped with ``now``."""
        return HeartbeatRequest(
            role_name=ROLE_NAME,
            instance=self._identity.instance_id,
            instrumentation_key=self._instrumentation_key,
            invariant_version=INVARIANT_VERSION,
            machine_name=self._identity.hostname,
            stream_id=self._identity.stream_id,
            timestamp=date_marker(now),
            version=SDK_VERSION,
            metrics=metrics,
        )

    def _build_request(self) -> LiveRequest:
        now = self._clock()
        if self._state is ClientState.DISCONNECTED:
            # @tra: Core.Subscription.PingDoesNotDrain
            heartbeat = self.build_heartbeat([], now)
            return LiveRequest(
                action="ping",
                headers=ping_headers(heartbeat, now),
                body=encode_ping(heartbeat),
            )
        # Names may repeat across sources; no de-duplication
        metrics = self._sampler.collect() + self._buffer.drain()
        heartbeat = self.build_heartbeat(metrics, now)
        return LiveRequest(
            action="post",
            headers=post_headers(now),
            body=encode_post(heartbeat),
        )

    async def tick(self) -> ClientState:
        """Perform one ping or post exchange.

        Transport failures leave the state untouched; a response without
        the subscription header counts as not subscribed.

        Returns:
            The state after the exchange.
        """
        request = self._build_request()
        try:
            response = await self._transport.send(request)
            if not 200 <= response.status_code < 300:
                raise TransportError(
                    f"{request.action} returned HTTP {response.status_code}",
                    status_code=response.status_code,
                )
        except TransportError as e:
            # @tra: Core.Subscription.TransportFailureKeepsState
            logger.warning("Live metrics %s failed: %s", request.action, e)
            return self._state

        try:
            subscribed = is_subscribed(response.headers)
        except ProtocolError as e:
            # @tra: Core.Subscription.MissingHeaderIsDisconnected
            logger.debug("%s; treating as not subscribed", e)
            subscribed = False
        self._set_state(
            ClientState.CONNECTED if subscribed else ClientState.DISCONNECTED
        )
        return self._state

    def _set_state(self, state: ClientState) -> None:
        if state is not self._state:
            logger.info(
                "Live metrics stream %s: %s -> %s",
                self._identity.stream_id,
                self._state.value,
                state.value,
            )
        self._state = state

    async def run(self) -> None:
        """Tick until ``stop`` is called, waiting ``interval`` between ticks."""
        logger.info(
            "Starting live metrics client for stream %s", self._identity.stream_id
        )
        while not self._stopping.is_set():
            try:
                await self.tick()
            except Exception:
                # @tra: Core.Subscription.RunLoop.SurvivesErrors
                log_exception("Unexpected error during live metrics tick")
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
            except TimeoutError:
                pass
        logger.info("Live metrics client stopped")

    def stop(self) -> None:
        """Stop scheduling ticks; an in-flight exchange is not cancelled."""
        self._stopping.set()
