"""Wire encoding for live metrics backend requests.

Builds heartbeat bodies, the ``/Date(...)/`` timestamp marker, the
transmission-time header, and the header sets for ping and post.
"""

import json
import time
from collections.abc import Mapping

from livepulse.core.errors import ProtocolError
from livepulse.core.models import HeartbeatRequest

# Seconds between 0001-01-01 and the Unix epoch
_EPOCH_OFFSET_SECONDS = 62135596800
_TICKS_PER_SECOND = 10**7

HEADER_TRANSMISSION_TIME = "x-ms-qps-transmission-time"
HEADER_STREAM_ID = "x-ms-qps-stream-id"
HEADER_MACHINE_NAME = "x-ms-qps-machine-name"
HEADER_INSTANCE_NAME = "x-ms-qps-instance-name"
HEADER_ROLE_NAME = "x-ms-qps-role-name"
HEADER_INVARIANT_VERSION = "x-ms-qps-invariant-version"
HEADER_SUBSCRIBED = "x-ms-qps-subscribed"


def date_marker(now: float | None = None) -> str:
    """Return the ``/Date({millis})/`` timestamp for a heartbeat body.

    Args:
        now: Unix timestamp in seconds. Defaults to the current time.
    """
    if now is None:
        now = time.time()
    return f"/Date({int(now * 1000)})/"


def transmission_time(now: float | None = None) -> int:
    """Return current time as 100ns ticks since 0001-01-01.

    Args:
        now: Unix timestamp in seconds. Defaults to the current time.
    """
    if now is None:
        now = time.time()
    return (int(now) + _EPOCH_OFFSET_SECONDS) * _TICKS_PER_SECOND


def ping_headers(
    heartbeat: HeartbeatRequest, now: float | None = None
) -> dict[str, str]:
    """Headers for a ping: identity is duplicated from the body."""
    return {
        "Expect": "100-continue",
        HEADER_TRANSMISSION_TIME: str(transmission_time(now)),
        HEADER_STREAM_ID: heartbeat.stream_id,
        HEADER_MACHINE_NAME: heartbeat.machine_name,
        HEADER_INSTANCE_NAME: heartbeat.instance,
        HEADER_ROLE_NAME: heartbeat.role_name,
        HEADER_INVARIANT_VERSION: heartbeat.invariant_version,
        "Content-Type": "application/json",
    }


def post_headers(now: float | None = None) -> dict[str, str]:
    """Headers for a post: identity travels only in the body."""
    # @tra: Core.Encoding.Heartbeat.PostHeaders
    return {
        "Expect": "100-continue",
        HEADER_TRANSMISSION_TIME: str(transmission_time(now)),
        "Content-Type": "application/json",
    }


def encode_ping(heartbeat: HeartbeatRequest) -> bytes:
    """Encode a ping body: a single heartbeat object."""
    return json.dumps(heartbeat.to_wire()).encode()


def encode_post(heartbeat: HeartbeatRequest) -> bytes:
    """Encode a post body: an array holding exactly one heartbeat."""
    return json.dumps([heartbeat.to_wire()]).encode()


def is_subscribed(headers: Mapping[str, str]) -> bool:
    """Read the subscription flag from response headers.

    Only the literal value ``"true"`` counts as subscribed.

    Args:
        headers: Response headers with lower-cased keys.

    Raises:
        ProtocolError: If the response carries no subscription header.
    """
    if HEADER_SUBSCRIBED not in headers:
        raise ProtocolError(f"response has no {HEADER_SUBSCRIBED} header")
    return headers[HEADER_SUBSCRIBED] == "true"
