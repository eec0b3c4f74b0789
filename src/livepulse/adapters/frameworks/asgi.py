"""ASGI generic adapter for the telemetry ingestion endpoint.

This adapter provides a framework-agnostic ASGI application that can be used
with any ASGI server (uvicorn, hypercorn, daphne) without requiring FastAPI
as a dependency.
"""

import json
from collections.abc import Callable, Coroutine
from typing import Any

from livepulse.adapters.frameworks.ingestion import (
    TRACK_PATHS,
    InvalidBodyError,
    decompress_body,
    ingest_payload,
)
from livepulse.core.logs import log_exception
from livepulse.core.ports import MetricBufferPort

# ASGI type aliases
# @tra: Adapter.ASGI.Ingestion.Interface
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]


def _get_header(scope: Scope, header_name: str) -> str | None:
    """Return a request header value from ASGI scope (case-insensitive).

    Args:
        scope: ASGI scope dictionary containing request metadata.
        header_name: Name of the header to search for.

    Returns:
        Header value, or None when the header is absent.
    """
    header_bytes = header_name.lower().encode()
    headers: list[tuple[bytes, bytes]] = scope.get("headers", [])
    for name, value in headers:
        if name.lower() == header_bytes:
            return value.decode("latin-1")
    return None


async def _read_body(receive: Receive) -> bytes:
    """Read the full request body from the ASGI receive channel."""
    chunks: list[bytes] = []
    more_body = True
    while more_body:
        message = await receive()
        if message["type"] == "http.disconnect":
            break
        chunks.append(message.get("body", b""))
        more_body = message.get("more_body", False)
    return b"".join(chunks)


async def _send_response(send: Send, status: int, content_type: str, body: str) -> None:
    """Send an HTTP response with headers and body.

    Args:
        send: ASGI send callable for writing response.
        status: HTTP status code.
        content_type: Content-Type header value.
        body: Response body as string (will be encoded to bytes).
    """
    # @tra: Adapter.ASGI.SendResponse.Headers
    headers = [(b"content-type", content_type.encode())]
    await send({"type": "http.response.start", "status": status, "headers": headers})
    # @tra: Adapter.ASGI.SendResponse.Body
    await send({"type": "http.response.body", "body": body.encode()})


async def _send_json(send: Send, status: int, payload: dict[str, Any]) -> None:
    await _send_response(send, status, "application/json", json.dumps(payload))


async def _handle_endpoint(
    send: Send,
    endpoint_func: Callable[[], Coroutine[Any, Any, tuple[int, dict[str, Any]]]],
    log_message: str,
) -> None:
    """Execute an endpoint function with error handling and send response.

    Args:
        send: ASGI send callable for writing response.
        endpoint_func: Async function that returns status and JSON payload.
        log_message: Message to log on error.
    """
    # @tra: Adapter.ASGI.ErrorHandling
    try:
        status, payload = await endpoint_func()
        await _send_json(send, status, payload)
    except Exception:
        log_exception(log_message)
        await _send_json(send, 500, {"error": "Internal Server Error"})


def create_ingestion_app(buffer: MetricBufferPort) -> ASGIApp:
    """Create an ASGI app with /status and /v2.1/track endpoints.

    Args:
        buffer: Buffer receiving metrics from MetricData envelopes.

    Returns:
        ASGI application callable.
    """

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            return

        path = scope["path"]
        method = scope["method"]

        if path == "/status":
            # @tra: Adapter.ASGI.Ingestion.Status
            if method != "GET":
                await _send_response(send, 405, "text/plain", "Method Not Allowed")
                return
            await _send_json(send, 200, {"message": "ok"})
        elif path in TRACK_PATHS:
            # @tra: Adapter.ASGI.Ingestion.Track
            if method != "POST":
                await _send_response(send, 405, "text/plain", "Method Not Allowed")
                return

            async def track() -> tuple[int, dict[str, Any]]:
                body = await _read_body(receive)
                try:
                    payload = decompress_body(
                        body, _get_header(scope, "content-encoding")
                    )
                except InvalidBodyError:
                    # @tra: Adapter.ASGI.Ingestion.InvalidBody
                    return 400, {"error": "Invalid request body"}
                return 200, ingest_payload(payload, buffer)

            await _handle_endpoint(send, track, "Error handling track request")
        else:
            # @tra: Adapter.ASGI.Ingestion.NotFound
            await _send_response(send, 404, "text/plain", "Not Found")

    return app
