"""FastAPI adapter for the telemetry ingestion endpoint."""

from typing import Any

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from livepulse.adapters.frameworks.ingestion import (
    TRACK_PATHS,
    InvalidBodyError,
    decompress_body,
    ingest_payload,
)
from livepulse.core.ports import MetricBufferPort


def create_ingestion_router(buffer: MetricBufferPort) -> APIRouter:
    """Create a FastAPI router with /status and /v2.1/track endpoints.

    Args:
        buffer: Buffer receiving metrics from MetricData envelopes.

    Returns:
        APIRouter with the ingestion endpoints configured.
    """
    router = APIRouter()

    @router.get("/status")
    async def status() -> dict[str, str]:
        """Liveness check."""
        return {"message": "ok"}

    async def track(request: Request) -> JSONResponse | dict[str, Any]:
        """Accept NDJSON telemetry, optionally gzip-compressed."""
        body = await request.body()
        try:
            payload = decompress_body(body, request.headers.get("content-encoding"))
        except InvalidBodyError:
            return JSONResponse({"error": "Invalid request body"}, status_code=400)
        return ingest_payload(payload, buffer)

    for path in TRACK_PATHS:
        router.add_api_route(path, track, methods=["POST"], response_model=None)

    return router
