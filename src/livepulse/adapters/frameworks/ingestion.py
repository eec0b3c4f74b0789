"""Shared ingestion handling for framework adapters.

This module turns a track request body into buffered metrics and the
response summary, so the ASGI and FastAPI adapters stay thin.
"""

import gzip
import zlib
from typing import Any

from livepulse.core.encoding.ndjson import decode_lines
from livepulse.core.errors import DecodeError
from livepulse.core.logs import get_logger
from livepulse.core.models import MetricRecord, RequestRecord
from livepulse.core.ports import MetricBufferPort

logger = get_logger(__name__)

TRACK_PATHS = ("/v2.1/track", "/v2/track")


class InvalidBodyError(Exception):
    """The request body could not be decompressed."""


def decompress_body(body: bytes, content_encoding: str | None) -> bytes:
    """Undo the request's Content-Encoding.

    Args:
        body: Raw request body.
        content_encoding: Value of the Content-Encoding header, if any.

    Raises:
        InvalidBodyError: If the body is not valid for its encoding.
    """
    encoding = (content_encoding or "").strip().lower()
    try:
        if encoding == "gzip":
            return gzip.decompress(body)
        if encoding == "deflate":
            return zlib.decompress(body)
    except (OSError, EOFError, zlib.error) as e:
        raise InvalidBodyError(str(e)) from e
    return body


def ingest_payload(payload: bytes, buffer: MetricBufferPort) -> dict[str, Any]:
    """Decode an NDJSON payload and buffer its metrics.

    Args:
        payload: Decompressed request body.
        buffer: Destination for metrics from MetricData envelopes.

    Returns:
        Track response body with received/accepted counts and per-line errors.
    """
    errors: list[dict[str, Any]] = []

    def on_error(index: int, error: DecodeError) -> None:
        errors.append({"index": index, "statusCode": 400, "message": error.reason})

    accepted = 0
    for envelope in decode_lines(payload, on_error=on_error):
        accepted += 1
        if isinstance(envelope, MetricRecord):
            for metric in envelope.to_metrics():
                buffer.add(metric)
        elif isinstance(envelope, RequestRecord):
            logger.debug(
                "Request %s %s -> %s in %s",
                envelope.name,
                envelope.url,
                envelope.response_code,
                envelope.duration,
            )

    return {
        "itemsReceived": accepted + len(errors),
        "itemsAccepted": accepted,
        "errors": errors,
    }
