"""NDJSON decoder for ingested telemetry envelopes.

Each line of the ingestion stream is one JSON object shaped::

    {"data": {"baseType": "MetricData" | "RequestData", "baseData": {...}}}
"""

import json
import math
import re
from collections.abc import Callable, Iterator
from datetime import timedelta
from typing import Any

from livepulse.core.errors import DecodeError
from livepulse.core.logs import get_logger
from livepulse.core.models import (
    MetricItem,
    MetricRecord,
    RequestRecord,
    TelemetryEnvelope,
)

logger = get_logger(__name__)

_DURATION_SEPARATORS = re.compile(r"[:.]")
_DURATION_COMPONENT = re.compile(r"[0-9]{1,9}")


def parse_duration(text: str) -> timedelta:
    """Parse an ``HH:MM:SS.fff`` duration.

    Anything that does not split into exactly four numeric components on
    ``:`` and ``.`` is treated as unknown and parses to a zero duration.
    Components are ASCII digits, at most nine each. The last component is
    a decimal fraction of a second.

    Args:
        text: Duration string from a RequestData envelope.

    Returns:
        The parsed duration, or ``timedelta(0)`` when malformed.
    """
    # @tra: Core.Encoding.Duration.MalformedIsZero
    parts = _DURATION_SEPARATORS.split(text)
    if len(parts) != 4 or not all(
        _DURATION_COMPONENT.fullmatch(part) for part in parts
    ):
        return timedelta(0)
    hours, minutes, seconds, fraction = parts
    try:
        return timedelta(
            hours=int(hours),
            minutes=int(minutes),
            seconds=int(seconds) + int(fraction) / 10 ** len(fraction),
        )
    except OverflowError:
        return timedelta(0)


def _require(base: dict[str, Any], key: str, kind: type | tuple[type, ...]) -> Any:
    if key not in base:
        raise DecodeError(f"missing field '{key}'")
    value = base[key]
    kinds = kind if isinstance(kind, tuple) else (kind,)
    # bool is an int subclass; numeric fields must not accept it
    if not isinstance(value, kinds) or (isinstance(value, bool) and bool not in kinds):
        raise DecodeError(f"field '{key}' has wrong type")
    return value


def _require_number(base: dict[str, Any], key: str) -> float:
    value = _require(base, key, (int, float))
    try:
        number = float(value)
    except OverflowError:
        raise DecodeError(f"field '{key}' is out of range") from None
    # json accepts NaN and Infinity, which cannot be re-encoded as JSON
    if not math.isfinite(number):
        raise DecodeError(f"field '{key}' is not finite")
    return number


def _decode_request(base: dict[str, Any]) -> RequestRecord:
    response_code = _require(base, "responseCode", (str, int))
    return RequestRecord(
        duration=parse_duration(_require(base, "duration", str)),
        name=_require(base, "name", str),
        url=_require(base, "url", str),
        id=_require(base, "id", str),
        response_code=str(response_code),
        success=_require(base, "success", bool),
    )


def _decode_metric_item(raw: Any) -> MetricItem:
    if not isinstance(raw, dict):
        raise DecodeError("metric entry is not an object")
    value = None
    if raw.get("value") is not None:
        value = _require_number(raw, "value")
    return MetricItem(
        name=_require(raw, "name", str),
        min=_require_number(raw, "min"),
        max=_require_number(raw, "max"),
        count=_require(raw, "count", int),
        value=value,
    )


def _decode_metrics(base: dict[str, Any]) -> MetricRecord:
    metrics = _require(base, "metrics", list)
    return MetricRecord(metrics=tuple(_decode_metric_item(m) for m in metrics))


_DECODERS: dict[str, Callable[[dict[str, Any]], TelemetryEnvelope]] = {
    RequestRecord.base_type: _decode_request,
    MetricRecord.base_type: _decode_metrics,
}


def decode_envelope(line: str | bytes) -> TelemetryEnvelope:
    """Decode one NDJSON line into a telemetry envelope.

    Args:
        line: A single JSON object, without the trailing newline.

    Returns:
        A RequestRecord or MetricRecord.

    Raises:
        DecodeError: If the line is not JSON, has an unknown ``baseType``,
            or its ``baseData`` has the wrong shape.
    """
    text = line.decode("utf-8", errors="replace") if isinstance(line, bytes) else line
    try:
        obj = json.loads(text)
    except json.JSONDecodeError as e:
        raise DecodeError(f"invalid JSON: {e.msg}", text) from e
    except (ValueError, RecursionError) as e:
        # oversized integer literals and deeply nested documents
        raise DecodeError(f"invalid JSON: {e}", text) from e

    try:
        if not isinstance(obj, dict) or not isinstance(obj.get("data"), dict):
            raise DecodeError("missing 'data' object")
        data = obj["data"]
        base_type = data.get("baseType")
        decoder = _DECODERS.get(base_type) if isinstance(base_type, str) else None
        if decoder is None:
            raise DecodeError(f"unknown baseType {base_type!r}")
        base_data = data.get("baseData")
        if not isinstance(base_data, dict):
            raise DecodeError("missing 'baseData' object")
        return decoder(base_data)
    except DecodeError as e:
        raise DecodeError(e.reason, text) from None


def decode_lines(
    payload: str | bytes,
    on_error: Callable[[int, DecodeError], None] | None = None,
) -> Iterator[TelemetryEnvelope]:
    """Decode every non-blank line of an NDJSON payload.

    Malformed lines are logged and skipped; they never stop the stream.

    Args:
        payload: The full request body.
        on_error: Called with the line index and error for each dropped line.

    Yields:
        Each successfully decoded envelope, in input order.
    """
    # @tra: Core.Encoding.Envelope.BadLineNeverStopsStream
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8", errors="replace")
    index = 0
    for raw_line in payload.splitlines():
        if not raw_line.strip():
            continue
        try:
            yield decode_envelope(raw_line)
        except DecodeError as e:
            logger.warning("Dropping malformed telemetry line %d: %s", index, e.reason)
            if on_error is not None:
                on_error(index, e)
        index += 1
