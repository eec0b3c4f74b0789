"""Startup configuration for the livepulse agent.

Settings come from the process environment, optionally seeded from a
``.env`` file in the working directory.
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass

from dotenv import find_dotenv, load_dotenv

from livepulse.adapters.buffer.ring_buffer import DEFAULT_MAX_SIZE
from livepulse.core.errors import ConfigurationError

APPLICATIONINSIGHTS_CONNECTION_STRING = "APPLICATIONINSIGHTS_CONNECTION_STRING"
APPINSIGHTS_PROXY_SERVER_PORT = "APPINSIGHTS_PROXY_SERVER_PORT"
APPINSIGHTS_PROXY_LOG_LEVEL = "APPINSIGHTS_PROXY_LOG_LEVEL"
APPINSIGHTS_PROXY_BUFFER_SIZE = "APPINSIGHTS_PROXY_BUFFER_SIZE"
WEBSITE_INSTANCE_ID = "WEBSITE_INSTANCE_ID"

DEFAULT_PORT = 3000
DEFAULT_LIVE_ENDPOINT = "https://rt.services.visualstudio.com"
DEFAULT_LOG_LEVEL = "INFO"

_VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class ConnectionString:
    """Parsed Application Insights connection string.

    Attributes:
        instrumentation_key: Opaque key sent with every backend request.
        ingestion_endpoint: Telemetry ingestion URL, empty when absent.
        live_endpoint: Live metrics base URL, without trailing slash.
    """

    instrumentation_key: str
    ingestion_endpoint: str
    live_endpoint: str

    @classmethod
    def parse(cls, value: str) -> "ConnectionString":
        """Parse ``Key=Value;Key=Value`` text.

        Unknown keys and empty segments are ignored.

        Raises:
            ConfigurationError: If a segment has no ``=`` or the
                instrumentation key is missing.
        """
        fields: dict[str, str] = {}
        for segment in value.split(";"):
            segment = segment.strip()
            if not segment:
                continue
            key, sep, field_value = segment.partition("=")
            if not sep:
                raise ConfigurationError(
                    f"Malformed connection string segment: {segment!r}"
                )
            fields[key.strip()] = field_value.strip()

        instrumentation_key = fields.get("InstrumentationKey", "")
        if not instrumentation_key:
            raise ConfigurationError("Connection string has no InstrumentationKey")
        live_endpoint = fields.get("LiveEndpoint") or DEFAULT_LIVE_ENDPOINT
        return cls(
            instrumentation_key=instrumentation_key,
            ingestion_endpoint=fields.get("IngestionEndpoint", "").rstrip("/"),
            live_endpoint=live_endpoint.rstrip("/"),
        )


def _parse_int(
    env: Mapping[str, str], name: str, default: int, low: int, high: int
) -> int:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from None
    if not low <= value <= high:
        raise ConfigurationError(f"{name} must be between {low} and {high}")
    return value


@dataclass(frozen=True)
class Settings:
    """Everything the agent needs to start."""

    connection: ConnectionString
    port: int = DEFAULT_PORT
    instance_id: str | None = None
    log_level: str = DEFAULT_LOG_LEVEL
    buffer_size: int = DEFAULT_MAX_SIZE

    @classmethod
    def from_env(
        cls, env: Mapping[str, str] | None = None, dotenv: bool = True
    ) -> "Settings":
        """Build settings from environment variables.

        Args:
            env: Mapping to read instead of ``os.environ``.
            dotenv: Load a ``.env`` file into ``os.environ`` first. Existing
                variables are not overridden. Ignored when ``env`` is given.

        Raises:
            ConfigurationError: If a required variable is missing or invalid.
        """
        if env is None:
            if dotenv:
                load_dotenv(find_dotenv(usecwd=True))
            env = os.environ

        raw_connection = env.get(APPLICATIONINSIGHTS_CONNECTION_STRING, "")
        if not raw_connection.strip():
            raise ConfigurationError(
                f"{APPLICATIONINSIGHTS_CONNECTION_STRING} is not set"
            )

        log_level = env.get(APPINSIGHTS_PROXY_LOG_LEVEL, DEFAULT_LOG_LEVEL).upper()
        if log_level not in _VALID_LOG_LEVELS:
            raise ConfigurationError(
                f"{APPINSIGHTS_PROXY_LOG_LEVEL} must be one of "
                f"{sorted(_VALID_LOG_LEVELS)}, got {log_level!r}"
            )

        return cls(
            connection=ConnectionString.parse(raw_connection),
            port=_parse_int(env, APPINSIGHTS_PROXY_SERVER_PORT, DEFAULT_PORT, 1, 65535),
            instance_id=env.get(WEBSITE_INSTANCE_ID) or None,
            log_level=log_level,
            buffer_size=_parse_int(
                env, APPINSIGHTS_PROXY_BUFFER_SIZE, DEFAULT_MAX_SIZE, 1, 10_000_000
            ),
        )
