"""Framework adapters exposing the telemetry ingestion endpoint."""
