"""Telemetry pipeline and sinks."""
