"""Shared telemetry: logging setup, OpenTelemetry config, and tracing helpers."""

from averzo.shared.telemetry.logging import RequestIdFilter, setup_logging
from averzo.shared.telemetry.telemetry import (
    TelemetryConfig,
    get_telemetry,
    set_telemetry,
)
from averzo.shared.telemetry.tracing import TracedOperation, add_span_event

__all__ = [
    "RequestIdFilter",
    "TelemetryConfig",
    "TracedOperation",
    "add_span_event",
    "get_telemetry",
    "set_telemetry",
    "setup_logging",
]
