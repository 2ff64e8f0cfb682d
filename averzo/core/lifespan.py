"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic. No business logic here, only
wiring of infrastructure onto app.state:

- error_emitter: the permission-error channel for this process
- firestore / tenant_id / snapshot_source / writer: None when Firestore
  is not configured
- prompt_runner: OpenAI-backed runner (disabled without an API key)
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from averzo.core.config import get_settings
from averzo.infrastructure.ai.prompt import PromptRunner
from averzo.infrastructure.firebase.client import (
    create_firestore_client,
    resolve_tenant_id,
)
from averzo.infrastructure.firebase.listeners import PollingSnapshotListener
from averzo.infrastructure.firebase.writes import GuardedWriter
from averzo.infrastructure.messaging.error_emitter import ErrorEmitter
from averzo.shared.telemetry.telemetry import (
    TelemetryConfig,
    get_telemetry,
    set_telemetry,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Shutdown order: listeners, Firestore HTTP client, telemetry.
    """
    settings = get_settings()

    # ---- Startup ----
    emitter = ErrorEmitter()
    app.state.error_emitter = emitter

    client = create_firestore_client(settings)
    app.state.firestore = client
    app.state.tenant_id = resolve_tenant_id(client, settings)
    if client is not None:
        app.state.snapshot_source = PollingSnapshotListener(
            client, settings.firestore_poll_interval_seconds
        )
        app.state.writer = GuardedWriter(client, emitter, app.state.tenant_id)
    else:
        app.state.snapshot_source = None
        app.state.writer = None

    app.state.prompt_runner = PromptRunner.from_settings(settings)

    if settings.telemetry_enabled:
        telemetry = TelemetryConfig(
            service_name=settings.app_name,
            service_version=settings.app_version,
            environment=settings.telemetry_environment,
        )
        telemetry.setup_telemetry(
            exporter_type=settings.telemetry_exporter,
            otlp_endpoint=settings.telemetry_otlp_endpoint,
            sample_rate=settings.telemetry_sample_rate,
        )
        set_telemetry(telemetry)
        telemetry.instrument_fastapi(app)
        logger.info("Telemetry initialized")

    yield

    # ---- Shutdown ----
    source = getattr(app.state, "snapshot_source", None)
    if isinstance(source, PollingSnapshotListener):
        await source.aclose()

    if getattr(app.state, "firestore", None) is not None:
        await app.state.firestore.aclose()
        app.state.firestore = None
        logger.info("Firestore HTTP client closed")

    telemetry_instance = get_telemetry()
    if telemetry_instance is not None:
        telemetry_instance.shutdown()
        set_telemetry(None)
        logger.info("Telemetry shutdown complete")
