"""WebSocket endpoints for live data and the permission-error channel.

``/ws/live``: the client sends LiveSubscriptionRequest messages; each
connection holds one collection and one document subscription and receives
``{"type": "state", "target": ..., "data", "loading", "error", ...}`` on every
state change. Only one target is live at a time.

``/ws/permission-errors``: every PermissionErrorEvent emitted in this process
is forwarded as ``{"type": "permission-error", "path", "operation", ...}``.

Both use the infrastructure on app.state (set in lifespan). All outgoing
messages go through one queue so a single task writes to the socket.
"""

import asyncio
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder

from averzo.core.config import get_settings
from averzo.domain.value_objects import PermissionErrorEvent
from averzo.infrastructure.firebase.subscriptions import (
    CollectionSubscription,
    DocumentSubscription,
    SubscriptionState,
)
from averzo.infrastructure.messaging.error_emitter import PERMISSION_ERROR
from averzo.schemas.live import LiveSubscriptionRequest

logger = logging.getLogger(__name__)

router = APIRouter()


async def _reject_websocket(websocket: WebSocket, reason: str, code: int = 1011) -> None:
    """Accept then immediately close with code/reason so client gets a proper close frame."""
    await websocket.accept()
    await websocket.close(code=code, reason=reason)


async def _pump(websocket: WebSocket, queue: "asyncio.Queue[dict[str, Any]]") -> None:
    while True:
        message = await queue.get()
        await websocket.send_json(jsonable_encoder(message))


async def _stop(task: asyncio.Task) -> None:
    task.cancel()
    await asyncio.gather(task, return_exceptions=True)


@router.websocket("/live")
async def live_endpoint(websocket: WebSocket):
    """Stream subscription state for the collection or document the client asks for."""
    state = websocket.app.state
    source = getattr(state, "snapshot_source", None)
    if source is None:
        await _reject_websocket(websocket, "Firestore is not configured")
        return
    await websocket.accept()

    outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

    def forward(target: str):
        def on_state(sub_state: SubscriptionState) -> None:
            outbox.put_nowait({"type": "state", "target": target, **sub_state.to_dict()})

        return on_state

    collection_sub = CollectionSubscription(
        source,
        state.error_emitter,
        state.tenant_id,
        drop_rewritten_constraints=get_settings().firestore_drop_rewritten_constraints,
    )
    document_sub = DocumentSubscription(source, state.error_emitter, state.tenant_id)
    collection_sub.watch(forward("collection"))
    document_sub.watch(forward("document"))

    pump = asyncio.create_task(_pump(websocket, outbox))
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                request = LiveSubscriptionRequest.model_validate_json(raw)
                query = request.to_query()
                ref = request.to_document_ref()
            except ValueError as exc:
                outbox.put_nowait({"type": "error", "message": str(exc)})
                continue
            if ref is not None:
                collection_sub.close()
                document_sub.subscribe(ref)
            else:
                document_sub.close()
                collection_sub.subscribe(query)
    except WebSocketDisconnect:
        logger.debug("Live subscription socket disconnected")
    finally:
        collection_sub.close()
        document_sub.close()
        await _stop(pump)


@router.websocket("/permission-errors")
async def permission_errors_endpoint(websocket: WebSocket):
    """Forward permission-error events to the client until it disconnects."""
    emitter = websocket.app.state.error_emitter
    loop = asyncio.get_running_loop()
    outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

    def on_event(event: PermissionErrorEvent) -> None:
        loop.call_soon_threadsafe(
            outbox.put_nowait, {"type": "permission-error", **event.to_dict()}
        )

    # Listen before the handshake completes: nothing emitted after accept is missed.
    remove = emitter.on(PERMISSION_ERROR, on_event)
    pump: asyncio.Task | None = None
    try:
        await websocket.accept()
        pump = asyncio.create_task(_pump(websocket, outbox))
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug("Permission-error socket disconnected")
    finally:
        remove()
        if pump is not None:
            await _stop(pump)
