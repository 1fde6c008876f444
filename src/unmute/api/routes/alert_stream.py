"""
Alert Stream WebSocket Router

Real-time crisis alerts for staff dashboards.

Each connection is an AlertBus subscription, optionally scoped to
one institution. Alerts are at-least-once while connected; nothing
is replayed after a reconnect, the pending assignment list is the
durable view.

A dashboard that falls so far behind that only critical alerts are
buffered is disconnected with close code 1013 (try again later) and
is expected to reconnect.
"""

import asyncio
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from unmute.api.dependencies import get_orchestrator
from unmute.config.logging_config import get_logger
from unmute.infrastructure.metrics import WEBSOCKET_CONNECTIONS
from unmute.services.alerts import AlertSubscription
from unmute.services.orchestration.crisis_orchestrator import CrisisOrchestrator

logger = get_logger(__name__)

router = APIRouter(prefix="/ws", tags=["websocket"])

CLOSE_TRY_AGAIN_LATER = 1013


async def _forward(websocket: WebSocket, subscription: AlertSubscription) -> None:
    async for event in subscription:
        await websocket.send_json(event.to_dict())


async def _read_until_disconnect(websocket: WebSocket) -> None:
    # Dashboards send nothing meaningful; reading detects the disconnect
    while True:
        await websocket.receive_text()


@router.websocket("/alerts")
async def alert_stream(
    websocket: WebSocket,
    institution_id: Optional[UUID] = None,
    orchestrator: CrisisOrchestrator = Depends(get_orchestrator),
) -> None:
    """Stream crisis alerts as JSON objects."""
    await websocket.accept()
    WEBSOCKET_CONNECTIONS.inc()
    subscription = orchestrator.bus.subscribe(institution_id)
    scope = str(institution_id) if institution_id else None

    logger.info("Alert stream connected", institution_id=scope)

    try:
        await websocket.send_json({"type": "connected", "institution_id": scope})

        sender = asyncio.create_task(_forward(websocket, subscription))
        reader = asyncio.create_task(_read_until_disconnect(websocket))
        done, pending = await asyncio.wait({sender, reader}, return_when=asyncio.FIRST_COMPLETED)

        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)

        for task in done:
            error = task.exception()
            if error is not None and not isinstance(error, WebSocketDisconnect):
                logger.error("Alert stream error", error=str(error))

        if subscription.disconnected:
            logger.warning("Alert stream fell behind, disconnecting", institution_id=scope)
            await websocket.close(code=CLOSE_TRY_AGAIN_LATER)

    except WebSocketDisconnect:
        pass
    finally:
        subscription.close()
        WEBSOCKET_CONNECTIONS.dec()
        logger.info("Alert stream disconnected", institution_id=scope)
