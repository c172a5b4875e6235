import asyncio
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from photoframe.dependencies import get_subscription_broadcaster
from photoframe.domains.presentation.broadcaster import SubscriptionBroadcaster

router = APIRouter(prefix="/api/ws", tags=["websockets"])


@router.websocket("/photos")
async def photos_websocket(
    websocket: WebSocket,
    broadcaster: SubscriptionBroadcaster = Depends(get_subscription_broadcaster),
):
    try:
        subscription = await broadcaster.subscribe(websocket)
    except (WebSocketDisconnect, RuntimeError, asyncio.TimeoutError) as e:
        logging.debug(f"Viewer left before the initial snapshot was delivered: {e!r}")
        return

    try:
        while True:
            message = await websocket.receive_text()
            if message == "ping":
                await websocket.send_text("pong")
    except (WebSocketDisconnect, RuntimeError):
        # RuntimeError: the broadcaster closed a connection it gave up on
        pass
    finally:
        broadcaster.unsubscribe(subscription)
