"""WebSocket endpoint — live projector stream.

- /ws — pushes ``{"type": "translation", "content": ...}`` and
  ``{"type": "clear"}`` messages.  Nothing is replayed on connect unless the
  viewer asks for ``?catch_up=true``, in which case the current projector
  text is sent first.
"""

from __future__ import annotations

import asyncio

import orjson
import structlog
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from lingorelay.adapters.outbound.broadcast import BroadcastHub, Subscriber
from lingorelay.dependencies import get_container
from lingorelay.domain.value_objects import BroadcastMessage

logger = structlog.get_logger(__name__)

ws_router = APIRouter(tags=["WebSocket"])


async def _pump(ws: WebSocket, subscriber: Subscriber) -> None:
    async for message in subscriber:
        await ws.send_text(orjson.dumps(message.to_dict()).decode())


@ws_router.websocket("/ws")
async def projector_stream(ws: WebSocket, catch_up: bool = Query(False)) -> None:
    """Stream broadcast messages to one viewer until it disconnects."""
    hub: BroadcastHub = get_container(ws).hub

    # Registered before the handshake completes so no broadcast is missed
    subscriber = hub.subscribe()
    pump: asyncio.Task[None] | None = None
    try:
        await ws.accept()
        logger.info("ws_viewer_connected", subscriber=subscriber.id, total=hub.subscriber_count)

        if catch_up and hub.last_broadcast:
            catch_up_msg = BroadcastMessage.translation(hub.last_broadcast)
            await ws.send_text(orjson.dumps(catch_up_msg.to_dict()).decode())

        pump = asyncio.create_task(_pump(ws, subscriber))
        while True:
            # Viewers only listen; inbound text or binary frames are discarded
            frame = await ws.receive()
            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(frame.get("code", 1000))
    except WebSocketDisconnect:
        logger.info("ws_viewer_disconnected", subscriber=subscriber.id)
    except Exception as exc:
        logger.error("ws_viewer_error", subscriber=subscriber.id, error=str(exc))
    finally:
        hub.unsubscribe(subscriber)
        if pump is not None:
            pump.cancel()
            await asyncio.gather(pump, return_exceptions=True)
