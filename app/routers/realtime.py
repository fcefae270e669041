import asyncio
import contextlib

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.hub import NotificationHub

router = APIRouter()


async def _drain_incoming(websocket: WebSocket) -> None:
    # Clients send no application messages; read until they go away.
    with contextlib.suppress(WebSocketDisconnect):
        while True:
            await websocket.receive_text()


@router.websocket("/ws")
async def photo_events(websocket: WebSocket) -> None:
    """
    Push all-photos once, then new-photo / photo-removed events as they happen.
    """
    hub: NotificationHub = websocket.app.state.hub
    await websocket.accept()
    client = await hub.connect(websocket)
    writer = asyncio.create_task(client.run_writer())
    try:
        await _drain_incoming(websocket)
    finally:
        hub.disconnect(client)
        writer.cancel()
