"""
Fan-out of photo events to connected WebSocket clients.
"""

import asyncio
import itertools
import logging
from typing import Any

from fastapi import WebSocket

from app.events import PhotoAdded, PhotoEvent, PhotoRemoved
from app.service import PhotoService
from app.storage import RemoteUnavailable

logger = logging.getLogger(__name__)

Message = dict[str, Any]

_client_ids = itertools.count(1)


def event_message(event: PhotoEvent) -> Message:
    if isinstance(event, PhotoAdded):
        return {"event": "new-photo", "data": event.photo.url}
    return {"event": "photo-removed", "data": event.photo_id}


def all_photos_message(urls: list[str]) -> Message:
    return {
        "event": "all-photos",
        "data": {"regular": urls, "styled": [], "merged": []},
    }


class ClientConnection:
    """One connected client and its pending outbound messages."""

    def __init__(self, websocket: WebSocket | None = None) -> None:
        self.id = next(_client_ids)
        self.websocket = websocket
        self.queue: asyncio.Queue[Message] = asyncio.Queue()

    def send(self, message: Message) -> None:
        self.queue.put_nowait(message)

    async def run_writer(self) -> None:
        if self.websocket is None:
            error_message = f"Client {self.id} has no WebSocket to write to"
            raise RuntimeError(error_message)
        while True:
            message = await self.queue.get()
            await self.websocket.send_json(message)


class NotificationHub:
    """
    Keeps the set of connected clients and broadcasts service events to them.
    Delivery is best effort: each client drains its own queue, so a slow
    socket never holds up the others or the next reconciliation.
    """

    def __init__(self, service: PhotoService) -> None:
        self.service = service
        self.clients: set[ClientConnection] = set()
        service.subscribe(self.publish)

    def publish(self, event: PhotoEvent) -> None:
        message = event_message(event)
        for client in list(self.clients):
            client.send(message)

    async def connect(self, websocket: WebSocket | None = None) -> ClientConnection:
        """
        Register a client, bootstrapping the snapshot first if it is empty.
        The all-photos message is queued in the same step as registration so
        no event published in between can be missed.
        """
        try:
            await self.service.ensure_loaded()
        except RemoteUnavailable:
            logger.warning("Could not load photos for new client; sending current snapshot")
        client = ClientConnection(websocket)
        client.send(all_photos_message([photo.url for photo in self.service.photos]))
        self.clients.add(client)
        logger.info("Client connected: %s (%d connected)", client.id, len(self.clients))
        return client

    def disconnect(self, client: ClientConnection) -> None:
        self.clients.discard(client)
        logger.info("Client disconnected: %s (%d connected)", client.id, len(self.clients))

    def close(self) -> None:
        self.service.unsubscribe(self.publish)
