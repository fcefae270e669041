"""
Snapshot store and reconciler for the watched folder.

PhotoService owns the in-memory snapshot (file id -> PhotoDescriptor), the
periodic poller, and the list of event subscribers. It is the only writer of
the snapshot and the only publisher of PhotoAdded/PhotoRemoved events.
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass, field

from starlette.concurrency import run_in_threadpool

from app.config import DEFAULT_POLL_INTERVAL
from app.events import PhotoAdded, PhotoEvent, PhotoRemoved, Subscriber
from app.schemas import PhotoDescriptor
from app.storage import PhotoStorage, RemoteUnavailable

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    added: list[PhotoDescriptor] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.removed)


class PhotoService:
    """Tracks the photos in one remote folder and publishes changes."""

    def __init__(
        self,
        storage: PhotoStorage,
        folder_id: str,
        base_url: str,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
    ) -> None:
        self.storage = storage
        self.folder_id = folder_id
        self.base_url = base_url.rstrip("/")
        self.poll_interval = poll_interval
        self.snapshot: dict[str, PhotoDescriptor] = {}
        self.reconcile_count = 0
        self._subscribers: list[Subscriber] = []
        # in-flight guard: at most one reconciliation computes a delta at a time
        self._reconcile_lock = asyncio.Lock()
        self._poll_task: asyncio.Task[None] | None = None

    @property
    def photos(self) -> list[PhotoDescriptor]:
        return list(self.snapshot.values())

    def subscribe(self, subscriber: Subscriber) -> None:
        self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        with contextlib.suppress(ValueError):
            self._subscribers.remove(subscriber)

    def _publish(self, event: PhotoEvent) -> None:
        for subscriber in list(self._subscribers):
            try:
                subscriber(event)
            except Exception:
                logger.exception("Subscriber %r failed on %r", subscriber, event)

    async def fetch_photos(self) -> list[PhotoDescriptor]:
        """
        Fetch the current listing from storage, bypassing the snapshot.
        Raises RemoteUnavailable on failure.
        """
        logger.info("Fetching photos for folder %s", self.folder_id)
        images = await run_in_threadpool(self.storage.list_images, self.folder_id)
        logger.info("Found %d photos", len(images))
        return [PhotoDescriptor.from_remote(image, self.base_url) for image in images]

    async def reconcile(self) -> ReconcileResult:
        """
        Diff a fresh listing against the snapshot, apply the delta and publish
        it: additions first (in listing order), then removals.
        A failed listing raises RemoteUnavailable before anything is touched.
        """
        async with self._reconcile_lock:
            try:
                fetched = await self.fetch_photos()
            except RemoteUnavailable as exc:
                logger.error("Error fetching photos: %s", exc)
                raise

            result = ReconcileResult()
            fresh_ids = {photo.id for photo in fetched}
            for photo in fetched:
                if photo.id not in self.snapshot:
                    logger.info("New photo detected: %s", photo.name)
                    self.snapshot[photo.id] = photo
                    result.added.append(photo)
                    self._publish(PhotoAdded(photo))
            for photo_id in [pid for pid in self.snapshot if pid not in fresh_ids]:
                removed = self.snapshot.pop(photo_id)
                logger.info("Photo removed: %s", removed.name)
                result.removed.append(photo_id)
                self._publish(PhotoRemoved(photo_id))
            self.reconcile_count += 1
            return result

    async def ensure_loaded(self) -> None:
        """Run one reconciliation if the snapshot is still empty."""
        if not self.snapshot:
            await self.reconcile()

    async def run_poller(self) -> None:
        while True:
            await asyncio.sleep(self.poll_interval)
            try:
                await self.reconcile()
            except RemoteUnavailable:
                # already logged; keep the last known snapshot
                continue
            except Exception:
                logger.exception("Unexpected error checking photos")

    def start(self) -> None:
        if self._poll_task is None:
            self._poll_task = asyncio.create_task(self.run_poller())
            logger.info("Checking for new photos every %s seconds", self.poll_interval)

    async def stop(self) -> None:
        if self._poll_task is None:
            return
        self._poll_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._poll_task
        self._poll_task = None
