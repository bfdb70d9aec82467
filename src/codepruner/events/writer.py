"""Fire-and-forget event writer.

Admitted batches are queued in memory and persisted by a single worker
task. Callers never wait for the write: a full queue drops the batch and a
failed insert is logged, neither is reported back. There are no retries.
"""

import asyncio
import logging
from typing import Sequence

from codepruner.events.schemas import TrackedEvent
from codepruner.events.store import EventStore

logger = logging.getLogger(__name__)


class EventWriter:
    """Bounded in-memory queue drained into the event store."""

    def __init__(self, db, store: EventStore | None = None, queue_size: int = 10_000):
        self.db = db
        self.store = store or EventStore()
        self._queue: asyncio.Queue[tuple[str, list[TrackedEvent]]] = asyncio.Queue(
            maxsize=queue_size
        )
        self._task: asyncio.Task[None] | None = None
        self.dropped_batches = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def start(self) -> None:
        """Start the drain task on the running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._drain_loop())
        logger.info("Event writer started (queue_size=%s)", self._queue.maxsize)

    async def stop(self) -> None:
        """Flush queued batches, then stop the drain task."""
        if self._task is None:
            return
        await self.drain()
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Event writer stopped")

    async def drain(self) -> None:
        """Wait until every queued batch has been handled."""
        if not self._queue.empty() and not self.running:
            self.start()
        # join() also covers a batch the worker has taken but not yet written.
        await self._queue.join()

    def submit(self, tenant_id: str, events: Sequence[TrackedEvent]) -> bool:
        """Queue a batch for persistence without waiting for it.

        Returns False when the batch was dropped because the queue is full.
        """
        if not events:
            return True
        if not self.running:
            self.start()
        try:
            self._queue.put_nowait((tenant_id, list(events)))
        except asyncio.QueueFull:
            self.dropped_batches += 1
            logger.warning(
                "Event queue full, dropped %s event(s)",
                len(events),
                extra={"tenant_id": tenant_id},
            )
            return False
        return True

    async def _drain_loop(self) -> None:
        while True:
            tenant_id, events = await self._queue.get()
            try:
                await self._write(tenant_id, events)
            finally:
                self._queue.task_done()

    async def _write(self, tenant_id: str, events: list[TrackedEvent]) -> None:
        try:
            async with self.db.get_session() as session:
                await self.store.insert_many(session, tenant_id, events)
        except Exception:
            logger.exception(
                "Error inserting %s log(s)",
                len(events),
                extra={"tenant_id": tenant_id},
            )
