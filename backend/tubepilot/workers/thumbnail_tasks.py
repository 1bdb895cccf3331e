"""Background thumbnail generation for newly scheduled videos.

Thumbnails are best-effort: a failure is recorded in the worker's task
status map and logged, but never changes the record's lifecycle status.
Callers can read task_status or await drain() to observe the outcome.
"""

import asyncio
import logging
from typing import Optional

from tubepilot.services.base import ThumbnailGenerator
from tubepilot.store.records import RecordStore

logger = logging.getLogger(__name__)


class ThumbnailWorker:
    """Runs thumbnail generation as tracked asyncio tasks, one per record key."""

    def __init__(self, store: RecordStore, generator: ThumbnailGenerator) -> None:
        self._store = store
        self._generator = generator
        # In-memory progress tracking, keyed by record key
        self.task_status: dict[str, dict] = {}
        self._tasks: dict[str, asyncio.Task] = {}

    def submit(self, key: str) -> Optional[asyncio.Task]:
        """Start thumbnail generation for key without waiting for it.

        Returns the task, or None if a thumbnail task for key is still running.
        """
        running = self._tasks.get(key)
        if running is not None and not running.done():
            logger.debug(f"Thumbnail already in progress for {key!r}")
            return None

        self.task_status[key] = {"status": "processing"}
        task = asyncio.create_task(self._run(key), name=f"thumbnail:{key}")
        self._tasks[key] = task
        return task

    async def _run(self, key: str) -> None:
        try:
            record = self._store.get(key)
            if record is None:
                raise ValueError(f"Record {key!r} not found")

            thumbnail_url = await self._generator.generate(
                record.title,
                script=record.script,
                title=record.optimized_title,
            )
            self._store.update(key, thumbnail_url=thumbnail_url)
            self.task_status[key] = {"status": "complete", "thumbnail_url": thumbnail_url}
            logger.info(f"Thumbnail stored for {key!r}")
        except Exception as e:
            logger.error(f"Thumbnail generation failed for {key!r}: {e}", exc_info=True)
            self.task_status[key] = {"status": "error", "error": str(e)}

    def status(self, key: str) -> dict:
        return self.task_status.get(key, {"status": "not_started"})

    async def drain(self) -> None:
        """Wait for every submitted thumbnail task to finish."""
        pending = [task for task in self._tasks.values() if not task.done()]
        if pending:
            await asyncio.gather(*pending)

    async def cancel_all(self) -> None:
        """Cancel running thumbnail tasks (used on shutdown)."""
        pending = [task for task in self._tasks.values() if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
