"""Status poller that advances Processing records to completion.

Each tick scans every Processing record, but a record is only checked
when its own schedule is due. Every inconclusive check (job not done, or
the status call itself failed) doubles the record's wait, capped at
max_backoff. After max_attempts inconclusive checks the record is marked
TimedOut.

Transitions out of Processing:
- handle evicted by the tracker TTL      -> Lost
- job done with an error                 -> Failed
- job done but no media in the output    -> Failed
- narration synthesis fails              -> Failed
- media and narration ready              -> Scheduled (upload time suggested)
                                            or Generated
- too many inconclusive checks           -> TimedOut

Scheduled records get a background thumbnail task that never blocks the
transition and never changes status.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from tubepilot.models import OperationHandle, utc_now
from tubepilot.orchestrator.errors import (
    LostOperation,
    PollTransientFailure,
    SynthesisFailure,
)
from tubepilot.orchestrator.state import VideoStatus, completion_status
from tubepilot.services.base import SpeechSynthesizer, VideoGenerator
from tubepilot.store.operations import OperationTracker
from tubepilot.store.records import RecordStore
from tubepilot.workers.thumbnail_tasks import ThumbnailWorker

logger = logging.getLogger(__name__)


@dataclass
class PollSchedule:
    """Per-record polling state, reset whenever a new handle is stored."""

    handle_created_at: datetime
    attempts: int = 0
    next_poll_at: Optional[datetime] = None


class StatusPoller:
    """Periodic state machine driver for Processing records."""

    def __init__(
        self,
        store: RecordStore,
        tracker: OperationTracker,
        video_generator: VideoGenerator,
        speech_synthesizer: SpeechSynthesizer,
        *,
        thumbnails: Optional[ThumbnailWorker] = None,
        interval: float = 5.0,
        max_backoff: float = 120.0,
        max_attempts: int = 60,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._tracker = tracker
        self._video_generator = video_generator
        self._speech = speech_synthesizer
        self.thumbnails = thumbnails
        self.interval = interval
        self._max_backoff = max_backoff
        self._max_attempts = max_attempts
        self._clock = clock
        self._schedules: dict[str, PollSchedule] = {}
        self._stopping = asyncio.Event()
        self._task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Scheduling
    # ------------------------------------------------------------------
    def backoff(self, attempts: int) -> float:
        """Seconds to wait after the given number of inconclusive checks."""
        return min(self.interval * (2 ** max(attempts - 1, 0)), self._max_backoff)

    def schedule(self, key: str) -> Optional[PollSchedule]:
        return self._schedules.get(key)

    def _schedule_for(self, key: str, handle: OperationHandle) -> PollSchedule:
        schedule = self._schedules.get(key)
        if schedule is None or schedule.handle_created_at != handle.created_at:
            schedule = PollSchedule(handle_created_at=handle.created_at)
            self._schedules[key] = schedule
        return schedule

    def _defer(self, key: str, schedule: PollSchedule, now: datetime) -> Optional[VideoStatus]:
        """Count an inconclusive check; time the record out when exhausted."""
        schedule.attempts += 1
        if schedule.attempts >= self._max_attempts:
            logger.error(f"Video {key!r} still processing after {schedule.attempts} checks")
            return self._settle(key, VideoStatus.TIMED_OUT)
        schedule.next_poll_at = now + timedelta(seconds=self.backoff(schedule.attempts))
        return None

    def _settle(self, key: str, status: VideoStatus) -> VideoStatus:
        self._store.set_status(key, status)
        self._schedules.pop(key, None)
        return status

    # ------------------------------------------------------------------
    # State machine
    # ------------------------------------------------------------------
    async def check(self, key: str) -> Optional[VideoStatus]:
        """Advance one Processing record if its poll is due.

        Returns:
            The new status if the record left Processing, otherwise None.
        """
        if self._store.get_status(key) != VideoStatus.PROCESSING:
            return None

        handle = self._tracker.get(key)
        if handle is None:
            if self._tracker.expired(key):
                error = LostOperation(f"Operation for {key!r} expired while processing")
                logger.error(str(error))
                return self._settle(key, VideoStatus.LOST)
            # Kickoff has not stored its handle yet
            return None

        now = self._clock()
        schedule = self._schedule_for(key, handle)
        if schedule.next_poll_at is not None and now < schedule.next_poll_at:
            return None

        try:
            result = await self._video_generator.check(handle.operation)
        except Exception as e:
            error = PollTransientFailure(f"{type(e).__name__}: {e}")
            logger.warning(f"Status check failed for {key!r}, will retry: {error}")
            return self._defer(key, schedule, now)

        if not result.done:
            return self._defer(key, schedule, now)

        if result.error:
            logger.error(f"Failed to generate video for {key!r}: {result.error}")
            return self._settle(key, VideoStatus.FAILED)

        if not result.media_url:
            logger.error(f"No generated video found in the operation output for {key!r}")
            return self._settle(key, VideoStatus.FAILED)

        return await self._complete(key, result.media_url)

    async def _complete(self, key: str, video_url: str) -> VideoStatus:
        record = self._store.get(key)
        if record is None or not record.script:
            logger.error(f"Failed to find script for generated video {key!r}")
            return self._settle(key, VideoStatus.FAILED)

        try:
            audio_url = await self._speech.synthesize(record.script)
        except Exception as e:
            error = SynthesisFailure(f"{type(e).__name__}: {e}")
            logger.error(f"Failed to synthesize narration for {key!r}: {error}")
            return self._settle(key, VideoStatus.FAILED)

        self._store.store_artifact(key, video_url, audio_url)
        status = self._settle(key, completion_status(record.suggested_upload_time))

        if status == VideoStatus.SCHEDULED and self.thumbnails is not None:
            self.thumbnails.submit(key)
        return status

    async def tick(self) -> int:
        """Run one scan over all Processing records.

        Returns:
            Number of records that left Processing.
        """
        transitions = 0
        for key in self._store.keys_with_status(VideoStatus.PROCESSING):
            if await self.check(key) is not None:
                transitions += 1
        return transitions

    # ------------------------------------------------------------------
    # Loop control
    # ------------------------------------------------------------------
    async def run(self) -> None:
        """Tick every interval seconds until stop() is called."""
        self._stopping.clear()
        logger.info(f"Status poller started (interval {self.interval}s)")
        while not self._stopping.is_set():
            try:
                await self.tick()
            except Exception as e:
                logger.error(f"Poller tick failed: {type(e).__name__}: {e}", exc_info=True)
            try:
                await asyncio.wait_for(self._stopping.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
        logger.info("Status poller stopped")

    def start(self) -> asyncio.Task:
        """Run the poller loop as a background task."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.run(), name="status-poller")
        return self._task

    async def stop(self) -> None:
        self._stopping.set()
        if self._task is not None:
            await self._task
            self._task = None

    async def run_until_settled(self, timeout: Optional[float] = None) -> bool:
        """Tick until no record is Processing.

        Returns:
            True if everything settled, False if timeout elapsed first.
        """
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        while self._store.keys_with_status(VideoStatus.PROCESSING):
            await self.tick()
            if not self._store.keys_with_status(VideoStatus.PROCESSING):
                break
            if deadline is not None and loop.time() >= deadline:
                return False
            await asyncio.sleep(self.interval)
        if self.thumbnails is not None:
            await self.thumbnails.drain()
        return True
