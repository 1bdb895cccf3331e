"""Autopilot scheduler that keeps the channel on its publishing quota.

Goals: a number of short videos per UTC day and a number of long videos
per week (weeks start Sunday 00:00 UTC). Each run produces just enough
videos to close the deficit, one pipeline run at a time, because a run's
record key is not known until the metadata optimizer returns it.

Callers must not run "short" and "long" concurrently: both read the
same store snapshot and could double-count the deficit.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable

from tubepilot.models import VideoLength, utc_now
from tubepilot.orchestrator.pipeline import ProductionPipeline
from tubepilot.services.base import SeriesStrategist
from tubepilot.services.script_writer import DEFAULT_TOPIC
from tubepilot.store.records import RecordStore

logger = logging.getLogger(__name__)


def week_start(day: date) -> date:
    """Return the Sunday on or before day."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def part_title(topic: str, part: int) -> str:
    return f"{topic} - Part {part}"


@dataclass
class QuotaStatus:
    """Current counts against the daily and weekly goals."""

    shorts_today: int
    longs_this_week: int
    daily_short_goal: int
    weekly_long_goal: int

    @property
    def short_deficit(self) -> int:
        return max(0, self.daily_short_goal - self.shorts_today)

    @property
    def long_deficit(self) -> int:
        return max(0, self.weekly_long_goal - self.longs_this_week)


class AutopilotScheduler:
    """Computes quota deficits and runs the pipeline to close them."""

    def __init__(
        self,
        store: RecordStore,
        pipeline: ProductionPipeline,
        series_strategist: SeriesStrategist,
        *,
        daily_short_goal: int = 3,
        weekly_long_goal: int = 2,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._store = store
        self._pipeline = pipeline
        self._series_strategist = series_strategist
        self.daily_short_goal = daily_short_goal
        self.weekly_long_goal = weekly_long_goal
        self._clock = clock

    def quota(self) -> QuotaStatus:
        today = self._clock().date()
        shorts = self._store.videos_on(today, VideoLength.SHORT)
        longs = self._store.videos_between(week_start(today), today, VideoLength.LONG)
        return QuotaStatus(
            shorts_today=len(shorts),
            longs_this_week=len(longs),
            daily_short_goal=self.daily_short_goal,
            weekly_long_goal=self.weekly_long_goal,
        )

    def suggest_next_length(self) -> str:
        """Return "short" or "long" for the next unmet goal, or "none"."""
        quota = self.quota()
        if quota.short_deficit > 0:
            return VideoLength.SHORT.value
        if quota.long_deficit > 0:
            return VideoLength.LONG.value
        return "none"

    async def run(self, length: VideoLength | str) -> list[str]:
        """Produce videos of the given length until its goal is met.

        Returns:
            Keys of the records created by this run, in production order.
        """
        length = VideoLength(length)
        if length == VideoLength.SHORT:
            return await self._run_shorts()
        return await self._run_longs()

    async def run_next(self) -> list[str]:
        """Run whichever length suggest_next_length() names."""
        suggestion = self.suggest_next_length()
        if suggestion == "none":
            logger.info("Auto-Pilot: all goals met")
            return []
        return await self.run(suggestion)

    async def _run_shorts(self) -> list[str]:
        needed = self.quota().short_deficit
        if needed == 0:
            logger.info("Daily short video goal met!")
            return []

        logger.info(f"Auto-Pilot: Creating {needed} short video(s)...")
        keys = []
        for _ in range(needed):
            keys.append(await self._pipeline.produce(VideoLength.SHORT, topic=DEFAULT_TOPIC))
        return keys

    async def _run_longs(self) -> list[str]:
        needed = self.quota().long_deficit
        if needed == 0:
            logger.info("Weekly long-form video goal met!")
            return []

        logger.info(f"Auto-Pilot: Creating {needed} long-form video(s)...")
        suggestion = await self._series_strategist.suggest(self._store.playlists())
        if suggestion.is_new_series:
            start_part = 1
        else:
            start_part = self._store.count_in_playlist(suggestion.playlist) + 1

        keys = []
        for offset in range(needed):
            keys.append(
                await self._pipeline.produce(
                    VideoLength.LONG,
                    playlist=suggestion.playlist,
                    topic=suggestion.topic,
                    title=part_title(suggestion.topic, start_part + offset),
                )
            )
        return keys
