"""Record store for video production metadata, status and artifacts.

Three maps share the optimized title as key: records, statuses and
generated artifacts. Writes to the status and artifact maps are no-ops
unless a record already exists under the key.

There is no locking. Registration is a single sequential call chain in
the pipeline, so a record is fully written before its status becomes
Processing and the poller can see it.
"""

import logging
from datetime import date, datetime
from typing import Any, Callable, Optional

from tubepilot.models import GeneratedArtifact, VideoLength, VideoRecord, utc_now
from tubepilot.orchestrator.state import VideoStatus, can_transition
from tubepilot.store.base import InMemoryKeyValueStore, KeyValueStore

logger = logging.getLogger(__name__)


class RecordStore:
    """Keyed store of VideoRecords with their lifecycle status and artifacts."""

    def __init__(
        self,
        records: Optional[KeyValueStore] = None,
        statuses: Optional[KeyValueStore] = None,
        artifacts: Optional[KeyValueStore] = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._records = records if records is not None else InMemoryKeyValueStore()
        self._statuses = statuses if statuses is not None else InMemoryKeyValueStore()
        self._artifacts = artifacts if artifacts is not None else InMemoryKeyValueStore()
        self._clock = clock

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------
    def create(self, record: VideoRecord) -> bool:
        """Register a record; no-op if the key already exists.

        A missing scheduled_date defaults to the current UTC date.

        Returns:
            True if the record was inserted, False if the key was taken.
        """
        key = record.optimized_title
        if key in self._records:
            logger.warning(f"Record already registered, keeping existing: {key!r}")
            return False

        stored = record.model_copy(deep=True)
        if stored.scheduled_date is None:
            stored.scheduled_date = self._clock().date()
        self._records.put(key, stored)
        logger.info(f"Registered video record: {key!r}")
        return True

    def update(self, key: str, **fields: Any) -> bool:
        """Shallow-merge fields into an existing record; no-op if absent."""
        record = self._records.get(key)
        if record is None:
            return False
        if "optimized_title" in fields and fields["optimized_title"] != key:
            raise ValueError("optimized_title is the record key and cannot change")

        merged = VideoRecord.model_validate({**record.model_dump(), **fields})
        self._records.put(key, merged)
        return True

    def get(self, key: str) -> Optional[VideoRecord]:
        return self._records.get(key)

    def exists(self, key: str) -> bool:
        return key in self._records

    def list_keys(self) -> list[str]:
        return [key for key, _ in self._records.scan()]

    def all(self) -> list[VideoRecord]:
        return [record for _, record in self._records.scan()]

    def videos_on(self, day: date, length: Optional[VideoLength] = None) -> list[VideoRecord]:
        """Records scheduled on the given date, optionally of one length."""
        return self.videos_between(day, day, length)

    def videos_between(
        self,
        start: date,
        end: date,
        length: Optional[VideoLength] = None,
    ) -> list[VideoRecord]:
        """Records scheduled in the inclusive range [start, end]."""
        return [
            record
            for record in self.all()
            if record.scheduled_date is not None
            and start <= record.scheduled_date <= end
            and (length is None or record.length == length)
        ]

    def videos_in_playlist(self, name: str) -> list[VideoRecord]:
        return [record for record in self.all() if record.playlist == name]

    def count_in_playlist(self, name: str) -> int:
        return len(self.videos_in_playlist(name))

    def playlists(self) -> list[str]:
        """Distinct playlist names in first-seen order."""
        seen: dict[str, None] = {}
        for record in self.all():
            if record.playlist:
                seen.setdefault(record.playlist, None)
        return list(seen)

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------
    def set_status(self, key: str, status: VideoStatus) -> bool:
        if key not in self._records:
            logger.warning(f"Ignoring status {status.value} for unknown record {key!r}")
            return False
        previous = self._statuses.get(key)
        if not can_transition(previous, status):
            logger.warning(
                f"Refusing transition for {key!r}: "
                f"{previous.value if previous else None} -> {status.value}"
            )
            return False
        self._statuses.put(key, status)
        logger.info(
            f"Status {key!r}: {previous.value if previous else None} -> {status.value}"
        )
        return True

    def get_status(self, key: str) -> Optional[VideoStatus]:
        return self._statuses.get(key)

    def keys_with_status(self, status: VideoStatus) -> list[str]:
        return [key for key, value in self._statuses.scan() if value == status]

    # ------------------------------------------------------------------
    # Generated artifacts
    # ------------------------------------------------------------------
    def store_artifact(self, key: str, video_url: str, audio_url: str) -> bool:
        if key not in self._records:
            return False
        self._artifacts.put(key, GeneratedArtifact(video_url=video_url, audio_url=audio_url))
        return True

    def get_artifact(self, key: str) -> Optional[GeneratedArtifact]:
        return self._artifacts.get(key)
