"""Tracker for in-flight external generation jobs.

Handles expire 24 hours after they are stored. Expiry is lazy: the entry
is evicted by the first read past its TTL, which then reports it absent.
The tracker remembers which keys were evicted so the poller can tell an
abandoned job apart from a kickoff that has not returned yet.
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Optional

from tubepilot.models import OperationHandle, utc_now
from tubepilot.store.base import InMemoryKeyValueStore, KeyValueStore
from tubepilot.store.records import RecordStore

logger = logging.getLogger(__name__)

DEFAULT_TTL = timedelta(hours=24)


class OperationTracker:
    """Keyed map of operation handles with time-based expiry."""

    def __init__(
        self,
        records: RecordStore,
        backend: Optional[KeyValueStore] = None,
        ttl: timedelta = DEFAULT_TTL,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._records = records
        self._handles = backend if backend is not None else InMemoryKeyValueStore()
        self._ttl = ttl
        self._clock = clock
        self._expired: set[str] = set()

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def store(self, key: str, operation: Any) -> bool:
        """Track an operation for key; refused unless the record exists."""
        if not self._records.exists(key):
            logger.warning(f"Refusing to track operation for unknown record {key!r}")
            return False
        self._handles.put(key, OperationHandle(operation=operation, created_at=self._clock()))
        self._expired.discard(key)
        logger.info(f"Tracking generation operation for {key!r}")
        return True

    def get(self, key: str) -> Optional[OperationHandle]:
        """Return the handle for key, evicting it if older than the TTL."""
        handle = self._handles.get(key)
        if handle is None:
            return None
        if self._clock() - handle.created_at > self._ttl:
            self._handles.delete(key)
            self._expired.add(key)
            logger.warning(f"Operation for {key!r} expired after {self._ttl}, evicted")
            return None
        return handle

    def discard(self, key: str) -> None:
        """Forget any handle for key without marking it expired."""
        self._handles.delete(key)
        self._expired.discard(key)

    def expired(self, key: str) -> bool:
        """True if the last handle stored for key was evicted by the TTL."""
        return key in self._expired

    def __contains__(self, key: str) -> bool:
        return self._handles.get(key) is not None
