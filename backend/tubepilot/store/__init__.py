"""
Store module for tubepilot.

Provides the keyed record store, the expiring operation tracker and the
key-value backend interface both are built on.
"""
from tubepilot.store.base import InMemoryKeyValueStore, KeyValueStore
from tubepilot.store.operations import OperationTracker
from tubepilot.store.records import RecordStore

__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "RecordStore",
    "OperationTracker",
]
