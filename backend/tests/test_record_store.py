"""Tests for RecordStore and the in-memory key-value backend."""

from datetime import date

import pytest

from tubepilot.models import VideoLength
from tubepilot.orchestrator.state import VideoStatus
from tubepilot.store.base import InMemoryKeyValueStore
from tubepilot.store.records import RecordStore

from conftest import make_record


def test_create_then_get_returns_identical_record(store):
    record = make_record(scheduled_date=date(2025, 6, 1), optimized_tags=["a", "b"])

    assert store.create(record) is True
    assert store.get("Key Title") == record


def test_create_stores_a_copy(store):
    record = make_record(optimized_tags=["a"])
    store.create(record)

    record.optimized_tags.append("mutated")

    assert store.get("Key Title").optimized_tags == ["a"]


def test_second_create_with_same_key_is_noop(store):
    store.create(make_record(script="original script"))

    assert store.create(make_record(script="replacement")) is False
    assert store.get("Key Title").script == "original script"
    assert store.list_keys() == ["Key Title"]


def test_create_defaults_scheduled_date_to_today(store, clock):
    store.create(make_record())

    assert store.get("Key Title").scheduled_date == clock().date()


def test_update_merges_fields(store):
    store.create(make_record())

    assert store.update("Key Title", thumbnail_url="data:image/png;base64,x") is True

    record = store.get("Key Title")
    assert record.thumbnail_url == "data:image/png;base64,x"
    assert record.script == "First line. Second line."


def test_update_missing_key_is_noop(store):
    assert store.update("missing", thumbnail_url="x") is False
    assert store.get("missing") is None


def test_update_cannot_change_key(store):
    store.create(make_record())

    with pytest.raises(ValueError):
        store.update("Key Title", optimized_title="Other")


def test_videos_on_filters_by_date_and_length(store):
    day = date(2025, 6, 11)
    store.create(make_record("a", scheduled_date=day))
    store.create(make_record("b", scheduled_date=day, length=VideoLength.LONG))
    store.create(make_record("c", scheduled_date=date(2025, 6, 10)))

    assert [r.key for r in store.videos_on(day)] == ["a", "b"]
    assert [r.key for r in store.videos_on(day, VideoLength.SHORT)] == ["a"]


def test_videos_between_is_inclusive(store):
    store.create(make_record("sun", scheduled_date=date(2025, 6, 8)))
    store.create(make_record("wed", scheduled_date=date(2025, 6, 11)))
    store.create(make_record("thu", scheduled_date=date(2025, 6, 12)))

    keys = [r.key for r in store.videos_between(date(2025, 6, 8), date(2025, 6, 11))]

    assert keys == ["sun", "wed"]


def test_playlist_queries(store):
    store.create(make_record("p1", playlist="Series A"))
    store.create(make_record("p2", playlist="Series B"))
    store.create(make_record("p3", playlist="Series A"))
    store.create(make_record("solo"))

    assert [r.key for r in store.videos_in_playlist("Series A")] == ["p1", "p3"]
    assert store.count_in_playlist("Series A") == 2
    assert store.count_in_playlist("Unknown") == 0
    assert store.playlists() == ["Series A", "Series B"]


def test_status_requires_existing_record(store):
    assert store.set_status("ghost", VideoStatus.PROCESSING) is False
    assert store.get_status("ghost") is None

    store.create(make_record())
    assert store.set_status("Key Title", VideoStatus.PROCESSING) is True
    assert store.get_status("Key Title") == VideoStatus.PROCESSING
    assert store.keys_with_status(VideoStatus.PROCESSING) == ["Key Title"]


def test_status_refuses_transitions_outside_the_table(store):
    store.create(make_record())
    store.set_status("Key Title", VideoStatus.PROCESSING)
    store.set_status("Key Title", VideoStatus.GENERATED)
    assert store.set_status("Key Title", VideoStatus.PUBLISHED) is True

    assert store.set_status("Key Title", VideoStatus.PROCESSING) is False
    assert store.set_status("Key Title", VideoStatus.GENERATED) is False
    assert store.get_status("Key Title") == VideoStatus.PUBLISHED


def test_artifact_requires_existing_record(store):
    assert store.store_artifact("ghost", "v", "a") is False
    assert store.get_artifact("ghost") is None

    store.create(make_record())
    store.store_artifact("Key Title", "https://v", "data:audio")

    artifact = store.get_artifact("Key Title")
    assert artifact.video_url == "https://v"
    assert artifact.audio_url == "data:audio"


def test_injected_backends_receive_writes(clock):
    records = InMemoryKeyValueStore()
    statuses = InMemoryKeyValueStore()
    store = RecordStore(records=records, statuses=statuses, clock=clock)

    store.create(make_record())
    store.set_status("Key Title", VideoStatus.PROCESSING)

    assert len(records) == 1
    assert "Key Title" in records
    assert statuses.get("Key Title") == VideoStatus.PROCESSING


def test_in_memory_scan_allows_writes_while_iterating():
    kv = InMemoryKeyValueStore()
    kv.put("a", 1)
    kv.put("b", 2)

    for key, value in kv.scan():
        kv.put(key + "2", value)
        kv.delete(key)

    assert sorted(k for k, _ in kv.scan()) == ["a2", "b2"]
