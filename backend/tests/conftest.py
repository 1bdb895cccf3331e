"""Pytest configuration, fake collaborators and fixtures."""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import pytest

from tubepilot.config import PipelineConfig, Settings
from tubepilot.models import VideoLength, VideoRecord
from tubepilot.runtime import build_runtime
from tubepilot.schemas.production import (
    OperationStatus,
    OptimizedMetadata,
    ScriptResult,
    SeriesSuggestion,
)
from tubepilot.services.base import (
    MetadataOptimizer,
    ScriptGenerator,
    SeriesStrategist,
    SpeechSynthesizer,
    ThumbnailGenerator,
    Uploader,
    VideoGenerator,
)
from tubepilot.store.operations import OperationTracker
from tubepilot.store.records import RecordStore

# A Wednesday; the week started on Sunday 2025-06-08
START = datetime(2025, 6, 11, 15, 30, tzinfo=timezone.utc)


class FakeClock:
    """Controllable UTC clock."""

    def __init__(self, now: datetime = START) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class FakeScriptGenerator(ScriptGenerator):
    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.error: Optional[Exception] = None

    async def generate(self, length, *, topic=None, title=None, inspiration_url=None):
        self.calls.append(
            {"length": length, "topic": topic, "title": title, "inspiration_url": inspiration_url}
        )
        if self.error:
            raise self.error
        n = len(self.calls)
        return ScriptResult(
            script=f"Script number {n} about {topic}. It has a second sentence!",
            title=title or f"Generated Title {n}",
            topic=topic or "generated topic",
        )


class FakeMetadataOptimizer(MetadataOptimizer):
    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.error: Optional[Exception] = None
        self.suggested_upload_time: Optional[str] = None
        self.fixed_title: Optional[str] = None

    async def optimize(self, *, title, description, tags, category, script):
        self.calls.append(
            {
                "title": title,
                "description": description,
                "tags": tags,
                "category": category,
                "script": script,
            }
        )
        if self.error:
            raise self.error
        return OptimizedMetadata(
            optimized_title=self.fixed_title or f"Optimized {title}",
            optimized_description=f"Description of {title}",
            optimized_tags=["ai", "video"],
            optimized_category="Science & Technology",
            suggested_upload_time=self.suggested_upload_time,
        )


class FakeVideoGenerator(VideoGenerator):
    """Operations are "op-N" strings; their status is set through .results."""

    def __init__(self) -> None:
        self.started: list[tuple[str, str]] = []
        self.results: dict[str, OperationStatus] = {}
        self.checks: list[str] = []
        self.return_none = False
        self.start_error: Optional[Exception] = None
        self.check_error: Optional[Exception] = None

    async def start(self, script, title):
        self.started.append((script, title))
        if self.start_error:
            raise self.start_error
        if self.return_none:
            return None
        return f"op-{len(self.started)}"

    async def check(self, operation):
        self.checks.append(operation)
        if self.check_error:
            raise self.check_error
        return self.results.get(operation, OperationStatus(done=False))

    def finish(self, operation: str, media_url: str = "https://media.example/video.mp4") -> None:
        self.results[operation] = OperationStatus(done=True, media_url=media_url)

    def fail(self, operation: str, error: str = "quota exceeded") -> None:
        self.results[operation] = OperationStatus(done=True, error=error)


class FakeSpeechSynthesizer(SpeechSynthesizer):
    def __init__(self) -> None:
        self.scripts: list[str] = []
        self.error: Optional[Exception] = None

    async def synthesize(self, script):
        self.scripts.append(script)
        if self.error:
            raise self.error
        return "data:audio/wav;base64,UklGRg=="


class FakeThumbnailGenerator(ThumbnailGenerator):
    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.error: Optional[Exception] = None

    async def generate(self, topic, *, script=None, title=None):
        self.calls.append({"topic": topic, "script": script, "title": title})
        if self.error:
            raise self.error
        return "data:image/png;base64,iVBORw0KGgo="


class FakeSeriesStrategist(SeriesStrategist):
    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.suggestion = SeriesSuggestion(
            topic="Quantum Computing", playlist="Quantum Basics", is_new_series=True
        )

    async def suggest(self, existing_playlists):
        self.calls.append(list(existing_playlists))
        return self.suggestion


class FakeUploader(Uploader):
    def __init__(self) -> None:
        self.uploads: list[tuple[Any, str, Any]] = []
        self.result = True
        self.error: Optional[Exception] = None

    async def upload(self, credentials, media_url, metadata):
        self.uploads.append((credentials, media_url, metadata))
        if self.error:
            raise self.error
        return self.result


def make_record(title: str = "Key Title", **fields) -> VideoRecord:
    defaults = {
        "optimized_title": title,
        "title": "Original",
        "script": "First line. Second line.",
        "length": VideoLength.SHORT,
    }
    defaults.update(fields)
    return VideoRecord(**defaults)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return RecordStore(clock=clock)


@pytest.fixture
def tracker(store, clock):
    return OperationTracker(store, clock=clock)


@pytest.fixture
def script_generator():
    return FakeScriptGenerator()


@pytest.fixture
def metadata_optimizer():
    return FakeMetadataOptimizer()


@pytest.fixture
def video_generator():
    return FakeVideoGenerator()


@pytest.fixture
def speech():
    return FakeSpeechSynthesizer()


@pytest.fixture
def thumbnail_generator():
    return FakeThumbnailGenerator()


@pytest.fixture
def strategist():
    return FakeSeriesStrategist()


@pytest.fixture
def uploader():
    return FakeUploader()


@pytest.fixture
def test_settings():
    return Settings(pipeline=PipelineConfig(poll_interval=0, poll_backoff_max=0, poll_max_attempts=5))


@pytest.fixture
def runtime(
    test_settings, clock, script_generator, metadata_optimizer, video_generator,
    speech, thumbnail_generator, strategist, uploader,
):
    """Fully wired runtime over fakes."""
    return build_runtime(
        test_settings,
        script_generator=script_generator,
        metadata_optimizer=metadata_optimizer,
        video_generator=video_generator,
        speech_synthesizer=speech,
        thumbnail_generator=thumbnail_generator,
        series_strategist=strategist,
        uploader=uploader,
        clock=clock,
    )
