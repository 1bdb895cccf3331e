"""Wiring of the store, pipeline, poller and scheduler into one runtime.

The API and CLI both build their components here. Collaborators default
to the Vertex AI / Ollama adapters named in settings.models and can be
replaced individually, which is how the tests run against fakes.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from tubepilot.config import Settings, settings as default_settings
from tubepilot.models import utc_now
from tubepilot.orchestrator.pipeline import ProductionPipeline
from tubepilot.orchestrator.poller import StatusPoller
from tubepilot.orchestrator.scheduler import AutopilotScheduler
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
from tubepilot.workers.thumbnail_tasks import ThumbnailWorker

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    store: RecordStore
    tracker: OperationTracker
    pipeline: ProductionPipeline
    poller: StatusPoller
    scheduler: AutopilotScheduler
    thumbnails: ThumbnailWorker


def build_runtime(
    settings: Optional[Settings] = None,
    *,
    script_generator: Optional[ScriptGenerator] = None,
    metadata_optimizer: Optional[MetadataOptimizer] = None,
    video_generator: Optional[VideoGenerator] = None,
    speech_synthesizer: Optional[SpeechSynthesizer] = None,
    thumbnail_generator: Optional[ThumbnailGenerator] = None,
    series_strategist: Optional[SeriesStrategist] = None,
    uploader: Optional[Uploader] = None,
    clock: Callable[[], datetime] = utc_now,
    progress_callback: Optional[Callable[[str], None]] = None,
) -> Runtime:
    """Assemble a Runtime, creating default adapters for omitted collaborators."""
    settings = settings or default_settings
    models = settings.models
    pipeline_cfg = settings.pipeline
    retries = pipeline_cfg.retry_max_attempts

    # Adapters are imported lazily so fakes never pull in provider SDK setup
    if script_generator is None:
        from tubepilot.services.llm import get_adapter
        from tubepilot.services.script_writer import LLMScriptGenerator
        script_generator = LLMScriptGenerator(get_adapter(models.script_llm, settings.ollama), retries)
    if metadata_optimizer is None:
        from tubepilot.services.llm import get_adapter
        from tubepilot.services.metadata_optimizer import LLMMetadataOptimizer
        metadata_optimizer = LLMMetadataOptimizer(get_adapter(models.metadata_llm, settings.ollama), retries)
    if series_strategist is None:
        from tubepilot.services.llm import get_adapter
        from tubepilot.services.series_strategist import LLMSeriesStrategist
        series_strategist = LLMSeriesStrategist(get_adapter(models.strategy_llm, settings.ollama), retries)
    if video_generator is None:
        from tubepilot.services.video_generator import VeoVideoGenerator
        video_generator = VeoVideoGenerator(
            models.video_gen,
            duration_seconds=pipeline_cfg.video_duration_seconds,
            aspect_ratio=pipeline_cfg.aspect_ratio,
        )
    if speech_synthesizer is None:
        from tubepilot.services.speech import GeminiSpeechSynthesizer
        speech_synthesizer = GeminiSpeechSynthesizer(models.speech, voice=models.voice, max_retries=retries)
    if thumbnail_generator is None:
        from tubepilot.services.thumbnail import GeminiThumbnailGenerator
        thumbnail_generator = GeminiThumbnailGenerator(models.thumbnail, max_retries=retries)
    if uploader is None:
        from tubepilot.services.uploader import LoggingUploader
        uploader = LoggingUploader()

    store = RecordStore(clock=clock)
    tracker = OperationTracker(
        store,
        ttl=timedelta(hours=pipeline_cfg.operation_ttl_hours),
        clock=clock,
    )
    pipeline = ProductionPipeline(
        store,
        tracker,
        script_generator,
        metadata_optimizer,
        video_generator,
        thumbnail_generator=thumbnail_generator,
        uploader=uploader,
        progress_callback=progress_callback,
    )
    thumbnails = ThumbnailWorker(store, thumbnail_generator)
    poller = StatusPoller(
        store,
        tracker,
        video_generator,
        speech_synthesizer,
        thumbnails=thumbnails,
        interval=pipeline_cfg.poll_interval,
        max_backoff=pipeline_cfg.poll_backoff_max,
        max_attempts=pipeline_cfg.poll_max_attempts,
        clock=clock,
    )
    scheduler = AutopilotScheduler(
        store,
        pipeline,
        series_strategist,
        daily_short_goal=pipeline_cfg.daily_short_goal,
        weekly_long_goal=pipeline_cfg.weekly_long_goal,
        clock=clock,
    )
    logger.debug("Runtime assembled")
    return Runtime(
        store=store,
        tracker=tracker,
        pipeline=pipeline,
        poller=poller,
        scheduler=scheduler,
        thumbnails=thumbnails,
    )
