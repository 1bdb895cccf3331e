"""Production pipeline orchestrator.

Drives one production run strictly in order:
- Script generation (or a caller-supplied script)
- Metadata optimization, which yields the record key
- Registration of the VideoRecord with status Processing
- Kickoff of the external video generation job

Failures in the first two steps propagate to the caller and leave no
record behind. Once the record is registered, kickoff failures are
absorbed into status Failed; the remedy is retry().

Also hosts the user actions on existing records: retry, publish and
thumbnail regeneration.
"""

import logging
import time
from typing import Callable, Optional

from tubepilot.models import VideoLength, VideoRecord
from tubepilot.orchestrator.errors import (
    InvalidTransition,
    KickoffFailure,
    OptimizationFailure,
    RecordNotFound,
    ScriptGenerationFailure,
    ThumbnailFailure,
    UploadFailure,
)
from tubepilot.orchestrator.state import VideoStatus, can_publish, can_retry
from tubepilot.schemas.production import ScriptResult, UploadCredentials, UploadMetadata
from tubepilot.services.base import (
    MetadataOptimizer,
    ScriptGenerator,
    ThumbnailGenerator,
    Uploader,
    VideoGenerator,
)
from tubepilot.store.operations import OperationTracker
from tubepilot.store.records import RecordStore

logger = logging.getLogger(__name__)

# Provisional metadata sent to the optimizer alongside the script
DRAFT_DESCRIPTION = " "
DRAFT_CATEGORY = "Technology"
# YouTube "Science & Technology"
DEFAULT_UPLOAD_CATEGORY = "28"


class ProductionPipeline:
    """Runs production and the user actions on produced records."""

    def __init__(
        self,
        store: RecordStore,
        tracker: OperationTracker,
        script_generator: ScriptGenerator,
        metadata_optimizer: MetadataOptimizer,
        video_generator: VideoGenerator,
        *,
        thumbnail_generator: Optional[ThumbnailGenerator] = None,
        uploader: Optional[Uploader] = None,
        progress_callback: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.store = store
        self.tracker = tracker
        self._script_generator = script_generator
        self._metadata_optimizer = metadata_optimizer
        self._video_generator = video_generator
        self._thumbnail_generator = thumbnail_generator
        self._uploader = uploader
        self._progress_callback = progress_callback

    def _progress(self, message: str) -> None:
        if self._progress_callback:
            self._progress_callback(message)

    async def produce(
        self,
        length: VideoLength | str,
        playlist: Optional[str] = None,
        topic: Optional[str] = None,
        title: Optional[str] = None,
        inspiration_url: Optional[str] = None,
        script: Optional[str] = None,
    ) -> str:
        """Run one full production and return the record key.

        Args:
            length: "short" or "long".
            playlist: Optional playlist (series) the video belongs to.
            topic: Topic hint for the script generator.
            title: Title hint; kept verbatim as the original title.
            inspiration_url: Reference video for tone and structure.
            script: Use this script instead of generating one.

        Returns:
            The optimized title, which is the record key.

        Raises:
            ScriptGenerationFailure: Script generation failed; nothing registered.
            OptimizationFailure: Metadata optimization failed; nothing registered.
        """
        length = VideoLength(length)
        pipeline_start = time.monotonic()

        # Step 1: Script
        step_start = time.monotonic()
        if script:
            script_result = ScriptResult(
                script=script,
                title=title or "Untitled",
                topic=topic or "Custom Script",
            )
        else:
            self._progress("Writing script...")
            try:
                script_result = await self._script_generator.generate(
                    length,
                    topic=topic,
                    title=title,
                    inspiration_url=inspiration_url,
                )
            except Exception as e:
                logger.error(f"Script generation failed: {type(e).__name__}: {e}")
                raise ScriptGenerationFailure(str(e)) from e
        logger.info(f"Script step completed in {time.monotonic() - step_start:.2f}s")

        # Step 2: Metadata optimization
        step_start = time.monotonic()
        self._progress("Optimizing metadata...")
        try:
            metadata = await self._metadata_optimizer.optimize(
                title=script_result.title,
                description=DRAFT_DESCRIPTION,
                tags=[],
                category=DRAFT_CATEGORY,
                script=script_result.script,
            )
        except Exception as e:
            logger.error(f"Metadata optimization failed: {type(e).__name__}: {e}")
            raise OptimizationFailure(str(e)) from e
        logger.info(f"Optimization step completed in {time.monotonic() - step_start:.2f}s")

        # Step 3: Registration. The record is complete before its status
        # becomes Processing, which is what makes it visible to the poller.
        key = metadata.optimized_title
        registered = self.store.create(
            VideoRecord(
                optimized_title=key,
                title=script_result.title,
                script=script_result.script,
                length=length,
                playlist=playlist,
                optimized_description=metadata.optimized_description,
                optimized_tags=list(metadata.optimized_tags),
                optimized_category=metadata.optimized_category,
                suggested_upload_time=metadata.suggested_upload_time,
            )
        )
        if not registered:
            return await self._resolve_collision(key)
        self.store.set_status(key, VideoStatus.PROCESSING)

        # Step 4: Kickoff
        self._progress("Starting video generation...")
        await self._kickoff(key, script_result.script)

        logger.info(
            f"Production of {key!r} handed off in {time.monotonic() - pipeline_start:.2f}s"
        )
        return key

    async def _resolve_collision(self, key: str) -> str:
        """Handle a second production that optimized to an existing title.

        The existing record and its script are kept. A retryable record is
        restarted from its stored script; any other record is left untouched.
        """
        status = self.store.get_status(key)
        status_value = status.value if status else None
        if not can_retry(status):
            logger.warning(f"{key!r} already exists ({status_value}); leaving it untouched")
            return key
        logger.warning(f"{key!r} already exists ({status_value}); restarting it from its stored script")
        self._progress("Starting video generation...")
        await self._restart(key, self.store.get(key).script)
        return key

    async def _restart(self, key: str, script: str) -> bool:
        self.tracker.discard(key)
        self.store.set_status(key, VideoStatus.PROCESSING)
        return await self._kickoff(key, script)

    async def _kickoff(self, key: str, script: str) -> bool:
        """Start the external job for a registered record.

        Any failure is absorbed into status Failed. No automatic retry.
        """
        try:
            operation = await self._video_generator.start(script, key)
            if operation is None:
                raise KickoffFailure(f"No operation handle returned for {key!r}")
        except Exception as e:
            logger.error(f"Kickoff failed for {key!r}: {type(e).__name__}: {e}")
            self.store.set_status(key, VideoStatus.FAILED)
            return False

        self.tracker.store(key, operation)
        return True

    def _require(self, key: str) -> VideoRecord:
        record = self.store.get(key)
        if record is None:
            raise RecordNotFound(f"Video {key!r} not found")
        return record

    async def retry(self, key: str) -> bool:
        """Restart generation for a Failed, TimedOut or Lost record.

        Reuses the stored script; only the kickoff step runs again.

        Returns:
            True if the new job was started, False if kickoff failed again.
        """
        record = self._require(key)
        status = self.store.get_status(key)
        if not can_retry(status):
            raise InvalidTransition(
                f"Video {key!r} cannot be retried from status "
                f"{status.value if status else None!r}"
            )
        if not record.script:
            raise InvalidTransition(f"Cannot find script for {key!r}")

        logger.info(f"Retrying video generation for {key!r} (was {status.value})")
        return await self._restart(key, record.script)

    async def publish(self, key: str, credentials: UploadCredentials) -> None:
        """Upload a Generated or Scheduled video and mark it Published.

        Raises:
            RecordNotFound: No record under key.
            InvalidTransition: Record not ready, or no artifact/uploader.
            UploadFailure: The uploader failed; status is left unchanged.
        """
        record = self._require(key)
        status = self.store.get_status(key)
        if not can_publish(status):
            raise InvalidTransition(
                f"Video {key!r} cannot be published from status "
                f"{status.value if status else None!r}"
            )
        artifact = self.store.get_artifact(key)
        if artifact is None or not artifact.video_url:
            raise InvalidTransition(f"Video data is missing for {key!r}")
        if self._uploader is None:
            raise InvalidTransition("No uploader configured")

        metadata = UploadMetadata(
            title=record.optimized_title,
            description=record.optimized_description or "No description available.",
            tags=record.optimized_tags,
            category=record.optimized_category or DEFAULT_UPLOAD_CATEGORY,
        )
        try:
            uploaded = await self._uploader.upload(credentials, artifact.video_url, metadata)
        except Exception as e:
            logger.error(f"Upload failed for {key!r}: {type(e).__name__}: {e}")
            raise UploadFailure(str(e)) from e
        if not uploaded:
            raise UploadFailure(f"Could not upload {key!r}")

        self.store.set_status(key, VideoStatus.PUBLISHED)

    async def regenerate_thumbnail(self, key: str) -> str:
        """Generate a new thumbnail for any record and store it."""
        record = self._require(key)
        if self._thumbnail_generator is None:
            raise ThumbnailFailure("No thumbnail generator configured")
        try:
            thumbnail_url = await self._thumbnail_generator.generate(
                record.title,
                script=record.script,
                title=record.optimized_title,
            )
        except Exception as e:
            logger.error(f"Thumbnail generation failed for {key!r}: {e}")
            raise ThumbnailFailure(str(e)) from e

        self.store.update(key, thumbnail_url=thumbnail_url)
        return thumbnail_url
