"""API route handlers and Pydantic response schemas."""

import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from tubepilot import __version__
from tubepilot.models import VideoLength
from tubepilot.orchestrator.errors import RecordNotFound
from tubepilot.runtime import Runtime
from tubepilot.schemas.production import UploadCredentials

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


def get_runtime(request: Request) -> Runtime:
    return request.app.state.runtime


# ============================================================================
# Schemas
# ============================================================================

class ProduceRequest(BaseModel):
    """Request schema for POST /api/videos."""
    length: VideoLength
    playlist: Optional[str] = None
    topic: Optional[str] = None
    title: Optional[str] = None
    inspiration_url: Optional[str] = None
    script: Optional[str] = None


class VideoResponse(BaseModel):
    """A video record together with its status and generated media."""
    key: str
    title: str
    length: VideoLength
    status: Optional[str]
    playlist: Optional[str] = None
    scheduled_date: Optional[date] = None
    optimized_description: str = ""
    optimized_tags: list[str] = []
    optimized_category: str = ""
    suggested_upload_time: Optional[str] = None
    thumbnail_url: Optional[str] = None
    thumbnail_status: str = "not_started"
    video_url: Optional[str] = None
    audio_url: Optional[str] = None
    script: Optional[str] = None


class RetryResponse(BaseModel):
    """Response schema for POST /api/videos/{key}/retry."""
    key: str
    started: bool
    status: str


class ThumbnailResponse(BaseModel):
    key: str
    thumbnail_url: str


class PlaylistItem(BaseModel):
    name: str
    video_count: int


class QuotaResponse(BaseModel):
    """Response schema for GET /api/autopilot/quota."""
    shorts_today: int
    daily_short_goal: int
    longs_this_week: int
    weekly_long_goal: int
    next_length: str


class AutopilotResponse(BaseModel):
    length: VideoLength
    created: list[str]


# ============================================================================
# Helpers
# ============================================================================

def _video_response(runtime: Runtime, key: str, include_script: bool = False) -> VideoResponse:
    record = runtime.store.get(key)
    if record is None:
        raise RecordNotFound(f"Video {key!r} not found")
    status = runtime.store.get_status(key)
    artifact = runtime.store.get_artifact(key)
    return VideoResponse(
        key=record.key,
        title=record.title,
        length=record.length,
        status=status.value if status else None,
        playlist=record.playlist,
        scheduled_date=record.scheduled_date,
        optimized_description=record.optimized_description,
        optimized_tags=record.optimized_tags,
        optimized_category=record.optimized_category,
        suggested_upload_time=record.suggested_upload_time,
        thumbnail_url=record.thumbnail_url,
        thumbnail_status=runtime.thumbnails.status(key)["status"],
        video_url=artifact.video_url if artifact else None,
        audio_url=artifact.audio_url if artifact else None,
        script=record.script if include_script else None,
    )


# ============================================================================
# Videos
# ============================================================================

@router.post("/videos", status_code=201, response_model=VideoResponse)
async def produce_video(request: ProduceRequest, runtime: Runtime = Depends(get_runtime)):
    """Run script, optimization and kickoff; the poller finishes the video.

    A failed script or metadata step creates no record and answers 502.
    """
    key = await runtime.pipeline.produce(
        request.length,
        playlist=request.playlist,
        topic=request.topic,
        title=request.title,
        inspiration_url=request.inspiration_url,
        script=request.script,
    )

    logger.info(f"Produced video {key!r} via API")
    return _video_response(runtime, key)


@router.get("/videos", response_model=list[VideoResponse])
async def list_videos(
    length: Optional[VideoLength] = None,
    playlist: Optional[str] = None,
    runtime: Runtime = Depends(get_runtime),
):
    """List all videos, optionally filtered by length or playlist."""
    if playlist is not None:
        records = runtime.store.videos_in_playlist(playlist)
    else:
        records = runtime.store.all()
    if length is not None:
        records = [r for r in records if r.length == length]
    return [_video_response(runtime, r.key) for r in records]


@router.get("/videos/{key:path}", response_model=VideoResponse)
async def get_video(key: str, runtime: Runtime = Depends(get_runtime)):
    return _video_response(runtime, key, include_script=True)


@router.post("/videos/{key:path}/retry", status_code=202, response_model=RetryResponse)
async def retry_video(key: str, runtime: Runtime = Depends(get_runtime)):
    """Restart generation for a Failed, TimedOut or Lost video.

    Returns 409 if the video is in any other status.
    """
    started = await runtime.pipeline.retry(key)
    status = runtime.store.get_status(key)
    return RetryResponse(key=key, started=started, status=status.value)


@router.post("/videos/{key:path}/publish", response_model=VideoResponse)
async def publish_video(
    key: str,
    credentials: UploadCredentials,
    runtime: Runtime = Depends(get_runtime),
):
    """Upload a Generated or Scheduled video and mark it Published."""
    await runtime.pipeline.publish(key, credentials)
    return _video_response(runtime, key)


@router.post("/videos/{key:path}/thumbnail", response_model=ThumbnailResponse)
async def regenerate_thumbnail(key: str, runtime: Runtime = Depends(get_runtime)):
    thumbnail_url = await runtime.pipeline.regenerate_thumbnail(key)
    return ThumbnailResponse(key=key, thumbnail_url=thumbnail_url)


@router.get("/playlists", response_model=list[PlaylistItem])
async def list_playlists(runtime: Runtime = Depends(get_runtime)):
    return [
        PlaylistItem(name=name, video_count=runtime.store.count_in_playlist(name))
        for name in runtime.store.playlists()
    ]


# ============================================================================
# Autopilot
# ============================================================================

@router.get("/autopilot/quota", response_model=QuotaResponse)
async def get_quota(runtime: Runtime = Depends(get_runtime)):
    quota = runtime.scheduler.quota()
    return QuotaResponse(
        shorts_today=quota.shorts_today,
        daily_short_goal=quota.daily_short_goal,
        longs_this_week=quota.longs_this_week,
        weekly_long_goal=quota.weekly_long_goal,
        next_length=runtime.scheduler.suggest_next_length(),
    )


@router.post("/autopilot/{length}", response_model=AutopilotResponse)
async def run_autopilot(length: VideoLength, runtime: Runtime = Depends(get_runtime)):
    """Produce videos until the goal for this length is met.

    Videos produced before a failing step keep their records; the error
    is reported as 502.
    """
    created = await runtime.scheduler.run(length)
    return AutopilotResponse(length=length, created=created)


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": __version__,
    }
