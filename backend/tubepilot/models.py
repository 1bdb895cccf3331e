"""Pydantic models for the production record store.

Every map in the store is keyed by the record's optimized title; the
VideoRecord must exist before a status, operation handle or generated
artifact can be written under the same key.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


class VideoLength(str, Enum):
    """Length class of a produced video."""

    SHORT = "short"
    LONG = "long"


class VideoRecord(BaseModel):
    """Production metadata for a single video.

    Created once by the pipeline at registration time. thumbnail_url is
    filled in later by the thumbnail worker or an explicit regeneration.
    """

    model_config = ConfigDict(validate_assignment=True)

    optimized_title: str
    title: str
    script: str
    length: VideoLength
    playlist: Optional[str] = None
    scheduled_date: Optional[date] = None
    optimized_description: str = ""
    optimized_tags: list[str] = Field(default_factory=list)
    optimized_category: str = ""
    suggested_upload_time: Optional[str] = None
    thumbnail_url: Optional[str] = None

    @property
    def key(self) -> str:
        return self.optimized_title


class OperationHandle(BaseModel):
    """Opaque reference to an external generation job plus its creation time."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    operation: Any
    created_at: datetime


class GeneratedArtifact(BaseModel):
    """Visual and narration references produced for a completed record."""

    video_url: str
    audio_url: str
