"""State machine constants and transition logic for video records.

Defines the lifecycle every VideoRecord moves through, from registration
to publication, and which states a user-triggered retry may restart from.
"""

from enum import Enum


class VideoStatus(str, Enum):
    """Lifecycle status of a VideoRecord."""

    DRAFT = "Draft"
    PROCESSING = "Processing"
    GENERATED = "Generated"
    SCHEDULED = "Scheduled"
    FAILED = "Failed"
    PUBLISHED = "Published"
    TIMED_OUT = "TimedOut"
    LOST = "Lost"


VIDEO_STATES = {
    VideoStatus.DRAFT: "Registered but generation not started",
    VideoStatus.PROCESSING: "External generation job in flight",
    VideoStatus.GENERATED: "Video and narration ready, no upload time suggested",
    VideoStatus.SCHEDULED: "Video and narration ready, upload time suggested",
    VideoStatus.FAILED: "Generation, kickoff or narration failed",
    VideoStatus.PUBLISHED: "Uploaded by an explicit publish action",
    VideoStatus.TIMED_OUT: "Job still unfinished after the maximum number of polls",
    VideoStatus.LOST: "Operation handle expired while the record was processing",
}

# Allowed transitions; anything not listed is rejected by can_transition()
TRANSITIONS = {
    VideoStatus.DRAFT: {VideoStatus.PROCESSING},
    VideoStatus.PROCESSING: {
        VideoStatus.GENERATED,
        VideoStatus.SCHEDULED,
        VideoStatus.FAILED,
        VideoStatus.TIMED_OUT,
        VideoStatus.LOST,
    },
    VideoStatus.GENERATED: {VideoStatus.PUBLISHED},
    VideoStatus.SCHEDULED: {VideoStatus.PUBLISHED},
    VideoStatus.FAILED: {VideoStatus.PROCESSING},
    VideoStatus.TIMED_OUT: {VideoStatus.PROCESSING},
    VideoStatus.LOST: {VideoStatus.PROCESSING},
    VideoStatus.PUBLISHED: set(),
}

# States from which a user may retry generation
RETRYABLE_STATES = {
    VideoStatus.FAILED,
    VideoStatus.TIMED_OUT,
    VideoStatus.LOST,
}

# States with a generated artifact ready for upload
PUBLISHABLE_STATES = {
    VideoStatus.GENERATED,
    VideoStatus.SCHEDULED,
}


def can_transition(current: VideoStatus | None, target: VideoStatus) -> bool:
    """Check whether a record may move from current to target.

    A record with no status yet may only enter Draft or Processing.
    """
    if current is None:
        return target in (VideoStatus.DRAFT, VideoStatus.PROCESSING)
    return target in TRANSITIONS.get(current, set())


def can_retry(status: VideoStatus | None) -> bool:
    """Check if generation can be restarted from the given status."""
    return status in RETRYABLE_STATES


def can_publish(status: VideoStatus | None) -> bool:
    """Check if a record in the given status can be uploaded."""
    return status in PUBLISHABLE_STATES


def completion_status(suggested_upload_time: str | None) -> VideoStatus:
    """Return the status a successfully generated record settles in.

    Records carrying a suggested upload time are Scheduled, all others
    are Generated.
    """
    if suggested_upload_time:
        return VideoStatus.SCHEDULED
    return VideoStatus.GENERATED
