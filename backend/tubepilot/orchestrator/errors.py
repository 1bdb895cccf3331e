"""Exceptions raised and absorbed by the production pipeline.

Failures before a record is registered propagate to the caller. Failures
after registration are absorbed by the pipeline and poller into a
terminal record status and only logged.
"""


class PipelineError(Exception):
    """Base class for all production pipeline errors."""


class ScriptGenerationFailure(PipelineError):
    """The script generator produced no usable script."""


class OptimizationFailure(PipelineError):
    """The metadata optimizer produced no usable metadata."""


class KickoffFailure(PipelineError):
    """The video generator returned no operation handle."""


class PollTransientFailure(PipelineError):
    """A status check failed; retried on the record's next scheduled poll."""


class SynthesisFailure(PipelineError):
    """Narration could not be synthesized for a completed video."""


class LostOperation(PipelineError):
    """The operation handle expired while the record was still processing."""


class RecordNotFound(PipelineError):
    """No video record exists under the given key."""


class InvalidTransition(PipelineError):
    """The requested action is not allowed from the record's current status."""


class UploadFailure(PipelineError):
    """The uploader rejected or failed to upload a video."""


class ThumbnailFailure(PipelineError):
    """The thumbnail generator produced no image."""
