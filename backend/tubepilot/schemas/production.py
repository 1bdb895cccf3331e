"""Pydantic schemas exchanged with the production collaborators.

The *Output classes are passed as response schemas to the LLM adapters
for structured output; the remaining classes are the values collaborators
hand back to the pipeline and poller.
"""

from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, Field


def _coerce_to_list(v: Any) -> list:
    """Split a comma-separated string into a list of stripped items.

    Some LLM providers (e.g. Ollama) return a single string for fields
    declared as arrays in the JSON schema.
    """
    if isinstance(v, str):
        return [item.strip() for item in v.split(",") if item.strip()]
    return v


CoercedList = Annotated[list[str], BeforeValidator(_coerce_to_list)]


class ScriptOutput(BaseModel):
    """Structured output of the script-writing prompt."""

    script: str = Field(
        description="Full narration script with introduction, main points and conclusion"
    )
    title: str = Field(description="Compelling video title")
    topic: Optional[str] = Field(
        default=None,
        description="The specific topic chosen when the requested topic was generic",
    )


class ScriptResult(BaseModel):
    """Script handed to the pipeline by a ScriptGenerator."""

    script: str
    title: str
    topic: str


class OptimizedMetadata(BaseModel):
    """SEO-optimized upload metadata; optimized_title becomes the record key."""

    optimized_title: str = Field(
        description="Concise, attention-grabbing title under 60 characters with primary keywords"
    )
    optimized_description: str = Field(
        description="Keyword-rich description (up to 5000 characters) ending with a call to action"
    )
    optimized_tags: CoercedList = Field(
        description="The 10 most relevant keywords for the video"
    )
    optimized_category: str = Field(description="Best suited YouTube category")
    suggested_upload_time: Optional[str] = Field(
        default=None,
        description='Best day and time to upload for maximum reach, e.g. "Saturday at 2:00 PM EST"',
    )


class SeriesSuggestion(BaseModel):
    """Next long-form series decision from the series strategist."""

    topic: str = Field(description="Engaging topic for the video series")
    playlist: str = Field(
        description="Playlist name; the existing name when extending a series, a new one otherwise"
    )
    is_new_series: bool = Field(description="True for a new series, False to extend an existing one")


class OperationStatus(BaseModel):
    """Result of checking an external generation job."""

    done: bool
    error: Optional[str] = None
    media_url: Optional[str] = None


class UploadMetadata(BaseModel):
    """Metadata sent along with a video upload."""

    title: str
    description: str
    tags: list[str] = Field(default_factory=list)
    category: str = "28"


class UploadCredentials(BaseModel):
    """Channel credentials supplied by the user for an upload."""

    api_key: str
    channel_id: str
