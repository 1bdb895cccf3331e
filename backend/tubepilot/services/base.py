"""Abstract base classes for the external collaborators of the pipeline.

The pipeline, poller and scheduler depend only on these interfaces. The
shipped implementations call Vertex AI (or Ollama for text); tests
substitute in-process fakes.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from tubepilot.models import VideoLength
from tubepilot.schemas.production import (
    OperationStatus,
    OptimizedMetadata,
    ScriptResult,
    SeriesSuggestion,
    UploadCredentials,
    UploadMetadata,
)


class ScriptGenerator(ABC):
    @abstractmethod
    async def generate(
        self,
        length: VideoLength,
        *,
        topic: Optional[str] = None,
        title: Optional[str] = None,
        inspiration_url: Optional[str] = None,
    ) -> ScriptResult:
        """Write a script.

        When title is given the result must carry it unchanged; when topic
        is generic the result names the specific topic that was chosen.
        """
        ...


class MetadataOptimizer(ABC):
    @abstractmethod
    async def optimize(
        self,
        *,
        title: str,
        description: str,
        tags: list[str],
        category: str,
        script: str,
    ) -> OptimizedMetadata:
        """Return SEO-optimized metadata for the given draft metadata."""
        ...


class VideoGenerator(ABC):
    """Starts long-running video jobs and reports on their progress."""

    @abstractmethod
    async def start(self, script: str, title: str) -> Optional[Any]:
        """Kick off generation and return an opaque handle, or None."""
        ...

    @abstractmethod
    async def check(self, operation: Any) -> OperationStatus:
        """Fetch the current state of a job started by start()."""
        ...


class SpeechSynthesizer(ABC):
    @abstractmethod
    async def synthesize(self, script: str) -> str:
        """Return a reference (URL or data URI) to narration of the script."""
        ...


class ThumbnailGenerator(ABC):
    @abstractmethod
    async def generate(
        self,
        topic: str,
        *,
        script: Optional[str] = None,
        title: Optional[str] = None,
    ) -> str:
        """Return a reference (URL or data URI) to a thumbnail image."""
        ...


class SeriesStrategist(ABC):
    @abstractmethod
    async def suggest(self, existing_playlists: list[str]) -> SeriesSuggestion:
        """Decide whether to extend one of the playlists or start a new series."""
        ...


class Uploader(ABC):
    @abstractmethod
    async def upload(
        self,
        credentials: UploadCredentials,
        media_url: str,
        metadata: UploadMetadata,
    ) -> bool:
        """Upload a video; True on success."""
        ...
