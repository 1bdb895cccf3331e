"""Video generation using Veo long-running operations.

start() submits a job and returns the operation name as the opaque
handle; check() fetches the operation and maps it to an OperationStatus.
Neither waits for completion: the status poller drives completion.

To keep generation cheap, Veo is prompted with only the first sentence of
the script and asked for a short silent clip.
"""

import base64
import logging
import re
from typing import Any, Optional

from google.genai import types
from google.genai.errors import ClientError, ServerError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from tubepilot.schemas.production import OperationStatus
from tubepilot.services.base import VideoGenerator
from tubepilot.services.vertex_client import get_vertex_client, location_for_model

logger = logging.getLogger(__name__)

_SENTENCE_END = re.compile(r"[.!?]")


def first_sentence(script: str) -> str:
    """Return the script's first sentence, terminated with a period.

    >>> first_sentence("Hello. World.")
    'Hello.'
    """
    return _SENTENCE_END.split(script.strip(), maxsplit=1)[0].strip() + "."


def _is_retriable(exc: BaseException) -> bool:
    """Return True only for transient errors worth retrying (429, 5xx)."""
    if isinstance(exc, ServerError):
        return True
    if isinstance(exc, ClientError):
        return getattr(exc, "code", 0) == 429
    if isinstance(exc, (ConnectionError, TimeoutError)):
        return True
    return False


def _media_reference(operation: Any) -> Optional[str]:
    """Locate the generated clip in a finished operation's response."""
    response = getattr(operation, "response", None)
    videos = getattr(response, "generated_videos", None) or []
    for generated in videos:
        video = getattr(generated, "video", None)
        if video is None:
            continue
        if video.uri:
            return video.uri
        if video.video_bytes:
            mime_type = video.mime_type or "video/mp4"
            encoded = base64.b64encode(video.video_bytes).decode()
            return f"data:{mime_type};base64,{encoded}"
    return None


class VeoVideoGenerator(VideoGenerator):
    """VideoGenerator backed by Veo on Vertex AI."""

    def __init__(
        self,
        model_id: str,
        *,
        duration_seconds: int = 5,
        aspect_ratio: str = "16:9",
        client=None,
    ) -> None:
        self._model_id = model_id
        self._duration_seconds = duration_seconds
        self._aspect_ratio = aspect_ratio
        self._client = client

    def _get_client(self):
        if self._client is None:
            self._client = get_vertex_client(location=location_for_model(self._model_id))
        return self._client

    @retry(
        stop=stop_after_attempt(5),
        wait=wait_exponential(multiplier=2, min=4, max=60) + wait_random(0, 3),
        retry=retry_if_exception(_is_retriable),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )
    async def _submit(self, prompt: str):
        config = types.GenerateVideosConfig(
            aspect_ratio=self._aspect_ratio,
            duration_seconds=self._duration_seconds,
            number_of_videos=1,
        )
        # Disable prompt rewriter on Veo 2
        if self._model_id == "veo-2.0-generate-001":
            config.enhance_prompt = False
        return await self._get_client().aio.models.generate_videos(
            model=self._model_id,
            prompt=prompt,
            config=config,
        )

    @retry(
        stop=stop_after_attempt(5),
        wait=wait_exponential(multiplier=2, min=4, max=60) + wait_random(0, 3),
        retry=retry_if_exception(_is_retriable),
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )
    async def _get_operation(self, operation_name: str):
        op_obj = types.GenerateVideosOperation(name=operation_name)
        return await self._get_client().aio.operations.get(operation=op_obj)

    async def start(self, script: str, title: str) -> Optional[str]:
        prompt = first_sentence(script)
        operation = await self._submit(prompt)
        name = getattr(operation, "name", None)
        if not name:
            logger.error(f"Video generation failed to start for title: {title!r}")
            return None
        logger.info(f"Video generation started for title: {title!r} ({name})")
        return name

    async def check(self, operation: Any) -> OperationStatus:
        op = await self._get_operation(operation)
        if not op.done:
            return OperationStatus(done=False)

        if op.error:
            message = op.error.get("message") if isinstance(op.error, dict) else None
            return OperationStatus(done=True, error=message or str(op.error))

        response = getattr(op, "response", None)
        filtered = getattr(response, "rai_media_filtered_count", None) or 0
        media_url = _media_reference(op)
        if media_url is None and filtered:
            return OperationStatus(done=True, error="Content filtered by responsible AI")
        return OperationStatus(done=True, media_url=media_url)
