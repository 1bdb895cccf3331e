"""Thumbnail generation using a Gemini image model."""

import base64
import logging
from typing import Optional

from google.genai import types
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from tubepilot.services.base import ThumbnailGenerator
from tubepilot.services.vertex_client import first_inline_data, get_vertex_client, location_for_model

logger = logging.getLogger(__name__)


def build_thumbnail_prompt(topic: str, script: Optional[str] = None, title: Optional[str] = None) -> str:
    """Assemble the image prompt for a video thumbnail."""
    parts = [f'Generate a compelling, high-resolution YouTube thumbnail for a video about "{topic}".']
    if title:
        parts.append(
            f'The video is titled "{title}". If this title suggests it is part of a series '
            '(e.g., "Part 1", "Episode 2"), make the thumbnail visually distinct from other '
            "videos in the series by using different colors, imagery, or by subtly "
            "incorporating the part number."
        )
    if script:
        parts.append(
            f'The video script is as follows: "{script}". The thumbnail should accurately '
            "reflect the video's content."
        )
    parts.append(
        "The thumbnail should be visually striking, with vibrant colors and clear, "
        "easy-to-read text if any is included. Avoid overly cluttered designs. The style "
        "should be modern and engaging. Ensure the generated image is unique."
    )
    return "\n".join(parts)


class GeminiThumbnailGenerator(ThumbnailGenerator):
    """ThumbnailGenerator backed by a Gemini image model."""

    retry_wait = wait_exponential(multiplier=1, min=2, max=30)

    def __init__(self, model_id: str, max_retries: int = 3, client=None) -> None:
        self._model_id = model_id
        self._max_retries = max_retries
        self._client = client

    async def generate(
        self,
        topic: str,
        *,
        script: Optional[str] = None,
        title: Optional[str] = None,
    ) -> str:
        prompt = build_thumbnail_prompt(topic, script, title)

        @retry(
            stop=stop_after_attempt(self._max_retries),
            wait=self.retry_wait,
            retry=retry_if_exception_type(Exception),
            reraise=True,
        )
        async def _call():
            client = self._client or get_vertex_client(location=location_for_model(self._model_id))
            response = await client.aio.models.generate_content(
                model=self._model_id,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_modalities=["IMAGE"],
                ),
            )
            image = first_inline_data(response)
            if image is None:
                raise ValueError("Image generation failed to produce an image")
            return image

        image = await _call()
        mime_type = image.mime_type or "image/png"
        logger.info(f"Generated thumbnail for {title or topic!r}")
        return f"data:{mime_type};base64,{base64.b64encode(image.data).decode()}"
