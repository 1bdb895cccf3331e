"""Script generation using LLM structured output.

Writes advertiser-friendly narration scripts for short (about one minute)
and long (five to ten minute) videos, optionally modelled on the tone
and structure of an inspiration video.
"""

import logging
from typing import Optional

from tubepilot.models import VideoLength
from tubepilot.schemas.production import ScriptOutput, ScriptResult
from tubepilot.services.base import ScriptGenerator
from tubepilot.services.llm import LLMAdapter

logger = logging.getLogger(__name__)

DEFAULT_TOPIC = "a trending topic"

_LENGTH_PHRASES = {
    VideoLength.SHORT: "a short, concise 1-minute",
    VideoLength.LONG: "a detailed 5-10 minute",
}

_SYSTEM_PROMPT = (
    "You are an expert content creator. Every script you write is "
    "advertiser-friendly and compliant with YouTube's community guidelines."
)


def build_script_prompt(
    topic: str,
    length: VideoLength,
    title: Optional[str] = None,
    inspiration_url: Optional[str] = None,
) -> str:
    """Assemble the script-writing prompt."""
    lines = [
        f'The topic for the script is: "{topic}".',
        f"The script should be {_LENGTH_PHRASES[length]} in length.",
    ]
    if title:
        lines.append(f'The title of this specific video should be: "{title}".')
    if inspiration_url:
        lines.append(
            f"Draw inspiration from this video: {inspiration_url}. Model the tone, "
            "style and structure on it, but do NOT copy its script."
        )
    lines.append(
        "The script should be engaging, informative, and well-structured. It must "
        "include a compelling title (if one isn't provided), an introduction, main "
        "points, and a conclusion."
    )
    lines.append(
        "If the provided topic was generic (e.g., \"a trending topic\"), return the "
        "specific topic you chose in the 'topic' field."
    )
    return "\n\n".join(lines)


class LLMScriptGenerator(ScriptGenerator):
    """ScriptGenerator backed by any LLMAdapter."""

    def __init__(self, adapter: LLMAdapter, max_retries: int = 3) -> None:
        self._adapter = adapter
        self._max_retries = max_retries

    async def generate(
        self,
        length: VideoLength,
        *,
        topic: Optional[str] = None,
        title: Optional[str] = None,
        inspiration_url: Optional[str] = None,
    ) -> ScriptResult:
        topic = topic or DEFAULT_TOPIC
        prompt = build_script_prompt(topic, length, title, inspiration_url)
        logger.info(f"Writing {length.value} script on {topic!r} with {self._adapter.model_id}")

        output = await self._adapter.generate_text(
            prompt,
            ScriptOutput,
            system_prompt=_SYSTEM_PROMPT,
            max_retries=self._max_retries,
        )
        if not output.script.strip():
            raise ValueError("Could not generate script")

        return ScriptResult(
            script=output.script,
            topic=output.topic or topic,
            title=title or output.title,
        )
