"""YouTube SEO metadata optimization using LLM structured output."""

import logging

from tubepilot.schemas.production import OptimizedMetadata
from tubepilot.services.base import MetadataOptimizer
from tubepilot.services.llm import LLMAdapter

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "You are an expert YouTube SEO specialist and growth hacker. You optimize "
    "video metadata to improve search ranking and visibility and suggest the "
    "best time to upload for maximum impact. Everything you produce is "
    "advertiser-friendly and compliant with YouTube's community guidelines."
)

_PROMPT_TEMPLATE = """Given the following video details, generate an optimized title, description, tags, category and the best upload time.

Original Title: {title}
Original Description: {description}
Original Tags: {tags}
Original Category: {category}
Video Script: {script}

Instructions:
- Title: concise and attention-grabbing (under 60 characters) with primary keywords.
- Description: detailed and keyword-rich (up to 5000 characters) with a call to action.
- Tags: the 10 most relevant keywords from the video content.
- Category: the best suited category for the video.
- Suggested Upload Time: the optimal day and time to upload for the target audience (e.g. "Saturday at 2:00 PM EST").
"""


class LLMMetadataOptimizer(MetadataOptimizer):
    """MetadataOptimizer backed by any LLMAdapter."""

    def __init__(self, adapter: LLMAdapter, max_retries: int = 3) -> None:
        self._adapter = adapter
        self._max_retries = max_retries

    async def optimize(
        self,
        *,
        title: str,
        description: str,
        tags: list[str],
        category: str,
        script: str,
    ) -> OptimizedMetadata:
        prompt = _PROMPT_TEMPLATE.format(
            title=title,
            description=description,
            tags=", ".join(tags),
            category=category,
            script=script,
        )
        result = await self._adapter.generate_text(
            prompt,
            OptimizedMetadata,
            temperature=0.4,
            system_prompt=_SYSTEM_PROMPT,
            max_retries=self._max_retries,
        )
        if not result.optimized_title.strip():
            raise ValueError("Failed to get optimization suggestions: empty title")

        logger.info(f"Optimized {title!r} -> {result.optimized_title!r}")
        return result
