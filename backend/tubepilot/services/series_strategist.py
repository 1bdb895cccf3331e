"""Long-form series strategy using LLM structured output.

Decides whether the next long-form video extends one of the existing
playlists or starts a new series.
"""

import logging

from tubepilot.schemas.production import SeriesSuggestion
from tubepilot.services.base import SeriesStrategist
from tubepilot.services.llm import LLMAdapter

logger = logging.getLogger(__name__)

_SYSTEM_PROMPT = (
    "You are a YouTube content strategy expert. You decide the next video "
    "series to create, and every topic you pick is advertiser-friendly and "
    "compliant with YouTube's community guidelines."
)


def build_series_prompt(existing_playlists: list[str]) -> str:
    """Assemble the series decision prompt for the given playlists."""
    if existing_playlists:
        listing = "\n".join(f"- {name}" for name in existing_playlists)
        playlists_block = f"Here are the existing playlists:\n{listing}"
    else:
        playlists_block = (
            "There are no existing series yet. Please suggest a topic for the first series."
        )

    return (
        "Analyze the list of existing series playlists. Decide whether to:\n"
        "1. Extend an existing series: if a strong, popular topic could be expanded, "
        "return the same topic and playlist name and set is_new_series to false.\n"
        "2. Create a new series: generate a single, highly engaging, trending topic "
        "in a high-value category such as Technology, AI, Business, Education or "
        "Self-Help, suggest a fitting new playlist name and set is_new_series to true.\n\n"
        f"{playlists_block}"
    )


class LLMSeriesStrategist(SeriesStrategist):
    """SeriesStrategist backed by any LLMAdapter."""

    def __init__(self, adapter: LLMAdapter, max_retries: int = 3) -> None:
        self._adapter = adapter
        self._max_retries = max_retries

    async def suggest(self, existing_playlists: list[str]) -> SeriesSuggestion:
        suggestion = await self._adapter.generate_text(
            build_series_prompt(existing_playlists),
            SeriesSuggestion,
            system_prompt=_SYSTEM_PROMPT,
            max_retries=self._max_retries,
        )
        # A "continuation" of a playlist that does not exist is a new series
        if not suggestion.is_new_series and suggestion.playlist not in existing_playlists:
            logger.warning(
                f"Strategist continued unknown playlist {suggestion.playlist!r}; "
                "treating it as a new series"
            )
            suggestion = suggestion.model_copy(update={"is_new_series": True})

        logger.info(
            f"Series decision: {suggestion.topic!r} in {suggestion.playlist!r} "
            f"({'new' if suggestion.is_new_series else 'continuing'})"
        )
        return suggestion
