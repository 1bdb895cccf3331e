"""Abstract base class for LLM provider adapters.

Providers only implement _complete(), which returns the model's raw JSON
text. generate_text() adds what every collaborator needs on top: retries
with exponential backoff, code-fence stripping and validation against the
caller's Pydantic schema. A response that fails validation counts as a
failed attempt and is retried.
"""

import logging
from abc import ABC, abstractmethod
from typing import Optional, Type, TypeVar

from pydantic import BaseModel
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)


def strip_code_fence(raw: str) -> str:
    """Remove a surrounding markdown code fence some models add anyway."""
    stripped = raw.strip()
    if not stripped.startswith("```"):
        return raw
    first_newline = stripped.find("\n")
    if first_newline == -1:
        return raw
    stripped = stripped[first_newline + 1:]
    if stripped.endswith("```"):
        stripped = stripped[:-3].rstrip()
    return stripped


class LLMAdapter(ABC):
    """Structured text generation against one model."""

    retry_wait = wait_exponential(multiplier=1, min=2, max=30)

    @property
    @abstractmethod
    def model_id(self) -> str:
        """Model identifier this adapter was created for."""
        ...

    @abstractmethod
    async def _complete(
        self,
        prompt: str,
        schema: Type[BaseModel],
        temperature: float,
        system_prompt: Optional[str],
    ) -> str:
        """Send one request and return the raw response text."""
        ...

    async def generate_text(
        self,
        prompt: str,
        schema: Type[SchemaT],
        *,
        temperature: float = 0.7,
        system_prompt: Optional[str] = None,
        max_retries: int = 3,
    ) -> SchemaT:
        """Generate structured output from a prompt.

        Args:
            prompt: The user prompt to send to the model.
            schema: Pydantic model class defining the expected output structure.
            temperature: Sampling temperature (0.0-1.0). Lower = more deterministic.
            system_prompt: Optional system/instruction prompt.
            max_retries: Total attempts before the last error is raised.

        Returns:
            Validated instance of the supplied schema class.
        """
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(max_retries),
            wait=self.retry_wait,
            retry=retry_if_exception_type(Exception),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        ):
            with attempt:
                raw = await self._complete(prompt, schema, temperature, system_prompt)
                if not raw or not raw.strip():
                    raise ValueError(f"{self.model_id} returned an empty response")
                result = schema.model_validate_json(strip_code_fence(raw))
        logger.debug(f"{self.model_id} produced {schema.__name__}")
        return result
