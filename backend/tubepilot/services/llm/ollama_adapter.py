"""Ollama as an LLM adapter, for running the text collaborators locally.

Ollama does not reliably enforce a JSON schema passed as format, so the
request uses format="json" and the schema is spelled out in the system
prompt instead.
"""

import json
from typing import Optional, Type

from ollama import AsyncClient
from pydantic import BaseModel

from tubepilot.services.llm.base import LLMAdapter


def schema_instruction(schema: Type[BaseModel]) -> str:
    """Describe the expected JSON object for the system prompt."""
    schema_json = json.dumps(schema.model_json_schema(), indent=2)
    return (
        "Respond with a single JSON object and nothing else (no markdown, no "
        f"commentary). It must conform to this JSON schema:\n{schema_json}"
    )


class OllamaAdapter(LLMAdapter):
    """Adapter for a local or hosted Ollama server.

    Model ids carry an "ollama/" prefix in configuration; it is removed
    before the request.
    """

    def __init__(
        self,
        model_id: str,
        base_url: str = "http://localhost:11434",
        api_key: Optional[str] = None,
    ) -> None:
        self._model_id = model_id
        self._ollama_model = model_id.removeprefix("ollama/")
        headers = {"Authorization": f"Bearer {api_key}"} if api_key else {}
        self._client = AsyncClient(host=base_url, headers=headers)

    @property
    def model_id(self) -> str:
        return self._model_id

    async def _complete(
        self,
        prompt: str,
        schema: Type[BaseModel],
        temperature: float,
        system_prompt: Optional[str],
    ) -> str:
        system_parts = [system_prompt, schema_instruction(schema)]
        response = await self._client.chat(
            model=self._ollama_model,
            messages=[
                {"role": "system", "content": "\n\n".join(p for p in system_parts if p)},
                {"role": "user", "content": prompt},
            ],
            format="json",
            options={"temperature": temperature},
            stream=False,
        )
        return response.message.content
