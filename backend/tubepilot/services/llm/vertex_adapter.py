"""Gemini on Vertex AI as an LLM adapter.

Structured output is requested natively through response_schema, with
the safety filters every public-facing script and description needs.
"""

from typing import Optional, Type

from google.genai import types as genai_types
from pydantic import BaseModel

from tubepilot.services.llm.base import LLMAdapter
from tubepilot.services.vertex_client import get_vertex_client, location_for_model

# Content must stay advertiser-friendly; block medium and above everywhere
SAFETY_SETTINGS = [
    genai_types.SafetySetting(
        category=category,
        threshold=genai_types.HarmBlockThreshold.BLOCK_MEDIUM_AND_ABOVE,
    )
    for category in (
        genai_types.HarmCategory.HARM_CATEGORY_DANGEROUS_CONTENT,
        genai_types.HarmCategory.HARM_CATEGORY_HARASSMENT,
        genai_types.HarmCategory.HARM_CATEGORY_HATE_SPEECH,
        genai_types.HarmCategory.HARM_CATEGORY_SEXUALLY_EXPLICIT,
    )
]


class VertexAIAdapter(LLMAdapter):
    def __init__(self, model_id: str, client=None) -> None:
        self._model_id = model_id
        self._client = client

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
        client = self._client or get_vertex_client(location=location_for_model(self._model_id))
        response = await client.aio.models.generate_content(
            model=self._model_id,
            contents=prompt,
            config=genai_types.GenerateContentConfig(
                temperature=temperature,
                response_mime_type="application/json",
                response_schema=schema,
                safety_settings=SAFETY_SETTINGS,
                system_instruction=system_prompt,
            ),
        )
        return response.text or ""
