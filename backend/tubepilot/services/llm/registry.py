"""Maps the model ids in settings.models to LLM adapters.

A model id of the form "ollama/<name>" runs on the configured Ollama
server; every other id is treated as a Gemini model on Vertex AI. The
script writer, metadata optimizer and series strategist each ask for their
own adapter, so they can run on different providers.
"""

import logging
from typing import Optional

from tubepilot.config import OllamaConfig
from tubepilot.services.llm.base import LLMAdapter

logger = logging.getLogger(__name__)

OLLAMA_PREFIX = "ollama/"


def get_adapter(model_id: str, ollama: Optional[OllamaConfig] = None) -> LLMAdapter:
    """Build the adapter for a configured model id.

    Args:
        model_id: e.g. "gemini-2.5-flash" or "ollama/llama3.1".
        ollama: Ollama endpoint settings; the application settings are
            used when omitted.
    """
    if not model_id.startswith(OLLAMA_PREFIX):
        from tubepilot.services.llm.vertex_adapter import VertexAIAdapter

        logger.debug(f"{model_id} -> Vertex AI")
        return VertexAIAdapter(model_id=model_id)

    from tubepilot.services.llm.ollama_adapter import OllamaAdapter

    if ollama is None:
        from tubepilot.config import settings
        ollama = settings.ollama

    logger.debug(f"{model_id} -> Ollama at {ollama.endpoint} (api key: {'yes' if ollama.api_key else 'no'})")
    return OllamaAdapter(model_id=model_id, base_url=ollama.endpoint, api_key=ollama.api_key)
