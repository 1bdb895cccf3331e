"""Structured text generation for the script, metadata and series collaborators.

    adapter = get_adapter(settings.models.script_llm, settings.ollama)
    output = await adapter.generate_text(prompt, ScriptOutput)
"""

from tubepilot.services.llm.base import LLMAdapter
from tubepilot.services.llm.registry import get_adapter

__all__ = ["LLMAdapter", "get_adapter"]
