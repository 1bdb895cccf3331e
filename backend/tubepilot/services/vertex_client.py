"""Shared google-genai plumbing for the Vertex AI collaborators.

Clients are created lazily, one per Vertex AI location, so importing a
collaborator never needs credentials. Authentication uses Application
Default Credentials (GOOGLE_APPLICATION_CREDENTIALS may come from .env).

TTS and some preview models are only served from the "global" location;
location_for_model() routes them there and everything else to the
configured region.
"""

import logging
from typing import Any, Optional

from dotenv import load_dotenv
from google import genai

from tubepilot.config import settings

logger = logging.getLogger(__name__)

load_dotenv()

_clients: dict[str, genai.Client] = {}

GLOBAL_REGION_MODELS = {
    "gemini-2.5-flash-preview-tts",
    "gemini-2.5-pro-preview-tts",
    "gemini-3-flash-preview",
    "gemini-3-pro-preview",
    "gemini-3-pro-image-preview",
}


def location_for_model(model_id: str) -> str:
    if model_id in GLOBAL_REGION_MODELS:
        return "global"
    return settings.google_cloud.location


def get_vertex_client(location: Optional[str] = None) -> genai.Client:
    """Return the cached Vertex AI client for a location, creating it once.

    Raises:
        RuntimeError: No Google Cloud project is configured.
    """
    loc = location or settings.google_cloud.location
    if loc in _clients:
        return _clients[loc]

    project = settings.google_cloud.project_id
    if not project:
        raise RuntimeError("google_cloud.project_id is not set; cannot create a Vertex AI client")

    logger.debug(f"Creating Vertex AI client for {project} in {loc}")
    _clients[loc] = genai.Client(vertexai=True, project=project, location=loc)
    return _clients[loc]


def first_inline_data(response: Any) -> Optional[Any]:
    """Return the first non-empty inline_data blob of a generate_content response.

    Audio (TTS) and image models return their media this way.
    """
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            if inline is not None and inline.data:
                return inline
    return None
