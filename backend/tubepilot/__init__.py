"""TubePilot - autopilot content production for AI-generated videos.

This module provides startup validation functions to ensure required
configuration is available before the production pipeline talks to
Vertex AI. Call validate_dependencies() during application startup.
"""

import logging

__version__ = "0.1.0"

logger = logging.getLogger(__name__)


def validate_dependencies() -> None:
    """Validate that the Google Cloud project needed by the adapters is set.

    This function should be called during application startup to fail fast
    with clear setup instructions instead of failing on the first
    generation call.

    Raises:
        RuntimeError: If no Google Cloud project is configured.
    """
    from tubepilot.config import settings

    if not settings.google_cloud.project_id:
        raise RuntimeError(
            "Google Cloud project not configured. Set it before running the pipeline.\n"
            "config.yaml:  google_cloud:\\n  project_id: my-project\n"
            "environment:  TUBEPILOT_GOOGLE_CLOUD__PROJECT_ID=my-project"
        )
    logger.info(
        f"Google Cloud project validated: {settings.google_cloud.project_id} "
        f"({settings.google_cloud.location})"
    )
