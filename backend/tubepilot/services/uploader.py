"""Video upload to YouTube.

The upload itself is out of scope for this service: LoggingUploader
validates its inputs and logs what would be sent to the videos.insert
endpoint, then reports success.
"""

import asyncio
import logging

from tubepilot.schemas.production import UploadCredentials, UploadMetadata
from tubepilot.services.base import Uploader

logger = logging.getLogger(__name__)


class LoggingUploader(Uploader):
    """Uploader that logs the upload request instead of performing it."""

    def __init__(self, delay_seconds: float = 0.0) -> None:
        self._delay_seconds = delay_seconds

    async def upload(
        self,
        credentials: UploadCredentials,
        media_url: str,
        metadata: UploadMetadata,
    ) -> bool:
        if not credentials.api_key or not credentials.channel_id:
            logger.error("Upload refused: YouTube API key and channel ID are required")
            return False
        if not media_url:
            logger.error(f"Upload refused for {metadata.title!r}: no media reference")
            return False

        logger.info(f"Uploading {metadata.title!r} to channel {credentials.channel_id}")
        logger.info(f"Description: {metadata.description[:100]}...")
        logger.info(f"Tags: {', '.join(metadata.tags)}")
        logger.info(f"Category: {metadata.category}")
        logger.info(f"Media reference length: {len(media_url)}")

        if self._delay_seconds:
            await asyncio.sleep(self._delay_seconds)

        logger.info(f"Upload of {metadata.title!r} accepted")
        return True
