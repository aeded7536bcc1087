"""
Content Moderation Service

Submits uploaded videos to Sightengine for asynchronous analysis. Results
come back on the moderation callback route; see domain/moderation.py for
the thresholds applied there.
"""

import logging
from typing import Optional
from uuid import UUID

import httpx

from video_exchange.config.settings import get_settings
from video_exchange.domain.moderation import MODERATION_MODELS


logger = logging.getLogger(__name__)


class SightengineService:
    """Client for the Sightengine video moderation API."""

    def __init__(self):
        settings = get_settings()
        self.api_url = settings.moderation_api_url
        self.api_user = settings.moderation_api_user
        self.api_secret = settings.moderation_api_secret
        self.callback_url = settings.moderation_callback_url
        self.timeout = settings.moderation_timeout_seconds

    @property
    def is_configured(self) -> bool:
        return bool(self.api_user and self.api_secret and self.callback_url)

    async def submit_video(self, video_id: UUID, data: bytes) -> bool:
        """
        Send a video for analysis.

        The file name carries the video id so the callback can find the
        video again. Runs as a background task: failures are logged and
        reported through the return value, never raised.

        Returns:
            True if the provider accepted the job
        """
        if not self.is_configured:
            logger.warning(f"[MODERATION] Not configured, skipping video {video_id}")
            return False

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    self.api_url,
                    data={
                        "models": MODERATION_MODELS,
                        "callback_url": self.callback_url,
                        "api_user": self.api_user,
                        "api_secret": self.api_secret,
                    },
                    files={"media": (f"{video_id}.mp4", data, "video/mp4")},
                )
                response.raise_for_status()
        except httpx.HTTPStatusError as e:
            logger.warning(
                f"[MODERATION] HTTP {e.response.status_code} submitting video {video_id}"
            )
            return False
        except httpx.RequestError as e:
            logger.warning(f"[MODERATION] Error submitting video {video_id}: {e}")
            return False

        logger.info(f"[MODERATION] Submitted video {video_id}")
        return True


# =============================================================================
# Singleton Instance
# =============================================================================

_sightengine_service_instance: Optional[SightengineService] = None


def get_sightengine_service() -> SightengineService:
    """Get or create moderation service singleton."""
    global _sightengine_service_instance

    if _sightengine_service_instance is None:
        _sightengine_service_instance = SightengineService()

    return _sightengine_service_instance
