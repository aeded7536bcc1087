"""
Media Storage Service

S3-compatible object storage for uploaded videos: upload, deletion and
time-limited signed URLs for playback. boto3 is blocking, so the async
wrappers run each call in a worker thread.
"""

import asyncio
import logging
from typing import Optional
from uuid import UUID

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from video_exchange.config.settings import get_settings
from video_exchange.infrastructure.exceptions import ConfigurationError, ExternalServiceError


logger = logging.getLogger(__name__)


def video_object_key(video_id: UUID) -> str:
    """Object key of a video; the file name carries the video id."""
    return f"videos/{video_id}.mp4"


class StorageService:
    """Service for interacting with the media bucket."""

    def __init__(self):
        """Initialize the S3 client with configuration from settings."""
        settings = get_settings()
        missing = [
            key for key, value in (
                ("STORAGE_ENDPOINT_URL", settings.storage_endpoint_url),
                ("STORAGE_BUCKET_NAME", settings.storage_bucket_name),
                ("STORAGE_ACCESS_KEY_ID", settings.storage_access_key_id),
                ("STORAGE_SECRET_ACCESS_KEY", settings.storage_secret_access_key),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError("Media storage is not configured.", missing_keys=missing)

        self.bucket = settings.storage_bucket_name
        self.url_expiry = settings.storage_url_expiry_seconds
        self.s3_client = boto3.client(
            "s3",
            endpoint_url=settings.storage_endpoint_url,
            aws_access_key_id=settings.storage_access_key_id,
            aws_secret_access_key=settings.storage_secret_access_key,
            config=Config(
                signature_version="s3v4",
                connect_timeout=settings.storage_connect_timeout,
                read_timeout=settings.storage_read_timeout,
            ),
        )
        logger.info(f"StorageService initialized for bucket: {self.bucket}")

    # =========================================================================
    # Blocking operations
    # =========================================================================

    def _put_object(self, object_key: str, data: bytes, content_type: str) -> None:
        self.s3_client.put_object(
            Bucket=self.bucket,
            Key=object_key,
            Body=data,
            ContentType=content_type,
        )

    def _get_object(self, object_key: str) -> bytes:
        response = self.s3_client.get_object(Bucket=self.bucket, Key=object_key)
        return response["Body"].read()

    def _delete_object(self, object_key: str) -> bool:
        try:
            self.s3_client.delete_object(Bucket=self.bucket, Key=object_key)
            logger.info(f"Deleted {object_key} from storage")
            return True
        except ClientError as e:
            error_code = e.response.get("Error", {}).get("Code", "Unknown")
            if error_code == "NoSuchKey":
                logger.debug(f"Object already deleted or doesn't exist: {object_key}")
                return True
            logger.error(f"Failed to delete {object_key} from storage: {e}", exc_info=True)
            return False

    def generate_download_url(self, object_key: str, expires_in: Optional[int] = None) -> str:
        """
        Generate a presigned GET URL for playback.

        Args:
            object_key: Object key in the bucket
            expires_in: URL lifetime in seconds (default from settings)

        Returns:
            Presigned URL
        """
        if not object_key:
            raise ValueError("object_key cannot be empty")

        try:
            return self.s3_client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket, "Key": object_key},
                ExpiresIn=expires_in or self.url_expiry,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to generate download URL for {object_key}: {e}", exc_info=True)
            raise ExternalServiceError(
                "The video URL could not be generated.",
                service="storage",
                original_error=e,
            )

    # =========================================================================
    # Async API
    # =========================================================================

    async def upload_video(
        self,
        video_id: UUID,
        data: bytes,
        content_type: str = "video/mp4",
    ) -> str:
        """
        Store an uploaded video.

        Returns:
            The object key
        """
        object_key = video_object_key(video_id)
        try:
            await asyncio.to_thread(self._put_object, object_key, data, content_type)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to upload {object_key}: {e}", exc_info=True)
            raise ExternalServiceError(
                "The video could not be stored. Please try again later.",
                service="storage",
                original_error=e,
            )
        logger.info(f"Uploaded {object_key} ({len(data)} bytes)")
        return object_key

    async def download_video(self, object_key: str) -> bytes:
        """Fetch a stored video, e.g. to resubmit it for moderation."""
        try:
            return await asyncio.to_thread(self._get_object, object_key)
        except (ClientError, BotoCoreError) as e:
            logger.error(f"Failed to download {object_key}: {e}", exc_info=True)
            raise ExternalServiceError(
                "The video could not be read from storage.",
                service="storage",
                original_error=e,
            )

    async def delete_video(self, object_key: str) -> bool:
        """Delete a stored video. Returns False when the bucket refused."""
        if not object_key:
            return True
        try:
            return await asyncio.to_thread(self._delete_object, object_key)
        except BotoCoreError as e:
            logger.error(f"Failed to delete {object_key}: {e}", exc_info=True)
            return False


# =============================================================================
# Singleton Instance
# =============================================================================

_storage_service_instance: Optional[StorageService] = None


def get_storage_service() -> StorageService:
    """Get or create storage service singleton."""
    global _storage_service_instance

    if _storage_service_instance is None:
        _storage_service_instance = StorageService()

    return _storage_service_instance
