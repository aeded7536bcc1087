"""
Video Service

Upload, read, edit and delete videos, count views, plus the moderation
hooks. Upload runs the quota evaluator against the uploader's resolved
plan.
"""

import hashlib
import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional
from uuid import UUID, uuid4

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from video_exchange.domain.moderation import is_sensitive, media_id_from_uri
from video_exchange.domain.quota import check_upload
from video_exchange.domain.rating import RatingSummary
from video_exchange.domain.video import VideoResponse, VideoUpdateRequest, video_metadata_errors
from video_exchange.infrastructure.db.models.base import utcnow
from video_exchange.infrastructure.db.models.video import Video
from video_exchange.infrastructure.db.repositories.exchange_repository import ExchangeRepository
from video_exchange.infrastructure.db.repositories.notification_repository import ReportRepository
from video_exchange.infrastructure.db.repositories.rating_repository import RatingRepository
from video_exchange.infrastructure.db.repositories.user_repository import UserRepository
from video_exchange.infrastructure.db.repositories.video_repository import VideoRepository
from video_exchange.infrastructure.exceptions import (
    AuthorizationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    ValidationError,
)
from video_exchange.infrastructure.media.storage_service import StorageService
from video_exchange.infrastructure.moderation.sightengine_service import SightengineService
from video_exchange.infrastructure.services.exchange_service import ExchangeService
from video_exchange.infrastructure.services.subscription_resolver import SubscriptionResolver


logger = logging.getLogger(__name__)

# One counted view per address per video in this window
VIEW_WINDOW = timedelta(hours=1)


def normalize_keywords(keywords: List[str]) -> List[str]:
    """Trim, lowercase and de-duplicate keywords, keeping their order."""
    cleaned = [keyword.strip().lower() for keyword in keywords if keyword and keyword.strip()]
    return list(dict.fromkeys(cleaned))


class VideoService:
    """
    Application service for videos.

    Args:
        session: Request session (the unit of work)
        storage: Media storage adapter
        resolver: Resolves the uploader's plan for the upload quotas
        exchanges: Exchange service, for cancelling requests on deletion
    """

    def __init__(
        self,
        session: AsyncSession,
        storage: StorageService,
        resolver: SubscriptionResolver,
        exchanges: ExchangeService,
    ):
        self._session = session
        self._storage = storage
        self._resolver = resolver
        self._exchange_service = exchanges
        self._videos = VideoRepository(session)
        self._users = UserRepository(session)
        self._exchanges = ExchangeRepository(session)
        self._ratings = RatingRepository(session)
        self._reports = ReportRepository(session)

    async def _get_video(self, video_id: UUID) -> Video:
        video = await self._videos.get_by_id(video_id)
        if video is None:
            raise NotFoundError("Video not found.", resource="video")
        return video

    async def _get_owned_video(self, user_id: UUID, video_id: UUID) -> Video:
        video = await self._get_video(video_id)
        if video.owner_id != user_id:
            raise AuthorizationError("Only the owner of the video can do this.")
        return video

    # =========================================================================
    # Upload
    # =========================================================================

    async def upload(
        self,
        owner_id: UUID,
        title: str,
        description: str,
        category: str,
        keywords: List[str],
        data: bytes,
        content_type: str = "video/mp4",
    ) -> Video:
        """
        Store a new video owned by the uploader.

        Raises:
            ValidationError: Metadata breaks a rule or the file is empty
            ConflictError: Same content already uploaded, or a quota is exceeded
            ExternalServiceError: Media storage failed
        """
        keywords = normalize_keywords(keywords)
        errors = video_metadata_errors(title, description, category, keywords)
        if not data:
            errors.append("A video file is required.")
        if errors:
            raise ValidationError.from_messages(errors)

        user = await self._users.get_by_id(owner_id)
        if user is None:
            raise NotFoundError("User not found.", resource="user")

        content_hash = hashlib.sha256(data).hexdigest()
        if await self._videos.get_by_hash(content_hash):
            raise ConflictError("This video has already been uploaded.")

        resolved = await self._resolver.resolve(user)
        check_upload(
            resolved.plan,
            size=len(data),
            owned_count=await self._videos.count_owned(owner_id),
            used_bytes=await self._videos.storage_used(owner_id),
        )

        video = Video(
            id=uuid4(),
            title=title.strip(),
            description=description.strip(),
            category=category.strip().lower(),
            keywords=keywords,
            size=len(data),
            hash=content_hash,
            owner_id=owner_id,
        )
        video.storage_key = await self._storage.upload_video(video.id, data, content_type)

        try:
            await self._videos.add(video)
            await self._videos.append_owner(video.id, owner_id)
            await self._users.add_to_library(owner_id, video.id)
            await self._session.commit()
        except SQLAlchemyError:
            await self._session.rollback()
            await self._storage.delete_video(video.storage_key)
            raise

        logger.info(f"User {owner_id} uploaded video {video.id} ({video.size} bytes)")
        return video

    # =========================================================================
    # Read
    # =========================================================================

    async def get(self, viewer_id: UUID, video_id: UUID) -> VideoResponse:
        video = await self._get_video(video_id)
        owner = await self._users.get_by_id(video.owner_id)
        has_requested = (
            await self._exchanges.find_pending_for_video(viewer_id, video.id) is not None
        )
        url = self._storage.generate_download_url(video.storage_key) if video.storage_key else None
        return VideoResponse(
            id=video.id,
            title=video.title,
            description=video.description,
            category=video.category,
            keywords=video.keywords,
            size=video.size,
            is_sensitive_content=video.is_sensitive_content,
            uploaded_date=video.uploaded_date,
            owner=owner.username if owner else "",
            rating=RatingSummary.from_totals(video.rating_sum, video.rating_count),
            views=video.views,
            is_owner=video.owner_id == viewer_id,
            has_requested=has_requested,
            url=url,
        )

    async def record_view(self, viewer_id: UUID, video_id: UUID, ip: Optional[str]) -> bool:
        """
        Count a visit to someone else's video. The owner's own visits and
        repeat visits from the same address within VIEW_WINDOW are not
        counted.
        """
        video = await self._get_video(video_id)
        if video.owner_id == viewer_id or not ip:
            return False
        counted = await self._videos.record_view(video.id, ip, since=utcnow() - VIEW_WINDOW)
        await self._session.commit()
        return counted

    # =========================================================================
    # Edit
    # =========================================================================

    async def update(
        self,
        user_id: UUID,
        video_id: UUID,
        data: VideoUpdateRequest,
    ) -> Optional[str]:
        """
        Apply an owner edit.

        Returns:
            The storage key to send back to moderation when the sensitive
            flag was cleared, otherwise None
        """
        video = await self._get_owned_video(user_id, video_id)
        keywords = normalize_keywords(data.keywords) if data.keywords is not None else None
        errors = video_metadata_errors(
            data.title, data.description, data.category, keywords, partial=True
        )
        if errors:
            raise ValidationError.from_messages(errors)

        if data.title is not None:
            video.title = data.title.strip()
        if data.description is not None:
            video.description = data.description.strip()
        if data.category is not None:
            video.category = data.category.strip().lower()
        if keywords is not None:
            video.keywords = keywords

        remoderate = False
        if data.is_sensitive_content is not None:
            remoderate = video.is_sensitive_content and not data.is_sensitive_content
            video.is_sensitive_content = data.is_sensitive_content

        await self._session.commit()
        logger.info(f"Video {video.id} updated by {user_id}")
        return video.storage_key if remoderate else None

    # =========================================================================
    # Delete
    # =========================================================================

    async def remove(self, video: Video) -> Optional[str]:
        """
        Delete a video row and everything that points at it. Does not commit.

        Returns:
            The storage key to delete once the transaction commits
        """
        storage_key = video.storage_key
        cancelled = await self._exchange_service.cancel_pending_for_video(video.id)
        await self._exchanges.detach_video(video.id)
        await self._ratings.detach_video(video.id)
        await self._reports.detach_video(video.id)
        await self._users.remove_video_from_libraries(video.id)
        await self._videos.delete_history(video.id)
        await self._videos.delete_views(video.id)
        await self._session.delete(video)
        await self._session.flush()
        if cancelled:
            logger.info(f"Cancelled {cancelled} pending exchanges for deleted video {video.id}")
        return storage_key

    async def delete(self, user_id: UUID, video_id: UUID) -> None:
        video = await self._get_owned_video(user_id, video_id)
        storage_key = await self.remove(video)
        await self._session.commit()
        logger.info(f"Video {video_id} deleted by {user_id}")
        await self.delete_media(storage_key)

    async def delete_media(self, storage_key: Optional[str]) -> None:
        if storage_key and not await self._storage.delete_video(storage_key):
            logger.warning(f"Stored media {storage_key} could not be deleted")

    # =========================================================================
    # Moderation
    # =========================================================================

    async def apply_moderation_result(self, payload: Dict[str, Any]) -> bool:
        """
        Handle a moderation callback.

        Returns:
            True if the video was flagged as sensitive
        """
        data = payload.get("data")
        if not isinstance(data, dict):
            raise ValidationError("Invalid moderation payload.")
        if data.get("status") != "finished":
            return False

        frames = data.get("frames") or []
        if not is_sensitive(frames):
            return False

        media_id = media_id_from_uri((payload.get("media") or {}).get("uri"))
        try:
            video_id = UUID(media_id) if media_id else None
        except ValueError:
            video_id = None
        if video_id is None:
            raise ValidationError("The moderation payload does not identify a video.")

        flagged = await self._videos.mark_sensitive(video_id)
        await self._session.commit()
        if flagged:
            logger.info(f"[MODERATION] Video {video_id} flagged as sensitive")
        else:
            logger.warning(f"[MODERATION] Result for unknown video {video_id}")
        return flagged


async def resubmit_for_moderation(
    moderation: SightengineService,
    storage: StorageService,
    video_id: UUID,
    storage_key: str,
) -> None:
    """Background task: fetch a stored video and send it for analysis again."""
    try:
        data = await storage.download_video(storage_key)
    except ExternalServiceError as e:
        logger.warning(f"[MODERATION] Could not fetch video {video_id} for review: {e}")
        return
    await moderation.submit_video(video_id, data)
