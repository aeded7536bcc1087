"""
Report Service

Video reports filed by users for moderators.
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from video_exchange.domain.video import ReportCreateRequest, ReportReason
from video_exchange.infrastructure.db.models.notification import Report
from video_exchange.infrastructure.db.repositories.notification_repository import ReportRepository
from video_exchange.infrastructure.db.repositories.video_repository import VideoRepository
from video_exchange.infrastructure.exceptions import NotFoundError, ValidationError


logger = logging.getLogger(__name__)


class ReportService:
    def __init__(self, session: AsyncSession):
        self._session = session
        self._reports = ReportRepository(session)
        self._videos = VideoRepository(session)

    async def report_video(
        self,
        reporter_id: UUID,
        video_id: UUID,
        data: ReportCreateRequest,
    ) -> Report:
        video = await self._videos.get_by_id(video_id)
        if video is None:
            raise NotFoundError("Video not found.", resource="video")
        if video.owner_id == reporter_id:
            raise ValidationError("You cannot report a video you own.")
        if data.reason is ReportReason.OTHER and not (data.other_reason or "").strip():
            raise ValidationError("Please describe the reason for the report.")

        report = await self._reports.add(
            Report(
                reason=data.reason.value,
                other_reason=data.other_reason,
                details=data.details,
                reporter_id=reporter_id,
                reported_video_id=video.id,
                exchange_id=data.exchange_id,
            )
        )
        await self._session.commit()
        logger.info(f"User {reporter_id} reported video {video.id} ({data.reason.value})")
        return report
