"""
Integration tests for uploads, views, edits, deletion and moderation results.
"""

from datetime import timedelta
from uuid import uuid4

import pytest
from sqlalchemy import func, select

from video_exchange.domain.exchange import ExchangeStatus
from video_exchange.domain.video import VideoUpdateRequest
from video_exchange.infrastructure.db.models import VideoView
from video_exchange.infrastructure.db.models.base import utcnow
from video_exchange.infrastructure.db.repositories.exchange_repository import ExchangeRepository
from video_exchange.infrastructure.db.repositories.user_repository import UserRepository
from video_exchange.infrastructure.db.repositories.video_repository import VideoRepository
from video_exchange.infrastructure.exceptions import (
    AuthorizationError,
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    QuotaExceededError,
    ValidationError,
)
from video_exchange.infrastructure.services.video_service import resubmit_for_moderation


def upload_args(**overrides):
    args = dict(
        title="Mountain sunrise",
        description="Sunrise over the ridge, filmed in one take.",
        category="Travel_Adventure",
        keywords=["Sunrise", "mountains", "sunrise"],
        data=b"x" * 400,
    )
    args.update(overrides)
    return args


class TestUpload:

    async def test_upload_records_ownership(self, session, video_service, mock_storage, make_user):
        user = await make_user("alice")

        video = await video_service.upload(owner_id=user.id, **upload_args())

        assert video.owner_id == user.id
        assert video.size == 400
        assert video.category == "travel_adventure"
        assert video.keywords == ["sunrise", "mountains"]
        assert video.storage_key == f"videos/{video.id}.mp4"
        mock_storage.upload_video.assert_awaited_once()
        assert await UserRepository(session).library_video_ids(user.id) == [video.id]
        assert await VideoRepository(session).original_uploader_id(video.id) == user.id

    async def test_same_content_twice_is_rejected(self, video_service, make_user):
        alice = await make_user("alice")
        bob = await make_user("bob")
        await video_service.upload(owner_id=alice.id, **upload_args())

        with pytest.raises(ConflictError):
            await video_service.upload(owner_id=bob.id, **upload_args(title="Another title"))

    async def test_invalid_metadata_is_aggregated(self, video_service, mock_storage, make_user):
        user = await make_user("alice")

        with pytest.raises(ValidationError) as exc_info:
            await video_service.upload(
                owner_id=user.id,
                **upload_args(title="abc", category="unknown", data=b""),
            )

        assert len(exc_info.value.details["errors"]) == 3
        mock_storage.upload_video.assert_not_awaited()

    async def test_video_over_size_limit(self, video_service, mock_storage, make_user):
        user = await make_user("alice")

        with pytest.raises(QuotaExceededError) as exc_info:
            await video_service.upload(owner_id=user.id, **upload_args(data=b"x" * 1001))

        assert exc_info.value.details["quota"] == "video_max_size"
        mock_storage.upload_video.assert_not_awaited()

    async def test_library_size_limit(self, video_service, make_user, make_video):
        user = await make_user("alice")
        for i in range(3):
            await make_video(user, title=f"Clip number {i}", size=10)

        with pytest.raises(QuotaExceededError) as exc_info:
            await video_service.upload(owner_id=user.id, **upload_args())
        assert exc_info.value.details["quota"] == "library_size"

    async def test_library_slot_frees_up_after_deletion(self, session, video_service, make_user, make_video):
        user = await make_user("alice")
        clips = [await make_video(user, title=f"Clip number {i}", size=10) for i in range(3)]
        with pytest.raises(QuotaExceededError):
            await video_service.upload(owner_id=user.id, **upload_args())

        await video_service.delete(user.id, clips[0].id)
        video = await video_service.upload(owner_id=user.id, **upload_args())

        assert video.owner_id == user.id
        assert await VideoRepository(session).count_owned(user.id) == 3
        with pytest.raises(QuotaExceededError):
            await video_service.upload(owner_id=user.id, **upload_args(data=b"y" * 400))

    async def test_storage_limit(self, video_service, make_user, make_video):
        user = await make_user("alice")
        await make_video(user, title="First big clip", size=1000)
        await make_video(user, title="Second big clip", size=1000)

        with pytest.raises(QuotaExceededError) as exc_info:
            await video_service.upload(owner_id=user.id, **upload_args(data=b"x" * 600))
        assert exc_info.value.details["quota"] == "library_storage"

    async def test_storage_failure_writes_nothing(self, session, video_service, mock_storage, make_user):
        mock_storage.upload_video.side_effect = ExternalServiceError("bucket down", service="storage")
        user = await make_user("alice")

        with pytest.raises(ExternalServiceError):
            await video_service.upload(owner_id=user.id, **upload_args())

        assert await VideoRepository(session).count_owned(user.id) == 0


class TestReadAndEdit:

    async def test_viewer_flags(self, video_service, exchange_service, alice, bob):
        await exchange_service.create(alice.id, "bob", bob.video.id)

        as_alice = await video_service.get(alice.id, bob.video.id)
        as_bob = await video_service.get(bob.id, bob.video.id)

        assert as_alice.has_requested is True
        assert as_alice.is_owner is False
        assert as_bob.is_owner is True
        assert as_bob.owner == "bob"
        assert as_bob.url == "https://cdn.example.com/signed"

    async def test_unknown_video(self, video_service, alice):
        with pytest.raises(NotFoundError):
            await video_service.get(alice.id, uuid4())

    async def test_owner_edit(self, session, video_service, alice):
        result = await video_service.update(
            alice.id, alice.video.id, VideoUpdateRequest(title="Alice at the big lake")
        )

        assert result is None
        await session.refresh(alice.video)
        assert alice.video.title == "Alice at the big lake"

    async def test_clearing_sensitive_flag_asks_for_review(self, session, video_service, alice):
        alice.video.is_sensitive_content = True
        await session.commit()

        storage_key = await video_service.update(
            alice.id, alice.video.id, VideoUpdateRequest(is_sensitive_content=False)
        )

        assert storage_key == alice.video.storage_key

    async def test_only_owner_edits(self, video_service, alice, bob):
        with pytest.raises(AuthorizationError):
            await video_service.update(bob.id, alice.video.id, VideoUpdateRequest(title="Not my video"))

    async def test_invalid_edit(self, video_service, alice):
        with pytest.raises(ValidationError):
            await video_service.update(alice.id, alice.video.id, VideoUpdateRequest(keywords=[]))


class TestViews:

    @staticmethod
    async def recent_views(session, video_id):
        stmt = select(func.count()).select_from(VideoView).where(VideoView.video_id == video_id)
        return (await session.execute(stmt)).scalar_one()

    async def test_one_view_per_address(self, session, video_service, alice, bob):
        assert await video_service.record_view(bob.id, alice.video.id, "203.0.113.5") is True
        assert await video_service.record_view(bob.id, alice.video.id, "203.0.113.5") is False
        assert await video_service.record_view(bob.id, alice.video.id, "198.51.100.7") is True

        await session.refresh(alice.video)
        assert alice.video.views == 2
        assert (await video_service.get(bob.id, alice.video.id)).views == 2

    async def test_owner_visits_are_not_counted(self, session, video_service, alice):
        assert await video_service.record_view(alice.id, alice.video.id, "203.0.113.5") is False

        await session.refresh(alice.video)
        assert alice.video.views == 0
        assert await self.recent_views(session, alice.video.id) == 0

    async def test_address_counts_again_after_an_hour(self, session, video_service, alice, bob):
        session.add(VideoView(
            video_id=alice.video.id,
            ip="203.0.113.5",
            viewed_at=utcnow() - timedelta(hours=2),
        ))
        await session.commit()

        assert await video_service.record_view(bob.id, alice.video.id, "203.0.113.5") is True
        assert await self.recent_views(session, alice.video.id) == 1

    async def test_unknown_video(self, video_service, bob):
        with pytest.raises(NotFoundError):
            await video_service.record_view(bob.id, uuid4(), "203.0.113.5")

    async def test_delete_clears_views(self, session, video_service, alice, bob):
        await video_service.record_view(bob.id, alice.video.id, "203.0.113.5")
        video_id = alice.video.id

        await video_service.delete(alice.id, video_id)

        assert await self.recent_views(session, video_id) == 0


class TestDelete:

    async def test_delete_cancels_pending_requests(
        self, session, video_service, exchange_service, mock_storage, alice, bob
    ):
        exchange = await exchange_service.create(alice.id, "bob", bob.video.id)
        storage_key = bob.video.storage_key

        await video_service.delete(bob.id, bob.video.id)

        assert await ExchangeRepository(session).get_by_id(exchange.id) is None
        assert await UserRepository(session).library_video_ids(bob.id) == []
        assert await VideoRepository(session).history(bob.video.id) == []
        mock_storage.delete_video.assert_awaited_once_with(storage_key)

    async def test_delete_keeps_settled_exchanges(self, session, video_service, exchange_service, alice, bob):
        exchange = await exchange_service.create(alice.id, "bob", bob.video.id)
        await exchange_service.respond(bob.id, exchange.id, "accepted", alice.video.id)

        exchange_id, alice_video_id = exchange.id, alice.video.id

        # Alice now owns Bob's upload
        await video_service.delete(alice.id, bob.video.id)

        session.expire_all()
        kept = await ExchangeRepository(session).get_by_id(exchange_id)
        assert kept.status_enum is ExchangeStatus.ACCEPTED
        assert kept.responder_video_id is None
        assert kept.initiator_video_id == alice_video_id

    async def test_only_owner_deletes(self, video_service, alice, bob):
        with pytest.raises(AuthorizationError):
            await video_service.delete(bob.id, alice.video.id)


class TestModeration:

    @staticmethod
    def payload(video_id, frames, status="finished"):
        return {
            "media": {"uri": f"{video_id}.mp4"},
            "data": {"status": status, "frames": frames},
        }

    async def test_sensitive_result_flags_video(self, session, video_service, alice):
        flagged = await video_service.apply_moderation_result(
            self.payload(alice.video.id, [{"gore": {"prob": 0.8}}])
        )

        assert flagged is True
        await session.refresh(alice.video)
        assert alice.video.is_sensitive_content is True

    async def test_clean_result(self, session, video_service, alice):
        assert await video_service.apply_moderation_result(
            self.payload(alice.video.id, [{"gore": {"prob": 0.01}}])
        ) is False
        await session.refresh(alice.video)
        assert alice.video.is_sensitive_content is False

    async def test_unfinished_analysis_is_ignored(self, video_service, alice):
        assert await video_service.apply_moderation_result(
            self.payload(alice.video.id, [{"gore": {"prob": 0.8}}], status="ongoing")
        ) is False

    async def test_malformed_payload(self, video_service):
        with pytest.raises(ValidationError):
            await video_service.apply_moderation_result({"media": {}})

    async def test_unknown_video(self, video_service):
        assert await video_service.apply_moderation_result(
            self.payload(uuid4(), [{"gore": {"prob": 0.8}}])
        ) is False

    async def test_resubmission(self, mock_storage, mock_moderation, alice):
        await resubmit_for_moderation(mock_moderation, mock_storage, alice.video.id, alice.video.storage_key)

        mock_moderation.submit_video.assert_awaited_once_with(alice.video.id, b"stored-bytes")

    async def test_resubmission_skips_missing_media(self, mock_storage, mock_moderation, alice):
        mock_storage.download_video.side_effect = ExternalServiceError("gone", service="storage")

        await resubmit_for_moderation(mock_moderation, mock_storage, alice.video.id, "videos/gone.mp4")

        mock_moderation.submit_video.assert_not_awaited()
