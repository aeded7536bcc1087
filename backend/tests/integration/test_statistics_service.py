"""
Integration tests for usage statistics, overall and per video.
"""

import pytest

from video_exchange.infrastructure.exceptions import AuthorizationError, NotFoundError
from video_exchange.infrastructure.services.statistics_service import VideoMetric


@pytest.fixture
async def carol(make_user, make_video):
    """A premium user (statistics included) with six videos."""
    user = await make_user("carol", plan="premium")
    videos = [await make_video(user, title=f"Carol clip {i}") for i in range(6)]
    return user, videos


class TestOverview:

    async def test_views_and_top_videos(self, session, statistics_service, carol):
        user, videos = carol
        for views, video in enumerate(videos):
            video.views = views * 10
        await session.commit()

        stats = await statistics_service.get(user.id)

        assert stats.total_views == 150
        assert [v.id for v in stats.top_videos] == [v.id for v in reversed(videos[1:])]
        assert stats.top_videos[0].views == 50
        assert len(stats.videos) == 6
        assert stats.library_size == 6

    async def test_exchange_counts_cover_every_status(self, statistics_service, exchange_service, carol, alice):
        user, videos = carol
        await exchange_service.create(alice.id, "carol", videos[0].id)

        stats = await statistics_service.get(user.id)

        assert stats.exchange_counts["pending"] == 1
        assert stats.exchange_counts["accepted"] == 0
        assert stats.total_exchanges == 1

    async def test_plan_without_statistics(self, statistics_service, alice):
        with pytest.raises(AuthorizationError):
            await statistics_service.get(alice.id)


class TestPerVideo:

    async def test_exchange_count(self, statistics_service, exchange_service, carol, alice):
        user, videos = carol
        exchange = await exchange_service.create(alice.id, "carol", videos[0].id)
        await exchange_service.respond(user.id, exchange.id, "accepted", alice.video.id)

        # Carol owns alice's video after the swap
        stats = await statistics_service.for_video(user.id, alice.video.id)

        assert stats.exchanges_count == 1
        assert stats.views is None

    async def test_views(self, session, statistics_service, carol):
        user, videos = carol
        videos[2].views = 7
        await session.commit()

        stats = await statistics_service.for_video(user.id, videos[2].id, VideoMetric.VIEWS)

        assert stats.views == 7
        assert stats.exchanges_count is None
        assert stats.title == "Carol clip 2"

    async def test_someone_elses_video_is_not_found(self, statistics_service, carol, alice):
        user, _ = carol
        with pytest.raises(NotFoundError):
            await statistics_service.for_video(user.id, alice.video.id, VideoMetric.VIEWS)

    async def test_plan_without_statistics(self, statistics_service, alice):
        with pytest.raises(AuthorizationError):
            await statistics_service.for_video(alice.id, alice.video.id)
