"""
Fixtures shared by the integration tests: two users who each uploaded one video.
"""

from dataclasses import dataclass

import pytest

from video_exchange.infrastructure.db.models import User, Video


@dataclass
class Party:
    """A user with the video they uploaded."""
    user: User
    video: Video

    @property
    def id(self):
        return self.user.id


@pytest.fixture
async def alice(make_user, make_video) -> Party:
    user = await make_user("alice")
    return Party(user, await make_video(user, title="Alice at the lake"))


@pytest.fixture
async def bob(make_user, make_video) -> Party:
    user = await make_user("bob")
    return Party(user, await make_video(user, title="Bob on a bicycle"))
