"""
User Domain Models
"""

from typing import List
from uuid import UUID

from pydantic import BaseModel

from video_exchange.domain.rating import RatingSummary


class UserResponse(BaseModel):
    """The caller's own account view."""
    id: UUID
    username: str
    email: str
    rating: RatingSummary
    videos: List[UUID]
