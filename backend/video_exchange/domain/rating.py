"""
Rating Domain Rules

Value/comment validation and the running-average representation shared by
videos and users.
"""

from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


MIN_RATING = 1.0
MAX_RATING = 5.0
COMMENT_MIN_LENGTH = 10
COMMENT_MAX_LENGTH = 500


def rating_errors(value: float, comment: Optional[str]) -> List[str]:
    """Collect every rule the rating/comment pair breaks."""
    errors = []
    if not (MIN_RATING <= value <= MAX_RATING) or (value * 10) % 5 != 0:
        errors.append(
            "The rating is not valid. It must be a whole number or end in .5, from 1 to 5."
        )
    comment = comment or ""
    if len(comment) > COMMENT_MAX_LENGTH:
        errors.append(f"The comment must not exceed {COMMENT_MAX_LENGTH} characters.")
    elif 0 < len(comment) < COMMENT_MIN_LENGTH:
        errors.append(
            f"The comment must be at least {COMMENT_MIN_LENGTH} characters long or left empty."
        )
    return errors


def average(total: float, count: int) -> float:
    """Mean of a stored sum/count pair; 0 when nothing was rated."""
    if count <= 0:
        return 0.0
    return total / count


class RatingSummary(BaseModel):
    """The {value, count} aggregate exposed for users and videos."""
    value: float = 0.0
    count: int = 0

    @classmethod
    def from_totals(cls, total: float, count: int) -> "RatingSummary":
        return cls(value=average(total, count), count=count)


# =============================================================================
# Request/Response DTOs
# =============================================================================

class RatingCreateRequest(BaseModel):
    """Rating submitted by one party of an accepted exchange."""
    exchange_id: UUID
    rated_user_id: UUID
    video_id: UUID = Field(..., description="Video the rater received in the exchange")
    rating: float
    comment: str = ""


class RatingResponse(BaseModel):
    rating: float
    comment: str
    created_at: datetime
