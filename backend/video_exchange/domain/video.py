"""
Video Domain Rules

Catalog constants, metadata validation and the video/report DTOs.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from video_exchange.domain.rating import RatingSummary


VIDEO_CATEGORIES = [
    "entertainment",
    "education",
    "sports",
    "music",
    "science_technology",
    "comedy",
    "fashion_beauty",
    "travel_adventure",
    "gaming",
    "news_politics",
    "cooking_gastronomy",
    "art_design",
    "animation_shortfilms",
    "health_fitness",
    "vlogs_lifestyle",
    "tutorials",
    "movies_series",
    "events_conferences",
    "pets_animals",
    "automobiles_mechanics",
    "other",
]


class ReportReason(str, Enum):
    INAPPROPRIATE_UNMARKED = "inappropriate_unmarked"
    IRRELEVANT_OR_EMPTY = "irrelevant_or_empty"
    UNAUTHORIZED_CONTENT = "unauthorized_content"
    DUPLICATE_VIDEO = "duplicate_video"
    OTHER = "other"


class ReportStatus(str, Enum):
    PENDING = "pending"
    RESOLVED = "resolved"


def video_metadata_errors(
    title: Optional[str],
    description: Optional[str],
    category: Optional[str],
    keywords: Optional[List[str]],
    partial: bool = False,
) -> List[str]:
    """
    Validate video metadata and return every broken rule.

    With partial=True (edits) missing fields are skipped instead of
    reported as required.
    """
    errors = []

    if title is None:
        if not partial:
            errors.append("The title is required.")
    elif len(title.strip()) < 5:
        errors.append("The title must be at least 5 characters long.")
    elif len(title.strip()) > 60:
        errors.append("The title must not exceed 60 characters.")

    if description is None:
        if not partial:
            errors.append("The description is required.")
    elif len(description.strip()) < 10:
        errors.append("The description must be at least 10 characters long.")
    elif len(description.strip()) > 500:
        errors.append("The description must not exceed 500 characters.")

    if category is None:
        if not partial:
            errors.append("The category is required.")
    elif category.strip().lower() not in VIDEO_CATEGORIES:
        errors.append("The selected category is not valid.")

    if keywords is None:
        if not partial:
            errors.append("There must be at least one keyword.")
    elif len(keywords) == 0:
        errors.append("There must be at least one keyword.")
    else:
        for keyword in keywords:
            if len(keyword) < 2:
                errors.append("Each keyword must be at least 2 characters long.")
                break
            if len(keyword) > 20:
                errors.append("Each keyword must not exceed 20 characters.")
                break

    return errors


# =============================================================================
# Request/Response DTOs
# =============================================================================

class VideoUpdateRequest(BaseModel):
    """Owner edit; unset fields are left untouched."""
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    keywords: Optional[List[str]] = None
    is_sensitive_content: Optional[bool] = None


class VideoResponse(BaseModel):
    id: UUID
    title: str
    description: str
    category: str
    keywords: List[str]
    size: int
    is_sensitive_content: bool
    uploaded_date: datetime
    owner: str
    rating: RatingSummary
    views: int = 0
    is_owner: bool = False
    has_requested: bool = False
    url: Optional[str] = None


class ReportCreateRequest(BaseModel):
    reason: ReportReason
    other_reason: Optional[str] = Field(None, max_length=100)
    details: Optional[str] = Field(None, max_length=500)
    exchange_id: Optional[UUID] = None
