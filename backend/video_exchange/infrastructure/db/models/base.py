"""
Shared Columns for the Video Exchange Tables

UUID primary keys and UTC audit timestamps. Exchange request dates are the
exception: they are stamped in local time (see exchange.py).
"""

from datetime import datetime, timezone
from uuid import UUID, uuid4

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TimestampMixin(SQLModel):
    """created_at / updated_at, both timezone-aware UTC."""

    created_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=DateTime(timezone=True),
        sa_column_kwargs={"onupdate": utcnow},
    )


class UUIDMixin(SQLModel):
    """UUID4 primary key, generated client-side so ids exist before flush."""

    id: UUID = Field(default_factory=uuid4, primary_key=True, nullable=False)
