"""
Exchange Database Model

SQLModel table for exchange requests between two users.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import DateTime, Index, text
from sqlmodel import Field

from video_exchange.domain.exchange import ExchangeStatus
from video_exchange.infrastructure.db.models.base import UUIDMixin


PENDING_PAIR_INDEX = "uq_exchanges_pending_pair"


class Exchange(UUIDMixin, table=True):
    """
    Exchanges table.

    pair_key is the unordered (initiator, responder) pair; the partial unique
    index allows a single pending row per pair in either direction.
    requested_date is stamped in system local time, the clock monthly
    quotas are counted in.
    """

    __tablename__ = "exchanges"
    __table_args__ = (
        Index(
            PENDING_PAIR_INDEX,
            "pair_key",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )

    initiator_id: UUID = Field(foreign_key="users.id", index=True)
    responder_id: UUID = Field(foreign_key="users.id", index=True)
    initiator_video_id: Optional[UUID] = Field(default=None, foreign_key="videos.id", index=True)
    responder_video_id: Optional[UUID] = Field(default=None, foreign_key="videos.id", index=True)

    status: str = Field(default=ExchangeStatus.PENDING.value, max_length=20, index=True)
    pair_key: str = Field(max_length=80)
    requested_date: datetime = Field(
        default_factory=datetime.now, index=True, sa_type=DateTime(timezone=False)
    )

    @property
    def status_enum(self) -> ExchangeStatus:
        return ExchangeStatus(self.status)
