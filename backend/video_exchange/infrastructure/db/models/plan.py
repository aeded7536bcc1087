"""
Plan Database Model

SQLModel table for plan reference data (seeded out of band).
"""

from typing import Optional

from sqlalchemy import BigInteger, Column
from sqlmodel import Field

from video_exchange.infrastructure.db.models.base import UUIDMixin


class PlanModel(UUIDMixin, table=True):
    """
    Plans table. Byte quotas are BIGINT: premium storage exceeds 2^31.
    """

    __tablename__ = "plans"

    name: str = Field(max_length=20, unique=True, index=True)
    monthly_price: float = Field(default=0)

    # Quotas
    library_storage: int = Field(sa_column=Column(BigInteger, nullable=False))
    library_size: int = Field(nullable=False)
    video_max_size: int = Field(sa_column=Column(BigInteger, nullable=False))
    exchange_limit: int = Field(default=0)

    # Feature flags
    stats: bool = Field(default=False)
    exchange_priority: bool = Field(default=False)
    search_priority: bool = Field(default=False)
    support_priority: bool = Field(default=False)

    # Billing provider price handle for paid plans
    billing_price_id: Optional[str] = Field(default=None, max_length=255)
