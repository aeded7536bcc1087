"""
Notification Domain Models
"""

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel


class NotificationType(str, Enum):
    """Exchange lifecycle events a party is told about."""
    EXCHANGE_REQUESTED = "exchange_requested"
    EXCHANGE_ACCEPTED = "exchange_accepted"
    EXCHANGE_REJECTED = "exchange_rejected"


class NotificationResponse(BaseModel):
    id: UUID
    exchange_id: UUID
    type: NotificationType
    is_read: bool
    created_at: datetime
