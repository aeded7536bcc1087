"""
Exchange Domain Models

Status enum with its transition rules, party roles and the request/response
DTOs of the exchange endpoints.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from video_exchange.infrastructure.exceptions import StateConflictError, ValidationError


class ExchangeStatus(str, Enum):
    """Exchange lifecycle status. Only PENDING has outgoing transitions."""
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self is not ExchangeStatus.PENDING

    def ensure_pending(self) -> None:
        if self.is_terminal:
            raise StateConflictError(
                f"This exchange is no longer pending (current status: {self.value}).",
                current_state=self.value,
                expected_state=ExchangeStatus.PENDING.value,
            )

    def transition(self, target: "ExchangeStatus") -> "ExchangeStatus":
        """Return the target status, or raise if the move is not allowed."""
        self.ensure_pending()
        if target not in _TRANSITIONS[self]:
            raise ValidationError(
                "Invalid status. An exchange can only be accepted or rejected."
            )
        return target


_TRANSITIONS = {
    ExchangeStatus.PENDING: frozenset({ExchangeStatus.ACCEPTED, ExchangeStatus.REJECTED}),
    ExchangeStatus.ACCEPTED: frozenset(),
    ExchangeStatus.REJECTED: frozenset(),
}


class ExchangeRole(str, Enum):
    """Role of the caller in an exchange."""
    INITIATOR = "initiator"
    RESPONDER = "responder"


def pair_key(first: UUID, second: UUID) -> str:
    """Order-independent key of a user pair; shared by A->B and B->A requests."""
    low, high = sorted((str(first), str(second)))
    return f"{low}:{high}"


# =============================================================================
# Request/Response DTOs
# =============================================================================

class ExchangeCreateRequest(BaseModel):
    """Request an exchange against another user's video."""
    username: str = Field(..., min_length=1, description="Responder username")
    video_id: UUID = Field(..., description="Video offered by the responder")


class ExchangeRespondRequest(BaseModel):
    """
    Responder decision.

    status is kept as a free string so unknown values reach the service
    and come back as a domain validation error.
    """
    status: str = Field(..., description="accepted or rejected")
    video_id: Optional[UUID] = Field(None, description="Initiator video the responder receives")


class ExchangeResponse(BaseModel):
    """Exchange as seen by one of its parties."""
    id: UUID
    initiator_id: UUID
    responder_id: UUID
    initiator_video_id: Optional[UUID] = None
    responder_video_id: Optional[UUID] = None
    status: ExchangeStatus
    requested_date: datetime
    role: ExchangeRole
    has_rated: bool = False
