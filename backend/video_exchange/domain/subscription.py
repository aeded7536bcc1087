"""
Subscription Domain Models

Plans, resolved-subscription DTOs and the billing-date arithmetic used by the
subscription resolver. Pure: nothing here talks to the database or Stripe.
"""

import calendar
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class PlanName(str, Enum):
    """Plan tiers, ordered from cheapest to most expensive."""
    BASIC = "basic"
    ADVANCED = "advanced"
    PREMIUM = "premium"

    @property
    def rank(self) -> int:
        return list(PlanName).index(self)

    @property
    def display_name(self) -> str:
        return PLAN_DISPLAY_NAMES[self]


PLAN_DISPLAY_NAMES = {
    PlanName.BASIC: "Basic",
    PlanName.ADVANCED: "Advanced",
    PlanName.PREMIUM: "Premium",
}


# =============================================================================
# Domain Entities
# =============================================================================

class Plan(BaseModel):
    """Immutable plan reference data."""
    id: Optional[str] = None
    name: PlanName
    monthly_price: float
    library_storage: int = Field(description="Storage quota in bytes")
    library_size: int = Field(description="Maximum number of owned videos")
    video_max_size: int = Field(description="Per-upload ceiling in bytes")
    exchange_limit: int = Field(description="Monthly exchange requests, 0 = unlimited")
    stats: bool = False
    exchange_priority: bool = False
    search_priority: bool = False
    support_priority: bool = False
    billing_price_id: Optional[str] = None

    class Config:
        from_attributes = True

    @property
    def display_name(self) -> str:
        return self.name.display_name

    @property
    def is_paid(self) -> bool:
        return self.monthly_price > 0


class BillingSubscription(BaseModel):
    """Logical view of a recurring-payment subscription at the provider."""
    id: str
    status: str
    is_cancelled: bool
    next_payment_date: Optional[datetime] = None
    date_created: Optional[datetime] = None


class ResolvedSubscription(BaseModel):
    """Effective plan of a user after consulting the billing provider."""
    plan: Plan
    is_cancelled: bool = False
    next_billing_date: Optional[datetime] = None
    downgraded: bool = False


# =============================================================================
# Request/Response DTOs
# =============================================================================

class SubscribeRequest(BaseModel):
    """Request DTO for subscribing to a paid plan."""
    plan: PlanName = Field(..., description="Plan to subscribe to")
    payment_method_id: str = Field(..., min_length=1, description="Provider payment method token")


class PlanResponse(BaseModel):
    """Response DTO for a plan."""
    id: str
    name: PlanName
    display_name: str
    monthly_price: float
    library_storage: int
    library_size: int
    video_max_size: int
    exchange_limit: int
    stats: bool
    exchange_priority: bool
    search_priority: bool
    support_priority: bool


class SubscriptionStatusResponse(BaseModel):
    """Response DTO for the caller's resolved subscription."""
    plan: PlanResponse
    is_cancelled: bool
    next_billing_date: Optional[datetime] = None


def plan_to_response(plan: Plan) -> PlanResponse:
    return PlanResponse(
        id=plan.id or "",
        name=plan.name,
        display_name=plan.display_name,
        monthly_price=plan.monthly_price,
        library_storage=plan.library_storage,
        library_size=plan.library_size,
        video_max_size=plan.video_max_size,
        exchange_limit=plan.exchange_limit,
        stats=plan.stats,
        exchange_priority=plan.exchange_priority,
        search_priority=plan.search_priority,
        support_priority=plan.support_priority,
    )


# =============================================================================
# Billing Date Arithmetic (Business Logic)
# =============================================================================

def add_months(value: datetime, months: int = 1) -> datetime:
    """Add calendar months, clamping the day to the end of the target month."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


def _calendar_day(value: datetime) -> date:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.date()


def compute_next_billing_date(
    next_payment_date: Optional[datetime],
    date_created: Optional[datetime],
) -> Optional[datetime]:
    """
    Next charge date as reported to the user.

    A subscription created today reports today as its next payment date
    until the first charge goes through; that date is pushed one calendar
    month ahead so the user is not told about an imminent charge.
    """
    if next_payment_date is None:
        return None
    if date_created is not None and _calendar_day(next_payment_date) == _calendar_day(date_created):
        return add_months(next_payment_date, 1)
    return next_payment_date


def is_past(value: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """Whether a (possibly naive UTC) timestamp is strictly in the past."""
    if value is None:
        return False
    now = now or datetime.now(timezone.utc)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return value < now
