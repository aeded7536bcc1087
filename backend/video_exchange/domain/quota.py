"""
Quota Evaluator

Pure checks deciding whether an upload or an exchange request fits the
user's plan. Callers gather the usage counters (owned videos, storage used,
exchanges initiated this month) and pass them in; every check raises
QuotaExceededError naming the quota, the plan and the limit.

These checks are read-then-decide: two concurrent uploads can both pass the
storage check and jointly exceed it. The limits are soft.
"""

from datetime import datetime
from typing import Optional, Tuple

from video_exchange.domain.subscription import Plan
from video_exchange.infrastructure.exceptions import QuotaExceededError


_UNITS = ["B", "KB", "MB", "GB", "TB"]


def format_bytes(size: int) -> str:
    """Human readable byte count (decimal units)."""
    value = float(size)
    for unit in _UNITS:
        if abs(value) < 1000 or unit == _UNITS[-1]:
            if unit == "B":
                return f"{int(value)} B"
            return f"{value:.1f} {unit}"
        value /= 1000
    return f"{size} B"


def month_bounds(now: Optional[datetime] = None) -> Tuple[datetime, datetime]:
    """
    Current calendar month as [start, start of next month).

    Uses system local time, the same clock exchange request dates are
    stamped with.
    """
    now = now or datetime.now()
    start = datetime(now.year, now.month, 1)
    if now.month == 12:
        end = datetime(now.year + 1, 1, 1)
    else:
        end = datetime(now.year, now.month + 1, 1)
    return start, end


def check_video_size(plan: Plan, size: int) -> None:
    """Reject a single upload larger than the plan's per-video ceiling."""
    if size > plan.video_max_size:
        raise QuotaExceededError(
            f"The video is {format_bytes(size)}, above the {format_bytes(plan.video_max_size)} "
            f"per-video limit of your {plan.display_name} plan.",
            quota="video_max_size",
            plan=plan.name.value,
            limit=plan.video_max_size,
            current=size,
        )


def check_library_size(plan: Plan, owned_count: int) -> None:
    """Reject an upload when the library already holds the maximum item count."""
    if owned_count >= plan.library_size:
        raise QuotaExceededError(
            f"You have reached the maximum of {plan.library_size} videos in your library "
            f"allowed for your {plan.display_name} plan.",
            quota="library_size",
            plan=plan.name.value,
            limit=plan.library_size,
            current=owned_count,
        )


def check_library_storage(plan: Plan, used_bytes: int, size: int) -> None:
    """Reject an upload that would push owned videos over the storage quota."""
    total = used_bytes + size
    if total > plan.library_storage:
        raise QuotaExceededError(
            f"Uploading this video would use {format_bytes(total)} of storage, "
            f"{format_bytes(total - plan.library_storage)} over the {format_bytes(plan.library_storage)} "
            f"allowed for your {plan.display_name} plan.",
            quota="library_storage",
            plan=plan.name.value,
            limit=plan.library_storage,
            current=used_bytes,
        )


def check_monthly_exchanges(plan: Plan, initiated_this_month: int) -> None:
    """Reject a new exchange request once the monthly quota is used up (0 = unlimited)."""
    if plan.exchange_limit != 0 and initiated_this_month >= plan.exchange_limit:
        raise QuotaExceededError(
            f"You have reached the maximum of {plan.exchange_limit} exchanges this month "
            f"allowed for your {plan.display_name} plan.",
            quota="exchange_limit",
            plan=plan.name.value,
            limit=plan.exchange_limit,
            current=initiated_this_month,
        )


def check_upload(plan: Plan, size: int, owned_count: int, used_bytes: int) -> None:
    """Run the three upload checks in the order users hit them."""
    check_video_size(plan, size)
    check_library_size(plan, owned_count)
    check_library_storage(plan, used_bytes, size)
