#!/usr/bin/env python3
"""
Seed script for the plan reference data.

Plans are upserted by name, so the script is safe to re-run after changing a
quota. Paid plans take their Stripe price id from STRIPE_PRICE_<PLAN>.

Run: python scripts/seed_plans.py
"""

import asyncio
import os
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from video_exchange.infrastructure.db.database import get_session_context
from video_exchange.infrastructure.db.models.plan import PlanModel
from video_exchange.infrastructure.db.repositories.plan_repository import PlanRepository


GB = 1_000_000_000
MB = 1_000_000

# ============== PLAN TIERS ==============

PLANS = [
    {
        "name": "basic",
        "monthly_price": 0,
        "library_storage": 1 * GB,
        "library_size": 10,
        "video_max_size": 50 * MB,
        "exchange_limit": 5,
        "stats": False,
        "exchange_priority": False,
        "search_priority": False,
        "support_priority": False,
    },
    {
        "name": "advanced",
        "monthly_price": 10,
        "library_storage": 5 * GB,
        "library_size": 50,
        "video_max_size": 100 * MB,
        "exchange_limit": 20,
        "stats": True,
        "exchange_priority": False,
        "search_priority": True,
        "support_priority": False,
    },
    {
        "name": "premium",
        "monthly_price": 20,
        "library_storage": 20 * GB,
        "library_size": 200,
        "video_max_size": 500 * MB,
        "exchange_limit": 0,
        "stats": True,
        "exchange_priority": True,
        "search_priority": True,
        "support_priority": True,
    },
]


async def seed_plans() -> None:
    async with get_session_context() as session:
        repo = PlanRepository(session)
        for values in PLANS:
            price_id = os.getenv(f"STRIPE_PRICE_{values['name'].upper()}")
            existing = await repo.get_by_name(values["name"])
            if existing is None:
                await repo.add(PlanModel(**values, billing_price_id=price_id))
                print(f"  + {values['name']}")
                continue
            for field, value in values.items():
                setattr(existing, field, value)
            if price_id:
                existing.billing_price_id = price_id
            session.add(existing)
            print(f"  ~ {values['name']}")
        await session.flush()

    print(f"✅ Seeded {len(PLANS)} plans")


if __name__ == "__main__":
    asyncio.run(seed_plans())
