"""
Plan Repository

Read access to plan reference data, mapped to the Plan domain entity.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from video_exchange.domain.subscription import Plan, PlanName
from video_exchange.infrastructure.db.models.plan import PlanModel
from video_exchange.infrastructure.db.repositories.base_repository import BaseRepository


class PlanRepository(BaseRepository[PlanModel]):
    """Repository for the plans table."""

    def __init__(self, session: AsyncSession):
        super().__init__(PlanModel, session)

    async def get_by_name(self, name: str) -> Optional[PlanModel]:
        stmt = select(PlanModel).where(PlanModel.name == name)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_plan(self, plan_id: UUID) -> Optional[Plan]:
        model = await self.get_by_id(plan_id)
        return self.to_domain(model) if model else None

    async def get_plan_by_name(self, name: str) -> Optional[Plan]:
        model = await self.get_by_name(name)
        return self.to_domain(model) if model else None

    async def list_plans(self) -> List[Plan]:
        """All plans, cheapest tier first."""
        result = await self.session.execute(select(PlanModel))
        plans = [self.to_domain(model) for model in result.scalars().all()]
        return sorted(plans, key=lambda plan: plan.name.rank)

    # =========================================================================
    # Mapping Methods
    # =========================================================================

    @staticmethod
    def to_domain(model: PlanModel) -> Plan:
        """Convert database model to domain entity."""
        return Plan(
            id=str(model.id),
            name=PlanName(model.name),
            monthly_price=model.monthly_price,
            library_storage=model.library_storage,
            library_size=model.library_size,
            video_max_size=model.video_max_size,
            exchange_limit=model.exchange_limit,
            stats=model.stats,
            exchange_priority=model.exchange_priority,
            search_priority=model.search_priority,
            support_priority=model.support_priority,
            billing_price_id=model.billing_price_id,
        )
