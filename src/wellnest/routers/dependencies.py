"""Shared FastAPI dependencies."""

from typing import Annotated

from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from wellnest.config import Settings, get_settings
from wellnest.database import get_session_factory
from wellnest.plan.grocery import GroceryAggregator, ScaleMode
from wellnest.plan.lottery import Lottery, make_random_source
from wellnest.plan.slots import SlotAssigner
from wellnest.plan.store import PlanStore


async def get_household_id(
    x_household_id: Annotated[str | None, Header(description="Authenticated household")] = None,
) -> str:
    """Household of the caller; authentication happens upstream."""
    if not x_household_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-Household-Id header",
        )
    return x_household_id


def get_lottery(settings: Settings = Depends(get_settings)) -> Lottery:
    """Lottery with a private random source per request."""
    return Lottery(make_random_source(settings.random_seed))


def get_plan_store(
    session_factory: async_sessionmaker[AsyncSession] = Depends(get_session_factory),
    lottery: Lottery = Depends(get_lottery),
    settings: Settings = Depends(get_settings),
) -> PlanStore:
    """Plan store wired with the configured slot assigner."""
    assigner = SlotAssigner(lottery, default_servings=settings.default_servings)
    return PlanStore(session_factory, assigner, week_start_day=settings.week_start_day)


def get_grocery_aggregator(settings: Settings = Depends(get_settings)) -> GroceryAggregator:
    """Aggregator using the configured serving-scale mode."""
    return GroceryAggregator(ScaleMode(settings.grocery_scale_mode))
