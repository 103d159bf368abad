"""API routes for meal plan generation, retrieval and grocery lists."""

import asyncio
from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.ext.asyncio import AsyncSession

from wellnest.config import Settings, get_settings
from wellnest.database import get_db
from wellnest.exceptions import ConcurrencyConflictError, NoCandidatesError, NotFoundError
from wellnest.logging_config import LoggingContext, get_logger
from wellnest.plan.grocery import GroceryAggregator, GroceryItem
from wellnest.plan.store import PlanStore
from wellnest.repository import RecipeRepository
from wellnest.routers.dependencies import (
    get_grocery_aggregator,
    get_household_id,
    get_plan_store,
)
from wellnest.schemas import MealPlanItem, MealPlanPreferences, MealPlanRead, MealType

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["meal-plans"])


# =============================================================================
# Request/Response Schemas
# =============================================================================


class MealPlanGenerateRequest(BaseModel):
    """Request to generate a new weekly meal plan."""

    week_start_date: date
    preferences: MealPlanPreferences = Field(default_factory=MealPlanPreferences)
    created_by: str | None = None


class CurrentMealPlanResponse(BaseModel):
    """Current plan lookup; meal_plan is null when there is none."""

    meal_plan: MealPlanRead | None = None
    message: str


class GroceryContributionResponse(BaseModel):
    """One meal's share of a grocery item."""

    recipe_name: str
    quantity: float
    meal_type: MealType
    date: date


class GroceryItemResponse(BaseModel):
    """Single merged line of the grocery list."""

    key: str
    name: str
    unit: str
    total_quantity: float
    recipes: list[GroceryContributionResponse] = Field(default_factory=list)

    @classmethod
    def from_item(cls, item: GroceryItem) -> "GroceryItemResponse":
        return cls(
            key=str(item.key),
            name=item.name,
            unit=item.unit,
            total_quantity=item.total_quantity,
            recipes=[
                GroceryContributionResponse(
                    recipe_name=c.recipe_name,
                    quantity=c.quantity,
                    meal_type=c.meal_type,
                    date=c.date,
                )
                for c in item.contributions
            ],
        )


class GroceryListResponse(BaseModel):
    """Aggregated grocery list for a meal plan."""

    meal_plan_id: str
    week_start_date: date
    week_end_date: date
    items: list[GroceryItemResponse]


class GroceryRangeResponse(BaseModel):
    """Aggregated grocery list across active plans in a date range."""

    start_date: date
    end_date: date
    items: list[GroceryItemResponse]


class GroceryRangeQuery(BaseModel):
    """Date range for the range grocery list."""

    start_date: date
    end_date: date

    @model_validator(mode="after")
    def _check_order(self) -> "GroceryRangeQuery":
        if self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


# =============================================================================
# Helper Functions
# =============================================================================


async def build_grocery_items(
    items: list[MealPlanItem],
    db: AsyncSession,
    aggregator: GroceryAggregator,
) -> list[GroceryItemResponse]:
    """Resolve the referenced recipes in one query and aggregate."""
    recipes = await RecipeRepository(db).find_by_ids(item.recipe_id for item in items)
    aggregated = aggregator.aggregate(items, recipes.get)
    return [GroceryItemResponse.from_item(g) for g in aggregated]


# =============================================================================
# Endpoints
# =============================================================================


@router.post(
    "/meal-plans/generate",
    response_model=MealPlanRead,
    status_code=status.HTTP_201_CREATED,
)
async def generate_meal_plan(
    request: MealPlanGenerateRequest,
    household_id: str = Depends(get_household_id),
    store: PlanStore = Depends(get_plan_store),
    settings: Settings = Depends(get_settings),
) -> MealPlanRead:
    """
    Generate a new weekly meal plan and make it the household's active plan.

    Every previously active plan of the household is deactivated in the same
    transaction. A concurrent generation for the same household yields 409.
    """
    with LoggingContext(household_id=household_id):
        try:
            return await asyncio.wait_for(
                store.generate(
                    household_id,
                    request.week_start_date,
                    request.preferences,
                    created_by=request.created_by,
                ),
                timeout=settings.generation_timeout_seconds,
            )
        except NoCandidatesError as e:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
        except ConcurrencyConflictError as e:
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)
        except asyncio.TimeoutError:
            logger.error(
                f"Meal plan generation exceeded {settings.generation_timeout_seconds}s"
            )
            raise HTTPException(
                status_code=status.HTTP_504_GATEWAY_TIMEOUT,
                detail="Meal plan generation timed out",
            )


@router.get("/meal-plans", response_model=list[MealPlanRead])
async def list_meal_plans(
    week_start_date: Annotated[
        date | None, Query(description="Only plans starting within this week")
    ] = None,
    household_id: str = Depends(get_household_id),
    store: PlanStore = Depends(get_plan_store),
) -> list[MealPlanRead]:
    """List the household's active meal plans, newest first."""
    return await store.list_plans(household_id, week_start_date)


@router.get("/meal-plans/current", response_model=CurrentMealPlanResponse)
async def get_current_meal_plan(
    household_id: str = Depends(get_household_id),
    store: PlanStore = Depends(get_plan_store),
) -> CurrentMealPlanResponse:
    """Get the active plan covering the current calendar week."""
    plan = await store.get_current(household_id)
    if plan is None:
        return CurrentMealPlanResponse(meal_plan=None, message="No active meal plan found")
    return CurrentMealPlanResponse(meal_plan=plan, message="Active meal plan found")


@router.get("/meal-plans/{plan_id}", response_model=MealPlanRead)
async def get_meal_plan(
    plan_id: str,
    household_id: str = Depends(get_household_id),
    store: PlanStore = Depends(get_plan_store),
) -> MealPlanRead:
    """Get a specific meal plan by ID."""
    plan = await store.get(plan_id, household_id)
    if not plan:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Meal plan {plan_id} not found",
        )
    return plan


@router.delete("/meal-plans/{plan_id}", response_model=MealPlanRead)
async def delete_meal_plan(
    plan_id: str,
    household_id: str = Depends(get_household_id),
    store: PlanStore = Depends(get_plan_store),
) -> MealPlanRead:
    """Soft-delete a meal plan; the record is kept for history."""
    logger.info(f"Deactivating meal plan {plan_id}")
    try:
        return await store.deactivate(plan_id, household_id)
    except NotFoundError as e:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=e.message)
    except ConcurrencyConflictError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=e.message)


@router.get("/meal-plans/{plan_id}/grocery-list", response_model=GroceryListResponse)
async def get_grocery_list(
    plan_id: str,
    household_id: str = Depends(get_household_id),
    store: PlanStore = Depends(get_plan_store),
    aggregator: GroceryAggregator = Depends(get_grocery_aggregator),
    db: AsyncSession = Depends(get_db),
) -> GroceryListResponse:
    """
    Get the aggregated grocery list for a meal plan.

    Ingredients are merged by case-insensitive name and unit. Meals whose
    recipe has since been deleted are left out rather than failing the call.
    """
    with LoggingContext(household_id=household_id, plan_id=plan_id):
        plan = await store.get(plan_id, household_id)
        if not plan:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Meal plan {plan_id} not found",
            )

        items = await build_grocery_items(plan.items, db, aggregator)
        logger.info(f"Grocery list for plan {plan_id}: {len(items)} items")

    return GroceryListResponse(
        meal_plan_id=plan.id,
        week_start_date=plan.week_start_date,
        week_end_date=plan.week_end_date,
        items=items,
    )


@router.get("/grocery-list", response_model=GroceryRangeResponse)
async def get_grocery_list_for_range(
    query: Annotated[GroceryRangeQuery, Query()],
    household_id: str = Depends(get_household_id),
    store: PlanStore = Depends(get_plan_store),
    aggregator: GroceryAggregator = Depends(get_grocery_aggregator),
    db: AsyncSession = Depends(get_db),
) -> GroceryRangeResponse:
    """Aggregate the grocery list of every active-plan meal dated within the range."""
    plan_items = await store.active_items_between(household_id, query.start_date, query.end_date)
    items = await build_grocery_items(plan_items, db, aggregator)
    return GroceryRangeResponse(
        start_date=query.start_date,
        end_date=query.end_date,
        items=items,
    )
