"""API routes for "surprise me" draws over routines and recipes."""

from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from wellnest.config import Settings, get_settings
from wellnest.database import get_db
from wellnest.logging_config import get_logger
from wellnest.plan.candidates import CandidatePool, RecipeFilters, RoutineFilters
from wellnest.plan.lottery import Lottery
from wellnest.repository import RecipeRepository, RoutineRepository
from wellnest.routers.dependencies import get_household_id, get_lottery
from wellnest.schemas import (
    DietaryMatchPolicy,
    MealType,
    RecipeRecord,
    RoutineRecord,
    normalize_tags,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["lottery"])


# Request/Response schemas
class LotteryRequest(BaseModel):
    """Common draw parameters."""

    count: int = Field(default=1, ge=1)
    exclude_ids: list[str] = Field(default_factory=list)


class RoutineLotteryRequest(LotteryRequest):
    """Draw routines matching optional filters."""

    category: (
        Literal[
            "breathwork", "meditation", "exercise", "stretching", "mindfulness", "sleep", "energy"
        ]
        | None
    ) = None
    context: Literal["morning", "evening", "anytime"] | None = None
    energy: Literal["low", "medium", "high"] | None = None
    duration: Literal["5min", "15min", "30min", "60min"] | None = None
    difficulty: Literal["beginner", "intermediate", "advanced"] | None = None
    max_minutes: int | None = Field(default=None, ge=1)


class RecipeLotteryRequest(LotteryRequest):
    """Draw recipes matching optional filters."""

    category: MealType | None = None
    difficulty: Literal["easy", "medium", "hard"] | None = None
    dietary_tags: list[str] = Field(default_factory=list)
    dietary_match: DietaryMatchPolicy | None = None
    max_total_minutes: int | None = Field(default=None, ge=1)

    @field_validator("dietary_tags", mode="before")
    @classmethod
    def _clean_tags(cls, value: list[str] | None) -> list[str]:
        return normalize_tags(value)


class RoutineLotteryResponse(BaseModel):
    """Drawn routines."""

    items: list[RoutineRecord]
    total_available: int
    message: str


class RecipeLotteryResponse(BaseModel):
    """Drawn recipes."""

    items: list[RecipeRecord]
    total_available: int
    message: str


def _check_count(count: int, settings: Settings) -> None:
    if count > settings.lottery_max_count:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"count must be at most {settings.lottery_max_count}",
        )


# =============================================================================
# Endpoints
# =============================================================================


@router.post("/routines/lottery", response_model=RoutineLotteryResponse)
async def draw_routines(
    request: RoutineLotteryRequest,
    household_id: str = Depends(get_household_id),
    lottery: Lottery = Depends(get_lottery),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db),
) -> RoutineLotteryResponse:
    """
    Pick random routine(s) matching the filters.

    Returns fewer than ``count`` items when fewer are eligible, and an empty
    list with an explanatory message when nothing matches.
    """
    _check_count(request.count, settings)

    pool = CandidatePool(routines=RoutineRepository(db))
    candidates = await pool.find_routines(
        household_id,
        RoutineFilters(
            category=request.category,
            context=request.context,
            energy=request.energy,
            duration=request.duration,
            difficulty=request.difficulty,
            max_minutes=request.max_minutes,
        ),
    )
    result = lottery.draw(candidates, request.count, request.exclude_ids)
    logger.info(f"Routine lottery for household {household_id}: {result.message}")

    return RoutineLotteryResponse(
        items=result.items,
        total_available=result.total_available,
        message=result.message,
    )


@router.post("/recipes/lottery", response_model=RecipeLotteryResponse)
async def draw_recipes(
    request: RecipeLotteryRequest,
    household_id: str = Depends(get_household_id),
    lottery: Lottery = Depends(get_lottery),
    settings: Settings = Depends(get_settings),
    db: AsyncSession = Depends(get_db),
) -> RecipeLotteryResponse:
    """Pick random recipe(s) from the household's pool matching the filters."""
    _check_count(request.count, settings)

    pool = CandidatePool(recipes=RecipeRepository(db))
    candidates = await pool.find_recipes(
        household_id,
        RecipeFilters(
            category=request.category.value if request.category else None,
            difficulty=request.difficulty,
            dietary_restrictions=request.dietary_tags,
            dietary_match=request.dietary_match
            or DietaryMatchPolicy(settings.dietary_match_policy),
            max_total_minutes=request.max_total_minutes,
        ),
    )
    result = lottery.draw(candidates, request.count, request.exclude_ids)
    logger.info(f"Recipe lottery for household {household_id}: {result.message}")

    return RecipeLotteryResponse(
        items=result.items,
        total_available=result.total_available,
        message=result.message,
    )
