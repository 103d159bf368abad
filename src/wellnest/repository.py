"""Read-only data access for recipes and routines."""

from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from wellnest.logging_config import get_logger
from wellnest.models import Recipe, Routine
from wellnest.schemas import RecipeRecord, RoutineRecord

logger = get_logger(__name__)


@dataclass
class RecipeQuery:
    """Column filters pushed down to the database for recipe lookups."""

    category: str | None = None
    difficulty: str | None = None


@dataclass
class RoutineQuery:
    """Column filters pushed down to the database for routine lookups."""

    category: str | None = None
    context: str | None = None
    energy: str | None = None
    duration: str | None = None
    difficulty: str | None = None


class RecipeRepository:
    """Repository for recipe lookups scoped to a household."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_household(
        self,
        household_id: str,
        query: RecipeQuery | None = None,
    ) -> list[RecipeRecord]:
        """
        Fetch the household's shared recipe pool.

        System recipes (no owning household) are part of every pool.
        """
        query = query or RecipeQuery()
        stmt = select(Recipe).where(
            Recipe.is_shared == True,  # noqa: E712
            or_(Recipe.household_id == household_id, Recipe.household_id.is_(None)),
        )
        if query.category:
            stmt = stmt.where(Recipe.category == query.category)
        if query.difficulty:
            stmt = stmt.where(Recipe.difficulty == query.difficulty)

        result = await self.session.execute(stmt.order_by(Recipe.id))
        recipes = [RecipeRecord.model_validate(r) for r in result.scalars().all()]
        logger.debug(f"Loaded {len(recipes)} recipes for household {household_id}")
        return recipes

    async def find_by_id(self, recipe_id: str) -> RecipeRecord | None:
        """Fetch a single recipe, or None when it no longer exists."""
        recipe = await self.session.get(Recipe, recipe_id)
        return RecipeRecord.model_validate(recipe) if recipe else None

    async def find_by_ids(self, recipe_ids: Iterable[str]) -> dict[str, RecipeRecord]:
        """Batch lookup keyed by recipe id; missing ids are simply absent."""
        ids = set(recipe_ids)
        if not ids:
            return {}
        result = await self.session.execute(select(Recipe).where(Recipe.id.in_(ids)))
        return {r.id: RecipeRecord.model_validate(r) for r in result.scalars().all()}


class RoutineRepository:
    """Repository for routine lookups."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_filters(
        self,
        household_id: str,
        query: RoutineQuery | None = None,
    ) -> list[RoutineRecord]:
        """Fetch active routines visible to the household matching the filters."""
        query = query or RoutineQuery()
        stmt = select(Routine).where(
            Routine.is_active == True,  # noqa: E712
            or_(Routine.household_id == household_id, Routine.household_id.is_(None)),
        )
        if query.category:
            stmt = stmt.where(Routine.category == query.category)
        if query.context:
            stmt = stmt.where(Routine.context == query.context)
        if query.energy:
            stmt = stmt.where(Routine.energy == query.energy)
        if query.duration:
            stmt = stmt.where(Routine.duration == query.duration)
        if query.difficulty:
            stmt = stmt.where(Routine.difficulty == query.difficulty)

        result = await self.session.execute(stmt.order_by(Routine.id))
        return [RoutineRecord.model_validate(r) for r in result.scalars().all()]
