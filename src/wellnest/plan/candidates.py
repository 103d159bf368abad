"""Candidate pools for meal planning and the lottery."""

from collections.abc import Iterable
from dataclasses import dataclass, field

from wellnest.logging_config import get_logger
from wellnest.repository import RecipeQuery, RecipeRepository, RoutineQuery, RoutineRepository
from wellnest.schemas import DietaryMatchPolicy, RecipeRecord, RoutineRecord, normalize_tags

logger = get_logger(__name__)


@dataclass
class RecipeFilters:
    """Optional constraints on the recipe pool."""

    category: str | None = None
    difficulty: str | None = None
    dietary_restrictions: list[str] = field(default_factory=list)
    dietary_match: DietaryMatchPolicy = DietaryMatchPolicy.ANY
    max_total_minutes: int | None = None


@dataclass
class RoutineFilters:
    """Optional constraints on the routine pool."""

    category: str | None = None
    context: str | None = None
    energy: str | None = None
    duration: str | None = None
    difficulty: str | None = None
    max_minutes: int | None = None


def matches_dietary(
    tags: Iterable[str],
    restrictions: Iterable[str],
    policy: DietaryMatchPolicy = DietaryMatchPolicy.ANY,
) -> bool:
    """
    Check a recipe's dietary tags against a restriction set.

    ANY accepts a recipe sharing at least one tag with the restrictions,
    ALL requires every restriction to be present. An empty restriction
    set accepts everything under both policies.
    """
    wanted = set(normalize_tags(list(restrictions)))
    if not wanted:
        return True
    have = set(normalize_tags(list(tags)))
    if policy is DietaryMatchPolicy.ALL:
        return wanted <= have
    return bool(wanted & have)


class CandidatePool:
    """
    Filters a household's recipe or routine collection.

    Column equality filters are pushed to the repositories; tag and time
    filters are applied here. Nothing matching yields an empty list.
    """

    def __init__(
        self,
        recipes: RecipeRepository | None = None,
        routines: RoutineRepository | None = None,
    ):
        self.recipes = recipes
        self.routines = routines

    async def find_recipes(
        self,
        household_id: str,
        filters: RecipeFilters | None = None,
    ) -> list[RecipeRecord]:
        """Recipes in the household's shared pool matching the filters."""
        if self.recipes is None:
            raise RuntimeError("CandidatePool was created without a recipe repository")
        filters = filters or RecipeFilters()
        rows = await self.recipes.find_by_household(
            household_id,
            RecipeQuery(category=filters.category, difficulty=filters.difficulty),
        )
        candidates = filter_recipes(rows, filters)
        logger.info(
            f"Recipe pool for household {household_id}: {len(candidates)} of {len(rows)} "
            f"(restrictions={filters.dietary_restrictions}, policy={filters.dietary_match.value})"
        )
        return candidates

    async def find_routines(
        self,
        household_id: str,
        filters: RoutineFilters | None = None,
    ) -> list[RoutineRecord]:
        """Active routines visible to the household matching the filters."""
        if self.routines is None:
            raise RuntimeError("CandidatePool was created without a routine repository")
        filters = filters or RoutineFilters()
        rows = await self.routines.find_by_filters(
            household_id,
            RoutineQuery(
                category=filters.category,
                context=filters.context,
                energy=filters.energy,
                duration=filters.duration,
                difficulty=filters.difficulty,
            ),
        )
        if filters.max_minutes is not None:
            rows = [r for r in rows if r.estimated_minutes <= filters.max_minutes]
        return rows


def filter_recipes(recipes: Iterable[RecipeRecord], filters: RecipeFilters) -> list[RecipeRecord]:
    """In-memory part of the recipe filter."""
    result = []
    for recipe in recipes:
        if filters.category and recipe.category.value != filters.category:
            continue
        if filters.difficulty and recipe.difficulty != filters.difficulty:
            continue
        if filters.max_total_minutes is not None and recipe.total_time > filters.max_total_minutes:
            continue
        if not matches_dietary(
            recipe.dietary_tags, filters.dietary_restrictions, filters.dietary_match
        ):
            continue
        result.append(recipe)
    return result
