"""Weekly slot assignment: one random recipe per (day, meal type)."""

from collections.abc import Sequence
from datetime import date, timedelta

from wellnest.exceptions import NoCandidatesError
from wellnest.logging_config import get_logger
from wellnest.plan.lottery import Lottery
from wellnest.schemas import PLANNED_MEAL_TYPES, MealPlanItem, MealType, RecipeRecord

logger = get_logger(__name__)

DAYS_PER_WEEK = 7


def week_end_for(week_start: date) -> date:
    """Last day of the week starting at ``week_start``."""
    return week_start + timedelta(days=DAYS_PER_WEEK - 1)


class SlotAssigner:
    """
    Fills the 7 x {breakfast, lunch, dinner, snack} grid in a single pass.

    Each slot draws one recipe of exactly that category; slots without a
    matching recipe stay empty. Snack slots are additionally skipped by an
    independent coin flip. Recipes may repeat across the week.
    """

    def __init__(self, lottery: Lottery, default_servings: int = 2):
        self.lottery = lottery
        self.default_servings = default_servings

    def assign(
        self,
        week_start: date,
        candidates: Sequence[RecipeRecord],
        snack_skip_probability: float = 0.5,
    ) -> list[MealPlanItem]:
        """
        Build the plan items for one week.

        Args:
            week_start: First day of the plan.
            candidates: Pre-filtered recipe pool for the household.
            snack_skip_probability: Chance of leaving each snack slot empty.

        Returns:
            Items ordered by day, then breakfast, lunch, dinner, snack.

        Raises:
            NoCandidatesError: If the candidate pool is empty.
        """
        if not candidates:
            raise NoCandidatesError()

        by_category: dict[MealType, list[RecipeRecord]] = {}
        for recipe in candidates:
            by_category.setdefault(recipe.category, []).append(recipe)

        items: list[MealPlanItem] = []
        for offset in range(DAYS_PER_WEEK):
            slot_date = week_start + timedelta(days=offset)
            for meal_type in PLANNED_MEAL_TYPES:
                if meal_type is MealType.SNACK and self.lottery.flip(snack_skip_probability):
                    continue

                pool = by_category.get(meal_type, [])
                if not pool:
                    continue

                drawn = self.lottery.draw(pool, count=1)
                recipe = drawn.items[0]
                items.append(
                    MealPlanItem(
                        date=slot_date,
                        meal_type=meal_type,
                        recipe_id=recipe.id,
                        recipe_name=recipe.name,
                        servings=self.default_servings,
                        notes="",
                    )
                )

        logger.info(
            f"Assigned {len(items)} slots for week of {week_start.isoformat()} "
            f"from {len(candidates)} candidates"
        )
        return items
