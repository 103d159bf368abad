"""Grocery list aggregation from meal plans."""

import math
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import NamedTuple

from wellnest.logging_config import get_logger
from wellnest.schemas import (
    PLANNED_MEAL_TYPES,
    Ingredient,
    MealPlanItem,
    MealPlanRead,
    MealType,
    RecipeRecord,
)

logger = get_logger(__name__)

RecipeLookup = Callable[[str], RecipeRecord | None]

_MEAL_ORDER = {meal_type: index for index, meal_type in enumerate(PLANNED_MEAL_TYPES)}


class ScaleMode(str, Enum):
    """How a plan item's servings scale ingredient quantities."""

    FLAT = "flat"  # quantity * servings
    PER_BASE_SERVING = "per_base_serving"  # quantity * servings / recipe.servings


class IngredientKey(NamedTuple):
    """Case-insensitive merge key; same name with different units never merges."""

    name: str
    unit: str

    @classmethod
    def for_ingredient(cls, ingredient: Ingredient) -> "IngredientKey":
        return cls(ingredient.name.strip().lower(), ingredient.unit.strip().lower())

    def __str__(self) -> str:
        return f"{self.name}_{self.unit}"


@dataclass(frozen=True)
class GroceryContribution:
    """One meal's share of a grocery item."""

    recipe_name: str
    quantity: float
    meal_type: MealType
    date: date

    def sort_key(self) -> tuple:
        return (
            self.date,
            _MEAL_ORDER.get(self.meal_type, len(_MEAL_ORDER)),
            self.recipe_name,
            self.quantity,
        )


@dataclass
class GroceryItem:
    """A merged line of the shopping list."""

    key: IngredientKey
    contributions: list[GroceryContribution] = field(default_factory=list)

    @property
    def name(self) -> str:
        return self.key.name

    @property
    def unit(self) -> str:
        return self.key.unit

    @property
    def total_quantity(self) -> float:
        return math.fsum(c.quantity for c in self.contributions)


class GroceryAggregator:
    """
    Merges the ingredients of every meal in a plan into one list.

    Pure function of its inputs: recipes are resolved through a lookup
    callable, unresolvable recipes are skipped, and the output does not
    depend on the order of the plan items.
    """

    def __init__(self, scale_mode: ScaleMode = ScaleMode.FLAT):
        self.scale_mode = scale_mode

    def scaled_quantity(
        self,
        ingredient: Ingredient,
        item: MealPlanItem,
        recipe: RecipeRecord,
    ) -> float:
        """Quantity of one ingredient needed for one plan item."""
        if self.scale_mode is ScaleMode.PER_BASE_SERVING:
            return ingredient.quantity * item.servings / recipe.servings
        return ingredient.quantity * item.servings

    def aggregate(
        self,
        plan: MealPlanRead | Iterable[MealPlanItem],
        recipe_lookup: RecipeLookup,
    ) -> list[GroceryItem]:
        """
        Aggregate a plan (or a bare collection of plan items).

        Args:
            plan: The plan whose items to aggregate.
            recipe_lookup: Returns the recipe for an id, or None if it is gone.

        Returns:
            Grocery items sorted by (name, unit).
        """
        items = plan.items if isinstance(plan, MealPlanRead) else plan
        merged: dict[IngredientKey, GroceryItem] = {}
        skipped = 0

        for item in items:
            recipe = recipe_lookup(item.recipe_id)
            if recipe is None:
                skipped += 1
                logger.warning(
                    f"Recipe {item.recipe_id} ({item.recipe_name}) no longer exists; "
                    f"skipping {item.meal_type.value} on {item.date.isoformat()}"
                )
                continue

            for ingredient in recipe.ingredients:
                key = IngredientKey.for_ingredient(ingredient)
                grocery_item = merged.setdefault(key, GroceryItem(key=key))
                grocery_item.contributions.append(
                    GroceryContribution(
                        recipe_name=recipe.name,
                        quantity=self.scaled_quantity(ingredient, item, recipe),
                        meal_type=item.meal_type,
                        date=item.date,
                    )
                )

        for grocery_item in merged.values():
            grocery_item.contributions.sort(key=GroceryContribution.sort_key)

        if skipped:
            logger.info(f"Grocery aggregation skipped {skipped} item(s) with missing recipes")

        return sorted(merged.values(), key=lambda g: (g.key.name, g.key.unit))
