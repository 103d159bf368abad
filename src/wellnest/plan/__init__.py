"""Meal plan generation, grocery aggregation and random draws."""

from wellnest.plan.candidates import (
    CandidatePool,
    RecipeFilters,
    RoutineFilters,
    matches_dietary,
)
from wellnest.plan.grocery import (
    GroceryAggregator,
    GroceryContribution,
    GroceryItem,
    IngredientKey,
    ScaleMode,
)
from wellnest.plan.lottery import Lottery, LotteryResult, RandomSource, make_random_source
from wellnest.plan.slots import SlotAssigner, week_end_for
from wellnest.plan.store import PlanStore, start_of_week

__all__ = [
    "CandidatePool",
    "GroceryAggregator",
    "GroceryContribution",
    "GroceryItem",
    "IngredientKey",
    "Lottery",
    "LotteryResult",
    "PlanStore",
    "RandomSource",
    "RecipeFilters",
    "RoutineFilters",
    "ScaleMode",
    "SlotAssigner",
    "make_random_source",
    "matches_dietary",
    "start_of_week",
    "week_end_for",
]
