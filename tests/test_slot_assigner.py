"""Unit tests for weekly slot assignment."""

from datetime import timedelta

import pytest
from factories import WEEK_START, ScriptedRandom, make_recipe

from wellnest.exceptions import NoCandidatesError
from wellnest.plan.lottery import Lottery, make_random_source
from wellnest.plan.slots import SlotAssigner, week_end_for
from wellnest.schemas import PLANNED_MEAL_TYPES, MealType


def test_week_end_is_six_days_after_start():
    """Test the week spans seven days inclusive."""
    assert week_end_for(WEEK_START) == WEEK_START + timedelta(days=6)


class TestSlotAssigner:
    """Tests for SlotAssigner.assign."""

    def test_single_category_pool(self, pancake_recipes):
        """Test a breakfast-only pool fills exactly the seven breakfast slots."""
        assigner = SlotAssigner(Lottery(make_random_source(1)))

        items = assigner.assign(WEEK_START, pancake_recipes, snack_skip_probability=0.0)

        assert len(items) == 7
        assert {item.meal_type for item in items} == {MealType.BREAKFAST}
        assert {item.recipe_id for item in items} <= {"A", "B"}
        assert [item.date for item in items] == [WEEK_START + timedelta(days=d) for d in range(7)]

    def test_meal_type_matches_recipe_category(self, full_week_recipes):
        """Test every slot holds a recipe of exactly that category."""
        by_id = {r.id: r for r in full_week_recipes}
        assigner = SlotAssigner(Lottery(make_random_source(5)))

        items = assigner.assign(WEEK_START, full_week_recipes, snack_skip_probability=0.0)

        for item in items:
            assert by_id[item.recipe_id].category == item.meal_type
            assert item.recipe_name == by_id[item.recipe_id].name

    def test_unplanned_categories_never_used(self, full_week_recipes):
        """Test desserts are not assigned to any slot."""
        assigner = SlotAssigner(Lottery(make_random_source(5)))

        items = assigner.assign(WEEK_START, full_week_recipes, snack_skip_probability=0.0)

        assert "cake" not in {item.recipe_id for item in items}

    def test_full_grid_order(self, full_week_recipes):
        """Test items are ordered by day, then breakfast, lunch, dinner, snack."""
        assigner = SlotAssigner(Lottery(make_random_source(8)))

        items = assigner.assign(WEEK_START, full_week_recipes, snack_skip_probability=0.0)

        assert len(items) == 28
        expected = [
            (WEEK_START + timedelta(days=d), meal_type)
            for d in range(7)
            for meal_type in PLANNED_MEAL_TYPES
        ]
        assert [(item.date, item.meal_type) for item in items] == expected

    def test_snacks_always_skipped(self, full_week_recipes):
        """Test a skip probability of one leaves every snack slot empty."""
        assigner = SlotAssigner(Lottery(make_random_source(2)))

        items = assigner.assign(WEEK_START, full_week_recipes, snack_skip_probability=1.0)

        assert len(items) == 21
        assert MealType.SNACK not in {item.meal_type for item in items}

    def test_snack_flip_per_day(self, full_week_recipes):
        """Test each day's snack gets its own independent coin flip."""
        # Flips below 0.5 skip the snack: days 0, 2, 4, 6 skip
        rng = ScriptedRandom(coins=[0.1, 0.9])
        assigner = SlotAssigner(Lottery(rng))

        items = assigner.assign(WEEK_START, full_week_recipes, snack_skip_probability=0.5)

        snack_days = [item.date for item in items if item.meal_type is MealType.SNACK]
        assert snack_days == [WEEK_START + timedelta(days=d) for d in (1, 3, 5)]
        assert rng.calls == 7

    def test_default_servings_and_notes(self, pancake_recipes):
        """Test items carry the configured default servings and empty notes."""
        assigner = SlotAssigner(Lottery(make_random_source(1)), default_servings=4)

        items = assigner.assign(WEEK_START, pancake_recipes)

        assert all(item.servings == 4 for item in items)
        assert all(item.notes == "" for item in items)

    def test_recipes_may_repeat(self):
        """Test a single recipe can fill every day."""
        assigner = SlotAssigner(Lottery(make_random_source(1)))

        items = assigner.assign(WEEK_START, [make_recipe("only", "dinner")])

        assert [item.recipe_id for item in items] == ["only"] * 7

    def test_empty_pool_raises(self):
        """Test generation from an empty pool is a NoCandidatesError."""
        assigner = SlotAssigner(Lottery(make_random_source(1)))

        with pytest.raises(NoCandidatesError) as exc_info:
            assigner.assign(WEEK_START, [])

        assert exc_info.value.message == "No recipes available for meal planning"

    def test_pool_without_planned_categories(self):
        """Test a non-empty pool with only unplanned categories yields no items."""
        assigner = SlotAssigner(Lottery(make_random_source(1)))

        items = assigner.assign(WEEK_START, [make_recipe("cake", "dessert")])

        assert items == []

    def test_deterministic_with_seed(self, full_week_recipes):
        """Test the same seed yields the same plan."""
        first = SlotAssigner(Lottery(make_random_source(99))).assign(WEEK_START, full_week_recipes)
        second = SlotAssigner(Lottery(make_random_source(99))).assign(
            WEEK_START, full_week_recipes
        )
        assert first == second
