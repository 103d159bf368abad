"""Unit tests for grocery list aggregation."""

import random
from datetime import timedelta

import pytest
from factories import WEEK_START, make_recipe

from wellnest.plan.grocery import (
    GroceryAggregator,
    GroceryContribution,
    IngredientKey,
    ScaleMode,
)
from wellnest.schemas import Ingredient, MealPlanItem, MealPlanRead, MealType


def plan_item(recipe, day=0, meal_type=MealType.BREAKFAST, servings=2):
    return MealPlanItem(
        date=WEEK_START + timedelta(days=day),
        meal_type=meal_type,
        recipe_id=recipe.id,
        recipe_name=recipe.name,
        servings=servings,
    )


def lookup_for(recipes):
    return {r.id: r for r in recipes}.get


def totals(grocery_items):
    return {(g.name, g.unit): g.total_quantity for g in grocery_items}


class TestIngredientKey:
    """Tests for IngredientKey."""

    def test_case_insensitive(self):
        """Test name and unit are lower-cased and trimmed."""
        key = IngredientKey.for_ingredient(Ingredient(name=" Olive Oil", quantity=1, unit="TBSP"))
        assert key == IngredientKey("olive oil", "tbsp")

    def test_string_form(self):
        """Test the key renders as name_unit."""
        assert str(IngredientKey("flour", "cup")) == "flour_cup"


class TestGroceryAggregator:
    """Tests for GroceryAggregator.aggregate."""

    def test_two_recipes_sharing_an_ingredient(self, pancake_recipes):
        """Test flour from both recipes merges into one line."""
        recipe_a, recipe_b = pancake_recipes
        items = [plan_item(recipe_a, day=0), plan_item(recipe_b, day=1)]

        result = GroceryAggregator().aggregate(items, lookup_for(pancake_recipes))

        assert totals(result) == {("flour", "cup"): 6.0, ("milk", "cup"): 2.0}
        flour = result[0]
        assert [c.recipe_name for c in flour.contributions] == ["Pancakes", "Waffles"]
        assert [c.quantity for c in flour.contributions] == [4.0, 2.0]

    def test_accepts_a_plan(self, pancake_recipes):
        """Test a MealPlanRead aggregates like its items."""
        recipe_a, _ = pancake_recipes
        plan = MealPlanRead(
            id="plan-1",
            household_id="h",
            week_start_date=WEEK_START,
            week_end_date=WEEK_START + timedelta(days=6),
            is_active=True,
            items=[plan_item(recipe_a)],
        )

        result = GroceryAggregator().aggregate(plan, lookup_for(pancake_recipes))

        assert totals(result) == {("flour", "cup"): 4.0}

    def test_sorted_by_name_then_unit(self):
        """Test output order is by name, then unit."""
        recipe = make_recipe(
            "mix",
            ingredients=[("sugar", 1, "g"), ("butter", 1, "g"), ("sugar", 1, "cup")],
        )

        result = GroceryAggregator().aggregate([plan_item(recipe)], lookup_for([recipe]))

        assert [(g.name, g.unit) for g in result] == [
            ("butter", "g"),
            ("sugar", "cup"),
            ("sugar", "g"),
        ]

    def test_units_never_merge(self):
        """Test the same ingredient in different units stays separate."""
        grams = make_recipe("g", ingredients=[("butter", 100, "g")])
        tbsp = make_recipe("t", ingredients=[("butter", 2, "tbsp")])

        result = GroceryAggregator().aggregate(
            [plan_item(grams), plan_item(tbsp, day=1)], lookup_for([grams, tbsp])
        )

        assert totals(result) == {("butter", "g"): 200.0, ("butter", "tbsp"): 4.0}

    def test_names_merge_case_insensitively(self, full_week_recipes):
        """Test 'olive oil/tbsp' and 'Olive Oil/TBSP' are one line."""
        by_id = {r.id: r for r in full_week_recipes}
        items = [
            plan_item(by_id["salad"], meal_type=MealType.LUNCH, servings=1),
            plan_item(by_id["pasta"], meal_type=MealType.DINNER, servings=1),
        ]

        result = GroceryAggregator().aggregate(items, by_id.get)

        assert totals(result)[("olive oil", "tbsp")] == 3.0

    def test_missing_recipe_is_skipped(self, pancake_recipes):
        """Test an item whose recipe was deleted contributes nothing."""
        recipe_a, _ = pancake_recipes
        ghost = make_recipe("deleted", ingredients=[("saffron", 1, "g")])
        items = [plan_item(recipe_a), plan_item(ghost, day=1)]

        result = GroceryAggregator().aggregate(items, lookup_for([recipe_a]))

        assert totals(result) == {("flour", "cup"): 4.0}

    def test_all_recipes_missing(self, pancake_recipes):
        """Test a plan of deleted recipes aggregates to an empty list."""
        items = [plan_item(r) for r in pancake_recipes]
        assert GroceryAggregator().aggregate(items, lambda recipe_id: None) == []

    def test_empty_plan(self):
        """Test no items means no grocery lines."""
        assert GroceryAggregator().aggregate([], lambda recipe_id: None) == []

    def test_order_independent(self, full_week_recipes):
        """Test shuffling plan items does not change the result."""
        by_id = {r.id: r for r in full_week_recipes}
        items = [
            plan_item(recipe, day=day, meal_type=recipe.category)
            for day in range(7)
            for recipe in full_week_recipes
        ]
        shuffled = list(items)
        random.Random(3).shuffle(shuffled)

        aggregator = GroceryAggregator()
        in_order = aggregator.aggregate(items, by_id.get)
        reordered = aggregator.aggregate(shuffled, by_id.get)

        assert in_order == reordered

    def test_adding_an_item_adds_its_ingredients(self, full_week_recipes):
        """Test the grocery list grows by exactly the new item's ingredients."""
        by_id = {r.id: r for r in full_week_recipes}
        base = [plan_item(by_id["oats"]), plan_item(by_id["pasta"], meal_type=MealType.DINNER)]
        extra = plan_item(by_id["salad"], day=2, meal_type=MealType.LUNCH, servings=3)

        aggregator = GroceryAggregator()
        before = totals(aggregator.aggregate(base, by_id.get))
        after = totals(aggregator.aggregate(base + [extra], by_id.get))

        expected = dict(before)
        for ingredient in by_id["salad"].ingredients:
            key = IngredientKey.for_ingredient(ingredient)
            expected[key] = expected.get(key, 0.0) + ingredient.quantity * 3
        assert after == pytest.approx(expected)

    def test_contributions_sorted_by_date_and_meal(self, full_week_recipes):
        """Test contributions are listed chronologically, breakfast first."""
        by_id = {r.id: r for r in full_week_recipes}
        items = [
            plan_item(by_id["pasta"], day=1, meal_type=MealType.DINNER),
            plan_item(by_id["salad"], day=1, meal_type=MealType.LUNCH),
            plan_item(by_id["pasta"], day=0, meal_type=MealType.DINNER),
        ]

        result = GroceryAggregator().aggregate(items, by_id.get)
        olive_oil = next(g for g in result if g.name == "olive oil")

        assert olive_oil.contributions == [
            GroceryContribution("pasta", 4.0, MealType.DINNER, WEEK_START),
            GroceryContribution("salad", 2.0, MealType.LUNCH, WEEK_START + timedelta(days=1)),
            GroceryContribution("pasta", 4.0, MealType.DINNER, WEEK_START + timedelta(days=1)),
        ]

    def test_fractional_totals_are_exact(self):
        """Test many small quantities sum without drift."""
        recipe = make_recipe("tea", ingredients=[("tea", 0.1, "bag")])
        items = [plan_item(recipe, day=d % 7, servings=1) for d in range(10)]

        result = GroceryAggregator().aggregate(items, lookup_for([recipe]))

        assert result[0].total_quantity == 1.0


class TestScaleModes:
    """Tests for serving-scale modes."""

    def test_flat_ignores_recipe_servings(self):
        """Test FLAT multiplies by the plan item's servings only."""
        recipe = make_recipe("stew", ingredients=[("beans", 400, "g")], servings=4)
        aggregator = GroceryAggregator(ScaleMode.FLAT)

        result = aggregator.aggregate([plan_item(recipe, servings=2)], lookup_for([recipe]))

        assert result[0].total_quantity == 800.0

    def test_per_base_serving(self):
        """Test PER_BASE_SERVING scales relative to the recipe's yield."""
        recipe = make_recipe("stew", ingredients=[("beans", 400, "g")], servings=4)
        aggregator = GroceryAggregator(ScaleMode.PER_BASE_SERVING)

        result = aggregator.aggregate([plan_item(recipe, servings=2)], lookup_for([recipe]))

        assert result[0].total_quantity == 200.0
