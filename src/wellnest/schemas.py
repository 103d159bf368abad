"""Common data schemas for the planner core."""

from datetime import date, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from wellnest.config import get_settings


class MealType(str, Enum):
    """Recipe category, doubling as the meal slot type."""

    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"
    DESSERT = "dessert"
    BEVERAGE = "beverage"
    SAUCE = "sauce"


# Slot order within a day
PLANNED_MEAL_TYPES: tuple[MealType, ...] = (
    MealType.BREAKFAST,
    MealType.LUNCH,
    MealType.DINNER,
    MealType.SNACK,
)


class DietaryMatchPolicy(str, Enum):
    """How a restriction set is matched against a recipe's dietary tags."""

    ANY = "any"  # at least one shared tag
    ALL = "all"  # recipe carries every restriction


def normalize_tags(tags: list[str] | set[str] | None) -> list[str]:
    """Strip, lower-case and de-duplicate tags, keeping first-seen order."""
    seen: dict[str, None] = {}
    for tag in tags or []:
        cleaned = tag.strip().lower()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)


class Ingredient(BaseModel):
    """One ingredient line of a recipe."""

    name: str = Field(min_length=1)
    quantity: float = Field(ge=0)
    unit: str = ""
    notes: str | None = None


class RecipeRecord(BaseModel):
    """Read-only view of a recipe as seen by the planner."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    household_id: str | None = None
    name: str
    category: MealType
    difficulty: str = "easy"
    prep_time: int = 0
    cook_time: int = 0
    servings: int = Field(default=1, ge=1)
    dietary_tags: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    ingredients: list[Ingredient] = Field(default_factory=list)
    is_shared: bool = True

    @property
    def total_time(self) -> int:
        """Prep plus cook time in minutes."""
        return self.prep_time + self.cook_time


class RoutineRecord(BaseModel):
    """Read-only view of a wellness routine."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    household_id: str | None = None
    title: str
    category: str
    context: str = "anytime"
    energy: str = "medium"
    duration: str = "15min"
    estimated_minutes: int = 15
    difficulty: str = "beginner"
    tags: list[str] = Field(default_factory=list)
    is_active: bool = True


def _default_match_policy() -> DietaryMatchPolicy:
    return DietaryMatchPolicy(get_settings().dietary_match_policy)


def _default_snack_skip_probability() -> float:
    return get_settings().snack_skip_probability


class MealPlanPreferences(BaseModel):
    """Generation preferences, fully specified with a default for every field."""

    dietary_restrictions: list[str] = Field(default_factory=list)
    health_goals: list[str] = Field(default_factory=list)
    cuisine_preferences: list[str] = Field(default_factory=list)
    avoid_ingredients: list[str] = Field(default_factory=list)
    dietary_match: DietaryMatchPolicy = Field(default_factory=_default_match_policy)
    snack_skip_probability: float = Field(
        default_factory=_default_snack_skip_probability, ge=0.0, le=1.0
    )

    @field_validator(
        "dietary_restrictions",
        "health_goals",
        "cuisine_preferences",
        "avoid_ingredients",
        mode="before",
    )
    @classmethod
    def _clean_tags(cls, value: list[str] | None) -> list[str]:
        return normalize_tags(value)


class MealPlanItem(BaseModel):
    """One filled (date, meal type) slot of a plan."""

    date: date
    meal_type: MealType
    recipe_id: str
    recipe_name: str
    servings: int = Field(default=2, ge=1)
    notes: str = ""


class MealPlanRead(BaseModel):
    """Meal plan as returned to callers."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    household_id: str
    week_start_date: date
    week_end_date: date
    is_active: bool
    items: list[MealPlanItem] = Field(default_factory=list)
    preferences: MealPlanPreferences = Field(default_factory=MealPlanPreferences)
    created_by: str | None = None
    created_at: datetime | None = None
