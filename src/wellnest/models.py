"""SQLAlchemy database models."""

from datetime import date, datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Date,
    DateTime,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from wellnest.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Recipe(Base):
    """Recipe owned by a household, or a system recipe when household_id is null."""

    __tablename__ = "recipes"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    household_id: Mapped[str | None] = mapped_column(String, nullable=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(20), nullable=False)  # meal type
    difficulty: Mapped[str] = mapped_column(String(20), default="easy")
    prep_time: Mapped[int] = mapped_column(Integer, default=0)  # minutes
    cook_time: Mapped[int] = mapped_column(Integer, default=0)  # minutes
    servings: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    dietary_tags: Mapped[list] = mapped_column(JSON, default=list)
    tags: Mapped[list] = mapped_column(JSON, default=list)
    ingredients: Mapped[list] = mapped_column(JSON, default=list)
    is_shared: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        Index("idx_recipes_household_shared", "household_id", "is_shared"),
        Index("idx_recipes_category", "category"),
    )


class Routine(Base):
    """Wellness routine (breathwork, stretching, ...) used by the routine lottery."""

    __tablename__ = "routines"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    household_id: Mapped[str | None] = mapped_column(String, nullable=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    context: Mapped[str] = mapped_column(String(20), default="anytime")
    energy: Mapped[str] = mapped_column(String(20), default="medium")
    duration: Mapped[str] = mapped_column(String(20), default="15min")
    estimated_minutes: Mapped[int] = mapped_column(Integer, default=15)
    difficulty: Mapped[str] = mapped_column(String(20), default="beginner")
    tags: Mapped[list] = mapped_column(JSON, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        Index("idx_routines_category_context_energy", "category", "context", "energy"),
        Index("idx_routines_is_active", "is_active"),
    )


class MealPlan(Base):
    """Weekly meal plan for a household with its items embedded."""

    __tablename__ = "meal_plans"

    id: Mapped[str] = mapped_column(String, primary_key=True)
    household_id: Mapped[str] = mapped_column(String, nullable=False)
    week_start_date: Mapped[date] = mapped_column(Date, nullable=False)
    week_end_date: Mapped[date] = mapped_column(Date, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    items: Mapped[list] = mapped_column(JSON, default=list)
    preferences: Mapped[dict] = mapped_column(JSON, default=dict)
    created_by: Mapped[str | None] = mapped_column(String, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    __table_args__ = (
        Index("idx_meal_plans_household_week", "household_id", "week_start_date", "is_active"),
        # At most one active plan per household
        Index(
            "uq_meal_plans_household_active",
            "household_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active"),
        ),
    )


class PlanActivation(Base):
    """Per-household pointer to the active plan, versioned for optimistic locking."""

    __tablename__ = "plan_activations"

    household_id: Mapped[str] = mapped_column(String, primary_key=True)
    active_plan_id: Mapped[str | None] = mapped_column(String, nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow
    )

    __mapper_args__ = {"version_id_col": version}
