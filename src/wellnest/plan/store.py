"""Meal plan persistence and the one-active-plan-per-household invariant."""

import uuid
from datetime import date, timedelta

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from wellnest.exceptions import ConcurrencyConflictError, NotFoundError
from wellnest.logging_config import get_logger
from wellnest.models import MealPlan, PlanActivation
from wellnest.plan.candidates import CandidatePool, RecipeFilters
from wellnest.plan.slots import DAYS_PER_WEEK, SlotAssigner, week_end_for
from wellnest.repository import RecipeRepository
from wellnest.schemas import MealPlanItem, MealPlanPreferences, MealPlanRead

logger = get_logger(__name__)


def start_of_week(day: date, week_start_day: int = 6) -> date:
    """First day of the calendar week containing ``day`` (0=Monday ... 6=Sunday)."""
    return day - timedelta(days=(day.weekday() - week_start_day) % DAYS_PER_WEEK)


class PlanStore:
    """
    Stores and retrieves meal plans.

    ``generate`` runs deactivate-assign-insert as one transaction guarded by
    the household's PlanActivation row: it is locked where the database
    supports ``SELECT ... FOR UPDATE`` and its version column is checked on
    write, so a racing generation fails with ConcurrencyConflictError instead
    of leaving zero or two active plans.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        assigner: SlotAssigner,
        week_start_day: int = 6,
    ):
        self.session_factory = session_factory
        self.assigner = assigner
        self.week_start_day = week_start_day

    async def generate(
        self,
        household_id: str,
        week_start: date,
        preferences: MealPlanPreferences | None = None,
        created_by: str | None = None,
    ) -> MealPlanRead:
        """
        Generate a new active plan for the household.

        Raises:
            NoCandidatesError: If the household has no matching recipes.
            ConcurrencyConflictError: If another generation won the race.
        """
        preferences = preferences or MealPlanPreferences()
        logger.info(f"Generating meal plan for household {household_id}, week {week_start}")

        try:
            async with self.session_factory() as session, session.begin():
                activation = await self._lock_activation(session, household_id)

                pool = CandidatePool(recipes=RecipeRepository(session))
                candidates = await pool.find_recipes(
                    household_id,
                    RecipeFilters(
                        dietary_restrictions=preferences.dietary_restrictions,
                        dietary_match=preferences.dietary_match,
                    ),
                )
                items = self.assigner.assign(
                    week_start,
                    candidates,
                    snack_skip_probability=preferences.snack_skip_probability,
                )

                deactivated = await session.execute(
                    update(MealPlan)
                    .where(
                        MealPlan.household_id == household_id,
                        MealPlan.is_active == True,  # noqa: E712
                    )
                    .values(is_active=False)
                )

                plan = MealPlan(
                    id=str(uuid.uuid4()),
                    household_id=household_id,
                    week_start_date=week_start,
                    week_end_date=week_end_for(week_start),
                    is_active=True,
                    items=[item.model_dump(mode="json") for item in items],
                    preferences=preferences.model_dump(mode="json"),
                    created_by=created_by,
                )
                session.add(plan)
                activation.active_plan_id = plan.id
                await session.flush()
        except (StaleDataError, IntegrityError) as e:
            logger.warning(f"Concurrent generation detected for household {household_id}: {e}")
            raise ConcurrencyConflictError(household_id) from e

        logger.info(
            f"Created meal plan {plan.id} with {len(items)} items "
            f"(deactivated {deactivated.rowcount} previous)"
        )
        return MealPlanRead.model_validate(plan)

    async def _lock_activation(self, session: AsyncSession, household_id: str) -> PlanActivation:
        result = await session.execute(
            select(PlanActivation)
            .where(PlanActivation.household_id == household_id)
            .with_for_update()
        )
        activation = result.scalar_one_or_none()
        if activation is None:
            activation = PlanActivation(household_id=household_id)
            session.add(activation)
            # A concurrent first generation surfaces here as a primary key violation
            await session.flush()
        return activation

    async def get(self, plan_id: str, household_id: str) -> MealPlanRead | None:
        """Fetch a plan of the household, active or not."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(MealPlan).where(
                    MealPlan.id == plan_id,
                    MealPlan.household_id == household_id,
                )
            )
            plan = result.scalar_one_or_none()
            return MealPlanRead.model_validate(plan) if plan else None

    async def get_current(
        self,
        household_id: str,
        today: date | None = None,
    ) -> MealPlanRead | None:
        """Active plan covering the start of the current calendar week, if any."""
        week_start = start_of_week(today or date.today(), self.week_start_day)
        async with self.session_factory() as session:
            result = await session.execute(
                select(MealPlan)
                .where(
                    MealPlan.household_id == household_id,
                    MealPlan.is_active == True,  # noqa: E712
                    MealPlan.week_start_date <= week_start,
                    MealPlan.week_end_date >= week_start,
                )
                .order_by(MealPlan.created_at.desc())
                .limit(1)
            )
            plan = result.scalar_one_or_none()
            return MealPlanRead.model_validate(plan) if plan else None

    async def list_plans(
        self,
        household_id: str,
        week_start: date | None = None,
    ) -> list[MealPlanRead]:
        """Active plans of the household, newest week first."""
        stmt = select(MealPlan).where(
            MealPlan.household_id == household_id,
            MealPlan.is_active == True,  # noqa: E712
        )
        if week_start:
            stmt = stmt.where(
                MealPlan.week_start_date >= week_start,
                MealPlan.week_start_date < week_start + timedelta(days=DAYS_PER_WEEK),
            )

        async with self.session_factory() as session:
            result = await session.execute(stmt.order_by(MealPlan.week_start_date.desc()))
            return [MealPlanRead.model_validate(p) for p in result.scalars().all()]

    async def deactivate(self, plan_id: str, household_id: str) -> MealPlanRead:
        """
        Soft-delete a plan: clear its active flag and keep the record.

        Raises:
            NotFoundError: If the plan does not belong to the household.
        """
        try:
            async with self.session_factory() as session, session.begin():
                result = await session.execute(
                    select(MealPlan).where(
                        MealPlan.id == plan_id,
                        MealPlan.household_id == household_id,
                    )
                )
                plan = result.scalar_one_or_none()
                if not plan:
                    raise NotFoundError("Meal plan", plan_id)

                plan.is_active = False
                activation = await session.get(PlanActivation, household_id)
                if activation is not None and activation.active_plan_id == plan_id:
                    activation.active_plan_id = None
                await session.flush()
        except StaleDataError as e:
            raise ConcurrencyConflictError(household_id) from e

        logger.info(f"Deactivated meal plan {plan_id}")
        return MealPlanRead.model_validate(plan)

    async def active_items_between(
        self,
        household_id: str,
        start: date,
        end: date,
    ) -> list[MealPlanItem]:
        """Items of the household's active plans dated within [start, end]."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(MealPlan).where(
                    MealPlan.household_id == household_id,
                    MealPlan.is_active == True,  # noqa: E712
                    MealPlan.week_start_date <= end,
                    MealPlan.week_end_date >= start,
                )
            )
            plans = [MealPlanRead.model_validate(p) for p in result.scalars().all()]

        return [item for plan in plans for item in plan.items if start <= item.date <= end]
