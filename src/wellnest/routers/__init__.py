"""API routers for the wellnest application."""

from wellnest.routers.lottery import router as lottery_router
from wellnest.routers.meal_plans import router as meal_plans_router

__all__ = [
    "lottery_router",
    "meal_plans_router",
]
