"""Household wellness planner: weekly meal plans, grocery lists and routine lottery."""

__version__ = "0.1.0"
