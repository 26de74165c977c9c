"""Meal planning, shopping delta and store allocation."""

from studentplanner.plan.optimizer import ShoppingListOptimizer, StoreSetEvaluation
from studentplanner.plan.planner import KeyedLocks, MealPlanPlanner, week_start_for
from studentplanner.plan.shopping_list import (
    InventoryLedger,
    ShoppingListGenerator,
    estimate_cost,
)

__all__ = [
    "InventoryLedger",
    "KeyedLocks",
    "MealPlanPlanner",
    "ShoppingListGenerator",
    "ShoppingListOptimizer",
    "StoreSetEvaluation",
    "estimate_cost",
    "week_start_for",
]
