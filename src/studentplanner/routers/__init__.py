"""API routers for the studentplanner application."""

from studentplanner.routers.inventory import router as inventory_router
from studentplanner.routers.meal_plans import router as meal_plans_router
from studentplanner.routers.shopping import router as shopping_router
from studentplanner.routers.travel import router as travel_router

__all__ = [
    "inventory_router",
    "meal_plans_router",
    "shopping_router",
    "travel_router",
]
