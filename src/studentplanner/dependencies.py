"""Shared service instances for the API layer."""

from functools import lru_cache

from studentplanner.config import get_settings
from studentplanner.database import get_session_factory
from studentplanner.inventory.store import InventoryStore
from studentplanner.plan.optimizer import ShoppingListOptimizer
from studentplanner.plan.planner import MealPlanPlanner
from studentplanner.recipes.catalog import RecipeCatalog
from studentplanner.repository import PlanRepository, StoreRepository
from studentplanner.schemas import Coordinates, Location
from studentplanner.travel.cache import InMemoryTTLCache
from studentplanner.travel.estimator import TravelEstimator
from studentplanner.travel.provider import RoutingProvider


@lru_cache
def get_inventory_store() -> InventoryStore:
    return InventoryStore(get_session_factory())


@lru_cache
def get_recipe_catalog() -> RecipeCatalog:
    return RecipeCatalog(get_session_factory())


@lru_cache
def get_plan_repository() -> PlanRepository:
    return PlanRepository(get_session_factory())


@lru_cache
def get_store_repository() -> StoreRepository:
    return StoreRepository(get_session_factory())


@lru_cache
def get_planner() -> MealPlanPlanner:
    settings = get_settings()
    return MealPlanPlanner(
        inventory=get_inventory_store(),
        catalog=get_recipe_catalog(),
        plans=get_plan_repository(),
        query_limit=settings.recipe_query_limit,
        result_limit=settings.recipe_result_limit,
    )


@lru_cache
def get_travel_estimator() -> TravelEstimator:
    """Estimator with a process-wide cache and, if configured, the routing provider."""
    settings = get_settings()
    provider = RoutingProvider() if settings.has_routing_provider else None
    cache = InMemoryTTLCache(
        default_ttl=settings.cache_ttl_seconds,
        max_entries=settings.cache_max_entries,
    )
    return TravelEstimator(cache=cache, provider=provider)


def get_home_location() -> Location:
    settings = get_settings()
    return Location(
        name=settings.home_name,
        coordinates=Coordinates(
            latitude=settings.home_latitude,
            longitude=settings.home_longitude,
        ),
    )


@lru_cache
def get_shopping_optimizer() -> ShoppingListOptimizer:
    settings = get_settings()
    return ShoppingListOptimizer(
        travel=get_travel_estimator(),
        max_candidate_stores=settings.max_candidate_stores,
        travel_time_value=settings.travel_time_value,
        dwell_minutes=settings.store_dwell_minutes,
        default_home=get_home_location(),
        default_mode=settings.default_travel_mode,
    )
