"""Weekly meal plan generation."""

import threading
from collections import Counter
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from datetime import date, timedelta
from typing import Any

import pydantic

from studentplanner.errors import InsufficientDataError, ValidationError
from studentplanner.inventory.store import InventoryStore
from studentplanner.logging_config import LoggingContext, get_logger
from studentplanner.plan.shopping_list import InventoryLedger, ShoppingListGenerator, recipe_cost
from studentplanner.recipes.catalog import RecipeCatalog
from studentplanner.recipes.scoring import RecipeScore, RecipeScoringEngine, plan_bulk_cooking
from studentplanner.repository import PlanRepository
from studentplanner.schemas import (
    MEAL_SLOTS,
    BulkCookingPlan,
    DayMeals,
    MealConstraints,
    MealSlot,
    NutritionInfo,
    PlannedMeal,
    PlanWarning,
    RecipeData,
    WeeklyMealPlan,
)

logger = get_logger(__name__)


class KeyedLocks:
    """
    One lock per key, held through ``hold(key)``.

    A key's lock is dropped once no caller holds or waits on it.
    """

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: dict[Any, tuple[threading.Lock, int]] = {}

    @contextmanager
    def hold(self, key: Any) -> Iterator[None]:
        with self._guard:
            lock, users = self._locks.get(key, (None, 0))
            lock = lock or threading.Lock()
            self._locks[key] = (lock, users + 1)
        try:
            with lock:
                yield
        finally:
            with self._guard:
                _, users = self._locks[key]
                if users == 1:
                    del self._locks[key]
                else:
                    self._locks[key] = (lock, users - 1)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


def week_start_for(day: date) -> date:
    """Monday of the week containing ``day``."""
    return day - timedelta(days=day.weekday())


class MealPlanPlanner:
    """
    Builds a 7-day breakfast/lunch/dinner plan that:
    - Only uses recipes within each slot's time ceiling
    - Keeps the incremental cost of the plan within budget
    - Prefers recipes using what is already in the inventory
    - Derives the shopping delta and a daily nutrition average
    """

    DAYS = 7
    SLOT_TAGS: dict[MealSlot, list[str]] = {
        "breakfast": ["breakfast"],
        "lunch": ["lunch", "quick"],
        "dinner": ["dinner"],
    }
    BULK_THRESHOLD = 1.5

    def __init__(
        self,
        inventory: InventoryStore,
        catalog: RecipeCatalog,
        plans: PlanRepository,
        scoring: RecipeScoringEngine | None = None,
        shopping: ShoppingListGenerator | None = None,
        locks: KeyedLocks | None = None,
        today: Callable[[], date] = date.today,
        query_limit: int = 50,
        result_limit: int = 10,
    ):
        self.inventory = inventory
        self.catalog = catalog
        self.plans = plans
        self.scoring = scoring or RecipeScoringEngine()
        self.shopping = shopping or ShoppingListGenerator()
        self.locks = locks if locks is not None else KeyedLocks()
        self._today = today
        self.query_limit = query_limit
        self.result_limit = result_limit

    # =========================================================================
    # Public API
    # =========================================================================

    def generate_weekly_plan(
        self,
        owner_id: str,
        constraints: MealConstraints | dict[str, Any],
    ) -> WeeklyMealPlan:
        """
        Generate and save the plan for one week, replacing any earlier one.

        Slots that cannot be filled are left empty with a warning; the plan
        itself is never abandoned.

        Raises:
            ValidationError: constraints are malformed. Nothing is read or written.
            StorageError: persistence is unavailable.
        """
        constraints = self._validate(constraints)
        week_start = constraints.week_start or week_start_for(self._today())

        with LoggingContext(owner_id=owner_id, operation="generate_weekly_plan"):
            with self.locks.hold((owner_id, week_start)):
                plan = self._build_plan(owner_id, week_start, constraints)
                saved = self.plans.replace(plan)

            logger.info(
                f"Generated plan for week of {week_start}: "
                f"{len(saved.filled_slots())} meals, {saved.total_cost:.2f} GBP, "
                f"{len(saved.warnings)} warnings"
            )
            return saved

    def suggest_recipes(
        self,
        owner_id: str,
        max_time: int,
        tags: list[str] | None = None,
        max_difficulty: int = 3,
        dietary_restrictions: list[str] | None = None,
        available_ingredients: list[str] | None = None,
        bulk_cooking: bool = False,
        limit: int | None = None,
    ) -> list[RecipeScore]:
        """Rank catalog recipes for one meal against the owner's inventory."""
        if max_time <= 0:
            raise ValidationError(f"max_time must be positive, got {max_time}")

        available = self.inventory.available_ingredients(owner_id)
        available.extend(available_ingredients or [])
        candidates = self._fetch_candidates(
            owner_id, int(RecipeScoringEngine.TIME_CUTOFF * max_time), tags
        )

        return self.scoring.score_recipes(
            candidates,
            available_ingredients=available,
            max_time=max_time,
            max_difficulty=max_difficulty,
            dietary_restrictions=dietary_restrictions,
            bulk_cooking=bulk_cooking,
            limit=limit or self.result_limit,
        )

    # =========================================================================
    # Plan construction
    # =========================================================================

    @staticmethod
    def _validate(constraints: MealConstraints | dict[str, Any]) -> MealConstraints:
        if isinstance(constraints, MealConstraints):
            return constraints
        try:
            return MealConstraints.model_validate(constraints)
        except pydantic.ValidationError as e:
            raise ValidationError("Invalid meal constraints", {"errors": e.errors()}) from e

    def _build_plan(
        self,
        owner_id: str,
        week_start: date,
        constraints: MealConstraints,
    ) -> WeeklyMealPlan:
        inventory_items = self.inventory.list_items(owner_id)
        available = [item.name for item in inventory_items]
        available.extend(constraints.available_ingredients or [])

        options = {
            slot: self._slot_options(owner_id, slot, constraints, available) for slot in MEAL_SLOTS
        }

        ledger = InventoryLedger(inventory_items)
        warnings: list[PlanWarning] = []
        meals: dict[date, DayMeals] = {}
        total_cost = 0.0

        for offset in range(self.DAYS):
            day = week_start + timedelta(days=offset)
            day_meals = DayMeals()

            for slot in MEAL_SLOTS:
                slot_options = options[slot]
                if not slot_options:
                    warnings.append(
                        PlanWarning(
                            code="no_candidates",
                            message=f"No {slot} recipe fits the time ceiling and diet",
                            day=day,
                            slot=slot,
                        )
                    )
                    continue

                try:
                    recipe = self._choose(
                        slot_options, ledger, constraints.servings, constraints.budget - total_cost
                    )
                except InsufficientDataError as e:
                    warnings.append(
                        PlanWarning(code="budget_shortfall", message=e.message, day=day, slot=slot)
                    )
                    continue

                cost = recipe_cost(recipe, constraints.servings, ledger, commit=True)
                total_cost += cost
                setattr(
                    day_meals,
                    slot,
                    PlannedMeal(recipe=recipe, servings=constraints.servings, estimated_cost=cost),
                )

            meals[day] = day_meals

        plan = WeeklyMealPlan(
            owner_id=owner_id,
            week_start=week_start,
            meals=meals,
            total_cost=round(total_cost, 2),
            warnings=warnings,
        )

        chosen = [(meal.recipe, meal.servings) for _, _, meal in plan.filled_slots()]
        plan.shopping_list = self.shopping.generate(chosen, inventory_items)
        plan.nutrition_summary = self._nutrition_summary(plan)

        if constraints.bulk_cooking_preference:
            plan.bulk_cooking = self._bulk_recommendations(plan, constraints.servings)

        return plan

    def _slot_options(
        self,
        owner_id: str,
        slot: MealSlot,
        constraints: MealConstraints,
        available: list[str],
    ) -> list[RecipeData]:
        """Ranked recipes whose total time is within the slot's ceiling."""
        ceiling = constraints.cooking_time_limits.for_slot(slot)
        # Only recipes within the ceiling are plannable
        candidates = self._fetch_candidates(owner_id, ceiling, self.SLOT_TAGS[slot])

        scored = self.scoring.score_recipes(
            candidates,
            available_ingredients=available,
            max_time=ceiling,
            max_difficulty=constraints.max_difficulty,
            dietary_restrictions=constraints.dietary_restrictions,
            bulk_cooking=constraints.bulk_cooking_preference,
            limit=len(candidates),
        )
        fitting = [s.recipe for s in scored if s.recipe.total_time <= ceiling]
        return fitting[: self.result_limit]

    def _fetch_candidates(
        self,
        owner_id: str,
        max_total: int,
        tags: list[str] | None,
    ) -> list[RecipeData]:
        limit = self.query_limit
        candidates = self.catalog.search(
            max_total_time=max_total, tags=tags, owner_id=owner_id, limit=limit
        )
        if not candidates and tags:
            logger.debug(f"No recipes tagged {tags}, searching all recipes")
            candidates = self.catalog.search(max_total_time=max_total, owner_id=owner_id, limit=limit)
        return candidates

    @staticmethod
    def _choose(
        options: list[RecipeData],
        ledger: InventoryLedger,
        servings: int,
        remaining_budget: float,
    ) -> RecipeData:
        """
        Top-ranked option if affordable, else the cheapest affordable one.

        Raises:
            InsufficientDataError: no option fits the remaining budget.
        """
        costs = [recipe_cost(recipe, servings, ledger) for recipe in options]
        if costs[0] <= remaining_budget + 1e-9:
            return options[0]

        affordable = [
            (cost, rank) for rank, cost in enumerate(costs) if cost <= remaining_budget + 1e-9
        ]
        if not affordable:
            raise InsufficientDataError(
                f"Cheapest option costs {min(costs):.2f} GBP, "
                f"only {max(remaining_budget, 0.0):.2f} GBP left in the budget"
            )
        _, rank = min(affordable)
        return options[rank]

    def _nutrition_summary(self, plan: WeeklyMealPlan) -> NutritionInfo:
        """Daily average per person across the whole week."""
        totals = {"calories": 0.0, "protein": 0.0, "carbs": 0.0, "fat": 0.0}
        for _, _, meal in plan.filled_slots():
            for field_name in totals:
                totals[field_name] += getattr(meal.recipe.nutrition, field_name)

        days = max(len(plan.meals), 1)
        return NutritionInfo(**{name: round(value / days, 1) for name, value in totals.items()})

    def _bulk_recommendations(
        self,
        plan: WeeklyMealPlan,
        servings: int,
    ) -> list[BulkCookingPlan]:
        recipes: dict[str, RecipeData] = {}
        days_used: Counter[str] = Counter()
        for _, _, meal in plan.filled_slots():
            recipes[meal.recipe.id] = meal.recipe
            days_used[meal.recipe.id] += 1

        recommendations = []
        for recipe_id, days in sorted(days_used.items()):
            recipe = recipes[recipe_id]
            if days < 2 or recipe.bulk_multiplier <= self.BULK_THRESHOLD:
                continue
            bulk = plan_bulk_cooking(recipe, servings, days)
            recommendations.append(bulk)
            if bulk.storage is None:
                plan.warnings.append(
                    PlanWarning(code="bulk_storage", message=bulk.recommendation, item=recipe.name)
                )
        return recommendations
