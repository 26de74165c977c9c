"""Recipe scoring against time, difficulty, diet and what is on hand."""

import math
from dataclasses import dataclass, field

from studentplanner.logging_config import get_logger
from studentplanner.recipes.matching import IngredientMatcher, contains_ingredient
from studentplanner.schemas import BulkCookingPlan, RecipeData

logger = get_logger(__name__)


# Diet keywords expand to the ingredients they rule out
DIETARY_EXCLUSIONS: dict[str, set[str]] = {
    "vegetarian": {
        "chicken",
        "beef",
        "pork",
        "lamb",
        "turkey",
        "fish",
        "bacon",
        "ham",
        "salmon",
        "tuna",
        "prawn",
        "sausage",
        "mince",
        "chorizo",
    },
    "vegan": {
        "chicken",
        "beef",
        "pork",
        "lamb",
        "turkey",
        "fish",
        "bacon",
        "ham",
        "salmon",
        "tuna",
        "prawn",
        "sausage",
        "mince",
        "chorizo",
        "milk",
        "cheese",
        "butter",
        "cream",
        "yogurt",
        "egg",
        "honey",
    },
    "gluten-free": {"flour", "bread", "pasta", "spaghetti", "noodle", "wheat", "barley", "couscous"},
    "dairy-free": {"milk", "cheese", "butter", "cream", "yogurt"},
    "nut-free": {"nut", "peanut", "almond", "cashew", "walnut", "hazelnut", "pecan"},
}


@dataclass
class ScoreBreakdown:
    """Sub-scores, each on a 0-100 scale."""

    ingredient_match: float = 0.0
    time_match: float = 0.0
    difficulty_match: float = 0.0
    bulk_bonus: float = 0.0


@dataclass
class RecipeScore:
    """Scored recipe with the ingredients the user still needs."""

    recipe: RecipeData
    score: float
    breakdown: ScoreBreakdown
    missing_ingredients: list[str] = field(default_factory=list)


def restricted_terms(restrictions: list[str] | set[str]) -> set[str]:
    """Expand diet keywords; anything else is taken as an ingredient name."""
    terms: set[str] = set()
    for restriction in restrictions:
        key = restriction.strip().lower()
        if not key:
            continue
        terms.update(DIETARY_EXCLUSIONS.get(key, {key}))
    return terms


def violates_restrictions(recipe: RecipeData, terms: set[str]) -> bool:
    return any(
        contains_ingredient(ingredient.name, term)
        for ingredient in recipe.ingredients
        for term in terms
    )


def plan_bulk_cooking(recipe: RecipeData, servings: int, days: int) -> BulkCookingPlan:
    """
    Size a batch of ``recipe`` covering ``servings`` a day for ``days`` days.

    Storage is the fridge when the batch keeps that long there, the freezer
    when the recipe freezes at all, and otherwise nothing.
    """
    multiplier = math.ceil(servings * days / recipe.servings)
    storage_info = recipe.storage_info

    if days <= storage_info.fridge_days:
        storage = "fridge"
        recommendation = f"Cook {multiplier}x and keep in the fridge for {days} days"
    elif storage_info.freezer_days > 0:
        storage = "freezer"
        recommendation = f"Cook {multiplier}x, freeze portions and defrost the night before"
    else:
        storage = None
        recommendation = (
            f"{recipe.name} keeps {storage_info.fridge_days} days and does not freeze; "
            "cook smaller batches"
        )

    return BulkCookingPlan(
        recipe_id=recipe.id,
        recipe_name=recipe.name,
        days=days,
        multiplier=multiplier,
        total_servings=multiplier * recipe.servings,
        storage=storage,
        recommendation=recommendation,
    )


class RecipeScoringEngine:
    """
    Rank recipes by weighted sub-scores:
    - Ingredient match (share of required ingredients on hand)
    - Time match (full marks under the ceiling, zero at twice the ceiling)
    - Difficulty match (20 points lost per level above the maximum)
    - Bulk bonus (batch-friendly recipes when batch cooking is wanted)
    """

    INGREDIENT_WEIGHT = 0.4
    TIME_WEIGHT = 0.3
    DIFFICULTY_WEIGHT = 0.2
    BULK_WEIGHT = 0.1

    DIFFICULTY_PENALTY = 20.0
    BULK_THRESHOLD = 1.5
    # Recipes slower than this multiple of the ceiling are never suggested
    TIME_CUTOFF = 2.0

    def score_recipes(
        self,
        recipes: list[RecipeData],
        available_ingredients: list[str],
        max_time: int,
        max_difficulty: int = 3,
        dietary_restrictions: list[str] | None = None,
        bulk_cooking: bool = False,
        limit: int = 10,
    ) -> list[RecipeScore]:
        """
        Score and rank candidate recipes.

        Args:
            recipes: Candidates, typically from the catalog.
            available_ingredients: Names of items on hand.
            max_time: Time ceiling in minutes (cook + prep).
            max_difficulty: Highest difficulty without penalty.
            dietary_restrictions: Diet keywords or ingredient names to avoid.
            bulk_cooking: Whether batch-friendly recipes earn a bonus.
            limit: Maximum number of results.

        Returns:
            Best first; ties go to the quicker recipe, then by name.
        """
        if not recipes or limit <= 0:
            return []

        matcher = IngredientMatcher(available_ingredients)
        terms = restricted_terms(dietary_restrictions or [])

        scored: list[RecipeScore] = []
        for recipe in recipes:
            if recipe.total_time > self.TIME_CUTOFF * max_time:
                continue
            if terms and violates_restrictions(recipe, terms):
                continue
            scored.append(self.score_recipe(recipe, matcher, max_time, max_difficulty, bulk_cooking))

        scored.sort(key=lambda s: (-s.score, s.recipe.total_time, s.recipe.name))

        logger.debug(
            f"Scored {len(scored)} of {len(recipes)} recipes (ceiling={max_time}min)"
        )
        return scored[:limit]

    def score_recipe(
        self,
        recipe: RecipeData,
        matcher: IngredientMatcher,
        max_time: int,
        max_difficulty: int,
        bulk_cooking: bool,
    ) -> RecipeScore:
        required = [ing for ing in recipe.ingredients if not ing.optional]
        missing = [ing.name for ing in required if not matcher.has(ing.name)]

        breakdown = ScoreBreakdown(
            ingredient_match=self._ingredient_match(len(required), len(missing)),
            time_match=self._time_match(recipe.total_time, max_time),
            difficulty_match=max(
                0.0, 100.0 - self.DIFFICULTY_PENALTY * max(0, recipe.difficulty - max_difficulty)
            ),
            bulk_bonus=(
                100.0 if bulk_cooking and recipe.bulk_multiplier > self.BULK_THRESHOLD else 0.0
            ),
        )

        score = (
            self.INGREDIENT_WEIGHT * breakdown.ingredient_match
            + self.TIME_WEIGHT * breakdown.time_match
            + self.DIFFICULTY_WEIGHT * breakdown.difficulty_match
            + self.BULK_WEIGHT * breakdown.bulk_bonus
        )

        return RecipeScore(
            recipe=recipe,
            score=round(score, 2),
            breakdown=breakdown,
            missing_ingredients=missing,
        )

    @staticmethod
    def _ingredient_match(required: int, missing: int) -> float:
        if required == 0:
            return 100.0
        return 100.0 * (required - missing) / required

    @staticmethod
    def _time_match(total_time: int, max_time: int) -> float:
        if total_time <= max_time:
            return 100.0
        return max(0.0, 100.0 * (2 * max_time - total_time) / max_time)
