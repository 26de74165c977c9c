"""Recipe catalog, ingredient matching and scoring."""

from studentplanner.recipes.catalog import RecipeCatalog
from studentplanner.recipes.matching import IngredientMatcher, normalize_ingredient
from studentplanner.recipes.scoring import (
    RecipeScore,
    RecipeScoringEngine,
    ScoreBreakdown,
    plan_bulk_cooking,
)

__all__ = [
    "IngredientMatcher",
    "RecipeCatalog",
    "RecipeScore",
    "RecipeScoringEngine",
    "ScoreBreakdown",
    "normalize_ingredient",
    "plan_bulk_cooking",
]
