"""API routes for weekly meal plan generation and management."""

from datetime import date

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field

from studentplanner.dependencies import get_plan_repository, get_planner
from studentplanner.logging_config import get_logger
from studentplanner.plan.planner import MealPlanPlanner
from studentplanner.recipes.scoring import RecipeScore
from studentplanner.repository import PlanRepository
from studentplanner.schemas import MealConstraints, RecipeData, WeeklyMealPlan

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1/meal-plans", tags=["meal-plans"])


# =============================================================================
# Request/Response Schemas
# =============================================================================


class RecipeSuggestion(BaseModel):
    """Scored recipe with the ingredients the user would still need."""

    recipe: RecipeData
    score: float
    ingredient_match: float
    time_match: float
    difficulty_match: float
    bulk_bonus: float
    missing_ingredients: list[str] = Field(default_factory=list)

    @classmethod
    def from_score(cls, scored: RecipeScore) -> "RecipeSuggestion":
        return cls(
            recipe=scored.recipe,
            score=round(scored.score, 2),
            ingredient_match=round(scored.breakdown.ingredient_match, 2),
            time_match=round(scored.breakdown.time_match, 2),
            difficulty_match=round(scored.breakdown.difficulty_match, 2),
            bulk_bonus=round(scored.breakdown.bulk_bonus, 2),
            missing_ingredients=scored.missing_ingredients,
        )


class MealPlanListResponse(BaseModel):
    """All plans of one owner, newest week first."""

    plans: list[WeeklyMealPlan]
    total: int


# =============================================================================
# Endpoints
# =============================================================================


@router.post(
    "/{owner_id}",
    response_model=WeeklyMealPlan,
    status_code=status.HTTP_201_CREATED,
)
def generate_meal_plan(
    owner_id: str,
    constraints: MealConstraints,
    planner: MealPlanPlanner = Depends(get_planner),
) -> WeeklyMealPlan:
    """Generate the plan for a week, replacing any earlier plan for it."""
    logger.info(f"Generating meal plan for {owner_id} with budget {constraints.budget:.2f} GBP")
    return planner.generate_weekly_plan(owner_id, constraints)


@router.get("/{owner_id}", response_model=MealPlanListResponse)
def list_meal_plans(
    owner_id: str,
    plans: PlanRepository = Depends(get_plan_repository),
) -> MealPlanListResponse:
    owner_plans = plans.list_for_owner(owner_id)
    return MealPlanListResponse(plans=owner_plans, total=len(owner_plans))


@router.get("/{owner_id}/suggestions", response_model=list[RecipeSuggestion])
def suggest_recipes(
    owner_id: str,
    max_time: int = Query(30, gt=0, description="Cook + prep ceiling in minutes"),
    tags: list[str] | None = Query(None),
    max_difficulty: int = Query(3, ge=1, le=5),
    dietary_restrictions: list[str] | None = Query(None),
    bulk_cooking: bool = Query(False),
    limit: int = Query(10, ge=1, le=50),
    planner: MealPlanPlanner = Depends(get_planner),
) -> list[RecipeSuggestion]:
    """Rank recipes for a single meal against the owner's inventory."""
    scored = planner.suggest_recipes(
        owner_id,
        max_time=max_time,
        tags=tags,
        max_difficulty=max_difficulty,
        dietary_restrictions=dietary_restrictions,
        bulk_cooking=bulk_cooking,
        limit=limit,
    )
    return [RecipeSuggestion.from_score(s) for s in scored]


@router.get("/{owner_id}/weeks/{week_start}", response_model=WeeklyMealPlan)
def get_meal_plan(
    owner_id: str,
    week_start: date,
    plans: PlanRepository = Depends(get_plan_repository),
) -> WeeklyMealPlan:
    """Plan for the week starting on ``week_start``."""
    return plans.get(owner_id, week_start)


@router.delete("/{owner_id}/weeks/{week_start}", status_code=status.HTTP_204_NO_CONTENT)
def delete_meal_plan(
    owner_id: str,
    week_start: date,
    plans: PlanRepository = Depends(get_plan_repository),
) -> Response:
    plans.delete(owner_id, week_start)
    logger.info(f"Deleted meal plan for {owner_id}, week of {week_start}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
