"""Read-only access to the recipe catalog."""

from sqlalchemy import or_, select
from sqlalchemy.orm import Session, sessionmaker

from studentplanner.database import transaction
from studentplanner.errors import NotFoundError
from studentplanner.logging_config import get_logger
from studentplanner.models import Recipe
from studentplanner.schemas import RecipeData

logger = get_logger(__name__)


class RecipeCatalog:
    """Queries over recipes visible to a given owner."""

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def get(self, recipe_id: str) -> RecipeData:
        with transaction(self._session_factory, "read recipe") as session:
            row = session.get(Recipe, recipe_id)
            if row is None:
                raise NotFoundError("recipe", recipe_id)
            return RecipeData.model_validate(row)

    def search(
        self,
        max_total_time: int | None = None,
        tags: list[str] | None = None,
        owner_id: str | None = None,
        max_difficulty: int | None = None,
        limit: int = 50,
    ) -> list[RecipeData]:
        """
        Find visible recipes.

        Public recipes are visible to everyone, private ones only to their
        creator. ``tags`` matches recipes sharing at least one tag.
        """
        visible = Recipe.visibility == "public"
        if owner_id:
            visible = or_(visible, Recipe.created_by == owner_id)

        query = select(Recipe).where(visible).order_by(Recipe.name, Recipe.id)
        if max_total_time is not None:
            query = query.where(Recipe.cooking_time + Recipe.prep_time <= max_total_time)
        if max_difficulty is not None:
            query = query.where(Recipe.difficulty <= max_difficulty)

        wanted = {tag.lower() for tag in tags or []}

        with transaction(self._session_factory, "search recipes") as session:
            results = []
            # Tags are stored as JSON, so overlap is checked here rather than in SQL
            for row in session.scalars(query):
                if wanted and not wanted & {tag.lower() for tag in row.tags or []}:
                    continue
                results.append(RecipeData.model_validate(row))
                if len(results) >= limit:
                    break

        logger.debug(f"Recipe search tags={sorted(wanted)} max_time={max_total_time}: {len(results)} hits")
        return results
