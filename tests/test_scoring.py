"""Tests for recipe scoring and bulk cooking."""

import pytest

from studentplanner.recipes.scoring import (
    RecipeScoringEngine,
    plan_bulk_cooking,
    restricted_terms,
)


@pytest.fixture
def engine():
    return RecipeScoringEngine()


class TestScoreRecipes:
    """Tests for RecipeScoringEngine.score_recipes."""

    def test_full_match_scores_100(self, engine, recipe_factory):
        recipe = recipe_factory(
            ingredients=[{"name": "eggs", "quantity": 2}],
            cooking_time=5,
            difficulty=1,
        )
        [scored] = engine.score_recipes([recipe], ["eggs"], max_time=10)

        assert scored.breakdown.ingredient_match == 100
        assert scored.score == pytest.approx(90.0)
        assert scored.missing_ingredients == []

    def test_missing_ingredients_reported(self, engine, recipe_factory):
        recipe = recipe_factory(
            ingredients=[
                {"name": "eggs"},
                {"name": "bacon"},
                {"name": "chives", "optional": True},
            ]
        )
        [scored] = engine.score_recipes([recipe], ["eggs"], max_time=10)

        assert scored.breakdown.ingredient_match == 50
        assert scored.missing_ingredients == ["bacon"]

    def test_prefers_recipe_using_inventory(self, engine, recipe_factory):
        on_hand = recipe_factory(id="a", name="Omelette", ingredients=[{"name": "eggs"}])
        shopping = recipe_factory(id="b", name="Avocado Toast", ingredients=[{"name": "avocado"}])

        ranked = engine.score_recipes([shopping, on_hand], ["eggs"], max_time=10)
        assert [s.recipe.id for s in ranked] == ["a", "b"]

    def test_time_score_decays_to_cutoff(self, engine, recipe_factory):
        within = recipe_factory(id="a", name="A", cooking_time=10)
        slower = recipe_factory(id="b", name="B", cooking_time=15)
        too_slow = recipe_factory(id="c", name="C", cooking_time=21)

        ranked = engine.score_recipes([within, slower, too_slow], [], max_time=10)

        assert [s.recipe.id for s in ranked] == ["a", "b"]
        assert ranked[1].breakdown.time_match == pytest.approx(50.0)

    def test_difficulty_penalty(self, engine, recipe_factory):
        recipe = recipe_factory(difficulty=5)
        [scored] = engine.score_recipes([recipe], [], max_time=10, max_difficulty=3)
        assert scored.breakdown.difficulty_match == pytest.approx(60.0)

    def test_ties_go_to_quicker_then_name(self, engine, recipe_factory):
        recipes = [
            recipe_factory(id="c", name="Crumpets", cooking_time=5),
            recipe_factory(id="b", name="Bagel", cooking_time=5, prep_time=2),
            recipe_factory(id="a", name="Apple", cooking_time=5),
        ]
        ranked = engine.score_recipes(recipes, [], max_time=10)
        assert [s.recipe.name for s in ranked] == ["Apple", "Crumpets", "Bagel"]

    def test_bulk_bonus_only_when_requested(self, engine, recipe_factory):
        batchable = recipe_factory(bulk_multiplier=2.0)

        [plain] = engine.score_recipes([batchable], [], max_time=10)
        [bulk] = engine.score_recipes([batchable], [], max_time=10, bulk_cooking=True)

        assert plain.breakdown.bulk_bonus == 0
        assert bulk.score == pytest.approx(plain.score + 10)

    def test_limit(self, engine, recipe_factory):
        recipes = [recipe_factory(id=str(i), name=f"R{i}") for i in range(5)]
        assert len(engine.score_recipes(recipes, [], max_time=10, limit=2)) == 2

    def test_empty_input(self, engine):
        assert engine.score_recipes([], ["eggs"], max_time=10) == []


class TestDietaryRestrictions:
    """Recipes containing restricted ingredients are never returned."""

    def test_vegetarian_excludes_meat(self, engine, recipe_factory):
        stir_fry = recipe_factory(id="a", name="Stir Fry", ingredients=[{"name": "chicken breast"}])
        omelette = recipe_factory(id="b", name="Omelette", ingredients=[{"name": "eggs"}])

        ranked = engine.score_recipes(
            [stir_fry, omelette], [], max_time=10, dietary_restrictions=["vegetarian"]
        )
        assert [s.recipe.id for s in ranked] == ["b"]

    def test_vegan_excludes_eggs_but_not_eggplant(self, engine, recipe_factory):
        omelette = recipe_factory(id="a", name="Omelette", ingredients=[{"name": "eggs"}])
        curry = recipe_factory(id="b", name="Curry", ingredients=[{"name": "eggplant"}])

        ranked = engine.score_recipes([omelette, curry], [], max_time=10, dietary_restrictions=["Vegan"])
        assert [s.recipe.id for s in ranked] == ["b"]

    def test_plain_ingredient_restriction(self, engine, recipe_factory):
        satay = recipe_factory(ingredients=[{"name": "peanut butter"}])
        assert engine.score_recipes([satay], [], max_time=10, dietary_restrictions=["peanut"]) == []

    def test_restricted_terms_expands_keywords(self):
        terms = restricted_terms(["gluten-free", "coriander", " "])
        assert "pasta" in terms
        assert "coriander" in terms
        assert "" not in terms


class TestPlanBulkCooking:
    """Tests for batch sizing and storage."""

    def test_fridge_when_it_keeps(self, recipe_factory):
        recipe = recipe_factory(servings=2, storage_info={"fridge_days": 3, "freezer_days": 30})
        plan = plan_bulk_cooking(recipe, servings=1, days=3)

        assert plan.multiplier == 2
        assert plan.total_servings == 4
        assert plan.storage == "fridge"

    def test_freezer_when_fridge_too_short(self, recipe_factory):
        recipe = recipe_factory(servings=4, storage_info={"fridge_days": 2, "freezer_days": 60})
        plan = plan_bulk_cooking(recipe, servings=2, days=5)

        assert plan.multiplier == 3
        assert plan.storage == "freezer"

    def test_no_storage_recommends_smaller_batches(self, recipe_factory):
        recipe = recipe_factory(name="Salad", storage_info={"fridge_days": 1})
        plan = plan_bulk_cooking(recipe, servings=1, days=4)

        assert plan.storage is None
        assert "smaller batches" in plan.recommendation
