"""Tests for ingredient name matching."""

import pytest

from studentplanner.recipes.matching import (
    IngredientMatcher,
    contains_ingredient,
    get_synonyms,
    normalize_ingredient,
)


class TestIngredientNormalization:
    """Tests for ingredient name normalization."""

    def test_basic_normalization(self):
        """Test basic string normalization."""
        assert normalize_ingredient("Chicken") == "chicken"
        assert normalize_ingredient("  GARLIC  ") == "garlic"

    def test_remove_stop_words(self):
        assert normalize_ingredient("fresh garlic") == "garlic"
        assert normalize_ingredient("chopped onion") == "onion"

    def test_remove_measurements(self):
        """Test removal of measurements at start."""
        assert normalize_ingredient("1/2 tsp salt") == "salt"
        assert normalize_ingredient("500g chicken") == "chicken"
        assert normalize_ingredient("2 tbsp olive oil") == "olive oil"

    def test_remove_parenthetical(self):
        assert normalize_ingredient("butter (softened)") == "butter"

    def test_singularizes(self):
        assert normalize_ingredient("Eggs") == "egg"
        assert normalize_ingredient("tomatoes") == "tomato"
        assert normalize_ingredient("berries") == "berry"
        assert normalize_ingredient("glass noodles") == "glass noodle"

    def test_complex_normalization(self):
        assert (
            normalize_ingredient("500g boneless skinless chicken breasts")
            == "chicken breast"
        )

    def test_empty_after_normalization(self):
        assert normalize_ingredient("fresh") == ""
        assert normalize_ingredient("   ") == ""


class TestSynonyms:
    """Tests for synonym expansion."""

    def test_forward_and_reverse(self):
        assert "eggplant" in get_synonyms("aubergine")
        assert "aubergine" in get_synonyms("eggplant")

    def test_pasta_shapes(self):
        assert {"pasta", "spaghetti", "penne"} <= get_synonyms("pasta")


class TestIngredientMatcher:
    """Tests for IngredientMatcher."""

    @pytest.fixture
    def matcher(self):
        return IngredientMatcher(["Eggs", "chicken breast", "spaghetti", "mozzarella"])

    def test_exact_after_normalization(self, matcher):
        assert matcher.find("egg") == "Eggs"
        assert matcher.find("free-range eggs") == "Eggs"

    def test_word_subset(self, matcher):
        assert matcher.find("chicken") == "chicken breast"

    def test_synonym(self, matcher):
        assert matcher.find("pasta") == "spaghetti"

    def test_fuzzy(self, matcher):
        """Small typos still match above the threshold."""
        assert matcher.find("mozarella") == "mozzarella"

    def test_no_match(self, matcher):
        assert matcher.find("salmon") is None
        assert not matcher.has("rice")

    def test_empty_inventory(self):
        assert IngredientMatcher([]).find("egg") is None


class TestContainsIngredient:
    """Tests for restriction matching."""

    def test_whole_word_match(self):
        assert contains_ingredient("chicken breast", "chicken")
        assert contains_ingredient("free-range eggs", "egg")

    def test_no_partial_word_match(self):
        assert not contains_ingredient("eggplant", "egg")
        assert not contains_ingredient("peanut butter", "nut")
