"""Ingredient name matching against what a user has on hand."""

import re
from collections.abc import Iterable

from rapidfuzz import fuzz, process

from studentplanner.logging_config import get_logger

logger = get_logger(__name__)


# Common words to remove from ingredient names for better matching
STOP_WORDS = {
    "fresh",
    "dried",
    "chopped",
    "diced",
    "minced",
    "sliced",
    "grated",
    "crushed",
    "whole",
    "large",
    "medium",
    "small",
    "raw",
    "cooked",
    "frozen",
    "canned",
    "tinned",
    "organic",
    "free-range",
    "boneless",
    "skinless",
    "peeled",
    "ripe",
    "softened",
    "melted",
    "plain",
    "unsalted",
    "salted",
    "low-fat",
    "skimmed",
    "semi-skimmed",
    "of",
}

# British -> common variations
INGREDIENT_SYNONYMS = {
    "aubergine": ["eggplant"],
    "courgette": ["zucchini"],
    "coriander": ["cilantro"],
    "rocket": ["arugula"],
    "spring onion": ["scallion", "green onion"],
    "beef mince": ["minced beef", "ground beef"],
    "prawn": ["shrimp"],
    "double cream": ["heavy cream"],
    "chickpea": ["garbanzo bean"],
    "spaghetti": ["pasta"],
    "penne": ["pasta"],
}


def _singular(word: str) -> str:
    if len(word) > 4 and word.endswith("ies"):
        return word[:-3] + "y"
    if len(word) > 4 and word.endswith("oes"):
        return word[:-2]
    if len(word) > 3 and word.endswith("s") and not word.endswith("ss"):
        return word[:-1]
    return word


def normalize_ingredient(name: str) -> str:
    """
    Normalize an ingredient name for matching.

    Lowercases, strips leading quantities and parenthetical notes, drops
    preparation words and singularizes each remaining word.
    """
    normalized = name.lower().strip()

    # e.g., "2 tbsp olive oil" -> "olive oil"
    normalized = re.sub(
        r"^[\d½¼¾]+(?:[./][\d]+)?\s*(tbsp|tsp|g|kg|ml|l|x)?\s+",
        "",
        normalized,
    )
    normalized = re.sub(r"\([^)]*\)", "", normalized)
    normalized = normalized.replace(",", " ")

    words = [_singular(w) for w in normalized.split() if w not in STOP_WORDS]
    return " ".join(words)


def get_synonyms(ingredient: str) -> set[str]:
    """Synonyms of a normalized ingredient, including itself."""
    synonyms = {ingredient}
    synonyms.update(INGREDIENT_SYNONYMS.get(ingredient, []))
    for key, values in INGREDIENT_SYNONYMS.items():
        if ingredient in values:
            synonyms.add(key)
    return synonyms


class IngredientMatcher:
    """
    Decide whether a required ingredient is covered by an available one.

    A match is any of: identical normalized names (or synonyms), one name's
    words contained in the other's ("chicken" vs "chicken breast"), or a
    rapidfuzz token-sort ratio at or above FUZZY_THRESHOLD.
    """

    FUZZY_THRESHOLD = 85

    def __init__(self, available: Iterable[str]):
        self._available: dict[str, str] = {}
        for name in available:
            normalized = normalize_ingredient(name)
            if normalized:
                self._available.setdefault(normalized, name)

    @property
    def available_names(self) -> list[str]:
        return list(self._available.values())

    def find(self, required: str) -> str | None:
        """Return the available item matching ``required``, if any."""
        normalized = normalize_ingredient(required)
        if not normalized or not self._available:
            return None

        for term in get_synonyms(normalized):
            if term in self._available:
                return self._available[term]

        required_words = set(normalized.split())
        for candidate, original in self._available.items():
            candidate_words = set(candidate.split())
            if required_words <= candidate_words or candidate_words <= required_words:
                return original

        best = process.extractOne(
            normalized,
            list(self._available),
            scorer=fuzz.token_sort_ratio,
            score_cutoff=self.FUZZY_THRESHOLD,
        )
        if best is not None:
            matched, score, _ = best
            logger.debug(f"Fuzzy matched '{required}' to '{matched}' ({score:.0f})")
            return self._available[matched]

        return None

    def has(self, required: str) -> bool:
        return self.find(required) is not None


def contains_ingredient(recipe_ingredient: str, restricted: str) -> bool:
    """Whether a recipe ingredient is, or contains, a restricted item."""
    ingredient = normalize_ingredient(recipe_ingredient)
    banned = normalize_ingredient(restricted)
    if not ingredient or not banned:
        return False
    return re.search(rf"\b{re.escape(banned)}\b", ingredient) is not None
