"""Keyword-based item categorization."""

# Ordered: the first category with a matching keyword wins, so "pepper"
# is a vegetable and "black pepper" is too.
CATEGORY_KEYWORDS: tuple[tuple[str, frozenset[str]], ...] = (
    ("meat", frozenset({"chicken", "beef", "pork", "fish", "lamb", "turkey", "bacon", "sausage", "mince", "steak"})),
    ("dairy", frozenset({"milk", "cheese", "yogurt", "yoghurt", "butter", "cream", "egg"})),
    ("grains", frozenset({"rice", "pasta", "spaghetti", "noodle", "bread", "flour", "oats", "cereal"})),
    ("vegetables", frozenset({"tomato", "onion", "carrot", "potato", "pepper", "lettuce", "spinach", "broccoli"})),
    ("fruits", frozenset({"apple", "banana", "orange", "berry", "grape", "lemon"})),
    ("condiments", frozenset({"salt", "garlic", "herb", "spice", "oil", "vinegar", "sauce"})),
    ("beverages", frozenset({"juice", "soda", "water", "tea", "coffee"})),
)

DEFAULT_CATEGORY = "other"


def categorize_item(name: str) -> str:
    """Classify an item name into a food category by substring keywords."""
    lowered = name.lower()
    for category, keywords in CATEGORY_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return category
    return DEFAULT_CATEGORY
