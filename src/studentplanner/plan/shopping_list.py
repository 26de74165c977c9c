"""Shopping list generation from meal plans, and baseline price estimates."""

from collections.abc import Iterable
from dataclasses import dataclass, field

from studentplanner.inventory.categorize import categorize_item
from studentplanner.logging_config import get_logger
from studentplanner.normalize.units import NormalizedQuantity, normalize_quantity
from studentplanner.recipes.matching import IngredientMatcher, normalize_ingredient
from studentplanner.schemas import InventoryItemRead, RecipeData, RecipeIngredient, ShoppingItem

logger = get_logger(__name__)


# =============================================================================
# Baseline pricing
# =============================================================================

# GBP per reference pack, by food category
CATEGORY_PACK_PRICES: dict[str, float] = {
    "meat": 8.00,
    "dairy": 2.50,
    "grains": 1.50,
    "vegetables": 2.00,
    "fruits": 3.00,
    "condiments": 1.00,
    "beverages": 2.00,
    "other": 2.50,
}

# Reference pack size in base units (g, ml, count)
PACK_SIZES: dict[str, float] = {
    "weight": 500.0,
    "volume": 1000.0,
    "count": 6.0,
    "unknown": 1.0,
}

PRICE_LEVEL_MULTIPLIERS: dict[str, float] = {
    "budget": 0.9,
    "mid": 1.0,
    "premium": 1.2,
}


def estimate_cost(
    name: str,
    quantity: float,
    unit: str = "",
    category: str | None = None,
    price_level: str = "mid",
) -> float:
    """
    Rough cost of ``quantity`` ``unit`` of an item.

    Proportional to quantity: the category's pack price times the number of
    reference packs, scaled by the store's price level.
    """
    normalized = normalize_quantity(quantity, unit)
    return estimate_normalized_cost(name, normalized, category, price_level)


def estimate_normalized_cost(
    name: str,
    quantity: NormalizedQuantity,
    category: str | None = None,
    price_level: str = "mid",
) -> float:
    category = category or categorize_item(name)
    pack_price = CATEGORY_PACK_PRICES.get(category, CATEGORY_PACK_PRICES["other"])
    packs = quantity.value / PACK_SIZES[quantity.unit_type]
    multiplier = PRICE_LEVEL_MULTIPLIERS.get(price_level, 1.0)
    return round(packs * pack_price * multiplier, 2)


def scaled_quantity(ingredient: RecipeIngredient, recipe: RecipeData, servings: int) -> NormalizedQuantity:
    """Ingredient quantity for ``servings`` portions of ``recipe``."""
    return normalize_quantity(ingredient.quantity, ingredient.unit).scaled(
        servings / recipe.servings
    )


# =============================================================================
# Inventory ledger
# =============================================================================


class InventoryLedger:
    """
    Tracks how much of the inventory earlier meals have already claimed.

    Quantities are held per normalized item name and unit type, so 500 g of
    pasta covers 0.2 kg of pasta but never "2 cans" of it.
    """

    def __init__(self, items: Iterable[InventoryItemRead] = ()):
        self._remaining: dict[str, dict[str, NormalizedQuantity]] = {}
        names = []
        for item in items:
            if item.quantity <= 0:
                continue
            key = normalize_ingredient(item.name)
            quantity = normalize_quantity(item.quantity, item.unit)
            by_type = self._remaining.setdefault(key, {})
            existing = by_type.get(quantity.unit_type)
            if existing is not None and existing.compatible_with(quantity):
                by_type[quantity.unit_type] = existing + quantity
            elif existing is None:
                by_type[quantity.unit_type] = quantity
            names.append(item.name)
        self._matcher = IngredientMatcher(names)

    def uncovered(self, name: str, quantity: NormalizedQuantity) -> NormalizedQuantity:
        """Part of ``quantity`` the remaining inventory cannot supply."""
        held = self._held(name, quantity)
        if held is None:
            return quantity
        return quantity - held

    def claim(self, name: str, quantity: NormalizedQuantity) -> NormalizedQuantity:
        """Take what the inventory can supply and return the shortfall."""
        held = self._held(name, quantity)
        if held is None:
            return quantity
        shortfall = quantity - held
        key = self._key(name)
        self._remaining[key][quantity.unit_type] = held - quantity
        return shortfall

    def _key(self, name: str) -> str | None:
        match = self._matcher.find(name)
        return normalize_ingredient(match) if match else None

    def _held(self, name: str, quantity: NormalizedQuantity) -> NormalizedQuantity | None:
        key = self._key(name)
        if key is None:
            return None
        held = self._remaining.get(key, {}).get(quantity.unit_type)
        if held is None or not held.compatible_with(quantity):
            return None
        return held


def recipe_cost(
    recipe: RecipeData,
    servings: int,
    ledger: InventoryLedger,
    commit: bool = False,
) -> float:
    """
    Baseline cost of the required ingredients not covered by ``ledger``.

    With ``commit`` the covered quantities are claimed from the ledger.
    """
    total = 0.0
    for ingredient in recipe.ingredients:
        if ingredient.optional:
            continue
        needed = scaled_quantity(ingredient, recipe, servings)
        if commit:
            missing = ledger.claim(ingredient.name, needed)
        else:
            missing = ledger.uncovered(ingredient.name, needed)
        if missing.value > 0:
            total += estimate_normalized_cost(ingredient.name, missing)
    return round(total, 2)


# =============================================================================
# Shopping delta
# =============================================================================


@dataclass
class _Requirement:
    name: str
    quantity: NormalizedQuantity
    essential: bool
    recipe_sources: list[str] = field(default_factory=list)


class ShoppingListGenerator:
    """
    Generates the shopping delta for a set of planned meals:
    - Quantity aggregation across recipes at plan servings
    - Unit normalization (e.g., 200 g + 0.5 kg -> 700 g)
    - Subtraction of what is already in the inventory
    - Baseline cost estimates per line
    """

    def generate(
        self,
        meals: Iterable[tuple[RecipeData, int]],
        inventory: Iterable[InventoryItemRead] = (),
    ) -> list[ShoppingItem]:
        """
        Build the shopping list.

        Args:
            meals: (recipe, servings) for every filled slot.
            inventory: Items currently on hand.

        Returns:
            Items still to buy, essentials first, then by name.
        """
        requirements = self._aggregate(meals)
        ledger = InventoryLedger(inventory)

        items: list[ShoppingItem] = []
        for requirement in requirements.values():
            missing = ledger.claim(requirement.name, requirement.quantity)
            if missing.value <= 1e-9:
                continue

            qty, unit = missing.display()
            category = categorize_item(requirement.name)
            items.append(
                ShoppingItem(
                    name=requirement.name,
                    quantity=qty,
                    unit=unit,
                    priority="essential" if requirement.essential else "optional",
                    category=category,
                    estimated_cost=estimate_normalized_cost(requirement.name, missing, category),
                )
            )

        items.sort(key=lambda i: (i.priority != "essential", i.name.lower()))

        logger.info(
            f"Generated shopping list: {len(items)} items from {len(requirements)} requirements"
        )
        return items

    def _aggregate(self, meals: Iterable[tuple[RecipeData, int]]) -> dict[tuple[str, str], _Requirement]:
        """Sum ingredient needs across meals, keyed by normalized name and unit type."""
        aggregated: dict[tuple[str, str], _Requirement] = {}

        for recipe, servings in meals:
            for ingredient in recipe.ingredients:
                quantity = scaled_quantity(ingredient, recipe, servings)
                key = (normalize_ingredient(ingredient.name), quantity.unit_type)
                if quantity.unit_type == "unknown":
                    key = (key[0], quantity.unit)

                existing = aggregated.get(key)
                if existing is None:
                    aggregated[key] = _Requirement(
                        name=ingredient.name,
                        quantity=quantity,
                        essential=not ingredient.optional,
                        recipe_sources=[recipe.id],
                    )
                    continue

                existing.quantity = existing.quantity + quantity
                existing.essential = existing.essential or not ingredient.optional
                if recipe.id not in existing.recipe_sources:
                    existing.recipe_sources.append(recipe.id)

        return aggregated
