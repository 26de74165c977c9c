"""Unit normalization and conversion utilities."""

from dataclasses import dataclass

from studentplanner.logging_config import get_logger

logger = get_logger(__name__)


# =============================================================================
# Unit Conversion Tables
# =============================================================================

# Volume conversions (base unit: ml)
VOLUME_UNITS: dict[str, float] = {
    "ml": 1.0,
    "millilitre": 1.0,
    "millilitres": 1.0,
    "cl": 10.0,
    "dl": 100.0,
    "l": 1000.0,
    "litre": 1000.0,
    "litres": 1000.0,
    "liter": 1000.0,
    "liters": 1000.0,
    "tsp": 5.0,
    "teaspoon": 5.0,
    "teaspoons": 5.0,
    "tbsp": 15.0,
    "tablespoon": 15.0,
    "tablespoons": 15.0,
    "cup": 250.0,
    "cups": 250.0,
    "pint": 568.261,
    "pints": 568.261,
}

# Weight conversions (base unit: g)
WEIGHT_UNITS: dict[str, float] = {
    "g": 1.0,
    "gram": 1.0,
    "grams": 1.0,
    "kg": 1000.0,
    "kilogram": 1000.0,
    "kilograms": 1000.0,
    "mg": 0.001,
    "oz": 28.3495,
    "ounce": 28.3495,
    "ounces": 28.3495,
    "lb": 453.592,
    "lbs": 453.592,
}

# Count-based units (base unit: count)
COUNT_UNITS: dict[str, float] = {
    "": 1.0,
    "item": 1.0,
    "items": 1.0,
    "piece": 1.0,
    "pieces": 1.0,
    "pc": 1.0,
    "pcs": 1.0,
    "whole": 1.0,
    "slice": 1.0,
    "slices": 1.0,
    "clove": 1.0,
    "cloves": 1.0,
    "can": 1.0,
    "cans": 1.0,
    "tin": 1.0,
    "tins": 1.0,
    "jar": 1.0,
    "jars": 1.0,
    "pack": 1.0,
    "packs": 1.0,
    "bottle": 1.0,
    "bottles": 1.0,
    "bag": 1.0,
    "bags": 1.0,
    "fillet": 1.0,
    "fillets": 1.0,
    "breast": 1.0,
    "breasts": 1.0,
    "dozen": 12.0,
}

BASE_UNITS = {"volume": "ml", "weight": "g", "count": ""}


@dataclass
class NormalizedQuantity:
    """A quantity expressed in the base unit of its unit type."""

    value: float
    unit: str
    unit_type: str  # "volume", "weight", "count", "unknown"
    original_unit: str = ""

    def __add__(self, other: "NormalizedQuantity") -> "NormalizedQuantity":
        """Add two normalized quantities if compatible."""
        if not self.compatible_with(other):
            logger.warning(f"Cannot add {self.unit_type} and {other.unit_type}, keeping first")
            return self

        return NormalizedQuantity(
            value=self.value + other.value,
            unit=self.unit,
            unit_type=self.unit_type,
            original_unit=self.original_unit,
        )

    def __sub__(self, other: "NormalizedQuantity") -> "NormalizedQuantity":
        """Subtract, clamping at zero. Incompatible units subtract nothing."""
        if not self.compatible_with(other):
            return self

        return NormalizedQuantity(
            value=max(0.0, self.value - other.value),
            unit=self.unit,
            unit_type=self.unit_type,
            original_unit=self.original_unit,
        )

    def scaled(self, factor: float) -> "NormalizedQuantity":
        return NormalizedQuantity(
            value=self.value * factor,
            unit=self.unit,
            unit_type=self.unit_type,
            original_unit=self.original_unit,
        )

    def compatible_with(self, other: "NormalizedQuantity") -> bool:
        if self.unit_type != other.unit_type:
            return False
        # Unknown units only combine with the exact same unit
        if self.unit_type == "unknown":
            return self.unit == other.unit
        return True

    def display(self) -> tuple[float, str]:
        """Quantity and unit for people, e.g. (1.2, "kg") rather than (1200, "g")."""
        if self.unit_type == "weight":
            if self.value >= 1000:
                return round(self.value / 1000, 3), "kg"
            return round(self.value, 1), "g"
        if self.unit_type == "volume":
            if self.value >= 1000:
                return round(self.value / 1000, 3), "l"
            return round(self.value, 1), "ml"
        return round(self.value, 2), self.original_unit or self.unit


def identify_unit_type(unit: str | None) -> tuple[str, float]:
    """
    Identify the unit type and conversion factor.

    Returns:
        Tuple of (unit_type, conversion_factor)
    """
    unit_lower = (unit or "").lower().strip()

    if unit_lower in VOLUME_UNITS:
        return "volume", VOLUME_UNITS[unit_lower]
    if unit_lower in WEIGHT_UNITS:
        return "weight", WEIGHT_UNITS[unit_lower]
    if unit_lower in COUNT_UNITS:
        return "count", COUNT_UNITS[unit_lower]

    return "unknown", 1.0


def normalize_quantity(quantity: float | None, unit: str | None) -> NormalizedQuantity:
    """
    Normalize a quantity and unit to base units.

    Args:
        quantity: The quantity value. None counts as one.
        unit: The unit string.

    Returns:
        NormalizedQuantity with value in base units.
    """
    qty_value = 1.0 if quantity is None else float(quantity)
    unit_type, factor = identify_unit_type(unit)

    if unit_type == "unknown":
        base_unit = (unit or "").lower().strip()
    else:
        base_unit = BASE_UNITS[unit_type]

    # Keep the caller's count unit ("slices", "cans") for display
    original = (unit or "").strip() if unit_type == "unknown" or factor == 1.0 else ""
    if unit_type in ("volume", "weight"):
        original = ""

    return NormalizedQuantity(
        value=qty_value * factor,
        unit=base_unit,
        unit_type=unit_type,
        original_unit=original,
    )


def can_aggregate(unit1: str | None, unit2: str | None) -> bool:
    """Check if two units measure the same kind of quantity."""
    return normalize_quantity(1, unit1).compatible_with(normalize_quantity(1, unit2))
