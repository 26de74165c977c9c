"""Unit normalization for shopping and inventory quantities."""

from studentplanner.normalize.units import (
    NormalizedQuantity,
    can_aggregate,
    identify_unit_type,
    normalize_quantity,
)

__all__ = [
    "NormalizedQuantity",
    "can_aggregate",
    "identify_unit_type",
    "normalize_quantity",
]
