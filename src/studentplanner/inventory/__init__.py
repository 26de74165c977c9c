"""Perishable inventory tracking."""

from studentplanner.inventory.categorize import categorize_item
from studentplanner.inventory.store import InventoryStore

__all__ = [
    "InventoryStore",
    "categorize_item",
]
