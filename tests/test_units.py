"""Unit tests for quantity normalization."""

import pytest

from studentplanner.normalize.units import (
    NormalizedQuantity,
    can_aggregate,
    identify_unit_type,
    normalize_quantity,
)


class TestIdentifyUnitType:
    """Tests for identify_unit_type."""

    @pytest.mark.parametrize(
        "unit,unit_type,factor",
        [
            ("ml", "volume", 1.0),
            ("L", "volume", 1000.0),
            ("tbsp", "volume", 15.0),
            ("kg", "weight", 1000.0),
            ("oz", "weight", 28.3495),
            ("", "count", 1.0),
            ("dozen", "count", 12.0),
            ("pinch", "unknown", 1.0),
        ],
    )
    def test_units(self, unit, unit_type, factor):
        assert identify_unit_type(unit) == (unit_type, factor)

    def test_none_is_a_count(self):
        assert identify_unit_type(None) == ("count", 1.0)


class TestNormalizeQuantity:
    """Tests for normalize_quantity."""

    def test_weight_to_grams(self):
        result = normalize_quantity(1.5, "kg")
        assert result.value == 1500.0
        assert result.unit == "g"
        assert result.unit_type == "weight"

    def test_spoons_to_ml(self):
        assert normalize_quantity(2, "tbsp").value == 30.0
        assert normalize_quantity(3, "tsp").value == 15.0

    def test_missing_quantity_counts_as_one(self):
        assert normalize_quantity(None, "g").value == 1.0

    def test_count_keeps_original_unit(self):
        result = normalize_quantity(3, "slices")
        assert result.unit_type == "count"
        assert result.display() == (3.0, "slices")

    def test_dozen_displays_as_plain_count(self):
        """12 eggs from '1 dozen' must not read as '12 dozen'."""
        result = normalize_quantity(1, "dozen")
        assert result.value == 12.0
        assert result.display() == (12.0, "")

    def test_unknown_unit_kept_verbatim(self):
        result = normalize_quantity(2, "Pinch")
        assert result.unit_type == "unknown"
        assert result.unit == "pinch"


class TestNormalizedQuantityArithmetic:
    """Tests for adding, subtracting and displaying quantities."""

    def test_add_across_weight_units(self):
        total = normalize_quantity(200, "g") + normalize_quantity(0.5, "kg")
        assert total.value == 700.0
        assert total.display() == (700.0, "g")

    def test_add_incompatible_keeps_first(self):
        grams = normalize_quantity(200, "g")
        assert (grams + normalize_quantity(1, "l")).value == 200.0

    def test_subtract_clamps_at_zero(self):
        remaining = normalize_quantity(100, "g") - normalize_quantity(0.5, "kg")
        assert remaining.value == 0.0

    def test_subtract_incompatible_is_noop(self):
        eggs = normalize_quantity(6, "")
        assert (eggs - normalize_quantity(100, "g")).value == 6.0

    def test_scaled(self):
        assert normalize_quantity(200, "g").scaled(0.5).value == 100.0

    def test_display_switches_to_larger_unit(self):
        assert NormalizedQuantity(1250.0, "g", "weight").display() == (1.25, "kg")
        assert NormalizedQuantity(2000.0, "ml", "volume").display() == (2.0, "l")
        assert NormalizedQuantity(330.0, "ml", "volume").display() == (330.0, "ml")

    def test_unknown_units_only_combine_with_themselves(self):
        pinch = normalize_quantity(1, "pinch")
        assert pinch.compatible_with(normalize_quantity(2, "pinch"))
        assert not pinch.compatible_with(normalize_quantity(1, "dash"))


class TestCanAggregate:
    """Tests for can_aggregate."""

    def test_same_type(self):
        assert can_aggregate("g", "kg")
        assert can_aggregate("ml", "cup")
        assert can_aggregate("", "pieces")

    def test_different_types(self):
        assert not can_aggregate("g", "ml")
        assert not can_aggregate("pinch", "g")
