"""Unit tests for free-form quantity parsing and aggregation."""

import pytest

from mealplanner.normalize.quantities import (
    AggregatedQuantity,
    add_quantities,
    aggregate_quantities,
    decrement_quantity,
    format_quantity,
    increment_quantity,
    normalize_unit,
    parse_quantity,
)

# =============================================================================
# Parsing and Formatting
# =============================================================================


class TestParseQuantity:
    """Tests for parse_quantity function."""

    def test_parse_integer(self):
        assert parse_quantity("2") == 2.0
        assert parse_quantity("200") == 200.0

    def test_parse_decimal_comma(self):
        """Test that a comma decimal separator is accepted."""
        assert parse_quantity("2,5") == 2.5
        assert parse_quantity("1,5") == 1.5

    def test_parse_decimal_point(self):
        assert parse_quantity("0.25") == 0.25

    def test_parse_surrounding_whitespace(self):
        assert parse_quantity("  3 ") == 3.0

    def test_parse_empty(self):
        """Test that empty and blank input is unparseable."""
        assert parse_quantity("") is None
        assert parse_quantity("  ") is None
        assert parse_quantity(None) is None

    def test_parse_text(self):
        """Test that words and number-plus-text are rejected."""
        assert parse_quantity("two") is None
        assert parse_quantity("2 cloves") is None
        assert parse_quantity("a pinch") is None

    def test_parse_not_a_number(self):
        assert parse_quantity("nan") is None
        assert parse_quantity("inf") is None


class TestNormalizeUnit:
    """Tests for normalize_unit function."""

    def test_absent_units(self):
        """Test that None and blank strings normalize to no unit."""
        assert normalize_unit(None) == ""
        assert normalize_unit("") == ""
        assert normalize_unit("  ") == ""

    def test_lowercase_and_trim(self):
        assert normalize_unit("G") == "g"
        assert normalize_unit(" Cups ") == "cups"


class TestFormatQuantity:
    """Tests for format_quantity function."""

    def test_whole_numbers(self):
        assert format_quantity(3) == "3"
        assert format_quantity(2.0) == "2"
        assert format_quantity(300.0) == "300"

    def test_fractional_numbers(self):
        assert format_quantity(1.5) == "1.5"
        assert format_quantity(0.3333) == "0.3"

    def test_none(self):
        assert format_quantity(None) is None


# =============================================================================
# Combining Quantities
# =============================================================================


class TestAddQuantities:
    """Tests for add_quantities function."""

    def test_same_unit_sums(self):
        assert add_quantities("2", "g", "3", "g") == AggregatedQuantity("5", "g")

    def test_unit_comparison_ignores_case(self):
        """Test that units match after normalization, keeping the first unit's spelling."""
        assert add_quantities("2", "G", "3", " g ") == AggregatedQuantity("5", "G")

    def test_both_without_unit(self):
        assert add_quantities("1", "", "2", None) == AggregatedQuantity("3", None)

    def test_decimal_comma_sum(self):
        assert add_quantities("1,5", "kg", "1", "kg") == AggregatedQuantity("2.5", "kg")

    def test_mismatched_units_concatenate(self):
        assert add_quantities("2", "g", "3", "kg") == AggregatedQuantity("2 g + 3 kg", None)

    def test_zero_first_side_absorbed(self):
        assert add_quantities("0", "", "2", "g") == AggregatedQuantity("2", "g")

    def test_zero_second_side_absorbed(self):
        assert add_quantities("2", "g", "0", "") == AggregatedQuantity("2", "g")

    def test_missing_side_absorbed(self):
        assert add_quantities(None, None, "a handful", None) == AggregatedQuantity(
            "a handful", None
        )
        assert add_quantities("1 bunch", "", "", "g") == AggregatedQuantity("1 bunch", None)

    def test_zero_sum_collapses(self):
        """Test that a sum of exactly zero yields an empty quantity."""
        assert add_quantities("2", "g", "-2", "g") == AggregatedQuantity(None, None)

    def test_text_quantities_concatenate(self):
        result = add_quantities("1 bunch", None, "2", "cups")
        assert result == AggregatedQuantity("1 bunch + 2 cups", None)

    def test_never_raises_on_odd_input(self):
        result = add_quantities("½", "cup", "one", "")
        assert result.quantity == "½ cup + one"
        assert result.unit is None


class TestAggregateQuantities:
    """Tests for aggregate_quantities function."""

    def test_sum_without_units(self):
        assert aggregate_quantities(["1", "2", "3"], ["", "", ""]) == AggregatedQuantity(
            "6", None
        )

    def test_sum_with_units(self):
        result = aggregate_quantities(["200", "100"], ["g", "g"])
        assert result == AggregatedQuantity("300", "g")

    def test_display_unit_is_first_non_empty_original(self):
        result = aggregate_quantities(["1", "2"], ["Cups", "cups"])
        assert result == AggregatedQuantity("3", "Cups")

    def test_mismatched_units_concatenate(self):
        result = aggregate_quantities(["200", "1"], ["g", ""])
        assert result.unit is None
        assert result.quantity == "200 g + 1"

    def test_non_numeric_concatenates(self):
        result = aggregate_quantities(["2", "a pinch", "1,5"], ["tbsp", "", "tbsp"])
        assert result == AggregatedQuantity("2 tbsp + a pinch + 1,5 tbsp", None)

    def test_concatenation_skips_empty_quantities(self):
        result = aggregate_quantities(["2", "", None], ["g", "kg", None])
        assert result == AggregatedQuantity("2 g", None)

    @pytest.mark.parametrize(
        "quantity, unit, expected_unit",
        [
            ("2", "g", "g"),
            ("a handful", "", None),
            ("", None, None),
            ("1,5", "kg", "kg"),
        ],
    )
    def test_single_value_passes_through(self, quantity, unit, expected_unit):
        """Test that a single contribution is returned unchanged."""
        result = aggregate_quantities([quantity], [unit])
        assert result == AggregatedQuantity(quantity, expected_unit)

    def test_empty_input(self):
        assert aggregate_quantities([], []) == AggregatedQuantity(None, None)

    def test_short_units_are_padded(self):
        assert aggregate_quantities(["1", "2"], []) == AggregatedQuantity("3", None)

    def test_fractional_sum_formatting(self):
        assert aggregate_quantities(["0,5", "1"], ["l", "L"]) == AggregatedQuantity("1.5", "l")


# =============================================================================
# Manual List Adjustments
# =============================================================================


class TestIncrementQuantity:
    """Tests for increment_quantity function."""

    def test_numeric_increment(self):
        assert increment_quantity("2", "kg") == AggregatedQuantity("3", "kg")

    def test_non_numeric_step_counts_as_one(self):
        assert increment_quantity("2", None, "some") == AggregatedQuantity("3", None)

    def test_text_current_appends(self):
        assert increment_quantity("a bunch", "x") == AggregatedQuantity("a bunch + 1", None)

    def test_no_current_quantity(self):
        assert increment_quantity(None, None) == AggregatedQuantity("1", None)
        assert increment_quantity("", "g", "2") == AggregatedQuantity("2", "g")


class TestDecrementQuantity:
    """Tests for decrement_quantity function."""

    def test_numeric_decrement(self):
        assert decrement_quantity("3", "g") == AggregatedQuantity("2", "g")

    def test_reaching_zero_clears(self):
        assert decrement_quantity("1", "g") == AggregatedQuantity(None, None)
        assert decrement_quantity("0,5", None) == AggregatedQuantity(None, None)

    def test_text_quantity_unchanged(self):
        assert decrement_quantity("a bunch", None) == AggregatedQuantity("a bunch", None)
        assert decrement_quantity(None, None) == AggregatedQuantity(None, None)


class TestAggregatedQuantityDisplay:
    """Tests for AggregatedQuantity display formatting."""

    def test_with_unit(self):
        assert AggregatedQuantity("300", "g").display() == "300 g"

    def test_without_unit(self):
        assert AggregatedQuantity("2", None).display() == "2"

    def test_empty(self):
        assert AggregatedQuantity(None, None).display() is None
