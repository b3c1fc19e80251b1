"""Normalize and combine free-form ingredient quantities."""

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

__all__ = [
    "AggregatedQuantity",
    "add_quantities",
    "aggregate_quantities",
    "decrement_quantity",
    "format_quantity",
    "increment_quantity",
    "normalize_unit",
    "parse_quantity",
]
