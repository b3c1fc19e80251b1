"""Free-form quantity parsing and best-effort aggregation.

Recipe quantities are user-entered text ("200", "1,5", "a handful"). Quantities are
summed only when every value parses as a number and the units match after
normalization; anything else is kept as readable text joined with " + ", so no
contribution is ever dropped.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass

from mealplanner.logging_config import get_logger

logger = get_logger(__name__)

_NUMBER_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)$")

CONCAT_SEPARATOR = " + "


@dataclass(frozen=True)
class AggregatedQuantity:
    """A single display quantity with an optional unit."""

    quantity: str | None
    unit: str | None

    def display(self) -> str | None:
        """Get human-readable quantity string."""
        if not self.quantity:
            return None
        if self.unit:
            return f"{self.quantity} {self.unit}"
        return self.quantity


EMPTY = AggregatedQuantity(quantity=None, unit=None)


# =============================================================================
# Parsing and Formatting
# =============================================================================


def parse_quantity(text: str | None) -> float | None:
    """
    Parse a quantity string into a number.

    Accepts plain decimals with either "." or "," as separator ("2", "2,5").
    Returns None for empty input or anything that is not entirely a number
    ("two", "2 cloves").
    """
    if not text or not text.strip():
        return None

    cleaned = text.strip().replace(",", ".", 1)
    if not _NUMBER_RE.match(cleaned):
        return None

    return float(cleaned)


def normalize_unit(unit: str | None) -> str:
    """Normalize a unit for comparison. None and blank strings mean "no unit"."""
    if not unit or not unit.strip():
        return ""
    return unit.lower().strip()


def format_quantity(value: float | None) -> str | None:
    """Format a number for display: "3" for whole numbers, one decimal otherwise."""
    if value is None:
        return None
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.1f}"


def _fragment(quantity: str | None, unit: str | None) -> str | None:
    if not quantity:
        return None
    if unit:
        return f"{quantity} {unit}"
    return quantity


def _is_absent(quantity: str | None, value: float | None) -> bool:
    return not quantity or quantity == "0" or value == 0


# =============================================================================
# Combining Quantities
# =============================================================================


def add_quantities(
    qty1: str | None,
    unit1: str | None,
    qty2: str | None,
    unit2: str | None,
) -> AggregatedQuantity:
    """
    Add two independently sourced quantity/unit pairs.

    - Both numeric with the same normalized unit: the sum, keeping the first
      non-empty unit. A sum of exactly zero yields an empty quantity.
    - One side missing or zero: the other side unchanged.
    - Otherwise: both sides as text joined with " + " and no unit.
    """
    num1 = parse_quantity(qty1)
    num2 = parse_quantity(qty2)

    if num1 is not None and num2 is not None and normalize_unit(unit1) == normalize_unit(unit2):
        total = num1 + num2
        if total == 0:
            return EMPTY
        return AggregatedQuantity(quantity=format_quantity(total), unit=unit1 or unit2 or None)

    if _is_absent(qty1, num1):
        return AggregatedQuantity(quantity=qty2, unit=unit2 or None)
    if _is_absent(qty2, num2):
        return AggregatedQuantity(quantity=qty1, unit=unit1 or None)

    logger.debug(f"Cannot sum {qty1!r} {unit1!r} and {qty2!r} {unit2!r}, concatenating")
    return AggregatedQuantity(
        quantity=f"{_fragment(qty1, unit1)}{CONCAT_SEPARATOR}{_fragment(qty2, unit2)}",
        unit=None,
    )


def aggregate_quantities(
    quantities: Sequence[str | None],
    units: Sequence[str | None],
) -> AggregatedQuantity:
    """
    Reduce the quantities contributed by several ingredient lines to one.

    Args:
        quantities: Quantity text per contributing line.
        units: Unit text per contributing line, parallel to ``quantities``.

    Returns:
        The sum when every quantity is numeric and every unit matches the first
        after normalization, otherwise all non-empty contributions joined with " + ".
    """
    if not quantities:
        return EMPTY

    units = (list(units) + [None] * len(quantities))[: len(quantities)]

    if len(quantities) == 1:
        return AggregatedQuantity(quantity=quantities[0], unit=units[0] or None)

    values = [parse_quantity(q) for q in quantities]
    first_unit = normalize_unit(units[0])

    all_numeric = all(v is not None for v in values)
    same_unit = all(normalize_unit(u) == first_unit for u in units)

    if all_numeric and same_unit:
        display_unit = next((u for u in units if u), None)
        return AggregatedQuantity(quantity=format_quantity(sum(values)), unit=display_unit)

    parts = [_fragment(q, u) for q, u in zip(quantities, units)]
    return AggregatedQuantity(
        quantity=CONCAT_SEPARATOR.join(p for p in parts if p),
        unit=None,
    )


# =============================================================================
# Manual List Adjustments
# =============================================================================


def increment_quantity(
    current_qty: str | None,
    current_unit: str | None,
    add_qty: str | None = "1",
) -> AggregatedQuantity:
    """
    Increase an existing list quantity, as when an ingredient is added again.

    A non-numeric increment counts as one. A non-numeric current quantity gets
    the increment appended as text.
    """
    current = parse_quantity(current_qty)
    added = parse_quantity(add_qty)

    if current is not None:
        total = current + (added if added is not None else 1)
        return AggregatedQuantity(quantity=format_quantity(total), unit=current_unit)

    if current_qty:
        return AggregatedQuantity(
            quantity=f"{current_qty}{CONCAT_SEPARATOR}{add_qty or '1'}",
            unit=None,
        )

    return AggregatedQuantity(quantity=add_qty or "1", unit=current_unit)


def decrement_quantity(
    current_qty: str | None,
    current_unit: str | None,
    step: str | None = "1",
) -> AggregatedQuantity:
    """Decrease a numeric list quantity; reaching zero or below clears it."""
    current = parse_quantity(current_qty)
    amount = parse_quantity(step)

    if current is None or amount is None:
        return AggregatedQuantity(quantity=current_qty, unit=current_unit)

    remaining = current - amount
    if remaining <= 0:
        return EMPTY
    return AggregatedQuantity(quantity=format_quantity(remaining), unit=current_unit)
