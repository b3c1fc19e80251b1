"""Shopping list generation from planned meals, and manual list edits."""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date

from mealplanner.logging_config import get_logger
from mealplanner.normalize.quantities import (
    AggregatedQuantity,
    add_quantities,
    aggregate_quantities,
    decrement_quantity,
    increment_quantity,
)
from mealplanner.schemas import (
    CustomRef,
    IngredientRef,
    MealPlanEntry,
    RecipeDetail,
    ShoppingItem,
    ShoppingItemPatch,
)
from mealplanner.store.base import BackingStore, BackingStoreError

logger = get_logger(__name__)

DEFAULT_QUANTITY = "1"


class NoIngredientsFoundError(Exception):
    """Raised when the selected meals yield no ingredient lines."""

    def __init__(self, message: str = "No ingredients found in selected recipes"):
        super().__init__(message)


@dataclass
class IngredientGroup:
    """All lines for one ingredient across the selected meals."""

    ingredient_id: str
    quantities: list[str] = field(default_factory=list)
    units: list[str] = field(default_factory=list)
    count: int = 0

    def add_line(self, quantity: str | None, unit: str | None) -> None:
        """
        Add one recipe line.

        A line without a quantity counts as one unit of the ingredient, and
        its unit is ignored.
        """
        raw_quantity = (quantity or "").strip()
        raw_unit = (unit or "").strip()

        self.quantities.append(raw_quantity or DEFAULT_QUANTITY)
        self.units.append(raw_unit if raw_quantity else "")
        self.count += 1

    def aggregate(self) -> AggregatedQuantity:
        """Reduce the collected lines to a single quantity."""
        return aggregate_quantities(self.quantities, self.units)


@dataclass
class GenerationResult:
    """Outcome of a shopping list generation run."""

    items_processed: int = 0
    created: int = 0
    merged: int = 0
    items: list[ShoppingItem] = field(default_factory=list)


def collect_ingredient_groups(
    meals: Iterable[MealPlanEntry],
    recipes: dict[str, RecipeDetail],
) -> dict[str, IngredientGroup]:
    """
    Group the ingredient lines of every meal by ingredient id.

    Args:
        meals: Planned meals to collect from. A recipe planned twice contributes twice.
        recipes: Recipes by id. Meals whose recipe is missing are skipped.

    Returns:
        Groups keyed by ingredient id, in first-seen order.
    """
    groups: dict[str, IngredientGroup] = {}

    for meal in meals:
        recipe = recipes.get(meal.recipe_id)
        if recipe is None or not recipe.ingredient_lines:
            continue

        for line in recipe.ingredient_lines:
            if not line.ingredient_id:
                continue
            group = groups.setdefault(line.ingredient_id, IngredientGroup(line.ingredient_id))
            group.add_line(line.quantity, line.unit)

    return groups


class ShoppingListGenerator:
    """
    Generates shopping list entries from the meals planned on selected days.

    Each ingredient is reduced to one quantity and then either merged into the
    existing unchecked entry for that ingredient or added as a new entry. Merging
    adds quantities, so generating twice from the same days doubles them.
    """

    def __init__(self, store: BackingStore):
        self.store = store

    async def generate(self, selected_dates: Iterable[date]) -> GenerationResult:
        """
        Generate shopping list entries for the meals on the selected dates.

        Args:
            selected_dates: Days whose planned meals should be shopped for. The days
                may span several weeks.

        Returns:
            GenerationResult with the number of distinct ingredients written.

        Raises:
            NoIngredientsFoundError: If the selected meals have no ingredient lines.
                Nothing is written in that case.
            BackingStoreError: If a store call fails. Ingredients written before
                the failure stay written.
        """
        dates = set(selected_dates)
        if not dates:
            raise NoIngredientsFoundError()

        logger.info(f"Generating shopping list for {len(dates)} selected day(s)")

        meals = await self.store.list_meal_plans(min(dates), max(dates))
        selected_meals = [meal for meal in meals if meal.planned_date in dates]

        recipes = await self._load_recipes(selected_meals)
        groups = collect_ingredient_groups(selected_meals, recipes)

        if not groups:
            logger.info(f"No ingredients found in {len(selected_meals)} selected meal(s)")
            raise NoIngredientsFoundError()

        existing_items = await self.store.list_shopping_items()
        existing_by_ingredient = {
            item.ingredient_id: item
            for item in existing_items
            if item.ingredient_id and not item.checked
        }

        result = GenerationResult()

        for ingredient_id, group in groups.items():
            aggregated = group.aggregate()
            existing = existing_by_ingredient.get(ingredient_id)

            try:
                if existing:
                    item = await self._merge_into(existing, aggregated, group.count)
                    result.merged += 1
                else:
                    item = await self.store.create_shopping_item(
                        IngredientRef(ingredient_id=ingredient_id),
                        quantity=aggregated.quantity,
                        unit=aggregated.unit,
                        count=group.count,
                    )
                    result.created += 1
            except BackingStoreError as e:
                logger.error(
                    f"Shopping list generation stopped at ingredient {ingredient_id} "
                    f"after {result.items_processed} item(s): {e}"
                )
                raise

            result.items.append(item)
            result.items_processed += 1

        logger.info(
            f"Generated shopping list: {result.items_processed} ingredient(s), "
            f"{result.created} created, {result.merged} merged"
        )

        return result

    async def _load_recipes(self, meals: list[MealPlanEntry]) -> dict[str, RecipeDetail]:
        recipes: dict[str, RecipeDetail] = {}
        for recipe_id in dict.fromkeys(meal.recipe_id for meal in meals):
            recipe = await self.store.get_recipe_with_ingredients(recipe_id)
            if recipe is None:
                logger.warning(f"Planned recipe {recipe_id} not found, skipping")
                continue
            recipes[recipe_id] = recipe
        return recipes

    async def _merge_into(
        self,
        existing: ShoppingItem,
        aggregated: AggregatedQuantity,
        count: int,
    ) -> ShoppingItem:
        merged = add_quantities(
            existing.quantity or "0",
            existing.unit or "",
            aggregated.quantity,
            aggregated.unit,
        )
        return await self.store.update_shopping_item(
            existing.id,
            ShoppingItemPatch(
                quantity=merged.quantity,
                unit=merged.unit,
                count=(existing.count or 1) + count,
            ),
        )


class ShoppingListService:
    """Manual shopping list edits for one household."""

    def __init__(self, store: BackingStore):
        self.store = store

    async def list_items(self) -> list[ShoppingItem]:
        """List items, unchecked first."""
        return await self.store.list_shopping_items()

    async def add_ingredient(self, ingredient_id: str) -> ShoppingItem:
        """Add one of an ingredient, bumping the unchecked entry if it is already listed."""
        items = await self.store.list_shopping_items()
        existing = next(
            (item for item in items if item.ingredient_id == ingredient_id and not item.checked),
            None,
        )

        if existing:
            updated = increment_quantity(existing.quantity, existing.unit, DEFAULT_QUANTITY)
            logger.info(f"Ingredient {ingredient_id} already listed, incrementing")
            return await self.store.update_shopping_item(
                existing.id,
                ShoppingItemPatch(quantity=updated.quantity, unit=updated.unit),
            )

        return await self.store.create_shopping_item(
            IngredientRef(ingredient_id=ingredient_id),
            quantity=DEFAULT_QUANTITY,
            unit=None,
            count=1,
        )

    async def add_custom_item(self, name: str) -> ShoppingItem:
        """Add a free-text item."""
        name = name.strip()
        if not name:
            raise ValueError("Custom item name must not be blank")
        return await self.store.create_shopping_item(
            CustomRef(name=name),
            quantity=DEFAULT_QUANTITY,
            unit=None,
            count=1,
        )

    async def toggle_item(self, item_id: int) -> ShoppingItem:
        item = await self.store.get_shopping_item(item_id)
        return await self.store.update_shopping_item(
            item_id, ShoppingItemPatch(checked=not item.checked)
        )

    async def increment_item(self, item_id: int) -> ShoppingItem:
        item = await self.store.get_shopping_item(item_id)
        updated = increment_quantity(item.quantity, item.unit, DEFAULT_QUANTITY)
        return await self.store.update_shopping_item(
            item_id, ShoppingItemPatch(quantity=updated.quantity, unit=updated.unit)
        )

    async def decrement_item(self, item_id: int) -> ShoppingItem:
        item = await self.store.get_shopping_item(item_id)
        updated = decrement_quantity(item.quantity, item.unit, DEFAULT_QUANTITY)
        return await self.store.update_shopping_item(
            item_id, ShoppingItemPatch(quantity=updated.quantity, unit=updated.unit)
        )

    async def delete_item(self, item_id: int) -> None:
        await self.store.delete_shopping_item(item_id)

    async def clear_checked(self) -> int:
        """Remove checked items and return how many were removed."""
        removed = await self.store.delete_checked_shopping_items()
        logger.info(f"Cleared {removed} checked item(s)")
        return removed

    async def clear_all(self) -> int:
        """Remove every item and return how many were removed."""
        removed = await self.store.delete_all_shopping_items()
        logger.info(f"Cleared {removed} item(s)")
        return removed
