"""Unit tests for shopping list generation and manual list edits."""

from datetime import date
from itertools import count

import pytest
from pydantic import ValidationError

from mealplanner.normalize.quantities import AggregatedQuantity
from mealplanner.plan.shopping_list import (
    IngredientGroup,
    NoIngredientsFoundError,
    ShoppingListGenerator,
    ShoppingListService,
    collect_ingredient_groups,
)
from mealplanner.schemas import CustomRef, IngredientRef, ShoppingItem, ShoppingItemPatch
from mealplanner.store.base import BackingStoreError

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def planned_store(mock_store, sample_meals, sample_recipes):
    """Mock store serving the sample meals and recipes and echoing writes."""
    ids = count(100)

    async def create_item(ref, quantity, unit, count=1):
        return ShoppingItem(id=next(ids), ref=ref, quantity=quantity, unit=unit, count=count)

    async def update_item(item_id, patch):
        return ShoppingItem(
            id=item_id,
            ref=IngredientRef(ingredient_id="patched"),
            **patch.model_dump(exclude_unset=True),
        )

    mock_store.list_meal_plans.return_value = sample_meals
    mock_store.get_recipe_with_ingredients.side_effect = lambda recipe_id: sample_recipes.get(
        recipe_id
    )
    mock_store.create_shopping_item.side_effect = create_item
    mock_store.update_shopping_item.side_effect = update_item
    return mock_store


def created_by_ingredient(store) -> dict[str, tuple]:
    """Map ingredient id to the (quantity, unit, count) it was created with."""
    created = {}
    for call in store.create_shopping_item.call_args_list:
        ref = call.args[0]
        created[ref.ingredient_id] = (
            call.kwargs["quantity"],
            call.kwargs["unit"],
            call.kwargs["count"],
        )
    return created


# =============================================================================
# Grouping Tests
# =============================================================================


class TestIngredientGroup:
    """Tests for IngredientGroup line collection."""

    def test_empty_quantity_defaults_to_one(self):
        """Test that a line without quantity counts as one, without unit."""
        group = IngredientGroup("salt")
        group.add_line("", "tsp")
        group.add_line(None, None)
        group.add_line("  ", "g")

        assert group.quantities == ["1", "1", "1"]
        assert group.units == ["", "", ""]
        assert group.count == 3

    def test_values_are_trimmed(self):
        group = IngredientGroup("flour")
        group.add_line(" 200 ", " g ")

        assert group.quantities == ["200"]
        assert group.units == ["g"]

    def test_aggregate(self):
        group = IngredientGroup("salt")
        group.add_line("", None)
        group.add_line("", None)

        assert group.aggregate() == AggregatedQuantity("2", None)


class TestCollectIngredientGroups:
    """Tests for collect_ingredient_groups function."""

    def test_groups_by_ingredient(self, sample_meals, sample_recipes):
        groups = collect_ingredient_groups(sample_meals[:2], sample_recipes)

        assert list(groups) == ["flour", "salt", "milk", "yeast"]
        assert groups["flour"].quantities == ["200", "100"]
        assert groups["flour"].units == ["g", "g"]
        assert groups["flour"].count == 2

    def test_recipe_planned_twice_counts_twice(self, sample_meals, sample_recipes):
        groups = collect_ingredient_groups(sample_meals, sample_recipes)

        assert groups["yeast"].count == 2
        assert groups["flour"].count == 3

    def test_lines_without_ingredient_are_skipped(self, sample_meals, sample_recipes):
        groups = collect_ingredient_groups(sample_meals[1:2], sample_recipes)

        assert None not in groups
        assert sum(g.count for g in groups.values()) == 3

    def test_missing_recipe_is_skipped(self, sample_meals):
        assert collect_ingredient_groups(sample_meals, {}) == {}


# =============================================================================
# Generator Tests
# =============================================================================


class TestShoppingListGenerator:
    """Tests for ShoppingListGenerator."""

    @pytest.mark.asyncio
    async def test_generates_new_items(self, planned_store, week_dates):
        result = await ShoppingListGenerator(planned_store).generate(week_dates)

        assert result.items_processed == 4
        assert result.created == 4
        assert result.merged == 0
        assert created_by_ingredient(planned_store) == {
            "flour": ("300", "g", 2),
            "salt": ("2", None, 2),
            "milk": ("0,5", "l", 1),
            "yeast": ("1 sachet", None, 1),
        }

    @pytest.mark.asyncio
    async def test_only_selected_dates_are_used(self, planned_store):
        """Test that meals in the loaded range but on unselected days are ignored."""
        dates = [date(2024, 3, 4), date(2024, 3, 12)]

        result = await ShoppingListGenerator(planned_store).generate(dates)

        planned_store.list_meal_plans.assert_awaited_once_with(
            date(2024, 3, 4), date(2024, 3, 12)
        )
        assert result.items_processed == 4
        created = created_by_ingredient(planned_store)
        # pancakes on the 4th and bread on the 12th, bread on the 6th is not selected
        assert created["flour"] == ("300", "g", 2)

    @pytest.mark.asyncio
    async def test_recipes_fetched_once(self, planned_store, sample_meals):
        dates = [meal.planned_date for meal in sample_meals]

        await ShoppingListGenerator(planned_store).generate(dates)

        assert planned_store.get_recipe_with_ingredients.await_count == 2

    @pytest.mark.asyncio
    async def test_merges_into_unchecked_item(self, planned_store, week_dates):
        planned_store.list_shopping_items.return_value = [
            ShoppingItem(id=1, ref=IngredientRef(ingredient_id="flour"), quantity="50", unit="g"),
            ShoppingItem(
                id=2,
                ref=IngredientRef(ingredient_id="salt"),
                quantity="1",
                checked=True,
            ),
            ShoppingItem(id=3, ref=CustomRef(name="candles"), quantity="1"),
        ]

        result = await ShoppingListGenerator(planned_store).generate(week_dates)

        assert result.merged == 1
        assert result.created == 3
        item_id, patch = planned_store.update_shopping_item.await_args.args
        assert item_id == 1
        assert patch.quantity == "350"
        assert patch.unit == "g"
        assert patch.count == 3
        # the checked salt entry is left alone and a new one is created
        assert "salt" in created_by_ingredient(planned_store)

    @pytest.mark.asyncio
    async def test_merge_with_mismatched_units_concatenates(self, planned_store, week_dates):
        planned_store.list_shopping_items.return_value = [
            ShoppingItem(
                id=7, ref=IngredientRef(ingredient_id="milk"), quantity="1", unit="cup", count=2
            ),
        ]

        await ShoppingListGenerator(planned_store).generate(week_dates)

        _, patch = planned_store.update_shopping_item.await_args.args
        assert patch.quantity == "1 cup + 0,5 l"
        assert patch.unit is None
        assert patch.count == 3

    @pytest.mark.asyncio
    async def test_merge_into_item_without_quantity(self, planned_store, week_dates):
        planned_store.list_shopping_items.return_value = [
            ShoppingItem(id=8, ref=IngredientRef(ingredient_id="flour"), quantity=None),
        ]

        await ShoppingListGenerator(planned_store).generate(week_dates)

        _, patch = planned_store.update_shopping_item.await_args.args
        assert patch.quantity == "300"
        assert patch.unit == "g"
        assert patch.count == 3

    @pytest.mark.asyncio
    async def test_no_dates_selected(self, planned_store):
        with pytest.raises(NoIngredientsFoundError):
            await ShoppingListGenerator(planned_store).generate([])

        planned_store.create_shopping_item.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_no_meals_on_selected_dates(self, planned_store):
        planned_store.list_meal_plans.return_value = []

        with pytest.raises(NoIngredientsFoundError):
            await ShoppingListGenerator(planned_store).generate([date(2024, 1, 1)])

        planned_store.create_shopping_item.assert_not_awaited()
        planned_store.update_shopping_item.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_meals_without_ingredients(self, planned_store, week_dates):
        planned_store.get_recipe_with_ingredients.side_effect = None
        planned_store.get_recipe_with_ingredients.return_value = None

        with pytest.raises(NoIngredientsFoundError, match="No ingredients found"):
            await ShoppingListGenerator(planned_store).generate(week_dates)

        planned_store.list_shopping_items.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_store_failure_stops_processing(self, planned_store, week_dates):
        """Test that a failed write propagates and earlier writes are kept."""
        created = []

        async def create_then_fail(ref, quantity, unit, count=1):
            if created:
                raise BackingStoreError("insert failed", operation="create_shopping_item")
            created.append(ref.ingredient_id)
            return ShoppingItem(id=1, ref=ref, quantity=quantity, unit=unit, count=count)

        planned_store.create_shopping_item.side_effect = create_then_fail

        with pytest.raises(BackingStoreError):
            await ShoppingListGenerator(planned_store).generate(week_dates)

        assert created == ["flour"]
        assert planned_store.create_shopping_item.await_count == 2
        planned_store.delete_shopping_item.assert_not_awaited()


# =============================================================================
# Manual Edit Tests
# =============================================================================


class TestShoppingListService:
    """Tests for ShoppingListService."""

    @pytest.mark.asyncio
    async def test_add_new_ingredient(self, planned_store):
        await ShoppingListService(planned_store).add_ingredient("basil")

        planned_store.create_shopping_item.assert_awaited_once_with(
            IngredientRef(ingredient_id="basil"), quantity="1", unit=None, count=1
        )

    @pytest.mark.asyncio
    async def test_add_listed_ingredient_increments(self, planned_store):
        planned_store.list_shopping_items.return_value = [
            ShoppingItem(
                id=5, ref=IngredientRef(ingredient_id="basil"), quantity="2", unit="bunch"
            ),
        ]

        await ShoppingListService(planned_store).add_ingredient("basil")

        planned_store.create_shopping_item.assert_not_awaited()
        item_id, patch = planned_store.update_shopping_item.await_args.args
        assert item_id == 5
        assert (patch.quantity, patch.unit) == ("3", "bunch")

    @pytest.mark.asyncio
    async def test_add_checked_ingredient_creates_new(self, planned_store):
        planned_store.list_shopping_items.return_value = [
            ShoppingItem(id=5, ref=IngredientRef(ingredient_id="basil"), checked=True),
        ]

        await ShoppingListService(planned_store).add_ingredient("basil")

        planned_store.create_shopping_item.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_add_custom_item(self, planned_store):
        item = await ShoppingListService(planned_store).add_custom_item("  candles ")

        assert item.custom_name == "candles"
        assert item.ingredient_id is None
        assert item.quantity == "1"

    @pytest.mark.asyncio
    async def test_add_blank_custom_item(self, planned_store):
        with pytest.raises(ValueError):
            await ShoppingListService(planned_store).add_custom_item("   ")

        planned_store.create_shopping_item.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_toggle_item(self, planned_store):
        planned_store.get_shopping_item.return_value = ShoppingItem(
            id=4, ref=CustomRef(name="candles"), checked=False
        )

        await ShoppingListService(planned_store).toggle_item(4)

        planned_store.update_shopping_item.assert_awaited_once_with(
            4, ShoppingItemPatch(checked=True)
        )

    @pytest.mark.asyncio
    async def test_decrement_to_zero_clears_quantity(self, planned_store):
        planned_store.get_shopping_item.return_value = ShoppingItem(
            id=4, ref=IngredientRef(ingredient_id="eggs"), quantity="1", unit=None
        )

        await ShoppingListService(planned_store).decrement_item(4)

        _, patch = planned_store.update_shopping_item.await_args.args
        assert patch.quantity is None
        assert "quantity" in patch.model_fields_set

    @pytest.mark.asyncio
    async def test_clear_checked(self, planned_store):
        planned_store.delete_checked_shopping_items.return_value = 3

        assert await ShoppingListService(planned_store).clear_checked() == 3


class TestShoppingItemPatch:
    """Tests for partial update validation."""

    def test_only_set_fields_are_dumped(self):
        patch = ShoppingItemPatch(quantity=None, unit="g")

        assert patch.model_dump(exclude_unset=True) == {"quantity": None, "unit": "g"}

    @pytest.mark.parametrize("field", ["checked", "count"])
    def test_null_flag_rejected(self, field):
        with pytest.raises(ValidationError) as exc_info:
            ShoppingItemPatch.model_validate({field: None})

        assert f"{field} cannot be null" in str(exc_info.value)

    def test_negative_count_rejected(self):
        with pytest.raises(ValidationError):
            ShoppingItemPatch(count=-1)
