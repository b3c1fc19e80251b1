"""Backing store interface consumed by the shopping list planner."""

from abc import ABC, abstractmethod
from datetime import date

from mealplanner.schemas import (
    MealPlanEntry,
    RecipeDetail,
    ShoppingItem,
    ShoppingItemPatch,
    ShoppingItemRef,
)


class BackingStoreError(Exception):
    """Base exception for backing store failures."""

    def __init__(self, message: str, operation: str | None = None):
        super().__init__(message)
        self.operation = operation


class RecordNotFoundError(BackingStoreError):
    """Raised when a record does not exist for the current household."""

    def __init__(self, entity: str, record_id: object):
        super().__init__(f"{entity} {record_id} not found", operation="lookup")
        self.entity = entity
        self.record_id = record_id


class BackingStore(ABC):
    """Abstract base class for household-scoped persistence."""

    @abstractmethod
    async def list_shopping_items(self) -> list[ShoppingItem]:
        """
        List the household's shopping items.

        Returns:
            Items ordered unchecked first, then by sort order, then by creation time.
        """
        pass

    @abstractmethod
    async def get_shopping_item(self, item_id: int) -> ShoppingItem:
        """Get a single shopping item. Raises RecordNotFoundError if absent."""
        pass

    @abstractmethod
    async def create_shopping_item(
        self,
        ref: ShoppingItemRef,
        quantity: str | None,
        unit: str | None,
        count: int = 1,
    ) -> ShoppingItem:
        """
        Create a shopping item.

        Args:
            ref: Ingredient or custom-name reference.
            quantity: Display quantity text.
            unit: Display unit.
            count: Number of recipe lines that contributed to this item.

        Returns:
            The created item.
        """
        pass

    @abstractmethod
    async def update_shopping_item(self, item_id: int, patch: ShoppingItemPatch) -> ShoppingItem:
        """Apply the explicitly set fields of ``patch`` and return the updated item."""
        pass

    @abstractmethod
    async def delete_shopping_item(self, item_id: int) -> None:
        """Delete a shopping item. Raises RecordNotFoundError if absent."""
        pass

    @abstractmethod
    async def delete_checked_shopping_items(self) -> int:
        """Delete all checked items and return how many were removed."""
        pass

    @abstractmethod
    async def delete_all_shopping_items(self) -> int:
        """Delete every shopping item and return how many were removed."""
        pass

    @abstractmethod
    async def list_meal_plans(self, start_date: date, end_date: date) -> list[MealPlanEntry]:
        """
        List planned meals in an inclusive date range.

        Returns:
            Meal plan entries ordered by planned date.
        """
        pass

    @abstractmethod
    async def get_recipe_with_ingredients(self, recipe_id: str) -> RecipeDetail | None:
        """Get a recipe with its ordered ingredient lines, or None if it does not exist."""
        pass
