"""Meal planning logic: shopping list generation and recipe filtering."""

from mealplanner.plan.filters import filter_recipes, matches_filters
from mealplanner.plan.shopping_list import (
    GenerationResult,
    IngredientGroup,
    NoIngredientsFoundError,
    ShoppingListGenerator,
    ShoppingListService,
    collect_ingredient_groups,
)

__all__ = [
    "GenerationResult",
    "IngredientGroup",
    "NoIngredientsFoundError",
    "ShoppingListGenerator",
    "ShoppingListService",
    "collect_ingredient_groups",
    "filter_recipes",
    "matches_filters",
]
