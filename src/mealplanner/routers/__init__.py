"""API routers for the mealplanner application."""

from mealplanner.routers.meal_plans import router as meal_plans_router
from mealplanner.routers.recipes import router as recipes_router
from mealplanner.routers.shopping_list import router as shopping_list_router

__all__ = [
    "meal_plans_router",
    "recipes_router",
    "shopping_list_router",
]
