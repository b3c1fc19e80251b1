"""In-memory recipe filtering."""

from collections.abc import Iterable

from mealplanner.schemas import ALL_SEASONS, RecipeDetail, RecipeFilters


def matches_filters(recipe: RecipeDetail, filters: RecipeFilters) -> bool:
    """
    Check whether a recipe passes the filter selection.

    Every active criterion must match. Within a criterion any selected value
    matches. Selecting every season is the same as selecting none.
    """
    if filters.search and filters.search.lower() not in recipe.name.lower():
        return False

    if filters.seasons and len(set(filters.seasons)) < len(ALL_SEASONS):
        if not any(season in recipe.season for season in filters.seasons):
            return False

    if filters.bases and recipe.base_id not in filters.bases:
        return False

    if filters.cuisines and recipe.cuisine_id not in filters.cuisines:
        return False

    if filters.tags and not any(tag in recipe.tag_ids for tag in filters.tags):
        return False

    if filters.difficulties and recipe.difficulty not in filters.difficulties:
        return False

    return True


def filter_recipes(
    recipes: Iterable[RecipeDetail],
    filters: RecipeFilters,
) -> list[RecipeDetail]:
    """Return the recipes matching ``filters``, preserving order."""
    if not filters.is_active:
        return list(recipes)
    return [recipe for recipe in recipes if matches_filters(recipe, filters)]
