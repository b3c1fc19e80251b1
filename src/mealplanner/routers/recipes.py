"""API routes for recipes, ingredients, tags and bases."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from mealplanner.logging_config import get_logger
from mealplanner.plan.filters import filter_recipes
from mealplanner.routers.dependencies import get_store, store_http_error
from mealplanner.schemas import RecipeDetail, RecipeFilters, RecipeInput, Season
from mealplanner.store.base import BackingStoreError
from mealplanner.store.sql import SqlBackingStore

logger = get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["recipes"])


# Request/Response schemas
class IngredientCreateRequest(BaseModel):
    """Request to create an ingredient."""

    name: str = Field(min_length=1)


class IngredientResponse(BaseModel):
    """Single ingredient."""

    id: str
    name: str

    class Config:
        from_attributes = True


class IngredientListResponse(BaseModel):
    """List of ingredients."""

    ingredients: list[IngredientResponse]
    total: int


class TagCreateRequest(BaseModel):
    """Request to create a tag."""

    name: str = Field(min_length=1)
    color: str | None = None


class TagResponse(BaseModel):
    """Single tag."""

    id: str
    name: str
    color: str | None = None

    class Config:
        from_attributes = True


class TagListResponse(BaseModel):
    """List of tags."""

    tags: list[TagResponse]
    total: int


class BaseCreateRequest(BaseModel):
    """Request to create or rename a recipe base."""

    name: str = Field(min_length=1)


class BaseResponse(BaseModel):
    """Single recipe base."""

    id: str
    name: str

    class Config:
        from_attributes = True


class BaseListResponse(BaseModel):
    """List of recipe bases."""

    bases: list[BaseResponse]
    total: int


class RecipeListResponse(BaseModel):
    """Filtered list of recipes."""

    recipes: list[RecipeDetail]
    total: int


# =============================================================================
# Ingredient, Tag and Base Endpoints
# =============================================================================


@router.get("/ingredients", response_model=IngredientListResponse)
async def list_ingredients(
    store: SqlBackingStore = Depends(get_store),
) -> IngredientListResponse:
    """List the household's ingredients by name."""
    try:
        ingredients = await store.list_ingredients()
    except BackingStoreError as e:
        raise store_http_error(e)
    return IngredientListResponse(
        ingredients=[IngredientResponse.model_validate(i) for i in ingredients],
        total=len(ingredients),
    )


@router.post(
    "/ingredients", response_model=IngredientResponse, status_code=status.HTTP_201_CREATED
)
async def create_ingredient(
    request: IngredientCreateRequest,
    store: SqlBackingStore = Depends(get_store),
) -> IngredientResponse:
    """Create an ingredient."""
    try:
        ingredient = await store.create_ingredient(request.name.strip())
    except BackingStoreError as e:
        raise store_http_error(e)
    return IngredientResponse.model_validate(ingredient)


@router.put("/ingredients/{ingredient_id}", response_model=IngredientResponse)
async def update_ingredient(
    ingredient_id: str,
    request: IngredientCreateRequest,
    store: SqlBackingStore = Depends(get_store),
) -> IngredientResponse:
    """Rename an ingredient."""
    try:
        ingredient = await store.update_ingredient(ingredient_id, request.name.strip())
    except BackingStoreError as e:
        raise store_http_error(e)
    return IngredientResponse.model_validate(ingredient)


@router.delete("/ingredients/{ingredient_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ingredient(
    ingredient_id: str,
    store: SqlBackingStore = Depends(get_store),
) -> None:
    """
    Delete an ingredient.

    Recipe lines using it stay as unlinked lines and its shopping list items are removed.
    """
    try:
        await store.delete_ingredient(ingredient_id)
    except BackingStoreError as e:
        raise store_http_error(e)


@router.get("/tags", response_model=TagListResponse)
async def list_tags(
    store: SqlBackingStore = Depends(get_store),
) -> TagListResponse:
    """List the household's tags."""
    try:
        tags = await store.list_tags()
    except BackingStoreError as e:
        raise store_http_error(e)
    return TagListResponse(tags=[TagResponse.model_validate(t) for t in tags], total=len(tags))


@router.post("/tags", response_model=TagResponse, status_code=status.HTTP_201_CREATED)
async def create_tag(
    request: TagCreateRequest,
    store: SqlBackingStore = Depends(get_store),
) -> TagResponse:
    """Create a tag."""
    try:
        tag = await store.create_tag(request.name.strip(), request.color)
    except BackingStoreError as e:
        raise store_http_error(e)
    return TagResponse.model_validate(tag)


@router.put("/tags/{tag_id}", response_model=TagResponse)
async def update_tag(
    tag_id: str,
    request: TagCreateRequest,
    store: SqlBackingStore = Depends(get_store),
) -> TagResponse:
    """Rename or recolor a tag."""
    try:
        tag = await store.update_tag(tag_id, request.name.strip(), request.color)
    except BackingStoreError as e:
        raise store_http_error(e)
    return TagResponse.model_validate(tag)


@router.delete("/tags/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tag(
    tag_id: str,
    store: SqlBackingStore = Depends(get_store),
) -> None:
    """Delete a tag and remove it from every recipe."""
    try:
        await store.delete_tag(tag_id)
    except BackingStoreError as e:
        raise store_http_error(e)


@router.get("/bases", response_model=BaseListResponse)
async def list_bases(
    store: SqlBackingStore = Depends(get_store),
) -> BaseListResponse:
    """List the household's recipe bases."""
    try:
        bases = await store.list_bases()
    except BackingStoreError as e:
        raise store_http_error(e)
    return BaseListResponse(
        bases=[BaseResponse.model_validate(b) for b in bases], total=len(bases)
    )


@router.post("/bases", response_model=BaseResponse, status_code=status.HTTP_201_CREATED)
async def create_base(
    request: BaseCreateRequest,
    store: SqlBackingStore = Depends(get_store),
) -> BaseResponse:
    """Create a recipe base such as pasta or rice."""
    try:
        base = await store.create_base(request.name.strip())
    except BackingStoreError as e:
        raise store_http_error(e)
    return BaseResponse.model_validate(base)


@router.put("/bases/{base_id}", response_model=BaseResponse)
async def update_base(
    base_id: str,
    request: BaseCreateRequest,
    store: SqlBackingStore = Depends(get_store),
) -> BaseResponse:
    """Rename a recipe base."""
    try:
        base = await store.update_base(base_id, request.name.strip())
    except BackingStoreError as e:
        raise store_http_error(e)
    return BaseResponse.model_validate(base)


@router.delete("/bases/{base_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_base(
    base_id: str,
    store: SqlBackingStore = Depends(get_store),
) -> None:
    """Delete a recipe base. Recipes using it are kept without a base."""
    try:
        await store.delete_base(base_id)
    except BackingStoreError as e:
        raise store_http_error(e)


# =============================================================================
# Recipe Endpoints
# =============================================================================


@router.get("/recipes", response_model=RecipeListResponse)
async def list_recipes(
    search: Annotated[str, Query(description="Filter by recipe name")] = "",
    season: Annotated[list[Season] | None, Query(description="Seasons (any match)")] = None,
    base: Annotated[list[str] | None, Query(description="Base ids")] = None,
    cuisine: Annotated[list[str] | None, Query(description="Cuisine ids")] = None,
    tag: Annotated[list[str] | None, Query(description="Tag ids (any match)")] = None,
    difficulty: Annotated[list[str] | None, Query(description="Difficulties")] = None,
    store: SqlBackingStore = Depends(get_store),
) -> RecipeListResponse:
    """
    List recipes, newest first, with optional filters.

    Filter by name (partial match), seasons, bases, cuisines, tags or difficulty.
    Selecting all four seasons does not filter by season.
    """
    filters = RecipeFilters(
        search=search,
        seasons=season or [],
        bases=base or [],
        cuisines=cuisine or [],
        tags=tag or [],
        difficulties=difficulty or [],
    )

    try:
        recipes = await store.list_recipes()
    except BackingStoreError as e:
        raise store_http_error(e)

    filtered = filter_recipes(recipes, filters)
    return RecipeListResponse(recipes=filtered, total=len(filtered))


@router.post("/recipes", response_model=RecipeDetail, status_code=status.HTTP_201_CREATED)
async def create_recipe(
    request: RecipeInput,
    store: SqlBackingStore = Depends(get_store),
) -> RecipeDetail:
    """Create a recipe with its tags and ingredient lines."""
    logger.info(
        f"Creating recipe {request.name!r} with {len(request.ingredient_lines)} ingredient line(s)"
    )
    try:
        return await store.create_recipe(request)
    except BackingStoreError as e:
        raise store_http_error(e)


@router.get("/recipes/{recipe_id}", response_model=RecipeDetail)
async def get_recipe(
    recipe_id: str,
    store: SqlBackingStore = Depends(get_store),
) -> RecipeDetail:
    """Get a recipe with its ingredient lines."""
    try:
        return await store.get_recipe(recipe_id)
    except BackingStoreError as e:
        raise store_http_error(e)


@router.put("/recipes/{recipe_id}", response_model=RecipeDetail)
async def update_recipe(
    recipe_id: str,
    request: RecipeInput,
    store: SqlBackingStore = Depends(get_store),
) -> RecipeDetail:
    """Replace a recipe's fields, tags and ingredient lines."""
    try:
        return await store.update_recipe(recipe_id, request)
    except BackingStoreError as e:
        raise store_http_error(e)


@router.delete("/recipes/{recipe_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_recipe(
    recipe_id: str,
    store: SqlBackingStore = Depends(get_store),
) -> None:
    """Delete a recipe. Meals already planned with it are kept."""
    try:
        await store.delete_recipe(recipe_id)
    except BackingStoreError as e:
        raise store_http_error(e)
